import argparse
import logging
import sys
from pathlib import Path

from adapters.cubemx.cubemx_part import list_candidate_parts, resolve_part
from constants import DEFAULT_DATABASE_DIR, LOG_FORMAT
from converters.pin_out_table import render, write_pin_out
from converters.signal_filter import compile_filter
from models.errors import PinmapError

logger = logging.getLogger("CLI")


def setup_logging(verbose: bool = False):
    # stdout carries the table, keep logs on stderr.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pinmap",
        description="Produce a table of all signals that can be mapped to the pins "
        "of a microcontroller, from a database extracted from CubeMX.",
    )
    parser.add_argument(
        "-d",
        "--database",
        type=Path,
        default=DEFAULT_DATABASE_DIR,
        help="Database path (default: %(default)s).",
    )
    parser.add_argument(
        "-x",
        "--exclude",
        action="append",
        default=[],
        metavar="REGEX",
        help="Exclude signals of a component, may be repeated (e.g. ADC).",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parts_parser = subparsers.add_parser(
        "parts", help="Search the database for MCUs matching the given regex."
    )
    parts_parser.add_argument("pattern", type=str, help="Regex, e.g. 'STM32F1'.")

    table_parser = subparsers.add_parser(
        "table", help="Output a pin out table for a given part."
    )
    table_parser.add_argument("part", type=str, help="Part name, e.g. STM32F103C(8-B)Tx.")
    table_parser.add_argument(
        "--header", action="store_true", help="Write column titles first."
    )
    return parser


def list_parts(args: argparse.Namespace):
    # Load everything before printing, a failing part leaves stdout empty.
    parts = [
        resolve_part(args.database, part_id)
        for part_id in list_candidate_parts(args.database, args.pattern)
    ]
    for part in parts:
        print(part.summary())


def output_table(args: argparse.Namespace):
    # Reject bad exclusions before reading anything.
    signal_filter = compile_filter(args.exclude)
    part = resolve_part(args.database, args.part)
    table = render(part, signal_filter)
    write_pin_out(table, sys.stdout, header=args.header)


def main(argv=None):
    """Main function for the CLI tool."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.command == "parts":
            list_parts(args)
        else:
            output_table(args)
        sys.exit(0)
    except PinmapError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\nProcess interrupted by user. Exiting.")
        sys.exit(0)
    except Exception as e:
        logger.critical(f"An unhandled exception occurred: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
