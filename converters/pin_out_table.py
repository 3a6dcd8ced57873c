import csv
import logging
from typing import Dict, List, NamedTuple, Optional, TextIO

from constants import ADDITIONAL_FUNCTION_HEADER, AF_COLUMN_COUNT
from converters.signal_filter import SignalFilter
from models.errors import ModeInferenceError, RenderError
from models.part import (
    AdditionalFunction,
    AlternateFunction,
    GpioMode,
    Part,
    Pin,
    Remap,
    Signal,
)

logger = logging.getLogger(__name__)


class PinOutTable(NamedTuple):
    """Rows of a pin out table, one per pin, and the matching column titles."""

    header: List[str]
    rows: List[List[str]]


def _filter(signal_filter: Optional[SignalFilter], columns: List[List[str]]) -> List[List[str]]:
    if signal_filter is None:
        return [list(column) for column in columns]
    return signal_filter.apply_columns(columns)


def _af_column(pin: Pin, signal: Signal) -> int:
    mapping = signal.mapping
    if isinstance(mapping, AlternateFunction):
        if mapping.index >= AF_COLUMN_COUNT:
            raise RenderError(f"{pin.name}/{signal.name}: AF{mapping.index} out of table")
        return mapping.index
    elif isinstance(mapping, AdditionalFunction):
        return AF_COLUMN_COUNT - 1
    elif isinstance(mapping, Remap):
        raise ModeInferenceError(pin.name, signal.name, "remap signal on an AF part")
    raise ModeInferenceError(pin.name, signal.name, f"unknown signal map {mapping!r}")


def render_af(part: Part, signal_filter: Optional[SignalFilter] = None) -> PinOutTable:
    """Produce a pin out table for AF based parts, with one column per AF."""
    header = ["Pin", "Position"]
    header += [f"AF{i}" for i in range(AF_COLUMN_COUNT - 1)]
    header.append(ADDITIONAL_FUNCTION_HEADER)
    rows = []
    for pin in part.pins:
        columns: List[List[str]] = [[] for _ in range(AF_COLUMN_COUNT)]
        for signal in pin.signals:
            columns[_af_column(pin, signal)].append(signal.name)
        columns = _filter(signal_filter, columns)
        rows.append([pin.name, pin.position] + [" ".join(c) for c in columns])
    return PinOutTable(header=header, rows=rows)


def remap_label(pin: Pin, signal: Signal) -> str:
    """Signal name followed by its sorted remap numbers, like "SPI1_MOSI(0,2)"."""
    mapping = signal.mapping
    if isinstance(mapping, Remap):
        remaps = ",".join(str(i) for i in sorted(mapping.indices))
        return f"{signal.name}({remaps})"
    elif isinstance(mapping, AdditionalFunction):
        return signal.name
    elif isinstance(mapping, AlternateFunction):
        raise ModeInferenceError(pin.name, signal.name, "AF signal on a remap part")
    raise ModeInferenceError(pin.name, signal.name, f"unknown signal map {mapping!r}")


def render_remap(part: Part, signal_filter: Optional[SignalFilter] = None) -> PinOutTable:
    """
    Produce a pin out table for remap based parts. There is no fixed number
    of slots, so columns are the signal categories found on the part (the
    peripheral name before the first underscore), sorted.
    """
    lines = []
    categories = set()
    for pin in part.pins:
        labels = [remap_label(pin, signal) for signal in pin.signals]
        labels = _filter(signal_filter, [labels])[0]
        by_category: Dict[str, List[str]] = {}
        for label in labels:
            category = label.split("_", 1)[0]
            categories.add(category)
            by_category.setdefault(category, []).append(label)
        lines.append((pin, by_category))

    columns = sorted(categories)
    logger.info(f"Found {len(columns)} signal categories")
    rows = []
    for pin, by_category in lines:
        row = [pin.name, pin.position]
        row += [" ".join(by_category.get(c, [])) for c in columns]
        rows.append(row)
    return PinOutTable(header=["Pin", "Position"] + columns, rows=rows)


def render(part: Part, signal_filter: Optional[SignalFilter] = None) -> PinOutTable:
    """
    Produce a pin out table for a part, laid out according to its GPIO mode.
    Without a filter, signal names are kept as found in the database.

    Raises:
        ModeInferenceError: If a signal mapping does not match the part mode
        RenderError: If an AF number has no column
    """
    logger.info(f"Rendering {part.part} ({len(part.pins)} pins, {part.gpio_mode.value} mode)")
    if part.gpio_mode is GpioMode.ALTERNATE_FUNCTION:
        return render_af(part, signal_filter)
    elif part.gpio_mode is GpioMode.REMAP:
        return render_remap(part, signal_filter)
    raise RenderError(f"{part.part}: unknown GPIO mode {part.gpio_mode!r}")


def write_pin_out(table: PinOutTable, stream: TextIO, header: bool = False) -> None:
    """Write the table as CSV, optionally preceded by its column titles."""
    writer = csv.writer(stream, lineterminator="\n")
    if header:
        writer.writerow(table.header)
    writer.writerows(table.rows)
