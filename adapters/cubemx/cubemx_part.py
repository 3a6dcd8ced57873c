import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional

from adapters.cubemx.cubemx_gpio import GpioTable, load_gpio_modes
from adapters.cubemx.cubemx_xml import (
    attribute_or_error,
    children,
    find_child,
    load_descriptor,
)
from constants import DESCRIPTOR_EXT, GPIO_IP_NAME, MCU_DIR, DescriptorFilename
from models.errors import PatternError, ResourceNotFound, StructuralError
from models.part import AdditionalFunction, Part, Pin, Signal, SignalMap

logger = logging.getLogger(__name__)


def part_descriptor_path(database: Path, part_id: str) -> Path:
    filename = DescriptorFilename.PART.value.format(part=part_id)
    return Path(database) / MCU_DIR / filename


def _parse_signal(signals_map: Optional[Dict[str, SignalMap]], element: ET.Element) -> Signal:
    name = attribute_or_error(element, "Name")
    # Signals unknown to the GPIO descriptor need no setup.
    mapping = (signals_map or {}).get(name, AdditionalFunction())
    return Signal(name=name, mapping=mapping)


def _parse_pin(gpios: GpioTable, element: ET.Element) -> Pin:
    name = attribute_or_error(element, "Name")
    position = attribute_or_error(element, "Position")
    signals_map = gpios.get(name)
    signals = tuple(
        _parse_signal(signals_map, s)
        for s in children(element, "Signal")
        if s.get("Name") != GPIO_IP_NAME
    )
    logger.debug(f"Pin {name} at {position}: {len(signals)} signals")
    return Pin(name=name, position=position, signals=signals)


def resolve_part(database: Path, part_id: str) -> Part:
    """
    Extract information on a part from its descriptor in the database,
    joined with the GPIO descriptor it refers to.

    Args:
        database: Root of the database, the directory holding "mcu"
        part_id: Part name, the descriptor filename without extension

    Returns:
        The fully loaded Part

    Raises:
        ResourceNotFound: If a descriptor is missing
        DecodeError: If a descriptor is malformed or lacks a required attribute
    """
    path = part_descriptor_path(database, part_id)
    logger.info(f"Loading part {part_id} from {path}")
    root = load_descriptor(path)

    line = attribute_or_error(root, "Line")
    package = attribute_or_error(root, "Package")

    gpio_ip = find_child(root, "IP", Name=GPIO_IP_NAME)
    if gpio_ip is None:
        raise StructuralError("IP", "Name", f"{part_id}: missing {GPIO_IP_NAME} IP")
    gpio_version = attribute_or_error(gpio_ip, "Version")
    gpio_mode, gpios = load_gpio_modes(database, gpio_version)

    pins = tuple(_parse_pin(gpios, n) for n in children(root, "Pin"))
    logger.info(f"Loaded {part_id}: {len(pins)} pins, {gpio_mode.value} mode")
    return Part(
        part=part_id,
        line=line,
        package=package,
        gpio_mode=gpio_mode,
        pins=pins,
    )


def list_candidate_parts(database: Path, pattern: str) -> List[str]:
    """List all parts in the database whose name matches the given regex."""
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise PatternError(pattern, str(e)) from e

    mcu_dir = Path(database) / MCU_DIR
    if not mcu_dir.is_dir():
        raise ResourceNotFound(mcu_dir)

    parts = []
    for entry in mcu_dir.iterdir():
        if not entry.is_file() or not entry.name.endswith(DESCRIPTOR_EXT):
            continue
        part_id = entry.name[: -len(DESCRIPTOR_EXT)]
        if regex.search(part_id):
            parts.append(part_id)
    parts.sort()
    logger.info(f"Found {len(parts)} parts matching '{pattern}'")
    return parts
