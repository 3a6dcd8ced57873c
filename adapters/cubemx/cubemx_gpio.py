import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Optional, Tuple

from adapters.cubemx.cubemx_xml import (
    attribute_or_error,
    children,
    find_child,
    find_descendant,
    load_descriptor,
)
from constants import (
    AF_VALUE_PREFIX,
    IP_DIR,
    MCU_DIR,
    REMAP_MARKER,
    DescriptorFilename,
)
from models.errors import DecodeError
from models.part import AlternateFunction, GpioMode, Remap, SignalMap

logger = logging.getLogger(__name__)

# Pin name -> signal name -> mapping. Only lives while a part is loaded.
GpioTable = Dict[str, Dict[str, SignalMap]]

_INDEX_RE = re.compile(r"[0-9]+")


def gpio_descriptor_path(database: Path, gpio_version: str) -> Path:
    filename = DescriptorFilename.GPIO_MODES.value.format(version=gpio_version)
    return Path(database) / MCU_DIR / IP_DIR / filename


def _parse_index(text: str) -> Optional[int]:
    """Parse an unsigned byte, or return None."""
    if not _INDEX_RE.fullmatch(text):
        return None
    value = int(text)
    return value if value <= 255 else None


def parse_alternate_function(pin_name: str, signal: ET.Element) -> AlternateFunction:
    """
    Decode the AF number from the first PossibleValue below a PinSignal,
    which reads like "GPIO_AF7_USART2".
    """
    signal_name = signal.get("Name")
    node = find_descendant(signal, "PossibleValue")
    if node is None:
        raise DecodeError(f"{pin_name}/{signal_name}: no AF found")
    if node.text is None or not node.text.strip():
        raise DecodeError(f"{pin_name}/{signal_name}: no AF text")
    value = node.text.strip()
    if not value.startswith(AF_VALUE_PREFIX):
        raise DecodeError(f"{pin_name}/{signal_name}: not an AF: {value}")
    rest = value[len(AF_VALUE_PREFIX):]
    if "_" not in rest:
        raise DecodeError(f"{pin_name}/{signal_name}: not an AF: {value}")
    index = _parse_index(rest.split("_", 1)[0])
    if index is None:
        raise DecodeError(f"{pin_name}/{signal_name}: bad AF number: {value}")
    return AlternateFunction(index=index)


def parse_remap(pin_name: str, signal: ET.Element) -> Remap:
    """
    Collect remap numbers from every RemapBlock of a PinSignal, whose names
    end like "..._REMAP2". No RemapBlock gives an empty remap.
    """
    indices = []
    for block in children(signal, "RemapBlock"):
        name = attribute_or_error(block, "Name")
        marker = name.rfind(REMAP_MARKER)
        if marker < 0:
            raise DecodeError(f"{pin_name}: missing {REMAP_MARKER} in {name}")
        index = _parse_index(name[marker + len(REMAP_MARKER):])
        if index is None:
            raise DecodeError(f"{pin_name}: bad remap number in {name}")
        indices.append(index)
    return Remap(indices=tuple(indices))


def load_gpio_modes(database: Path, gpio_version: str) -> Tuple[GpioMode, GpioTable]:
    """
    Load information on GPIOs from the GPIO descriptor of the given version.

    The descriptor does not say whether the part uses alternate functions or
    remaps: the first PinSignal of the document decides for the whole part.
    It is a remap part if that signal has a RemapBlock.

    Returns:
        Tuple of (GpioMode, table indexed by pin then signal name)
    """
    path = gpio_descriptor_path(database, gpio_version)
    logger.info(f"Loading GPIO modes from {path}")
    root = load_descriptor(path)

    mode: Optional[GpioMode] = None
    gpios: GpioTable = {}
    for pin in children(root, "GPIO_Pin"):
        pin_name = attribute_or_error(pin, "Name")
        signals: Dict[str, SignalMap] = {}
        for signal in children(pin, "PinSignal"):
            if mode is None:
                has_remap = find_child(signal, "RemapBlock") is not None
                mode = GpioMode.REMAP if has_remap else GpioMode.ALTERNATE_FUNCTION
                logger.info(f"GPIO mode decided by {pin_name}: {mode.value}")
            if mode is GpioMode.REMAP:
                mapping = parse_remap(pin_name, signal)
            else:
                mapping = parse_alternate_function(pin_name, signal)
            signals[attribute_or_error(signal, "Name")] = mapping
        gpios[pin_name] = signals

    if not gpios:
        logger.warning(f"No GPIO_Pin found in {path}")
    if mode is None:
        mode = GpioMode.ALTERNATE_FUNCTION
    logger.debug(f"Loaded {len(gpios)} GPIO pins")
    return mode, gpios
