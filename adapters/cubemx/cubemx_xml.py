import gzip
import logging
import xml.etree.ElementTree as ET
import zlib
from pathlib import Path
from typing import Iterator, Optional

from first import first

from models.errors import DecodeError, ResourceNotFound, StructuralError

logger = logging.getLogger(__name__)


def read_gzipped(path: Path) -> str:
    """
    Read a gzip compressed descriptor and return its UTF-8 text.

    Raises:
        ResourceNotFound: If the file does not exist
        DecodeError: If the stream is not valid gzip or not valid UTF-8
    """
    logger.debug(f"Reading {path}")
    try:
        with gzip.open(path, "rb") as f:
            data = f.read()
    except FileNotFoundError as e:
        raise ResourceNotFound(path) from e
    except (OSError, EOFError, zlib.error) as e:
        raise DecodeError(f"{path}: cannot decompress: {e}") from e
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"{path}: not UTF-8: {e}") from e


def load_descriptor(path: Path) -> ET.Element:
    """
    Decompress and parse a descriptor, returning its root element.

    Raises:
        ResourceNotFound: If the file does not exist
        DecodeError: If the file cannot be decompressed or parsed
    """
    xml = read_gzipped(path)
    try:
        return ET.fromstring(xml)
    except ET.ParseError as e:
        raise DecodeError(f"{path}: malformed XML: {e}") from e


def local_name(element: ET.Element) -> str:
    """Tag name without its namespace, vendor files use a default namespace."""
    return element.tag.rsplit("}", 1)[-1]


def children(element: ET.Element, tag: str) -> Iterator[ET.Element]:
    return (child for child in element if local_name(child) == tag)


def find_child(element: ET.Element, tag: str, **attributes: str) -> Optional[ET.Element]:
    """Return the first child with the given tag and attribute values, if any."""
    return first(
        children(element, tag),
        key=lambda child: all(child.get(k) == v for k, v in attributes.items()),
    )


def find_descendant(element: ET.Element, tag: str) -> Optional[ET.Element]:
    # Leaf elements are falsy, always select with a key.
    return first(element.iter(), key=lambda node: local_name(node) == tag)


def attribute_or_error(element: ET.Element, name: str) -> str:
    """Factorize attribute getter, raise a StructuralError if not found."""
    value = element.get(name)
    if value is None:
        raise StructuralError(local_name(element), name)
    return value
