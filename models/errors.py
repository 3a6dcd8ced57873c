"""
Exceptions raised while loading the database and rendering pin out tables.
"""

from pathlib import Path
from typing import Union


class PinmapError(Exception):
    """Base class for all errors reported by pinmap."""


class ResourceNotFound(PinmapError):
    """A descriptor file or database directory does not exist."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"{self.path} not found")


class DecodeError(PinmapError):
    """A descriptor could not be decompressed, parsed or interpreted."""


class StructuralError(DecodeError):
    """An element lacks a required attribute."""

    def __init__(self, tag: str, attribute: str, message: str = None):
        self.tag = tag
        self.attribute = attribute
        super().__init__(message or f"{tag} missing a {attribute} attribute")


class PatternError(PinmapError):
    """A regular expression could not be compiled."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        super().__init__(f"invalid pattern {pattern!r}: {reason}")


class RenderError(PinmapError):
    """A part cannot be laid out as a pin out table."""


class ModeInferenceError(RenderError):
    """A signal mapping does not match the GPIO mode of its part."""

    def __init__(self, pin: str, signal: str, message: str):
        self.pin = pin
        self.signal = signal
        super().__init__(f"{pin}/{signal}: {message}")
