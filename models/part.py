"""
Defines the canonical data model for a microcontroller part, as loaded
from the descriptor database.
"""

from enum import Enum
from typing import Annotated, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class GpioMode(str, Enum):
    """How signals are routed to pins, for the whole part."""

    ALTERNATE_FUNCTION = "alternate_function"
    REMAP = "remap"


class AlternateFunction(BaseModel):
    """Signal selected through the pin alternate function multiplexer."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["alternate_function"] = "alternate_function"
    index: int = Field(ge=0, le=255, description="AF number")


class AdditionalFunction(BaseModel):
    """Signal available without any AF setup."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["additional_function"] = "additional_function"


class Remap(BaseModel):
    """
    Signal selected through a chip-wide remap configuration, used on older
    parts without the AF system. The signal can be available on several
    remaps.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["remap"] = "remap"
    indices: Tuple[Annotated[int, Field(ge=0, le=255)], ...] = ()


SignalMap = Annotated[
    Union[AlternateFunction, AdditionalFunction, Remap],
    Field(discriminator="kind"),
]


class Signal(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    mapping: SignalMap


class Pin(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    # Can be a number or a letter with a number.
    position: str
    signals: Tuple[Signal, ...] = ()


class Part(BaseModel):
    """
    Represents one microcontroller with all its pins, in package order.
    """

    model_config = ConfigDict(frozen=True)

    part: str
    line: str
    package: str
    gpio_mode: GpioMode
    pins: Tuple[Pin, ...] = ()

    def summary(self) -> str:
        """Produce a one-line part summary."""
        return f"{self.part}: {self.line} {self.package}"
