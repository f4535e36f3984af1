"""
Thing record model.

A Thing is a versioned, addressable record. Its ``type`` discriminant selects
one of four closed variants:

    type 0  ContainerThing  ordered Features (references to other Things)
    type 1  StringThing     data: str
    type 2  NumberThing     data: float
    type 3  ImageThing      data: bytes (base64 on the wire)

Every model is frozen; a Thing never changes after it has been decoded.
Wire names are used as aliases (``type``), Python names as attributes
(``thing_type``), and both are accepted on input.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Any, Literal, Union

from pydantic import BaseModel, Base64Bytes, ConfigDict, Field, field_serializer, field_validator


class ThingType(IntEnum):
    """Record discriminant."""

    CONTAINER = 0
    STRING = 1
    NUMBER = 2
    IMAGE = 3


class Feature(BaseModel):
    """
    Reference from a container Thing to another Thing's address.

    ``thing_type`` is the expected discriminant of the target, used to pick
    the decode path before the target has been fetched. Presentation keys
    some producers attach (``format``) are ignored.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    order: int
    address: str
    thing_type: int = Field(default=ThingType.CONTAINER, alias="type")
    title: str | None = None


class BaseThing(BaseModel):
    """Attributes shared by every Thing variant."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    address: str
    version: str = ""
    thing_type: int = Field(alias="type")
    registry: str | None = None
    tradable: bool = False
    spawner: bool = False
    cert: Base64Bytes = b""
    proof: str | None = None
    hash: Base64Bytes | None = None
    updated: datetime | None = None

    @field_validator("registry", mode="before")
    @classmethod
    def _registry_as_text(cls, value: Any) -> Any:
        # Older producers emit a numeric registry id
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_serializer("updated")
    def _updated_as_timestamp(self, value: datetime | None) -> int | None:
        if value is None:
            return None
        return int(value.timestamp())

    @property
    def kind(self) -> ThingType:
        return ThingType(self.thing_type)

    @property
    def is_container(self) -> bool:
        return self.thing_type == ThingType.CONTAINER

    def render(self) -> str:
        """Human-readable rendering of the payload."""
        raise NotImplementedError


class ContainerThing(BaseThing):
    """Thing whose payload is an ordered list of Features."""

    thing_type: Literal[0] = Field(default=0, alias="type")
    features: tuple[Feature, ...] = ()

    def sorted_features(self) -> list[Feature]:
        """Features in declared ``order`` (ties keep their encoded position)."""
        return sorted(self.features, key=lambda f: f.order)

    def render(self) -> str:
        count = len(self.features)
        return f"<{count} feature{'' if count == 1 else 's'}>"


class StringThing(BaseThing):
    thing_type: Literal[1] = Field(default=1, alias="type")
    data: str

    def render(self) -> str:
        return self.data


class NumberThing(BaseThing):
    thing_type: Literal[2] = Field(default=2, alias="type")
    data: float

    def render(self) -> str:
        return f"{self.data:f}"


class ImageThing(BaseThing):
    """Thing holding raw image bytes."""

    thing_type: Literal[3] = Field(default=3, alias="type")
    data: Base64Bytes

    def render(self) -> str:
        return self.data.decode("utf-8", errors="replace")


Thing = Union[ContainerThing, StringThing, NumberThing, ImageThing]

THING_MODELS: dict[ThingType, type[BaseThing]] = {
    ThingType.CONTAINER: ContainerThing,
    ThingType.STRING: StringThing,
    ThingType.NUMBER: NumberThing,
    ThingType.IMAGE: ImageThing,
}


__all__ = [
    "ThingType",
    "Feature",
    "BaseThing",
    "ContainerThing",
    "StringThing",
    "NumberThing",
    "ImageThing",
    "Thing",
    "THING_MODELS",
]
