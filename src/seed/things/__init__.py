"""Thing records: the four variants, Features, and the JSON codec."""

from seed.things.codec import REQUIRED_FIELDS, decode_thing, encode_thing
from seed.things.models import (
    THING_MODELS,
    BaseThing,
    ContainerThing,
    Feature,
    ImageThing,
    NumberThing,
    StringThing,
    Thing,
    ThingType,
)

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
    "REQUIRED_FIELDS",
    "decode_thing",
    "encode_thing",
]
