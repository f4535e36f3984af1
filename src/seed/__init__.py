"""
Seed - self-describing Thing records and recursive tree resolution.

    seed.core       errors, logging, settings, cache
    seed.things     Thing variants, Features, JSON codec
    seed.resolvers  address → Thing (file, memory, http, caching)
    seed.tree       Seed/Branch builder and traversal helpers
"""

__version__ = "0.1.0"

from seed.core.errors import (
    ConfigError,
    CycleDetectedError,
    DecodeError,
    RecordNotFoundError,
    RecursionLimitError,
    ResolutionError,
    SeedError,
)
from seed.resolvers import (
    CachingResolver,
    FileResolver,
    HttpResolver,
    InMemoryResolver,
    Resolver,
    create_resolver,
    read_thing_file,
)
from seed.things import (
    ContainerThing,
    Feature,
    ImageThing,
    NumberThing,
    StringThing,
    Thing,
    ThingType,
    decode_thing,
    encode_thing,
)
from seed.tree import (
    Branch,
    Seed,
    TreeBuilder,
    build_branch,
    collect_failures,
    flatten,
    format_tree,
    new_seed,
    print_tree,
)

__all__ = [
    "__version__",
    # errors
    "SeedError",
    "DecodeError",
    "ResolutionError",
    "RecordNotFoundError",
    "RecursionLimitError",
    "CycleDetectedError",
    "ConfigError",
    # things
    "ThingType",
    "Feature",
    "ContainerThing",
    "StringThing",
    "NumberThing",
    "ImageThing",
    "Thing",
    "decode_thing",
    "encode_thing",
    # resolvers
    "Resolver",
    "FileResolver",
    "InMemoryResolver",
    "HttpResolver",
    "CachingResolver",
    "create_resolver",
    "read_thing_file",
    # tree
    "Branch",
    "Seed",
    "TreeBuilder",
    "build_branch",
    "new_seed",
    "collect_failures",
    "flatten",
    "format_tree",
    "print_tree",
]
