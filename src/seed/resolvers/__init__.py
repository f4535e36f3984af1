"""
Resolvers map an address to a Thing.

All implementations satisfy the same contract, so the tree builder never
knows which transport it is using.
"""

from seed.resolvers.caching import CachingResolver
from seed.resolvers.factory import create_resolver
from seed.resolvers.file import FileResolver, read_thing_file, write_thing_file
from seed.resolvers.http import HttpResolver
from seed.resolvers.memory import InMemoryResolver
from seed.resolvers.protocol import BaseResolver, Resolver, ResolverType

__all__ = [
    # Types
    "ResolverType",
    # Protocol
    "Resolver",
    # Base class
    "BaseResolver",
    # Implementations
    "FileResolver",
    "InMemoryResolver",
    "HttpResolver",
    "CachingResolver",
    # Helpers
    "create_resolver",
    "read_thing_file",
    "write_thing_file",
]
