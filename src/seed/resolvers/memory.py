"""In-process record store resolver."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from seed.core.errors import RecordNotFoundError, ResolutionError
from seed.resolvers.protocol import BaseResolver, ResolverType
from seed.things.models import BaseThing, Thing

RawRecord = bytes | str | Mapping[str, Any]


class InMemoryResolver(BaseResolver):
    """
    Resolve addresses from a dict held in memory.

    Values may be decoded Things or raw encoded records. Raw records are
    decoded on every resolve, so malformed content fails the same way it
    would coming from disk.

    Example:
        resolver = InMemoryResolver({
            "leaf1": {"address": "leaf1", "type": 1, "data": "hello"},
        })
    """

    def __init__(
        self,
        records: Mapping[str, BaseThing | RawRecord] | None = None,
        *,
        name: str = "memory",
        strict: bool = False,
    ):
        super().__init__(name=name, resolver_type=ResolverType.MEMORY, strict=strict)
        self._records: dict[str, BaseThing | RawRecord] = dict(records or {})
        self.calls: list[str] = []

    @classmethod
    def from_things(cls, *things: BaseThing, **kwargs: Any) -> InMemoryResolver:
        return cls({thing.address: thing for thing in things}, **kwargs)

    def add(self, thing: BaseThing) -> None:
        self._records[thing.address] = thing

    def add_raw(self, address: str, raw: RawRecord) -> None:
        self._records[address] = raw

    def __contains__(self, address: object) -> bool:
        return address in self._records

    def __len__(self) -> int:
        return len(self._records)

    def _resolve(self, address: str, thing_type: int) -> Thing:
        self.calls.append(address)
        try:
            record = self._records[address]
        except KeyError:
            raise RecordNotFoundError(
                f"No record at address {address!r}",
                address=address,
                thing_type=int(thing_type),
            ) from None

        if isinstance(record, BaseThing):
            if record.thing_type != thing_type:
                raise ResolutionError(
                    f"Record at {address!r} is type {record.thing_type}, expected {int(thing_type)}",
                    address=address,
                    thing_type=int(thing_type),
                )
            return record
        return self._decode(record, address, thing_type)


__all__ = ["InMemoryResolver"]
