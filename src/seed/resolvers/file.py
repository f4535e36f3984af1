"""
File resolver: a directory of JSON records keyed by address.

The Thing at address ``leaf1`` lives in ``<directory>/leaf1.json``.

Usage:
    from seed.resolvers.file import FileResolver, read_thing_file

    origin = read_thing_file("records/seed.json")
    resolver = FileResolver("records")
    resolver.resolve("leaf1", ThingType.STRING)
"""

from __future__ import annotations

from pathlib import Path

from seed.core.errors import RecordNotFoundError, ResolutionError
from seed.resolvers.protocol import BaseResolver, ResolverType
from seed.things.codec import decode_thing, encode_thing
from seed.things.models import BaseThing, Thing


class FileResolver(BaseResolver):
    """Resolve addresses against ``<directory>/<address><suffix>`` files."""

    def __init__(
        self,
        directory: str | Path,
        *,
        name: str | None = None,
        suffix: str = ".json",
        encoding: str = "utf-8",
        strict: bool = False,
    ):
        self._directory = Path(directory)
        super().__init__(
            name=name or self._directory.name or "records",
            resolver_type=ResolverType.FILE,
            strict=strict,
        )
        self._suffix = suffix
        self._encoding = encoding

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, address: str) -> Path:
        """File path holding the record at ``address``."""
        return self._directory / f"{address}{self._suffix}"

    def _resolve(self, address: str, thing_type: int) -> Thing:
        path = self.path_for(address)

        # Addresses are keys, not paths
        root = self._directory.resolve()
        if not address or root not in path.resolve().parents:
            raise RecordNotFoundError(
                f"Address does not name a record in {self._directory}: {address!r}",
                address=address,
                thing_type=int(thing_type),
            ).with_context(path=str(path))

        if not path.is_file():
            raise RecordNotFoundError(
                f"Record file not found: {path}",
                address=address,
                thing_type=int(thing_type),
            ).with_context(path=str(path))

        try:
            raw = path.read_bytes()
        except OSError as e:
            raise ResolutionError(
                f"Unable to read record file {path}: {e}",
                address=address,
                thing_type=int(thing_type),
                cause=e,
            ).with_context(path=str(path)) from e

        return self._decode(raw, address, thing_type)


def read_thing_file(path: str | Path, thing_type: int | None = None, *, strict: bool = False) -> Thing:
    """
    Load a single Thing from a JSON file (typically a Seed origin).

    Raises:
        OSError: file cannot be read
        DecodeError: content is not a valid Thing
    """
    return decode_thing(Path(path).read_bytes(), thing_type, strict=strict)


def write_thing_file(directory: str | Path, thing: BaseThing, *, suffix: str = ".json") -> Path:
    """Store ``thing`` under its address so a FileResolver on ``directory`` finds it."""
    path = Path(directory) / f"{thing.address}{suffix}"
    path.write_bytes(encode_thing(thing))
    return path


__all__ = ["FileResolver", "read_thing_file", "write_thing_file"]
