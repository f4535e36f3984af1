"""
Depth-first traversal helpers for Branch trees.

Every helper visits a node before its children and children in the order the
tree holds them. Nothing is reordered or filtered.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from seed.things.models import Thing
    from seed.tree.branch import Branch, ResolutionFailure


def walk(branch: Branch) -> Iterator[tuple[int, Branch]]:
    """Yield ``(level, branch)`` pairs in pre-order; ``branch`` is level 0."""
    stack: list[tuple[int, Branch]] = [(0, branch)]
    while stack:
        level, node = stack.pop()
        yield level, node
        stack.extend((level + 1, child) for child in reversed(node.children))


def iter_branches(branch: Branch) -> Iterator[Branch]:
    """Yield every branch in pre-order."""
    for _, node in walk(branch):
        yield node


def flatten(branch: Branch) -> list[Thing]:
    """All Things in the tree, pre-order."""
    return [node.thing for node in iter_branches(branch)]


def addresses(branch: Branch) -> list[str]:
    return [node.thing.address for node in iter_branches(branch)]


def count_branches(branch: Branch) -> int:
    return sum(1 for _ in iter_branches(branch))


def collect_failures(branch: Branch) -> list[ResolutionFailure]:
    """Every dropped Feature in the tree, parents before children."""
    failures: list[ResolutionFailure] = []
    for node in iter_branches(branch):
        failures.extend(node.failures)
    return failures


def format_tree(branch: Branch, indent: str = "  ") -> str:
    """
    Render the tree one node per line.

    A node's failures are listed right under it, before its children.

    Example:
        root [container] <2 features>
          ! missing: No record at address 'missing'
          leaf1 [string] hello
    """
    lines = []
    for level, node in walk(branch):
        thing = node.thing
        lines.append(f"{indent * level}{thing.address} [{thing.kind.name.lower()}] {thing.render()}")
        for failure in node.failures:
            lines.append(f"{indent * (level + 1)}! {failure.address}: {failure.error.message}")
    return "\n".join(lines)


def print_tree(branch: Branch, file: TextIO | None = None) -> None:
    print(format_tree(branch), file=file or sys.stdout)


__all__ = [
    "walk",
    "iter_branches",
    "flatten",
    "addresses",
    "count_branches",
    "collect_failures",
    "format_tree",
    "print_tree",
]
