"""Seed/Branch tree building and traversal."""

from seed.tree.branch import (
    DEFAULT_MAX_DEPTH,
    Branch,
    ResolutionFailure,
    Seed,
    TreeBuilder,
    build_branch,
    new_seed,
)
from seed.tree.traversal import (
    addresses,
    collect_failures,
    count_branches,
    flatten,
    format_tree,
    iter_branches,
    print_tree,
    walk,
)

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "Branch",
    "ResolutionFailure",
    "Seed",
    "TreeBuilder",
    "build_branch",
    "new_seed",
    "walk",
    "iter_branches",
    "flatten",
    "addresses",
    "count_branches",
    "collect_failures",
    "format_tree",
    "print_tree",
]
