"""
Tests for seed.tree.branch — TreeBuilder, Branch and Seed.

Covers:
- Leaf termination
- Declared-order children
- Partial failure tolerance and failure bookkeeping
- Root identity
- Depth limit, cycle detection, prune policy
- Configuration misuse
"""

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from seed.core.errors import (
    ConfigError,
    CycleDetectedError,
    RecordNotFoundError,
    RecursionLimitError,
    ResolutionError,
)
from seed.core.settings import SeedSettings, max_supported_depth
from seed.resolvers.memory import InMemoryResolver
from seed.resolvers.protocol import BaseResolver, ResolverType
from seed.things.codec import decode_thing
from seed.things.models import ThingType
from seed.tree.branch import DEFAULT_MAX_DEPTH, Branch, Seed, TreeBuilder, build_branch, new_seed

S = ThingType.STRING
N = ThingType.NUMBER
C = ThingType.CONTAINER


class _AlwaysString(BaseResolver):
    """Ignores the expected type and always answers with a StringThing."""

    def __init__(self, string_thing):
        super().__init__(name="always-string", resolver_type=ResolverType.MEMORY)
        self._make = string_thing

    def _resolve(self, address, thing_type):
        return self._make(address, "text")


class _Broken:
    """Protocol-only resolver that violates the contract."""

    name = "broken"
    resolver_type = ResolverType.MEMORY

    def resolve(self, address, thing_type):
        raise RuntimeError("backend exploded")


# ---------------------------------------------------------------------------
# Leaf termination
# ---------------------------------------------------------------------------


class TestLeafTermination:
    @pytest.mark.parametrize("kind", ["string", "number"])
    def test_leaf_has_no_children(self, kind, string_thing, number_thing, memory_resolver):
        thing = string_thing("s", "x") if kind == "string" else number_thing("n", 1.0)
        branch = build_branch(thing, memory_resolver)

        assert branch.thing is thing
        assert branch.children == []
        assert branch.failures == []
        assert branch.is_leaf
        assert memory_resolver.calls == []

    def test_empty_container(self, container, memory_resolver):
        branch = build_branch(container("empty"), memory_resolver)
        assert branch.children == []
        assert branch.failure_count == 0


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_children_follow_declared_order(self, container, string_thing):
        root = container("root", (2, "c", S), (0, "a", S), (1, "b", S))
        resolver = InMemoryResolver.from_things(
            string_thing("a", "0"), string_thing("b", "1"), string_thing("c", "2")
        )

        branch = build_branch(root, resolver)

        assert [child.thing.address for child in branch.children] == ["a", "b", "c"]
        assert resolver.calls == ["a", "b", "c"]

    def test_depth_first_resolution(self, memory_resolver):
        """Each feature's subtree is built before its next sibling resolves."""
        root = memory_resolver.resolve("root", C)
        memory_resolver.calls.clear()

        build_branch(root, memory_resolver)

        assert memory_resolver.calls == ["leaf1", "leaf2", "box", "leaf3"]

    def test_nested_structure(self, memory_resolver):
        root = memory_resolver.resolve("root", C)
        branch = build_branch(root, memory_resolver)

        leaf1, leaf2, box = branch.children
        assert leaf1.thing.render() == "hello"
        assert leaf2.thing.render() == "2.500000"
        assert [child.thing.render() for child in box] == ["nested"]
        assert [leaf1.depth, box.depth, box.children[0].depth] == [1, 1, 2]


# ---------------------------------------------------------------------------
# Partial failure
# ---------------------------------------------------------------------------


class TestPartialFailure:
    def test_one_failed_feature_is_dropped(self, container, string_thing):
        root = container("root", (0, "a", S), (1, "gone", S), (2, "c", S))
        resolver = InMemoryResolver.from_things(string_thing("a", "A"), string_thing("c", "C"))

        branch = build_branch(root, resolver)

        assert [child.thing.address for child in branch.children] == ["a", "c"]
        assert branch.failure_count == 1
        failure = branch.failures[0]
        assert failure.address == "gone"
        assert failure.depth == 1
        assert isinstance(failure.error, RecordNotFoundError)

    def test_all_features_fail(self, container):
        branch = build_branch(container("root", (0, "x", S), (1, "y", N)), InMemoryResolver())
        assert branch.children == []
        assert [f.address for f in branch.failures] == ["x", "y"]
        assert not branch.is_leaf
        assert not branch.has_children

    def test_nested_failures_stay_on_their_parent(self, container, string_thing):
        resolver = InMemoryResolver.from_things(
            container("box", (0, "ok", S), (1, "missing", S)),
            string_thing("ok", "fine"),
        )
        branch = build_branch(container("root", (0, "box", C)), resolver)

        assert branch.failures == []
        assert [f.address for f in branch.children[0].failures] == ["missing"]
        assert branch.children[0].failures[0].depth == 2

    def test_type_mismatch_is_a_failure(self, container, string_thing):
        root = container("root", (0, "a", N), (1, "b", S))
        branch = build_branch(root, _AlwaysString(string_thing))

        assert [child.thing.address for child in branch.children] == ["b"]
        assert isinstance(branch.failures[0].error, ResolutionError)
        assert "expects 2" in branch.failures[0].error.message

    def test_contract_violation_is_recorded(self, container):
        branch = build_branch(container("root", (0, "a", S)), _Broken())

        error = branch.failures[0].error
        assert isinstance(error, ResolutionError)
        assert isinstance(error.cause, RuntimeError)
        assert error.context.resolver == "broken"

    def test_failures_are_logged(self, container):
        with capture_logs() as logs:
            build_branch(container("root", (0, "gone", S)), InMemoryResolver())
        failed = [entry for entry in logs if entry["event"] == "branch.feature_failed"]
        assert failed[0]["parent"] == "root"
        assert failed[0]["address"] == "gone"
        assert failed[0]["error_type"] == "RecordNotFoundError"


# ---------------------------------------------------------------------------
# Seed
# ---------------------------------------------------------------------------


class TestSeed:
    def test_root_and_hello_leaf(self):
        origin = decode_thing(
            b'{"address":"root","type":0,"features":[{"order":0,"address":"leaf1","type":1}]}'
        )
        resolver = InMemoryResolver({"leaf1": b'{"address":"leaf1","type":1,"data":"hello"}'})

        seed = new_seed(origin, resolver)

        assert len(seed.tree.children) == 1
        assert seed.tree.children[0].thing.render() == "hello"
        assert seed.tree.failures == []

    def test_root_identity(self, memory_resolver):
        origin = memory_resolver.resolve("root", C)
        memory_resolver.calls.clear()

        seed = new_seed(origin, memory_resolver)

        assert isinstance(seed, Seed)
        assert seed.origin is origin
        assert seed.tree.thing is origin
        assert "root" not in memory_resolver.calls

    def test_leaf_origin(self, string_thing, memory_resolver):
        origin = string_thing("solo", "alone")
        seed = new_seed(origin, memory_resolver)
        assert seed.tree.thing is origin
        assert seed.tree.children == []

    def test_none_origin_is_config_error(self, memory_resolver):
        with pytest.raises(ConfigError):
            new_seed(None, memory_resolver)

    def test_build_branch_rejects_non_thing(self, memory_resolver):
        with pytest.raises(ConfigError):
            build_branch({"address": "root"}, memory_resolver)

    def test_seed_built_log(self, memory_resolver):
        origin = memory_resolver.resolve("root", C)
        with capture_logs() as logs:
            new_seed(origin, memory_resolver)
        built = [entry for entry in logs if entry["event"] == "seed.built"][0]
        assert built["branches"] == 5
        assert built["failures"] == 0

    def test_rebuild_gives_fresh_tree(self, memory_resolver):
        origin = memory_resolver.resolve("root", C)
        first = new_seed(origin, memory_resolver)
        second = new_seed(origin, memory_resolver)
        assert first.tree is not second.tree
        assert first.tree.children[0] is not second.tree.children[0]
        assert first.tree == second.tree


# ---------------------------------------------------------------------------
# Depth limit and cycles
# ---------------------------------------------------------------------------


@pytest.fixture
def cycle_resolver(container):
    """a → b → a"""
    return InMemoryResolver.from_things(
        container("a", (0, "b", C)),
        container("b", (0, "a", C)),
    )


@pytest.fixture
def chain_resolver(container, string_thing):
    """c0 → c1 → c2 → c3 → end"""
    return InMemoryResolver.from_things(
        container("c0", (0, "c1", C)),
        container("c1", (0, "c2", C)),
        container("c2", (0, "c3", C)),
        container("c3", (0, "end", S)),
        string_thing("end", "done"),
    )


class TestDepthLimit:
    def test_cycle_terminates_with_recursion_limit(self, cycle_resolver):
        a = cycle_resolver.resolve("a", C)

        with pytest.raises(RecursionLimitError) as exc_info:
            build_branch(a, cycle_resolver, max_depth=5)

        error = exc_info.value
        assert not isinstance(error, CycleDetectedError)
        assert error.depth == 6
        assert error.limit == 5

    def test_default_limit_also_terminates(self, cycle_resolver):
        with pytest.raises(RecursionLimitError):
            build_branch(cycle_resolver.resolve("a", C), cycle_resolver)

    def test_chain_within_limit(self, chain_resolver):
        branch = build_branch(chain_resolver.resolve("c0", C), chain_resolver, max_depth=4)
        node = branch
        while node.children:
            node = node.children[0]
        assert node.thing.address == "end"
        assert node.depth == 4

    def test_chain_over_limit_raises(self, chain_resolver):
        with pytest.raises(RecursionLimitError) as exc_info:
            build_branch(chain_resolver.resolve("c0", C), chain_resolver, max_depth=3)
        assert exc_info.value.address == "end"

    def test_max_depth_zero_keeps_leaf_root(self, string_thing, memory_resolver):
        branch = build_branch(string_thing("s", "x"), memory_resolver, max_depth=0)
        assert branch.children == []

    def test_prune_policy_keeps_partial_tree(self, chain_resolver):
        branch = build_branch(
            chain_resolver.resolve("c0", C), chain_resolver, max_depth=2, limit_policy="prune"
        )

        c2 = branch.children[0].children[0]
        assert c2.thing.address == "c2"
        assert c2.children == []
        assert isinstance(c2.failures[0].error, RecursionLimitError)
        assert c2.failures[0].address == "c3"

    def test_prune_policy_cuts_cycle_where_it_closes(self, cycle_resolver):
        branch = build_branch(
            cycle_resolver.resolve("a", C), cycle_resolver, max_depth=3, limit_policy="prune"
        )

        (b,) = branch.children
        assert b.thing.address == "b"
        assert b.children == []
        error = b.failures[0].error
        assert isinstance(error, CycleDetectedError)
        assert error.path == ("a", "b", "a")

    @pytest.mark.parametrize("max_depth", [14, DEFAULT_MAX_DEPTH])
    def test_prune_policy_self_reference_stays_linear(self, container, max_depth):
        """A container listing itself twice must not fan out 2**max_depth times."""
        resolver = InMemoryResolver.from_things(container("a", "a", "a"))
        origin = resolver.resolve("a", C)
        resolver.calls.clear()

        branch = build_branch(origin, resolver, max_depth=max_depth, limit_policy="prune")

        assert resolver.calls == ["a", "a"]
        assert branch.children == []
        assert [type(f.error) for f in branch.failures] == [CycleDetectedError, CycleDetectedError]

    def test_detect_cycles_fails_fast(self, cycle_resolver):
        with pytest.raises(CycleDetectedError) as exc_info:
            build_branch(cycle_resolver.resolve("a", C), cycle_resolver, detect_cycles=True)
        error = exc_info.value
        assert error.path == ("a", "b", "a")
        assert error.depth == 2

    def test_detect_cycles_allows_shared_targets(self, container, string_thing):
        """The same address twice in sibling subtrees is not a cycle."""
        resolver = InMemoryResolver.from_things(
            container("left", (0, "shared", S)),
            container("right", (0, "shared", S)),
            string_thing("shared", "both"),
        )
        root = container("root", (0, "left", C), (1, "right", C))
        branch = build_branch(root, resolver, detect_cycles=True)
        assert [b.children[0].thing.address for b in branch.children] == ["shared", "shared"]
        assert branch.children[0].children[0] is not branch.children[1].children[0]

    def test_limit_logged_once(self, cycle_resolver):
        with capture_logs() as logs:
            with pytest.raises(RecursionLimitError):
                build_branch(cycle_resolver.resolve("a", C), cycle_resolver, max_depth=5)
        limits = [entry for entry in logs if entry["event"] == "branch.depth_limit"]
        assert len(limits) == 1
        assert limits[0]["depth"] == 6
        assert limits[0]["parent"] == "b"

    def test_cycle_at_deepest_supported_limit(self, cycle_resolver):
        ceiling = max_supported_depth()
        with pytest.raises(RecursionLimitError) as exc_info:
            build_branch(cycle_resolver.resolve("a", C), cycle_resolver, max_depth=ceiling)
        assert exc_info.value.depth == ceiling + 1

    def test_limit_beyond_interpreter_stack_rejected(self, cycle_resolver):
        with pytest.raises(ConfigError):
            build_branch(cycle_resolver.resolve("a", C), cycle_resolver, max_depth=5000)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestTreeBuilderConfig:
    @pytest.mark.parametrize(
        "options",
        [
            {"max_depth": -1},
            {"max_workers": 0},
            {"timeout": 0},
            {"limit_policy": "ignore"},
        ],
    )
    def test_invalid_options(self, memory_resolver, options):
        with pytest.raises(ConfigError):
            TreeBuilder(memory_resolver, **options)

    def test_resolver_required(self):
        with pytest.raises(ConfigError):
            TreeBuilder(None)

    def test_from_settings(self, memory_resolver):
        builder = TreeBuilder.from_settings(
            memory_resolver, SeedSettings(max_depth=3, limit_policy="prune")
        )
        assert builder.max_depth == 3
        assert builder.resolver is memory_resolver

    def test_settings_reject_depth_beyond_stack(self, monkeypatch):
        with pytest.raises(ValidationError):
            SeedSettings(max_depth=max_supported_depth() + 1)
        monkeypatch.setenv("SEED_MAX_DEPTH", "5000")
        with pytest.raises(ValidationError):
            SeedSettings()

    def test_from_environment(self, memory_resolver, monkeypatch):
        monkeypatch.setenv("SEED_MAX_DEPTH", "7")
        assert TreeBuilder.from_settings(memory_resolver).max_depth == 7

    def test_branch_iterates_children(self, memory_resolver):
        branch = build_branch(memory_resolver.resolve("root", C), memory_resolver)
        assert list(branch) == branch.children
        assert isinstance(branch.children[0], Branch)
        assert branch.address == "root"
