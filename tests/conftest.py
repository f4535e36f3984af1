"""
Shared pytest fixtures and configuration for seed tests.

This module provides:
- Logging/settings cleanup fixtures for test isolation
- Thing builders for hand-made record graphs
- A temporary copy of the JSON record fixtures

Usage:
    Fixtures are auto-discovered by pytest:

    def test_something(records_dir, memory_resolver):
        ...
"""

import shutil
import sys
from pathlib import Path
from typing import Any, Generator

import pytest
import structlog

# Ensure seed package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from seed.core.logging import clear_context
from seed.core.settings import clear_settings_cache
from seed.resolvers import InMemoryResolver
from seed.things import ContainerThing, Feature, NumberThing, StringThing, ThingType

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "records"


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path) or "_integration" in item.name:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo configure_logging() and bound context after every test."""
    yield
    structlog.reset_defaults()
    clear_context()


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run every test without a cached SeedSettings or stray .env file."""
    monkeypatch.chdir(Path(__file__).parent)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Thing Builders
# =============================================================================


def make_container(address: str, *targets: Any) -> ContainerThing:
    """
    Build a container Thing.

    ``targets`` are addresses (container features, declared order = position)
    or ``(order, address, type)`` tuples.
    """
    features = []
    for position, target in enumerate(targets):
        if isinstance(target, tuple):
            order, target_address, thing_type = target
        else:
            order, target_address, thing_type = position, target, ThingType.CONTAINER
        features.append(Feature(order=order, address=target_address, thing_type=int(thing_type)))
    return ContainerThing(address=address, version="1", features=features)


def make_string(address: str, data: str) -> StringThing:
    return StringThing(address=address, version="1", data=data)


def make_number(address: str, data: float) -> NumberThing:
    return NumberThing(address=address, version="1", data=data)


@pytest.fixture
def container():
    return make_container


@pytest.fixture
def string_thing():
    return make_string


@pytest.fixture
def number_thing():
    return make_number


# =============================================================================
# Resolver Fixtures
# =============================================================================


@pytest.fixture
def records_dir(tmp_path: Path) -> Path:
    """Writable copy of tests/fixtures/records."""
    target = tmp_path / "records"
    shutil.copytree(FIXTURES_DIR, target)
    return target


@pytest.fixture
def memory_resolver() -> InMemoryResolver:
    """
    Small record graph:

        root ─┬─ leaf1 (string "hello")
              ├─ leaf2 (number 2.5)
              └─ box ── leaf3 (string "nested")
    """
    return InMemoryResolver.from_things(
        make_container(
            "root",
            (0, "leaf1", ThingType.STRING),
            (1, "leaf2", ThingType.NUMBER),
            (2, "box", ThingType.CONTAINER),
        ),
        make_string("leaf1", "hello"),
        make_number("leaf2", 2.5),
        make_container("box", (0, "leaf3", ThingType.STRING)),
        make_string("leaf3", "nested"),
    )
