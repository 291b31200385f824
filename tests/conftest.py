from datetime import UTC, datetime
from itertools import count

import pytest

from atelier.adapters.clock import FixedClock
from atelier.adapters.memory_store import InMemoryStore
from atelier.context import ServiceContext
from atelier.rules.models import ProjectRules, Rules, StoreRules

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def clock():
    return FixedClock(FIXED_NOW)


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def id_factory():
    ids = count(1)
    return lambda: f"id-{next(ids)}"


@pytest.fixture
def test_rules(tmp_path):
    return Rules(
        project=ProjectRules(slug="atelier-test", rules_version="1"),
        store=StoreRules(backend="local", data_dir=str(tmp_path / "store")),
    )


@pytest.fixture
def test_ctx(memory_store, clock, test_rules, id_factory):
    """
    Creates a full ServiceContext over an in-memory store and a fixed clock.
    """
    return ServiceContext(memory_store, clock, test_rules, id_factory=id_factory)
