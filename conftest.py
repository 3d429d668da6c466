"""Shared fixtures for the Stockroom test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from stockroom.shared.core import service_registry
from stockroom.shared.infrastructure.persistence import MemorySlotStorage, StatePersistence
from stockroom.state import Category, Item, Role, User
from stockroom.state.store import Store

START = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable replacement for ``utcnow``."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemorySlotStorage()


@pytest.fixture
def persistence(storage):
    return StatePersistence(storage)


@pytest.fixture
def store(persistence, clock):
    store = Store(persistence, clock=clock)
    yield store
    store.close()


@pytest.fixture(autouse=True)
def _reset_globals():
    yield
    Store.reset()
    service_registry.run_cleanup()


def make_item(item_id="i1", **overrides) -> Item:
    data = dict(
        id=item_id,
        name="Hammer",
        description="Claw hammer",
        quantity=5,
        unit="pcs",
        category_id="default",
        waybill_number="WB-100",
        tags=("tools",),
        created_at=START,
        updated_at=START,
    )
    data.update(overrides)
    return Item(**data)


def make_category(category_id="tools", **overrides) -> Category:
    data = dict(id=category_id, name="Tools", description="Hand tools", created_at=START)
    data.update(overrides)
    return Category(**data)


def make_user(role=Role.ADMIN, user_id="admin-001") -> User:
    return User(id=user_id, email=f"{user_id}@wh5construction.com", name="Test User", role=role, created_at=START)


@pytest.fixture
def admin():
    return make_user()


@pytest.fixture
def guest():
    return make_user(Role.GUEST, "guest-1")
