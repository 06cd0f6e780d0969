"""
Shared fixtures: a controllable clock, a store in a temp directory, and an
API client wired to both.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from kds.core.config import Settings
from kds.main import create_app
from kds.services.order_store import OrderStore

UTC = timezone.utc
NOON = datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)
TODAY = "2026-03-14"


def to_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


class FakeClock:
    """Callable clock returning epoch milliseconds, advanced by hand."""

    def __init__(self, start: datetime = NOON):
        self.now = to_ms(start)

    def __call__(self) -> int:
        return self.now

    def set(self, dt: datetime) -> None:
        self.now = to_ms(dt)

    def advance(self, minutes: float = 0, seconds: float = 0) -> None:
        self.now += int(timedelta(minutes=minutes, seconds=seconds).total_seconds() * 1000)


TACO = {"name": "Taco al Pastor", "qty": 2, "price": 10.0}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def orders_path(tmp_path):
    return tmp_path / "data" / "orders.json"


@pytest.fixture
def store(orders_path, clock) -> OrderStore:
    s = OrderStore(orders_path, lock_timeout=5, clock=clock, tz=UTC)
    s.load()
    return s


@pytest.fixture
def settings(orders_path) -> Settings:
    return Settings(
        data_directory=str(orders_path.parent),
        orders_filename=orders_path.name,
        tax_rate=0.09,
        business_timezone="UTC",
        restaurant_name="Sabor a Mexico",
    )


@pytest.fixture
def client(settings, store):
    with TestClient(create_app(settings=settings, store=store)) as c:
        yield c
