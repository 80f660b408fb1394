"""Pytest fixtures for order lifecycle tests."""

from datetime import datetime, timedelta, timezone

import pytest

from core.clock import FixedClock
from use_cases.orders.domain.models import Order, OrderItem, OrderStatus, Profile
from use_cases.orders.engine import OrderLifecycleEngine
from use_cases.orders.memory_store import InMemoryOrderStore, InMemoryProfileStore

T0 = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def t0():
    """Creation time used by the order factories."""
    return T0


@pytest.fixture
def make_order():
    """Factory for a returnable, pending, single-item order created at T0."""

    def _make(**overrides) -> Order:
        fields = {
            "id": "ORD-1",
            "order_no": "SO-1001",
            "created_at": T0,
            "status": OrderStatus.PENDING.value,
            "items": [OrderItem(product_name="Anarkali Set", size="M")],
            "user_id": "CUST-1",
            "grand_total": 10000.0,
            "net_total": 10000.0,
            "order_type": "Standard",
            "delivery_country": "India",
        }
        fields.update(overrides)
        return Order(**fields)

    return _make


@pytest.fixture
def make_delivered_order(make_order):
    """Factory for an order delivered 10 hours after creation."""

    def _make(**overrides) -> Order:
        fields = {
            "status": OrderStatus.DELIVERED.value,
            "delivered_at": T0 + timedelta(hours=10),
        }
        fields.update(overrides)
        return make_order(**fields)

    return _make


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def order_store():
    return InMemoryOrderStore()


@pytest.fixture
def profile_store():
    return InMemoryProfileStore([Profile(id="CUST-1", store_credit=0.0)])


@pytest.fixture
def events():
    """Collected domain events."""
    return []


@pytest.fixture
def engine(order_store, profile_store, clock, events):
    return OrderLifecycleEngine(
        orders=order_store,
        profiles=profile_store,
        clock=clock,
        event_sink=events.append,
    )
