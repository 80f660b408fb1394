"""Tests for alteration orders."""

from datetime import timedelta

import pytest

from core.errors import PermissionDeniedError, StateError, ValidationError
from use_cases.orders.domain.models import OrderItem, OrderStatus
from use_cases.orders.domain.services import AlterationRequest


@pytest.fixture
def delivered(order_store, clock, make_delivered_order, t0):
    order_store.create(make_delivered_order(
        items=[
            OrderItem(product_name="Lehenga", size="S", measurements={"waist": 28}),
            OrderItem(product_name="Dupatta"),
        ],
        delivery_address="12 MG Road",
        delivery_city="Bengaluru",
        delivery_state="Karnataka",
        delivery_pincode="560001",
        delivery_name="Asha Rao",
    ))
    clock.set(t0 + timedelta(days=5))


def _store_pickup(**overrides):
    fields = {
        "alteration_type": "fitting",
        "alteration_location": "Store",
        "delivery_type": "Store Pickup",
        "measurements": {"waist": 29},
        "notes": "Loosen the waist",
    }
    fields.update(overrides)
    return AlterationRequest(**fields)


@pytest.mark.usefixtures("delivered")
class TestAlterationOrders:

    def test_first_and_second_numbering(self, engine):
        first = engine.apply_alteration("ORD-1", 0, _store_pickup())
        second = engine.apply_alteration("ORD-1", 0, _store_pickup(alteration_type="length"))

        assert first.order_no == "SO-1001-A"
        assert second.order_no == "SO-1001-A2"
        assert (first.alteration_number, second.alteration_number) == (1, 2)

    def test_at_most_two_per_item(self, engine):
        engine.apply_alteration("ORD-1", 0, _store_pickup())
        engine.apply_alteration("ORD-1", 0, _store_pickup())

        with pytest.raises(PermissionDeniedError):
            engine.apply_alteration("ORD-1", 0, _store_pickup())

        # Limit is per item
        other = engine.apply_alteration("ORD-1", 1, _store_pickup())
        assert other.order_no == "SO-1001-A"
        assert len(engine.alterations_for("ORD-1")) == 3
        assert len(engine.alterations_for("ORD-1", 0)) == 2

    def test_alteration_order_fields(self, engine, t0):
        order = engine.apply_alteration("ORD-1", 0, _store_pickup(attachments=["waist.jpg"]))

        assert order.status == OrderStatus.PENDING.value
        assert order.is_alteration is True
        assert order.parent_order_id == "ORD-1"
        assert order.parent_item_index == 0
        assert order.grand_total == 0.0 and order.net_total == 0.0
        assert order.created_at == t0 + timedelta(days=5)
        assert order.items[0].product_name == "Lehenga"
        assert order.items[0].measurements == {"waist": 29}
        assert order.alteration_notes == "Loosen the waist"
        assert order.extra["alteration_attachments"] == ["waist.jpg"]
        assert order.extra["total_quantity"] == 1

    def test_store_pickup_blanks_address(self, engine):
        order = engine.apply_alteration("ORD-1", 0, _store_pickup())

        assert order.delivery_country == "India"
        assert order.delivery_address == ""
        assert order.delivery_city == ""
        assert order.mode_of_delivery == "Store Pickup"
        assert order.delivery_name == "Asha Rao"

    def test_home_delivery_keeps_parent_address(self, engine):
        order = engine.apply_alteration("ORD-1", 0, _store_pickup(delivery_type="Home Delivery"))

        assert order.delivery_address == "12 MG Road"
        assert order.delivery_city == "Bengaluru"
        assert order.delivery_pincode == "560001"

    def test_invalid_request(self, engine):
        with pytest.raises(ValidationError) as exc_info:
            engine.apply_alteration("ORD-1", 0, _store_pickup(alteration_type="dye", alteration_location="Home"))

        assert {e.field for e in exc_info.value.errors} == {"alteration_type", "alteration_location"}
        assert engine.alterations_for("ORD-1") == []

    def test_unknown_item(self, engine):
        with pytest.raises(PermissionDeniedError):
            engine.apply_alteration("ORD-1", 5, _store_pickup())

    def test_alteration_of_alteration(self, engine):
        alteration = engine.apply_alteration("ORD-1", 0, _store_pickup())
        engine.apply_mark_delivered(alteration.id)

        with pytest.raises(PermissionDeniedError):
            engine.apply_alteration(alteration.id, 0, _store_pickup())

    def test_can_request_alteration(self, engine, order_store):
        order = order_store.fetch("ORD-1")

        assert engine.can_request_alteration(order, 0) is True
        engine.apply_alteration("ORD-1", 0, _store_pickup())
        engine.apply_alteration("ORD-1", 0, _store_pickup())
        assert engine.can_request_alteration(order, 0) is False


class TestAlterationEligibility:

    def test_pending_order(self, engine, order_store, make_order):
        order_store.create(make_order())

        with pytest.raises(PermissionDeniedError):
            engine.apply_alteration("ORD-1", 0, _store_pickup())

    def test_returned_order(self, engine, order_store, make_delivered_order):
        order_store.create(make_delivered_order(status=OrderStatus.RETURN_STORE_CREDIT.value))

        with pytest.raises(StateError):
            engine.apply_alteration("ORD-1", 0, _store_pickup())
