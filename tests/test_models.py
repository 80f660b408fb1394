"""Tests for order records and date helpers."""

from datetime import datetime, timezone

import pytest

from core.domain import add_months, hours_between, parse_datetime
from use_cases.orders.domain.models import (
    NamedColor,
    Order,
    OrderItem,
    Profile,
    RawColor,
    parse_color,
)


class TestColors:

    def test_object_form(self):
        assert parse_color({"name": "Emerald", "hex": "#50C878"}) == NamedColor("Emerald", "#50C878")

    def test_string_form(self):
        color = parse_color("#50C878")

        assert color == RawColor("#50C878")
        assert color.hex == "#50C878"
        assert RawColor("Emerald").hex == ""

    def test_empty(self):
        assert parse_color(None) is None
        assert parse_color("") is None

    def test_unsupported(self):
        with pytest.raises(TypeError):
            parse_color(42)

    def test_item_keeps_stored_shape(self):
        item = OrderItem.from_dict({
            "color": {"name": "Ivory", "hex": "#FFFFF0"},
            "top_color": "Maroon",
            "bottom_color": None,
        })

        data = item.to_dict()

        assert data["color"] == {"name": "Ivory", "hex": "#FFFFF0"}
        assert data["top_color"] == "Maroon"
        assert data["bottom_color"] is None


class TestOrderDocument:

    def test_unknown_fields_survive(self):
        doc = {
            "id": "ORD-9",
            "order_no": "SO-9",
            "created_at": "2026-05-01T09:00:00Z",
            "status": "pending",
            "items": [{"product_name": "Kurta", "sku": "KRT-9"}],
            "salesperson": "Store 4",
            "_etag": "\"0x1\"",
        }

        order = Order.from_dict(doc)
        data = order.to_dict()

        assert order.extra["salesperson"] == "Store 4"
        assert data["salesperson"] == "Store 4"
        assert data["items"][0]["sku"] == "KRT-9"
        assert data["created_at"] == "2026-05-01T09:00:00+00:00"

    def test_version_not_written(self):
        order = Order.from_dict({"id": "ORD-9", "order_no": "SO-9", "created_at": "2026-05-01T09:00:00", "version": "3"})

        assert order.version == "3"
        assert "version" not in order.to_dict()

    def test_missing_created_at(self):
        with pytest.raises(ValueError):
            Order.from_dict({"id": "ORD-9", "order_no": "SO-9"})

    def test_unparseable_created_at(self):
        with pytest.raises(ValueError):
            Order.from_dict({"id": "ORD-9", "order_no": "SO-9", "created_at": "yesterday"})

    def test_numeric_defaults(self):
        order = Order.from_dict({
            "id": "ORD-9",
            "order_no": "SO-9",
            "created_at": "2026-05-01T09:00:00",
            "discount_percent": None,
            "net_total": "1200",
        })

        assert order.discount_percent == 0.0
        assert order.grand_total is None
        assert order.order_value == 1200.0

    def test_first_item_of_empty_order(self):
        order = Order(id="ORD-9", order_no="SO-9", created_at=datetime(2026, 5, 1, tzinfo=timezone.utc))

        assert order.first_item.extras == []

    def test_profile_round_trip(self):
        profile = Profile.from_dict({"id": "CUST-1", "store_credit": "250.5", "tier": "gold"})

        assert profile.store_credit == 250.5
        assert profile.to_dict()["tier"] == "gold"


class TestDateHelpers:

    def test_parse_z_suffix(self):
        assert parse_datetime("2026-05-01T09:00:00Z") == datetime(2026, 5, 1, 9, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_datetime("2026-05-01T09:00:00").tzinfo == timezone.utc

    def test_garbage_is_none(self):
        assert parse_datetime("not a date") is None

    def test_hours_between_mixed_awareness(self):
        start = datetime(2026, 5, 1, 9)
        end = datetime(2026, 5, 2, 9, tzinfo=timezone.utc)

        assert hours_between(start, end) == 24

    def test_add_months_clamps_day(self):
        assert add_months(datetime(2024, 2, 29), 12) == datetime(2025, 2, 28)
        assert add_months(datetime(2026, 1, 31), 1) == datetime(2026, 2, 28)

    def test_add_months_crosses_year(self):
        assert add_months(datetime(2026, 11, 15), 3) == datetime(2027, 2, 15)
