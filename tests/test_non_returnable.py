"""Tests for non-returnable determination."""

from datetime import timedelta

from use_cases.orders.domain.models import OrderItem
from use_cases.orders.domain.policies import (
    NonReturnablePolicy,
    can_exchange,
    can_refund,
    is_non_returnable,
)


class TestNonReturnable:

    def test_plain_domestic_order_is_returnable(self, make_order):
        assert is_non_returnable(make_order()) == (False, [])

    def test_custom_order_only(self, make_order):
        assert is_non_returnable(make_order(order_type="Custom")) == (True, ["Custom order"])

    def test_international_delivery(self, make_order):
        non_returnable, reasons = is_non_returnable(make_order(delivery_country="United Kingdom"))

        assert non_returnable is True
        assert reasons == ["International delivery"]

    def test_country_match_is_case_insensitive(self, make_order):
        assert is_non_returnable(make_order(delivery_country="INDIA")) == (False, [])

    def test_missing_country_counts_as_domestic(self, make_order):
        assert is_non_returnable(make_order(delivery_country=None)) == (False, [])

    def test_discount_by_percent_or_amount(self, make_order):
        assert is_non_returnable(make_order(discount_percent=5.0))[1] == ["Discounted order"]
        assert is_non_returnable(make_order(discount_amount=250.0))[1] == ["Discounted order"]

    def test_store_credit_used(self, make_order):
        assert is_non_returnable(make_order(store_credit_used=1.0))[1] == ["Paid with store credit"]

    def test_gift_certificate_on_order_or_item(self, make_order):
        assert is_non_returnable(make_order(is_gift_certificate=True))[1] == ["Gift certificate"]
        assert is_non_returnable(
            make_order(items=[OrderItem(is_gift_certificate=True)])
        )[1] == ["Gift certificate"]

    def test_reasons_follow_evaluation_order(self, make_order):
        order = make_order(
            order_type="Custom",
            delivery_country="Canada",
            discount_amount=100.0,
            store_credit_used=200.0,
            is_gift_certificate=True,
            items=[OrderItem(extras=[{"name": "tassels"}])],
        )

        assert is_non_returnable(order) == (True, [
            "Custom order",
            "International delivery",
            "Discounted order",
            "Paid with store credit",
            "Gift certificate",
            "Customized with extras",
        ])

    def test_subset_keeps_relative_order(self, make_order):
        order = make_order(
            store_credit_used=50.0,
            order_type="Custom",
            items=[OrderItem(extras=[{"name": "embroidery"}])],
        )

        assert is_non_returnable(order)[1] == ["Custom order", "Paid with store credit", "Customized with extras"]

    def test_only_first_item_is_inspected(self, make_order):
        # Multi-item orders are judged on items[0] alone; a customized second item
        # does not make the order non-returnable.
        order = make_order(items=[
            OrderItem(product_name="Plain kurta"),
            OrderItem(product_name="Embroidered dupatta", extras=[{"name": "embroidery"}]),
        ])

        assert is_non_returnable(order) == (False, [])

    def test_policy_carries_reasons_in_metadata(self, make_order):
        decision = NonReturnablePolicy().evaluate({"order": make_order(order_type="Custom")})

        assert decision.is_denied
        assert decision.metadata["non_returnable_reasons"] == ["Custom order"]


class TestExtrasScenario:

    def test_extras_block_exchange_but_not_refund(self, make_delivered_order):
        order = make_delivered_order(items=[OrderItem(extras=[{"name": "embroidery"}])])
        now = order.delivered_at + timedelta(hours=1)

        assert is_non_returnable(order) == (True, ["Customized with extras"])
        assert can_refund(order, now) is True
        assert can_exchange(order, now) is False
