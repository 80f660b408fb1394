"""Tests for the time-window permission predicates."""

from datetime import timedelta
from itertools import product

import pytest

from use_cases.orders.domain.models import OrderItem, OrderStatus
from use_cases.orders.domain.policies import (
    LifecycleWindows,
    ReturnEligibilityPolicy,
    can_cancel,
    can_edit,
    can_exchange,
    can_mark_delivered,
    can_refund,
    can_return,
    can_revoke,
    is_non_returnable,
    is_within_72h_post_delivery,
)


class TestCancelRevokeBoundary:
    """Cancel uses <= 24h, Revoke > 24h: no overlap and no gap."""

    def test_exactly_24_hours_cancel_not_revoke(self, make_order, t0):
        order = make_order()
        now = t0 + timedelta(hours=24)

        assert can_cancel(order, now) is True
        assert can_revoke(order, now) is False

    def test_just_past_24_hours_revoke_not_cancel(self, make_order, t0):
        order = make_order()
        now = t0 + timedelta(hours=24.0000001)

        assert can_cancel(order, now) is False
        assert can_revoke(order, now) is True

    @pytest.mark.parametrize("hours", [0, 1, 12, 23.99, 24, 24.01, 30, 100])
    def test_exactly_one_of_cancel_or_revoke_while_pending(self, make_order, t0, hours):
        order = make_order()
        now = t0 + timedelta(hours=hours)

        assert can_cancel(order, now) != can_revoke(order, now)

    @pytest.mark.parametrize("status", [s.value for s in OrderStatus if s != OrderStatus.PENDING])
    def test_neither_once_not_pending(self, make_order, t0, status):
        order = make_order(status=status)

        assert can_cancel(order, t0 + timedelta(hours=1)) is False
        assert can_revoke(order, t0 + timedelta(hours=30)) is False


class TestEditWindow:

    def test_editable_at_36_hours(self, make_order, t0):
        assert can_edit(make_order(), t0 + timedelta(hours=36)) is True

    def test_not_editable_at_37_hours(self, make_order, t0):
        assert can_edit(make_order(), t0 + timedelta(hours=37)) is False

    def test_not_editable_once_delivered(self, make_delivered_order, t0):
        assert can_edit(make_delivered_order(), t0 + timedelta(hours=11)) is False


class TestPostDeliveryWindow:

    def test_open_at_71h59m_closed_at_72h1m(self, make_delivered_order, t0):
        order = make_delivered_order(grand_total=10000.0)
        delivered = t0 + timedelta(hours=10)

        inside = delivered + timedelta(hours=71, minutes=59)
        assert can_exchange(order, inside) is True
        assert can_return(order, inside) is True

        outside = delivered + timedelta(hours=72, minutes=1)
        assert can_exchange(order, outside) is False
        assert can_return(order, outside) is False

    def test_exactly_72_hours_is_inside(self, make_delivered_order, t0):
        order = make_delivered_order()
        assert is_within_72h_post_delivery(order, t0 + timedelta(hours=10 + 72)) is True

    def test_requires_delivered_status(self, make_order, t0):
        order = make_order(status=OrderStatus.PENDING.value, delivered_at=t0)
        assert is_within_72h_post_delivery(order, t0 + timedelta(hours=1)) is False

    def test_requires_delivered_at(self, make_order, t0):
        order = make_order(status=OrderStatus.DELIVERED.value, delivered_at=None)

        assert is_within_72h_post_delivery(order, t0) is False
        assert can_refund(order, t0) is False

    def test_denial_reason_names_the_window(self, make_delivered_order, t0):
        order = make_delivered_order()
        decision = ReturnEligibilityPolicy().evaluate({"order": order, "now": t0 + timedelta(days=10)})

        assert decision.is_denied
        assert "72" in decision.reason

    def test_custom_windows(self, make_delivered_order, t0):
        order = make_delivered_order()
        windows = LifecycleWindows(post_delivery_hours=24)
        now = t0 + timedelta(hours=10 + 30)

        assert can_return(order, now) is True
        assert can_return(order, now, windows) is False


class TestExchangeMatchesReturn:

    @pytest.mark.parametrize("custom,international,discounted,credit_used,gift,extras", list(product([False, True], repeat=6)))
    def test_same_answer_for_every_non_returnable_combination(
        self, make_delivered_order, t0, custom, international, discounted, credit_used, gift, extras
    ):
        order = make_delivered_order(
            order_type="Custom" if custom else "Standard",
            delivery_country="USA" if international else "India",
            discount_percent=10.0 if discounted else 0.0,
            store_credit_used=500.0 if credit_used else 0.0,
            is_gift_certificate=gift,
            items=[OrderItem(extras=[{"name": "embroidery"}] if extras else [])],
        )
        now = t0 + timedelta(hours=20)

        assert can_exchange(order, now) == can_return(order, now)
        assert can_exchange(order, now) == (not is_non_returnable(order)[0])


class TestRefund:

    def test_refund_available_for_non_returnable_order(self, make_delivered_order, t0):
        order = make_delivered_order(order_type="Custom")
        now = t0 + timedelta(hours=11)

        assert is_non_returnable(order)[0] is True
        assert can_refund(order, now) is True
        assert can_exchange(order, now) is False

    def test_refund_closes_with_the_window(self, make_delivered_order, t0):
        order = make_delivered_order()
        assert can_refund(order, t0 + timedelta(hours=10 + 72, minutes=1)) is False

    @pytest.mark.parametrize("status", [OrderStatus.EXCHANGE_RETURN.value, OrderStatus.RETURN_STORE_CREDIT.value])
    def test_refund_still_open_after_exchange_or_return(self, make_delivered_order, t0, status):
        # A refund can coexist with an earlier exchange or store-credit return
        order = make_delivered_order(status=status)
        now = t0 + timedelta(hours=20)

        assert can_refund(order, now) is True
        assert can_exchange(order, now) is False
        assert can_return(order, now) is False

    @pytest.mark.parametrize("status", [
        OrderStatus.REFUND_REQUESTED.value,
        OrderStatus.CANCELLED.value,
        OrderStatus.REVOKED.value,
        OrderStatus.PENDING.value,
    ])
    def test_no_refund_from_other_statuses(self, make_delivered_order, t0, status):
        order = make_delivered_order(status=status)
        assert can_refund(order, t0 + timedelta(hours=20)) is False


class TestMarkDelivered:

    def test_only_pending(self, make_order, make_delivered_order):
        assert can_mark_delivered(make_order()) is True
        assert can_mark_delivered(make_delivered_order()) is False
        assert can_mark_delivered(make_order(status=OrderStatus.CANCELLED.value)) is False
