"""
Order Lifecycle Engine.

Wires the pure domain layer to the order and profile stores. Every effectful
entry point follows the same sequence while holding the order's lock:

    fetch -> check state/permission -> validate -> compute patch -> write

Writes carry the fetched version, so a concurrent writer that slipped past
the lock (another process) surfaces as ConflictError instead of a silent
overwrite. The engine never retries; that policy belongs to the caller.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from core.clock import Clock
from core.data import OrderQuery, OrderStore, ProfileStore
from core.domain import DomainEvent, FieldError
from core.errors import OrderLifecycleError, PartialApplyError, ValidationError
from core.locking import KeyedLock

from .domain.models import Order, Profile
from .domain.policies import (
    DEFAULT_WINDOWS,
    STORE_CREDIT_VALIDITY_MONTHS,
    LifecycleWindows,
    can_cancel,
    can_edit,
    can_exchange,
    can_mark_delivered,
    can_refund,
    can_request_alteration,
    can_return,
    can_revoke,
    is_non_returnable,
)
from .domain.services import (
    CANCEL,
    EDIT,
    EXCHANGE,
    MARK_DELIVERED,
    REFUND,
    RETURN,
    REVOKE,
    AlterationOrderBuilder,
    AlterationRequest,
    StoreCreditCalculator,
    StoreCreditResult,
    Transition,
    TransitionBuilder,
)

logger = logging.getLogger(__name__)


@dataclass
class ReturnOutcome:
    """Result of a store-credit return: both records as written."""
    order: Order
    profile: Profile
    credit: StoreCreditResult


@dataclass
class ActionAvailability:
    """What the UI may offer for an order right now."""
    order_id: str
    status: str
    can_edit: bool
    can_cancel: bool
    can_revoke: bool
    can_exchange: bool
    can_return: bool
    can_refund: bool
    can_mark_delivered: bool
    non_returnable: bool
    non_returnable_reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "status": self.status,
            "can_edit": self.can_edit,
            "can_cancel": self.can_cancel,
            "can_revoke": self.can_revoke,
            "can_exchange": self.can_exchange,
            "can_return": self.can_return,
            "can_refund": self.can_refund,
            "can_mark_delivered": self.can_mark_delivered,
            "non_returnable": self.non_returnable,
            "non_returnable_reasons": list(self.non_returnable_reasons),
        }


class OrderLifecycleEngine:
    """
    Entry points for every lifecycle action.

    Pure predicates (`can_*`, `is_non_returnable`, `available_actions`) take
    an order and a time. Effectful `apply_*` methods take an order id, read
    "now" from the injected clock and return the updated order or raise one
    of the core.errors types.
    """

    def __init__(
        self,
        orders: OrderStore,
        profiles: ProfileStore,
        clock: Clock,
        windows: LifecycleWindows = DEFAULT_WINDOWS,
        store_credit_validity_months: int = STORE_CREDIT_VALIDITY_MONTHS,
        lock: Optional[KeyedLock] = None,
        event_sink: Optional[Callable[[DomainEvent], None]] = None,
    ):
        self.orders = orders
        self.profiles = profiles
        self.clock = clock
        self.windows = windows
        self._lock = lock or KeyedLock()
        self._event_sink = event_sink
        self._transitions = TransitionBuilder(windows)
        self._credit_calculator = StoreCreditCalculator(store_credit_validity_months)
        self._alteration_builder = AlterationOrderBuilder()

    # =========================================================================
    # PREDICATES
    # =========================================================================

    def can_edit(self, order: Order, now: datetime) -> bool:
        return can_edit(order, now, self.windows)

    def can_cancel(self, order: Order, now: datetime) -> bool:
        return can_cancel(order, now, self.windows)

    def can_revoke(self, order: Order, now: datetime) -> bool:
        return can_revoke(order, now, self.windows)

    def can_exchange(self, order: Order, now: datetime) -> bool:
        return can_exchange(order, now, self.windows)

    def can_return(self, order: Order, now: datetime) -> bool:
        return can_return(order, now, self.windows)

    def can_refund(self, order: Order, now: datetime) -> bool:
        return can_refund(order, now, self.windows)

    def can_mark_delivered(self, order: Order, now: Optional[datetime] = None) -> bool:
        return can_mark_delivered(order, now)

    def can_request_alteration(self, order: Order, item_index: int = 0) -> bool:
        existing = len(self.alterations_for(order.id, item_index))
        return can_request_alteration(order, item_index, existing)

    def is_non_returnable(self, order: Order):
        return is_non_returnable(order)

    def available_actions(self, order: Order, now: Optional[datetime] = None) -> ActionAvailability:
        now = now or self.clock.now()
        non_returnable, reasons = is_non_returnable(order)
        return ActionAvailability(
            order_id=order.id,
            status=order.status,
            can_edit=self.can_edit(order, now),
            can_cancel=self.can_cancel(order, now),
            can_revoke=self.can_revoke(order, now),
            can_exchange=self.can_exchange(order, now),
            can_return=self.can_return(order, now),
            can_refund=self.can_refund(order, now),
            can_mark_delivered=self.can_mark_delivered(order, now),
            non_returnable=non_returnable,
            non_returnable_reasons=reasons,
        )

    # =========================================================================
    # ACTIONS
    # =========================================================================

    def apply_cancel(self, order_id: str, reason: Optional[str], other_text: Optional[str] = None) -> Order:
        return self._apply(order_id, CANCEL, reason=reason, other_text=other_text)

    def apply_revoke(self, order_id: str) -> Order:
        return self._apply(order_id, REVOKE)

    def apply_exchange(
        self,
        order_id: str,
        exchange_type: Optional[str],
        reason: Optional[str] = None,
        other_text: Optional[str] = None,
    ) -> Order:
        return self._apply(order_id, EXCHANGE, exchange_type=exchange_type, reason=reason, other_text=other_text)

    def apply_refund(self, order_id: str, reason: Optional[str], other_text: Optional[str] = None) -> Order:
        return self._apply(order_id, REFUND, reason=reason, other_text=other_text)

    def apply_edit(self, order_id: str, fields: Dict[str, Any]) -> Order:
        # Permission is re-checked here regardless of what the form allowed
        return self._apply(order_id, EDIT, fields=fields)

    def apply_mark_delivered(self, order_id: str) -> Order:
        return self._apply(order_id, MARK_DELIVERED)

    def apply_return(self, order_id: str, reason: Optional[str], other_text: Optional[str] = None) -> ReturnOutcome:
        """
        Return for store credit.

        The order is written first. If crediting the profile then fails, the
        order stays returned and PartialApplyError carries it for
        reconciliation.
        """
        with self._lock.hold(order_id):
            now = self.clock.now()
            order = self.orders.fetch(order_id)
            transition = self._build(RETURN, order, now, reason=reason, other_text=other_text)
            if not order.user_id:
                raise ValidationError(
                    f"Order {order.order_no} has no customer to credit",
                    order_id=order_id,
                    errors=[FieldError(field="user_id", message="user_id is required", code="required")],
                )
            # Returns for other orders of the same customer credit the same profile
            with self._lock.hold(f"profile:{order.user_id}"):
                # Nothing is written if the profile cannot be read
                profile = self.profiles.fetch(order.user_id)
                updated = self._write(order, transition)

                try:
                    credit = self._credit_calculator.execute(profile, updated, now)
                    profile = self.profiles.write(profile.id, credit.to_patch(), expected_version=profile.version)
                except Exception as e:
                    # Any failure here leaves the order returned without its credit
                    logger.error(
                        f"Order {updated.order_no} marked {updated.status} but store credit for user "
                        f"{order.user_id} was not applied: {e}"
                    )
                    raise PartialApplyError(
                        f"Order {updated.order_no} was returned but store credit could not be issued",
                        order_id=order_id,
                        order=updated,
                        cause=e,
                    ) from e

            logger.info(
                f"Issued store credit {credit.amount:.2f} to {profile.id} for order {updated.order_no} "
                f"(balance {credit.previous_balance:.2f} -> {credit.new_balance:.2f}, expires {credit.expiry})"
            )
            self._emit(transition, now, {
                "user_id": profile.id,
                "store_credit_amount": credit.amount,
                "store_credit_expiry": credit.expiry,
            })
            return ReturnOutcome(order=updated, profile=profile, credit=credit)

    def apply_alteration(self, order_id: str, item_index: int, request: AlterationRequest) -> Order:
        """Create an alteration order for one item of a delivered order."""
        with self._lock.hold(order_id):
            now = self.clock.now()
            parent = self.orders.fetch(order_id)
            existing = self.alterations_for(order_id, item_index)
            try:
                alteration = self._alteration_builder.execute(parent, item_index, request, len(existing), now)
            except OrderLifecycleError as e:
                logger.warning(f"Rejected alteration on order {parent.order_no}: {e}")
                raise

            created = self.orders.create(alteration)
            logger.info(
                f"Created alteration {created.order_no} for item {item_index} of order {parent.order_no} "
                f"({request.alteration_type} at {request.alteration_location})"
            )
            self._publish(DomainEvent(
                event_type="alteration_requested",
                order_id=order_id,
                occurred_at=now,
                data={"alteration_order_id": created.id, "order_no": created.order_no},
            ))
            return created

    # =========================================================================
    # QUERIES
    # =========================================================================

    def alterations_for(self, order_id: str, item_index: Optional[int] = None) -> List[Order]:
        alterations = self.orders.query(OrderQuery(parent_order_id=order_id, is_alteration=True, order_desc=False))
        if item_index is None:
            return alterations
        return [a for a in alterations if a.parent_item_index == item_index]

    def orders_for_customer(self, user_id: str, status: Optional[str] = None, limit: int = 100) -> List[Order]:
        """Newest first, at most `limit` orders."""
        return self.orders.query(OrderQuery(user_id=user_id, status=status, limit=limit))

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _apply(self, order_id: str, action: str, **inputs) -> Order:
        with self._lock.hold(order_id):
            now = self.clock.now()
            order = self.orders.fetch(order_id)
            transition = self._build(action, order, now, **inputs)
            updated = self._write(order, transition)
            self._emit(transition, now)
            return updated

    def _build(self, action: str, order: Order, now: datetime, **inputs) -> Transition:
        try:
            return self._transitions.execute(action, order, now, **inputs)
        except OrderLifecycleError as e:
            logger.warning(f"Rejected {action} on order {order.order_no} ({order.status}): {e}")
            raise

    def _write(self, order: Order, transition: Transition) -> Order:
        try:
            updated = self.orders.write(order.id, transition.patch, expected_version=order.version)
        except OrderLifecycleError as e:
            logger.error(f"Failed to write {transition.action} for order {order.order_no}: {e}")
            raise

        logger.info(
            f"Order {order.order_no}: {transition.action} "
            f"({transition.from_status} -> {transition.to_status})"
        )
        return updated

    def _emit(self, transition: Transition, now: datetime, data: Optional[Dict[str, Any]] = None):
        if not self._event_sink:
            return
        payload = {
            "from_status": transition.from_status,
            "to_status": transition.to_status,
            "fields": sorted(transition.patch),
        }
        payload.update(data or {})
        self._publish(DomainEvent(
            event_type=transition.action,
            order_id=transition.order_id,
            occurred_at=now,
            data=payload,
        ))

    def _publish(self, event: DomainEvent):
        """Hand an event to the sink. The transition is already committed, so a sink failure is only logged."""
        if not self._event_sink:
            return
        try:
            self._event_sink(event)
        except Exception:
            logger.exception(f"Event sink failed for {event.event_type} on order {event.order_id}")
