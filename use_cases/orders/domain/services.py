"""
Domain Services - Lifecycle Transitions.

These services compute what an action does to an order without performing
any I/O. Each transition is checked in this order:

1. State: terminal orders reject the action (StateError), except edit,
   whose window policy refuses any non-pending order
2. Permission: the action's policy must approve (PermissionDeniedError)
3. Validation: reason/fields must be valid (ValidationError)

and then produces the partial document to write.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.domain import DomainService, PolicyEngine, add_months, format_datetime
from core.errors import PermissionDeniedError, StateError, ValidationError

from .models import Order, OrderItem, OrderStatus, Profile, parse_color
from .policies import (
    CANCEL_REASONS,
    DEFAULT_WINDOWS,
    EDITABLE_ITEM_FIELDS,
    EDITABLE_ORDER_FIELDS,
    HOME_DELIVERY,
    OTHER,
    PRODUCT_EXCHANGE,
    REFUNDABLE_STATUSES,
    REFUND_REASONS,
    REFUND_STATUS_PENDING,
    RETURN_REASONS,
    REVOKE_REASON,
    SIZE_EXCHANGE_REASON,
    STORE_CREDIT_VALIDITY_MONTHS,
    AlterationPolicy,
    AlterationRequestValidator,
    CancelWindowPolicy,
    EditFieldsValidator,
    EditWindowPolicy,
    ExchangeRequestValidator,
    LifecycleWindows,
    MarkDeliveredPolicy,
    ReasonValidator,
    RefundPolicy,
    ReturnEligibilityPolicy,
    RevokePolicy,
    is_terminal_for,
)


# Action names
EDIT = "edit"
CANCEL = "cancel"
REVOKE = "revoke"
EXCHANGE = "exchange"
RETURN = "return"
REFUND = "refund"
MARK_DELIVERED = "mark_delivered"

PENDING_ONLY = frozenset({OrderStatus.PENDING.value})
DELIVERED_ONLY = frozenset({OrderStatus.DELIVERED.value})


@dataclass
class Transition:
    """The result of a permitted, validated action."""
    action: str
    order_id: str
    patch: Dict[str, Any]
    from_status: str
    to_status: str


@dataclass
class StoreCreditResult:
    """Store credit issued by a return."""
    amount: float
    previous_balance: float
    new_balance: float
    expiry: str

    def to_patch(self) -> Dict[str, Any]:
        return {
            "store_credit": self.new_balance,
            "store_credit_expiry": self.expiry,
        }


@dataclass
class AlterationRequest:
    """Input for an alteration order."""
    alteration_type: str
    alteration_location: str
    delivery_type: str
    delivery_date: Optional[str] = None
    size: Optional[str] = None
    measurements: Optional[Dict[str, Any]] = None
    notes: str = ""
    delivery_country: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    delivery_pincode: Optional[str] = None
    attachments: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alteration_type": self.alteration_type,
            "alteration_location": self.alteration_location,
            "delivery_type": self.delivery_type,
        }


def compose_reason(reason: str, other_text: Optional[str] = None) -> str:
    """`reason`, or "Other: {text}" when the reason is other."""
    if reason == OTHER and other_text and other_text.strip():
        return f"Other: {other_text.strip()}"
    return reason


def _raise_if_invalid(errors, order_id: str, action: str):
    if errors:
        messages = "; ".join(str(e) for e in errors)
        raise ValidationError(f"Invalid {action} request: {messages}", order_id=order_id, errors=errors)


class TransitionBuilder(DomainService):
    """
    Builds the write for each lifecycle action.

    Pure: takes the fetched order and "now", returns a Transition or raises.
    """

    def __init__(self, windows: LifecycleWindows = DEFAULT_WINDOWS):
        self.windows = windows
        self._policies: Dict[str, PolicyEngine] = {
            EDIT: EditWindowPolicy(windows),
            CANCEL: CancelWindowPolicy(windows),
            REVOKE: RevokePolicy(windows),
            EXCHANGE: ReturnEligibilityPolicy(windows),
            RETURN: ReturnEligibilityPolicy(windows),
            REFUND: RefundPolicy(windows),
            MARK_DELIVERED: MarkDeliveredPolicy(),
        }
        # Edit has no state shortcut: a finished order is refused by its window policy
        self._allowed_from = {
            CANCEL: PENDING_ONLY,
            REVOKE: PENDING_ONLY,
            EXCHANGE: DELIVERED_ONLY,
            RETURN: DELIVERED_ONLY,
            REFUND: REFUNDABLE_STATUSES,
            MARK_DELIVERED: PENDING_ONLY,
        }
        self._cancel_validator = ReasonValidator(CANCEL_REASONS, require_other_text=False)
        self._return_validator = ReasonValidator(RETURN_REASONS)
        self._refund_validator = ReasonValidator(REFUND_REASONS)
        self._exchange_validator = ExchangeRequestValidator()
        self._edit_validator = EditFieldsValidator()

    def execute(self, action: str, order: Order, now: datetime, **inputs) -> Transition:
        handlers = {
            EDIT: self.edit,
            CANCEL: self.cancel,
            REVOKE: self.revoke,
            EXCHANGE: self.exchange,
            RETURN: self.return_for_credit,
            REFUND: self.refund,
            MARK_DELIVERED: self.mark_delivered,
        }
        if action not in handlers:
            raise ValueError(f"Unknown action: {action}")
        return handlers[action](order, now, **inputs)

    def check(self, action: str, order: Order, now: datetime):
        """Raise StateError or PermissionDeniedError if the action is not open."""
        allowed = self._allowed_from.get(action)
        if allowed is not None and is_terminal_for(order, allowed):
            raise StateError(
                f"Order {order.order_no} is already {order.status}; {action} is no longer possible",
                order_id=order.id,
                status=order.status,
            )

        decision = self._policies[action].evaluate({"order": order, "now": now})
        if decision.is_denied:
            raise PermissionDeniedError(decision.reason, order_id=order.id, action=action)

    def _transition(self, action: str, order: Order, patch: Dict[str, Any]) -> Transition:
        return Transition(
            action=action,
            order_id=order.id,
            patch=patch,
            from_status=order.status,
            to_status=patch.get("status", order.status),
        )

    # ----- actions -----

    def cancel(self, order: Order, now: datetime, reason: Optional[str] = None, other_text: Optional[str] = None) -> Transition:
        self.check(CANCEL, order, now)
        _raise_if_invalid(
            self._cancel_validator.validate({"reason": reason, "other_text": other_text}),
            order.id, CANCEL,
        )
        return self._transition(CANCEL, order, {
            "status": OrderStatus.CANCELLED.value,
            "cancellation_reason": compose_reason(reason, other_text),
            "cancelled_at": format_datetime(now),
        })

    def revoke(self, order: Order, now: datetime) -> Transition:
        self.check(REVOKE, order, now)
        # Revoke shares cancellation_reason with Cancel
        return self._transition(REVOKE, order, {
            "status": OrderStatus.REVOKED.value,
            "cancellation_reason": REVOKE_REASON,
            "revoked_at": format_datetime(now),
        })

    def exchange(
        self,
        order: Order,
        now: datetime,
        exchange_type: Optional[str] = None,
        reason: Optional[str] = None,
        other_text: Optional[str] = None,
    ) -> Transition:
        self.check(EXCHANGE, order, now)
        _raise_if_invalid(
            self._exchange_validator.validate({
                "exchange_type": exchange_type,
                "reason": reason,
                "other_text": other_text,
            }),
            order.id, EXCHANGE,
        )

        if exchange_type == PRODUCT_EXCHANGE:
            exchange_reason = f"Product Exchange - {compose_reason(reason, other_text)}"
        else:
            exchange_reason = SIZE_EXCHANGE_REASON

        return self._transition(EXCHANGE, order, {
            "status": OrderStatus.EXCHANGE_RETURN.value,
            "exchange_reason": exchange_reason,
            "exchange_requested_at": format_datetime(now),
        })

    def return_for_credit(self, order: Order, now: datetime, reason: Optional[str] = None, other_text: Optional[str] = None) -> Transition:
        self.check(RETURN, order, now)
        _raise_if_invalid(
            self._return_validator.validate({"reason": reason, "other_text": other_text}),
            order.id, RETURN,
        )
        # exchange_requested_at is the shared request timestamp
        return self._transition(RETURN, order, {
            "status": OrderStatus.RETURN_STORE_CREDIT.value,
            "return_reason": compose_reason(reason, other_text),
            "exchange_requested_at": format_datetime(now),
        })

    def refund(self, order: Order, now: datetime, reason: Optional[str] = None, other_text: Optional[str] = None) -> Transition:
        self.check(REFUND, order, now)
        _raise_if_invalid(
            self._refund_validator.validate({"reason": reason, "other_text": other_text}),
            order.id, REFUND,
        )
        return self._transition(REFUND, order, {
            "status": OrderStatus.REFUND_REQUESTED.value,
            "refund_reason": compose_reason(reason, other_text),
            "refund_status": REFUND_STATUS_PENDING,
            "exchange_requested_at": format_datetime(now),
        })

    def edit(self, order: Order, now: datetime, fields: Optional[Dict[str, Any]] = None) -> Transition:
        self.check(EDIT, order, now)
        fields = fields or {}
        _raise_if_invalid(self._edit_validator.validate(fields), order.id, EDIT)

        patch: Dict[str, Any] = {
            name: fields[name] for name in EDITABLE_ORDER_FIELDS if name in fields
        }

        item_changes = {name: fields[name] for name in EDITABLE_ITEM_FIELDS if name in fields}
        if item_changes:
            # Only the first item is editable
            items = [item.to_dict() for item in order.items] or [OrderItem().to_dict()]
            first = items[0]
            for name, value in item_changes.items():
                if name in ("color", "top_color", "bottom_color"):
                    color = parse_color(value)
                    first[name] = color.to_value() if color is not None else None
                else:
                    first[name] = value
            patch["items"] = items

        patch["updated_at"] = format_datetime(now)
        return self._transition(EDIT, order, patch)

    def mark_delivered(self, order: Order, now: datetime) -> Transition:
        self.check(MARK_DELIVERED, order, now)
        patch: Dict[str, Any] = {"status": OrderStatus.DELIVERED.value}
        # delivered_at is set once and never moved
        if order.delivered_at is None:
            patch["delivered_at"] = format_datetime(now)
        return self._transition(MARK_DELIVERED, order, patch)


class StoreCreditCalculator(DomainService):
    """
    Computes the profile update for a store-credit return.

    The balance grows by the order value; the expiry is reset to
    now + validity months, replacing any earlier expiry.
    """

    def __init__(self, validity_months: int = STORE_CREDIT_VALIDITY_MONTHS):
        self.validity_months = validity_months

    def execute(self, profile: Profile, order: Order, now: datetime) -> StoreCreditResult:
        amount = order.order_value
        expiry = add_months(now, self.validity_months).date().isoformat()
        return StoreCreditResult(
            amount=amount,
            previous_balance=profile.store_credit,
            new_balance=profile.store_credit + amount,
            expiry=expiry,
        )


class AlterationOrderBuilder(DomainService):
    """
    Builds the follow-up order for an alteration of one delivered item.

    Alteration orders are free of charge and start out pending.
    """

    def __init__(self):
        self.policy = AlterationPolicy()
        self.validator = AlterationRequestValidator()

    def execute(
        self,
        parent: Order,
        item_index: int,
        request: AlterationRequest,
        existing_count: int,
        now: datetime,
    ) -> Order:
        if parent.is_terminal:
            raise StateError(
                f"Order {parent.order_no} is already {parent.status}; alteration is no longer possible",
                order_id=parent.id,
                status=parent.status,
            )

        decision = self.policy.evaluate({
            "order": parent,
            "item_index": item_index,
            "existing_count": existing_count,
        })
        if decision.is_denied:
            raise PermissionDeniedError(decision.reason, order_id=parent.id, action="alteration")

        _raise_if_invalid(
            self.validator.validate(request.to_dict()),
            parent.id, "alteration",
        )

        number = existing_count + 1
        order_no = f"{parent.order_no}-A" if number == 1 else f"{parent.order_no}-A{number}"

        source_item = parent.items[item_index]
        item = OrderItem.from_dict(source_item.to_dict())
        if request.size:
            item.size = request.size
        if request.measurements:
            item.measurements = dict(request.measurements)

        home_delivery = request.delivery_type == HOME_DELIVERY

        return Order(
            id=f"ORD-{uuid.uuid4().hex[:12].upper()}",
            order_no=order_no,
            created_at=now,
            status=OrderStatus.PENDING.value,
            items=[item],
            user_id=parent.user_id,
            grand_total=0.0,
            net_total=0.0,
            order_type=parent.order_type,
            delivery_name=parent.delivery_name,
            delivery_email=parent.delivery_email,
            delivery_phone=parent.delivery_phone,
            delivery_country=(request.delivery_country or parent.delivery_country) if home_delivery else "India",
            delivery_address=(request.delivery_address or parent.delivery_address) if home_delivery else "",
            delivery_city=(request.delivery_city or parent.delivery_city) if home_delivery else "",
            delivery_state=(request.delivery_state or parent.delivery_state) if home_delivery else "",
            delivery_pincode=(request.delivery_pincode or parent.delivery_pincode) if home_delivery else "",
            mode_of_delivery=request.delivery_type,
            delivery_date=request.delivery_date,
            is_alteration=True,
            parent_order_id=parent.id,
            parent_item_index=item_index,
            alteration_number=number,
            alteration_type=request.alteration_type,
            alteration_location=request.alteration_location,
            alteration_notes=request.notes or "",
            extra={
                "total_quantity": 1,
                "advance_payment": 0,
                "remaining_payment": 0,
                "alteration_attachments": list(request.attachments),
            },
        )
