"""
Order Lifecycle Policies - Pure Business Rules.

These policies decide which actions an order currently allows.
They have NO dependencies on databases or external services.
Every policy is evaluated against a context holding the order and "now":

    {"order": Order, "now": datetime}

Boundaries are inclusive on the customer side: exactly 24h after creation
an order can still be cancelled and not yet revoked.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from core.domain import (
    FieldError,
    PolicyDecision,
    PolicyEngine,
    Validator,
    hours_between,
)

from .models import COLOR_FIELDS, Order, OrderStatus, TERMINAL_STATUSES


# =============================================================================
# CONFIGURATION
# =============================================================================

EDIT_WINDOW_HOURS = 36
CANCEL_WINDOW_HOURS = 24
POST_DELIVERY_WINDOW_HOURS = 72
STORE_CREDIT_VALIDITY_MONTHS = 12
MAX_ALTERATIONS_PER_ITEM = 2

DOMESTIC_COUNTRY = "india"

REVOKE_REASON = "Brand-Initiated (Pre-Delivery) - Unable to fulfil order"
SIZE_EXCHANGE_REASON = "Size Exchange"
REFUND_STATUS_PENDING = "pending"

OTHER = "other"

# Reason catalogues: code -> label
CANCEL_REASONS = {
    "new_order_placed": "New Order Placed",
    "change_in_requirement": "Change in Requirement",
    "delivery_timeline_not_suitable": "Delivery Timeline Not Suitable",
    OTHER: "Other",
}

PRODUCT_EXCHANGE_REASONS = {
    "fit_not_meet_expectations": "Fit Did Not Meet Expectations",
    "style_preference_changed": "Style Preference Changed",
    "fabric_or_finish_concern": "Fabric or Finish Concern",
    "color_variation": "Color Variation",
    OTHER: "Other",
}

RETURN_REASONS = {
    "fit_not_meet_expectations": "Fit Did Not Meet Expectations",
    "style_preference_changed": "Style Preference Changed",
    "fabric_or_finish_concern": "Fabric or Finish Concern",
    "delivery_timeline_concern": "Delivery Timeline Concern",
    "change_in_requirement": "Change in Requirement",
    OTHER: "Other",
}

REFUND_REASONS = {
    "product_was_faulty": "Product Was Faulty",
    "incorrect_product_delivered": "Incorrect Product Delivered",
    "delivery_delayed": "Delivery Delayed",
    OTHER: "Other",
}

SIZE_EXCHANGE = "size_exchange"
PRODUCT_EXCHANGE = "product_exchange"
EXCHANGE_TYPES = {
    SIZE_EXCHANGE: "Size Exchange",
    PRODUCT_EXCHANGE: "Product Exchange",
}

ALTERATION_TYPES = {
    "fitting": "Fitting Adjustment",
    "length": "Length Adjustment",
    "repair": "Repair",
    OTHER: "Other",
}
ALTERATION_LOCATIONS = ["Store", "Warehouse"]
HOME_DELIVERY = "Home Delivery"

# Fields an edit may touch
EDITABLE_ITEM_FIELDS = ("size", "measurements") + COLOR_FIELDS
EDITABLE_ORDER_FIELDS = (
    "delivery_date",
    "delivery_address",
    "delivery_city",
    "delivery_state",
    "delivery_pincode",
    "mode_of_delivery",
)


@dataclass(frozen=True)
class LifecycleWindows:
    """Window lengths in hours. Defaults are the business rules."""
    edit_hours: float = EDIT_WINDOW_HOURS
    cancel_hours: float = CANCEL_WINDOW_HOURS
    post_delivery_hours: float = POST_DELIVERY_WINDOW_HOURS


DEFAULT_WINDOWS = LifecycleWindows()


# =============================================================================
# NON-RETURNABLE DETERMINATION
# =============================================================================

def non_returnable_reasons(order: Order) -> List[str]:
    """
    Every condition that disqualifies the order from exchange/return, in
    evaluation order. Only the first item is inspected.
    """
    reasons = []
    item = order.first_item

    if order.order_type == "Custom":
        reasons.append("Custom order")
    if order.delivery_country and order.delivery_country.strip().lower() != DOMESTIC_COUNTRY:
        reasons.append("International delivery")
    if order.discount_percent > 0 or order.discount_amount > 0:
        reasons.append("Discounted order")
    if order.store_credit_used > 0:
        reasons.append("Paid with store credit")
    if order.is_gift_certificate or item.is_gift_certificate:
        reasons.append("Gift certificate")
    if item.extras:
        reasons.append("Customized with extras")

    return reasons


def is_non_returnable(order: Order) -> Tuple[bool, List[str]]:
    """(non_returnable, reasons) for UI messaging."""
    reasons = non_returnable_reasons(order)
    return bool(reasons), reasons


class NonReturnablePolicy(PolicyEngine):
    """
    Denies exchange/return for customized, discounted, store-credit-paid,
    gift-certificate or internationally delivered orders.

    Context required:
        - order: Order
    """

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        reasons = non_returnable_reasons(context["order"])
        if reasons:
            return PolicyDecision.deny(
                f"Order is not returnable: {', '.join(reasons)}",
                non_returnable_reasons=reasons,
            )
        return PolicyDecision.approve("Order is returnable", non_returnable_reasons=[])


# =============================================================================
# TIME-WINDOW POLICIES
# =============================================================================

class _WindowPolicy(PolicyEngine):
    """Shared plumbing: windows are configurable per instance."""

    def __init__(self, windows: LifecycleWindows = DEFAULT_WINDOWS):
        self.windows = windows


class EditWindowPolicy(_WindowPolicy):
    """Pending orders can be edited up to 36h after creation."""

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order: Order = context["order"]
        if order.status != OrderStatus.PENDING.value:
            return PolicyDecision.deny(f"Order status '{order.status}' cannot be edited", status=order.status)

        elapsed = hours_between(order.created_at, context["now"])
        if elapsed > self.windows.edit_hours:
            return PolicyDecision.deny(
                f"Edit window of {self.windows.edit_hours:g} hours has closed",
                hours_since_creation=elapsed,
            )
        return PolicyDecision.approve("Order can be edited", hours_since_creation=elapsed)


class CancelWindowPolicy(_WindowPolicy):
    """Customer cancellation up to and including 24h after creation."""

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order: Order = context["order"]
        if order.status != OrderStatus.PENDING.value:
            return PolicyDecision.deny(f"Order status '{order.status}' cannot be cancelled", status=order.status)

        elapsed = hours_between(order.created_at, context["now"])
        if elapsed > self.windows.cancel_hours:
            return PolicyDecision.deny(
                f"Cancellation window of {self.windows.cancel_hours:g} hours has closed",
                hours_since_creation=elapsed,
            )
        return PolicyDecision.approve("Order can be cancelled", hours_since_creation=elapsed)


class RevokePolicy(_WindowPolicy):
    """Brand-initiated cancellation, strictly after the customer window."""

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order: Order = context["order"]
        if order.status != OrderStatus.PENDING.value:
            return PolicyDecision.deny(f"Order status '{order.status}' cannot be revoked", status=order.status)

        elapsed = hours_between(order.created_at, context["now"])
        if elapsed <= self.windows.cancel_hours:
            return PolicyDecision.deny(
                "Order is still within the customer cancellation window",
                hours_since_creation=elapsed,
            )
        return PolicyDecision.approve("Order can be revoked", hours_since_creation=elapsed)


def _hours_since_delivery(order: Order, now: datetime) -> Optional[float]:
    if order.delivered_at is None:
        return None
    return hours_between(order.delivered_at, now)


class PostDeliveryWindowPolicy(_WindowPolicy):
    """
    Delivered orders, up to and including 72h after delivery.

    Context required:
        - order: Order
        - now: datetime
    """

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order: Order = context["order"]
        if order.status != OrderStatus.DELIVERED.value:
            return PolicyDecision.deny(f"Order status '{order.status}' is not delivered", status=order.status)

        elapsed = _hours_since_delivery(order, context["now"])
        if elapsed is None:
            return PolicyDecision.deny("Order has no delivery timestamp")
        if elapsed > self.windows.post_delivery_hours:
            return PolicyDecision.deny(
                f"Post-delivery window of {self.windows.post_delivery_hours:g} hours has closed",
                hours_since_delivery=elapsed,
            )
        return PolicyDecision.approve("Order is within the post-delivery window", hours_since_delivery=elapsed)


class ReturnEligibilityPolicy(_WindowPolicy):
    """
    Composite policy for exchange and return-for-credit.

    Combines:
        - Post-delivery window check
        - Non-returnable check
    """

    def __init__(self, windows: LifecycleWindows = DEFAULT_WINDOWS):
        super().__init__(windows)
        self.window_policy = PostDeliveryWindowPolicy(windows)
        self.returnable_policy = NonReturnablePolicy()

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        window_decision = self.window_policy.evaluate(context)
        if window_decision.is_denied:
            return window_decision

        returnable_decision = self.returnable_policy.evaluate(context)
        if returnable_decision.is_denied:
            return returnable_decision

        return PolicyDecision.approve(
            "Order is eligible for exchange or return",
            **window_decision.metadata,
        )


# Statuses from which a refund may still be requested
REFUNDABLE_STATUSES = frozenset({
    OrderStatus.DELIVERED.value,
    OrderStatus.EXCHANGE_RETURN.value,
    OrderStatus.RETURN_STORE_CREDIT.value,
})


class RefundPolicy(_WindowPolicy):
    """
    Brand-fault refunds: only delivery timing matters.

    Non-returnable orders are still refundable, and a refund can follow an
    exchange or a store-credit return inside the same window.
    """

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order: Order = context["order"]
        if order.status not in REFUNDABLE_STATUSES:
            return PolicyDecision.deny(f"Order status '{order.status}' cannot be refunded", status=order.status)

        elapsed = _hours_since_delivery(order, context["now"])
        if elapsed is None:
            return PolicyDecision.deny("Order has no delivery timestamp")
        if elapsed > self.windows.post_delivery_hours:
            return PolicyDecision.deny(
                f"Refund window of {self.windows.post_delivery_hours:g} hours has closed",
                hours_since_delivery=elapsed,
            )
        return PolicyDecision.approve("Refund can be requested", hours_since_delivery=elapsed)


class MarkDeliveredPolicy(PolicyEngine):
    """Only pending orders can be marked delivered."""

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order: Order = context["order"]
        if order.status != OrderStatus.PENDING.value:
            return PolicyDecision.deny(f"Order status '{order.status}' cannot be marked delivered", status=order.status)
        return PolicyDecision.approve("Order can be marked delivered")


class AlterationPolicy(PolicyEngine):
    """
    Alterations on delivered orders, at most two per item.

    Context required:
        - order: Order
        - item_index: index of the item to alter
        - existing_count: alterations already requested for that item
    """

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order: Order = context["order"]
        if order.status != OrderStatus.DELIVERED.value:
            return PolicyDecision.deny("Only delivered orders can be altered", status=order.status)
        if order.is_alteration:
            return PolicyDecision.deny("An alteration order cannot itself be altered")

        item_index = context.get("item_index", 0)
        if not 0 <= item_index < len(order.items):
            return PolicyDecision.deny(f"Order has no item at index {item_index}")

        existing = context.get("existing_count", 0)
        if existing >= MAX_ALTERATIONS_PER_ITEM:
            return PolicyDecision.deny(
                f"Item already has {existing} alterations (max {MAX_ALTERATIONS_PER_ITEM})",
                existing_count=existing,
            )
        return PolicyDecision.approve("Item can be altered", existing_count=existing)


# =============================================================================
# PREDICATES
# =============================================================================

def _context(order: Order, now: datetime) -> Dict[str, Any]:
    return {"order": order, "now": now}


def is_within_72h_post_delivery(order: Order, now: datetime, windows: LifecycleWindows = DEFAULT_WINDOWS) -> bool:
    return PostDeliveryWindowPolicy(windows).evaluate(_context(order, now)).is_approved


def can_edit(order: Order, now: datetime, windows: LifecycleWindows = DEFAULT_WINDOWS) -> bool:
    return EditWindowPolicy(windows).evaluate(_context(order, now)).is_approved


def can_cancel(order: Order, now: datetime, windows: LifecycleWindows = DEFAULT_WINDOWS) -> bool:
    return CancelWindowPolicy(windows).evaluate(_context(order, now)).is_approved


def can_revoke(order: Order, now: datetime, windows: LifecycleWindows = DEFAULT_WINDOWS) -> bool:
    return RevokePolicy(windows).evaluate(_context(order, now)).is_approved


def can_exchange(order: Order, now: datetime, windows: LifecycleWindows = DEFAULT_WINDOWS) -> bool:
    return ReturnEligibilityPolicy(windows).evaluate(_context(order, now)).is_approved


def can_return(order: Order, now: datetime, windows: LifecycleWindows = DEFAULT_WINDOWS) -> bool:
    # Same rule as exchange
    return ReturnEligibilityPolicy(windows).evaluate(_context(order, now)).is_approved


def can_refund(order: Order, now: datetime, windows: LifecycleWindows = DEFAULT_WINDOWS) -> bool:
    return RefundPolicy(windows).evaluate(_context(order, now)).is_approved


def can_mark_delivered(order: Order, now: Optional[datetime] = None) -> bool:
    return MarkDeliveredPolicy().evaluate({"order": order, "now": now}).is_approved


def can_request_alteration(order: Order, item_index: int = 0, existing_count: int = 0) -> bool:
    context = {"order": order, "item_index": item_index, "existing_count": existing_count}
    return AlterationPolicy().evaluate(context).is_approved


def is_terminal_for(order: Order, allowed_statuses) -> bool:
    """True when the order is terminal and the action cannot start from its status."""
    return order.status in TERMINAL_STATUSES and order.status not in allowed_statuses


# =============================================================================
# VALIDATORS
# =============================================================================

def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _not_text(name: str, value: Any) -> Optional[FieldError]:
    if value is not None and not isinstance(value, str):
        return FieldError(field=name, message=f"{name} must be text", code="invalid")
    return None


class ReasonValidator(Validator):
    """
    Validates a reason code against a closed catalogue.

    Data:
        - reason: reason code
        - other_text: free text, required when reason is "other"
    """

    def __init__(self, catalogue: Dict[str, str], field_name: str = "reason", require_other_text: bool = True):
        self.catalogue = catalogue
        self.field_name = field_name
        self.require_other_text = require_other_text

    def validate(self, data: Dict[str, Any]) -> List[FieldError]:
        errors = []
        reason = data.get("reason")

        for error in (_not_text(self.field_name, reason), _not_text("other_text", data.get("other_text"))):
            if error:
                errors.append(error)
        if errors:
            return errors

        if _is_blank(reason):
            errors.append(FieldError(
                field=self.field_name,
                message=f"{self.field_name} is required",
                code="required",
            ))
            return errors

        if reason not in self.catalogue:
            errors.append(FieldError(
                field=self.field_name,
                message=f"Invalid {self.field_name}. Must be one of: {', '.join(self.catalogue)}",
                code="invalid_choice",
            ))
            return errors

        if reason == OTHER and self.require_other_text and _is_blank(data.get("other_text")):
            errors.append(FieldError(
                field="other_text",
                message="Please describe the reason",
                code="required",
            ))

        return errors


class ExchangeRequestValidator(Validator):
    """Validates exchange type plus, for product exchanges, the reason."""

    def __init__(self):
        self.reason_validator = ReasonValidator(PRODUCT_EXCHANGE_REASONS)

    def validate(self, data: Dict[str, Any]) -> List[FieldError]:
        exchange_type = data.get("exchange_type")

        error = _not_text("exchange_type", exchange_type)
        if error:
            return [error]
        if _is_blank(exchange_type):
            return [FieldError(field="exchange_type", message="exchange_type is required", code="required")]
        if exchange_type not in EXCHANGE_TYPES:
            return [FieldError(
                field="exchange_type",
                message=f"Invalid exchange_type. Must be one of: {', '.join(EXCHANGE_TYPES)}",
                code="invalid_choice",
            )]
        if exchange_type == PRODUCT_EXCHANGE:
            return self.reason_validator.validate(data)
        return []


class EditFieldsValidator(Validator):
    """Only the editable subset of fields may be changed."""

    def validate(self, data: Dict[str, Any]) -> List[FieldError]:
        errors = []
        if not data:
            errors.append(FieldError(field="fields", message="No fields to update", code="required"))

        allowed = set(EDITABLE_ITEM_FIELDS) | set(EDITABLE_ORDER_FIELDS)
        for name in data:
            if name not in allowed:
                errors.append(FieldError(
                    field=name,
                    message=f"{name} cannot be edited",
                    code="not_editable",
                ))

        measurements = data.get("measurements")
        if measurements is not None and not isinstance(measurements, dict):
            errors.append(FieldError(field="measurements", message="measurements must be a mapping", code="invalid"))

        for name in COLOR_FIELDS:
            value = data.get(name)
            if value is not None and not isinstance(value, (str, dict)) and not hasattr(value, "to_value"):
                errors.append(FieldError(field=name, message=f"{name} must be a name or a {{name, hex}} object", code="invalid"))

        return errors


class AlterationRequestValidator(Validator):
    """Validates an alteration request."""

    def validate(self, data: Dict[str, Any]) -> List[FieldError]:
        errors = []

        for name in ("alteration_type", "alteration_location", "delivery_type"):
            error = _not_text(name, data.get(name))
            if error:
                errors.append(error)
        if errors:
            return errors

        alteration_type = data.get("alteration_type")
        if _is_blank(alteration_type):
            errors.append(FieldError(field="alteration_type", message="alteration_type is required", code="required"))
        elif alteration_type not in ALTERATION_TYPES:
            errors.append(FieldError(
                field="alteration_type",
                message=f"Invalid alteration_type. Must be one of: {', '.join(ALTERATION_TYPES)}",
                code="invalid_choice",
            ))

        location = data.get("alteration_location")
        if _is_blank(location):
            errors.append(FieldError(field="alteration_location", message="alteration_location is required", code="required"))
        elif location not in ALTERATION_LOCATIONS:
            errors.append(FieldError(
                field="alteration_location",
                message=f"Invalid alteration_location. Must be one of: {', '.join(ALTERATION_LOCATIONS)}",
                code="invalid_choice",
            ))

        if _is_blank(data.get("delivery_type")):
            errors.append(FieldError(field="delivery_type", message="delivery_type is required", code="required"))

        return errors
