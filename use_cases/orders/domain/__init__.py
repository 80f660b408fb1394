"""
Order Lifecycle Domain Layer.

Contains pure business logic for the order lifecycle use case.
No database access or I/O - just business rules.
"""

from .models import (
    NamedColor,
    Order,
    OrderItem,
    OrderStatus,
    Profile,
    RawColor,
    parse_color,
)
from .policies import (
    CANCEL_REASONS,
    PRODUCT_EXCHANGE_REASONS,
    REFUND_REASONS,
    RETURN_REASONS,
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
    is_within_72h_post_delivery,
)
from .services import (
    AlterationOrderBuilder,
    AlterationRequest,
    StoreCreditCalculator,
    TransitionBuilder,
)

__all__ = [
    "NamedColor",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Profile",
    "RawColor",
    "parse_color",
    "CANCEL_REASONS",
    "PRODUCT_EXCHANGE_REASONS",
    "REFUND_REASONS",
    "RETURN_REASONS",
    "LifecycleWindows",
    "can_cancel",
    "can_edit",
    "can_exchange",
    "can_mark_delivered",
    "can_refund",
    "can_request_alteration",
    "can_return",
    "can_revoke",
    "is_non_returnable",
    "is_within_72h_post_delivery",
    "AlterationOrderBuilder",
    "AlterationRequest",
    "StoreCreditCalculator",
    "TransitionBuilder",
]
