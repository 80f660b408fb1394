"""
Order, item and profile records.

Records are read from and written back to JSON documents. Fields the engine
does not know about are kept in `extra` so a round trip never drops data.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from core.domain import format_datetime, parse_datetime


class OrderStatus(str, Enum):
    """Lifecycle status of an order."""
    PENDING = "pending"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REVOKED = "revoked"
    EXCHANGE_RETURN = "exchange_return"
    RETURN_STORE_CREDIT = "return_store_credit"
    REFUND_REQUESTED = "refund_requested"


TERMINAL_STATUSES = frozenset({
    OrderStatus.CANCELLED.value,
    OrderStatus.REVOKED.value,
    OrderStatus.EXCHANGE_RETURN.value,
    OrderStatus.RETURN_STORE_CREDIT.value,
    OrderStatus.REFUND_REQUESTED.value,
})


# =============================================================================
# COLORS
# =============================================================================

@dataclass(frozen=True)
class NamedColor:
    """A color stored as {"name": ..., "hex": ...}."""
    name: str
    hex: str = ""

    def to_value(self) -> Dict[str, str]:
        return {"name": self.name, "hex": self.hex}


@dataclass(frozen=True)
class RawColor:
    """A color stored as a bare string (a name or a hex code)."""
    value: str

    @property
    def name(self) -> str:
        return self.value

    @property
    def hex(self) -> str:
        return self.value if self.value.startswith("#") else ""

    def to_value(self) -> str:
        return self.value


ColorRef = Union[NamedColor, RawColor]


def parse_color(value: Any) -> Optional[ColorRef]:
    """Read a color field in either of its stored shapes."""
    if value is None or value == "":
        return None
    if isinstance(value, (NamedColor, RawColor)):
        return value
    if isinstance(value, dict):
        return NamedColor(name=value.get("name") or "", hex=value.get("hex") or "")
    if isinstance(value, str):
        return RawColor(value)
    raise TypeError(f"Unsupported color value: {value!r}")


def _known_fields(cls) -> set:
    return {f.name for f in fields(cls)} - {"extra"}


# =============================================================================
# ORDER ITEM
# =============================================================================

COLOR_FIELDS = ("color", "top_color", "bottom_color")


@dataclass
class OrderItem:
    """A line item embedded in an order."""
    product_name: str = ""
    size: Optional[str] = None
    color: Optional[ColorRef] = None
    top_color: Optional[ColorRef] = None
    bottom_color: Optional[ColorRef] = None
    measurements: Dict[str, Any] = field(default_factory=dict)
    extras: List[Dict[str, Any]] = field(default_factory=list)
    is_gift_certificate: bool = False
    price: float = 0.0
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderItem":
        known = _known_fields(cls)
        return cls(
            product_name=data.get("product_name") or "",
            size=data.get("size"),
            color=parse_color(data.get("color")),
            top_color=parse_color(data.get("top_color")),
            bottom_color=parse_color(data.get("bottom_color")),
            measurements=dict(data.get("measurements") or {}),
            extras=list(data.get("extras") or []),
            is_gift_certificate=bool(data.get("is_gift_certificate")),
            price=float(data.get("price") or 0),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "product_name": self.product_name,
            "size": self.size,
            "measurements": dict(self.measurements),
            "extras": list(self.extras),
            "is_gift_certificate": self.is_gift_certificate,
            "price": self.price,
        })
        for name in COLOR_FIELDS:
            color = getattr(self, name)
            data[name] = color.to_value() if color is not None else None
        return data


# =============================================================================
# ORDER
# =============================================================================

_ORDER_DATETIME_FIELDS = (
    "created_at",
    "delivered_at",
    "cancelled_at",
    "revoked_at",
    "exchange_requested_at",
    "updated_at",
)


@dataclass
class Order:
    """
    A customer order.

    Only `items[0]` is consulted for non-returnability and edits; see
    `first_item`.
    """
    id: str
    order_no: str
    created_at: datetime
    status: str = OrderStatus.PENDING.value
    items: List[OrderItem] = field(default_factory=list)
    user_id: Optional[str] = None

    # Money
    grand_total: Optional[float] = None
    net_total: Optional[float] = None
    discount_percent: float = 0.0
    discount_amount: float = 0.0
    store_credit_used: float = 0.0

    # Non-returnability inputs
    is_gift_certificate: bool = False
    order_type: Optional[str] = None
    delivery_country: Optional[str] = None

    # Delivery
    delivery_date: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    delivery_pincode: Optional[str] = None
    mode_of_delivery: Optional[str] = None
    delivery_name: Optional[str] = None
    delivery_email: Optional[str] = None
    delivery_phone: Optional[str] = None

    # Lifecycle annotations
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    exchange_requested_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    exchange_reason: Optional[str] = None
    return_reason: Optional[str] = None
    refund_reason: Optional[str] = None
    refund_status: Optional[str] = None

    # Alterations
    is_alteration: bool = False
    parent_order_id: Optional[str] = None
    parent_item_index: Optional[int] = None
    alteration_number: Optional[int] = None
    alteration_type: Optional[str] = None
    alteration_location: Optional[str] = None
    alteration_notes: Optional[str] = None

    # Optimistic concurrency token, owned by the store
    version: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def first_item(self) -> OrderItem:
        """The item that drives lifecycle decisions."""
        return self.items[0] if self.items else OrderItem()

    @property
    def order_value(self) -> float:
        """grand_total when present, else net_total."""
        if self.grand_total is not None:
            return self.grand_total
        return self.net_total or 0.0

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """Create from a stored document."""
        known = _known_fields(cls)
        kwargs: Dict[str, Any] = {}
        for name in known:
            if name in data:
                kwargs[name] = data[name]

        for name in _ORDER_DATETIME_FIELDS:
            if name in kwargs:
                kwargs[name] = parse_datetime(kwargs[name])
        if kwargs.get("created_at") is None:
            raise ValueError(f"Order {data.get('id')} has no valid created_at")

        kwargs["items"] = [OrderItem.from_dict(item) for item in data.get("items") or []]
        for name in ("discount_percent", "discount_amount", "store_credit_used"):
            kwargs[name] = float(data.get(name) or 0)
        for name in ("grand_total", "net_total"):
            if data.get(name) is not None:
                kwargs[name] = float(data[name])
        kwargs["is_gift_certificate"] = bool(data.get("is_gift_certificate"))
        kwargs["is_alteration"] = bool(data.get("is_alteration"))
        kwargs["status"] = data.get("status") or OrderStatus.PENDING.value
        kwargs["extra"] = {k: v for k, v in data.items() if k not in known}
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a document for persistence. `version` is not written."""
        data = dict(self.extra)
        for f in fields(self):
            if f.name in ("extra", "version", "items"):
                continue
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = format_datetime(value)
            elif isinstance(value, Enum):
                value = value.value
            data[f.name] = value
        data["items"] = [item.to_dict() for item in self.items]
        return data


# =============================================================================
# PROFILE
# =============================================================================

@dataclass
class Profile:
    """Customer profile holding the store-credit balance."""
    id: str
    store_credit: float = 0.0
    store_credit_expiry: Optional[str] = None
    version: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        known = _known_fields(cls)
        return cls(
            id=data["id"],
            store_credit=float(data.get("store_credit") or 0),
            store_credit_expiry=data.get("store_credit_expiry"),
            version=data.get("version"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "store_credit": self.store_credit,
            "store_credit_expiry": self.store_credit_expiry,
        })
        return data
