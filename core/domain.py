"""
Domain Layer Base Classes.

Base classes for the order lifecycle rules. Nothing in this
module reads the clock or touches a store: "now" and the order are always
passed in, so every rule can be evaluated for any point in time.

Also holds the date helpers the policies share.
"""

from abc import ABC, abstractmethod
from calendar import monthrange
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum


class PolicyResult(Enum):
    """Result of a policy evaluation."""
    APPROVED = "approved"
    DENIED = "denied"


@dataclass
class PolicyDecision:
    """
    The outcome of a policy evaluation.

    Attributes:
        result: The policy decision result
        reason: Human-readable explanation
        conditions: Any conditions attached to the decision
        metadata: Additional context for the decision
    """
    result: PolicyResult
    reason: str
    conditions: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_approved(self) -> bool:
        return self.result == PolicyResult.APPROVED

    @property
    def is_denied(self) -> bool:
        return self.result == PolicyResult.DENIED

    @classmethod
    def approve(cls, reason: str, **metadata) -> "PolicyDecision":
        return cls(result=PolicyResult.APPROVED, reason=reason, metadata=metadata)

    @classmethod
    def deny(cls, reason: str, **metadata) -> "PolicyDecision":
        return cls(result=PolicyResult.DENIED, reason=reason, metadata=metadata)


@dataclass
class DomainEvent:
    """
    Something that happened to an order.

    Emitted by the engine after every committed transition and handed to
    the configured event sink (audit log, notifications).
    """
    event_type: str
    order_id: str
    occurred_at: datetime
    data: Dict[str, Any] = field(default_factory=dict)


class PolicyEngine(ABC):
    """
    Abstract base class for policy engines.

    A PolicyEngine encapsulates a set of business rules that can be
    evaluated against a context to produce a decision.

    Example:
        class CancelWindowPolicy(PolicyEngine):
            def evaluate(self, context: dict) -> PolicyDecision:
                if hours_between(context["order"].created_at, context["now"]) > 24:
                    return PolicyDecision.deny("Cancellation window has closed")
                return PolicyDecision.approve("Order can be cancelled")
    """

    @abstractmethod
    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        """
        Evaluate the policy against the given context.

        Args:
            context: Dictionary containing all data needed for evaluation

        Returns:
            PolicyDecision with the result and explanation
        """
        pass

    def explain(self, context: Dict[str, Any]) -> str:
        """
        Provide a human-readable explanation of how the policy would be applied.
        """
        decision = self.evaluate(context)
        return decision.reason


class DomainService(ABC):
    """
    Abstract base class for domain services.

    A service combines several policies and validators into one decision and
    returns the resulting domain object (a transition, a credit, a new order).
    It performs no I/O.
    """

    @abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """
        Run the service. Raises core.errors types when the request is refused.
        """
        pass


@dataclass
class FieldError:
    """A validation problem with field and message."""
    field: str
    message: str
    code: str = "invalid"

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class Validator(ABC):
    """
    Abstract base class for validators.

    Validators collect every problem with a request instead of stopping at the
    first, so a form can show them all at once.
    """

    @abstractmethod
    def validate(self, data: Dict[str, Any]) -> List[FieldError]:
        """
        Validate the data and return any errors.

        Args:
            data: The data to validate

        Returns:
            List of FieldError objects (empty if valid)
        """
        pass

    def is_valid(self, data: Dict[str, Any]) -> bool:
        """Check if data is valid."""
        return len(self.validate(data)) == 0


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def hours_between(start: datetime, end: datetime) -> float:
    """Fractional hours from start to end (negative if end is earlier)."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO format date string (or pass a datetime through) safely."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        if isinstance(value, str) and value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(value))
    except (ValueError, TypeError):
        return None


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """ISO format for storage, None passes through."""
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
