"""
Error Taxonomy for Order Lifecycle Operations.

Every error is scoped to a single order id. Callers map each type to a
specific message at the point of action:

- ValidationError: missing/invalid input, user-correctable
- PermissionDeniedError: outside the eligibility window or wrong status, re-fetch and re-render
- StateError: transition from a terminal/incompatible status, stale client state
- ConflictError: concurrent modification detected
- StoreUnavailableError: transient infrastructure failure, retryable by the caller
- PartialApplyError: order written but the follow-up profile write failed
"""

from typing import Any, List, Optional


class OrderLifecycleError(Exception):
    """Base class for all lifecycle errors."""

    def __init__(self, message: str, order_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.order_id = order_id


class ValidationError(OrderLifecycleError):
    """Missing or invalid reason/field supplied by the caller."""

    def __init__(self, message: str, order_id: Optional[str] = None, errors: Optional[List[Any]] = None):
        super().__init__(message, order_id)
        self.errors = errors or []


class PermissionDeniedError(OrderLifecycleError):
    """Action attempted outside its eligibility window or from the wrong status."""

    def __init__(self, message: str, order_id: Optional[str] = None, action: Optional[str] = None):
        super().__init__(message, order_id)
        self.action = action


class StateError(OrderLifecycleError):
    """Transition attempted from a terminal or incompatible status."""

    def __init__(self, message: str, order_id: Optional[str] = None, status: Optional[str] = None):
        super().__init__(message, order_id)
        self.status = status


class ConflictError(OrderLifecycleError):
    """The record changed between read and write."""


class StoreUnavailableError(OrderLifecycleError):
    """The backing store could not be reached. Safe to retry with backoff."""

    retryable = True


class OrderNotFoundError(OrderLifecycleError):
    """No order exists with the given id."""


class ProfileNotFoundError(OrderLifecycleError):
    """No customer profile exists with the given id."""

    def __init__(self, message: str, user_id: Optional[str] = None):
        super().__init__(message)
        self.user_id = user_id


class PartialApplyError(OrderLifecycleError):
    """
    The order status was written but the profile credit write was not.

    Money-bearing: needs reconciliation. `order` holds the order as written,
    `cause` the underlying failure.
    """

    def __init__(self, message: str, order_id: Optional[str] = None, order: Any = None, cause: Optional[BaseException] = None):
        super().__init__(message, order_id)
        self.order = order
        self.cause = cause
