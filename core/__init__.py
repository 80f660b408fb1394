"""
Core Framework for the Order Lifecycle service.

This module provides the base classes and interfaces the order use case
builds on. The layered architecture keeps:

1. Domain Layer - Pure business rules, no I/O
2. Data Layer - Store interfaces for order and profile persistence
3. Orchestration - The engine wiring stores, clock and locks together
"""

from .domain import DomainEvent, DomainService, PolicyDecision, PolicyEngine, PolicyResult
from .data import OrderQuery, OrderStore, ProfileStore
from .clock import Clock, FixedClock, SystemClock
from .locking import KeyedLock
from .errors import (
    ConflictError,
    OrderLifecycleError,
    OrderNotFoundError,
    PartialApplyError,
    PermissionDeniedError,
    ProfileNotFoundError,
    StateError,
    StoreUnavailableError,
    ValidationError,
)

__all__ = [
    # Domain
    "DomainEvent",
    "DomainService",
    "PolicyDecision",
    "PolicyEngine",
    "PolicyResult",
    # Data
    "OrderQuery",
    "OrderStore",
    "ProfileStore",
    # Time and concurrency
    "Clock",
    "FixedClock",
    "SystemClock",
    "KeyedLock",
    # Errors
    "ConflictError",
    "OrderLifecycleError",
    "OrderNotFoundError",
    "PartialApplyError",
    "PermissionDeniedError",
    "ProfileNotFoundError",
    "StateError",
    "StoreUnavailableError",
    "ValidationError",
]
