"""
Order Lifecycle Use Case.

Decides which actions an order allows (edit, cancel, revoke, exchange,
return for store credit, refund, mark delivered, alteration) and applies
them against the order and profile stores.

Components:
- OrderLifecycleEngine: Entry points for predicates and actions
- CosmosOrderStore / CosmosProfileStore: Cosmos DB persistence
- InMemoryOrderStore / InMemoryProfileStore: Dict-backed stores for tests and local runs

Usage:
    from use_cases.orders import OrderLifecycleEngine, InMemoryOrderStore, InMemoryProfileStore
    from core.clock import SystemClock

    engine = OrderLifecycleEngine(InMemoryOrderStore(), InMemoryProfileStore(), SystemClock())
    engine.apply_cancel(order_id, "change_in_requirement")
"""

from use_cases.orders.engine import ActionAvailability, OrderLifecycleEngine, ReturnOutcome
from use_cases.orders.memory_store import InMemoryOrderStore, InMemoryProfileStore

__all__ = [
    "ActionAvailability",
    "OrderLifecycleEngine",
    "ReturnOutcome",
    "InMemoryOrderStore",
    "InMemoryProfileStore",
]
