"""
Use Cases Package.

Each use case is a self-contained module following the layered
architecture defined in core/:
- domain/: Pure business logic (models, policies, services)
- store modules: Persistence behind the core.data interfaces
- engine.py: Orchestration of stores, clock and locks

Available use cases:
- orders: Order lifecycle and return eligibility
"""

from use_cases.orders import OrderLifecycleEngine

__all__ = [
    "OrderLifecycleEngine",
]
