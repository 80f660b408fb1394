"""
Data Layer Base Classes.

The data layer provides the repository interfaces the engine talks to.
This abstracts away the specific data store (Cosmos DB, in-memory, ...)
and provides a clean interface for the domain layer.

Key principles:
- Stores handle reads and partial-field writes only
- No business logic in stores
- Return domain objects, not raw dicts
- Optimistic concurrency through an opaque version token
- Backend failures surface as core.errors types, never SDK exceptions
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar
from datetime import datetime

# Type variable for entity types
T = TypeVar("T")


@dataclass
class OrderQuery:
    """Filter for order queries. Unset fields do not constrain the result."""
    user_id: Optional[str] = None
    status: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    parent_order_id: Optional[str] = None
    is_alteration: Optional[bool] = None
    limit: int = 100
    order_desc: bool = True


class Store(ABC, Generic[T]):
    """
    Abstract base class for keyed document stores.

    Type parameter T represents the entity type this store manages.
    """

    @abstractmethod
    def fetch(self, id: str) -> T:
        """
        Get an entity by its ID.

        Raises:
            OrderNotFoundError / ProfileNotFoundError: no such entity
            StoreUnavailableError: the backend could not be reached
        """
        pass

    @abstractmethod
    def write(self, id: str, patch: Dict[str, Any], expected_version: Optional[str] = None) -> T:
        """
        Merge `patch` into the stored entity (field-level, last write wins).

        Args:
            id: The entity's unique identifier
            patch: Partial document of fields to overwrite
            expected_version: When given, the write is rejected with
                ConflictError unless the stored version still matches

        Returns:
            The entity as stored after the write, with its new version
        """
        pass


class OrderStore(Store[T]):
    """Order persistence: keyed access plus filtered queries."""

    @abstractmethod
    def query(self, query: Optional[OrderQuery] = None) -> List[T]:
        """Find orders matching the filter, newest first by default."""
        pass

    @abstractmethod
    def create(self, entity: T) -> T:
        """Insert a new order. Raises ConflictError if the id already exists."""
        pass


class ProfileStore(Store[T]):
    """Customer profile persistence (store-credit balance)."""
