"""
In-memory order and profile stores.

Used for tests and local runs (ORDER_STORE_BACKEND=memory). Documents are
kept as plain dicts and copied on every read and write so callers never
share state with the store. Each document carries an integer version that
is bumped on every write.
"""

import copy
import logging
import threading
from typing import Any, Dict, List, Optional

from core.data import OrderQuery, OrderStore, ProfileStore
from core.domain import ensure_utc
from core.errors import ConflictError, OrderNotFoundError, ProfileNotFoundError

from .domain.models import Order, Profile

logger = logging.getLogger(__name__)


class _VersionedDocuments:
    """Dict of id -> (version, document) guarded by a lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._versions: Dict[str, int] = {}

    def get(self, id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            if id not in self._docs:
                return None
            doc = copy.deepcopy(self._docs[id])
            doc["version"] = str(self._versions[id])
            return doc

    def put(self, id: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._docs[id] = copy.deepcopy(doc)
            self._versions[id] = self._versions.get(id, 0) + 1
            stored = copy.deepcopy(self._docs[id])
            stored["version"] = str(self._versions[id])
            return stored

    def merge(self, id: str, patch: Dict[str, Any], expected_version: Optional[str]) -> Optional[Dict[str, Any]]:
        with self._lock:
            if id not in self._docs:
                return None
            current = str(self._versions[id])
            if expected_version is not None and expected_version != current:
                raise ConflictError(
                    f"{id} was modified concurrently (expected version {expected_version}, found {current})",
                    order_id=id,
                )
            doc = self._docs[id]
            doc.update(copy.deepcopy(patch))
            doc.pop("version", None)
            self._versions[id] += 1
            stored = copy.deepcopy(doc)
            stored["version"] = str(self._versions[id])
            return stored

    def values(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                dict(copy.deepcopy(doc), version=str(self._versions[id]))
                for id, doc in self._docs.items()
            ]

    def __contains__(self, id: str) -> bool:
        with self._lock:
            return id in self._docs


class InMemoryOrderStore(OrderStore[Order]):
    """Order store backed by a dict."""

    def __init__(self, orders: Optional[List[Order]] = None):
        self._documents = _VersionedDocuments()
        for order in orders or []:
            self.create(order)

    def fetch(self, id: str) -> Order:
        doc = self._documents.get(id)
        if doc is None:
            raise OrderNotFoundError(f"Order {id} not found", order_id=id)
        return Order.from_dict(doc)

    def write(self, id: str, patch: Dict[str, Any], expected_version: Optional[str] = None) -> Order:
        doc = self._documents.merge(id, patch, expected_version)
        if doc is None:
            raise OrderNotFoundError(f"Order {id} not found", order_id=id)
        logger.debug(f"Wrote order {id}: {sorted(patch)}")
        return Order.from_dict(doc)

    def create(self, entity: Order) -> Order:
        if entity.id in self._documents:
            raise ConflictError(f"Order {entity.id} already exists", order_id=entity.id)
        return Order.from_dict(self._documents.put(entity.id, entity.to_dict()))

    def query(self, query: Optional[OrderQuery] = None) -> List[Order]:
        query = query or OrderQuery()
        orders = [Order.from_dict(doc) for doc in self._documents.values()]

        def matches(order: Order) -> bool:
            if query.user_id is not None and order.user_id != query.user_id:
                return False
            if query.status is not None and order.status != query.status:
                return False
            if query.created_from is not None and order.created_at < ensure_utc(query.created_from):
                return False
            if query.created_to is not None and order.created_at > ensure_utc(query.created_to):
                return False
            if query.parent_order_id is not None and order.parent_order_id != query.parent_order_id:
                return False
            if query.is_alteration is not None and order.is_alteration != query.is_alteration:
                return False
            return True

        results = sorted(
            (o for o in orders if matches(o)),
            key=lambda o: o.created_at,
            reverse=query.order_desc,
        )
        return results[:query.limit]


class InMemoryProfileStore(ProfileStore[Profile]):
    """Profile store backed by a dict."""

    def __init__(self, profiles: Optional[List[Profile]] = None):
        self._documents = _VersionedDocuments()
        for profile in profiles or []:
            self.add(profile)

    def add(self, profile: Profile) -> Profile:
        return Profile.from_dict(self._documents.put(profile.id, profile.to_dict()))

    def fetch(self, id: str) -> Profile:
        doc = self._documents.get(id)
        if doc is None:
            raise ProfileNotFoundError(f"Profile {id} not found", user_id=id)
        return Profile.from_dict(doc)

    def write(self, id: str, patch: Dict[str, Any], expected_version: Optional[str] = None) -> Profile:
        doc = self._documents.merge(id, patch, expected_version)
        if doc is None:
            raise ProfileNotFoundError(f"Profile {id} not found", user_id=id)
        return Profile.from_dict(doc)
