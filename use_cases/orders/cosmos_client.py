"""
Cosmos DB Stores for the Order Lifecycle Use Case.

Provides order and profile persistence on Azure Cosmos DB.
Uses DefaultAzureCredential for flexible authentication and the document
`_etag` as the optimistic-concurrency version.

SDK exceptions never leave this module; they are translated to core.errors:
    404 -> OrderNotFoundError / ProfileNotFoundError
    409 / 412 -> ConflictError
    408 / 429 / 5xx, transport and credential failures -> StoreUnavailableError
"""

import logging
from typing import Any, Dict, List, Optional

from azure.core import MatchConditions
from azure.core.exceptions import AzureError
from azure.cosmos import CosmosClient
from azure.cosmos.exceptions import (
    CosmosAccessConditionFailedError,
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)
from azure.identity import DefaultAzureCredential

from core.data import OrderQuery, OrderStore, ProfileStore
from core.domain import format_datetime
from core.errors import (
    ConflictError,
    OrderLifecycleError,
    OrderNotFoundError,
    ProfileNotFoundError,
    StoreUnavailableError,
)

# Import shared configuration
from shared.cosmos_config import (
    COSMOS_ENDPOINT,
    DATABASE_NAME,
    get_container_name,
)

from .domain.models import Order, Profile

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class CosmosDatabase:
    """Database handle with cached container clients."""

    def __init__(self, endpoint: str = COSMOS_ENDPOINT, database_name: str = DATABASE_NAME, database=None):
        """
        Initialize the Cosmos DB client.

        Args:
            endpoint: Cosmos DB endpoint URL
            database_name: Database name
            database: An existing database client (skips credential setup)
        """
        if database is None:
            logger.info("Initializing Order Cosmos DB client...")
            self._credential = DefaultAzureCredential(
                exclude_interactive_browser_credential=False,
                exclude_shared_token_cache_credential=False,
            )
            self._client = CosmosClient(endpoint, credential=self._credential)
            database = self._client.get_database_client(database_name)
            logger.info(f"Connected to Cosmos DB: {database_name}")
        self._database = database
        self._containers = {}

    def container(self, name: str):
        """Get a container client, caching for reuse."""
        if name not in self._containers:
            container_name = get_container_name(name)
            self._containers[name] = self._database.get_container_client(container_name)
        return self._containers[name]


class _CosmosDocuments:
    """Keyed reads and etag-guarded merges on one container (partition key /id)."""

    def __init__(self, database: CosmosDatabase, logical_name: str, not_found):
        self._database = database
        self._logical_name = logical_name
        self._not_found = not_found

    @property
    def container(self):
        return self._database.container(self._logical_name)

    def _unavailable(self, operation: str, id: Optional[str], error: Exception) -> StoreUnavailableError:
        logger.error(f"Cosmos DB {operation} on {self._logical_name}/{id} failed: {error}")
        return StoreUnavailableError(
            f"{self._logical_name} store is unavailable ({operation}): {error}",
            order_id=id,
        )

    def _translate(self, operation: str, id: Optional[str], error: CosmosHttpResponseError) -> OrderLifecycleError:
        status = getattr(error, "status_code", None)
        if status in RETRYABLE_STATUS_CODES:
            return self._unavailable(operation, id, error)
        if status in (409, 412):
            return ConflictError(f"{self._logical_name}/{id} was modified concurrently", order_id=id)
        logger.error(f"Cosmos DB {operation} on {self._logical_name}/{id} failed with status {status}: {error}")
        return OrderLifecycleError(f"{self._logical_name} {operation} failed (status {status})", order_id=id)

    def read(self, id: str) -> Dict[str, Any]:
        try:
            return self.container.read_item(item=id, partition_key=id)
        except CosmosResourceNotFoundError:
            raise self._not_found(id)
        except CosmosHttpResponseError as e:
            raise self._translate("read", id, e)
        except AzureError as e:
            # Transport, credential and other client-side failures
            raise self._unavailable("read", id, e)

    def merge(self, id: str, patch: Dict[str, Any], expected_version: Optional[str]) -> Dict[str, Any]:
        doc = self.read(id)
        etag = doc.get("_etag")
        if expected_version is not None and expected_version != etag:
            raise ConflictError(
                f"{self._logical_name}/{id} was modified concurrently",
                order_id=id,
            )
        doc.update(patch)
        doc.pop("version", None)
        try:
            return self.container.replace_item(
                item=id,
                body=doc,
                etag=etag,
                match_condition=MatchConditions.IfNotModified,
            )
        except CosmosAccessConditionFailedError:
            raise ConflictError(f"{self._logical_name}/{id} was modified concurrently", order_id=id)
        except CosmosResourceNotFoundError:
            raise self._not_found(id)
        except CosmosHttpResponseError as e:
            raise self._translate("replace", id, e)
        except AzureError as e:
            # Transport, credential and other client-side failures
            raise self._unavailable("replace", id, e)

    def create(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return self.container.create_item(body=doc)
        except CosmosResourceExistsError:
            raise ConflictError(f"{self._logical_name}/{doc['id']} already exists", order_id=doc["id"])
        except CosmosHttpResponseError as e:
            raise self._translate("create", doc.get("id"), e)
        except AzureError as e:
            # Transport, credential and other client-side failures
            raise self._unavailable("create", doc.get("id"), e)

    def query(self, sql: str, parameters: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        try:
            return list(self.container.query_items(sql, parameters=parameters, enable_cross_partition_query=True))
        except CosmosHttpResponseError as e:
            raise self._translate("query", None, e)
        except AzureError as e:
            # Transport, credential and other client-side failures
            raise self._unavailable("query", None, e)


def _with_version(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = dict(doc)
    doc["version"] = doc.get("_etag")
    return doc


def build_order_query(query: OrderQuery):
    """Translate an OrderQuery into Cosmos SQL and parameters."""
    clauses = []
    params: List[Dict[str, Any]] = []

    if query.user_id is not None:
        clauses.append("c.user_id = @user_id")
        params.append({"name": "@user_id", "value": query.user_id})
    if query.status is not None:
        clauses.append("c.status = @status")
        params.append({"name": "@status", "value": query.status})
    if query.created_from is not None:
        clauses.append("c.created_at >= @created_from")
        params.append({"name": "@created_from", "value": format_datetime(query.created_from)})
    if query.created_to is not None:
        clauses.append("c.created_at <= @created_to")
        params.append({"name": "@created_to", "value": format_datetime(query.created_to)})
    if query.parent_order_id is not None:
        clauses.append("c.parent_order_id = @parent_order_id")
        params.append({"name": "@parent_order_id", "value": query.parent_order_id})
    if query.is_alteration is not None:
        if query.is_alteration:
            clauses.append("c.is_alteration = true")
        else:
            clauses.append("(NOT IS_DEFINED(c.is_alteration) OR c.is_alteration = false)")

    sql = f"SELECT TOP {int(query.limit)} * FROM c"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += f" ORDER BY c.created_at {'DESC' if query.order_desc else 'ASC'}"
    return sql, params


class CosmosOrderStore(OrderStore[Order]):
    """Orders container access."""

    def __init__(self, database: CosmosDatabase):
        self._documents = _CosmosDocuments(
            database,
            "orders",
            lambda id: OrderNotFoundError(f"Order {id} not found", order_id=id),
        )

    def fetch(self, id: str) -> Order:
        return Order.from_dict(_with_version(self._documents.read(id)))

    def write(self, id: str, patch: Dict[str, Any], expected_version: Optional[str] = None) -> Order:
        return Order.from_dict(_with_version(self._documents.merge(id, patch, expected_version)))

    def create(self, entity: Order) -> Order:
        return Order.from_dict(_with_version(self._documents.create(entity.to_dict())))

    def query(self, query: Optional[OrderQuery] = None) -> List[Order]:
        sql, params = build_order_query(query or OrderQuery())
        return [Order.from_dict(_with_version(doc)) for doc in self._documents.query(sql, params)]


class CosmosProfileStore(ProfileStore[Profile]):
    """Profiles container access."""

    def __init__(self, database: CosmosDatabase):
        self._documents = _CosmosDocuments(
            database,
            "profiles",
            lambda id: ProfileNotFoundError(f"Profile {id} not found", user_id=id),
        )

    def fetch(self, id: str) -> Profile:
        return Profile.from_dict(_with_version(self._documents.read(id)))

    def write(self, id: str, patch: Dict[str, Any], expected_version: Optional[str] = None) -> Profile:
        return Profile.from_dict(_with_version(self._documents.merge(id, patch, expected_version)))
