"""
Cosmos DB Data Population Script for the Order Lifecycle service.

Creates the order and profile containers if missing and upserts a set of
demo orders whose timestamps are relative to "now", so every lifecycle
window (edit, cancel, revoke, post-delivery) has an order sitting in it.

Usage:
    python scripts/populate_cosmosdb.py

Environment:
    COSMOS_ENDPOINT - Override the default Cosmos DB endpoint
    COSMOS_DATABASE - Override the default database name

Containers:
    - Orders    (partition: /id)
    - Profiles  (partition: /id)
"""

import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from azure.cosmos import CosmosClient, PartitionKey
from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.identity import AzureCliCredential

# Import configuration from shared module
from shared.cosmos_config import (
    COSMOS_ENDPOINT,
    DATABASE_NAME,
    ORDER_CONTAINERS,
    get_container_config,
)
from use_cases.orders.domain.models import Order, OrderItem, OrderStatus, Profile

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


# =============================================================================
# DATA PREPARATION
# =============================================================================

def _order(now: datetime, number: int, created_hours_ago: float, **fields) -> Dict[str, Any]:
    order = Order(
        id=f"ORD-DEMO-{number:03d}",
        order_no=f"SO-{9000 + number}",
        created_at=now - timedelta(hours=created_hours_ago),
        user_id="CUST-DEMO-1",
        grand_total=12500.0,
        net_total=12500.0,
        order_type="Standard",
        delivery_country="India",
        delivery_name="Demo Customer",
        delivery_address="221 Linking Road",
        delivery_city="Mumbai",
        delivery_state="Maharashtra",
        delivery_pincode="400050",
        mode_of_delivery="Home Delivery",
        items=[OrderItem(
            product_name="Chanderi Kurta Set",
            size="M",
            measurements={"bust": 36, "waist": 30},
            price=12500.0,
        )],
    )
    for name, value in fields.items():
        setattr(order, name, value)
    return order.to_dict()


def prepare_orders(now: datetime) -> List[Dict[str, Any]]:
    """Demo orders, one per lifecycle situation."""
    delivered = OrderStatus.DELIVERED.value
    return [
        # Editable and cancellable
        _order(now, 1, 2),
        # Editable, cancel window closed, revocable
        _order(now, 2, 30),
        # Fresh delivery, exchange/return/refund open
        _order(now, 3, 120, status=delivered, delivered_at=now - timedelta(hours=6)),
        # Delivered but customized: refund only
        _order(
            now, 4, 120, status=delivered, delivered_at=now - timedelta(hours=6),
            items=[OrderItem(product_name="Bridal Lehenga", size="S", extras=[{"name": "zardozi"}], price=48000.0)],
            grand_total=48000.0,
        ),
        # Delivered, post-delivery window closed
        _order(now, 5, 400, status=delivered, delivered_at=now - timedelta(hours=100)),
        # International delivery
        _order(now, 6, 120, status=delivered, delivered_at=now - timedelta(hours=6), delivery_country="United Kingdom"),
    ]


def prepare_profiles() -> List[Dict[str, Any]]:
    """Demo customer profiles."""
    return [
        Profile(id="CUST-DEMO-1", store_credit=0.0).to_dict(),
    ]


# =============================================================================
# COSMOS DB OPERATIONS
# =============================================================================

def upsert_items(container, items: List[Dict[str, Any]]) -> int:
    """Upsert items into a container."""
    count = 0
    for item in items:
        try:
            container.upsert_item(item)
            count += 1
        except CosmosHttpResponseError as e:
            logger.error(f"Failed to upsert item {item.get('id')}: {e}")
    return count


def main():
    """Main function to populate Cosmos DB with demo order data."""
    logger.info("=" * 60)
    logger.info("Order Lifecycle - Cosmos DB Population Script")
    logger.info("=" * 60)
    logger.info(f"Endpoint: {COSMOS_ENDPOINT}")
    logger.info(f"Database: {DATABASE_NAME}")
    logger.info("Authentication: AzureCliCredential")
    logger.info("=" * 60)

    logger.info("\nAuthenticating with Azure CLI...")
    credential = AzureCliCredential()

    client = CosmosClient(COSMOS_ENDPOINT, credential=credential)

    logger.info(f"Connecting to database '{DATABASE_NAME}'...")
    try:
        database = client.get_database_client(DATABASE_NAME)
        database.read()
        logger.info(f"Database '{DATABASE_NAME}' found")
    except CosmosHttpResponseError as e:
        logger.error(f"Database '{DATABASE_NAME}' not found or access denied: {e}")
        logger.error("Please create the database first or check RBAC permissions")
        return 1

    now = datetime.now(timezone.utc)
    data_sets = [
        ("orders", prepare_orders(now)),
        ("profiles", prepare_profiles()),
    ]

    logger.info("\n--- Populating Order Data ---")
    total_items = 0
    for key, items in data_sets:
        container_name, partition_key = get_container_config(key)
        container = database.create_container_if_not_exists(
            id=container_name,
            partition_key=PartitionKey(path=partition_key),
        )
        count = upsert_items(container, items)
        logger.info(f"  {container_name}: {count} items")
        total_items += count

    logger.info("\n" + "=" * 60)
    logger.info(f"COMPLETE: {total_items} total items populated across {len(ORDER_CONTAINERS)} containers")
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
