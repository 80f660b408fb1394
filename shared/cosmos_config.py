"""
Azure Cosmos DB Configuration.

Centralized configuration for all Cosmos DB settings used across the application.
This keeps the engine, the scripts and the store clients pointed at the same
containers.

Environment Variables (optional overrides):
    COSMOS_ENDPOINT - Override the default Cosmos DB endpoint
    COSMOS_DATABASE - Override the default database name
"""

import os

# =============================================================================
# COSMOS DB CONNECTION
# =============================================================================

COSMOS_ENDPOINT = os.getenv(
    "COSMOS_ENDPOINT",
    "https://localhost:8081/"
)

DATABASE_NAME = os.getenv(
    "COSMOS_DATABASE",
    "orders_db"
)

# =============================================================================
# ORDER DATA CONTAINERS
# =============================================================================

# Format: logical_name -> (container_name, partition_key_path)
ORDER_CONTAINERS = {
    "orders": ("Orders", "/id"),
    "profiles": ("Profiles", "/id"),
}

# Simple container name lookup (without partition key)
ORDER_CONTAINER_NAMES = {
    key: name for key, (name, _) in ORDER_CONTAINERS.items()
}

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_container_name(logical_name: str) -> str:
    """Get the actual container name for a logical container name."""
    if logical_name in ORDER_CONTAINER_NAMES:
        return ORDER_CONTAINER_NAMES[logical_name]
    return logical_name


def get_container_config(logical_name: str) -> tuple:
    """Get (container_name, partition_key_path) for a container."""
    if logical_name in ORDER_CONTAINERS:
        return ORDER_CONTAINERS[logical_name]
    raise ValueError(f"Unknown order container: {logical_name}")
