"""
Shared modules for the Order Lifecycle application.

This package contains shared configuration used by the store clients and scripts.
"""

from shared.cosmos_config import (
    COSMOS_ENDPOINT,
    DATABASE_NAME,
    ORDER_CONTAINERS,
    ORDER_CONTAINER_NAMES,
)

__all__ = [
    "COSMOS_ENDPOINT",
    "DATABASE_NAME",
    "ORDER_CONTAINERS",
    "ORDER_CONTAINER_NAMES",
]
