"""
Application bootstrap for the Order Lifecycle service.

Configures logging and builds an OrderLifecycleEngine wired to the
configured store backend. Callers (API handlers, scripts) get their engine
from `get_engine()`.
"""

import logging
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from config import Settings, settings

from core.clock import Clock, SystemClock
from use_cases.orders.domain.policies import LifecycleWindows
from use_cases.orders.engine import OrderLifecycleEngine

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None):
    """Root logging setup; Azure SDK loggers are kept at WARNING."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Reduce Azure SDK logging verbosity
    logging.getLogger("azure.cosmos").setLevel(logging.WARNING)
    logging.getLogger("azure.core").setLevel(logging.WARNING)
    logging.getLogger("azure.identity").setLevel(logging.WARNING)


def build_stores(app_settings: Settings):
    """(order_store, profile_store) for the configured backend."""
    backend = app_settings.store_backend.lower()

    if backend == "memory":
        from use_cases.orders.memory_store import InMemoryOrderStore, InMemoryProfileStore

        logger.info("Using in-memory order and profile stores")
        return InMemoryOrderStore(), InMemoryProfileStore()

    if backend == "cosmos":
        from shared.cosmos_config import COSMOS_ENDPOINT, DATABASE_NAME
        from use_cases.orders.cosmos_client import CosmosDatabase, CosmosOrderStore, CosmosProfileStore

        database = CosmosDatabase(
            endpoint=app_settings.cosmos_endpoint or COSMOS_ENDPOINT,
            database_name=app_settings.cosmos_database or DATABASE_NAME,
        )
        return CosmosOrderStore(database), CosmosProfileStore(database)

    raise ValueError(f"Unknown store backend: {app_settings.store_backend}")


def build_engine(app_settings: Settings = settings, clock: Optional[Clock] = None) -> OrderLifecycleEngine:
    """Create an engine from settings."""
    orders, profiles = build_stores(app_settings)
    windows = LifecycleWindows(
        edit_hours=app_settings.edit_window_hours,
        cancel_hours=app_settings.cancel_window_hours,
        post_delivery_hours=app_settings.post_delivery_window_hours,
    )
    engine = OrderLifecycleEngine(
        orders=orders,
        profiles=profiles,
        clock=clock or SystemClock(),
        windows=windows,
        store_credit_validity_months=app_settings.store_credit_validity_months,
    )
    logger.info(
        f"Order lifecycle engine ready (backend={app_settings.store_backend}, "
        f"edit={windows.edit_hours:g}h, cancel={windows.cancel_hours:g}h, "
        f"post-delivery={windows.post_delivery_hours:g}h)"
    )
    return engine


# Global instance
_engine: Optional[OrderLifecycleEngine] = None


def get_engine() -> OrderLifecycleEngine:
    """Get the singleton engine instance."""
    global _engine
    if _engine is None:
        configure_logging()
        _engine = build_engine()
    return _engine
