"""
Configuration module for the Order Lifecycle service.
Loads settings from environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Store Configuration
    store_backend: str = Field(
        default="cosmos",
        alias="ORDER_STORE_BACKEND",
        description="Order/profile store backend: 'cosmos' or 'memory'"
    )
    cosmos_endpoint: str = Field(
        default="",
        alias="COSMOS_ENDPOINT",
        description="Cosmos DB endpoint URL (falls back to shared.cosmos_config)"
    )
    cosmos_database: str = Field(
        default="",
        alias="COSMOS_DATABASE",
        description="Cosmos DB database name (falls back to shared.cosmos_config)"
    )

    # Lifecycle windows (hours)
    edit_window_hours: float = Field(
        default=36,
        alias="EDIT_WINDOW_HOURS",
        description="Hours after creation during which a pending order can be edited"
    )
    cancel_window_hours: float = Field(
        default=24,
        alias="CANCEL_WINDOW_HOURS",
        description="Hours after creation during which the customer can cancel"
    )
    post_delivery_window_hours: float = Field(
        default=72,
        alias="POST_DELIVERY_WINDOW_HOURS",
        description="Hours after delivery during which exchange/return/refund are open"
    )
    store_credit_validity_months: int = Field(
        default=12,
        alias="STORE_CREDIT_VALIDITY_MONTHS",
        description="Months of validity granted to store credit on each return"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()
