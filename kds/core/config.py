"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Every value can be overridden through the environment or a ``.env`` file:

    TAX_RATE=0.0825
    DATA_DIRECTORY=/var/lib/kds
    BUSINESS_TIMEZONE=America/Chicago

Usage:
    from kds.core.config import get_settings

    settings = get_settings()
    print(settings.orders_file)

Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing, verbose error details allowed
        PRODUCTION: Live restaurant deployment
        STAGING: Pre-production testing
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # API Configuration
        api_host: Host to bind the API server
        api_port: Port for the API server

        # Business Configuration
        restaurant_name: Display name returned by /api/meta
        tax_rate: Sales tax rate (decimal) applied to order subtotals
        business_timezone: IANA zone used for business dates (process local if unset)
        default_created_by: Actor label used when a request omits createdBy
        default_order_type: Category used when a request omits orderType

        # Storage
        data_directory: Directory holding the orders document
        orders_filename: Name of the JSON document inside data_directory
        storage_lock_timeout: Seconds to wait for the cross-process file lock
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Kitchen Display System",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=5050,
        description="API server port"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    restaurant_name: str = Field(
        default="Sabor a Mexico",
        description="Restaurant display name"
    )
    tax_rate: float = Field(
        default=0.09,
        description="Tax rate as decimal (9% = 0.09)"
    )
    business_timezone: Optional[str] = Field(
        default=None,
        description="IANA time zone for business dates; process local time when unset"
    )
    default_created_by: str = Field(
        default="FrontDesk",
        description="Actor label for orders that do not name one"
    )
    default_order_type: str = Field(
        default="Takeaway",
        description="Order category for orders that do not name one"
    )

    # ==========================================================================
    # FILE STORAGE
    # ==========================================================================

    data_directory: str = Field(
        default="data",
        description="Directory for data files"
    )
    orders_filename: str = Field(
        default="orders.json",
        description="JSON document holding every order"
    )
    storage_lock_timeout: int = Field(
        default=30,
        description="Seconds to wait for file lock"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("tax_rate")
    @classmethod
    def validate_tax_rate(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError("tax_rate must be a decimal between 0 and 1")
        return v

    @field_validator("business_timezone")
    @classmethod
    def validate_business_timezone(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {v}")
        return v

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def orders_file(self) -> Path:
        """Full path of the persisted orders document."""
        return Path(self.data_directory) / self.orders_filename

    @property
    def tzinfo(self) -> Optional[ZoneInfo]:
        """Business time zone, or None for process local time."""
        return ZoneInfo(self.business_timezone) if self.business_timezone else None


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once and stay
    consistent across the application lifecycle.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.tax_rate)
        0.09
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    # Set level based on debug mode
    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("filelock").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger("kds")

