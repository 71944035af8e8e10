"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

A single global configuration instance is shared throughout the application
lifecycle through ``get_settings()``.

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Security Considerations:
-----------------------
- Never commit .env files to version control
- Use a strong JWT_SECRET_KEY in production
- Change the seeded admin password immediately

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        database_url: SQLAlchemy database connection string
        jwt_secret_key: Secret key for JWT token signing
        jwt_algorithm: Algorithm for JWT signing (e.g., HS256)
        access_token_expire_minutes: Access token lifetime in minutes
        refresh_token_expire_days: Refresh token lifetime in days
        default_admin_email: Login of the seeded admin account
        default_admin_password: Password of the seeded admin account
        scan_cooldown_ms: Minimum gap between two accepted detections
        scanner_camera_index: Environment-facing camera device index
        scanner_symbologies: Comma separated list of enabled symbologies
        low_stock_threshold: Quantity under which a product is "low stock"
        low_stock_check_minutes: Interval of the low-stock monitor
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings()
        >>> print(settings.app_name)
        'Stockroom Inventory API'
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Stockroom Inventory API",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # DATABASE SETTINGS
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./storage/db/stockroom.db",
        description="SQLAlchemy database connection string"
    )

    # =========================================================================
    # JWT AUTHENTICATION SETTINGS
    # =========================================================================
    jwt_secret_key: str = Field(
        default="change-this-in-production",
        min_length=16,
        description="Secret key for JWT token signing"
    )

    jwt_algorithm: str = Field(
        default="HS256",
        description="Algorithm for JWT signing"
    )

    access_token_expire_minutes: int = Field(
        default=1440,
        ge=1,
        le=10080,  # Max 7 days
        description="Access token lifetime in minutes"
    )

    refresh_token_expire_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="Refresh token lifetime in days"
    )

    # =========================================================================
    # DEFAULT ADMIN SETTINGS
    # =========================================================================
    default_admin_email: str = Field(
        default="admin",
        min_length=3,
        max_length=120,
        description="Login of the seeded admin account"
    )

    default_admin_password: str = Field(
        default="adminpass",
        min_length=6,
        description="Password of the seeded admin account"
    )

    # =========================================================================
    # SCANNER SETTINGS
    # =========================================================================
    scan_cooldown_ms: int = Field(
        default=2000,
        ge=0,
        le=60000,
        description="Minimum milliseconds between two accepted detections"
    )

    scanner_camera_index: int = Field(
        default=0,
        ge=0,
        description="Environment-facing (rear) camera device index"
    )

    scanner_frame_width: int = Field(
        default=1280,
        ge=160,
        description="Requested capture width in pixels"
    )

    scanner_frame_height: int = Field(
        default=720,
        ge=120,
        description="Requested capture height in pixels"
    )

    scanner_symbologies: str = Field(
        default="code_128,ean_13,ean_8,upc_a,upc_e,code_39,codabar,i2of5,2of5",
        description="Comma separated list of enabled barcode symbologies"
    )

    scanner_queue_size: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Frames buffered per websocket scan session"
    )

    # =========================================================================
    # LOW STOCK SETTINGS
    # =========================================================================
    low_stock_threshold: int = Field(
        default=5,
        ge=0,
        description="Products with quantity below this are low on stock"
    )

    low_stock_alerts_enabled: bool = Field(
        default=True,
        description="Run the periodic low-stock monitor"
    )

    low_stock_check_minutes: int = Field(
        default=5,
        ge=1,
        le=1440,
        description="Low-stock monitor interval in minutes"
    )

    smtp_host: Optional[str] = Field(
        default=None,
        description="SMTP server for low-stock alert mails (disabled if unset)"
    )

    smtp_port: int = Field(
        default=587,
        ge=1,
        le=65535,
        description="SMTP server port"
    )

    smtp_username: Optional[str] = Field(default=None)

    smtp_password: Optional[str] = Field(default=None)

    alert_sender: str = Field(
        default="inventory@localhost",
        description="From address of low-stock alert mails"
    )

    alert_recipient: Optional[str] = Field(
        default=None,
        description="Admin address receiving low-stock alert mails"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Unknown values fall back to 'development'.
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, value: str) -> str:
        """
        Validate JWT algorithm is supported.

        Raises:
            ValueError: If algorithm is not supported
        """
        supported = {"HS256", "HS384", "HS512"}

        if value.upper() not in supported:
            raise ValueError(
                f"Unsupported JWT algorithm: {value}. "
                f"Supported: {', '.join(sorted(supported))}"
            )

        return value.upper()

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def symbology_list(self) -> List[str]:
        """Enabled symbology names, lowercased and stripped."""
        return [
            name.strip().lower()
            for name in self.scanner_symbologies.split(",")
            if name.strip()
        ]

    @property
    def smtp_enabled(self) -> bool:
        """Low-stock mails are sent only when a server and recipient are set."""
        return bool(self.smtp_host and self.alert_recipient)

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    @property
    def access_token_expire_seconds(self) -> int:
        """Get access token expiry in seconds."""
        return self.access_token_expire_minutes * 60

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    def get_database_path(self) -> Optional[Path]:
        """
        Extract database file path for SQLite databases.

        Returns:
            Path to database file, or None for in-memory and non-SQLite databases
        """
        if self.database_url.startswith("sqlite:///"):
            db_path = self.database_url.replace("sqlite:///", "")
            if db_path.startswith("./"):
                db_path = db_path[2:]
            return Path(db_path) if db_path else None
        return None

    def ensure_directories(self) -> None:
        """Create the SQLite database directory if needed."""
        db_path = self.get_database_path()
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    Uses lru_cache to ensure only one Settings instance is created
    throughout the application lifecycle.

    Returns:
        Global Settings instance
    """
    settings = Settings()
    settings.ensure_directories()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
