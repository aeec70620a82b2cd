"""Settings management for Villa.

This module provides centralized configuration management for the Villa application
using Pydantic Settings with environment variable support and validation.

The settings are organized into logical groups:
- APISettings: Core API configuration
- SecuritySettings: Password hashing and session token settings
- MongoSettings: Document store connection settings

Example:
    Basic usage:
        from villa.core.settings import settings

        if settings.debug:
            print(f"Running {settings.project_name} v{settings.version}")

    Environment variables:
        API_DEBUG=true
        SECURITY_SECRET_KEY=your_secret_here
        MONGO_URI=mongodb://localhost:27017
"""

import os
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET = "change-me-in-production"


class APISettings(BaseSettings):
    """API server configuration settings.

    Attributes:
        version: Application version string.
        prefix: API URL prefix (e.g., '/api').
        project_name: Human-readable project name.
        debug: Enable debug mode with verbose logging.
        host: Server bind address.
        port: Server bind port (1-65535).
        cors_origins: List of allowed CORS origins.
        log_dir: Directory receiving the rotating JSON log files.

    Environment Variables:
        All attributes can be configured via environment variables with
        the 'API_' prefix (e.g., API_DEBUG, API_PORT).
    """

    version: str = Field(default="1.0.0", description="Application version string")
    prefix: str = Field(default="/api", description="API URL prefix")
    project_name: str = Field(
        default="Villa API", description="Human-readable project name"
    )
    debug: bool = Field(
        default=False, description="Enable debug mode with verbose logging"
    )
    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=4000, ge=1, le=65535, description="Server bind port")
    cors_origins: List[str] = Field(
        default=["*"], description="List of allowed CORS origins"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")

    model_config = SettingsConfigDict(env_prefix="API_")


class SecuritySettings(BaseSettings):
    """Password hashing and session token settings.

    Attributes:
        secret_key: Key used to sign session tokens.
        algorithm: JWT signing algorithm.
        access_token_expire_minutes: Session token lifetime in minutes.
        bcrypt_rounds: bcrypt work factor used when hashing passwords.

    Environment Variables:
        SECURITY_SECRET_KEY: Override default secret key.
        SECURITY_ALGORITHM: Override signing algorithm.
        SECURITY_ACCESS_TOKEN_EXPIRE_MINUTES: Token expiration time.
        SECURITY_BCRYPT_ROUNDS: bcrypt cost factor.

    Note:
        The default secret key must be changed in production environments.
        The validator will raise an error if it is used in non-debug mode.
    """

    secret_key: str = Field(
        default=DEFAULT_SECRET,
        description="Secret key for signing session tokens",
    )
    algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(
        default=60, ge=1, description="Session token expiration time in minutes"
    )
    bcrypt_rounds: int = Field(
        default=12, ge=4, le=31, description="bcrypt work factor"
    )

    @field_validator("secret_key")
    def validate_not_default(cls, v: str, info) -> str:
        """Validate that the production secret is not the default value.

        Raises:
            ValueError: If the default value is used in production.
        """
        if v == DEFAULT_SECRET and os.getenv("API_DEBUG", "true").lower() != "true":
            raise ValueError(f"{info.field_name} must be changed in production")
        return v

    model_config = SettingsConfigDict(env_prefix="SECURITY_")


class MongoSettings(BaseSettings):
    """Document store connection settings.

    Attributes:
        uri: MongoDB connection string.
        database: Name of the database holding the Islanders, Users and
            Posts collections.
        server_selection_timeout_ms: How long the driver waits for a
            reachable server before failing an operation.

    Environment Variables:
        MONGO_URI, MONGO_DATABASE, MONGO_SERVER_SELECTION_TIMEOUT_MS.
    """

    uri: str = Field(
        default="mongodb://localhost:27017", description="MongoDB connection string"
    )
    database: str = Field(default="villa", description="Database name")
    server_selection_timeout_ms: int = Field(
        default=5000, ge=1, description="Server selection timeout in milliseconds"
    )

    model_config = SettingsConfigDict(env_prefix="MONGO_")


class Settings(BaseSettings):
    """Composite settings container with nested configuration groups.

    Attributes:
        api: API server configuration settings.
        security: Password and token settings.
        mongo: Document store settings.

    Example:
        from villa.core.settings import settings

        print(f"Server running on {settings.api.host}:{settings.api.port}")
    """

    api: APISettings = Field(default_factory=APISettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    mongo: MongoSettings = Field(default_factory=MongoSettings)

    @property
    def debug(self) -> bool:
        """Get debug mode status from API settings."""
        return self.api.debug

    @property
    def version(self) -> str:
        """Get application version from API settings."""
        return self.api.version

    @property
    def prefix(self) -> str:
        """Get API URL prefix from API settings."""
        return self.api.prefix

    @property
    def project_name(self) -> str:
        """Get human-readable project name from API settings."""
        return self.api.project_name

    @property
    def cors_origins(self) -> List[str]:
        """Get CORS allowed origins from API settings."""
        return self.api.cors_origins

    @property
    def secret_key(self) -> str:
        """Get token signing key from security settings."""
        return self.security.secret_key

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with environment variables loaded.

    Returns:
        Fully configured Settings instance with all nested configurations
        loaded from environment variables and defaults.
    """
    from dotenv import load_dotenv

    load_dotenv()
    return Settings()


# Global settings instance for convenient access throughout the application
settings = get_settings()
