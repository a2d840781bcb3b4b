"""
Configuration Manager
--------------------
Centralized configuration management using Pydantic Settings.
All application settings are loaded from environment variables with validation.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class ApplicationSettings(BaseSettings):
    """Main application configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application metadata
    app_name: str = Field(
        default="Heron Wellnest Authentication API", description="Application name"
    )
    app_version: str = Field(default="1.0.0", description="Application version")
    app_env: str = Field(
        default="development",
        description="Runtime environment: development, production, or test",
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # FastAPI server configuration
    fastapi_host: str = Field(default="0.0.0.0", description="FastAPI host")
    fastapi_port: int = Field(default=8080, description="FastAPI port")

    # PostgreSQL database configuration
    database_host: str = Field(default="localhost", description="PostgreSQL host")
    database_port: int = Field(default=5432, description="PostgreSQL port")
    database_user: str = Field(default="myuser", description="PostgreSQL user")
    database_password: str = Field(
        default="mypassword", description="PostgreSQL password"
    )
    database_name: str = Field(default="mydb", description="PostgreSQL database name")
    database_pool_size: int = Field(default=20, description="Connection pool size")
    database_max_overflow: int = Field(
        default=10, description="Max overflow connections"
    )
    database_auto_create_schema: bool = Field(
        default=True, description="Create missing tables at startup"
    )

    # JWT configuration
    jwt_algorithm: str = Field(default="HS256", description="HS256 or RS256")
    jwt_issuer: str = Field(
        default="heron-wellnest-auth-api", description="Token issuer (iss)"
    )
    jwt_audience: str = Field(
        default="heron-wellnest-clients", description="Token audience (aud)"
    )
    jwt_access_token_expire_minutes: int = Field(
        default=15, description="Access token lifetime in minutes"
    )
    jwt_refresh_token_expire_days: int = Field(
        default=7, description="Refresh token lifetime in days"
    )
    jwt_secret: Optional[str] = Field(
        default=None, description="Shared secret used for HS256"
    )
    jwt_private_key: Optional[str] = Field(
        default=None, description="RS256 private key PEM or path to a PEM file"
    )
    jwt_public_key: Optional[str] = Field(
        default=None, description="RS256 public key PEM or path to a PEM file"
    )

    # Google identity configuration
    google_client_id: str = Field(
        default="", description="OAuth client id expected as Google ID token audience"
    )
    google_email_domain: str = Field(
        default="umak.edu.ph", description="Hosted domain (hd) students must belong to"
    )
    google_certs_url: str = Field(
        default="https://www.googleapis.com/oauth2/v3/certs",
        description="Google JWKS endpoint",
    )
    google_request_timeout_seconds: float = Field(
        default=5.0, description="Timeout for fetching Google signing keys"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is acceptable."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate runtime environment name."""
        valid_envs = ["development", "production", "test"]
        v_lower = v.lower()
        if v_lower not in valid_envs:
            raise ValueError(f"App env must be one of {valid_envs}")
        return v_lower

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only HS256 and RS256 are supported."""
        v_upper = v.upper()
        if v_upper not in ("HS256", "RS256"):
            raise ValueError("JWT algorithm must be HS256 or RS256")
        return v_upper

    @field_validator("jwt_access_token_expire_minutes", "jwt_refresh_token_expire_days")
    @classmethod
    def validate_positive_ttl(cls, v: int) -> int:
        """Token lifetimes must be positive."""
        if v <= 0:
            raise ValueError("Token lifetime must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def database_url(self) -> str:
        """Construct async PostgreSQL database URL."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )


# Global settings instance
settings = ApplicationSettings()
