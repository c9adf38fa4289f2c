"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, JWT secret, upload dir, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="shopaccounts",
        description="MongoDB database name"
    )

    # Session tokens
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Secret used to sign session tokens"
    )
    JWT_ALGORITHM: str = Field(
        default="HS256",
        description="Session token signing algorithm"
    )
    JWT_EXPIRES_DAYS: int = Field(
        default=90,
        description="Session token and cookie lifetime in days"
    )
    SESSION_COOKIE_NAME: str = Field(
        default="token",
        description="Name of the HTTP-only cookie carrying the session token"
    )

    # Uploads
    UPLOAD_DIR: str = Field(
        default="uploads",
        description="Directory where avatar uploads are stored"
    )
    DEFAULT_AVATAR: str = Field(
        default="defaultAvatar.png",
        description="Avatar reference used when no file is uploaded"
    )
    MAX_UPLOAD_SIZE_MB: int = Field(
        default=5,
        description="Maximum avatar upload size in megabytes"
    )

    # Roles
    ADMIN_ROLE: str = Field(
        default="Admin",
        description="Role required for the admin routes"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v2/user",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    @validator("SECRET_KEY")
    def validate_secret_key(cls, v, values):
        """Ensure secret key is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @validator("JWT_EXPIRES_DAYS")
    def validate_expiry(cls, v):
        if v < 1:
            raise ValueError("JWT_EXPIRES_DAYS must be at least 1")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.MONGODB_DB_NAME:
        errors.append("MONGODB_DB_NAME is required")

    if not settings.UPLOAD_DIR:
        errors.append("UPLOAD_DIR is required")

    # Production-specific validations
    if settings.is_production:
        if len(settings.SECRET_KEY) < 32:
            errors.append("SECRET_KEY must be at least 32 characters in production")
        if "*" in settings.CORS_ORIGINS:
            errors.append("CORS_ORIGINS cannot contain '*' when credentials are allowed")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
