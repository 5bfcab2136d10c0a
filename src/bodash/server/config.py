"""
bodash Server Configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings

from bodash.api.client import DEFAULT_BASE_URL
from bodash.db.connection import DEFAULT_DATABASE_URL


class ServerConfig(BaseSettings):
    """Server configuration from environment."""

    # Database
    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        description="Database connection URL",
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # Optimization API
    optimizer_api_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the optimization API",
    )
    optimizer_api_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Optimization API request timeout in seconds",
    )

    # Authentication
    user_header: str = Field(
        default="X-User-Id",
        description="Header carrying the authenticated user ID",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    model_config = {"env_prefix": "BODASH_"}
