"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Gateway settings loaded from environment variables."""

    # HTTP server
    host: str = "0.0.0.0"
    port: int = Field(default=3001, description="Listen port (env PORT)")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    max_body_bytes: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Largest accepted /mcp request body in bytes",
    )

    # MCP server identity
    server_name: str = "commerce-mcp"

    # Remote commerce API
    commerce_api_url: str = Field(
        default="https://localhost:9002/occ/v2",
        description="Commerce REST API base URL",
    )
    commerce_user_agent: str = "commerce-mcp/1.0"
    commerce_verify_tls: bool = True
    commerce_timeout: float = Field(default=30.0, gt=0)

    # Sessions
    session_ttl_seconds: float = Field(default=300.0, gt=0)
    session_sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def _check_sweep_cadence(self) -> "Settings":
        if self.session_sweep_interval_seconds >= self.session_ttl_seconds:
            raise ValueError(
                "session_sweep_interval_seconds must be less than session_ttl_seconds"
            )
        return self


settings = Settings()
