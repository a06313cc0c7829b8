import logging
from typing import Literal, Optional
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SEARXNG_URL = "http://localhost:8080"

# Settings are loaded before setup_logging() runs; warnings still reach
# stderr through logging's last-resort handler.
logger = logging.getLogger("searxng_mcp")


def is_http_url(value: Optional[str]) -> bool:
    """
    Return True when value parses as an absolute http(s) URL with a host.
    """
    if not value:
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and bool(parts.netloc)


class Settings(BaseSettings):
    # Read from OS env and optional .env file in project root.
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # SearXNG backend
    searxng_url: str = Field(
        DEFAULT_SEARXNG_URL,
        alias="SEARXNG_URL",
        description="Base URL of the SearXNG instance, e.g. 'http://searxng:8080'",
    )
    searxng_timeout: float = Field(30.0, alias="SEARXNG_TIMEOUT")
    config_cache_ttl: float = Field(
        300.0,
        alias="CONFIG_CACHE_TTL",
        description="Seconds a fetched /config response is reused",
    )
    require_engine_url: bool = Field(
        False,
        alias="REQUIRE_ENGINE_URL",
        description="Expose tools that take the SearXNG URL per call instead of SEARXNG_URL",
    )

    # MCP transport
    transport_mode: Literal["http", "stdio"] = Field("http", alias="TRANSPORT_MODE")
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, alias="PORT")
    mcp_path: str = Field("/mcp", alias="MCP_PATH")
    max_request_body_size: int = Field(1024 * 1024, alias="MAX_REQUEST_BODY_SIZE", gt=0)
    session_timeout: float = Field(
        30 * 60,
        alias="SESSION_TIMEOUT",
        description="Seconds of inactivity after which a session is evicted",
    )
    session_cleanup_interval: float = Field(60.0, alias="SESSION_CLEANUP_INTERVAL", gt=0)
    mcp_json_response: bool = Field(
        False,
        alias="MCP_JSON_RESPONSE",
        description="Answer POSTs with plain JSON instead of an SSE stream",
    )

    # Application log level for our searxng_mcp logger.
    # Can be overridden via LOG_LEVEL env var, e.g. "DEBUG" while debugging.
    log_level: str = Field(
        "INFO",
        alias="LOG_LEVEL",
        description="Application log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_timezone: Optional[str] = Field(
        default=None,
        alias="LOG_TIMEZONE",
        description="Timezone name for log timestamps, e.g. 'Europe/Berlin'. Defaults to system local time.",
    )
    log_dir: str = Field(
        "logs",
        alias="LOG_DIR",
        description="Directory for daily log files; empty string disables file logging",
    )

    @field_validator("searxng_url", mode="before")
    @classmethod
    def _validate_searxng_url(cls, value: Optional[str]) -> str:
        if not value:
            return DEFAULT_SEARXNG_URL
        if not is_http_url(value):
            logger.warning(
                "SEARXNG_URL must be an http or https URL, got %r. Falling back to default: %s",
                value,
                DEFAULT_SEARXNG_URL,
            )
            return DEFAULT_SEARXNG_URL
        return value

    @field_validator("transport_mode", mode="before")
    @classmethod
    def _validate_transport_mode(cls, value: Optional[str]) -> str:
        mode = (value or "http").strip().lower()
        if mode not in {"http", "stdio"}:
            logger.warning("Unknown TRANSPORT_MODE %r, using 'http'", value)
            return "http"
        return mode

    @field_validator("mcp_path")
    @classmethod
    def _normalize_mcp_path(cls, value: str) -> str:
        path = value.strip() or "/mcp"
        return path if path.startswith("/") else f"/{path}"


settings = Settings()  # Reads from environment if available
