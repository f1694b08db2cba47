"""
Application configuration loaded from environment variables.
"""

from typing import Optional
import os

from pydantic import BaseModel, Field


def _env(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


class Settings(BaseModel):
    """Runtime settings for the agent service"""

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or console")
    service_name: str = Field(default="scout")

    # Reasoning loop
    max_steps: int = Field(default=12, ge=1, description="Maximum reasoning steps per turn")
    tool_timeout: float = Field(default=15.0, gt=0, description="Per-tool-call timeout in seconds")

    # Event sink
    event_queue_size: int = Field(default=1000, ge=1)
    loki_url: Optional[str] = Field(default=None, description="Loki base URL; structlog only when unset")
    loki_app_label: str = Field(default="scout")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=_env("LOG_LEVEL", "INFO"),
            log_format=_env("LOG_FORMAT", "json"),
            service_name=_env("SERVICE_NAME", "scout"),
            max_steps=int(_env("SCOUT_MAX_STEPS", "12")),
            tool_timeout=float(_env("SCOUT_TOOL_TIMEOUT", "15")),
            event_queue_size=int(_env("SCOUT_EVENT_QUEUE_SIZE", "1000")),
            loki_url=os.getenv("LOKI_URL", "").strip() or None,
            loki_app_label=_env("LOKI_APP_LABEL", "scout"),
        )
