from typing import Dict, Any
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
from enum import Enum


class Severity(str, Enum):
    """LogEvent severity levels"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.DEBUG: 10,
    Severity.INFO: 20,
    Severity.WARNING: 30,
    Severity.ERROR: 40,
}


class LogEvent(BaseModel):
    """Immutable structured observability record"""
    model_config = ConfigDict(frozen=True)

    message: str = Field(description="Event name, e.g. turn_start or tool_error")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    severity: Severity = Field(default=Severity.INFO)

    @classmethod
    def info(cls, message: str, **metadata: Any) -> "LogEvent":
        return cls(message=message, metadata=metadata, severity=Severity.INFO)

    @classmethod
    def warning(cls, message: str, **metadata: Any) -> "LogEvent":
        return cls(message=message, metadata=metadata, severity=Severity.WARNING)

    @classmethod
    def error(cls, message: str, **metadata: Any) -> "LogEvent":
        return cls(message=message, metadata=metadata, severity=Severity.ERROR)

    def to_record(self) -> Dict[str, Any]:
        """Flat JSON-ready form used by log backends"""
        return {
            "message": self.message,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }
