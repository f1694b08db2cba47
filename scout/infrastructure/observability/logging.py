import structlog
import logging
import sys
from typing import Dict, Any, List
from datetime import datetime, timezone

from scout import __version__
from scout.infrastructure.config import Settings

# Keys bound per request or per turn that every record should carry
CONTEXT_KEYS = ("conversation_id", "turn_id")


def setup_logging(settings: Settings) -> None:
    """Configure stdlib logging and structlog from settings"""

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=build_processors(settings.log_format),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=settings.service_name, version=__version__)


def build_processors(log_format: str) -> List[Any]:
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_service_context,
    ]

    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        # metadata may carry datetimes and enums
        processors.append(structlog.processors.JSONRenderer(default=str))
    return processors


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Copy bound conversation/turn ids onto the record"""

    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())

    bound = structlog.contextvars.get_contextvars()
    for key in CONTEXT_KEYS:
        if key not in event_dict and bound.get(key):
            event_dict[key] = bound[key]

    return event_dict
