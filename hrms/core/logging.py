import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pythonjsonlogger import jsonlogger

from hrms.core.config import settings

# Correlation ID of the request being served, bound by CorrelationIdMiddleware
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class LeaveJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per record, stamped with service, environment and request id."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        request_id = request_id_var.get()
        if request_id:
            log_record["request_id"] = request_id

        log_record.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        log_record["level"] = (log_record.get("level") or record.levelname).upper()
        log_record["service"] = settings.app_name
        log_record["environment"] = settings.environment


def setup_logging(level: Optional[Union[int, str]] = None) -> None:
    root = logging.getLogger()
    root.setLevel(level or settings.log_level)

    # Re-running the factory (tests, reloads) must not stack handlers
    if any(isinstance(h.formatter, LeaveJsonFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(LeaveJsonFormatter("%(timestamp) %(level) %(name) %(message)"))
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
