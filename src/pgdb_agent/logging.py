"""Logging setup for the pgdb agent.

Every handler gets two filters: credentials are masked first, then
repeated low-level lines are throttled. Output is plain text for a
terminal or one JSON object per line for collectors.
"""

import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import json as jsonlogger

from pgdb_agent.config import LoggingConfig

REDACTED = "***"

# Record attributes (from ``extra=``) and nested dict keys that carry credentials
SECRET_FIELDS = frozenset({"password", "database_url"})

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("httpx", "httpcore")


def redact(value: Any) -> Any:
    """Mask credential keys in dicts and lists, recursively."""
    if isinstance(value, dict):
        return {
            key: REDACTED if key in SECRET_FIELDS else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact(item) for item in value]
    return value


class SecretRedactionFilter(logging.Filter):
    """Masks passwords and connection URLs passed through ``extra``.

    Covers both flat fields (``extra={"password": ...}``) and model dumps
    such as ``extra={"instance": view.model_dump()}``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in list(record.__dict__.items()):
            if key in SECRET_FIELDS:
                setattr(record, key, REDACTED)
            elif isinstance(value, (dict, list)) and key != "args":
                setattr(record, key, redact(value))
        if isinstance(record.args, dict):
            record.args = redact(record.args)
        return True


class RateLimitFilter(logging.Filter):
    """Drops an INFO/DEBUG line repeated within ``rate_limit_seconds``.

    Readiness polling and port-conflict retries can emit the same line
    many times per deploy. WARNING and above always pass.
    """

    def __init__(
        self,
        rate_limit_seconds: float = 5.0,
        max_cache_size: int = 1000,
        name: str = "",
    ) -> None:
        super().__init__(name)
        self._rate_limit = rate_limit_seconds
        self._max_cache = max_cache_size
        self._seen: dict[str, float] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.WARNING:
            return True

        key = f"{record.name}:{record.lineno}:{record.getMessage()}"
        now = time.monotonic()
        last = self._seen.get(key)
        if last is not None and now - last < self._rate_limit:
            return False

        self._seen[key] = now
        if len(self._seen) > self._max_cache:
            self._evict()
        return True

    def _evict(self) -> None:
        for key in sorted(self._seen, key=self._seen.__getitem__)[:100]:
            del self._seen[key]


class AgentJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per line with service, level and source location."""

    def __init__(self, config: LoggingConfig, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._service = config.service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.update(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            level=record.levelname,
            logger=record.name,
            service=self._service,
            pid=record.process,
            filename=record.filename,
            lineno=record.lineno,
        )
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        # uvicorn adds an ANSI-coloured duplicate of the message
        log_record.pop("color_message", None)


def build_handler(config: LoggingConfig) -> logging.Handler:
    """Stdout handler with the configured format and both filters."""
    if config.format == "json":
        formatter: logging.Formatter = AgentJsonFormatter(config)
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(SecretRedactionFilter())
    handler.addFilter(RateLimitFilter(rate_limit_seconds=5.0))
    return handler


def setup_logging(config: LoggingConfig) -> None:
    """Route the root and uvicorn loggers through one handler."""
    handler = build_handler(config)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for name in ("uvicorn", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = False
        uv_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").disabled = True

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
