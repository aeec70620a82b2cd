"""Logging configuration for Villa.

Records are emitted as one JSON object per line to a daily rotated file under
``settings.api.log_dir`` and to stdout (plain text in debug mode). Anything a
caller passes through ``extra`` becomes a top-level field of the JSON object,
except for credential material, which is masked before any handler sees it.
"""

import json
import logging
import logging.handlers
import sys
from collections.abc import AsyncGenerator, MutableMapping
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from time import perf_counter
from typing import Any

from .settings import settings

LOG_FILE_NAME = "villa.log"
REDACTED = "***"
SENSITIVE_KEYS = frozenset(
    {"password", "password_hash", "token", "authorization", "secret_key"}
)

# Attributes present on every LogRecord; anything else came in through `extra`.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("pymongo", "motor", "uvicorn.access", "multipart")


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class RedactingFilter(logging.Filter):
    """Mask credential fields smuggled in through ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key in _extra_fields(record):
            if key.lower() in SENSITIVE_KEYS:
                setattr(record, key, REDACTED)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with ``extra`` fields flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(_extra_fields(record))

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(payload, default=str)


def _file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        when="midnight",
        backupCount=14,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(JSONFormatter())
    return handler


def _console_handler(plain: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if plain:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    else:
        handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(log_dir: str | None = None, level: int | None = None) -> None:
    """Configure the root logger; safe to call more than once.

    Args:
        log_dir: Directory for the JSON log file. Defaults to
            ``settings.api.log_dir``.
        level: Root log level. Defaults to DEBUG in debug mode, INFO otherwise.
    """
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    redact = RedactingFilter()
    for handler in (
        _file_handler(Path(log_dir or settings.api.log_dir)),
        _console_handler(plain=settings.debug),
    ):
        handler.addFilter(redact)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter carrying a correlation id and bound context fields.

    Bound fields are merged into every record's ``extra``; fields passed on
    the call itself win over bound ones. The caller's dict is never mutated.
    """

    def __init__(self, name: str) -> None:
        super().__init__(logging.getLogger(name), {})
        self.correlation_id: str | None = None

    @property
    def context(self) -> dict[str, Any]:
        return dict(self.extra)

    def set_correlation_id(self, correlation_id: str | None) -> None:
        self.correlation_id = correlation_id

    def add_context(self, **fields: Any) -> "ContextLogger":
        self.extra = {**self.extra, **fields}
        return self

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        merged = dict(self.extra)
        if self.correlation_id:
            merged["correlation_id"] = self.correlation_id
        merged.update(kwargs.get("extra") or {})
        kwargs["extra"] = merged
        return msg, kwargs

    @asynccontextmanager
    async def track_time(self, operation: str) -> AsyncGenerator[None, None]:
        """Log how long the wrapped block took, even when it raises."""
        start = perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (perf_counter() - start) * 1000
            self.info(
                f"{operation} completed", extra={"duration_ms": round(elapsed_ms, 2)}
            )

    @asynccontextmanager
    async def track_memory(self, operation: str) -> AsyncGenerator[None, None]:
        import psutil

        process = psutil.Process()
        before = process.memory_info().rss
        try:
            yield
        finally:
            after = process.memory_info().rss
            self.info(
                f"{operation} memory usage",
                extra={
                    "memory_diff_mb": round((after - before) / 1024 / 1024, 2),
                    "total_memory_mb": round(after / 1024 / 1024, 2),
                },
            )
