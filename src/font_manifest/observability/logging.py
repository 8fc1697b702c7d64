"""Structured logging for font manifest builds."""

from __future__ import annotations

import contextlib
import json
import logging
import sys
from collections.abc import Iterator, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

BUILD_LOGGER = "font_manifest.build"

_RESERVED_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class StructuredJsonFormatter(logging.Formatter):
    """Render each record as one JSON object; ``extra`` fields become keys."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(payload, sort_keys=True, default=str)


class StructuredLoggerAdapter(logging.LoggerAdapter[logging.Logger]):
    """Attach build context (route, manifest type) to every record."""

    def process(
        self, msg: str, kwargs: Mapping[str, Any] | None
    ) -> tuple[str, dict[str, Any]]:
        payload = dict(kwargs or {})
        extra = {**(self.extra or {}), **(payload.get("extra") or {})}
        if extra:
            payload["extra"] = extra
        return msg, payload

    def bind(self, **context: Any) -> StructuredLoggerAdapter:
        return StructuredLoggerAdapter(self.logger, {**(self.extra or {}), **context})


@contextlib.contextmanager
def build_logging(
    log_path: Path | None,
    *,
    context: dict[str, Any] | None = None,
    level: int = logging.INFO,
) -> Iterator[StructuredLoggerAdapter]:
    """Route ``font_manifest`` logs as JSON to stdout and, optionally, a file."""

    root_logger = logging.getLogger()
    previous_level = root_logger.level
    previous_handlers = root_logger.handlers[:]
    for handler in previous_handlers:
        root_logger.removeHandler(handler)

    formatter = StructuredJsonFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(stream=sys.stdout)]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    try:
        yield StructuredLoggerAdapter(logging.getLogger(BUILD_LOGGER), context or {})
    finally:
        for handler in handlers:
            root_logger.removeHandler(handler)
            handler.close()
        for handler in previous_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(previous_level)


__all__ = [
    "BUILD_LOGGER",
    "StructuredJsonFormatter",
    "StructuredLoggerAdapter",
    "build_logging",
]
