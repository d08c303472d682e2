"""
Module: replenish_kernel.logging_config
Responsibility:
    One JSON object per log line for every planner component.  Records
    carry the run-scoped fields bound through ``LogContext`` (which
    scenario, which service run) next to the ``extra`` fields of the call.

Architecture position:
    Kernel -- imported by every other tier; depends only on the money
    value objects.

Payload shape:
    {"ts", "level", "logger", "message", <context fields>, <extra fields>,
     "error": {"type", "message", "code", <exception attributes>},
     "traceback"}

    Decimals stay strings so amounts survive the round trip exactly;
    ``Money`` becomes ``{"amount", "currency"}``; enums log their value.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from replenish_kernel.domain.values import Money

CONTEXT_FIELDS = ("scenario_id", "run_id", "correlation_id", "trace_id")

_context: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"replenish_log_{name}", default=None) for name in CONTEXT_FIELDS
}


def _checked(fields: dict[str, str | None]) -> dict[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
    return {name: value for name, value in fields.items() if value is not None}


class LogContext:
    """Run-scoped log fields, safe across threads and tasks."""

    @staticmethod
    def set(**fields: str | None) -> None:
        """Set fields; ``None`` leaves a field unchanged."""
        for name, value in _checked(fields).items():
            _context[name].set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        ctx: dict[str, str] = {}
        for name, var in _context.items():
            value = var.get()
            if value is not None:
                ctx[name] = value
        return ctx

    @staticmethod
    def clear() -> None:
        for var in _context.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them."""
        tokens = [(name, _context[name].set(value)) for name, value in _checked(fields).items()]
        try:
            yield LogContext
        finally:
            for name, token in reversed(tokens):
                _context[name].reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _to_json(obj: Any) -> Any:
    if isinstance(obj, Money):
        return {"amount": str(obj.amount), "currency": obj.currency.code}
    if isinstance(obj, Decimal | UUID):
        return str(obj)
    if isinstance(obj, datetime | date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, frozenset | set):
        return sorted(obj, key=str)
    return str(obj)


def _error_payload(exc: BaseException) -> dict[str, Any]:
    error: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    code = getattr(exc, "code", None)
    if code is not None:
        error["code"] = code
    # planner exceptions keep their context as public attributes
    for key, value in vars(exc).items():
        if not key.startswith("_") and key not in error:
            error[key] = value
    return error


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            payload["error"] = _error_payload(record.exc_info[1])
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "replenish_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``replenish_kernel`` namespace, e.g. ``engines.simulation``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    levels = logging.getLevelNamesMapping()
    try:
        return levels[level.upper()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level!r}") from None


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the planner's logger tree.

    Only the first call has an effect until ``reset_logging``.  ``level``
    takes a number or a name such as ``"DEBUG"``.
    """
    global _configured
    resolved = _resolve_level(level)
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(resolved)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
    logger.propagate = True
