"""
Structured event logging (``planning_kernel.logging_config``).

Every record is rendered as one JSON object per line.  The log message is
an event name (``plan_activated``, ``revision_decided``,
``PLANNING_ENGINE_TRACE``) and is written under the ``event`` key; fields
passed with ``extra=`` become top-level keys.

Records emitted while a ``PlanWorkflow`` operation runs also carry that
operation's context (see ``LogContext``):

    correlation_id   one UUID per workflow call, shared by all its records
    operation        workflow method name (``activate``, ``decide`` ...)
    actor_id         the producer or manager performing the call
    plan_id          the plan the call targets, when known up front
    revision_id      the revision being decided

A context value takes precedence over an ``extra=`` field of the same name.
When a record carries a ``PlanningKernelError`` its ``code`` and public
attributes are exposed as ``exc_code`` and ``exc_<attribute>``.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "LOGGER_NAMESPACE",
    "EventFormatter",
    "LogContext",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from enum import Enum
from typing import IO, Any

from planning_kernel.exceptions import PlanningKernelError

LOGGER_NAMESPACE = "planning_kernel"

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "operation",
    "actor_id",
    "plan_id",
    "revision_id",
)

_context: ContextVar[Mapping[str, str] | None] = ContextVar(
    "planning_log_context", default=None,
)


def _as_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class LogContext:
    """Operation-scoped fields stamped onto every record."""

    @staticmethod
    def _merged(fields: Mapping[str, Any]) -> dict[str, str]:
        unknown = set(fields).difference(CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
        merged = dict(_context.get() or {})
        for name, value in fields.items():
            if value is not None:
                merged[name] = _as_text(value)
        return merged

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Add fields to the current context.  ``None`` values are skipped."""
        _context.set(cls._merged(fields))

    @staticmethod
    def get_all() -> dict[str, str]:
        current = _context.get() or {}
        return {name: current[name] for name in CONTEXT_FIELDS if name in current}

    @staticmethod
    def clear() -> None:
        _context.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[None]:
        """Scope fields to a ``with`` block; the outer context returns on exit.

        UUIDs and status enums are stored as their string values.
        """
        token = _context.set(cls._merged(fields))
        try:
            yield
        finally:
            _context.reset(token)


# Attributes every LogRecord has; anything else on a record came from extra=.
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    # UUID, Decimal
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, PlanningKernelError):
        fields["exc_code"] = exc.code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
    return fields


class EventFormatter(logging.Formatter):
    """Render a record as a single JSON line keyed by event name."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        entry.update(LogContext.get_all())
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES:
                entry.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            entry.update(_exception_fields(record.exc_info[1]))
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` under the ``planning_kernel`` namespace."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_handler: logging.Handler | None = None
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: IO[str] | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``planning_kernel`` logger.

    Only the first call takes effect, so ``init_engine_from_url`` calls it
    unconditionally.  ``level`` also accepts a level name such as ``"DEBUG"``.
    """
    global _handler
    if isinstance(level, str):
        levels = logging.getLevelNamesMapping()
        if level.upper() not in levels:
            raise ValueError(f"Unknown log level: {level}")
        level = levels[level.upper()]

    with _lock:
        if _handler is not None:
            return
        _handler = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(EventFormatter())
        namespace = logging.getLogger(LOGGER_NAMESPACE)
        namespace.setLevel(level)
        namespace.propagate = False
        namespace.addHandler(_handler)


def reset_logging() -> None:
    """Detach the handler installed by ``configure_logging``.  Tests only."""
    global _handler
    with _lock:
        namespace = logging.getLogger(LOGGER_NAMESPACE)
        if _handler is not None:
            namespace.removeHandler(_handler)
            _handler = None
        namespace.setLevel(logging.NOTSET)
        namespace.propagate = True
