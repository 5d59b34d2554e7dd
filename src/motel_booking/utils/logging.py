"""Logging with a per-request correlation ID.

The correlation ID lives in a ContextVar set by the HTTP middleware; every
record emitted through ``get_logger`` carries it, and the root handler
installed by ``configure_logging`` prints it as a ``[cid]`` prefix.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

NO_CORRELATION_ID = "no-correlation-id"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context, minting one if absent."""
    cid = correlation_id or str(uuid.uuid4())
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


def _current_cid() -> str:
    return _correlation_id.get() or NO_CORRELATION_ID


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _current_cid()
        return True


class StructuredFormatter(logging.Formatter):
    """Prefixes the formatted line with ``[correlation_id]``."""

    def format(self, record: logging.LogRecord) -> str:
        cid = getattr(record, "correlation_id", None) or _current_cid()
        record.correlation_id = cid
        return f"[{cid}] {super().format(record)}"


def configure_logging(level: str = "INFO") -> None:
    """Attach one structured stream handler to the root logger.

    Repeated calls only adjust the level.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def _emit(logger: logging.Logger, level: int, title: str, fields: dict[str, Any]) -> None:
    context = {key: value for key, value in fields.items() if value is not None}
    message = " | ".join([title, *(f"{key}={value}" for key, value in context.items())])
    logger.log(level, message, extra=context)


def log_booking_operation(
    logger: logging.Logger,
    operation: str,
    *,
    error: str | None = None,
    retryable: bool = False,
    **fields: Any,
) -> None:
    """Log the outcome of a booking mutation.

    Keyword fields (booking_id, reference, status, version, ...) are appended
    as ``key=value`` pairs and passed through as record attributes. Failures
    the caller may retry go out at WARNING, other failures at ERROR.
    """
    if error is None:
        level = logging.INFO
    else:
        level = logging.WARNING if retryable else logging.ERROR
    _emit(
        logger,
        level,
        f"Booking operation: {operation}",
        {**fields, "operation": operation, "error": error},
    )


def log_settlement_event(
    logger: logging.Logger,
    action: str,
    payment_id: str,
    *,
    failure_reason: str | None = None,
    **fields: Any,
) -> None:
    """Log a gateway round trip; a declined call is logged at WARNING."""
    level = logging.INFO if failure_reason is None else logging.WARNING
    _emit(
        logger,
        level,
        f"Settlement event: {action} ({payment_id})",
        {
            **fields,
            "action": action,
            "payment_id": payment_id,
            "failure_reason": failure_reason,
        },
    )
