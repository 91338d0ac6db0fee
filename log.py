"""Logging helpers: one namespace, per-request correlation ids."""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

import settings

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


def configure_logging(level: Optional[str] = None) -> None:
    logger = logging.getLogger("companysite")
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(correlation_id)s | %(name)s | %(message)s")
    )
    handler.addFilter(CorrelationIdFilter())
    logger.addHandler(handler)
    logger.setLevel(level or settings.LOG_LEVEL)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(f"companysite.{name}")


def set_correlation_id(value: Optional[str] = None) -> str:
    token = value or uuid.uuid4().hex
    _correlation_id.set(token)
    return token


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()
