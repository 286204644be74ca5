# 📄 File: app/shared/utils/logging.py

# 🧭 Purpose (Layman Explanation):
# This file sets up logging so that every message the services write can be traced back
# to the web request or the event that caused it.

# 🧪 Purpose (Technical Summary):
# Structured logging with JSON formatting (python-json-logger), request / correlation id
# context variables injected into every record, and a context manager for scoping them.

# 🔗 Dependencies:
# - python-json-logger: JSON log formatting
# - logging: Python standard logging
# - contextvars: Request context tracking

# 🔄 Connected Modules / Calls From:
# Used by: app.main (startup), request logging middleware, event brokers (correlation ids)

import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Optional

from pythonjsonlogger import jsonlogger

from app.shared.config.settings import get_settings

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
correlation_id_var: ContextVar[str] = ContextVar('correlation_id', default='')

_logging_configured = False


class ContextFilter(logging.Filter):
    """
    Adds request id, correlation id, hostname and service name to every record.
    """

    def __init__(self, service_name: str):
        super().__init__()
        self.hostname = os.uname().nodename if hasattr(os, 'uname') else 'unknown'
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.correlation_id = correlation_id_var.get()
        record.hostname = self.hostname
        record.service = self.service_name
        record.timestamp = datetime.now(timezone.utc).isoformat()
        return True


class JSONFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for structured logging.

    Drops empty context fields so lines outside a request stay short.
    """

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        for key in ('request_id', 'correlation_id'):
            if not log_record.get(key):
                log_record.pop(key, None)


def setup_logging(
    service_name: str = 'catalog-platform',
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> logging.Logger:
    """
    Setup application logging configuration.

    Args:
        service_name: Name stamped on every record
        log_level: Overrides LOG_LEVEL from settings
        log_format: 'json' or 'text', overrides LOG_FORMAT from settings

    Returns:
        logging.Logger: The startup logger
    """
    global _logging_configured

    if _logging_configured:
        return logging.getLogger("startup")

    settings = get_settings()
    log_level = log_level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format.lower() == 'json':
        formatter = JSONFormatter(
            '%(timestamp)s %(service)s %(hostname)s %(request_id)s %(correlation_id)s %(message)s'
        )
    else:
        formatter = logging.Formatter(
            '%(timestamp)s - %(service)s - %(name)s - %(levelname)s - [%(request_id)s%(correlation_id)s] %(message)s'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(ContextFilter(service_name))
    root_logger.addHandler(console_handler)

    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(
        logging.INFO if settings.DB_ECHO else logging.WARNING
    )

    _logging_configured = True
    return logging.getLogger("startup")


@contextmanager
def log_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> Iterator[None]:
    """
    Temporarily bind request / correlation ids for the enclosed block.

    Args:
        request_id: Id of the HTTP request being served
        correlation_id: Id of the event or flow being processed
    """
    tokens = []
    if request_id is not None:
        tokens.append((request_id_var, request_id_var.set(request_id)))
    if correlation_id is not None:
        tokens.append((correlation_id_var, correlation_id_var.set(correlation_id)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
