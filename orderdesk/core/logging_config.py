"""
OrderDesk - Centralized Logging Configuration
Supports both development (plain text) and production (JSON structured) logging
"""

import logging
import sys
import json
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from orderdesk.core.config import settings


# Context variables for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
resource_var: ContextVar[str] = ContextVar('resource', default='')

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName',
}


def get_request_id() -> str:
    """Get current request ID from context"""
    return request_id_var.get() or ''


def set_request_id(request_id: str) -> None:
    """Set request ID in context"""
    request_id_var.set(request_id)


def get_resource() -> str:
    """Get the resource collection currently being worked on"""
    return resource_var.get() or ''


def set_resource(resource: str) -> None:
    resource_var.set(resource)


def generate_request_id() -> str:
    """Generate a unique request ID"""
    return str(uuid.uuid4())[:8]


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in production
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        resource = get_resource()
        if resource:
            log_data["resource"] = resource

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info) if record.exc_info[0] else None
            }

        # Extra fields passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith('_'):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """
    Readable formatter that includes request_id and resource context
    """

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.resource = get_resource() or '-'
        return super().format(record)


class OrderDeskLogger(logging.Logger):
    """
    Custom logger with convenience methods for structured logging
    """

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        """Log an outgoing HTTP request"""
        level = logging.DEBUG if 200 <= status_code < 300 else logging.WARNING
        self.log(
            level,
            f"HTTP {method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": duration_ms,
                **kwargs
            }
        )

    def log_mutation(self, resource: str, action: str,
                     resource_id: Optional[str] = None, success: bool = True,
                     **kwargs) -> None:
        """Log a create/update/delete against a resource collection"""
        level = logging.INFO if success else logging.WARNING
        self.log(
            level,
            f"{resource} {action}: {'ok' if success else 'failed'}" +
            (f" - {resource_id}" if resource_id else ""),
            extra={
                "event_type": "mutation",
                "mutation_resource": resource,
                "mutation_action": action,
                "mutation_id": resource_id,
                "mutation_success": success,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None,
                               **kwargs) -> None:
        """Log error with full context"""
        self.error(
            f"Error in {context}: {type(error).__name__}: {str(error)}",
            exc_info=True,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_message": str(error),
                "error_context": context,
                **kwargs
            }
        )


def setup_logging() -> OrderDeskLogger:
    """Setup logging configuration based on environment"""

    logging.setLoggerClass(OrderDeskLogger)

    logger = logging.getLogger("orderdesk")
    logger.__class__ = OrderDeskLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False

    logger.handlers.clear()

    if settings.is_production:
        formatter: logging.Formatter = JSONFormatter()
        file_formatter: logging.Formatter = formatter
    else:
        detailed_format = (
            "%(asctime)s | %(levelname)-8s | "
            "[%(request_id)s] [%(resource)s] | "
            "%(funcName)s:%(lineno)d | %(message)s"
        )
        formatter = ContextualFormatter("%(levelname)-8s | %(message)s")
        file_formatter = ContextualFormatter(detailed_format)

    # stderr keeps stdout free for tables
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10485760,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.debug(
        "Logging initialized",
        extra={
            "environment": settings.ENVIRONMENT,
            "log_level": settings.LOG_LEVEL,
            "json_logging": settings.is_production
        }
    )

    return logger


logger: OrderDeskLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_request_id',
    'set_request_id',
    'get_resource',
    'set_resource',
    'generate_request_id',
    'OrderDeskLogger',
    'JSONFormatter',
    'ContextualFormatter',
]
