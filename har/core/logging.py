"""
Structured logging configuration for HAR.

Log records are enriched with the conversion request, the pipeline step and
the source format currently being handled, and can be rendered as plain text
or as one JSON object per line.
"""

import functools
import json
import logging
import sys
from collections.abc import Mapping
from contextvars import ContextVar
from typing import Any, Literal

from har.core.config import load_logging_settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
operation_var: ContextVar[str | None] = ContextVar("operation", default=None)
source_format_var: ContextVar[str | None] = ContextVar("source_format", default=None)

_CONTEXT_FIELDS = ("request_id", "operation", "source_format")

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "msecs",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "processName",
        "process",
        "threadName",
        "thread",
        "taskName",
        "message",
        "asctime",
        "relativeCreated",
        *_CONTEXT_FIELDS,
    }
)


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs structured log records.

    Supports both JSON and human-readable text formats.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: Literal["%", "{", "$"] = "%",
        json_format: bool = False,
    ):
        """
        Initialise structured formatter.

        Args:
            fmt: Log format string (ignored if json_format=True).
            datefmt: Date format string.
            style: Format style ('%', '{', or '$').
            json_format: Whether to output JSON format.

        """
        super().__init__(fmt, datefmt, style)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        """Format a record, attaching the current logging context."""
        record.request_id = request_id_var.get()
        record.operation = operation_var.get()
        record.source_format = source_format_var.get()

        if self.json_format:
            return self._format_json(record)
        return self._format_text(record)

    @staticmethod
    def _context(record: logging.LogRecord) -> dict[str, Any]:
        context = {}
        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value:
                context[key] = value
        return context

    def _format_json(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        log_data.update(self._context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)

    def _format_text(self, record: logging.LogRecord) -> str:
        base_msg = super().format(record)
        context = self._context(record)
        if not context:
            return base_msg
        parts = ", ".join(f"{key}={value}" for key, value in context.items())
        return f"{base_msg} [{parts}]"


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """
    Configure structured logging for HAR.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Whether to output JSON format.
        log_file: Optional file path for log output.

    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if json_format:
        formatter = StructuredFormatter(json_format=True)
    else:
        formatter = StructuredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("har").setLevel(numeric_level)


def configure_logging_from_env(env: Mapping[str, str] | None = None) -> None:
    """
    Configure logging from HAR_LOG_* environment variables.

    Args:
        env: Optional environment mapping for testing.

    """
    settings = load_logging_settings(env)
    configure_logging(
        level=settings.level,
        json_format=settings.json_format,
        log_file=settings.log_file,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.

    """
    return logging.getLogger(name)


def set_context(
    request_id: str | None = None,
    operation: str | None = None,
    source_format: str | None = None,
) -> None:
    """
    Set context variables for structured logging.

    Args:
        request_id: Identifier of the conversion request.
        operation: Current pipeline step.
        source_format: Source format being converted.

    """
    if request_id is not None:
        request_id_var.set(request_id)
    if operation is not None:
        operation_var.set(operation)
    if source_format is not None:
        source_format_var.set(source_format)


def clear_context() -> None:
    """Clear all context variables."""
    request_id_var.set(None)
    operation_var.set(None)
    source_format_var.set(None)


class LogContext:
    """
    Context manager for temporary logging context.

    Example:
        with LogContext(request_id="req-1", source_format="ansible"):
            logger.info("Parsing playbook")

    """

    def __init__(
        self,
        request_id: str | None = None,
        operation: str | None = None,
        source_format: str | None = None,
    ):
        self.request_id = request_id
        self.operation = operation
        self.source_format = source_format
        self.previous_context: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self.previous_context = {
            "request_id": request_id_var.get(),
            "operation": operation_var.get(),
            "source_format": source_format_var.get(),
        }
        set_context(
            request_id=self.request_id,
            operation=self.operation,
            source_format=self.source_format,
        )
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        request_id_var.set(self.previous_context["request_id"])
        operation_var.set(self.previous_context["operation"])
        source_format_var.set(self.previous_context["source_format"])


def log_operation(operation_name: str):
    """
    Decorate functions to log a pipeline step with structured context.

    Args:
        operation_name: Name of the step being logged.

    Example:
        @log_operation("plan_execution")
        def plan_execution(graph):
            ...

    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)

            with LogContext(operation=operation_name):
                logger.debug(
                    f"Starting {operation_name}",
                    extra={"function": func.__name__},
                )
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    logger.error(
                        f"Failed {operation_name}: {e}",
                        extra={"function": func.__name__},
                        exc_info=True,
                    )
                    raise
                logger.debug(
                    f"Completed {operation_name}",
                    extra={"function": func.__name__},
                )
                return result

        return wrapper

    return decorator
