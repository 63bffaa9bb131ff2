"""Core utilities for HAR."""

from har.core.config import (
    GraphSettings,
    LoggingSettings,
    load_graph_settings,
    load_logging_settings,
)
from har.core.errors import (
    CircularDependencyError,
    GraphValidationError,
    HarError,
    InvalidOperationsError,
    InvalidReferencesError,
    IRSchemaError,
    MissingParameterError,
    PartitionKeyError,
    UnsupportedFormatError,
    format_error_with_context,
)

__all__ = [
    "GraphSettings",
    "LoggingSettings",
    "load_graph_settings",
    "load_logging_settings",
    "HarError",
    "MissingParameterError",
    "GraphValidationError",
    "InvalidReferencesError",
    "CircularDependencyError",
    "InvalidOperationsError",
    "PartitionKeyError",
    "UnsupportedFormatError",
    "IRSchemaError",
    "format_error_with_context",
]
