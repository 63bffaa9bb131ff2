"""Typed errors for the HAR IR, with actionable messages and suggestions."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import TYPE_CHECKING

from har.core.constants import ENV_DEBUG, TRUTHY_VALUES

if TYPE_CHECKING:
    from har.ir.dependency import Dependency
    from har.ir.operation import Operation


def _is_debug_mode() -> bool:
    """
    Check if HAR is running in debug mode.

    Debug mode is enabled when HAR_DEBUG is set to any of:
    - "1", "true", "yes", "on" (case-insensitive)

    Returns:
        True if debug mode is enabled, False otherwise.

    """
    return os.getenv(ENV_DEBUG, "").lower() in TRUTHY_VALUES


def _preview(items: Sequence[str], limit: int = 5) -> str:
    """Join up to ``limit`` items for a one-line message."""
    shown = ", ".join(items[:limit])
    if len(items) > limit:
        shown += f", ... ({len(items) - limit} more)"
    return shown


class HarError(Exception):
    """Base exception for HAR with enhanced error messages."""

    def __init__(self, message: str, suggestion: str | None = None):
        """
        Initialise with message and optional recovery suggestion.

        Args:
            message: The error message describing what went wrong.
            suggestion: Optional suggestion for how to fix the error.

        """
        self.message = message
        self.suggestion = suggestion
        full_message = message
        if suggestion:
            full_message = f"{message}\n\nSuggestion: {suggestion}"
        super().__init__(full_message)


class MissingParameterError(HarError):
    """Raised or returned when an operation lacks a required parameter."""

    kind = "missing_parameter"

    def __init__(self, operation_type: str, field: str):
        """
        Initialise missing parameter error.

        Args:
            operation_type: Type tag of the operation being validated.
            field: Name of the absent parameter.

        """
        self.operation_type = str(operation_type)
        self.field = field
        super().__init__(
            f"Operation '{self.operation_type}' is missing parameter '{field}'",
            "Check the source adapter populates this parameter when building "
            "the operation.",
        )


class GraphValidationError(HarError):
    """Base class for structural failures detected in a graph."""

    kind = "invalid_graph"


class InvalidReferencesError(GraphValidationError):
    """One or more dependencies name an operation that is not in the graph."""

    kind = "invalid_references"

    def __init__(self, dependencies: Sequence[Dependency]):
        """
        Initialise invalid references error.

        Args:
            dependencies: The offending dependencies, in graph order.

        """
        self.dependencies = tuple(dependencies)
        edges = [f"{dep.from_id} -> {dep.to_id}" for dep in self.dependencies]
        suggestion = (
            "Every dependency must connect two operations present in the "
            "graph. Add the missing operations or drop the dangling edges."
        )
        if _is_debug_mode():
            suggestion += f"\n\nDebug: {self.dependencies!r}"
        super().__init__(
            f"{len(edges)} dependencies reference unknown operations: "
            f"{_preview(edges)}",
            suggestion,
        )


class CircularDependencyError(GraphValidationError):
    """The dependency graph contains at least one cycle."""

    kind = "circular_dependency"

    def __init__(self, unresolved: Sequence[str]):
        """
        Initialise circular dependency error.

        Args:
            unresolved: Operation ids left with pending prerequisites; these
                sit on a cycle or downstream of one.

        """
        self.unresolved = tuple(unresolved)
        super().__init__(
            f"Circular dependency detected involving: {_preview(self.unresolved)}",
            "Break the cycle by removing or reversing one of the dependencies "
            "between the listed operations.",
        )


class InvalidOperationsError(GraphValidationError):
    """One or more operations fail their type-specific validation."""

    kind = "invalid_operations"

    def __init__(self, failures: Sequence[tuple[Operation, MissingParameterError]]):
        """
        Initialise invalid operations error.

        Args:
            failures: Pairs of offending operation and its validation error.

        """
        self.failures = tuple(failures)
        details = [f"{op.id} ({err.field})" for op, err in self.failures]
        super().__init__(
            f"{len(details)} operations failed validation: {_preview(details)}",
            "Supply the missing parameters listed for each operation.",
        )

    @property
    def operations(self) -> tuple[Operation, ...]:
        """Return the offending operations."""
        return tuple(op for op, _ in self.failures)


class PartitionKeyError(HarError):
    """A partition key function returned a value that cannot group operations."""

    kind = "invalid_partition_key"

    def __init__(self, operation_id: str, key: object):
        """
        Initialise partition key error.

        Args:
            operation_id: Operation whose key could not be used.
            key: The offending key value.

        """
        self.operation_id = operation_id
        self.key = key
        super().__init__(
            f"Partition key for operation '{operation_id}' is not hashable: "
            f"{type(key).__name__}",
            "Return strings, numbers, or lists, tuples, sets and mappings of "
            "them from the partition key function.",
        )


class UnsupportedFormatError(HarError):
    """Raised when no adapter is registered for a format."""

    kind = "unsupported_format"

    def __init__(self, adapter_kind: str, name: str):
        """
        Initialise unsupported format error.

        Args:
            adapter_kind: Either "source" or "target".
            name: The requested format name.

        """
        self.adapter_kind = adapter_kind
        self.name = str(name)
        super().__init__(
            f"Unsupported {adapter_kind} format: {self.name}",
            f"Register a {adapter_kind} adapter for '{self.name}' before using it.",
        )


class IRSchemaError(HarError):
    """Raised when serialised IR data is malformed or has an unknown version."""

    kind = "invalid_schema"

    def __init__(self, reason: str):
        """
        Initialise IR schema error.

        Args:
            reason: What is wrong with the data.

        """
        super().__init__(
            f"Invalid IR data: {reason}",
            "Regenerate the IR with a compatible HAR version.",
        )


def format_error_with_context(error: Exception, operation: str) -> str:
    """
    Format an error message with operation context.

    Args:
        error: The exception that occurred.
        operation: Description of the operation that failed.

    Returns:
        Formatted error message with context and suggestions.

    """
    if isinstance(error, HarError):
        return str(error)

    context = f"Error during {operation}"
    if isinstance(error, (ValueError, TypeError)):
        return (
            f"{context}: {error}\n\nSuggestion: Check that input "
            "values are in the correct format and type."
        )
    debug_info = f"\n\nDebug: {error!r}" if _is_debug_mode() else ""
    return (
        f"{context}: {error}\n\nSuggestion: If this error persists, "
        f"report it with the full error message.{debug_info}"
    )
