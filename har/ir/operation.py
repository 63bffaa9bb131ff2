"""
Operations: the vertices of the HAR semantic graph.

An operation is one platform-agnostic infrastructure action such as
"install package" or "start service", independent of the tool it was
parsed from or the tool it will be emitted for.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from har.core.config import load_graph_settings
from har.core.constants import (
    PARAM_CONTENT,
    PARAM_CONTENT_OR_SOURCE,
    PARAM_NAME,
    PARAM_PACKAGE,
    PARAM_PATH,
    PARAM_SERVICE,
    PARAM_SOURCE,
)
from har.core.errors import IRSchemaError, MissingParameterError


class OperationType(str, Enum):
    """Well-known operation types. Any other string is also a valid type."""

    PACKAGE_INSTALL = "package_install"
    PACKAGE_REMOVE = "package_remove"
    PACKAGE_UPGRADE = "package_upgrade"
    SERVICE_START = "service_start"
    SERVICE_STOP = "service_stop"
    SERVICE_RESTART = "service_restart"
    SERVICE_ENABLE = "service_enable"
    SERVICE_DISABLE = "service_disable"
    FILE_WRITE = "file_write"
    FILE_COPY = "file_copy"
    FILE_TEMPLATE = "file_template"
    FILE_DELETE = "file_delete"
    FILE_PERMISSIONS = "file_permissions"
    DIRECTORY_CREATE = "directory_create"
    DIRECTORY_DELETE = "directory_delete"
    USER_CREATE = "user_create"
    USER_DELETE = "user_delete"
    USER_MODIFY = "user_modify"
    GROUP_CREATE = "group_create"
    GROUP_DELETE = "group_delete"
    GROUP_MODIFY = "group_modify"
    NETWORK_INTERFACE = "network_interface"
    NETWORK_ROUTE = "network_route"
    FIREWALL_RULE = "firewall_rule"
    SCRIPT_EXECUTE = "script_execute"
    COMMAND_RUN = "command_run"
    COMPUTE_INSTANCE_CREATE = "compute_instance_create"
    COMPUTE_INSTANCE_DELETE = "compute_instance_delete"
    STORAGE_BUCKET_CREATE = "storage_bucket_create"
    STORAGE_BUCKET_DELETE = "storage_bucket_delete"


def tag_name(tag: str) -> str:
    """Return the plain string form of a type tag, enum member or not."""
    if isinstance(tag, Enum):
        return str(tag.value)
    return str(tag)


def coerce_operation_type(value: str) -> OperationType | str:
    """Map a known type string onto its enum member, leaving others as-is."""
    if isinstance(value, OperationType):
        return value
    try:
        return OperationType(value)
    except ValueError:
        return value


def generate_operation_id() -> str:
    """Generate a random RFC 4122 version-4 UUID string."""
    return str(uuid.uuid4())


def _require_any(
    params: Mapping[str, Any], keys: tuple[str, ...], field_name: str
) -> str | None:
    """Return ``field_name`` when none of ``keys`` is present."""
    if any(key in params for key in keys):
        return None
    return field_name


def _check_package_install(params: Mapping[str, Any]) -> str | None:
    return _require_any(params, (PARAM_PACKAGE, PARAM_NAME), PARAM_PACKAGE)


def _check_service_start(params: Mapping[str, Any]) -> str | None:
    return _require_any(params, (PARAM_SERVICE, PARAM_NAME), PARAM_SERVICE)


def _check_file_write(params: Mapping[str, Any]) -> str | None:
    if PARAM_PATH not in params:
        return PARAM_PATH
    return _require_any(
        params, (PARAM_CONTENT, PARAM_SOURCE), PARAM_CONTENT_OR_SOURCE
    )


# Types without an entry here are always valid.
_PARAM_RULES: dict[str, Callable[[Mapping[str, Any]], str | None]] = {
    OperationType.PACKAGE_INSTALL: _check_package_install,
    OperationType.SERVICE_START: _check_service_start,
    OperationType.FILE_WRITE: _check_file_write,
}


@dataclass(frozen=True)
class Operation:
    """
    A single infrastructure action in the semantic graph.

    Operations are immutable. ``params`` holds the action-specific
    parameters, ``target`` the deployment constraints used for partitioning
    (os, arch, environment, region, device_type, ipv6, ipv6_prefix, mac) and
    ``metadata`` provenance or tooling hints.
    """

    id: str
    type: OperationType | str
    params: Mapping[str, Any] = field(default_factory=dict)
    target: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", coerce_operation_type(self.type))

    def __hash__(self) -> int:
        return hash(self.id)

    @classmethod
    def create(
        cls,
        type: OperationType | str,
        params: Mapping[str, Any] | None = None,
        *,
        id: str | None = None,
        target: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Operation:
        """
        Create an operation, generating a UUID4 id when none is given.

        Args:
            type: Operation type tag.
            params: Type-specific parameters.
            id: Optional explicit identifier.
            target: Deployment target constraints.
            metadata: Free-form provenance information.

        Returns:
            A new Operation.

        """
        return cls(
            id=id if id is not None else generate_operation_id(),
            type=type,
            params=dict(params or {}),
            target=dict(target or {}),
            metadata=dict(metadata or {}),
        )

    @property
    def type_name(self) -> str:
        """Return the type tag as a plain string."""
        return tag_name(self.type)

    def validate(self) -> MissingParameterError | None:
        """
        Check the parameters required by this operation's type.

        Returns:
            None when valid, otherwise a MissingParameterError naming the
            absent field.

        """
        rule = _PARAM_RULES.get(self.type)
        if rule is None:
            return None
        missing = rule(self.params)
        if missing is None:
            return None
        return MissingParameterError(self.type_name, missing)

    def is_valid(self) -> bool:
        """Return True when ``validate`` finds nothing missing."""
        return self.validate() is None

    def display(self, limit: int | None = None) -> str:
        """
        Render a short human-readable summary such as ``package_install({...})``.

        Args:
            limit: Maximum number of parameters to show. Defaults to the
                HAR_DISPLAY_PARAM_LIMIT setting.

        Returns:
            Summary string.

        """
        if limit is None:
            limit = load_graph_settings().display_param_limit
        items = list(self.params.items())
        parts = [f"{key!r}: {value!r}" for key, value in items[: max(limit, 0)]]
        if len(items) > len(parts):
            parts.append("...")
        shown = ", ".join(parts)
        return f"{self.type_name}({{{shown}}})"

    def __str__(self) -> str:
        return self.display()

    def to_dict(self) -> dict[str, Any]:
        """Serialise operation to dictionary."""
        return {
            "id": self.id,
            "type": self.type_name,
            "params": dict(self.params),
            "target": dict(self.target),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Operation:
        """
        Build an operation from its dictionary form.

        Raises:
            IRSchemaError: If the record has no string type, a non-string id,
                or a mapping field that is not a mapping.

        """
        if not isinstance(data, Mapping) or "type" not in data:
            raise IRSchemaError("operation record requires a 'type'")
        if not isinstance(data["type"], str) or not data["type"]:
            raise IRSchemaError("operation 'type' must be a non-empty string")
        if "id" in data and not isinstance(data["id"], str):
            raise IRSchemaError("operation 'id' must be a string")
        for key in ("params", "target", "metadata"):
            if not isinstance(data.get(key, {}), Mapping):
                raise IRSchemaError(f"operation '{key}' must be a mapping")
        return cls.create(
            data["type"],
            data.get("params"),
            id=data.get("id"),
            target=data.get("target"),
            metadata=data.get("metadata"),
        )
