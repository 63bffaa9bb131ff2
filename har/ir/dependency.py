"""Dependencies: the directed ordering edges between operations."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from har.core.errors import IRSchemaError
from har.ir.operation import tag_name


class DependencyType(str, Enum):
    """Well-known ordering relations. Any other string is also accepted."""

    SEQUENTIAL = "sequential"
    REQUIRES = "requires"
    NOTIFIES = "notifies"
    WATCHES = "watches"
    CONFLICTS = "conflicts"
    DEPENDS_ON = "depends_on"


def coerce_dependency_type(value: str) -> DependencyType | str:
    """Map a known relation string onto its enum member."""
    if isinstance(value, DependencyType):
        return value
    try:
        return DependencyType(value)
    except ValueError:
        return value


def _freeze(value: Any) -> Hashable:
    """
    Build a hashable stand-in for arbitrarily nested metadata.

    Containers are tagged with their kind so values that compare unequal,
    such as a list and a tuple with the same items, freeze differently.
    Sets and frozensets compare equal and share a tag.
    """
    if isinstance(value, Mapping):
        return ("map", frozenset((key, _freeze(item)) for key, item in value.items()))
    if isinstance(value, list):
        return ("list", tuple(_freeze(item) for item in value))
    if isinstance(value, tuple):
        return ("tuple", tuple(_freeze(item) for item in value))
    if isinstance(value, (set, frozenset)):
        return ("set", frozenset(_freeze(item) for item in value))
    if isinstance(value, Hashable):
        return ("value", value)
    return ("repr", repr(value))


@dataclass(frozen=True)
class Dependency:
    """
    A directed edge: ``from_id`` must complete (or fire) before ``to_id``.

    ``from_id`` is the prerequisite and ``to_id`` the dependent.
    """

    from_id: str
    to_id: str
    type: DependencyType | str = DependencyType.SEQUENTIAL
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", coerce_dependency_type(self.type))

    def __hash__(self) -> int:
        return hash(self.identity_key())

    @classmethod
    def create(
        cls,
        from_id: str,
        to_id: str,
        type: DependencyType | str = DependencyType.SEQUENTIAL,
        *,
        metadata: Mapping[str, Any] | None = None,
    ) -> Dependency:
        """Create a dependency between two operation ids."""
        return cls(
            from_id=from_id, to_id=to_id, type=type, metadata=dict(metadata or {})
        )

    @property
    def type_name(self) -> str:
        """Return the relation tag as a plain string."""
        return tag_name(self.type)

    def is_valid(self) -> bool:
        """
        Check that the edge forms a usable ordering constraint.

        Both ends must be non-empty strings and must differ. The graph does
        not reject invalid edges on insertion.
        """
        return (
            isinstance(self.from_id, str)
            and isinstance(self.to_id, str)
            and bool(self.from_id)
            and bool(self.to_id)
            and self.from_id != self.to_id
        )

    def identity_key(self) -> tuple[Hashable, ...]:
        """Return a hashable key equal for structurally equal edges."""
        return (self.from_id, self.to_id, self.type_name, _freeze(self.metadata))

    def __str__(self) -> str:
        return f"{self.from_id} -[{self.type_name}]-> {self.to_id}"

    def to_dict(self) -> dict[str, Any]:
        """Serialise dependency to dictionary."""
        return {
            "from": self.from_id,
            "to": self.to_id,
            "type": self.type_name,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Dependency:
        """
        Build a dependency from its dictionary form.

        Raises:
            IRSchemaError: If ``from`` or ``to`` is missing or not a string,
                or ``type`` is not a string.

        """
        if not isinstance(data, Mapping) or "from" not in data or "to" not in data:
            raise IRSchemaError("dependency record requires 'from' and 'to'")
        if not isinstance(data["from"], str) or not isinstance(data["to"], str):
            raise IRSchemaError("dependency 'from' and 'to' must be strings")
        if not isinstance(data.get("type", ""), str):
            raise IRSchemaError("dependency 'type' must be a string")
        metadata = data.get("metadata", {})
        if not isinstance(metadata, Mapping):
            raise IRSchemaError("dependency 'metadata' must be a mapping")
        return cls.create(
            data["from"],
            data["to"],
            data.get("type", DependencyType.SEQUENTIAL),
            metadata=metadata,
        )
