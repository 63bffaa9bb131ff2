"""
IR schema versioning.

Serialised graphs carry the schema version they were written with so that
readers can refuse data from an incompatible major version.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering

from har.core.constants import IR_SCHEMA_VERSION


@total_ordering
@dataclass(frozen=True)
class IRVersion:
    """Semantic version of the serialised IR schema."""

    major: int
    minor: int
    patch: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def to_tuple(self) -> tuple[int, int, int]:
        """Convert to tuple for comparison."""
        return (self.major, self.minor, self.patch)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, IRVersion):
            return NotImplemented
        return self.to_tuple() < other.to_tuple()

    @staticmethod
    def parse(version_string: str) -> IRVersion:
        """
        Parse a version string such as "1.0.0" or "2.1".

        Args:
            version_string: Version to parse.

        Returns:
            IRVersion instance.

        Raises:
            ValueError: If the string is not a dotted numeric version.

        """
        parts = str(version_string).split(".")
        if not 2 <= len(parts) <= 3:
            raise ValueError(f"Invalid version format: {version_string}")
        try:
            numbers = [int(part) for part in parts]
        except ValueError as e:
            raise ValueError(f"Invalid version format: {version_string}") from e
        if any(number < 0 for number in numbers):
            raise ValueError(f"Invalid version format: {version_string}")
        return IRVersion(*numbers)

    def is_compatible_with(self, other: IRVersion) -> bool:
        """
        Check whether data at ``other`` can be read by this version.

        Major versions mark breaking changes; minor and patch may differ.
        """
        return self.major == other.major


CURRENT_IR_VERSION = IRVersion.parse(IR_SCHEMA_VERSION)
