"""HAR: a tool-agnostic intermediate representation for infrastructure code."""

from pathlib import Path

import tomllib


# Read version from pyproject.toml
def _get_version() -> str:
    """Get version from pyproject.toml."""
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    try:
        with pyproject_path.open("rb") as f:
            data = tomllib.load(f)
        version = data.get("tool", {}).get("poetry", {}).get("version")
        return str(version) if version else "unknown"
    except OSError:
        return "unknown"


__version__ = _get_version()

from har.core.errors import (  # noqa: E402
    CircularDependencyError,
    GraphValidationError,
    HarError,
    InvalidOperationsError,
    InvalidReferencesError,
    MissingParameterError,
)
from har.ir import (  # noqa: E402
    Dependency,
    DependencyType,
    Graph,
    Operation,
    OperationType,
    plan_execution,
)

__all__ = [
    "Operation",
    "OperationType",
    "Dependency",
    "DependencyType",
    "Graph",
    "plan_execution",
    "HarError",
    "MissingParameterError",
    "GraphValidationError",
    "InvalidReferencesError",
    "CircularDependencyError",
    "InvalidOperationsError",
]
