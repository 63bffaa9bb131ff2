"""
Intermediate Representation (IR) package for infrastructure conversion.

Provides:
- Operations and dependencies, the vertices and edges of the IR
- The Graph container with validation, ordering, partitioning and merging
- Schema versioning for serialised graphs
- Adapter interfaces for source parsers and target transformers
- Per-target execution planning
"""

from .dependency import Dependency, DependencyType
from .graph import Graph
from .operation import Operation, OperationType, generate_operation_id
from .plan import ExecutionPlan, by_target, plan_execution
from .plugin import (
    AdapterRegistry,
    ContentStore,
    SecurityManager,
    SourceFormat,
    SourceParser,
    TargetFormat,
    TargetTransformer,
    content_id,
    get_adapter_registry,
)
from .versioning import CURRENT_IR_VERSION, IRVersion

__all__ = [
    # Schema
    "Operation",
    "OperationType",
    "generate_operation_id",
    "Dependency",
    "DependencyType",
    "Graph",
    # Versioning
    "IRVersion",
    "CURRENT_IR_VERSION",
    # Adapters
    "SourceFormat",
    "TargetFormat",
    "SourceParser",
    "TargetTransformer",
    "SecurityManager",
    "ContentStore",
    "content_id",
    "AdapterRegistry",
    "get_adapter_registry",
    # Planning
    "ExecutionPlan",
    "by_target",
    "plan_execution",
]
