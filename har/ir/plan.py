"""Per-target execution plans built from a validated graph."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field

from har.core.logging import get_logger, log_operation
from har.ir.dependency import Dependency
from har.ir.graph import Graph, PartitionKeyFn
from har.ir.operation import Operation

logger = get_logger(__name__)


def by_target(field_name: str) -> PartitionKeyFn:
    """
    Build a partition key function reading one target constraint.

    Operations without the constraint are grouped under ``None``.

    Example:
        graph.partition_by(by_target("os"))

    """

    def key(operation: Operation) -> Hashable:
        return operation.target.get(field_name)

    key.__name__ = f"by_target_{field_name}"
    return key


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered operations per partition key, ready for transformers."""

    steps: dict[Hashable, list[Operation]] = field(default_factory=dict)
    dropped_dependencies: tuple[Dependency, ...] = ()

    @property
    def keys(self) -> list[Hashable]:
        """Partition keys in the order they were first seen."""
        return list(self.steps)

    @property
    def operation_count(self) -> int:
        """Total number of operations across every partition."""
        return sum(len(ops) for ops in self.steps.values())


@log_operation("plan_execution")
def plan_execution(graph: Graph, key_fn: PartitionKeyFn | None = None) -> ExecutionPlan:
    """
    Validate ``graph`` and order its operations per partition.

    Args:
        graph: Graph to plan.
        key_fn: Optional partition key function, typically ``by_target``.
            Without one, the whole graph forms a single ``None`` partition.

    Returns:
        ExecutionPlan with one ordered operation list per key.

    Raises:
        GraphValidationError: If the graph fails validation.

    """
    graph.ensure_valid()

    if key_fn is None:
        return ExecutionPlan(steps={None: graph.topological_sort()})

    dropped = graph.cross_partition_edges(key_fn)
    partitions = graph.partition_by(key_fn)
    steps = {key: subgraph.topological_sort() for key, subgraph in partitions.items()}
    logger.info(
        f"Planned {graph.operation_count} operations across {len(steps)} partitions"
    )
    return ExecutionPlan(steps=steps, dropped_dependencies=tuple(dropped))
