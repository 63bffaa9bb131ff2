"""
The HAR semantic graph: a tool-agnostic intermediate representation.

Vertices are operations and edges are dependencies between them. Graph
values are immutable; every method that "adds" returns a new graph and the
original stays untouched.

This module provides:
- Lookup by id (constant time through an id index), by type and by edge
- Validation of references, acyclicity and per-operation parameters
- Deterministic topological ordering using Kahn's algorithm
- Partitioning into induced subgraphs and merging of several graphs
- Dictionary serialisation carrying the IR schema version
"""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from har.core.config import GraphSettings, load_graph_settings
from har.core.constants import MERGED_FROM_KEY, PARTITION_KEY
from har.core.errors import (
    CircularDependencyError,
    GraphValidationError,
    InvalidOperationsError,
    InvalidReferencesError,
    IRSchemaError,
    MissingParameterError,
    PartitionKeyError,
)
from har.core.logging import get_logger
from har.ir.dependency import Dependency
from har.ir.operation import Operation, OperationType
from har.ir.versioning import CURRENT_IR_VERSION, IRVersion

logger = get_logger(__name__)

PartitionKeyFn = Callable[[Operation], Hashable]


def _hashable_form(value: Any) -> Hashable:
    """Convert lists, mappings and sets to tuples and frozensets, recursively."""
    if isinstance(value, Mapping):
        return frozenset(
            (_hashable_form(key), _hashable_form(item)) for key, item in value.items()
        )
    if isinstance(value, (list, tuple)):
        return tuple(_hashable_form(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(_hashable_form(item) for item in value)
    hash(value)
    return value


def _is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


def _partition_key(value: Any, operation: Operation) -> Hashable:
    """Return ``value`` usable as a dict key, or raise naming ``operation``."""
    if _is_hashable(value):
        return value
    try:
        return _hashable_form(value)
    except TypeError as e:
        raise PartitionKeyError(operation.id, value) from e


@dataclass(frozen=True)
class Graph:
    """
    Directed graph of operations and the dependencies ordering them.

    ``operations`` and ``dependencies`` keep the order in which they were
    added; that order decides tie-breaks in ``topological_sort``. If two
    operations share an id, lookups resolve to the first one.
    """

    operations: tuple[Operation, ...] = ()
    dependencies: tuple[Dependency, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)
    _index: dict[str, Operation] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "operations", tuple(self.operations))
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        index: dict[str, Operation] = {}
        for operation in self.operations:
            index.setdefault(operation.id, operation)
        object.__setattr__(self, "_index", index)

    @classmethod
    def create(
        cls,
        operations: Iterable[Operation] | None = None,
        dependencies: Iterable[Dependency] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Graph:
        """
        Create a graph, empty by default.

        Adapters should pass every operation and dependency here in one go;
        chaining ``add_operation`` rebuilds the id index on each call.
        """
        return cls(
            operations=tuple(operations or ()),
            dependencies=tuple(dependencies or ()),
            metadata=dict(metadata or {}),
        )

    # Construction

    def add_operation(self, operation: Operation) -> Graph:
        """Return a new graph with ``operation`` appended."""
        return Graph(
            operations=(*self.operations, operation),
            dependencies=self.dependencies,
            metadata=dict(self.metadata),
        )

    def add_dependency(self, dependency: Dependency) -> Graph:
        """Return a new graph with ``dependency`` appended."""
        return Graph(
            operations=self.operations,
            dependencies=(*self.dependencies, dependency),
            metadata=dict(self.metadata),
        )

    # Lookups

    def find_operation(self, operation_id: str) -> Operation | None:
        """Retrieve an operation by id."""
        return self._index.get(operation_id)

    def operations_by_type(
        self, operation_type: OperationType | str
    ) -> list[Operation]:
        """Return every operation of exactly ``operation_type``, in graph order."""
        return [op for op in self.operations if op.type == operation_type]

    def dependencies_for(self, operation_id: str) -> list[Dependency]:
        """Return the edges pointing at ``operation_id``: its prerequisites."""
        return [dep for dep in self.dependencies if dep.to_id == operation_id]

    def dependents_of(self, operation_id: str) -> list[Dependency]:
        """Return the edges leaving ``operation_id``: what waits on it."""
        return [dep for dep in self.dependencies if dep.from_id == operation_id]

    @property
    def operation_count(self) -> int:
        """Number of operations in the graph."""
        return len(self.operations)

    @property
    def dependency_count(self) -> int:
        """Number of dependencies in the graph."""
        return len(self.dependencies)

    @property
    def is_empty(self) -> bool:
        """True when the graph has no operations."""
        return not self.operations

    # Validation

    def validate(self) -> GraphValidationError | None:
        """
        Validate the graph structure.

        Checks run in order and stop at the first failure:
        - every dependency references existing operations
        - there are no circular dependencies
        - every operation has the parameters its type requires

        Call the individual ``validate_*`` methods to collect every class
        of problem at once.

        Returns:
            None when the graph is sound, otherwise the first error found.

        """
        for check in (
            self.validate_references,
            self.validate_acyclic,
            self.validate_operations,
        ):
            error = check()
            if error is not None:
                logger.debug(f"Graph validation failed: {error.kind}")
                return error
        return None

    def ensure_valid(self) -> None:
        """
        Raise the first validation error, if any.

        Raises:
            GraphValidationError: If ``validate`` reports a problem.

        """
        error = self.validate()
        if error is not None:
            raise error

    def validate_references(self) -> InvalidReferencesError | None:
        """Report dependencies whose endpoints are not operations of this graph."""
        invalid = [
            dep
            for dep in self.dependencies
            if dep.from_id not in self._index or dep.to_id not in self._index
        ]
        if invalid:
            return InvalidReferencesError(invalid)
        return None

    def validate_acyclic(self) -> CircularDependencyError | None:
        """Report a cycle found while ordering the graph."""
        try:
            self._kahn_order()
        except CircularDependencyError as e:
            return e
        return None

    def validate_operations(self) -> InvalidOperationsError | None:
        """Report operations missing parameters required by their type."""
        failures: list[tuple[Operation, MissingParameterError]] = []
        for operation in self.operations:
            error = operation.validate()
            if error is not None:
                failures.append((operation, error))
        if failures:
            return InvalidOperationsError(failures)
        return None

    # Ordering

    def topological_sort(self) -> list[Operation]:
        """
        Order operations so every prerequisite precedes its dependents.

        Operations with no ordering constraint between them keep the order
        in which they were added. Dependencies naming unknown operations are
        ignored here; ``validate_references`` reports them.

        Returns:
            Operations in execution order.

        Raises:
            CircularDependencyError: If the dependencies contain a cycle.

        """
        return [self._index[operation_id] for operation_id in self._kahn_order()]

    def _kahn_order(self) -> list[str]:
        in_degree = dict.fromkeys(self._index, 0)
        adjacency: dict[str, list[str]] = defaultdict(list)
        for dep in self.dependencies:
            if dep.from_id not in in_degree or dep.to_id not in in_degree:
                continue
            adjacency[dep.from_id].append(dep.to_id)
            in_degree[dep.to_id] += 1

        queue = deque(op_id for op_id, degree in in_degree.items() if degree == 0)
        order: list[str] = []
        while queue:
            current = queue.popleft()
            order.append(current)
            for neighbour in adjacency.get(current, ()):
                in_degree[neighbour] -= 1
                if in_degree[neighbour] == 0:
                    queue.append(neighbour)

        unresolved = [op_id for op_id, degree in in_degree.items() if degree > 0]
        if unresolved:
            logger.warning(
                f"Circular dependency leaves {len(unresolved)} operations unordered"
            )
            raise CircularDependencyError(unresolved)

        logger.debug(
            f"Ordered {len(order)} operations across "
            f"{self.dependency_count} dependencies"
        )
        return order

    # Partitioning and merging

    def partition_by(
        self, key_fn: PartitionKeyFn, *, settings: GraphSettings | None = None
    ) -> dict[Hashable, Graph]:
        """
        Split the graph into induced subgraphs grouped by ``key_fn``.

        Each subgraph keeps only the dependencies whose endpoints both fall
        in its group and records the key under ``partition_key`` in its
        metadata. Dependencies crossing groups are dropped, so ordering
        between partitions is lost; ``cross_partition_edges`` lists them and
        the HAR_PARTITION_DROPPED_EDGES=warn setting logs them.

        Args:
            key_fn: Maps an operation to a partition key. Lists, mappings
                and sets are grouped under their hashable form: a tuple
                or a frozenset.
            settings: Graph settings; loaded from the environment when None.

        Returns:
            Mapping of key to subgraph, in the order keys were first seen.

        Raises:
            PartitionKeyError: If a key cannot be made hashable.

        """
        groups = self._group_operations(key_fn)
        induced, crossing = self._split_dependencies(groups)

        settings = settings or load_graph_settings()
        if crossing and settings.warn_on_dropped_edges:
            dropped = ", ".join(str(dep) for dep in crossing)
            logger.warning(
                f"Partitioning dropped {len(crossing)} cross-partition "
                f"dependencies: {dropped}"
            )

        logger.debug(
            f"Partitioned {self.operation_count} operations into {len(groups)} groups"
        )
        return {
            key: Graph(
                operations=tuple(ops),
                dependencies=tuple(induced[index]),
                metadata={PARTITION_KEY: key},
            )
            for index, (key, ops) in enumerate(groups.items())
        }

    def cross_partition_edges(self, key_fn: PartitionKeyFn) -> list[Dependency]:
        """Return the dependencies ``partition_by(key_fn)`` would drop."""
        _, crossing = self._split_dependencies(self._group_operations(key_fn))
        return crossing

    def _group_operations(
        self, key_fn: PartitionKeyFn
    ) -> dict[Hashable, list[Operation]]:
        groups: dict[Hashable, list[Operation]] = {}
        for operation in self.operations:
            key = _partition_key(key_fn(operation), operation)
            groups.setdefault(key, []).append(operation)
        return groups

    def _split_dependencies(
        self, groups: Mapping[Hashable, list[Operation]]
    ) -> tuple[list[list[Dependency]], list[Dependency]]:
        # Groups are compared by position; keys such as NaN never equal
        # themselves.
        group_of: dict[str, int] = {}
        for index, ops in enumerate(groups.values()):
            for operation in ops:
                group_of.setdefault(operation.id, index)

        induced: list[list[Dependency]] = [[] for _ in groups]
        crossing: list[Dependency] = []
        for dep in self.dependencies:
            if dep.from_id not in group_of or dep.to_id not in group_of:
                continue
            from_group = group_of[dep.from_id]
            if from_group == group_of[dep.to_id]:
                induced[from_group].append(dep)
            else:
                crossing.append(dep)
        return induced, crossing

    @staticmethod
    def merge(graphs: Iterable[Graph]) -> Graph:
        """
        Combine several graphs into one.

        Operations are deduplicated by id (the first occurrence wins) and
        dependencies by structural equality. The inputs' metadata is kept
        under ``merged_from``. The result is not validated.
        """
        graphs = list(graphs)
        operations: list[Operation] = []
        seen_ids: set[str] = set()
        dependencies: list[Dependency] = []
        seen_edges: dict[tuple[Hashable, ...], list[Dependency]] = {}

        for graph in graphs:
            for operation in graph.operations:
                if operation.id not in seen_ids:
                    seen_ids.add(operation.id)
                    operations.append(operation)
            for dep in graph.dependencies:
                bucket = seen_edges.setdefault(dep.identity_key(), [])
                if not any(dep == seen for seen in bucket):
                    bucket.append(dep)
                    dependencies.append(dep)

        logger.debug(
            f"Merged {len(graphs)} graphs into {len(operations)} operations "
            f"and {len(dependencies)} dependencies"
        )
        return Graph(
            operations=tuple(operations),
            dependencies=tuple(dependencies),
            metadata={MERGED_FROM_KEY: [dict(graph.metadata) for graph in graphs]},
        )

    # Serialisation

    def to_dict(self) -> dict[str, Any]:
        """Serialise graph to dictionary."""
        return {
            "version": str(CURRENT_IR_VERSION),
            "operations": [op.to_dict() for op in self.operations],
            "dependencies": [dep.to_dict() for dep in self.dependencies],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Graph:
        """
        Rebuild a graph from ``to_dict`` output.

        Data without a ``version`` is read as the current schema version.

        Raises:
            IRSchemaError: If the version is malformed or incompatible, or a
                record is malformed.

        """
        if not isinstance(data, Mapping):
            raise IRSchemaError("graph data must be a mapping")

        raw_version = data.get("version", str(CURRENT_IR_VERSION))
        try:
            version = IRVersion.parse(raw_version)
        except ValueError as e:
            raise IRSchemaError(str(e)) from e
        if not CURRENT_IR_VERSION.is_compatible_with(version):
            raise IRSchemaError(
                f"schema version {version} is not compatible with {CURRENT_IR_VERSION}"
            )

        operations = data.get("operations", [])
        dependencies = data.get("dependencies", [])
        metadata = data.get("metadata", {})
        if not isinstance(operations, list) or not isinstance(dependencies, list):
            raise IRSchemaError("'operations' and 'dependencies' must be lists")
        if not isinstance(metadata, Mapping):
            raise IRSchemaError("graph 'metadata' must be a mapping")

        return cls.create(
            operations=[Operation.from_dict(item) for item in operations],
            dependencies=[Dependency.from_dict(item) for item in dependencies],
            metadata=metadata,
        )
