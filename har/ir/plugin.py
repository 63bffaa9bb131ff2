"""
Adapter interfaces and registry for source parsers and target transformers.

Parsers turn a tool's configuration into a Graph; transformers turn an
ordered list of operations back into a tool's configuration. Both live
outside the IR core and plug in through ``AdapterRegistry``. The security
manager and content store interfaces describe collaborators the core never
calls directly; callers pass their results in.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from typing import Any

from har.core.errors import UnsupportedFormatError
from har.core.logging import LogContext, get_logger, log_operation
from har.ir.graph import Graph
from har.ir.operation import Operation, tag_name

logger = get_logger(__name__)


class SourceFormat(str, Enum):
    """Configuration formats that can be parsed into the IR."""

    ANSIBLE = "ansible"
    SALT = "salt"
    TERRAFORM = "terraform"
    PUPPET = "puppet"
    CHEF = "chef"
    KUBERNETES = "kubernetes"


class TargetFormat(str, Enum):
    """Configuration formats the IR can be transformed into."""

    ANSIBLE = "ansible"
    SALT = "salt"
    TERRAFORM = "terraform"
    PUPPET = "puppet"
    CHEF = "chef"
    KUBERNETES = "kubernetes"


class SourceParser(ABC):
    """
    Base class for source format parsers.

    Subclasses convert one tool's configuration into a Graph.
    """

    @property
    @abstractmethod
    def source_format(self) -> SourceFormat:
        """Return the format this parser handles."""

    @abstractmethod
    def parse(self, content: str | dict[str, Any], **options: Any) -> Graph:
        """
        Parse source configuration into the IR.

        Args:
            content: Raw configuration text or already-decoded data.
            **options: Parser-specific options.

        Returns:
            Graph representing the configuration.

        """

    @abstractmethod
    def validate(self, content: str | dict[str, Any]) -> list[str]:
        """
        Check source configuration without building a graph.

        Returns:
            Problems found; empty when the content looks parseable.

        """


class TargetTransformer(ABC):
    """
    Base class for target format transformers.

    Transformers receive operations already in execution order and never
    see an unsorted graph.
    """

    @property
    @abstractmethod
    def target_format(self) -> TargetFormat:
        """Return the format this transformer emits."""

    @abstractmethod
    def transform(self, operations: Sequence[Operation], **options: Any) -> str:
        """
        Render ordered operations in the target format.

        Args:
            operations: Operations in execution order.
            **options: Transformer-specific options.

        Returns:
            Target configuration text.

        """


class SecurityManager(ABC):
    """Authentication and authorisation collaborator."""

    @abstractmethod
    def authenticate(self, credential: str) -> str:
        """Return the identity for ``credential`` or raise on failure."""

    @abstractmethod
    def authorize(self, identity: str, operation: Operation) -> None:
        """Raise if ``identity`` may not perform ``operation``."""


class ContentStore(ABC):
    """Content-addressed storage collaborator keyed by ``content_id``."""

    @abstractmethod
    def store(self, content: bytes) -> str:
        """Store content and return its content id."""

    @abstractmethod
    def retrieve(self, content_id: str) -> bytes:
        """Return the content stored under ``content_id``."""


def content_id(content: bytes) -> str:
    """Return the SHA-256 hex digest content stores use as identifier."""
    return hashlib.sha256(content).hexdigest()


class AdapterRegistry:
    """
    Registry for source parsers and target transformers.

    Manages adapter registration, lookup and dispatch.
    """

    def __init__(self) -> None:
        self._parsers: dict[SourceFormat, type[SourceParser]] = {}
        self._transformers: dict[TargetFormat, type[TargetTransformer]] = {}

    def register_parser(
        self, source_format: SourceFormat, parser_class: type[SourceParser]
    ) -> None:
        """
        Register a source parser.

        Args:
            source_format: Format the parser handles.
            parser_class: Parser class (not instantiated).

        Raises:
            ValueError: If a parser for this format is already registered.

        """
        source_format = SourceFormat(source_format)
        if source_format in self._parsers:
            raise ValueError(f"Parser for {source_format.value} already registered")
        self._parsers[source_format] = parser_class

    def register_transformer(
        self, target_format: TargetFormat, transformer_class: type[TargetTransformer]
    ) -> None:
        """
        Register a target transformer.

        Args:
            target_format: Format the transformer emits.
            transformer_class: Transformer class (not instantiated).

        Raises:
            ValueError: If a transformer for this format is already registered.

        """
        target_format = TargetFormat(target_format)
        if target_format in self._transformers:
            raise ValueError(
                f"Transformer for {target_format.value} already registered"
            )
        self._transformers[target_format] = transformer_class

    def get_parser(self, source_format: SourceFormat | str) -> SourceParser:
        """
        Instantiate the parser for a format.

        Raises:
            UnsupportedFormatError: If no parser is registered for it.

        """
        parser_class = self._lookup(self._parsers, SourceFormat, source_format)
        if parser_class is None:
            raise UnsupportedFormatError("source", tag_name(source_format))
        return parser_class()

    def get_transformer(self, target_format: TargetFormat | str) -> TargetTransformer:
        """
        Instantiate the transformer for a format.

        Raises:
            UnsupportedFormatError: If no transformer is registered for it.

        """
        transformer_class = self._lookup(
            self._transformers, TargetFormat, target_format
        )
        if transformer_class is None:
            raise UnsupportedFormatError("target", tag_name(target_format))
        return transformer_class()

    @staticmethod
    def _lookup(table: dict[Any, Any], enum_cls: type[Enum], name: Any) -> Any:
        try:
            return table.get(enum_cls(name))
        except ValueError:
            return None

    def available_parsers(self) -> list[SourceFormat]:
        """Return registered source formats in registration order."""
        return list(self._parsers)

    def available_transformers(self) -> list[TargetFormat]:
        """Return registered target formats in registration order."""
        return list(self._transformers)

    @log_operation("parse")
    def parse(
        self,
        source_format: SourceFormat | str,
        content: str | dict[str, Any],
        **options: Any,
    ) -> Graph:
        """
        Parse content with the parser registered for ``source_format``.

        Raises:
            UnsupportedFormatError: If no parser is registered.

        """
        parser = self.get_parser(source_format)
        with LogContext(source_format=parser.source_format.value):
            graph = parser.parse(content, **options)
            logger.info(
                f"Parsed {graph.operation_count} operations and "
                f"{graph.dependency_count} dependencies"
            )
        return graph

    @log_operation("transform")
    def transform(
        self, graph: Graph, target_format: TargetFormat | str, **options: Any
    ) -> str:
        """
        Validate and order ``graph``, then render it in ``target_format``.

        Raises:
            UnsupportedFormatError: If no transformer is registered.
            GraphValidationError: If the graph fails validation.

        """
        transformer = self.get_transformer(target_format)
        graph.ensure_valid()
        operations = graph.topological_sort()
        logger.info(
            f"Transforming {len(operations)} operations to "
            f"{transformer.target_format.value}"
        )
        return transformer.transform(operations, **options)


_adapter_registry: AdapterRegistry | None = None


def get_adapter_registry() -> AdapterRegistry:
    """
    Get or create the global adapter registry.

    Returns:
        Global AdapterRegistry instance.

    """
    global _adapter_registry
    if _adapter_registry is None:
        _adapter_registry = AdapterRegistry()
    return _adapter_registry
