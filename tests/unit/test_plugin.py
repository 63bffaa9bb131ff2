"""Unit tests for the adapter interfaces and registry."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from typing import Any

import pytest

from har.core.errors import CircularDependencyError, UnsupportedFormatError
from har.ir import (
    AdapterRegistry,
    ContentStore,
    Dependency,
    Graph,
    Operation,
    SecurityManager,
    SourceFormat,
    SourceParser,
    TargetFormat,
    TargetTransformer,
    content_id,
    get_adapter_registry,
)


class MockParser(SourceParser):
    """Parser that turns 'name=package' lines into install operations."""

    @property
    def source_format(self) -> SourceFormat:
        return SourceFormat.ANSIBLE

    def parse(self, content: str | dict[str, Any], **options: Any) -> Graph:
        operations = []
        for line in str(content).splitlines():
            name, package = line.split("=", 1)
            operations.append(
                Operation.create("package_install", {"package": package}, id=name)
            )
        return Graph.create(operations=operations)

    def validate(self, content: str | dict[str, Any]) -> list[str]:
        return [
            f"line {n}: missing '='"
            for n, line in enumerate(str(content).splitlines(), 1)
            if "=" not in line
        ]


class MockTransformer(TargetTransformer):
    """Transformer that lists operation ids, one per line."""

    @property
    def target_format(self) -> TargetFormat:
        return TargetFormat.SALT

    def transform(self, operations: Sequence[Operation], **options: Any) -> str:
        separator = options.get("separator", "\n")
        return separator.join(op.id for op in operations)


class DictStore(ContentStore):
    """In-memory content store."""

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    def store(self, content: bytes) -> str:
        key = content_id(content)
        self.blobs[key] = content
        return key

    def retrieve(self, content_id: str) -> bytes:
        return self.blobs[content_id]


class TokenSecurityManager(SecurityManager):
    """Security manager allowing one token and read-only operation types."""

    def authenticate(self, credential: str) -> str:
        if credential != "secret-token":
            raise PermissionError("invalid credential")
        return "operator"

    def authorize(self, identity: str, operation: Operation) -> None:
        if operation.type_name.endswith("_delete"):
            raise PermissionError(f"{identity} may not run {operation.type_name}")


@pytest.fixture
def registry() -> AdapterRegistry:
    """Registry with the mock parser and transformer registered."""
    registry = AdapterRegistry()
    registry.register_parser(SourceFormat.ANSIBLE, MockParser)
    registry.register_transformer(TargetFormat.SALT, MockTransformer)
    return registry


class TestAdapterRegistration:
    """Test adapter registration and lookup."""

    def test_get_registered_parser(self, registry: AdapterRegistry) -> None:
        """Test looking up a parser by enum and by name."""
        assert isinstance(registry.get_parser(SourceFormat.ANSIBLE), MockParser)
        assert isinstance(registry.get_parser("ansible"), MockParser)

    def test_get_registered_transformer(self, registry: AdapterRegistry) -> None:
        """Test looking up a transformer by name."""
        assert isinstance(registry.get_transformer("salt"), MockTransformer)

    def test_duplicate_parser_registration(self, registry: AdapterRegistry) -> None:
        """Test that a format can only be registered once."""
        with pytest.raises(ValueError, match="already registered"):
            registry.register_parser(SourceFormat.ANSIBLE, MockParser)

    def test_duplicate_transformer_registration(
        self, registry: AdapterRegistry
    ) -> None:
        """Test that a transformer format can only be registered once."""
        with pytest.raises(ValueError, match="already registered"):
            registry.register_transformer(TargetFormat.SALT, MockTransformer)

    def test_unregistered_parser(self, registry: AdapterRegistry) -> None:
        """Test looking up a known but unregistered format."""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            registry.get_parser(SourceFormat.PUPPET)

        assert exc_info.value.adapter_kind == "source"
        assert exc_info.value.name == "puppet"

    def test_unknown_format_name(self, registry: AdapterRegistry) -> None:
        """Test looking up a format name outside the enum."""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            registry.get_transformer("cfengine")

        assert exc_info.value.adapter_kind == "target"
        assert exc_info.value.name == "cfengine"

    def test_available_adapters(self, registry: AdapterRegistry) -> None:
        """Test listing registered formats."""
        assert registry.available_parsers() == [SourceFormat.ANSIBLE]
        assert registry.available_transformers() == [TargetFormat.SALT]

    def test_global_registry_is_singleton(self) -> None:
        """Test that the global registry is created once."""
        assert get_adapter_registry() is get_adapter_registry()


class TestAdapterDispatch:
    """Test parsing and transforming through the registry."""

    def test_parse(self, registry: AdapterRegistry) -> None:
        """Test parsing content into a graph."""
        graph = registry.parse("ansible", "web=nginx\ndb=postgresql")

        assert [op.id for op in graph.operations] == ["web", "db"]
        assert graph.validate() is None

    def test_parser_validate(self) -> None:
        """Test the parser's own validation hook."""
        assert MockParser().validate("ok=1\nbroken") == ["line 2: missing '='"]

    def test_transform_orders_operations(self, registry: AdapterRegistry) -> None:
        """Test that the transformer receives operations in execution order."""
        graph = Graph.create(
            operations=[
                Operation.create("service_start", {"service": "nginx"}, id="start"),
                Operation.create("package_install", {"package": "nginx"}, id="pkg"),
            ],
            dependencies=[Dependency.create("pkg", "start", "requires")],
        )

        assert registry.transform(graph, TargetFormat.SALT) == "pkg\nstart"
        assert registry.transform(graph, "salt", separator=",") == "pkg,start"

    def test_transform_rejects_invalid_graph(self, registry: AdapterRegistry) -> None:
        """Test that an invalid graph never reaches the transformer."""
        graph = Graph.create(
            operations=[
                Operation.create("command_run", {"command": "a"}, id="a"),
                Operation.create("command_run", {"command": "b"}, id="b"),
            ],
            dependencies=[Dependency.create("a", "b"), Dependency.create("b", "a")],
        )

        with pytest.raises(CircularDependencyError):
            registry.transform(graph, "salt")

    def test_transform_unsupported_target(self, registry: AdapterRegistry) -> None:
        """Test transforming to an unregistered format."""
        with pytest.raises(UnsupportedFormatError):
            registry.transform(Graph.create(), TargetFormat.TERRAFORM)


class TestContentStore:
    """Test content addressing helpers."""

    def test_content_id_is_sha256(self) -> None:
        """Test that content ids are SHA-256 hex digests."""
        assert content_id(b"server {}") == hashlib.sha256(b"server {}").hexdigest()

    def test_store_roundtrip(self) -> None:
        """Test a store keyed by content id."""
        store = DictStore()

        key = store.store(b"listen 80;")

        assert key == content_id(b"listen 80;")
        assert store.retrieve(key) == b"listen 80;"


class TestSecurityManager:
    """Test the security collaborator interface."""

    def test_authenticate_and_authorize(self) -> None:
        """Test a concrete security manager."""
        manager = TokenSecurityManager()
        identity = manager.authenticate("secret-token")

        manager.authorize(identity, Operation.create("command_run", {}, id="run"))
        with pytest.raises(PermissionError, match="operator may not run"):
            manager.authorize(identity, Operation.create("user_delete", {}, id="rm"))

    def test_rejects_bad_credential(self) -> None:
        """Test that unknown credentials are refused."""
        with pytest.raises(PermissionError):
            TokenSecurityManager().authenticate("guess")

    def test_abstract_interfaces_cannot_be_instantiated(self) -> None:
        """Test that the collaborator interfaces stay abstract."""
        with pytest.raises(TypeError):
            SecurityManager()  # type: ignore[abstract]
        with pytest.raises(TypeError):
            ContentStore()  # type: ignore[abstract]
