"""Tests for cross-file dependency graph construction."""

import pytest

from confchain.core.exceptions import (
    CyclicReferenceError,
    DuplicateGlobalDefinitionError,
    UndefinedLocalReferenceError,
    UnsupportedRootReferenceError,
)
from confchain.syntax import parse_source
from confchain.variables.builder import GraphBuilder
from confchain.variables.types import BindingVertex, IncludeVertex


def _add(builder: GraphBuilder, source: str, filename: str, include: dict | None = None):
    return builder.add_file(parse_source(source, filename), include)


class TestAddFile:
    """Tests for vertices and edges of a single file."""

    def test_constant_bindings_hang_off_root(self) -> None:
        """Bindings without references are connected from the root."""
        builder = GraphBuilder()
        scope = _add(builder, 'locals {\n a = 1\n}\nglobals {\n b = "x"\n}\n', "child.hcl")

        root = builder.graph.root_id
        assert builder.graph.has_edge(root, scope.local_vertices["a"])
        assert builder.graph.has_edge(root, builder.global_vertices["b"])

    def test_reference_edges(self) -> None:
        """An edge runs from the referenced binding to the referencing one."""
        builder = GraphBuilder()
        scope = _add(builder, "locals {\n a = 1\n b = local.a + 1\n}\nglobals {\n c = local.b\n}\n", "f.hcl")

        a = scope.local_vertices["a"]
        b = scope.local_vertices["b"]
        c = builder.global_vertices["c"]
        assert builder.graph.has_edge(a, b)
        assert builder.graph.has_edge(b, c)
        assert not builder.graph.has_edge(builder.graph.root_id, b)

    def test_local_forward_reference_in_same_file(self) -> None:
        """Locals may reference locals declared later in the same block."""
        builder = GraphBuilder()
        scope = _add(builder, "locals {\n b = local.a\n a = 1\n}\n", "f.hcl")
        assert builder.graph.has_edge(scope.local_vertices["a"], scope.local_vertices["b"])

    def test_undefined_local(self) -> None:
        """A reference to an undefined local fails."""
        builder = GraphBuilder()
        with pytest.raises(UndefinedLocalReferenceError) as exc_info:
            _add(builder, "locals {\n a = local.missing\n}\n", "f.hcl")

        assert exc_info.value.name == "missing"
        assert exc_info.value.referenced_by == "local.a"
        assert exc_info.value.filename == "f.hcl"

    def test_unsupported_root(self) -> None:
        """Only local, global and include roots are allowed."""
        builder = GraphBuilder()
        with pytest.raises(UnsupportedRootReferenceError) as exc_info:
            _add(builder, "globals {\n a = var.region\n}\n", "f.hcl")
        assert exc_info.value.root_name == "var"

    def test_include_sentinel(self) -> None:
        """include.* references depend on the file's include vertex."""
        builder = GraphBuilder()
        scope = _add(builder, "locals {\n p = include.parent\n q = include.level\n}\n", "f.hcl", {"parent": "", "level": 0})

        assert scope.include_vertex is not None
        assert isinstance(builder.graph.vertex(scope.include_vertex), IncludeVertex)
        assert builder.graph.has_edge(builder.graph.root_id, scope.include_vertex)
        assert builder.graph.has_edge(scope.include_vertex, scope.local_vertices["p"])
        assert builder.graph.has_edge(scope.include_vertex, scope.local_vertices["q"])

    def test_no_include_vertex_without_references(self) -> None:
        """The include vertex is created only when referenced."""
        builder = GraphBuilder()
        scope = _add(builder, "locals {\n a = 1\n}\n", "f.hcl")
        assert scope.include_vertex is None

    def test_cycle_in_one_file(self) -> None:
        """Mutually referencing globals fail validation."""
        builder = GraphBuilder()
        with pytest.raises(CyclicReferenceError) as exc_info:
            _add(builder, "globals {\n a = global.b\n b = global.a\n}\n", "f.hcl")
        assert set(exc_info.value.cycle) == {"global.a", "global.b"}


class TestCrossFile:
    """Tests for globals shared across files."""

    def test_provisional_global_filled_by_parent(self) -> None:
        """The parent's definition fills the child's provisional vertex."""
        builder = GraphBuilder()
        _add(builder, 'globals {\n url = "${global.region}.example.com"\n}\n', "child.hcl")

        provisional_id = builder.global_vertices["region"]
        vertex = builder.graph.vertex(provisional_id)
        assert isinstance(vertex, BindingVertex)
        assert vertex.binding.is_provisional
        assert builder.unresolved_globals() == ["region"]

        _add(builder, 'globals {\n region = "us-east-1"\n}\n', "parent.hcl")

        assert builder.global_vertices["region"] == provisional_id
        assert not vertex.binding.is_provisional
        assert vertex.binding.filename == "parent.hcl"
        assert builder.unresolved_globals() == []
        assert builder.graph.has_edge(builder.graph.root_id, provisional_id)
        assert builder.graph.has_edge(provisional_id, builder.global_vertices["url"])

    def test_global_defined_twice(self) -> None:
        """Two files may not both define a global."""
        builder = GraphBuilder()
        _add(builder, "globals {\n a = 1\n}\n", "child.hcl")
        with pytest.raises(DuplicateGlobalDefinitionError) as exc_info:
            _add(builder, "globals {\n a = 2\n}\n", "parent.hcl")

        assert exc_info.value.first_file == "child.hcl"
        assert exc_info.value.second_file == "parent.hcl"

    def test_local_of_other_file_not_visible(self) -> None:
        """A local defined in the parent cannot be read by the child."""
        builder = GraphBuilder()
        with pytest.raises(UndefinedLocalReferenceError):
            _add(builder, "globals {\n a = local.shared\n}\n", "child.hcl")

    def test_locals_are_per_file(self) -> None:
        """Equal local names in different files are separate vertices."""
        builder = GraphBuilder()
        child = _add(builder, "locals {\n name = 1\n}\n", "child.hcl")
        parent = _add(builder, "locals {\n name = 2\n}\n", "parent.hcl")
        assert child.local_vertices["name"] != parent.local_vertices["name"]

    def test_cycle_across_files(self) -> None:
        """A cycle completed by a later file is detected when it is added."""
        builder = GraphBuilder()
        _add(builder, "globals {\n a = global.b\n}\n", "child.hcl")
        with pytest.raises(CyclicReferenceError):
            _add(builder, "globals {\n b = global.a\n}\n", "parent.hcl")
