"""Cross-file dependency graph construction.

Files are added child first. Each file contributes fresh local vertices, and
global vertices that are shared by name across the whole chain. A global that
is referenced before any file defines it gets a provisional vertex; the file
that later defines it fills in that same vertex.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from confchain.core.exceptions import (
    DuplicateGlobalDefinitionError,
    UndefinedLocalReferenceError,
    UnsupportedRootReferenceError,
)
from confchain.syntax.types import ConfigFile
from confchain.variables.catalog import extract_bindings
from confchain.variables.graph import DependencyGraph
from confchain.variables.types import (
    INCLUDE_ROOT,
    Binding,
    BindingVertex,
    FileScope,
    IncludeVertex,
    Namespace,
)

logger = logging.getLogger(__name__)

__all__ = ["GraphBuilder"]


class GraphBuilder:
    """Builds one DependencyGraph spanning an include chain.

    Attributes:
        graph: The graph being built.
        scopes: File scopes in the order the files were added.
        global_vertices: Global name to vertex id.
        global_values: Chain-wide evaluated globals, filled by the evaluator.

    """

    def __init__(self) -> None:
        self.graph = DependencyGraph()
        self.scopes: list[FileScope] = []
        self.global_vertices: dict[str, int] = {}
        self.global_values: dict[str, Any] = {}

    def add_file(
        self,
        config_file: ConfigFile,
        include_values: Mapping[str, Any] | None = None,
    ) -> FileScope:
        """Add the bindings of one file and wire their references.

        Args:
            config_file: Parsed file.
            include_values: Values the file reads through `include.*`.

        Returns:
            The new file scope.

        Raises:
            BindingError: If the file's locals/globals blocks are malformed.
            GraphError: On undefined locals, unsupported roots, a global
                defined twice, or a reference cycle.

        """
        bindings = extract_bindings(config_file)
        scope = FileScope(
            index=len(self.scopes),
            filename=config_file.filename,
            include_values=dict(include_values or {}),
        )
        self.scopes.append(scope)

        added: list[int] = []
        if bindings.locals:
            added.extend(self.add_vertices(scope, Namespace.LOCAL, bindings.locals.values()))
        if bindings.globals:
            added.extend(self.add_vertices(scope, Namespace.GLOBAL, bindings.globals.values()))
        for vertex_id in added:
            self.add_edges(scope, vertex_id)

        self.graph.validate()
        logger.debug(
            "Added %s to dependency graph: %d bindings, %d vertices total",
            scope.filename or "<string>",
            len(added),
            len(self.graph),
        )
        return scope

    def add_vertices(
        self,
        scope: FileScope,
        namespace: Namespace,
        bindings: Iterable[Binding],
    ) -> list[int]:
        """Register vertices for the bindings of one block.

        Returns:
            Ids of the vertices that received an expression from this file.

        Raises:
            DuplicateGlobalDefinitionError: If a global already has an
                expression from another file.

        """
        added: list[int] = []
        for binding in bindings:
            binding.scope = scope
            binding.filename = scope.filename
            if namespace is Namespace.LOCAL:
                vertex_id = self.graph.add_vertex(BindingVertex(binding))
                scope.local_vertices[binding.name] = vertex_id
                added.append(vertex_id)
                continue

            existing = self.global_vertices.get(binding.name)
            if existing is None:
                vertex_id = self.graph.add_vertex(BindingVertex(binding))
                self.global_vertices[binding.name] = vertex_id
                added.append(vertex_id)
                continue

            current = self._binding(existing)
            if not current.is_provisional:
                raise DuplicateGlobalDefinitionError(binding.name, current.filename, scope.filename)
            current.expression = binding.expression
            current.filename = scope.filename
            current.scope = scope
            logger.debug("Filled provisional global.%s from %s", binding.name, scope.filename)
            added.append(existing)
        return added

    def add_edges(self, scope: FileScope, vertex_id: int) -> None:
        """Wire edges from every binding the vertex's expression references.

        Raises:
            UndefinedLocalReferenceError: For `local.NAME` not defined in scope.
            UnsupportedRootReferenceError: For roots other than local/global/include.

        """
        binding = self._binding(vertex_id)
        if binding.expression is None:
            return
        references = binding.expression.variables()
        if not references:
            self.graph.connect(self.graph.root_id, vertex_id)
            return

        for reference in references:
            name = reference.name
            if reference.root == Namespace.LOCAL.value:
                if name is None or name not in scope.local_vertices:
                    raise UndefinedLocalReferenceError(
                        name or str(reference), binding.label, scope.filename
                    )
                self.graph.connect(scope.local_vertices[name], vertex_id)
            elif reference.root == Namespace.GLOBAL.value:
                if name is None:
                    raise UnsupportedRootReferenceError(str(reference), binding.label, scope.filename)
                self.graph.connect(self._global_vertex(name), vertex_id)
            elif reference.root == INCLUDE_ROOT:
                self.graph.connect(self._include_vertex(scope), vertex_id)
            else:
                raise UnsupportedRootReferenceError(reference.root, binding.label, scope.filename)

    def validate(self) -> None:
        self.graph.validate()

    def unresolved_globals(self) -> list[str]:
        """Return names of globals that are referenced but never defined, sorted."""
        return sorted(
            name for name, vertex_id in self.global_vertices.items() if self._binding(vertex_id).is_provisional
        )

    def bindings(self) -> list[Binding]:
        return [vertex.binding for _vertex_id, vertex in self.graph.binding_vertices()]

    def _binding(self, vertex_id: int) -> Binding:
        vertex = self.graph.vertex(vertex_id)
        assert isinstance(vertex, BindingVertex)
        return vertex.binding

    def _global_vertex(self, name: str) -> int:
        vertex_id = self.global_vertices.get(name)
        if vertex_id is None:
            vertex_id = self.graph.add_vertex(BindingVertex(Binding(name=name, namespace=Namespace.GLOBAL)))
            self.global_vertices[name] = vertex_id
            logger.debug("Created provisional vertex for global.%s", name)
        return vertex_id

    def _include_vertex(self, scope: FileScope) -> int:
        if scope.include_vertex is None:
            scope.include_vertex = self.graph.add_vertex(IncludeVertex(scope))
            self.graph.connect(self.graph.root_id, scope.include_vertex)
        return scope.include_vertex
