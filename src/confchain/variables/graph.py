"""Dependency graph of bindings.

Vertices live in an arena (a list indexed by integer id); adjacency is a
networkx DiGraph over those ids. An edge `source -> target` means the
target's expression reads the source's value.
"""

import logging
from collections.abc import Iterator

import networkx as nx

from confchain.core.exceptions import CyclicReferenceError
from confchain.variables.types import BindingVertex, RootVertex, Vertex

logger = logging.getLogger(__name__)

__all__ = ["ROOT_ID", "DependencyGraph"]

# Id of the traversal anchor, created with every graph
ROOT_ID = 0


class DependencyGraph:
    """Arena of vertices plus a directed adjacency structure."""

    def __init__(self) -> None:
        self._vertices: list[Vertex] = []
        self._graph: nx.DiGraph = nx.DiGraph()
        self.add_vertex(RootVertex())

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator[int]:
        return iter(range(len(self._vertices)))

    @property
    def root_id(self) -> int:
        return ROOT_ID

    def add_vertex(self, vertex: Vertex) -> int:
        """Register a vertex and return its id."""
        vertex_id = len(self._vertices)
        self._vertices.append(vertex)
        self._graph.add_node(vertex_id)
        return vertex_id

    def vertex(self, vertex_id: int) -> Vertex:
        return self._vertices[vertex_id]

    def label(self, vertex_id: int) -> str:
        return self._vertices[vertex_id].label

    def connect(self, source: int, target: int) -> None:
        """Add the edge `source -> target`; repeated edges are ignored."""
        self._graph.add_edge(source, target)

    def has_edge(self, source: int, target: int) -> bool:
        return bool(self._graph.has_edge(source, target))

    def edges(self) -> list[tuple[int, int]]:
        """Return all edges sorted by (source, target) id."""
        return sorted(self._graph.edges())

    def successors(self, vertex_id: int) -> list[int]:
        """Return dependents of a vertex in id order."""
        return sorted(self._graph.successors(vertex_id))

    def predecessors(self, vertex_id: int) -> list[int]:
        """Return dependencies of a vertex in id order."""
        return sorted(self._graph.predecessors(vertex_id))

    def in_degree(self, vertex_id: int) -> int:
        return int(self._graph.in_degree(vertex_id))

    def binding_vertices(self) -> Iterator[tuple[int, BindingVertex]]:
        for vertex_id, vertex in enumerate(self._vertices):
            if isinstance(vertex, BindingVertex):
                yield vertex_id, vertex

    def validate(self) -> None:
        """Reject reference cycles.

        Raises:
            CyclicReferenceError: If any cycle exists; the error names the
                bindings along the first cycle found.

        """
        try:
            cycle_edges = nx.find_cycle(self._graph)
        except nx.NetworkXNoCycle:
            return
        labels = [self.label(source) for source, _target in cycle_edges]
        raise CyclicReferenceError(labels)

    def transitive_reduction(self) -> int:
        """Drop edges implied by longer paths, keeping reachability identical.

        Must only be called on a validated (acyclic) graph.

        Returns:
            Number of edges removed.

        """
        before = self._graph.number_of_edges()
        reduced = nx.transitive_reduction(self._graph)
        reduced.add_nodes_from(self._graph.nodes())
        self._graph = reduced
        removed = before - reduced.number_of_edges()
        logger.debug("Transitive reduction removed %d of %d edges", removed, before)
        return removed

    def is_acyclic(self) -> bool:
        return bool(nx.is_directed_acyclic_graph(self._graph))

    def descendants(self, vertex_id: int) -> set[int]:
        """Return every vertex reachable from vertex_id."""
        return set(nx.descendants(self._graph, vertex_id))
