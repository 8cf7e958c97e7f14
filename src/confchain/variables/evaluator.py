"""Dependency-ordered evaluation of a GraphBuilder's graph.

The walk is breadth-first from the root. A vertex is queued only once every
one of its dependencies has been visited and signalled "continue" in the
current phase, so evaluation order always respects the reference order.
"""

import logging
from collections import defaultdict, deque
from collections.abc import Callable, Mapping
from typing import Any

from confchain.core.exceptions import ExpressionError, PanicRecoveredError, VariableEvaluationError
from confchain.syntax.expressions import EvaluationContext
from confchain.syntax.types import Diagnostic
from confchain.variables.builder import GraphBuilder
from confchain.variables.types import (
    Binding,
    BindingVertex,
    EvaluationPhase,
    Namespace,
)

logger = logging.getLogger(__name__)

__all__ = ["GraphEvaluator"]


class GraphEvaluator:
    """Evaluates bindings of a graph in dependency order.

    Args:
        builder: Builder holding the graph and namespace value maps.
        functions: Function table for expressions (default: built-ins).

    """

    def __init__(
        self,
        builder: GraphBuilder,
        functions: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        self.builder = builder
        self.functions = functions

    def evaluate(self, phase: EvaluationPhase) -> int:
        """Walk the graph once in the given phase.

        Args:
            phase: LOCALS stops at global bindings; ALL evaluates everything.

        Returns:
            Number of bindings evaluated during this walk.

        Raises:
            VariableEvaluationError: If any expression failed. All failures of
                the walk are reported together. A recovered low-level
                fault is chained as the error's __cause__ (PanicRecoveredError).

        """
        graph = self.builder.graph
        diagnostics: list[Diagnostic] = []
        faults: list[PanicRecoveredError] = []
        visited: set[int] = set()
        ready: defaultdict[int, int] = defaultdict(int)
        queue = deque([graph.root_id])
        evaluated = 0

        while queue:
            vertex_id = queue.popleft()
            if vertex_id in visited:
                continue
            visited.add(vertex_id)

            proceed, ran = self._visit(vertex_id, phase, diagnostics, faults)
            evaluated += ran
            if not proceed:
                continue
            for dependent in graph.successors(vertex_id):
                ready[dependent] += 1
                if ready[dependent] == graph.in_degree(dependent):
                    queue.append(dependent)

        logger.debug(
            "Phase %s: visited %d of %d vertices, evaluated %d bindings",
            phase.value,
            len(visited),
            len(graph),
            evaluated,
        )
        if diagnostics:
            # The first recovered fault stays reachable as __cause__
            raise VariableEvaluationError(diagnostics) from (faults[0] if faults else None)
        return evaluated

    def _visit(
        self,
        vertex_id: int,
        phase: EvaluationPhase,
        diagnostics: list[Diagnostic],
        faults: list[PanicRecoveredError],
    ) -> tuple[bool, int]:
        vertex = self.builder.graph.vertex(vertex_id)
        if not isinstance(vertex, BindingVertex):
            return True, 0

        binding = vertex.binding
        if phase is EvaluationPhase.LOCALS and binding.namespace is Namespace.GLOBAL:
            return False, 0
        if binding.evaluated:
            return True, 0
        if binding.expression is None or binding.scope is None:
            logger.warning("Skipping %s: no defining file", binding.label)
            return False, 0

        try:
            value = binding.expression.evaluate(self._context(binding))
        except ExpressionError as e:
            diagnostics.append(e.diagnostic)
            return False, 0
        except Exception as e:
            fault = PanicRecoveredError(e, binding.filename, binding.label)
            logger.debug("%s", fault)
            faults.append(fault)
            diagnostics.append(
                Diagnostic(
                    summary="Panic recovered during evaluation",
                    detail=str(fault),
                    range=binding.expression.range,
                )
            )
            return False, 0

        self._store(binding, value)
        return True, 1

    def _context(self, binding: Binding) -> EvaluationContext:
        scope = binding.scope
        assert scope is not None
        return EvaluationContext.build(
            local=scope.local_values,
            global_=self.builder.global_values,
            include=scope.include_values,
            functions=self.functions,
        )

    def _store(self, binding: Binding, value: Any) -> None:
        if binding.namespace is Namespace.LOCAL:
            assert binding.scope is not None
            binding.scope.local_values[binding.name] = value
        else:
            self.builder.global_values[binding.name] = value
        binding.mark_evaluated(value)
