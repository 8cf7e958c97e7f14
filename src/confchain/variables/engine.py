"""Variable evaluation for a whole include chain.

One run builds a single dependency graph over every file of the chain:

1. Files are added child first. After each file, locals and include-derived
   values are evaluated (phase LOCALS); traversal stops at globals because a
   later file may still define what they reference.
2. Once the root has been added, globals that were referenced but never
   defined are reported, the graph is optionally reduced, and everything
   left is evaluated (phase ALL).
3. Each file gets a FileVariables record with its locals, the chain-wide
   globals, its include values and its remaining blocks.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from confchain.chain.resolver import resolve_chain, resolve_chain_from_string
from confchain.chain.types import IncludeChain
from confchain.core.config import EvaluatorConfig, get_config
from confchain.core.exceptions import UnresolvedGlobalReferenceError
from confchain.variables.builder import GraphBuilder
from confchain.variables.evaluator import GraphEvaluator
from confchain.variables.graph import DependencyGraph
from confchain.variables.types import EvaluationPhase, FileVariables

logger = logging.getLogger(__name__)

__all__ = [
    "ChainEvaluation",
    "build_graph",
    "evaluate_chain",
    "evaluate_file",
    "evaluate_source",
]


@dataclass(frozen=True)
class ChainEvaluation:
    """Result of evaluating one include chain.

    Attributes:
        files: One record per file, starting file first and root last.
        global_values: The chain-wide globals.
        graph: The dependency graph the run used.

    """

    files: tuple[FileVariables, ...]
    global_values: Mapping[str, Any]
    graph: DependencyGraph

    @property
    def child(self) -> FileVariables:
        """Variables of the file evaluation started from."""
        return self.files[0]

    def for_file(self, filename: str) -> FileVariables:
        """Return the record of one file.

        Raises:
            KeyError: If the file is not part of the chain.

        """
        for record in self.files:
            if record.filename == filename:
                return record
        raise KeyError(filename)


def build_graph(chain: IncludeChain, config: EvaluatorConfig | None = None) -> GraphBuilder:
    """Build and validate the dependency graph of a chain without evaluating it.

    Raises:
        BindingError: If a locals/globals block is malformed.
        GraphError: On invalid references or cycles.

    """
    config = config or get_config()
    builder = GraphBuilder()
    for node in chain:
        builder.add_file(node.config_file, node.include_values())
    if config.transitive_reduction:
        builder.graph.transitive_reduction()
    return builder


def evaluate_chain(
    chain: IncludeChain,
    config: EvaluatorConfig | None = None,
    functions: Mapping[str, Callable[..., Any]] | None = None,
) -> ChainEvaluation:
    """Evaluate locals and globals of every file in a chain.

    Args:
        chain: Resolved include chain.
        config: Evaluator settings (default: active config).
        functions: Function table for expressions (default: built-ins).

    Returns:
        Per-file results.

    Raises:
        BindingError: If a locals/globals block is malformed.
        GraphError: On invalid references, globals defined twice or cycles.
        UnresolvedGlobalReferenceError: If a referenced global is never defined.
        VariableEvaluationError: If expressions fail to evaluate.

    """
    config = config or get_config()
    builder = GraphBuilder()
    evaluator = GraphEvaluator(builder, functions)

    for node in chain:
        builder.add_file(node.config_file, node.include_values())
        evaluator.evaluate(EvaluationPhase.LOCALS)

    builder.validate()
    unresolved = builder.unresolved_globals()
    if unresolved:
        raise UnresolvedGlobalReferenceError(unresolved)
    if config.transitive_reduction:
        builder.graph.transitive_reduction()
    evaluator.evaluate(EvaluationPhase.ALL)

    files = tuple(
        FileVariables(
            filename=node.filename,
            local_values=dict(scope.local_values),
            global_values=dict(builder.global_values),
            include_values=dict(scope.include_values),
            remainder=node.remainder(),
        )
        for node, scope in zip(chain, builder.scopes, strict=True)
    )
    logger.info(
        "Evaluated %d file(s): %d globals, %d bindings",
        len(files),
        len(builder.global_values),
        len(builder.bindings()),
    )
    return ChainEvaluation(files=files, global_values=dict(builder.global_values), graph=builder.graph)


def evaluate_file(path: Path, config: EvaluatorConfig | None = None) -> ChainEvaluation:
    """Resolve the include chain of a file and evaluate it."""
    config = config or get_config()
    chain = resolve_chain(path, max_depth=config.max_include_depth)
    return evaluate_chain(chain, config)


def evaluate_source(
    source: str,
    filename: str,
    config: EvaluatorConfig | None = None,
) -> ChainEvaluation:
    """Evaluate source text; included files are read relative to filename."""
    config = config or get_config()
    chain = resolve_chain_from_string(source, filename, max_depth=config.max_include_depth)
    return evaluate_chain(chain, config)
