"""Variable evaluation: locals and globals across an include chain.

Public API:
- evaluate_file(), evaluate_source(), evaluate_chain(): graph-based evaluation
- evaluate_globals_block(), evaluate_globals(): sweep-based single-file globals
- extract_bindings(): binding catalog of one file
- GraphBuilder, GraphEvaluator, DependencyGraph: building blocks
- FileVariables, ChainEvaluation: results
"""

from confchain.variables.builder import GraphBuilder
from confchain.variables.catalog import extract_bindings, is_valid_identifier
from confchain.variables.convergence import evaluate_globals, evaluate_globals_block
from confchain.variables.engine import (
    ChainEvaluation,
    build_graph,
    evaluate_chain,
    evaluate_file,
    evaluate_source,
)
from confchain.variables.evaluator import GraphEvaluator
from confchain.variables.graph import DependencyGraph
from confchain.variables.types import (
    Binding,
    BindingSet,
    EvaluationPhase,
    FileVariables,
    Namespace,
)

__all__ = [
    "evaluate_file",
    "evaluate_source",
    "evaluate_chain",
    "build_graph",
    "evaluate_globals_block",
    "evaluate_globals",
    "extract_bindings",
    "is_valid_identifier",
    "GraphBuilder",
    "GraphEvaluator",
    "DependencyGraph",
    "ChainEvaluation",
    "FileVariables",
    "Binding",
    "BindingSet",
    "EvaluationPhase",
    "Namespace",
]
