"""Sweep-based evaluation of a single globals block.

This evaluator needs no dependency graph: it repeatedly evaluates every
global whose `global.*` references already have values, until nothing is
left or a sweep makes no progress. It is used for one file evaluated on its
own and must agree with the graph evaluator on the same input.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from confchain.core.config import get_config
from confchain.core.exceptions import (
    CouldNotEvaluateAllGlobalsError,
    ExpressionError,
    MaxIterationsExceededError,
    PanicRecoveredError,
    VariableEvaluationError,
)
from confchain.syntax.expressions import EvaluationContext, Expression
from confchain.syntax.types import ConfigFile, Diagnostic
from confchain.variables.catalog import extract_bindings
from confchain.variables.types import Namespace

logger = logging.getLogger(__name__)

__all__ = ["evaluate_globals", "evaluate_globals_block"]


def _is_ready(expression: Expression, values: Mapping[str, Any]) -> bool:
    for reference in expression.variables():
        if reference.root != Namespace.GLOBAL.value:
            continue
        if reference.name is None or reference.name not in values:
            return False
    return True


def evaluate_globals(
    expressions: Mapping[str, Expression],
    filename: str = "",
    *,
    local_values: Mapping[str, Any] | None = None,
    include_values: Mapping[str, Any] | None = None,
    max_sweeps: int | None = None,
    functions: Mapping[str, Callable[..., Any]] | None = None,
) -> dict[str, Any]:
    """Evaluate global expressions by repeated sweeps until fixpoint.

    Every binding that is ready at the start of a sweep is evaluated against
    the same snapshot of values; results become visible from the next sweep.

    Args:
        expressions: Global name to expression.
        filename: File name used in errors.
        local_values: Values visible as `local.*`.
        include_values: Values visible as `include.*`.
        max_sweeps: Sweep ceiling (default: configured max_sweeps).
        functions: Function table for expressions (default: built-ins).

    Returns:
        Global name to value.

    Raises:
        CouldNotEvaluateAllGlobalsError: If a sweep makes no progress.
        MaxIterationsExceededError: If the sweep ceiling is reached.
        PanicRecoveredError: If evaluating an expression raised a low-level fault.
        VariableEvaluationError: If an expression reported diagnostics.

    """
    ceiling = max_sweeps if max_sweeps is not None else get_config().max_sweeps
    pending = dict(expressions)
    values: dict[str, Any] = {}
    sweeps = 0

    while pending:
        if sweeps >= ceiling:
            raise MaxIterationsExceededError(ceiling, filename)
        sweeps += 1

        ready = [name for name, expression in pending.items() if _is_ready(expression, values)]
        if not ready:
            raise CouldNotEvaluateAllGlobalsError(list(pending), filename)

        ctx = EvaluationContext.build(
            local=local_values,
            global_=values,
            include=include_values,
            functions=functions,
        )
        updated = dict(values)
        diagnostics: list[Diagnostic] = []
        for name in ready:
            try:
                updated[name] = pending[name].evaluate(ctx)
            except ExpressionError as e:
                diagnostics.append(e.diagnostic)
            except Exception as e:
                raise PanicRecoveredError(e, filename, f"global.{name}") from e
        if diagnostics:
            raise VariableEvaluationError(diagnostics)

        for name in ready:
            del pending[name]
        values = updated
        logger.debug(
            "Sweep %d over %s: evaluated %d, %d pending",
            sweeps,
            filename or "<string>",
            len(ready),
            len(pending),
        )

    return values


def evaluate_globals_block(
    config_file: ConfigFile,
    filename: str | None = None,
    *,
    local_values: Mapping[str, Any] | None = None,
    include_values: Mapping[str, Any] | None = None,
    max_sweeps: int | None = None,
) -> dict[str, Any]:
    """Evaluate the globals block of one file without a dependency graph.

    Args:
        config_file: Parsed file.
        filename: File name used in errors (default: config_file.filename).
        local_values: Values visible as `local.*`.
        include_values: Values visible as `include.*`.
        max_sweeps: Sweep ceiling (default: configured max_sweeps).

    Returns:
        Global name to value; empty when the file has no globals block.

    """
    bindings = extract_bindings(config_file).globals
    if not bindings:
        return {}
    expressions = {
        name: binding.expression for name, binding in bindings.items() if binding.expression is not None
    }
    return evaluate_globals(
        expressions,
        filename if filename is not None else config_file.filename,
        local_values=local_values,
        include_values=include_values,
        max_sweeps=max_sweeps,
    )
