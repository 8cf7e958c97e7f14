"""Exception hierarchy for confchain.

All errors raised by the package derive from ConfchainError so callers can
catch a single base class. Intermediate bases group errors by the stage that
raises them:

- ParserError: reading or parsing a configuration file
- IncludeError: resolving the include chain
- BindingError: extracting locals/globals bindings from one file
- GraphError: building or validating the dependency graph
- EvaluationError: evaluating binding expressions
- ConfigError: loading evaluator settings
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from confchain.syntax.types import Diagnostic

__all__ = [
    "ConfchainError",
    "ConfigError",
    "ParserError",
    "IncludeError",
    "IncludedConfigMissingPathError",
    "IncludeCycleError",
    "IncludeDepthExceededError",
    "BindingError",
    "DuplicateBlockError",
    "InvalidIdentifierError",
    "UnexpectedBlockError",
    "GraphError",
    "UndefinedLocalReferenceError",
    "UnsupportedRootReferenceError",
    "DuplicateGlobalDefinitionError",
    "CyclicReferenceError",
    "EvaluationError",
    "ExpressionError",
    "UnresolvedGlobalReferenceError",
    "CouldNotEvaluateAllGlobalsError",
    "MaxIterationsExceededError",
    "PanicRecoveredError",
    "VariableEvaluationError",
]


class ConfchainError(Exception):
    """Base exception for all confchain errors."""

    pass


class ConfigError(ConfchainError):
    """Evaluator settings could not be loaded or failed validation."""

    pass


class ParserError(ConfchainError):
    """Configuration file could not be read or parsed.

    Attributes:
        filename: File being parsed, empty when parsing an anonymous string.
        line: 1-based line of the syntax error, or None when unknown.
        column: 1-based column of the syntax error, or None when unknown.

    """

    def __init__(
        self,
        message: str,
        filename: str = "",
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message)
        self.filename = filename
        self.line = line
        self.column = column


# =============================================================================
# Include chain
# =============================================================================


class IncludeError(ConfchainError):
    """Base class for include chain resolution failures.

    Attributes:
        config_path: File whose include block caused the error.

    """

    def __init__(self, message: str, config_path: str = "") -> None:
        super().__init__(message)
        self.config_path = config_path


class IncludedConfigMissingPathError(IncludeError):
    """An include block is present but its path is missing or empty."""

    def __init__(self, config_path: str) -> None:
        super().__init__(
            f"The include configuration in {config_path} must specify a 'path' parameter",
            config_path=config_path,
        )


class IncludeCycleError(IncludeError):
    """A file includes itself, directly or through its ancestors.

    Attributes:
        cycle: Files on the resolution path, ending with the repeated file.

    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(
            "Include cycle detected: " + " -> ".join(self.cycle),
            config_path=self.cycle[0] if self.cycle else "",
        )


class IncludeDepthExceededError(IncludeError):
    """The include chain is longer than the configured maximum depth."""

    def __init__(self, config_path: str, max_depth: int) -> None:
        super().__init__(
            f"Include chain starting at {config_path} exceeds the maximum depth of {max_depth}",
            config_path=config_path,
        )
        self.max_depth = max_depth


# =============================================================================
# Binding extraction
# =============================================================================


class BindingError(ConfchainError):
    """Base class for errors while extracting locals/globals from one file.

    Attributes:
        filename: File the bindings were extracted from.

    """

    def __init__(self, message: str, filename: str = "") -> None:
        super().__init__(message)
        self.filename = filename


class DuplicateBlockError(BindingError):
    """A file declares more than one block of a type that must be unique.

    Attributes:
        block_type: The repeated block type ("locals", "globals" or "include").
        count: Number of blocks of that type found.

    """

    def __init__(self, block_type: str, count: int, filename: str = "") -> None:
        super().__init__(
            f"Found {count} '{block_type}' blocks in {filename or '<string>'}; "
            f"only one '{block_type}' block is allowed per file",
            filename=filename,
        )
        self.block_type = block_type
        self.count = count


class InvalidIdentifierError(BindingError):
    """A binding name is not a valid identifier."""

    def __init__(self, name: str, block_type: str, filename: str = "") -> None:
        super().__init__(
            f"Invalid name '{name}' in '{block_type}' block of {filename or '<string>'}: "
            "names must start with a letter or underscore and contain only letters, "
            "digits and underscores",
            filename=filename,
        )
        self.name = name
        self.block_type = block_type


class UnexpectedBlockError(BindingError):
    """A nested block appears where only attributes are allowed."""

    def __init__(self, block_type: str, nested_type: str, filename: str = "") -> None:
        super().__init__(
            f"Unexpected '{nested_type}' block inside '{block_type}' in "
            f"{filename or '<string>'}; blocks are not allowed here",
            filename=filename,
        )
        self.block_type = block_type
        self.nested_type = nested_type


# =============================================================================
# Dependency graph
# =============================================================================


class GraphError(ConfchainError):
    """Base class for dependency graph construction and validation errors."""

    pass


class UndefinedLocalReferenceError(GraphError):
    """An expression references a local that its own file does not define."""

    def __init__(self, name: str, referenced_by: str, filename: str = "") -> None:
        super().__init__(
            f"{referenced_by} in {filename or '<string>'} references undefined "
            f"local 'local.{name}'; locals are only visible in the file that defines them"
        )
        self.name = name
        self.referenced_by = referenced_by
        self.filename = filename


class UnsupportedRootReferenceError(GraphError):
    """An expression references a variable root other than local/global/include."""

    def __init__(self, root_name: str, referenced_by: str, filename: str = "") -> None:
        super().__init__(
            f"{referenced_by} in {filename or '<string>'} references unsupported "
            f"variable '{root_name}'; only local.*, global.* and include.* are available"
        )
        self.root_name = root_name
        self.referenced_by = referenced_by
        self.filename = filename


class DuplicateGlobalDefinitionError(GraphError):
    """Two files in the same chain both define the same global."""

    def __init__(self, name: str, first_file: str, second_file: str) -> None:
        super().__init__(
            f"Global '{name}' is defined in both {first_file} and {second_file}; "
            "a global may be defined by only one file in an include chain"
        )
        self.name = name
        self.first_file = first_file
        self.second_file = second_file


class CyclicReferenceError(GraphError):
    """Bindings reference each other in a cycle.

    Attributes:
        cycle: Binding labels (e.g. "global.a") in reference order.

    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        path = " -> ".join([*self.cycle, self.cycle[0]]) if self.cycle else ""
        super().__init__(f"Cyclic reference detected between variables: {path}")


# =============================================================================
# Evaluation
# =============================================================================


class EvaluationError(ConfchainError):
    """Base class for binding evaluation failures."""

    pass


class ExpressionError(EvaluationError):
    """An expression could not be evaluated in its context.

    Raised by expression nodes for reference and function errors. The
    evaluators collect the carried diagnostic rather than letting this
    propagate on its own.

    Attributes:
        diagnostic: The problem as reported by the expression.

    """

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic


class UnresolvedGlobalReferenceError(EvaluationError):
    """A referenced global was never defined anywhere in the chain.

    Attributes:
        names: Global names that remain undefined after the chain is loaded.

    """

    def __init__(self, names: Sequence[str]) -> None:
        self.names = sorted(names)
        joined = ", ".join(f"global.{name}" for name in self.names)
        super().__init__(
            f"Could not resolve {joined}: not defined in any file of the include chain"
        )


class CouldNotEvaluateAllGlobalsError(EvaluationError):
    """A convergence sweep made no progress while globals remained pending.

    Attributes:
        remaining: Names that could not be evaluated.

    """

    def __init__(self, remaining: Sequence[str], filename: str = "") -> None:
        self.remaining = sorted(remaining)
        self.filename = filename
        super().__init__(
            f"Could not evaluate all globals in {filename or '<string>'}: "
            f"{', '.join(self.remaining)} reference cyclic or undefined globals"
        )


class MaxIterationsExceededError(EvaluationError):
    """The convergence evaluator hit its sweep ceiling."""

    def __init__(self, max_iterations: int, filename: str = "") -> None:
        super().__init__(
            f"Exceeded the maximum of {max_iterations} sweeps while evaluating "
            f"globals in {filename or '<string>'}"
        )
        self.max_iterations = max_iterations
        self.filename = filename


class PanicRecoveredError(EvaluationError):
    """A low-level fault raised while computing an expression was recovered.

    Attributes:
        fault: The original exception.
        filename: File whose binding was being evaluated.
        binding: Label of the binding being evaluated, if known.

    """

    def __init__(self, fault: BaseException, filename: str = "", binding: str = "") -> None:
        location = f"{binding} in {filename or '<string>'}" if binding else filename or "<string>"
        super().__init__(
            f"Recovered from {type(fault).__name__} while evaluating {location}: {fault}"
        )
        self.fault = fault
        self.filename = filename
        self.binding = binding


class VariableEvaluationError(EvaluationError):
    """One or more binding expressions failed to evaluate.

    Attributes:
        diagnostics: Diagnostics reported by the expressions, unmodified.

    """

    def __init__(self, diagnostics: Sequence[Diagnostic]) -> None:
        self.diagnostics = list(diagnostics)
        lines = [str(diag) for diag in self.diagnostics]
        super().__init__("\n".join(lines) if lines else "Variable evaluation failed")
