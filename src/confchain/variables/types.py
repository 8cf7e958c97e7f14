"""Data models for variable evaluation.

- Namespace: the two binding namespaces (local, global)
- Binding: a name bound to an expression, plus its evaluation state
- BindingSet: bindings extracted from one file
- FileScope: per-file state of one evaluation run
- RootVertex / BindingVertex / IncludeVertex: dependency graph vertices
- EvaluationPhase: which bindings a graph walk may evaluate
- FileVariables: resolved namespaces handed to the downstream decoder
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from confchain.syntax.expressions import Expression
    from confchain.syntax.types import Block


class Namespace(Enum):
    """Binding namespace, named after the expression root used to read it.

    Attributes:
        LOCAL: File-scoped `locals` block, read as `local.NAME`.
        GLOBAL: Chain-wide `globals` block, read as `global.NAME`.

    """

    LOCAL = "local"
    GLOBAL = "global"


# Expression root names for include-derived values
INCLUDE_ROOT = "include"


class EvaluationPhase(Enum):
    """Graph walk mode.

    Attributes:
        LOCALS: Evaluate locals and include-derived dependencies only;
            traversal stops at global bindings.
        ALL: Evaluate every remaining binding.

    """

    LOCALS = "locals"
    ALL = "all"


@dataclass(eq=False)
class FileScope:
    """Per-file state of one evaluation run.

    Attributes:
        index: Position in the chain (0 = the file evaluation started from).
        filename: Path of the file.
        include_values: Values exposed as `include.FIELD` in this file.
        local_vertices: Local name to vertex id.
        local_values: Evaluated local values.
        include_vertex: Vertex id of this file's include sentinel, created on
            first `include.*` reference.

    """

    index: int
    filename: str
    include_values: Mapping[str, Any] = field(default_factory=dict)
    local_vertices: dict[str, int] = field(default_factory=dict)
    local_values: dict[str, Any] = field(default_factory=dict)
    include_vertex: int | None = None


@dataclass(eq=False)
class Binding:
    """A name bound to an expression within a locals or globals block.

    A provisional global has no expression yet: it was referenced by a file
    that does not define it and waits for a later file in the chain.

    Attributes:
        name: Binding name.
        namespace: LOCAL or GLOBAL.
        expression: Expression to evaluate, None while provisional.
        filename: File that supplied the expression ("" while provisional).
        scope: Owning file scope in a graph run, None while provisional.
        evaluated: True once value has been computed.
        value: Computed value (None until evaluated).

    """

    name: str
    namespace: Namespace
    expression: Expression | None = None
    filename: str = ""
    scope: FileScope | None = None
    evaluated: bool = False
    value: Any = None

    @property
    def label(self) -> str:
        """Reference form of the binding, e.g. `global.region`."""
        return f"{self.namespace.value}.{self.name}"

    @property
    def is_provisional(self) -> bool:
        return self.expression is None

    def mark_evaluated(self, value: Any) -> None:
        """Store the computed value. A binding is evaluated exactly once.

        Raises:
            ValueError: If the binding was already evaluated.

        """
        if self.evaluated:
            raise ValueError(f"{self.label} has already been evaluated")
        self.value = value
        self.evaluated = True


@dataclass(frozen=True)
class BindingSet:
    """Bindings extracted from one file; None when the block is absent."""

    locals: dict[str, Binding] | None = None
    globals: dict[str, Binding] | None = None


@dataclass(frozen=True)
class RootVertex:
    """Traversal anchor. Bindings without references hang off the root."""

    @property
    def label(self) -> str:
        return "<root>"


@dataclass(frozen=True, eq=False)
class BindingVertex:
    """A graph vertex wrapping one Binding."""

    binding: Binding

    @property
    def label(self) -> str:
        if self.binding.namespace is Namespace.LOCAL and self.binding.filename:
            return f"{self.binding.label} ({self.binding.filename})"
        return self.binding.label


@dataclass(frozen=True, eq=False)
class IncludeVertex:
    """Readiness of one file's include-derived values (`include.*`)."""

    scope: FileScope

    @property
    def label(self) -> str:
        return f"include ({self.scope.filename or '<string>'})"


Vertex = RootVertex | BindingVertex | IncludeVertex


def plain_value(value: Any) -> Any:
    """Convert mappings and sequences to plain dicts and lists, recursively."""
    if isinstance(value, Mapping):
        return {str(key): plain_value(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [plain_value(item) for item in value]
    return value


@dataclass(frozen=True)
class FileVariables:
    """Resolved variables of one file in the chain.

    Attributes:
        filename: Path of the file.
        local_values: The file's own locals.
        global_values: The chain-wide globals.
        include_values: Include-derived values of the file.
        remainder: Blocks other than locals/globals/include, for the
            downstream decoder.

    """

    filename: str
    local_values: Mapping[str, Any]
    global_values: Mapping[str, Any]
    include_values: Mapping[str, Any] = field(default_factory=dict)
    remainder: tuple[Block, ...] = ()

    def as_namespace(self) -> dict[str, dict[str, Any]]:
        """Return the `{"local": ..., "global": ...}` record for block decoding."""
        return {
            Namespace.LOCAL.value: plain_value(self.local_values),
            Namespace.GLOBAL.value: plain_value(self.global_values),
        }
