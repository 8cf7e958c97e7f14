"""Expression nodes for the configuration language.

Every node supports two operations used by the variable engine:

- variables(): the free-variable references (Traversals) the expression reads
- evaluate(ctx): compute the value against an EvaluationContext

Reference problems (unknown variable, missing attribute, bad index, unknown
function) raise ExpressionError carrying a Diagnostic. Typed operations are
delegated to Python operators, so applying `+` to a string and a number
raises the underlying TypeError; callers treat those as low-level faults.
"""

from __future__ import annotations

import inspect
import operator
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from confchain.core.exceptions import ExpressionError
from confchain.syntax.functions import FUNCTIONS, FunctionArgumentError, format_primitive
from confchain.syntax.types import Diagnostic, SourceRange

__all__ = [
    "Traversal",
    "EvaluationContext",
    "Expression",
    "LiteralExpr",
    "TemplateExpr",
    "ScopeTraversalExpr",
    "GetAttrExpr",
    "IndexExpr",
    "TupleExpr",
    "ObjectExpr",
    "UnaryOpExpr",
    "BinaryOpExpr",
    "ConditionalExpr",
    "FunctionCallExpr",
]


def _fail(summary: str, detail: str, source: SourceRange | None) -> ExpressionError:
    return ExpressionError(Diagnostic(summary=summary, detail=detail, range=source))


@dataclass(frozen=True)
class Traversal:
    """A static variable reference such as `global.region` or `local.items[0]`.

    Attributes:
        root: Root variable name ("local", "global", "include", ...).
        steps: Attribute names and index keys applied after the root.
        range: Location of the reference.

    """

    root: str
    steps: tuple[str | int, ...] = ()
    range: SourceRange | None = field(default=None, compare=False)

    @property
    def name(self) -> str | None:
        """Name of the first step, or None when the root is used directly or indexed by number."""
        if self.steps and isinstance(self.steps[0], str):
            return self.steps[0]
        return None

    def __str__(self) -> str:
        parts = [self.root]
        for step in self.steps:
            parts.append(f"[{step}]" if isinstance(step, int) else f".{step}")
        return "".join(parts)


@dataclass(frozen=True)
class EvaluationContext:
    """Immutable variables and functions visible to one evaluation call.

    Attributes:
        variables: Root name to value, e.g. {"local": {...}, "global": {...}}.
        functions: Function name to callable.

    """

    variables: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    functions: Mapping[str, Callable[..., Any]] = field(default_factory=lambda: FUNCTIONS)

    @classmethod
    def build(
        cls,
        *,
        local: Mapping[str, Any] | None = None,
        global_: Mapping[str, Any] | None = None,
        include: Mapping[str, Any] | None = None,
        functions: Mapping[str, Callable[..., Any]] | None = None,
    ) -> EvaluationContext:
        """Snapshot the given namespaces into a read-only context.

        Later changes to the passed mappings are not visible through the
        returned context.
        """
        variables: dict[str, Any] = {
            "local": MappingProxyType(dict(local or {})),
            "global": MappingProxyType(dict(global_ or {})),
        }
        if include is not None:
            variables["include"] = MappingProxyType(dict(include))
        return cls(
            variables=MappingProxyType(variables),
            functions=functions if functions is not None else FUNCTIONS,
        )


class Expression(ABC):
    """Base class for expression nodes."""

    range: SourceRange | None

    @abstractmethod
    def variables(self) -> list[Traversal]:
        """Return the free-variable references, in source order."""

    @abstractmethod
    def evaluate(self, ctx: EvaluationContext) -> Any:
        """Compute the value of the expression.

        Raises:
            ExpressionError: On reference or function errors.

        """


def _apply_step(value: Any, key: Any, source: SourceRange | None) -> Any:
    if isinstance(value, Mapping):
        attr = key if isinstance(key, str) else format_primitive(key)
        if attr is None or attr not in value:
            raise _fail(
                "Unsupported attribute",
                f'This object does not have an attribute named "{key}".',
                source,
            )
        return value[attr]

    if isinstance(value, list | tuple):
        index = key
        if isinstance(key, str):
            try:
                index = int(key)
            except ValueError:
                index = None
        elif isinstance(key, float) and key.is_integer():
            index = int(key)
        if isinstance(index, bool) or not isinstance(index, int):
            raise _fail("Invalid index", "A list must be indexed by a whole number.", source)
        if not 0 <= index < len(value):
            raise _fail(
                "Invalid index",
                "The given key does not identify an element in this collection value.",
                source,
            )
        return value[index]

    if value is None:
        raise _fail(
            "Attempt to get attribute from null value",
            "This value is null, so it does not have any attributes.",
            source,
        )

    raise _fail(
        "Unsupported attribute",
        f"Can't access attributes on a primitive-typed value ({type(value).__name__}).",
        source,
    )


@dataclass(frozen=True)
class LiteralExpr(Expression):
    """A constant: number, string without interpolation, bool or null."""

    value: Any
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        return []

    def evaluate(self, ctx: EvaluationContext) -> Any:
        return self.value


@dataclass(frozen=True)
class TemplateExpr(Expression):
    """A quoted string containing `${...}` interpolations.

    A template consisting of a single interpolation and nothing else yields
    the interpolated value unchanged, so `"${global.tags}"` stays an object.
    """

    parts: tuple[str | Expression, ...]
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        refs: list[Traversal] = []
        for part in self.parts:
            if isinstance(part, Expression):
                refs.extend(part.variables())
        return refs

    def evaluate(self, ctx: EvaluationContext) -> Any:
        if len(self.parts) == 1 and isinstance(self.parts[0], Expression):
            return self.parts[0].evaluate(ctx)

        chunks: list[str] = []
        for part in self.parts:
            if isinstance(part, str):
                chunks.append(part)
                continue
            value = part.evaluate(ctx)
            if value is None:
                raise _fail(
                    "Invalid template interpolation value",
                    "The expression result is null. Cannot include a null value in a string template.",
                    part.range or self.range,
                )
            text = format_primitive(value)
            if text is None:
                raise _fail(
                    "Invalid template interpolation value",
                    "Cannot include the given value in a string template: string required.",
                    part.range or self.range,
                )
            chunks.append(text)
        return "".join(chunks)


@dataclass(frozen=True)
class ScopeTraversalExpr(Expression):
    """A reference to a root variable followed by static steps."""

    traversal: Traversal
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        return [self.traversal]

    def evaluate(self, ctx: EvaluationContext) -> Any:
        root = self.traversal.root
        if root not in ctx.variables:
            raise _fail("Unknown variable", f'There is no variable named "{root}".', self.range)

        value = ctx.variables[root]
        for step in self.traversal.steps:
            value = _apply_step(value, step, self.range)
        return value


@dataclass(frozen=True)
class GetAttrExpr(Expression):
    """Attribute access on a computed value, e.g. `merge(a, b).name`."""

    source: Expression
    name: str
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        return self.source.variables()

    def evaluate(self, ctx: EvaluationContext) -> Any:
        return _apply_step(self.source.evaluate(ctx), self.name, self.range)


@dataclass(frozen=True)
class IndexExpr(Expression):
    """Index with a computed key, e.g. `global.zones[local.i]`."""

    source: Expression
    key: Expression
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        return [*self.source.variables(), *self.key.variables()]

    def evaluate(self, ctx: EvaluationContext) -> Any:
        collection = self.source.evaluate(ctx)
        key = self.key.evaluate(ctx)
        return _apply_step(collection, key, self.range)


@dataclass(frozen=True)
class TupleExpr(Expression):
    """A `[a, b, ...]` list constructor."""

    items: tuple[Expression, ...]
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        return [ref for item in self.items for ref in item.variables()]

    def evaluate(self, ctx: EvaluationContext) -> list[Any]:
        return [item.evaluate(ctx) for item in self.items]


@dataclass(frozen=True)
class ObjectExpr(Expression):
    """A `{key = value, ...}` object constructor."""

    items: tuple[tuple[Expression, Expression], ...]
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        refs: list[Traversal] = []
        for key, value in self.items:
            refs.extend(key.variables())
            refs.extend(value.variables())
        return refs

    def evaluate(self, ctx: EvaluationContext) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key_expr, value_expr in self.items:
            key = format_primitive(key_expr.evaluate(ctx))
            if key is None:
                raise _fail(
                    "Incorrect key type",
                    "Can't use this value as a key: string required.",
                    key_expr.range or self.range,
                )
            result[key] = value_expr.evaluate(ctx)
        return result


@dataclass(frozen=True)
class UnaryOpExpr(Expression):
    """`-x` or `!x`."""

    op: str
    operand: Expression
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        return self.operand.variables()

    def evaluate(self, ctx: EvaluationContext) -> Any:
        value = self.operand.evaluate(ctx)
        if self.op == "-":
            return -value
        return not value


def _divide(left: Any, right: Any) -> Any:
    result = left / right
    if isinstance(left, int) and isinstance(right, int) and result.is_integer():
        return int(result)
    return result


_BINARY_OPERATORS: Mapping[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _divide,
    "%": operator.mod,
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "&&": lambda left, right: bool(left) and bool(right),
    "||": lambda left, right: bool(left) or bool(right),
}


@dataclass(frozen=True)
class BinaryOpExpr(Expression):
    """Arithmetic, comparison and logical operators."""

    op: str
    left: Expression
    right: Expression
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        return [*self.left.variables(), *self.right.variables()]

    def evaluate(self, ctx: EvaluationContext) -> Any:
        left = self.left.evaluate(ctx)
        right = self.right.evaluate(ctx)
        return _BINARY_OPERATORS[self.op](left, right)


@dataclass(frozen=True)
class ConditionalExpr(Expression):
    """`condition ? a : b`. Only the selected branch is evaluated."""

    condition: Expression
    true_result: Expression
    false_result: Expression
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        return [
            *self.condition.variables(),
            *self.true_result.variables(),
            *self.false_result.variables(),
        ]

    def evaluate(self, ctx: EvaluationContext) -> Any:
        condition = self.condition.evaluate(ctx)
        if not isinstance(condition, bool):
            raise _fail(
                "Incorrect condition type",
                "The condition expression must be of type bool.",
                self.condition.range or self.range,
            )
        branch = self.true_result if condition else self.false_result
        return branch.evaluate(ctx)


@dataclass(frozen=True)
class FunctionCallExpr(Expression):
    """`name(arg, ...)`."""

    name: str
    args: tuple[Expression, ...]
    range: SourceRange | None = field(default=None, compare=False)

    def variables(self) -> list[Traversal]:
        return [ref for arg in self.args for ref in arg.variables()]

    def evaluate(self, ctx: EvaluationContext) -> Any:
        func = ctx.functions.get(self.name)
        if func is None:
            raise _fail(
                "Call to unknown function",
                f'There is no function named "{self.name}".',
                self.range,
            )

        values = [arg.evaluate(ctx) for arg in self.args]
        try:
            inspect.signature(func).bind(*values)
        except TypeError:
            raise _fail(
                "Wrong number of function arguments",
                f'Function "{self.name}" does not accept {len(values)} argument(s).',
                self.range,
            ) from None

        try:
            return func(*values)
        except FunctionArgumentError as e:
            raise _fail(
                "Error in function call",
                f'Call to function "{self.name}" failed: {e}.',
                self.range,
            ) from e
