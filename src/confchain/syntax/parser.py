"""Configuration file parsing.

This module turns source text into ConfigFile structures whose attribute
values are Expression nodes:

- parse_source(): parse a string
- parse_file(): read and parse a file
- parse_expression(): parse a single expression

A single LALR parser is built lazily and shared. Parsing is serialized with a
lock; transforming the parse tree into expression nodes happens outside it.
"""

import logging
import re
from pathlib import Path
from threading import Lock
from typing import Any

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedInput, VisitError

from confchain.core.exceptions import ParserError
from confchain.syntax.expressions import (
    BinaryOpExpr,
    ConditionalExpr,
    Expression,
    FunctionCallExpr,
    GetAttrExpr,
    IndexExpr,
    LiteralExpr,
    ObjectExpr,
    ScopeTraversalExpr,
    TemplateExpr,
    Traversal,
    TupleExpr,
    UnaryOpExpr,
)
from confchain.syntax.grammar import GRAMMAR
from confchain.syntax.types import Attribute, Block, Body, ConfigFile, SourceRange

logger = logging.getLogger(__name__)

__all__ = ["parse_source", "parse_file", "parse_expression"]

_parser: Lark | None = None
_parser_lock = Lock()

_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|.)")
_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}
_KEYWORDS: dict[str, Any] = {"true": True, "false": False, "null": None}


def _get_parser() -> Lark:
    global _parser
    if _parser is None:
        _parser = Lark(
            GRAMMAR,
            parser="lalr",
            start=["start", "expression"],
            maybe_placeholders=False,
        )
    return _parser


def _parse_tree(source: str, start: str, filename: str) -> Any:
    with _parser_lock:
        parser = _get_parser()
        try:
            return parser.parse(source, start=start)
        except UnexpectedInput as e:
            line = getattr(e, "line", None)
            column = getattr(e, "column", None)
            line = line if isinstance(line, int) and line > 0 else None
            column = column if isinstance(column, int) and column > 0 else None
            where = f"{filename or '<string>'}:{line},{column}" if line else filename or "<string>"
            summary = str(e).strip().splitlines()[0] if str(e).strip() else type(e).__name__
            raise ParserError(
                f"Syntax error in {where}: {summary}",
                filename=filename,
                line=line,
                column=column,
            ) from None


def _unescape(text: str, filename: str, line: int) -> str:
    def _replace(match: re.Match[str]) -> str:
        code = match.group(1)
        if code in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[code]
        if code[0] in "uU" and len(code) > 1:
            return chr(int(code[1:], 16))
        raise ParserError(
            f"Invalid escape sequence '\\{code}' in {filename or '<string>'}:{line}",
            filename=filename,
            line=line,
        )

    return _ESCAPE.sub(_replace, text)


@v_args(inline=True)
class _ConfigTransformer(Transformer):
    """Builds Body/Block/Attribute structures and Expression nodes from the parse tree."""

    def __init__(self, filename: str) -> None:
        super().__init__()
        self.filename = filename

    def _range(self, token: Token) -> SourceRange:
        return SourceRange(self.filename, token.line or 1, token.column or 1)

    # Structure

    def start(self, body: Body) -> Body:
        return body

    def body(self, *items: Attribute | Block) -> Body:
        result = Body()
        for item in items:
            if isinstance(item, Block):
                result.blocks.append(item)
                continue
            if item.name in result.attributes:
                previous = result.attributes[item.name].range
                raise ParserError(
                    f"Attribute redefined in {item.range}: the argument '{item.name}' "
                    f"was already set at {previous}",
                    filename=self.filename,
                    line=item.range.line if item.range else None,
                )
            result.attributes[item.name] = item
        return result

    def attribute(self, name: Token, expression: Expression) -> Attribute:
        return Attribute(name=str(name), expression=expression, range=self._range(name))

    def block(self, block_type: Token, *rest: Any) -> Block:
        *labels, body = rest
        label_values = []
        for label in labels:
            if isinstance(label, Token):
                label_values.append(str(label))
            elif isinstance(label, LiteralExpr):
                label_values.append(label.value)
            else:
                raise ParserError(
                    f"Invalid block label in {label.range}: labels cannot contain interpolations",
                    filename=self.filename,
                    line=label.range.line if label.range else None,
                )
        return Block(
            type=str(block_type),
            labels=label_values,
            body=body,
            range=self._range(block_type),
        )

    # Primaries

    def number(self, token: Token) -> LiteralExpr:
        text = str(token)
        value: int | float
        if "." in text or "e" in text or "E" in text:
            value = float(text)
        else:
            value = int(text)
        return LiteralExpr(value, range=self._range(token))

    def variable(self, token: Token) -> Expression:
        name = str(token)
        if name in _KEYWORDS:
            return LiteralExpr(_KEYWORDS[name], range=self._range(token))
        source = self._range(token)
        return ScopeTraversalExpr(Traversal(root=name, range=source), range=source)

    def function_call(self, name: Token, *args: Expression) -> FunctionCallExpr:
        return FunctionCallExpr(name=str(name), args=tuple(args), range=self._range(name))

    def tuple_expr(self, *items: Expression) -> TupleExpr:
        return TupleExpr(items=tuple(items), range=items[0].range if items else None)

    def object_expr(self, *items: tuple[Expression, Expression]) -> ObjectExpr:
        return ObjectExpr(items=tuple(items), range=items[0][0].range if items else None)

    def object_item(self, key: Expression, value: Expression) -> tuple[Expression, Expression]:
        return (key, value)

    def key_name(self, token: Token) -> LiteralExpr:
        return LiteralExpr(str(token), range=self._range(token))

    def key_string(self, key: Expression) -> Expression:
        return key

    # Postfix

    def get_attr(self, source: Expression, name: Token) -> Expression:
        if isinstance(source, ScopeTraversalExpr):
            traversal = source.traversal
            extended = Traversal(traversal.root, (*traversal.steps, str(name)), traversal.range)
            return ScopeTraversalExpr(extended, range=source.range)
        return GetAttrExpr(source=source, name=str(name), range=source.range)

    def index(self, source: Expression, key: Expression) -> Expression:
        static_key = isinstance(key, LiteralExpr) and (
            isinstance(key.value, str)
            or (isinstance(key.value, int) and not isinstance(key.value, bool))
        )
        if isinstance(source, ScopeTraversalExpr) and static_key:
            traversal = source.traversal
            extended = Traversal(traversal.root, (*traversal.steps, key.value), traversal.range)
            return ScopeTraversalExpr(extended, range=source.range)
        return IndexExpr(source=source, key=key, range=source.range)

    # Operators

    def conditional(self, condition: Expression, true_result: Expression, false_result: Expression) -> ConditionalExpr:
        return ConditionalExpr(condition, true_result, false_result, range=condition.range)

    def neg(self, operand: Expression) -> UnaryOpExpr:
        return UnaryOpExpr("-", operand, range=operand.range)

    def not_op(self, operand: Expression) -> UnaryOpExpr:
        return UnaryOpExpr("!", operand, range=operand.range)

    def _binary(op: str):  # type: ignore[misc]
        def method(self: Any, left: Expression, right: Expression) -> BinaryOpExpr:
            return BinaryOpExpr(op, left, right, range=left.range)

        return method

    or_op = _binary("||")
    and_op = _binary("&&")
    eq = _binary("==")
    ne = _binary("!=")
    lt = _binary("<")
    le = _binary("<=")
    gt = _binary(">")
    ge = _binary(">=")
    add = _binary("+")
    sub = _binary("-")
    mul = _binary("*")
    div = _binary("/")
    mod = _binary("%")

    del _binary

    # Templates

    def template(self, open_quote: Token, *items: Token | Expression) -> Expression:
        source = self._range(open_quote)
        parts: list[str | Expression] = []
        for item in items[:-1]:
            if isinstance(item, Expression):
                parts.append(item)
                continue
            text = _unescape(str(item).replace("$${", "${"), self.filename, item.line or source.line)
            if text:
                parts.append(text)

        if not any(isinstance(part, Expression) for part in parts):
            return LiteralExpr("".join(str(part) for part in parts), range=source)
        return TemplateExpr(parts=tuple(parts), range=source)


def _transform(tree: Any, transformer: _ConfigTransformer) -> Any:
    try:
        return transformer.transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, ParserError):
            raise e.orig_exc from None
        raise


def parse_expression(source: str, filename: str = "") -> Expression:
    """Parse a single expression.

    Args:
        source: Expression text, e.g. `"${global.region}-bucket"`.
        filename: File name used in diagnostics.

    Returns:
        The expression node.

    Raises:
        ParserError: If the text is not a valid expression.

    """
    tree = _parse_tree(source, "expression", filename)
    return _transform(tree, _ConfigTransformer(filename))


def parse_source(source: str, filename: str = "") -> ConfigFile:
    """Parse configuration source text.

    Args:
        source: File contents.
        filename: Path used in diagnostics and stored on the result.

    Returns:
        The parsed file.

    Raises:
        ParserError: On syntax errors or attributes defined twice in one body.

    """
    tree = _parse_tree(source, "start", filename)
    body = _transform(tree, _ConfigTransformer(filename))
    logger.debug(
        "Parsed %s: %d attributes, %d blocks",
        filename or "<string>",
        len(body.attributes),
        len(body.blocks),
    )
    return ConfigFile(filename=filename, body=body, source=source)


def parse_file(path: Path) -> ConfigFile:
    """Read and parse a configuration file.

    Args:
        path: File to read.

    Returns:
        The parsed file, with filename set to str(path).

    Raises:
        ParserError: If the file cannot be read or does not parse.

    """
    try:
        source = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ParserError(f"Configuration file not found: {path}", filename=str(path)) from None
    except (OSError, UnicodeDecodeError) as e:
        raise ParserError(f"Cannot read configuration file {path}: {e}", filename=str(path)) from e
    return parse_source(source, str(path))
