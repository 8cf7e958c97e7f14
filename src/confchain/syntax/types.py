"""Structural types produced by the configuration parser.

- SourceRange: location of a node in a source file
- Diagnostic: a problem reported while evaluating an expression
- Attribute / Block / Body: the HCL-style structure of a file
- ConfigFile: one parsed file
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from confchain.syntax.expressions import Expression


@dataclass(frozen=True)
class SourceRange:
    """Start position of a node.

    Attributes:
        filename: File the node was parsed from ("" for anonymous strings).
        line: 1-based line number.
        column: 1-based column number.

    """

    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename or '<string>'}:{self.line},{self.column}"


@dataclass(frozen=True)
class Diagnostic:
    """A problem reported by an expression during evaluation.

    Diagnostics are passed to the caller unmodified so they can be displayed
    with their original wording and location.

    Attributes:
        summary: Short description (e.g. "Unsupported attribute").
        detail: Longer explanation, may be empty.
        severity: "error" or "warning".
        range: Location of the failing expression, if known.

    """

    summary: str
    detail: str = ""
    severity: Literal["error", "warning"] = "error"
    range: SourceRange | None = None

    def __str__(self) -> str:
        prefix = f"{self.range}: " if self.range is not None else ""
        suffix = f"; {self.detail}" if self.detail else ""
        return f"{prefix}{self.summary}{suffix}"


@dataclass(frozen=True)
class Attribute:
    """A `name = expression` pair inside a body."""

    name: str
    expression: Expression
    range: SourceRange | None = None


@dataclass
class Body:
    """Contents of a file or block: attributes in declaration order plus nested blocks."""

    attributes: dict[str, Attribute] = field(default_factory=dict)
    blocks: list[Block] = field(default_factory=list)

    def blocks_of_type(self, block_type: str) -> list[Block]:
        """Return nested blocks with the given type, in source order."""
        return [block for block in self.blocks if block.type == block_type]


@dataclass
class Block:
    """A `type "label" ... { body }` block."""

    type: str
    labels: list[str]
    body: Body
    range: SourceRange | None = None


@dataclass
class ConfigFile:
    """One parsed configuration file.

    Attributes:
        filename: Path the source was read from ("" for anonymous strings).
        body: Top-level attributes and blocks.
        source: Original source text.

    """

    filename: str
    body: Body
    source: str = ""

    def blocks_of_type(self, block_type: str) -> list[Block]:
        """Return top-level blocks with the given type, in source order."""
        return self.body.blocks_of_type(block_type)
