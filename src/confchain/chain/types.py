"""Include chain data models.

- IncludeConfig: decoded `include { path = ... }` block
- ChainNode: one file of the chain with parent/child links
- IncludeChain: the linear chain, ordered from the starting file to the root
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from confchain.syntax.types import Block, ConfigFile, SourceRange

# Blocks consumed while resolving variables; never part of a file's remainder
INCLUDE_BLOCK = "include"
_CONSUMED_BLOCKS = frozenset({"locals", "globals", INCLUDE_BLOCK})


@dataclass(frozen=True)
class IncludeConfig:
    """Decoded include block.

    Attributes:
        path: Include path as written (relative paths are relative to the
            including file's directory).
        range: Location of the include block.

    """

    path: str
    range: SourceRange | None = None


@dataclass(eq=False)
class ChainNode:
    """One file in an include chain.

    Attributes:
        path: Location of the file.
        config_file: Parsed contents.
        include: The file's include block, None for the root of the chain.
        parent: The file this file includes.
        child: The file that includes this file.

    """

    path: Path
    config_file: ConfigFile
    include: IncludeConfig | None = None
    parent: ChainNode | None = field(default=None, repr=False)
    child: ChainNode | None = field(default=None, repr=False)

    @property
    def filename(self) -> str:
        return str(self.path)

    @property
    def level(self) -> int:
        """Number of ancestors; 0 for the root of the chain."""
        return len(self.ancestors())

    def ancestors(self) -> list[ChainNode]:
        """Return ancestors, nearest first."""
        result: list[ChainNode] = []
        node = self.parent
        while node is not None:
            result.append(node)
            node = node.parent
        return result

    def descendants(self) -> list[ChainNode]:
        """Return descendants, nearest first."""
        result: list[ChainNode] = []
        node = self.child
        while node is not None:
            result.append(node)
            node = node.child
        return result

    def root(self) -> ChainNode:
        ancestors = self.ancestors()
        return ancestors[-1] if ancestors else self

    def include_values(self) -> dict[str, Any]:
        """Values this file reads through `include.FIELD`.

        `parents` lists the root first and the immediate parent last;
        `children` lists the nearest child first. Missing relatives are "".
        """
        ancestors = self.ancestors()
        descendants = self.descendants()
        return {
            "file": self.filename,
            "directory": str(self.path.parent),
            "path": self.include.path if self.include is not None else "",
            "root": self.root().filename,
            "parent": self.parent.filename if self.parent is not None else "",
            "parents": [node.filename for node in reversed(ancestors)],
            "child": self.child.filename if self.child is not None else "",
            "children": [node.filename for node in descendants],
            "level": len(ancestors),
        }

    def remainder(self) -> tuple[Block, ...]:
        """Blocks left for downstream decoding."""
        return tuple(block for block in self.config_file.body.blocks if block.type not in _CONSUMED_BLOCKS)


@dataclass
class IncludeChain:
    """Files of one include chain, starting file first and root last."""

    nodes: list[ChainNode]

    def __iter__(self) -> Iterator[ChainNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def child(self) -> ChainNode:
        """The file evaluation started from."""
        return self.nodes[0]

    @property
    def root(self) -> ChainNode:
        """The file without an include block."""
        return self.nodes[-1]
