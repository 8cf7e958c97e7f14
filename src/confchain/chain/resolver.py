"""Include chain resolution.

Starting from one file, the `include` block is decoded, its path is resolved
against the including file's directory, and the parent file is loaded. This
repeats until a file without an include block (the root) is reached.

Only the include block of each file is looked at here; locals, globals and
every other block are left untouched.
"""

import logging
import os
from pathlib import Path

from confchain.chain.types import INCLUDE_BLOCK, ChainNode, IncludeChain, IncludeConfig
from confchain.core.config import get_config
from confchain.core.exceptions import (
    DuplicateBlockError,
    ExpressionError,
    IncludeCycleError,
    IncludeDepthExceededError,
    IncludedConfigMissingPathError,
    IncludeError,
    PanicRecoveredError,
    VariableEvaluationError,
)
from confchain.syntax.expressions import EvaluationContext
from confchain.syntax.parser import parse_file, parse_source
from confchain.syntax.types import ConfigFile

logger = logging.getLogger(__name__)

__all__ = [
    "decode_include",
    "resolve_include_path",
    "resolve_chain",
    "resolve_chain_from_string",
]


def decode_include(config_file: ConfigFile) -> IncludeConfig | None:
    """Decode the include block of a file.

    The path expression is evaluated without variables; functions are
    available.

    Args:
        config_file: Parsed file.

    Returns:
        The include config, or None when the file has no include block.

    Raises:
        DuplicateBlockError: If the file has more than one include block.
        IncludedConfigMissingPathError: If the path is missing or empty.
        IncludeError: If the path does not evaluate to a string.
        VariableEvaluationError: If the path expression reports a diagnostic.
        PanicRecoveredError: If the path expression raised a low-level fault.

    """
    filename = config_file.filename
    blocks = config_file.blocks_of_type(INCLUDE_BLOCK)
    if not blocks:
        return None
    if len(blocks) > 1:
        raise DuplicateBlockError(INCLUDE_BLOCK, len(blocks), filename)

    block = blocks[0]
    attribute = block.body.attributes.get("path")
    if attribute is None:
        raise IncludedConfigMissingPathError(filename)

    try:
        value = attribute.expression.evaluate(EvaluationContext())
    except ExpressionError as e:
        raise VariableEvaluationError([e.diagnostic]) from e
    except Exception as e:
        raise PanicRecoveredError(e, filename, "include.path") from e

    if value is None or value == "":
        raise IncludedConfigMissingPathError(filename)
    if not isinstance(value, str):
        raise IncludeError(
            f"Include path in {filename or '<string>'} must be a string, got {type(value).__name__}",
            config_path=filename,
        )
    return IncludeConfig(path=value, range=block.range)


def resolve_include_path(include: IncludeConfig, including_path: Path) -> Path:
    """Resolve an include path against the including file's directory.

    Absolute paths are returned as-is (normalized).
    """
    target = Path(include.path)
    if not target.is_absolute():
        target = including_path.parent / target
    return Path(os.path.normpath(target))


def _identity(path: Path) -> Path:
    return path.resolve()


def _build_chain(path: Path, config_file: ConfigFile, max_depth: int) -> IncludeChain:
    current = ChainNode(path=path, config_file=config_file)
    nodes = [current]
    seen = {_identity(path)}

    while True:
        include = decode_include(current.config_file)
        current.include = include
        if include is None:
            break

        parent_path = resolve_include_path(include, current.path)
        if _identity(parent_path) in seen:
            raise IncludeCycleError([*(node.filename for node in nodes), str(parent_path)])
        if len(nodes) >= max_depth:
            raise IncludeDepthExceededError(nodes[0].filename, max_depth)

        logger.debug("%s includes %s", current.filename, parent_path)
        parent = ChainNode(path=parent_path, config_file=parse_file(parent_path))
        parent.child = current
        current.parent = parent
        nodes.append(parent)
        seen.add(_identity(parent_path))
        current = parent

    logger.info("Resolved include chain of %d file(s) starting at %s", len(nodes), nodes[0].filename)
    return IncludeChain(nodes)


def resolve_chain(path: Path, *, max_depth: int | None = None) -> IncludeChain:
    """Load a file and every file it transitively includes.

    Args:
        path: File to start from.
        max_depth: Maximum number of files in the chain (default: configured
            max_include_depth).

    Returns:
        The chain, starting file first and root last.

    Raises:
        ParserError: If a file is missing, unreadable or malformed.
        IncludeError: On a missing include path, an include cycle or an
            over-long chain.

    """
    depth = max_depth if max_depth is not None else get_config().max_include_depth
    return _build_chain(path, parse_file(path), depth)


def resolve_chain_from_string(
    source: str,
    filename: str,
    *,
    max_depth: int | None = None,
) -> IncludeChain:
    """Like resolve_chain(), with the starting file given as source text.

    Included files are still read from disk, relative to filename.
    """
    depth = max_depth if max_depth is not None else get_config().max_include_depth
    return _build_chain(Path(filename), parse_source(source, filename), depth)
