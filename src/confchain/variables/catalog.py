"""Binding extraction from the locals and globals blocks of one file."""

import logging
import re

from confchain.core.exceptions import (
    DuplicateBlockError,
    InvalidIdentifierError,
    UnexpectedBlockError,
)
from confchain.syntax.types import Block, ConfigFile
from confchain.variables.types import Binding, BindingSet, Namespace

logger = logging.getLogger(__name__)

__all__ = ["LOCALS_BLOCK", "GLOBALS_BLOCK", "VARIABLE_BLOCKS", "extract_bindings", "is_valid_identifier"]

LOCALS_BLOCK = "locals"
GLOBALS_BLOCK = "globals"

# Block types handled by variable evaluation; everything else is remainder
VARIABLE_BLOCKS = frozenset({LOCALS_BLOCK, GLOBALS_BLOCK})

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")


def is_valid_identifier(name: str) -> bool:
    """Check whether name can be used as a binding name."""
    return _IDENTIFIER.fullmatch(name) is not None


def _single_block(config_file: ConfigFile, block_type: str) -> Block | None:
    blocks = config_file.blocks_of_type(block_type)
    if len(blocks) > 1:
        raise DuplicateBlockError(block_type, len(blocks), config_file.filename)
    return blocks[0] if blocks else None


def _bindings_of(block: Block, namespace: Namespace, filename: str) -> dict[str, Binding]:
    if block.body.blocks:
        raise UnexpectedBlockError(block.type, block.body.blocks[0].type, filename)

    bindings: dict[str, Binding] = {}
    for name, attribute in block.body.attributes.items():
        if not is_valid_identifier(name):
            raise InvalidIdentifierError(name, block.type, filename)
        bindings[name] = Binding(
            name=name,
            namespace=namespace,
            expression=attribute.expression,
            filename=filename,
        )
    return bindings


def extract_bindings(config_file: ConfigFile) -> BindingSet:
    """Extract locals and globals from one file.

    Only the `locals` and `globals` blocks are inspected; every other block is
    left for downstream decoding.

    Args:
        config_file: Parsed file.

    Returns:
        BindingSet whose locals/globals are None when the block is absent,
        otherwise name to Binding in declaration order.

    Raises:
        DuplicateBlockError: If the file has more than one locals or globals block.
        InvalidIdentifierError: If a binding name is not a valid identifier.
        UnexpectedBlockError: If a locals/globals block contains a nested block.

    """
    filename = config_file.filename
    locals_block = _single_block(config_file, LOCALS_BLOCK)
    globals_block = _single_block(config_file, GLOBALS_BLOCK)

    result = BindingSet(
        locals=_bindings_of(locals_block, Namespace.LOCAL, filename) if locals_block else None,
        globals=_bindings_of(globals_block, Namespace.GLOBAL, filename) if globals_block else None,
    )
    logger.debug(
        "Extracted %d locals and %d globals from %s",
        len(result.locals or {}),
        len(result.globals or {}),
        filename or "<string>",
    )
    return result
