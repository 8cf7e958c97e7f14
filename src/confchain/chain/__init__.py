"""Include chain resolution.

Public API:
- resolve_chain(), resolve_chain_from_string()
- decode_include(), resolve_include_path()
- IncludeChain, ChainNode, IncludeConfig
"""

from confchain.chain.resolver import (
    decode_include,
    resolve_chain,
    resolve_chain_from_string,
    resolve_include_path,
)
from confchain.chain.types import ChainNode, IncludeChain, IncludeConfig

__all__ = [
    "resolve_chain",
    "resolve_chain_from_string",
    "decode_include",
    "resolve_include_path",
    "IncludeChain",
    "ChainNode",
    "IncludeConfig",
]
