"""confchain: locals and globals across chains of included configuration files.

Typical use:
    from pathlib import Path
    from confchain import evaluate_file

    result = evaluate_file(Path("live/prod/app/terragrunt.hcl"))
    region = result.global_values["region"]
    namespace = result.child.as_namespace()  # {"local": {...}, "global": {...}}
"""

from confchain.core.exceptions import ConfchainError
from confchain.variables import (
    ChainEvaluation,
    FileVariables,
    evaluate_chain,
    evaluate_file,
    evaluate_globals_block,
    evaluate_source,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfchainError",
    "ChainEvaluation",
    "FileVariables",
    "evaluate_chain",
    "evaluate_file",
    "evaluate_globals_block",
    "evaluate_source",
]
