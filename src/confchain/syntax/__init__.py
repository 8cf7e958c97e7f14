"""Configuration language syntax: parser, file structures and expression nodes.

Public API:
- parse_source(), parse_file(), parse_expression()
- ConfigFile, Body, Block, Attribute, SourceRange, Diagnostic
- Expression, Traversal, EvaluationContext
- FUNCTIONS: built-in function table
"""

from confchain.syntax.expressions import EvaluationContext, Expression, Traversal
from confchain.syntax.functions import FUNCTIONS
from confchain.syntax.parser import parse_expression, parse_file, parse_source
from confchain.syntax.types import Attribute, Block, Body, ConfigFile, Diagnostic, SourceRange

__all__ = [
    "parse_source",
    "parse_file",
    "parse_expression",
    "ConfigFile",
    "Body",
    "Block",
    "Attribute",
    "SourceRange",
    "Diagnostic",
    "Expression",
    "Traversal",
    "EvaluationContext",
    "FUNCTIONS",
]
