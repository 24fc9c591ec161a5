"""
filterlang: a lossless parser for boolean filter expressions.

Example:
    >>> from filterlang import parse
    >>> tree = parse("target = foo | level >= info")
    >>> tree.text()
    'target = foo | level >= info'
"""

from filterlang.filterlang_kinds import SyntaxKind
from filterlang.filterlang_lexer import Lexer, Token, tokenize
from filterlang.filterlang_parser import Parse, ParseError, Parser, parse
from filterlang.filterlang_tree import (
    Checkpoint,
    GreenNode,
    GreenToken,
    SyntaxNode,
    SyntaxToken,
    TextRange,
    TreeBuilder,
    TreeBuilderError,
)

__version__ = "0.1.0"

__all__ = [
    "Checkpoint",
    "GreenNode",
    "GreenToken",
    "Lexer",
    "Parse",
    "ParseError",
    "Parser",
    "SyntaxKind",
    "SyntaxNode",
    "SyntaxToken",
    "TextRange",
    "Token",
    "TreeBuilder",
    "TreeBuilderError",
    "parse",
    "tokenize",
]
