"""
filterlang Parser

Parses filter expressions such as `target = foo | (level >= info & target = bar)`
into a lossless syntax tree.

Grammar
-------
    Root     := Expr
    Expr     := Primary (InfixOp Expr)*
    Primary  := Ident | '(' Expr ')' | <empty>
    InfixOp  := '&' | '|' | '=' | '>' | '<' | '>=' | '<='

Parser Behavior
---------------
- Expressions are parsed with a binding-power loop and one token of lookahead.
  Every infix operator has the same binding power, so `a = b & c | d` folds
  strictly left to right: `((a = b) & c) | d`.
- Left folding uses tree-builder checkpoints: the left operand is parsed first,
  then wrapped in a `BinaryExpr` once an operator shows up.
- Whitespace tokens met while looking ahead are placed in whichever node is
  open at that moment, so no input text is lost.
- A missing operand (e.g. `| a`) is tolerated and leaves a `BinaryExpr` without
  a left child.
- A missing `)` or any input left over after the top-level expression raises
  `ParseError`.
- Parentheses nest at most `MAX_NESTING_DEPTH` deep; a deeper `(` raises
  `ParseError`.

Entry Points
------------
- `parse(source)`: Parse a filter string into a `Parse`.
- `Parser(source).parse()`: Same, through a single-use parser object.

Raises
------
ParseError
    Raised when a closing parenthesis is missing, parentheses nest too deeply,
    or input is left unconsumed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NoReturn

from filterlang.filterlang_constants import (
    INFIX_BINDING_POWER,
    INFIX_OPERATORS,
    MAX_NESTING_DEPTH,
)
from filterlang.filterlang_kinds import SyntaxKind
from filterlang.filterlang_lexer import CharacterStream, Lexer, Token
from filterlang.filterlang_tree import (
    Checkpoint,
    GreenNode,
    SyntaxNode,
    SyntaxToken,
    TreeBuilder,
    TreeDict,
)

logger = logging.getLogger(__name__)


class ParseError(SyntaxError):
    """Raised when filter text cannot be turned into a complete syntax tree.

    Attributes:
        expected (str): Description of what the parser was looking for.
        found (Token | None): The offending token, or None at end of input.
        position (int): Character offset of the failure in the source.
        line (int): 1-based line of the failure.
        col (int): 1-based column of the failure.
    """

    def __init__(
        self,
        expected: str,
        found: Token | None,
        position: int,
        line: int = 1,
        col: int = 1,
    ) -> None:
        got = "end of input" if found is None else repr(found)
        super().__init__(
            f"Expected {expected} at line {line}, col {col} (position {position}), got {got}"
        )
        self.expected = expected
        self.found = found
        self.position = position
        self.line = line
        self.col = col


@dataclass(frozen=True)
class Parse:
    """The result of a successful parse.

    Attributes:
        green (GreenNode): The immutable `Root` node of the tree.
    """

    green: GreenNode

    def syntax(self) -> SyntaxNode:
        return SyntaxNode(self.green)

    def text(self) -> str:
        """Reconstructs the parsed source from the tree."""
        return self.green.text()

    def to_dict(self) -> TreeDict:
        return self.green.to_dict()

    def render(self) -> str:
        """Renders the tree as an indented debug dump.

        Each node or token sits on its own line, two spaces deeper than its
        parent. Nodes show `Kind@start..end`, tokens show `Kind "text"`.

        Example:
            >>> print(parse("a|b").render())
            Root@0..3
              BinaryExpr@0..3
                Ident "a"
                Or "|"
                Ident "b"
        """
        lines: list[str] = []
        for depth, element in self.syntax().descendants_with_tokens():
            indent = "  " * depth
            if isinstance(element, SyntaxToken):
                lines.append(f'{indent}{element.kind.name} "{element.text}"')
            else:
                lines.append(f"{indent}{element.kind.name}@{element.text_range}")
        return "\n".join(lines)


class Parser:
    """
    filterlang Parser Class

    Pulls tokens lazily from a Lexer and emits tree-building events. A Parser is
    single use: call `parse()` once.

    Attributes
    ----------
    source : str
        The filter text being parsed.
    lexer : Lexer
        Token source for `source`.
    builder : TreeBuilder
        Receives node and token events.
    lookahead : Token | None
        The next unconsumed token, or None at end of input.
    depth : int
        Number of currently open parentheses.
    """

    def __init__(self, source: str) -> None:
        self.source: str = source
        self.lexer: Lexer = Lexer(CharacterStream(source))
        self.builder: TreeBuilder = TreeBuilder()
        self.lookahead: Token | None = self.lexer.next_token()
        self.depth: int = 0

    def parse(self) -> Parse:
        """Parse the whole source and return the finished tree."""
        logger.debug("Parsing filter %r", self.source)
        self.builder.open(SyntaxKind.Root)
        self.expr()

        if self.peek() is not None:
            self.error("end of input")

        self.builder.close()
        parse = Parse(self.builder.finish())
        logger.debug(
            "Parsed filter %r into %d bytes of tree", self.source, parse.green.text_len
        )
        return parse

    def error(self, expected: str) -> NoReturn:
        tok = self.lookahead
        if tok is None:
            stream = self.lexer.stream
            err = ParseError(
                expected, None, stream.position, stream.line, stream.column
            )
        else:
            err = ParseError(expected, tok, tok.offset, tok.line, tok.col)
        logger.debug("Parse error: %s", err)
        raise err

    def bump(self) -> Token:
        """Consume the lookahead token and add it to the open node."""
        tok = self.lookahead
        assert tok is not None  # callers peek first
        self.builder.token(tok.kind, tok.text)
        self.lookahead = self.lexer.next_token()
        return tok

    def peek(self) -> SyntaxKind | None:
        """Return the next significant token kind, bumping any whitespace first."""
        while (
            self.lookahead is not None
            and self.lookahead.kind == SyntaxKind.Whitespace
        ):
            self.bump()
        return None if self.lookahead is None else self.lookahead.kind

    def expect(self, kind: SyntaxKind) -> Token:
        if self.peek() != kind:
            self.error(kind.name)
        return self.bump()

    def checkpoint(self) -> Checkpoint:
        return self.builder.checkpoint()

    def open_at(self, checkpoint: Checkpoint, kind: SyntaxKind) -> None:
        self.builder.open_at(checkpoint, kind)

    def close(self) -> None:
        self.builder.close()

    def expr(self) -> None:
        self.expr_binding_power(0)

    def expr_binding_power(self, minimum_binding_power: int) -> None:
        """Parse one operand chain, folding infix operators to the left.

        Args:
            minimum_binding_power: Operators binding more loosely than this end
                the chain and are left for the caller.
        """
        checkpoint = self.checkpoint()

        kind = self.peek()
        if kind == SyntaxKind.Ident:
            self.bump()
        elif kind == SyntaxKind.OpenParen:
            if self.depth >= MAX_NESTING_DEPTH:
                self.error("shallower nesting")
            self.depth += 1
            self.bump()
            self.expr_binding_power(0)
            self.expect(SyntaxKind.CloseParen)
            self.depth -= 1

        while True:
            op = self.peek()
            if op not in INFIX_OPERATORS:
                return
            assert op is not None  # for mypy

            left_binding_power, right_binding_power = INFIX_BINDING_POWER[op]
            if left_binding_power < minimum_binding_power:
                return

            self.bump()

            self.open_at(checkpoint, SyntaxKind.BinaryExpr)
            self.expr_binding_power(right_binding_power)
            self.close()


def parse(source: str) -> Parse:
    """Parse a filter string into a lossless syntax tree.

    Args:
        source: The filter text. The empty string yields a `Root` node with no children.

    Returns:
        Parse: The finished tree.

    Raises:
        ParseError: If a `(` is not closed, parentheses nest deeper than
            `MAX_NESTING_DEPTH`, or input remains after the expression.
    """
    return Parser(source).parse()


__all__ = ["Parse", "ParseError", "Parser", "parse"]
