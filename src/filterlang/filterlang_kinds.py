"""
Syntax kinds shared by the filterlang lexer, tree builder, and parser.

Classes:
    SyntaxKind: Closed set of terminal (token) and non-terminal (node) tags.

The raw integer value of each member is stable and can be stored or passed
across process boundaries; use `SyntaxKind.to_raw()` and `SyntaxKind.from_raw()`
to convert.
"""

from enum import IntEnum


class SyntaxKind(IntEnum):
    """Every tag that can appear in a filterlang syntax tree."""

    # Terminals
    OpenParen = 0
    CloseParen = 1
    And = 2
    Or = 3
    GreaterThan = 4
    LessThan = 5
    GreaterThanOrEqualTo = 6
    LessThanOrEqualTo = 7
    Equals = 8
    Ident = 9
    Whitespace = 10
    Error = 11

    # Non-terminals
    BinaryExpr = 12
    Root = 13

    @property
    def is_terminal(self) -> bool:
        return self < SyntaxKind.BinaryExpr

    @property
    def is_node(self) -> bool:
        return not self.is_terminal

    @property
    def is_infix_operator(self) -> bool:
        return SyntaxKind.And <= self <= SyntaxKind.Equals

    def to_raw(self) -> int:
        return int(self)

    @classmethod
    def from_raw(cls, raw: int) -> "SyntaxKind":
        """Converts a raw tag back into a SyntaxKind.

        Args:
            raw: An integer previously produced by `to_raw()`.

        Returns:
            The matching SyntaxKind.

        Raises:
            ValueError: If `raw` is outside the closed set of kinds.
        """
        if not 0 <= raw <= cls.Root:
            raise ValueError(f"Unknown raw syntax kind: {raw!r}")
        return cls(raw)


__all__ = ["SyntaxKind"]
