"""
Lexical and precedence tables for the filterlang filter-expression language.

Tables:
    token_hashmap: Operator and punctuation text mapped to its SyntaxKind.
    MAX_OPERATOR_LEN: Length of the longest entry in `token_hashmap`.
    INFIX_OPERATORS: Every SyntaxKind the parser accepts between two operands.
    INFIX_BINDING_POWER: (left, right) binding power for each infix operator.
    SKIPPED_BLANKS: Blank characters consumed by the lexer without a token.
    WHITESPACE: The single blank that becomes a `Whitespace` token.
    MAX_NESTING_DEPTH: Deepest parenthesis nesting the parser accepts.

All operators share one binding-power pair, so chains such as
`a = b & c | d` fold strictly left to right.
"""

from filterlang.filterlang_kinds import SyntaxKind

token_hashmap: dict[str, SyntaxKind] = {
    "(": SyntaxKind.OpenParen,
    ")": SyntaxKind.CloseParen,
    "&": SyntaxKind.And,
    "|": SyntaxKind.Or,
    ">": SyntaxKind.GreaterThan,
    "<": SyntaxKind.LessThan,
    ">=": SyntaxKind.GreaterThanOrEqualTo,
    "<=": SyntaxKind.LessThanOrEqualTo,
    "=": SyntaxKind.Equals,
}

MAX_OPERATOR_LEN: int = max(len(k) for k in token_hashmap)

INFIX_OPERATORS: frozenset[SyntaxKind] = frozenset(
    kind for kind in SyntaxKind if kind.is_infix_operator
)

INFIX_BINDING_POWER: dict[SyntaxKind, tuple[int, int]] = {
    kind: (1, 2) for kind in INFIX_OPERATORS
}

SKIPPED_BLANKS: str = "\t\n\f"
WHITESPACE: str = " "

MAX_NESTING_DEPTH: int = 256
