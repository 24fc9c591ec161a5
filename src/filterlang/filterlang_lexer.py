"""
Lexical analyzer for the filterlang filter-expression language.

This module converts raw filter text into a stream of tokens:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: A single immutable token with kind, source text, and location.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Features:
    - Longest-match recognition of operators (`>=` wins over `>`)
    - Identifiers are maximal runs of ASCII letters
    - Every single space becomes its own `Whitespace` token so the parser can
      place it in the tree
    - Runs of tab, newline and form-feed are consumed without producing a token
    - Any other character becomes a one-character `Error` token; the lexer
      itself never raises on bad input

Example:
    >>> [(tok.kind.name, tok.text) for tok in tokenize("a>=b")]
    [('Ident', 'a'), ('GreaterThanOrEqualTo', '>='), ('Ident', 'b')]

Exports:
    - CharacterStream
    - Token
    - Lexer
    - tokenize
    - token_hashmap
"""

from collections.abc import Iterator
from dataclasses import dataclass

from filterlang.filterlang_constants import (
    MAX_OPERATOR_LEN,
    SKIPPED_BLANKS,
    WHITESPACE,
    token_hashmap,
)
from filterlang.filterlang_kinds import SyntaxKind


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Returns:
            str: The next character.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"CharacterStreamError: Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """
        Returns the character at the given offset from the current position without advancing.

        Args:
            offset (int, optional): Number of characters to look ahead. Defaults to 0.

        Returns:
            str: The character at the offset, or an empty string if out of bounds.
        """
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        """Checks if the stream has consumed all characters."""
        return self.position >= len(self.source)


@dataclass(frozen=True)
class Token:
    """A single lexical token.

    Attributes:
        kind (SyntaxKind): The terminal kind of the token.
        text (str): The exact source text the token covers.
        offset (int): Character offset of the first character in the source.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    kind: SyntaxKind
    text: str
    offset: int = 0
    line: int = 0
    col: int = 0

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r})"


class Lexer:
    """Lexical analyzer for filterlang.

    The Lexer pulls characters from a CharacterStream and produces Token objects
    lazily, one per call to `next_token()`. It is also an iterator, so
    `list(Lexer(stream))` yields every token in source order.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        tok = self.next_token()
        if tok is None:
            raise StopIteration
        return tok

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def skip_blanks(self) -> None:
        """Consumes a run of blank characters that never become tokens."""
        while not self.stream.end_of_file() and self.peek() in SKIPPED_BLANKS:
            self.advance()

    def match_operator(self) -> Token | None:
        """Attempts to match the longest valid operator from the current position.

        Returns:
            Token | None: A Token if a match is found, otherwise None.
        """
        offset = self.stream.position
        line, col = self.stream.line, self.stream.column
        max_token = None
        match_len = 0
        candidate = ""

        for i in range(MAX_OPERATOR_LEN):
            ch = self.stream.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in token_hashmap:
                max_token = candidate
                match_len = i + 1

        if max_token:
            for _ in range(match_len):
                self.advance()
            return Token(token_hashmap[max_token], max_token, offset, line, col)

        return None

    def next_token(self) -> Token | None:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token | None: The next token, or None once the input is exhausted.
        """
        self.skip_blanks()

        if self.stream.end_of_file():
            return None

        ch = self.peek()
        offset = self.stream.position
        line, col = self.stream.line, self.stream.column

        # 1. Operators and parentheses
        token = self.match_operator()
        if token:
            return token

        # 2. Identifier
        if ch.isascii() and ch.isalpha():
            while not self.stream.end_of_file() and (
                self.peek().isascii() and self.peek().isalpha()
            ):
                self.advance()
            text = self.stream.source[offset : self.stream.position]
            return Token(SyntaxKind.Ident, text, offset, line, col)

        # 3. A single space is significant
        if ch == WHITESPACE:
            return Token(SyntaxKind.Whitespace, self.advance(), offset, line, col)

        # 4. Unknown character → error token
        return Token(SyntaxKind.Error, self.advance(), offset, line, col)


def tokenize(source: str) -> list[Token]:
    """Lexes `source` completely and returns its tokens in source order."""
    return list(Lexer(CharacterStream(source)))


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize", "token_hashmap"]
