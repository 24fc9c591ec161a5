"""
Lossless syntax tree for filterlang, and the builder that assembles it.

The tree has two layers:

    GreenNode / GreenToken:
        Immutable, position-free values. A GreenNode owns a tuple of children,
        each either another GreenNode or a GreenToken. Identical subtrees compare
        equal and can be shared freely.

    SyntaxNode / SyntaxToken:
        Read-only views that pair a green element with its absolute byte offset,
        so consumers can ask for text ranges and walk the tree.

TreeBuilder records parser events in a flat, append-only child log. Closing a
node moves the tail of the log into a new GreenNode. `checkpoint()` remembers a
position in the log and `open_at()` later opens a node that starts at that
position, adopting everything emitted since. That is how the parser wraps an
already-parsed left operand in a BinaryExpr once it sees an infix operator.

Concatenating the text of every token in a depth-first, left-to-right walk
reproduces the parsed input exactly.

Exports:
    - GreenNode, GreenToken, GreenElement
    - Checkpoint, TextRange
    - SyntaxNode, SyntaxToken, SyntaxElement
    - TreeBuilder, TreeBuilderError
    - TreeDict
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TypedDict, Union

from filterlang.filterlang_kinds import SyntaxKind


class TreeBuilderError(Exception):
    """Raised when the TreeBuilder is driven out of order.

    This signals a bug in the caller (unbalanced open/close, a stale checkpoint,
    or use after `finish()`), never a problem with the parsed input.
    """


class TreeDict(TypedDict, total=False):
    """Plain-dict form of a green element, as produced by `to_dict()`.

    Nodes carry `kind` and `children`; tokens carry `kind` and `text`.
    """

    kind: str
    text: str
    children: list["TreeDict"]


def _utf8_len(text: str) -> int:
    return len(text.encode("utf-8", errors="surrogatepass"))


@dataclass(frozen=True)
class TextRange:
    """Half-open byte range `[start, end)` into the parsed source."""

    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


@dataclass(frozen=True)
class GreenToken:
    kind: SyntaxKind
    text: str
    text_len: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "text_len", _utf8_len(self.text))

    def to_dict(self) -> TreeDict:
        return {"kind": self.kind.name, "text": self.text}


@dataclass(frozen=True, eq=False, repr=False)
class GreenNode:
    """An immutable interior node.

    Equality, hashing and text reconstruction walk the tree with an explicit
    stack, so left-folded chains of any length stay within the interpreter's
    recursion limit.

    Attributes:
        kind (SyntaxKind): The non-terminal kind of the node.
        children (tuple[GreenElement, ...]): Child nodes and tokens in source order.
        text_len (int): Total UTF-8 length of every token below this node.
    """

    kind: SyntaxKind
    children: tuple[GreenElement, ...] = ()
    text_len: int = field(init=False)
    _hash: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "text_len", sum(child.text_len for child in self.children)
        )
        # Children are built first, so their hashes are already cached.
        object.__setattr__(self, "_hash", hash((self.kind, self.children)))

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GreenNode):
            return NotImplemented
        pending: list[tuple[GreenNode, GreenNode]] = [(self, other)]
        while pending:
            left, right = pending.pop()
            if left is right:
                continue
            if (
                left._hash != right._hash
                or left.kind != right.kind
                or left.text_len != right.text_len
                or len(left.children) != len(right.children)
            ):
                return False
            for a, b in zip(left.children, right.children):
                if isinstance(a, GreenNode) and isinstance(b, GreenNode):
                    pending.append((a, b))
                elif isinstance(a, GreenNode) or isinstance(b, GreenNode) or a != b:
                    return False
        return True

    def __repr__(self) -> str:
        return (
            f"GreenNode({self.kind.name}, children={len(self.children)}, "
            f"text_len={self.text_len})"
        )

    def tokens(self) -> Iterator[GreenToken]:
        """Yields every token below this node, depth-first, left to right."""
        stack: list[GreenElement] = [self]
        while stack:
            element = stack.pop()
            if isinstance(element, GreenToken):
                yield element
            else:
                stack.extend(reversed(element.children))

    def text(self) -> str:
        return "".join(tok.text for tok in self.tokens())

    def to_dict(self) -> TreeDict:
        root: TreeDict = {"kind": self.kind.name, "children": []}
        stack: list[tuple[GreenNode, list[TreeDict]]] = [(self, root["children"])]
        while stack:
            node, out = stack.pop()
            for child in node.children:
                if isinstance(child, GreenToken):
                    out.append(child.to_dict())
                else:
                    entry: TreeDict = {"kind": child.kind.name, "children": []}
                    out.append(entry)
                    stack.append((child, entry["children"]))
        return root


GreenElement = Union[GreenNode, GreenToken]


@dataclass(frozen=True)
class Checkpoint:
    """Opaque marker for a position in the builder's child log."""

    index: int


@dataclass(frozen=True)
class SyntaxToken:
    green: GreenToken
    offset: int = 0

    @property
    def kind(self) -> SyntaxKind:
        return self.green.kind

    @property
    def text(self) -> str:
        return self.green.text

    @property
    def text_range(self) -> TextRange:
        return TextRange(self.offset, self.offset + self.green.text_len)


@dataclass(frozen=True)
class SyntaxNode:
    """A positioned, read-only view over a GreenNode.

    Attributes:
        green (GreenNode): The underlying immutable node.
        offset (int): Absolute byte offset where the node's text starts.
    """

    green: GreenNode
    offset: int = 0

    @property
    def kind(self) -> SyntaxKind:
        return self.green.kind

    @property
    def text_range(self) -> TextRange:
        return TextRange(self.offset, self.offset + self.green.text_len)

    def text(self) -> str:
        return self.green.text()

    def children_with_tokens(self) -> Iterator[SyntaxElement]:
        """Yields the direct children of this node, nodes and tokens alike, in order."""
        offset = self.offset
        for child in self.green.children:
            if isinstance(child, GreenNode):
                yield SyntaxNode(child, offset)
            else:
                yield SyntaxToken(child, offset)
            offset += child.text_len

    def children(self) -> Iterator[SyntaxNode]:
        """Yields only the direct child nodes, skipping tokens."""
        for child in self.children_with_tokens():
            if isinstance(child, SyntaxNode):
                yield child

    def descendants_with_tokens(self) -> Iterator[tuple[int, SyntaxElement]]:
        """Yields `(depth, element)` for this node and everything below it, pre-order.

        The node itself is yielded first at depth 0.
        """
        stack: list[tuple[int, SyntaxElement]] = [(0, self)]
        while stack:
            depth, element = stack.pop()
            yield depth, element
            if isinstance(element, SyntaxNode):
                children = list(element.children_with_tokens())
                stack.extend((depth + 1, child) for child in reversed(children))

    def tokens(self) -> Iterator[SyntaxToken]:
        for _, element in self.descendants_with_tokens():
            if isinstance(element, SyntaxToken):
                yield element


SyntaxElement = Union[SyntaxNode, SyntaxToken]


class TreeBuilder:
    """Assembles a GreenNode tree from a sequence of parser events.

    Attributes:
        _parents (list[tuple[SyntaxKind, int]]): Open nodes, each with the log
            index of its first child.
        _children (list[GreenElement]): The flat child log. Closed nodes
            replace the run of children they adopted.
        _finished (bool): Set once `finish()` has sealed the tree.

    Example:
        >>> b = TreeBuilder()
        >>> b.open(SyntaxKind.Root)
        >>> cp = b.checkpoint()
        >>> b.token(SyntaxKind.Ident, "a")
        >>> b.token(SyntaxKind.Or, "|")
        >>> b.open_at(cp, SyntaxKind.BinaryExpr)
        >>> b.token(SyntaxKind.Ident, "b")
        >>> b.close()
        >>> b.close()
        >>> b.finish().text()
        'a|b'
    """

    def __init__(self) -> None:
        self._parents: list[tuple[SyntaxKind, int]] = []
        self._children: list[GreenElement] = []
        self._finished = False

    def _check_open(self) -> None:
        if self._finished:
            raise TreeBuilderError("TreeBuilder used after finish()")

    def open(self, kind: SyntaxKind) -> None:
        """Opens a new node; subsequent events become its children."""
        self._check_open()
        self._parents.append((kind, len(self._children)))

    def token(self, kind: SyntaxKind, text: str) -> None:
        """Appends a token as a child of the currently open node."""
        self._check_open()
        self._children.append(GreenToken(kind, text))

    def close(self) -> None:
        """Closes the innermost open node.

        Raises:
            TreeBuilderError: If no node is open.
        """
        self._check_open()
        if not self._parents:
            raise TreeBuilderError("close() without a matching open()")
        kind, first_child = self._parents.pop()
        node = GreenNode(kind, tuple(self._children[first_child:]))
        del self._children[first_child:]
        self._children.append(node)

    def checkpoint(self) -> Checkpoint:
        """Marks the current end of the child log."""
        self._check_open()
        return Checkpoint(len(self._children))

    def open_at(self, checkpoint: Checkpoint, kind: SyntaxKind) -> None:
        """Opens a node that adopts every child emitted since `checkpoint`.

        Args:
            checkpoint: A marker returned earlier by `checkpoint()`.
            kind: The kind of the new node.

        Raises:
            TreeBuilderError: If the checkpoint lies outside the currently
                open node or past the end of the log.
        """
        self._check_open()
        if checkpoint.index > len(self._children):
            raise TreeBuilderError(
                f"Checkpoint {checkpoint.index} is past the end of the log ({len(self._children)})"
            )
        if self._parents and checkpoint.index < self._parents[-1][1]:
            raise TreeBuilderError(
                f"Checkpoint {checkpoint.index} precedes the open {self._parents[-1][0].name} node"
            )
        self._parents.append((kind, checkpoint.index))

    def finish(self) -> GreenNode:
        """Seals the builder and returns the root node.

        Raises:
            TreeBuilderError: If nodes are still open or the log does not hold
                exactly one root node.
        """
        self._check_open()
        if self._parents:
            unclosed = ", ".join(kind.name for kind, _ in self._parents)
            raise TreeBuilderError(f"finish() with unclosed nodes: {unclosed}")
        if len(self._children) != 1 or not isinstance(self._children[0], GreenNode):
            raise TreeBuilderError("finish() expects exactly one root node")
        self._finished = True
        root = self._children.pop()
        assert isinstance(root, GreenNode)  # for mypy
        return root


__all__ = [
    "Checkpoint",
    "GreenElement",
    "GreenNode",
    "GreenToken",
    "SyntaxElement",
    "SyntaxNode",
    "SyntaxToken",
    "TextRange",
    "TreeBuilder",
    "TreeBuilderError",
    "TreeDict",
]
