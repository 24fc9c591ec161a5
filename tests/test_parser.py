import logging
from textwrap import dedent

import pytest
from hypothesis import given
from hypothesis import strategies as st

from filterlang.filterlang_constants import MAX_NESTING_DEPTH
from filterlang.filterlang_kinds import SyntaxKind
from filterlang.filterlang_parser import Parse, ParseError, Parser, parse
from filterlang.filterlang_tree import GreenNode, GreenToken, SyntaxNode

OPERATORS = ["&", "|", "=", ">", "<", ">=", "<="]


def dump(text: str) -> str:
    return dedent(text).strip("\n")


def tree(source: str) -> str:
    return parse(source).render()


def shape(node: GreenNode) -> object:
    """Reduce a tree to nested tuples of significant token text, dropping whitespace."""
    parts: list[object] = []
    for child in node.children:
        if isinstance(child, GreenToken):
            if child.kind != SyntaxKind.Whitespace:
                parts.append(child.text)
        else:
            parts.append(shape(child))
    return tuple(parts)


def test_empty_input() -> None:
    result = parse("")
    assert result.green == GreenNode(SyntaxKind.Root, ())
    assert result.render() == "Root@0..0"


def test_single_identifier() -> None:
    assert tree("foo") == dump(
        """
        Root@0..3
          Ident "foo"
        """
    )


def test_simple_comparison() -> None:
    assert tree("target = foo") == dump(
        """
        Root@0..12
          BinaryExpr@0..12
            Ident "target"
            Whitespace " "
            Equals "="
            Whitespace " "
            Ident "foo"
        """
    )


def test_left_associativity() -> None:
    assert tree("a | b | c") == dump(
        """
        Root@0..9
          BinaryExpr@0..9
            BinaryExpr@0..6
              Ident "a"
              Whitespace " "
              Or "|"
              Whitespace " "
              Ident "b"
              Whitespace " "
            Or "|"
            Whitespace " "
            Ident "c"
        """
    )


@pytest.mark.parametrize("first,second", [("=", "&"), ("&", "="), ("|", "&"), (">=", "|")])
def test_uniform_precedence(first: str, second: str) -> None:
    result = parse(f"a {first} b {second} c")
    assert shape(result.green) == ((("a", first, "b"), second, "c"),)


def test_comparison_does_not_bind_tighter_than_and() -> None:
    result = parse("level >= info & target = bar")
    assert shape(result.green) == (
        ((("level", ">=", "info"), "&", "target"), "=", "bar"),
    )


def test_parentheses_reset_folding() -> None:
    result = parse("(a | b) & c")
    assert shape(result.green) == (("(", ("a", "|", "b"), ")", "&", "c"),)
    assert result.render() == dump(
        """
        Root@0..11
          BinaryExpr@0..11
            OpenParen "("
            BinaryExpr@1..6
              Ident "a"
              Whitespace " "
              Or "|"
              Whitespace " "
              Ident "b"
            CloseParen ")"
            Whitespace " "
            And "&"
            Whitespace " "
            Ident "c"
        """
    )


def test_parenthesised_right_operand() -> None:
    result = parse("a & (b | c)")
    assert shape(result.green) == (("a", "&", "(", ("b", "|", "c"), ")"),)


def test_nested_parentheses() -> None:
    result = parse("((a))")
    assert shape(result.green) == ("(", "(", "a", ")", ")")


def test_empty_parentheses() -> None:
    assert shape(parse("()").green) == ("(", ")")


def test_filter_from_docs() -> None:
    source = "target = foo | (target = bar & level >= info) | level >= error"
    result = parse(source)
    assert result.text() == source
    group = ((("target", "=", "bar"), "&", "level"), ">=", "info")
    assert shape(result.green) == (
        (
            ((("target", "=", "foo"), "|", "(", group, ")"), "|", "level"),
            ">=",
            "error",
        ),
    )


def test_whitespace_round_trip() -> None:
    source = "a  |  b"
    result = parse(source)
    spaces = [t for t in result.syntax().tokens() if t.kind == SyntaxKind.Whitespace]
    assert len(spaces) == 4
    assert result.text() == source
    assert "".join(t.text for t in result.syntax().tokens()) == source


def test_leading_and_trailing_whitespace_kept() -> None:
    result = parse(" a ")
    assert result.text() == " a "
    assert result.render() == dump(
        """
        Root@0..3
          Whitespace " "
          Ident "a"
          Whitespace " "
        """
    )


def test_missing_left_operand_is_tolerated() -> None:
    result = parse("| a")
    assert result.render() == dump(
        """
        Root@0..3
          BinaryExpr@0..3
            Or "|"
            Whitespace " "
            Ident "a"
        """
    )


def test_missing_right_operand_is_tolerated() -> None:
    assert shape(parse("a =").green) == (("a", "="),)


def test_render_is_idempotent() -> None:
    result = parse("(a | b) & c")
    assert result.render() == result.render()


def test_parse_is_immutable_and_shareable() -> None:
    first = parse("a & b")
    second = parse("a & b")
    assert first == second
    assert isinstance(first.syntax(), SyntaxNode)
    with pytest.raises(AttributeError):
        first.green = second.green  # type: ignore[misc]


def test_unbalanced_parenthesis() -> None:
    with pytest.raises(ParseError) as e:
        parse("(a")
    assert e.value.expected == "CloseParen"
    assert e.value.found is None
    assert e.value.position == 2
    assert "end of input" in str(e.value)


def test_wrong_token_instead_of_close_paren() -> None:
    with pytest.raises(ParseError) as e:
        parse("(a b)")
    assert e.value.expected == "CloseParen"
    assert e.value.found is not None
    assert e.value.found.text == "b"
    assert e.value.position == 3
    assert e.value.col == 4


@pytest.mark.parametrize(
    "source,position,text",
    [
        ("a b", 2, "b"),
        (")", 0, ")"),
        ("a)", 1, ")"),
        ("a = 1", 4, "1"),
        ("foo$", 3, "$"),
        ("a\n?", 2, "?"),
    ],
)
def test_trailing_input(source: str, position: int, text: str) -> None:
    with pytest.raises(ParseError, match="end of input") as e:
        parse(source)
    assert e.value.expected == "end of input"
    assert e.value.position == position
    assert e.value.found is not None
    assert e.value.found.text == text


def test_parse_error_reports_line_and_column() -> None:
    with pytest.raises(ParseError) as e:
        parse("a &\n b c")
    assert (e.value.line, e.value.col) == (2, 4)


def test_long_chain_round_trips() -> None:
    source = "a|" * 2000 + "a"
    result = parse(source)
    assert result.text() == source
    assert result.syntax().text() == source

    depth = 0
    entry = result.to_dict()
    while "children" in entry:
        depth += 1
        entry = entry["children"][0]
    assert depth == 2001  # Root plus one BinaryExpr per operator
    assert entry == {"kind": "Ident", "text": "a"}

    again = parse(source)
    assert result == again
    assert hash(result) == hash(again)
    assert result != parse(source + "|b")
    assert "BinaryExpr" in result.render().splitlines()[1]


@pytest.mark.parametrize(
    "source",
    ["(" * 1200, "(" * 1200 + "a" + ")" * 1200, "a & (" * 1200 + "b" + ")" * 1200],
)
def test_deep_nesting_is_a_parse_error(source: str) -> None:
    with pytest.raises(ParseError) as e:
        parse(source)
    assert e.value.expected == "shallower nesting"
    assert e.value.found is not None
    assert e.value.found.kind == SyntaxKind.OpenParen
    assert source[: e.value.position].count("(") == MAX_NESTING_DEPTH


def test_nesting_up_to_the_limit_parses() -> None:
    source = "(" * MAX_NESTING_DEPTH + "a" + ")" * MAX_NESTING_DEPTH
    assert parse(source).text() == source


@pytest.mark.parametrize("blank", ["\r", "\v"])
def test_carriage_return_and_vertical_tab_are_trailing_input(blank: str) -> None:
    with pytest.raises(ParseError) as e:
        parse(f"a{blank}")
    assert e.value.expected == "end of input"
    assert e.value.found is not None
    assert e.value.found.text == blank


def test_parse_error_is_syntax_error() -> None:
    with pytest.raises(SyntaxError):
        parse("(")


def test_parser_object_entry_point() -> None:
    result = Parser("a|b").parse()
    assert isinstance(result, Parse)
    assert result == parse("a|b")


def test_parse_logs_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="filterlang.filterlang_parser"):
        parse("a")
        with pytest.raises(ParseError):
            parse("a b")
    messages = [r.getMessage() for r in caplog.records]
    assert any("Parsing filter 'a'" in m for m in messages)
    assert any(m.startswith("Parse error:") for m in messages)


def expressions() -> st.SearchStrategy[str]:
    ident = st.text(alphabet="abcxyzLEVEL", min_size=1, max_size=6)
    space = st.sampled_from(["", " ", "  "])

    def extend(inner: st.SearchStrategy[str]) -> st.SearchStrategy[str]:
        binary = st.builds(
            lambda lhs, s1, op, s2, rhs: f"{lhs}{s1}{op}{s2}{rhs}",
            inner,
            space,
            st.sampled_from(OPERATORS),
            space,
            inner,
        )
        group = st.builds(lambda s1, e, s2: f"({s1}{e}{s2})", space, inner, space)
        return binary | group

    return st.builds(
        lambda lead, e, trail: f"{lead}{e}{trail}",
        space,
        st.recursive(ident, extend, max_leaves=12),
        space,
    )


@given(expressions())  # type: ignore[misc]
def test_lossless_round_trip(source: str) -> None:
    result = parse(source)
    assert result.text() == source
    assert "".join(t.text for t in result.syntax().tokens()) == source
    assert result.syntax().text_range.end == len(source)


@given(st.lists(st.text(alphabet="abc", min_size=1, max_size=3), min_size=2, max_size=6))  # type: ignore[misc]
def test_chains_fold_left(idents: list[str]) -> None:
    result = parse(" | ".join(idents))
    node = result.green.children[0]
    depth = 0
    while isinstance(node, GreenNode):
        depth += 1
        assert isinstance(node.children[-1], GreenToken)
        node = node.children[0]
    assert depth == len(idents) - 1


@given(st.text())  # type: ignore[misc]
def test_any_text_parses_or_raises_parse_error(source: str) -> None:
    try:
        result = parse(source)
    except ParseError:
        return
    assert result.green.kind == SyntaxKind.Root
