"""Tests for building ASTs from query transactions."""

from __future__ import annotations

import pytest

from eql.notation import parse_text
from eql.query_language import (
    CallNode,
    InvalidCallShapeError,
    InvalidJoinShapeError,
    InvalidParamsError,
    InvalidRecursionMarkerError,
    JoinNode,
    PropNode,
    QueryKind,
    QueryParseError,
    RootNode,
    UnclassifiableElementError,
    UnionEntryNode,
    UnionNode,
    parse,
)
from eql.values import RECURSION, Keyword, ListForm, Symbol


def _prop(name: str) -> PropNode:
    return PropNode(Keyword(name), Keyword(name))


def test_parse_plain_properties() -> None:
    """Keywords should become prop nodes in transaction order."""
    root = parse_text("[:album/name :album/year]")

    assert root == RootNode((_prop("album/name"), _prop("album/year")))
    assert [child.kind for child in root.children] == ["prop", "prop"]


def test_parse_join_with_subquery() -> None:
    """A single-entry mapping with a vector value should become a join."""
    root = parse_text("[{:favorite-albums [:album/name :album/year]}]")

    (join,) = root.children
    assert join == JoinNode(
        Keyword("favorite-albums"),
        Keyword("favorite-albums"),
        [Keyword("album/name"), Keyword("album/year")],
        QueryKind.SUBQUERY,
        (_prop("album/name"), _prop("album/year")),
    )


def test_parse_ident_property() -> None:
    """An ident element should dispatch on its keyword and keep the tuple as key."""
    root = parse_text("[[:customer/id 123]]")

    (prop,) = root.children
    assert prop == PropNode(Keyword("customer/id"), (Keyword("customer/id"), 123))
    assert prop.params is None


def test_parse_parametrized_property() -> None:
    """A (key params) form should attach params to the prop."""
    root = parse_text('[(:foo {:with "params"})]')

    params = {Keyword("with"): "params"}
    assert root.children == (PropNode(Keyword("foo"), Keyword("foo"), params),)


def test_parse_parametrized_join_spellings_are_equal() -> None:
    """Params may wrap the join key or the whole join with the same result."""
    on_key = parse_text("[{(:foo {:p 1}) [:a]}]")
    on_join = parse_text("[({:foo [:a]} {:p 1})]")

    assert on_key == on_join
    (join,) = on_key.children
    assert isinstance(join, JoinNode)
    assert join.params == {Keyword("p"): 1}
    assert join.children == (_prop("a"),)


def test_parse_parametrized_ident_join() -> None:
    """An ident join key may carry params too."""
    root = parse_text("[{([:user/id 1] {:expand true}) [:user/name]}]")

    (join,) = root.children
    assert isinstance(join, JoinNode)
    assert join.dispatch_key == Keyword("user/id")
    assert join.key == (Keyword("user/id"), 1)
    assert join.params == {Keyword("expand"): True}


def test_parse_unbounded_recursion() -> None:
    """The recursion marker should produce a childless unbounded join."""
    root = parse_text("[:entry/name {:entry/folders ...}]")

    join = root.children[1]
    assert isinstance(join, JoinNode)
    assert join.query == RECURSION
    assert join.query_kind == QueryKind.UNBOUNDED_RECURSION
    assert join.children == ()


def test_parse_bounded_recursion() -> None:
    """A non-negative integer join value should produce a bounded join."""
    root = parse_text("[:entry/name {:entry/folders 3}]")

    join = root.children[1]
    assert isinstance(join, JoinNode)
    assert join.query == 3
    assert join.query_kind == QueryKind.BOUNDED_RECURSION
    assert join.children == ()


def test_parse_union_join() -> None:
    """A mapping of sequences as join value should build union entries."""
    root = parse_text("[{:feed {:photo [:photo/url] :video [:video/src :video/length]}}]")

    (join,) = root.children
    assert isinstance(join, JoinNode)
    assert join.query_kind == QueryKind.UNION
    (union,) = join.children
    assert isinstance(union, UnionNode)
    assert union.children == (
        UnionEntryNode(Keyword("photo"), [Keyword("photo/url")], (_prop("photo/url"),)),
        UnionEntryNode(
            Keyword("video"),
            [Keyword("video/src"), Keyword("video/length")],
            (_prop("video/src"), _prop("video/length")),
        ),
    )


def test_parse_mutation_call() -> None:
    """A (symbol params) element should become a call without a query."""
    root = parse_text("[(app/save {:id 1})]")

    (node,) = root.children
    assert node == CallNode(Symbol("app/save"), Symbol("app/save"), {Keyword("id"): 1})
    assert node.children is None
    assert node.query_kind is None


@pytest.mark.parametrize("text", ["[app/ping]", "[(app/ping)]"])
def test_parse_call_without_params(text: str) -> None:
    """Bare symbols and (symbol) forms should be calls with empty params."""
    root = parse_text(text)

    assert root.children == (CallNode(Symbol("app/ping"), Symbol("app/ping"), {}),)


def test_parse_mutation_join() -> None:
    """A call used as a join key should keep its params and build the return query."""
    root = parse_text("[{(app/save {:id 1}) [:save/result]}]")

    (node,) = root.children
    assert isinstance(node, CallNode)
    assert node.params == {Keyword("id"): 1}
    assert node.query_kind == QueryKind.SUBQUERY
    assert node.children == (_prop("save/result"),)


@pytest.mark.parametrize(
    "text",
    ["[({app/save [:id]} {:x 1})]", "[({(app/save) [:id]} {:x 1})]"],
)
def test_parse_mutation_join_with_params_on_the_join(text: str) -> None:
    """Params wrapped around a mutation join without key params attach once."""
    root = parse_text(text)

    assert root == parse_text("[{(app/save {:x 1}) [:id]}]")
    (node,) = root.children
    assert isinstance(node, CallNode)
    assert node.params == {Keyword("x"): 1}


def test_parse_bare_mutation_join_defaults_to_empty_params() -> None:
    """A bare symbol join key without any params yields empty call params."""
    (node,) = parse_text("[{app/save [:id]}]").children

    assert isinstance(node, CallNode)
    assert node.params == {}


def test_parse_plain_values_without_reader() -> None:
    """Plain lists, tuples and dicts should parse like reader output."""
    query = [
        Keyword("a"),
        (Keyword("user/id"), 7),
        {Keyword("b"): [Keyword("c")]},
        ListForm((Keyword("d"), {Keyword("limit"): 2})),
    ]

    assert parse(query) == parse_text("[:a [:user/id 7] {:b [:c]} (:d {:limit 2})]")


def test_parse_records_reader_positions() -> None:
    """Nodes built from reader output should carry line and column metadata."""
    root = parse_text("[:a\n {:b [:c]}]")

    assert root.meta == {"line": 1, "column": 1}
    assert root.children[1].meta == {"line": 2, "column": 2}


def test_parse_meta_does_not_affect_equality() -> None:
    """Nodes differing only in metadata should compare equal."""
    assert parse_text("[:a {:b [:c]}]") == parse_text("[\n\n  :a\n  {:b\n   [:c]}]")


def test_parse_empty_transaction() -> None:
    """An empty transaction should produce a root without children."""
    assert parse_text("[]") == RootNode(())


def test_parse_rejects_multi_entry_join() -> None:
    """A mapping element must have exactly one entry."""
    with pytest.raises(InvalidJoinShapeError) as exc_info:
        parse_text("[{:a 1, :b 2}]")

    assert exc_info.value.path == (0,)
    assert "found 2 entries" in str(exc_info.value)


def test_parse_rejects_empty_join() -> None:
    """An empty mapping element is not a join."""
    with pytest.raises(InvalidJoinShapeError):
        parse_text("[{}]")


def test_parse_rejects_multi_entry_mapping_as_join_value() -> None:
    """A non-union mapping in a join's value slot reads as a malformed join."""
    with pytest.raises(InvalidJoinShapeError) as exc_info:
        parse_text("[{:j {:a 1, :b 2}}]")

    assert exc_info.value.path == (0, Keyword("j"))


@pytest.mark.parametrize(
    "text",
    [
        "[(:foo :bar)]",
        "[(:foo {:a 1} {:b 2})]",
        "[(:foo)]",
        "[({(:a {:x 1}) [:b]} {:y 2})]",
        "[({(app/save {:id 1}) [:ok]} {:y 2})]",
    ],
)
def test_parse_rejects_invalid_params(text: str) -> None:
    """Parametrized expressions must be (target params-map) with params given once."""
    with pytest.raises(InvalidParamsError):
        parse_text(text)


@pytest.mark.parametrize("text", ["[(do-it :x)]", "[(do-it {} {})]"])
def test_parse_rejects_invalid_call_shape(text: str) -> None:
    """Calls must be (symbol) or (symbol params-map)."""
    with pytest.raises(InvalidCallShapeError):
        parse_text(text)


@pytest.mark.parametrize(
    "text",
    [
        '[{:a "x"}]',
        "[{:a -1}]",
        "[{:a {:b 1}}]",
        "[{:a true}]",
        "[{:a nil}]",
    ],
)
def test_parse_rejects_invalid_join_values(text: str) -> None:
    """Join values must be a sub-query, union, marker, or non-negative depth."""
    with pytest.raises(InvalidRecursionMarkerError) as exc_info:
        parse_text(text)

    assert exc_info.value.path == (0, Keyword("a"))


@pytest.mark.parametrize(
    "text",
    ['["name"]', "[42]", "[nil]", "[...]", "[()]", "[[1 2]]", "[1.5]"],
)
def test_parse_rejects_unclassifiable_elements(text: str) -> None:
    """Elements matching no shape should be rejected."""
    with pytest.raises(UnclassifiableElementError):
        parse_text(text)


def test_parse_rejects_non_sequence_transaction() -> None:
    """The transaction itself must be a sequence."""
    with pytest.raises(UnclassifiableElementError) as exc_info:
        parse(Keyword("a"))

    assert exc_info.value.path == ()
    assert "<root>" in str(exc_info.value)


def test_parse_error_reports_path_and_position() -> None:
    """Nested errors should carry the element path and the enclosing position."""
    with pytest.raises(UnclassifiableElementError) as exc_info:
        parse_text("[:a\n {:b [:c 42.5]}]")

    error = exc_info.value
    assert error.path == (1, Keyword("b"), 1)
    assert error.value == 42.5
    assert (error.line, error.column) == (2, 6)
    assert "[line 2, column 6]" in str(error)


def test_parse_error_path_through_union() -> None:
    """Errors inside a union branch should include the union key in the path."""
    with pytest.raises(QueryParseError) as exc_info:
        parse_text('[{:feed {:photo [:url "bad"]}}]')

    assert exc_info.value.path == (0, Keyword("feed"), Keyword("photo"), 1)


def test_parse_deep_nesting_without_recursion_limit() -> None:
    """Deeply nested joins should build without exhausting the call stack."""
    depth = 2000
    query: object = [Keyword("leaf")]
    for _ in range(depth):
        query = [{Keyword("n"): query}]

    root = parse(query)

    node = root.children[0]
    levels = 0
    while isinstance(node, JoinNode):
        levels += 1
        node = node.children[0]
    assert levels == depth
    assert node == _prop("leaf")
