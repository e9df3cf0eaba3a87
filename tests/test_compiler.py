"""Tests for FilterCompiler and compile_request."""

from __future__ import annotations

import pytest

from query_paginator import HttpRequest, PaginatorConfig, SortSpec
from query_paginator.compiler import (
    CompiledQuery,
    FilterCompiler,
    compile_filters,
    compile_request,
)
from query_paginator.nodes import Comparison, Group
from query_paginator.parser import parse_filters
from query_paginator.request import parse_request


def _compile(raw: object, config: PaginatorConfig) -> tuple[list[str], list[object]]:
    return compile_filters(parse_filters(raw, config), config)


def test_explicit_connector_between_comparisons(resolved: PaginatorConfig) -> None:
    wheres, params = _compile([["a", "1"], ["AND"], ["b", "2"]], resolved)
    assert wheres == ["(", "a", "=", "?", "AND", "b", "=", "?", ")"]
    assert params == ["1", "2"]
    assert wheres.count("AND") == 1
    assert wheres.count("(") == wheres.count(")")


def test_nested_groups_carry_their_own_parentheses(
    resolved: PaginatorConfig,
) -> None:
    wheres, params = _compile([[["a", 1], ["b", 2]], ["AND"], ["c", 3]], resolved)
    assert " ".join(wheres) == "( ( a = ? OR b = ? ) AND c = ? )"
    assert params == [1, 2, 3]


def test_default_connector_inserted_for_hand_built_tree() -> None:
    config = PaginatorConfig(operator="AND").resolve()
    tree = Group((Comparison("a", "=", 1), Comparison("b", "=", 2)))
    wheres, _ = compile_filters(tree, config)
    assert " ".join(wheres) == "( a = ? AND b = ? )"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ([["deleted_at", None]], "( deleted_at IS NULL )"),
        ([["deleted_at", "is not", "NULL"]], "( deleted_at IS NOT NULL )"),
    ],
)
def test_null_checks_emit_literal(
    resolved: PaginatorConfig, raw: object, expected: str
) -> None:
    wheres, params = _compile(raw, resolved)
    assert " ".join(wheres) == expected
    assert params == []


def test_is_with_value_binds_parameter(resolved: PaginatorConfig) -> None:
    wheres, params = _compile([["flag", "is", "true"]], resolved)
    assert wheres == ["(", "flag", "IS", "?", ")"]
    assert params == ["true"]


def test_between_emits_two_placeholders(resolved: PaginatorConfig) -> None:
    wheres, params = _compile([["age", "between", [18.0, 30]]], resolved)
    assert wheres == ["(", "(", "age", "BETWEEN", "?", "AND", "?", ")", ")"]
    assert params == [18, 30]
    assert all(type(p) is int for p in params)


def test_between_needs_exactly_two_values(resolved: PaginatorConfig) -> None:
    assert _compile([["age", "between", [1, 2, 3]]], resolved) == ([], [])


def test_in_binds_whole_list(resolved: PaginatorConfig) -> None:
    wheres, params = _compile([["id", "in", [1.0, 2.0, 3.5]]], resolved)
    assert wheres == ["(", "id", "IN", "?", ")"]
    assert params == [[1, 2, 3.5]]


def test_in_without_list_is_dropped(resolved: PaginatorConfig) -> None:
    assert _compile([["id", "not in", 5]], resolved) == ([], [])


def test_dropped_child_keeps_one_connector(resolved: PaginatorConfig) -> None:
    raw = [["a", 1], ["AND"], ["b", "between", [1]], ["OR"], ["c", 3]]
    wheres, params = _compile(raw, resolved)
    assert " ".join(wheres) == "( a = ? AND c = ? )"
    assert params == [1, 3]


def test_like_wraps_column_and_lowercases_value(resolved: PaginatorConfig) -> None:
    wheres, params = _compile([["user.average_point", "like", "Seventy %"]], resolved)
    assert wheres == ["(", "LOWER(User__average_point)", "LIKE", "?", ")"]
    assert params == ["%seventy %%"]


def test_value_wrapper_replaces_lowercasing() -> None:
    config = PaginatorConfig(value_wrapper="%s").resolve()
    wheres, params = _compile([["name", "contains", "Bob"]], config)
    assert wheres == ["(", "name", "LIKE", "?", ")"]
    assert params == ["%Bob%"]


def test_postgres_quotes_and_declares_escape() -> None:
    config = PaginatorConfig().resolve("postgresql")
    wheres, params = _compile([["user.name", "like", "50%"]], config)
    assert wheres == [
        "(",
        'LOWER(("User__name")::text)',
        "LIKE",
        "?",
        "ESCAPE '\\'",
        ")",
    ]
    assert params == ["%50\\%%"]


def test_sqlite_quotes_identifiers() -> None:
    config = PaginatorConfig().resolve("sqlite")
    wheres, _ = _compile([["name", "bob"]], config)
    assert wheres == ["(", '"name"', "=", "?", ")"]


def test_quoting_neutralises_identifier_injection() -> None:
    config = PaginatorConfig().resolve("sqlite")
    wheres, _ = _compile([['name" OR 1=1 --', "bob"]], config)
    assert wheres[1] == '"name"" OR 1=1 --"'


@pytest.mark.parametrize("dialect", [None, "mssql"])
def test_unquoted_dialects_strip_identifier_injection(dialect: str | None) -> None:
    config = PaginatorConfig().resolve(dialect)
    wheres, params = _compile([["id = 1 OR 1=1 OR name", "x"]], config)
    assert "OR 1=1" not in " ".join(wheres)
    assert wheres == ["(", "id1OR11ORname", "=", "?", ")"]
    assert params == ["x"]


def test_unusable_column_is_dropped_with_its_connector(
    resolved: PaginatorConfig,
) -> None:
    wheres, params = _compile([["--;", "x"], ["AND"], ["b", 2]], resolved)
    assert wheres == ["(", "b", "=", "?", ")"]
    assert params == [2]


def test_integral_floats_are_coerced(resolved: PaginatorConfig) -> None:
    _, params = _compile([["age", ">", 18.0], ["score", "<", 2.5]], resolved)
    assert params == [18, 2.5]
    assert type(params[0]) is int


def test_empty_group_compiles_to_nothing(resolved: PaginatorConfig) -> None:
    assert compile_filters(Group(), resolved) == ([], [])


@pytest.mark.parametrize(
    "raw",
    [
        ["a", "=", 1],
        ["a", "!=", "x"],
        ["a", "<>", 2.0],
        ["a", "in", [1, 2]],
        ["a", "between", [1, 2]],
        ["a", "like", "x"],
        ["a", "is", None],
        [["a", 1], ["b", "like", "y"], [["c", ">", 3], ["AND"], ["d", "in", [4]]]],
    ],
)
def test_one_placeholder_per_parameter(resolved: PaginatorConfig, raw: object) -> None:
    wheres, params = _compile(raw, resolved)
    assert wheres.count("?") == len(params)


def test_parameter_order_follows_source(resolved: PaginatorConfig) -> None:
    raw = [["a", 1], [["b", 2], ["AND"], [["c", 3], ["d", 4]]], ["e", 5]]
    _, params = _compile(raw, resolved)
    assert params == [1, 2, 3, 4, 5]


def test_compile_request_window_and_sorts(resolved: PaginatorConfig) -> None:
    request = HttpRequest.from_query_string("page=3&size=10&sort=user.name,-id")
    query = compile_request(parse_request(request, resolved), resolved)
    assert isinstance(query, CompiledQuery)
    assert (query.limit, query.offset) == (10, 20)
    assert query.sorts == (
        SortSpec("User__name", "ASC"),
        SortSpec("id", "DESC"),
    )
    assert query.wheres == ()
    assert query.where_string == ""


def test_compile_request_quotes_sorts_for_dialect() -> None:
    config = PaginatorConfig().resolve("sqlite")
    request = HttpRequest.from_query_string("sort=-name")
    query = compile_request(parse_request(request, config), config)
    assert query.sorts == (SortSpec('"name"', "DESC"),)


def test_compiled_query_to_dict(resolved: PaginatorConfig) -> None:
    request = {"filters": [["name", "bob"]], "size": 5}
    query = compile_request(parse_request(request, resolved), resolved)
    assert query.to_dict() == {
        "where": "( name = ? )",
        "params": ["bob"],
        "limit": 5,
        "offset": 0,
        "sorts": [],
    }


def test_compiler_quote_resolves_reference() -> None:
    compiler = FilterCompiler(PaginatorConfig().resolve("postgresql"))
    assert compiler.quote("user.name") == '"User__name"'
    assert compiler.quote("id") == '"id"'
