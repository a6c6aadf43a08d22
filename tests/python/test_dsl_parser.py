"""Tests for the call-chain grammar."""

from __future__ import annotations

import sys

import pytest

from chainopt.dsl import ast, generators, grammar
from chainopt.dsl.errors import ChainSyntaxError, ChainTypeError
from chainopt.dsl.tokens import ElementToken, ExpressionType, NumberToken, Operation, OperationToken


def test_parse_element() -> None:
    expression = grammar.parse_expression("element")
    assert expression.tokens == (ElementToken(),)
    assert expression.type is ExpressionType.ARITHMETIC


def test_parse_negative_number() -> None:
    expression = grammar.parse_expression("-3")
    assert expression.tokens == (NumberToken(-3),)


def test_parse_binary_expression_is_postfix() -> None:
    expression = grammar.parse_expression("(3*element)")
    assert expression.tokens == (
        NumberToken(3),
        ElementToken(),
        OperationToken(Operation.MULTIPLY),
    )


def test_leading_negative_literal_is_not_an_operator() -> None:
    expression = grammar.parse_expression("(-3*element)")
    assert expression.tokens == (
        NumberToken(-3),
        ElementToken(),
        OperationToken(Operation.MULTIPLY),
    )


def test_negative_literal_on_the_right() -> None:
    expression = grammar.parse_expression("(element--3)")
    assert expression.tokens == (
        ElementToken(),
        NumberToken(-3),
        OperationToken(Operation.MINUS),
    )


def test_operator_scan_skips_nested_parentheses() -> None:
    expression = grammar.parse_expression("((element+1)<(element*2))")
    assert expression.type is ExpressionType.BOOLEAN
    assert expression.tokens[-1] == OperationToken(Operation.LESS)
    assert expression.tokens[2] == OperationToken(Operation.PLUS)


@pytest.mark.parametrize(
    "source",
    ["", "(element*element", "element*element)", "((1+2))", "(element)", "()", "(-)", "+5"],
)
def test_malformed_expressions_raise_syntax_error(source: str) -> None:
    with pytest.raises(ChainSyntaxError):
        grammar.parse_expression(source)


def test_operand_type_mismatch_raises_type_error() -> None:
    with pytest.raises(ChainTypeError):
        grammar.parse_expression("((3<5)+1)")


def test_parse_call() -> None:
    call = grammar.parse_call("map{element}")
    assert call.call_type is ast.CallType.MAP
    assert call.expression.tokens == (ElementToken(),)


@pytest.mark.parametrize("source", ["map{element", "mapelement}", "mad{element}", "map{(element}"])
def test_malformed_calls_raise_syntax_error(source: str) -> None:
    with pytest.raises(ChainSyntaxError):
        grammar.parse_call(source)


def test_call_type_mismatch_raises_type_error() -> None:
    with pytest.raises(ChainTypeError):
        grammar.parse_call("filter{element}")


def test_parse_call_chain_splits_on_separator() -> None:
    chain = grammar.parse_call_chain("map{element}%>%filter{(element>0)}")
    assert len(chain) == 2
    assert [call.call_type for call in chain] == [ast.CallType.MAP, ast.CallType.FILTER]


def test_empty_segments_are_ignored() -> None:
    chain = grammar.parse_call_chain("%>%map{element}%>%%>%")
    assert len(chain) == 1


@pytest.mark.parametrize("source", ["", "%>%", "%>%%>%"])
def test_empty_chain_is_a_syntax_error(source: str) -> None:
    with pytest.raises(ChainSyntaxError):
        grammar.parse_call_chain(source)


@pytest.mark.parametrize(
    "case",
    [case for case in generators.generate_chain_cases("errors")],
    ids=lambda case: case.name,
)
def test_fixture_errors(case: generators.ChainCase) -> None:
    expected = ChainSyntaxError if case.expected == "SYNTAX ERROR" else ChainTypeError
    with pytest.raises(expected):
        grammar.parse_call_chain(case.source)


def test_deeply_nested_expression_parses() -> None:
    depth = 2500
    expression = grammar.parse_expression("(" * depth + "element" + "+1)" * depth)
    assert len(expression) == 2 * depth + 1
    assert expression.tokens[0] == ElementToken()
    assert expression.tokens[-1] == OperationToken(Operation.PLUS)


def test_deeply_right_nested_filter_parses() -> None:
    depth = 2500
    source = "filter{" + "(1<" * depth + "element" + ")" * depth + "}"
    with pytest.raises(ChainTypeError):
        grammar.parse_call_chain(source)
    chain = grammar.parse_call_chain("filter{(element<" + "(1+" * depth + "element" + ")" * depth + ")}")
    assert chain[0].expression.type is ExpressionType.BOOLEAN


def test_left_operand_errors_are_reported_first() -> None:
    with pytest.raises(ChainTypeError):
        grammar.parse_expression("(((1<2)+1)+2))")
    with pytest.raises(ChainSyntaxError):
        grammar.parse_expression("(((1+2)+1)+2))")


def test_over_long_literal_is_a_syntax_error() -> None:
    limit = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(4300)
    try:
        with pytest.raises(ChainSyntaxError, match="too long"):
            grammar.parse_expression("9" * 5000)
    finally:
        sys.set_int_max_str_digits(limit)


def test_long_literal_parses_without_digit_limit() -> None:
    limit = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(0)
    try:
        expression = grammar.parse_expression("9" * 5000)
    finally:
        sys.set_int_max_str_digits(limit)
    assert expression.tokens == (NumberToken(10**5000 - 1),)


def test_unknown_keyword_is_rejected_by_call_pattern() -> None:
    with pytest.raises(ChainSyntaxError, match="malformed call"):
        grammar.parse_call("mad{element}")


def test_single_trailing_newline_after_call_is_accepted() -> None:
    assert str(grammar.parse_call("map{element}\n")) == "map{element}"
    with pytest.raises(ChainSyntaxError):
        grammar.parse_call("map{element}\n\n")
