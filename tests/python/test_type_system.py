"""Tests for the two-type static checker."""

from __future__ import annotations

import pytest

from chainopt.dsl import ast, type_system
from chainopt.dsl.errors import ChainSyntaxError
from chainopt.dsl.tokens import ElementToken, ExpressionType, NumberToken, Operation, OperationToken
from chainopt.optimizer.polynomial import PolynomialToken


def test_expression_type_follows_last_token() -> None:
    arithmetic = ast.Expression.of(ElementToken())
    boolean = ast.Expression.of(ElementToken(), NumberToken(3), OperationToken(Operation.LESS))
    assert arithmetic.type is ExpressionType.ARITHMETIC
    assert boolean.type is ExpressionType.BOOLEAN


def test_empty_expression_is_rejected() -> None:
    with pytest.raises(ValueError):
        ast.Expression(())


def test_call_construction_checks_type() -> None:
    with pytest.raises(type_system.ChainTypeError, match="filter requires a BOOLEAN expression, got ARITHMETIC"):
        ast.Call(ast.CallType.FILTER, ast.Expression.of(ElementToken()))
    call = ast.Call(ast.CallType.MAP, ast.Expression.of(ElementToken()))
    assert call.expression.type is ast.CallType.MAP.expression_type


def test_call_type_from_keyword() -> None:
    assert ast.CallType.from_keyword("map") is ast.CallType.MAP
    assert ast.CallType.from_keyword("filter") is ast.CallType.FILTER
    with pytest.raises(ChainSyntaxError):
        ast.CallType.from_keyword("mad")


def test_infer_type_validates_operands() -> None:
    tokens = (
        ElementToken(),
        NumberToken(1),
        OperationToken(Operation.GREATER),
        NumberToken(2),
        OperationToken(Operation.PLUS),
    )
    with pytest.raises(type_system.ChainTypeError):
        type_system.infer_type(tokens)


def test_infer_type_accepts_polynomials() -> None:
    tokens = (PolynomialToken((1, 2)), NumberToken(0), OperationToken(Operation.EQUAL))
    assert type_system.infer_type(tokens) is ExpressionType.BOOLEAN


@pytest.mark.parametrize(
    "tokens",
    [
        (OperationToken(Operation.LESS),),
        (NumberToken(1), ElementToken()),
        (),
    ],
)
def test_infer_type_rejects_ill_formed_sequences(tokens) -> None:
    with pytest.raises(ValueError):
        type_system.infer_type(tokens)


def test_format_type() -> None:
    assert type_system.format_type(ExpressionType.BOOLEAN) == "BOOLEAN"
