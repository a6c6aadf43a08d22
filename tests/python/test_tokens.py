"""Tests for the token and operation vocabulary."""

from __future__ import annotations

import pytest

from chainopt.dsl.errors import ChainSyntaxError, ChainTypeError
from chainopt.dsl.tokens import (
    OPERATION_CHARS,
    ElementToken,
    ExpressionType,
    NumberToken,
    Operation,
    OperationToken,
)


def test_leaf_tokens_are_arithmetic() -> None:
    assert NumberToken(1).expression_type is ExpressionType.ARITHMETIC
    assert ElementToken().expression_type is ExpressionType.ARITHMETIC
    assert str(NumberToken(-4)) == "-4"
    assert str(ElementToken()) == "element"


@pytest.mark.parametrize(
    ("operation", "expected"),
    [
        (Operation.PLUS, ExpressionType.ARITHMETIC),
        (Operation.MULTIPLY, ExpressionType.ARITHMETIC),
        (Operation.LESS, ExpressionType.BOOLEAN),
        (Operation.OR, ExpressionType.BOOLEAN),
    ],
)
def test_operation_token_takes_result_type(operation: Operation, expected: ExpressionType) -> None:
    assert OperationToken(operation).expression_type is expected


def test_operation_lookup_by_char() -> None:
    assert Operation.from_char("+") is Operation.PLUS
    assert Operation.from_char("|") is Operation.OR
    assert OPERATION_CHARS == frozenset("+-*<>=&|")
    with pytest.raises(ChainSyntaxError):
        Operation.from_char("t")


def test_operation_categories_partition_the_operators() -> None:
    for operation in Operation:
        flags = [operation.is_arithmetic, operation.is_comparison, operation.is_logical]
        assert flags.count(True) == 1


def test_verify_operand_types() -> None:
    Operation.PLUS.verify_operand_types(ExpressionType.ARITHMETIC, ExpressionType.ARITHMETIC)
    Operation.AND.verify_operand_types(ExpressionType.BOOLEAN, ExpressionType.BOOLEAN)
    with pytest.raises(ChainTypeError):
        Operation.PLUS.verify_operand_types(ExpressionType.BOOLEAN, ExpressionType.ARITHMETIC)
    with pytest.raises(ChainTypeError):
        Operation.OR.verify_operand_types(ExpressionType.BOOLEAN, ExpressionType.ARITHMETIC)
