"""Reference interpreter for call chains.

Evaluates a chain directly on an integer, one call after another, without any
rewriting.  The optimizer's output is checked against this interpreter.
"""

from __future__ import annotations

import operator
from typing import Callable, Iterable, Optional, Union

from chainopt.dsl.ast import Call, CallChain, CallType, Expression
from chainopt.dsl.errors import ChainError
from chainopt.dsl.tokens import ElementToken, NumberToken, Operation, OperationToken, Token
from chainopt.optimizer.polynomial import PolynomialToken

__all__ = ["EvaluationError", "evaluate_expression", "run_chain"]

Value = Union[int, bool]


class EvaluationError(ChainError):
    """Raised when an expression cannot be evaluated."""


_ARITHMETIC: dict[Operation, Callable[[int, int], int]] = {
    Operation.PLUS: operator.add,
    Operation.MINUS: operator.sub,
    Operation.MULTIPLY: operator.mul,
}

_COMPARISON: dict[Operation, Callable[[int, int], bool]] = {
    Operation.LESS: operator.lt,
    Operation.GREATER: operator.gt,
    Operation.EQUAL: operator.eq,
}

_LOGICAL: dict[Operation, Callable[[bool, bool], bool]] = {
    Operation.AND: lambda left, right: left and right,
    Operation.OR: lambda left, right: left or right,
}


def evaluate_expression(expression: Expression | Iterable[Token], value: int) -> Value:
    """Evaluate a postfix expression with ``element`` bound to ``value``."""

    tokens = expression.tokens if isinstance(expression, Expression) else expression
    stack: list[Value] = []
    for token in tokens:
        if isinstance(token, NumberToken):
            stack.append(token.value)
        elif isinstance(token, ElementToken):
            stack.append(value)
        elif isinstance(token, PolynomialToken):
            stack.append(token.evaluate(value))
        elif isinstance(token, OperationToken):
            if len(stack) < 2:
                raise EvaluationError(f"operator '{token.operation.char}' is missing operands")
            right = stack.pop()
            left = stack.pop()
            stack.append(_apply(token.operation, left, right))
        else:
            raise EvaluationError(f"unexpected token {token!r}")
    if len(stack) != 1:
        raise EvaluationError(f"expression evaluates to {len(stack)} values instead of one")
    return stack[0]


def run_chain(chain: CallChain | Iterable[Call], value: int) -> Optional[int]:
    """Apply ``chain`` to ``value``; ``None`` means a filter rejected it."""

    current = value
    for call in chain:
        result = evaluate_expression(call.expression, current)
        if call.call_type is CallType.MAP:
            current = _expect_int(result)
        elif not _expect_bool(result):
            return None
    return current


def _apply(operation: Operation, left: Value, right: Value) -> Value:
    if operation.is_logical:
        return _LOGICAL[operation](_expect_bool(left), _expect_bool(right))
    if operation.is_comparison:
        return _COMPARISON[operation](_expect_int(left), _expect_int(right))
    if operation.is_arithmetic:
        return _ARITHMETIC[operation](_expect_int(left), _expect_int(right))
    raise EvaluationError(f"unsupported operator '{operation.char}'")


def _expect_int(value: Value) -> int:
    if isinstance(value, bool):
        raise EvaluationError("expected an arithmetic value, got a boolean")
    return value


def _expect_bool(value: Value) -> bool:
    if not isinstance(value, bool):
        raise EvaluationError("expected a boolean value, got an integer")
    return value
