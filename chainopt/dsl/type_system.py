"""Static typing rules for call-chain expressions.

The language has exactly two types, ``ARITHMETIC`` and ``BOOLEAN``.  Typing is
checked eagerly: the parser verifies operand types as it builds each binary
expression and :class:`~chainopt.dsl.ast.Call` verifies its expression on
construction.  :func:`infer_type` re-derives the type of an arbitrary postfix
token sequence, which the JSON deserializer uses to validate payloads that did
not come through the parser.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from .errors import ChainTypeError
from .tokens import ElementToken, ExpressionType, NumberToken, Operation, OperationToken, Token

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .ast import CallType, Expression

__all__ = ["ChainTypeError", "check_call", "check_operands", "format_type", "infer_type"]


def check_operands(operation: Operation, left: ExpressionType, right: ExpressionType) -> None:
    """Raise :class:`ChainTypeError` if ``operation`` cannot take these operands."""

    operation.verify_operand_types(left, right)


def check_call(call_type: "CallType", expression: "Expression") -> None:
    """Raise :class:`ChainTypeError` if ``expression`` does not fit ``call_type``."""

    actual = expression.type
    if actual is not call_type.expression_type:
        raise ChainTypeError(
            f"{call_type.keyword} requires a {format_type(call_type.expression_type)} "
            f"expression, got {format_type(actual)}",
            expected=call_type.expression_type,
            actual=actual,
        )


def infer_type(tokens: Iterable[Token]) -> ExpressionType:
    """Return the type of a postfix token sequence, checking every operation.

    Raises :class:`ValueError` when the sequence does not reduce to exactly one
    value (an ill-formed expression) and :class:`ChainTypeError` when an
    operation receives operands of the wrong type.
    """

    from chainopt.optimizer.polynomial import PolynomialToken

    stack: list[ExpressionType] = []
    for token in tokens:
        if isinstance(token, OperationToken):
            if len(stack) < 2:
                raise ValueError(f"operator '{token.operation.char}' is missing operands")
            right = stack.pop()
            left = stack.pop()
            check_operands(token.operation, left, right)
            stack.append(token.operation.result_type)
        elif isinstance(token, (NumberToken, ElementToken, PolynomialToken)):
            stack.append(token.expression_type)
        else:
            raise ValueError(f"unexpected token {token!r}")
    if len(stack) != 1:
        raise ValueError(f"expression reduces to {len(stack)} values instead of one")
    return stack[0]


def format_type(expression_type: ExpressionType) -> str:
    return expression_type.value.upper()
