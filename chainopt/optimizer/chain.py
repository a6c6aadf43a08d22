"""Fold an arbitrary call chain into ``filter{...}%>%map{...}``.

The optimizer walks the chain once, keeping two pieces of state:

* ``composed_map``: the polynomial equivalent to every ``map`` seen so far,
  applied to the original input element (starts as the identity).
* ``accumulated``: the conjunction of every filter predicate seen so far,
  each rewritten in terms of the original input element.

Each call first has ``composed_map`` substituted for its ``element`` tokens.
A map then becomes the new ``composed_map``; a filter is simplified (its
arithmetic reduced to polynomials and constant comparisons folded to literal
``(1=1)`` / ``(0=1)``) and conjoined onto ``accumulated``.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Union

from chainopt.dsl.ast import Call, CallChain, CallType, Expression
from chainopt.dsl.errors import ChainError
from chainopt.dsl.tokens import ElementToken, NumberToken, Operation, OperationToken, Token
from chainopt.telemetry.logger import get_logger

from .polynomial import MalformedChainError, PolynomialToken

__all__ = [
    "MalformedChainError",
    "TRUE_PREDICATE",
    "expand_polynomials",
    "optimize_call_chain",
    "optimize_filter_tokens",
    "substitute_element",
]

_LOGGER = get_logger("chainopt.optimizer.chain")

Predicate = tuple[Token, ...]
_StackItem = Union[PolynomialToken, Predicate]


def _literal_predicate(holds: bool) -> Predicate:
    return (NumberToken(1 if holds else 0), NumberToken(1), OperationToken(Operation.EQUAL))


TRUE_PREDICATE: Predicate = _literal_predicate(True)


def optimize_call_chain(chain: CallChain | Iterable[Call]) -> CallChain:
    """Return the canonical two-call equivalent of ``chain``.

    Every failure raised while folding is reported as
    :class:`MalformedChainError`; a chain produced by the parser never
    triggers one.
    """

    try:
        return _fold(chain)
    except MalformedChainError:
        raise
    except (ChainError, ValueError, IndexError) as exc:
        raise MalformedChainError(f"cannot optimise call chain: {exc}") from exc


def _fold(chain: CallChain | Iterable[Call]) -> CallChain:
    composed_map = PolynomialToken.IDENTITY
    accumulated: Predicate | None = None

    for index, call in enumerate(chain):
        tokens = substitute_element(call.expression.tokens, composed_map)
        if call.call_type is CallType.MAP:
            composed_map = PolynomialToken.from_expression(tokens)
        elif call.call_type is CallType.FILTER:
            predicate = optimize_filter_tokens(tokens)
            if accumulated is None:
                accumulated = predicate
            else:
                accumulated = predicate + accumulated + (OperationToken(Operation.AND),)
        else:
            raise MalformedChainError(f"unknown call type {call.call_type!r}")
        _LOGGER.debug(
            "folded call | index=%d kind=%s map_degree=%d",
            index,
            call.call_type.keyword,
            composed_map.degree,
        )

    filter_tokens = expand_polynomials(accumulated) if accumulated else TRUE_PREDICATE
    return CallChain(
        (
            Call(CallType.FILTER, Expression(filter_tokens)),
            Call(CallType.MAP, composed_map.to_expression()),
        )
    )


def substitute_element(tokens: Iterable[Token], polynomial: PolynomialToken) -> tuple[Token, ...]:
    """Replace every ``element`` token with ``polynomial``."""

    return tuple(polynomial if isinstance(token, ElementToken) else token for token in tokens)


def optimize_filter_tokens(tokens: Iterable[Token]) -> Predicate:
    """Simplify a boolean postfix token stream.

    Leaves become polynomials immediately and arithmetic operations combine
    them.  Comparisons are normalised to ``0 < diff`` / ``0 = diff`` and
    folded to a literal predicate when ``diff`` is constant.  ``&`` and ``|``
    are kept as they are.  The result may contain polynomial tokens; see
    :func:`expand_polynomials`.
    """

    stack: list[_StackItem] = []
    for token in tokens:
        if isinstance(token, (NumberToken, ElementToken, PolynomialToken)):
            stack.append(PolynomialToken.from_expression((token,)))
        elif isinstance(token, OperationToken):
            operation = token.operation
            right = _pop(stack, operation)
            left = _pop(stack, operation)
            if operation.is_logical:
                stack.append(
                    _as_predicate(left, operation) + _as_predicate(right, operation) + (token,)
                )
                continue
            lhs = _as_polynomial(left, operation)
            rhs = _as_polynomial(right, operation)
            if operation.is_comparison:
                stack.append(_fold_comparison(operation, lhs, rhs))
            else:
                stack.append(lhs.apply(operation, rhs))
        else:
            raise MalformedChainError(f"unexpected token {token!r}")

    if len(stack) != 1 or isinstance(stack[0], PolynomialToken):
        raise MalformedChainError("filter expression does not reduce to a single predicate")
    return stack[0]


def expand_polynomials(tokens: Sequence[Token]) -> tuple[Token, ...]:
    """Inline every polynomial token as its canonical expression tokens."""

    expanded: list[Token] = []
    for token in tokens:
        if isinstance(token, PolynomialToken):
            expanded.extend(token.to_expression().tokens)
        else:
            expanded.append(token)
    return tuple(expanded)


def _fold_comparison(
    operation: Operation, left: PolynomialToken, right: PolynomialToken
) -> Predicate:
    if operation is Operation.GREATER:
        operation = Operation.LESS
        left, right = right, left
    diff = right - left
    if diff.is_constant:
        value = diff.coefficients[0]
        holds = value == 0 if operation is Operation.EQUAL else value > 0
        return _literal_predicate(holds)
    return (PolynomialToken.ZERO, diff, OperationToken(operation))


def _pop(stack: list[_StackItem], operation: Operation) -> _StackItem:
    if not stack:
        raise MalformedChainError(f"operator '{operation.char}' is missing operands")
    return stack.pop()


def _as_polynomial(item: _StackItem, operation: Operation) -> PolynomialToken:
    if not isinstance(item, PolynomialToken):
        raise MalformedChainError(f"operator '{operation.char}' expects arithmetic operands")
    return item


def _as_predicate(item: _StackItem, operation: Operation) -> Predicate:
    if isinstance(item, PolynomialToken):
        raise MalformedChainError(f"operator '{operation.char}' expects boolean operands")
    return item
