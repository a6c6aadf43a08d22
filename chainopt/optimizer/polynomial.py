"""Integer polynomials in ``element``.

Every arithmetic expression of the language (``+``, ``-`` and ``*`` over
integer literals and ``element``) denotes a polynomial with integer
coefficients.  :class:`PolynomialToken` is that normal form: a coefficient
tuple indexed by ascending power, with trailing zero coefficients trimmed but
never shorter than one entry, so ``0`` is ``(0,)``.  Two arithmetic
expressions are equal as functions exactly when their polynomials are equal.

The class doubles as a token so the optimizer can push already-reduced
sub-expressions back into a postfix stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable, Union

from chainopt.dsl.ast import Expression
from chainopt.dsl.errors import ChainError
from chainopt.dsl.tokens import (
    ElementToken,
    ExpressionType,
    NumberToken,
    Operation,
    OperationToken,
    Token,
)

__all__ = ["MalformedChainError", "PolynomialToken"]


class MalformedChainError(ChainError):
    """Internal failure: a chain that passed validation could not be optimised."""


@dataclass(slots=True, frozen=True)
class PolynomialToken:
    """Canonical coefficient vector, lowest power first."""

    coefficients: tuple[int, ...] = (0,)

    ZERO: ClassVar["PolynomialToken"]
    IDENTITY: ClassVar["PolynomialToken"]

    def __post_init__(self) -> None:
        coefficients = list(self.coefficients) or [0]
        while len(coefficients) > 1 and coefficients[-1] == 0:
            coefficients.pop()
        object.__setattr__(self, "coefficients", tuple(coefficients))

    @classmethod
    def constant(cls, value: int) -> "PolynomialToken":
        return cls((value,))

    @property
    def expression_type(self) -> ExpressionType:
        return ExpressionType.ARITHMETIC

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    @property
    def is_constant(self) -> bool:
        return self.degree == 0

    # ------------------------------------------------------------------
    # Arithmetic

    def __add__(self, other: "PolynomialToken") -> "PolynomialToken":
        return PolynomialToken(
            tuple(a + b for a, b in _padded(self.coefficients, other.coefficients))
        )

    def __sub__(self, other: "PolynomialToken") -> "PolynomialToken":
        return PolynomialToken(
            tuple(a - b for a, b in _padded(self.coefficients, other.coefficients))
        )

    def __mul__(self, other: "PolynomialToken") -> "PolynomialToken":
        product = [0] * (len(self.coefficients) + len(other.coefficients) - 1)
        for i, a in enumerate(self.coefficients):
            for j, b in enumerate(other.coefficients):
                product[i + j] += a * b
        return PolynomialToken(tuple(product))

    def apply(self, operation: Operation, other: "PolynomialToken") -> "PolynomialToken":
        """Combine ``self <operation> other`` for an arithmetic ``operation``."""

        if operation is Operation.PLUS:
            return self + other
        if operation is Operation.MINUS:
            return self - other
        if operation is Operation.MULTIPLY:
            return self * other
        raise MalformedChainError(
            f"operator '{operation.char}' cannot be applied to arithmetic operands"
        )

    def evaluate(self, value: int) -> int:
        result = 0
        for coefficient in reversed(self.coefficients):
            result = result * value + coefficient
        return result

    # ------------------------------------------------------------------
    # Conversion

    @classmethod
    def from_expression(
        cls, expression: Union[Expression, Iterable[Token]]
    ) -> "PolynomialToken":
        """Reduce an arithmetic postfix expression to its polynomial.

        Polynomial tokens already present in the stream are taken as they are.
        Any non-arithmetic operation, a stack underflow or leftover operands
        raise :class:`MalformedChainError`.
        """

        tokens = expression.tokens if isinstance(expression, Expression) else expression
        stack: list[PolynomialToken] = []
        for token in tokens:
            if isinstance(token, PolynomialToken):
                stack.append(token)
            elif isinstance(token, NumberToken):
                stack.append(cls.constant(token.value))
            elif isinstance(token, ElementToken):
                stack.append(cls.IDENTITY)
            elif isinstance(token, OperationToken):
                if len(stack) < 2:
                    raise MalformedChainError(
                        f"operator '{token.operation.char}' is missing operands"
                    )
                right = stack.pop()
                left = stack.pop()
                stack.append(left.apply(token.operation, right))
            else:
                raise MalformedChainError(f"unexpected token {token!r}")
        if len(stack) != 1:
            raise MalformedChainError(
                f"arithmetic expression reduces to {len(stack)} values instead of one"
            )
        return stack[0]

    def to_expression(self) -> Expression:
        """Render as an expression, highest power first.

        Terms are joined with ``+``; a negative coefficient after the first
        term is joined with ``-`` and printed as its absolute value.  A
        leading negative coefficient keeps its sign as a negative literal.
        Unit coefficients are omitted for non-constant terms.
        """

        tokens: list[Token] = []
        emitted = False
        for power in range(self.degree, -1, -1):
            coefficient = self.coefficients[power]
            if coefficient == 0:
                continue
            subtract = emitted and coefficient < 0
            tokens.extend(_term_tokens(abs(coefficient) if subtract else coefficient, power))
            if emitted:
                operation = Operation.MINUS if subtract else Operation.PLUS
                tokens.append(OperationToken(operation))
            emitted = True
        if not emitted:
            return Expression((NumberToken(0),))
        return Expression(tuple(tokens))

    def __str__(self) -> str:
        from chainopt.dsl import serializer

        return serializer.to_text(self)


PolynomialToken.ZERO = PolynomialToken((0,))
PolynomialToken.IDENTITY = PolynomialToken((0, 1))


def _padded(left: tuple[int, ...], right: tuple[int, ...]) -> Iterable[tuple[int, int]]:
    size = max(len(left), len(right))
    for index in range(size):
        yield (
            left[index] if index < len(left) else 0,
            right[index] if index < len(right) else 0,
        )


def _term_tokens(coefficient: int, power: int) -> list[Token]:
    if power == 0:
        return [NumberToken(coefficient)]
    tokens: list[Token] = [ElementToken()]
    for _ in range(power - 1):
        tokens.extend((ElementToken(), OperationToken(Operation.MULTIPLY)))
    if coefficient == 1:
        return tokens
    return [NumberToken(coefficient), *tokens, OperationToken(Operation.MULTIPLY)]
