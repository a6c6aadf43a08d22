"""Token vocabulary for call-chain expressions.

Expressions are stored in postfix order as flat token tuples.  The token set is
closed: numeric literals, the ``element`` variable, binary operations and, only
inside the optimizer, already-reduced polynomials.  Every consumer that walks a
token sequence handles all four kinds explicitly and raises on anything else.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Union

from .errors import ChainSyntaxError, ChainTypeError

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from chainopt.optimizer.polynomial import PolynomialToken

__all__ = [
    "ELEMENT_KEYWORD",
    "ElementToken",
    "ExpressionType",
    "NumberToken",
    "OPERATION_CHARS",
    "Operation",
    "OperationToken",
    "Token",
]

ELEMENT_KEYWORD = "element"


class ExpressionType(str, Enum):
    """The two static types of the language."""

    ARITHMETIC = "arithmetic"
    BOOLEAN = "boolean"


class Operation(Enum):
    """Binary operations with their display character and typing rules."""

    PLUS = ("+", ExpressionType.ARITHMETIC, ExpressionType.ARITHMETIC)
    MINUS = ("-", ExpressionType.ARITHMETIC, ExpressionType.ARITHMETIC)
    MULTIPLY = ("*", ExpressionType.ARITHMETIC, ExpressionType.ARITHMETIC)
    LESS = ("<", ExpressionType.ARITHMETIC, ExpressionType.BOOLEAN)
    GREATER = (">", ExpressionType.ARITHMETIC, ExpressionType.BOOLEAN)
    EQUAL = ("=", ExpressionType.ARITHMETIC, ExpressionType.BOOLEAN)
    AND = ("&", ExpressionType.BOOLEAN, ExpressionType.BOOLEAN)
    OR = ("|", ExpressionType.BOOLEAN, ExpressionType.BOOLEAN)

    def __init__(
        self, char: str, operand_type: ExpressionType, result_type: ExpressionType
    ) -> None:
        self.char = char
        self.operand_type = operand_type
        self.result_type = result_type

    @property
    def is_arithmetic(self) -> bool:
        return self.result_type is ExpressionType.ARITHMETIC

    @property
    def is_comparison(self) -> bool:
        return (
            self.operand_type is ExpressionType.ARITHMETIC
            and self.result_type is ExpressionType.BOOLEAN
        )

    @property
    def is_logical(self) -> bool:
        return self.operand_type is ExpressionType.BOOLEAN

    def verify_operand_types(self, left: ExpressionType, right: ExpressionType) -> None:
        """Raise :class:`ChainTypeError` unless both operands have ``operand_type``."""

        if left is not self.operand_type or right is not self.operand_type:
            raise ChainTypeError(
                f"operator '{self.char}' expects {self.operand_type.value} operands, "
                f"got {left.value} and {right.value}",
                expected=self.operand_type,
                actual=(left, right),
            )

    @classmethod
    def from_char(cls, char: str) -> "Operation":
        try:
            return _OPERATIONS_BY_CHAR[char]
        except KeyError:
            raise ChainSyntaxError("unknown operator", char) from None


_OPERATIONS_BY_CHAR: Mapping[str, Operation] = MappingProxyType(
    {operation.char: operation for operation in Operation}
)

OPERATION_CHARS = frozenset(_OPERATIONS_BY_CHAR)


@dataclass(slots=True, frozen=True)
class NumberToken:
    """Integer literal."""

    value: int

    @property
    def expression_type(self) -> ExpressionType:
        return ExpressionType.ARITHMETIC

    def __str__(self) -> str:
        return str(self.value)


@dataclass(slots=True, frozen=True)
class ElementToken:
    """The chain's single free variable."""

    @property
    def expression_type(self) -> ExpressionType:
        return ExpressionType.ARITHMETIC

    def __str__(self) -> str:
        return ELEMENT_KEYWORD


@dataclass(slots=True, frozen=True)
class OperationToken:
    """Binary operation applied to the two preceding operands."""

    operation: Operation

    @property
    def expression_type(self) -> ExpressionType:
        return self.operation.result_type

    def __str__(self) -> str:
        return self.operation.char


Token = Union[NumberToken, ElementToken, OperationToken, "PolynomialToken"]
