"""Value types describing a parsed call chain.

A chain is a sequence of :class:`Call` objects, each wrapping a postfix
:class:`Expression`.  All nodes are frozen dataclasses: passes such as the
optimizer never mutate a node in place, they build new ones.  Type agreement
between a call and its expression is checked when the call is constructed, so
an ill-typed ``Call`` cannot exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from . import type_system
from .errors import ChainSyntaxError
from .tokens import ExpressionType, Token

__all__ = ["Call", "CallChain", "CallType", "Expression"]


@dataclass(slots=True, frozen=True)
class Expression:
    """Token sequence in reverse-Polish order.

    The expression type is the type produced by its last token: the final
    operation for compound expressions, ``ARITHMETIC`` for a lone literal or
    ``element``.  Stack discipline is *not* re-validated here; the parser only
    ever builds well-formed sequences and the serializer reports violations.
    """

    tokens: tuple[Token, ...]

    def __post_init__(self) -> None:
        tokens = tuple(self.tokens)
        if not tokens:
            raise ValueError("an expression requires at least one token")
        object.__setattr__(self, "tokens", tokens)

    @classmethod
    def of(cls, *tokens: Token) -> "Expression":
        """Convenience constructor used heavily by tests."""

        return cls(tokens)

    @property
    def type(self) -> ExpressionType:
        return self.tokens[-1].expression_type

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def __str__(self) -> str:
        from . import serializer

        return serializer.to_text(self)


class CallType(Enum):
    """Kinds of call with the expression type each one requires."""

    MAP = ("map", ExpressionType.ARITHMETIC)
    FILTER = ("filter", ExpressionType.BOOLEAN)

    def __init__(self, keyword: str, expression_type: ExpressionType) -> None:
        self.keyword = keyword
        self.expression_type = expression_type

    @classmethod
    def from_keyword(cls, keyword: str) -> "CallType":
        for call_type in cls:
            if call_type.keyword == keyword:
                return call_type
        raise ChainSyntaxError("unknown call", keyword)


@dataclass(slots=True, frozen=True)
class Call:
    """A single ``map{...}`` or ``filter{...}`` step."""

    call_type: CallType
    expression: Expression

    def __post_init__(self) -> None:
        type_system.check_call(self.call_type, self.expression)

    def __str__(self) -> str:
        from . import serializer

        return serializer.to_text(self)


@dataclass(slots=True, frozen=True)
class CallChain:
    """Ordered sequence of calls applied one after another."""

    calls: tuple[Call, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "calls", tuple(self.calls))

    @classmethod
    def of(cls, *calls: Call) -> "CallChain":
        return cls(calls)

    def __iter__(self) -> Iterator[Call]:
        return iter(self.calls)

    def __len__(self) -> int:
        return len(self.calls)

    def __getitem__(self, index: int) -> Call:
        return self.calls[index]

    def __str__(self) -> str:
        from . import serializer

        return serializer.to_text(self)
