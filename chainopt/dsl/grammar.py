"""Parser for the call-chain language.

Grammar::

    number         := digit+
    constant-expr  := "-" number | number
    binary-expr    := "(" expression operation expression ")"
    expression     := "element" | constant-expr | binary-expr
    call           := "map{" expression "}" | "filter{" expression "}"
    call-chain     := call ("%>%" call)*

Every binary expression is fully parenthesised, so there is no precedence to
resolve.  Instead of tokenizing first, the parser works directly on index
ranges of the source: it strips one pair of outer parentheses, scans for the
first operator character at nesting depth zero and queues both sides on an
explicit work stack, so arbitrarily deep nesting needs no recursion.  Operand
types are checked as soon as both sides are known, so a type error is reported
for the innermost offending operation.

The call pattern is anchored with ``$``, which also matches in front of a
single trailing newline: ``"map{element}\\n"`` parses like ``"map{element}"``.
"""

from __future__ import annotations

import re

from chainopt.telemetry.logger import get_logger

from . import ast
from .errors import ChainSyntaxError, ChainTypeError
from .tokens import (
    ELEMENT_KEYWORD,
    OPERATION_CHARS,
    ElementToken,
    ExpressionType,
    NumberToken,
    Operation,
    OperationToken,
    Token,
)

CALL_SEPARATOR = "%>%"

_CALL_PATTERN = re.compile(
    r"^(" + "|".join(call_type.keyword for call_type in ast.CallType) + r")\{(.*)\}$", re.DOTALL
)
_NUMBER_PATTERN = re.compile(r"-?[0-9]+")

_LOGGER = get_logger("chainopt.dsl.grammar")


def parse_call_chain(source: str) -> ast.CallChain:
    """Parse ``source`` into a :class:`ast.CallChain`.

    Empty segments between separators are ignored; a source without a single
    call is a syntax error.
    """

    segments = [segment for segment in source.split(CALL_SEPARATOR) if segment]
    if not segments:
        raise ChainSyntaxError("call chain is empty", source)
    chain = ast.CallChain(tuple(parse_call(segment) for segment in segments))
    _LOGGER.debug("parsed call chain | calls=%d", len(chain))
    return chain


def parse_call(source: str) -> ast.Call:
    """Parse a single ``map{...}`` / ``filter{...}`` call."""

    match = _CALL_PATTERN.match(source)
    if match is None:
        raise ChainSyntaxError("malformed call", source)
    call_type = ast.CallType.from_keyword(match.group(1))
    expression = parse_expression(match.group(2))
    return ast.Call(call_type, expression)


def parse_expression(source: str) -> ast.Expression:
    """Parse an expression into its postfix token form."""

    return ast.Expression(_parse_tokens(source))


def _parse_tokens(source: str) -> tuple[Token, ...]:
    """Parse ``source`` with an explicit work stack.

    Sub-expressions are visited left operand first, then right operand, and an
    operation's operand types are checked once both sides are done, so errors
    surface in the same order as a recursive descent would report them.
    Nesting depth is limited only by memory.
    """

    matches = _match_parentheses(source)
    tokens: list[Token] = []
    types: list[ExpressionType] = []
    work: list[tuple[str, int, int, Operation | None]] = [("expr", 0, len(source), None)]
    while work:
        kind, start, stop, operation = work.pop()
        if kind == "op":
            right = types.pop()
            left = types.pop()
            operation.verify_operand_types(left, right)
            tokens.append(OperationToken(operation))
            types.append(operation.result_type)
            continue
        leaf = _parse_leaf(source, start, stop)
        if leaf is not None:
            tokens.append(leaf)
            types.append(leaf.expression_type)
            continue
        if stop - start < 2 or source[start] != "(" or source[stop - 1] != ")":
            raise ChainSyntaxError(
                "expected element, a number or a parenthesised expression", source[start:stop]
            )
        position = _find_operation_position(source, start + 1, stop - 1, matches)
        operation = Operation.from_char(source[position])
        work.append(("op", start, stop, operation))
        work.append(("expr", position + 1, stop - 1, None))
        work.append(("expr", start + 1, position, None))
    return tuple(tokens)


def _parse_leaf(source: str, start: int, stop: int) -> Token | None:
    if stop - start == len(ELEMENT_KEYWORD) and source.startswith(ELEMENT_KEYWORD, start):
        return ElementToken()
    if _NUMBER_PATTERN.fullmatch(source, start, stop):
        try:
            return NumberToken(int(source[start:stop]))
        except ValueError as exc:
            raise ChainSyntaxError("integer literal is too long", source[start : start + 20]) from exc
    return None


def _match_parentheses(source: str) -> dict[int, int]:
    """Map every ``(`` that has a closing partner to that partner's index."""

    matches: dict[int, int] = {}
    opened: list[int] = []
    for index, char in enumerate(source):
        if char == "(":
            opened.append(index)
        elif char == ")" and opened:
            matches[opened.pop()] = index
    return matches


def _find_operation_position(source: str, start: int, stop: int, matches: dict[int, int]) -> int:
    """Return the index of the top-level operator in ``source[start:stop]``.

    ``start`` itself is never a split point: a ``-`` there is the sign of a
    negative literal on the left-hand side.  Balanced groups are skipped in one
    step; a group left open reaches past ``stop``, so no operator follows it.
    """

    index = start
    while index < stop:
        char = source[index]
        if char == "(":
            close = matches.get(index)
            if close is None or close >= stop:
                break
            index = close + 1
            continue
        if char == ")":
            raise ChainSyntaxError("unbalanced parentheses", source[start:stop])
        if char in OPERATION_CHARS and index > start:
            return index
        index += 1
    raise ChainSyntaxError("no top-level operator", source[start:stop])


__all__ = [
    "CALL_SEPARATOR",
    "ChainSyntaxError",
    "ChainTypeError",
    "parse_call",
    "parse_call_chain",
    "parse_expression",
]
