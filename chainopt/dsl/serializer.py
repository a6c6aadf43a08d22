"""Canonical text and JSON serialisation for call chains.

The text form is the language itself: expressions are rendered by replaying
the postfix tokens on a stack of strings, wrapping every operation in one pair
of parentheses.  For any canonical input ``s`` the parser and this module form
an exact round trip, ``to_text(parse_call_chain(s)) == s``.

The JSON form stores each call with a content-addressed identifier derived
from its structural encoding so stored optimisation reports can be checked for
integrity; the deserializer recomputes the hash and re-runs the type checks.
"""

from __future__ import annotations

import hashlib
import json
from collections import OrderedDict
from typing import Any, Iterable, Mapping, Union

from chainopt.optimizer.polynomial import PolynomialToken

from . import ast, type_system
from .errors import ChainError
from .tokens import ElementToken, NumberToken, Operation, OperationToken, Token

__all__ = [
    "SerializationError",
    "chain_to_dict",
    "from_json",
    "render_tokens",
    "to_json",
    "to_text",
]

Renderable = Union[
    ast.CallChain, ast.Call, ast.Expression, NumberToken, ElementToken, PolynomialToken
]


class SerializationError(ChainError):
    """Raised when a node cannot be rendered or a payload cannot be restored."""


def to_text(node: Renderable) -> str:
    """Render ``node`` in the canonical call-chain syntax."""

    if isinstance(node, ast.CallChain):
        return "%>%".join(to_text(call) for call in node)
    if isinstance(node, ast.Call):
        return f"{node.call_type.keyword}{{{to_text(node.expression)}}}"
    if isinstance(node, ast.Expression):
        return render_tokens(node.tokens)
    if isinstance(node, PolynomialToken):
        return render_tokens(node.to_expression().tokens)
    if isinstance(node, (NumberToken, ElementToken)):
        return _leaf_text(node)
    raise SerializationError(f"cannot render {type(node).__name__}")


def render_tokens(tokens: Iterable[Token]) -> str:
    """Replay postfix ``tokens`` on a string stack and return the single result."""

    stack: list[str] = []
    for token in tokens:
        if isinstance(token, OperationToken):
            if len(stack) < 2:
                raise SerializationError(
                    f"operator '{token.operation.char}' is missing operands"
                )
            right = stack.pop()
            left = stack.pop()
            stack.append(f"({left}{token.operation.char}{right})")
        elif isinstance(token, PolynomialToken):
            stack.append(render_tokens(token.to_expression().tokens))
        elif isinstance(token, (NumberToken, ElementToken)):
            stack.append(_leaf_text(token))
        else:
            raise SerializationError(f"unexpected token {token!r}")
    if len(stack) != 1:
        raise SerializationError(f"expression renders to {len(stack)} values instead of one")
    return stack[0]


def _leaf_text(token: NumberToken | ElementToken) -> str:
    try:
        return str(token)
    except ValueError as exc:
        # int to str conversion is capped by sys.get_int_max_str_digits()
        raise SerializationError(f"cannot render literal: {exc}") from exc


# ---------------------------------------------------------------------------
# JSON


def to_json(chain: ast.CallChain, *, indent: int | None = 2) -> str:
    """Serialize ``chain`` into canonical JSON."""

    return json.dumps(chain_to_dict(chain), indent=indent, separators=(",", ": "))


def chain_to_dict(chain: ast.CallChain) -> OrderedDict[str, Any]:
    data: OrderedDict[str, Any] = OrderedDict()
    data["type"] = "CallChain"
    data["text"] = to_text(chain)
    data["calls"] = [_serialize_call(call) for call in chain]
    data["id"] = _hash_payload(data)
    return data


def from_json(payload: str) -> ast.CallChain:
    """Deserialize JSON produced by :func:`to_json`, validating hashes and types."""

    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"invalid JSON payload: {exc}") from exc
    if not isinstance(raw, Mapping) or raw.get("type") != "CallChain":
        raise SerializationError("payload is not a serialized call chain")
    _verify_hash(raw)
    calls = [_deserialize_call(entry) for entry in raw.get("calls") or ()]
    return ast.CallChain(tuple(calls))


def _serialize_call(call: ast.Call) -> OrderedDict[str, Any]:
    data: OrderedDict[str, Any] = OrderedDict()
    data["type"] = "Call"
    data["kind"] = call.call_type.keyword
    data["expression"] = to_text(call.expression)
    data["tokens"] = [_serialize_token(token) for token in call.expression.tokens]
    data["id"] = _hash_payload(data)
    return data


def _serialize_token(token: Token) -> OrderedDict[str, Any]:
    if isinstance(token, NumberToken):
        return OrderedDict([("kind", "number"), ("value", token.value)])
    if isinstance(token, ElementToken):
        return OrderedDict([("kind", "element")])
    if isinstance(token, OperationToken):
        return OrderedDict([("kind", "operation"), ("value", token.operation.char)])
    if isinstance(token, PolynomialToken):
        return OrderedDict([("kind", "polynomial"), ("value", list(token.coefficients))])
    raise SerializationError(f"unexpected token {token!r}")


def _deserialize_call(data: Mapping[str, Any]) -> ast.Call:
    _verify_hash(data)
    if data.get("type") != "Call":
        raise SerializationError(f"unknown node type '{data.get('type')}'")
    call_type = ast.CallType.from_keyword(str(data.get("kind")))
    tokens = tuple(_deserialize_token(entry) for entry in data.get("tokens") or ())
    try:
        type_system.infer_type(tokens)
    except ValueError as exc:
        raise SerializationError(f"serialized expression is ill-formed: {exc}") from exc
    return ast.Call(call_type, ast.Expression(tokens))


def _deserialize_token(data: Mapping[str, Any]) -> Token:
    kind = data.get("kind")
    if kind == "number":
        return NumberToken(int(data["value"]))
    if kind == "element":
        return ElementToken()
    if kind == "operation":
        return OperationToken(Operation.from_char(str(data["value"])))
    if kind == "polynomial":
        return PolynomialToken(tuple(int(value) for value in data["value"]))
    raise SerializationError(f"unknown token kind '{kind}'")


def _hash_payload(data: Mapping[str, Any]) -> str:
    normalized = json.dumps(
        _strip_ids(data), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]


def _strip_ids(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {key: _strip_ids(value) for key, value in data.items() if key != "id"}
    if isinstance(data, list):
        return [_strip_ids(item) for item in data]
    return data


def _verify_hash(data: Mapping[str, Any]) -> None:
    stored = data.get("id")
    if stored is None:
        raise SerializationError("serialized node is missing 'id'")
    if stored != _hash_payload(data):
        raise SerializationError("serialized node failed integrity check")
