"""Exception hierarchy shared by the call-chain parser, type checker and optimizer."""

from __future__ import annotations

from typing import Optional

__all__ = ["ChainError", "ChainSyntaxError", "ChainTypeError"]


class ChainError(RuntimeError):
    """Base class for every failure raised while processing a call chain."""


class ChainSyntaxError(ChainError):
    """Raised when the input violates the call-chain grammar.

    ``fragment`` holds the piece of source text the parser was looking at when
    it gave up, which is usually far more useful than the whole line.
    """

    def __init__(self, message: str, fragment: Optional[str] = None) -> None:
        if fragment is not None:
            super().__init__(f"{message}: {fragment!r}")
        else:
            super().__init__(message)
        self.message = message
        self.fragment = fragment


class ChainTypeError(ChainError):
    """Raised when an expression type disagrees with what its context requires."""

    def __init__(
        self, message: str, *, expected: object = None, actual: object = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.expected = expected
        self.actual = actual
