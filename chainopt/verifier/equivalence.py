"""Differential check between an original chain and its optimised form."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from chainopt.dsl.ast import CallChain
from chainopt.telemetry.logger import get_logger

from .evaluator import run_chain

__all__ = ["EquivalenceReport", "check_equivalence", "default_samples"]

_LOGGER = get_logger("chainopt.verifier.equivalence")


@dataclass(slots=True, frozen=True)
class EquivalenceReport:
    """Outcome of running both chains over a sample of inputs."""

    status: str
    checked: int
    counterexample: Mapping[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.status, "checked": self.checked}
        if self.counterexample is not None:
            payload["counterexample"] = dict(self.counterexample)
        return payload


def default_samples(start: int = -50, stop: int = 50) -> range:
    return range(start, stop + 1)


def check_equivalence(
    original: CallChain,
    optimized: CallChain,
    samples: Iterable[int] | None = None,
) -> EquivalenceReport:
    """Evaluate both chains on every sample and stop at the first mismatch.

    ``None`` from :func:`run_chain` (the value was filtered out) takes part in
    the comparison like any other result.
    """

    checked = 0
    for value in samples if samples is not None else default_samples():
        expected = run_chain(original, value)
        actual = run_chain(optimized, value)
        checked += 1
        if expected != actual:
            _LOGGER.warning(
                "equivalence mismatch | input=%d expected=%s actual=%s", value, expected, actual
            )
            return EquivalenceReport(
                status="failed",
                checked=checked,
                counterexample={"input": value, "expected": expected, "actual": actual},
            )
    return EquivalenceReport(status="ok", checked=checked)
