"""Typed data transfer objects for the chainopt pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from chainopt.utils.config import deep_update

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from chainopt.dsl.ast import CallChain
    from chainopt.verifier.equivalence import EquivalenceReport

_OUTPUT_FORMATS = ("text", "json")


def _coerce_int(value: Any, *, fallback: int) -> int:
    if value is None:
        return fallback
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


class ChainStatus(str, Enum):
    """Outcome of processing one input line."""

    OK = "ok"
    SYNTAX_ERROR = "syntax_error"
    TYPE_ERROR = "type_error"
    INTERNAL_ERROR = "internal_error"


_ERROR_TOKENS = {
    ChainStatus.SYNTAX_ERROR: "SYNTAX ERROR",
    ChainStatus.TYPE_ERROR: "TYPE ERROR",
    ChainStatus.INTERNAL_ERROR: "INTERNAL ERROR",
}


@dataclass(slots=True, frozen=True)
class ChainResult:
    """Result bundle returned by :func:`chainopt.orchestrator.pipeline.process`."""

    status: ChainStatus
    source: str
    output: str | None = None
    message: str | None = None
    chain: "CallChain | None" = None
    verification: "EquivalenceReport | None" = None

    @property
    def ok(self) -> bool:
        return self.status is ChainStatus.OK

    def render(self) -> str:
        """Return the single line printed for this result."""

        if self.status is ChainStatus.OK:
            return self.output or ""
        return _ERROR_TOKENS[self.status]

    def to_dict(self) -> dict[str, Any]:
        from chainopt.dsl import serializer

        payload: dict[str, Any] = {
            "status": self.status.value,
            "input": self.source,
            "result": self.render(),
        }
        if self.message is not None:
            payload["message"] = self.message
        if self.chain is not None:
            payload["chain"] = serializer.chain_to_dict(self.chain)
        if self.verification is not None:
            payload["verification"] = self.verification.to_dict()
        return payload


@dataclass(slots=True)
class VerifyOptions:
    """Differential check of the optimised chain against the original."""

    enabled: bool = False
    sample_start: int = -50
    sample_stop: int = 50

    def samples(self) -> range:
        return range(self.sample_start, self.sample_stop + 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "sample_start": self.sample_start,
            "sample_stop": self.sample_stop,
        }


@dataclass(slots=True)
class OutputOptions:
    """How results are written to stdout."""

    format: str = "text"

    def to_dict(self) -> dict[str, Any]:
        return {"format": self.format}


@dataclass(slots=True)
class OptimizerConfig:
    """Top-level configuration bundle."""

    verify: VerifyOptions = field(default_factory=VerifyOptions)
    output: OutputOptions = field(default_factory=OutputOptions)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "OptimizerConfig":
        payload = dict(data or {})
        return cls(
            verify=cls._build_verify_options(payload.get("verify")),
            output=cls._build_output_options(payload.get("output")),
        )

    def merge(self, overrides: Mapping[str, Any] | None) -> "OptimizerConfig":
        if not overrides:
            return self
        return OptimizerConfig.from_mapping(deep_update(self.to_dict(), overrides))

    def to_dict(self) -> dict[str, Any]:
        return {"verify": self.verify.to_dict(), "output": self.output.to_dict()}

    @staticmethod
    def _build_verify_options(data: Any) -> VerifyOptions:
        if not isinstance(data, Mapping):
            return VerifyOptions()
        defaults = VerifyOptions()
        options = VerifyOptions(
            enabled=bool(data.get("enabled", defaults.enabled)),
            sample_start=_coerce_int(data.get("sample_start"), fallback=defaults.sample_start),
            sample_stop=_coerce_int(data.get("sample_stop"), fallback=defaults.sample_stop),
        )
        if options.sample_stop < options.sample_start:
            raise ValueError("verify.sample_stop must not be smaller than verify.sample_start")
        return options

    @staticmethod
    def _build_output_options(data: Any) -> OutputOptions:
        if not isinstance(data, Mapping):
            return OutputOptions()
        output_format = str(data.get("format", "text"))
        if output_format not in _OUTPUT_FORMATS:
            raise ValueError(f"output.format must be one of {', '.join(_OUTPUT_FORMATS)}")
        return OutputOptions(format=output_format)
