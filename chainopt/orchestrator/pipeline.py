"""End-to-end processing of one call-chain line.

``parse -> optimise -> (verify) -> serialise``.  Parser errors surface as
``SYNTAX_ERROR`` / ``TYPE_ERROR``; any failure inside the optimizer, or while
rendering its result, is an ``INTERNAL_ERROR`` because a validated chain should
always optimise.  Rendering fails only for literals past the interpreter's
int-to-str digit limit, which the CLI lifts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from chainopt.dsl import grammar, serializer
from chainopt.dsl.errors import ChainSyntaxError, ChainTypeError
from chainopt.optimizer.chain import MalformedChainError, optimize_call_chain
from chainopt.telemetry.logger import get_logger
from chainopt.utils import config as config_loader
from chainopt.verifier.equivalence import check_equivalence

from .types import ChainResult, ChainStatus, OptimizerConfig

__all__ = ["load_configuration", "optimize_text", "process"]

_LOGGER = get_logger("chainopt.orchestrator.pipeline")


def load_configuration(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> OptimizerConfig:
    """Return an :class:`OptimizerConfig` from ``config_path`` and overrides."""

    data: Mapping[str, Any] | None = None
    if config_path is not None:
        data = config_loader.load_config(config_path)
    return OptimizerConfig.from_mapping(data).merge(overrides)


def process(source: str, *, config: OptimizerConfig | None = None) -> ChainResult:
    """Optimise ``source`` and report the outcome without raising."""

    config = config or OptimizerConfig()

    try:
        chain = grammar.parse_call_chain(source)
    except ChainSyntaxError as exc:
        _LOGGER.info("syntax error | %s", exc)
        return ChainResult(ChainStatus.SYNTAX_ERROR, source, message=str(exc))
    except ChainTypeError as exc:
        _LOGGER.info("type error | %s", exc)
        return ChainResult(ChainStatus.TYPE_ERROR, source, message=str(exc))

    try:
        optimized = optimize_call_chain(chain)
    except MalformedChainError as exc:
        _LOGGER.error("optimizer failed on a validated chain | input=%r error=%s", source, exc)
        return ChainResult(ChainStatus.INTERNAL_ERROR, source, message=str(exc))

    verification = None
    if config.verify.enabled:
        verification = check_equivalence(chain, optimized, config.verify.samples())
        if not verification.ok:
            _LOGGER.error(
                "optimised chain diverges | input=%r counterexample=%s",
                source,
                verification.counterexample,
            )
            return ChainResult(
                ChainStatus.INTERNAL_ERROR,
                source,
                message="optimised chain is not equivalent to the input",
                chain=optimized,
                verification=verification,
            )

    try:
        output = serializer.to_text(optimized)
    except serializer.SerializationError as exc:
        _LOGGER.error("cannot render optimised chain | input=%r error=%s", source, exc)
        return ChainResult(ChainStatus.INTERNAL_ERROR, source, message=str(exc))

    _LOGGER.debug("optimised | calls=%d output=%s", len(chain), output)
    return ChainResult(
        ChainStatus.OK, source, output=output, chain=optimized, verification=verification
    )


def optimize_text(source: str) -> str:
    """Return the line printed for ``source``: canonical chain or error token."""

    return process(source).render()
