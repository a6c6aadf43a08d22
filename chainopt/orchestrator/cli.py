"""chainopt command-line interface.

Reads one call chain (from ``--chain`` or the first line of stdin) and prints
either the optimised chain or ``SYNTAX ERROR`` / ``TYPE ERROR``.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from chainopt.telemetry import logger as telemetry_logger
from chainopt.utils.config import deep_update, parse_overrides

from . import pipeline

DEFAULT_CONFIG_PATH = (
    Path(__file__).resolve().parents[2] / "configs" / "optimizer" / "default.yaml"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chainopt", description="Optimise a map/filter call chain"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None,
        help="Optional path to an optimizer configuration YAML file.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        metavar="KEY=VALUE",
        help="Override configuration values using dot notation (e.g. verify.sample_stop=500).",
    )
    parser.add_argument("--chain", help="Call chain to optimise (omit to read a line from stdin)")
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Check the optimised chain against the input on a range of integers.",
    )
    parser.add_argument("--json", action="store_true", help="Emit the full result as JSON")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline details to stderr")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.verbose:
        telemetry_logger.set_level("DEBUG")

    # Literals are unbounded; lift the int/str digit cap while this run lasts.
    digit_limit = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(0)
    try:
        return _run(args)
    finally:
        sys.set_int_max_str_digits(digit_limit)


def _run(args: argparse.Namespace) -> int:
    try:
        overrides = parse_overrides(args.overrides)
        if args.verify:
            overrides = deep_update(overrides, {"verify": {"enabled": True}})
        config = pipeline.load_configuration(args.config, overrides=overrides)
        source = args.chain if args.chain is not None else _read_line()
    except (OSError, ValueError) as exc:
        print(f"[chainopt] error: {exc}", file=sys.stderr)
        return 1

    result = pipeline.process(source, config=config)
    if args.json or config.output.format == "json":
        print(json.dumps(result.to_dict(), indent=2, sort_keys=True))
    else:
        print(result.render())
    return 0


def _read_line() -> str:
    return sys.stdin.readline().rstrip("\r\n")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
