#!/usr/bin/env python3
"""Optimise call chains from a file, one per line, printing one result per line."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from chainopt.orchestrator import pipeline
from chainopt.orchestrator.types import ChainStatus


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Optimise every call chain in a text file")
    parser.add_argument("input", type=Path, help="File with one call chain per line")
    parser.add_argument("--config", type=Path, help="Optional optimizer configuration file")
    parser.add_argument("--verify", action="store_true", help="Check each result for equivalence")
    parser.add_argument("--json", action="store_true", help="Emit JSON lines instead of text")
    args = parser.parse_args(argv)
    sys.set_int_max_str_digits(0)

    overrides = {"verify": {"enabled": True}} if args.verify else None
    config = pipeline.load_configuration(args.config, overrides=overrides)

    failures = 0
    for line in args.input.read_text(encoding="utf-8").splitlines():
        result = pipeline.process(line, config=config)
        if result.status is ChainStatus.INTERNAL_ERROR:
            failures += 1
        if args.json:
            print(json.dumps(result.to_dict(), sort_keys=True))
        else:
            print(result.render())
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
