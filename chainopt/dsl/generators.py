"""Helpers for loading the bundled call-chain fixtures used in tests.

Fixture files live under ``tests/python/fixtures/chains`` and hold one case
per line in the form ``<input> => <expected output>``.  Blank lines and lines
starting with ``#`` are ignored.  The input may be empty, so lines are split on
the first ``" => "`` without stripping leading whitespace.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

FIXTURE_ROOT = Path(__file__).resolve().parents[2] / "tests" / "python" / "fixtures" / "chains"

_SEPARATOR = " => "


@dataclass(frozen=True)
class ChainCase:
    """A single fixture line."""

    name: str
    path: Path
    line: int
    source: str
    expected: str


def generate_chain_cases(name: str | None = None, root: Path | None = None) -> Iterable[ChainCase]:
    """Yield fixture cases, optionally only from the file ``<name>.txt``.

    Parameters
    ----------
    name:
        Fixture file stem (e.g. ``"optimizer"``).  When omitted every
        ``*.txt`` file under ``root`` is read.
    root:
        Optional directory override.  When omitted the default fixture
        collection under ``tests/python/fixtures/chains`` is used.
    """

    yield from _iter_cases(root or FIXTURE_ROOT, name)


def _iter_cases(root: Path, name: str | None) -> Iterator[ChainCase]:
    if not root.exists():
        return
    pattern = f"{name}.txt" if name else "*.txt"
    for path in sorted(root.glob(pattern)):
        for number, raw in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
            if not raw.strip() or raw.lstrip().startswith("#"):
                continue
            source, sep, expected = raw.partition(_SEPARATOR)
            if not sep:
                raise ValueError(f"{path}:{number}: expected '<input> => <output>'")
            yield ChainCase(
                name=f"{path.stem}:{number}",
                path=path,
                line=number,
                source=source,
                expected=expected.strip(),
            )


__all__ = ["ChainCase", "generate_chain_cases"]
