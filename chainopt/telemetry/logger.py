"""Logging helpers shared by every chainopt module."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from threading import RLock
from typing import Any, Mapping

import yaml

_CONFIG_LOCK = RLock()
_CONFIGURED = False

CONFIG_PATH = Path(__file__).resolve().parents[2] / "configs" / "logging.yaml"

_DEFAULT_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "standard",
        }
    },
    "root": {
        "level": "WARNING",
        "handlers": ["console"],
    },
    "loggers": {
        "chainopt": {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        }
    },
}

_ALLOWED_KEYS = ("version", "disable_existing_loggers", "formatters", "handlers", "root", "loggers")


def _load_config(path: Path | None = None) -> dict[str, Any]:
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        return dict(_DEFAULT_CONFIG)
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:  # pragma: no cover - guard rails for broken configs
        logging.basicConfig(level=logging.WARNING)
        logging.getLogger("chainopt.telemetry").warning("failed to parse %s: %s", config_path, exc)
        return dict(_DEFAULT_CONFIG)
    if not isinstance(data, Mapping):
        return dict(_DEFAULT_CONFIG)
    merged = dict(_DEFAULT_CONFIG)
    merged.update({key: value for key, value in data.items() if key in _ALLOWED_KEYS})
    return merged


def configure(path: Path | None = None, *, force: bool = False) -> None:
    """Configure the logging subsystem once, or again when ``force`` is set."""

    global _CONFIGURED
    with _CONFIG_LOCK:
        if _CONFIGURED and not force:
            return
        logging.config.dictConfig(_load_config(path))
        _CONFIGURED = True


def set_level(level: int | str) -> None:
    """Adjust the ``chainopt`` logger level, e.g. for ``--verbose`` runs."""

    configure()
    logging.getLogger("chainopt").setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger configured via ``configs/logging.yaml``."""

    if not isinstance(name, str) or not name:
        raise ValueError("logger name must be a non-empty string")
    configure()
    return logging.getLogger(name)


__all__ = ["CONFIG_PATH", "configure", "get_logger", "set_level"]
