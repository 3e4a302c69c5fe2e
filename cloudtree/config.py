from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

_SUPPORTED_PRECISION = {"float32", "float64"}
_DEFAULT_KDTREE_LEAF_SIZE = 16


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value '{raw}'") from exc


def _normalise_precision(value: str | None) -> str:
    if value is None:
        return "float64"
    value = value.strip().lower()
    if value not in _SUPPORTED_PRECISION:
        raise ValueError(f"Unsupported precision '{value}'. Expected one of {_SUPPORTED_PRECISION}.")
    return value


def _parse_leaf_size(raw: str | None) -> int:
    leaf_size = _parse_optional_int(raw)
    if leaf_size is None:
        return _DEFAULT_KDTREE_LEAF_SIZE
    if leaf_size < 1:
        raise ValueError(f"k-d tree leaf size must be positive, got '{raw}'")
    return leaf_size


@dataclass(frozen=True)
class RuntimeConfig:
    precision: str
    enable_numba: bool
    enable_diagnostics: bool
    log_level: str
    kdtree_leaf_size: int
    kdtree_incremental: bool

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        precision = _normalise_precision(os.getenv("CLOUDTREE_PRECISION"))
        enable_numba = _bool_from_env(os.getenv("CLOUDTREE_ENABLE_NUMBA"), default=False)
        enable_diagnostics = _bool_from_env(
            os.getenv("CLOUDTREE_ENABLE_DIAGNOSTICS"), default=True
        )
        log_level = os.getenv("CLOUDTREE_LOG_LEVEL", "INFO").upper()
        kdtree_leaf_size = _parse_leaf_size(os.getenv("CLOUDTREE_KDTREE_LEAF_SIZE"))
        kdtree_incremental = _bool_from_env(
            os.getenv("CLOUDTREE_KDTREE_INCREMENTAL"), default=True
        )
        return cls(
            precision=precision,
            enable_numba=enable_numba,
            enable_diagnostics=enable_diagnostics,
            log_level=log_level,
            kdtree_leaf_size=kdtree_leaf_size,
            kdtree_incremental=kdtree_incremental,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("cloudtree")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    config = RuntimeConfig.from_env()
    _configure_logging(config.log_level)
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "precision": config.precision,
        "enable_numba": config.enable_numba,
        "enable_diagnostics": config.enable_diagnostics,
        "log_level": config.log_level,
        "kdtree_leaf_size": config.kdtree_leaf_size,
        "kdtree_incremental": config.kdtree_incremental,
    }
