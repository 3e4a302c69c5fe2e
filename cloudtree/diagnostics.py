from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Tuple

from cloudtree import config as ct_config

try:  # pragma: no cover - platform dependent
    import resource

    RESOURCE_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - e.g. Windows
    resource = None  # type: ignore
    RESOURCE_AVAILABLE = False


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


def _usage_snapshot() -> Tuple[float, float, int] | None:
    if not RESOURCE_AVAILABLE:
        return None
    usage = resource.getrusage(resource.RUSAGE_SELF)
    return usage.ru_utime, usage.ru_stime, int(usage.ru_maxrss)


class OperationLog:
    """Collects timing and resource deltas for one logged operation."""

    __slots__ = ("name", "_metadata", "_start_wall", "_start_usage", "_diagnostics")

    def __init__(self, name: str, *, diagnostics: bool) -> None:
        self.name = name
        self._metadata: Dict[str, Any] = {}
        self._diagnostics = diagnostics and RESOURCE_AVAILABLE
        self._start_usage = _usage_snapshot() if self._diagnostics else None
        self._start_wall = time.perf_counter()

    def add_metadata(self, **fields: Any) -> None:
        self._metadata.update(fields)

    @property
    def metadata(self) -> Dict[str, Any]:
        return dict(self._metadata)

    def render(self, *, status: str | None = None) -> str:
        wall_ms = (time.perf_counter() - self._start_wall) * 1e3
        parts = [f"op={self.name}", f"wall_ms={wall_ms:.3f}"]
        end_usage = _usage_snapshot() if self._start_usage is not None else None
        if self._start_usage is not None and end_usage is not None:
            user_ms = (end_usage[0] - self._start_usage[0]) * 1e3
            system_ms = (end_usage[1] - self._start_usage[1]) * 1e3
            rss_delta = end_usage[2] - self._start_usage[2]
            parts.append(f"cpu_user_ms={user_ms:.3f}")
            parts.append(f"cpu_system_ms={system_ms:.3f}")
            parts.append(f"rss_delta={rss_delta}")
        else:
            parts.append("cpu_user_ms=NA")
            parts.append("cpu_system_ms=NA")
            parts.append("rss_delta=NA")
        if status is not None:
            parts.append(f"status={status}")
        for key, value in self._metadata.items():
            parts.append(f"{key}={_format_value(value)}")
        return " ".join(parts)


@contextmanager
def log_operation(logger: logging.Logger, name: str) -> Iterator[OperationLog]:
    """Time the enclosed block and emit a single ``op=<name>`` INFO record."""

    diagnostics = ct_config.runtime_config().enable_diagnostics
    op_log = OperationLog(name, diagnostics=diagnostics)
    try:
        yield op_log
    except Exception:
        logger.info(op_log.render(status="error"))
        raise
    logger.info(op_log.render())


__all__ = ["OperationLog", "log_operation", "RESOURCE_AVAILABLE"]
