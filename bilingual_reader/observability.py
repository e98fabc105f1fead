"""Lightweight metrics and timing helpers built on the structured logger."""

from __future__ import annotations

import contextlib
import time
from typing import Iterator, Mapping, Optional

from . import logging_manager as log_mgr

logger = log_mgr.get_logger().getChild("observability")


def record_metric(
    name: str,
    value: float,
    attributes: Optional[Mapping[str, object]] = None,
) -> None:
    """Record a numeric observation as a debug-level structured log entry."""

    logger.debug(
        "Metric recorded",
        extra={
            "event": "observability.metric_recorded",
            "metric": name,
            "value": value,
            "attributes": dict(attributes or {}),
        },
    )


@contextlib.contextmanager
def translation_operation(
    name: str,
    *,
    attributes: Optional[Mapping[str, object]] = None,
) -> Iterator[None]:
    """Time a backend translation call and record its duration.

    The duration is recorded whether the wrapped block succeeds or raises;
    the ``status`` attribute distinguishes the two.
    """

    attrs = dict(attributes or {})
    start = time.perf_counter()
    status = "ok"
    try:
        with log_mgr.log_context(stage=name):
            yield
    except BaseException:
        status = "error"
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000.0
        record_metric(
            "translation.operation.duration",
            duration_ms,
            {**attrs, "operation": name, "status": status},
        )


__all__ = ["record_metric", "translation_operation"]
