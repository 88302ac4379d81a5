"""Lightweight observability helpers for latency and token estimation."""
from __future__ import annotations

import json
import logging
import math
import time
from contextlib import contextmanager
from typing import Any, Iterator

logger = logging.getLogger("observability")


def estimate_tokens(text: str | None) -> int:
    if not text:
        return 0
    return max(1, math.ceil(len(text) / 4))


def log_event(event: str, payload: dict[str, Any]) -> None:
    logger.info("event=%s payload=%s", event, json.dumps(payload, sort_keys=True, default=str))


@contextmanager
def timed() -> Iterator[dict[str, int]]:
    """Yield a dict that receives ``duration_ms`` when the block exits."""
    started = time.monotonic()
    timing: dict[str, int] = {"duration_ms": 0}
    try:
        yield timing
    finally:
        timing["duration_ms"] = int((time.monotonic() - started) * 1000)
