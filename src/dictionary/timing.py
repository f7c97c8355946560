"""Elapsed-time logging for store operations."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


@contextmanager
def perf_timer(label: str, log: Optional[logging.Logger] = None) -> Iterator[None]:
    """Log how long the wrapped block took, in milliseconds, at DEBUG."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        (log or logger).debug("%s took %.2fms", label, elapsed_ms)
