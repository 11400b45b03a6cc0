"""
loadgen/batching.py

Partitions an ordered statement queue into bounded-size batches.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterator


def iter_batches(queue: deque[str], batch_size: int) -> Iterator[list[str]]:
    """
    Pop up to ``batch_size`` statements from the front of ``queue`` per batch.

    Lazy and finite: the queue is drained as batches are consumed, only the
    last batch may be short, and an empty queue yields nothing.
    """

    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}.")

    while queue:
        batch: list[str] = []
        while queue and len(batch) < batch_size:
            batch.append(queue.popleft())
        yield batch


def batch_count(total: int, batch_size: int) -> int:
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}.")
    return math.ceil(total / batch_size)
