"""
Worker sizing for the parallel file opening and event processing.
"""

import os
from typing import List, Sequence


def get_optimal_worker_count(num_tasks: int, io_bound: bool = True) -> int:
    """Get optimal number of workers based on system resources."""
    cpu_count = os.cpu_count() or 1

    if io_bound:
        # Opening files mostly waits on the filesystem
        optimal = min(32, cpu_count + 4, num_tasks)
    else:
        optimal = min(cpu_count, num_tasks)

    return max(1, optimal)


def split_into_shards(items: Sequence, num_shards: int) -> List[List]:
    """
    Split items into at most num_shards contiguous, non-empty shards of
    near-equal size, preserving order.
    """
    items = list(items)
    num_shards = max(1, min(num_shards, len(items)))
    base, extra = divmod(len(items), num_shards)

    shards = []
    start = 0
    for i in range(num_shards):
        size = base + (1 if i < extra else 0)
        if size:
            shards.append(items[start:start + size])
        start += size
    return shards


# Chunk size for uproot iteration
DEFAULT_STEP_SIZE = '100 MB'
