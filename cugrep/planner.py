"""
Partition planning.

A file is processed as a sequence of windows, each small enough for the
device scratch buffer. Every window is split into lanes of roughly
``chunk_size`` bytes; lane ``i`` owns the half-open interval
``[i * bytes_per_lane, min((i + 1) * bytes_per_lane, window_size))``.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from .config import EngineOptions

logger = logging.getLogger(__name__)


def ceil_div(a: int, b: int) -> int:
    return -(-a // b)


@dataclass(frozen=True)
class PartitionPlan:
    """Launch geometry for one window."""

    lane_count: int
    bytes_per_lane: int
    threads_per_block: int
    block_count: int
    window_offset: int
    window_size: int

    def lane_interval(self, lane: int):
        """Raw [cursor, bound) interval of a lane, before line adjustment."""
        cursor = lane * self.bytes_per_lane
        bound = min(self.bytes_per_lane * (lane + 1), self.window_size)
        return cursor, bound


def plan_window(window_size: int, window_offset: int, options: EngineOptions) -> PartitionPlan:
    """
    Compute lane geometry for a window.

    Args:
        window_size: Bytes in the window
        window_offset: Absolute offset of the window within the file
        options: Engine options (chunk size, lane ceiling, block size)

    Returns:
        PartitionPlan
    """
    lane_count = max(1, min(options.lane_ceiling, ceil_div(window_size, options.chunk_size)))
    bytes_per_lane = max(1, ceil_div(window_size, lane_count))
    threads = min(options.threads_per_block, lane_count)
    return PartitionPlan(
        lane_count=lane_count,
        bytes_per_lane=bytes_per_lane,
        threads_per_block=threads,
        block_count=ceil_div(lane_count, threads),
        window_offset=window_offset,
        window_size=window_size,
    )


def scratch_size(file_size: int, options: EngineOptions) -> int:
    """Initial device scratch allocation for a file."""
    return min(options.max_window, file_size)


def iter_windows(
    file_size: int,
    options: EngineOptions,
    align: Optional[Callable[[int, int], int]] = None,
) -> Iterator[PartitionPlan]:
    """
    Yield a PartitionPlan for each window of a file, in file order.

    Args:
        file_size: Total bytes in the file
        options: Engine options
        align: Optional ``align(offset, nominal_end) -> end`` hook used by the
            orchestrator to move window ends onto line boundaries. It must
            return an end greater than ``offset``.
    """
    offset = 0
    remaining_lanes = ceil_div(file_size, options.chunk_size)
    while offset < file_size:
        window_lanes = min(options.lane_ceiling, max(1, remaining_lanes))
        size = min(options.max_window, file_size - offset, window_lanes * options.chunk_size)
        end = offset + size
        if align is not None:
            end = align(offset, end)
        size = end - offset

        plan = plan_window(size, offset, options)
        logger.debug(
            "window @%d size=%d lanes=%d bytes/lane=%d blocks=%d",
            offset, size, plan.lane_count, plan.bytes_per_lane, plan.block_count,
        )
        yield plan

        offset = end
        remaining_lanes = ceil_div(file_size - offset, options.chunk_size)
