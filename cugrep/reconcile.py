"""
Result reconciler.

Turns the records a file's launches appended to the MatchBuffer into output
lines. The buffer is shared by the whole run, so the reconciler remembers
where the previous file's records ended and only drains what came after.
Records arrive in whatever order lanes won the counter, so they are sorted by
start offset before the lines are cut out of the host mapping.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from .buffer import MatchBuffer

logger = logging.getLogger(__name__)

Line = Tuple[Optional[str], bytes]


class ResultReconciler:
    """
    Drains per-file match records from a run-wide MatchBuffer.

    Attributes:
        baseline: Clamped record count at the end of the previous file
        dropped: Records lost to capacity overflow so far in this run
    """

    def __init__(self, matches: MatchBuffer):
        self.matches = matches
        self.baseline = 0
        self.dropped = 0
        self._raw_baseline = 0

    def drain(self, data, label: Optional[str] = None) -> List[Line]:
        """
        Collect the current file's matches.

        Args:
            data: Host bytes the records point into (bytes or mmap)
            label: Prefix for every line, or None

        Returns:
            List of (label, line_bytes) in file order
        """
        raw, records = self.matches.read_back()
        count = records.shape[0]
        fresh = records[self.baseline:count]

        lost = (raw - self._raw_baseline) - fresh.shape[0]
        if lost > 0:
            self.dropped += lost
            logger.warning(
                "match buffer full (capacity %d): %d matching line(s) dropped%s",
                self.matches.capacity, lost, f" from {label}" if label else "",
            )

        self.baseline = count
        self._raw_baseline = raw

        if fresh.shape[0] == 0:
            return []
        order = np.argsort(fresh[:, 0], kind="stable")
        return [(label, bytes(data[int(start):int(end)])) for start, end in fresh[order]]

    def discard(self) -> None:
        """Skip records of a file that failed part way through."""
        raw = self.matches.count()
        self.baseline = min(raw, self.matches.capacity)
        self._raw_baseline = raw
