"""
Match buffer and device search configuration.

MatchBuffer pairs the fixed-capacity record array with the shared counter.
Lanes reserve a slot by incrementing the counter and write their record
only if the slot is below capacity, so the counter can run past capacity
while the records stay intact. Every read-back clamps to
``min(counter, capacity)``.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .pattern import CompiledPattern

RECORD_DTYPE = np.int64
COUNTER_DTYPE = np.uint32


class MatchBuffer:
    """
    Device-resident match records plus counter.

    Attributes:
        device: Device owning the arrays
        records: int64[capacity, 2] array of (start, end) byte offsets
        counter: uint32[1] match counter
    """

    def __init__(self, device, capacity: int):
        self.device = device
        self._capacity = int(capacity)
        self.records = device.zeros((self._capacity, 2), RECORD_DTYPE)
        self.counter = device.zeros(1, COUNTER_DTYPE)
        self._freed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def size(self) -> int:
        """Number of record slots."""
        return self._capacity

    @property
    def nbytes(self) -> int:
        return self._capacity * 2 * np.dtype(RECORD_DTYPE).itemsize

    def __len__(self) -> int:
        return self._capacity

    def count(self) -> int:
        """Raw counter value; may exceed capacity after an overflow."""
        self._check_live()
        return int(self.device.to_host(self.counter)[0])

    def read_back(self) -> Tuple[int, np.ndarray]:
        """
        Copy the counter and the valid records to host memory.

        Returns:
            Tuple of (raw counter value, records[:min(counter, capacity)])
        """
        raw = self.count()
        valid = min(raw, self._capacity)
        if valid == 0:
            return raw, np.empty((0, 2), dtype=RECORD_DTYPE)
        records = self.device.to_host(self.records[:valid])
        return raw, np.array(records, copy=True)

    def to_numpy(self) -> np.ndarray:
        """Valid records as a host array."""
        return self.read_back()[1]

    def cleanup(self) -> None:
        if not self._freed:
            self.records = None
            self.counter = None
            self._freed = True

    def _check_live(self) -> None:
        if self._freed:
            raise RuntimeError("MatchBuffer has been freed")

    def __repr__(self) -> str:
        state = "freed" if self._freed else f"capacity={self._capacity}"
        return f"MatchBuffer({self.device.name}, {state})"


@dataclass(frozen=True)
class SearchConfig:
    """
    Device mirror of a CompiledPattern plus the output handles.

    Built once per executor and only read by kernels afterwards.
    """

    pattern: object
    pattern_length: int
    policy: int
    ignore_case: bool
    invert: bool
    matches: MatchBuffer

    @classmethod
    def upload(cls, device, compiled: CompiledPattern, matches: MatchBuffer) -> "SearchConfig":
        return cls(
            pattern=device.upload(compiled.to_numpy()),
            pattern_length=len(compiled),
            policy=int(compiled.policy),
            ignore_case=compiled.ignore_case,
            invert=compiled.invert,
            matches=matches,
        )
