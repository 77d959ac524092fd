"""
Streaming executor.

Drives one file (or any in-memory byte buffer) through the match kernel in
windows that fit the device scratch buffer. Windows end on a line boundary,
so every line is scanned inside a single launch, and the executor
synchronizes after each launch before the scratch buffer is refilled.

Example:
    >>> from cugrep import Executor, compile_pattern
    >>> with Executor(compile_pattern("apple"), backend="cpu") as ex:
    ...     ex.scan(b"apple\\nbanana\\n")
    ...     ex.matches.to_numpy()
"""

import logging
from typing import Optional

import numpy as np

from .backend import validate_backend
from .buffer import MatchBuffer, SearchConfig
from .config import EngineOptions
from .device import create_device
from .pattern import CompiledPattern
from .planner import iter_windows, scratch_size

logger = logging.getLogger(__name__)

NEWLINE = b"\n"


def align_window(data, file_size: int, offset: int, end: int) -> int:
    """
    Move a nominal window end onto a line boundary.

    The end is pulled back to just after the last newline in
    ``[offset, end)``. A window with no newline at all is stretched forward to
    the next newline, or to the end of the data.
    """
    if end >= file_size:
        return file_size
    cut = data.rfind(NEWLINE, offset, end)
    if cut != -1:
        return cut + 1
    nxt = data.find(NEWLINE, end)
    return file_size if nxt == -1 else nxt + 1


class Executor:
    """
    Owns the device, the match buffer and the uploaded search configuration.

    One executor serves a whole run: its match counter keeps counting across
    files and the ResultReconciler tracks where each file's records begin.

    Args:
        pattern: Compiled pattern
        backend: "cpu", "cuda" or "auto"
        options: Engine options (defaults read from the environment)
    """

    def __init__(
        self,
        pattern: CompiledPattern,
        backend: str = "auto",
        options: Optional[EngineOptions] = None,
    ):
        self.backend = validate_backend(backend)
        self.options = options if options is not None else EngineOptions.from_env()
        self.pattern = pattern
        self.device = create_device(self.backend)
        self.matches = MatchBuffer(self.device, self.options.capacity)
        self.config = SearchConfig.upload(self.device, pattern, self.matches)
        self._freed = False
        logger.debug("executor ready: %r pattern=%r", self.device, str(pattern))

    def scan(self, data) -> int:
        """
        Run the kernel over every window of ``data``.

        Args:
            data: bytes, bytearray or mmap; must support find/rfind

        Returns:
            Number of windows launched

        Raises:
            DeviceError: If allocation, transfer or launch fails
        """
        if self._freed:
            raise RuntimeError("Executor has been cleaned up")

        size = len(data)
        if size == 0:
            return 0

        # Views of an mmap block its close(), so only this frame holds one;
        # everything handed to the device goes through the staging copy.
        host = np.frombuffer(data, dtype=np.uint8)
        staging = scratch = None
        windows = 0
        try:
            scratch_len = scratch_size(size, self.options)
            staging = self.device.staging(scratch_len)
            scratch = self.device.empty(scratch_len, np.uint8)

            def align(offset, end):
                return align_window(data, size, offset, end)

            for plan in iter_windows(size, self.options, align=align):
                if plan.window_size > scratch_len:
                    logger.debug("growing scratch %d -> %d bytes", scratch_len, plan.window_size)
                    staging = scratch = None
                    scratch_len = plan.window_size
                    staging = self.device.staging(scratch_len)
                    scratch = self.device.empty(scratch_len, np.uint8)

                start, n = plan.window_offset, plan.window_size
                staging[:n] = host[start:start + n]
                self.device.copy_window(scratch, staging[:n])
                self.device.launch(plan, scratch, self.config)
                # Scratch is refilled by the next window.
                self.device.synchronize()
                windows += 1
        finally:
            del host
            staging = scratch = None
        return windows

    def cleanup(self) -> None:
        if not self._freed:
            self.matches.cleanup()
            self._freed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False

    def __repr__(self) -> str:
        return f"Executor(backend={self.backend!r}, pattern={str(self.pattern)!r})"
