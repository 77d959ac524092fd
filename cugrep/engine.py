"""
Per-file search facade.

GrepEngine ties the pieces together for a run: it compiles the pattern once,
owns one Executor (and so one match buffer) for every file, maps each file
read-only, streams it through the executor and reconciles the records into
lines. Failures on one file are captured in its FileResult; they never end
the run.

Example:
    >>> import cugrep
    >>> with cugrep.GrepEngine("apple", ignore_case=True, backend="cpu") as engine:
    ...     result = engine.search("fruit.txt")
    ...     for label, line in result.lines:
    ...         print(line.decode())
"""

import logging
import mmap
import os
import stat
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, List, Optional, Union

from .config import EngineOptions
from .errors import ConfigurationError, DeviceError, GrepError, ResourceError
from .executor import Executor
from .pattern import CompiledPattern, compile_pattern
from .reconcile import Line, ResultReconciler
from . import reference

logger = logging.getLogger(__name__)


@dataclass
class FileResult:
    """Outcome of searching one file."""

    path: str
    lines: List[Line] = field(default_factory=list)
    error: Optional[GrepError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __len__(self) -> int:
        return len(self.lines)


@contextmanager
def map_file(path) -> Iterator[Union[bytes, mmap.mmap]]:
    """
    Map a file read-only.

    Empty files cannot be mapped and yield b"" instead.

    Raises:
        ResourceError: If the file cannot be opened, stat'ed or mapped
    """
    try:
        fd = os.open(path, os.O_RDONLY)
    except OSError as e:
        raise ResourceError(f"open: {e.strerror}", path) from e

    mapping = None
    try:
        try:
            st = os.fstat(fd)
        except OSError as e:
            raise ResourceError(f"fstat: {e.strerror}", path) from e
        if stat.S_ISDIR(st.st_mode):
            raise ResourceError("Is a directory", path)
        size = st.st_size
        logger.debug("%s: %d bytes", path, size)

        if size == 0:
            yield b""
            return
        try:
            mapping = mmap.mmap(fd, size, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as e:
            raise ResourceError(f"mmap: {e}", path) from e
        yield mapping
    finally:
        if mapping is not None:
            mapping.close()
        os.close(fd)


class _PhaseTimer:
    """Logs elapsed time per phase at INFO."""

    def __init__(self, path):
        self.path = path
        self.last = time.perf_counter()

    def lap(self, phase: str) -> None:
        now = time.perf_counter()
        logger.info("%s: %s : %d us", self.path, phase, (now - self.last) * 1e6)
        self.last = now


class GrepEngine:
    """
    Accelerated line search over files.

    Args:
        pattern: Raw pattern ("^" / "$" anchors honoured) or a CompiledPattern
        invert: Select non-matching lines
        ignore_case: ASCII case-insensitive matching
        recursive: Label every line with its file path
        backend: "cpu", "cuda" or "auto"
        options: Engine options (defaults read from the environment)
        label_files: Force labelling on or off regardless of ``recursive``

    A CompiledPattern carries its own flags: passing ``invert`` or
    ``ignore_case`` with a pattern compiled without them raises
    ConfigurationError.
    """

    def __init__(
        self,
        pattern: Union[str, bytes, CompiledPattern],
        invert: bool = False,
        ignore_case: bool = False,
        recursive: bool = False,
        backend: str = "auto",
        options: Optional[EngineOptions] = None,
        label_files: Optional[bool] = None,
    ):
        if isinstance(pattern, CompiledPattern):
            if (invert and not pattern.invert) or (ignore_case and not pattern.ignore_case):
                raise ConfigurationError(
                    "invert and ignore_case must be set when compiling the pattern"
                )
            self.pattern = pattern
        else:
            self.pattern = compile_pattern(pattern, ignore_case=ignore_case, invert=invert)
        self.recursive = recursive
        self.label_files = recursive if label_files is None else label_files
        self.executor = Executor(self.pattern, backend=backend, options=options)
        self.reconciler = ResultReconciler(self.executor.matches)

    @property
    def backend(self) -> str:
        return self.executor.backend

    def search(self, path) -> FileResult:
        """
        Search one file.

        Returns:
            FileResult; ``error`` is set instead of raising on resource or
            device failures
        """
        path = os.fspath(path)
        label = path if self.label_files else None
        timer = _PhaseTimer(path)
        try:
            with map_file(path) as data:
                timer.lap("map")
                self.executor.scan(data)
                timer.lap("search")
                lines = self.reconciler.drain(data, label)
                timer.lap("reconcile")
        except ResourceError as e:
            logger.warning("%s: %s", path, e)
            return FileResult(path, error=e)
        except DeviceError as e:
            logger.warning("%s: %s", path, e)
            e.path = path
            self._discard_partial()
            return FileResult(path, error=e)
        timer.lap("cleanup")
        return FileResult(path, lines)

    def search_bytes(self, data: bytes, label: Optional[str] = None) -> List[Line]:
        """Search an in-memory buffer; device errors propagate."""
        try:
            return self._run(data, label)
        except DeviceError:
            self._discard_partial()
            raise

    def search_stream(self, stream: BinaryIO) -> Iterator[bytes]:
        """Sequential, unaccelerated search of a binary stream (standard input)."""
        return reference.search_stream(stream, self.pattern)

    def _run(self, data, label) -> List[Line]:
        self.executor.scan(data)
        return self.reconciler.drain(data, label)

    def _discard_partial(self) -> None:
        try:
            self.reconciler.discard()
        except DeviceError as e:
            logger.error("cannot read match counter after failure: %s", e)

    def close(self) -> None:
        self.executor.cleanup()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"GrepEngine({str(self.pattern)!r}, backend={self.backend!r})"
