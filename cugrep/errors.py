"""
Exception types for cugrep.

Configuration errors abort the whole run before any file is touched.
Resource and device errors are local to one file: the engine records them
on the file's result and moves on to the next file.
"""


class GrepError(Exception):
    """Base class for all cugrep errors."""


class ConfigurationError(GrepError, ValueError):
    """Invalid pattern, option or backend. Fatal for the run."""


class ResourceError(GrepError, OSError):
    """
    Host resource failure for one file (open, stat, mmap).

    Attributes:
        path: File being processed when the failure happened
    """

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class DeviceError(GrepError):
    """
    Accelerator allocation, transfer or launch failure for one file.

    Attributes:
        path: File being processed when the failure happened
    """

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path
