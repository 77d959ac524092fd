"""
Backend utilities for cugrep execution.

Provides backend type enumeration and detection utilities.
"""

import logging
from enum import Enum

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class BackendType(Enum):
    """Backends the match kernel can run on."""

    CPU = "cpu"
    CUDA = "cuda"
    AUTO = "auto"

    def __str__(self) -> str:
        return self.value


def is_cuda_available() -> bool:
    """
    Check if the CUDA backend is usable.

    Returns:
        True if numba can see a CUDA device (or the simulator is enabled),
        False otherwise.

    Note:
        Probing the driver can be slow the first time; the answer is not
        cached because tests flip NUMBA_ENABLE_CUDASIM.
    """
    try:
        from numba import cuda
    except ImportError:
        return False

    try:
        return bool(cuda.is_available())
    except Exception as e:
        # A broken driver install shows up as an error here rather than False.
        logger.debug("CUDA probe failed: %s", e)
        return False


def get_default_backend() -> str:
    """
    Get the default backend based on available hardware.

    Returns best available backend in order:
    1. CUDA (if numba sees a GPU or the simulator is on)
    2. CPU (fallback, always available)

    Returns:
        Backend string: "cuda" or "cpu"
    """
    if is_cuda_available():
        return "cuda"
    return "cpu"


def validate_backend(backend) -> str:
    """
    Validate and normalize backend string.

    Args:
        backend: Backend string ("cpu", "cuda", "auto") or BackendType

    Returns:
        Normalized backend string

    Raises:
        ConfigurationError: If backend is invalid
    """
    if isinstance(backend, BackendType):
        backend = backend.value

    backend_lower = str(backend).lower()

    if backend_lower == "auto":
        return get_default_backend()

    valid_backends = ("cpu", "cuda")
    if backend_lower not in valid_backends:
        raise ConfigurationError(
            f"Invalid backend '{backend}'. "
            f"Must be one of: {', '.join(valid_backends)}, or 'auto'"
        )

    if backend_lower == "cuda" and not is_cuda_available():
        raise ConfigurationError("CUDA backend requested but no CUDA device is available")

    return backend_lower
