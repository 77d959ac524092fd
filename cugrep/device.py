"""
Device abstraction over CUDA (numba.cuda) and host memory.

Both devices expose the same small surface used by the executor: allocate,
upload, copy a window into scratch, launch the match kernel, synchronize and
read back. Driver failures are re-raised as DeviceError so the engine can
abort the current file without ending the run.
"""

import logging
from contextlib import contextmanager

import numpy as np
from numba import cuda
from numba.cuda.cudadrv import error as cuda_error

from . import kernels
from .errors import DeviceError

logger = logging.getLogger(__name__)

# The simulator ships only a subset of the driver exception classes.
_FAILURES = tuple(
    getattr(cuda_error, name)
    for name in ("CudaSupportError", "CudaDriverError")
    if hasattr(cuda_error, name)
) + (MemoryError,)


@contextmanager
def device_errors(action: str):
    """Translate numba driver failures and out-of-memory into DeviceError."""
    try:
        yield
    except _FAILURES as e:
        raise DeviceError(f"{action} failed: {e}") from e


class Device:
    """Common interface; subclasses hold arrays in their own memory space."""

    name = "abstract"

    def zeros(self, shape, dtype):
        raise NotImplementedError

    def empty(self, shape, dtype):
        raise NotImplementedError

    def upload(self, array: np.ndarray):
        raise NotImplementedError

    def staging(self, nbytes: int) -> np.ndarray:
        """Host buffer windows are copied through on their way to scratch."""
        with device_errors("host allocation"):
            return np.empty(nbytes, dtype=np.uint8)

    def copy_window(self, scratch, host: np.ndarray) -> None:
        """Copy ``host`` into the front of ``scratch``."""
        raise NotImplementedError

    def launch(self, plan, scratch, config) -> None:
        raise NotImplementedError

    def synchronize(self) -> None:
        pass

    def to_host(self, array) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CpuDevice(Device):
    """Host memory; lanes run sequentially in a numba nopython loop."""

    name = "cpu"

    def zeros(self, shape, dtype):
        with device_errors("host allocation"):
            return np.zeros(shape, dtype=dtype)

    def empty(self, shape, dtype):
        with device_errors("host allocation"):
            return np.empty(shape, dtype=dtype)

    def upload(self, array):
        return np.array(array, copy=True)

    def copy_window(self, scratch, host):
        scratch[: host.shape[0]] = host

    def launch(self, plan, scratch, config):
        kernels.search_lanes_cpu(
            scratch, plan.window_size, plan.lane_count, plan.bytes_per_lane,
            plan.window_offset, config.pattern, config.pattern_length,
            config.policy, config.ignore_case, config.invert,
            config.matches.records, config.matches.counter,
        )

    def to_host(self, array):
        return array


class CudaDevice(Device):
    """Single local CUDA device through numba.cuda."""

    name = "cuda"

    def __init__(self):
        with device_errors("CUDA initialisation"):
            self._device = cuda.current_context().device
        logger.debug("using CUDA device %s", getattr(self._device, "name", "?"))

    def zeros(self, shape, dtype):
        with device_errors("device allocation"):
            return cuda.to_device(np.zeros(shape, dtype=dtype))

    def empty(self, shape, dtype):
        with device_errors("device allocation"):
            return cuda.device_array(shape, dtype=dtype)

    def upload(self, array):
        with device_errors("device upload"):
            return cuda.to_device(np.ascontiguousarray(array))

    def staging(self, nbytes):
        with device_errors("pinned allocation"):
            return cuda.pinned_array(nbytes, dtype=np.uint8)

    def copy_window(self, scratch, host):
        with device_errors("window transfer"):
            scratch[: host.shape[0]].copy_to_device(host)

    def launch(self, plan, scratch, config):
        with device_errors("kernel launch"):
            kernels.search_kernel[plan.block_count, plan.threads_per_block](
                scratch, plan.window_size, plan.lane_count, plan.bytes_per_lane,
                plan.window_offset, config.pattern, config.pattern_length,
                config.policy, config.ignore_case, config.invert,
                config.matches.records, config.matches.counter,
            )

    def synchronize(self):
        with device_errors("device synchronize"):
            cuda.synchronize()

    def to_host(self, array):
        with device_errors("device read-back"):
            return array.copy_to_host()

    def __repr__(self) -> str:
        return f"CudaDevice({getattr(self._device, 'name', '?')!r})"


def create_device(backend: str) -> Device:
    """Instantiate the device for an already validated backend string."""
    if backend == "cuda":
        return CudaDevice()
    return CpuDevice()
