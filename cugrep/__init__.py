"""
cugrep - literal line search on a CUDA accelerator

Maps files into memory, streams them to the device in windows, scans lines in
thousands of parallel lanes and gathers the matching lines back in file order.

Example:
    >>> import cugrep
    >>>
    >>> with cugrep.GrepEngine("apple", ignore_case=True) as engine:
    ...     result = engine.search("fruit.txt")
    ...     for label, line in result.lines:
    ...         print(line.decode())
"""

__version__ = "0.1.0"

# Core components
from .pattern import AnchorPolicy, CompiledPattern, compile_pattern
from .config import EngineOptions
from .planner import PartitionPlan, plan_window
from .buffer import MatchBuffer, SearchConfig
from .executor import Executor
from .reconcile import ResultReconciler
from .engine import FileResult, GrepEngine
from .errors import ConfigurationError, DeviceError, GrepError, ResourceError
from . import backend
from . import reference

# Re-export backend utilities for convenience
from .backend import BackendType, is_cuda_available, get_default_backend

__all__ = [
    # Core classes
    "GrepEngine",
    "FileResult",
    "Executor",
    "MatchBuffer",
    "SearchConfig",
    "ResultReconciler",
    # Pattern compiler
    "AnchorPolicy",
    "CompiledPattern",
    "compile_pattern",
    # Planning and options
    "EngineOptions",
    "PartitionPlan",
    "plan_window",
    # Errors
    "GrepError",
    "ConfigurationError",
    "ResourceError",
    "DeviceError",
    # Modules
    "backend",
    "reference",
    # Backend utilities
    "BackendType",
    "is_cuda_available",
    "get_default_backend",
    # Metadata
    "__version__",
]
