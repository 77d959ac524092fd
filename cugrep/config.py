"""
Engine tuning options.

Defaults can be overridden through environment variables, which is handy
when sizing windows for a particular device without touching code:

    CUGREP_CHUNK_SIZE         bytes scanned by one lane (default 400)
    CUGREP_LANE_CEILING       max lanes per kernel launch (default 262144)
    CUGREP_THREADS_PER_BLOCK  CUDA block size (default 256)
    CUGREP_CAPACITY           match records kept per run (default 60000)
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_CHUNK_SIZE = 400
DEFAULT_LANE_CEILING = 1 << 18
DEFAULT_THREADS_PER_BLOCK = 256
DEFAULT_CAPACITY = 60000

_ENV_FIELDS = {
    "chunk_size": "CUGREP_CHUNK_SIZE",
    "lane_ceiling": "CUGREP_LANE_CEILING",
    "threads_per_block": "CUGREP_THREADS_PER_BLOCK",
    "capacity": "CUGREP_CAPACITY",
}


@dataclass(frozen=True)
class EngineOptions:
    """Geometry and capacity settings shared by every file in a run."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    lane_ceiling: int = DEFAULT_LANE_CEILING
    threads_per_block: int = DEFAULT_THREADS_PER_BLOCK
    capacity: int = DEFAULT_CAPACITY

    @property
    def max_window(self) -> int:
        """Largest window a single kernel launch covers."""
        return self.lane_ceiling * self.chunk_size

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineOptions":
        """
        Build options from defaults plus CUGREP_* environment overrides.

        Raises:
            ConfigurationError: If an override is not a positive integer
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field, var in _ENV_FIELDS.items():
            raw = environ.get(var)
            if raw is None or raw == "":
                continue
            try:
                values[field] = int(raw)
            except ValueError:
                raise ConfigurationError(f"{var} must be an integer, got {raw!r}") from None
        return cls(**values).validate()

    def with_overrides(self, **overrides) -> "EngineOptions":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes).validate()

    def validate(self) -> "EngineOptions":
        for field in _ENV_FIELDS:
            value = getattr(self, field)
            if not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{field} must be a positive integer, got {value!r}")
        return self
