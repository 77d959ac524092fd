"""
Shared fixtures.

The CUDA kernel runs under numba's simulator so the suite works without a
GPU; the switch has to be set before numba is first imported.
"""

import os

os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import pytest

from cugrep import EngineOptions, GrepEngine

BACKENDS = ["cpu", "cuda"]

FRUIT = b"apple\nbanana\nApple Pie\n"


@pytest.fixture(params=BACKENDS)
def backend(request):
    """Every engine-level test runs on both backends."""
    return request.param


@pytest.fixture
def small_options():
    """Tiny lanes and windows so short inputs cross many boundaries."""
    return EngineOptions(chunk_size=8, lane_ceiling=16, threads_per_block=32, capacity=1000)


@pytest.fixture
def make_file(tmp_path):
    def _make(name, data):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return str(path)

    return _make


@pytest.fixture
def fruit_file(make_file):
    return make_file("fruit.txt", FRUIT)


@pytest.fixture
def make_engine(backend, small_options):
    engines = []

    def _make(pattern, **kwargs):
        kwargs.setdefault("backend", backend)
        kwargs.setdefault("options", small_options)
        engine = GrepEngine(pattern, **kwargs)
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        engine.close()


