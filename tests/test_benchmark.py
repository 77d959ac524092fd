"""
Throughput benchmarks.

Skipped unless pytest-benchmark is installed. Under the CUDA simulator only
the CPU numbers mean anything.
"""

import pytest

pytest.importorskip("pytest_benchmark")

import cugrep as cg

from text_helpers import random_text


@pytest.fixture(scope="module")
def corpus(tmp_path_factory):
    path = tmp_path_factory.mktemp("bench") / "corpus.txt"
    path.write_bytes(random_text(42, lines=20000, max_len=80))
    return str(path)


@pytest.mark.parametrize("pattern", ["ab", "^a", "b$"])
def test_cpu_search(benchmark, corpus, pattern):
    with cg.GrepEngine(pattern, backend="cpu") as engine:
        result = benchmark(engine.search, corpus)
        assert result.ok


def test_reference_search(benchmark, corpus):
    with open(corpus, "rb") as f:
        data = f.read()
    pattern = cg.compile_pattern("ab")
    benchmark(cg.reference.search_bytes, data, pattern)
