"""
Integration tests for GrepEngine.

Tests complete per-file searches end-to-end on both backends.
"""

import io

import pytest

import cugrep as cg
from cugrep.errors import DeviceError

from text_helpers import expected_lines, random_text


def lines_of(result):
    return [line for _, line in result.lines]


class TestFruitScenario:
    """apple / banana / Apple Pie."""

    @pytest.mark.parametrize("pattern,flags,expected", [
        ("apple", {}, [b"apple"]),
        ("apple", {"ignore_case": True}, [b"apple", b"Apple Pie"]),
        ("apple", {"invert": True, "ignore_case": True}, [b"banana"]),
        ("^Apple", {}, [b"Apple Pie"]),
        ("le$", {}, [b"apple"]),
    ])
    def test_scenario(self, make_engine, fruit_file, pattern, flags, expected):
        engine = make_engine(pattern, **flags)
        result = engine.search(fruit_file)
        assert result.ok
        assert lines_of(result) == expected

    def test_default_options(self, backend, fruit_file):
        """Production geometry: the whole file is a single lane."""
        with cg.GrepEngine("apple", ignore_case=True, backend=backend) as engine:
            assert lines_of(engine.search(fruit_file)) == [b"apple", b"Apple Pie"]


class TestAgainstReference:
    """Engine output equals a sequential scan for every policy."""

    @pytest.mark.parametrize("pattern", ["a", "ab", "^b", "A$", "le", "-", "^", "ab$"])
    @pytest.mark.parametrize("seed", [3, 8])
    def test_policies(self, make_engine, make_file, pattern, seed):
        data = random_text(seed, lines=90)
        path = make_file("random.txt", data)
        result = make_engine(pattern).search(path)
        assert lines_of(result) == expected_lines(data, pattern)

    @pytest.mark.parametrize("pattern", ["ab", "^b", "a$"])
    def test_ignore_case(self, make_engine, make_file, pattern):
        data = random_text(5, lines=90)
        path = make_file("random.txt", data)
        result = make_engine(pattern, ignore_case=True).search(path)
        assert lines_of(result) == expected_lines(data, pattern, ignore_case=True)

    @pytest.mark.parametrize("pattern", ["ab", "^b", "A$"])
    def test_invert_is_complement(self, make_engine, make_file, pattern):
        data = random_text(6, lines=90)
        path = make_file("random.txt", data)
        hits = lines_of(make_engine(pattern).search(path))
        misses = lines_of(make_engine(pattern, invert=True).search(path))
        assert len(hits) + len(misses) == len(list(cg.reference.iter_line_spans(data)))
        assert sorted(hits + misses) == sorted(data[s:e] for s, e in cg.reference.iter_line_spans(data))

    def test_case_folding_is_ascii_only(self, make_engine, make_file):
        data = "ÉCOLE\nécole\nEcole\n[x]\n{x}\n".encode()
        path = make_file("accents.txt", data)
        assert lines_of(make_engine("cole", ignore_case=True).search(path)) == [
            "ÉCOLE".encode(), "école".encode(), b"Ecole",
        ]
        assert lines_of(make_engine("école", ignore_case=True).search(path)) == ["école".encode()]
        # '{' is '[' + 32: brackets are not letters and stay distinct.
        assert lines_of(make_engine("[x]", ignore_case=True).search(path)) == [b"[x]"]

    def test_idempotent(self, make_engine, make_file):
        data = random_text(9, lines=90)
        path = make_file("random.txt", data)
        engine = make_engine("ab")
        assert lines_of(engine.search(path)) == lines_of(engine.search(path))


class TestFiles:
    """Mapping, labels and multi-file runs."""

    def test_empty_file(self, make_engine, make_file):
        result = make_engine("x", invert=True).search(make_file("empty.txt", b""))
        assert result.ok
        assert result.lines == []

    def test_no_trailing_newline(self, make_engine, make_file):
        path = make_file("tail.txt", b"first\nlast match")
        assert lines_of(make_engine("match").search(path)) == [b"last match"]

    def test_blank_lines_with_invert(self, make_engine, make_file):
        path = make_file("blank.txt", b"x\n\n\nx\n")
        assert lines_of(make_engine("x", invert=True).search(path)) == [b"", b""]

    def test_labels_when_recursive(self, make_engine, fruit_file):
        result = make_engine("banana", recursive=True).search(fruit_file)
        assert result.lines == [(fruit_file, b"banana")]

    def test_no_labels_by_default(self, make_engine, fruit_file):
        assert make_engine("banana").search(fruit_file).lines == [(None, b"banana")]

    def test_pathlike(self, make_engine, fruit_file, tmp_path):
        result = make_engine("banana").search(tmp_path / "fruit.txt")
        assert result.path == fruit_file
        assert len(result) == 1

    def test_many_files_share_the_buffer(self, make_engine, make_file):
        engine = make_engine("hit", label_files=True)
        paths = [make_file(f"f{i}.txt", b"miss\n" + (b"hit %d\n" % i) * (i + 1)) for i in range(4)]
        for i, path in enumerate(paths):
            result = engine.search(path)
            assert len(result) == i + 1
            assert all(label == path for label, _ in result.lines)
        assert engine.reconciler.baseline == 1 + 2 + 3 + 4

    def test_large_file_many_windows(self, make_engine, make_file, small_options):
        data = random_text(11, lines=300, max_len=60)
        assert len(data) > 20 * small_options.max_window
        path = make_file("big.txt", data)
        assert lines_of(make_engine("le").search(path)) == expected_lines(data, "le")


class TestErrors:
    """Per-file failures are reported, not raised."""

    def test_missing_file(self, make_engine, tmp_path):
        result = make_engine("x").search(tmp_path / "missing.txt")
        assert not result.ok
        assert isinstance(result.error, cg.ResourceError)
        assert "open" in str(result.error)
        assert result.error.path == str(tmp_path / "missing.txt")

    def test_directory_without_recursion(self, make_engine, tmp_path):
        result = make_engine("x").search(tmp_path)
        assert isinstance(result.error, cg.ResourceError)

    def test_run_continues_after_failure(self, make_engine, fruit_file, tmp_path):
        engine = make_engine("apple")
        assert not engine.search(tmp_path / "missing.txt").ok
        assert lines_of(engine.search(fruit_file)) == [b"apple"]

    def test_device_failure_aborts_only_that_file(self, make_engine, make_file, monkeypatch):
        engine = make_engine("x")
        device = engine.executor.device
        good = make_file("good.txt", b"x1\n")
        bad = make_file("bad.txt", b"x\n" * 200)

        real_launch = device.launch
        launches = []

        def failing_launch(plan, scratch, config):
            launches.append(plan)
            if len(launches) == 2:
                raise DeviceError("kernel launch failed: injected")
            real_launch(plan, scratch, config)

        monkeypatch.setattr(device, "launch", failing_launch)
        result = engine.search(bad)
        assert isinstance(result.error, DeviceError)
        assert result.error.path == bad
        monkeypatch.setattr(device, "launch", real_launch)

        # Records of the first window of bad.txt must not leak into good.txt.
        assert lines_of(engine.search(good)) == [b"x1"]

    def test_allocation_failure_aborts_only_that_file(self, make_engine, make_file, monkeypatch):
        """Scratch allocation fails before the first window is copied."""
        engine = make_engine("x")
        device = engine.executor.device
        good = make_file("good.txt", b"x1\n")
        bad = make_file("bad.txt", b"x\n" * 200)

        def failing_empty(shape, dtype):
            raise DeviceError("device allocation failed: injected")

        monkeypatch.setattr(device, "empty", failing_empty)
        result = engine.search(bad)
        assert isinstance(result.error, DeviceError)
        assert result.error.path == bad
        monkeypatch.undo()

        assert lines_of(engine.search(good)) == [b"x1"]

    def test_compiled_pattern_keeps_its_flags(self, make_engine, fruit_file):
        compiled = cg.compile_pattern("apple", ignore_case=True)
        engine = make_engine(compiled)
        assert lines_of(engine.search(fruit_file)) == [b"apple", b"Apple Pie"]

    @pytest.mark.parametrize("flags", [{"invert": True}, {"ignore_case": True}])
    def test_compiled_pattern_rejects_other_flags(self, flags):
        with pytest.raises(cg.ConfigurationError, match="compiling the pattern"):
            cg.GrepEngine(cg.compile_pattern("apple"), backend="cpu", **flags)

    def test_unknown_backend(self):
        with pytest.raises(cg.ConfigurationError, match="Invalid backend"):
            cg.GrepEngine("x", backend="tpu")

    def test_missing_pattern(self):
        with pytest.raises(cg.ConfigurationError):
            cg.GrepEngine(None, backend="cpu")


class TestStream:
    """Standard input path uses the sequential matcher."""

    def test_search_stream(self, make_engine):
        stream = io.BytesIO(b"apple\nbanana\nApple Pie")
        engine = make_engine("apple", ignore_case=True)
        assert list(engine.search_stream(stream)) == [b"apple", b"Apple Pie"]

    def test_search_bytes(self, make_engine):
        engine = make_engine("^ban")
        assert engine.search_bytes(b"apple\nbanana\n", label="mem") == [("mem", b"banana")]


class TestOverflow:
    """More matches than capacity."""

    def test_exactly_capacity_lines(self, backend, make_file):
        opts = cg.EngineOptions(chunk_size=8, lane_ceiling=16, threads_per_block=32, capacity=5)
        lines = [b"match %02d" % i for i in range(12)]
        path = make_file("many.txt", b"\n".join(lines) + b"\n")
        with cg.GrepEngine("match", backend=backend, options=opts) as engine:
            result = engine.search(path)
            assert result.ok
            got = lines_of(result)
            assert len(got) == 5
            assert len(set(got)) == 5
            assert set(got) <= set(lines)
            assert engine.reconciler.dropped == 7


def test_repr(backend):
    with cg.GrepEngine("^x", backend=backend, options=cg.EngineOptions(capacity=10)) as engine:
        assert repr(engine) == f"GrepEngine('^x', backend='{backend}')"
