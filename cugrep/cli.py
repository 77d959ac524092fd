"""
Command line front end.

    cugrep [-rvi] [-t] [--backend {auto,cpu,cuda}] pattern [path ...]

With no paths, standard input is searched sequentially on the host.
Exit status: 0 if a line was printed, 1 if none, 2 on any error.
"""

import argparse
import logging
import os
import sys
import time
from typing import Iterator, List, Optional, Sequence

from . import __version__
from .config import EngineOptions
from .engine import GrepEngine
from .errors import ConfigurationError

logger = logging.getLogger("cugrep")

EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cugrep",
        description="Literal line search accelerated with CUDA",
    )
    ap.add_argument("pattern", help="literal; a leading ^ or trailing $ anchors it")
    ap.add_argument("paths", nargs="*", metavar="path", help="files (or directories with -r)")
    ap.add_argument("-r", "--recursive", action="store_true", help="search directories recursively")
    ap.add_argument("-v", "--invert-match", action="store_true", help="select non-matching lines")
    ap.add_argument("-i", "--ignore-case", action="store_true", help="ignore ASCII letter case")
    ap.add_argument("-t", "--timing", action="store_true", help="print per-phase timings to stderr")
    ap.add_argument("--debug", action="store_true", help="log window geometry and allocations")
    ap.add_argument(
        "--backend",
        default=os.environ.get("CUGREP_BACKEND", "auto"),
        help="cpu, cuda or auto (default: $CUGREP_BACKEND or auto)",
    )
    ap.add_argument("--capacity", type=int, help="match records kept per run")
    ap.add_argument("--chunk-size", type=int, help="bytes scanned by one lane")
    ap.add_argument("--lane-ceiling", type=int, help="max lanes per kernel launch")
    ap.add_argument("--threads-per-block", type=int, help="CUDA block size")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def setup_logging(timing: bool = False, debug: bool = False) -> logging.Handler:
    level = logging.DEBUG if debug else logging.INFO if timing else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("cugrep: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


def iter_files(paths: Sequence[str], recursive: bool, errors: List[str]) -> Iterator[str]:
    """Expand command-line paths into files, walking directories when recursive."""
    for path in paths:
        if recursive and os.path.isdir(path):
            def onerror(e, _path=path):
                logger.warning("%s: %s", e.filename or _path, e.strerror)
                errors.append(e.filename or _path)

            for root, dirs, files in os.walk(path, onerror=onerror):
                dirs.sort()
                for name in sorted(files):
                    full = os.path.join(root, name)
                    if os.path.isfile(full):
                        yield full
        else:
            yield path


def write_line(out, label: Optional[str], line: bytes) -> None:
    if label is not None:
        out.write(os.fsencode(label) + b":")
    out.write(line)
    out.write(b"\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    start = time.perf_counter()
    args = build_parser().parse_args(argv)
    handler = setup_logging(args.timing, args.debug)
    try:
        status = run(args)
    finally:
        logger.removeHandler(handler)
    if args.timing:
        print(f"TOTAL_TIME:{int((time.perf_counter() - start) * 1e6)}", file=sys.stderr)
    return status


def run(args: argparse.Namespace) -> int:
    out = sys.stdout.buffer
    try:
        options = EngineOptions.from_env().with_overrides(
            capacity=args.capacity,
            chunk_size=args.chunk_size,
            lane_ceiling=args.lane_ceiling,
            threads_per_block=args.threads_per_block,
        )
        label_files = args.recursive or len(args.paths) > 1
        engine = GrepEngine(
            args.pattern,
            invert=args.invert_match,
            ignore_case=args.ignore_case,
            recursive=args.recursive,
            backend=args.backend,
            options=options,
            label_files=label_files,
        )
    except ConfigurationError as e:
        logger.error("%s", e)
        return EXIT_ERROR

    matched = False
    errors: List[str] = []
    with engine:
        if not args.paths:
            for line in engine.search_stream(sys.stdin.buffer):
                write_line(out, None, line)
                matched = True
        else:
            for path in iter_files(args.paths, args.recursive, errors):
                result = engine.search(path)
                if not result.ok:
                    # Already reported by the engine.
                    errors.append(path)
                    continue
                for label, line in result.lines:
                    write_line(out, label, line)
                    matched = True
    out.flush()

    if errors:
        return EXIT_ERROR
    return EXIT_MATCH if matched else EXIT_NO_MATCH


if __name__ == "__main__":
    sys.exit(main())
