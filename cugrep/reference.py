"""
Sequential reference matcher.

Scans one line at a time on the host with the same policies as the device
kernels. Used for standard input, which is not accelerated, and as the
oracle the kernels are tested against.
"""

from typing import BinaryIO, Iterable, Iterator, List, Tuple

from .pattern import AnchorPolicy, CompiledPattern


def line_matches(line: bytes, pattern: CompiledPattern) -> bool:
    """Apply the policy and invert flag to one line (without its newline)."""
    if pattern.ignore_case:
        # Literal is already folded; lowering the line folds ASCII letters only.
        line = line.lower()
    literal = pattern.literal

    if pattern.policy is AnchorPolicy.PREFIX:
        found = line.startswith(literal)
    elif pattern.policy is AnchorPolicy.SUFFIX:
        found = line.endswith(literal)
    else:
        found = literal in line

    return not found if pattern.invert else found


def iter_line_spans(data: bytes) -> Iterator[Tuple[int, int]]:
    """Yield [start, end) of every line; a trailing newline ends the last line."""
    start = 0
    size = len(data)
    while start < size:
        end = data.find(b"\n", start)
        if end == -1:
            end = size
        yield start, end
        start = end + 1


def search_bytes(data: bytes, pattern: CompiledPattern) -> List[Tuple[int, int]]:
    """Spans of the selected lines, in file order."""
    return [(s, e) for s, e in iter_line_spans(data) if line_matches(data[s:e], pattern)]


def search_lines(lines: Iterable[bytes], pattern: CompiledPattern) -> Iterator[bytes]:
    """Selected lines of an iterable of raw lines (newlines are stripped)."""
    for line in lines:
        if line.endswith(b"\n"):
            line = line[:-1]
        if line_matches(line, pattern):
            yield line


def search_stream(stream: BinaryIO, pattern: CompiledPattern) -> Iterator[bytes]:
    """Selected lines of a binary stream such as sys.stdin.buffer."""
    return search_lines(iter(stream.readline, b""), pattern)
