"""
Pattern compiler.

Turns the raw command-line pattern into an immutable CompiledPattern: anchor
markers are stripped into an AnchorPolicy and the literal is case-folded
when case-insensitive matching is requested.

Example:
    >>> p = compile_pattern("^Apple")
    >>> p.policy, p.literal
    (<AnchorPolicy.PREFIX: 1>, b'Apple')
"""

import os
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

import numpy as np

from .errors import ConfigurationError


class AnchorPolicy(IntEnum):
    """Where the literal must appear in a line. Values are passed to kernels."""

    CONTAINS = 0
    PREFIX = 1
    SUFFIX = 2


@dataclass(frozen=True)
class CompiledPattern:
    """
    Literal pattern plus match policy, shared read-only by every lane.

    Attributes:
        literal: Pattern bytes with anchors removed (lowercased if folded)
        policy: Anchor policy
        ignore_case: ASCII case-insensitive matching
        invert: Report lines that do not match
    """

    literal: bytes
    policy: AnchorPolicy = AnchorPolicy.CONTAINS
    ignore_case: bool = False
    invert: bool = False

    def __len__(self) -> int:
        return len(self.literal)

    def to_numpy(self) -> np.ndarray:
        """
        Pattern bytes as a uint8 array for device upload.

        Always at least one element long so an empty literal still gets a
        real allocation; kernels take the true length separately.
        """
        if not self.literal:
            return np.zeros(1, dtype=np.uint8)
        return np.frombuffer(self.literal, dtype=np.uint8).copy()

    def __str__(self) -> str:
        text = os.fsdecode(self.literal)
        if self.policy is AnchorPolicy.PREFIX:
            text = "^" + text
        elif self.policy is AnchorPolicy.SUFFIX:
            text = text + "$"
        return text


def compile_pattern(
    pattern: Union[str, bytes],
    ignore_case: bool = False,
    invert: bool = False,
) -> CompiledPattern:
    """
    Compile a raw pattern.

    Only one anchor is honoured: a leading '^' wins and the pattern is then
    never checked for a trailing '$'.

    Args:
        pattern: Raw pattern; str is encoded with the filesystem encoding
        ignore_case: Fold the literal to ASCII lowercase
        invert: Select non-matching lines

    Returns:
        CompiledPattern

    Raises:
        ConfigurationError: If no pattern is supplied
    """
    if pattern is None:
        raise ConfigurationError("no pattern supplied")
    if isinstance(pattern, str):
        raw = os.fsencode(pattern)
    elif isinstance(pattern, (bytes, bytearray, memoryview)):
        raw = bytes(pattern)
    else:
        raise ConfigurationError(f"pattern must be str or bytes, got {type(pattern).__name__}")

    if raw.startswith(b"^"):
        policy = AnchorPolicy.PREFIX
        raw = raw[1:]
    elif raw.endswith(b"$"):
        policy = AnchorPolicy.SUFFIX
        raw = raw[:-1]
    else:
        policy = AnchorPolicy.CONTAINS

    if ignore_case:
        # bytes.lower() only touches ASCII letters, matching the kernel's folding.
        raw = raw.lower()

    return CompiledPattern(literal=raw, policy=policy, ignore_case=bool(ignore_case), invert=bool(invert))
