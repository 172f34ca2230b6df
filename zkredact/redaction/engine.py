"""Deterministic line redaction and content hashing.

The engine is the only code that touches original content. It never performs
I/O and returns identical output for identical input, which is what makes the
committed hashes meaningful to a verifier.

Line model: content is split on ``\\n``. A single terminating newline closes the
last line instead of opening an empty one, and it is carried over verbatim to
the redacted output. Rejoining the lines therefore reproduces the original
bytes exactly, so hashing the whole file and hashing the rejoined lines agree.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from zkredact.errors import InvalidIndexError
from zkredact.utils.hashing import compute_sha256

REDACTION_MARKER = b"***REDACTED***"
LINE_SEPARATOR = b"\n"


@dataclass(frozen=True, slots=True)
class SplitContent:
    """Lines of a document plus whether it ended with a newline."""

    lines: tuple[bytes, ...]
    terminated: bool

    def __len__(self) -> int:
        return len(self.lines)


@dataclass(frozen=True, slots=True)
class RedactionResult:
    """Output of :func:`redact`."""

    redacted_content: bytes
    original_hash: str
    redacted_hash: str
    redacted_indices: tuple[int, ...]
    line_count: int


def _as_bytes(content: bytes | str) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


def split_lines(content: bytes | str) -> SplitContent:
    """Split ``content`` into lines using the shared reconstruction rule."""
    data = _as_bytes(content)
    if not data:
        return SplitContent(lines=(), terminated=False)

    terminated = data.endswith(LINE_SEPARATOR)
    body = data[: -len(LINE_SEPARATOR)] if terminated else data
    return SplitContent(lines=tuple(body.split(LINE_SEPARATOR)), terminated=terminated)


def join_lines(split: SplitContent) -> bytes:
    """Inverse of :func:`split_lines`."""
    if not split.lines and not split.terminated:
        return b""
    joined = LINE_SEPARATOR.join(split.lines)
    if split.terminated:
        joined += LINE_SEPARATOR
    return joined


def line_count(content: bytes | str) -> int:
    """Return the number of addressable lines in ``content``."""
    return len(split_lines(content))


def normalize_indices(indices: Iterable[int], line_total: int) -> tuple[int, ...]:
    """Validate ``indices`` against ``line_total`` and return them sorted and unique.

    Raises:
        InvalidIndexError: If any index is negative, not an integer, or out of range.
    """
    normalized: set[int] = set()
    for index in indices:
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidIndexError(f"Redaction index must be an integer, got {index!r}")
        if index < 0:
            raise InvalidIndexError(
                f"Redaction index {index} is negative", index=index, line_count=line_total
            )
        if index >= line_total:
            raise InvalidIndexError(
                f"Redaction index {index} is out of range for content with {line_total} line(s)",
                index=index,
                line_count=line_total,
            )
        normalized.add(index)
    return tuple(sorted(normalized))


def parse_index_list(raw: str | None) -> list[int]:
    """Parse a comma-separated index list such as ``"1,3,5"``.

    Blank entries are ignored; anything that is not a non-negative integer
    raises :class:`InvalidIndexError` instead of being dropped.
    """
    if raw is None:
        return []

    indices: list[int] = []
    for token in raw.split(","):
        item = token.strip()
        if not item:
            continue
        try:
            value = int(item, 10)
        except ValueError as exc:
            raise InvalidIndexError(f"Invalid redaction index {item!r}") from exc
        if value < 0:
            raise InvalidIndexError(f"Redaction index {value} is negative", index=value)
        indices.append(value)
    return indices


def redact(content: bytes | str, indices: Iterable[int]) -> RedactionResult:
    """Replace the selected lines of ``content`` with the redaction marker.

    Args:
        content: Original document (``str`` is encoded as UTF-8)
        indices: Zero-based line indices to blank out

    Returns:
        RedactionResult with the redacted bytes and SHA-256 hashes of both versions

    Raises:
        InvalidIndexError: If any index is outside ``[0, line_count)``
    """
    original = _as_bytes(content)
    split = split_lines(original)
    selected = normalize_indices(indices, len(split))

    chosen = set(selected)
    redacted_lines = tuple(
        REDACTION_MARKER if position in chosen else line
        for position, line in enumerate(split.lines)
    )
    redacted_content = join_lines(SplitContent(lines=redacted_lines, terminated=split.terminated))

    return RedactionResult(
        redacted_content=redacted_content,
        original_hash=compute_sha256(original),
        redacted_hash=compute_sha256(redacted_content),
        redacted_indices=selected,
        line_count=len(split),
    )
