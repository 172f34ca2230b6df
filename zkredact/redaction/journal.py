"""Journal: the public record committed by a redaction proof."""

from __future__ import annotations

import struct
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from zkredact.errors import MalformedArtifactError
from zkredact.utils.hashing import DIGEST_SIZE, compute_sha256

_COUNT = struct.Struct(">I")
_INDEX = struct.Struct(">Q")
_HEADER_SIZE = DIGEST_SIZE * 2 + _COUNT.size

HEX_DIGEST_PATTERN = r"^[0-9a-f]{64}$"


class Journal(BaseModel):
    """Committed record of a redaction.

    ``redacted_hash`` is the SHA-256 of the original content with exactly the
    lines in ``redacted_indices`` replaced by the redaction marker. Nothing is
    claimed about lines outside that set.
    """

    model_config = ConfigDict(frozen=True)

    original_hash: str = Field(
        ...,
        pattern=HEX_DIGEST_PATTERN,
        description="SHA-256 of the exact original byte sequence",
    )
    redacted_hash: str = Field(
        ...,
        pattern=HEX_DIGEST_PATTERN,
        description="SHA-256 of the reconstructed redacted byte sequence",
    )
    redacted_indices: tuple[int, ...] = Field(
        default=(),
        description="Zero-based redacted line indices in strictly ascending order",
    )

    @field_validator("redacted_indices")
    @classmethod
    def _require_canonical_indices(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        previous = -1
        for index in value:
            if index < 0:
                raise ValueError(f"redacted index {index} is negative")
            if index <= previous:
                raise ValueError("redacted_indices must be strictly ascending")
            previous = index
        return value

    def to_bytes(self) -> bytes:
        """Return the canonical binary encoding committed inside receipts.

        Layout: original digest (32) | redacted digest (32) | u32 count |
        ``count`` big-endian u64 indices.
        """
        parts = [
            bytes.fromhex(self.original_hash),
            bytes.fromhex(self.redacted_hash),
            _COUNT.pack(len(self.redacted_indices)),
        ]
        parts.extend(_INDEX.pack(index) for index in self.redacted_indices)
        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> Journal:
        """Decode :meth:`to_bytes` output.

        Raises:
            MalformedArtifactError: On truncation, trailing data, or non-canonical indices
        """
        if len(data) < _HEADER_SIZE:
            raise MalformedArtifactError(
                f"Journal is truncated ({len(data)} bytes, need at least {_HEADER_SIZE})"
            )

        original = data[:DIGEST_SIZE]
        redacted = data[DIGEST_SIZE : DIGEST_SIZE * 2]
        (count,) = _COUNT.unpack_from(data, DIGEST_SIZE * 2)

        expected = _HEADER_SIZE + count * _INDEX.size
        if len(data) != expected:
            raise MalformedArtifactError(
                f"Journal length mismatch (expected {expected} bytes for {count} indices, "
                f"got {len(data)})"
            )

        indices = tuple(
            _INDEX.unpack_from(data, _HEADER_SIZE + position * _INDEX.size)[0]
            for position in range(count)
        )

        try:
            return cls(
                original_hash=original.hex(),
                redacted_hash=redacted.hex(),
                redacted_indices=indices,
            )
        except ValueError as exc:
            raise MalformedArtifactError(f"Journal is not canonical: {exc}") from exc

    def matches_redacted_content(self, content: bytes) -> bool:
        """Return True when ``content`` hashes to ``redacted_hash``."""
        return compute_sha256(content) == self.redacted_hash

    def summary(self) -> dict[str, Any]:
        return {
            "original_hash": self.original_hash,
            "redacted_hash": self.redacted_hash,
            "redacted_indices": list(self.redacted_indices),
        }
