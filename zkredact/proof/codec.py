"""Binary encoding of proof artifacts (the ``.zkproof`` file format).

Layout, all integers big-endian::

    magic        8 bytes   b"ZKPROOF\\x00"
    version      u16       FORMAT_VERSION
    flags        u16       reserved, must be 0
    program id   32 bytes  raw digest
    journal len  u32
    journal      canonical JSON (UTF-8, sorted keys, no whitespace)
    receipt len  u32
    receipt      opaque bytes, never interpreted here

``decode`` checks the header and every length against the input size before
reading any field, and rejects trailing bytes.
"""

from __future__ import annotations

import json
import struct
from pathlib import Path

from pydantic import ValidationError

from zkredact.errors import MalformedArtifactError
from zkredact.proof.artifact import ProofArtifact
from zkredact.redaction.journal import Journal

MAGIC = b"ZKPROOF\x00"
FORMAT_VERSION = 1

_PREAMBLE = struct.Struct(">8sHH32s")
_LENGTH = struct.Struct(">I")
_MAX_SECTION = 0xFFFFFFFF


def _canonical_journal(journal: Journal) -> bytes:
    payload = journal.model_dump(mode="json")
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def encode(artifact: ProofArtifact) -> bytes:
    """Serialize ``artifact`` to the ``.zkproof`` byte layout."""
    journal_bytes = _canonical_journal(artifact.journal)
    receipt = bytes(artifact.receipt)

    if len(journal_bytes) > _MAX_SECTION or len(receipt) > _MAX_SECTION:
        raise ValueError("Proof artifact section exceeds the 4 GiB format limit")

    return b"".join(
        [
            _PREAMBLE.pack(MAGIC, FORMAT_VERSION, 0, bytes.fromhex(artifact.program_id)),
            _LENGTH.pack(len(journal_bytes)),
            journal_bytes,
            _LENGTH.pack(len(receipt)),
            receipt,
        ]
    )


class _Reader:
    """Bounds-checked cursor over the encoded artifact."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def take(self, size: int, what: str) -> bytes:
        if size > self.remaining:
            raise MalformedArtifactError(
                f"Proof is truncated while reading {what} "
                f"(need {size} bytes at offset {self.offset}, {self.remaining} available)"
            )
        chunk = self._data[self.offset : self.offset + size].tobytes()
        self.offset += size
        return chunk

    def take_section(self, what: str) -> bytes:
        (length,) = _LENGTH.unpack(self.take(_LENGTH.size, f"{what} length"))
        return self.take(length, what)


def decode(data: bytes) -> ProofArtifact:
    """Parse ``.zkproof`` bytes into a :class:`ProofArtifact`.

    Raises:
        MalformedArtifactError: If the input is empty, truncated, has trailing
            data, or any section fails validation
    """
    if not data:
        raise MalformedArtifactError("Proof is empty")

    reader = _Reader(bytes(data))
    magic, version, flags, program_digest = _PREAMBLE.unpack(
        reader.take(_PREAMBLE.size, "header")
    )

    if magic != MAGIC:
        raise MalformedArtifactError("Not a zkproof file (bad magic header)")
    if version != FORMAT_VERSION:
        raise MalformedArtifactError(
            f"Unsupported zkproof format version {version} (expected {FORMAT_VERSION})"
        )
    if flags != 0:
        raise MalformedArtifactError(f"Unsupported zkproof flags 0x{flags:04x}")

    journal_bytes = reader.take_section("journal")
    receipt = reader.take_section("receipt")

    if reader.remaining:
        raise MalformedArtifactError(f"Proof has {reader.remaining} unexpected trailing bytes")

    try:
        journal = Journal.model_validate_json(journal_bytes)
    except ValidationError as exc:
        raise MalformedArtifactError(f"Proof journal is invalid: {exc}") from exc

    return ProofArtifact(receipt=receipt, journal=journal, program_id=program_digest.hex())


def write_proof(path: Path, artifact: ProofArtifact) -> Path:
    """Encode ``artifact`` and write it to ``path``."""
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(encode(artifact))
    return destination


def read_proof(path: Path) -> ProofArtifact:
    """Read and decode the proof stored at ``path``."""
    return decode(Path(path).read_bytes())
