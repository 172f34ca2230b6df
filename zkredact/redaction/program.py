"""The redaction program executed inside the trust boundary.

A receipt attests that *this* program produced its journal. The program is
identified by ``PROGRAM_ID``, a digest over a canonical description of every
rule that affects the journal. Changing any of those rules changes the
identifier, so receipts from a different program never verify.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field

from zkredact.redaction.engine import LINE_SEPARATOR, REDACTION_MARKER, redact
from zkredact.redaction.journal import Journal
from zkredact.utils.hashing import compute_sha256

PROGRAM_NAME = "zkredact.line-redaction"
PROGRAM_VERSION = 1

PROGRAM_DESCRIPTOR: dict[str, object] = {
    "name": PROGRAM_NAME,
    "version": PROGRAM_VERSION,
    "marker": REDACTION_MARKER.decode("ascii"),
    "line_separator": LINE_SEPARATOR.hex(),
    "trailing_separator": "preserved",
    "hash": "sha256",
    "journal": "original_digest|redacted_digest|u32be_count|u64be_indices",
}


def compute_program_id(descriptor: dict[str, object]) -> str:
    """Return the hex program identifier for ``descriptor``."""
    canonical = json.dumps(descriptor, sort_keys=True, separators=(",", ":"))
    return compute_sha256(canonical.encode("utf-8"))


PROGRAM_ID = compute_program_id(PROGRAM_DESCRIPTOR)


class ProgramInputs(BaseModel):
    """Private inputs handed to the program. Never leave the trust boundary."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(..., repr=False, description="Original document bytes")
    indices: tuple[int, ...] = Field(default=(), description="Requested redaction indices")


def run_program(inputs: ProgramInputs) -> bytes:
    """Execute the redaction program and return the committed journal bytes."""
    result = redact(inputs.content, inputs.indices)
    journal = Journal(
        original_hash=result.original_hash,
        redacted_hash=result.redacted_hash,
        redacted_indices=result.redacted_indices,
    )
    return journal.to_bytes()
