"""Portable proof artifact."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from zkredact.redaction.journal import HEX_DIGEST_PATTERN, Journal
from zkredact.utils.hashing import compute_sha256


class ProofArtifact(BaseModel):
    """Self-contained proof that a redaction followed the committed journal.

    ``journal`` is an unauthenticated companion copy kept for inspection. The
    authoritative journal lives inside ``receipt`` and is recovered by
    :class:`~zkredact.proof.verifier.ProofVerifier`.
    """

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    receipt: bytes = Field(..., repr=False, description="Opaque receipt from the prover service")
    journal: Journal = Field(..., description="Companion copy of the committed journal")
    program_id: str = Field(
        ...,
        pattern=HEX_DIGEST_PATTERN,
        description="Identifier of the program that produced the receipt",
    )

    @property
    def receipt_digest(self) -> str:
        return compute_sha256(self.receipt)

    def summary(self) -> dict[str, Any]:
        """Return report-friendly fields. Nothing here is authenticated."""
        return {
            "program_id": self.program_id,
            "receipt_bytes": len(self.receipt),
            "receipt_sha256": self.receipt_digest,
            **self.journal.summary(),
        }
