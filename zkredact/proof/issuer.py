"""Proof issuance: run the redaction inside the trust boundary and package the receipt."""

from __future__ import annotations

import hmac
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from zkredact.errors import RedactionFailedError
from zkredact.proof.artifact import ProofArtifact
from zkredact.redaction.engine import redact
from zkredact.redaction.journal import Journal
from zkredact.redaction.program import PROGRAM_ID, ProgramInputs

if TYPE_CHECKING:
    from zkredact.app.ports.prover import ProverPort


@dataclass(slots=True)
class ProofTimings:
    """Wall-clock measurements filled in by the issuer and verifier when requested."""

    prove_seconds: float | None = None
    verify_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class IssuedProof:
    """Result of :meth:`ProofIssuer.issue`."""

    artifact: ProofArtifact
    redacted_content: bytes
    line_count: int


class ProofIssuer:
    """Produces proof artifacts for line redactions.

    Proving is expected to dominate latency; :meth:`issue` blocks until the
    prover returns. Instances keep only immutable configuration, so separate
    calls may run concurrently.
    """

    def __init__(self, prover: ProverPort, *, program_id: str = PROGRAM_ID) -> None:
        self._prover = prover
        self._program_id = program_id

    @property
    def program_id(self) -> str:
        return self._program_id

    def issue(
        self,
        content: bytes | str,
        indices: Iterable[int],
        *,
        timings: ProofTimings | None = None,
    ) -> IssuedProof:
        """Redact ``content`` and obtain a receipt attesting to the result.

        Args:
            content: Original document
            indices: Zero-based line indices to redact
            timings: Optional collector for the proving duration

        Returns:
            IssuedProof with the artifact and the redacted bytes

        Raises:
            InvalidIndexError: If an index is out of range (raised before proving)
            RedactionFailedError: If the receipt journal disagrees with the local redaction
            ProvingFailedError: If the prover could not produce a receipt
        """
        original = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        result = redact(original, indices)
        expected = Journal(
            original_hash=result.original_hash,
            redacted_hash=result.redacted_hash,
            redacted_indices=result.redacted_indices,
        )

        inputs = ProgramInputs(content=original, indices=result.redacted_indices)

        started = time.perf_counter()
        receipt = self._prover.prove(self._program_id, inputs)
        elapsed = time.perf_counter() - started
        if timings is not None:
            timings.prove_seconds = elapsed

        committed_bytes = self._prover.verify_receipt(receipt, self._program_id)
        if not hmac.compare_digest(committed_bytes, expected.to_bytes()):
            raise RedactionFailedError(
                "Journal committed by the prover does not match the local redaction"
            )

        artifact = ProofArtifact(receipt=receipt, journal=expected, program_id=self._program_id)
        return IssuedProof(
            artifact=artifact,
            redacted_content=result.redacted_content,
            line_count=result.line_count,
        )
