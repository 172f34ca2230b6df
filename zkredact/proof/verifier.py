"""Proof verification against a pinned program identity."""

from __future__ import annotations

import hmac
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from zkredact.errors import TamperedReceiptError
from zkredact.proof.artifact import ProofArtifact
from zkredact.proof.issuer import ProofTimings
from zkredact.redaction.journal import Journal
from zkredact.redaction.program import PROGRAM_ID

if TYPE_CHECKING:
    from zkredact.app.ports.prover import ProverPort


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    """Trusted journal recovered from a receipt plus any soft warnings."""

    journal: Journal
    warnings: list[str] = field(default_factory=list)

    @property
    def companion_matches(self) -> bool:
        return not self.warnings


class ProofVerifier:
    """Checks proof artifacts without access to the original content.

    The expected program id is fixed at construction and never read from the
    artifact. The journal returned is always the one committed inside the
    receipt; the artifact's companion copy is only cross-checked.

    Args:
        prover: Service able to check receipts
        expected_program_id: Trusted identifier of the redaction program
        strict: Treat a companion journal mismatch as tampering instead of a warning
    """

    def __init__(
        self,
        prover: ProverPort,
        *,
        expected_program_id: str = PROGRAM_ID,
        strict: bool = False,
    ) -> None:
        self._prover = prover
        self._expected_program_id = expected_program_id
        self._strict = strict

    @property
    def expected_program_id(self) -> str:
        return self._expected_program_id

    def verify(self, artifact: ProofArtifact, *, timings: ProofTimings | None = None) -> Journal:
        """Verify ``artifact`` and return the journal committed in its receipt.

        Raises:
            TamperedReceiptError: If the program id or receipt does not check out
            MalformedArtifactError: If the receipt or its journal cannot be decoded
        """
        return self.verify_detailed(artifact, timings=timings).journal

    def verify_detailed(
        self,
        artifact: ProofArtifact,
        *,
        timings: ProofTimings | None = None,
    ) -> VerificationOutcome:
        """Verify ``artifact`` and report companion-journal discrepancies."""
        started = time.perf_counter()

        if not hmac.compare_digest(artifact.program_id, self._expected_program_id):
            raise TamperedReceiptError(
                f"Artifact names program {artifact.program_id}, "
                f"expected trusted program {self._expected_program_id}"
            )

        committed = self._prover.verify_receipt(artifact.receipt, self._expected_program_id)
        journal = Journal.from_bytes(committed)

        warnings: list[str] = []
        if artifact.journal != journal:
            message = (
                "Companion journal in the artifact differs from the journal committed in "
                "the receipt; the receipt journal is authoritative"
            )
            if self._strict:
                raise TamperedReceiptError(message)
            warnings.append(message)

        if timings is not None:
            timings.verify_seconds = time.perf_counter() - started

        return VerificationOutcome(journal=journal, warnings=warnings)
