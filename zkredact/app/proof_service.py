"""Proof service orchestrating file-based issuance and verification.

All I/O is delegated to ports; the protocol itself lives in
:mod:`zkredact.proof`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from zkredact.app.ports import LedgerPort, ProverPort, StoragePort
from zkredact.config import Settings, get_settings
from zkredact.errors import LedgerIntegrityError, MalformedArtifactError, TamperedReceiptError
from zkredact.proof import (
    ProofArtifact,
    ProofIssuer,
    ProofTimings,
    ProofVerifier,
    decode,
    encode,
)
from zkredact.redaction.journal import Journal

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IssueReport:
    """What the report layer needs after a successful issuance."""

    source: Path
    proof_path: Path
    artifact: ProofArtifact
    redacted_content: bytes
    line_count: int
    redacted_output: Path | None = None
    timings: ProofTimings = field(default_factory=ProofTimings)

    @property
    def journal(self) -> Journal:
        return self.artifact.journal


@dataclass(slots=True)
class VerifyReport:
    """Outcome of verifying one proof file."""

    proof_path: Path
    journal: Journal
    artifact: ProofArtifact
    warnings: list[str] = field(default_factory=list)
    redacted_file: Path | None = None
    redacted_file_matches: bool | None = None
    timings: ProofTimings = field(default_factory=ProofTimings)

    @property
    def passed(self) -> bool:
        return self.redacted_file_matches is not False


class ProofService:
    """Issue and verify ``.zkproof`` files.

    Args:
        prover: Prover/verifier service
        storage_port: Filesystem operations port
        ledger_port: Audit logging port (None disables custody records)
        settings: Application settings (proof suffix)
        strict: Fail verification when the companion journal differs
    """

    def __init__(
        self,
        *,
        prover: ProverPort,
        storage_port: StoragePort,
        ledger_port: LedgerPort | None,
        settings: Settings | None = None,
        strict: bool = False,
    ) -> None:
        self.prover = prover
        self.storage = storage_port
        self.ledger = ledger_port
        self._settings = settings or get_settings()
        self.issuer = ProofIssuer(prover)
        self.verifier = ProofVerifier(prover, strict=strict)

    def with_strict(self, strict: bool) -> ProofService:
        """Return a service sharing the same ports with a different strictness."""
        return ProofService(
            prover=self.prover,
            storage_port=self.storage,
            ledger_port=self.ledger,
            settings=self._settings,
            strict=strict,
        )

    def issue(
        self,
        source: Path,
        indices: Iterable[int],
        *,
        proof_path: Path | None = None,
        redacted_output: Path | None = None,
    ) -> IssueReport:
        """Prove a redaction of ``source`` and persist the artifact.

        Nothing is written when redaction or proving fails.

        Raises:
            FileNotFoundError: If ``source`` does not exist
            InvalidIndexError: If an index is out of range
            ProvingFailedError: If the prover could not produce a receipt
            LedgerIntegrityError: If the custody record cannot be appended
        """
        resolved_source = Path(source).resolve()
        if not resolved_source.is_file():
            raise FileNotFoundError(f"Redaction source not found: {resolved_source}")

        content = self.storage.read_bytes(resolved_source)
        timings = ProofTimings()

        logger.info("Generating redaction proof for %s", resolved_source)
        issued = self.issuer.issue(content, indices, timings=timings)
        logger.info("Proof generated in %.3fs", timings.prove_seconds or 0.0)

        destination = (
            Path(proof_path).resolve()
            if proof_path is not None
            else self._settings.proof_path_for(resolved_source)
        )
        self.storage.write_bytes(destination, encode(issued.artifact))

        redacted_path: Path | None = None
        if redacted_output is not None:
            redacted_path = Path(redacted_output).resolve()
            self.storage.write_bytes(redacted_path, issued.redacted_content)

        journal = issued.artifact.journal
        if self.ledger is not None:
            outputs = [str(destination)]
            if redacted_path is not None:
                outputs.append(str(redacted_path))
            self.ledger.log(
                operation="proof_issue",
                inputs=[str(resolved_source)],
                outputs=outputs,
                args={
                    "program_id": issued.artifact.program_id,
                    "backend": self.prover.backend,
                    "receipt_sha256": issued.artifact.receipt_digest,
                    "prove_seconds": timings.prove_seconds,
                    **journal.summary(),
                },
            )

        return IssueReport(
            source=resolved_source,
            proof_path=destination,
            artifact=issued.artifact,
            redacted_content=issued.redacted_content,
            line_count=issued.line_count,
            redacted_output=redacted_path,
            timings=timings,
        )

    def load(self, proof_path: Path) -> ProofArtifact:
        """Decode a proof file without verifying it.

        Raises:
            FileNotFoundError: If the proof file does not exist
            MalformedArtifactError: If the file is not a valid proof
        """
        resolved = Path(proof_path).resolve()
        if not resolved.is_file():
            raise FileNotFoundError(f"Proof file not found: {resolved}")
        return decode(self.storage.read_bytes(resolved))

    def verify(self, proof_path: Path, *, redacted_file: Path | None = None) -> VerifyReport:
        """Verify a proof file and optionally bind a published redacted file to it.

        Raises:
            FileNotFoundError: If the proof (or redacted) file does not exist
            MalformedArtifactError: If the proof cannot be decoded
            TamperedReceiptError: If the receipt fails verification
        """
        resolved = Path(proof_path).resolve()
        timings = ProofTimings()

        try:
            artifact = self.load(resolved)
            outcome = self.verifier.verify_detailed(artifact, timings=timings)
        except (MalformedArtifactError, TamperedReceiptError) as exc:
            logger.warning("Verification of %s failed: %s", resolved, exc)
            self._log_verification(resolved, outcome=type(exc).__name__, error=str(exc))
            raise

        for warning in outcome.warnings:
            logger.warning("%s: %s", resolved, warning)

        matches: bool | None = None
        resolved_redacted: Path | None = None
        if redacted_file is not None:
            resolved_redacted = Path(redacted_file).resolve()
            if not resolved_redacted.is_file():
                raise FileNotFoundError(f"Redacted file not found: {resolved_redacted}")
            matches = outcome.journal.matches_redacted_content(
                self.storage.read_bytes(resolved_redacted)
            )

        report = VerifyReport(
            proof_path=resolved,
            journal=outcome.journal,
            artifact=artifact,
            warnings=list(outcome.warnings),
            redacted_file=resolved_redacted,
            redacted_file_matches=matches,
            timings=timings,
        )

        self._log_verification(
            resolved,
            outcome="verified" if report.passed else "redacted_file_mismatch",
            journal=outcome.journal,
            redacted_file=resolved_redacted,
            warnings=report.warnings,
            verify_seconds=timings.verify_seconds,
        )
        return report

    def _log_verification(
        self,
        proof_path: Path,
        *,
        outcome: str,
        journal: Journal | None = None,
        redacted_file: Path | None = None,
        warnings: list[str] | None = None,
        error: str | None = None,
        verify_seconds: float | None = None,
    ) -> None:
        if self.ledger is None:
            return

        inputs = [str(proof_path)]
        if redacted_file is not None:
            inputs.append(str(redacted_file))

        args: dict[str, object] = {
            "outcome": outcome,
            "expected_program_id": self.verifier.expected_program_id,
            "backend": self.prover.backend,
        }
        if journal is not None:
            args.update(journal.summary())
        if warnings:
            args["warnings"] = warnings
        if error is not None:
            args["error"] = error
        if verify_seconds is not None:
            args["verify_seconds"] = verify_seconds

        try:
            self.ledger.log(operation="proof_verify", inputs=inputs, outputs=[], args=args)
        except LedgerIntegrityError as exc:
            logger.warning("Custody record for %s not written: %s", proof_path, exc)

