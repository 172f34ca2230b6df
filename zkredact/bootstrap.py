"""Application bootstrap wiring ports, adapters, and services."""

from __future__ import annotations

from dataclasses import dataclass

from zkredact.app import AuditService, ProofService
from zkredact.app.adapters import AttestedExecutionProver, FileSystemStorageAdapter
from zkredact.app.ports import LedgerPort, ProverPort, StoragePort
from zkredact.audit.ledger import AuditLedger
from zkredact.config import Settings, get_settings


@dataclass(slots=True)
class ApplicationContainer:
    """Aggregates wired services and adapters for the CLI layer."""

    settings: Settings
    proof_service: ProofService
    audit_service: AuditService
    prover: ProverPort
    storage_port: StoragePort
    ledger_port: LedgerPort | None


def _create_ledger(settings: Settings) -> LedgerPort | None:
    if not settings.audit_enabled:
        return None
    return AuditLedger(settings.get_audit_path(), hmac_key=settings.get_audit_hmac_key())


def _create_prover(settings: Settings, *, verify_only: bool) -> AttestedExecutionProver:
    """Build the attested prover.

    Verify-only containers load only the trusted public key and never create a
    signing key; they raise ``TrustedKeyMissingError`` when none is available.
    """
    if verify_only:
        return AttestedExecutionProver(
            verifying_key=settings.get_trusted_key(create_signing_key=False)
        )
    return AttestedExecutionProver(
        signing_key=settings.get_signing_key(),
        verifying_key=settings.get_trusted_key(),
    )


def create_audit_service(settings: Settings | None = None) -> AuditService:
    """Build the audit service alone; needs no attestation keys."""
    return AuditService(ledger=_create_ledger(settings or get_settings()))


def bootstrap_application(
    settings: Settings | None = None,
    *,
    verify_only: bool = False,
) -> ApplicationContainer:
    """Wire adapters and services for the given settings."""
    active_settings = settings or get_settings()

    storage = FileSystemStorageAdapter()
    ledger = _create_ledger(active_settings)
    prover = _create_prover(active_settings, verify_only=verify_only)

    proof_service = ProofService(
        prover=prover,
        storage_port=storage,
        ledger_port=ledger,
        settings=active_settings,
    )
    audit_service = AuditService(ledger=ledger)

    return ApplicationContainer(
        settings=active_settings,
        proof_service=proof_service,
        audit_service=audit_service,
        prover=prover,
        storage_port=storage,
        ledger_port=ledger,
    )
