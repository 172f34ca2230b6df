"""Custody ledger for proof operations."""

from zkredact.audit.ledger import AuditEntry, AuditLedger

__all__ = ["AuditEntry", "AuditLedger"]
