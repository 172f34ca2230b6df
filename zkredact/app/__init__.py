"""Application layer for zkredact.

This layer orchestrates the proof protocol without direct filesystem I/O.
All side effects are delegated to adapters via port interfaces.
"""

__all__ = [
    "AuditService",
    "IssueReport",
    "ProofService",
    "VerifyReport",
]

from zkredact.app.audit_service import AuditService
from zkredact.app.proof_service import IssueReport, ProofService, VerifyReport
