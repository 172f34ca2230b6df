"""Exception taxonomy for redaction proofs.

Every failure in the protocol is raised as one of these typed errors. Callers
decide how to report them; nothing here terminates the process or retries.
"""

from __future__ import annotations


class ZkRedactError(Exception):
    """Base class for all zkredact failures."""


class RedactionFailedError(ZkRedactError):
    """Raised when the redaction transform cannot be applied or is inconsistent."""


class InvalidIndexError(RedactionFailedError):
    """Raised when a redaction index falls outside the content's line range."""

    def __init__(self, message: str, *, index: int | None = None, line_count: int | None = None):
        super().__init__(message)
        self.index = index
        self.line_count = line_count


class ProvingFailedError(ZkRedactError):
    """Raised when the prover service could not produce a receipt."""


class MalformedArtifactError(ZkRedactError):
    """Raised when a proof artifact or receipt cannot be decoded."""


class TamperedReceiptError(ZkRedactError):
    """Raised when a receipt does not check out against the trusted program identity."""


class TrustedKeyMissingError(ZkRedactError):
    """Raised when no verification key is configured for checking receipts."""


class LedgerIntegrityError(ZkRedactError):
    """Raised when the audit ledger or its metadata cannot be read back."""
