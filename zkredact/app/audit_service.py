"""Audit ledger orchestration services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from zkredact.app.ports import LedgerPort


@dataclass(slots=True)
class AuditService:
    """Expose read/verify operations over the audit ledger."""

    ledger: LedgerPort | None

    def is_enabled(self) -> bool:
        """Return True when audit logging is available."""

        return self.ledger is not None

    def get_entries(self, *, operation: str | None = None) -> list[Any]:
        """Return audit entries, optionally filtered by operation (empty when disabled).

        Raises:
            LedgerIntegrityError: If a ledger line cannot be parsed
        """

        if self.ledger is None:
            return []
        entries = self.ledger.read_all()
        if operation is not None:
            entries = [entry for entry in entries if entry.operation == operation]
        return entries

    def verify(self) -> tuple[bool, str | None]:
        """Verify ledger integrity, treating missing ledger as valid."""

        if self.ledger is None:
            return True, None
        return self.ledger.verify()
