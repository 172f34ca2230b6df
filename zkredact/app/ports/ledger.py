"""Ledger port for custody records of proof operations."""

from typing import Any, Protocol


class LedgerPort(Protocol):
    """Append-only custody ledger.

    Implementations must never rewrite earlier records, and ``verify`` must
    report (not raise) integrity failures so callers can surface them.

    Side effects: Appends to the ledger file.
    """

    def log(
        self,
        operation: str,
        inputs: list[str],
        outputs: list[str],
        args: dict[str, Any],
    ) -> Any:
        """Append one record.

        Args:
            operation: ``proof_issue`` or ``proof_verify``
            inputs: Source or proof paths consumed by the operation
            outputs: Paths written by the operation
            args: Journal fields, program id, backend and outcome

        Raises:
            LedgerIntegrityError: If the existing ledger cannot be read back
        """
        ...

    def verify(self) -> tuple[bool, str | None]:
        """Return ``(is_valid, error_message)`` for the whole chain."""
        ...

    def read_all(self) -> list[Any]:
        """Return every record in chain order.

        Raises:
            LedgerIntegrityError: If a line cannot be parsed
        """
        ...
