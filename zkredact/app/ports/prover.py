"""Prover port interface for the proving/verification service."""

from __future__ import annotations

from typing import Protocol

from zkredact.redaction.program import ProgramInputs


class ProverPort(Protocol):
    """Port interface for the service that turns a program run into a receipt.

    The service is opaque to the rest of the system: receipts are treated as
    bytes and only the service knows how to check them.

    Side effects: None beyond CPU/memory use. ``prove`` is long-running.
    """

    backend: str

    def prove(self, program_id: str, inputs: ProgramInputs) -> bytes:
        """Run the program identified by ``program_id`` over ``inputs``.

        Args:
            program_id: Hex identifier of the program to execute
            inputs: Private program inputs (original content and indices)

        Returns:
            Receipt bytes committing to the program's journal

        Raises:
            ProvingFailedError: If the service cannot produce a receipt
            RedactionFailedError: If the program rejects its inputs
        """
        ...

    def verify_receipt(self, receipt: bytes, expected_program_id: str) -> bytes:
        """Check ``receipt`` against ``expected_program_id``.

        Args:
            receipt: Receipt bytes produced by :meth:`prove`
            expected_program_id: Trusted program identifier

        Returns:
            Journal bytes committed inside the receipt

        Raises:
            TamperedReceiptError: If the receipt does not check out
            MalformedArtifactError: If the receipt cannot be decoded
        """
        ...
