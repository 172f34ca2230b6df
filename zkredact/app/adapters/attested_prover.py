"""Attested-execution prover backed by Ed25519 receipt sealing.

The program runs in-process and its journal is sealed together with the
program identifier under an Ed25519 signature. A verifier holding the pinned
public key can confirm that the sealed journal was produced by the named
program without seeing the original content.

Receipt layout (big-endian)::

    b"ZKRR" | u16 version | program id (32) | u32 journal length | journal | signature (64)

The signature covers every byte before it, so flipping any byte of a receipt
is detected before any field is trusted.
"""

from __future__ import annotations

import logging
import struct
import time

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from zkredact.errors import (
    MalformedArtifactError,
    ProvingFailedError,
    RedactionFailedError,
    TamperedReceiptError,
)
from zkredact.redaction.program import ProgramInputs, run_program
from zkredact.utils.crypto import (
    ED25519_SIGNATURE_SIZE,
    public_key_fingerprint,
    sign_payload,
    verify_payload,
)
from zkredact.utils.hashing import DIGEST_SIZE

logger = logging.getLogger(__name__)

RECEIPT_MAGIC = b"ZKRR"
RECEIPT_VERSION = 1

_HEADER = struct.Struct(">4sH32sI")


class AttestedExecutionProver:
    """Prover/verifier service that seals program output with Ed25519.

    Instances built with only a public key can verify but not prove.
    """

    backend = "attested-ed25519"

    def __init__(
        self,
        *,
        signing_key: Ed25519PrivateKey | None = None,
        verifying_key: Ed25519PublicKey | None = None,
    ) -> None:
        if signing_key is None and verifying_key is None:
            raise ValueError("AttestedExecutionProver requires a signing or verifying key")

        self._signing_key = signing_key
        self._verifying_key = (
            verifying_key if verifying_key is not None else signing_key.public_key()  # type: ignore[union-attr]
        )

    @property
    def key_fingerprint(self) -> str:
        """SHA-256 fingerprint of the trusted verification key."""
        return public_key_fingerprint(self._verifying_key)

    @property
    def can_prove(self) -> bool:
        return self._signing_key is not None

    def prove(self, program_id: str, inputs: ProgramInputs) -> bytes:
        if self._signing_key is None:
            raise ProvingFailedError("Prover has no signing key; it can only verify receipts")

        program_digest = _program_digest(program_id, error=ProvingFailedError)

        started = time.perf_counter()
        try:
            journal = run_program(inputs)
        except RedactionFailedError:
            raise
        except MemoryError as exc:
            raise ProvingFailedError("Prover ran out of memory while executing program") from exc
        except Exception as exc:  # noqa: BLE001 - any engine fault is a proving failure
            raise ProvingFailedError(f"Program execution failed: {exc}") from exc

        body = _HEADER.pack(RECEIPT_MAGIC, RECEIPT_VERSION, program_digest, len(journal)) + journal
        receipt = body + sign_payload(self._signing_key, body)

        logger.debug(
            "Sealed receipt for program %s (%d journal bytes) in %.3fs",
            program_id[:16],
            len(journal),
            time.perf_counter() - started,
        )
        return receipt

    def verify_receipt(self, receipt: bytes, expected_program_id: str) -> bytes:
        expected_digest = _program_digest(expected_program_id, error=TamperedReceiptError)

        if len(receipt) < _HEADER.size + ED25519_SIGNATURE_SIZE:
            raise MalformedArtifactError(
                f"Receipt is truncated ({len(receipt)} bytes, need at least "
                f"{_HEADER.size + ED25519_SIGNATURE_SIZE})"
            )

        body = receipt[:-ED25519_SIGNATURE_SIZE]
        signature = receipt[-ED25519_SIGNATURE_SIZE:]
        if not verify_payload(self._verifying_key, body, signature):
            raise TamperedReceiptError(
                "Receipt signature is invalid for the trusted key "
                f"{self.key_fingerprint[:16]}; receipt was modified or forged"
            )

        magic, version, program_digest, journal_length = _HEADER.unpack_from(body)
        if magic != RECEIPT_MAGIC:
            raise MalformedArtifactError("Receipt has an unknown magic header")
        if version != RECEIPT_VERSION:
            raise MalformedArtifactError(f"Unsupported receipt version {version}")
        if _HEADER.size + journal_length != len(body):
            raise MalformedArtifactError("Receipt journal length does not match payload size")

        if program_digest != expected_digest:
            raise TamperedReceiptError(
                f"Receipt was produced by program {program_digest.hex()}, "
                f"expected {expected_program_id}"
            )

        return bytes(body[_HEADER.size :])


def _program_digest(program_id: str, *, error: type[Exception]) -> bytes:
    try:
        digest = bytes.fromhex(program_id)
    except ValueError as exc:
        raise error(f"Program id {program_id!r} is not hex encoded") from exc
    if len(digest) != DIGEST_SIZE:
        raise error(f"Program id must be {DIGEST_SIZE} bytes, got {len(digest)}")
    return digest
