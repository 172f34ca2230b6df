"""Tests for the Ed25519 attested-execution prover adapter."""

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from zkredact.app.adapters import AttestedExecutionProver
from zkredact.errors import (
    InvalidIndexError,
    MalformedArtifactError,
    ProvingFailedError,
    TamperedReceiptError,
)
from zkredact.redaction.journal import Journal
from zkredact.redaction.program import PROGRAM_ID, ProgramInputs, compute_program_id

OTHER_PROGRAM_ID = compute_program_id({"name": "something-else"})


@pytest.fixture
def receipt(prover: AttestedExecutionProver, scenario_content: bytes) -> bytes:
    return prover.prove(PROGRAM_ID, ProgramInputs(content=scenario_content, indices=(1, 3)))


def test_receipt_commits_to_program_journal(
    prover: AttestedExecutionProver, receipt: bytes, scenario_content: bytes
):
    journal = Journal.from_bytes(prover.verify_receipt(receipt, PROGRAM_ID))

    assert journal.redacted_indices == (1, 3)
    assert scenario_content not in receipt


def test_every_flipped_byte_is_detected(prover: AttestedExecutionProver, receipt: bytes):
    for position in range(len(receipt)):
        mutated = bytearray(receipt)
        mutated[position] ^= 0x01
        with pytest.raises(TamperedReceiptError):
            prover.verify_receipt(bytes(mutated), PROGRAM_ID)


def test_wrong_expected_program_is_rejected(prover: AttestedExecutionProver, receipt: bytes):
    with pytest.raises(TamperedReceiptError, match="expected"):
        prover.verify_receipt(receipt, OTHER_PROGRAM_ID)


def test_receipt_for_other_program_is_rejected(
    prover: AttestedExecutionProver, scenario_content: bytes
):
    foreign = prover.prove(OTHER_PROGRAM_ID, ProgramInputs(content=scenario_content))
    with pytest.raises(TamperedReceiptError):
        prover.verify_receipt(foreign, PROGRAM_ID)


def test_receipt_from_untrusted_key_is_rejected(scenario_content: bytes, receipt: bytes):
    stranger = AttestedExecutionProver(signing_key=Ed25519PrivateKey.generate())
    forged = stranger.prove(PROGRAM_ID, ProgramInputs(content=scenario_content, indices=(1, 3)))

    trusted_only = AttestedExecutionProver(
        verifying_key=Ed25519PrivateKey.generate().public_key()
    )
    with pytest.raises(TamperedReceiptError):
        trusted_only.verify_receipt(forged, PROGRAM_ID)
    with pytest.raises(TamperedReceiptError):
        trusted_only.verify_receipt(receipt, PROGRAM_ID)


@pytest.mark.parametrize("size", [0, 1, 41, 105])
def test_short_receipt_is_malformed(prover: AttestedExecutionProver, size: int):
    with pytest.raises(MalformedArtifactError):
        prover.verify_receipt(b"\x00" * size, PROGRAM_ID)


def test_verify_only_prover_cannot_prove(signing_key: Ed25519PrivateKey, receipt: bytes):
    verify_only = AttestedExecutionProver(verifying_key=signing_key.public_key())

    assert not verify_only.can_prove
    assert verify_only.verify_receipt(receipt, PROGRAM_ID)
    with pytest.raises(ProvingFailedError):
        verify_only.prove(PROGRAM_ID, ProgramInputs(content=b"x"))


def test_program_rejection_propagates_as_redaction_failure(prover: AttestedExecutionProver):
    with pytest.raises(InvalidIndexError):
        prover.prove(PROGRAM_ID, ProgramInputs(content=b"one line", indices=(4,)))


def test_invalid_program_id_fails_proving(prover: AttestedExecutionProver):
    with pytest.raises(ProvingFailedError):
        prover.prove("not-hex", ProgramInputs(content=b"x"))


def test_engine_fault_becomes_proving_failure(
    prover: AttestedExecutionProver, monkeypatch: pytest.MonkeyPatch
):
    def explode(_inputs):
        raise RuntimeError("trace buffer exhausted")

    monkeypatch.setattr("zkredact.app.adapters.attested_prover.run_program", explode)
    with pytest.raises(ProvingFailedError, match="trace buffer exhausted"):
        prover.prove(PROGRAM_ID, ProgramInputs(content=b"x"))


def test_requires_a_key():
    with pytest.raises(ValueError):
        AttestedExecutionProver()


def test_key_fingerprint_is_shared_by_signer_and_verifier(signing_key: Ed25519PrivateKey):
    signer = AttestedExecutionProver(signing_key=signing_key)
    verifier = AttestedExecutionProver(verifying_key=signing_key.public_key())
    assert signer.key_fingerprint == verifier.key_fingerprint
