"""Proof artifacts, the ``.zkproof`` codec, issuance and verification."""

from zkredact.proof.artifact import ProofArtifact
from zkredact.proof.codec import decode, encode, read_proof, write_proof
from zkredact.proof.issuer import IssuedProof, ProofIssuer, ProofTimings
from zkredact.proof.verifier import ProofVerifier, VerificationOutcome

__all__ = [
    "IssuedProof",
    "ProofArtifact",
    "ProofIssuer",
    "ProofTimings",
    "ProofVerifier",
    "VerificationOutcome",
    "decode",
    "encode",
    "read_proof",
    "write_proof",
]
