"""Utilities for key management and attestation signatures."""

from __future__ import annotations

import os
import secrets
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from zkredact.utils.hashing import compute_sha256

ED25519_SIGNATURE_SIZE = 64
ED25519_PUBLIC_KEY_SIZE = 32


def _write_secure_file(path: Path, data: bytes, *, mode: int = 0o600) -> None:
    """Write ``data`` to ``path`` and restrict permissions.

    Args:
        path: Target file path
        data: Bytes to persist
        mode: File mode to apply (POSIX style)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    try:
        os.write(fd, data)
    finally:
        os.close(fd)

    try:
        os.chmod(path, mode)
    except PermissionError:
        # Windows may not support POSIX-style chmod; best effort only.
        pass


def load_or_create_hmac_key(path: Path, *, length: int = 32) -> bytes:
    """Load an existing HMAC key or generate a new random key.

    Args:
        path: Key file location
        length: Number of random bytes to generate

    Returns:
        Raw key bytes suitable for HMAC operations.
    """
    try:
        return path.read_bytes()
    except FileNotFoundError:
        key = secrets.token_bytes(length)
        _write_secure_file(path, key)
        return key


def load_or_create_signing_key(path: Path) -> Ed25519PrivateKey:
    """Load an Ed25519 private key (PKCS#8 PEM) or generate and persist one."""
    try:
        pem = path.read_bytes()
    except FileNotFoundError:
        key = Ed25519PrivateKey.generate()
        pem = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        _write_secure_file(path, pem)
        return key

    key = serialization.load_pem_private_key(pem, password=None)
    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError(f"Signing key at {path} is not an Ed25519 private key")
    return key


def load_verifying_key(path: Path) -> Ed25519PublicKey:
    """Load an Ed25519 public key from a PEM file or a raw 32-byte file."""
    data = path.read_bytes()
    if len(data) == ED25519_PUBLIC_KEY_SIZE:
        return Ed25519PublicKey.from_public_bytes(data)

    key = serialization.load_pem_public_key(data)
    if not isinstance(key, Ed25519PublicKey):
        raise ValueError(f"Verification key at {path} is not an Ed25519 public key")
    return key


def export_public_key_pem(key: Ed25519PublicKey) -> bytes:
    """Serialize ``key`` as SubjectPublicKeyInfo PEM."""
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def public_key_fingerprint(key: Ed25519PublicKey) -> str:
    """Return the SHA-256 fingerprint of the raw public key bytes."""
    raw = key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return compute_sha256(raw)


def sign_payload(key: Ed25519PrivateKey, payload: bytes) -> bytes:
    """Sign ``payload`` and return the 64-byte Ed25519 signature."""
    return key.sign(payload)


def verify_payload(key: Ed25519PublicKey, payload: bytes, signature: bytes) -> bool:
    """Return True when ``signature`` is a valid Ed25519 signature over ``payload``."""
    try:
        key.verify(signature, payload)
    except InvalidSignature:
        return False
    return True

