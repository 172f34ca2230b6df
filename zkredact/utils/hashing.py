"""Hashing utilities for deterministic content hashing."""

import hashlib

DIGEST_SIZE = 32


def compute_sha256(content: bytes) -> str:
    """Compute SHA-256 hash of content.

    Args:
        content: Bytes to hash

    Returns:
        Hexadecimal hash string
    """
    return hashlib.sha256(content).hexdigest()
