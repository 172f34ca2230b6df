"""Utility modules for common operations."""

from zkredact.utils.hashing import compute_sha256
from zkredact.utils.schema import SchemaStamp, build_schema_stamp

__all__ = [
    "compute_sha256",
    "SchemaStamp",
    "build_schema_stamp",
]
