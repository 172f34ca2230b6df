"""Concrete adapters wiring application ports to built-in implementations."""

from __future__ import annotations

from .attested_prover import AttestedExecutionProver
from .storage import FileSystemStorageAdapter

__all__ = ["AttestedExecutionProver", "FileSystemStorageAdapter"]
