"""Storage port interface for filesystem operations."""

from pathlib import Path
from typing import Protocol


class StoragePort(Protocol):
    """Port interface for storage operations.

    Abstracts filesystem I/O to enable testing and alternative backends.

    Side effects: Reads/writes files (offline).
    """

    def read_bytes(self, path: Path) -> bytes:
        """Read a file as raw bytes.

        Args:
            path: File path

        Returns:
            File contents
        """
        ...

    def write_bytes(self, path: Path, content: bytes) -> None:
        """Write raw bytes, replacing any existing file.

        Args:
            path: File path
            content: Content to write
        """
        ...
