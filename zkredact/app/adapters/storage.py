"""Filesystem-backed storage port implementation."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from zkredact.app.ports import StoragePort


class FileSystemStorageAdapter(StoragePort):
    """Adapter that performs direct filesystem operations."""

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def write_bytes(self, path: Path, content: bytes) -> None:
        """Write ``content`` atomically via a temporary file and ``os.replace``."""
        destination = Path(path)
        destination.parent.mkdir(parents=True, exist_ok=True)

        fd: int | None = None
        tmp_path: str | None = None

        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(destination.parent),
                prefix=destination.name,
                suffix=".tmp",
            )

            with os.fdopen(fd, "wb") as handle:
                fd = None  # Ownership transferred to file object
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())

            os.replace(tmp_path, destination)
            tmp_path = None
        finally:
            if fd is not None:
                os.close(fd)
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass
