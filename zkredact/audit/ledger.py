"""Append-only custody ledger for proof issuance and verification.

Each line of the JSONL ledger is one :class:`AuditEntry`. Entries are chained
by ``previous_hash`` and sealed with an HMAC that also covers the previous
seal, so editing, reordering, or dropping an entry breaks verification. A
sealed ``.meta`` sidecar records the chain tip to detect truncation.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from zkredact import __version__
from zkredact.errors import LedgerIntegrityError
from zkredact.utils.crypto import load_or_create_hmac_key
from zkredact.utils.hashing import compute_sha256

GENESIS_HASH = "0" * 64
GENESIS_SIGNATURE = "0" * 64
METADATA_VERSION = 1


class AuditEntry(BaseModel):
    """Single custody record.

    ``inputs`` hold source identifiers (file paths, proof paths), ``outputs``
    hold produced artifacts or digests, and ``args`` carries the journal
    fields and outcome of the operation.
    """

    timestamp: str = Field(..., description="ISO 8601 timestamp in UTC")
    operation: str = Field(..., description="Operation name (e.g., proof_issue, proof_verify)")
    inputs: list[str] = Field(default_factory=list, description="Input paths or identifiers")
    outputs: list[str] = Field(default_factory=list, description="Output paths or digests")
    args: dict[str, Any] = Field(default_factory=dict, description="Operation details")
    versions: dict[str, str] = Field(default_factory=dict, description="Tool versions")
    previous_hash: str = Field(default=GENESIS_HASH, description="entry_hash of the prior entry")
    sequence: int | None = Field(default=None, ge=1, description="1-based position in the chain")
    entry_hash: str | None = Field(default=None, description="SHA-256 over the entry content")
    signature: str | None = Field(default=None, description="HMAC seal over the chain link")

    def compute_hash(self) -> str:
        """Return the SHA-256 of the canonical entry content (seal fields excluded)."""
        data = self.model_dump(
            mode="json",
            exclude={"entry_hash", "signature"},
            exclude_none=True,
        )
        content = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return compute_sha256(content.encode("utf-8"))

    def model_post_init(self, __context: Any) -> None:
        if self.entry_hash is None:
            self.entry_hash = self.compute_hash()


class AuditLedger:
    """Hash-chained JSONL ledger sealed with an HMAC key."""

    def __init__(self, ledger_path: Path, *, hmac_key: bytes | None = None) -> None:
        """Open (or create) the ledger at ``ledger_path``.

        Args:
            ledger_path: Path to JSONL ledger file
            hmac_key: Sealing key; defaults to a key file beside the ledger
        """
        self.ledger_path = ledger_path
        self.ledger_path.parent.mkdir(parents=True, exist_ok=True)
        self._metadata_path = ledger_path.with_suffix(".meta")
        self._hmac_key = (
            hmac_key
            if hmac_key is not None
            else load_or_create_hmac_key(ledger_path.with_suffix(".key"), length=32)
        )

        self._tip: tuple[int, str, str] | None = None

        if not self._metadata_path.exists() and not self.ledger_path.exists():
            self._write_metadata(0, None)

    def _read_entries(self) -> list[AuditEntry]:
        if not self.ledger_path.exists():
            return []

        entries: list[AuditEntry] = []
        with open(self.ledger_path, encoding="utf-8") as fh:
            for line_num, raw_line in enumerate(fh, 1):
                line = raw_line.strip()
                if not line:
                    continue
                try:
                    entries.append(AuditEntry.model_validate_json(line))
                except ValidationError as exc:
                    raise LedgerIntegrityError(
                        f"Invalid entry at line {line_num} in {self.ledger_path}: {exc}"
                    ) from exc
        return entries

    def _chain_tip(self) -> tuple[int, str, str]:
        """Return ``(sequence, entry_hash, signature)`` of the last entry.

        Loaded on first append. Opening never reads entries, so a damaged
        ledger still opens and :meth:`verify` reports the damage.
        """
        if self._tip is None:
            entries = self._read_entries()
            if entries:
                tip = entries[-1]
                self._tip = (
                    tip.sequence if tip.sequence is not None else len(entries),
                    tip.entry_hash or GENESIS_HASH,
                    tip.signature or GENESIS_SIGNATURE,
                )
            else:
                self._tip = (0, GENESIS_HASH, GENESIS_SIGNATURE)
        return self._tip

    def _seal(self, *parts: object) -> str:
        payload = "|".join(str(part) for part in parts).encode("utf-8")
        return hmac.new(self._hmac_key, payload, hashlib.sha256).hexdigest()

    def _entry_signature(self, entry: AuditEntry, previous_signature: str) -> str:
        return self._seal(
            entry.sequence or 0,
            entry.previous_hash,
            entry.entry_hash or "",
            previous_signature,
        )

    def _write_metadata(self, last_sequence: int, last_hash: str | None) -> None:
        payload = {
            "version": METADATA_VERSION,
            "last_sequence": last_sequence,
            "last_hash": last_hash,
            "hmac": self._seal(last_sequence, last_hash or GENESIS_HASH),
        }
        data = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")

        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._metadata_path.parent),
            prefix=self._metadata_path.name,
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._metadata_path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise

    def _load_metadata(self) -> dict[str, Any] | None:
        try:
            raw = self._metadata_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        try:
            data = json.loads(raw)
            expected = self._seal(
                int(data.get("last_sequence", 0)), data.get("last_hash") or GENESIS_HASH
            )
        except (ValueError, TypeError, AttributeError) as exc:
            raise LedgerIntegrityError(f"Audit metadata is unreadable: {exc}") from exc

        actual = data.get("hmac")
        if not isinstance(actual, str) or not hmac.compare_digest(expected, actual):
            raise LedgerIntegrityError("Audit metadata HMAC mismatch")
        return data

    def log(
        self,
        operation: str,
        inputs: list[str] | None = None,
        outputs: list[str] | None = None,
        args: dict[str, Any] | None = None,
        versions: dict[str, str] | None = None,
    ) -> AuditEntry:
        """Append a sealed entry and return it.

        Raises:
            LedgerIntegrityError: If the existing entries cannot be read back
        """
        merged_versions = {"zkredact": __version__, **(versions or {})}
        tip_sequence, tip_hash, tip_signature = self._chain_tip()
        sequence = tip_sequence + 1

        entry = AuditEntry(
            timestamp=datetime.now(UTC).isoformat(),
            operation=operation,
            inputs=inputs or [],
            outputs=outputs or [],
            args=args or {},
            versions=merged_versions,
            previous_hash=tip_hash,
            sequence=sequence,
        )
        entry.entry_hash = entry.compute_hash()
        entry.signature = self._entry_signature(entry, tip_signature)

        with open(self.ledger_path, "a", encoding="utf-8") as fh:
            fh.write(entry.model_dump_json() + "\n")
            fh.flush()
            os.fsync(fh.fileno())

        self._tip = (sequence, entry.entry_hash, entry.signature)
        self._write_metadata(sequence, entry.entry_hash)

        return entry

    def read_all(self) -> list[AuditEntry]:
        """Return all entries in chain order."""
        return self._read_entries()

    def verify(self) -> tuple[bool, str | None]:
        """Check the hash chain, seals, and tip metadata.

        Returns:
            Tuple of (is_valid, error_message). error_message is None if valid.
        """
        try:
            metadata = self._load_metadata()
            entries = self._read_entries()
        except LedgerIntegrityError as exc:
            return False, f"Audit ledger integrity failure: {exc}"

        expected_tip = int(metadata.get("last_sequence", 0)) if metadata else 0
        if not entries:
            if expected_tip > 0:
                return False, "Audit ledger appears truncated (metadata expects entries)."
            return True, None

        previous_hash = GENESIS_HASH
        previous_signature = GENESIS_SIGNATURE

        for position, entry in enumerate(entries, 1):
            if entry.sequence != position:
                return False, f"Entry {position} sequence mismatch (got {entry.sequence})."
            if entry.entry_hash is None or entry.signature is None:
                return False, f"Entry {position} is missing its hash or seal."
            if not hmac.compare_digest(entry.entry_hash, entry.compute_hash()):
                return False, f"Entry {position} content does not match its hash."
            if entry.previous_hash != previous_hash:
                return False, f"Entry {position} breaks the hash chain."
            if not hmac.compare_digest(
                entry.signature, self._entry_signature(entry, previous_signature)
            ):
                return False, f"Entry {position} has an invalid seal; ledger may have been tampered."

            previous_hash = entry.entry_hash
            previous_signature = entry.signature

        if metadata is None:
            return False, "Audit metadata file is missing."
        if expected_tip != entries[-1].sequence or metadata.get("last_hash") != previous_hash:
            return False, "Audit metadata does not match the ledger tip; possible truncation."

        return True, None

    def get_by_operation(self, operation: str) -> list[AuditEntry]:
        """Return entries recorded for ``operation``."""
        return [entry for entry in self.read_all() if entry.operation == operation]

    def get_by_input(self, identifier: str) -> list[AuditEntry]:
        """Return entries that consumed ``identifier``."""
        return [entry for entry in self.read_all() if identifier in entry.inputs]

    def get_by_output(self, identifier: str) -> list[AuditEntry]:
        """Return entries that produced ``identifier``."""
        return [entry for entry in self.read_all() if identifier in entry.outputs]
