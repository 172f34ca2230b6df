"""Configuration management with Pydantic and XDG base directory support."""

import os
import sys
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from pydantic import Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zkredact.errors import TrustedKeyMissingError
from zkredact.utils.crypto import (
    load_or_create_hmac_key,
    load_or_create_signing_key,
    load_verifying_key,
)

DEFAULT_PROOF_SUFFIX = ".zkproof"


def get_xdg_data_home() -> Path:
    """Get XDG_DATA_HOME directory, defaulting to ~/.local/share."""
    xdg_data = os.getenv("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data)
    return Path.home() / ".local" / "share"


def get_xdg_config_home() -> Path:
    """Get XDG_CONFIG_HOME directory, defaulting to ~/.config."""
    xdg_config = os.getenv("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


class Settings(BaseSettings):
    """zkredact configuration settings.

    Precedence: CLI flag > environment variable > config file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="ZKREDACT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Data directories
    data_dir: Path | None = Field(
        default=None,
        description="Override data directory (defaults to XDG_DATA_HOME/zkredact)",
    )

    config_dir: Path | None = Field(
        default=None,
        description="Override config directory (defaults to XDG_CONFIG_HOME/zkredact)",
    )

    # Audit settings
    audit_enabled: bool = Field(
        default=True,
        description="Record proof issuance and verification in the append-only audit ledger",
    )

    audit_hmac_key_path: Path | None = Field(
        default=None,
        description="Location of the audit ledger HMAC key for tamper detection",
    )

    # Attestation keys
    signing_key_path: Path | None = Field(
        default=None,
        description="Ed25519 private key used to seal receipts (auto-generated if missing)",
    )

    trusted_key_path: Path | None = Field(
        default=None,
        description=(
            "Ed25519 public key trusted when verifying receipts. Defaults to the public "
            "half of the local signing key."
        ),
    )

    # Proof files
    proof_suffix: str = Field(
        default=DEFAULT_PROOF_SUFFIX,
        description="File suffix appended to the input path for generated proofs",
    )

    _resolved_data_dir: Path | None = PrivateAttr(default=None)
    _data_dir_warning_emitted: bool = PrivateAttr(default=False)

    @field_validator("proof_suffix")
    @classmethod
    def _validate_suffix(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError("proof_suffix must start with '.' and name an extension")
        return value

    def get_data_dir(self) -> Path:
        """Get the data directory, creating if necessary."""
        if self._resolved_data_dir is not None:
            return self._resolved_data_dir

        if self.data_dir:
            data_dir = self.data_dir
            data_dir.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = data_dir
            return data_dir

        primary_dir = get_xdg_data_home() / "zkredact"
        try:
            primary_dir.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = primary_dir
            return primary_dir
        except PermissionError as exc:
            fallback = Path.cwd() / ".zkredact-data"
            fallback.mkdir(parents=True, exist_ok=True)
            self._resolved_data_dir = fallback
            if not self._data_dir_warning_emitted:
                print(
                    f"Warning: cannot create data directory at {primary_dir} ({exc}). "
                    f"Using local '{fallback}' instead. Pass --data-dir to override.",
                    file=sys.stderr,
                )
                self._data_dir_warning_emitted = True
            return fallback

    def get_config_dir(self) -> Path:
        """Get the config directory, creating if necessary."""
        if self.config_dir:
            config_dir = self.config_dir
        else:
            config_dir = get_xdg_config_home() / "zkredact"

        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir

    def get_audit_path(self) -> Path:
        """Get path to audit ledger file."""
        return self.get_data_dir() / "audit.jsonl"

    def get_audit_hmac_key(self) -> bytes:
        """Return the HMAC key used to seal audit ledger metadata."""
        key_path = (
            self.audit_hmac_key_path
            if self.audit_hmac_key_path is not None
            else self.get_config_dir() / "audit-ledger.key"
        )
        return load_or_create_hmac_key(key_path, length=32)

    def get_signing_key_path(self) -> Path:
        """Return the location of the receipt signing key."""
        if self.signing_key_path is not None:
            return self.signing_key_path
        return self.get_config_dir() / "receipt-signing.pem"

    def get_signing_key(self) -> Ed25519PrivateKey:
        """Return the Ed25519 key that seals receipts, creating it on first use."""
        return load_or_create_signing_key(self.get_signing_key_path())

    def get_trusted_key(self, *, create_signing_key: bool = True) -> Ed25519PublicKey:
        """Return the public key trusted for receipt verification.

        An explicitly configured ``trusted_key_path`` always wins; otherwise the
        public half of the local signing key is trusted.

        Args:
            create_signing_key: Generate the local signing key when it is missing.
                Verifiers pass False so they never mint a key of their own.

        Raises:
            TrustedKeyMissingError: If no key is configured and creation is disabled
        """
        if self.trusted_key_path is not None:
            return load_verifying_key(self.trusted_key_path)

        signing_key_path = self.get_signing_key_path()
        if not create_signing_key and not signing_key_path.exists():
            raise TrustedKeyMissingError(
                "No trusted verification key is configured. Set ZKREDACT_TRUSTED_KEY_PATH "
                "to the public key exported by the issuer (`zkredact key export`)."
            )
        return self.get_signing_key().public_key()

    def proof_path_for(self, source: Path) -> Path:
        """Return the default proof location for ``source``."""
        return source.with_name(source.name + self.proof_suffix)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings
