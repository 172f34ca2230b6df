"""Pytest configuration and fixtures."""

from collections.abc import Generator
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from zkredact.app.adapters import AttestedExecutionProver
from zkredact.config import Settings
from zkredact.proof import ProofIssuer, ProofVerifier

SCENARIO_LINES = ["Public", "SECRET", "Public", "CONFIDENTIAL", "Public"]


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Per-test scratch directory."""
    return tmp_path


@pytest.fixture
def scenario_content() -> bytes:
    """Five-line document with two sensitive lines (indices 1 and 3)."""
    return "\n".join(SCENARIO_LINES).encode("utf-8")


@pytest.fixture
def sample_text_file(temp_dir: Path, scenario_content: bytes) -> Path:
    """Write the scenario document to disk."""
    file_path = temp_dir / "report.txt"
    file_path.write_bytes(scenario_content)
    return file_path


@pytest.fixture(scope="session")
def signing_key() -> Ed25519PrivateKey:
    return Ed25519PrivateKey.generate()


@pytest.fixture
def prover(signing_key: Ed25519PrivateKey) -> AttestedExecutionProver:
    return AttestedExecutionProver(signing_key=signing_key)


@pytest.fixture
def issuer(prover: AttestedExecutionProver) -> ProofIssuer:
    return ProofIssuer(prover)


@pytest.fixture
def verifier(prover: AttestedExecutionProver) -> ProofVerifier:
    return ProofVerifier(prover)


@pytest.fixture
def override_settings(temp_dir: Path) -> Generator[Settings, None, None]:
    """Provide isolated zkredact settings scoped to tests."""

    import zkredact.config as config_module

    original_settings = getattr(config_module, "_settings", None)

    data_dir = temp_dir / "appdata"
    config_dir = temp_dir / "appconfig"
    data_dir.mkdir(parents=True, exist_ok=True)
    config_dir.mkdir(parents=True, exist_ok=True)

    settings = config_module.Settings(
        data_dir=data_dir,
        config_dir=config_dir,
        audit_enabled=True,
    )

    config_module._settings = settings

    try:
        yield settings
    finally:
        config_module._settings = original_settings
