"""CLI integration tests."""

from __future__ import annotations

import json
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from typer.testing import CliRunner

from zkredact import __version__
from zkredact.cli import ExitCode, app
from zkredact.proof import ProofIssuer, write_proof
from zkredact.utils.crypto import export_public_key_pem

runner = CliRunner()


def _prove(source: Path, *extra: str):
    return runner.invoke(app, ["prove", str(source), "--redact", "1,3", *extra])


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_prove_prints_redaction_and_writes_proof(sample_text_file: Path, override_settings) -> None:
    result = _prove(sample_text_file)

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[:5] == ["Public", "***REDACTED***", "Public", "***REDACTED***", "Public"]
    assert "✓ Proof generated and verified!" in result.stdout
    assert "- Full file SHA-256 hash:" in result.stdout
    assert "- Redacted line indices: [1, 3]" in result.stdout
    assert "SECRET" not in result.stdout
    assert sample_text_file.with_name("report.txt.zkproof").exists()

    audit_lines = override_settings.get_audit_path().read_text().splitlines()
    assert json.loads(audit_lines[-1])["operation"] == "proof_issue"


def test_prove_json_output(sample_text_file: Path, override_settings, temp_dir: Path) -> None:
    proof_path = temp_dir / "out" / "custom.zkproof"
    result = _prove(sample_text_file, "--json", "--stats", "--proof", str(proof_path))

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["schema_id"] == "proof_issue"
    assert payload["producer"].startswith("zkredact-")
    assert payload["redacted_indices"] == [1, 3]
    assert payload["line_count"] == 5
    assert payload["proof"] == str(proof_path.resolve())
    assert payload["stats"]["prove_seconds"] >= 0
    assert proof_path.exists()


def test_prove_out_of_range_index_fails_cleanly(sample_text_file: Path, override_settings) -> None:
    result = runner.invoke(app, ["prove", str(sample_text_file), "--redact", "1,10"])

    assert result.exit_code == ExitCode.ERROR
    assert "Invalid redaction index" in result.output
    assert not sample_text_file.with_name("report.txt.zkproof").exists()


def test_prove_rejects_non_numeric_indices(sample_text_file: Path, override_settings) -> None:
    result = runner.invoke(app, ["prove", str(sample_text_file), "--redact", "one"])

    assert result.exit_code == 2
    assert not sample_text_file.with_name("report.txt.zkproof").exists()


def test_verify_succeeds(sample_text_file: Path, override_settings) -> None:
    assert _prove(sample_text_file, "--quiet").exit_code == 0
    proof_path = sample_text_file.with_name("report.txt.zkproof")

    result = runner.invoke(app, ["verify", str(proof_path)])

    assert result.exit_code == ExitCode.OK, result.output
    assert "✓ Proof verified successfully!" in result.stdout
    assert "- Redacted line indices: [1, 3]" in result.stdout


def test_verify_tampered_proof_exits_one(sample_text_file: Path, override_settings) -> None:
    _prove(sample_text_file, "--quiet")
    proof_path = sample_text_file.with_name("report.txt.zkproof")
    data = bytearray(proof_path.read_bytes())
    data[-10] ^= 0x55
    proof_path.write_bytes(bytes(data))

    result = runner.invoke(app, ["verify", str(proof_path)])

    assert result.exit_code == ExitCode.VERIFICATION_FAILED
    assert "Verification failed" in result.output


def test_verify_malformed_proof_exits_two(temp_dir: Path, override_settings) -> None:
    override_settings.get_signing_key()
    bogus = temp_dir / "bogus.zkproof"
    bogus.write_bytes(b"ZKPROOF\x00garbage")

    result = runner.invoke(app, ["verify", str(bogus)])

    assert result.exit_code == ExitCode.ERROR
    assert "Malformed proof" in result.output


def test_verify_json_reports_each_proof(
    sample_text_file: Path, temp_dir: Path, override_settings
) -> None:
    _prove(sample_text_file, "--quiet")
    good = sample_text_file.with_name("report.txt.zkproof")
    missing = temp_dir / "missing.zkproof"

    result = runner.invoke(app, ["verify", str(good), str(missing), "--json", "--stats"])

    assert result.exit_code == ExitCode.ERROR
    payload = json.loads(result.stdout)
    assert payload["schema_id"] == "proof_verify"
    assert payload["summary"] == {"total": 2, "verified": 1, "failed": 1}
    first, second = payload["proofs"]
    assert first["status"] == "verified"
    assert first["redacted_indices"] == [1, 3]
    assert "verify_seconds" in first["stats"]
    assert second["status"] == "error"


def test_verify_redacted_file_binding(
    sample_text_file: Path, temp_dir: Path, override_settings
) -> None:
    published = temp_dir / "published.txt"
    _prove(sample_text_file, "--quiet", "--output", str(published))
    proof_path = sample_text_file.with_name("report.txt.zkproof")

    ok = runner.invoke(app, ["verify", str(proof_path), "--redacted", str(published)])
    assert ok.exit_code == ExitCode.OK, ok.output
    assert "Redacted file matches" in ok.stdout

    published.write_bytes(b"something else entirely")
    mismatch = runner.invoke(app, ["verify", str(proof_path), "--redacted", str(published)])
    assert mismatch.exit_code == ExitCode.VERIFICATION_FAILED
    assert "does not match" in mismatch.output


def test_verify_with_untrusted_key_fails(
    sample_text_file: Path, temp_dir: Path, override_settings
) -> None:
    _prove(sample_text_file, "--quiet")
    proof_path = sample_text_file.with_name("report.txt.zkproof")

    stranger = temp_dir / "stranger.pem"
    stranger.write_bytes(export_public_key_pem(Ed25519PrivateKey.generate().public_key()))
    override_settings.trusted_key_path = stranger

    result = runner.invoke(app, ["verify", str(proof_path)])
    assert result.exit_code == ExitCode.VERIFICATION_FAILED


def test_exported_key_verifies_proofs(
    sample_text_file: Path, temp_dir: Path, override_settings
) -> None:
    _prove(sample_text_file, "--quiet")
    exported = temp_dir / "keys" / "receipt.pub.pem"

    result = runner.invoke(app, ["key", "export", str(exported)])
    assert result.exit_code == 0, result.output
    assert exported.read_bytes().startswith(b"-----BEGIN PUBLIC KEY-----")

    override_settings.trusted_key_path = exported
    shown = runner.invoke(app, ["key", "show"])
    assert str(exported) in shown.stdout

    verified = runner.invoke(
        app, ["verify", str(sample_text_file.with_name("report.txt.zkproof"))]
    )
    assert verified.exit_code == ExitCode.OK, verified.output


def test_inspect_json(sample_text_file: Path, override_settings) -> None:
    _prove(sample_text_file, "--quiet")
    proof_path = sample_text_file.with_name("report.txt.zkproof")

    result = runner.invoke(app, ["inspect", str(proof_path), "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["verified"] is False
    assert payload["redacted_indices"] == [1, 3]
    assert len(payload["program_id"]) == 64


def test_audit_show_and_verify(sample_text_file: Path, override_settings) -> None:
    _prove(sample_text_file, "--quiet")
    runner.invoke(app, ["verify", str(sample_text_file.with_name("report.txt.zkproof"))])

    shown = runner.invoke(app, ["audit", "show", "--json"])
    assert shown.exit_code == 0, shown.output
    operations = [entry["operation"] for entry in json.loads(shown.stdout)["entries"]]
    assert operations == ["proof_issue", "proof_verify"]

    filtered = runner.invoke(app, ["audit", "show", "--operation", "proof_verify"])
    assert "proof_verify" in filtered.stdout
    assert "proof_issue" not in filtered.stdout

    assert runner.invoke(app, ["audit", "verify"]).exit_code == 0

    audit_path = override_settings.get_audit_path()
    lines = audit_path.read_text(encoding="utf-8").splitlines(keepends=True)
    audit_path.write_text(lines[1], encoding="utf-8")

    tampered = runner.invoke(app, ["audit", "verify"])
    assert tampered.exit_code == ExitCode.VERIFICATION_FAILED


def test_corrupt_audit_ledger_is_reported(sample_text_file: Path, override_settings) -> None:
    _prove(sample_text_file, "--quiet")
    with open(override_settings.get_audit_path(), "a", encoding="utf-8") as fh:
        fh.write("{not json\n")

    result = runner.invoke(app, ["audit", "verify"])

    assert result.exit_code == ExitCode.VERIFICATION_FAILED
    assert isinstance(result.exception, SystemExit)
    assert "Invalid entry at line 2" in result.output

    shown = runner.invoke(app, ["audit", "show"])
    assert shown.exit_code == ExitCode.VERIFICATION_FAILED
    assert isinstance(shown.exception, SystemExit)


def test_corrupt_audit_ledger_does_not_block_verification(
    sample_text_file: Path, override_settings
) -> None:
    _prove(sample_text_file, "--quiet")
    with open(override_settings.get_audit_path(), "a", encoding="utf-8") as fh:
        fh.write("{not json\n")

    result = runner.invoke(app, ["verify", str(sample_text_file.with_name("report.txt.zkproof"))])

    assert result.exit_code == ExitCode.OK, result.output
    assert "✓ Proof verified successfully!" in result.stdout


def test_verify_without_trusted_key_fails_cleanly(
    issuer: ProofIssuer, scenario_content: bytes, temp_dir: Path, override_settings
) -> None:
    foreign = write_proof(
        temp_dir / "foreign.txt.zkproof", issuer.issue(scenario_content, [1]).artifact
    )

    result = runner.invoke(app, ["verify", str(foreign)])

    assert result.exit_code == ExitCode.ERROR
    assert isinstance(result.exception, SystemExit)
    assert "ZKREDACT_TRUSTED_KEY_PATH" in result.output
    assert not override_settings.get_signing_key_path().exists()

    inspected = runner.invoke(app, ["inspect", str(foreign), "--json"])
    assert inspected.exit_code == 0, inspected.output
    assert not override_settings.get_signing_key_path().exists()
