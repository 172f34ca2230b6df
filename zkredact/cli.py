"""zkredact CLI application with Typer."""

import logging
from enum import IntEnum
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer

from zkredact import __version__
from zkredact.bootstrap import bootstrap_application, create_audit_service
from zkredact.config import get_settings, set_settings
from zkredact.errors import (
    InvalidIndexError,
    LedgerIntegrityError,
    MalformedArtifactError,
    ProvingFailedError,
    RedactionFailedError,
    TamperedReceiptError,
    TrustedKeyMissingError,
)
from zkredact.proof import read_proof
from zkredact.redaction.engine import REDACTION_MARKER, parse_index_list, split_lines
from zkredact.utils.cli_output import json_response
from zkredact.utils.crypto import export_public_key_pem, public_key_fingerprint

app = typer.Typer(
    name="zkredact",
    help="Redact lines from a text file and prove the redaction without revealing the original",
    add_completion=True,
    no_args_is_help=True,
)
key_app = typer.Typer(help="Attestation key management")
app.add_typer(key_app, name="key")
audit_app = typer.Typer(help="Audit ledger management")
app.add_typer(audit_app, name="audit")


class ExitCode(IntEnum):
    """Process exit codes."""

    OK = 0
    VERIFICATION_FAILED = 1
    ERROR = 2


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"zkredact version {__version__}")
        raise typer.Exit()


def _fail(message: str, code: ExitCode) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=int(code))


def _display_line(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Override data directory"),
    ] = None,
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", help="Override config directory (keys live here)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """zkredact - Verifiable line redaction with portable proofs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = get_settings()
    if data_dir:
        settings.data_dir = data_dir
    if config_dir:
        settings.config_dir = config_dir
    set_settings(settings)


@app.command("prove")
def prove(
    input_path: Annotated[
        Path,
        typer.Argument(help="Text file to redact", exists=True, dir_okay=False, resolve_path=True),
    ],
    redact_lines: Annotated[
        str | None,
        typer.Option("--redact", "-r", help="Comma-separated 0-based line indices (e.g. 1,3)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Also write the redacted file here"),
    ] = None,
    proof_path: Annotated[
        Path | None,
        typer.Option("--proof", "-p", help="Proof destination (defaults to <file>.zkproof)"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output JSON report to stdout"),
    ] = False,
    stats: Annotated[
        bool,
        typer.Option("--stats", help="Report proof generation time"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Do not print the redacted content"),
    ] = False,
) -> None:
    """Redact lines, print the result, and write a redaction proof."""
    try:
        indices = parse_index_list(redact_lines)
    except InvalidIndexError as exc:
        raise typer.BadParameter(str(exc), param_hint="--redact") from exc

    container = bootstrap_application()
    try:
        report = container.proof_service.issue(
            input_path,
            indices,
            proof_path=proof_path,
            redacted_output=output,
        )
    except InvalidIndexError as exc:
        _fail(f"Invalid redaction index: {exc}", ExitCode.ERROR)
    except RedactionFailedError as exc:
        _fail(f"Redaction failed: {exc}", ExitCode.ERROR)
    except ProvingFailedError as exc:
        _fail(f"Proof generation failed: {exc}", ExitCode.ERROR)
    except LedgerIntegrityError as exc:
        _fail(f"Proof written but the custody record failed: {exc}", ExitCode.ERROR)

    journal = report.journal

    if json_output:
        payload: dict[str, Any] = {
            "file": str(report.source),
            "proof": str(report.proof_path),
            "redacted_output": str(report.redacted_output) if report.redacted_output else None,
            "line_count": report.line_count,
            "program_id": report.artifact.program_id,
            "backend": container.prover.backend,
            **journal.summary(),
        }
        if stats:
            payload["stats"] = {"prove_seconds": report.timings.prove_seconds}
        typer.echo(json_response("proof_issue", 1, **payload))
        return

    if not quiet:
        redacted_set = set(journal.redacted_indices)
        for position, line in enumerate(split_lines(report.redacted_content).lines):
            if position in redacted_set:
                typer.secho(_display_line(REDACTION_MARKER), fg=typer.colors.RED)
            else:
                typer.secho(_display_line(line), fg=typer.colors.GREEN)
        typer.echo()

    typer.secho("✓ Proof generated and verified!", fg=typer.colors.GREEN)
    typer.echo(f"- Full file SHA-256 hash: {journal.original_hash}")
    typer.echo(f"- Redacted file SHA-256 hash: {journal.redacted_hash}")
    typer.echo(f"- Redacted line indices: {list(journal.redacted_indices)}")
    typer.echo(f"Proof saved to: {report.proof_path}")
    if report.redacted_output is not None:
        typer.echo(f"Redacted file saved to: {report.redacted_output}")
    if stats and report.timings.prove_seconds is not None:
        typer.echo(f"Proof generation time: {report.timings.prove_seconds:.3f}s")


@app.command("verify")
def verify(
    proof_paths: Annotated[
        list[Path],
        typer.Argument(help="Proof file(s) to verify", resolve_path=True),
    ],
    redacted: Annotated[
        Path | None,
        typer.Option(
            "--redacted",
            help="Published redacted file to check against the proof (single proof only)",
        ),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail when the companion journal differs from the receipt"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output JSON report to stdout"),
    ] = False,
    stats: Annotated[
        bool,
        typer.Option("--stats", help="Report verification time"),
    ] = False,
) -> None:
    """Verify redaction proofs without access to the original file."""
    if redacted is not None and len(proof_paths) != 1:
        raise typer.BadParameter("--redacted requires exactly one proof", param_hint="--redacted")

    try:
        container = bootstrap_application(verify_only=True)
    except TrustedKeyMissingError as exc:
        _fail(str(exc), ExitCode.ERROR)
    service = container.proof_service.with_strict(strict)

    results: list[dict[str, Any]] = []
    worst = ExitCode.OK

    for proof_path in proof_paths:
        entry: dict[str, Any] = {"proof": str(proof_path)}
        try:
            report = service.verify(proof_path, redacted_file=redacted)
        except FileNotFoundError as exc:
            entry.update(valid=False, status="error", error=str(exc))
            worst = max(worst, ExitCode.ERROR)
        except MalformedArtifactError as exc:
            entry.update(valid=False, status="malformed", error=str(exc))
            worst = max(worst, ExitCode.ERROR)
        except TamperedReceiptError as exc:
            entry.update(valid=False, status="tampered", error=str(exc))
            worst = max(worst, ExitCode.VERIFICATION_FAILED)
        else:
            entry.update(
                valid=report.passed,
                status="verified" if report.passed else "redacted_mismatch",
                program_id=report.artifact.program_id,
                warnings=report.warnings,
                **report.journal.summary(),
            )
            if report.redacted_file is not None:
                entry["redacted_file"] = str(report.redacted_file)
                entry["redacted_file_matches"] = report.redacted_file_matches
            if stats:
                entry["stats"] = {"verify_seconds": report.timings.verify_seconds}
            if not report.passed:
                worst = max(worst, ExitCode.VERIFICATION_FAILED)
        results.append(entry)

    if json_output:
        typer.echo(
            json_response(
                "proof_verify",
                1,
                summary={
                    "total": len(results),
                    "verified": sum(1 for r in results if r["valid"]),
                    "failed": sum(1 for r in results if not r["valid"]),
                },
                proofs=results,
            )
        )
        raise typer.Exit(code=int(worst))

    for entry in results:
        name = Path(entry["proof"]).name
        if entry["valid"]:
            typer.secho(f"✓ Proof verified successfully! ({name})", fg=typer.colors.GREEN)
            typer.echo(f"- Full file SHA-256 hash: {entry['original_hash']}")
            typer.echo(f"- Redacted file SHA-256 hash: {entry['redacted_hash']}")
            typer.echo(f"- Redacted line indices: {entry['redacted_indices']}")
            if entry.get("redacted_file_matches"):
                typer.echo(f"- Redacted file matches: {entry['redacted_file']}")
            for warning in entry.get("warnings", []):
                typer.secho(f"  Warning: {warning}", fg=typer.colors.YELLOW)
            if stats and entry.get("stats"):
                typer.echo(f"Verification time: {entry['stats']['verify_seconds']:.3f}s")
        elif entry["status"] == "redacted_mismatch":
            typer.secho(
                f"✗ {name}: proof is valid but {entry['redacted_file']} does not match "
                f"the committed redacted hash {entry['redacted_hash']}",
                fg=typer.colors.RED,
                err=True,
            )
        else:
            label = {"tampered": "Verification failed", "malformed": "Malformed proof"}.get(
                entry["status"], "Error"
            )
            typer.secho(f"✗ {name}: {label}: {entry['error']}", fg=typer.colors.RED, err=True)

    raise typer.Exit(code=int(worst))


@app.command("inspect")
def inspect(
    proof_path: Annotated[
        Path,
        typer.Argument(help="Proof file to inspect", exists=True, dir_okay=False, resolve_path=True),
    ],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show the unauthenticated fields of a proof without verifying it."""
    try:
        artifact = read_proof(proof_path)
    except MalformedArtifactError as exc:
        _fail(f"Malformed proof: {exc}", ExitCode.ERROR)

    summary = artifact.summary()
    if json_output:
        typer.echo(
            json_response("proof_inspect", 1, proof=str(proof_path), verified=False, **summary)
        )
        return

    typer.secho(
        "Unverified proof contents (run `zkredact verify` to check)", fg=typer.colors.YELLOW
    )
    for key, value in summary.items():
        typer.echo(f"- {key}: {value}")


@key_app.command("show")
def key_show() -> None:
    """Show the fingerprint of the trusted verification key."""
    settings = get_settings()
    try:
        key = settings.get_trusted_key(create_signing_key=False)
    except TrustedKeyMissingError as exc:
        _fail(str(exc), ExitCode.ERROR)
    typer.echo(f"Trusted key fingerprint: {public_key_fingerprint(key)}")
    if settings.trusted_key_path is not None:
        typer.echo(f"Source: {settings.trusted_key_path}")
    else:
        typer.echo(f"Source: {settings.get_signing_key_path()} (local signing key)")


@key_app.command("export")
def key_export(
    destination: Annotated[
        Path,
        typer.Argument(help="Where to write the PEM public key"),
    ],
) -> None:
    """Export the public key that verifiers must pin."""
    settings = get_settings()
    public_key = settings.get_signing_key().public_key()
    destination = destination.expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(export_public_key_pem(public_key))
    typer.secho(f"✅ Public key written to {destination}", fg=typer.colors.GREEN)
    typer.echo(f"   Fingerprint: {public_key_fingerprint(public_key)}")


@audit_app.command("show")
def audit_show(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
    tail: Annotated[
        int | None,
        typer.Option("--tail", "-n", help="Show last N entries"),
    ] = None,
    operation: Annotated[
        str | None,
        typer.Option("--operation", help="Only show entries for this operation"),
    ] = None,
) -> None:
    """Show audit ledger entries."""

    audit_service = create_audit_service()

    if not audit_service.is_enabled():
        typer.secho("Audit ledger is disabled", fg=typer.colors.YELLOW)
        return

    try:
        entries = audit_service.get_entries(operation=operation)
    except LedgerIntegrityError as exc:
        _fail(str(exc), ExitCode.VERIFICATION_FAILED)

    if not entries:
        typer.secho("No audit ledger entries found", fg=typer.colors.YELLOW)
        return

    if tail:
        entries = entries[-tail:]

    if json_output:
        typer.echo(
            json_response(
                "audit_log",
                1,
                total_entries=len(entries),
                entries=[e.model_dump(mode="json") for e in entries],
            )
        )
    else:
        for entry in entries:
            outcome = entry.args.get("outcome", "")
            typer.echo(f"{entry.timestamp} | {entry.operation} | {entry.inputs} {outcome}".rstrip())


@audit_app.command("verify")
def audit_verify() -> None:
    """Verify audit ledger integrity."""
    audit_service = create_audit_service()

    if not audit_service.is_enabled():
        typer.secho("Audit ledger is disabled", fg=typer.colors.YELLOW)
        return

    valid, error = audit_service.verify()

    if valid:
        typer.secho("Audit ledger is valid", fg=typer.colors.GREEN)
        return

    message = error or "Audit ledger integrity check failed"
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=int(ExitCode.VERIFICATION_FAILED))


if __name__ == "__main__":
    app()
