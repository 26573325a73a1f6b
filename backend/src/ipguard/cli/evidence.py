"""CLI commands for evidence chain of custody."""

import asyncio
import json
import sys
from pathlib import Path
from uuid import UUID

import click

from ..errors import IPGuardError
from ..evidence.ledger import get_evidence_ledger
from ..logging import setup_logging
from ..storage import compute_content_hash


@click.group("evidence")
def evidence_group() -> None:
    """Evidence integrity and custody commands."""
    setup_logging()


@evidence_group.command("verify")
@click.argument("evidence_id")
@click.option("--hash", "current_hash", default=None, help="Freshly computed SHA-256 hex digest")
@click.option(
    "--file",
    "file_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Local copy of the evidence to hash",
)
@click.option("--actor", required=True, help="User performing the check")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def verify_evidence(
    evidence_id: str,
    current_hash: str | None,
    file_path: Path | None,
    actor: str,
    as_json: bool,
) -> None:
    """Verify evidence integrity against its recorded hash."""
    if (current_hash is None) == (file_path is None):
        raise click.UsageError("Provide exactly one of --hash or --file")
    if file_path is not None:
        current_hash = compute_content_hash(file_path.read_bytes())

    try:
        result = asyncio.run(
            get_evidence_ledger().verify_integrity(UUID(evidence_id), current_hash, actor)
        )
    except IPGuardError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        click.echo(f"Integrity: {'VALID' if result.is_valid else 'FAILED'}")
        click.echo(f"  Recorded: {result.original_hash}")
        click.echo(f"  Current:  {result.current_hash}")

    if not result.is_valid:
        sys.exit(2)


@evidence_group.command("custody")
@click.argument("evidence_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def custody_report(evidence_id: str, as_json: bool) -> None:
    """Print the chain-of-custody report for an evidence file."""
    try:
        report = asyncio.run(get_evidence_ledger().get_chain_of_custody(UUID(evidence_id)))
    except IPGuardError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report.model_dump(mode="json"), indent=2))
        return

    click.echo(f"Evidence: {report.evidence_id}")
    click.echo(f"  File: {report.original_file_name} ({report.file_size} bytes)")
    click.echo(f"  Hash: {report.file_hash}")
    click.echo(f"  Status: {report.verification_status['status']}")
    click.echo("")
    click.echo("Custody history:")
    for entry in report.access_history:
        click.echo(f"  {entry.timestamp.isoformat()}  {entry.action.value:<16} {entry.actor}")
        if entry.details:
            click.echo(f"      {entry.details}")
