"""CLI commands for protected assets and monitoring jobs."""

import asyncio
import json
import sys
from uuid import UUID, uuid4

import click

from ..errors import IPGuardError
from ..logging import setup_logging
from ..monitoring.models import ProtectedAsset
from ..monitoring.service import get_monitoring_service


def _fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


@click.group("asset")
def asset_group() -> None:
    """Manage protected assets."""
    setup_logging()


@asset_group.command("add")
@click.option("--title", "-t", required=True, help="Asset title")
@click.option(
    "--type",
    "asset_type",
    required=True,
    type=click.Choice(["copyright", "trademark", "patent", "trade_secret"]),
    help="Kind of intellectual property",
)
@click.option("--description", "-d", default=None, help="Asset description")
@click.option("--registration", default=None, help="Registration number")
@click.option("--jurisdiction", default="US", help="Jurisdiction (default: US)")
@click.option("--actor", required=True, help="Registering user")
def add_asset(
    title: str,
    asset_type: str,
    description: str | None,
    registration: str | None,
    jurisdiction: str,
    actor: str,
) -> None:
    """Register a protected asset to monitor for."""

    async def _add() -> ProtectedAsset:
        asset = ProtectedAsset(
            id=uuid4(),
            title=title,
            type=asset_type,
            description=description,
            registration_number=registration,
            jurisdiction=jurisdiction,
        )
        await get_monitoring_service().repository.insert_asset(asset, created_by=actor)
        return asset

    asset = asyncio.run(_add())
    click.echo(f"Registered asset: {asset.id}")


@click.group("job")
def job_group() -> None:
    """Manage monitoring jobs."""
    setup_logging()


@job_group.command("create")
@click.argument("url")
@click.option("--asset-id", "-a", required=True, help="Protected asset ID")
@click.option("--actor", required=True, help="Creating user")
@click.option("--run", "run_now", is_flag=True, help="Execute immediately")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def create_job(url: str, asset_id: str, actor: str, run_now: bool, as_json: bool) -> None:
    """Create a monitoring job for URL."""

    async def _create() -> dict:
        service = get_monitoring_service()
        job = await service.create_job(url, UUID(asset_id), actor)
        if not run_now:
            return {"job": job.model_dump(mode="json")}
        result = await service.execute_job(job.id, actor_id=actor)
        return result.model_dump(mode="json")

    try:
        data = asyncio.run(_create())
    except IPGuardError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(data, indent=2))
    else:
        _print_job(data["job"])
        if "assessment" in data:
            _print_assessment(data)


@job_group.command("run")
@click.argument("job_id")
@click.option("--actor", default=None, help="User credited with any auto-case")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def run_job(job_id: str, actor: str | None, as_json: bool) -> None:
    """Execute a pending monitoring job."""
    try:
        result = asyncio.run(get_monitoring_service().execute_job(UUID(job_id), actor_id=actor))
    except IPGuardError as e:
        _fail(e)

    data = result.model_dump(mode="json")
    if as_json:
        click.echo(json.dumps(data, indent=2))
    else:
        _print_job(data["job"])
        _print_assessment(data)


@job_group.command("show")
@click.argument("job_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show_job(job_id: str, as_json: bool) -> None:
    """Show a job and its latest monitoring log."""

    async def _show() -> dict:
        service = get_monitoring_service()
        job = await service.get_job(UUID(job_id))
        log = await service.get_latest_log(job.id)
        return {
            "job": job.model_dump(mode="json"),
            "log": log.model_dump(mode="json") if log else None,
        }

    try:
        data = asyncio.run(_show())
    except IPGuardError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    _print_job(data["job"])
    log = data["log"]
    if log:
        click.echo(f"  Risk Score: {log['risk_score']}")
        click.echo(f"  Result: {log['result']}")
        click.echo(f"  Screenshot: {log['screenshot_url'] or '(none)'}")
        if log["auto_case_id"]:
            click.echo(f"  Auto-case: {log['auto_case_id']}")


@job_group.command("stats")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def job_stats(as_json: bool) -> None:
    """Show monitoring statistics."""
    stats = asyncio.run(get_monitoring_service().get_stats())

    if as_json:
        click.echo(json.dumps(stats.model_dump(mode="json"), indent=2))
        return

    click.echo(f"Total jobs: {stats.total_jobs}")
    for status, count in sorted(stats.jobs_by_status.items()):
        click.echo(f"  {status}: {count}")
    click.echo(f"Average risk score: {stats.average_risk_score}")
    click.echo(f"High-risk results: {stats.high_risk_count}")


def _print_job(job: dict) -> None:
    click.echo(f"Job: {job['id']}")
    click.echo(f"  URL: {job['target_url']}")
    click.echo(f"  Status: {job['status']}")
    if job.get("error_message"):
        click.echo(f"  Error: {job['error_message']}")


def _print_assessment(data: dict) -> None:
    assessment = data["assessment"]
    click.echo(f"  Risk Score: {assessment['overall_risk_score']}")
    click.echo(f"  Recommendation: {assessment['recommendation']}")
    for factor in assessment["factors"]:
        click.echo(f"    {factor['name']}: {factor['raw_score']} x {factor['weight']}")
    if data.get("auto_case_created"):
        click.echo(f"  Auto-case created: {data['auto_case_id']}")
