"""
Main CLI entry point for Ingestion Orchestrator

Provides commands to run the HTTP server, talk to a running server, and
drain a one-off submission in-process.
"""

import asyncio
import json
import sys
from typing import Any, Dict, Optional

import click
import httpx

from ..core.scheduler import BatchScheduler
from ..core.exceptions import IngestionOrchestratorError
from ..fetchers import SimulatedFetcher
from ..models.batch import Priority
from ..models.submission import SubmissionStatus
from ..utils.config import load_settings
from ..utils.logger import setup_logger

PRIORITY_CHOICES = [priority.value for priority in Priority]
TERMINAL_STATUSES = {SubmissionStatus.DONE.value, SubmissionStatus.FAILED.value}
DEFAULT_SERVER_URL = "http://localhost:3000"


def _parse_item_id(raw: str):
    """Integers on the command line are sent as integers, everything else as strings."""
    try:
        return int(raw)
    except ValueError:
        return raw


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False), help='YAML configuration file path')
@click.option('--log-level', '-l', default=None, help='Log level')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, config, log_level, verbose):
    """Ingestion Orchestrator CLI"""

    ctx.ensure_object(dict)

    try:
        settings = load_settings(config, log_level=log_level)
    except IngestionOrchestratorError as e:
        raise click.ClickException(e.message)

    ctx.obj['logger'] = setup_logger(
        "ingestion_orchestrator",
        level=settings.log_level,
        structured=settings.log_structured and not verbose
    )
    ctx.obj['config'] = config
    ctx.obj['settings'] = settings
    ctx.obj['verbose'] = verbose


@cli.command('serve')
@click.option('--host', default=None, help='HTTP server host')
@click.option('--port', type=int, default=None, help='HTTP server port')
@click.option('--cooldown', type=float, default=None, help='Seconds between batches')
@click.pass_context
def serve(ctx, host, port, cooldown):
    """Start the HTTP server"""
    import uvicorn

    from ..api.server import create_app

    try:
        settings = load_settings(ctx.obj['config'], host=host, port=port, cooldown_seconds=cooldown,
                                 log_level=ctx.obj['settings'].log_level)
    except IngestionOrchestratorError as e:
        raise click.ClickException(e.message)

    click.echo(f"Starting HTTP server on {settings.host}:{settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


@cli.command('submit')
@click.argument('ids', nargs=-1, required=True)
@click.option('--priority', type=click.Choice(PRIORITY_CHOICES), default=Priority.MEDIUM.value, help='Submission priority')
@click.option('--url', default=DEFAULT_SERVER_URL, show_default=True, help='Server base URL')
@click.pass_context
def submit(ctx, ids, priority, url):
    """Submit item ids to a running server"""
    payload = {"ids": [_parse_item_id(raw) for raw in ids], "priority": priority}

    try:
        response = httpx.post(f"{url.rstrip('/')}/ingest", json=payload, timeout=10.0)
    except httpx.HTTPError as e:
        click.echo(f"Error submitting ids: {e}", err=True)
        sys.exit(1)

    if response.is_error:
        click.echo(f"Error submitting ids: {_error_message(response)}", err=True)
        sys.exit(1)

    body = response.json()

    click.echo("Submission accepted!")
    click.echo(f"Submission ID: {body['submission_id']}")
    click.echo(f"Priority: {priority}")
    if ctx.obj['verbose']:
        click.echo(f"Payload: {json.dumps(payload)}")


@cli.command('status')
@click.argument('submission_id')
@click.option('--url', default=DEFAULT_SERVER_URL, show_default=True, help='Server base URL')
@click.pass_context
def status(ctx, submission_id, url):
    """Show a submission from a running server"""
    try:
        response = httpx.get(f"{url.rstrip('/')}/status/{submission_id}", timeout=10.0)
    except httpx.HTTPError as e:
        click.echo(f"Error getting status: {e}", err=True)
        sys.exit(1)

    if response.is_error:
        click.echo(f"Error getting status: {_error_message(response)}", err=True)
        sys.exit(1)

    _display_submission(response.json(), ctx.obj['verbose'])


@cli.command('run')
@click.argument('ids', nargs=-1, required=True)
@click.option('--priority', type=click.Choice(PRIORITY_CHOICES), default=Priority.MEDIUM.value, help='Submission priority')
@click.option('--cooldown', type=float, default=None, help='Seconds between batches')
@click.option('--latency', type=float, default=None, help='Simulated fetch latency in seconds')
@click.option('--poll-interval', type=float, default=0.5, show_default=True, help='Seconds between status checks')
@click.pass_context
def run(ctx, ids, priority, cooldown, latency, poll_interval):
    """Drain a submission in-process, printing every status change"""

    async def _run() -> Dict[str, Any]:
        settings = load_settings(ctx.obj['config'], cooldown_seconds=cooldown, fetch_latency_seconds=latency,
                                 log_level=ctx.obj['settings'].log_level)
        scheduler = BatchScheduler.from_settings(
            settings,
            fetcher=SimulatedFetcher(
                latency_seconds=settings.fetch_latency_seconds,
                failure_rate=settings.fetch_failure_rate
            )
        )
        await scheduler.start()
        try:
            submission_id = await scheduler.submit([_parse_item_id(raw) for raw in ids], priority)
            click.echo(f"Submission ID: {submission_id}")

            last_seen: Optional[str] = None
            while True:
                submission = await scheduler.get_submission(submission_id)
                snapshot = _status_line(submission)
                if snapshot != last_seen:
                    click.echo(snapshot)
                    last_seen = snapshot
                if submission['status'] in TERMINAL_STATUSES:
                    return submission
                await asyncio.sleep(poll_interval)
        finally:
            await scheduler.stop()

    try:
        submission = asyncio.run(_run())
    except IngestionOrchestratorError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    _display_submission(submission, ctx.obj['verbose'])
    if submission['status'] == SubmissionStatus.FAILED.value:
        sys.exit(1)


# Helper Functions
def _error_message(response: httpx.Response) -> str:
    """Server error message, or the raw status and body when it is not our JSON."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text.strip()}"
    if isinstance(body, dict) and "message" in body:
        return body["message"]
    return f"HTTP {response.status_code}: {body}"


def _status_line(submission: Dict[str, Any]) -> str:
    batches = " ".join(batch['status'] for batch in submission['batches'])
    return f"[{submission['status']}] {batches}"


def _display_submission(submission: Dict[str, Any], verbose: bool):
    """Display a submission and its batches"""
    click.echo(f"Submission ID: {submission['submission_id']}")
    click.echo(f"Status: {submission['status']}")
    click.echo(f"Priority: {submission.get('priority', 'N/A')}")
    click.echo()

    click.echo(f"{'Batch ID':<38} {'Status':<14} {'Items'}")
    click.echo("-" * 72)
    for batch in submission['batches']:
        items = ", ".join(str(item_id) for item_id in batch['ids'])
        click.echo(f"{batch['batch_id']:<38} {batch['status']:<14} {items}")
        if batch.get('error_message'):
            click.echo(f"  error: {batch['error_message']}")

    if verbose:
        click.echo()
        click.echo(json.dumps(submission, indent=2))


def main():
    """Main CLI entry point"""
    cli()


if __name__ == '__main__':
    main()
