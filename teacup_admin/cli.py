"""
Admin CLI for inspecting recorded test sessions.

Provides commands to create the report schema and to list and show the
sessions a ReportStore has written.
"""

import asyncio
import json
import logging
import sys

import click

from teacup_common.models import ExecutionReport
from teacup_persistence.config import ReporterSettings
from teacup_persistence.sqlite_reporter import ReportStore


def get_store(db_path: str | None = None) -> ReportStore:
    """Get the store for an explicit path or the configured settings."""
    settings = ReporterSettings.load()
    if db_path:
        return ReportStore(db_path, timeout=settings.timeout)
    return ReportStore.from_settings(settings)


def run_async(coro):
    """Helper to run async functions in CLI commands."""
    return asyncio.run(coro)


def _format_time(value) -> str:
    return value.isoformat(timespec="milliseconds") if value else "-"


def _outcome(execution: ExecutionReport) -> str:
    if execution.skipped:
        return "skipped"
    if execution.status is not None:
        return execution.status.value
    return "running" if execution.started else "pending"


@click.group()
@click.option(
    "--db-path",
    default=None,
    help="Path to SQLite database file (default: TEACUP_REPORT_DB_PATH env or teacup_report.db)",
)
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Logging level (default: WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, db_path: str | None, log_level: str):
    """Teacup Report - Inspect test sessions recorded in the report database."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = get_store(db_path)


@cli.command("init")
@click.pass_obj
def init(store: ReportStore):
    """Create the report tables if they don't exist."""
    run_async(store.create_schema())
    click.echo(f"✓ Report schema ready in {store.db_path}")


@cli.command("sessions")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
def sessions(store: ReportStore, json_output: bool):
    """List recorded sessions, newest first."""

    async def list_sessions():
        await store.create_schema()
        return await store.list_sessions()

    summaries = run_async(list_sessions())

    if json_output:
        click.echo(json.dumps([s.to_dict() for s in summaries], indent=2))
        return

    if not summaries:
        click.echo("No sessions found.")
        return

    click.echo(f"\n{'ID':<8} {'Initialized':<26} {'Terminated':<26} {'Executions':<10}")
    click.echo("-" * 72)
    for s in summaries:
        click.echo(
            f"{s.id:<8} {_format_time(s.initialized):<26} "
            f"{_format_time(s.terminated_time):<26} {s.executions:<10}"
        )
    click.echo()


@cli.command("show")
@click.argument("session_id", type=int)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
def show(store: ReportStore, session_id: int, json_output: bool):
    """Show the executions of a session."""

    async def get_report():
        await store.create_schema()
        summary = await store.get_session(session_id)
        if summary is None:
            return None, [], []
        executions = await store.get_executions(session_id)
        session_logs = await store.get_session_logs(session_id)
        return summary, executions, session_logs

    summary, executions, session_logs = run_async(get_report())

    if summary is None:
        click.echo(f"Error: Session not found: {session_id}", err=True)
        sys.exit(1)

    if json_output:
        data = summary.to_dict()
        data["execution_details"] = [e.to_dict() for e in executions]
        data["logs"] = [entry.to_dict() for entry in session_logs]
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\nSession {summary.id}")
    click.echo(f"  Initialized: {_format_time(summary.initialized)}")
    click.echo(f"  Terminated:  {_format_time(summary.terminated_time)}")
    click.echo(f"  Session logs: {len(session_logs)}")
    click.echo()

    if not executions:
        click.echo("No executions recorded.")
        return

    click.echo(f"{'Node':<40} {'Outcome':<12} {'Started':<26} {'Finished':<26} {'Logs':<6}")
    click.echo("-" * 112)
    for e in executions:
        click.echo(
            f"{e.node:<40} {_outcome(e):<12} {_format_time(e.started):<26} "
            f"{_format_time(e.finished):<26} {len(e.logs):<6}"
        )
        if e.reason:
            click.echo(f"    reason: {e.reason}")
        if e.error:
            click.echo(f"    error:  {e.error}")
    click.echo()


if __name__ == "__main__":
    cli()
