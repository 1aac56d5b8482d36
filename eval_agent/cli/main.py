"""Operator CLI for the eval agent using Typer and Rich."""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from eval_agent.config.logging import get_logger
from eval_agent.config.settings import settings
from eval_agent.errors import EvalAgentError
from eval_agent.service import EvalService

# Initialize CLI app
app = typer.Typer(
    help="Eval Agent CLI - audit dashboard claims against trusted sources",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")

SEVERITY_STYLES = {"high": "red", "med": "yellow", "low": "dim"}


def _service() -> EvalService:
    return EvalService.from_settings()


def _check_data_dir(command: str, required: bool = False) -> None:
    """Each CLI call builds fresh stores; without data_dir they start empty."""
    if settings.data_dir:
        return
    if required:
        console.print(
            f"[red]✗[/red] {command} needs persisted issues: set EVAL_DATA_DIR"
        )
        raise typer.Exit(1)
    console.print(
        f"[yellow]⚠[/yellow] EVAL_DATA_DIR not set: {command} uses an empty in-memory store"
    )


def _run(coro):
    """Run a service coroutine, turning eval errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except EvalAgentError as e:
        console.print(f"\n[red]✗[/red] {e.code}: {e.message}")
        logger.error(f"CLI command failed: {e.code}: {e.message}")
        raise typer.Exit(1)


@app.command()
def status() -> None:
    """Display configuration of the eval agent."""
    table = Table(title="Eval Agent Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    api_status = "✓ Configured" if settings.gemini_api_key else "⚠ Not Configured"
    table.add_row(
        "Gemini API",
        api_status,
        f"{settings.gemini_model} (RPM: {settings.max_rpm}, TPM: {settings.max_tpm:,})",
    )
    table.add_row(
        "Run secret",
        "✓ Configured" if settings.cron_secret else "⚠ Not Configured",
        "Required by run and runs",
    )
    table.add_row(
        "Verification",
        "✓ Active",
        f"concurrency {settings.verify_concurrency}, delay {settings.batch_delay_seconds}s, "
        f"max {settings.max_verify_claims} claims",
    )
    table.add_row(
        "Storage",
        "✓ Persistent" if settings.data_dir else "✓ In-memory",
        settings.data_dir or "no data_dir configured",
    )
    table.add_row("Logging", "✓ Active", f"Level: {settings.log_level}, Format: {settings.log_format}")

    console.print(table)


@app.command()
def run(
    run_type: str = typer.Argument(..., help="daily_rules, weekly_factcheck or on_demand"),
    pages: Optional[list[str]] = typer.Option(None, "--page", "-p", help="Restrict to pages"),
    documents: Optional[list[str]] = typer.Option(None, "--document", "-d", help="Restrict to documents"),
    since: Optional[str] = typer.Option(None, help="Only content updated since (ISO timestamp)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Describe the run without executing"),
    secret: Optional[str] = typer.Option(None, envvar="EVAL_CRON_SECRET", help="Run secret"),
) -> None:
    """Trigger an evaluation run."""
    if not dry_run:
        _check_data_dir("run")
    scope = {"pages": pages or None, "documents": documents or None, "since": since}
    payload = {
        "run_type": run_type,
        "scope": {k: v for k, v in scope.items() if v is not None},
        "dry_run": dry_run,
    }
    logger.info(f"Run command invoked: {run_type}")

    result = _run(_service().trigger_run(payload, secret))

    if result.get("dry_run"):
        console.print(Panel(json.dumps(result["scope"], indent=2), title=result["message"]))
        return

    summary = result["summary"]
    console.print(
        Panel(
            f"Run [bold]{result['run_id']}[/bold] finished [green]{result['status']}[/green]\n"
            f"Claims examined: {summary['total_claims']}\n"
            f"Issues found: {result['issues_found']}\n"
            f"By verdict: {summary['by_verdict']}\n"
            f"By severity: {summary['by_severity']}",
            title=f"{result['run_type']} run",
            border_style="green",
        )
    )


@app.command()
def runs(
    limit: int = typer.Option(10, help="Number of runs (max 50)"),
    secret: Optional[str] = typer.Option(None, envvar="EVAL_CRON_SECRET", help="Run secret"),
) -> None:
    """List recent runs."""
    _check_data_dir("runs")
    recent = _run(_service().list_runs(limit, secret))

    table = Table(title="Recent Runs", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Started")
    table.add_column("Claims", justify="right")
    table.add_column("Issues", justify="right")
    for item in recent:
        table.add_row(
            item.id,
            item.run_type.value,
            item.status.value,
            item.started_at.strftime("%Y-%m-%d %H:%M"),
            str(item.summary.total_claims),
            str(item.summary.issues_found),
        )
    console.print(table)


@app.command()
def issues(
    status_filter: str = typer.Option("open", "--status", help="open, triaged, fixed, dismissed or all"),
    limit: int = typer.Option(50, help="Number of issues (max 100)"),
) -> None:
    """List eval issues."""
    _check_data_dir("issues")
    found = _run(_service().list_issues(status_filter, limit))

    table = Table(title=f"Issues ({status_filter})", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Object")
    table.add_column("Locator")
    table.add_column("Verdict")
    table.add_column("Severity")
    table.add_column("Claim")
    for issue in found:
        style = SEVERITY_STYLES.get(issue.severity.value, "")
        table.add_row(
            issue.id,
            issue.object_type.value,
            issue.object_locator,
            issue.verdict.value,
            f"[{style}]{issue.severity.value}[/{style}]" if style else issue.severity.value,
            issue.claim[:80],
        )
    console.print(table)


@app.command()
def approve(
    issue_id: str = typer.Argument(..., help="Issue to approve"),
    actor: str = typer.Option("admin", help="Recorded as approver"),
) -> None:
    """Approve an issue and apply its suggested fix."""
    _check_data_dir("approve", required=True)
    result = _run(_service().review_issue({"id": issue_id, "action": "approve"}, actor))
    applied = result.get("applied") or {}
    console.print(f"[green]✓[/green] Issue {result['id']} {result['status']}")
    if applied:
        console.print(f"[dim]{applied['action']} -> {applied['target_id']}: {applied['details']}[/dim]")


@app.command()
def dismiss(
    issue_id: str = typer.Argument(..., help="Issue to dismiss"),
    actor: str = typer.Option("admin", help="Recorded as reviewer"),
) -> None:
    """Dismiss an issue without changing content."""
    _check_data_dir("dismiss", required=True)
    result = _run(_service().review_issue({"id": issue_id, "action": "dismiss"}, actor))
    console.print(f"[green]✓[/green] Issue {result['id']} {result['status']}")


@app.command()
def sources() -> None:
    """List active trusted sources, highest trust first."""
    active = _run(_service().list_sources())

    table = Table(title="Trusted Sources", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Trust", justify="right")
    table.add_column("URL", style="dim")
    for source in active:
        table.add_row(source.name, source.category.value, str(source.trust_level), source.base_url)
    console.print(table)


if __name__ == "__main__":
    app()
