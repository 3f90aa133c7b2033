"""Main CLI entry point."""

import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ..errors import NormalizationError
from .options import (
    ACTION_OPTION,
    DRY_RUN_OPTION,
    HOST_OPTION,
    ISSUE_NUMBER_OPTION,
    LOG_LEVEL_OPTION,
    PORT_OPTION,
    REPO_OPTION,
)

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="gh-triage",
    help="AI triage for GitHub issue webhooks",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def serve(
    host: str = HOST_OPTION,
    port: int = PORT_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """Run the webhook server."""
    import uvicorn

    from ..utils.logging import setup_logging
    from ..webhooks.app import create_app_from_env

    setup_logging(log_level)
    try:
        web_app = create_app_from_env()
    except ValueError as e:
        console.print(f"❌ [red]Error: {e}[/red]")
        raise typer.Exit(1)

    uvicorn.run(web_app, host=host, port=port, log_config=None)


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def triage(
    repo: str = REPO_OPTION,
    issue_number: int = ISSUE_NUMBER_OPTION,
    action: str = ACTION_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """Run AI triage on one existing issue.

    Examples:
        # Preview the labels and comments triage would produce
        gh-triage triage -r octo/widgets -i 42 --dry-run
    """
    from ..ai.llm import create_llm_gateway
    from ..config import LlmSettings, TriagePolicy, TriageSettings
    from ..github_client import (
        GitHubClient,
        GitHubGovernanceGateway,
        GitHubIssueHistoryGateway,
        GitHubRepositoryContextGateway,
        RecordingGovernanceGateway,
    )
    from ..triage.orchestrator import AnalyzeIssueInput, AnalyzeIssueWithAi
    from ..utils.logging import setup_logging
    from ..utils.tracing import setup_tracing

    setup_logging(log_level)
    try:
        llm_settings = LlmSettings.from_env()
        if llm_settings.tracing_enabled:
            setup_tracing()
        client = GitHubClient()
        issue = client.get_issue(repo, issue_number)
        llm = create_llm_gateway(llm_settings)
    except ValueError as e:
        console.print(f"❌ [red]Error: {e}[/red]")
        raise typer.Exit(1)

    recorder = RecordingGovernanceGateway()
    governance = recorder if dry_run else GitHubGovernanceGateway(client)
    use_case = AnalyzeIssueWithAi(
        llm=llm,
        history=GitHubIssueHistoryGateway(client),
        governance=governance,
        repository_context=GitHubRepositoryContextGateway(client),
        policy=TriagePolicy.from_env(),
        settings=TriageSettings.from_env(),
    )
    result = asyncio.run(
        use_case.execute(
            AnalyzeIssueInput(action=action, repository_full_name=repo, issue=issue)
        )
    )

    if result.status == "skipped":
        console.print(f"⚠️  [yellow]Triage skipped: {result.reason}[/yellow]")
        raise typer.Exit(1)

    if dry_run:
        _print_recorded_writes(recorder)
    else:
        applied = len(result.report.applied) if result.report else 0
        skipped = len(result.report.skipped) if result.report else 0
        console.print(f"✅ [green]Triage completed for {repo}#{issue_number}[/green]")
        console.print(f"Applied actions: {applied}")
        if skipped:
            console.print(f"Skipped actions: {skipped} (already handled)")


def _print_recorded_writes(recorder) -> None:
    if not recorder.writes:
        console.print("No changes needed.")
        return
    table = Table(title="Planned governance actions (dry run)")
    table.add_column("Operation", style="cyan")
    table.add_column("Issue")
    table.add_column("Detail")
    for write in recorder.writes:
        table.add_row(
            write.operation,
            f"{write.repository_full_name}#{write.issue_number}",
            write.detail,
        )
    console.print(table)


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def normalize(
    file: Path = typer.Argument(..., exists=True, readable=True, help="Raw LLM output"),
    issue_number: int = typer.Option(
        1, "--issue-number", "-i", help="Issue the response was produced for"
    ),
) -> None:
    """Normalize a saved LLM response and print the canonical analysis."""
    from ..ai.normalizer import normalize_ai_response

    try:
        analysis = normalize_ai_response(file.read_text(), issue_number)
    except NormalizationError as e:
        console.print(f"❌ [red]Normalization failed: {e}[/red]")
        raise typer.Exit(1)

    console.print_json(analysis.model_dump_json())


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def version() -> None:
    """Show version information."""
    from gh_triage import __version__

    console.print(f"gh-triage v{__version__}")


if __name__ == "__main__":
    app()
