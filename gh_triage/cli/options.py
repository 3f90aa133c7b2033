"""Standardized CLI option definitions for consistent shorthand mappings."""

import typer

REPO_OPTION = typer.Option(
    ..., "--repo", "-r", help="Repository in owner/name form"
)

ISSUE_NUMBER_OPTION = typer.Option(..., "--issue-number", "-i", help="Issue number")

ACTION_OPTION = typer.Option(
    "opened", "--action", "-a", help="Webhook action to simulate: opened or edited"
)

DRY_RUN_OPTION = typer.Option(
    False, "--dry-run", "-d", help="Preview changes without applying them"
)

HOST_OPTION = typer.Option("0.0.0.0", "--host", help="Interface to bind")

PORT_OPTION = typer.Option(8000, "--port", "-p", help="Port to listen on")

LOG_LEVEL_OPTION = typer.Option(None, "--log-level", help="Override LOG_LEVEL")
