"""Typer CLI for operator preflight checks."""

from __future__ import annotations

import logging
import os
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from perfmail.config import (
    ConfigurationError,
    RuntimeConfig,
    SendMode,
    validate_runtime_config,
)
from perfmail.email import get_retry_policy, log_sender_config

app = typer.Typer(help="perfmail monthly report reliability tools")
console = Console()
_LOGGING_CONFIGURED = False


def _configure_logging() -> None:
    """Configure Rich-backed logging once for CLI commands."""
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
    )
    _LOGGING_CONFIGURED = True


@app.command("preflight")
def preflight(
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Validate for a run that skips sending."),
    ] = False,
    send_mode: Annotated[
        SendMode | None,
        typer.Option("--send-mode", help="Override SEND_MODE for validation."),
    ] = None,
) -> None:
    """Validate runtime config from the environment before a monthly run.

    Args:
        dry_run: Whether the run will skip email sending.
        send_mode: Optional send mode override.
    """
    _configure_logging()
    config = RuntimeConfig.from_env(os.environ)
    try:
        validate_runtime_config(
            dry_run=dry_run,
            env=config,
            send_mode=send_mode.value if send_mode is not None else None,
        )
    except ConfigurationError as exc:
        console.print(f"[bold red]Config invalid:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    log_sender_config(config)
    table = Table(header_style="bold", title="Runtime config")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in config.safe_summary().items():
        table.add_row(name, value)
    console.print(table)
    console.print("[bold green]Preflight OK[/bold green]")


@app.command("retry-policy")
def retry_policy() -> None:
    """Show the effective email-send retry policy."""
    policy = get_retry_policy(RuntimeConfig.from_env(os.environ))
    table = Table(header_style="bold", title="Email send retry policy")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("max_attempts", str(policy.max_attempts))
    table.add_row("initial_backoff_ms", str(policy.initial_backoff_ms))
    console.print(table)


if __name__ == "__main__":
    app()
