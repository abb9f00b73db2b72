#!/usr/bin/env python3
"""
sshkey-setup CLI - generate an SSH key for an email identity.

    sshkey-setup you@example.com
    sshkey-setup you@example.com --existing backup

Generates ~/.ssh/id_rsa (RSA 4096), adds it to ssh-agent, copies the public
key to the clipboard and prints it. Status goes to stderr; stdout carries
only the public key.
"""

from __future__ import annotations

import logging
import sys
from shutil import which
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt

from sshkey_setup import __version__, config
from sshkey_setup.errors import MissingIdentityError, SetupError
from sshkey_setup.keygen import ExistingKeyPolicy, KeyPaths
from sshkey_setup.tools import run_tool
from sshkey_setup.workflow import SetupReport, run_setup


# =============================================================================
# CLI Application
# =============================================================================

app = typer.Typer(
    name="sshkey-setup",
    help="🔑 Generate an SSH key, add it to ssh-agent and copy the public key",
    add_completion=False,
)

console = Console(stderr=True)


# =============================================================================
# Utility Functions
# =============================================================================

def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def ask_existing_key_policy(paths: KeyPaths) -> ExistingKeyPolicy:
    """Ask what to do with a keypair that is already on disk."""
    console.print(f"[yellow]⚠️  A key already exists at[/yellow] {paths.private_key}")
    answer = Prompt.ask(
        "Skip (keep it), back it up, overwrite it, or abort?",
        choices=[p.value for p in ExistingKeyPolicy if p != ExistingKeyPolicy.PROMPT],
        default=ExistingKeyPolicy.ABORT.value,
        console=console,
    )
    return ExistingKeyPolicy(answer)


def render_report(report: SetupReport) -> None:
    """Print the status summary for a finished run to stderr."""
    paths = report.paths
    lines = []

    if report.directory_created:
        lines.append(f"[green]✓[/green] Created {paths.directory}")
    if report.backups:
        moved = ", ".join(str(p) for p in report.backups)
        lines.append(f"[green]✓[/green] Backed up previous key to {moved}")
    if report.generated:
        lines.append(f"[green]✓[/green] Generated {paths.private_key}")
    else:
        lines.append(f"[green]✓[/green] Kept existing {paths.private_key}")

    if report.agent_registered:
        lines.append(f"[green]✓[/green] Added to ssh-agent at {report.agent.auth_sock}")
    else:
        lines.append("[yellow]•[/yellow] Not added to ssh-agent")

    if report.copied:
        lines.append(f"[green]✓[/green] Public key copied to clipboard ({report.clipboard_backend})")
    elif report.clipboard_backend is None:
        lines.append("[yellow]•[/yellow] No clipboard tool found (pbcopy, xclip): copy the key below manually")
    else:
        lines.append("[yellow]•[/yellow] Clipboard copy failed: copy the key below manually")

    console.print(Panel(
        f"[dim]Identity:[/dim] {escape(report.identity)}\n\n" + "\n".join(lines),
        title="SSH Key",
        border_style="green" if not report.warnings else "yellow",
    ))

    for warning in report.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")

    if report.agent is None or not report.agent.started:
        return

    if report.agent_registered:
        console.print("\n[dim]A new ssh-agent was started. Attach your shell with:[/dim]")
        for line in report.agent.export_lines():
            console.print(f"  {line}", markup=False, highlight=False)
    elif report.agent.pid is not None:
        console.print(
            f"\n[dim]The ssh-agent started for this run holds no key. Stop it with:[/dim] kill {report.agent.pid}"
        )


def _is_interactive() -> bool:
    return sys.stdin.isatty()


def _version_callback(value: bool):
    if value:
        typer.echo(f"sshkey-setup v{__version__}")
        raise typer.Exit()


# =============================================================================
# Main Command
# =============================================================================

@app.command()
def setup(
    identity: Optional[str] = typer.Argument(
        None,
        help="Email address (or any label) written as the key comment",
        show_default=False,
    ),
    existing: str = typer.Option(
        config.DEFAULT_EXISTING_KEY_POLICY,
        "--existing", "-e",
        help="If a key already exists: prompt, skip, backup, overwrite or abort",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """
    🔑 Generate an RSA 4096 key for IDENTITY at ~/.ssh/id_rsa.

    The key is added to ssh-agent and the public key is copied to the
    clipboard when pbcopy or xclip is available. The public key is always
    printed to stdout.

    Examples:
        sshkey-setup you@example.com
        sshkey-setup you@example.com --existing skip
    """
    setup_logging(verbose)

    try:
        policy = ExistingKeyPolicy.parse(existing)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--existing")

    chooser = ask_existing_key_policy if _is_interactive() else None

    try:
        report = run_setup(
            identity,
            policy=policy,
            chooser=chooser,
            runner=run_tool,
            which=which,
        )
    except MissingIdentityError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        console.print("[dim]Usage:[/dim] sshkey-setup you@example.com")
        raise typer.Exit(1)
    except SetupError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    render_report(report)
    typer.echo(report.public_key)


# =============================================================================
# Entry Point
# =============================================================================

def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
