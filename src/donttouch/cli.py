"""
Main CLI entry point for donttouch.

Usage:
    donttouch init
    donttouch status
    donttouch {lock,check,enable}
    donttouch {unlock,disable,remove} [TARGET]
    donttouch check-before-push [REMOTE] [URL]
    donttouch explain FILE
    donttouch inject [--dry-run]
"""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Prompt

from donttouch import __version__
from donttouch.machine import run
from donttouch.types import Command, Invocation, ResultKind

app = typer.Typer(
    name="donttouch",
    help="Protect files from being modified by AI coding agents and accidental changes.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("donttouch")
    if not logger.handlers:
        logger.addHandler(
            RichHandler(console=err_console, show_time=False, show_path=False)
        )
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _version(value: bool) -> None:
    if value:
        console.print(f"donttouch {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    ignoregit: bool = typer.Option(
        False, "--ignoregit", help="Ignore git integration (treat directory as a plain directory)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Protect files from being modified by AI coding agents and accidental changes."""
    _configure_logging(verbose)
    ctx.obj = {"ignore_git": ignoregit}


def _ask(question: str) -> str:
    try:
        return Prompt.ask(question, default="", show_default=False, console=console)
    except EOFError:
        return ""


def _tell(message: str) -> None:
    console.print(message, markup=False, highlight=False, soft_wrap=True)


def _run(ctx: typer.Context, command: Command, **kwargs) -> None:
    inv = Invocation(
        command=command,
        ignore_git=(ctx.obj or {}).get("ignore_git", False),
        **kwargs,
    )
    result = run(inv)

    out = console if result.kind is ResultKind.SUCCESS else err_console
    if result.message:
        out.print(result.message, markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(result.exit_code)


@app.command()
def init(ctx: typer.Context) -> None:
    """Initialize donttouch in the current directory."""
    _run(ctx, Command.INIT, ask=_ask, tell=_tell)


@app.command()
def status(ctx: typer.Context) -> None:
    """List protected files and their current state."""
    _run(ctx, Command.STATUS)


@app.command()
def lock(ctx: typer.Context) -> None:
    """Make all protected files read-only."""
    _run(ctx, Command.LOCK)


@app.command()
def unlock(
    ctx: typer.Context,
    target: str = typer.Argument(".", help="Directory containing .donttouch.toml"),
) -> None:
    """Restore write permissions (must run from outside the target directory)."""
    _run(ctx, Command.UNLOCK, target=target)


@app.command()
def check(ctx: typer.Context) -> None:
    """Check protected files are read-only and none are staged (exits non-zero if not)."""
    _run(ctx, Command.CHECK)


@app.command("check-before-push")
def check_before_push(
    ctx: typer.Context,
    remote: str = typer.Argument("origin", help="Remote being pushed to"),
    url: str | None = typer.Argument(None, help="URL of the remote"),
) -> None:
    """Refuse a push that touches protected files, or while protection is disabled."""
    _run(ctx, Command.CHECK_BEFORE_PUSH, remote=remote, url=url)


@app.command()
def disable(
    ctx: typer.Context,
    target: str = typer.Argument(".", help="Directory containing .donttouch.toml"),
) -> None:
    """Disable protection (must run from outside the target directory)."""
    _run(ctx, Command.DISABLE, target=target)


@app.command()
def enable(ctx: typer.Context) -> None:
    """Re-enable protection (lock files, resume checks)."""
    _run(ctx, Command.ENABLE)


@app.command()
def remove(
    ctx: typer.Context,
    target: str = typer.Argument(".", help="Directory containing .donttouch.toml"),
) -> None:
    """Remove donttouch: unlock files, strip hooks and notes, delete config."""
    _run(ctx, Command.REMOVE, target=target)


@app.command()
def explain(
    ctx: typer.Context,
    file: str = typer.Argument(..., help="File to explain"),
) -> None:
    """Show whether a file is protected, and by which patterns."""
    _run(ctx, Command.EXPLAIN, file=file)


@app.command()
def inject(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would change"),
) -> None:
    """Add a protection note to agent instruction files (CLAUDE.md, AGENTS.md, ...)."""
    _run(ctx, Command.INJECT, dry_run=dry_run)


if __name__ == "__main__":
    app()
