"""pulse-markup CLI — inspect and convert message content."""

import logging
import sys

import click

from pulse_markup import __version__
from .shared import console


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="pulse-markup")
@click.option("-v", "--verbose", is_flag=True, help="Log engine decisions to stderr.")
@click.pass_context
def cli(ctx, verbose):
    """pulse-markup — message content markup engine"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler()],
    )
    if ctx.invoked_subcommand is None:
        _show_help()


def _show_help():
    """Show all available commands grouped by category."""
    console.print(f"[bold]pulse-markup v{__version__}[/bold] — message content markup engine\n")

    groups = {
        "Inspect": [
            ("tokenize", "Show the token stream of token text"),
            ("render", "Render token text to display HTML"),
            ("detect", "Tell legacy HTML from token text"),
            ("plain", "Plain-text preview of stored content"),
            ("mentions", "List mentioned user ids"),
        ],
        "Convert": [
            ("compile", "Editor HTML → token text"),
            ("decompile", "Token text → editor HTML"),
            ("migrate", "Legacy HTML → token text"),
        ],
    }

    for category, commands in groups.items():
        console.print(f"  [bold cyan]{category}[/bold cyan]")
        for name, desc in commands:
            console.print(f"    [bold]pulse-markup {name:10s}[/bold] {desc}")
        console.print()

    console.print("[dim]Run 'pulse-markup <command> --help' for details on a specific command.[/dim]")


# Import all command modules (registers commands onto cli group)
from . import cmd_inspect  # noqa: E402, F401
from . import cmd_convert  # noqa: E402, F401


@cli.command(name="help", hidden=True)
def help_cmd():
    """Show all available commands."""
    _show_help()


def main():
    """CLI entry point."""
    try:
        cli(standalone_mode=False)
    except click.UsageError as e:
        if e.ctx:
            click.echo(e.ctx.command.get_usage(e.ctx), err=True)
        click.echo("Try 'pulse-markup help' for help.\n", err=True)
        click.echo(f"Error: {e.format_message()}", err=True)
        sys.exit(2)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.exceptions.Exit as e:
        sys.exit(e.code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
