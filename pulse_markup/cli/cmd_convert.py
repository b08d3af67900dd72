"""Conversion commands: compile, decompile, migrate."""

import click

from . import cli
from .shared import load_directory, read_content

from pulse_markup.compiler import editor_html_to_tokens
from pulse_markup.decompiler import tokens_to_editor_html
from pulse_markup.legacy import migrate_content


@cli.command("compile")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
def compile_cmd(source):
    """Editor HTML → token text."""
    click.echo(editor_html_to_tokens(read_content(source)))


@cli.command("decompile")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--directory", "directory_path", type=click.Path(dir_okay=False), help="Directory JSON for names.")
def decompile_cmd(source, directory_path):
    """Token text → editor HTML, resolving names from a directory file."""
    ctx = load_directory(directory_path)
    click.echo(tokens_to_editor_html(read_content(source), ctx))


@cli.command("migrate")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
def migrate_cmd(source):
    """Legacy HTML → token text (token text passes through unchanged)."""
    content = read_content(source)
    converted = migrate_content(content)
    click.echo(content if converted is None else converted)
