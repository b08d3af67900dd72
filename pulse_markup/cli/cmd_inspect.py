"""Inspection commands: tokenize, render, detect, plain, mentions."""

import json

import click
from rich.table import Table
from rich.tree import Tree

from . import cli
from .shared import console, load_directory, read_content

from pulse_markup.detect import is_legacy_html, strip_to_plain_text
from pulse_markup.display import to_html
from pulse_markup.mentions import parse_mentioned_user_ids
from pulse_markup.renderer import render_content
from pulse_markup.tokenizer import tokenize
from pulse_markup.tokens import CONTAINER_TYPES, to_dict


def _token_label(token) -> str:
    data = {k: v for k, v in to_dict(token).items() if k not in ("type", "children")}
    if not data:
        return f"[bold]{token.type}[/bold]"
    fields = ", ".join(f"{k}={v!r}" for k, v in data.items())
    return f"[bold]{token.type}[/bold] [dim]{fields}[/dim]"


def _add_tokens(tree: Tree, tokens) -> None:
    for token in tokens:
        branch = tree.add(_token_label(token))
        if isinstance(token, CONTAINER_TYPES):
            _add_tokens(branch, token.children)


@cli.command("tokenize")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--json", "as_json", is_flag=True, help="Print the stream as JSON.")
def tokenize_cmd(source, as_json):
    """Show the token stream for token text (file or stdin)."""
    tokens = tokenize(read_content(source))
    if as_json:
        click.echo(json.dumps([to_dict(t) for t in tokens], ensure_ascii=False, indent=2))
        return

    tree = Tree(f"[bold cyan]{len(tokens)} tokens[/bold cyan]")
    _add_tokens(tree, tokens)
    console.print(tree)


@cli.command("render")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--directory", "directory_path", type=click.Path(dir_okay=False), help="Directory JSON for names.")
@click.option("--files", "file_count", type=int, default=0, show_default=True, help="Attached file count.")
def render_cmd(source, directory_path, file_count):
    """Render stored content to display HTML and list extracted media."""
    directory = load_directory(directory_path)
    result = render_content(read_content(source), file_count)

    click.echo(to_html(result.nodes, directory))

    if result.media:
        t = Table(title="Extracted media")
        t.add_column("#", justify="right")
        t.add_column("Type")
        t.add_column("URL")
        for i, item in enumerate(result.media, start=1):
            t.add_row(str(i), item.type, item.url)
        console.print(t, highlight=False)
    if result.emoji_only:
        console.print("[yellow]emoji-only[/yellow]")


@cli.command("detect")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
def detect_cmd(source):
    """Print 'legacy' for legacy HTML content, 'token' for token text."""
    click.echo("legacy" if is_legacy_html(read_content(source)) else "token")


@cli.command("plain")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
def plain_cmd(source):
    """Plain-text preview of stored content (either format)."""
    click.echo(strip_to_plain_text(read_content(source)))


@cli.command("mentions")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--members", default="", help="Comma-separated channel member ids.")
@click.option("--roles", "roles_path", type=click.Path(dir_okay=False),
              help='JSON file mapping role id → member ids, e.g. {"2": [5, 6]}.')
def mentions_cmd(source, members, roles_path):
    """List the user ids a message notifies."""
    try:
        member_ids = [int(m) for m in members.split(",") if m.strip()]
    except ValueError:
        raise click.BadParameter("member ids must be integers", param_hint="--members")

    role_map = {}
    if roles_path:
        try:
            with open(roles_path, encoding="utf-8") as f:
                role_map = {int(k): [int(u) for u in v] for k, v in json.load(f).items()}
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise click.ClickException(f"Cannot load roles file {roles_path}: {e}")

    def _role_members(role_ids):
        return [user_id for role_id in role_ids for user_id in role_map.get(role_id, [])]

    result = parse_mentioned_user_ids(read_content(source), member_ids, _role_members)
    click.echo(json.dumps({"user_ids": result.user_ids, "mentions_all": result.mentions_all}))
