"""Shared utilities for pulse-markup CLI commands."""

import json
from typing import Optional

import click
from rich.console import Console

from pulse_markup.directory import ResolutionContext

console = Console()


def read_content(source) -> str:
    """Read message content from an open click File, dropping one trailing newline.

    Shells and editors end files with a newline that is not part of the message.
    """
    text = source.read()
    if text.endswith("\n"):
        text = text[:-1]
    return text


def load_directory(path: Optional[str]) -> ResolutionContext:
    """Load a directory JSON file into a ResolutionContext (empty when no path)."""
    if not path:
        return ResolutionContext()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise click.ClickException(f"Cannot read directory file {path}: {e.strerror}")
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Directory file {path} is not valid JSON: {e.msg} (line {e.lineno})")

    if not isinstance(data, dict):
        raise click.ClickException(f"Directory file {path} must contain a JSON object")
    try:
        return ResolutionContext.from_dict(data)
    except (TypeError, ValueError) as e:
        raise click.ClickException(f"Directory file {path} has a malformed entry: {e}")
