"""Pytest configuration and shared fixtures."""

import os

import pytest

from pulse_markup.config import MarkupSettings, load_settings
from pulse_markup.directory import EmojiRef, ResolutionContext
from pulse_markup.renderer import render_content_cached


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Keep PULSE_MARKUP_* variables from the host out of the tests."""
    for key in list(os.environ):
        if key.startswith("PULSE_MARKUP_"):
            monkeypatch.delenv(key)
    load_settings.cache_clear()
    render_content_cached.cache_clear()
    yield
    load_settings.cache_clear()
    render_content_cached.cache_clear()


@pytest.fixture
def settings():
    """Default settings, independent of any .env file."""
    return MarkupSettings(_env_file=None)


@pytest.fixture
def ctx():
    """A small server directory: two users, a role, a channel and an emoji."""
    return ResolutionContext(
        users={5: "alice", 6: "bob"},
        roles={2: "mods"},
        channels={9: "general"},
        emojis={42: EmojiRef("fire", "https://cdn.example.com/emojis/fire.png")},
    )
