"""Stored-format detection and plain-text extraction.

Messages are stored either as legacy editor HTML or as token text. Every
consumer branches on ``is_legacy_html`` before choosing a decode path.

The check is a heuristic: token text never *normally* begins with an HTML
open tag, but a plain-prose message that starts with ``<`` followed by a
letter (``<b and c>``) is indistinguishable from markup and is classified
as legacy.
"""

import re
from typing import Optional

from .config import MarkupSettings, resolve_settings

_LEGACY_OPEN_TAG_RE = re.compile(r'^<[a-z][\w-]*[\s>]', re.IGNORECASE)
_HTML_TAG_RE = re.compile(r'<[^>]*>')

_PLAIN_USER_RE = re.compile(r'<@\d+>', re.ASCII)
_PLAIN_ROLE_RE = re.compile(r'<@&\d+>', re.ASCII)
_PLAIN_CHANNEL_RE = re.compile(r'<#\d+>', re.ASCII)
_PLAIN_EMOJI_RE = re.compile(r'<:(\w+):\d+>', re.ASCII)
_MARKER_CHARS_RE = re.compile(r'[*~_`]')


def is_legacy_html(content: Optional[str]) -> bool:
    """True if stored content is legacy editor HTML rather than token text."""
    if not content:
        return False
    return content.startswith('<p>') or bool(_LEGACY_OPEN_TAG_RE.match(content))


def strip_html_tags(html: str) -> str:
    """Strip tags repeatedly until stable (handles nested/malformed tags)."""
    result = html
    while True:
        stripped = _HTML_TAG_RE.sub('', result)
        if stripped == result:
            return stripped
        result = stripped


def strip_to_plain_text(content: Optional[str], settings: Optional[MarkupSettings] = None) -> str:
    """Readable plain text for reply previews, notifications and copy text.

    Handles both storage formats. Mentions become generic labels since a
    preview has no directory to resolve names against.
    """
    if not content:
        return ''

    if is_legacy_html(content):
        return strip_html_tags(content).strip()

    settings = resolve_settings(settings)
    text = _PLAIN_ROLE_RE.sub(settings.plain_role_label, content)
    text = _PLAIN_USER_RE.sub(settings.plain_user_label, text)
    text = _PLAIN_CHANNEL_RE.sub(settings.plain_channel_label, text)
    text = _PLAIN_EMOJI_RE.sub(r':\1:', text)
    text = _MARKER_CHARS_RE.sub('', text)
    return text.strip()


def is_token_content_empty(text: Optional[str]) -> bool:
    """True if token text has nothing worth sending.

    Emoji and mentions count as content even though they carry no letters.
    """
    if not text:
        return True
    if _PLAIN_EMOJI_RE.search(text):
        return False
    if _PLAIN_USER_RE.search(text) or _PLAIN_ROLE_RE.search(text) or _PLAIN_CHANNEL_RE.search(text):
        return False
    if '@everyone' in text:
        return False
    return not re.sub(r'[*~_`>\n]', '', text).strip()
