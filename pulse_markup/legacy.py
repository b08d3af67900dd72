"""Legacy editor HTML → token text, for migrating stored messages.

Regex-based on purpose: stored legacy HTML was produced by one editor with
a fixed attribute vocabulary, and the migration must be cheap enough to run
over whole message tables. Safe to re-run: token-format content is left
untouched by ``migrate_content``.
"""

import html as _html
import logging
import re
from typing import Optional

from .detect import is_legacy_html

logger = logging.getLogger("pulse_markup.legacy")

_ATTR = r'=["\']'
_END = r'["\']'

_CODE_BLOCK_RE = re.compile(r'<pre><code(?:\s+class="language-(\w+)")?>(.*?)</code></pre>', re.DOTALL)

# (pattern, replacement) pairs; mentions and emoji are matched in either attribute order
_SPAN_RULES = [
    (rf'<span[^>]*data-mention-type{_ATTR}user{_END}[^>]*data-mention-id{_ATTR}(\d+){_END}[^>]*>[^<]*</span>', r'<@\1>'),
    (rf'<span[^>]*data-mention-id{_ATTR}(\d+){_END}[^>]*data-mention-type{_ATTR}user{_END}[^>]*>[^<]*</span>', r'<@\1>'),
    (rf'<span[^>]*data-mention-type{_ATTR}role{_END}[^>]*data-mention-id{_ATTR}(\d+){_END}[^>]*>[^<]*</span>', r'<@&\1>'),
    (rf'<span[^>]*data-mention-id{_ATTR}(\d+){_END}[^>]*data-mention-type{_ATTR}role{_END}[^>]*>[^<]*</span>', r'<@&\1>'),
    (rf'<span[^>]*data-mention-type{_ATTR}all{_END}[^>]*>[^<]*</span>', '@everyone'),
    (rf'<span[^>]*data-type{_ATTR}channel-mention{_END}[^>]*data-channel-id{_ATTR}(\d+){_END}[^>]*>[^<]*</span>', r'<#\1>'),
    (rf'<span[^>]*data-channel-id{_ATTR}(\d+){_END}[^>]*data-type{_ATTR}channel-mention{_END}[^>]*>[^<]*</span>', r'<#\1>'),
    (rf'<img[^>]*data-emoji-name{_ATTR}(\w+){_END}[^>]*data-emoji-id{_ATTR}(\d+){_END}[^>]*/?>', r'<:\1:\2>'),
    (rf'<img[^>]*data-emoji-id{_ATTR}(\d+){_END}[^>]*data-emoji-name{_ATTR}(\w+){_END}[^>]*/?>', r'<:\2:\1>'),
    # Standard emoji drawn as images keep their unicode alt text
    (r'<img[^>]*class=["\'][^"\']*emoji-image[^"\']*["\'][^>]*alt=["\']([^"\']+)["\'][^>]*/?>', r'\1'),
    (r'<img[^>]*alt=["\']([^"\']+)["\'][^>]*class=["\'][^"\']*emoji-image[^"\']*["\'][^>]*/?>', r'\1'),
]
_SPAN_RULES = [(re.compile(pattern, re.ASCII), repl) for pattern, repl in _SPAN_RULES]

_BLOCKQUOTE_RE = re.compile(r'<blockquote>(.*?)</blockquote>', re.DOTALL)

_INLINE_RULES = [
    (re.compile(r'<(strong|b)>(.*?)</\1>', re.DOTALL), r'**\2**'),
    (re.compile(r'<(em|i)>(.*?)</\1>', re.DOTALL), r'*\2*'),
    (re.compile(r'<(s|del)>(.*?)</\1>', re.DOTALL), r'~~\2~~'),
    (re.compile(r'<u>(.*?)</u>', re.DOTALL), r'__\1__'),
    (re.compile(r'<code>(.*?)</code>', re.DOTALL), r'`\1`'),
]

_LINK_RE = re.compile(r'<a[^>]*href=["\']([^"\']+)["\'][^>]*>[^<]*</a>')
_BR_RE = re.compile(r'<br\s*/?>')
# Any leftover tag, but never our own tokens (<@1>, <#1>, <:n:1>)
_LEFTOVER_TAG_RE = re.compile(r'</?[a-zA-Z][^>]*>')


def decode_entities(text: str) -> str:
    """Decode HTML entities; non-breaking spaces become plain spaces."""
    return _html.unescape(text).replace("\xa0", " ")


def _code_block(match: re.Match) -> str:
    lang = match.group(1) or ""
    code = decode_entities(re.sub(r'<[^>]*>', '', match.group(2)))
    return f"```{lang}\n{code}\n```"


def _blockquote(match: re.Match) -> str:
    inner = match.group(1).replace("<p>", "").replace("</p>", "\n")
    inner = _BR_RE.sub("\n", inner)
    inner = re.sub(r'<[^>]+>', '', inner).strip()
    return "\n".join(f"> {line}" for line in inner.split("\n"))


def html_to_tokens(html: Optional[str]) -> str:
    """Convert one legacy HTML message body to token text."""
    if not html:
        return ""

    result = _CODE_BLOCK_RE.sub(_code_block, html)

    for pattern, repl in _SPAN_RULES:
        result = pattern.sub(repl, result)

    result = _BLOCKQUOTE_RE.sub(_blockquote, result)

    for pattern, repl in _INLINE_RULES:
        result = pattern.sub(repl, result)

    result = _LINK_RE.sub(r'\1', result)

    # Paragraphs and line breaks
    result = _BR_RE.sub("\n", result)
    result = re.sub(r'</p>\s*<p>', "\n", result)
    result = re.sub(r'</?p>', "", result)

    result = _LEFTOVER_TAG_RE.sub("", result)
    result = decode_entities(result)

    result = re.sub(r'\n{3,}', "\n\n", result)
    return result.strip()


def migrate_content(content: Optional[str]) -> Optional[str]:
    """Return token text for a stored message, or None when nothing changes.

    Missing content (end-to-end encrypted rows) and content that is already
    token text are skipped.
    """
    if not content or not is_legacy_html(content):
        return None
    converted = html_to_tokens(content)
    logger.debug(f"Migrated legacy message ({len(content)} → {len(converted)} chars)")
    return converted
