"""Emoji-only classification: decides when a message is shown enlarged."""

from typing import Optional

import regex

from .config import MarkupSettings, resolve_settings
from .detect import is_legacy_html
from .sanitize import sanitize_tree
from .tokenizer import CUSTOM_EMOJI_RE

# The stdlib re module has no Unicode emoji properties
NATIVE_EMOJI_RE = regex.compile(r'\p{Emoji_Presentation}|\p{Extended_Pictographic}')
# Zero-width joiner and text/emoji variation selectors
EMOJI_JOINERS_RE = regex.compile('[\u200d\ufe0e\ufe0f]')


def _count_native(text: str) -> tuple[int, str]:
    count = len(NATIVE_EMOJI_RE.findall(text))
    residual = NATIVE_EMOJI_RE.sub('', text)
    return count, EMOJI_JOINERS_RE.sub('', residual).strip()


def count_emoji(content: str) -> tuple[int, str]:
    """Count custom and native emoji in ``content``.

    Returns:
        Tuple of (emoji_count, residual_text) where residual_text is what is
        left after removing every emoji and joiner, stripped.
    """
    custom = len(CUSTOM_EMOJI_RE.findall(content))
    native, residual = _count_native(CUSTOM_EMOJI_RE.sub('', content))
    return custom + native, residual


def count_legacy_emoji(html: str) -> tuple[int, str]:
    """Count emoji in legacy HTML.

    Custom emoji are elements carrying ``data-emoji-name``; native emoji are
    counted in the text left once tags are gone.
    """
    soup = sanitize_tree(html)
    custom = len(soup.find_all(attrs={"data-emoji-name": True}))
    native, residual = _count_native(soup.get_text())
    return custom + native, residual


def is_emoji_only(content: str, file_count: int = 0, settings: Optional[MarkupSettings] = None) -> bool:
    """True when content is nothing but a handful of emoji and has no attachments.

    Custom ``<:name:id>`` tokens and native emoji both count; between one
    and ``settings.emoji_only_max`` (6 by default) emoji qualify. Legacy
    HTML rows are judged on their text and emoji elements.
    """
    if file_count > 0 or not content:
        return False

    settings = resolve_settings(settings)
    if is_legacy_html(content):
        total, residual = count_legacy_emoji(content)
    else:
        total, residual = count_emoji(content)
    return not residual and 1 <= total <= settings.emoji_only_max
