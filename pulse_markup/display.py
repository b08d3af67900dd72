"""Render tree → display HTML.

This is where the live directory is consulted: mention and emoji nodes are
resolved to their *current* names at display time. Unknown ids fall back to
a neutral label instead of disappearing.
"""

import html as _html
import logging
from typing import Iterable, Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .config import MarkupSettings, resolve_settings
from .directory import Directory
from .renderer import (
    CodeBlockNode,
    ElementNode,
    EmbedNode,
    EmojiNode,
    InlineCodeNode,
    LegacyElementNode,
    LineBreak,
    LinkNode,
    MentionNode,
    RenderNode,
    TextNode,
    render_content,
)

logger = logging.getLogger("pulse_markup.display")

_CODE_FORMATTER = HtmlFormatter(nowrap=True, classprefix="hl-")
_VOID_TAGS = {"br", "hr", "img"}


def _escape(text: str) -> str:
    """Escape HTML special characters in text and attribute values."""
    return _html.escape(text, quote=True)


def _resolve(directory: Optional[Directory], kind: str, id: Optional[int]) -> Optional[str]:
    if directory is None or id is None:
        return None
    value = directory.resolve(kind, id)
    if value is None:
        logger.debug(f"Unresolved {kind} id {id}")
    return value


def highlight_code(code: str, language: Optional[str]) -> str:
    """Syntax-highlight a code block body; unknown languages are escaped verbatim."""
    if language:
        try:
            lexer = get_lexer_by_name(language)
        except ClassNotFound:
            pass
        else:
            # Pygments always appends a trailing newline
            return highlight(code, lexer, _CODE_FORMATTER).rstrip("\n")
    return _escape(code)


def _mention_html(node: MentionNode, directory: Optional[Directory], settings: MarkupSettings) -> str:
    if node.kind == "all":
        return '<span class="mention mention-all" data-mention-type="all">@all</span>'

    name = _resolve(directory, node.kind, node.id) or node.label or settings.unknown_label
    if node.kind == "channel":
        return (
            f'<span class="mention" data-type="channel-mention" data-channel-id="{node.id}">'
            f'#{_escape(name)}</span>'
        )
    return (
        f'<span class="mention" data-mention-type="{node.kind}" data-mention-id="{node.id}">'
        f'@{_escape(name)}</span>'
    )


def _emoji_html(node: EmojiNode, directory: Optional[Directory]) -> str:
    src = _resolve(directory, "emoji", node.id)
    if not src:
        return f'<span>:{_escape(node.name)}:</span>'
    name = _escape(node.name)
    return f'<img class="emoji-image" src="{_escape(src)}" alt="{name}" title=":{name}:" />'


def _embed_html(node: EmbedNode) -> str:
    if node.provider == "youtube":
        return (
            f'<div class="embed embed-youtube" data-video-id="{_escape(node.embed_id)}">'
            f'<iframe src="https://www.youtube.com/embed/{_escape(node.embed_id)}" allowfullscreen></iframe>'
            '</div>'
        )
    return (
        f'<div class="embed embed-{_escape(node.provider)}" data-status-id="{_escape(node.embed_id)}">'
        f'<a href="{_escape(node.url)}" target="_blank" rel="noopener noreferrer">{_escape(node.url)}</a>'
        '</div>'
    )


def _legacy_element_html(node: LegacyElementNode, directory: Optional[Directory], settings: MarkupSettings) -> str:
    attrs = "".join(f' {name}="{_escape(value)}"' for name, value in node.attrs)
    if node.tag in _VOID_TAGS:
        return f'<{node.tag}{attrs} />'
    return f'<{node.tag}{attrs}>{to_html(node.children, directory, settings)}</{node.tag}>'


def to_html(
    nodes: Iterable[RenderNode],
    directory: Optional[Directory] = None,
    settings: Optional[MarkupSettings] = None,
) -> str:
    """Serialize render nodes to HTML, resolving names through ``directory``."""
    settings = resolve_settings(settings)
    parts = []

    for node in nodes:
        if isinstance(node, TextNode):
            parts.append(_escape(node.text).replace("\n", "<br />"))
        elif isinstance(node, LineBreak):
            parts.append("<br />")
        elif isinstance(node, MentionNode):
            parts.append(_mention_html(node, directory, settings))
        elif isinstance(node, EmojiNode):
            parts.append(_emoji_html(node, directory))
        elif isinstance(node, CodeBlockNode):
            lang_class = f' class="language-{_escape(node.language)}"' if node.language else ''
            parts.append(f'<pre><code{lang_class}>{highlight_code(node.code, node.language)}</code></pre>')
        elif isinstance(node, InlineCodeNode):
            parts.append(f'<code>{_escape(node.code)}</code>')
        elif isinstance(node, ElementNode):
            inner = to_html(node.children, directory, settings)
            if node.tag == "blockquote":
                parts.append(f'<blockquote><p>{inner}</p></blockquote>')
            else:
                parts.append(f'<{node.tag}>{inner}</{node.tag}>')
        elif isinstance(node, EmbedNode):
            parts.append(_embed_html(node))
        elif isinstance(node, LinkNode):
            href = _escape(node.href)
            parts.append(f'<a href="{href}" target="_blank" rel="noopener noreferrer">{href}</a>')
        elif isinstance(node, LegacyElementNode):
            parts.append(_legacy_element_html(node, directory, settings))

    return "".join(parts)


def render_html(
    content: Optional[str],
    file_count: int = 0,
    directory: Optional[Directory] = None,
    settings: Optional[MarkupSettings] = None,
) -> str:
    """Stored content → display HTML, wrapped the way the message list shows it."""
    result = render_content(content, file_count, settings)
    body = to_html(result.nodes, directory, settings)
    if result.emoji_only:
        return f'<span class="emoji-only">{body}</span>'
    return f'<span>{body}</span>'
