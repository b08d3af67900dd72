"""Token stream → render tree, plus the media side channel.

The render tree is a list of small immutable nodes the UI layer turns into
whatever it displays (``display.to_html`` is the reference sink). Mention
and emoji nodes carry ids only; names are resolved against the live
directory when the tree is displayed, never here.

Bare URLs are classified in order:

  1. Twitter/X status link    → embed (status id)
  2. YouTube watch/share link → embed (video id)
  3. Image file URL           → pushed to the media sink, not rendered
  4. Anything else            → plain hyperlink

Legacy HTML rows are sanitized first, then walked the same way: links in
the markup are classified by the same rules and mention spans become live
mention nodes.
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional, Union
from urllib.parse import urlsplit

from bs4.element import NavigableString, Tag

from .config import MarkupSettings, resolve_settings
from .detect import is_legacy_html
from .emoji import is_emoji_only
from .sanitize import sanitize_tree
from .tokenizer import tokenize
from .tokens import (
    Blockquote,
    Bold,
    CodeBlock,
    CustomEmoji,
    InlineCode,
    Italic,
    Mention,
    Newline,
    Strikethrough,
    Text,
    Token,
    Underline,
    Url,
)

logger = logging.getLogger("pulse_markup.renderer")


# ============================================================
# RENDER NODES
# ============================================================

@dataclass(frozen=True)
class TextNode:
    text: str


@dataclass(frozen=True)
class LineBreak:
    pass


@dataclass(frozen=True)
class MentionNode:
    """``label`` is the name stored with a legacy mention, shown when the directory has no entry."""
    kind: str
    id: Optional[int] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class EmojiNode:
    name: str
    id: int


@dataclass(frozen=True)
class CodeBlockNode:
    code: str
    language: Optional[str] = None


@dataclass(frozen=True)
class InlineCodeNode:
    code: str


@dataclass(frozen=True)
class ElementNode:
    """Emphasis or quote container: tag is one of strong, em, s, u, blockquote."""
    tag: str
    children: tuple = ()


@dataclass(frozen=True)
class EmbedNode:
    provider: str   # 'twitter' or 'youtube'
    embed_id: str
    url: str


@dataclass(frozen=True)
class LinkNode:
    href: str


@dataclass(frozen=True)
class LegacyElementNode:
    """An element of sanitized legacy HTML, kept with its allowed attributes."""
    tag: str
    attrs: tuple = ()   # (name, value) pairs
    children: tuple = ()


RenderNode = Union[
    TextNode, LineBreak, MentionNode, EmojiNode, CodeBlockNode, InlineCodeNode,
    ElementNode, EmbedNode, LinkNode, LegacyElementNode,
]


@dataclass(frozen=True)
class MediaItem:
    type: str
    url: str


MediaSink = Callable[[MediaItem], None]


@dataclass(frozen=True)
class RenderResult:
    nodes: tuple
    media: tuple = ()
    emoji_only: bool = False


_EMPHASIS_TAGS = {
    Bold: "strong",
    Italic: "em",
    Strikethrough: "s",
    Underline: "u",
}


# ============================================================
# URL CLASSIFICATION
# ============================================================

TWITTER_STATUS_RE = re.compile(r'^https?://(?:www\.|mobile\.)?(?:twitter|x)\.com/\w+/status/(\d+)', re.ASCII)
YOUTUBE_RE = re.compile(
    r'^https?://(?:(?:www\.|m\.|music\.)?youtube\.com/(?:watch\?(?:[^#\s]*&)?v=|embed/|v/|shorts/|live/)'
    r'|youtu\.be/)([\w-]+)',
    re.ASCII,
)


def is_image_url(href: str, settings: Optional[MarkupSettings] = None) -> bool:
    """True if the URL path ends in a known image extension (query ignored)."""
    settings = resolve_settings(settings)
    path = urlsplit(href).path.lower()
    return path.endswith(tuple(ext.lower() for ext in settings.image_extensions))


def classify_url(href: str, settings: Optional[MarkupSettings] = None) -> Union[EmbedNode, MediaItem, LinkNode]:
    """Decide how a bare URL is shown. First matching rule wins."""
    match = TWITTER_STATUS_RE.match(href)
    if match:
        return EmbedNode("twitter", match.group(1), href)

    match = YOUTUBE_RE.match(href)
    if match:
        return EmbedNode("youtube", match.group(1), href)

    if is_image_url(href, settings):
        return MediaItem("image", href)

    return LinkNode(href)


# ============================================================
# RENDERING
# ============================================================

def render_tokens(
    tokens: list[Token],
    push_media: MediaSink,
    settings: Optional[MarkupSettings] = None,
) -> list[RenderNode]:
    """Render a token stream into nodes.

    Image URLs are handed to ``push_media`` in stream order (nested tokens
    included) and left out of the returned nodes.
    """
    settings = resolve_settings(settings)
    nodes: list[RenderNode] = []

    for token in tokens:
        if isinstance(token, Text):
            nodes.append(TextNode(token.value))
        elif isinstance(token, Newline):
            nodes.append(LineBreak())
        elif isinstance(token, Mention):
            nodes.append(MentionNode(token.kind, token.id))
        elif isinstance(token, CustomEmoji):
            nodes.append(EmojiNode(token.name, token.id))
        elif isinstance(token, CodeBlock):
            nodes.append(CodeBlockNode(token.code, token.lang or None))
        elif isinstance(token, InlineCode):
            nodes.append(InlineCodeNode(token.code))
        elif isinstance(token, Blockquote):
            nodes.append(ElementNode("blockquote", tuple(render_tokens(token.children, push_media, settings))))
        elif type(token) in _EMPHASIS_TAGS:
            children = tuple(render_tokens(token.children, push_media, settings))
            nodes.append(ElementNode(_EMPHASIS_TAGS[type(token)], children))
        elif isinstance(token, Url):
            classified = classify_url(token.href, settings)
            if isinstance(classified, MediaItem):
                logger.debug(f"Extracted {classified.type} media: {classified.url}")
                push_media(classified)
            else:
                nodes.append(classified)

    return nodes


# ============================================================
# LEGACY HTML
# ============================================================

# Whitespace-only text directly inside these is source formatting
_LEGACY_BLOCKS = {"[document]", "blockquote", "ul", "ol", "div"}
_LEGACY_MENTION_KINDS = {"user", "role", "all"}


def _legacy_mention(el: Tag) -> Optional[MentionNode]:
    if el.get("data-type") == "channel-mention":
        channel_id = el.get("data-channel-id") or ""
        if not channel_id.isdigit():
            return None
        label = el.get("data-channel-name") or el.get_text().lstrip("#")
        return MentionNode("channel", int(channel_id), label or None)

    kind = el.get("data-mention-type")
    if kind not in _LEGACY_MENTION_KINDS:
        return None
    if kind == "all":
        return MentionNode("all")
    mention_id = el.get("data-mention-id") or ""
    if not mention_id.isdigit():
        return None
    label = el.get("data-mention-name") or el.get_text().lstrip("@")
    return MentionNode(kind, int(mention_id), label or None)


def _legacy_attrs(el: Tag) -> tuple:
    return tuple(
        (name, " ".join(value) if isinstance(value, list) else value)
        for name, value in el.attrs.items()
    )


def _legacy_nodes(nodes, push_media: MediaSink, settings: MarkupSettings) -> list[RenderNode]:
    rendered: list[RenderNode] = []

    for node in nodes:
        if isinstance(node, NavigableString):
            text = str(node)
            parent = node.parent.name if node.parent is not None else "[document]"
            if not text or (parent in _LEGACY_BLOCKS and not text.strip()):
                continue
            # Outside <pre>, a newline in HTML source displays as a space
            rendered.append(TextNode(text.replace("\n", " ")))
            continue
        if not isinstance(node, Tag):
            continue

        tag = node.name
        if tag == "span":
            mention = _legacy_mention(node)
            if mention is not None:
                rendered.append(mention)
                continue

        if tag == "pre":
            code_el = node.find("code")
            if code_el is not None:
                classes = code_el.get("class") or []
                language = next((c[len("language-"):] for c in classes if c.startswith("language-")), "")
                rendered.append(CodeBlockNode(code_el.get_text(), language or None))
                continue

        if tag == "a":
            href = node.get("href") or ""
            # Only absolute web URLs are classified; relative links stay links
            if urlsplit(href).scheme in ("http", "https"):
                classified = classify_url(href, settings)
                if isinstance(classified, MediaItem):
                    logger.debug(f"Extracted {classified.type} media from legacy link: {classified.url}")
                    push_media(classified)
                    continue
                if isinstance(classified, EmbedNode):
                    rendered.append(classified)
                    continue

        children = tuple(_legacy_nodes(node.children, push_media, settings))
        rendered.append(LegacyElementNode(tag, _legacy_attrs(node), children))

    return rendered


def render_legacy_html(
    html: str,
    push_media: MediaSink,
    settings: Optional[MarkupSettings] = None,
) -> list[RenderNode]:
    """Render stored legacy HTML into nodes.

    The markup is sanitized first. Mention spans become live mention nodes,
    code blocks become code nodes, links to tweets and videos become
    embeds and image links go to ``push_media``. Everything else is kept
    as sanitized elements.
    """
    settings = resolve_settings(settings)
    return _legacy_nodes(sanitize_tree(html).children, push_media, settings)


def render_content(
    content: Optional[str],
    file_count: int = 0,
    settings: Optional[MarkupSettings] = None,
) -> RenderResult:
    """Render stored message content of either format.

    Legacy HTML is sanitized and rendered from its element tree; token text
    is tokenized and rendered. The media found while walking either one is
    flushed into the result once the walk is done.
    """
    if not content:
        return RenderResult(nodes=())

    found_media: list[MediaItem] = []
    if is_legacy_html(content):
        logger.debug("Content is legacy HTML, skipping tokenizer")
        nodes = render_legacy_html(content, found_media.append, settings)
    else:
        nodes = render_tokens(tokenize(content), found_media.append, settings)

    return RenderResult(
        nodes=tuple(nodes),
        media=tuple(found_media),
        emoji_only=is_emoji_only(content, file_count, settings),
    )


@lru_cache(maxsize=512)
def render_content_cached(content: Optional[str], file_count: int = 0) -> RenderResult:
    """``render_content`` memoized on ``(content, file_count)`` with default settings.

    For callers that redraw unchanged messages repeatedly.
    """
    return render_content(content, file_count)
