"""pulse-markup — message content markup engine.

Converts between editor HTML, wire-stable token text and a render tree:
- Tokenizer: token text → token stream
- Renderer: token stream → render nodes (+ extracted media)
- Compiler / Decompiler: editor HTML ⇄ token text
- Detection: legacy HTML vs token text, emoji-only messages
"""

__version__ = "0.4.0"

from .compiler import editor_html_to_tokens
from .decompiler import tokens_to_editor_html
from .detect import is_legacy_html, is_token_content_empty, strip_to_plain_text
from .directory import Directory, EmojiRef, LiveDirectory, ResolutionContext
from .display import render_html, to_html
from .emoji import is_emoji_only
from .legacy import html_to_tokens, migrate_content
from .mentions import parse_mentioned_user_ids, parse_token_mentions
from .renderer import MediaItem, RenderResult, render_content, render_legacy_html, render_tokens
from .sanitize import sanitize_html
from .tokenizer import INLINE_PATTERNS, tokenize, tokenize_inline

__all__ = [
    # Tokenizer
    "tokenize",
    "tokenize_inline",
    "INLINE_PATTERNS",
    # Renderer
    "render_tokens",
    "render_content",
    "render_legacy_html",
    "RenderResult",
    "MediaItem",
    "to_html",
    "render_html",
    # Editor conversion
    "editor_html_to_tokens",
    "tokens_to_editor_html",
    # Directory
    "Directory",
    "ResolutionContext",
    "LiveDirectory",
    "EmojiRef",
    # Detection
    "is_legacy_html",
    "is_emoji_only",
    "strip_to_plain_text",
    "is_token_content_empty",
    # Supplementary
    "html_to_tokens",
    "migrate_content",
    "sanitize_html",
    "parse_mentioned_user_ids",
    "parse_token_mentions",
]
