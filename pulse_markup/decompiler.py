"""Token text → editor HTML, for re-opening a sent message in the editor.

Needs a ``ResolutionContext`` so mentions and emoji show their current
names in the editor. Ids missing from the context fall back to the
configured placeholder ("Unknown") instead of failing the conversion.

Each line is HTML-escaped once, then the inline constructs are rewritten
in a fixed order:

  custom emoji → user → role → @everyone → channel
  → bold → italic → strikethrough → underline → inline code

Inline code spans are cut out before anything else runs so their content
stays literal, and are put back as the last step. Mention and emoji
substitutions park their generated HTML in numbered slots the same way,
so markers inside inserted names (``@snake_case__user``) can never be read
as formatting by a later step. Each emphasis span is parked too once its
content is converted, so a later pass never pairs a marker inside it with
one outside (``*a***b**`` keeps its bold).
"""

import html as _html
import logging
import re
from typing import Optional

from .config import MarkupSettings, resolve_settings
from .detect import is_legacy_html
from .directory import ResolutionContext
from .sanitize import sanitize_html
from .tokenizer import FENCE, INLINE_CODE_RE, QUOTE_PREFIX

logger = logging.getLogger("pulse_markup.decompiler")

# Patterns run on escaped text, so angle brackets appear as entities
_EMOJI_RE = re.compile(r'&lt;:(\w+):(\d+)&gt;', re.ASCII)
_USER_RE = re.compile(r'&lt;@(\d+)&gt;', re.ASCII)
_ROLE_RE = re.compile(r'&lt;@&amp;(\d+)&gt;', re.ASCII)
_ALL_RE = re.compile(r'@everyone')
_CHANNEL_RE = re.compile(r'&lt;#(\d+)&gt;', re.ASCII)
_BOLD_RE = re.compile(r'\*\*(.+?)\*\*')
_ITALIC_RE = re.compile(r'(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)')
_STRIKE_RE = re.compile(r'~~(.+?)~~')
_UNDERLINE_RE = re.compile(r'__(.+?)__')
# Escaped text never contains a raw "<", so "<N>" cannot collide with content
_SLOT_RE = re.compile(r'<(\d+)>')

_EMPHASIS = (
    (_BOLD_RE, "strong"),
    (_ITALIC_RE, "em"),
    (_STRIKE_RE, "s"),
    (_UNDERLINE_RE, "u"),
)


def _escape(text: str) -> str:
    return _html.escape(text, quote=True)


class _Slots:
    """Numbered holding area for generated HTML."""

    def __init__(self):
        self._values: list[str] = []

    def park(self, value: str) -> str:
        self._values.append(value)
        return f"<{len(self._values) - 1}>"

    def restore(self, text: str) -> str:
        # Parked values may hold slots of their own (code inside bold)
        return _SLOT_RE.sub(lambda m: self.restore(self._values[int(m.group(1))]), text)


def convert_inline(line: str, ctx: ResolutionContext, settings: Optional[MarkupSettings] = None) -> str:
    """Rewrite one line of token text as editor inline HTML."""
    settings = resolve_settings(settings)
    unknown = settings.unknown_label
    slots = _Slots()

    # Backticks survive escaping, so code spans can be cut from escaped text
    text = _escape(line)
    text = INLINE_CODE_RE.sub(lambda m: slots.park(f'<code>{m.group(1)}</code>'), text)

    def _emoji(match: re.Match) -> str:
        name, emoji_id = match.group(1), match.group(2)
        ref = ctx.emoji(int(emoji_id))
        if ref is None:
            logger.debug(f"Emoji {emoji_id} not in resolution context")
        src = ref.src if ref else ""
        return slots.park(
            f'<img class="emoji-image" data-emoji-name="{_escape(name)}" data-emoji-id="{emoji_id}" '
            f'src="{_escape(src)}" alt="{_escape(name)}" />'
        )

    def _mention(kind: str, names):
        def _replace(match: re.Match) -> str:
            mention_id = match.group(1)
            name = names.get(int(mention_id))
            if name is None:
                logger.debug(f"{kind.capitalize()} {mention_id} not in resolution context")
                name = unknown
            return slots.park(
                f'<span data-mention-type="{kind}" data-mention-id="{mention_id}" '
                f'data-mention-name="{_escape(name)}">@{_escape(name)}</span>'
            )
        return _replace

    def _channel(match: re.Match) -> str:
        channel_id = match.group(1)
        name = ctx.channels.get(int(channel_id), unknown)
        return slots.park(
            f'<span data-type="channel-mention" data-channel-id="{channel_id}" '
            f'data-channel-name="{_escape(name)}">#{_escape(name)}</span>'
        )

    text = _EMOJI_RE.sub(_emoji, text)
    text = _USER_RE.sub(_mention("user", ctx.users), text)
    text = _ROLE_RE.sub(_mention("role", ctx.roles), text)
    text = _ALL_RE.sub(lambda m: slots.park('<span data-mention-type="all">@all</span>'), text)
    text = _CHANNEL_RE.sub(_channel, text)

    def _emphasize(segment: str) -> str:
        for pattern, tag in _EMPHASIS:
            segment = pattern.sub(
                lambda m, tag=tag: slots.park(f'<{tag}>{_emphasize(m.group(1))}</{tag}>'),
                segment,
            )
        return segment

    return slots.restore(_emphasize(text))


def tokens_to_editor_html(
    text: Optional[str],
    ctx: Optional[ResolutionContext] = None,
    settings: Optional[MarkupSettings] = None,
) -> str:
    """Convert token text to editor HTML.

    Content that is already editor HTML (legacy storage) is only sanitized,
    so re-opening a legacy message never double-escapes it.
    """
    if not text:
        return "<p></p>"
    if is_legacy_html(text):
        return sanitize_html(text)

    ctx = ctx or ResolutionContext()
    lines = text.split("\n")
    parts = []
    i = 0

    while i < len(lines):
        line = lines[i]

        # Code block: ```lang ... ```
        if line.startswith(FENCE):
            lang = line[len(FENCE):].strip()
            code_lines = []
            i += 1
            while i < len(lines) and not lines[i].startswith(FENCE):
                code_lines.append(lines[i])
                i += 1
            if i < len(lines):
                i += 1
            lang_class = f' class="language-{_escape(lang)}"' if lang else ''
            code = _escape("\n".join(code_lines))
            parts.append(f'<pre><code{lang_class}>{code}</code></pre>')
            continue

        # Blockquote: contiguous "> " lines, one <p> per line
        if line.startswith(QUOTE_PREFIX):
            quote_lines = [line[len(QUOTE_PREFIX):]]
            i += 1
            while i < len(lines) and lines[i].startswith(QUOTE_PREFIX):
                quote_lines.append(lines[i][len(QUOTE_PREFIX):])
                i += 1
            inner = "".join(f"<p>{convert_inline(q, ctx, settings)}</p>" for q in quote_lines)
            parts.append(f"<blockquote>{inner}</blockquote>")
            continue

        parts.append(f"<p>{convert_inline(line, ctx, settings)}</p>")
        i += 1

    return "".join(parts)
