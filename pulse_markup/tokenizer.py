"""Token text → token stream.

Two passes, mirroring the wire grammar:

  Block scan   code fences and ``> `` blockquotes, line by line
  Inline scan  mentions, emoji, code spans, emphasis and bare URLs

The inline scan is a "best match" search over an explicit priority table:
at every step each pattern is searched from the current position, the
match with the smallest start offset wins, and on a tie the pattern listed
first in ``INLINE_PATTERNS`` wins. The table order is part of the wire
contract: reordering it changes how stored messages parse.

Never raises. Malformed input degrades into text tokens.
"""

import logging
import re
from typing import Callable, NamedTuple, Optional

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

logger = logging.getLogger("pulse_markup.tokenizer")

FENCE = "```"
QUOTE_PREFIX = "> "


class InlinePattern(NamedTuple):
    name: str
    regex: re.Pattern
    build: Callable[[re.Match], Token]
    # Has a lookbehind, so a match at the scan position depends on where the scan starts
    looks_behind: bool = False


# ============================================================
# INLINE PRIORITY TABLE (highest priority first)
# ============================================================
# Captures are lazy and bounded by a literal closing delimiter, so no
# pattern can backtrack catastrophically.

USER_MENTION_RE = re.compile(r'<@(\d+)>', re.ASCII)
ROLE_MENTION_RE = re.compile(r'<@&(\d+)>', re.ASCII)
ALL_MENTION_RE = re.compile(r'@everyone')
CHANNEL_MENTION_RE = re.compile(r'<#(\d+)>', re.ASCII)
CUSTOM_EMOJI_RE = re.compile(r'<:(\w+):(\d+)>', re.ASCII)
# Single backticks only: a doubled delimiter is never a code span
INLINE_CODE_RE = re.compile(r'(?<!`)`(?!`)([^`\n]+?)`(?!`)')
BOLD_RE = re.compile(r'\*\*(.+?)\*\*')
# Not adjacent to another *
ITALIC_RE = re.compile(r'(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)')
STRIKETHROUGH_RE = re.compile(r'~~(.+?)~~')
UNDERLINE_RE = re.compile(r'__(.+?)__')
URL_RE = re.compile(r'https?://[^\s<>)]+')


INLINE_PATTERNS: tuple[InlinePattern, ...] = (
    InlinePattern("user_mention", USER_MENTION_RE, lambda m: Mention("user", int(m.group(1)))),
    InlinePattern("role_mention", ROLE_MENTION_RE, lambda m: Mention("role", int(m.group(1)))),
    InlinePattern("all_mention", ALL_MENTION_RE, lambda m: Mention("all")),
    InlinePattern("channel_mention", CHANNEL_MENTION_RE, lambda m: Mention("channel", int(m.group(1)))),
    InlinePattern("custom_emoji", CUSTOM_EMOJI_RE, lambda m: CustomEmoji(m.group(1), int(m.group(2)))),
    InlinePattern("inline_code", INLINE_CODE_RE, lambda m: InlineCode(m.group(1)), looks_behind=True),
    InlinePattern("bold", BOLD_RE, lambda m: Bold(tuple(tokenize_inline(m.group(1))))),
    InlinePattern("italic", ITALIC_RE, lambda m: Italic(tuple(tokenize_inline(m.group(1)))), looks_behind=True),
    InlinePattern("strikethrough", STRIKETHROUGH_RE, lambda m: Strikethrough(tuple(tokenize_inline(m.group(1))))),
    InlinePattern("underline", UNDERLINE_RE, lambda m: Underline(tuple(tokenize_inline(m.group(1))))),
    InlinePattern("url", URL_RE, lambda m: Url(m.group(0))),
)


def tokenize_inline(text: str) -> list[Token]:
    """Tokenize one run of inline content (no fences, no blockquotes).

    Every search runs on the text that is still unconsumed, so a lookbehind
    never sees characters an earlier match already used up (``**a***b*`` is
    bold then italic).

    Each pattern's next match is cached and only searched again once the
    scan has moved past its start. A cached match stays the leftmost one:
    moving the scan start only changes what a lookbehind sees at the new
    start itself, so patterns with a lookbehind get one extra anchored try
    there.
    """
    tokens: list[Token] = []
    if not text:
        return tokens

    pos = 0
    # Per pattern: (absolute start, match) of its next match, or None
    pending: list[Optional[tuple[int, re.Match]]] = [None] * len(INLINE_PATTERNS)
    searched_from = [-1] * len(INLINE_PATTERNS)

    while pos < len(text):
        remaining = text[pos:]
        best_index = -1
        best: Optional[tuple[int, re.Match]] = None

        for index, pattern in enumerate(INLINE_PATTERNS):
            found = pending[index]
            if searched_from[index] < 0 or (found is not None and found[0] < pos):
                match = pattern.regex.search(remaining)
                found = (pos + match.start(), match) if match else None
                searched_from[index] = pos
            elif pattern.looks_behind and searched_from[index] != pos and (found is None or found[0] > pos):
                match = pattern.regex.match(remaining)
                if match:
                    found = (pos, match)
                searched_from[index] = pos
            pending[index] = found

            # Strict "<" keeps the earlier table entry on ties
            if found is not None and (best is None or found[0] < best[0]):
                best, best_index = found, index

        if best is None:
            tokens.append(Text(remaining))
            break

        start, match = best
        if start > pos:
            tokens.append(Text(text[pos:start]))
        tokens.append(INLINE_PATTERNS[best_index].build(match))
        pos = start + len(match.group(0))

    return tokens


def tokenize(text: Optional[str]) -> list[Token]:
    """Tokenize a full message: block constructs first, then inline content.

    A newline token separates lines. No newline follows the last line,
    and a block construct only emits one when more lines follow it.
    """
    tokens: list[Token] = []
    if not text:
        return tokens

    lines = text.split("\n")
    i = 0

    while i < len(lines):
        line = lines[i]

        # Code block: ```lang ... ```
        if line.startswith(FENCE):
            lang = line[len(FENCE):].strip() or None
            code_lines = []
            i += 1
            while i < len(lines) and not lines[i].startswith(FENCE):
                code_lines.append(lines[i])
                i += 1
            if i < len(lines):
                i += 1  # closing fence
            else:
                logger.debug("Unterminated code fence, closing at end of input")
            tokens.append(CodeBlock("\n".join(code_lines), lang))
            if i < len(lines):
                tokens.append(Newline())
            continue

        # Blockquote: contiguous "> " lines form one block
        if line.startswith(QUOTE_PREFIX):
            quote_lines = [line[len(QUOTE_PREFIX):]]
            i += 1
            while i < len(lines) and lines[i].startswith(QUOTE_PREFIX):
                quote_lines.append(lines[i][len(QUOTE_PREFIX):])
                i += 1
            tokens.append(Blockquote(tuple(tokenize_inline("\n".join(quote_lines)))))
            if i < len(lines):
                tokens.append(Newline())
            continue

        if line:
            tokens.extend(tokenize_inline(line))
        i += 1
        if i < len(lines):
            tokens.append(Newline())

    return tokens
