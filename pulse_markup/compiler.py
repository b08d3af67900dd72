"""Editor HTML → token text.

Walks the rich-text editor's document (its HTML serialization) and emits
canonical token text, the form that is stored and transmitted:

  User mention:    <@123>
  Role mention:    <@&456>
  @all:            @everyone
  Channel mention: <#789>
  Custom emoji:    <:name:42>
  Formatting:      **bold**, *italic*, ~~strike~~, __underline__, `code`,
                   ```lang\\ncode\\n```, > blockquote
  Paragraphs:      \\n separated
  Links:           bare URL text
"""

import logging
import re

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

logger = logging.getLogger("pulse_markup.compiler")

_HEADING_RE = re.compile(r'^h[1-6]$')
# Whitespace-only text directly inside these is source formatting, not content
_BLOCK_CONTAINERS = {"[document]", "blockquote", "ul", "ol", "div", "body", "html"}


def _classes(el: Tag) -> list[str]:
    value = el.get("class") or []
    return value.split() if isinstance(value, str) else list(value)


def _walk_nodes(nodes) -> str:
    return "".join(_walk_node(node) for node in nodes)


def _walk_node(node) -> str:
    if isinstance(node, NavigableString):
        # Comments, doctypes, CDATA
        if isinstance(node, PreformattedString):
            return ""
        text = str(node)
        parent = node.parent.name if node.parent is not None else "[document]"
        if parent in _BLOCK_CONTAINERS and not text.strip() and "\n" in text:
            return ""
        return text.replace("\xa0", " ")

    if not isinstance(node, Tag):
        return ""

    tag = node.name.lower()

    # --- Mention spans ---
    if tag == "span" and node.get("data-mention-type"):
        kind = node.get("data-mention-type")
        mention_id = node.get("data-mention-id")
        if kind == "all":
            return "@everyone"
        if kind == "role" and mention_id:
            return f"<@&{mention_id}>"
        if kind == "user" and mention_id:
            return f"<@{mention_id}>"
        return node.get_text()

    # --- Channel mention spans ---
    if tag == "span" and node.get("data-type") == "channel-mention":
        channel_id = node.get("data-channel-id")
        if channel_id:
            return f"<#{channel_id}>"
        return node.get_text()

    # --- Custom emoji and standard emoji images ---
    if tag == "img":
        emoji_id = node.get("data-emoji-id")
        emoji_name = node.get("data-emoji-name") or node.get("alt")
        if emoji_id and emoji_name:
            return f"<:{emoji_name}:{emoji_id}>"
        # Standard emoji drawn as an image: the alt text is the unicode emoji
        if "emoji-image" in _classes(node) or node.get("data-type") == "emoji":
            return node.get("alt") or ""
        return ""

    # --- Code blocks: <pre><code class="language-x">...</code></pre> ---
    if tag == "pre":
        code_el = node.find("code")
        if code_el is not None:
            lang = next(
                (cls[len("language-"):] for cls in _classes(code_el) if cls.startswith("language-")),
                "",
            )
            return f"```{lang}\n{code_el.get_text()}\n```\n"
        return f"```\n{node.get_text()}\n```\n"

    if tag == "code":
        return f"`{node.get_text()}`"

    # --- Formatting ---
    if tag in ("strong", "b"):
        return f"**{_walk_nodes(node.children)}**"
    if tag in ("em", "i"):
        return f"*{_walk_nodes(node.children)}*"
    if tag in ("s", "del", "strike"):
        return f"~~{_walk_nodes(node.children)}~~"
    if tag == "u":
        return f"__{_walk_nodes(node.children)}__"

    # --- Blockquote: every line gets the marker ---
    if tag == "blockquote":
        inner = _walk_nodes(node.children).rstrip("\n")
        return "\n".join(f"> {line}" for line in inner.split("\n")) + "\n"

    # --- Links: the bare URL is the token ---
    if tag == "a":
        return node.get("href") or node.get_text()

    if tag == "p":
        return _walk_nodes(node.children) + "\n"

    if tag == "br":
        return "\n"

    if tag in ("ul", "ol"):
        lines = []
        for index, item in enumerate(node.find_all("li", recursive=False), start=1):
            prefix = f"{index}. " if tag == "ol" else "- "
            lines.append(prefix + _walk_nodes(item.children).rstrip() + "\n")
        return "".join(lines)

    if _HEADING_RE.match(tag):
        return "#" * int(tag[1]) + " " + _walk_nodes(node.children) + "\n"

    if tag == "hr":
        return "---\n"

    # Divs and other containers
    return _walk_nodes(node.children)


def editor_html_to_tokens(html: str) -> str:
    """Convert editor HTML to token text."""
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    result = _walk_nodes(soup.children)

    # Paragraphs end in a newline; the message does not
    result = result.rstrip("\n")
    result = re.sub(r'\n{3,}', '\n\n', result)
    logger.debug(f"Compiled {len(html)} chars of editor HTML to {len(result)} chars of token text")
    return result
