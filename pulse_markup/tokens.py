"""Token model — the single intermediate form between token text and display.

A token stream is a flat list of tokens; emphasis and blockquote tokens
carry their own nested tuple of children. Mentions and custom emoji only
ever hold ids, never display names: names are looked up when the stream
is displayed, so a render always shows the *current* name.
"""

from dataclasses import dataclass, field
from typing import Iterable, Literal, Optional, Union

MentionKind = Literal["user", "role", "all", "channel"]
MENTION_KINDS: tuple[str, ...] = ("user", "role", "all", "channel")


@dataclass(frozen=True)
class Text:
    value: str
    type: str = field(default="text", init=False)


@dataclass(frozen=True)
class Mention:
    """A user, role, channel or @everyone mention. ``all`` has no id."""

    kind: MentionKind
    id: Optional[int] = None
    type: str = field(default="mention", init=False)

    def __post_init__(self):
        if self.kind not in MENTION_KINDS:
            raise ValueError(f"Unknown mention kind: {self.kind!r}")
        if self.kind == "all" and self.id is not None:
            raise ValueError("@everyone mentions carry no id")


@dataclass(frozen=True)
class CustomEmoji:
    """Server emoji reference. ``id`` is authoritative, ``name`` is a fallback label."""

    name: str
    id: int
    type: str = field(default="custom_emoji", init=False)


@dataclass(frozen=True)
class CodeBlock:
    code: str
    lang: Optional[str] = None
    type: str = field(default="code_block", init=False)


@dataclass(frozen=True)
class InlineCode:
    code: str
    type: str = field(default="inline_code", init=False)


@dataclass(frozen=True)
class Bold:
    children: tuple["Token", ...]
    type: str = field(default="bold", init=False)


@dataclass(frozen=True)
class Italic:
    children: tuple["Token", ...]
    type: str = field(default="italic", init=False)


@dataclass(frozen=True)
class Strikethrough:
    children: tuple["Token", ...]
    type: str = field(default="strikethrough", init=False)


@dataclass(frozen=True)
class Underline:
    children: tuple["Token", ...]
    type: str = field(default="underline", init=False)


@dataclass(frozen=True)
class Blockquote:
    """One or more contiguous quoted lines."""

    children: tuple["Token", ...]
    type: str = field(default="blockquote", init=False)


@dataclass(frozen=True)
class Url:
    href: str
    type: str = field(default="url", init=False)


@dataclass(frozen=True)
class Newline:
    type: str = field(default="newline", init=False)


Token = Union[
    Text, Mention, CustomEmoji, CodeBlock, InlineCode,
    Bold, Italic, Strikethrough, Underline, Blockquote, Url, Newline,
]

# Tokens that wrap a nested stream
CONTAINER_TYPES = (Bold, Italic, Strikethrough, Underline, Blockquote)


def display_text(tokens: Iterable[Token]) -> str:
    """Flatten a token stream to the text a reader would see.

    Mentions become ``<kind:id>`` markers and custom emoji ``:name:`` so two
    streams can be compared for identity without a directory. Formatting is
    dropped; code keeps its literal content.
    """
    parts = []
    for token in tokens:
        if isinstance(token, Text):
            parts.append(token.value)
        elif isinstance(token, Newline):
            parts.append("\n")
        elif isinstance(token, Mention):
            parts.append("<all>" if token.kind == "all" else f"<{token.kind}:{token.id}>")
        elif isinstance(token, CustomEmoji):
            parts.append(f":{token.name}:")
        elif isinstance(token, (CodeBlock, InlineCode)):
            parts.append(token.code)
        elif isinstance(token, Url):
            parts.append(token.href)
        elif isinstance(token, CONTAINER_TYPES):
            parts.append(display_text(token.children))
    return "".join(parts)


def to_dict(token: Token) -> dict:
    """JSON-friendly form of a token (nested children included)."""
    data = {"type": token.type}
    if isinstance(token, CONTAINER_TYPES):
        data["children"] = [to_dict(child) for child in token.children]
        return data
    for name in token.__dataclass_fields__:
        if name != "type":
            data[name] = getattr(token, name)
    return data
