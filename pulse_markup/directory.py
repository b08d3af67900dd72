"""Id → current value lookups for users, roles, channels and custom emoji.

Token text only stores ids. Whatever owns the live entity data (a server
cache, a test fixture, a JSON file for the CLI) exposes it through the
``Directory`` interface; the engine only ever reads from it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, NamedTuple, Optional

logger = logging.getLogger("pulse_markup.directory")

DIRECTORY_KINDS = ("user", "role", "channel", "emoji")


class EmojiRef(NamedTuple):
    name: str
    src: str


class Directory(ABC):
    """Anything that can resolve ``(kind, id)`` to a current display value."""

    @abstractmethod
    def resolve(self, kind: str, id: int) -> Optional[str]:
        """Return the current value for an id, or None when it is unknown."""


def _int_keys(mapping: Optional[Mapping]) -> dict:
    """Normalise keys to int (JSON object keys arrive as strings)."""
    if not mapping:
        return {}
    return {int(key): value for key, value in mapping.items()}


@dataclass(frozen=True)
class ResolutionContext(Directory):
    """Read-only snapshot of the directory, as the decompiler consumes it.

    ``resolve`` returns the display name for users, roles and channels and
    the image src for emoji.
    """

    users: Mapping[int, str] = field(default_factory=dict)
    roles: Mapping[int, str] = field(default_factory=dict)
    channels: Mapping[int, str] = field(default_factory=dict)
    emojis: Mapping[int, EmojiRef] = field(default_factory=dict)

    def __post_init__(self):
        # Copy and freeze so later changes to the source dicts never leak in
        for name in ("users", "roles", "channels", "emojis"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @classmethod
    def from_dict(cls, data: Mapping) -> "ResolutionContext":
        """Build from ``{"users": {...}, "roles": {...}, "channels": {...}, "emojis": {...}}``.

        Emoji entries may be ``{"name": ..., "src": ...}`` objects or
        ``[name, src]`` pairs.
        """
        emojis = {}
        for key, value in _int_keys(data.get("emojis")).items():
            if isinstance(value, Mapping):
                emojis[key] = EmojiRef(str(value.get("name", "")), str(value.get("src", "")))
            else:
                name, src = value
                emojis[key] = EmojiRef(str(name), str(src))
        return cls(
            users={k: str(v) for k, v in _int_keys(data.get("users")).items()},
            roles={k: str(v) for k, v in _int_keys(data.get("roles")).items()},
            channels={k: str(v) for k, v in _int_keys(data.get("channels")).items()},
            emojis=emojis,
        )

    def resolve(self, kind: str, id: int) -> Optional[str]:
        if kind == "user":
            return self.users.get(id)
        if kind == "role":
            return self.roles.get(id)
        if kind == "channel":
            return self.channels.get(id)
        if kind == "emoji":
            ref = self.emojis.get(id)
            return ref.src if ref else None
        return None

    def emoji(self, id: int) -> Optional[EmojiRef]:
        return self.emojis.get(id)


class LiveDirectory(Directory):
    """Mutable in-memory directory that tells subscribers when entries change.

    A token stream carries no staleness signal, so a caller that is not
    reactive subscribes here and re-renders when it is invalidated.
    """

    def __init__(self, context: Optional[ResolutionContext] = None):
        context = context or ResolutionContext()
        self._entries: dict[str, dict[int, str]] = {
            "user": dict(context.users),
            "role": dict(context.roles),
            "channel": dict(context.channels),
            "emoji": {k: ref.src for k, ref in context.emojis.items()},
        }
        self._emoji_names: dict[int, str] = {k: ref.name for k, ref in context.emojis.items()}
        self._subscribers: list[Callable[[str, int], None]] = []

    def resolve(self, kind: str, id: int) -> Optional[str]:
        return self._entries.get(kind, {}).get(id)

    def subscribe(self, callback: Callable[[str, int], None]) -> Callable[[], None]:
        """Register ``callback(kind, id)``; returns a function that unsubscribes."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def update(self, kind: str, id: int, value: Optional[str], *, name: Optional[str] = None) -> None:
        """Set (or with ``value=None`` remove) an entry and notify subscribers."""
        if kind not in DIRECTORY_KINDS:
            raise ValueError(f"Unknown directory kind: {kind!r}")
        if value is None:
            self._entries[kind].pop(id, None)
            if kind == "emoji":
                self._emoji_names.pop(id, None)
        else:
            self._entries[kind][id] = value
            if kind == "emoji" and name is not None:
                self._emoji_names[id] = name
        logger.debug(f"Directory entry changed: {kind} {id}")
        for callback in list(self._subscribers):
            callback(kind, id)

    def snapshot(self) -> ResolutionContext:
        """Freeze the current entries into a ``ResolutionContext``."""
        return ResolutionContext(
            users=dict(self._entries["user"]),
            roles=dict(self._entries["role"]),
            channels=dict(self._entries["channel"]),
            emojis={
                k: EmojiRef(self._emoji_names.get(k, ""), src)
                for k, src in self._entries["emoji"].items()
            },
        )
