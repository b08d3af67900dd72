"""Mention extraction — who should be notified about a message.

Works on both storage formats: token text (``<@1>``, ``<@&2>``,
``@everyone``) and legacy editor HTML (``data-mention-*`` attributes).
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .detect import is_legacy_html

RoleMembers = Callable[[list[int]], Iterable[int]]

# Token format
_TOKEN_USER_RE = re.compile(r'<@(\d+)>', re.ASCII)
_TOKEN_ROLE_RE = re.compile(r'<@&(\d+)>', re.ASCII)
_TOKEN_ALL_RE = re.compile(r'@everyone')

# Legacy HTML format
_HTML_USER_RE = re.compile(r'data-mention-type=["\']user["\'][^>]*data-mention-id=["\'](\d+)["\']', re.ASCII)
_HTML_ROLE_RE = re.compile(r'data-mention-type=["\']role["\'][^>]*data-mention-id=["\'](\d+)["\']', re.ASCII)
_HTML_ALL_RE = re.compile(r'data-mention-type=["\']all["\']')


@dataclass
class MentionResult:
    user_ids: list[int] = field(default_factory=list)
    mentions_all: bool = False


def _ordered_ids(pattern: re.Pattern, content: str) -> list[int]:
    seen: dict[int, None] = {}
    for match in pattern.finditer(content):
        seen.setdefault(int(match.group(1)), None)
    return list(seen)


def parse_token_mentions(content: Optional[str]) -> MentionResult:
    """Direct user mentions and @everyone in token text.

    Role mentions are left out: expanding them needs to know who holds the
    role, see ``parse_mentioned_user_ids``.
    """
    if not content:
        return MentionResult()
    if _TOKEN_ALL_RE.search(content):
        return MentionResult(mentions_all=True)
    return MentionResult(user_ids=_ordered_ids(_TOKEN_USER_RE, content))


def parse_mentioned_user_ids(
    content: Optional[str],
    member_ids: Iterable[int],
    role_members: Optional[RoleMembers] = None,
) -> MentionResult:
    """Resolve every user a message mentions.

    Args:
        content: Stored message content (either format)
        member_ids: Every user id that is a member of the channel
        role_members: Callable mapping a list of role ids to the user ids
            holding any of them. Without it, role mentions notify nobody.

    Returns:
        MentionResult; @everyone yields all members and ``mentions_all=True``.
    """
    if not content:
        return MentionResult()

    legacy = is_legacy_html(content)
    all_re = _HTML_ALL_RE if legacy else _TOKEN_ALL_RE
    user_re = _HTML_USER_RE if legacy else _TOKEN_USER_RE
    role_re = _HTML_ROLE_RE if legacy else _TOKEN_ROLE_RE

    if all_re.search(content):
        return MentionResult(user_ids=list(member_ids), mentions_all=True)

    mentioned = dict.fromkeys(_ordered_ids(user_re, content))

    role_ids = _ordered_ids(role_re, content)
    if role_ids and role_members is not None:
        for user_id in role_members(role_ids):
            mentioned.setdefault(int(user_id), None)

    return MentionResult(user_ids=list(mentioned))
