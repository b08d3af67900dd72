"""Mention extraction tests."""

from pulse_markup.mentions import MentionResult, parse_mentioned_user_ids, parse_token_mentions


class TestParseTokenMentions:
    """Direct mentions in token text."""

    def test_user_ids_in_order_without_duplicates(self):
        assert parse_token_mentions("hi <@5> <@6> <@5>") == MentionResult(user_ids=[5, 6])

    def test_everyone(self):
        """@everyone wins over individual mentions."""
        assert parse_token_mentions("@everyone <@5>") == MentionResult(user_ids=[], mentions_all=True)

    def test_roles_are_not_users(self):
        """A role mention is not a user mention."""
        assert parse_token_mentions("<@&2>").user_ids == []

    def test_code_is_not_parsed_specially(self):
        """Extraction is regex-level; the literal id inside code still counts."""
        assert parse_token_mentions("`<@5>`").user_ids == [5]

    def test_empty(self):
        assert parse_token_mentions(None) == MentionResult()


class TestParseMentionedUserIds:
    """Full resolution including roles and @everyone."""

    def test_roles_expand_through_resolver(self):
        """Role members are added after direct mentions, without duplicates."""
        calls = []

        def role_members(role_ids):
            calls.append(role_ids)
            return [7, 5]

        result = parse_mentioned_user_ids("<@5> <@&2>", [5, 6, 7], role_members)
        assert result.user_ids == [5, 7]
        assert result.mentions_all is False
        assert calls == [[2]]

    def test_roles_without_resolver(self):
        """With no resolver, role mentions notify nobody."""
        assert parse_mentioned_user_ids("<@5> <@&2>", [5, 6]).user_ids == [5]

    def test_everyone_notifies_all_members(self):
        result = parse_mentioned_user_ids("hey @everyone", [1, 2, 3])
        assert result == MentionResult(user_ids=[1, 2, 3], mentions_all=True)

    def test_legacy_html(self):
        """Legacy rows are parsed through their data attributes."""
        html = (
            '<p><span data-mention-type="user" data-mention-id="5">@a</span> '
            '<span data-mention-type="role" data-mention-id="2">@r</span></p>'
        )
        result = parse_mentioned_user_ids(html, [5, 6], lambda ids: [6])
        assert result.user_ids == [5, 6]

    def test_legacy_all(self):
        html = '<p><span data-mention-type="all">@all</span></p>'
        assert parse_mentioned_user_ids(html, [4]).mentions_all is True

    def test_no_mentions(self):
        assert parse_mentioned_user_ids("plain text", [1, 2]) == MentionResult()
