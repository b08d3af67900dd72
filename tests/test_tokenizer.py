"""Tokenizer tests.

Tests for:
- Block scan: code fences, blockquotes, newlines
- Inline scan: priority table and earliest-start selection
- Degradation on malformed input
"""

import pytest

from pulse_markup.tokenizer import INLINE_PATTERNS, tokenize, tokenize_inline
from pulse_markup.tokens import (
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
    Underline,
    Url,
    display_text,
    to_dict,
)


# =============================================================================
# Block scan
# =============================================================================

class TestBlockScan:
    """Line-level constructs."""

    def test_plain_line(self):
        """A single line is one text token."""
        assert tokenize("Hello world") == [Text("Hello world")]

    def test_newline_between_lines(self):
        """Lines are separated by a newline token."""
        assert tokenize("Hello\nworld") == [Text("Hello"), Newline(), Text("world")]

    def test_empty_line_keeps_both_newlines(self):
        """A blank line contributes a newline of its own."""
        assert tokenize("a\n\nb") == [Text("a"), Newline(), Newline(), Text("b")]

    def test_empty_and_none(self):
        """Empty or missing content gives an empty stream."""
        assert tokenize("") == []
        assert tokenize(None) == []

    def test_code_block_with_language(self):
        """A fenced block becomes one code_block token."""
        assert tokenize("```js\nconst x=1;\n```") == [CodeBlock("const x=1;", "js")]

    def test_code_block_without_language(self):
        """The language is absent when the fence line has nothing after it."""
        assert tokenize("```\ncode\n```") == [CodeBlock("code", None)]

    def test_code_block_keeps_markup_literal(self):
        """Nothing inside a fence is inline-tokenized."""
        tokens = tokenize("```\n**not bold** <@5>\n```")
        assert tokens == [CodeBlock("**not bold** <@5>", None)]

    def test_unterminated_fence_runs_to_end(self):
        """A fence with no closing line takes the rest of the input."""
        assert tokenize("```py\nprint(1)\nx = 2") == [CodeBlock("print(1)\nx = 2", "py")]

    def test_code_block_followed_by_text(self):
        """A block emits one newline when more lines follow it."""
        assert tokenize("```\nx\n```\nafter") == [CodeBlock("x", None), Newline(), Text("after")]

    def test_blockquote_single_line(self):
        """A quoted line becomes a blockquote with inline children."""
        assert tokenize("> quoted") == [Blockquote((Text("quoted"),))]

    def test_blockquote_groups_contiguous_lines(self):
        """Contiguous quoted lines form one block."""
        assert tokenize("> a\n> b\nc") == [Blockquote((Text("a\nb"),)), Newline(), Text("c")]

    def test_blockquote_children_are_inline_tokens(self):
        """Mentions and emphasis work inside quotes."""
        tokens = tokenize("> hi <@1> **there**")
        assert tokens == [Blockquote((Text("hi "), Mention("user", 1), Text(" "), Bold((Text("there"),))))]

    def test_quote_marker_needs_space(self):
        """'>' without a following space is ordinary text."""
        assert tokenize(">not a quote") == [Text(">not a quote")]


# =============================================================================
# Inline scan
# =============================================================================

class TestInlineScan:
    """Mentions, emoji, code, emphasis and URLs."""

    def test_priority_table_order(self):
        """The tie-break order is a wire contract and must not drift."""
        assert [p.name for p in INLINE_PATTERNS] == [
            "user_mention",
            "role_mention",
            "all_mention",
            "channel_mention",
            "custom_emoji",
            "inline_code",
            "bold",
            "italic",
            "strikethrough",
            "underline",
            "url",
        ]

    def test_mixed_message(self):
        """Text around a mention and bold span."""
        assert tokenize("Hey <@5>, check **this** out!") == [
            Text("Hey "),
            Mention("user", 5),
            Text(", check "),
            Bold((Text("this"),)),
            Text(" out!"),
        ]

    def test_inline_code_wins_by_earliest_start(self):
        """A mention inside code stays literal: the code span starts first."""
        assert tokenize("`<@5>`") == [InlineCode("<@5>")]

    def test_earliest_start_beats_priority(self):
        """A lower-priority pattern that starts earlier is chosen."""
        assert tokenize_inline("*a* <@5>") == [Italic((Text("a"),)), Text(" "), Mention("user", 5)]

    def test_mention_kinds(self):
        """Role, channel and @everyone forms."""
        assert tokenize("<@&7> <#9> @everyone") == [
            Mention("role", 7),
            Text(" "),
            Mention("channel", 9),
            Text(" "),
            Mention("all"),
        ]

    def test_free_text_at_name_is_not_a_mention(self):
        """Only the delimiter syntax makes a mention."""
        assert tokenize("@alice hi") == [Text("@alice hi")]

    def test_custom_emoji(self):
        """Custom emoji keep name and id."""
        assert tokenize("<:fire:42>") == [CustomEmoji("fire", 42)]

    def test_adjacent_bold_spans_do_not_over_match(self):
        """Lazy captures keep two bold spans separate."""
        assert tokenize("**a** **b**") == [Bold((Text("a"),)), Text(" "), Bold((Text("b"),))]

    def test_nested_emphasis(self):
        """Emphasis content is tokenized recursively."""
        assert tokenize("**a *b* c**") == [Bold((Text("a "), Italic((Text("b"),)), Text(" c")))]

    def test_underline_and_strikethrough(self):
        """Double underscore and double tilde."""
        assert tokenize("__u__ ~~s~~") == [
            Underline((Text("u"),)),
            Text(" "),
            Strikethrough((Text("s"),)),
        ]

    def test_doubled_backticks_are_not_code(self):
        """A doubled delimiter never opens a code span."""
        assert tokenize("``a``") == [Text("``a``")]

    def test_italic_not_adjacent_to_star(self):
        """A lone star pair next to another star is not italic."""
        assert tokenize("a**b") == [Text("a**b")]

    def test_italic_right_after_bold(self):
        """Stars already used by a bold span do not block the italic after it."""
        assert tokenize("**a***b*") == [Bold((Text("a"),)), Italic((Text("b"),))]

    def test_italic_after_bold_then_more_italic(self):
        """The scan keeps finding spans once the earlier cached italic is passed."""
        assert tokenize("**a***b* *c*") == [
            Bold((Text("a"),)),
            Italic((Text("b"),)),
            Text(" "),
            Italic((Text("c"),)),
        ]

    def test_bold_after_lone_star(self):
        """A leading lone star stays text and the bold span keeps its inner star."""
        assert tokenize("*a***b**") == [Text("*a"), Bold((Text("*b"),))]

    def test_bare_url(self):
        """URLs end at whitespace."""
        assert tokenize("see https://example.com/a b") == [
            Text("see "),
            Url("https://example.com/a"),
            Text(" b"),
        ]

    def test_unclosed_markers_stay_text(self):
        """Unbalanced markers degrade to literal text."""
        assert tokenize("**open and ~~half") == [Text("**open and ~~half")]


# =============================================================================
# Properties
# =============================================================================

class TestProperties:
    """Purity and robustness."""

    @pytest.mark.parametrize("text", [
        "Hello world",
        "Hey <@5>, check **this** out!",
        "> quote\n```py\ncode\n```\n*tail*",
    ])
    def test_tokenize_is_deterministic(self, text):
        """Repeated calls give equal streams."""
        assert tokenize(text) == tokenize(text)

    def test_long_marker_runs_finish(self):
        """Marker-heavy input is handled without runaway backtracking."""
        text = ("*a" * 2000) + ("~~b" * 2000) + ("`" * 500) + ("_" * 3000)
        visible = display_text(tokenize(text))
        assert visible.count("a") == 2000
        assert visible.count("b") == 2000

    def test_display_text_flattens(self):
        """Visible text keeps mention identity and drops formatting."""
        tokens = tokenize("Hi <@5> **<:fire:42>** @everyone")
        assert display_text(tokens) == "Hi <user:5> :fire: <all>"

    def test_to_dict_nests_children(self):
        """JSON form of a container token."""
        assert to_dict(Bold((Mention("user", 1),))) == {
            "type": "bold",
            "children": [{"type": "mention", "kind": "user", "id": 1}],
        }

    def test_all_mention_rejects_id(self):
        """@everyone carries no id."""
        with pytest.raises(ValueError):
            Mention("all", 3)
