"""Editor HTML → token text tests."""

from pulse_markup.compiler import editor_html_to_tokens


# =============================================================================
# Inline content
# =============================================================================

class TestInline:
    """Mentions, emoji and formatting inside a paragraph."""

    def test_formatting(self):
        """Each formatting tag maps to its marker."""
        html = "<p><strong>b</strong> <em>i</em> <s>s</s> <u>u</u> <code>c</code></p>"
        assert editor_html_to_tokens(html) == "**b** *i* ~~s~~ __u__ `c`"

    def test_tag_aliases(self):
        """b, i, del and strike are accepted too."""
        assert editor_html_to_tokens("<p><b>a</b><i>b</i><del>c</del><strike>d</strike></p>") == "**a***b*~~c~~~~d~~"

    def test_mentions(self):
        """Mention spans become id tokens regardless of the displayed name."""
        html = (
            '<p><span data-mention-type="user" data-mention-id="5">@alice</span> '
            '<span data-mention-type="role" data-mention-id="2">@mods</span> '
            '<span data-mention-type="all">@all</span> '
            '<span data-type="channel-mention" data-channel-id="9">#general</span></p>'
        )
        assert editor_html_to_tokens(html) == "<@5> <@&2> @everyone <#9>"

    def test_mention_without_id_keeps_text(self):
        """A mention span with no id degrades to its label."""
        assert editor_html_to_tokens('<p><span data-mention-type="user">@ghost</span></p>') == "@ghost"

    def test_custom_emoji(self):
        """Emoji images with an id become emoji tokens."""
        html = '<p><img class="emoji-image" data-emoji-name="fire" data-emoji-id="42" src="x" alt="fire"></p>'
        assert editor_html_to_tokens(html) == "<:fire:42>"

    def test_standard_emoji_image(self):
        """Standard emoji drawn as images keep their unicode alt text."""
        assert editor_html_to_tokens('<p>hi <img class="emoji-image" alt="😀"></p>') == "hi 😀"

    def test_other_images_dropped(self):
        """Plain images are not message text."""
        assert editor_html_to_tokens('<p>a<img src="x.png" alt="pic">b</p>') == "ab"

    def test_link_becomes_href(self):
        """Links are stored as their bare URL."""
        assert editor_html_to_tokens('<p>see <a href="https://x.com/a">here</a></p>') == "see https://x.com/a"

    def test_entities_and_nbsp(self):
        """Entities decode; non-breaking spaces become spaces."""
        assert editor_html_to_tokens("<p>a &amp; b&nbsp;c &lt;d&gt;</p>") == "a & b c <d>"

    def test_comments_ignored(self):
        assert editor_html_to_tokens("<p>a<!-- note -->b</p>") == "ab"


# =============================================================================
# Blocks
# =============================================================================

class TestBlocks:
    """Paragraphs, code blocks, quotes and lists."""

    def test_paragraphs(self):
        """Paragraphs are newline separated with no trailing newline."""
        assert editor_html_to_tokens("<p>a</p><p>b</p>") == "a\nb"

    def test_source_whitespace_between_blocks(self):
        """Formatting whitespace in the HTML source is not content."""
        assert editor_html_to_tokens("<p>a</p>\n  <p>b</p>\n") == "a\nb"

    def test_line_break(self):
        assert editor_html_to_tokens("<p>a<br>b</p>") == "a\nb"

    def test_empty_paragraph_is_blank_line(self):
        """An empty paragraph keeps a blank line."""
        assert editor_html_to_tokens("<p>a</p><p></p><p>b</p>") == "a\n\nb"

    def test_blank_runs_collapse(self):
        """Three or more newlines collapse to one blank line."""
        assert editor_html_to_tokens("<p>a</p><p></p><p></p><p></p><p>b</p>") == "a\n\nb"

    def test_code_block(self):
        """Code blocks keep language and literal content."""
        html = '<pre><code class="language-js">const a = 1 &lt; 2;\n**x**</code></pre>'
        assert editor_html_to_tokens(html) == "```js\nconst a = 1 < 2;\n**x**\n```"

    def test_code_block_with_highlight_spans(self):
        """Markup inside a code block contributes only its text."""
        html = '<pre><code class="language-py"><span class="k">def</span> f(): pass</code></pre>'
        assert editor_html_to_tokens(html) == "```py\ndef f(): pass\n```"

    def test_code_block_then_paragraph(self):
        """A paragraph after a code block starts on its own line."""
        assert editor_html_to_tokens("<pre><code>x</code></pre><p>after</p>") == "```\nx\n```\nafter"

    def test_blockquote(self):
        """Each quoted paragraph gets the quote marker."""
        assert editor_html_to_tokens("<blockquote><p>a</p><p>b</p></blockquote>") == "> a\n> b"

    def test_blockquote_then_paragraph(self):
        """Text after a quote is not quoted."""
        assert editor_html_to_tokens("<blockquote><p>q</p></blockquote><p>after</p>") == "> q\nafter"

    def test_unordered_list(self):
        assert editor_html_to_tokens("<ul><li><p>one</p></li><li><p>two</p></li></ul>") == "- one\n- two"

    def test_ordered_list(self):
        assert editor_html_to_tokens("<ol><li>a</li><li>b</li></ol>") == "1. a\n2. b"

    def test_heading_and_rule(self):
        """Headings keep their level; rules become dashes."""
        assert editor_html_to_tokens("<h2>Title</h2><p>a</p><hr><p>b</p>") == "## Title\na\n---\nb"

    def test_empty(self):
        assert editor_html_to_tokens("") == ""
        assert editor_html_to_tokens("<p></p>") == ""
