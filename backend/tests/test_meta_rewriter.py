"""
Angle Backend — Meta Tag Rewriter Unit Tests
=============================================

What we test:
    ✅ Only content values of recognised tags change; every other byte stays
    ✅ Attribute order and quote style do not matter; `>` inside quoted values is kept
    ✅ Values are HTML-escaped
    ✅ Missing tags are not inserted; unknown keys are rejected
"""

import pytest

from angle.services.meta_rewriter import MetaTagRewriter, escape_html


class TestRewrite:

    @pytest.fixture(autouse=True)
    def setup(self, shell_html):
        self.rewriter = MetaTagRewriter()
        self.shell = shell_html

    def test_replaces_values_and_title(self):
        html = self.rewriter.rewrite(
            self.shell,
            {"og:title": "Health Stories | Angle", "twitter:title": "Health Stories | Angle"},
            title="Health Stories | Angle",
        )
        values, title = MetaTagRewriter.read(html)

        assert values["og:title"] == "Health Stories | Angle"
        assert values["twitter:title"] == "Health Stories | Angle"
        assert title == "Health Stories | Angle"
        # untouched keys keep their shell values
        assert values["og:image"] == "/og-default.png"

    def test_only_content_values_change(self):
        html = self.rewriter.rewrite(self.shell, {"og:url": "https://newsangle.co/health"})
        expected = self.shell.replace(
            '<meta property="og:url" content="https://angle.app/" />',
            '<meta property="og:url" content="https://newsangle.co/health" />',
        )
        assert html == expected

    def test_attribute_order_and_single_quotes(self):
        document = "<head><meta content='old' property='og:title'><title>x</title></head>"
        html = self.rewriter.rewrite(document, {"og:title": "new"})
        assert html == "<head><meta content='new' property='og:title'><title>x</title></head>"

    def test_selector_attribute_must_match_key_family(self):
        """og:* keys are matched by property, twitter:* keys by name."""
        document = '<meta name="og:title" content="keep"><meta property="twitter:title" content="keep">'
        html = self.rewriter.rewrite(document, {"og:title": "x", "twitter:title": "y"})
        assert html == document

    def test_values_are_escaped(self):
        html = self.rewriter.rewrite(
            self.shell,
            {"og:description": 'Mood & "memory" <b>\'now\'</b>'},
            title="Tom & Jerry <3",
        )
        values, title = MetaTagRewriter.read(html)

        assert values["og:description"] == "Mood &amp; &quot;memory&quot; &lt;b&gt;&#x27;now&#x27;&lt;/b&gt;"
        assert title == "Tom &amp; Jerry &lt;3"

    def test_missing_tags_are_not_inserted(self):
        document = "<html><head><title>t</title></head></html>"
        assert self.rewriter.rewrite(document, {"og:image": "x.png"}) == document

    def test_every_matching_tag_is_rewritten(self):
        document = '<meta property="og:title" content="a"><meta property="og:title" content="b">'
        html = self.rewriter.rewrite(document, {"og:title": "c"})
        assert html.count('content="c"') == 2

    def test_greater_than_inside_quoted_value(self):
        document = '<meta property="og:description" content="Stories > noise"><p>after</p>'
        html = self.rewriter.rewrite(document, {"og:description": "Health stories worth listening."})
        assert html == '<meta property="og:description" content="Health stories worth listening."><p>after</p>'

    def test_only_the_exact_content_attribute_changes(self):
        document = '<meta property="og:title" data-content="keep" content="old">'
        html = self.rewriter.rewrite(document, {"og:title": "new"})
        assert html == '<meta property="og:title" data-content="keep" content="new">'

    def test_tag_without_content_is_left_alone(self):
        document = '<meta property="og:title" data-content="keep">'
        assert self.rewriter.rewrite(document, {"og:title": "new"}) == document

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="description"):
            self.rewriter.rewrite(self.shell, {"description": "nope"})


def test_escape_html_covers_all_five_characters():
    assert escape_html("&<>\"'") == "&amp;&lt;&gt;&quot;&#x27;"
