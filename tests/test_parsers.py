"""Tests for HTML and URL parsing utilities."""

import pytest

from idscope.utils.parsers import HTMLParser, URLParser, extract_username

PROFILE_HTML = """
<html>
<head>
  <title>Jane Doe (@jane) &amp; friends</title>
  <meta content="Designer in Oslo" property="og:description">
  <meta name="description" content="Generic description">
  <meta property="og:image" content="https://cdn.example/jane.png" />
  <meta name="Description" content="Duplicate ignored">
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@graph": [
      {"@type": "WebSite", "name": "Example"},
      {"@type": "Person", "description": "Structured bio"}
    ]}
  </script>
  <script type="application/ld+json">{not json</script>
</head>
<body><div>Hello <b>world</b></div><script>var x = 1;</script></body>
</html>
"""


class TestHTMLParser:
    """Tests for HTMLParser."""

    def test_extract_title(self):
        assert HTMLParser.extract_title(PROFILE_HTML) == "Jane Doe (@jane) & friends"
        assert HTMLParser.extract_title("<p>no title</p>") == ""

    def test_extract_meta_any_attribute_order(self):
        meta = HTMLParser.extract_meta(PROFILE_HTML)
        assert meta["og:description"] == "Designer in Oslo"
        assert meta["og:image"] == "https://cdn.example/jane.png"

    def test_extract_meta_first_occurrence_wins(self):
        meta = HTMLParser.extract_meta(PROFILE_HTML)
        assert meta["description"] == "Generic description"

    def test_extract_json_ld_flattens_graph_and_skips_invalid(self):
        blocks = HTMLParser.extract_json_ld(PROFILE_HTML)
        assert len(blocks) == 2
        assert blocks[1]["@type"] == "Person"

    def test_structured_description(self):
        assert HTMLParser.structured_description(PROFILE_HTML) == "Structured bio"

    def test_structured_description_main_entity(self):
        html = (
            '<script type="application/ld+json">'
            '{"@type": "ProfilePage", "mainEntity": {"about": "Nested bio"}}'
            "</script>"
        )
        assert HTMLParser.structured_description(html) == "Nested bio"

    def test_structured_description_missing(self):
        assert HTMLParser.structured_description("<html></html>") is None

    def test_extract_text_skips_head_and_scripts(self):
        text = HTMLParser.extract_text(PROFILE_HTML)
        assert "Hello world" in text
        assert "var x" not in text
        assert "Jane Doe" not in text

    def test_empty_input(self):
        assert HTMLParser.extract_text("") == ""
        assert HTMLParser.extract_meta("") == {}
        assert HTMLParser.extract_json_ld("") == []


class TestURLParser:
    """Tests for URLParser."""

    def test_hostname(self):
        assert URLParser.hostname("https://www.GitHub.com/jane") == "github.com"
        assert URLParser.hostname("github.com/jane") == "github.com"

    def test_belongs_to(self):
        assert URLParser.belongs_to("https://jane.tumblr.com/", "tumblr.com")
        assert URLParser.belongs_to("https://www.reddit.com/user/jane", "reddit.com")
        assert not URLParser.belongs_to("https://notgithub.com/jane", "github.com")

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://github.com/octocat", "octocat"),
            ("https://www.tiktok.com/@jane", "jane"),
            ("https://www.reddit.com/user/jane_doe", "jane_doe"),
            ("https://www.linkedin.com/in/janedoe/", "janedoe"),
            ("https://jane.tumblr.com/", "jane"),
            ("https://twitter.com/search?q=jane", None),
            ("https://www.instagram.com/p/abc123/", None),
            ("https://github.com/", None),
            ("", None),
        ],
    )
    def test_extract_username(self, url, expected):
        assert extract_username(url) == expected
