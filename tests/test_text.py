"""
Tests for HTML cleaning, link extraction and word parsing.
"""

from webindex.text import ContentParser, clean_text, parse_words


PAGE = """
<html>
  <head>
    <title>Sample</title>
    <style>body { color: red; }</style>
    <script>var secret = "hidden";</script>
  </head>
  <body>
    <!-- a comment -->
    <h1>Big&nbsp;Title</h1><p>First paragraph.</p><p>Second</p>
    <a href="/about#team">About</a>
    <a href="https://Example.COM/docs?page=2">Docs</a>
    <a href="#top">Top</a>
    <a href="mailto:someone@example.com">Mail</a>
    <a href="/about">About again</a>
    <a href="relative.html">Relative</a>
  </body>
</html>
"""


class TestContentParser:

    def test_strip_markup_removes_tags_scripts_and_comments(self):
        text = ContentParser().strip_markup(PAGE)
        words = parse_words(text)

        assert "secret" not in words
        assert "color" not in words
        assert "comment" not in words
        assert words[:6] == ["sample", "big", "title", "first", "paragraph", "second"]

    def test_adjacent_elements_do_not_merge(self):
        text = ContentParser().strip_markup("<p>one</p><p>two</p>")

        assert parse_words(text) == ["one", "two"]

    def test_extract_links(self):
        links = ContentParser().extract_links("http://site.test/dir/page.html", PAGE)

        assert links == [
            "http://site.test/about",
            "https://example.com/docs?page=2",
            "http://site.test/dir/relative.html",
        ]

    def test_parse_collects_links_and_text(self):
        parsed = ContentParser().parse("http://site.test/", PAGE)

        assert parsed.title == "Sample"
        assert "http://site.test/about" in parsed.links
        assert "paragraph" in parse_words(parsed.content)

    def test_normalize_url(self):
        assert ContentParser.normalize_url("HTTP://Host.Test#frag") == "http://host.test/"
        assert ContentParser.normalize_url("https://h.test/a/b?x=1#y") == "https://h.test/a/b?x=1"

    def test_is_valid_url(self):
        assert ContentParser.is_valid_url("https://h.test/")
        assert not ContentParser.is_valid_url("ftp://h.test/")
        assert not ContentParser.is_valid_url("/relative")


class TestWordParser:

    def test_parse_words(self):
        assert parse_words("Hello, World!  It's 2024: e-mail\tR2D2") == [
            "hello", "world", "its", "email", "rd"
        ]

    def test_folds_accents(self):
        assert parse_words("Café NAÏVE") == ["cafe", "naive"]

    def test_empty_text(self):
        assert parse_words("") == []
        assert parse_words("  123 !!! ") == []
        assert clean_text("") == ""
