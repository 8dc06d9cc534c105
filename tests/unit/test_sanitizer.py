"""Tests for HTML sanitization and markdown conversion."""

from content_ingest_service.extraction.sanitizer import (
    html_to_markdown,
    html_to_text,
    sanitize_html,
)


class TestSanitizeHtml:
    def test_removes_script_with_content(self) -> None:
        html = "<p>Safe text</p><script>alert('xss')</script>"

        result = sanitize_html(html)

        assert "<script" not in result
        assert "alert" not in result
        assert "Safe text" in result

    def test_strips_event_handlers_and_style(self) -> None:
        html = '<p onclick="steal()" style="color:red" class="lead">Hello</p>'

        result = sanitize_html(html)

        assert result == '<p class="lead">Hello</p>'

    def test_drops_javascript_links(self) -> None:
        html = '<p><a href="javascript:alert(1)">bad</a> <a href="https://example.com">good</a></p>'

        result = sanitize_html(html)

        assert "javascript:" not in result
        assert '<a href="https://example.com">good</a>' in result
        assert "bad" in result

    def test_unwraps_unknown_tags_keeping_text(self) -> None:
        html = "<article><section><p>Inner <mark>text</mark></p></section></article>"

        assert sanitize_html(html) == "<p>Inner text</p>"

    def test_removes_iframes_forms_and_comments(self) -> None:
        html = (
            "<p>Body</p><!-- tracking --><iframe src='https://evil.test'></iframe>"
            "<form><input name='q'><button>Go</button></form>"
        )

        assert sanitize_html(html) == "<p>Body</p>"

    def test_keeps_inline_image_data_urls(self) -> None:
        html = '<img src="data:image/png;base64,AAAA" alt="chart" onerror="x()">'

        result = sanitize_html(html)

        assert 'src="data:image/png;base64,AAAA"' in result
        assert 'alt="chart"' in result
        assert "onerror" not in result

    def test_drops_data_url_links(self) -> None:
        html = '<a href="data:text/html;base64,PHNjcmlwdD4=">open</a>'

        assert sanitize_html(html) == "<a>open</a>"

    def test_empty_input(self) -> None:
        assert sanitize_html("") == ""


class TestConversions:
    def test_html_to_text(self) -> None:
        assert html_to_text("<p>Hello <b>big</b> world</p>") == "Hello big world"

    def test_html_to_markdown(self) -> None:
        html = "<h1>Title</h1><p>Body <strong>bold</strong></p><ul><li>one</li><li>two</li></ul>"

        markdown = html_to_markdown(html)

        assert markdown.startswith("# Title")
        assert "**bold**" in markdown
        assert "- one" in markdown
        assert "- two" in markdown

    def test_markdown_never_contains_scripts(self) -> None:
        markdown = html_to_markdown("<p>Text</p><script>var x = 1;</script>")

        assert markdown == "Text"
