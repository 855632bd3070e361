"""Tests for pictura markdown utilities."""

from pictura import markdown_utils


class TestExtractDescription:
    """Tests for extract_description() function."""

    def test_empty_content(self):
        assert markdown_utils.extract_description("") == ""

    def test_strips_markdown_formatting(self):
        content = "This is **bold** and *italic* text with some content here to make it long enough."
        result = markdown_utils.extract_description(content)
        assert "**" not in result
        assert "bold" in result
        assert "italic" in result

    def test_removes_images(self):
        content = "![A cat|right](cat.jpg)\n\nA paragraph about the cat that is long enough to be used."
        result = markdown_utils.extract_description(content)
        assert "cat.jpg" not in result
        assert result.startswith("A paragraph about the cat")

    def test_keeps_link_text(self):
        result = markdown_utils.extract_description("See [the docs](https://example.com) now")
        assert result == "See the docs now"

    def test_truncates_at_word_boundary(self):
        content = "word " * 100
        result = markdown_utils.extract_description(content, max_length=50)
        assert len(result) <= 50
        assert result.endswith("...")

    def test_prefers_first_long_paragraph(self):
        content = "Short.\n\nThis second paragraph is definitely longer than fifty characters."
        result = markdown_utils.extract_description(content)
        assert result.startswith("This second paragraph")


class TestParseMarkdownFile:
    """Tests for parse_markdown_file() function."""

    def test_parses_frontmatter(self, tmp_path):
        md_file = tmp_path / "post.md"
        md_file.write_text("---\ntitle: Hello\ndraft: true\n---\n\n# Body\n")

        meta, content = markdown_utils.parse_markdown_file(md_file)

        assert meta == {"title": "Hello", "draft": True}
        assert content.strip() == "# Body"

    def test_without_frontmatter(self, tmp_path):
        md_file = tmp_path / "post.md"
        md_file.write_text("Just text")

        meta, content = markdown_utils.parse_markdown_file(md_file)

        assert meta == {}
        assert content == "Just text"

    def test_invalid_yaml_returns_empty(self, tmp_path):
        md_file = tmp_path / "post.md"
        md_file.write_text("---\ntitle: [unclosed\n---\n\nBody")

        meta, content = markdown_utils.parse_markdown_file(md_file)

        assert meta == {}
        assert content == ""


class TestRenderMarkdown:
    """Tests for render_markdown() function."""

    def test_renders_without_rule(self):
        html = markdown_utils.render_markdown("# Title\n\nSome *text*.")
        assert "<h1" in html
        assert "<em>text</em>" in html

    def test_default_image_rendering_without_rule(self):
        html = markdown_utils.render_markdown("![A cat](cat.jpg)")
        assert "<img" in html
        assert 'alt="A cat"' in html
        assert 'src="cat.jpg"' in html

    def test_converters_are_independent(self):
        """A failed render must not leak state into the next one."""
        first = markdown_utils.create_markdown_converter()
        second = markdown_utils.create_markdown_converter()
        assert first is not second
