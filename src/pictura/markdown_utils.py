"""Markdown processing utilities for pictura."""

import re
from pathlib import Path

import frontmatter
import markdown
import yaml

from .image_rule import ImageRule, ImageRuleExtension

MARKDOWN_EXTENSIONS = [
    "codehilite",
    "extra",  # tables, footnotes, etc.
    "smarty",
    "sane_lists",
    "toc",
]

EXTENSION_CONFIGS = {
    "codehilite": {
        "css_class": "highlight",
        "guess_lang": False,
    },
    "toc": {
        "permalink": "#",
        "permalink_class": "header-anchor",
        "permalink_title": "Link to this section",
    },
}

# Compiled patterns for extract_description (ordered by application)
_DESCRIPTION_PATTERNS = [
    # Remove code blocks
    (re.compile(r"```.*?```", re.DOTALL), ""),
    (re.compile(r"`[^`]+`"), ""),
    # Remove images
    (re.compile(r"!\[.*?\]\(.*?\)"), ""),
    # Remove links but keep text
    (re.compile(r"\[([^\]]+)\]\([^\)]+\)"), r"\1"),
    # Remove headers
    (re.compile(r"^#+\s+", re.MULTILINE), ""),
    # Remove bold/italic markers
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    # Remove blockquotes
    (re.compile(r"^>\s*", re.MULTILINE), ""),
    # Remove HTML tags
    (re.compile(r"<[^>]+>"), ""),
]
_WHITESPACE_PATTERN = re.compile(r"[ \t]+")


def extract_description(markdown_content: str, max_length: int = 160) -> str:
    """Extract a plain text description from markdown content.

    Args:
        markdown_content: Raw markdown text without frontmatter
        max_length: Maximum character length for description

    Returns:
        Plain text description string
    """
    if not markdown_content:
        return ""

    content = markdown_content
    for pattern, replacement in _DESCRIPTION_PATTERNS:
        content = pattern.sub(replacement, content)

    paragraphs = [
        _WHITESPACE_PATTERN.sub(" ", p.replace("\n", " ")).strip()
        for p in content.split("\n\n")
    ]
    paragraphs = [p for p in paragraphs if p]
    content = next((p for p in paragraphs if len(p) >= 50), paragraphs[0] if paragraphs else "")

    if len(content) > max_length:
        content = content[: max_length - 3].rsplit(" ", 1)[0] + "..."

    return content


def parse_markdown_file(filepath: Path) -> tuple[dict, str]:
    """Parse a markdown file with YAML frontmatter.

    Returns:
        Tuple of (metadata dict, markdown content string). Unreadable
        frontmatter yields empty metadata and the file is treated as empty.
    """
    from .logging import warning

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            post = frontmatter.load(f)
        return dict(post.metadata), post.content
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        warning(f"Frontmatter parsing error in {filepath}: {e}")
        return {}, ""


def create_markdown_converter(rule: ImageRule | None = None) -> markdown.Markdown:
    """Create a Markdown converter, with responsive images when a rule is given."""
    extensions: list = list(MARKDOWN_EXTENSIONS)
    if rule is not None:
        extensions.append(ImageRuleExtension(rule))

    return markdown.Markdown(
        extensions=extensions,
        extension_configs={k: v.copy() for k, v in EXTENSION_CONFIGS.items()},
    )


def render_markdown(content: str, rule: ImageRule | None = None) -> str:
    """Render markdown to HTML.

    Raises:
        ContentNotFound: If the rule meets an internal image with no renditions
    """
    return create_markdown_converter(rule).convert(content)
