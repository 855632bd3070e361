"""Tests for the site build."""

import pytest
from PIL import Image

from pictura.build import build, is_path_ignored, post_output_file, post_page_path


@pytest.fixture
def hello_post(project, make_image):
    """A post embedding one 1200x800 image, floated right."""
    post_dir = project.get_content_dir() / "posts" / "hello"
    make_image(post_dir / "cat.jpg", 1200, 800)
    (post_dir / "index.md").write_text(
        "---\ntitle: Hello\n---\n\nSome text.\n\n![A cat|right](cat.jpg)\n"
    )
    return project


class TestPostPaths:
    def test_index_maps_to_directory(self):
        assert post_page_path("post@posts/hello/index.md") == "posts/hello"

    def test_plain_file_drops_suffix(self):
        assert post_page_path("post@posts/hello.md") == "posts/hello"

    def test_root_index(self):
        assert post_page_path("post@index.md") == ""

    def test_output_file(self, tmp_path):
        assert post_output_file("post@posts/hello/index.md", tmp_path) == (
            tmp_path / "posts" / "hello" / "index.html"
        )
        assert post_output_file("post@index.md", tmp_path) == tmp_path / "index.html"


class TestIsPathIgnored:
    def test_ignored_folder(self, tmp_path):
        assert is_path_ignored(tmp_path / "_private" / "a.md", tmp_path, ["_private"])

    def test_hidden_folder(self, tmp_path):
        assert is_path_ignored(tmp_path / ".obsidian" / "a.md", tmp_path, [])

    def test_regular_file(self, tmp_path):
        assert not is_path_ignored(tmp_path / "posts" / "a.md", tmp_path, ["_private"])


class TestBuild:
    def test_writes_images_and_variants(self, hello_post):
        result = build(hello_post)

        assert result.ok
        attachments = hello_post.get_attachments_dir() / "posts" / "hello"
        assert (attachments / "cat.jpg").exists()
        for width in (50, 200, 500, 1000):
            assert (attachments / f"cat@{width}w.jpg").exists()
        assert not (attachments / "cat@1500w.jpg").exists()
        assert result.images_built == 1

    def test_renders_post_with_picture(self, hello_post):
        build(hello_post)

        html = (hello_post.get_build_dir() / "posts" / "hello" / "index.html").read_text()
        assert "<picture>" in html
        assert 'srcset="/attachments/posts/hello/cat@50w.jpg 50w' in html
        assert '<img src="/attachments/posts/hello/cat@500w.jpg"' in html
        assert 'class="right"' in html
        assert "<title>Hello - Test Site</title>" in html

    def test_skips_drafts(self, hello_post):
        drafts = hello_post.get_content_dir() / "drafts.md"
        drafts.write_text("---\ndraft: true\n---\n\nNot yet.\n")

        result = build(hello_post)

        assert result.posts_skipped == 1
        assert not (hello_post.get_build_dir() / "drafts" / "index.html").exists()

    def test_missing_image_does_not_block_other_posts(self, hello_post):
        broken = hello_post.get_content_dir() / "broken.md"
        broken.write_text("![gone](missing.jpg)\n")

        result = build(hello_post)

        assert not result.ok
        assert result.failures == ["post@broken.md"]
        assert not (hello_post.get_build_dir() / "broken" / "index.html").exists()
        assert (hello_post.get_build_dir() / "posts" / "hello" / "index.html").exists()

    def test_unreadable_image_is_reported(self, hello_post):
        (hello_post.get_content_dir() / "bad.jpg").write_bytes(b"not an image")

        result = build(hello_post)

        assert "imageMeta@bad.jpg" in result.failures
        assert result.images_built == 1
        assert result.posts_built == 1

    def test_oversized_image_does_not_block_siblings(self, hello_post, make_image, monkeypatch):
        make_image(hello_post.get_content_dir() / "b" / "pano.png", 1500, 1500, fmt="PNG")
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1_000_000)

        result = build(hello_post, force_rebuild=True)

        assert result.failures == ["imageMeta@b/pano.png"]
        assert result.images_built == 1
        assert (hello_post.get_build_dir() / "posts" / "hello" / "index.html").exists()

    def test_copies_other_attachments(self, hello_post):
        (hello_post.get_content_dir() / "posts" / "hello" / "notes.pdf").write_bytes(b"%PDF")

        result = build(hello_post)

        assert result.attachments_copied == 1
        assert (hello_post.get_attachments_dir() / "posts" / "hello" / "notes.pdf").exists()

    def test_incremental_rebuild_uses_cache(self, hello_post):
        build(hello_post)

        result = build(hello_post)

        assert result.images_built == 0
        assert result.images_cached == 1
        assert result.posts_built == 0
        assert result.posts_cached == 1

    def test_force_rebuilds_everything(self, hello_post):
        build(hello_post)

        result = build(hello_post, force_rebuild=True)

        assert result.images_built == 1
        assert result.posts_built == 1

    def test_new_image_rerenders_posts(self, hello_post, make_image):
        build(hello_post)
        make_image(hello_post.get_content_dir() / "other.png", 300, 200, fmt="PNG")

        result = build(hello_post)

        assert result.images_built == 1
        assert result.images_cached == 1
        assert result.posts_built == 1

    def test_missing_content_dir(self, project):
        project.get_content_dir().rmdir()

        result = build(project)

        assert not result.ok
