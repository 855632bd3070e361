"""Tests for pictura build cache."""

import os

from pictura import cache as build_cache


class TestNeedsRebuild:
    """Tests for needs_rebuild() function."""

    def test_force_always_rebuilds(self, tmp_path):
        src = tmp_path / "cat.jpg"
        src.write_bytes(b"x")
        output = tmp_path / "out.jpg"
        output.write_bytes(b"y")

        assert build_cache.needs_rebuild(src, [output], {}, force=True) is True

    def test_missing_output_rebuilds(self, tmp_path):
        src = tmp_path / "cat.jpg"
        src.write_bytes(b"x")
        present = tmp_path / "out.jpg"
        present.write_bytes(b"y")
        cache = {str(src): src.stat().st_mtime}

        assert build_cache.needs_rebuild(src, [present, tmp_path / "gone.jpg"], cache) is True

    def test_cached_file_no_rebuild(self, tmp_path):
        src = tmp_path / "post.md"
        src.write_text("content")
        output = tmp_path / "index.html"
        output.write_text("output")
        cache = {str(src): src.stat().st_mtime}

        assert build_cache.needs_rebuild(src, [output], cache) is False

    def test_stale_cache_rebuilds(self, tmp_path):
        src = tmp_path / "post.md"
        src.write_text("content")
        output = tmp_path / "index.html"
        output.write_text("output")
        cache = {str(src): src.stat().st_mtime - 100}

        assert build_cache.needs_rebuild(src, [output], cache) is True

    def test_uncached_source_rebuilds(self, tmp_path):
        src = tmp_path / "post.md"
        src.write_text("content")
        output = tmp_path / "index.html"
        output.write_text("output")

        assert build_cache.needs_rebuild(src, [output], {}) is True


class TestBuildCache:
    """Tests for load_build_cache() and save_build_cache()."""

    def test_load_nonexistent_cache(self, tmp_path):
        assert build_cache.load_build_cache(tmp_path / ".build_cache") == {}

    def test_save_and_load_cache(self, tmp_path):
        cache_file = tmp_path / "nested" / ".build_cache"
        data = {"/a/post.md": 123.0, build_cache.IMAGES_DIGEST_KEY: "abc"}

        build_cache.save_build_cache(cache_file, data)

        assert build_cache.load_build_cache(cache_file) == data

    def test_corrupt_cache_is_empty(self, tmp_path):
        cache_file = tmp_path / ".build_cache"
        cache_file.write_text("{not json")

        assert build_cache.load_build_cache(cache_file) == {}


class TestImagesDigest:
    def test_order_independent(self):
        a = {"id": "image@a.jpg", "meta": {"width": 1}}
        b = {"id": "image@b.jpg", "meta": {"width": 2}}

        assert build_cache.images_digest([a, b]) == build_cache.images_digest([b, a])

    def test_changes_with_metadata(self):
        before = [{"id": "image@a.jpg", "meta": {"width": 1}}]
        after = [{"id": "image@a.jpg", "meta": {"width": 2}}]

        assert build_cache.images_digest(before) != build_cache.images_digest(after)


class TestGlobalDeps:
    def test_config_change_detected(self, tmp_path):
        config_path = tmp_path / "config.toml"
        config_path.write_text("")
        cache = {}
        build_cache.update_global_deps_cache(cache, config_path, None)

        assert build_cache.check_global_deps_changed(cache, config_path, None) is False

        mtime = config_path.stat().st_mtime + 10
        os.utime(config_path, (mtime, mtime))

        assert build_cache.check_global_deps_changed(cache, config_path, None) is True

    def test_template_change_detected(self, tmp_path):
        templates_dir = tmp_path / "templates"
        templates_dir.mkdir()
        cache = {}
        build_cache.update_global_deps_cache(cache, None, templates_dir)

        (templates_dir / "post.html").write_text("{{ content }}")

        assert build_cache.check_global_deps_changed(cache, None, templates_dir) is True
