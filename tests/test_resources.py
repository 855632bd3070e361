"""Tests for bundled resources and templates."""

from pictura.resources import copy_package_files, read_package_text
from pictura.templates import create_environment


class TestReadPackageText:
    def test_reads_default_config(self):
        result = read_package_text("pictura.defaults", "config.toml")
        assert result is not None
        assert "[images]" in result

    def test_returns_none_for_missing_file(self):
        assert read_package_text("pictura.defaults", "nonexistent.txt") is None

    def test_returns_none_for_missing_package(self):
        assert read_package_text("nonexistent.package", "file.txt") is None


class TestCopyPackageFiles:
    def test_copies_templates(self, tmp_path):
        created = copy_package_files("pictura.defaults.templates", tmp_path, suffix=".html")

        assert str(tmp_path / "post.html") in created
        assert not (tmp_path / "__init__.py").exists()

    def test_keeps_existing_without_force(self, tmp_path):
        (tmp_path / "post.html").write_text("mine")

        created = copy_package_files("pictura.defaults.templates", tmp_path, suffix=".html")

        assert created == []
        assert (tmp_path / "post.html").read_text() == "mine"


class TestTemplates:
    def test_default_post_template(self):
        env = create_environment(None)
        html = env.get_template("post.html").render(
            title="Hello", site_name="Site", content="<p>body</p>"
        )

        assert "<title>Hello - Site</title>" in html
        assert "<p>body</p>" in html

    def test_user_template_overrides_default(self, tmp_path):
        (tmp_path / "post.html").write_text("custom {{ title }}")

        env = create_environment(tmp_path)

        assert env.get_template("post.html").render(title="x") == "custom x"
