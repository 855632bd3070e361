"""Shared fixtures for pictura tests."""

import logging

import pytest
from PIL import Image

from pictura import logging as pictura_logging
from pictura.config import Config


@pytest.fixture(autouse=True)
def reset_logger():
    """Reset the logger state so handlers bind to the current capture streams."""
    pictura_logging._logger = None
    logging.getLogger(pictura_logging.LOGGER_NAME).handlers.clear()
    yield
    pictura_logging._logger = None


@pytest.fixture
def make_image():
    """Factory writing a solid-color image of the given size to a path."""

    def _make(path, width=1200, height=800, fmt="JPEG", mode="RGB"):
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, (width, height), color="red" if mode != "P" else 1).save(
            path, format=fmt
        )
        return path

    return _make


@pytest.fixture
def project(tmp_path):
    """A project with a .pictura/config.toml and an empty content directory."""
    config_dir = tmp_path / ".pictura"
    config_dir.mkdir()
    (config_dir / "config.toml").write_text(
        '[site]\nname = "Test Site"\n\n[build]\ncontent_dir = "content"\n'
    )
    (tmp_path / "content").mkdir()
    return Config.load(config_dir / "config.toml")
