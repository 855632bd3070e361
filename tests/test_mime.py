"""Tests for the MIME table."""

import pytest

from pictura import mime
from pictura.errors import UnknownMime


class TestLookup:
    @pytest.mark.parametrize(
        "ext,expected",
        [
            ("jpg", "image/jpeg"),
            ("jpeg", "image/jpeg"),
            (".PNG", "image/png"),
            ("webp", "image/webp"),
            ("gif", "image/gif"),
        ],
    )
    def test_known_extensions(self, ext, expected):
        assert mime.lookup(ext) == expected

    def test_unknown_extension_raises(self):
        with pytest.raises(UnknownMime) as exc_info:
            mime.lookup("xyz")
        assert exc_info.value.ext == "xyz"

    def test_empty_extension_raises(self):
        with pytest.raises(UnknownMime):
            mime.lookup("")
