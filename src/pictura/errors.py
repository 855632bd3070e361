"""Exceptions raised by the pictura content pipeline."""


class PicturaError(Exception):
    """Base class for all pictura errors."""


class ContentNotFound(PicturaError):
    """An internal image reference resolved to zero candidates."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f'Image with url "{url}" not found.')


class BuildFailure(PicturaError):
    """Resizing or compressing a source image failed."""

    def __init__(self, content_id: str, reason: str = ""):
        self.content_id = content_id
        self.reason = reason
        msg = f"Failed to build {content_id}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class UnknownMime(PicturaError):
    """A file extension has no entry in the MIME table."""

    def __init__(self, ext: str):
        self.ext = ext
        super().__init__(f"No MIME type known for extension '{ext}'")


class InvalidContentId(PicturaError):
    """A content id could not be parsed or resolved."""

    def __init__(self, content_id: str, reason: str = "invalid content id"):
        self.content_id = content_id
        super().__init__(f"{reason}: {content_id!r}")
