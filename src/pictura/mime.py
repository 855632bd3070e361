"""Static file-extension to MIME type table."""

from .errors import UnknownMime

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "avif": "image/avif",
    "svg": "image/svg+xml",
}


def lookup(ext: str) -> str:
    """Return the MIME type for a file extension.

    Args:
        ext: Extension with or without the leading dot (".JPG", "jpg")

    Raises:
        UnknownMime: If the extension is not in the table
    """
    key = ext.lower().lstrip(".")
    try:
        return MIME_TYPES[key]
    except KeyError:
        raise UnknownMime(ext) from None
