"""Content identifiers and the paths and URLs they map to.

A content id is ``"<type>@<path>"`` where ``path`` is a POSIX path relative to
the content root. Generated (scaled) images carry a versioned type so the
encoding of the original path and width can change without ambiguity:

    image@posts/hello/cat.jpg  ->  scaledImage.v1@posts/hello/cat@500w.jpg
"""

import posixpath
import re
from pathlib import PurePosixPath
from urllib.parse import parse_qs, quote, unquote, urlsplit

from .errors import InvalidContentId

ID_SEPARATOR = "@"

POST = "post"
IMAGE = "image"
IMAGE_META = "imageMeta"
VARIANT = "scaledImage.v1"

DEFAULT_ATTACHMENTS_URL = "/attachments/"

_VARIANT_STEM = re.compile(r"^(?P<stem>.+)@(?P<width>[1-9]\d*)w$")

YOUTUBE_HOSTS = {
    "youtube.com",
    "www.youtube.com",
    "m.youtube.com",
    "youtube-nocookie.com",
    "www.youtube-nocookie.com",
    "youtu.be",
}


def path_to_id(content_type: str, path: str) -> str:
    """Build a content id from a type and a content-root relative path."""
    return f"{content_type}{ID_SEPARATOR}{PurePosixPath(path).as_posix()}"


def _split_id(content_id: str) -> tuple[str, str]:
    content_type, sep, path = content_id.partition(ID_SEPARATOR)
    if not sep or not content_type or not path:
        raise InvalidContentId(content_id)
    return content_type, path


def id_to_type(content_id: str) -> str:
    return _split_id(content_id)[0]


def id_to_path(content_id: str) -> str:
    return _split_id(content_id)[1]


def with_type(content_id: str, content_type: str) -> str:
    """Return the same path under a different content type."""
    return path_to_id(content_type, id_to_path(content_id))


def variant_path(original_path: str, width: int) -> str:
    """Path of the generated image for ``original_path`` scaled to ``width``."""
    if width <= 0:
        raise ValueError(f"width must be positive, got {width}")
    p = PurePosixPath(original_path)
    return p.with_name(f"{p.stem}@{width}w{p.suffix}").as_posix()


def from_variant_path(path: str) -> tuple[str, int]:
    """Inverse of variant_path().

    Returns:
        Tuple of (original_path, width)

    Raises:
        InvalidContentId: If the path was not produced by variant_path()
    """
    p = PurePosixPath(path)
    match = _VARIANT_STEM.match(p.stem)
    if not match:
        raise InvalidContentId(path, "not a generated image path")
    original = p.with_name(match.group("stem") + p.suffix)
    return original.as_posix(), int(match.group("width"))


def encode_variant_id(original_id: str, width: int) -> str:
    """Content id of ``original_id`` scaled to ``width`` pixels."""
    return path_to_id(VARIANT, variant_path(id_to_path(original_id), width))


def decode_variant_id(variant_id: str) -> tuple[str, int]:
    """Inverse of encode_variant_id().

    Returns:
        Tuple of (original image id, width)
    """
    content_type, path = _split_id(variant_id)
    if content_type != VARIANT:
        raise InvalidContentId(variant_id, f"expected a {VARIANT} id")
    original_path, width = from_variant_path(path)
    return path_to_id(IMAGE, original_path), width


def normalize_content_path(path: str) -> str:
    """Normalize a content-root relative path, rejecting escapes from the root."""
    normalized = posixpath.normpath(path.lstrip("/"))
    if normalized in (".", "") or normalized == ".." or normalized.startswith("../"):
        raise InvalidContentId(path, "path outside the content root")
    return normalized


def _resolve_post_url(post_id: str, image_relative_url: str) -> str:
    url_path = unquote(urlsplit(image_relative_url).path)
    if url_path.startswith("/"):
        return url_path
    post_dir = posixpath.dirname(id_to_path(post_id))
    return posixpath.join(post_dir, url_path)


def names_no_file(post_id: str, image_relative_url: str) -> bool:
    """Check whether a URL inside a post has an empty path or points at the content root.

    ``#``, ``""`` and ``./`` (from a post at the root) are such URLs.
    """
    if not unquote(urlsplit(image_relative_url).path):
        return True
    path = _resolve_post_url(post_id, image_relative_url)
    return posixpath.normpath(path.lstrip("/")) in (".", "")


def post_id_to_image_id(post_id: str, image_relative_url: str) -> str:
    """Resolve an image URL written inside a post to an image content id.

    Relative URLs are resolved against the directory holding the post file;
    URLs starting with ``/`` are relative to the content root.
    """
    return path_to_id(IMAGE, normalize_content_path(_resolve_post_url(post_id, image_relative_url)))


def url_for_attachment(content_id: str, attachments_url: str = DEFAULT_ATTACHMENTS_URL) -> str:
    """Public URL under which an attachment (or generated image) is served."""
    return f"{attachments_url}{quote(id_to_path(content_id), safe='/@')}"


def url_to_path(url: str, attachments_url: str = DEFAULT_ATTACHMENTS_URL) -> str:
    """Inverse of url_for_attachment(): content-root relative path of a URL."""
    if not url.startswith(attachments_url):
        raise InvalidContentId(url, f"URL is not under {attachments_url}")
    return unquote(url[len(attachments_url):])


def id_for_attachment(
    content_type: str, url: str, attachments_url: str = DEFAULT_ATTACHMENTS_URL
) -> str:
    return path_to_id(content_type, url_to_path(url, attachments_url))


def is_path_image(path: str, extensions: list[str] | set[str]) -> bool:
    """Check whether a path has one of the configured image extensions."""
    return PurePosixPath(path).suffix.lower() in extensions


def is_external_url(url: str) -> bool:
    """Check whether a URL points outside the site (has a scheme or host)."""
    parts = urlsplit(url)
    return bool(parts.scheme or parts.netloc)


def is_youtube(url: str) -> bool:
    return (urlsplit(url).hostname or "").lower() in YOUTUBE_HOSTS


def youtube_url_to_id(url: str) -> str | None:
    """Extract the video id from a YouTube watch, short, embed or youtu.be URL."""
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    segments = [s for s in parts.path.split("/") if s]

    if host == "youtu.be":
        return segments[0] if segments else None

    video_ids = parse_qs(parts.query).get("v")
    if video_ids:
        return video_ids[0]

    if len(segments) >= 2 and segments[0] in ("embed", "shorts", "v", "live"):
        return segments[1]

    return None
