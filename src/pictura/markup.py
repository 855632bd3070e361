"""HTML markup for embedded images: ``<picture>``, plain ``<img>`` and video embeds.

Everything here is string composition over facts passed in by the caller.
"""

import html

from . import ids, mime
from .candidates import FALLBACK_MAX_WIDTH, CandidateSize, fallback_candidate
from .captions import CaptionDirectives
from .imaging import ImageMeta

YOUTUBE_EMBED_URL = (
    "https://www.youtube.com/embed/{video_id}?modestbranding=1&showinfo=0&rel=0"
)


def _attr(name: str, value) -> str:
    return f'{name}="{html.escape(str(value), quote=True)}"'


def img_tag(
    caption: str,
    url: str,
    align_class: str | None = None,
    meta: ImageMeta | None = None,
) -> str:
    attrs = [_attr("src", url), _attr("title", caption), _attr("alt", caption)]
    if align_class:
        attrs.append(_attr("class", align_class))
    if meta is not None:
        attrs += [_attr("width", meta.width), _attr("height", meta.height)]
    return f"<img {' '.join(attrs)}>"


def a_tag(inner_html: str, url: str) -> str:
    return f'<a {_attr("href", url)} target="_blank">{inner_html}</a>'


def group_by_mime(
    sizes: list[CandidateSize], attachments_url: str = ids.DEFAULT_ATTACHMENTS_URL
) -> dict[str, list[tuple[str, int]]]:
    """Group candidate URLs and widths by MIME type, keeping candidate order.

    Raises:
        UnknownMime: If a candidate extension has no MIME type
    """
    groups: dict[str, list[tuple[str, int]]] = {}
    for size in sizes:
        url = ids.url_for_attachment(size.id, attachments_url)
        groups.setdefault(mime.lookup(size.ext), []).append((url, size.width))
    return groups


def source_tags(groups: dict[str, list[tuple[str, int]]]) -> list[str]:
    """One ``<source>`` element per MIME type with a width-descriptor srcset."""
    tags = []
    for mime_type, entries in groups.items():
        srcset = ", ".join(f"{url} {width}w" for url, width in entries)
        tags.append(f"<source {_attr('type', mime_type)} {_attr('srcset', srcset)}>")
    return tags


def render_img(directives: CaptionDirectives, url: str) -> str:
    """Plain image tag, link-wrapped unless the caption says ``nolink``."""
    img = img_tag(directives.text, url, directives.align_class)
    if directives.render_as_link:
        return a_tag(img, url)
    return img


def render_picture(
    sizes: list[CandidateSize],
    directives: CaptionDirectives,
    url: str,
    meta: ImageMeta | None = None,
    attachments_url: str = ids.DEFAULT_ATTACHMENTS_URL,
    fallback_max_width: int = FALLBACK_MAX_WIDTH,
) -> str:
    """Responsive ``<picture>`` with one ``<source>`` per MIME type.

    The inner ``<img>`` points at the fallback candidate and carries the
    intrinsic size of the original image when known.
    """
    sources = source_tags(group_by_mime(sizes, attachments_url))
    fallback = fallback_candidate(sizes, url, fallback_max_width)
    fallback_url = ids.url_for_attachment(fallback.id, attachments_url)

    img = img_tag(directives.text, fallback_url, directives.align_class, meta)
    picture = "<picture>" + "\n".join(sources) + img + "</picture>"

    if directives.render_as_link:
        return a_tag(picture, url)
    return picture


def render_youtube(video_id: str, align_class: str | None = None) -> str:
    """Fixed-aspect iframe embed for a YouTube video."""
    css_class = " ".join(c for c in ("youtube", "video", align_class) if c)
    src = YOUTUBE_EMBED_URL.format(video_id=video_id)
    return (
        f"<div {_attr('class', css_class)}>\n"
        f'<iframe type="text/html" {_attr("src", src)} frameborder="0" '
        f'allowfullscreen="allowfullscreen"></iframe>\n'
        f"</div>"
    )


def render_external(directives: CaptionDirectives, url: str) -> str:
    """Markup for a URL outside the site: a video embed or a plain image."""
    if ids.is_youtube(url):
        video_id = ids.youtube_url_to_id(url)
        if video_id:
            return render_youtube(video_id, directives.align_class)
    return render_img(directives, url)
