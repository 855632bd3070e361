"""Markdown extension rendering embedded images as responsive markup.

The extension replaces Python-Markdown's ``image_link`` and ``image_reference``
inline processors. Every image is handed to an ImageRule as an ImageToken and
the returned HTML is stashed verbatim in place of the default ``<img>``.
"""

from dataclasses import dataclass

from markdown import Extension
from markdown.inlinepatterns import (
    IMAGE_LINK_RE,
    IMAGE_REFERENCE_RE,
    ImageInlineProcessor,
    ImageReferenceInlineProcessor,
)

from . import ids
from .candidates import FALLBACK_MAX_WIDTH, available_sizes
from .captions import parse_caption
from .config import DEFAULT_IMAGE_EXTENSIONS
from .content import ImageMetaRecord
from .errors import ContentNotFound
from .markup import render_external, render_img, render_picture


@dataclass(frozen=True)
class ImageToken:
    """An image found in markdown: its URL and raw caption (alt text).

    A markdown link title is not carried; the caption doubles as the title.
    """

    src: str
    content: str


class ImageRule:
    """Render image tokens found in one post.

    Args:
        post_id: Content id of the post being rendered
        image_metas: Metadata probes of every known base image
        scaled_image_ids: Ids of every known scaled image. Derived from the
            planned variants of ``image_metas`` when omitted.
        attachments_url: Public URL prefix of attachments
        image_extensions: Extensions treated as responsive images
        fallback_max_width: Widest rendition used for the plain ``<img>``
    """

    def __init__(
        self,
        post_id: str,
        image_metas: list[ImageMetaRecord],
        scaled_image_ids: list[str] | None = None,
        attachments_url: str = ids.DEFAULT_ATTACHMENTS_URL,
        image_extensions: list[str] | None = None,
        fallback_max_width: int = FALLBACK_MAX_WIDTH,
    ):
        self.post_id = post_id
        self.image_metas = image_metas
        if scaled_image_ids is None:
            scaled_image_ids = [i for m in image_metas for i in m.scaled_image_ids]
        self.scaled_image_ids = scaled_image_ids
        self.attachments_url = attachments_url
        self.image_extensions = image_extensions or DEFAULT_IMAGE_EXTENSIONS
        self.fallback_max_width = fallback_max_width
        self._metas_by_id = {m.id: m for m in image_metas}

    def render(self, token: ImageToken) -> str:
        """Return the HTML replacing ``token``.

        Raises:
            ContentNotFound: If an internal image has no known renditions
        """
        directives = parse_caption(token.content)

        if ids.is_external_url(token.src):
            return render_external(directives, token.src)

        if ids.names_no_file(self.post_id, token.src):
            return render_img(directives, token.src)

        image_id = ids.post_id_to_image_id(self.post_id, token.src)
        url = ids.url_for_attachment(image_id, self.attachments_url)
        if not ids.is_path_image(ids.url_to_path(url, self.attachments_url), self.image_extensions):
            return render_img(directives, url)

        target_id = ids.id_for_attachment(ids.IMAGE, url, self.attachments_url)
        sizes = available_sizes(target_id, self.image_metas, self.scaled_image_ids)
        if not sizes:
            raise ContentNotFound(url)

        return render_picture(
            sizes,
            directives,
            url,
            meta=self._metas_by_id[target_id].meta,
            attachments_url=self.attachments_url,
            fallback_max_width=self.fallback_max_width,
        )


class RuleImageInlineProcessor(ImageInlineProcessor):
    """``![caption](src)`` handled by an ImageRule."""

    def __init__(self, pattern, md, rule: ImageRule):
        super().__init__(pattern, md)
        self.rule = rule

    def handleMatch(self, m, data):
        text, index, handled = self.getText(data, m.end(0))
        if not handled:
            return None, None, None

        src, _title, index, handled = self.getLink(data, index)
        if not handled:
            return None, None, None

        token = ImageToken(src=self.unescape(src), content=self.unescape(text))
        return self.md.htmlStash.store(self.rule.render(token)), m.start(0), index


class RuleImageReferenceInlineProcessor(ImageReferenceInlineProcessor):
    """``![caption][ref]`` handled by an ImageRule."""

    def __init__(self, pattern, md, rule: ImageRule):
        super().__init__(pattern, md)
        self.rule = rule

    def makeTag(self, href, title, text):
        token = ImageToken(src=self.unescape(href), content=self.unescape(text))
        return self.md.htmlStash.store(self.rule.render(token))


class ImageRuleExtension(Extension):
    """Install an ImageRule as the image renderer of a Markdown instance."""

    def __init__(self, rule: ImageRule, **kwargs):
        self.rule = rule
        super().__init__(**kwargs)

    def extendMarkdown(self, md):
        md.inlinePatterns.register(
            RuleImageInlineProcessor(IMAGE_LINK_RE, md, self.rule), "image_link", 150
        )
        md.inlinePatterns.register(
            RuleImageReferenceInlineProcessor(IMAGE_REFERENCE_RE, md, self.rule),
            "image_reference",
            140,
        )
