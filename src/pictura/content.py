"""Image content type: metadata probes and full builds of source images.

The content type is chosen by the id prefix: ``imageMeta@<path>`` returns an
ImageMetaRecord (no pixels decoded), ``image@<path>`` returns an ImageBuild with
the compressed image and every scaled variant. Persisting the result is up to
the caller.
"""

from dataclasses import dataclass, field
from pathlib import Path

from . import ids
from .config import ImagesConfig
from .errors import BuildFailure, InvalidContentId
from .imaging import (
    ImageMeta,
    ImageProcessingError,
    ScaledImage,
    VariantSpec,
    compress_and_scale,
    plan_variants,
    read_meta,
)


@dataclass(frozen=True)
class ImageMetaRecord:
    """Metadata probe result for one base image."""

    id: str
    meta: ImageMeta
    scaled_image_list: list[VariantSpec] = field(default_factory=list)

    @property
    def scaled_image_ids(self) -> list[str]:
        return [ids.encode_variant_id(self.id, spec.width) for spec in self.scaled_image_list]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "meta": self.meta.to_dict(),
            "scaledImageList": [
                {"width": s.width, "format": s.format.value} for s in self.scaled_image_list
            ],
        }


@dataclass(frozen=True)
class ImageBuild:
    """Full build result for one base image."""

    content: bytes
    meta: ImageMeta
    scaled: list[ScaledImage] = field(default_factory=list)


def _source_path(content_id: str, content_root: Path) -> Path:
    return content_root / ids.normalize_content_path(ids.id_to_path(content_id))


def probe_image(content_id: str, content_root: Path, settings: ImagesConfig) -> ImageMetaRecord:
    """Read metadata of a source image and plan its variants."""
    src = _source_path(content_id, content_root)
    try:
        meta = read_meta(src)
    except ImageProcessingError as e:
        raise BuildFailure(content_id, str(e)) from e

    return ImageMetaRecord(
        id=ids.with_type(content_id, ids.IMAGE),
        meta=meta,
        scaled_image_list=plan_variants(meta, settings.widths),
    )


def build_image(content_id: str, content_root: Path, settings: ImagesConfig) -> ImageBuild:
    """Compress a source image and produce all of its scaled variants.

    Raises:
        BuildFailure: If reading, resizing or compressing fails. Not retried.
    """
    src = _source_path(content_id, content_root)
    try:
        meta = read_meta(src)
        ladder = plan_variants(meta, settings.widths)
        content, scaled = compress_and_scale(
            src,
            meta,
            ladder,
            quality=settings.quality,
            max_workers=settings.max_workers or None,
        )
    except ImageProcessingError as e:
        raise BuildFailure(content_id, str(e)) from e

    return ImageBuild(content=content, meta=meta, scaled=scaled)


def load_image_content(
    content_id: str, content_root: Path, settings: ImagesConfig
) -> ImageMetaRecord | ImageBuild:
    """Dispatch on the content type carried by the id."""
    content_type = ids.id_to_type(content_id)
    if content_type == ids.IMAGE_META:
        return probe_image(content_id, content_root, settings)
    if content_type == ids.IMAGE:
        return build_image(content_id, content_root, settings)
    raise InvalidContentId(content_id, "not an image content id")
