"""Candidate sizes of a logical image and the plain ``<img>`` fallback choice."""

from dataclasses import dataclass
from pathlib import PurePosixPath

from . import ids, mime
from .content import ImageMetaRecord
from .errors import ContentNotFound, InvalidContentId

FALLBACK_MAX_WIDTH = 500


@dataclass(frozen=True)
class CandidateSize:
    """One selectable rendition of a logical image."""

    id: str
    ext: str
    width: int


def _ext(path: str) -> str:
    return PurePosixPath(path).suffix[1:]


def available_sizes(
    target_id: str,
    image_metas: list[ImageMetaRecord],
    scaled_image_ids: list[str],
) -> list[CandidateSize]:
    """Collect every known rendition of ``target_id``.

    Scaled variants come first, in the order they appear in
    ``scaled_image_ids``, followed by the base image itself. Returns an empty
    list when ``target_id`` is not a known base image.
    """
    image = next((m for m in image_metas if m.id == target_id), None)
    if image is None:
        return []

    image_path = ids.id_to_path(image.id)
    sizes = []
    for scaled_id in scaled_image_ids:
        try:
            original_id, width = ids.decode_variant_id(scaled_id)
        except InvalidContentId:
            continue
        if ids.id_to_path(original_id) == image_path:
            sizes.append(
                CandidateSize(id=scaled_id, ext=_ext(ids.id_to_path(scaled_id)), width=width)
            )

    sizes.append(CandidateSize(id=image.id, ext=_ext(image_path), width=image.meta.width))
    return sizes


def fallback_candidate(
    candidates: list[CandidateSize],
    requested_url: str,
    max_width: int = FALLBACK_MAX_WIDTH,
) -> CandidateSize:
    """Pick the rendition served to browsers without ``<picture>`` support.

    Among candidates sharing the MIME type of ``requested_url`` this is the
    widest one not exceeding ``max_width``, or the narrowest one if all of
    them are wider.

    Raises:
        ContentNotFound: If no candidate has the requested MIME type
    """
    requested_mime = mime.lookup(_ext(requested_url.split("?", 1)[0]))
    same_mime = sorted(
        (c for c in candidates if mime.lookup(c.ext) == requested_mime),
        key=lambda c: c.width,
    )
    if not same_mime:
        raise ContentNotFound(requested_url)

    best = same_mime[0]
    for candidate in same_mime:
        if best.width < candidate.width <= max_width:
            best = candidate
    return best
