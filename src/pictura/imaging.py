"""Image metadata, variant planning and scaling.

Scaling fans out every resize (plus the full-size compression pass) to a
thread pool and joins them; the first failure cancels the rest and fails the
whole unit.
"""

import io
import os
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from PIL import Image, UnidentifiedImageError

DEFAULT_QUALITY = 85

# DecompressionBombError derives from Exception, not OSError
_READ_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError)


class ImageFormat(str, Enum):
    """Supported source formats (values are Pillow format names)."""

    JPEG = "JPEG"
    PNG = "PNG"
    WEBP = "WEBP"
    GIF = "GIF"


class ImageProcessingError(Exception):
    """Pillow could not read, resize or encode an image."""


@dataclass(frozen=True)
class ImageMeta:
    width: int
    height: int
    format: ImageFormat

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height, "format": self.format.value}

    @classmethod
    def from_dict(cls, data: dict) -> "ImageMeta":
        return cls(
            width=int(data["width"]),
            height=int(data["height"]),
            format=ImageFormat(data["format"]),
        )


@dataclass(frozen=True)
class VariantSpec:
    width: int
    format: ImageFormat


@dataclass(frozen=True)
class ScaledImage:
    width: int
    format: ImageFormat
    content: bytes


def read_meta(src: Path) -> ImageMeta:
    """Read width, height and format of an image without decoding its pixels.

    Raises:
        ImageProcessingError: If the file is not an image or its format is unsupported
    """
    try:
        with Image.open(src) as img:
            width, height = img.size
            fmt = img.format
    except _READ_ERRORS as e:
        raise ImageProcessingError(f"cannot read {src}: {e}") from e

    try:
        image_format = ImageFormat(fmt)
    except ValueError:
        raise ImageProcessingError(f"unsupported image format {fmt!r} in {src}") from None

    return ImageMeta(width=width, height=height, format=image_format)


def plan_variants(meta: ImageMeta, widths: list[int]) -> list[VariantSpec]:
    """Plan one variant per ladder width strictly below the source width.

    The ladder order is kept and the format is carried over unchanged. The
    result depends only on the arguments, so scaled image ids can be derived
    again later without re-reading the source.
    """
    return [VariantSpec(width=w, format=meta.format) for w in widths if w < meta.width]


def _encode(img: Image.Image, image_format: ImageFormat, quality: int) -> bytes:
    save_kwargs: dict = {"format": image_format.value}

    if image_format == ImageFormat.JPEG:
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        save_kwargs.update(quality=quality, optimize=True, progressive=True)
    elif image_format == ImageFormat.PNG:
        save_kwargs["optimize"] = True
    elif image_format == ImageFormat.WEBP:
        save_kwargs.update(quality=quality, method=6)
    elif image_format == ImageFormat.GIF:
        save_kwargs["optimize"] = True

    buffer = io.BytesIO()
    img.save(buffer, **save_kwargs)
    return buffer.getvalue()


def resize_by_width(
    src: Path, width: int, image_format: ImageFormat, quality: int = DEFAULT_QUALITY
) -> bytes:
    """Resize an image to ``width`` keeping its aspect ratio and re-encode it."""
    try:
        with Image.open(src) as img:
            height = max(1, round(img.height * width / img.width))
            resized = img.resize((width, height), Image.Resampling.LANCZOS)
            return _encode(resized, image_format, quality)
    except _READ_ERRORS + (ValueError,) as e:
        raise ImageProcessingError(f"cannot resize {src} to {width}px: {e}") from e


def compress(src: Path, image_format: ImageFormat, quality: int = DEFAULT_QUALITY) -> bytes:
    """Re-encode an image at full resolution with format-aware compression."""
    try:
        with Image.open(src) as img:
            img.load()
            return _encode(img, image_format, quality)
    except _READ_ERRORS + (ValueError,) as e:
        raise ImageProcessingError(f"cannot compress {src}: {e}") from e


def default_max_workers() -> int:
    return max(1, min(8, os.cpu_count() or 1))


def _join_all(futures: list[Future]) -> list:
    """Wait for every future; on the first failure cancel the rest and re-raise."""
    done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
    for future in done:
        exc = future.exception()
        if exc is not None:
            for pending in not_done:
                pending.cancel()
            raise exc
    return [future.result() for future in futures]


def _scale(src: Path, spec: VariantSpec, quality: int) -> ScaledImage:
    content = resize_by_width(src, spec.width, spec.format, quality)
    return ScaledImage(width=spec.width, format=spec.format, content=content)


def produce_variants(
    src: Path,
    ladder: list[VariantSpec],
    quality: int = DEFAULT_QUALITY,
    max_workers: int | None = None,
) -> list[ScaledImage]:
    """Produce every planned variant concurrently, in ladder order.

    Raises:
        ImageProcessingError: If any single resize fails
    """
    if not ladder:
        return []
    with ThreadPoolExecutor(max_workers=max_workers or default_max_workers()) as pool:
        futures = [pool.submit(_scale, src, spec, quality) for spec in ladder]
        return _join_all(futures)


def compress_and_scale(
    src: Path,
    meta: ImageMeta,
    ladder: list[VariantSpec],
    quality: int = DEFAULT_QUALITY,
    max_workers: int | None = None,
) -> tuple[bytes, list[ScaledImage]]:
    """Run the full-size compression pass and all variant resizes together.

    Returns:
        Tuple of (compressed full-size bytes, scaled images in ladder order)
    """
    with ThreadPoolExecutor(max_workers=max_workers or default_max_workers()) as pool:
        futures = [pool.submit(compress, src, meta.format, quality)]
        futures += [pool.submit(_scale, src, spec, quality) for spec in ladder]
        content, *scaled = _join_all(futures)
    return content, scaled
