"""Writing built images and copying other attachments to the build directory."""

import shutil
import time
from pathlib import Path

from . import ids
from .content import ImageBuild, ImageMetaRecord

# Non-responsive attachments copied as-is
SUPPORTED_ATTACHMENT_EXTENSIONS = {
    ".svg",
    ".ico",
    ".bmp",
    ".pdf",
    ".txt",
    ".mp4",
    ".webm",
    ".mp3",
    ".wav",
    ".zip",
    ".tar",
    ".gz",
}


def robust_rmtree(path: Path, retries: int = 3, delay: float = 0.1) -> None:
    """Remove a directory tree with retry logic for macOS file descriptor races."""
    for attempt in range(retries):
        try:
            shutil.rmtree(path)
            return
        except OSError:
            if attempt < retries - 1:
                time.sleep(delay * (attempt + 1))
            else:
                raise


def image_output_paths(record: ImageMetaRecord, attachments_dir: Path) -> list[Path]:
    """Every file written for one image: the base image followed by its variants."""
    base_path = ids.id_to_path(record.id)
    return [attachments_dir / base_path] + [
        attachments_dir / ids.variant_path(base_path, spec.width)
        for spec in record.scaled_image_list
    ]


def write_image_build(image_id: str, build: ImageBuild, attachments_dir: Path) -> list[Path]:
    """Persist a full image build under the attachments directory.

    Returns:
        Paths written, base image first
    """
    base_path = ids.id_to_path(image_id)
    outputs = [(attachments_dir / base_path, build.content)]
    outputs += [
        (attachments_dir / ids.variant_path(base_path, scaled.width), scaled.content)
        for scaled in build.scaled
    ]

    written = []
    for target, data in outputs:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        written.append(target)
    return written


def copy_attachment(src_file: Path, target_file: Path, force_rebuild: bool = False) -> bool:
    """Copy one attachment if it is missing or older than its source.

    Returns:
        True if the file was copied
    """
    if (
        not force_rebuild
        and target_file.exists()
        and target_file.stat().st_mtime >= src_file.stat().st_mtime
    ):
        return False
    target_file.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src_file, target_file)
    return True
