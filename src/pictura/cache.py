"""Build cache management for pictura."""

import hashlib
import json
from pathlib import Path

BUILD_CACHE_FILE = ".build_cache"

# Special cache keys for global dependencies
CONFIG_MTIME_KEY = "__config_mtime__"
TEMPLATES_MTIME_KEY = "__templates_mtime__"
IMAGES_DIGEST_KEY = "__images_digest__"


def load_build_cache(cache_file: Path) -> dict:
    """Load the build cache containing file modification times.

    Returns:
        Dictionary mapping source paths to modification times, empty if the
        cache is missing or unreadable
    """
    if cache_file.exists():
        try:
            with open(cache_file, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError):
            return {}
    return {}


def save_build_cache(cache_file: Path, cache_data: dict) -> None:
    cache_file.parent.mkdir(parents=True, exist_ok=True)
    with open(cache_file, "w", encoding="utf-8") as f:
        json.dump(cache_data, f)


def needs_rebuild(
    source_file: Path, output_files: list[Path], cache: dict, force: bool = False
) -> bool:
    """Check if a source file needs to be rebuilt.

    Args:
        source_file: Markdown post or source image
        output_files: Every file the build of source_file writes
        cache: Build cache dictionary
        force: Force rebuild regardless of cache

    Returns:
        True if any output is missing or the source changed since it was cached
    """
    if force:
        return True
    if any(not output.exists() for output in output_files):
        return True
    cache_key = str(source_file)
    if cache_key in cache and cache[cache_key] >= source_file.stat().st_mtime:
        return False
    return True


def get_templates_mtime(templates_dir: Path | None) -> float:
    """Get the most recent modification time of the user templates.

    Returns:
        Most recent mtime across all templates, or 0 if none found
    """
    max_mtime = 0.0
    if templates_dir and templates_dir.exists():
        for template_file in templates_dir.glob("*.html"):
            max_mtime = max(max_mtime, template_file.stat().st_mtime)
    return max_mtime


def images_digest(image_records: list[dict]) -> str:
    """Digest of the image manifest; posts re-render when it changes."""
    payload = json.dumps(sorted(image_records, key=lambda r: r["id"]), sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def check_global_deps_changed(
    cache: dict, config_path: Path | None, templates_dir: Path | None
) -> bool:
    """Check if config or templates changed since the last build."""
    if config_path and config_path.exists():
        if config_path.stat().st_mtime > cache.get(CONFIG_MTIME_KEY, 0):
            return True

    if get_templates_mtime(templates_dir) > cache.get(TEMPLATES_MTIME_KEY, 0):
        return True

    return False


def update_global_deps_cache(
    cache: dict, config_path: Path | None, templates_dir: Path | None
) -> None:
    """Record current config and template mtimes in the cache."""
    if config_path and config_path.exists():
        cache[CONFIG_MTIME_KEY] = config_path.stat().st_mtime

    cache[TEMPLATES_MTIME_KEY] = get_templates_mtime(templates_dir)
