"""Core build logic: images first, then posts that embed them."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath

from jinja2 import Environment

from . import ids
from .assets import (
    SUPPORTED_ATTACHMENT_EXTENSIONS,
    copy_attachment,
    image_output_paths,
    robust_rmtree,
    write_image_build,
)
from .cache import (
    BUILD_CACHE_FILE,
    IMAGES_DIGEST_KEY,
    check_global_deps_changed,
    images_digest,
    load_build_cache,
    needs_rebuild,
    save_build_cache,
    update_global_deps_cache,
)
from .config import Config
from .content import ImageMetaRecord, build_image, probe_image
from .errors import PicturaError
from .image_rule import ImageRule
from .markdown_utils import extract_description, parse_markdown_file, render_markdown
from .templates import create_environment

MARKDOWN_SUFFIXES = {".md", ".markdown"}


@dataclass
class BuildResult:
    """Counts of what a build did, plus the ids of failed items."""

    images_built: int = 0
    images_cached: int = 0
    posts_built: int = 0
    posts_cached: int = 0
    posts_skipped: int = 0
    attachments_copied: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def is_path_ignored(file_path: Path, base_dir: Path, ignored_folders: list[str]) -> bool:
    """Check if a file lives in an ignored or hidden folder below base_dir."""
    try:
        rel_path = file_path.relative_to(base_dir)
    except ValueError:
        return False
    for part in rel_path.parts[:-1]:
        if part.startswith(".") or part in ignored_folders:
            return True
    return False


def iter_content_files(content_dir: Path, config: Config, suffixes: set[str]) -> Iterator[Path]:
    """Yield content files with one of ``suffixes``, in a stable order."""
    for path in sorted(content_dir.rglob("*")):
        if not path.is_file() or path.name.startswith("."):
            continue
        if path.suffix.lower() not in suffixes:
            continue
        if is_path_ignored(path, content_dir, config.build.ignored_folders):
            continue
        yield path


def content_id_for(content_type: str, path: Path, content_dir: Path) -> str:
    return ids.path_to_id(content_type, path.relative_to(content_dir).as_posix())


def probe_images(content_dir: Path, config: Config, result: BuildResult) -> list[ImageMetaRecord]:
    """Probe every source image; failed probes are logged and left out."""
    from .logging import debug, failure

    records = []
    for src in iter_content_files(content_dir, config, set(config.images.extensions)):
        meta_id = content_id_for(ids.IMAGE_META, src, content_dir)
        try:
            record = probe_image(meta_id, content_dir, config.images)
        except PicturaError as e:
            failure(meta_id, e)
            result.failures.append(meta_id)
            continue
        debug(
            f"  Probed: {record.id} ({record.meta.width}x{record.meta.height}, "
            f"{len(record.scaled_image_list)} variants)"
        )
        records.append(record)
    return records


def build_images(
    records: list[ImageMetaRecord],
    content_dir: Path,
    config: Config,
    build_cache: dict,
    new_build_cache: dict,
    force_rebuild: bool,
    incremental: bool,
    result: BuildResult,
) -> None:
    """Compress and scale every image whose source changed."""
    from .logging import debug, failure

    attachments_dir = config.get_attachments_dir()

    for record in records:
        src = content_dir / ids.id_to_path(record.id)
        outputs = image_output_paths(record, attachments_dir)

        if incremental and not needs_rebuild(src, outputs, build_cache, force_rebuild):
            debug(f"  Cached: {record.id}")
            new_build_cache[str(src)] = build_cache[str(src)]
            result.images_cached += 1
            continue

        debug(f"  Building: {record.id}")
        try:
            image_build = build_image(record.id, content_dir, config.images)
        except PicturaError as e:
            failure(record.id, e)
            result.failures.append(record.id)
            continue

        write_image_build(record.id, image_build, attachments_dir)
        new_build_cache[str(src)] = src.stat().st_mtime
        result.images_built += 1


def copy_attachments(
    content_dir: Path, config: Config, force_rebuild: bool, result: BuildResult
) -> None:
    """Copy non-image attachments next to the built images."""
    attachments_dir = config.get_attachments_dir()
    for src in iter_content_files(content_dir, config, SUPPORTED_ATTACHMENT_EXTENSIONS):
        target = attachments_dir / src.relative_to(content_dir)
        if copy_attachment(src, target, force_rebuild):
            result.attachments_copied += 1


def post_page_path(post_id: str) -> str:
    """Site path of a post: ``posts/hi/index.md`` and ``posts/hi.md`` both map to ``posts/hi``."""
    path = PurePosixPath(ids.id_to_path(post_id)).with_suffix("")
    if path.name == "index":
        path = path.parent
    return "" if path == PurePosixPath(".") else path.as_posix()


def post_output_file(post_id: str, build_dir: Path) -> Path:
    page_path = post_page_path(post_id)
    return (build_dir / page_path if page_path else build_dir) / "index.html"


def create_post_page(
    post_id: str,
    meta: dict,
    markdown_content: str,
    rule: ImageRule,
) -> dict:
    """Create a post object with rendered HTML and template fields."""
    page_path = post_page_path(post_id)
    return {
        "id": post_id,
        "path": page_path,
        "url": f"/{page_path}/" if page_path else "/",
        "title": meta.get("title", PurePosixPath(page_path).name or "Home"),
        "date": meta.get("date"),
        "tags": meta.get("tags", []),
        "meta": meta,
        "description": meta.get("description") or extract_description(markdown_content),
        "html": render_markdown(markdown_content, rule),
    }


def render_post_to_file(page: dict, output_file: Path, env: Environment, config: Config) -> None:
    template = env.get_template("post.html")
    html = template.render(
        page=page,
        title=page["title"],
        description=page["description"],
        date=page["date"],
        content=page["html"],
        **config.to_template_context(),
    )
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(html, encoding="utf-8")


def process_posts(
    content_dir: Path,
    build_dir: Path,
    env: Environment,
    config: Config,
    records: list[ImageMetaRecord],
    build_cache: dict,
    new_build_cache: dict,
    force_rebuild: bool,
    incremental: bool,
    result: BuildResult,
) -> None:
    """Render every non-draft post. A post that fails to render is skipped."""
    from .logging import debug, failure

    scaled_image_ids = [i for record in records for i in record.scaled_image_ids]

    for md_file in iter_content_files(content_dir, config, MARKDOWN_SUFFIXES):
        post_id = content_id_for(ids.POST, md_file, content_dir)
        meta, markdown_content = parse_markdown_file(md_file)

        if meta.get("draft", False):
            debug(f"  Draft skipped: {post_id}")
            result.posts_skipped += 1
            continue

        output_file = post_output_file(post_id, build_dir)
        if incremental and not needs_rebuild(md_file, [output_file], build_cache, force_rebuild):
            debug(f"  Cached: {post_id}")
            new_build_cache[str(md_file)] = build_cache[str(md_file)]
            result.posts_cached += 1
            continue

        rule = ImageRule(
            post_id,
            records,
            scaled_image_ids,
            attachments_url=config.build.attachments_url,
            image_extensions=config.images.extensions,
            fallback_max_width=config.images.fallback_max_width,
        )
        debug(f"  Rendering: {post_id}")
        try:
            page = create_post_page(post_id, meta, markdown_content, rule)
        except PicturaError as e:
            failure(post_id, e)
            result.failures.append(post_id)
            continue

        render_post_to_file(page, output_file, env, config)
        new_build_cache[str(md_file)] = md_file.stat().st_mtime
        result.posts_built += 1


# ---------------------------------------------------------------------------
# Build orchestration
# ---------------------------------------------------------------------------


def _setup_build_environment(
    config: Config, force_rebuild: bool, incremental: bool
) -> tuple[Path, Path, dict, Environment, bool]:
    """Setup build directories, load cache, and create Jinja environment.

    Returns:
        Tuple of (build_dir, cache_file, build_cache, jinja_env, force_rebuild)
        Note: force_rebuild is turned on when config or templates changed
    """
    from .logging import debug

    build_dir = config.get_build_dir()
    cache_file = config.get_cache_dir() / BUILD_CACHE_FILE
    templates_dir = config.get_templates_dir()

    build_cache = {}
    if incremental and not force_rebuild:
        build_cache = load_build_cache(cache_file)

        if check_global_deps_changed(build_cache, config.config_path, templates_dir):
            debug("Config or templates changed, forcing full rebuild...")
            force_rebuild = True
            build_cache = {}

    if force_rebuild and build_dir.exists():
        debug("Force rebuild: Cleaning build directory...")
        robust_rmtree(build_dir)

    build_dir.mkdir(parents=True, exist_ok=True)

    return build_dir, cache_file, build_cache, create_environment(templates_dir), force_rebuild


def _print_build_summary(result: BuildResult, build_dir: Path) -> None:
    from .logging import debug, info, warning

    debug("\nBuild complete!")
    debug(f"  - {result.images_built} images built, {result.images_cached} cached")
    debug(f"  - {result.posts_built} posts rendered, {result.posts_cached} cached")
    debug(f"  - {result.posts_skipped} drafts skipped")
    debug(f"  - {result.attachments_copied} attachments copied")
    debug(f"  - Output directory: {build_dir.absolute()}")

    info(
        f"Done: {result.images_built + result.images_cached} images, "
        f"{result.posts_built + result.posts_cached} posts"
    )
    if result.failures:
        warning(f"{len(result.failures)} item(s) failed: {', '.join(result.failures)}")


def build(
    config: Config,
    force_rebuild: bool = False,
    incremental: bool | None = None,
) -> BuildResult:
    """Build images and posts from the content directory.

    Args:
        config: Configuration object
        force_rebuild: Rebuild everything regardless of modification times
        incremental: Enable incremental builds (default from config)

    Returns:
        BuildResult; failed items are listed in ``failures``
    """
    from .logging import debug, error, info

    if incremental is None:
        incremental = config.build.incremental

    result = BuildResult()
    content_dir = config.get_content_dir()
    if not content_dir.exists():
        error(f"Content directory '{content_dir}' does not exist")
        result.failures.append(str(content_dir))
        return result

    build_dir, cache_file, build_cache, env, force_rebuild = _setup_build_environment(
        config, force_rebuild, incremental
    )

    timestamp = datetime.now().strftime("%H:%M:%S")
    info(f"[{timestamp}] Building...")

    new_build_cache: dict = {}

    records = probe_images(content_dir, config, result)
    build_images(
        records,
        content_dir,
        config,
        build_cache,
        new_build_cache,
        force_rebuild,
        incremental,
        result,
    )
    copy_attachments(content_dir, config, force_rebuild, result)

    # Posts embed image sizes, so any change to the image set re-renders them
    digest = images_digest([record.to_dict() for record in records])
    posts_force = force_rebuild
    if build_cache.get(IMAGES_DIGEST_KEY) != digest:
        debug("Image set changed, re-rendering all posts...")
        posts_force = True

    process_posts(
        content_dir,
        build_dir,
        env,
        config,
        records,
        build_cache,
        new_build_cache,
        posts_force,
        incremental,
        result,
    )

    if incremental:
        new_build_cache[IMAGES_DIGEST_KEY] = digest
        update_global_deps_cache(new_build_cache, config.config_path, config.get_templates_dir())
        save_build_cache(cache_file, new_build_cache)

    _print_build_summary(result, build_dir)
    return result
