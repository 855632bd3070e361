"""Command-line interface for pictura."""

import json
import shutil
from pathlib import Path

import click

from .config import CONFIG_DIR_NAME, CONFIG_FILE_NAME, Config

DEFAULT_CONFIG = """\
[site]
name = "My Site"
url = "https://example.com"

[build]
content_dir = "content"
"""


def get_default_config_content() -> str:
    """Get the default config.toml content from bundled defaults."""
    from .resources import read_package_text

    return read_package_text("pictura.defaults", "config.toml") or DEFAULT_CONFIG


def _load_config() -> Config:
    try:
        return Config.find_and_load()
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(package_name="pictura")
def main():
    """Pictura - personal site builder with responsive images."""
    pass


@main.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite existing files")
def init(force: bool):
    """Initialize a new pictura project."""
    from .resources import copy_package_files

    config_dir = Path.cwd() / CONFIG_DIR_NAME
    config_file = config_dir / CONFIG_FILE_NAME

    if config_file.exists() and not force:
        click.echo(f"Error: {CONFIG_DIR_NAME}/{CONFIG_FILE_NAME} already exists", err=True)
        click.echo("Use --force to overwrite", err=True)
        raise SystemExit(1)

    config_dir.mkdir(exist_ok=True)
    config_file.write_text(get_default_config_content(), encoding="utf-8")
    click.echo(f"Created {config_file}")

    templates_dir = config_dir / "templates"
    created = copy_package_files(
        "pictura.defaults.templates", templates_dir, suffix=".html", force=force
    )
    if created:
        click.echo(f"Created {templates_dir}/ ({len(created)} templates)")

    content_dir = Path.cwd() / "content"
    if not content_dir.exists():
        content_dir.mkdir()
        click.echo(f"Created {content_dir}/")

    click.echo("\nNext steps:")
    click.echo(f"  - Edit {CONFIG_DIR_NAME}/config.toml for site and image settings")
    click.echo("  - Write posts as content/<slug>/index.md next to their images")
    click.echo("\nRun 'pictura build' to build your site")


@main.command()
@click.option("--force", "-f", is_flag=True, help="Force full rebuild")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--serve", "-s", is_flag=True, help="Start local server after build")
@click.option("--port", "-p", default=8000, help="Server port")
def build(force: bool, verbose: bool, serve: bool, port: int):
    """Build images and posts."""
    from .build import build as do_build
    from .logging import setup_logging

    config = _load_config()
    setup_logging(verbose=verbose)

    result = do_build(config=config, force_rebuild=force)

    if serve and result.ok:
        from .resources import start_dev_server

        click.echo(f"\nStarting server at http://localhost:{port}")
        click.echo("Press Ctrl+C to stop")
        try:
            start_dev_server(config.get_build_dir(), port)
        except KeyboardInterrupt:
            click.echo("\nServer stopped")

    if not result.ok:
        raise SystemExit(1)


@main.command()
@click.option("--port", "-p", default=8000, help="Server port")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def watch(port: int, verbose: bool):
    """Watch for changes and rebuild automatically."""
    from .watch import watch as do_watch

    do_watch(config=_load_config(), port=port, verbose=verbose)


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def probe(path: Path):
    """Print image metadata and planned variants as JSON."""
    from . import ids
    from .content import probe_image
    from .errors import PicturaError

    try:
        config = Config.find_and_load()
        content_dir = config.get_content_dir()
        images = config.images
    except FileNotFoundError:
        config = Config()
        content_dir = path.parent
        images = config.images

    try:
        rel_path = path.resolve().relative_to(content_dir.resolve())
    except ValueError:
        content_dir, rel_path = path.resolve().parent, Path(path.name)

    try:
        record = probe_image(ids.path_to_id(ids.IMAGE_META, rel_path.as_posix()), content_dir, images)
    except PicturaError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(json.dumps(record.to_dict(), indent=2))


@main.command()
def clean():
    """Remove build artifacts."""
    config_dir = Path.cwd() / CONFIG_DIR_NAME
    cleaned = False

    for target in (config_dir / "build", config_dir / "cache"):
        if target.exists():
            shutil.rmtree(target)
            click.echo(f"Removed {target}")
            cleaned = True

    if not cleaned:
        click.echo("Nothing to clean")


if __name__ == "__main__":
    main()
