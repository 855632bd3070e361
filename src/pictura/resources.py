"""Utilities for working with bundled package resources and the dev server."""

import importlib.resources
import subprocess
import sys
from pathlib import Path


def read_package_text(package: str, filename: str) -> str | None:
    """Read text content from a package resource.

    Returns:
        File contents as string, or None if not found
    """
    try:
        resource = importlib.resources.files(package).joinpath(filename)
        if resource.is_file():
            return resource.read_text(encoding="utf-8")
    except (TypeError, FileNotFoundError, ModuleNotFoundError):
        pass
    return None


def copy_package_files(
    package: str,
    target_dir: Path,
    suffix: str | None = None,
    force: bool = False,
) -> list[str]:
    """Copy non-Python files from a package to a target directory.

    Args:
        package: Package name (e.g., "pictura.defaults.templates")
        target_dir: Directory to copy files to
        suffix: Optional suffix to filter by (e.g., ".html")
        force: If True, overwrite existing files

    Returns:
        List of created file paths
    """
    created = []
    target_dir.mkdir(parents=True, exist_ok=True)

    try:
        for item in importlib.resources.files(package).iterdir():
            if not item.is_file() or item.name.endswith(".py"):
                continue
            if suffix and not item.name.endswith(suffix):
                continue

            target_file = target_dir / item.name
            if force or not target_file.exists():
                target_file.write_bytes(item.read_bytes())
                created.append(str(target_file))
    except (TypeError, FileNotFoundError, ModuleNotFoundError):
        pass

    return created


def start_dev_server(build_dir: Path, port: int = 8000, background: bool = False):
    """Serve the build directory with ``python -m http.server``.

    Returns:
        subprocess.Popen if background=True, None otherwise
    """
    cmd = [sys.executable, "-m", "http.server", str(port)]

    if background:
        return subprocess.Popen(
            cmd,
            cwd=str(build_dir),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    subprocess.run(cmd, cwd=str(build_dir))
    return None
