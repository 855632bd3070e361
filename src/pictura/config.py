"""Configuration loading and management for pictura."""

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import TypeVar

T = TypeVar("T")

CONFIG_DIR_NAME = ".pictura"
CONFIG_FILE_NAME = "config.toml"

DEFAULT_WIDTHS = [50, 200, 500, 1000, 1500, 2000]
DEFAULT_IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".webp", ".gif"]


def _find_similar(key: str, valid_keys: set[str], threshold: float = 0.6) -> str | None:
    """Find a similar key from valid_keys using Levenshtein ratio.

    Args:
        key: The unknown key to match
        valid_keys: Set of valid key names
        threshold: Minimum similarity ratio (0-1) to suggest

    Returns:
        Most similar key if above threshold, None otherwise
    """

    def levenshtein_ratio(s1: str, s2: str) -> float:
        m, n = len(s1), len(s2)
        if m == 0 or n == 0:
            return 0.0

        d = [[0] * (n + 1) for _ in range(m + 1)]
        for i in range(m + 1):
            d[i][0] = i
        for j in range(n + 1):
            d[0][j] = j

        for i in range(1, m + 1):
            for j in range(1, n + 1):
                cost = 0 if s1[i - 1] == s2[j - 1] else 1
                d[i][j] = min(d[i - 1][j] + 1, d[i][j - 1] + 1, d[i - 1][j - 1] + cost)

        return 1.0 - (d[m][n] / max(m, n))

    best_match = None
    best_ratio = 0.0

    for valid in sorted(valid_keys):
        ratio = levenshtein_ratio(key.lower(), valid.lower())
        if ratio > best_ratio:
            best_ratio = ratio
            best_match = valid

    return best_match if best_ratio >= threshold else None


def _warn_unknown_keys(
    data: dict, valid_keys: set[str], section: str, config_path: Path | None = None
) -> None:
    """Log a warning for every unknown key in a config section."""
    from .logging import warning

    for key in sorted(set(data.keys()) - valid_keys):
        location = f" in {config_path}" if config_path else ""
        msg = f"Unknown config key '{key}' in [{section}]{location}"

        similar = _find_similar(key, valid_keys)
        if similar:
            msg += f". Did you mean '{similar}'?"

        warning(msg)


def _load_dataclass(
    cls: type[T],
    data: dict,
    defaults: T,
    transforms: dict[str, callable] | None = None,
    section: str = "",
    config_path: Path | None = None,
) -> T:
    """Load a dataclass from a dict with defaults and optional field transforms.

    Args:
        cls: The dataclass type to create
        data: Dict of values from config file
        defaults: Instance with default values
        transforms: Optional dict mapping field names to transform functions
        section: Section name for validation warnings
        config_path: Path to config file for validation warnings

    Returns:
        New instance of cls with values from data, falling back to defaults
    """
    transforms = transforms or {}
    kwargs = {}
    valid_keys = {f.name for f in fields(cls)}

    _warn_unknown_keys(data, valid_keys, section, config_path)

    for f in fields(cls):
        value = data.get(f.name, getattr(defaults, f.name))
        if f.name in transforms:
            value = transforms[f.name](value)
        kwargs[f.name] = value
    return cls(**kwargs)


def _normalize_widths(widths: list[int]) -> list[int]:
    """Sort the width ladder ascending and drop duplicates and non-positive values."""
    return sorted({int(w) for w in widths if int(w) > 0})


def _normalize_extensions(extensions: list[str]) -> list[str]:
    return [e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions]


def _normalize_url_prefix(prefix: str) -> str:
    prefix = "/" + prefix.strip("/")
    return prefix if prefix == "/" else prefix + "/"


@dataclass
class SiteConfig:
    """Site-level configuration."""

    name: str = "My Site"
    url: str = "https://example.com"
    author: str = ""


@dataclass
class BuildConfig:
    """Build-related configuration."""

    content_dir: str = ""  # relative to the project root
    attachments_url: str = "/attachments/"
    ignored_folders: list[str] = field(default_factory=lambda: ["_private"])
    incremental: bool = True


@dataclass
class ImagesConfig:
    """Responsive image pipeline configuration."""

    widths: list[int] = field(default_factory=lambda: list(DEFAULT_WIDTHS))
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS))
    fallback_max_width: int = 500
    quality: int = 85
    max_workers: int = 0  # 0 picks a worker count from the CPU count


@dataclass
class Config:
    """Main configuration container."""

    site: SiteConfig = field(default_factory=SiteConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    images: ImagesConfig = field(default_factory=ImagesConfig)

    # Computed paths (set after loading)
    project_path: Path | None = None
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path) -> "Config":
        """Load configuration from a TOML file.

        Args:
            config_path: Path to the config.toml file

        Returns:
            Loaded Config object with defaults merged
        """
        config = cls()
        config.config_path = config_path
        config.project_path = config_path.parent.parent  # .pictura/config.toml -> project

        if not config_path.exists():
            return config

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        _warn_unknown_keys(data, {"site", "build", "images"}, "top-level", config_path)

        if "site" in data:
            config.site = _load_dataclass(
                SiteConfig,
                data["site"],
                config.site,
                section="site",
                config_path=config_path,
            )

        if "build" in data:
            config.build = _load_dataclass(
                BuildConfig,
                data["build"],
                config.build,
                transforms={"attachments_url": _normalize_url_prefix},
                section="build",
                config_path=config_path,
            )

        if "images" in data:
            config.images = _load_dataclass(
                ImagesConfig,
                data["images"],
                config.images,
                transforms={
                    "widths": _normalize_widths,
                    "extensions": _normalize_extensions,
                },
                section="images",
                config_path=config_path,
            )

        return config

    @classmethod
    def find_and_load(cls, start_path: Path | None = None) -> "Config":
        """Find and load config from .pictura/config.toml.

        Raises:
            FileNotFoundError: If no .pictura/config.toml is found
        """
        if start_path is None:
            start_path = Path.cwd()

        config_path = cls.find_config(start_path)
        if config_path is None:
            raise FileNotFoundError(
                f"No {CONFIG_DIR_NAME}/{CONFIG_FILE_NAME} found. Run 'pictura init' first."
            )

        return cls.load(config_path)

    @staticmethod
    def find_config(start_path: Path) -> Path | None:
        """Find .pictura/config.toml starting from start_path and walking up."""
        current = start_path.resolve()

        while True:
            config_path = current / CONFIG_DIR_NAME / CONFIG_FILE_NAME
            if config_path.exists():
                return config_path

            parent = current.parent
            if parent == current:
                return None
            current = parent

    def _base_dir(self) -> Path:
        return self.project_path if self.project_path else Path.cwd()

    def get_content_dir(self) -> Path:
        """Get the content root that all content ids are relative to."""
        content_dir = self.build.content_dir.strip("/")
        return self._base_dir() / content_dir if content_dir else self._base_dir()

    def get_build_dir(self) -> Path:
        return self._base_dir() / CONFIG_DIR_NAME / "build"

    def get_cache_dir(self) -> Path:
        return self._base_dir() / CONFIG_DIR_NAME / "cache"

    def get_templates_dir(self) -> Path | None:
        """Get custom templates directory if it exists."""
        templates_dir = self._base_dir() / CONFIG_DIR_NAME / "templates"
        if templates_dir.exists():
            return templates_dir
        return None

    def get_attachments_dir(self) -> Path:
        """Get the output directory matching the public attachments URL."""
        return self.get_build_dir() / self.build.attachments_url.strip("/")

    def to_template_context(self) -> dict:
        """Convert config to a dict suitable for Jinja2 templates."""
        return {
            "site_name": self.site.name,
            "site_url": self.site.url,
            "site_author": self.site.author,
        }
