"""Template management for pictura."""

import importlib.resources
from pathlib import Path

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, TemplateNotFound

DEFAULT_TEMPLATES_PACKAGE = "pictura.defaults.templates"


class PackageLoader(BaseLoader):
    """Jinja2 loader that loads templates from a Python package."""

    def __init__(self, package: str):
        self.package = package

    def get_source(self, environment, template):
        try:
            template_file = importlib.resources.files(self.package).joinpath(template)
            if template_file.is_file():
                source = template_file.read_text(encoding="utf-8")
                return source, str(template_file), lambda: True
        except (TypeError, FileNotFoundError, ModuleNotFoundError):
            pass
        raise TemplateNotFound(template)

    def list_templates(self):
        templates = []
        try:
            for item in importlib.resources.files(self.package).iterdir():
                if item.is_file() and item.name.endswith(".html"):
                    templates.append(item.name)
        except (TypeError, FileNotFoundError, ModuleNotFoundError):
            pass
        return sorted(templates)


def get_template_loader(templates_dir: Path | None) -> ChoiceLoader:
    """Get a Jinja2 template loader with override support.

    Template resolution order:
    1. User templates in .pictura/templates/
    2. Bundled default templates
    """
    loaders = []
    if templates_dir is not None and templates_dir.exists():
        loaders.append(FileSystemLoader(str(templates_dir)))
    loaders.append(PackageLoader(DEFAULT_TEMPLATES_PACKAGE))
    return ChoiceLoader(loaders)


def create_environment(templates_dir: Path | None) -> Environment:
    return Environment(loader=get_template_loader(templates_dir), autoescape=False)
