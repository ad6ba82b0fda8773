"""TOML templates shipped inside physics-drill packages."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path

from .config import TomlConfigError, write_toml_template

__all__ = [
    "ConfigTemplate",
    "ConfigTemplateError",
    "TEMPLATES",
    "get_template",
]


class ConfigTemplateError(RuntimeError):
    """Unknown template name, missing resource or refused write."""


@dataclass(frozen=True)
class ConfigTemplate:
    """Template stored as ``package:filename`` package data."""

    name: str
    resource: str
    description: str

    def read_text(self) -> str:
        package, _, filename = self.resource.partition(":")
        source = resources.files(package).joinpath(filename)
        if not source.is_file():  # pragma: no cover - broken install
            raise ConfigTemplateError(
                f"Template '{self.name}' is missing from {package}."
            )
        return source.read_text(encoding="utf-8")

    def write(self, path: Path, *, overwrite: bool = False) -> Path:
        try:
            return write_toml_template(
                path, template=self.read_text(), overwrite=overwrite
            )
        except TomlConfigError as exc:
            raise ConfigTemplateError(str(exc)) from exc


TEMPLATES: dict[str, ConfigTemplate] = {
    template.name: template
    for template in (
        ConfigTemplate(
            name="drill",
            resource="physics_drill.drill:template.toml",
            description=(
                "Bank, asset, session and logging defaults for `drill run`."
            ),
        ),
    )
}


def get_template(name: str) -> ConfigTemplate:
    template = TEMPLATES.get(name)
    if template is None:
        known = ", ".join(sorted(TEMPLATES))
        raise ConfigTemplateError(
            f"Unknown config template '{name}'. Known templates: {known}."
        )
    return template
