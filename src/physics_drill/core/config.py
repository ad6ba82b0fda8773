"""TOML settings files: reading, layering over defaults, scaffolding."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import tomllib

__all__ = [
    "TomlConfigError",
    "layer_table",
    "load_toml",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """A settings file could not be read, parsed, layered or written."""


def load_toml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise TomlConfigError(f"Cannot read config {path}: {exc}") from exc
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise TomlConfigError(
            f"Failed to parse config TOML {path}: {exc}"
        ) from exc


def layer_table(
    defaults: Mapping[str, Any],
    overrides: Mapping[str, Any],
    *,
    prefix: str = "",
) -> dict[str, Any]:
    """Return a copy of ``defaults`` with ``overrides`` laid over it.

    Every key in ``overrides`` must already exist in ``defaults``, and a key
    whose default is a table only accepts a table. Errors name the dotted
    key, e.g. ``session.interface``.
    """

    merged = dict(defaults)
    for key, value in overrides.items():
        dotted = prefix + key
        if key not in defaults:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        default = defaults[key]
        if not isinstance(default, Mapping):
            merged[key] = value
        elif isinstance(value, Mapping):
            merged[key] = layer_table(default, value, prefix=f"{dotted}.")
        else:
            raise TomlConfigError(
                f"'{dotted}' must be a table, not {type(value).__name__}."
            )
    return merged


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Create ``path`` holding ``template``.

    An existing file is only replaced with ``overwrite``. The template must
    itself parse, so ``drill config init`` never scaffolds a file that
    ``drill run`` would reject.
    """

    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    try:
        tomllib.loads(template)
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Template is not valid TOML: {exc}") from exc
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path
