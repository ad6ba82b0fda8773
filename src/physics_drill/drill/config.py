"""Configuration loader for drill sessions."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

from physics_drill.core import config as core_config
from physics_drill.core import workspace as workspace_mod

CONFIG_FILENAME = "drill.toml"
CONFIG_ENV = "PHYSICS_DRILL_CONFIG"
ENV_PREFIX = "PHYSICS_DRILL_"

_DEFAULT_LOG_LEVEL = "INFO"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class DrillConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


class Interface(Enum):
    """Presentation used by ``drill run``."""

    CONSOLE = "console"
    TUI = "tui"

    @classmethod
    def from_value(cls, value: str) -> "Interface":
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise DrillConfigError(
            f"Unknown interface '{value}'. Expected one of: {expected}."
        )


@dataclass(frozen=True)
class DrillConfig:
    """Fully resolved settings for a drill run."""

    bank_path: Optional[Path]
    asset_dir: Optional[Path]
    interface: Interface
    show_answers: bool
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """Values from the command line, applied over env and file options."""

    bank_path: Optional[Path] = None
    asset_dir: Optional[Path] = None
    interface: Optional[Interface] = None
    show_answers: Optional[bool] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: DrillConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve settings with precedence CLI > env > TOML file > defaults.

    A missing default ``drill.toml`` is fine; a missing file that was asked
    for explicitly (``--config`` or ``PHYSICS_DRILL_CONFIG``) is an error.
    Relative paths inside the file resolve against the file's directory.
    """

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise DrillConfigError(str(exc)) from exc

    requested = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        loaded_path = requested
        try:
            table = core_config.layer_table(
                table, core_config.load_toml(requested)
            )
        except core_config.TomlConfigError as exc:
            raise DrillConfigError(str(exc)) from exc
    elif config_path is not None or _parse_env_string(env_map, "CONFIG"):
        raise DrillConfigError(f"Config file not found: {requested}")

    file_root = requested.parent

    bank_path = _pick_first(
        overrides.bank_path,
        _parse_env_path(env_map, "BANK"),
        _file_path(table["paths"]["bank"], "paths.bank", file_root),
    )
    asset_dir = _pick_first(
        overrides.asset_dir,
        _parse_env_path(env_map, "ASSETS"),
        _file_path(table["paths"]["assets"], "paths.assets", file_root),
    )
    interface = _pick_first(
        overrides.interface,
        _parse_env_interface(env_map),
        _file_interface(table["session"]["interface"]),
    )
    show_answers = _pick_first(
        overrides.show_answers,
        _parse_env_bool(env_map, "SHOW_ANSWERS"),
        _file_bool(table["session"]["show_answers"], "session.show_answers"),
    )
    log_level = _resolve_log_level(
        _pick_first(
            overrides.log_level,
            _parse_env_string(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        )
    )

    config = DrillConfig(
        bank_path=bank_path,
        asset_dir=asset_dir,
        interface=interface,
        show_answers=show_answers,
        log_level=log_level,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> dict[str, Any]:
    return {
        "paths": {"bank": "", "assets": ""},
        "session": {
            "interface": Interface.CONSOLE.value,
            "show_answers": False,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = _parse_env_string(env_map, "CONFIG")
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _file_path(value: object, key: str, root: Path) -> Optional[Path]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise DrillConfigError(f"{key} must be a string when provided.")
    raw = value.strip()
    if not raw:
        return None
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = root / path
    return path


def _file_interface(value: object) -> Interface:
    if not isinstance(value, str):
        raise DrillConfigError("session.interface must be a string.")
    return Interface.from_value(value)


def _file_bool(value: object, key: str) -> bool:
    if not isinstance(value, bool):
        raise DrillConfigError(f"{key} must be true or false.")
    return value


def _resolve_log_level(candidate: object) -> str:
    if not isinstance(candidate, str) or not candidate.strip():
        raise DrillConfigError("logging.level must be a non-empty string.")
    return candidate.strip().upper()


def _parse_env_interface(env_map: Mapping[str, str]) -> Optional[Interface]:
    raw = _parse_env_string(env_map, "INTERFACE")
    if raw is None:
        return None
    return Interface.from_value(raw)


def _parse_env_bool(env_map: Mapping[str, str], key: str) -> Optional[bool]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise DrillConfigError(
        f"{ENV_PREFIX}{key} must be a boolean value, got '{raw}'."
    )


def _parse_env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    return Path(raw).expanduser()


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates):
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
