"""Shared helpers for physics-drill: settings, templates, logs, workspace."""

from __future__ import annotations

from .config import (
    TomlConfigError,
    layer_table,
    load_toml,
    write_toml_template,
)
from .config_templates import (
    TEMPLATES,
    ConfigTemplate,
    ConfigTemplateError,
    get_template,
)
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
    workspace_root,
)

__all__ = [
    "TomlConfigError",
    "layer_table",
    "load_toml",
    "write_toml_template",
    "TEMPLATES",
    "ConfigTemplate",
    "ConfigTemplateError",
    "get_template",
    "JsonLogFormatter",
    "configure_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
    "workspace_root",
]
