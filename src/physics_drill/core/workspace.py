"""Per-user workspace holding drill configuration and log files."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

WORKSPACE_ENV = "PHYSICS_DRILL_HOME"
DEFAULT_WORKSPACE = Path.home() / ".physics-drill"
SUBDIRECTORIES = ("config", "logs")


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Workspace root and which of its directories this call created."""

    home: Path
    created: Mapping[str, bool] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def directories(self) -> dict[str, Path]:
        return {name: self.home / name for name in SUBDIRECTORIES}

    def path_for(self, key: str) -> Path:
        if key not in SUBDIRECTORIES:
            raise KeyError(f"Unknown workspace directory '{key}'.")
        return self.home / key


def workspace_root(
    env: Mapping[str, str] | None = None, path: Path | None = None
) -> tuple[Path, bool]:
    """Return the workspace root and whether it was chosen explicitly.

    ``path`` wins over ``PHYSICS_DRILL_HOME`` which wins over
    ``~/.physics-drill``.
    """

    if path is not None:
        return path.expanduser().absolute(), True
    env_map = os.environ if env is None else env
    configured = (env_map.get(WORKSPACE_ENV) or "").strip()
    if configured:
        return Path(configured).expanduser().absolute(), True
    return DEFAULT_WORKSPACE, False


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Resolve the workspace and, unless ``create`` is false, build it.

    Only the default root falls back to ``<tempdir>/physics-drill`` when it
    cannot be created; an explicit root that is not writable is an error.
    """

    root, explicit = workspace_root(env, path)
    if not create:
        _check_root(root)
        untouched = dict.fromkeys(("home", *SUBDIRECTORIES), False)
        return WorkspaceLayout(root, MappingProxyType(untouched))

    roots = [root] if explicit else [root, _temp_root()]
    failure: PermissionError | None = None
    for candidate in roots:
        try:
            return _build(candidate)
        except PermissionError as exc:
            failure = exc
    raise WorkspaceError(f"Unable to prepare workspace at {root}") from failure


def _temp_root() -> Path:
    return Path(tempfile.gettempdir()) / "physics-drill"


def _check_root(root: Path) -> None:
    if root.exists() and not root.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {root}"
        )


def _build(root: Path) -> WorkspaceLayout:
    _check_root(root)
    created = {"home": _ensure_dir(root)}
    for name in SUBDIRECTORIES:
        created[name] = _ensure_dir(root / name)
    return WorkspaceLayout(root, MappingProxyType(created))


def _ensure_dir(path: Path) -> bool:
    """Create ``path`` for the owner only; report whether it is new."""

    if path.is_dir():
        return False
    if path.exists():
        raise WorkspaceError(
            f"Expected directory but found a non-directory entry: {path}"
        )
    path.mkdir(mode=0o700, parents=True, exist_ok=True)
    return True
