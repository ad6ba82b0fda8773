"""Logging setup for drill runs: JSON lines on disk, plain text on stderr."""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path, PurePath
from typing import Any, Mapping

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

_ROLE_ATTR = "_physics_drill_role"
_FILE_ROLE = "file"
_CONSOLE_ROLE = "console"
_FALLBACK_DIRNAME = "physics-drill-logs"

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("probe", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields go under ``"extra"``."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Return the logger ``name`` wired to a rotating JSON log file.

    The file defaults to ``<last name segment>.log`` inside ``log_dir``, or
    inside a temp-dir fallback when ``log_dir`` is not writable. Calling
    this again for the same logger reuses its handlers. ``verbose`` mirrors
    records to stderr and logs everything down to DEBUG.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    log_name = filename or f"{name.rsplit('.', 1)[-1]}.log"

    file_handler = _handler_with_role(logger, _FILE_ROLE)
    if file_handler is None:
        file_handler, log_path = _open_file_handler(
            log_dir, log_name, max_bytes=max_bytes, backup_count=backup_count
        )
        _attach(logger, file_handler, _FILE_ROLE)
    else:
        log_path = _retarget(file_handler, log_dir, log_name)
    file_handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))

    console = _handler_with_role(logger, _CONSOLE_ROLE)
    if verbose and console is None:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        _attach(logger, console, _CONSOLE_ROLE)
    elif not verbose and console is not None:
        logger.removeHandler(console)
        console.close()

    return logger, log_path


def _coerce_level(level: str) -> int:
    return logging.getLevelNamesMapping().get(
        level.strip().upper(), logging.INFO
    )


def _handler_with_role(
    logger: logging.Logger, role: str
) -> logging.Handler | None:
    for handler in logger.handlers:
        if getattr(handler, _ROLE_ATTR, None) == role:
            return handler
    return None


def _attach(
    logger: logging.Logger, handler: logging.Handler, role: str
) -> None:
    setattr(handler, _ROLE_ATTR, role)
    logger.addHandler(handler)


def _open_file_handler(
    log_dir: Path, filename: str, *, max_bytes: int, backup_count: int
) -> tuple[RotatingFileHandler, Path]:
    failure: PermissionError | None = None
    for directory in (log_dir, _fallback_log_dir()):
        try:
            path = _private_file(directory, filename)
            handler = RotatingFileHandler(
                path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except PermissionError as exc:
            failure = exc
            continue
        handler.setFormatter(JsonLogFormatter())
        return handler, path
    raise PermissionError(
        f"No writable directory for log file {filename}"
    ) from failure


def _retarget(handler: logging.Handler, log_dir: Path, filename: str) -> Path:
    path = _private_file(log_dir, filename)
    target = str(path.resolve())
    if isinstance(handler, logging.FileHandler) and (
        handler.baseFilename != target
    ):
        handler.close()
        handler.baseFilename = target
    return path


def _private_file(directory: Path, filename: str) -> Path:
    """Create ``directory/filename`` readable by the owner only."""

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.touch(exist_ok=True)
    for target, mode in ((directory, 0o700), (path, 0o600)):
        try:
            target.chmod(mode)
        except PermissionError:  # pragma: no cover - depends on filesystem
            pass
    return path


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return repr(value)


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / _FALLBACK_DIRNAME
