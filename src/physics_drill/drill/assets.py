"""Resolve question image references against a configurable base."""

from __future__ import annotations

import logging
from pathlib import Path


def resolve_asset(reference: str | None, base: str) -> str | None:
    """Prefix ``reference`` with ``base`` unless it already starts with it."""

    if not reference:
        return None
    if not base or reference.startswith(base):
        return reference
    return base.rstrip("/") + "/" + reference.lstrip("/")


class AssetResolver:
    """Locate image files for questions on disk.

    A reference that cannot be found is not an error for the drill: the
    resolver logs it and returns ``None`` so the presentation skips the
    image.
    """

    def __init__(
        self,
        base_path: Path | None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._base = base_path
        self._logger = logger or logging.getLogger(__name__)

    @property
    def base_path(self) -> Path | None:
        return self._base

    def locate(self, reference: str | None) -> Path | None:
        if not reference:
            return None
        base = str(self._base) if self._base is not None else ""
        candidate = Path(resolve_asset(reference, base) or reference)
        if candidate.is_file():
            return candidate
        self._logger.warning(
            "Question image not found",
            extra={"reference": reference, "candidate": str(candidate)},
        )
        return None
