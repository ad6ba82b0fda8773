"""Shared testing helpers for the physics_drill test suite."""

from .questions import dual, selection  # noqa: F401
from .timing import ManualClock, RecordingTicker  # noqa: F401

__all__ = [
    "ManualClock",
    "RecordingTicker",
    "dual",
    "selection",
]
