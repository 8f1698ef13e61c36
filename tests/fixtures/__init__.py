"""Shared testing fixtures for the mdrender test suite."""

from .library import RecordingLibrary, SequenceClock  # noqa: F401

__all__ = [
    "RecordingLibrary",
    "SequenceClock",
]
