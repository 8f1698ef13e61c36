"""Error hierarchy shared by the resolver, factory and pipeline."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit statuses reported by the command line."""

    OK = 0
    OPTION_ERROR = 1
    ALLOCATION_ERROR = 4
    IO_ERROR = 5


class MdrenderError(RuntimeError):
    """Base class for failures that abort a run."""

    exit_code: ExitCode = ExitCode.OPTION_ERROR


class OptionError(MdrenderError):
    """Raised for unknown option tokens or malformed numeric values."""

    exit_code = ExitCode.OPTION_ERROR


class RendererConfigurationError(MdrenderError):
    """Raised when a renderer variant has no known constructor."""

    exit_code = ExitCode.OPTION_ERROR


class AllocationError(MdrenderError):
    """Raised when a buffer, renderer or document cannot be created."""

    exit_code = ExitCode.ALLOCATION_ERROR


class InputOutputError(MdrenderError):
    """Raised when the input cannot be read or the output written."""

    exit_code = ExitCode.IO_ERROR


__all__ = [
    "AllocationError",
    "ExitCode",
    "InputOutputError",
    "MdrenderError",
    "OptionError",
    "RendererConfigurationError",
]
