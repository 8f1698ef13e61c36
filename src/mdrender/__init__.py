"""Render Markdown to HTML, an HTML table of contents, or LaTeX.

The public surface mirrors the conversion pipeline: resolve option tokens
into a :class:`ResolvedConfiguration`, then hand it to :func:`run_pipeline`.
"""

from __future__ import annotations

from .exceptions import (
    AllocationError,
    ExitCode,
    InputOutputError,
    MdrenderError,
    OptionError,
    RendererConfigurationError,
)
from .flags import Extension, RenderFlag, lookup
from .options import (
    RendererVariant,
    ResolvedConfiguration,
    default_configuration,
    resolve_options,
)
from .pipeline import RenderResult, format_elapsed, run_pipeline
from .renderers import AugmentationSource, RendererHandle, create_renderer

__all__ = [
    "AllocationError",
    "AugmentationSource",
    "ExitCode",
    "Extension",
    "InputOutputError",
    "MdrenderError",
    "OptionError",
    "RenderFlag",
    "RenderResult",
    "RendererConfigurationError",
    "RendererHandle",
    "RendererVariant",
    "ResolvedConfiguration",
    "create_renderer",
    "default_configuration",
    "format_elapsed",
    "lookup",
    "resolve_options",
    "run_pipeline",
]
