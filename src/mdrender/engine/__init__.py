"""Markdown document library used by the mdrender pipeline.

The module-level constructors below are the whole surface the pipeline
relies on; tests substitute a recording stand-in with the same shape.
"""

from __future__ import annotations

from ..flags import RenderFlag
from .buffer import Buffer, BufferFreedError
from .document import Document, DocumentFreedError, Renderer
from .html import HtmlRenderer, HtmlTocRenderer
from .latex import LatexRenderer
from .types import DocumentAugmentation, Localization


def html_renderer_new(
    flags: RenderFlag, toc_level: int, local: Localization
) -> HtmlRenderer:
    return HtmlRenderer(flags, toc_level, local)


def html_toc_renderer_new(toc_level: int, local: Localization) -> HtmlTocRenderer:
    return HtmlTocRenderer(toc_level, local)


def latex_renderer_new(
    flags: RenderFlag, toc_level: int, local: Localization
) -> LatexRenderer:
    return LatexRenderer(flags, toc_level, local)


def renderer_free(renderer: Renderer) -> None:
    renderer.free()  # type: ignore[attr-defined]


__all__ = [
    "Buffer",
    "BufferFreedError",
    "Document",
    "DocumentAugmentation",
    "DocumentFreedError",
    "HtmlRenderer",
    "HtmlTocRenderer",
    "LatexRenderer",
    "Localization",
    "Renderer",
    "html_renderer_new",
    "html_toc_renderer_new",
    "latex_renderer_new",
    "renderer_free",
]
