"""Build renderer handles and HTML augmentation for a resolved variant."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from jinja2 import (
    Environment,
    FileSystemLoader,
    PackageLoader,
    Template,
    TemplateError,
)

from . import engine
from .engine import DocumentAugmentation, Localization
from .exceptions import AllocationError, RendererConfigurationError
from .flags import RenderFlag
from .options import RendererVariant

DEFAULT_ASSET_BASE = "qrc:/web_res"
DEFAULT_FONT_FAMILY = "HiraginoSans"
DEFAULT_FONT_FILE = "HiraginoSansGBW6.otf"
PROLOGUE_TEMPLATE = "html_prologue.html.j2"
EPILOGUE_TEMPLATE = "html_epilogue.html.j2"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RendererLibrary:
    """Constructors for each renderer variant plus the shared teardown."""

    html: Callable[[RenderFlag, int, Localization], Any]
    html_toc: Callable[[int, Localization], Any]
    latex: Callable[[RenderFlag, int, Localization], Any]
    free: Callable[[Any], None]


@dataclass(frozen=True)
class AugmentationSource:
    """Where the HTML prologue/epilogue templates come from.

    ``None`` paths select the templates packaged under
    ``mdrender/resources``.
    """

    prologue_path: Optional[Path] = None
    epilogue_path: Optional[Path] = None
    asset_base: str = DEFAULT_ASSET_BASE
    font_family: str = DEFAULT_FONT_FAMILY
    font_file: str = DEFAULT_FONT_FILE


@dataclass(frozen=True)
class RendererHandle:
    """An opaque renderer together with the call that releases it."""

    variant: RendererVariant
    renderer: Any
    free: Callable[[Any], None]
    augmentation: Optional[DocumentAugmentation] = None

    def release(self) -> None:
        self.free(self.renderer)


def default_library() -> RendererLibrary:
    return RendererLibrary(
        html=engine.html_renderer_new,
        html_toc=engine.html_toc_renderer_new,
        latex=engine.latex_renderer_new,
        free=engine.renderer_free,
    )


def create_renderer(
    variant: RendererVariant,
    render_flags: RenderFlag,
    toc_level: int,
    localization: Localization,
    *,
    library: Optional[RendererLibrary] = None,
    augmentation_source: Optional[AugmentationSource] = None,
) -> RendererHandle:
    """Construct the renderer for ``variant`` through ``library``.

    Only the HTML variant carries an augmentation payload. An unknown
    variant raises :class:`RendererConfigurationError`; a constructor that
    runs out of memory or returns nothing raises :class:`AllocationError`.
    """

    lib = library or default_library()
    augmentation: Optional[DocumentAugmentation] = None

    if variant is RendererVariant.HTML:
        constructor = lambda: lib.html(render_flags, toc_level, localization)  # noqa: E731
        augmentation = render_augmentation(
            augmentation_source or AugmentationSource()
        )
    elif variant is RendererVariant.HTML_TOC:
        constructor = lambda: lib.html_toc(toc_level, localization)  # noqa: E731
    elif variant is RendererVariant.LATEX:
        constructor = lambda: lib.latex(render_flags, toc_level, localization)  # noqa: E731
    else:
        raise RendererConfigurationError(
            f"No renderer is registered for variant {variant!r}."
        )

    try:
        renderer = constructor()
    except MemoryError as exc:
        raise AllocationError(
            f"Unable to allocate the {variant.value} renderer."
        ) from exc
    if renderer is None:
        raise AllocationError(f"Unable to allocate the {variant.value} renderer.")

    logger.debug(
        "Created renderer",
        extra={"variant": variant.value, "toc_level": toc_level},
    )
    return RendererHandle(
        variant=variant,
        renderer=renderer,
        free=lib.free,
        augmentation=augmentation,
    )


def render_augmentation(source: AugmentationSource) -> DocumentAugmentation:
    """Render the prologue/epilogue templates described by ``source``."""

    context = {
        "asset_base": source.asset_base.rstrip("/"),
        "font_family": source.font_family,
        "font_file": source.font_file,
    }
    try:
        prologue = _load_template(source.prologue_path, PROLOGUE_TEMPLATE)
        epilogue = _load_template(source.epilogue_path, EPILOGUE_TEMPLATE)
        return DocumentAugmentation(
            prologue=prologue.render(**context),
            epilogue=epilogue.render(**context),
        )
    except TemplateError as exc:
        raise RendererConfigurationError(
            f"Unable to render HTML augmentation template: {exc}"
        ) from exc


def _load_template(path: Optional[Path], default_name: str) -> Template:
    if path is None:
        env = Environment(
            loader=PackageLoader("mdrender", "resources"),
            autoescape=True,
            keep_trailing_newline=True,
        )
        return env.get_template(default_name)
    resolved = path.expanduser()
    env = Environment(
        loader=FileSystemLoader(str(resolved.parent)),
        autoescape=True,
        keep_trailing_newline=True,
    )
    return env.get_template(resolved.name)


__all__ = [
    "AugmentationSource",
    "DEFAULT_ASSET_BASE",
    "RendererHandle",
    "RendererLibrary",
    "create_renderer",
    "default_library",
    "render_augmentation",
]
