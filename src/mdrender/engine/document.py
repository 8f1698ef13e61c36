"""Document objects: a configured markdown-it parser bound to a renderer."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from markdown_it import MarkdownIt
from markdown_it.token import Token
from markdown_it.utils import OptionsDict
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin

from ..flags import Extension
from .buffer import Buffer
from .syntax import (
    autolink_plugin,
    highlight_plugin,
    quote_plugin,
    superscript_plugin,
)
from .types import DocumentAugmentation


class Renderer(Protocol):
    """What a document needs from a renderer."""

    __output__: str

    def parser_options(self) -> Dict[str, Any]: ...

    def render(
        self, tokens: Sequence[Token], options: OptionsDict, env: Dict[str, Any]
    ) -> str: ...


class DocumentFreedError(RuntimeError):
    """Raised when a document is rendered after it was freed."""


_SPAN_PLUGINS = (
    (Extension.HIGHLIGHT, highlight_plugin),
    (Extension.SUPERSCRIPT, superscript_plugin),
    (Extension.QUOTE, quote_plugin),
    (Extension.AUTOLINK, autolink_plugin),
)


def build_parser(
    renderer: Renderer, extensions: Extension, max_nesting: int
) -> MarkdownIt:
    """Return a CommonMark parser with ``extensions`` switched on."""

    options = {"maxNesting": max_nesting}
    options.update(renderer.parser_options())
    md = MarkdownIt("commonmark", options_update=options)
    # Plugins register their render rules on whichever renderer is attached.
    md.renderer = renderer

    if extensions & Extension.TABLES:
        md.enable("table")
    if extensions & Extension.STRIKETHROUGH:
        md.enable("strikethrough")
    if not extensions & Extension.FENCED_CODE:
        md.disable("fence")
    if extensions & Extension.DISABLE_INDENTED_CODE:
        md.disable("code")
    if extensions & Extension.FOOTNOTES:
        md.use(footnote_plugin)
    if extensions & Extension.MATH:
        md.use(
            dollarmath_plugin,
            double_inline=bool(extensions & Extension.MATH_EXPLICIT),
        )
    for flag, plugin in _SPAN_PLUGINS:
        if extensions & flag:
            md.use(plugin)
    return md


class Document:
    """Parse Markdown bytes and render them into an output buffer."""

    def __init__(
        self,
        renderer: Renderer,
        extensions: Extension,
        augmentation: Optional[DocumentAugmentation] = None,
        max_nesting: int = 16,
    ) -> None:
        if max_nesting < 1:
            raise ValueError("max_nesting must be a positive integer")
        self.renderer = renderer
        self.extensions = Extension(extensions)
        self.augmentation = augmentation or DocumentAugmentation()
        self.max_nesting = max_nesting
        self._parser: Optional[MarkdownIt] = build_parser(
            renderer, self.extensions, max_nesting
        )

    @property
    def freed(self) -> bool:
        return self._parser is None

    def render(
        self, ob: Buffer, data: bytes, size: Optional[int] = None
    ) -> None:
        """Render the first ``size`` bytes of ``data`` and append to ``ob``."""

        if self._parser is None:
            raise DocumentFreedError("document used after free")
        length = len(data) if size is None else size
        text = bytes(data[:length]).decode("utf-8", errors="replace")
        env: Dict[str, Any] = {"extensions": self.extensions}

        body = self._parser.render(text, env)
        if self.augmentation.prologue:
            ob.puts(self.augmentation.prologue)
        ob.puts(body)
        if self.augmentation.epilogue:
            ob.puts(self.augmentation.epilogue)

    def free(self) -> None:
        self._parser = None


__all__ = ["Document", "DocumentFreedError", "Renderer", "build_parser"]
