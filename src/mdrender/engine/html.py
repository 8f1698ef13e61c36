"""HTML and HTML table-of-contents renderers on top of markdown-it-py."""

from __future__ import annotations

from html import escape
from typing import Any, Dict, List, MutableMapping, Sequence

from markdown_it.common.utils import escapeHtml, unescapeAll
from markdown_it.renderer import RendererHTML
from markdown_it.token import Token
from markdown_it.utils import OptionsDict

from ..flags import Extension, RenderFlag
from .types import Localization, next_caption

# Fenced blocks with these info strings become client-side diagram hosts.
_DIAGRAM_FENCES = {
    "mermaid": RenderFlag.MERMAID,
    "charter": RenderFlag.CHARTER,
    "gnuplot": RenderFlag.GNUPLOT,
}


def _heading_level(token: Token) -> int:
    return int(token.tag[1:]) if token.tag.startswith("h") else 1


def _fence_language(token: Token) -> str:
    info = unescapeAll(token.info).strip() if token.info else ""
    return info.split(maxsplit=1)[0] if info else ""


def _extensions(env: MutableMapping[str, Any]) -> Extension:
    return env.get("extensions", Extension(0))


def assign_toc_anchors(tokens: Sequence[Token], toc_level: int) -> None:
    """Give every heading up to ``toc_level`` a ``toc_N`` id."""

    counter = 0
    for token in tokens:
        if token.type != "heading_open":
            continue
        if _heading_level(token) <= toc_level:
            token.attrSet("id", f"toc_{counter}")
            counter += 1


class HtmlRenderer(RendererHTML):
    """Body renderer honouring :class:`RenderFlag` output toggles."""

    __output__ = "html"

    def __init__(
        self,
        flags: RenderFlag,
        toc_level: int = 0,
        localization: Localization | None = None,
    ) -> None:
        super().__init__()
        self.flags = RenderFlag(flags)
        self.toc_level = toc_level
        self.localization = localization or Localization()

    def parser_options(self) -> Dict[str, Any]:
        """markdown-it options implied by the output flags."""

        skip = bool(self.flags & RenderFlag.SKIP_HTML)
        escape_raw = bool(self.flags & RenderFlag.ESCAPE)
        return {
            "html": skip or not escape_raw,
            "breaks": bool(self.flags & RenderFlag.HARD_WRAP),
            "xhtmlOut": bool(self.flags & RenderFlag.USE_XHTML),
        }

    def render(
        self,
        tokens: Sequence[Token],
        options: OptionsDict,
        env: MutableMapping[str, Any],
    ) -> str:
        if self.toc_level > 0:
            assign_toc_anchors(tokens, self.toc_level)
        return super().render(tokens, options, env)

    def html_block(self, tokens, idx, options, env):
        if self.flags & RenderFlag.SKIP_HTML:
            return ""
        return super().html_block(tokens, idx, options, env)

    def html_inline(self, tokens, idx, options, env):
        if self.flags & RenderFlag.SKIP_HTML:
            return ""
        return super().html_inline(tokens, idx, options, env)

    def em_open(self, tokens, idx, options, env):
        if self._is_underline(tokens[idx], env):
            return "<u>"
        return self.renderToken(tokens, idx, options, env)

    def em_close(self, tokens, idx, options, env):
        if self._is_underline(tokens[idx], env):
            return "</u>"
        return self.renderToken(tokens, idx, options, env)

    def fence(self, tokens, idx, options, env):
        token = tokens[idx]
        language = _fence_language(token)

        diagram = _DIAGRAM_FENCES.get(language)
        if diagram is not None and self.flags & diagram:
            return f'<div class="{language}">\n{escapeHtml(token.content)}</div>\n'
        if language == "css" and self.flags & RenderFlag.CSS:
            return f"<style>\n{token.content}</style>\n"

        html = super().fence(tokens, idx, options, env)
        if _extensions(env) & Extension.SCIDOWN:
            caption = next_caption(env, self.localization.listing)
            return _figure("listing", caption, html)
        return html

    def table_open(self, tokens, idx, options, env):
        html = self.renderToken(tokens, idx, options, env)
        if _extensions(env) & Extension.SCIDOWN:
            caption = next_caption(env, self.localization.table)
            return f'<figure class="table">\n<figcaption>{escape(caption)}</figcaption>\n{html}'
        return html

    def table_close(self, tokens, idx, options, env):
        html = self.renderToken(tokens, idx, options, env)
        if _extensions(env) & Extension.SCIDOWN:
            return f"{html}</figure>\n"
        return html

    def image(self, tokens, idx, options, env):
        html = super().image(tokens, idx, options, env)
        if not _extensions(env) & Extension.SCIDOWN or len(tokens) != 1:
            return html
        alt = tokens[idx].attrGet("alt") or ""
        caption = next_caption(env, self.localization.figure)
        if alt:
            caption = f"{caption}: {alt}"
        return (
            f'<figure class="figure">{html}'
            f"<figcaption>{escape(caption)}</figcaption></figure>"
        )

    def free(self) -> None:
        self.rules = {}

    @staticmethod
    def _is_underline(token: Token, env: MutableMapping[str, Any]) -> bool:
        return token.markup == "_" and bool(
            _extensions(env) & Extension.UNDERLINE
        )


class HtmlTocRenderer(RendererHTML):
    """Emit only the nested list of headings up to ``toc_level``."""

    __output__ = "html"

    def __init__(
        self, toc_level: int, localization: Localization | None = None
    ) -> None:
        super().__init__()
        self.toc_level = toc_level
        self.localization = localization or Localization()

    def parser_options(self) -> Dict[str, Any]:
        return {}

    def render(
        self,
        tokens: Sequence[Token],
        options: OptionsDict,
        env: MutableMapping[str, Any],
    ) -> str:
        if self.toc_level < 1:
            return ""
        assign_toc_anchors(tokens, self.toc_level)

        items: List[str] = []
        open_levels: List[int] = []
        for position, token in enumerate(tokens):
            if token.type != "heading_open":
                continue
            level = _heading_level(token)
            if level > self.toc_level:
                continue
            if not open_levels or level > open_levels[-1]:
                items.append("<ul>\n")
                open_levels.append(level)
            else:
                items.append("</li>\n")
                while len(open_levels) > 1 and level < open_levels[-1]:
                    open_levels.pop()
                    items.append("</ul>\n</li>\n")
            inline = tokens[position + 1]
            label = self.renderInline(inline.children or [], options, env)
            anchor = token.attrGet("id")
            items.append(f'<li>\n<a href="#{anchor}">{label}</a>\n')

        if open_levels:
            items.append("</li>\n")
            items.append("</ul>\n</li>\n" * (len(open_levels) - 1))
            items.append("</ul>\n")
        return "".join(items)

    def free(self) -> None:
        self.rules = {}


def _figure(kind: str, caption: str, body: str) -> str:
    return (
        f'<figure class="{kind}">\n<figcaption>{escape(caption)}</figcaption>\n'
        f"{body}</figure>\n"
    )


__all__ = ["HtmlRenderer", "HtmlTocRenderer", "assign_toc_anchors"]
