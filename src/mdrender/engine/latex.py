"""LaTeX body renderer for markdown-it token streams.

Output is a document body fragment: the caller supplies the preamble. It
assumes the ``hyperref``, ``graphicx``, ``listings``, ``ulem`` and
``soul`` packages.
"""

from __future__ import annotations

import inspect
from typing import Any, Dict, MutableMapping, Sequence

from markdown_it.common.utils import unescapeAll
from markdown_it.token import Token
from markdown_it.utils import OptionsDict

from ..flags import Extension, RenderFlag
from .types import Localization, next_caption

_LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}

_SECTIONS = (
    "section",
    "subsection",
    "subsubsection",
    "paragraph",
    "subparagraph",
    "subparagraph",
)

_SIMPLE_SPANS = {
    "strong": r"\textbf{",
    "s": r"\sout{",
    "mark": r"\hl{",
    "sup": r"\textsuperscript{",
}


def escape_latex(text: str) -> str:
    return "".join(_LATEX_SPECIALS.get(char, char) for char in text)


def _escape_url(url: str) -> str:
    return url.replace("\\", "/").replace("%", r"\%").replace("#", r"\#")


def _extensions(env: MutableMapping[str, Any]) -> Extension:
    return env.get("extensions", Extension(0))


class LatexRenderer:
    """Render block and inline tokens to LaTeX."""

    __output__ = "latex"

    def __init__(
        self,
        flags: RenderFlag,
        toc_level: int = 0,
        localization: Localization | None = None,
    ) -> None:
        self.flags = RenderFlag(flags)
        self.toc_level = toc_level
        self.localization = localization or Localization()
        self.rules = {
            name: method
            for name, method in inspect.getmembers(
                self, predicate=inspect.ismethod
            )
            if not (name.startswith("render") or name.startswith("_"))
        }

    def parser_options(self) -> Dict[str, Any]:
        # Raw HTML is recognised so the html rules below can drop it.
        return {"html": True, "breaks": bool(self.flags & RenderFlag.HARD_WRAP)}

    def render(
        self,
        tokens: Sequence[Token],
        options: OptionsDict,
        env: MutableMapping[str, Any],
    ) -> str:
        parts = [self._preamble(env)]
        for idx, token in enumerate(tokens):
            if token.type == "inline":
                parts.append(self.renderInline(token.children or [], options, env))
            else:
                parts.append(self._dispatch(tokens, idx, options, env))
        return "".join(parts)

    def renderInline(
        self,
        tokens: Sequence[Token],
        options: OptionsDict,
        env: MutableMapping[str, Any],
    ) -> str:
        return "".join(
            self._dispatch(tokens, idx, options, env)
            for idx in range(len(tokens))
        )

    def _dispatch(self, tokens, idx, options, env) -> str:
        token = tokens[idx]
        rule = self.rules.get(token.type)
        if rule is not None:
            return rule(tokens, idx, options, env)
        tag = token.tag
        if tag in _SIMPLE_SPANS:
            return _SIMPLE_SPANS[tag] if token.nesting == 1 else "}"
        return ""

    def _preamble(self, env: MutableMapping[str, Any]) -> str:
        lines = []
        if _extensions(env) & Extension.SCIDOWN:
            local = self.localization
            lines.append(rf"\renewcommand{{\figurename}}{{{escape_latex(local.figure)}}}")
            lines.append(rf"\renewcommand{{\tablename}}{{{escape_latex(local.table)}}}")
            lines.append(
                rf"\renewcommand{{\lstlistingname}}{{{escape_latex(local.listing)}}}"
            )
        if self.toc_level > 0:
            lines.append(rf"\setcounter{{tocdepth}}{{{self.toc_level}}}")
            lines.append(r"\tableofcontents")
        return "".join(f"{line}\n" for line in lines)

    # Blocks

    def heading_open(self, tokens, idx, options, env):
        level = int(tokens[idx].tag[1:])
        command = _SECTIONS[min(level, len(_SECTIONS)) - 1]
        return f"\\{command}{{"

    def heading_close(self, tokens, idx, options, env):
        return "}\n\n"

    def paragraph_open(self, tokens, idx, options, env):
        return ""

    def paragraph_close(self, tokens, idx, options, env):
        return "\n" if tokens[idx].hidden else "\n\n"

    def bullet_list_open(self, tokens, idx, options, env):
        return "\\begin{itemize}\n"

    def bullet_list_close(self, tokens, idx, options, env):
        return "\\end{itemize}\n\n"

    def ordered_list_open(self, tokens, idx, options, env):
        return "\\begin{enumerate}\n"

    def ordered_list_close(self, tokens, idx, options, env):
        return "\\end{enumerate}\n\n"

    def list_item_open(self, tokens, idx, options, env):
        return "\\item "

    def blockquote_open(self, tokens, idx, options, env):
        return "\\begin{quote}\n"

    def blockquote_close(self, tokens, idx, options, env):
        return "\\end{quote}\n\n"

    def hr(self, tokens, idx, options, env):
        return "\\noindent\\rule{\\linewidth}{0.4pt}\n\n"

    def code_block(self, tokens, idx, options, env):
        return f"\\begin{{verbatim}}\n{tokens[idx].content}\\end{{verbatim}}\n\n"

    def fence(self, tokens, idx, options, env):
        token = tokens[idx]
        info = unescapeAll(token.info).strip() if token.info else ""
        settings = []
        if info:
            settings.append(f"language={info.split(maxsplit=1)[0]}")
        if _extensions(env) & Extension.SCIDOWN:
            caption = next_caption(env, self.localization.listing)
            settings.append(f"title={{{escape_latex(caption)}}}")
        header = f"[{','.join(settings)}]" if settings else ""
        return (
            f"\\begin{{lstlisting}}{header}\n{token.content}"
            "\\end{lstlisting}\n\n"
        )

    def html_block(self, tokens, idx, options, env):
        return ""

    # Tables

    def table_open(self, tokens, idx, options, env):
        columns = 0
        for token in tokens[idx:]:
            if token.type == "th_open":
                columns += 1
            elif token.type == "tr_close":
                break
        layout = "|" + "l|" * max(columns, 1)
        opening = f"\\begin{{tabular}}{{{layout}}}\n\\hline\n"
        if _extensions(env) & Extension.SCIDOWN:
            return "\\begin{table}[h]\n\\centering\n" + opening
        return opening

    def table_close(self, tokens, idx, options, env):
        closing = "\\end{tabular}\n"
        if _extensions(env) & Extension.SCIDOWN:
            return closing + "\\caption{}\n\\end{table}\n\n"
        return closing + "\n"

    def thead_close(self, tokens, idx, options, env):
        return "\\hline\n"

    def tbody_close(self, tokens, idx, options, env):
        return "\\hline\n"

    def tr_close(self, tokens, idx, options, env):
        return " \\\\\n"

    def th_open(self, tokens, idx, options, env):
        return self._cell_separator(tokens, idx) + "\\textbf{"

    def th_close(self, tokens, idx, options, env):
        return "}"

    def td_open(self, tokens, idx, options, env):
        return self._cell_separator(tokens, idx)

    @staticmethod
    def _cell_separator(tokens, idx) -> str:
        return "" if tokens[idx - 1].type == "tr_open" else " & "

    # Inline

    def text(self, tokens, idx, options, env):
        return escape_latex(tokens[idx].content)

    def softbreak(self, tokens, idx, options, env):
        return "\\\\\n" if options.breaks else "\n"

    def hardbreak(self, tokens, idx, options, env):
        return "\\\\\n"

    def code_inline(self, tokens, idx, options, env):
        return f"\\texttt{{{escape_latex(tokens[idx].content)}}}"

    def em_open(self, tokens, idx, options, env):
        underline = tokens[idx].markup == "_" and _extensions(env) & Extension.UNDERLINE
        return "\\underline{" if underline else "\\emph{"

    def em_close(self, tokens, idx, options, env):
        return "}"

    def q_open(self, tokens, idx, options, env):
        return "``"

    def q_close(self, tokens, idx, options, env):
        return "''"

    def link_open(self, tokens, idx, options, env):
        href = tokens[idx].attrGet("href") or ""
        return f"\\href{{{_escape_url(str(href))}}}{{"

    def link_close(self, tokens, idx, options, env):
        return "}"

    def image(self, tokens, idx, options, env):
        token = tokens[idx]
        src = _escape_url(str(token.attrGet("src") or ""))
        graphic = f"\\includegraphics{{{src}}}"
        if not _extensions(env) & Extension.SCIDOWN or len(tokens) != 1:
            return graphic
        alt = self.renderInline(token.children or [], options, env)
        return (
            "\\begin{figure}[h]\n\\centering\n"
            f"{graphic}\n\\caption{{{alt}}}\n\\end{{figure}}"
        )

    def html_inline(self, tokens, idx, options, env):
        return ""

    # Math and footnotes (mdit-py-plugins tokens)

    def math_inline(self, tokens, idx, options, env):
        return f"${tokens[idx].content}$"

    def math_inline_double(self, tokens, idx, options, env):
        return f"\\[{tokens[idx].content}\\]"

    def math_block(self, tokens, idx, options, env):
        return f"\\[\n{tokens[idx].content.strip()}\n\\]\n\n"

    def math_block_label(self, tokens, idx, options, env):
        token = tokens[idx]
        return (
            f"\\begin{{equation}}\n{token.content.strip()}\n"
            f"\\label{{{token.info}}}\n\\end{{equation}}\n\n"
        )

    def footnote_ref(self, tokens, idx, options, env):
        return f"\\footnotemark[{tokens[idx].meta['id'] + 1}]"

    def footnote_open(self, tokens, idx, options, env):
        return f"\\footnotetext[{tokens[idx].meta['id'] + 1}]{{"

    def footnote_close(self, tokens, idx, options, env):
        return "}\n"

    def free(self) -> None:
        self.rules = {}


__all__ = ["LatexRenderer", "escape_latex"]
