"""Span extensions markdown-it-py does not ship: highlight, superscript,
quote and bare-URL autolinks.

Each ``*_plugin`` follows the markdown-it ``md.use(plugin)`` convention.
The produced tokens carry plain tags (``mark``, ``sup``, ``q``) so the
stock HTML renderer emits them without extra rules.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from markdown_it.rules_inline import StateInline
from markdown_it.token import Token

_URL_RE = re.compile(
    r"(?<![\w/@])((?:https?://|ftp://|www\.)[^\s<>\"]*[^\s<>\".,;:!?')\]])"
)
_QUOTE_RE = re.compile(r'"([^"\n]+)"')


def highlight_plugin(md: MarkdownIt) -> None:
    md.inline.ruler.before("emphasis", "highlight", _highlight_rule)


def superscript_plugin(md: MarkdownIt) -> None:
    md.inline.ruler.before("emphasis", "superscript", _superscript_rule)


def quote_plugin(md: MarkdownIt) -> None:
    md.core.ruler.after("inline", "quote", _quote_rule)


def autolink_plugin(md: MarkdownIt) -> None:
    md.core.ruler.after("inline", "bare_autolink", _autolink_rule)


def _highlight_rule(state: StateInline, silent: bool) -> bool:
    start = state.pos
    if not state.src.startswith("==", start):
        return False
    end = state.src.find("==", start + 2, state.posMax)
    if end <= start + 2 or state.src[start + 2].isspace():
        return False
    if not silent:
        _wrap_span(state, "mark", "==", start + 2, end)
    state.pos = end + 2
    return True


def _superscript_rule(state: StateInline, silent: bool) -> bool:
    start = state.pos
    if state.src[start] != "^" or start + 1 >= state.posMax:
        return False

    if state.src[start + 1] == "(":
        end = state.src.find(")", start + 2, state.posMax)
        if end <= start + 2:
            return False
        content_start, next_pos = start + 2, end + 1
    else:
        end = start + 1
        while end < state.posMax and not _ends_superscript(state.src[end]):
            end += 1
        content_start, next_pos = start + 1, end
    if end == content_start:
        return False

    if not silent:
        _wrap_span(state, "sup", "^", content_start, end)
    state.pos = next_pos
    return True


def _ends_superscript(char: str) -> bool:
    return char.isspace() or char in "*_~^"


def _wrap_span(
    state: StateInline, tag: str, markup: str, start: int, end: int
) -> None:
    token = state.push(f"{tag}_open", tag, 1)
    token.markup = markup

    # The content is parsed on its own so no rule can read past ``end``.
    state.md.inline.parse(
        state.src[start:end], state.md, state.env, state.tokens
    )

    token = state.push(f"{tag}_close", tag, -1)
    token.markup = markup


def _quote_rule(state: StateCore) -> None:
    def build(match: re.Match[str]) -> List[Token]:
        opening = Token("q_open", "q", 1, markup='"')
        closing = Token("q_close", "q", -1, markup='"')
        return [opening, _text(match.group(1)), closing]

    _rewrite_text(state.tokens, _QUOTE_RE, build)


def _autolink_rule(state: StateCore) -> None:
    md = state.md

    def build(match: re.Match[str]) -> List[Token]:
        label = match.group(1)
        href = label if "://" in label else f"http://{label}"
        href = md.normalizeLink(href)
        if not md.validateLink(href):
            return [_text(label)]
        opening = Token("link_open", "a", 1, markup="linkify", info="auto")
        opening.attrSet("href", href)
        closing = Token("link_close", "a", -1, markup="linkify", info="auto")
        return [opening, _text(md.normalizeLinkText(label)), closing]

    _rewrite_text(state.tokens, _URL_RE, build)


def _rewrite_text(
    tokens: Iterable[Token],
    pattern: re.Pattern[str],
    build: Callable[[re.Match[str]], List[Token]],
) -> None:
    for block in tokens:
        if block.type != "inline" or not block.children:
            continue
        rewritten: List[Token] = []
        link_depth = 0
        for child in block.children:
            if child.type == "link_open":
                link_depth += 1
            elif child.type == "link_close":
                link_depth -= 1
            if child.type != "text" or link_depth or not pattern.search(
                child.content
            ):
                rewritten.append(child)
                continue
            rewritten.extend(_split(child, pattern, build))
        block.children = rewritten


def _split(
    token: Token,
    pattern: re.Pattern[str],
    build: Callable[[re.Match[str]], List[Token]],
) -> List[Token]:
    pieces: List[Token] = []
    cursor = 0
    for match in pattern.finditer(token.content):
        if match.start() > cursor:
            pieces.append(_text(token.content[cursor:match.start()]))
        pieces.extend(build(match))
        cursor = match.end()
    if cursor < len(token.content):
        pieces.append(_text(token.content[cursor:]))
    for piece in pieces:
        piece.level = token.level
    return pieces


def _text(content: str) -> Token:
    return Token("text", "", 0, content=content)


__all__ = [
    "autolink_plugin",
    "highlight_plugin",
    "quote_plugin",
    "superscript_plugin",
]
