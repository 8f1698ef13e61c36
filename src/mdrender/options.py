"""Fold ordered option tokens into a frozen rendering configuration."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from functools import reduce
from typing import Iterable, Mapping, Optional

from .exceptions import OptionError
from .flags import (
    CATEGORIES,
    Extension,
    FlagKind,
    FlagMatch,
    RenderFlag,
    lookup,
)

DEFAULT_INPUT_UNIT = 1024
DEFAULT_OUTPUT_UNIT = 64
DEFAULT_MAX_NESTING = 16

_OPTION_PREFIX = "--"


class RendererVariant(Enum):
    """Target output formats."""

    HTML = "html"
    HTML_TOC = "html-toc"
    LATEX = "latex"


@dataclass(frozen=True)
class ResolvedConfiguration:
    """Everything a single conversion run needs to know."""

    show_time: bool
    input_unit: int
    output_unit: int
    renderer: RendererVariant
    toc_level: int
    render_flags: RenderFlag
    extensions: Extension
    max_nesting: int


@dataclass(frozen=True)
class _NumericOption:
    field: str
    minimum: int


_NUMERIC_OPTIONS: Mapping[str, _NumericOption] = {
    "max-nesting": _NumericOption("max_nesting", 1),
    "toc-level": _NumericOption("toc_level", 0),
    "input-unit": _NumericOption("input_unit", 1),
    "output-unit": _NumericOption("output_unit", 1),
}

_RENDERER_OPTIONS: Mapping[str, RendererVariant] = {
    variant.value: variant for variant in RendererVariant
}

_TIME_OPTION = "time"


def _union(names: Iterable[str]) -> Extension:
    flags = Extension(0)
    for category in CATEGORIES:
        if category.option_name in names:
            flags |= category.flags
    return flags


DEFAULT_EXTENSIONS: Extension = _union(("block", "span", "flags"))
DEFAULT_RENDER_FLAGS: RenderFlag = (
    RenderFlag.MERMAID | RenderFlag.CHARTER | RenderFlag.GNUPLOT | RenderFlag.CSS
)


def default_configuration() -> ResolvedConfiguration:
    """Return the baseline every resolution starts from."""

    return ResolvedConfiguration(
        show_time=False,
        input_unit=DEFAULT_INPUT_UNIT,
        output_unit=DEFAULT_OUTPUT_UNIT,
        renderer=RendererVariant.HTML,
        toc_level=0,
        render_flags=DEFAULT_RENDER_FLAGS,
        extensions=DEFAULT_EXTENSIONS,
        max_nesting=DEFAULT_MAX_NESTING,
    )


def resolve_options(
    tokens: Iterable[str],
    baseline: Optional[ResolvedConfiguration] = None,
) -> ResolvedConfiguration:
    """Apply ``tokens`` in order on top of ``baseline``.

    Each token either names a registry flag (optionally ``no-`` negated),
    a renderer variant, the timing toggle, or a ``key=value`` numeric
    option. Later tokens override earlier ones touching the same setting.
    The first unrecognized token raises :class:`OptionError`.
    """

    start = baseline if baseline is not None else default_configuration()
    return reduce(apply_token, tokens, start)


def apply_token(
    config: ResolvedConfiguration, token: str
) -> ResolvedConfiguration:
    """Return ``config`` with one option token applied."""

    name = _strip_prefix(token)
    if not name:
        raise OptionError(f"unrecognized option '{token}'")

    key, sep, raw_value = name.partition("=")
    numeric = _NUMERIC_OPTIONS.get(key)
    if numeric is not None:
        if not sep:
            raise OptionError(f"option '{key}' requires a value")
        value = _parse_count(key, raw_value, minimum=numeric.minimum)
        return replace(config, **{numeric.field: value})
    if sep:
        raise OptionError(f"unrecognized option '{token}'")

    variant = _RENDERER_OPTIONS.get(name)
    if variant is not None:
        return replace(config, renderer=variant)

    if name == _TIME_OPTION:
        return replace(config, show_time=True)
    if name == f"no-{_TIME_OPTION}":
        return replace(config, show_time=False)

    match = lookup(name)
    if match is None:
        raise OptionError(f"unrecognized option '{token}'")
    return _apply_match(config, match)


def _apply_match(
    config: ResolvedConfiguration, match: FlagMatch
) -> ResolvedConfiguration:
    if match.kind is FlagKind.OUTPUT:
        render_flags = _toggle(config.render_flags, match)
        return replace(config, render_flags=render_flags)
    extensions = _toggle(config.extensions, match)
    return replace(config, extensions=extensions)


def _toggle(current, match: FlagMatch):
    if match.negated:
        return current & ~match.bits
    return current | match.bits


def _strip_prefix(token: str) -> str:
    if token.startswith(_OPTION_PREFIX):
        return token[len(_OPTION_PREFIX):]
    return token


def _parse_count(key: str, raw: str, *, minimum: int) -> int:
    text = raw.strip()
    if not text.isdigit() or not text.isascii():
        raise OptionError(
            f"option '{key}' expects a non-negative integer, got '{raw}'"
        )
    value = int(text)
    if value < minimum:
        raise OptionError(f"option '{key}' must be at least {minimum}")
    return value


__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_INPUT_UNIT",
    "DEFAULT_MAX_NESTING",
    "DEFAULT_OUTPUT_UNIT",
    "DEFAULT_RENDER_FLAGS",
    "RendererVariant",
    "ResolvedConfiguration",
    "apply_token",
    "default_configuration",
    "resolve_options",
]
