"""Static catalog of parsing extensions, categories and output flags.

Every toggle the command line understands is declared here once, with its
bit and canonical option name. Category masks are computed from the
extensions that declare membership, so a category can never disagree with
its members. Nothing in this module is mutated after import.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntFlag
from functools import reduce
from operator import or_
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

CATEGORY_PREFIX = "all-"
NEGATIVE_PREFIX = "no-"


class Extension(IntFlag):
    """Parsing extensions understood by the document library."""

    TABLES = 1 << 0
    FENCED_CODE = 1 << 1
    FOOTNOTES = 1 << 2
    AUTOLINK = 1 << 3
    STRIKETHROUGH = 1 << 4
    UNDERLINE = 1 << 5
    HIGHLIGHT = 1 << 6
    QUOTE = 1 << 7
    SUPERSCRIPT = 1 << 8
    MATH = 1 << 9
    NO_INTRA_EMPHASIS = 1 << 11
    SPACE_HEADERS = 1 << 12
    MATH_EXPLICIT = 1 << 13
    DISABLE_INDENTED_CODE = 1 << 14
    SCIDOWN = 1 << 15


class RenderFlag(IntFlag):
    """Output-format behavior toggles, independent of extensions."""

    SKIP_HTML = 1 << 0
    ESCAPE = 1 << 1
    HARD_WRAP = 1 << 2
    USE_XHTML = 1 << 3
    MERMAID = 1 << 4
    CHARTER = 1 << 5
    GNUPLOT = 1 << 6
    CSS = 1 << 7


Bits = Union[Extension, RenderFlag]


class FlagKind(Enum):
    """What a resolved option name refers to."""

    EXTENSION = "extension"
    OUTPUT = "output"
    CATEGORY = "category"


@dataclass(frozen=True)
class ExtensionDescriptor:
    flag: Extension
    option_name: str
    description: str
    category: str


@dataclass(frozen=True)
class CategoryDescriptor:
    flags: Extension
    option_name: str
    label: str


@dataclass(frozen=True)
class OutputFlagDescriptor:
    flag: RenderFlag
    option_name: str
    description: str


@dataclass(frozen=True)
class FlagMatch:
    """Outcome of resolving one option name against the registry."""

    kind: FlagKind
    bits: Bits
    negated: bool
    name: str


EXTENSIONS: tuple[ExtensionDescriptor, ...] = (
    ExtensionDescriptor(
        Extension.TABLES, "tables", "Parse PHP-Markdown style tables.", "block"
    ),
    ExtensionDescriptor(
        Extension.FENCED_CODE, "fenced-code", "Parse fenced code blocks.", "block"
    ),
    ExtensionDescriptor(
        Extension.FOOTNOTES, "footnotes", "Parse footnotes.", "block"
    ),
    ExtensionDescriptor(
        Extension.AUTOLINK,
        "autolink",
        "Automatically turn safe URLs into links.",
        "span",
    ),
    ExtensionDescriptor(
        Extension.STRIKETHROUGH,
        "strikethrough",
        "Parse ~~strikethrough~~ spans.",
        "span",
    ),
    ExtensionDescriptor(
        Extension.UNDERLINE,
        "underline",
        "Parse _underline_ instead of emphasis.",
        "span",
    ),
    ExtensionDescriptor(
        Extension.HIGHLIGHT, "highlight", "Parse ==highlight== spans.", "span"
    ),
    ExtensionDescriptor(
        Extension.QUOTE, "quote", 'Render "quotes" as <q>quotes</q>.', "span"
    ),
    ExtensionDescriptor(
        Extension.SUPERSCRIPT, "superscript", "Parse super^script.", "span"
    ),
    ExtensionDescriptor(
        Extension.MATH,
        "math",
        "Parse TeX $$math$$ syntax, Kramdown style.",
        "span",
    ),
    ExtensionDescriptor(
        Extension.NO_INTRA_EMPHASIS,
        "disable-intra-emphasis",
        "Disable emphasis_between_words.",
        "flags",
    ),
    ExtensionDescriptor(
        Extension.SPACE_HEADERS,
        "space-headers",
        "Require a space after '#' in headers.",
        "flags",
    ),
    ExtensionDescriptor(
        Extension.MATH_EXPLICIT,
        "math-explicit",
        "Instead of guessing by context, parse $inline math$ and "
        "$$always block math$$ (requires --math).",
        "flags",
    ),
    ExtensionDescriptor(
        Extension.SCIDOWN,
        "scidown",
        "Number figures, listings and tables with captions.",
        "flags",
    ),
    ExtensionDescriptor(
        Extension.DISABLE_INDENTED_CODE,
        "disable-indented-code",
        "Don't parse indented code blocks.",
        "negative",
    ),
)


def _category(option_name: str, label: str) -> CategoryDescriptor:
    members = [ext.flag for ext in EXTENSIONS if ext.category == option_name]
    return CategoryDescriptor(
        flags=reduce(or_, members, Extension(0)),
        option_name=option_name,
        label=label,
    )


CATEGORIES: tuple[CategoryDescriptor, ...] = (
    _category("block", "Block extensions"),
    _category("span", "Span extensions"),
    _category("flags", "Other flags"),
    _category("negative", "Negative flags"),
)

OUTPUT_FLAGS: tuple[OutputFlagDescriptor, ...] = (
    OutputFlagDescriptor(RenderFlag.SKIP_HTML, "skip-html", "Strip all HTML tags."),
    OutputFlagDescriptor(RenderFlag.ESCAPE, "escape", "Escape all HTML."),
    OutputFlagDescriptor(
        RenderFlag.HARD_WRAP, "hard-wrap", "Render each linebreak as <br>."
    ),
    OutputFlagDescriptor(RenderFlag.USE_XHTML, "xhtml", "Render XHTML."),
    OutputFlagDescriptor(
        RenderFlag.MERMAID, "mermaid", "Render mermaid diagrams."
    ),
    OutputFlagDescriptor(
        RenderFlag.CHARTER, "charter", "Render charter plots."
    ),
    OutputFlagDescriptor(
        RenderFlag.GNUPLOT, "gnuplot", "Render gnuplot plots."
    ),
    OutputFlagDescriptor(
        RenderFlag.CSS, "style", "Emit ```css fences as style sheets."
    ),
)


def _build_index() -> Mapping[str, tuple[FlagKind, Bits]]:
    index: dict[str, tuple[FlagKind, Bits]] = {}
    entries: list[tuple[str, FlagKind, Bits]] = []
    entries.extend(
        (ext.option_name, FlagKind.EXTENSION, ext.flag) for ext in EXTENSIONS
    )
    entries.extend(
        (f"{CATEGORY_PREFIX}{cat.option_name}", FlagKind.CATEGORY, cat.flags)
        for cat in CATEGORIES
    )
    entries.extend(
        (flag.option_name, FlagKind.OUTPUT, flag.flag) for flag in OUTPUT_FLAGS
    )
    for name, kind, bits in entries:
        if name in index:
            raise RuntimeError(f"Duplicate option name in registry: {name}")
        index[name] = (kind, bits)
    return MappingProxyType(index)


_INDEX = _build_index()


def lookup(name: str) -> Optional[FlagMatch]:
    """Resolve ``name`` (optionally ``no-`` prefixed) to registry bits.

    Returns ``None`` when the name is not a known extension, category or
    output flag.
    """

    entry = _INDEX.get(name)
    if entry is not None:
        kind, bits = entry
        return FlagMatch(kind=kind, bits=bits, negated=False, name=name)
    if name.startswith(NEGATIVE_PREFIX):
        base = name[len(NEGATIVE_PREFIX):]
        entry = _INDEX.get(base)
        if entry is not None:
            kind, bits = entry
            return FlagMatch(kind=kind, bits=bits, negated=True, name=base)
    return None


def extensions_in(category: CategoryDescriptor) -> tuple[ExtensionDescriptor, ...]:
    return tuple(ext for ext in EXTENSIONS if ext.flag & category.flags)


def describe_flags(bits: Bits) -> tuple[str, ...]:
    """Return the option names of every flag set in ``bits``."""

    table: Iterable[Union[ExtensionDescriptor, OutputFlagDescriptor]]
    table = EXTENSIONS if isinstance(bits, Extension) else OUTPUT_FLAGS
    return tuple(entry.option_name for entry in table if entry.flag & bits)


__all__ = [
    "CATEGORIES",
    "CATEGORY_PREFIX",
    "CategoryDescriptor",
    "EXTENSIONS",
    "Extension",
    "ExtensionDescriptor",
    "FlagKind",
    "FlagMatch",
    "NEGATIVE_PREFIX",
    "OUTPUT_FLAGS",
    "OutputFlagDescriptor",
    "RenderFlag",
    "describe_flags",
    "extensions_in",
    "lookup",
]
