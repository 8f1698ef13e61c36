"""Value types passed between the pipeline and the document library."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, MutableMapping


@dataclass(frozen=True)
class Localization:
    """Caption labels used when numbering figures, listings and tables."""

    figure: str = "Figure"
    listing: str = "Listing"
    table: str = "Table"


@dataclass(frozen=True)
class DocumentAugmentation:
    """Text spliced before and after the rendered body."""

    prologue: str = ""
    epilogue: str = ""


def next_caption(env: MutableMapping[str, Any], label: str) -> str:
    """Return ``label`` followed by its next running number for this render."""

    counters = env.setdefault("captions", {})
    counters[label] = counters.get(label, 0) + 1
    return f"{label} {counters[label]}"


__all__ = ["DocumentAugmentation", "Localization", "next_caption"]
