"""Colour assignment for newly created categories.

The palette is configuration (see :class:`~ledger_ingest.settings.IngestSettings`)
and the choice strategy is injected into the reconciler, so tests can pin
exact colours with a seed or the cycling picker.
"""

from __future__ import annotations

import random
import re
from collections.abc import Sequence
from typing import Protocol

DEFAULT_PALETTE: tuple[str, ...] = (
    "#ef4444",
    "#f97316",
    "#eab308",
    "#22c55e",
    "#06b6d4",
    "#3b82f6",
    "#8b5cf6",
    "#ec4899",
)

_HEX_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def validate_palette(palette: Sequence[str]) -> tuple[str, ...]:
    """Return ``palette`` as a tuple, rejecting empty or non-hex entries."""

    colors = tuple(c.strip() for c in palette)
    if not colors:
        raise ValueError("palette must contain at least one colour")
    bad = [c for c in colors if not _HEX_RE.match(c)]
    if bad:
        raise ValueError(f"palette entries must be #rrggbb hex colours: {', '.join(bad)}")
    return colors


class ColorPicker(Protocol):
    def pick(self, name: str) -> str: ...


class RandomColorPicker:
    """Uniform random choice from the palette; pass ``seed`` for repeatability."""

    def __init__(self, palette: Sequence[str] = DEFAULT_PALETTE, *, seed: int | None = None) -> None:
        self._palette = validate_palette(palette)
        self._rng = random.Random(seed)

    def pick(self, name: str) -> str:
        return self._rng.choice(self._palette)


class CyclingColorPicker:
    """Deterministic round robin through the palette."""

    def __init__(self, palette: Sequence[str] = DEFAULT_PALETTE) -> None:
        self._palette = validate_palette(palette)
        self._next = 0

    def pick(self, name: str) -> str:
        color = self._palette[self._next % len(self._palette)]
        self._next += 1
        return color


__all__ = [
    "DEFAULT_PALETTE",
    "validate_palette",
    "ColorPicker",
    "RandomColorPicker",
    "CyclingColorPicker",
]
