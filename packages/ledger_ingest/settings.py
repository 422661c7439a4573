"""Environment-driven settings.

Entrypoints call ``load_dotenv()`` first and then :meth:`IngestSettings.from_env`.
Variables:

- ``DATABASE_URL``: SQLAlchemy URL for the ledger database.
- ``LEDGER_INGEST_PALETTE``: comma-separated ``#rrggbb`` colours for new
  categories.
- ``LEDGER_INGEST_COLOR_SEED``: optional integer seed for colour choice.
- ``LEDGER_INGEST_LOG_LEVEL``: log level name or number (default ``INFO``);
  the CLI hands it to :func:`~ledger_ingest.logging_setup.configure_logging`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .logging_setup import parse_level
from .palette import DEFAULT_PALETTE, ColorPicker, RandomColorPicker, validate_palette


@dataclass(frozen=True, slots=True)
class IngestSettings:
    database_url: str | None = None
    palette: tuple[str, ...] = DEFAULT_PALETTE
    color_seed: int | None = None
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> IngestSettings:
        env = os.environ if environ is None else environ

        raw_palette = (env.get("LEDGER_INGEST_PALETTE") or "").strip()
        palette = (
            validate_palette([c for c in raw_palette.split(",") if c.strip()])
            if raw_palette
            else DEFAULT_PALETTE
        )

        raw_seed = (env.get("LEDGER_INGEST_COLOR_SEED") or "").strip()
        try:
            seed = int(raw_seed) if raw_seed else None
        except ValueError as exc:
            raise ValueError(f"LEDGER_INGEST_COLOR_SEED must be an integer: {raw_seed!r}") from exc

        raw_level = (env.get("LEDGER_INGEST_LOG_LEVEL") or "").strip()

        return cls(
            database_url=env.get("DATABASE_URL") or None,
            palette=palette,
            color_seed=seed,
            log_level=parse_level(raw_level) if raw_level else logging.INFO,
        )

    def color_picker(self, *, seed: int | None = None) -> ColorPicker:
        return RandomColorPicker(self.palette, seed=seed if seed is not None else self.color_seed)


__all__ = ["IngestSettings"]
