"""Terminal rendering and prompts for the import flow (prompt_toolkit-based).

Kept apart from the orchestrator so the prompts can be tested with a pipe
input and ``DummyOutput``.
"""

from __future__ import annotations

from collections.abc import Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator

from .models import ImportSummary, ParsedTransactionRow
from .orchestrator import ImportPreview

PREVIEW_LIMIT = 20

_YES = {"y", "yes"}
_NO = {"n", "no"}


def _clip(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def render_rows(rows: Sequence[ParsedTransactionRow], *, limit: int = PREVIEW_LIMIT) -> str:
    header = f"{'Date':<10}  {'Category':<20}  {'Description':<32}  {'Amount':>15}  Type"
    lines = [header, "-" * len(header)]
    for r in rows[:limit]:
        lines.append(
            f"{r.date.isoformat():<10}  {_clip(r.category_name, 20):<20}  "
            f"{_clip(r.description, 32):<32}  {r.amount:>15,.2f}  {r.type}"
        )
    if len(rows) > limit:
        lines.append(f"... and {len(rows) - limit} more")
    return "\n".join(lines)


def render_preview(preview: ImportPreview, *, limit: int = PREVIEW_LIMIT) -> str:
    """Plain-text preview: row table, skipped-row warnings, categories to create."""

    parts = [f"{len(preview.rows)} transaction(s) ready to import", render_rows(preview.rows, limit=limit)]
    if preview.warnings:
        parts.append(f"{len(preview.warnings)} row(s) skipped:")
        parts.extend(f"  {w}" for w in preview.warnings)
    if preview.new_category_names:
        parts.append("New categories that will be created: " + ", ".join(preview.new_category_names))
    return "\n".join(parts)


def render_summary(summary: ImportSummary) -> str:
    text = f"Imported {summary.transactions_imported} transaction(s)"
    if summary.categories_created:
        names = ", ".join(c.name for c in summary.created_categories)
        text += f"; created {summary.categories_created} categor(ies): {names}"
    return text


class _YesNoValidator(Validator):
    def validate(self, document) -> None:
        if document.text.strip().lower() not in _YES | _NO:
            raise ValidationError(message="Please answer y or n.")


def confirm_import(
    count: int,
    *,
    session: PromptSession | None = None,
    message: str | None = None,
) -> bool:
    """Ask whether to import ``count`` rows. Esc or Ctrl+C means no."""

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    if session is None:
        sess: PromptSession = PromptSession(key_bindings=kb)
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
            key_bindings=kb,
        )

    answer = sess.prompt(
        message or f"Import {count} transaction(s)? [y/n]: ",
        validator=_YesNoValidator(),
        validate_while_typing=False,
        key_bindings=kb,
    )
    if answer is None:
        return False
    return answer.strip().lower() in _YES


__all__ = [
    "PREVIEW_LIMIT",
    "render_rows",
    "render_preview",
    "render_summary",
    "confirm_import",
]
