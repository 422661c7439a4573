"""Category reconciliation: match sheet category names to the user's categories.

Reconciliation runs in two steps:

1) ``plan_new_categories`` (pure): find the distinct, case-insensitively new
   names in first-seen order, take each one's type from the first row that
   uses it, and pick a colour through the injected ``ColorPicker``.
2) ``reconcile``: fold over the plan, creating categories one at a time and
   threading an immutable name→id index forward. A name already in the index
   is never created again, so one name yields at most one create call.

Any creation failure aborts the pass with :class:`ReconciliationError` so no
transaction is written against a partial category set.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import reduce
from types import MappingProxyType

from .errors import ReconciliationError
from .logging_setup import get_logger
from .models import (
    Category,
    CategoryNameIndex,
    NewCategory,
    ParsedTransactionRow,
    TransactionCreate,
    TransactionType,
)
from .palette import ColorPicker

logger = get_logger("ledger_ingest.reconcile")

type CreateCategoryFn = Callable[[NewCategory], Category]


def name_key(name: str) -> str:
    """Lookup key for a category name: whitespace runs collapsed, lower-cased.

    Must agree with the form :class:`~ledger_ingest.persistence.SqlTransactionStore`
    stores, otherwise a stored name is not recognised on the next import.
    """

    return " ".join(name.split()).lower()


def display_name(key: str) -> str:
    """Capitalize the first character of a lower-cased name for storage."""

    return key[:1].upper() + key[1:]


def build_index(categories: Iterable[Category]) -> CategoryNameIndex:
    return MappingProxyType({name_key(c.name): c.id for c in categories})


def find_new_category_names(
    rows: Sequence[ParsedTransactionRow], existing: Iterable[Category]
) -> dict[str, TransactionType]:
    """Return new lower-cased names mapped to the type of their first row.

    Insertion order is first-seen order in ``rows``.
    """

    existing_keys = {name_key(c.name) for c in existing}
    first_type: dict[str, TransactionType] = {}
    for row in rows:
        key = name_key(row.category_name)
        if key in existing_keys or key in first_type:
            continue
        first_type[key] = row.type
    return first_type


@dataclass(frozen=True, slots=True)
class PlannedCategory:
    key: str
    payload: NewCategory


def plan_new_categories(
    rows: Sequence[ParsedTransactionRow],
    existing: Iterable[Category],
    *,
    color_picker: ColorPicker,
) -> list[PlannedCategory]:
    return [
        PlannedCategory(
            key=key,
            payload=NewCategory(
                name=display_name(key),
                type=tx_type,
                color=color_picker.pick(key),
                is_default=False,
            ),
        )
        for key, tx_type in find_new_category_names(rows, existing).items()
    ]


@dataclass(frozen=True, slots=True)
class Reconciliation:
    index: CategoryNameIndex
    created: tuple[Category, ...] = ()


def _create_step(
    state: Reconciliation, planned: PlannedCategory, create: CreateCategoryFn
) -> Reconciliation:
    if planned.key in state.index:
        return state
    try:
        category = create(planned.payload)
    except Exception as exc:
        raise ReconciliationError(
            f"Failed to create category {planned.payload.name!r}: {exc}",
            created=list(state.created),
        ) from exc
    logger.info("Created category %r (%s)", category.name, category.type)
    index: Mapping[str, str] = {**state.index, planned.key: category.id}
    return Reconciliation(index=MappingProxyType(dict(index)), created=(*state.created, category))


def reconcile(
    rows: Sequence[ParsedTransactionRow],
    existing: Sequence[Category],
    create: CreateCategoryFn,
    *,
    color_picker: ColorPicker,
) -> Reconciliation:
    """Create missing categories sequentially and return the final index."""

    plan = plan_new_categories(rows, existing, color_picker=color_picker)
    initial = Reconciliation(index=build_index(existing))
    if plan:
        logger.info("Reconciling %d new category name(s)", len(plan))
    return reduce(lambda state, p: _create_step(state, p, create), plan, initial)


def to_transaction_requests(
    rows: Iterable[ParsedTransactionRow], index: CategoryNameIndex
) -> list[TransactionCreate]:
    requests: list[TransactionCreate] = []
    for row in rows:
        category_id = index.get(name_key(row.category_name))
        if category_id is None:
            raise ReconciliationError(
                f"Category {row.category_name!r} did not resolve to an id"
            )
        requests.append(
            TransactionCreate(
                amount=row.amount,
                type=row.type,
                category_id=category_id,
                description=row.description,
                date=row.date,
            )
        )
    return requests


__all__ = [
    "CreateCategoryFn",
    "PlannedCategory",
    "Reconciliation",
    "name_key",
    "display_name",
    "build_index",
    "find_new_category_names",
    "plan_new_categories",
    "reconcile",
    "to_transaction_requests",
]
