from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from ledger_ingest.errors import ReconciliationError
from ledger_ingest.models import Category
from ledger_ingest.receipts import (
    ReceiptParse,
    calculate_total,
    map_receipt_category,
    receipt_date,
    transactions_from_receipt,
)

CATEGORIES = [
    Category(id="inc", name="Salary", type="income", color="#22c55e"),
    Category(id="food", name="Food & Drinks", type="expense", color="#ef4444"),
    Category(id="shop", name="Shopping", type="expense", color="#3b82f6"),
]

PAYLOAD = {
    "items": [
        {"amount": 30000, "discount": 5000, "tax": 2750, "serviceFee": 1500,
         "category": "food & drinks", "description": "Nasi goreng"},
        {"amount": 12000.5, "discount": None, "tax": 0, "serviceFee": 0,
         "category": "Drinks", "description": "Iced tea"},
    ],
    "timestamp": "2024-05-04T19:30:00",
    "merchant": "Warung Makan",
}


def test_receipt_payload_validates_with_camel_case_fee():
    parsed = ReceiptParse.model_validate(PAYLOAD)
    assert parsed.items[0].service_fee == 1500
    assert parsed.merchant == "Warung Makan"


def test_negative_amounts_are_rejected():
    bad = {"items": [{**PAYLOAD["items"][0], "amount": -1}]}
    with pytest.raises(ValidationError):
        ReceiptParse.model_validate(bad)


def test_total_applies_discount_tax_and_fees():
    parsed = ReceiptParse.model_validate(PAYLOAD)
    assert calculate_total(parsed.items) == Decimal("41250.5")


@pytest.mark.parametrize(
    "label, expected",
    [
        ("FOOD & DRINKS", "food"),  # exact, case-insensitive
        ("drinks", "food"),  # label inside a category name
        ("Shopping mall", "shop"),  # category name inside the label
        ("Transport", "food"),  # first expense category
    ],
)
def test_category_mapping_order(label, expected):
    assert map_receipt_category(label, CATEGORIES) == expected


def test_category_mapping_without_expense_categories():
    assert map_receipt_category("Anything", CATEGORIES[:1]) is None


def test_transactions_from_receipt_uses_receipt_date():
    parsed = ReceiptParse.model_validate(PAYLOAD)
    when = receipt_date(parsed.timestamp, date(2000, 1, 1))
    requests = transactions_from_receipt(parsed.items, CATEGORIES, on=when)

    assert [(r.amount, r.category_id, r.type, r.date) for r in requests] == [
        (Decimal("30000"), "food", "expense", date(2024, 5, 4)),
        (Decimal("12000.5"), "food", "expense", date(2024, 5, 4)),
    ]


def test_unparseable_timestamp_falls_back():
    assert receipt_date("yesterday-ish", date(2024, 1, 1)) == date(2024, 1, 1)
    assert receipt_date(None, date(2024, 1, 1)) == date(2024, 1, 1)


def test_no_category_available_is_an_error():
    parsed = ReceiptParse.model_validate(PAYLOAD)
    with pytest.raises(ReconciliationError):
        transactions_from_receipt(parsed.items, CATEGORIES[:1])


def test_import_receipt_records_items_in_one_bulk_call():
    import json

    from ledger_ingest.api import import_receipt
    from tests.helpers.store_stub import StoreStub

    store = StoreStub(categories=list(CATEGORIES))
    created = import_receipt(json.dumps(PAYLOAD), store=store, user_id="u1")

    assert len(store.bulk_calls) == 1
    assert [(t.category_id, t.description) for t in created] == [
        ("food", "Nasi goreng"),
        ("food", "Iced tea"),
    ]
    assert {t.date for t in created} == {date(2024, 5, 4)}
    assert all(t.type == "expense" for t in created)


def test_import_receipt_without_timestamp_uses_given_day():
    from ledger_ingest.api import import_receipt
    from tests.helpers.store_stub import StoreStub

    store = StoreStub(categories=list(CATEGORIES))
    payload = {"items": PAYLOAD["items"][:1]}
    (created,) = import_receipt(payload, store=store, user_id="u1", on=date(2024, 6, 1))
    assert created.date == date(2024, 6, 1)
    assert created.amount == Decimal("30000")


def test_import_receipt_rejects_bad_payload_before_touching_store():
    from ledger_ingest.api import import_receipt
    from tests.helpers.store_stub import StoreStub

    store = StoreStub(categories=list(CATEGORIES))
    with pytest.raises(ValidationError):
        import_receipt({"items": [{"amount": "lots"}]}, store=store, user_id="u1")
    assert store.list_category_calls == 0
    assert store.bulk_calls == []


def test_import_receipt_without_expense_categories_writes_nothing():
    from ledger_ingest.api import import_receipt
    from tests.helpers.store_stub import StoreStub

    store = StoreStub(categories=[CATEGORIES[0]])
    with pytest.raises(ReconciliationError):
        import_receipt(PAYLOAD, store=store, user_id="u1")
    assert store.bulk_calls == []
