"""Document numbers and SKU suggestions."""
from datetime import datetime, timezone

import pytest

from app.core.exceptions import ValidationError
from app.models.category import Category
from app.models.document_sequence import format_document_number
from app.models.receipt import Receipt
from app.services.document_sequence_service import DocumentSequenceService, parse_sequence_suffix


def test_format_document_number_pads_sequence():
    assert format_document_number("RCP", 2025, 8) == "RCP-2025-008"
    assert format_document_number("DEL", 2025, 1234) == "DEL-2025-1234"


def test_parse_sequence_suffix():
    assert parse_sequence_suffix("RCP-2024-007", "RCP-2024-") == 7
    assert parse_sequence_suffix("RCP-2024-abc", "RCP-2024-") == 0
    assert parse_sequence_suffix(None, "RCP-2024-") == 0
    assert parse_sequence_suffix("DEL-2024-007", "RCP-2024-") == 0


async def test_first_number_of_year_is_001(db):
    service = DocumentSequenceService(db)
    assert await service.next_number("RCP", year=2024) == "RCP-2024-001"
    assert await service.next_number("RCP", year=2024) == "RCP-2024-002"
    # Independent counters per type and year
    assert await service.next_number("DEL", year=2024) == "DEL-2024-001"
    assert await service.next_number("RCP", year=2025) == "RCP-2025-001"


async def test_numbering_continues_after_existing_documents(db):
    db.add(Receipt(
        receipt_number="RCP-2024-007",
        supplier="Acme Supplies",
        expected_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
    ))
    await db.commit()

    service = DocumentSequenceService(db)
    assert await service.next_number("RCP", year=2024) == "RCP-2024-008"


async def test_unparseable_existing_number_restarts_at_001(db):
    db.add(Receipt(
        receipt_number="RCP-2024-X1",
        supplier="Acme Supplies",
        expected_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
    ))
    await db.commit()

    assert await DocumentSequenceService(db).next_number("RCP", year=2024) == "RCP-2024-001"


async def test_unknown_document_type_rejected(db):
    with pytest.raises(ValidationError):
        await DocumentSequenceService(db).next_number("INV")


async def test_sku_suggestion_without_category(db):
    assert await DocumentSequenceService(db).suggest_sku() == "PRD00001"


async def test_sku_suggestion_follows_highest_category_sku(db, make_product, category):
    await make_product("ELE00012")
    await make_product("ELE00003")

    assert await DocumentSequenceService(db).suggest_sku(category.id) == "ELE00013"


async def test_sku_suggestion_uses_category_prefix(db):
    category = Category(name="Furniture")
    db.add(category)
    await db.commit()

    assert await DocumentSequenceService(db).suggest_sku(category.id) == "FUR00001"
