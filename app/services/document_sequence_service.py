"""
Document Sequence Service for Atomic Number Generation

- Calendar year based numbering, restarting at 001 each January
- Atomic number generation with database-level locking
- Format: {PREFIX}-{YEAR}-{SEQUENCE}

USAGE:
    from app.services.document_sequence_service import DocumentSequenceService

    async def create_receipt(db: AsyncSession):
        service = DocumentSequenceService(db)
        receipt_number = await service.next_number("RCP")
        # Returns: RCP-2025-001

SUPPORTED DOCUMENT TYPES:
    RCP - Receipt
    DEL - Delivery
    ADJ - Stock Adjustment
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import RetryableConflict, ValidationError
from app.models.adjustment import StockAdjustment
from app.models.category import Category
from app.models.delivery import Delivery
from app.models.document_sequence import DocumentSequence, DocumentType
from app.models.product import Product
from app.models.receipt import Receipt


logger = logging.getLogger(__name__)


# Column holding the already-issued numbers of each document type
DOCUMENT_NUMBER_COLUMNS = {
    DocumentType.RECEIPT.value: Receipt.receipt_number,
    DocumentType.DELIVERY.value: Delivery.delivery_number,
    DocumentType.ADJUSTMENT.value: StockAdjustment.adjustment_number,
}

DEFAULT_SKU_PREFIX = "PRD"


def parse_sequence_suffix(number: Optional[str], prefix: str) -> int:
    """
    Parse the numeric part following a prefix.

    RCP-2025-007 with prefix RCP-2025- -> 7. Anything that does not parse
    yields 0, so the sequence restarts at 1.
    """
    if not number or not number.startswith(prefix):
        return 0
    try:
        return int(number[len(prefix):])
    except ValueError:
        return 0


class DocumentSequenceService:
    """
    Service for generating atomic document numbers.

    Uses database-level locking (SELECT FOR UPDATE) so two concurrent
    creations never receive the same number.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _normalize_type(document_type: str) -> str:
        doc_type = document_type.upper()
        if doc_type not in DOCUMENT_NUMBER_COLUMNS:
            valid_types = ", ".join(DOCUMENT_NUMBER_COLUMNS.keys())
            raise ValidationError(f"Invalid document type '{doc_type}'. Valid types: {valid_types}")
        return doc_type

    @staticmethod
    def current_year() -> int:
        return datetime.now(timezone.utc).year

    async def next_number(self, document_type: str, year: Optional[int] = None) -> str:
        """
        Get next document number with atomic increment.

        The increment happens inside the caller's transaction; the number is
        only really consumed once that transaction commits.

        Args:
            document_type: Document type code (RCP, DEL, ADJ)
            year: Optional calendar year. Current year if not provided.

        Returns:
            Formatted document number, e.g. RCP-2025-008

        Raises:
            ValidationError: unknown document type
            RetryableConflict: another request created the same counter first
        """
        doc_type = self._normalize_type(document_type)
        year = year or self.current_year()

        sequence = await self._get_or_create_sequence(doc_type, year)
        doc_number = sequence.get_next_number()
        await self.db.flush()

        logger.debug(f"Issued {doc_number}")
        return doc_number

    async def _max_issued_number(self, doc_type: str, year: int) -> int:
        """Highest sequence already used by documents of this type and year."""
        column = DOCUMENT_NUMBER_COLUMNS[doc_type]
        prefix = f"{doc_type}-{year}-"

        result = await self.db.execute(
            select(func.max(column)).where(column.like(f"{prefix}%"))
        )
        return parse_sequence_suffix(result.scalar_one_or_none(), prefix)

    async def _get_or_create_sequence(self, doc_type: str, year: int) -> DocumentSequence:
        """
        Get existing sequence with row lock, or create a new one.

        A new counter starts from the highest number already present in the
        documents table, so numbering continues after data created before
        the counter existed.
        """
        result = await self.db.execute(
            select(DocumentSequence)
            .where(
                DocumentSequence.document_type == doc_type,
                DocumentSequence.year == year,
            )
            .with_for_update()
        )
        sequence = result.scalar_one_or_none()

        if sequence:
            return sequence

        seed = await self._max_issued_number(doc_type, year)
        sequence = DocumentSequence(
            document_type=doc_type,
            year=year,
            current_number=seed,
            padding_length=settings.DOCUMENT_NUMBER_PADDING,
        )
        self.db.add(sequence)
        try:
            await self.db.flush()
        except IntegrityError:
            raise RetryableConflict(
                f"Document sequence {doc_type}/{year} was created concurrently, please retry"
            )
        logger.info(f"Created document sequence {doc_type}/{year} starting after {seed}")

        # Re-fetch with lock to ensure atomicity
        result = await self.db.execute(
            select(DocumentSequence)
            .where(DocumentSequence.id == sequence.id)
            .with_for_update()
        )
        return result.scalar_one()

    # ==================== SKU SUGGESTION ====================

    async def suggest_sku(self, category_id: Optional[uuid.UUID] = None) -> str:
        """
        Suggest the next SKU for a category.

        Prefix is the first three letters of the category name, or PRD when
        no category is given or found. Nothing is reserved: two callers may
        receive the same suggestion, the unique SKU constraint decides.

        Returns:
            e.g. ELE00013 after ELE00012
        """
        prefix = DEFAULT_SKU_PREFIX
        if category_id:
            category = await self.db.get(Category, category_id)
            if category and category.name:
                prefix = category.name[:3].upper()

        result = await self.db.execute(
            select(func.max(Product.sku)).where(Product.sku.like(f"{prefix}%"))
        )
        last_sku = result.scalar_one_or_none()
        sequence = parse_sequence_suffix(last_sku, prefix) + 1

        return f"{prefix}{str(sequence).zfill(settings.SKU_NUMBER_PADDING)}"
