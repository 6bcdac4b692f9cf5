"""
Document Sequence Model for Atomic Number Generation

• One counter row per (document type, calendar year)
• Continuous sequence within the year, restarting at 1 each January
• Row is locked (SELECT FOR UPDATE) while the number is taken
• Format: {PREFIX}-{YEAR}-{SEQUENCE}

DOCUMENT FORMATS:
━━━━━━━━━━━━━━━━
• RCP: RCP-2025-001 (Receipt)
• DEL: DEL-2025-001 (Delivery)
• ADJ: ADJ-2025-001 (Stock Adjustment)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class DocumentType(str, Enum):
    """Document types that use sequence numbering."""
    RECEIPT = "RCP"
    DELIVERY = "DEL"
    ADJUSTMENT = "ADJ"


def format_document_number(prefix: str, year: int, number: int, padding: int = 3, separator: str = "-") -> str:
    """RCP, 2025, 7 -> RCP-2025-007"""
    return f"{prefix}{separator}{year}{separator}{str(number).zfill(padding)}"


class DocumentSequence(Base):
    """
    Document sequence counter.

    Example:
        document_type = "RCP"
        year = 2025
        current_number = 42
        → Next receipt number: RCP-2025-043
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint(
            "document_type", "year",
            name="uq_document_type_year"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )

    document_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        index=True,
        comment="RCP, DEL, ADJ"
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Sequence Counter
    current_number: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Last used sequence number"
    )

    # Formatting
    padding_length: Mapped[int] = mapped_column(
        Integer,
        default=3,
        nullable=False,
        comment="Zero padding for sequence (3 = 001)"
    )
    separator: Mapped[str] = mapped_column(String(5), default="-", nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def get_next_number(self) -> str:
        """
        Generate next document number.

        NOTE: This method increments current_number but does NOT
        commit to database. The caller must handle the transaction.
        """
        self.current_number += 1
        return format_document_number(
            self.document_type, self.year, self.current_number, self.padding_length, self.separator
        )

    def __repr__(self) -> str:
        return f"<DocumentSequence({self.document_type}/{self.year}: {self.current_number})>"
