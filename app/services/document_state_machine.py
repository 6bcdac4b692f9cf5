"""
Document State Machine

Single source of truth for receipt and delivery lifecycles. Each document
type declares its statuses, the status new documents start in, and the one
terminal status that only validation may reach.

    Receipt:  Draft -> Waiting -> Received -> Done
    Delivery: Draft -> Picking -> Packed -> Shipped -> Delivered

Before the terminal status, status is a free label: update may move a
document to any non-terminal status. Once terminal, the document is frozen.
"""

from dataclasses import dataclass
from typing import Tuple

from app.core.exceptions import BusinessRuleViolation, ValidationError
from app.models.delivery import DeliveryStatus
from app.models.receipt import ReceiptStatus


@dataclass(frozen=True)
class DocumentLifecycle:
    """Declarative lifecycle of one document type."""
    document_name: str
    statuses: Tuple[str, ...]
    initial: str
    terminal: str

    def is_terminal(self, status: str) -> bool:
        """Is this a terminal (final) state?"""
        return status == self.terminal

    def ensure_mutable(self, status: str, action: str = "modify") -> None:
        """
        Reject any operation on a document that already reached its terminal status.

        Raises:
            BusinessRuleViolation: document is terminal
        """
        if self.is_terminal(status):
            raise BusinessRuleViolation(
                f"Cannot {action} a completed {self.document_name}"
            )

    def validate_status_change(self, current_status: str, new_status: str) -> None:
        """
        Validate a status change requested through update.

        Raises:
            ValidationError: unknown status
            BusinessRuleViolation: document is terminal, or the target is the
                terminal status (only validate may set it)
        """
        self.ensure_mutable(current_status, "update")

        if current_status == new_status:
            return  # No change, always allowed

        if new_status not in self.statuses:
            raise ValidationError(
                f"Invalid {self.document_name} status '{new_status}'. "
                f"Allowed: {', '.join(self.statuses)}"
            )
        if self.is_terminal(new_status):
            raise BusinessRuleViolation(
                f"{self.document_name.capitalize()} can only reach {new_status} through validation"
            )


# =============================================================================
# LIFECYCLES
# =============================================================================

RECEIPT_LIFECYCLE = DocumentLifecycle(
    document_name="receipt",
    statuses=tuple(s.value for s in ReceiptStatus),
    initial=ReceiptStatus.DRAFT.value,
    terminal=ReceiptStatus.DONE.value,
)

DELIVERY_LIFECYCLE = DocumentLifecycle(
    document_name="delivery",
    statuses=tuple(s.value for s in DeliveryStatus),
    initial=DeliveryStatus.DRAFT.value,
    terminal=DeliveryStatus.DELIVERED.value,
)
