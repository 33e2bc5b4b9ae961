"""Payment receipt: buyer-submitted proof of an off-platform payment.

Receipts are appended by the buyer in ``pending`` state; the seller on the
order then verifies or rejects them exactly once.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from shared.errors import InvalidStatusTransition


class ReceiptStatus(Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass
class PaymentReceipt:
    id: str
    order_id: str
    receipt_url: str
    uploaded_by: str
    status: str = ReceiptStatus.PENDING.value
    notes: str | None = None
    created_at: datetime | None = None
    verified_at: datetime | None = None
    verified_by: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "PaymentReceipt":
        return cls(
            id=str(row["id"]),
            order_id=str(row["order_id"]),
            receipt_url=row["receipt_url"],
            uploaded_by=str(row["uploaded_by"]),
            status=row.get("status") or ReceiptStatus.PENDING.value,
            notes=row.get("notes"),
            created_at=row.get("created_at"),
            verified_at=row.get("verified_at"),
            verified_by=row.get("verified_by"),
        )

    def assert_can_decide(self, target: ReceiptStatus) -> None:
        if ReceiptStatus(self.status) != ReceiptStatus.PENDING:
            raise InvalidStatusTransition(self.status, target.value, entity="receipt")
