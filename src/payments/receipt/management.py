"""Receipt management: upload by the buyer, verification by the seller.

Storing the receipt asset itself happens elsewhere; upload only records the
URL of an already-uploaded file against an order.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from payments.receipt.receipt import PaymentReceipt, ReceiptStatus
from shared.errors import InvalidStatusTransition, ObjectNotFoundError, StoreError, ValidationError
from shared.session import Session
from shared.store import schema
from shared.store.port import Store

logger = structlog.get_logger(__name__)


class ReceiptService:
    """Creates receipts (buyer side) and decides them (seller side).

    ``on_change`` is called with the acting session after every successful
    write so the caller can reload its order list; a failing callback is
    logged and never fails the write.
    """

    def __init__(self, store: Store, on_change: Callable[[Session], None] | None = None) -> None:
        self.store = store
        self.on_change = on_change

    def upload_receipt(self, session: Session, order_id: str, receipt_url: str) -> PaymentReceipt:
        uploader_id = session.require_user()
        if not receipt_url or not receipt_url.strip():
            raise ValidationError({"receipt_url": ["Receipt URL is required"]})

        try:
            rows = self.store.insert(
                schema.PAYMENT_RECEIPTS,
                {
                    "order_id": order_id,
                    "receipt_url": receipt_url.strip(),
                    "uploaded_by": uploader_id,
                    "status": ReceiptStatus.PENDING.value,
                },
            )
        except StoreError as exc:
            raise StoreError.wrap("upload receipt", exc) from exc

        receipt = PaymentReceipt.from_row(rows[0])
        logger.info("Payment receipt uploaded", order_id=order_id, receipt_id=receipt.id, uploaded_by=uploader_id)
        self._notify(session)
        return receipt

    def get_receipt(self, receipt_id: str) -> PaymentReceipt:
        try:
            row = self.store.read_one(schema.PAYMENT_RECEIPTS, {"id": receipt_id})
        except StoreError as exc:
            raise StoreError.wrap("fetch receipt", exc) from exc
        if row is None:
            raise ObjectNotFoundError(f"Receipt {receipt_id} not found")
        return PaymentReceipt.from_row(row)

    def verify_receipt(self, session: Session, receipt_id: str, notes: str | None = None) -> PaymentReceipt:
        return self._decide(session, receipt_id, ReceiptStatus.VERIFIED, notes)

    def reject_receipt(self, session: Session, receipt_id: str, notes: str | None = None) -> PaymentReceipt:
        return self._decide(session, receipt_id, ReceiptStatus.REJECTED, notes)

    def _decide(
        self,
        session: Session,
        receipt_id: str,
        target: ReceiptStatus,
        notes: str | None,
    ) -> PaymentReceipt:
        seller_id = session.require_user()
        receipt = self.get_receipt(receipt_id)
        receipt.assert_can_decide(target)

        patch = {
            "status": target.value,
            "verified_at": datetime.now(UTC),
            "verified_by": seller_id,
        }
        if notes is not None:
            patch["notes"] = notes

        action = "verify receipt" if target == ReceiptStatus.VERIFIED else "reject receipt"
        try:
            # Only a still-pending receipt is decided
            rows = self.store.update(
                schema.PAYMENT_RECEIPTS,
                patch,
                {"id": receipt_id, "status": ReceiptStatus.PENDING.value},
            )
        except StoreError as exc:
            raise StoreError.wrap(action, exc) from exc

        if not rows:
            current = self.get_receipt(receipt_id)
            raise InvalidStatusTransition(current.status, target.value, entity="receipt")

        decided = PaymentReceipt.from_row(rows[0])
        logger.info(
            "Payment receipt decided",
            receipt_id=receipt_id,
            order_id=decided.order_id,
            status=decided.status,
            decided_by=seller_id,
        )
        self._notify(session)
        return decided

    def _notify(self, session: Session) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(session)
        except Exception as exc:
            logger.warning("Order list reload failed after receipt change", error=str(exc))
