"""FastAPI routes for payment receipts."""

from fastapi import APIRouter, Depends

from payments.api.schemas import DecideReceiptRequest, ReceiptResponse, UploadReceiptRequest
from payments.receipt.management import ReceiptService
from shared.api import get_session
from shared.session import Session
from shared.store import get_store


def get_receipt_service() -> ReceiptService:
    return ReceiptService(get_store())


# ---------------------------------------------------------------------------
# Receipt Router
# ---------------------------------------------------------------------------
receipt_router = APIRouter(prefix="/receipts", tags=["receipts"])


@receipt_router.post("", status_code=201, response_model=ReceiptResponse)
async def upload_receipt(
    body: UploadReceiptRequest,
    session: Session = Depends(get_session),
    receipts: ReceiptService = Depends(get_receipt_service),
) -> ReceiptResponse:
    receipt = receipts.upload_receipt(session, body.order_id, body.receipt_url)
    return ReceiptResponse.model_validate(receipt)


@receipt_router.get("/{receipt_id}", response_model=ReceiptResponse)
async def get_receipt(
    receipt_id: str,
    session: Session = Depends(get_session),
    receipts: ReceiptService = Depends(get_receipt_service),
) -> ReceiptResponse:
    session.require_user()
    return ReceiptResponse.model_validate(receipts.get_receipt(receipt_id))


@receipt_router.put("/{receipt_id}/verify", response_model=ReceiptResponse)
async def verify_receipt(
    receipt_id: str,
    body: DecideReceiptRequest,
    session: Session = Depends(get_session),
    receipts: ReceiptService = Depends(get_receipt_service),
) -> ReceiptResponse:
    receipt = receipts.verify_receipt(session, receipt_id, notes=body.notes)
    return ReceiptResponse.model_validate(receipt)


@receipt_router.put("/{receipt_id}/reject", response_model=ReceiptResponse)
async def reject_receipt(
    receipt_id: str,
    body: DecideReceiptRequest,
    session: Session = Depends(get_session),
    receipts: ReceiptService = Depends(get_receipt_service),
) -> ReceiptResponse:
    receipt = receipts.reject_receipt(session, receipt_id, notes=body.notes)
    return ReceiptResponse.model_validate(receipt)
