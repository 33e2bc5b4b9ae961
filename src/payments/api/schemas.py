"""Pydantic request/response schemas for the Payments API."""

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Receipt Request Schemas
# ---------------------------------------------------------------------------
class UploadReceiptRequest(BaseModel):
    order_id: str
    receipt_url: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "ord-001",
                    "receipt_url": "https://files.example.com/receipts/ord-001.jpg",
                }
            ]
        }
    }


class DecideReceiptRequest(BaseModel):
    notes: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ReceiptResponse(BaseModel):
    id: str
    order_id: str
    receipt_url: str
    uploaded_by: str
    status: str
    notes: str | None = None
    created_at: datetime | None = None
    verified_at: datetime | None = None
    verified_by: str | None = None

    model_config = {"from_attributes": True}
