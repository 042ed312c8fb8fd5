"""
Receipts API router for parsing OCR text into receipts.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import logging

from receipt_ocr.models.receipt import ParsedReceipt
from receipt_ocr.services.confidence import OcrEngine
from receipt_ocr.services.parser import EmptyInputError
from receipt_ocr.services.pipeline import ReceiptPipeline, build_transaction_data

router = APIRouter(prefix="/receipts", tags=["receipts"])
logger = logging.getLogger(__name__)


class ParseRequest(BaseModel):
    """OCR output to interpret."""
    text: str
    engine_confidence: Optional[float] = Field(default=None, ge=0, le=100)
    engine: Optional[OcrEngine] = None
    engine_confidences: Optional[List[Optional[float]]] = None
    field_date: Optional[str] = None


class TransactionRequest(ParseRequest):
    """OCR output plus the owner of the resulting expense."""
    user_id: str
    category_id: Optional[str] = None


def _process(request: ParseRequest) -> ParsedReceipt:
    try:
        return ReceiptPipeline().process(
            request.text,
            engine_confidence=request.engine_confidence,
            field_date=request.field_date,
            engine=request.engine,
            engine_confidences=request.engine_confidences,
        )
    except EmptyInputError as e:
        logger.warning("Rejected empty receipt text", extra={"error": str(e)})
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/parse", response_model=ParsedReceipt)
async def parse_receipt(request: ParseRequest):
    """
    Parse OCR text into a validated receipt.

    Content problems never fail the request; they come back as
    needs_review / review_reason. Only empty text is rejected.
    """
    return _process(request)


@router.post("/transaction")
async def create_transaction_data(request: TransactionRequest) -> Dict[str, Any]:
    """Parse OCR text and return the expense transaction payload for it."""
    receipt = _process(request)
    return build_transaction_data(receipt, request.user_id, category_id=request.category_id)
