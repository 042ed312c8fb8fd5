"""
Receipt processing pipeline: OCR text -> validated receipt.

Wires the parser, the confidence aggregator and the validator together and
maps the result onto the expense transaction payload.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence, Union

from receipt_ocr.models.receipt import ParsedReceipt
from receipt_ocr.services.confidence import OcrEngine, aggregate_confidence, clamp_confidence
from receipt_ocr.services.parser import ReceiptParser
from receipt_ocr.services.validator import ReceiptValidator
from receipt_ocr.utils.dates import format_date_for_storage
from receipt_ocr.utils.events import default_recorder

logger = logging.getLogger(__name__)


def _decimal_to_str(value: Optional[Decimal]) -> Optional[str]:
    """Convert Decimal to string for JSON payloads."""
    return str(value) if value is not None else None


class ReceiptPipeline:
    """Parse, score and validate one OCR transcript at a time."""

    def __init__(
        self,
        parser: Optional[ReceiptParser] = None,
        validator: Optional[ReceiptValidator] = None,
        today: Optional[date] = None,
        recorder=None,
    ):
        self.recorder = recorder or default_recorder()
        self.today = today
        self.parser = parser or ReceiptParser(today=today, recorder=self.recorder)
        self.validator = validator or ReceiptValidator(today=today, recorder=self.recorder)

    def process(
        self,
        text: str,
        engine_confidence: Optional[float] = None,
        field_date: Optional[str] = None,
        engine: Union[OcrEngine, str, None] = None,
        engine_confidences: Optional[Sequence[Optional[float]]] = None,
    ) -> ParsedReceipt:
        """
        Turn an OCR transcript into a validated receipt.

        Args:
            text: OCR-extracted text
            engine_confidence: Page confidence already in 0-100
            field_date: Date field from a structured OCR response; wins over
                the date found in the text when it normalizes to a valid date
            engine: Engine that produced engine_confidences
            engine_confidences: Raw per-field or per-annotation confidences

        Returns:
            ParsedReceipt

        Raises:
            EmptyInputError: If the text is empty
        """
        draft = self.parser.parse(text)

        if field_date:
            structured = format_date_for_storage(field_date, today=self.today)
            if structured:
                if draft.date and draft.date != structured:
                    logger.debug("Structured date overrides text date", extra={
                        "text_date": draft.date,
                        "field_date": structured,
                    })
                draft.date = structured

        if engine is not None and engine_confidences is not None:
            draft.ocr_confidence = aggregate_confidence(engine, engine_confidences)
        elif engine_confidence is not None:
            draft.ocr_confidence = clamp_confidence(engine_confidence)

        receipt = self.validator.validate(draft)

        logger.info("Receipt processed", extra={
            "store_name": receipt.store_name,
            "date": receipt.date,
            "total": _decimal_to_str(receipt.total),
            "item_count": len(receipt.items),
            "needs_review": receipt.needs_review,
        })
        return receipt


def build_transaction_data(
    receipt: ParsedReceipt,
    user_id: str,
    category_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Map a validated receipt onto an expense transaction payload.

    Amounts are serialized as strings to keep Decimal precision.
    """
    return {
        "user_id": user_id,
        "category_id": category_id,
        "amount": _decimal_to_str(receipt.total if receipt.total is not None else Decimal('0')),
        "type": "expense",
        "description": f"Purchase at {receipt.store_name}",
        "date": receipt.date,
        "receipt": {
            "store_name": receipt.store_name,
            "receipt_number": receipt.receipt_number,
            "items": [
                {
                    "name": item.name,
                    "price": _decimal_to_str(item.price),
                    "quantity": item.quantity,
                    "unit_price": _decimal_to_str(item.unit_price),
                }
                for item in receipt.items
            ],
            "subtotal": _decimal_to_str(receipt.subtotal),
            "tax": _decimal_to_str(receipt.tax),
            "total": _decimal_to_str(receipt.total),
            "ocr_confidence": receipt.ocr_confidence,
            "needs_review": receipt.needs_review,
            "review_reason": receipt.review_reason,
        },
    }
