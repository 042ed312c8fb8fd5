"""
Validator and review classifier.

Turns a parser draft into a final ParsedReceipt: fills safe defaults,
collects review reasons and merges duplicate line items. Never raises on
content problems; the review flag is the error channel.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from receipt_ocr.config import settings
from receipt_ocr.models.receipt import REASON_SEPARATOR, LineItem, ParsedReceipt, ReceiptDraft
from receipt_ocr.utils.dates import current_date_fallback
from receipt_ocr.utils.events import default_recorder
from receipt_ocr.utils.money import sum_amounts

NO_DATE_REASON = "No date found in receipt."
NO_STORE_REASON = "Store name not detected."
ITEMS_MISMATCH_REASON = "Items total does not match receipt total."
LOW_CONFIDENCE_REASON = "Low OCR confidence."


def deduplicate_items(items: List[LineItem]) -> List[LineItem]:
    """
    Merge items sharing (name, price), summing quantities.

    The first occurrence keeps its position and its other fields.
    """
    merged: Dict[Tuple[str, Decimal], LineItem] = {}
    for item in items:
        key = (item.name, item.price)
        if key in merged:
            existing = merged[key]
            merged[key] = existing.model_copy(update={'quantity': existing.quantity + item.quantity})
        else:
            merged[key] = item
    return list(merged.values())


def items_mismatch_total(items: List[LineItem], total: Optional[Decimal], tolerance: Decimal) -> bool:
    """
    True when a positive item sum differs from the total by more than tolerance * total.

    The sum is over printed lines before duplicates are merged; each price is
    already the line amount, so quantities are not multiplied in.
    """
    if total is None or total <= 0:
        return False
    items_total = sum_amounts(item.price for item in items)
    if items_total <= 0:
        return False
    return abs(items_total - total) > total * tolerance


class ReceiptValidator:
    """Applies the review rules in order and freezes the result."""

    def __init__(
        self,
        today: Optional[date] = None,
        recorder=None,
        unknown_store_name: Optional[str] = None,
        items_tolerance: Optional[float] = None,
        min_ocr_confidence: Optional[float] = None,
    ):
        self.today = today
        self.recorder = recorder or default_recorder()
        self.unknown_store_name = unknown_store_name or settings.UNKNOWN_STORE_NAME
        tolerance = items_tolerance if items_tolerance is not None else settings.ITEMS_TOTAL_TOLERANCE
        self.items_tolerance = Decimal(str(tolerance))
        self.min_ocr_confidence = (
            min_ocr_confidence if min_ocr_confidence is not None
            else settings.REVIEW_MIN_OCR_CONFIDENCE
        )

    def validate(self, receipt: Union[ReceiptDraft, ParsedReceipt]) -> ParsedReceipt:
        """
        Validate a draft (or re-validate a finished receipt).

        Rules, in order:
        1. No date -> today, flagged
        2. No store name -> "Unknown Store", flagged
        3. Item sum off from the total by more than the tolerance -> flagged
        4. OCR confidence under the configured minimum -> flagged

        A ParsedReceipt already has merged items, so rule 3 is only checked
        on drafts; its earlier verdict is carried in its review reasons.
        """
        if isinstance(receipt, ParsedReceipt):
            reasons = receipt.review_reasons
            check_items = False
        else:
            reasons = list(receipt.review_reasons)
            check_items = True

        needs_review = receipt.needs_review or bool(reasons)

        def flag(reason: str) -> None:
            nonlocal needs_review
            needs_review = True
            if reason not in reasons:
                reasons.append(reason)
            self.recorder.record('validate.flag', {'reason': reason})

        receipt_date = receipt.date
        if not receipt_date:
            receipt_date = current_date_fallback(self.today)
            flag(NO_DATE_REASON)

        store_name = receipt.store_name
        if not store_name:
            store_name = self.unknown_store_name
            flag(NO_STORE_REASON)

        if check_items and items_mismatch_total(receipt.items, receipt.total, self.items_tolerance):
            flag(ITEMS_MISMATCH_REASON)

        ocr_confidence = max(0.0, min(100.0, float(receipt.ocr_confidence or 0.0)))
        if self.min_ocr_confidence is not None and ocr_confidence < self.min_ocr_confidence:
            flag(LOW_CONFIDENCE_REASON)

        result = ParsedReceipt(
            store_name=store_name,
            date=receipt_date,
            receipt_number=receipt.receipt_number,
            items=deduplicate_items(receipt.items),
            subtotal=receipt.subtotal,
            tax=receipt.tax,
            total=receipt.total,
            raw_text=receipt.raw_text,
            ocr_confidence=ocr_confidence,
            needs_review=needs_review,
            review_reason=REASON_SEPARATOR.join(reasons) if reasons else None,
        )

        self.recorder.record('validate.complete', {
            'needs_review': result.needs_review,
            'review_reason': result.review_reason,
            'item_count': len(result.items),
        })
        return result


def validate(receipt: Union[ReceiptDraft, ParsedReceipt], **options) -> ParsedReceipt:
    """Validate with a one-off ReceiptValidator (options are its constructor arguments)."""
    return ReceiptValidator(**options).validate(receipt)
