"""
Receipt parser service for extracting structured data from OCR text.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from receipt_ocr.config import settings
from receipt_ocr.models.receipt import ReceiptDraft
from receipt_ocr.services import extractors
from receipt_ocr.utils.dates import DateOrder, coerce_date_order, extract_best_date
from receipt_ocr.utils.events import default_recorder


class EmptyInputError(ValueError):
    """Raised when there is no OCR text to parse."""


def split_lines(text: str) -> List[str]:
    """Trimmed, non-empty lines in document order."""
    return [line.strip() for line in text.split('\n') if line.strip()]


class ReceiptParser:
    """
    Single-pass, line-oriented receipt parser.

    Store name, date and receipt number keep their first match. A later
    total replaces an earlier one only from a strong total line. Tax and
    subtotal keep their last match. Every line is offered to the item
    extractor.
    """

    def __init__(
        self,
        date_order: Union[DateOrder, str, None] = None,
        today: Optional[date] = None,
        recorder=None,
        store_name_lines: Optional[int] = None,
        total_ceiling: Optional[Decimal] = None,
    ):
        self.date_order = coerce_date_order(date_order)
        self.today = today
        self.recorder = recorder or default_recorder()
        self.store_name_lines = store_name_lines if store_name_lines is not None else settings.STORE_NAME_MAX_LINES
        self.total_ceiling = (
            Decimal(str(total_ceiling)) if total_ceiling is not None
            else Decimal(str(settings.TOTAL_CEILING))
        )

    def parse(self, raw_text: str) -> ReceiptDraft:
        """
        Parse receipt text into a draft.

        Args:
            raw_text: OCR-extracted text from receipt

        Returns:
            ReceiptDraft with every field that was found

        Raises:
            EmptyInputError: If the text is missing or whitespace-only
        """
        if not raw_text or not isinstance(raw_text, str) or not raw_text.strip():
            raise EmptyInputError("No text extracted from receipt")

        lines = split_lines(raw_text)
        draft = ReceiptDraft(raw_text=raw_text)
        self.recorder.record('parse.start', {'line_count': len(lines)})

        for index, line in enumerate(lines):
            next_line = lines[index + 1] if index + 1 < len(lines) else ''
            self._consume_line(draft, index, line, next_line)

        self.recorder.record('parse.complete', {
            'store_name': draft.store_name is not None,
            'date': draft.date is not None,
            'item_count': len(draft.items),
            'total': str(draft.total) if draft.total is not None else None,
        })
        return draft

    def _consume_line(self, draft: ReceiptDraft, index: int, line: str, next_line: str) -> None:
        if draft.store_name is None:
            store_name = extractors.extract_store_name(line, index, max_lines=self.store_name_lines)
            if store_name:
                draft.store_name = store_name
                self.recorder.record('parse.store_name', {'line': index, 'value': store_name})

        if draft.date is None:
            found = extract_best_date(line, date_order=self.date_order, today=self.today)
            if found:
                draft.date = found
                self.recorder.record('parse.date', {'line': index, 'value': found})

        if draft.receipt_number is None:
            draft.receipt_number = extractors.extract_receipt_number(line)

        total = extractors.extract_total(line, ceiling=self.total_ceiling)
        if total is not None and (draft.total is None or extractors.is_strong_total_line(line)):
            draft.total = total
            self.recorder.record('parse.total', {'line': index, 'value': str(total)})

        tax = extractors.extract_tax(line)
        if tax is not None:
            draft.tax = tax

        subtotal = extractors.extract_subtotal(line)
        if subtotal is not None:
            draft.subtotal = subtotal

        item = extractors.extract_line_item(line, next_line)
        if item is not None:
            draft.items.append(item)
            self.recorder.record('parse.item', {
                'line': index,
                'name': item.name,
                'price': str(item.price),
                'quantity': item.quantity,
            })


def parse(raw_text: str, **options) -> ReceiptDraft:
    """Parse with a one-off ReceiptParser (options are its constructor arguments)."""
    return ReceiptParser(**options).parse(raw_text)
