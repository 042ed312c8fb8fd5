"""
Receipt models.

ReceiptDraft is the parser's per-call accumulator; ParsedReceipt is the
validated, frozen record handed to callers.
"""

from dataclasses import dataclass, field
from datetime import date as calendar_date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

REASON_SEPARATOR = "; "


class LineItem(BaseModel):
    """One purchased product or service entry."""
    name: str
    price: Decimal
    quantity: int = Field(default=1, ge=1)
    unit_price: Optional[Decimal] = None

    class Config:
        frozen = True


@dataclass
class ReceiptDraft:
    """Pre-validation parse result. Only the parser and validator touch it."""
    raw_text: str
    store_name: Optional[str] = None
    date: Optional[str] = None  # YYYY-MM-DD
    receipt_number: Optional[str] = None
    items: List[LineItem] = field(default_factory=list)
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Optional[Decimal] = None
    ocr_confidence: float = 0.0
    needs_review: bool = False
    review_reasons: List[str] = field(default_factory=list)


class ParsedReceipt(BaseModel):
    """Validated receipt record."""
    store_name: Optional[str] = None
    date: str  # Store as string (YYYY-MM-DD)
    receipt_number: Optional[str] = None
    items: List[LineItem] = []
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Optional[Decimal] = None
    raw_text: str = ""
    ocr_confidence: float = Field(default=0.0, ge=0, le=100)
    needs_review: bool = False
    review_reason: Optional[str] = None

    class Config:
        frozen = True

    @field_validator('date')
    @classmethod
    def _check_iso_date(cls, value: str) -> str:
        return calendar_date.fromisoformat(value).isoformat()

    @property
    def review_reasons(self) -> List[str]:
        if not self.review_reason:
            return []
        return self.review_reason.split(REASON_SEPARATOR)
