"""
Per-line field extractors.

Each extractor looks at one trimmed OCR line (items also peek at the next
line) and returns a typed value or None. None of them raise.
"""

import re
from decimal import Decimal
from typing import List, Optional

from receipt_ocr.config import settings
from receipt_ocr.models.receipt import LineItem
from receipt_ocr.utils.money import parse_money, round_half_up
from receipt_ocr.utils.patterns import PatternSpec, any_match

# "$1,234.56", "5.75", "$ 5.75"
AMOUNT = r'(\d{1,3}(?:,\d{3})+\.\d{2}|\d+\.\d{2})'

# Label words that follow "Receipt" on header lines are not receipt numbers
_REF_TOKEN = r'(?!(?:date|time|total|copy)\b)([A-Za-z0-9]{3,})'
_REF_LABEL = r'\s*(?:no\.?|num(?:ber)?|id)?\s*[#:\s]+'


def _amount_patterns(*labels: tuple) -> List[PatternSpec]:
    return [
        PatternSpec(
            name=name,
            pattern=label + r'[:\s]*\$?\s*' + AMOUNT,
            example=example,
        )
        for name, label, example in labels
    ]


STORE_NAME_REJECT_PATTERNS = [
    PatternSpec(name='embedded_date', pattern=r'\d{1,4}[-/.]\d{1,2}[-/.]\d{1,4}', example='01/15/2024'),
    PatternSpec(name='price', pattern=r'\$\s*\d+\.\d{2}', example='$3.50'),
    PatternSpec(name='summary_words', pattern=r'\b(?:sub\s*total|total|tax|receipts?)\b', example='TOTAL'),
    PatternSpec(name='contact_words', pattern=r'\b(?:phone|tel|address)\b', example='Tel: 555-0100'),
    PatternSpec(name='pure_digits', pattern=r'^\d+$', example='0042'),
    PatternSpec(name='decoration', pattern=r'^[*\-=\s]+$', example='*****'),
    PatternSpec(
        name='bare_number',
        pattern=r'(?:^|\s)\d+(?=\s|$)',
        example='STORE 123',
        notes='Store numbers, street numbers and OCR noise are not merchant names',
    ),
]

RECEIPT_NUMBER_PATTERNS = [
    PatternSpec(name='receipt', pattern=r'\breceipt' + _REF_LABEL + _REF_TOKEN, example='Receipt #A1234'),
    PatternSpec(name='ref', pattern=r'\bref(?:erence)?' + _REF_LABEL + _REF_TOKEN, example='Ref: 99812'),
    PatternSpec(name='transaction', pattern=r'\btrans(?:action)?' + _REF_LABEL + _REF_TOKEN, example='Transaction 55123'),
    PatternSpec(name='bare_hash', pattern=r'#\s*' + _REF_TOKEN, example='#00451'),
]

TOTAL_PATTERNS = _amount_patterns(
    ('total', r'total', 'Total: $5.75'),
    ('amount', r'amount', 'Amount $5.75'),
    ('balance', r'balance', 'Balance 5.75'),
    ('grand_total', r'grand\s+total', 'Grand Total $5.75'),
    ('final', r'final', 'Final $5.75'),
)

STRONG_TOTAL_PATTERNS = [
    PatternSpec(name='strong_total', pattern=r'total|amount|balance|final', example='GRAND TOTAL'),
]

TAX_PATTERNS = _amount_patterns(
    ('tax', r'tax', 'Tax: $0.46'),
    ('gst', r'gst', 'GST 0.25'),
    ('vat', r'vat', 'VAT $1.20'),
    ('hst', r'hst', 'HST $0.75'),
)

SUBTOTAL_PATTERNS = _amount_patterns(
    ('subtotal', r'sub\s*total', 'Subtotal: $5.29'),
    ('sub', r'sub', 'SUB 5.29'),
)

NON_ITEM_PATTERNS = [
    PatternSpec(name='summary', pattern=r'total|subtotal|tax|discount|change', example='CHANGE DUE 4.25'),
    PatternSpec(name='tax_codes', pattern=r'\b(?:gst|vat|hst)\b', example='VAT 0.24'),
    PatternSpec(name='courtesy', pattern=r'thank\s+you|welcome|visit', example='Thank you for shopping'),
    PatternSpec(name='leading_date', pattern=r'^\d{1,4}[-/.]\d{1,2}[-/.]\d{1,4}', example='01/15/2024 14:32'),
    PatternSpec(name='contact', pattern=r'phone|address|receipt', example='Phone 555-0100'),
    PatternSpec(name='decoration', pattern=r'^[*\-=\s]+$', example='=========='),
    PatternSpec(name='payment', pattern=r'cash|credit|debit|card', example='VISA CARD 5.75'),
    PatternSpec(name='staff', pattern=r'^(?:cashier|server|store)', example='Cashier: Dana'),
]

# Shapes are disjoint: name_price never starts with a bare quantity and never contains "@"
ITEM_PATTERNS = [
    PatternSpec(name='name_price', pattern=r'^(?!\d+\s)([^@]+?)\s+\$?' + AMOUNT + r'$', example='Milk $3.50'),
    PatternSpec(name='qty_name_price', pattern=r'^(\d+)\s+([^@]+?)\s+\$?' + AMOUNT + r'$', example='2 Milk $7.00'),
    PatternSpec(
        name='unit_price',
        pattern=r'^(.+?)\s+@\s+\$?' + AMOUNT + r'\s*=?\s*\$?' + AMOUNT + r'$',
        example='Apples @ $1.50 = $4.50',
    ),
    PatternSpec(name='name_only', pattern=r'^([A-Za-z].{2,30})$', example='Organic Bananas'),
]

PRICE_ONLY = PatternSpec(name='price_only', pattern=r'^\$?' + AMOUNT + r'$', example='$2.49')


def is_store_name(line: str) -> bool:
    """Whether a header line looks like a merchant name."""
    if any_match(STORE_NAME_REJECT_PATTERNS, line):
        return False
    return bool(re.search(r'[A-Za-z]{2,}', line)) and 3 <= len(line) <= 50


def clean_store_name(line: str) -> str:
    line = re.sub(r'[*\-=]{2,}', '', line)
    line = re.sub(r'^\W+|\W+$', '', line)
    return line.strip()


def extract_store_name(line: str, index: int, max_lines: Optional[int] = None) -> Optional[str]:
    """
    Store name from one of the first few lines.

    Args:
        line: Trimmed line
        index: Line index within the receipt
        max_lines: Number of leading lines eligible (settings.STORE_NAME_MAX_LINES)

    Returns:
        Cleaned store name or None
    """
    if max_lines is None:
        max_lines = settings.STORE_NAME_MAX_LINES
    if index >= max_lines or not is_store_name(line):
        return None
    return clean_store_name(line) or None


def extract_receipt_number(line: str) -> Optional[str]:
    for spec in RECEIPT_NUMBER_PATTERNS:
        match = spec.compiled.search(line)
        if match:
            return match.group(1)
    return None


def _first_amount(specs: List[PatternSpec], line: str) -> Optional[Decimal]:
    for spec in specs:
        match = spec.compiled.search(line)
        if match:
            amount = parse_money(match.group(1))
            if amount is not None:
                return amount
    return None


def extract_total(line: str, ceiling: Optional[Decimal] = None) -> Optional[Decimal]:
    """Total amount, accepted only when 0 < amount < ceiling."""
    if ceiling is None:
        ceiling = Decimal(str(settings.TOTAL_CEILING))
    for spec in TOTAL_PATTERNS:
        match = spec.compiled.search(line)
        if not match:
            continue
        amount = parse_money(match.group(1))
        if amount is not None and 0 < amount < ceiling:
            return amount
    return None


def is_strong_total_line(line: str) -> bool:
    """Lines allowed to replace an earlier total."""
    return any_match(STRONG_TOTAL_PATTERNS, line)


def extract_tax(line: str) -> Optional[Decimal]:
    return _first_amount(TAX_PATTERNS, line)


def extract_subtotal(line: str) -> Optional[Decimal]:
    return _first_amount(SUBTOTAL_PATTERNS, line)


def is_non_item_line(line: str) -> bool:
    return any_match(NON_ITEM_PATTERNS, line)


def extract_line_item(line: str, next_line: str = '') -> Optional[LineItem]:
    """
    Line item from one of four shapes, tried in order.

    1. "Milk $3.50"               -> quantity 1
    2. "2 Milk $7.00"             -> quantity 2
    3. "Apples @ $1.50 = $4.50"   -> quantity round(total / unit)
    4. "Organic Bananas" followed by a "$2.49" line -> quantity 1
    """
    if is_non_item_line(line):
        return None

    name_price, qty_name_price, unit_price, name_only = ITEM_PATTERNS

    match = name_price.compiled.match(line)
    if match:
        price = parse_money(match.group(2))
        if price is not None:
            return LineItem(name=match.group(1).strip(), price=price)

    match = qty_name_price.compiled.match(line)
    if match:
        price = parse_money(match.group(3))
        if price is not None:
            return LineItem(
                name=match.group(2).strip(),
                price=price,
                quantity=max(1, int(match.group(1))),
            )

    match = unit_price.compiled.match(line)
    if match:
        unit = parse_money(match.group(2))
        price = parse_money(match.group(3))
        if unit is not None and price is not None:
            quantity = round_half_up(price / unit) if unit > 0 else 1
            return LineItem(
                name=match.group(1).strip(),
                price=price,
                quantity=max(1, quantity),
                unit_price=unit,
            )

    match = name_only.compiled.match(line)
    if match and next_line:
        price_match = PRICE_ONLY.compiled.match(next_line.strip())
        if price_match:
            price = parse_money(price_match.group(1))
            if price is not None:
                return LineItem(name=match.group(1).strip(), price=price)

    return None
