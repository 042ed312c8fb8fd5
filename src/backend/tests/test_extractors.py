"""
Tests for per-line field extractors and money helpers.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from decimal import Decimal
import pytest

from receipt_ocr.services import extractors
from receipt_ocr.services.extractors import (
    extract_line_item,
    extract_receipt_number,
    extract_store_name,
    extract_subtotal,
    extract_tax,
    extract_total,
    is_non_item_line,
    is_strong_total_line,
)
from receipt_ocr.utils.money import parse_money, round_half_up, sum_amounts

PATTERN_TABLES = [
    extractors.STORE_NAME_REJECT_PATTERNS,
    extractors.RECEIPT_NUMBER_PATTERNS,
    extractors.TOTAL_PATTERNS,
    extractors.STRONG_TOTAL_PATTERNS,
    extractors.TAX_PATTERNS,
    extractors.SUBTOTAL_PATTERNS,
    extractors.NON_ITEM_PATTERNS,
    extractors.ITEM_PATTERNS,
]


class TestPatternTables:

    @pytest.mark.parametrize(
        "spec",
        [spec for table in PATTERN_TABLES for spec in table],
        ids=lambda spec: spec.name,
    )
    def test_example_matches_own_pattern(self, spec):
        assert spec.search(spec.example) is not None


class TestStoreName:

    def test_first_line(self):
        assert extract_store_name("SuperMart", 0) == "SuperMart"

    def test_cleans_decoration(self):
        assert extract_store_name("*** FRESH FOODS ***", 0) == "FRESH FOODS"

    def test_only_leading_lines(self):
        assert extract_store_name("SuperMart", 4) == "SuperMart"
        assert extract_store_name("SuperMart", 5) is None

    def test_max_lines_override(self):
        assert extract_store_name("SuperMart", 1, max_lines=1) is None

    @pytest.mark.parametrize("line", [
        "01/15/2024",
        "Milk $3.50",
        "TOTAL",
        "Sales Receipt",
        "Tel: 555-0100",
        "Phone 555-0100",
        "123 Main Street",
        "RANDOM NOISE 123",
        "0042",
        "*****",
        "ab",
        "!!",
        "x" * 51,
    ])
    def test_rejected(self, line):
        assert extract_store_name(line, 0) is None

    def test_contact_words_need_word_boundary(self):
        assert extract_store_name("Hotel Europa", 0) == "Hotel Europa"


class TestReceiptNumber:

    @pytest.mark.parametrize("line,expected", [
        ("Receipt #A1234", "A1234"),
        ("Receipt No. 55123", "55123"),
        ("REF#: 99812", "99812"),
        ("Reference: X9Y8Z7", "X9Y8Z7"),
        ("Transaction 55123", "55123"),
        ("#00451", "00451"),
        ("Receipt #ABCDEF", "ABCDEF"),
        ("Ref: XKQ", "XKQ"),
    ])
    def test_found(self, line, expected):
        assert extract_receipt_number(line) == expected

    @pytest.mark.parametrize("line", [
        "Receipt Date",
        "Receipt Date: 01/15/2024",
        "Receipt Total 5.75",
        "Thank you for your purchase",
        "#12",
        "Transaction",
    ])
    def test_not_found(self, line):
        assert extract_receipt_number(line) is None


class TestAmounts:

    def test_total(self):
        assert extract_total("Total: $5.75") == Decimal("5.75")

    def test_total_with_thousands(self):
        assert extract_total("GRAND TOTAL $1,234.56") == Decimal("1234.56")

    def test_total_keywords(self):
        assert extract_total("Amount 12.00") == Decimal("12.00")
        assert extract_total("Balance 9.99") == Decimal("9.99")
        assert extract_total("Final $3.10") == Decimal("3.10")

    def test_total_bounds(self):
        assert extract_total("Total $0.00") is None
        assert extract_total("Total $10000.00") is None
        assert extract_total("Total $9999.99") == Decimal("9999.99")
        assert extract_total("Total $50.00", ceiling=Decimal("40")) is None

    def test_total_needs_keyword(self):
        assert extract_total("Milk $3.50") is None

    def test_strong_total_line(self):
        assert is_strong_total_line("GRAND TOTAL")
        assert not is_strong_total_line("Milk $3.50")

    def test_tax(self):
        assert extract_tax("Tax: $0.46") == Decimal("0.46")
        assert extract_tax("GST 0.25") == Decimal("0.25")
        assert extract_tax("HST $0.75") == Decimal("0.75")
        assert extract_tax("Milk $3.50") is None

    def test_tax_has_no_magnitude_bound(self):
        assert extract_tax("VAT 25000.00") == Decimal("25000.00")

    def test_subtotal(self):
        assert extract_subtotal("Subtotal: $5.29") == Decimal("5.29")
        assert extract_subtotal("Sub Total 5.29") == Decimal("5.29")
        assert extract_subtotal("Total $5.75") is None


class TestLineItems:

    def test_name_price(self):
        item = extract_line_item("Milk $3.50")
        assert item.name == "Milk"
        assert item.price == Decimal("3.50")
        assert item.quantity == 1
        assert item.unit_price is None

    def test_name_price_without_symbol(self):
        item = extract_line_item("Coffee Beans 12.99")
        assert item.name == "Coffee Beans"
        assert item.price == Decimal("12.99")

    def test_quantity_name_price(self):
        item = extract_line_item("2 Milk $7.00")
        assert item.name == "Milk"
        assert item.quantity == 2
        assert item.price == Decimal("7.00")

    def test_zero_quantity_is_one(self):
        assert extract_line_item("0 Milk $7.00").quantity == 1

    def test_unit_price(self):
        item = extract_line_item("Apples @ $1.50 = $4.50")
        assert item.name == "Apples"
        assert item.quantity == 3
        assert item.unit_price == Decimal("1.50")
        assert item.price == Decimal("4.50")

    def test_unit_price_rounds_half_up(self):
        assert extract_line_item("Bananas @ $0.40 $1.00").quantity == 3

    def test_unit_price_zero(self):
        assert extract_line_item("Sample @ $0.00 = $0.00").quantity == 1

    def test_name_then_price_line(self):
        item = extract_line_item("Organic Bananas", "$2.49")
        assert item.name == "Organic Bananas"
        assert item.price == Decimal("2.49")

    def test_name_without_price_line(self):
        assert extract_line_item("Organic Bananas", "Milk $3.50") is None
        assert extract_line_item("Organic Bananas") is None

    @pytest.mark.parametrize("line", [
        "Total $5.75",
        "Subtotal 5.29",
        "Tax 0.46",
        "Discount 1.00",
        "Change 4.25",
        "Thank you 0.00",
        "01/15/2024 14:32",
        "Phone 555-0100",
        "Receipt #1234",
        "----------",
        "Cash $20.00",
        "VISA CARD 5.75",
        "Cashier: Dana",
        "Store 42",
    ])
    def test_non_item_lines(self, line):
        assert is_non_item_line(line)
        assert extract_line_item(line, "$1.00") is None


class TestMoney:

    @pytest.mark.parametrize("raw,expected", [
        ("$1,234.56", Decimal("1234.56")),
        ("3.50", Decimal("3.50")),
        ("$ 5.75", Decimal("5.75")),
        ("CAD 6.99", Decimal("6.99")),
        ("€2.00", Decimal("2.00")),
    ])
    def test_parse(self, raw, expected):
        assert parse_money(raw) == expected

    def test_negative(self):
        assert parse_money("-1.00") is None
        assert parse_money("(12.34)", allow_negative=True) == Decimal("-12.34")

    @pytest.mark.parametrize("raw", [None, "", "abc", "NaN", "$"])
    def test_unparseable(self, raw):
        assert parse_money(raw) is None

    def test_round_half_up(self):
        assert round_half_up(Decimal("2.5")) == 3
        assert round_half_up(Decimal("2.49")) == 2

    def test_sum_amounts(self):
        assert sum_amounts([Decimal("1.10"), None, Decimal("2.20")]) == Decimal("3.30")
