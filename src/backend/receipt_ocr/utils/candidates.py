"""
Candidate dataclasses for date extraction scoring.

Each candidate represents a potential extracted value with metadata
used for scoring and selection.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
import re


class DateTag(str, Enum):
    """Closed set of date pattern families."""
    US_FULL = 'US_FULL'
    EU_FULL = 'EU_FULL'
    ISO = 'ISO'
    SHORT_YEAR = 'SHORT_YEAR'
    MONTH_NAME_SHORT = 'MONTH_NAME_SHORT'
    MONTH_NAME_FULL = 'MONTH_NAME_FULL'
    REVERSE_MONTH_NAME = 'REVERSE_MONTH_NAME'
    COMPACT = 'COMPACT'
    WITH_TIME = 'WITH_TIME'
    RECEIPT_DATE = 'RECEIPT_DATE'
    TRANSACTION_DATE = 'TRANSACTION_DATE'


@dataclass(frozen=True)
class RawDate:
    """A date-like substring matched by one pattern family."""
    raw_text: str
    tag: DateTag
    position: int
    groups: tuple


@dataclass
class DateCandidate:
    """
    A raw date resolved to a calendar date.

    Scoring factors:
    - tag: Pattern family (ISO and month names are unambiguous)
    - context_keywords: Receipt words found anywhere in the source text
    - is_iso_token: Matched text is exactly YYYY-MM-DD or YYYY/MM/DD
    """
    value: date
    tag: DateTag
    raw_text: str
    position: int
    context_keywords: frozenset = frozenset()
    is_iso_token: bool = False

    @property
    def iso(self) -> str:
        return self.value.isoformat()


CONTEXT_KEYWORDS = ('date', 'transaction', 'receipt', 'purchase')

_ISO_TOKEN = re.compile(r'^\d{4}[-/]\d{2}[-/]\d{2}$')


def create_date_candidate(raw: RawDate, value: date, text: str) -> DateCandidate:
    """
    Create DateCandidate with computed context flags.

    Args:
        raw: Matched raw date
        value: Calendar date produced by the family parser
        text: Full source text for context analysis

    Returns:
        DateCandidate with computed flags
    """
    lower_text = text.lower()
    context_keywords = frozenset(kw for kw in CONTEXT_KEYWORDS if kw in lower_text)

    return DateCandidate(
        value=value,
        tag=raw.tag,
        raw_text=raw.raw_text,
        position=raw.position,
        context_keywords=context_keywords,
        is_iso_token=bool(_ISO_TOKEN.match(raw.raw_text)),
    )
