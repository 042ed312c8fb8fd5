"""
Date pattern library and disambiguator.

Scans OCR text with tagged pattern families, converts every match into a
calendar date, drops implausible ones and picks the best by score.

Numeric dates are the hard part: "03/04/2024" reads as March 4 (month
first) or April 3 (day first). A component greater than 12 settles it;
otherwise the configured DateOrder wins unless only the other reading is a
plausible receipt date.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional, Union
import re

from receipt_ocr.config import settings
from receipt_ocr.utils.candidates import DateCandidate, DateTag, RawDate, create_date_candidate
from receipt_ocr.utils.patterns import PatternSpec
from receipt_ocr.utils.scoring import score_date_candidate, select_best_date


class DateOrder(str, Enum):
    """Preferred reading for ambiguous numeric dates."""
    MDY = 'MDY'  # US: month first
    DMY = 'DMY'  # European: day first


MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

_SHORT_MONTHS = r'(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sept?|Oct|Nov|Dec)'
_FULL_MONTHS = r'(?:January|February|March|April|May|June|July|August|September|October|November|December)'
# A year followed by ".00" is the tail of a price ("MAR 2 18.00")
_YEAR_END = r'(?!\d|[.,]\d)'


@dataclass(frozen=True)
class DateWindow:
    """Plausibility window for receipt dates plus the ambiguity preference."""
    today: date
    earliest: date
    latest: date
    order: DateOrder

    def contains(self, value: Optional[date]) -> bool:
        return value is not None and self.earliest <= value <= self.latest


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return day.replace(year=day.year - years, day=28)


def build_window(
    today: Optional[date] = None,
    date_order: Union[DateOrder, str, None] = None,
    lookback_years: Optional[int] = None,
    lookahead_days: Optional[int] = None,
) -> DateWindow:
    today = today or date.today()
    if lookback_years is None:
        lookback_years = settings.DATE_LOOKBACK_YEARS
    if lookahead_days is None:
        lookahead_days = settings.DATE_LOOKAHEAD_DAYS
    return DateWindow(
        today=today,
        earliest=_years_before(today, lookback_years),
        latest=today + timedelta(days=lookahead_days),
        order=coerce_date_order(date_order),
    )


def coerce_date_order(value: Union[DateOrder, str, None]) -> DateOrder:
    if value is None:
        value = settings.DATE_ORDER_PREFERENCE
    if isinstance(value, DateOrder):
        return value
    return DateOrder(str(value).strip().upper())


def normalize_year(year: int) -> int:
    """Expand 2-digit years: 00-30 -> 2000s, 31-99 -> 1900s."""
    if year >= 1900:
        return year
    if 0 <= year <= 99:
        return 2000 + year if year <= 30 else 1900 + year
    return year


def _make_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def resolve_numeric_date(first: int, second: int, year: int, window: DateWindow) -> Optional[date]:
    """
    Resolve a numeric date whose day/month order is not fixed by the pattern.

    Args:
        first: First captured number
        second: Second captured number
        year: Four-digit year
        window: Plausibility window and order preference

    Returns:
        The chosen calendar date, or None if neither reading is a real date
    """
    if first > 12:
        return _make_date(year, second, first)  # day first
    if second > 12:
        return _make_date(year, first, second)  # month first

    month_first = _make_date(year, first, second)
    day_first = _make_date(year, second, first)
    if window.order is DateOrder.MDY:
        preferred, other = month_first, day_first
    else:
        preferred, other = day_first, month_first

    if window.contains(other) and not window.contains(preferred):
        return other
    return preferred or other


DateParser = Callable[[tuple, DateWindow], Optional[date]]


def _numeric_family(reading: DateOrder) -> DateParser:
    """
    Parser for the NN/NN/YYYY glyph shape read in one fixed order.

    The family matching the preferred order resolves ambiguity; the other
    family only contributes when its reading is forced by a number > 12.
    """
    def parser(groups: tuple, window: DateWindow) -> Optional[date]:
        first, second = int(groups[0]), int(groups[1])
        year = normalize_year(int(groups[2]))
        if reading is not window.order:
            forced = first > 12 if reading is DateOrder.DMY else second > 12
            if not forced:
                return None
        return resolve_numeric_date(first, second, year, window)
    return parser


def _parse_ambiguous(groups: tuple, window: DateWindow) -> Optional[date]:
    return resolve_numeric_date(
        int(groups[0]), int(groups[1]), normalize_year(int(groups[2])), window
    )


def _parse_year_first(groups: tuple, window: DateWindow) -> Optional[date]:
    return _make_date(int(groups[0]), int(groups[1]), int(groups[2]))


def _parse_month_name(month_str: str, day: str, year: str) -> Optional[date]:
    month = MONTHS.get(month_str[:3].lower())
    if month is None:
        return None
    return _make_date(normalize_year(int(year)), month, int(day))


def _parse_month_day_year(groups: tuple, window: DateWindow) -> Optional[date]:
    return _parse_month_name(groups[0], groups[1], groups[2])


def _parse_day_month_year(groups: tuple, window: DateWindow) -> Optional[date]:
    return _parse_month_name(groups[1], groups[0], groups[2])


@dataclass(frozen=True)
class DatePatternSpec(PatternSpec):
    """A PatternSpec tagged with its date family and group parser."""
    tag: DateTag = None
    parser: DateParser = None


DATE_PATTERNS: List[DatePatternSpec] = [
    DatePatternSpec(
        name='us_full',
        pattern=r'(?<!\d)(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})(?!\d)',
        example='01/15/2024',
        notes='Month-first reading of the full-year numeric shape',
        tag=DateTag.US_FULL,
        parser=_numeric_family(DateOrder.MDY),
    ),
    DatePatternSpec(
        name='eu_full',
        pattern=r'(?<!\d)(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})(?!\d)',
        example='25.12.2024',
        notes='Day-first reading of the same shape',
        tag=DateTag.EU_FULL,
        parser=_numeric_family(DateOrder.DMY),
    ),
    DatePatternSpec(
        name='iso',
        pattern=r'(?<!\d)(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})(?!\d)',
        example='2024-01-15',
        tag=DateTag.ISO,
        parser=_parse_year_first,
    ),
    DatePatternSpec(
        name='short_year',
        pattern=r'(?<!\d)(\d{1,2})[-/.](\d{1,2})[-/.](\d{2})(?!\d)',
        example='01/15/24',
        tag=DateTag.SHORT_YEAR,
        parser=_parse_ambiguous,
    ),
    DatePatternSpec(
        name='month_name_short',
        pattern=r'\b(' + _SHORT_MONTHS + r')\b[.,\s]+(\d{1,2})[.,\s]+(\d{2,4})' + _YEAR_END,
        example='Jan 15, 2024',
        tag=DateTag.MONTH_NAME_SHORT,
        parser=_parse_month_day_year,
    ),
    DatePatternSpec(
        name='month_name_full',
        pattern=r'\b(' + _FULL_MONTHS + r')\b[.,\s]+(\d{1,2})[.,\s]+(\d{2,4})' + _YEAR_END,
        example='January 15, 2024',
        tag=DateTag.MONTH_NAME_FULL,
        parser=_parse_month_day_year,
    ),
    DatePatternSpec(
        name='reverse_month_name',
        pattern=r'(?<!\d)(\d{1,2})[.,\s]+(' + _FULL_MONTHS + '|' + _SHORT_MONTHS + r')\b[.,\s]+(\d{2,4})' + _YEAR_END,
        example='15 January 2024',
        notes='Also accepts abbreviations (15 Jan 2024)',
        tag=DateTag.REVERSE_MONTH_NAME,
        parser=_parse_day_month_year,
    ),
    DatePatternSpec(
        name='compact',
        pattern=r'(?<!\d)(\d{4})(\d{2})(\d{2})(?!\d)',
        example='20240115',
        tag=DateTag.COMPACT,
        parser=_parse_year_first,
    ),
    DatePatternSpec(
        name='with_time',
        pattern=r'(?<!\d)(\d{1,2})[-/.](\d{1,2})[-/.](\d{2,4})\s+\d{1,2}:\d{2}',
        example='01/15/2024 14:32',
        tag=DateTag.WITH_TIME,
        parser=_parse_ambiguous,
    ),
    DatePatternSpec(
        name='receipt_date',
        pattern=r'date[:\s]*(\d{1,2})[-/.](\d{1,2})[-/.](\d{2,4})(?!\d)',
        example='Date: 01/15/2024',
        tag=DateTag.RECEIPT_DATE,
        parser=_parse_ambiguous,
    ),
    DatePatternSpec(
        name='transaction_date',
        pattern=r'trans[a-z]*\.?[:\s]*(\d{1,2})[-/.](\d{1,2})[-/.](\d{2,4})(?!\d)',
        example='Transaction: 01/15/2024',
        tag=DateTag.TRANSACTION_DATE,
        parser=_parse_ambiguous,
    ),
]

_PATTERNS_BY_TAG = {spec.tag: spec for spec in DATE_PATTERNS}


def find_raw_dates(text: str) -> List[RawDate]:
    """Every date-like substring in ``text``, family by family, in table order."""
    raw_dates = []
    for spec in DATE_PATTERNS:
        for match in spec.compiled.finditer(text):
            raw_dates.append(RawDate(
                raw_text=match.group(0),
                tag=spec.tag,
                position=match.start(),
                groups=match.groups(),
            ))
    return raw_dates


def find_date_candidates(
    text: str,
    date_order: Union[DateOrder, str, None] = None,
    today: Optional[date] = None,
    recorder=None,
) -> List[DateCandidate]:
    """
    Resolve and score every date-like substring in ``text``.

    Args:
        text: Any text (a full receipt or a single line)
        date_order: Preferred reading for ambiguous numeric dates
        today: Reference date for the plausibility window
        recorder: Optional event recorder

    Returns:
        Candidates that are real calendar dates inside the window
    """
    if not text or not isinstance(text, str):
        return []

    window = build_window(today=today, date_order=date_order)
    candidates = []

    for raw in find_raw_dates(text):
        value = _PATTERNS_BY_TAG[raw.tag].parser(raw.groups, window)
        if not window.contains(value):
            if recorder is not None:
                recorder.record('date.rejected', {
                    'raw_text': raw.raw_text,
                    'tag': raw.tag.value,
                    'value': value.isoformat() if value else None,
                })
            continue

        candidate = create_date_candidate(raw, value, text)
        candidates.append(candidate)
        if recorder is not None:
            recorder.record('date.candidate', {
                'raw_text': raw.raw_text,
                'tag': raw.tag.value,
                'value': candidate.iso,
                'score': score_date_candidate(candidate),
            })

    return candidates


def extract_best_date(
    text: str,
    date_order: Union[DateOrder, str, None] = None,
    today: Optional[date] = None,
    recorder=None,
) -> Optional[str]:
    """
    Extract the most likely receipt date from ``text``.

    Args:
        text: Text that may contain a date
        date_order: Preferred reading for ambiguous numeric dates
            (defaults to settings.DATE_ORDER_PREFERENCE)
        today: Reference date (defaults to date.today())
        recorder: Optional event recorder

    Returns:
        ISO date string (YYYY-MM-DD), or None when no candidate survives

    Examples:
        >>> extract_best_date("03/04/2024", today=date(2024, 6, 1))
        '2024-03-04'
        >>> extract_best_date("25/12/2024", today=date(2025, 1, 1))
        '2024-12-25'
    """
    today = today or date.today()
    candidates = find_date_candidates(text, date_order=date_order, today=today, recorder=recorder)

    result = select_best_date(candidates, today, return_score=True)
    if not result:
        if recorder is not None:
            recorder.record('date.none', {'text_length': len(text or '')})
        return None

    best, score = result
    if recorder is not None:
        recorder.record('date.selected', {
            'raw_text': best.raw_text,
            'tag': best.tag.value,
            'value': best.iso,
            'score': score,
            'candidate_count': len(candidates),
        })
    return best.iso


def format_date_for_storage(
    value: Union[date, datetime, str, None],
    today: Optional[date] = None,
) -> Optional[str]:
    """
    Normalize a date value to an ISO string if it is a plausible receipt date.

    Accepts date/datetime objects, ISO strings, or any text that
    extract_best_date understands.
    """
    if value is None:
        return None

    window = build_window(today=today)

    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat() if window.contains(value) else None

    if not isinstance(value, str) or not value.strip():
        return None

    stripped = value.strip()
    if re.match(r'^\d{4}-\d{2}-\d{2}', stripped):
        try:
            parsed = date.fromisoformat(stripped[:10])
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed.isoformat() if window.contains(parsed) else None

    return extract_best_date(stripped, today=window.today)


def current_date_fallback(today: Optional[date] = None) -> str:
    """Today's date as an ISO string."""
    return (today or date.today()).isoformat()
