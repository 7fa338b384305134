"""Date parsing and normalization utilities.

Statement dates are parsed against an explicit format hint taken from the
detected bank format. Slash-separated dates like "03/04/2025" are ambiguous
on their own; the hint decides whether that is 3 April or 4 March, and no
per-row guessing happens here.

Two-digit years pivot at 50: "49" is 2049 and "50" is 1950.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

MONTH_ABBREVIATIONS = [
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
]
MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

# Two-digit years below this pivot belong to the 2000s
TWO_DIGIT_YEAR_PIVOT = 50

# Optional trailing time component ("15/04/2025 10:32", "2025-04-15T10:32:11.000Z")
_TIME_SUFFIX = r"(?:[ T]\d{1,2}:\d{2}(?::\d{2})?(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?)?"


class UnparseableDateError(ValueError):
    """Raised when a date string cannot be read with the given format hint."""

    def __init__(self, value: str, format_hint: str, reason: str = ""):
        self.value = value
        self.format_hint = format_hint
        message = f"Cannot parse date '{value}' as {format_hint}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


@dataclass(frozen=True)
class DateFormat:
    """A supported format hint.

    Attributes:
        hint: The hint string, e.g. "DD/MM/YYYY".
        pattern: Compiled regex capturing the date parts.
        order: Part names in capture order ("d", "m", "y" or "mon").
        separator: Separator used when rendering a date in this layout.
        two_digit_year: Whether the year is written with two digits.
    """

    hint: str
    pattern: re.Pattern[str]
    order: tuple[str, ...]
    separator: str
    two_digit_year: bool = False
    has_year: bool = True


def _fmt(
    hint: str,
    body: str,
    order: tuple[str, ...],
    separator: str,
    two_digit_year: bool = False,
) -> DateFormat:
    return DateFormat(
        hint=hint,
        separator=separator,
        pattern=re.compile(rf"^{body}{_TIME_SUFFIX}$", re.IGNORECASE),
        order=order,
        two_digit_year=two_digit_year,
        has_year="y" in order,
    )


DATE_FORMATS: dict[str, DateFormat] = {
    f.hint: f
    for f in [
        _fmt("DD/MM/YYYY", r"(\d{1,2})/(\d{1,2})/(\d{4})", ("d", "m", "y"), "/"),
        _fmt("MM/DD/YYYY", r"(\d{1,2})/(\d{1,2})/(\d{4})", ("m", "d", "y"), "/"),
        _fmt("YYYY-MM-DD", r"(\d{4})-(\d{1,2})-(\d{1,2})", ("y", "m", "d"), "-"),
        _fmt("DD/MM/YY", r"(\d{1,2})/(\d{1,2})/(\d{2})", ("d", "m", "y"), "/", two_digit_year=True),
        _fmt("MM/DD/YY", r"(\d{1,2})/(\d{1,2})/(\d{2})", ("m", "d", "y"), "/", two_digit_year=True),
        _fmt("DD-MM-YYYY", r"(\d{1,2})-(\d{1,2})-(\d{4})", ("d", "m", "y"), "-"),
        _fmt("DD-MM-YY", r"(\d{1,2})-(\d{1,2})-(\d{2})", ("d", "m", "y"), "-", two_digit_year=True),
        _fmt("DD.MM.YYYY", r"(\d{1,2})\.(\d{1,2})\.(\d{4})", ("d", "m", "y"), "."),
        _fmt("DD MMM YYYY", r"(\d{1,2})\s+([a-z]{3,9})\.?\s+(\d{4})", ("d", "mon", "y"), " "),
        _fmt("DD-MMM-YYYY", r"(\d{1,2})-([a-z]{3,9})-(\d{4})", ("d", "mon", "y"), "-"),
        _fmt("DD/MM", r"(\d{1,2})/(\d{1,2})", ("d", "m"), "/"),
    ]
}

SUPPORTED_DATE_FORMATS = tuple(DATE_FORMATS)


def expand_two_digit_year(year: int) -> int:
    """Expand a two-digit year using the fixed pivot.

    Args:
        year: Year in the range 0-99.

    Returns:
        Four-digit year (20xx below the pivot, 19xx otherwise).
    """
    return 2000 + year if year < TWO_DIGIT_YEAR_PIVOT else 1900 + year


def _month_from_name(name: str) -> Optional[int]:
    name = name.lower()
    if name == "sept":
        return 9
    for number, (abbreviation, full) in enumerate(zip(MONTH_ABBREVIATIONS, MONTH_NAMES), start=1):
        if name in (abbreviation, full):
            return number
    return None


def parse_date(value: str, format_hint: str, reference_year: Optional[int] = None) -> date:
    """Parse a statement date using an explicit format hint.

    Args:
        value: Raw date string from the statement.
        format_hint: One of SUPPORTED_DATE_FORMATS.
        reference_year: Year to use for yearless hints such as "DD/MM".

    Returns:
        The parsed calendar date.

    Raises:
        UnparseableDateError: If the string does not fit the hint or does
            not name a real calendar day. Callers skip the row; a failed
            date is never replaced by today's date.
    """
    fmt = DATE_FORMATS.get(format_hint)
    if fmt is None:
        raise UnparseableDateError(value, format_hint, "unsupported format hint")

    cleaned = (value or "").strip().strip("'\"").strip()
    if not cleaned:
        raise UnparseableDateError(value, format_hint, "empty value")

    match = fmt.pattern.match(cleaned)
    if match is None:
        raise UnparseableDateError(value, format_hint, "does not match format")

    parts = dict(zip(fmt.order, match.groups()))

    if "mon" in parts:
        month = _month_from_name(parts["mon"])
        if month is None:
            raise UnparseableDateError(value, format_hint, f"unknown month '{parts['mon']}'")
    else:
        month = int(parts["m"])
    day = int(parts["d"])

    if fmt.has_year:
        year = int(parts["y"])
        if fmt.two_digit_year:
            year = expand_two_digit_year(year)
    elif reference_year is not None:
        year = reference_year
    else:
        raise UnparseableDateError(value, format_hint, "no year in value and no reference year")

    try:
        return date(year, month, day)
    except ValueError as e:
        raise UnparseableDateError(value, format_hint, str(e)) from e


def format_date(d: date, format_hint: str) -> str:
    """Render a date in the layout described by a format hint.

    This is the inverse of parse_date for every supported hint.

    Args:
        d: Date to format.
        format_hint: One of SUPPORTED_DATE_FORMATS.

    Returns:
        Formatted date string.

    Raises:
        ValueError: If the hint is unsupported.
    """
    fmt = DATE_FORMATS.get(format_hint)
    if fmt is None:
        raise ValueError(f"Unsupported date format hint: {format_hint}")

    rendered = {
        "d": f"{d.day:02d}",
        "m": f"{d.month:02d}",
        "mon": MONTH_ABBREVIATIONS[d.month - 1].title(),
        "y": f"{d.year % 100:02d}" if fmt.two_digit_year else f"{d.year:04d}",
    }

    return fmt.separator.join(rendered[part] for part in fmt.order)


def date_to_iso(d: date) -> str:
    """Convert a date to ISO 8601 format (YYYY-MM-DD).

    Args:
        d: Date to convert.

    Returns:
        ISO format date string.
    """
    return d.isoformat()

