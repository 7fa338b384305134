"""Parser for free-text manual expense logs.

Each expense is one line: ``DD/MM - description - amount [total]``, with an
optional two- or four-digit year after the month. Yearless dates take the
caller's reference year.
"""

import re
from typing import Optional

from finance_ingest.models.transaction import Direction, RawTransaction, SourceKind
from finance_ingest.parsers.base import ParseOutcome, require_content
from finance_ingest.utils.date_utils import UnparseableDateError, parse_date
from finance_ingest.utils.decimal_utils import parse_amount
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

DATE_PREFIX_PATTERN = re.compile(r"^\d{1,2}/\d{1,2}\b")

EXPENSE_LINE_PATTERN = re.compile(
    r"^(?P<day>\d{1,2})/(?P<month>\d{1,2})(?:/(?P<year>\d{4}|\d{2}))?"
    r"\s*-\s*(?P<description>.+?)\s*-\s*"
    r"(?P<amount>(?:rs\.?|inr|[₹$£€])?\s*[\d,]+(?:\.\d+)?)"
    r"(?:\s*total\b.*)?\s*$",
    re.IGNORECASE,
)


class ManualExpenseParser:
    """Turn a manual expense log into debit transactions."""

    def __init__(self, reference_year: Optional[int], currency: str = "INR"):
        """Initialize the parser.

        Args:
            reference_year: Year for entries written without one.
            currency: ISO currency code assigned to every entry.
        """
        self.reference_year = reference_year
        self.currency = currency

    def parse(self, text: str, source: str = "manual") -> ParseOutcome:
        """Parse a manual expense log.

        Lines that do not start with a DD/MM date are ignored. Date-prefixed
        lines that do not fit the expense shape, or name an impossible date,
        are counted as malformed.

        Raises:
            EmptyInputError: If the text is blank.
        """
        lines = require_content(text, source)
        outcome = ParseOutcome(source=source)

        for index, raw_line in enumerate(lines):
            line = raw_line.strip()
            if not DATE_PREFIX_PATTERN.match(line):
                continue

            line_number = index + 1
            outcome.records_seen += 1

            match = EXPENSE_LINE_PATTERN.match(line)
            if match is None:
                outcome.skip(line_number, f"not an expense entry: {line[:50]!r}")
                continue

            year = match.group("year")
            date_text = f"{match.group('day')}/{match.group('month')}"
            if year is None:
                hint = "DD/MM"
            else:
                hint = "DD/MM/YYYY" if len(year) == 4 else "DD/MM/YY"
                date_text = f"{date_text}/{year}"

            try:
                txn_date = parse_date(date_text, hint, reference_year=self.reference_year)
            except UnparseableDateError as e:
                outcome.skip(line_number, str(e))
                continue

            try:
                amount, _ = parse_amount(match.group("amount"))
            except ValueError as e:
                outcome.skip(line_number, f"invalid amount: {e}")
                continue

            if amount == 0:
                outcome.zero_amount += 1
                continue

            outcome.transactions.append(
                RawTransaction(
                    date=txn_date,
                    description=" ".join(match.group("description").split()),
                    amount=amount,
                    direction=Direction.DEBIT,
                    currency=self.currency,
                    source=SourceKind.MANUAL,
                    source_line_number=line_number,
                )
            )

        logger.info(f"Parsed {len(outcome.transactions)} manual expenses from {source}")
        return outcome
