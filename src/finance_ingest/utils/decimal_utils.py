"""Decimal utilities for statement amounts.

All monetary values are Decimal. Amounts leaving this module are always
non-negative; the sign of the original value is carried by a Direction.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from finance_ingest.models.transaction import Direction

# Currency symbols and codes stripped from amount strings
CURRENCY_SYMBOLS = {"$", "€", "£", "¥", "₹", "₽", "₩", "₿"}
CURRENCY_PREFIXES = ("RS.", "RS", "INR", "GBP", "USD", "EUR")

# Parentheses-enclosed negatives: (£1,234.56) or (1234.56)
PARENS_NEGATIVE_PATTERN = re.compile(r"^\s*\(\s*([^)]+)\s*\)\s*$")

# Trailing DR/CR indicators
DR_CR_PATTERN = re.compile(r"\s*(DR|CR)\.?\s*$", re.IGNORECASE)

CENT = Decimal("0.01")


class AmbiguousAmountError(ValueError):
    """Raised when a row carries both a non-zero debit and a non-zero credit."""

    def __init__(self, debit: str, credit: str):
        self.debit = debit
        self.credit = credit
        super().__init__(f"Both debit ({debit}) and credit ({credit}) are non-zero")


@dataclass(frozen=True)
class NormalizedAmount:
    """A non-negative amount with its resolved direction."""

    amount: Decimal
    direction: Direction

    @property
    def is_debit(self) -> bool:
        return self.direction is Direction.DEBIT


def _strip_currency(amount_str: str, currency_symbol: Optional[str]) -> str:
    if currency_symbol:
        amount_str = amount_str.replace(currency_symbol, "")
    for symbol in CURRENCY_SYMBOLS:
        amount_str = amount_str.replace(symbol, "")
    upper = amount_str.strip().upper()
    for prefix in CURRENCY_PREFIXES:
        if upper.startswith(prefix):
            return amount_str.strip()[len(prefix):].strip()
    return amount_str.strip()


def parse_amount(
    raw_amount: str,
    currency_symbol: Optional[str] = None,
    locale: str = "US",
) -> tuple[Decimal, bool]:
    """Parse a raw amount string into a Decimal.

    Handles:
    - Standard: 1234.56, -1234.56
    - With currency: £1,234.56, -₹1,234.56, Rs. 250
    - Parentheses for negative: (£1,234.56), (1234.56)
    - DR/CR suffix: 1234.56 DR, 1234.56 CR
    - European format: 1.234,56

    Ambiguous "1,234" reads as one thousand two hundred thirty-four unless
    locale is "EU".

    Args:
        raw_amount: The raw amount string to parse.
        currency_symbol: Symbol of the statement currency, stripped first.
        locale: Locale hint for ambiguous formats ("US" or "EU").

    Returns:
        Tuple of (absolute amount as Decimal, is_negative flag).

    Raises:
        ValueError: If the amount cannot be parsed.
    """
    if raw_amount is None or not str(raw_amount).strip():
        raise ValueError("Empty amount string")

    original = raw_amount
    amount_str = str(raw_amount).strip().strip("'\"").strip()
    is_negative = False

    parens_match = PARENS_NEGATIVE_PATTERN.match(amount_str)
    if parens_match:
        amount_str = parens_match.group(1).strip()
        is_negative = True

    dr_cr_match = DR_CR_PATTERN.search(amount_str)
    if dr_cr_match:
        if dr_cr_match.group(1).upper() == "DR":
            is_negative = True
        amount_str = DR_CR_PATTERN.sub("", amount_str).strip()

    if amount_str.startswith("-"):
        is_negative = True
        amount_str = amount_str[1:].strip()
    elif amount_str.startswith("+"):
        amount_str = amount_str[1:].strip()

    amount_str = _strip_currency(amount_str, currency_symbol)

    # Sign may follow the symbol: "£-12.00"
    if amount_str.startswith("-"):
        is_negative = True
        amount_str = amount_str[1:].strip()

    if "," in amount_str and "." in amount_str:
        if re.search(r",\d{1,4}$", amount_str) and "." in amount_str[:-3]:
            amount_str = amount_str.replace(".", "").replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")
    elif "," in amount_str:
        if re.search(r",\d{1,2}$", amount_str):
            amount_str = amount_str.replace(",", ".")
        elif re.search(r",\d{3,4}$", amount_str) and locale == "EU":
            amount_str = amount_str.replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")

    amount_str = amount_str.replace(" ", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount '{original}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Cannot parse amount '{original}': not a finite number")

    if amount < 0:
        is_negative = True

    return abs(amount), is_negative


def _is_blank(raw: Optional[str]) -> bool:
    if raw is None:
        return True
    stripped = raw.strip().strip("'\"").strip()
    return stripped in ("", "-")


def normalize_signed_amount(
    raw_amount: str,
    currency_symbol: Optional[str] = None,
) -> Optional[NormalizedAmount]:
    """Normalize a single signed amount column.

    Negative values are debits, positive values are credits.

    Args:
        raw_amount: Amount string from the statement.
        currency_symbol: Statement currency symbol.

    Returns:
        NormalizedAmount, or None when the amount is zero.

    Raises:
        ValueError: If the amount cannot be parsed.
    """
    amount, is_negative = parse_amount(raw_amount, currency_symbol)
    if amount == 0:
        return None
    direction = Direction.DEBIT if is_negative else Direction.CREDIT
    return NormalizedAmount(amount=amount, direction=direction)


def normalize_debit_credit(
    debit_raw: Optional[str],
    credit_raw: Optional[str],
    currency_symbol: Optional[str] = None,
) -> Optional[NormalizedAmount]:
    """Normalize a separate debit/credit column pair.

    A blank cell counts as zero. Signs inside either column are ignored:
    the column decides the direction.

    Args:
        debit_raw: Withdrawal / paid-out cell.
        credit_raw: Deposit / paid-in cell.
        currency_symbol: Statement currency symbol.

    Returns:
        NormalizedAmount, or None when both sides are zero.

    Raises:
        AmbiguousAmountError: If both sides are non-zero.
        ValueError: If a non-blank cell cannot be parsed.
    """
    debit = Decimal("0") if _is_blank(debit_raw) else parse_amount(debit_raw, currency_symbol)[0]
    credit = Decimal("0") if _is_blank(credit_raw) else parse_amount(credit_raw, currency_symbol)[0]

    if debit != 0 and credit != 0:
        raise AmbiguousAmountError(str(debit_raw), str(credit_raw))
    if debit != 0:
        return NormalizedAmount(amount=debit, direction=Direction.DEBIT)
    if credit != 0:
        return NormalizedAmount(amount=credit, direction=Direction.CREDIT)
    return None


def quantize_amount(amount: Decimal) -> Decimal:
    """Round an amount to two decimal places, half up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, currency: str = "") -> str:
    """Format an amount for display, e.g. "1,234.56 GBP".

    Args:
        amount: The amount to format.
        currency: Optional ISO code appended after the number.

    Returns:
        Formatted string.
    """
    text = f"{quantize_amount(amount):,.2f}"
    return f"{text} {currency}" if currency else text
