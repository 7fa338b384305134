"""Transaction data models for imported financial records."""

import hashlib
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class Direction(Enum):
    """Direction of money movement for a transaction."""

    DEBIT = "debit"  # Money out
    CREDIT = "credit"  # Money in


class SourceKind(Enum):
    """Kind of input a record was imported from."""

    BANK = "bank"
    CRYPTO = "crypto"
    MANUAL = "manual"


def compute_fingerprint(
    txn_date: date,
    description: str,
    amount: Decimal,
    source: str,
    description_length: int = 30,
) -> str:
    """Build the duplicate fingerprint for a transaction.

    The description is lower-cased, whitespace-collapsed and truncated before
    hashing; the amount is taken as an absolute value quantized to cents.

    Args:
        txn_date: Transaction date.
        description: Transaction description.
        amount: Transaction amount (sign is ignored).
        source: Source tag (e.g. "bank", "manual").
        description_length: Number of description characters included.

    Returns:
        A 16-character hex string.
    """
    desc_normalized = re.sub(r"\s+", " ", description.lower().strip())[:description_length]
    amount_normalized = abs(amount).quantize(Decimal("0.01"))
    data = f"{txn_date.isoformat()}|{desc_normalized}|{amount_normalized}|{source}"
    return hashlib.sha256(data.encode()).hexdigest()[:16]


@dataclass
class RawTransaction:
    """Candidate transaction extracted by a source parser.

    The amount is already absolute and the direction resolved; nothing here
    has been deduplicated or classified yet.
    """

    date: date
    description: str
    amount: Decimal
    direction: Direction
    currency: str
    source: SourceKind
    source_line_number: int = 0
    balance: Optional[Decimal] = None
    reference: Optional[str] = None
    merchant_hint: Optional[str] = None
    region: Optional[str] = None

    def fingerprint(self, description_length: int = 30) -> str:
        return compute_fingerprint(
            self.date, self.description, self.amount, self.source.value, description_length
        )


@dataclass(frozen=True)
class NormalizedTransaction:
    """A classified, deduplicated transaction ready for persistence.

    Attributes:
        date: Transaction date.
        amount: Absolute amount, never negative.
        currency: ISO currency code.
        direction: Debit or credit.
        description: Description as it appeared in the source.
        merchant: Extracted merchant name.
        category: Assigned category name.
        subcategory: Assigned subcategory name.
        confidence: Classification confidence in [0, 1].
        balance: Running balance reported by the statement.
        reference: Cheque or transaction reference.
        source_line_number: Line in the source text the row started on.
        source: Kind of source this transaction came from.
        fingerprint: Duplicate fingerprint.
        match_reasons: Why the classifier chose the category.
        converted_amount: Amount in the base currency, if converted.
        base_currency: Base currency of converted_amount.
    """

    date: date
    amount: Decimal
    currency: str
    direction: Direction
    description: str
    source: SourceKind
    fingerprint: str
    merchant: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    confidence: float = 0.0
    balance: Optional[Decimal] = None
    reference: Optional[str] = None
    source_line_number: int = 0
    match_reasons: tuple[str, ...] = field(default_factory=tuple)
    converted_amount: Optional[Decimal] = None
    base_currency: Optional[str] = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"Transaction amount must not be negative, got {self.amount}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")

    @property
    def is_debit(self) -> bool:
        return self.direction is Direction.DEBIT

    @property
    def signed_amount(self) -> Decimal:
        """Amount with debits negative and credits positive."""
        return -self.amount if self.is_debit else self.amount

    def __repr__(self) -> str:
        return (
            f"NormalizedTransaction(date={self.date}, "
            f"description={self.description[:30]!r}, "
            f"amount={self.signed_amount} {self.currency}, "
            f"category={self.category!r})"
        )


@dataclass(frozen=True)
class CryptoHolding:
    """A single position parsed from a crypto portfolio dump."""

    symbol: str
    network: str
    price: Decimal
    change_percent: Decimal
    quantity: Decimal
    value: Decimal
    source_line_number: int = 0
