"""Shared parser errors, results and helpers."""

from dataclasses import dataclass, field
from typing import Optional

from finance_ingest.models.bank_format import BankFormatDescriptor
from finance_ingest.models.transaction import CryptoHolding, RawTransaction
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)


class ParseError(Exception):
    """Exception raised when a whole source cannot be parsed."""

    def __init__(self, message: str, source: Optional[str] = None):
        """Initialize ParseError.

        Args:
            message: Error message.
            source: Optional name of the source that failed to parse.
        """
        self.source = source
        super().__init__(message)


class UnknownFormatError(ParseError):
    """Raised when no registered bank layout matches a statement header."""

    pass


class EmptyInputError(ParseError):
    """Raised when a source contains no usable content."""

    pass


def split_lines(text: str) -> list[str]:
    """Split raw text into physical lines, dropping a leading byte-order mark.

    Args:
        text: Raw input text.

    Returns:
        List of lines without line terminators.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    return text.splitlines()


def require_content(text: str, source: Optional[str] = None) -> list[str]:
    """Split text into lines, failing if nothing but whitespace is present.

    Raises:
        EmptyInputError: If the text is empty or blank.
    """
    lines = split_lines(text or "")
    if not any(line.strip() for line in lines):
        raise EmptyInputError("Input is empty", source)
    return lines


@dataclass
class ParseOutcome:
    """Everything a source parser extracted from one input.

    Attributes:
        source: Name of the parsed source.
        transactions: Candidate transactions, in input order.
        holdings: Crypto holdings, in input order.
        warnings: Row-level problems, one message per skipped row.
        records_seen: Number of candidate rows examined.
        malformed: Rows skipped as malformed.
        zero_amount: Rows dropped because their amount was zero.
        descriptor: Detected bank layout, for bank statements.
    """

    source: str
    transactions: list[RawTransaction] = field(default_factory=list)
    holdings: list[CryptoHolding] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    records_seen: int = 0
    malformed: int = 0
    zero_amount: int = 0
    descriptor: Optional[BankFormatDescriptor] = None

    def skip(self, line_number: int, reason: str) -> None:
        """Record a malformed row."""
        message = f"{self.source}: line {line_number}: {reason}"
        logger.debug(message)
        self.warnings.append(message)
        self.malformed += 1
