"""Source parsers for bank statements, crypto dumps and manual expense logs."""

from finance_ingest.parsers.bank_csv import BankStatementParser
from finance_ingest.parsers.base import (
    EmptyInputError,
    ParseError,
    ParseOutcome,
    UnknownFormatError,
)
from finance_ingest.parsers.crypto_text import CryptoHoldingsParser
from finance_ingest.parsers.detector import DetectedFormat, FormatDetector
from finance_ingest.parsers.formats import BUILTIN_FORMATS, COLUMN_SYNONYMS, FormatRegistry
from finance_ingest.parsers.manual_text import ManualExpenseParser
from finance_ingest.parsers.tokenizer import TokenizedRecord, Tokenizer

__all__ = [
    "BUILTIN_FORMATS",
    "COLUMN_SYNONYMS",
    "BankStatementParser",
    "CryptoHoldingsParser",
    "DetectedFormat",
    "EmptyInputError",
    "FormatDetector",
    "FormatRegistry",
    "ManualExpenseParser",
    "ParseError",
    "ParseOutcome",
    "TokenizedRecord",
    "Tokenizer",
    "UnknownFormatError",
]
