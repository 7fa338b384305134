"""Data models for imported transactions, bank formats and classification rules."""

from finance_ingest.models.bank_format import BankFormatDescriptor
from finance_ingest.models.record import MetricRecord
from finance_ingest.models.rule import (
    ClassificationResult,
    ClassificationRule,
    RuleDefinitionError,
    RuleSet,
)
from finance_ingest.models.summary import ImportResult, ImportSummary, SourceInput
from finance_ingest.models.transaction import (
    CryptoHolding,
    Direction,
    NormalizedTransaction,
    RawTransaction,
    SourceKind,
)

__all__ = [
    "BankFormatDescriptor",
    "ClassificationResult",
    "ClassificationRule",
    "CryptoHolding",
    "Direction",
    "ImportResult",
    "ImportSummary",
    "MetricRecord",
    "NormalizedTransaction",
    "RawTransaction",
    "RuleDefinitionError",
    "RuleSet",
    "SourceInput",
    "SourceKind",
]
