"""Transaction processing pipeline components.

ImportOrchestrator lives in finance_ingest.processing.orchestrator and is
not re-exported here, since it depends on finance_ingest.config, which
imports from this package.
"""

from finance_ingest.processing.classifier import TransactionClassifier
from finance_ingest.processing.currency import (
    CurrencyConverter,
    RateLookup,
    StaticRateLookup,
)
from finance_ingest.processing.deduplicator import Deduplicator
from finance_ingest.processing.merchant import MerchantExtractor
from finance_ingest.processing.transfer_filter import TransferFilter

__all__ = [
    "CurrencyConverter",
    "Deduplicator",
    "MerchantExtractor",
    "RateLookup",
    "StaticRateLookup",
    "TransactionClassifier",
    "TransferFilter",
]
