"""Record stores implementing the persistence contract."""

from finance_ingest.storage.base import MetricStore, PersistenceError
from finance_ingest.storage.csv_store import CSVMetricStore
from finance_ingest.storage.memory import InMemoryMetricStore

__all__ = [
    "CSVMetricStore",
    "InMemoryMetricStore",
    "MetricStore",
    "PersistenceError",
]
