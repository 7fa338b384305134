"""In-memory record store."""

from typing import Iterable, Optional, Sequence

from finance_ingest.models.record import MetricRecord
from finance_ingest.storage.base import MetricStore, PersistenceError
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)


class InMemoryMetricStore(MetricStore):
    """List-backed store for tests and dry runs.

    Args:
        records: Initial contents.
        fail_on_insert_call: 1-based insert_batch call number that raises
            PersistenceError, or None to never fail.
        fail_times: How many consecutive calls fail from that point.
    """

    def __init__(
        self,
        records: Optional[Iterable[MetricRecord]] = None,
        fail_on_insert_call: Optional[int] = None,
        fail_times: int = 1,
    ):
        self.records: list[MetricRecord] = list(records or [])
        self.fail_on_insert_call = fail_on_insert_call
        self.fail_times = fail_times
        self.insert_calls = 0

    def insert_batch(self, records: Sequence[MetricRecord]) -> None:
        self.insert_calls += 1
        if self.fail_on_insert_call is not None and (
            self.fail_on_insert_call <= self.insert_calls < self.fail_on_insert_call + self.fail_times
        ):
            raise PersistenceError(f"Injected failure on insert call {self.insert_calls}")
        self.records.extend(records)
        logger.debug(f"Stored {len(records)} records ({len(self.records)} total)")

    def fetch_existing(self, owner_id: str, categories: Iterable[str]) -> list[MetricRecord]:
        wanted = set(categories)
        return [r for r in self.records if r.owner_id == owner_id and r.category in wanted]

    def delete_records(self, owner_id: str, record_ids: Iterable[str]) -> int:
        ids = set(record_ids)
        before = len(self.records)
        self.records = [r for r in self.records if not (r.owner_id == owner_id and r.id in ids)]
        return before - len(self.records)
