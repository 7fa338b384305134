"""Fingerprint-based duplicate suppression across imports."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable

from finance_ingest.models.record import MetricRecord
from finance_ingest.models.transaction import RawTransaction, compute_fingerprint
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)


class Deduplicator:
    """Remember fingerprints of transactions already seen.

    One instance lives for one import run and is shared by every source, so
    it catches repeats within a statement, across statements in the same
    run and against records stored by earlier runs (after seeding).

    Note: This class is NOT thread-safe. is_duplicate() checks and records
    a fingerprint in one step and must be called from a single thread.
    """

    def __init__(self, description_length: int = 30):
        """Initialize the deduplicator.

        Args:
            description_length: Description characters included in a
                fingerprint.
        """
        if description_length <= 0:
            raise ValueError("description_length must be positive")
        self.description_length = description_length
        self._seen: set[str] = set()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._seen

    def fingerprint(self, txn: RawTransaction) -> str:
        return txn.fingerprint(self.description_length)

    def seed(self, fingerprints: Iterable[str]) -> None:
        """Add known fingerprints."""
        before = len(self._seen)
        self._seen.update(fingerprints)
        logger.debug(f"Seeded {len(self._seen) - before} fingerprints")

    def seed_from_records(self, records: Iterable[MetricRecord]) -> None:
        """Add fingerprints of previously stored records.

        A fingerprint saved in the record metadata is used as is; older
        records without one are fingerprinted from their date, description,
        value and source.

        Args:
            records: Stored expense and income records.
        """
        fingerprints: list[str] = []
        for record in records:
            stored = record.metadata.get("fingerprint")
            if stored:
                fingerprints.append(str(stored))
                continue
            try:
                value = Decimal(str(record.value))
            except InvalidOperation:
                logger.warning(f"Ignoring stored record {record.id} with unreadable value {record.value!r}")
                continue
            recorded = record.recorded_at
            record_date = recorded.date() if isinstance(recorded, datetime) else recorded
            if not isinstance(record_date, date):
                logger.warning(f"Ignoring stored record {record.id} without a date")
                continue
            fingerprints.append(
                compute_fingerprint(
                    record_date,
                    str(record.metadata.get("description", "")),
                    value,
                    str(record.metadata.get("source", "bank")),
                    self.description_length,
                )
            )
        self.seed(fingerprints)

    def is_duplicate(self, txn: RawTransaction) -> bool:
        """Check a transaction and remember it.

        Returns:
            True if the fingerprint was already seen. Otherwise the
            fingerprint is recorded and False is returned.
        """
        fp = self.fingerprint(txn)
        if fp in self._seen:
            return True
        self._seen.add(fp)
        return False
