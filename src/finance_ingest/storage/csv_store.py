"""CSV-file-backed record store."""

import csv
import json
import os
import tempfile
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Sequence

from finance_ingest.models.record import MetricRecord
from finance_ingest.storage.base import MetricStore, PersistenceError
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

COLUMNS = ["id", "owner_id", "category", "value", "unit", "recorded_at", "metadata"]


class CSVMetricStore(MetricStore):
    """Store records in a single CSV file.

    Metadata is kept as a JSON object in its own column. Inserts append to
    the file; deletes rewrite it through a temporary file in the same
    directory and replace the original.
    """

    def __init__(self, path: Path):
        """Initialize the store.

        Args:
            path: CSV file path. Created with a header on first write.
        """
        self.path = Path(path)

    def insert_batch(self, records: Sequence[MetricRecord]) -> None:
        if not records:
            return
        rows = [self._to_row(r) for r in records]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            write_header = not self.path.exists() or self.path.stat().st_size == 0
            with open(self.path, "a", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                if write_header:
                    writer.writerow(COLUMNS)
                writer.writerows(rows)
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e
        logger.debug(f"Appended {len(rows)} records to {self.path}")

    def fetch_existing(self, owner_id: str, categories: Iterable[str]) -> list[MetricRecord]:
        wanted = set(categories)
        return [r for r in self._read_all() if r.owner_id == owner_id and r.category in wanted]

    def delete_records(self, owner_id: str, record_ids: Iterable[str]) -> int:
        ids = set(record_ids)
        if not ids or not self.path.exists():
            return 0

        records = self._read_all()
        kept = [r for r in records if not (r.owner_id == owner_id and r.id in ids)]
        deleted = len(records) - len(kept)
        if deleted == 0:
            return 0

        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".csv.tmp")
            try:
                with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                    writer = csv.writer(f)
                    writer.writerow(COLUMNS)
                    writer.writerows(self._to_row(r) for r in kept)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to rewrite {self.path}: {e}") from e

        logger.debug(f"Deleted {deleted} records from {self.path}")
        return deleted

    def _read_all(self) -> list[MetricRecord]:
        if not self.path.exists():
            return []
        records = []
        try:
            with open(self.path, newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f)
                for line_num, row in enumerate(reader, start=2):
                    records.append(self._from_row(row, line_num))
        except OSError as e:
            raise PersistenceError(f"Failed to read {self.path}: {e}") from e
        return records

    def _to_row(self, record: MetricRecord) -> list[str]:
        return [
            record.id,
            record.owner_id,
            record.category,
            str(record.value),
            record.unit,
            record.recorded_at.isoformat(),
            json.dumps(record.metadata, default=str, sort_keys=True),
        ]

    def _from_row(self, row: dict[str, str], line_num: int) -> MetricRecord:
        try:
            return MetricRecord(
                id=row["id"],
                owner_id=row["owner_id"],
                category=row["category"],
                value=Decimal(row["value"]),
                unit=row["unit"],
                recorded_at=datetime.fromisoformat(row["recorded_at"]),
                metadata=json.loads(row["metadata"]) if row.get("metadata") else {},
            )
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise PersistenceError(f"Corrupt record at {self.path}:{line_num}: {e}") from e
