"""Persistence contract for imported records."""

from abc import ABC, abstractmethod
from typing import Iterable, Sequence

from finance_ingest.models.record import MetricRecord


class PersistenceError(Exception):
    """Raised when a store cannot read or write records."""

    pass


class MetricStore(ABC):
    """Abstract base class for record stores.

    Subclasses must implement:
    - insert_batch(): Write a batch of records atomically
    - fetch_existing(): Read an owner's records in some categories
    - delete_records(): Remove an owner's records by id
    """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def insert_batch(self, records: Sequence[MetricRecord]) -> None:
        """Write a batch of records.

        Either every record of the batch is stored or none is.

        Raises:
            PersistenceError: If the write fails.
        """
        pass

    @abstractmethod
    def fetch_existing(self, owner_id: str, categories: Iterable[str]) -> list[MetricRecord]:
        """Return an owner's stored records in the given categories.

        Raises:
            PersistenceError: If the read fails.
        """
        pass

    @abstractmethod
    def delete_records(self, owner_id: str, record_ids: Iterable[str]) -> int:
        """Delete an owner's records by id.

        Returns:
            Number of records deleted.

        Raises:
            PersistenceError: If the delete fails.
        """
        pass
