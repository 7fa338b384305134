"""Persistence payload handed to metric stores."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

EXPENSE = "expense"
INCOME = "income"
CRYPTO_VALUE = "crypto_value"


@dataclass
class MetricRecord:
    """A single stored metric.

    Attributes:
        owner_id: Opaque identifier of the record owner.
        category: Record tag ("expense", "income" or "crypto_value").
        value: Numeric value of the record.
        unit: Unit of value, usually an ISO currency code.
        metadata: Free-form details (description, vendor, fingerprint...).
        recorded_at: When the underlying event happened.
        id: Unique identifier (UUID).
    """

    owner_id: str
    category: str
    value: Decimal
    unit: str
    metadata: dict[str, Any] = field(default_factory=dict)
    recorded_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __repr__(self) -> str:
        return f"MetricRecord(category={self.category!r}, value={self.value} {self.unit}, recorded_at={self.recorded_at:%Y-%m-%d})"
