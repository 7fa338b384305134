"""Bank statement layout descriptors."""

from dataclasses import dataclass, field
from typing import Optional

# Semantic column names a descriptor may map
COLUMN_FIELDS = ("date", "description", "amount", "debit", "credit", "balance", "reference", "merchant")


@dataclass(frozen=True)
class BankFormatDescriptor:
    """Immutable description of one bank's CSV export layout.

    Attributes:
        name: Human-readable bank name.
        region: "UK", "US", "IN" or "GLOBAL".
        date_format: Date format hint used for every row of this layout.
        identifier: Header column names that must all be present to detect
            this layout.
        columns: Map of semantic field name to 0-based column index.
        currency_symbol: Symbol stripped from amount cells.
        currency_code: ISO currency code of the account.
    """

    name: str
    region: str
    date_format: str
    identifier: tuple[str, ...]
    columns: dict[str, int] = field(default_factory=dict, hash=False)
    currency_symbol: str = ""
    currency_code: str = "GBP"

    @property
    def has_debit_credit(self) -> bool:
        return "debit" in self.columns and "credit" in self.columns

    @property
    def min_fields(self) -> int:
        """Number of fields a row needs to reach every mapped column."""
        if not self.columns:
            return 0
        return max(self.columns.values()) + 1

    def column(self, name: str) -> Optional[int]:
        return self.columns.get(name)

    def __repr__(self) -> str:
        return f"BankFormatDescriptor(name={self.name!r}, region={self.region}, date_format={self.date_format})"
