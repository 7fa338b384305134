"""Import run summary models."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from finance_ingest.models.transaction import (
    CryptoHolding,
    NormalizedTransaction,
    SourceKind,
)


@dataclass
class SourceInput:
    """One raw input handed to the orchestrator.

    Attributes:
        kind: Which parser handles the text.
        text: Raw text content.
        name: Label used in warnings and failure reports (e.g. a file name).
    """

    kind: SourceKind
    text: str
    name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.kind.value


@dataclass
class ImportSummary:
    """Counters and diagnostics accumulated over one import run."""

    processed: int = 0
    imported: int = 0
    transfers_filtered: int = 0
    duplicates_skipped: int = 0
    malformed_skipped: int = 0
    zero_amount_dropped: int = 0
    holdings_imported: int = 0
    min_date: Optional[date] = None
    max_date: Optional[date] = None
    warnings: list[str] = field(default_factory=list)
    expense_totals: dict[str, Decimal] = field(default_factory=dict)
    failed_sources: dict[str, str] = field(default_factory=dict)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def record_date(self, txn_date: date) -> None:
        if self.min_date is None or txn_date < self.min_date:
            self.min_date = txn_date
        if self.max_date is None or txn_date > self.max_date:
            self.max_date = txn_date

    def add_expense(self, currency: str, amount: Decimal) -> None:
        self.expense_totals[currency] = self.expense_totals.get(currency, Decimal("0")) + amount

    def merge(self, other: "ImportSummary") -> None:
        """Fold the counters of a committed source into this summary."""
        self.processed += other.processed
        self.imported += other.imported
        self.transfers_filtered += other.transfers_filtered
        self.duplicates_skipped += other.duplicates_skipped
        self.malformed_skipped += other.malformed_skipped
        self.zero_amount_dropped += other.zero_amount_dropped
        self.holdings_imported += other.holdings_imported
        if other.min_date is not None:
            self.record_date(other.min_date)
        if other.max_date is not None:
            self.record_date(other.max_date)
        self.warnings.extend(other.warnings)
        for currency, amount in other.expense_totals.items():
            self.add_expense(currency, amount)
        self.failed_sources.update(other.failed_sources)

    @property
    def date_range(self) -> Optional[tuple[date, date]]:
        if self.min_date is None or self.max_date is None:
            return None
        return self.min_date, self.max_date


@dataclass
class ImportResult:
    """What an import run produced.

    Attributes:
        summary: Aggregated counters.
        transactions: Transactions committed (or, on a dry run, that would be).
        holdings: Crypto holdings committed.
        committed_sources: Names of sources whose records were written.
        dry_run: Whether persistence was skipped.
    """

    summary: ImportSummary = field(default_factory=ImportSummary)
    transactions: list[NormalizedTransaction] = field(default_factory=list)
    holdings: list[CryptoHolding] = field(default_factory=list)
    committed_sources: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def all_sources_failed(self) -> bool:
        return bool(self.summary.failed_sources) and not self.committed_sources

    def message(self) -> str:
        """Render a one-line summary of the run."""
        s = self.summary
        if s.imported == 0 and s.holdings_imported == 0:
            if s.failed_sources:
                return f"Import failed for {', '.join(s.failed_sources)}; nothing was imported"
            return (
                f"No new records imported ({s.duplicates_skipped} duplicates, "
                f"{s.transfers_filtered} transfers filtered)"
            )

        parts: list[str] = []
        if s.imported:
            text = f"Imported {s.imported} transactions"
            if s.date_range is not None:
                start, end = s.date_range
                text += f" from {start.isoformat()} to {end.isoformat()}"
            parts.append(text)
        if s.holdings_imported:
            parts.append(f"{s.holdings_imported} crypto holdings")
        if s.expense_totals:
            totals = ", ".join(
                f"{amount.quantize(Decimal('0.01'))} {currency}"
                for currency, amount in sorted(s.expense_totals.items())
            )
            parts.append(f"expenses {totals}")

        skipped = []
        if s.duplicates_skipped:
            skipped.append(f"{s.duplicates_skipped} duplicates")
        if s.transfers_filtered:
            skipped.append(f"{s.transfers_filtered} transfers")
        if s.malformed_skipped:
            skipped.append(f"{s.malformed_skipped} malformed")
        if skipped:
            parts.append(f"skipped {', '.join(skipped)}")
        if s.failed_sources:
            parts.append(f"failed sources: {', '.join(s.failed_sources)}")

        prefix = "Dry run: " if self.dry_run else ""
        return prefix + "; ".join(parts)
