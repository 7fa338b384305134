"""Tests for the import orchestrator."""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable
from unittest.mock import patch

import pytest

from finance_ingest.config import CurrencyConfig, ImportSettings, IngestConfig, TransferConfig
from finance_ingest.models.record import CRYPTO_VALUE, EXPENSE
from finance_ingest.models.summary import SourceInput
from finance_ingest.models.transaction import SourceKind
from finance_ingest.processing.orchestrator import ImportFailedError, ImportOrchestrator
from finance_ingest.storage.base import PersistenceError
from finance_ingest.storage.memory import InMemoryMetricStore

OWNER = "user-1"

MONZO_STATEMENT = (
    "id,created,description,amount,currency,local_amount,local_currency,category\n"
    "tx_1,2025-04-01T10:00:00Z,Tesco Stores,-12.50,GBP,-12.50,GBP,groceries\n"
    "tx_2,2025-04-01T11:00:00Z,Transfer to Pot,-50.00,GBP,-50.00,GBP,savings\n"
)


def settings_config(**settings: object) -> IngestConfig:
    """Config with fast retries and the given import settings."""
    return IngestConfig(import_settings=ImportSettings(retry_delay=0, **settings))  # type: ignore[arg-type]


class TestBankImport:
    """Tests for importing bank statements."""

    def test_jupiter_end_to_end(self, jupiter_statement: str, fast_config: IngestConfig) -> None:
        """Test the Zepto withdrawal from parse to stored record."""
        store = InMemoryMetricStore()
        result = ImportOrchestrator(store, OWNER, config=fast_config).run({"bank": jupiter_statement})

        assert result.summary.imported == 1
        assert result.committed_sources == ["bank"]
        txn = result.transactions[0]
        assert txn.category == "Food & Grocery"
        assert txn.subcategory == "Quick Commerce"
        assert txn.merchant == "Zepto"
        assert txn.confidence > 0.5

        [record] = store.records
        assert record.owner_id == OWNER
        assert record.category == EXPENSE
        assert record.value == Decimal("250.00")
        assert record.unit == "INR"
        assert record.recorded_at == datetime(2025, 4, 15)
        assert record.metadata["vendor"] == "Zepto"
        assert record.metadata["category"] == "Food & Grocery"
        assert record.metadata["confidence"] == pytest.approx(0.675)
        assert record.metadata["balance"] == "1000.00"
        assert record.metadata["source"] == "bank"
        assert record.metadata["fingerprint"] == txn.fingerprint

    def test_second_run_is_idempotent(
        self,
        fast_config: IngestConfig,
        make_santander_statement: Callable[..., str],
    ) -> None:
        """Test that re-importing a statement writes nothing new."""
        store = InMemoryMetricStore()
        orchestrator = ImportOrchestrator(store, OWNER, config=fast_config)
        statement = make_santander_statement(10)

        first = orchestrator.run({SourceKind.BANK: statement})
        second = orchestrator.run({SourceKind.BANK: statement})

        assert first.summary.imported == 10
        assert second.summary.imported == 0
        assert second.summary.duplicates_skipped == 10
        assert len(store.records) == 10
        assert second.message() == "No new records imported (10 duplicates, 0 transfers filtered)"

    def test_other_owner_is_not_a_duplicate(self, jupiter_statement: str, fast_config: IngestConfig) -> None:
        """Test that fingerprints are scoped to the owner."""
        store = InMemoryMetricStore()
        ImportOrchestrator(store, "user-1", config=fast_config).run({"bank": jupiter_statement})
        result = ImportOrchestrator(store, "user-2", config=fast_config).run({"bank": jupiter_statement})

        assert result.summary.imported == 1
        assert len(store.records) == 2

    def test_duplicates_across_inputs_in_one_run(self, jupiter_statement: str, fast_config: IngestConfig) -> None:
        """Test that overlapping statements in one run are imported once."""
        store = InMemoryMetricStore()
        inputs = [
            SourceInput(SourceKind.BANK, jupiter_statement, "march.csv"),
            SourceInput(SourceKind.BANK, jupiter_statement, "april.csv"),
        ]
        result = ImportOrchestrator(store, OWNER, config=fast_config).run_inputs(inputs)

        assert result.summary.imported == 1
        assert result.summary.duplicates_skipped == 1
        assert result.committed_sources == ["march.csv", "april.csv"]
        assert len(store.records) == 1

    def test_transfer_to_pot_filtered(self, fast_config: IngestConfig) -> None:
        """Test that pot transfers are not stored as expenses."""
        store = InMemoryMetricStore()
        result = ImportOrchestrator(store, OWNER, config=fast_config).run({"bank": MONZO_STATEMENT})

        assert result.summary.imported == 1
        assert result.summary.transfers_filtered == 1
        assert [r.metadata["description"] for r in store.records] == ["Tesco Stores"]

    def test_large_amount_filtered_unless_disabled(self, make_santander_statement: Callable[..., str]) -> None:
        """Test the large-transfer rule and turning it off."""
        statement = make_santander_statement(1) + "05/03/2025,Rent payment,25000.00,,1000.00\n"

        filtered = ImportOrchestrator(InMemoryMetricStore(), OWNER, config=settings_config()).run(
            {"bank": statement}
        )
        config = IngestConfig(
            import_settings=ImportSettings(retry_delay=0),
            transfers=TransferConfig(large_transfer_threshold=None),
        )
        kept = ImportOrchestrator(InMemoryMetricStore(), OWNER, config=config).run({"bank": statement})

        assert filtered.summary.transfers_filtered == 1
        assert filtered.summary.imported == 1
        assert kept.summary.transfers_filtered == 0
        assert kept.summary.imported == 2

    def test_expense_totals_count_debits_only(
        self,
        fast_config: IngestConfig,
        make_santander_statement: Callable[..., str],
    ) -> None:
        """Test per-currency expense totals."""
        statement = make_santander_statement(3) + "04/03/2025,Refund,,4.00,901.00\n"
        result = ImportOrchestrator(InMemoryMetricStore(), OWNER, config=fast_config).run({"bank": statement})

        assert result.summary.imported == 4
        assert result.summary.expense_totals == {"GBP": Decimal("34.50")}
        assert result.summary.date_range is not None
        assert result.summary.date_range[0].isoformat() == "2025-03-01"
        assert "expenses 34.50 GBP" in result.message()

    def test_merchants_named_in_description(
        self,
        fast_config: IngestConfig,
        make_santander_statement: Callable[..., str],
    ) -> None:
        """Test rows whose merchant only appears in the description."""
        statement = (
            make_santander_statement(0)
            + "12/04/2025,UBER EATS LONDON,15.00,,985.00\n"
            + "13/04/2025,Card purchase 12/04 KROGER #123,45.00,,940.00\n"
        )
        result = ImportOrchestrator(InMemoryMetricStore(), OWNER, config=fast_config).run({"bank": statement})

        by_description = {txn.description: txn for txn in result.transactions}
        uber_eats = by_description["UBER EATS LONDON"]
        kroger = by_description["Card purchase 12/04 KROGER #123"]

        assert result.summary.imported == 2
        assert uber_eats.merchant == "Uber Eats"
        assert uber_eats.category == "Food Delivery"
        assert kroger.category == "Food & Dining"
        assert kroger.confidence > 0.3

    def test_dry_run_writes_nothing(self, jupiter_statement: str, fast_config: IngestConfig) -> None:
        """Test that a dry run classifies without storing."""
        store = InMemoryMetricStore()
        result = ImportOrchestrator(store, OWNER, config=fast_config).run(
            {"bank": jupiter_statement}, dry_run=True
        )

        assert store.records == []
        assert store.insert_calls == 0
        assert result.summary.imported == 1
        assert result.message().startswith("Dry run: Imported 1 transactions")


class TestCurrencyConversion:
    """Tests for conversion into a base currency."""

    def test_converted_amount_in_metadata(self, jupiter_statement: str) -> None:
        """Test that converted amounts are stored alongside the original."""
        config = IngestConfig(
            import_settings=ImportSettings(retry_delay=0),
            currency=CurrencyConfig(base_currency="GBP", rates={"GBP/INR": Decimal("100")}),
        )
        store = InMemoryMetricStore()
        result = ImportOrchestrator(store, OWNER, config=config).run({"bank": jupiter_statement})

        assert result.transactions[0].converted_amount == Decimal("2.50")
        assert store.records[0].value == Decimal("250.00")
        assert store.records[0].metadata["converted_amount"] == "2.50"
        assert store.records[0].metadata["base_currency"] == "GBP"

    def test_missing_rate_warns(self, jupiter_statement: str) -> None:
        """Test that a missing rate leaves the row unconverted with a warning."""
        config = IngestConfig(
            import_settings=ImportSettings(retry_delay=0),
            currency=CurrencyConfig(base_currency="EUR"),
        )
        store = InMemoryMetricStore()
        result = ImportOrchestrator(store, OWNER, config=config).run({"bank": jupiter_statement})

        assert result.summary.imported == 1
        assert "converted_amount" not in store.records[0].metadata
        assert "No INR/EUR rate for 2025-04-15; line 2 left unconverted" in result.summary.warnings


class TestCryptoImport:
    """Tests for importing crypto holdings."""

    def test_holding_record(self, crypto_portfolio: str, fast_config: IngestConfig) -> None:
        """Test the stored record for a holding."""
        store = InMemoryMetricStore()
        result = ImportOrchestrator(store, OWNER, config=fast_config).run({"crypto": crypto_portfolio})

        assert result.summary.holdings_imported == 1
        [record] = store.records
        assert record.category == CRYPTO_VALUE
        assert record.value == Decimal("62.18")
        assert record.unit == "USD"
        assert record.metadata["symbol"] == "USDC"
        assert record.metadata["network"] == "Base"
        assert record.metadata["quantity"] == "62.192612"
        assert "1 crypto holdings" in result.message()

    def test_reimport_replaces_holdings(self, crypto_portfolio: str, fast_config: IngestConfig) -> None:
        """Test that a new snapshot replaces the previous one."""
        store = InMemoryMetricStore()
        orchestrator = ImportOrchestrator(store, OWNER, config=fast_config)

        orchestrator.run({"crypto": crypto_portfolio})
        first_id = store.records[0].id
        orchestrator.run({"crypto": crypto_portfolio})

        assert len(store.records) == 1
        assert store.records[0].id != first_id

    def test_replacement_disabled(self, crypto_portfolio: str) -> None:
        """Test that holdings accumulate when replacement is off."""
        store = InMemoryMetricStore()
        orchestrator = ImportOrchestrator(store, OWNER, config=settings_config(replace_crypto_holdings=False))

        orchestrator.run({"crypto": crypto_portfolio})
        orchestrator.run({"crypto": crypto_portfolio})

        assert len(store.records) == 2

    def test_empty_snapshot_keeps_previous_holdings(self, crypto_portfolio: str, fast_config: IngestConfig) -> None:
        """Test that a dump without holdings does not wipe stored ones."""
        store = InMemoryMetricStore()
        orchestrator = ImportOrchestrator(store, OWNER, config=fast_config)

        orchestrator.run({"crypto": crypto_portfolio})
        orchestrator.run({"crypto": "Portfolio is empty\n"})

        assert len(store.records) == 1


class TestSourceHandling:
    """Tests for ordering and source-level failures."""

    def test_sources_run_crypto_bank_manual(
        self,
        jupiter_statement: str,
        crypto_portfolio: str,
        fast_config: IngestConfig,
    ) -> None:
        """Test the fixed processing order."""
        sources = {
            "manual": "01/04 - Groceries at market - 1,250\n",
            "bank": jupiter_statement,
            "crypto": crypto_portfolio,
        }
        result = ImportOrchestrator(InMemoryMetricStore(), OWNER, config=fast_config).run(
            sources, reference_year=2025
        )

        assert result.committed_sources == ["crypto", "bank", "manual"]
        assert result.summary.imported == 2
        assert result.summary.holdings_imported == 1

    def test_manual_without_reference_year(self, jupiter_statement: str, fast_config: IngestConfig) -> None:
        """Test that manual input needs a reference year while others proceed."""
        result = ImportOrchestrator(InMemoryMetricStore(), OWNER, config=fast_config).run(
            {"bank": jupiter_statement, "manual": "01/04 - Tea - 20\n"}
        )

        assert result.committed_sources == ["bank"]
        assert "reference year" in result.summary.failed_sources["manual"]
        assert not result.all_sources_failed

    def test_all_sources_failed(self, fast_config: IngestConfig) -> None:
        """Test that unreadable input is reported rather than raised."""
        store = InMemoryMetricStore()
        result = ImportOrchestrator(store, OWNER, config=fast_config).run({"bank": "foo,bar\n1,2\n"})

        assert result.all_sources_failed
        assert "bank" in result.summary.failed_sources
        assert store.records == []
        assert result.message().startswith("Import failed for bank")

    def test_oversize_input_rejected(
        self,
        jupiter_statement: str,
        fast_config: IngestConfig,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that inputs over the size limit are refused."""
        monkeypatch.setattr("finance_ingest.processing.orchestrator.MAX_INPUT_BYTES", 10)
        result = ImportOrchestrator(InMemoryMetricStore(), OWNER, config=fast_config).run(
            {"bank": jupiter_statement}
        )

        assert "limit is 10" in result.summary.failed_sources["bank"]

    def test_empty_owner_rejected(self) -> None:
        """Test that an owner id is required."""
        with pytest.raises(ValueError, match="owner_id"):
            ImportOrchestrator(InMemoryMetricStore(), "  ")


class TestPersistenceFailures:
    """Tests for retries and per-source rollback."""

    def test_retry_then_success(self, jupiter_statement: str, fast_config: IngestConfig) -> None:
        """Test that transient insert failures are retried."""
        store = InMemoryMetricStore(fail_on_insert_call=1, fail_times=2)
        result = ImportOrchestrator(store, OWNER, config=fast_config).run({"bank": jupiter_statement})

        assert result.summary.imported == 1
        assert store.insert_calls == 3
        assert len(store.records) == 1

    def test_failed_source_rolled_back(
        self,
        crypto_portfolio: str,
        make_santander_statement: Callable[..., str],
    ) -> None:
        """Test that a source failing mid-way leaves nothing behind."""
        # crypto takes insert call 1, the bank's first chunk call 2
        store = InMemoryMetricStore(fail_on_insert_call=3, fail_times=3)
        config = settings_config(batch_size=2, max_retries=2)
        orchestrator = ImportOrchestrator(store, OWNER, config=config)

        with pytest.raises(ImportFailedError) as exc_info:
            orchestrator.run({"crypto": crypto_portfolio, "bank": make_santander_statement(5)})

        assert exc_info.value.source == "bank"
        result = exc_info.value.result
        assert result.committed_sources == ["crypto"]
        assert result.summary.failed_sources["bank"].startswith("persistence failure")
        assert [r.category for r in store.records] == [CRYPTO_VALUE]

    def test_earlier_sources_stay_committed(self, jupiter_statement: str) -> None:
        """Test that a store failure does not undo finished sources."""
        store = InMemoryMetricStore(fail_on_insert_call=2, fail_times=5)
        orchestrator = ImportOrchestrator(store, OWNER, config=settings_config(max_retries=1))

        with pytest.raises(ImportFailedError):
            orchestrator.run(
                {"bank": jupiter_statement, "manual": "01/04 - Tea - 20\n"},
                reference_year=2025,
            )

        assert [r.metadata["source"] for r in store.records] == ["bank"]

    def test_unreadable_store(self, jupiter_statement: str, fast_config: IngestConfig) -> None:
        """Test that failing to read existing records aborts the run."""
        store = InMemoryMetricStore()
        orchestrator = ImportOrchestrator(store, OWNER, config=fast_config)

        with patch.object(store, "fetch_existing", side_effect=PersistenceError("down")):
            with pytest.raises(ImportFailedError) as exc_info:
                orchestrator.run({"bank": jupiter_statement})

        assert exc_info.value.source == "InMemoryMetricStore"
        assert store.insert_calls == 0

    def test_existing_records_seed_duplicates(self, jupiter_statement: str, fast_config: IngestConfig) -> None:
        """Test that previously stored records count as seen."""
        first_store = InMemoryMetricStore()
        ImportOrchestrator(first_store, OWNER, config=fast_config).run({"bank": jupiter_statement})
        stored = [
            replace(r, metadata={k: v for k, v in r.metadata.items() if k != "fingerprint"})
            for r in first_store.records
        ]

        store = InMemoryMetricStore(records=stored)
        result = ImportOrchestrator(store, OWNER, config=fast_config).run({"bank": jupiter_statement})

        assert result.summary.duplicates_skipped == 1
