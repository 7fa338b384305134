"""Import orchestration: parse, filter, classify and persist each source."""

import time
from dataclasses import dataclass, field
from datetime import datetime, time as dt_time
from typing import Mapping, Optional, Sequence, Union

from finance_ingest.config import IngestConfig
from finance_ingest.models.record import CRYPTO_VALUE, EXPENSE, INCOME, MetricRecord
from finance_ingest.models.summary import ImportResult, ImportSummary, SourceInput
from finance_ingest.models.transaction import (
    CryptoHolding,
    NormalizedTransaction,
    RawTransaction,
    SourceKind,
)
from finance_ingest.parsers.bank_csv import BankStatementParser
from finance_ingest.parsers.base import ParseError, ParseOutcome
from finance_ingest.parsers.crypto_text import CryptoHoldingsParser
from finance_ingest.parsers.detector import FormatDetector
from finance_ingest.parsers.formats import FormatRegistry
from finance_ingest.parsers.manual_text import ManualExpenseParser
from finance_ingest.parsers.tokenizer import Tokenizer
from finance_ingest.processing.classifier import TransactionClassifier
from finance_ingest.processing.currency import CurrencyConverter, RateLookup, StaticRateLookup
from finance_ingest.processing.deduplicator import Deduplicator
from finance_ingest.processing.merchant import MerchantExtractor
from finance_ingest.processing.transfer_filter import TransferFilter
from finance_ingest.storage.base import MetricStore, PersistenceError
from finance_ingest.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)

MAX_INPUT_BYTES = 10 * 1024 * 1024  # 10 MB per source

SOURCE_ORDER = (SourceKind.CRYPTO, SourceKind.BANK, SourceKind.MANUAL)


class ImportFailedError(Exception):
    """Raised when the store fails and the run cannot continue.

    Sources committed before the failure stay stored; the failing source
    has been rolled back.

    Attributes:
        source: Name of the source being committed when the store failed.
        result: Result covering every source committed before the failure.
    """

    def __init__(self, source: str, result: ImportResult):
        self.source = source
        self.result = result
        super().__init__(f"Import failed while committing {source}")


@dataclass
class PreparedSource:
    """One parsed and filtered source, ready to be committed."""

    name: str
    kind: SourceKind
    summary: ImportSummary
    transactions: list[NormalizedTransaction] = field(default_factory=list)
    holdings: list[CryptoHolding] = field(default_factory=list)
    records: list[MetricRecord] = field(default_factory=list)


class ImportOrchestrator:
    """Run raw source texts through the full import pipeline.

    Sources are handled crypto first, then bank, then manual. Every source
    is parsed, deduplicated, filtered for internal transfers, classified and
    committed on its own: a source either lands completely or not at all.
    Row-level problems become summary warnings, source-level problems are
    recorded in summary.failed_sources, and a store failure aborts the run
    with ImportFailedError.
    """

    def __init__(
        self,
        store: MetricStore,
        owner_id: str,
        config: Optional[IngestConfig] = None,
        classifier: Optional[TransactionClassifier] = None,
        transfer_filter: Optional[TransferFilter] = None,
        registry: Optional[FormatRegistry] = None,
        rate_lookup: Optional[RateLookup] = None,
    ):
        """Initialize the orchestrator.

        Args:
            store: Persistence collaborator.
            owner_id: Owner of every record written.
            config: Configuration. Defaults to IngestConfig().
            classifier: Classifier. Built from config.rule_set if omitted.
            transfer_filter: Transfer filter. Built from config.transfers if omitted.
            registry: Bank layouts. Defaults to the built-in formats.
            rate_lookup: Exchange rates. Defaults to config.currency.rates.
        """
        if not owner_id or not owner_id.strip():
            raise ValueError("owner_id must not be empty")

        self.store = store
        self.owner_id = owner_id
        self.config = config if config is not None else IngestConfig()
        self.settings = self.config.import_settings

        self.classifier = classifier or TransactionClassifier(
            self.config.rule_set,
            min_confidence=self.config.classification.min_confidence,
            fallback_confidence=self.config.classification.fallback_confidence,
        )
        self.transfer_filter = transfer_filter or TransferFilter(
            self.config.transfers.phrases,
            self.config.transfers.large_transfer_threshold,
        )
        self.merchant_extractor = MerchantExtractor(self.classifier.rule_set.known_merchants)

        self.converter: Optional[CurrencyConverter] = None
        base_currency = self.config.currency.base_currency
        if base_currency:
            lookup = rate_lookup if rate_lookup is not None else StaticRateLookup(self.config.currency.rates)
            self.converter = CurrencyConverter(lookup, base_currency)

        tokenizer = Tokenizer()
        detector = FormatDetector(
            registry=registry,
            generic_date_format=self.settings.generic_date_format,
            tokenizer=tokenizer,
        )
        self.bank_parser = BankStatementParser(detector=detector, tokenizer=tokenizer)
        self.crypto_parser = CryptoHoldingsParser()

    def run(
        self,
        sources: Mapping[Union[SourceKind, str], str],
        reference_year: Optional[int] = None,
        dry_run: bool = False,
    ) -> ImportResult:
        """Import one text per source kind.

        Args:
            sources: Raw text keyed by SourceKind (or its value, e.g. "bank").
            reference_year: Year for manual entries written without one.
            dry_run: Parse and classify without writing anything.

        Returns:
            ImportResult for the run.

        Raises:
            ImportFailedError: If the store fails.
        """
        inputs = [SourceInput(kind=SourceKind(kind), text=text) for kind, text in sources.items()]
        return self.run_inputs(inputs, reference_year=reference_year, dry_run=dry_run)

    def run_inputs(
        self,
        inputs: Sequence[SourceInput],
        reference_year: Optional[int] = None,
        dry_run: bool = False,
    ) -> ImportResult:
        """Import a list of sources, each committed on its own.

        Several inputs of the same kind (e.g. two bank statements) are
        processed in the given order and share one deduplicator.

        Raises:
            ImportFailedError: If the store fails.
        """
        result = ImportResult(dry_run=dry_run)
        ordered = sorted(inputs, key=lambda s: SOURCE_ORDER.index(s.kind))

        deduplicator = Deduplicator(self.settings.description_fingerprint_length)
        try:
            deduplicator.seed_from_records(self.store.fetch_existing(self.owner_id, [EXPENSE, INCOME]))
        except PersistenceError as e:
            logger.error(f"Could not read existing records from {self.store.name}: {e}")
            raise ImportFailedError(self.store.name, result) from e
        logger.info(f"Starting import of {len(ordered)} sources ({len(deduplicator)} known fingerprints)")

        for source in ordered:
            with LogContext(logger, "import source", source=source.name, kind=source.kind.value, owner_id=self.owner_id):
                try:
                    prepared = self.prepare(source, deduplicator, reference_year)
                except ParseError as e:
                    logger.warning(f"Skipping source {source.name}: {e}")
                    result.summary.failed_sources[source.name] = str(e)
                    result.summary.add_warning(f"{source.name}: {e}")
                    continue

                if not dry_run:
                    try:
                        self._commit(prepared)
                    except PersistenceError as e:
                        result.summary.failed_sources[source.name] = f"persistence failure: {e}"
                        raise ImportFailedError(source.name, result) from e

                result.summary.merge(prepared.summary)
                result.transactions.extend(prepared.transactions)
                result.holdings.extend(prepared.holdings)
                result.committed_sources.append(source.name)
                logger.info(
                    f"{'Prepared' if dry_run else 'Committed'} {source.name}: "
                    f"{prepared.summary.imported} transactions, "
                    f"{prepared.summary.holdings_imported} holdings"
                )

        logger.info(result.message())
        return result

    def prepare(
        self,
        source: SourceInput,
        deduplicator: Deduplicator,
        reference_year: Optional[int] = None,
    ) -> PreparedSource:
        """Parse a source and turn its rows into records.

        Raises:
            ParseError: For source-level problems (oversize, empty or
                unrecognised input, manual input without a reference year).
        """
        size = len(source.text.encode("utf-8"))
        if size > MAX_INPUT_BYTES:
            raise ParseError(f"Input is {size} bytes, limit is {MAX_INPUT_BYTES}", source.name)

        outcome = self._parse(source, reference_year)
        summary = ImportSummary(
            processed=outcome.records_seen,
            malformed_skipped=outcome.malformed,
            zero_amount_dropped=outcome.zero_amount,
        )
        for warning in outcome.warnings:
            summary.add_warning(warning)
        prepared = PreparedSource(name=source.name, kind=source.kind, summary=summary)

        if source.kind is SourceKind.CRYPTO:
            self._prepare_holdings(outcome, prepared)
        else:
            self._prepare_transactions(outcome, prepared, deduplicator)
        return prepared

    def _parse(self, source: SourceInput, reference_year: Optional[int]) -> ParseOutcome:
        if source.kind is SourceKind.BANK:
            outcome = self.bank_parser.parse(source.text, source.name)
            if outcome.descriptor is not None:
                logger.info(f"{source.name}: detected {outcome.descriptor.name} format")
            return outcome
        if source.kind is SourceKind.CRYPTO:
            return self.crypto_parser.parse(source.text, source.name)

        if reference_year is None:
            raise ParseError("Manual expenses need a reference year", source.name)
        parser = ManualExpenseParser(reference_year, currency=self.settings.manual_currency)
        return parser.parse(source.text, source.name)

    def _prepare_transactions(
        self,
        outcome: ParseOutcome,
        prepared: PreparedSource,
        deduplicator: Deduplicator,
    ) -> None:
        summary = prepared.summary
        for raw in outcome.transactions:
            if deduplicator.is_duplicate(raw):
                summary.duplicates_skipped += 1
                continue

            reason = self.transfer_filter.check(raw.description, raw.amount)
            if reason is not None:
                logger.debug(f"Filtered transfer {raw.description[:40]!r}: {reason}")
                summary.transfers_filtered += 1
                continue

            txn = self.normalize(raw, deduplicator.fingerprint(raw), summary)
            prepared.transactions.append(txn)
            prepared.records.append(self.transaction_record(txn))
            summary.imported += 1
            summary.record_date(txn.date)
            if txn.is_debit:
                summary.add_expense(txn.currency, txn.amount)

    def normalize(
        self,
        raw: RawTransaction,
        fingerprint: str,
        summary: Optional[ImportSummary] = None,
    ) -> NormalizedTransaction:
        """Classify and convert a candidate transaction.

        Args:
            raw: Candidate transaction.
            fingerprint: Its duplicate fingerprint.
            summary: Summary receiving conversion warnings.

        Returns:
            The normalized transaction.
        """
        region = raw.region or self.settings.default_region
        merchant = self.merchant_extractor.extract(raw.description, raw.merchant_hint)
        classification = self.classifier.classify(raw.description, merchant, raw.amount, region)

        converted = None
        base_currency = None
        if self.converter is not None:
            converted = self.converter.convert(raw.amount, raw.currency, raw.date)
            if converted is None:
                message = (
                    f"No {raw.currency}/{self.converter.base_currency} rate for "
                    f"{raw.date.isoformat()}; line {raw.source_line_number} left unconverted"
                )
                logger.warning(message)
                if summary is not None:
                    summary.add_warning(message)
            else:
                base_currency = self.converter.base_currency

        return NormalizedTransaction(
            date=raw.date,
            amount=raw.amount,
            currency=raw.currency,
            direction=raw.direction,
            description=raw.description,
            source=raw.source,
            fingerprint=fingerprint,
            merchant=merchant,
            category=classification.category,
            subcategory=classification.subcategory,
            confidence=classification.confidence,
            balance=raw.balance,
            reference=raw.reference,
            source_line_number=raw.source_line_number,
            match_reasons=classification.reasons,
            converted_amount=converted,
            base_currency=base_currency,
        )

    def transaction_record(self, txn: NormalizedTransaction) -> MetricRecord:
        """Map a transaction to its stored record."""
        metadata = {
            "description": txn.description,
            "category": txn.category,
            "subcategory": txn.subcategory,
            "vendor": txn.merchant,
            "confidence": round(txn.confidence, 4),
            "source": txn.source.value,
            "reference": txn.reference,
            "balance": str(txn.balance) if txn.balance is not None else None,
            "fingerprint": txn.fingerprint,
        }
        if txn.converted_amount is not None:
            metadata["converted_amount"] = str(txn.converted_amount)
            metadata["base_currency"] = txn.base_currency

        return MetricRecord(
            owner_id=self.owner_id,
            category=EXPENSE if txn.is_debit else INCOME,
            value=txn.amount,
            unit=txn.currency,
            metadata=metadata,
            recorded_at=datetime.combine(txn.date, dt_time.min),
        )

    def _prepare_holdings(self, outcome: ParseOutcome, prepared: PreparedSource) -> None:
        imported_at = datetime.now()
        for holding in outcome.holdings:
            prepared.holdings.append(holding)
            prepared.records.append(
                MetricRecord(
                    owner_id=self.owner_id,
                    category=CRYPTO_VALUE,
                    value=holding.value,
                    unit=self.settings.crypto_currency,
                    metadata={
                        "symbol": holding.symbol,
                        "network": holding.network,
                        "quantity": str(holding.quantity),
                        "price": str(holding.price),
                        "change": str(holding.change_percent),
                    },
                    recorded_at=imported_at,
                )
            )
        prepared.summary.holdings_imported = len(prepared.holdings)

    def _commit(self, prepared: PreparedSource) -> None:
        """Write a prepared source in chunks, undoing it on failure.

        Raises:
            PersistenceError: If a chunk still fails after retries. Chunks
                already written for this source have been deleted.
        """
        if not prepared.records:
            return

        stale_ids: list[str] = []
        if prepared.kind is SourceKind.CRYPTO and self.settings.replace_crypto_holdings:
            stale_ids = [r.id for r in self.store.fetch_existing(self.owner_id, [CRYPTO_VALUE])]

        written: list[MetricRecord] = []
        batch_size = self.settings.batch_size
        try:
            for start in range(0, len(prepared.records), batch_size):
                chunk = prepared.records[start:start + batch_size]
                self._insert_with_retry(chunk, prepared.name)
                written.extend(chunk)

            if stale_ids:
                deleted = self.store.delete_records(self.owner_id, stale_ids)
                logger.info(f"Replaced {deleted} previous crypto holdings")
        except PersistenceError:
            self._rollback(written, prepared.name)
            raise

    def _insert_with_retry(self, chunk: list[MetricRecord], source_name: str) -> None:
        attempts = self.settings.max_retries + 1
        delay = self.settings.retry_delay

        for attempt in range(attempts):
            try:
                self.store.insert_batch(chunk)
                return
            except PersistenceError as e:
                if attempt == attempts - 1:
                    logger.error(f"Insert for {source_name} failed after {attempts} attempts: {e}")
                    raise
                logger.warning(f"Insert for {source_name} failed: {e}, retrying in {delay}s")
                if delay > 0:
                    time.sleep(delay)
                    delay *= 2

    def _rollback(self, written: list[MetricRecord], source_name: str) -> None:
        if not written:
            return
        try:
            removed = self.store.delete_records(self.owner_id, [r.id for r in written])
            logger.warning(f"Rolled back {removed} records written for {source_name}")
        except PersistenceError as e:
            logger.error(f"Rollback of {source_name} failed, {len(written)} records may remain: {e}")
