"""Bank statement CSV parser driven by layout descriptors."""

from decimal import Decimal
from typing import Optional

from finance_ingest.models.bank_format import BankFormatDescriptor
from finance_ingest.models.transaction import RawTransaction, SourceKind
from finance_ingest.parsers.base import ParseOutcome, require_content
from finance_ingest.parsers.detector import FormatDetector
from finance_ingest.parsers.tokenizer import TokenizedRecord, Tokenizer
from finance_ingest.utils.date_utils import UnparseableDateError, parse_date
from finance_ingest.utils.decimal_utils import (
    AmbiguousAmountError,
    NormalizedAmount,
    normalize_debit_credit,
    normalize_signed_amount,
    parse_amount,
)
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)


class BankStatementParser:
    """Parse a bank CSV statement into candidate transactions.

    One pipeline serves every bank: the detected BankFormatDescriptor says
    which columns hold what and how dates are written. Row-level problems
    are returned as warnings in the ParseOutcome; only source-level
    problems (empty input, unknown layout) raise.
    """

    def __init__(
        self,
        detector: Optional[FormatDetector] = None,
        tokenizer: Optional[Tokenizer] = None,
    ):
        """Initialize the parser.

        Args:
            detector: Layout detector. Defaults to one over the built-ins.
            tokenizer: Record tokenizer for data rows.
        """
        self.tokenizer = tokenizer or Tokenizer()
        self.detector = detector or FormatDetector(tokenizer=self.tokenizer)

    def parse(self, text: str, source: str = "bank") -> ParseOutcome:
        """Parse statement text.

        Args:
            text: Raw CSV text.
            source: Source name used in warnings.

        Returns:
            ParseOutcome with candidate transactions and row diagnostics.

        Raises:
            EmptyInputError: If the text is blank.
            UnknownFormatError: If no layout matches the header.
        """
        lines = require_content(text, source)
        detected = self.detector.detect(lines, source)
        descriptor = detected.descriptor
        header = [c.lower() for c in self.tokenizer.parse_fields(lines[detected.header_index].strip())]

        outcome = ParseOutcome(source=source, descriptor=descriptor)

        for record in self.tokenizer.iter_records(lines, detected.data_start):
            if [f.lower() for f in record.fields] == header:
                logger.debug(f"{source}: skipping repeated header at line {record.line_number}")
                continue

            outcome.records_seen += 1
            txn = self._parse_record(record, descriptor, outcome)
            if txn is not None:
                outcome.transactions.append(txn)

        logger.info(
            f"Parsed {len(outcome.transactions)} transactions from {source} as {descriptor.name} "
            f"({outcome.malformed} malformed, {outcome.zero_amount} zero-amount)"
        )
        if outcome.malformed > 0:
            logger.warning(f"{outcome.malformed} rows could not be parsed in {source} - use -vv for details")
        return outcome

    def _parse_record(
        self,
        record: TokenizedRecord,
        descriptor: BankFormatDescriptor,
        outcome: ParseOutcome,
    ) -> Optional[RawTransaction]:
        if record.unterminated:
            outcome.skip(record.line_number, "unterminated quoted field")
            return None

        if len(record) < descriptor.min_fields:
            outcome.skip(
                record.line_number,
                f"expected {descriptor.min_fields} fields, found {len(record)}",
            )
            return None

        raw_date = record.get(descriptor.column("date"))
        try:
            txn_date = parse_date(raw_date, descriptor.date_format)
        except UnparseableDateError as e:
            outcome.skip(record.line_number, str(e))
            return None

        description = " ".join(record.get(descriptor.column("description")).split())
        if not description:
            outcome.skip(record.line_number, "missing description")
            return None

        try:
            normalized = self._amount(record, descriptor)
        except AmbiguousAmountError as e:
            outcome.skip(record.line_number, str(e))
            return None
        except ValueError as e:
            outcome.skip(record.line_number, f"invalid amount: {e}")
            return None

        if normalized is None:
            outcome.zero_amount += 1
            logger.debug(f"{outcome.source}: line {record.line_number}: zero amount dropped")
            return None

        return RawTransaction(
            date=txn_date,
            description=description,
            amount=normalized.amount,
            direction=normalized.direction,
            currency=descriptor.currency_code,
            source=SourceKind.BANK,
            source_line_number=record.line_number,
            balance=self._balance(record, descriptor),
            reference=record.get(descriptor.column("reference")) or None,
            merchant_hint=record.get(descriptor.column("merchant")) or None,
            region=descriptor.region,
        )

    def _amount(self, record: TokenizedRecord, descriptor: BankFormatDescriptor) -> Optional[NormalizedAmount]:
        symbol = descriptor.currency_symbol
        if descriptor.has_debit_credit:
            return normalize_debit_credit(
                record.get(descriptor.column("debit")),
                record.get(descriptor.column("credit")),
                symbol,
            )
        return normalize_signed_amount(record.get(descriptor.column("amount")), symbol)

    def _balance(self, record: TokenizedRecord, descriptor: BankFormatDescriptor) -> Optional[Decimal]:
        raw = record.get(descriptor.column("balance"))
        if not raw:
            return None
        try:
            amount, is_negative = parse_amount(raw, descriptor.currency_symbol)
        except ValueError:
            logger.debug(f"Ignoring unparseable balance '{raw}' at line {record.line_number}")
            return None
        return -amount if is_negative else amount
