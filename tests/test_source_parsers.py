"""Tests for the bank, crypto and manual source parsers."""

from datetime import date
from decimal import Decimal

import pytest

from finance_ingest.models.transaction import Direction, SourceKind
from finance_ingest.parsers.bank_csv import BankStatementParser
from finance_ingest.parsers.base import EmptyInputError, UnknownFormatError
from finance_ingest.parsers.crypto_text import CryptoHoldingsParser
from finance_ingest.parsers.manual_text import ManualExpenseParser

SANTANDER_HEADER = "Date,Description,Debit,Credit,Balance"


class TestBankStatementParser:
    """Tests for BankStatementParser."""

    def test_jupiter_row(self, jupiter_statement: str) -> None:
        """Test the canonical Jupiter withdrawal row."""
        outcome = BankStatementParser().parse(jupiter_statement, "jupiter.csv")

        assert outcome.descriptor is not None
        assert outcome.descriptor.name == "Jupiter"
        assert len(outcome.transactions) == 1
        txn = outcome.transactions[0]
        assert txn.date == date(2025, 4, 15)
        assert txn.description == "Payment to Zepto Online"
        assert txn.amount == Decimal("250.00")
        assert txn.direction is Direction.DEBIT
        assert txn.currency == "INR"
        assert txn.source is SourceKind.BANK
        assert txn.region == "IN"
        assert txn.balance == Decimal("1000.00")
        assert txn.reference is None
        assert txn.source_line_number == 2

    def test_monzo_signed_amounts(self) -> None:
        """Test a signed-amount layout with ISO timestamps."""
        text = (
            "id,created,description,amount,currency,local_amount,local_currency,category\n"
            "tx_1,2025-04-01T10:00:00Z,Tesco Stores,-12.50,GBP,-12.50,GBP,groceries\n"
            "tx_2,2025-04-02T09:00:00Z,Salary,2500.00,GBP,2500.00,GBP,income\n"
        )
        outcome = BankStatementParser().parse(text)

        assert outcome.descriptor is not None
        assert outcome.descriptor.name == "Monzo"
        debit, credit = outcome.transactions
        assert debit.direction is Direction.DEBIT
        assert debit.amount == Decimal("12.50")
        assert credit.direction is Direction.CREDIT
        assert credit.date == date(2025, 4, 2)

    def test_row_level_problems_are_skipped(self) -> None:
        """Test that bad rows become warnings and good rows survive."""
        text = "\n".join(
            [
                SANTANDER_HEADER,
                "01/04/2025,Card payment to Corner Shop,12.50,,987.50",
                "02/04/2025,Odd row,10.00,5.00,990.00",
                "03/04/2025,Fee reversal,0.00,,990.00",
                "32/04/2025,Bad date,1.00,,989.00",
                "04/04/2025,Short",
                "05/04/2025,,1.00,,988.00",
                "06/04/2025,Refund,,4.00,992.00",
            ]
        )
        outcome = BankStatementParser().parse(text, "santander.csv")

        assert [t.description for t in outcome.transactions] == ["Card payment to Corner Shop", "Refund"]
        assert outcome.records_seen == 7
        assert outcome.malformed == 4
        assert outcome.zero_amount == 1
        assert len(outcome.warnings) == 4
        assert outcome.warnings[0].startswith("santander.csv: line 3:")
        assert any("expected 5 fields" in w for w in outcome.warnings)

    def test_multiline_description(self) -> None:
        """Test that a wrapped quoted description is read as one field."""
        text = (
            f"{SANTANDER_HEADER}\n"
            '01/04/2025,"Card payment to\n'
            "Corner Shop, High\n"
            'Street",12.50,,987.50\n'
            "02/04/2025,Coffee,3.00,,984.50\n"
        )
        outcome = BankStatementParser().parse(text)

        assert [t.description for t in outcome.transactions] == [
            "Card payment to Corner Shop, High Street",
            "Coffee",
        ]
        assert outcome.transactions[1].source_line_number == 5

    def test_repeated_header_and_trailer(self) -> None:
        """Test that page headers are skipped and trailers end the table."""
        text = "\n".join(
            [
                SANTANDER_HEADER,
                "01/04/2025,Coffee,3.00,,97.00",
                SANTANDER_HEADER,
                "02/04/2025,Lunch,8.00,,89.00",
                "Closing balance,,,,89.00",
                "03/04/2025,Ignored,1.00,,88.00",
            ]
        )
        outcome = BankStatementParser().parse(text)

        assert [t.description for t in outcome.transactions] == ["Coffee", "Lunch"]
        assert outcome.malformed == 0

    def test_byte_order_mark(self) -> None:
        """Test that a leading BOM does not hide the header."""
        text = "\ufeff" + f"{SANTANDER_HEADER}\n01/04/2025,Coffee,3.00,,97.00\n"
        outcome = BankStatementParser().parse(text)
        assert len(outcome.transactions) == 1

    def test_unterminated_quote_is_malformed(self) -> None:
        """Test that an unclosed quote at end of input skips the row."""
        text = f'{SANTANDER_HEADER}\n01/04/2025,"Never closed,3.00,,97.00\n'
        outcome = BankStatementParser().parse(text)

        assert outcome.transactions == []
        assert outcome.malformed == 1
        assert "unterminated" in outcome.warnings[0]

    def test_empty_input(self) -> None:
        """Test that blank input is a source-level error."""
        with pytest.raises(EmptyInputError):
            BankStatementParser().parse("  \n\n", "empty.csv")

    def test_unknown_format(self) -> None:
        """Test that an unrecognised header is a source-level error."""
        with pytest.raises(UnknownFormatError) as exc_info:
            BankStatementParser().parse("foo,bar\n1,2\n", "odd.csv")
        assert exc_info.value.source == "odd.csv"


class TestCryptoHoldingsParser:
    """Tests for CryptoHoldingsParser."""

    def test_usdc_block(self, crypto_portfolio: str) -> None:
        """Test the canonical USDC (Base) block."""
        outcome = CryptoHoldingsParser().parse(crypto_portfolio)

        assert len(outcome.holdings) == 1
        holding = outcome.holdings[0]
        assert holding.symbol == "USDC"
        assert holding.network == "Base"
        assert holding.price == Decimal("0.99")
        assert holding.change_percent == Decimal("0")
        assert holding.quantity == Decimal("62.192612")
        assert holding.value == Decimal("62.18")
        assert holding.source_line_number == 2

    def test_thousands_separators_and_positive_change(self) -> None:
        """Test comma-grouped prices and a signed change."""
        text = (
            "1. eth (Ethereum)\n"
            "Price: $3,120.50 | Change: +2.5%\n"
            "Quantity: 0.5 | Value: $1,560.25\n"
        )
        holding = CryptoHoldingsParser().parse(text).holdings[0]

        assert holding.symbol == "ETH"
        assert holding.price == Decimal("3120.50")
        assert holding.change_percent == Decimal("2.5")
        assert holding.value == Decimal("1560.25")

    def test_zero_or_missing_values_are_malformed(self) -> None:
        """Test that incomplete blocks are skipped."""
        text = (
            "1. DOGE (BSC)\n"
            "Price: $0.00 | Change: 0%\n"
            "Quantity: 0 | Value: $0\n"
            "2. SOL (Solana)\n"
            "No details here\n"
            "3. BTC (Bitcoin)\n"
            "Price: $60,000 | Change: -1.2%\n"
            "Quantity: 0.01 | Value: $600\n"
        )
        outcome = CryptoHoldingsParser().parse(text)

        assert [h.symbol for h in outcome.holdings] == ["BTC"]
        assert outcome.records_seen == 3
        assert outcome.malformed == 2

    def test_details_beyond_lookahead_ignored(self) -> None:
        """Test that detail lines too far from the header do not count."""
        text = (
            "1. USDC (Base)\n\n\n\n\n"
            "Price: $0.99 | Change: 0%\n"
            "Quantity: 1 | Value: $0.99\n"
        )
        outcome = CryptoHoldingsParser().parse(text)
        assert outcome.holdings == []
        assert outcome.malformed == 1


class TestManualExpenseParser:
    """Tests for ManualExpenseParser."""

    TEXT = (
        "April expenses\n"
        "01/04 - Groceries at market - ₹1,250\n"
        "02/04/2025 - Auto rickshaw - Rs. 80\n"
        "03/04/25 - Dinner - 450 total\n"
        "31/02 - Impossible date - 100\n"
        "05/04 - no amount here\n"
        "Notes: 06/04 was a holiday\n"
    )

    def test_entries(self) -> None:
        """Test that well-formed entries become debits."""
        outcome = ManualExpenseParser(reference_year=2025).parse(self.TEXT)

        assert [(t.date, t.description, t.amount) for t in outcome.transactions] == [
            (date(2025, 4, 1), "Groceries at market", Decimal("1250")),
            (date(2025, 4, 2), "Auto rickshaw", Decimal("80")),
            (date(2025, 4, 3), "Dinner", Decimal("450")),
        ]
        assert all(t.direction is Direction.DEBIT for t in outcome.transactions)
        assert all(t.source is SourceKind.MANUAL for t in outcome.transactions)
        assert all(t.currency == "INR" for t in outcome.transactions)

    def test_malformed_and_ignored_lines(self) -> None:
        """Test that only date-prefixed lines are counted."""
        outcome = ManualExpenseParser(reference_year=2025).parse(self.TEXT)

        assert outcome.records_seen == 5
        assert outcome.malformed == 2

    def test_text_after_total(self) -> None:
        """Test that notes after the total marker are allowed."""
        text = "12/04 - Zepto - 250 total (cash)\n13/04 - Tea - 20 extra\n"
        outcome = ManualExpenseParser(reference_year=2025).parse(text)

        assert [(t.date, t.description, t.amount) for t in outcome.transactions] == [
            (date(2025, 4, 12), "Zepto", Decimal("250")),
        ]
        assert outcome.malformed == 1

    def test_reference_year_applies_to_yearless_dates(self) -> None:
        """Test that yearless entries take the given reference year."""
        outcome = ManualExpenseParser(reference_year=2023).parse("10/12 - Gift - 500\n")
        assert outcome.transactions[0].date == date(2023, 12, 10)

    def test_without_reference_year(self) -> None:
        """Test that yearless entries fail without a reference year."""
        text = "01/04 - Coffee - 50\n02/04/2025 - Tea - 20\n"
        outcome = ManualExpenseParser(reference_year=None).parse(text)

        assert [t.description for t in outcome.transactions] == ["Tea"]
        assert outcome.malformed == 1

    def test_custom_currency(self) -> None:
        """Test that the configured currency is applied."""
        outcome = ManualExpenseParser(reference_year=2025, currency="GBP").parse("01/04 - Bus - £2.50\n")
        txn = outcome.transactions[0]
        assert txn.currency == "GBP"
        assert txn.amount == Decimal("2.50")
