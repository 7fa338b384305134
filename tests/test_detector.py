"""Tests for bank format registry and header detection."""

import pytest

from finance_ingest.models.bank_format import BankFormatDescriptor
from finance_ingest.parsers.base import UnknownFormatError
from finance_ingest.parsers.detector import FormatDetector, cell_matches
from finance_ingest.parsers.formats import GENERIC_FORMAT_NAME, FormatRegistry


class TestCellMatches:
    """Tests for header cell matching."""

    def test_exact_and_synonym(self) -> None:
        """Test exact names and synonyms match."""
        assert cell_matches("Date", "date")
        assert cell_matches("Narration", "description")
        assert cell_matches("Paid out", "debit")

    def test_phrase_inside_longer_cell(self) -> None:
        """Test that a name appears as a phrase in a longer cell."""
        assert cell_matches("Transaction Date", "date")
        assert cell_matches("Amount (GBP)", "amount")

    def test_short_names_match_exactly_only(self) -> None:
        """Test that short synonyms such as 'in' are not phrase-matched."""
        assert cell_matches("In", "credit")
        assert not cell_matches("Main account", "credit")
        assert not cell_matches("Date of payment", "date", exact_only=True)

    def test_empty_cell(self) -> None:
        """Test that an empty cell never matches."""
        assert not cell_matches("  ", "date")


class TestFormatRegistry:
    """Tests for FormatRegistry."""

    def test_builtins_registered(self) -> None:
        """Test that the default registry holds the built-in layouts."""
        registry = FormatRegistry()

        assert "Jupiter" in registry
        assert "Monzo" in registry
        assert registry.generic is not None
        assert registry.generic.name == GENERIC_FORMAT_NAME

    def test_by_region(self) -> None:
        """Test filtering layouts by region."""
        names = [f.name for f in FormatRegistry().by_region("in")]
        assert names == ["HDFC India", "ICICI Bank India", "Jupiter"]

    def test_duplicate_name_rejected(self) -> None:
        """Test that registering a taken name fails unless replacing."""
        registry = FormatRegistry()
        jupiter = registry.get("Jupiter")
        assert jupiter is not None

        with pytest.raises(ValueError, match="already registered"):
            registry.register(jupiter)
        registry.register(jupiter, replace=True)
        assert len(registry) == len(FormatRegistry())

    def test_layout_needs_amount_columns(self) -> None:
        """Test that a layout without amount or debit/credit is rejected."""
        descriptor = BankFormatDescriptor(
            name="Broken",
            region="UK",
            date_format="DD/MM/YYYY",
            identifier=("Date", "Description"),
            columns={"date": 0, "description": 1},
        )
        with pytest.raises(ValueError, match="amount or debit/credit"):
            FormatRegistry(formats=[]).register(descriptor)


class TestFormatDetector:
    """Tests for FormatDetector.detect."""

    def test_detects_jupiter(self) -> None:
        """Test detection of the Jupiter header."""
        lines = [
            "Date,Value Date,Particulars,Tran Type,Cheque Details,Withdrawals,Deposits,Balance",
            "15/04/2025,15/04/2025,Payment,DR,,250.00,,1000.00",
        ]
        detected = FormatDetector().detect(lines)

        assert detected.descriptor.name == "Jupiter"
        assert detected.header_index == 0
        assert detected.data_start == 1

    def test_header_after_preamble(self) -> None:
        """Test that account preamble lines before the header are skipped."""
        lines = [
            "Account statement",
            "Account: 12345678",
            "",
            "Date,Description,Debit,Credit,Balance",
            "01/04/2025,Coffee,3.00,,97.00",
        ]
        detected = FormatDetector().detect(lines)

        assert detected.descriptor.name == "Santander UK"
        assert detected.header_index == 3

    def test_more_specific_layout_wins(self) -> None:
        """Test that the layout with more identifier columns is chosen."""
        lines = ["Date,Description,Amount,Running Balance"]
        detected = FormatDetector().detect(lines)

        # HSBC's identifier is also present; Bank of America names more columns
        assert detected.descriptor.name == "Bank of America"

    def test_generic_layout_derived_from_header(self) -> None:
        """Test that an unknown header naming its columns gets a generic layout."""
        lines = ["Posting Date,Memo,Amt,Ref", "04/15/2025,Coffee,-3.00,X1"]
        detected = FormatDetector(generic_date_format="MM/DD/YYYY").detect(lines)
        descriptor = detected.descriptor

        assert descriptor.name == GENERIC_FORMAT_NAME
        assert descriptor.date_format == "MM/DD/YYYY"
        assert descriptor.columns == {"date": 0, "description": 1, "amount": 2, "reference": 3}

    def test_generic_prefers_debit_credit_pair(self) -> None:
        """Test that a derived layout drops amount when debit and credit exist."""
        cells = ["Date", "Details", "Amount", "Paid out", "Paid in"]
        descriptor = FormatDetector().derive_generic(cells)

        assert descriptor is not None
        assert descriptor.has_debit_credit
        assert "amount" not in descriptor.columns

    def test_unknown_format(self) -> None:
        """Test that a header naming nothing useful raises."""
        with pytest.raises(UnknownFormatError, match="Could not detect"):
            FormatDetector().detect(["foo,bar,baz", "1,2,3"], source="mystery.csv")

    def test_invalid_generic_date_format(self) -> None:
        """Test that an unsupported generic date hint is rejected."""
        with pytest.raises(ValueError, match="Unsupported generic date format"):
            FormatDetector(generic_date_format="YYYY/DD/MM")
