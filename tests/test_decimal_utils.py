"""Tests for amount parsing and direction normalization."""

from decimal import Decimal

import pytest

from finance_ingest.models.transaction import Direction
from finance_ingest.utils.decimal_utils import (
    AmbiguousAmountError,
    format_currency,
    normalize_debit_credit,
    normalize_signed_amount,
    parse_amount,
    quantize_amount,
)


class TestParseAmount:
    """Tests for parse_amount."""

    def test_plain_and_signed(self) -> None:
        """Test plain and minus-signed amounts."""
        assert parse_amount("1234.56") == (Decimal("1234.56"), False)
        assert parse_amount("-1234.56") == (Decimal("1234.56"), True)
        assert parse_amount("+12.00") == (Decimal("12.00"), False)

    def test_currency_symbols_and_thousands(self) -> None:
        """Test that symbols and thousands separators are removed."""
        assert parse_amount("£1,234.56") == (Decimal("1234.56"), False)
        assert parse_amount("-₹1,234.56") == (Decimal("1234.56"), True)
        assert parse_amount("£-12.00") == (Decimal("12.00"), True)
        assert parse_amount("Rs. 250") == (Decimal("250"), False)
        assert parse_amount("INR 1,000") == (Decimal("1000"), False)

    def test_parentheses_negative(self) -> None:
        """Test accounting-style negatives."""
        assert parse_amount("(£1,234.56)") == (Decimal("1234.56"), True)

    def test_dr_cr_suffix(self) -> None:
        """Test DR and CR suffixes."""
        assert parse_amount("250.00 DR") == (Decimal("250.00"), True)
        assert parse_amount("250.00 Cr") == (Decimal("250.00"), False)

    def test_european_format(self) -> None:
        """Test dot-thousands and comma-decimal amounts."""
        assert parse_amount("1.234,56") == (Decimal("1234.56"), False)
        assert parse_amount("12,5") == (Decimal("12.5"), False)

    def test_ambiguous_comma_depends_on_locale(self) -> None:
        """Test that 1,234 is a thousand unless the locale is EU."""
        assert parse_amount("1,234")[0] == Decimal("1234")
        assert parse_amount("1,234", locale="EU")[0] == Decimal("1.234")

    @pytest.mark.parametrize("raw", ["", "   ", "abc", "12..5", "NaN", "Infinity"])
    def test_invalid(self, raw: str) -> None:
        """Test that unreadable amounts raise ValueError."""
        with pytest.raises(ValueError):
            parse_amount(raw)

    @pytest.mark.parametrize(
        "raw", ["-0.01", "(5)", "5 DR", "£-1,000.00", "-₹99", "1.234,56", "0"]
    )
    def test_amount_never_negative(self, raw: str) -> None:
        """Test that the returned amount is always non-negative."""
        amount, _ = parse_amount(raw)
        assert amount >= 0


class TestNormalizeSignedAmount:
    """Tests for single signed amount columns."""

    def test_negative_is_debit(self) -> None:
        """Test that negative amounts become debits."""
        result = normalize_signed_amount("-25.00", "£")
        assert result is not None
        assert result.amount == Decimal("25.00")
        assert result.direction is Direction.DEBIT
        assert result.is_debit

    def test_positive_is_credit(self) -> None:
        """Test that positive amounts become credits."""
        result = normalize_signed_amount("£1,500.00", "£")
        assert result is not None
        assert result.amount == Decimal("1500.00")
        assert result.direction is Direction.CREDIT

    def test_zero_is_dropped(self) -> None:
        """Test that a zero amount returns None."""
        assert normalize_signed_amount("0.00") is None
        assert normalize_signed_amount("-0.00") is None


class TestNormalizeDebitCredit:
    """Tests for debit/credit column pairs."""

    def test_debit_only(self) -> None:
        """Test a withdrawal with a blank deposit."""
        result = normalize_debit_credit("250.00", "", "₹")
        assert result is not None
        assert result.amount == Decimal("250.00")
        assert result.direction is Direction.DEBIT

    def test_credit_only(self) -> None:
        """Test a deposit with a dash in the withdrawal column."""
        result = normalize_debit_credit("-", "1,000.00", "₹")
        assert result is not None
        assert result.amount == Decimal("1000.00")
        assert result.direction is Direction.CREDIT

    def test_column_decides_direction(self) -> None:
        """Test that a sign inside the debit column is ignored."""
        result = normalize_debit_credit("-250.00", None)
        assert result is not None
        assert result.amount == Decimal("250.00")
        assert result.direction is Direction.DEBIT

    def test_both_blank(self) -> None:
        """Test that two blank cells give no amount."""
        assert normalize_debit_credit("", "") is None
        assert normalize_debit_credit("0.00", "") is None

    def test_both_non_zero_is_ambiguous(self) -> None:
        """Test that a row with both sides set is rejected."""
        with pytest.raises(AmbiguousAmountError) as exc_info:
            normalize_debit_credit("10.00", "5.00")

        assert exc_info.value.debit == "10.00"
        assert exc_info.value.credit == "5.00"
        assert isinstance(exc_info.value, ValueError)

    def test_unparseable_side(self) -> None:
        """Test that garbage in either column raises ValueError."""
        with pytest.raises(ValueError):
            normalize_debit_credit("", "n/a")


class TestFormatting:
    """Tests for rounding and display helpers."""

    def test_quantize_rounds_half_up(self) -> None:
        """Test rounding to cents."""
        assert quantize_amount(Decimal("2.345")) == Decimal("2.35")
        assert quantize_amount(Decimal("2")) == Decimal("2.00")

    def test_format_currency(self) -> None:
        """Test thousands separators and currency code."""
        assert format_currency(Decimal("1234.5"), "GBP") == "1,234.50 GBP"
        assert format_currency(Decimal("3")) == "3.00"
