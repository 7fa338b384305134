"""Built-in bank statement layouts and the registry that holds them."""

from typing import Iterator, Optional

from finance_ingest.models.bank_format import BankFormatDescriptor
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

GENERIC_FORMAT_NAME = "Generic CSV"

# Alternative header spellings for each semantic column
COLUMN_SYNONYMS: dict[str, tuple[str, ...]] = {
    "date": ("transaction date", "trans date", "dt", "transaction_date", "posting date", "created"),
    "description": (
        "memo",
        "details",
        "narration",
        "particulars",
        "transaction description",
        "desc",
        "counter party",
    ),
    "amount": ("value", "sum", "transaction amount", "amt"),
    "debit": ("debit amount", "withdrawal", "withdrawals", "paid out", "out"),
    "credit": ("credit amount", "deposit", "deposits", "paid in", "in"),
    "balance": ("running balance", "closing balance", "current balance"),
    "reference": ("ref", "cheque details", "chq/ref number"),
}


BUILTIN_FORMATS: tuple[BankFormatDescriptor, ...] = (
    # UK
    BankFormatDescriptor(
        name="Barclays UK",
        region="UK",
        date_format="DD/MM/YYYY",
        identifier=("Number", "Date", "Account", "Amount", "Subcategory", "Memo"),
        columns={"date": 1, "amount": 3, "reference": 4, "description": 5},
        currency_symbol="£",
        currency_code="GBP",
    ),
    BankFormatDescriptor(
        name="HSBC UK",
        region="UK",
        date_format="DD MMM YYYY",
        identifier=("Date", "Description", "Amount", "Balance"),
        columns={"date": 0, "description": 1, "amount": 2, "balance": 3},
        currency_symbol="£",
        currency_code="GBP",
    ),
    BankFormatDescriptor(
        name="Santander UK",
        region="UK",
        date_format="DD/MM/YYYY",
        identifier=("Date", "Description", "Debit", "Credit", "Balance"),
        columns={"date": 0, "description": 1, "debit": 2, "credit": 3, "balance": 4},
        currency_symbol="£",
        currency_code="GBP",
    ),
    BankFormatDescriptor(
        name="Lloyds Bank UK",
        region="UK",
        date_format="DD/MM/YYYY",
        identifier=(
            "Transaction Date",
            "Transaction Type",
            "Sort Code",
            "Account Number",
            "Transaction Description",
            "Debit Amount",
            "Credit Amount",
            "Balance",
        ),
        columns={"date": 0, "description": 4, "debit": 5, "credit": 6, "balance": 7},
        currency_symbol="£",
        currency_code="GBP",
    ),
    BankFormatDescriptor(
        name="NatWest UK",
        region="UK",
        date_format="DD MMM YYYY",
        identifier=("Date", "Type", "Description", "Value", "Balance", "Account Name", "Account Number"),
        columns={"date": 0, "description": 2, "amount": 3, "balance": 4},
        currency_symbol="£",
        currency_code="GBP",
    ),
    BankFormatDescriptor(
        name="Monzo",
        region="UK",
        date_format="YYYY-MM-DD",
        identifier=("id", "created", "description", "amount", "currency", "local_amount", "local_currency", "category"),
        columns={"date": 1, "description": 2, "amount": 3},
        currency_symbol="£",
        currency_code="GBP",
    ),
    BankFormatDescriptor(
        name="Starling",
        region="UK",
        date_format="DD/MM/YYYY",
        identifier=("Date", "Counter Party", "Reference", "Type", "Amount (GBP)", "Balance (GBP)"),
        columns={"date": 0, "description": 1, "reference": 2, "amount": 4, "balance": 5},
        currency_symbol="£",
        currency_code="GBP",
    ),
    BankFormatDescriptor(
        name="Revolut",
        region="GLOBAL",
        date_format="YYYY-MM-DD",
        identifier=("Type", "Product", "Started Date", "Completed Date", "Description", "Amount", "Fee", "Currency", "State", "Balance"),
        columns={"date": 2, "description": 4, "amount": 5, "balance": 9},
        currency_symbol="£",
        currency_code="GBP",
    ),
    # US
    BankFormatDescriptor(
        name="Chase USA",
        region="US",
        date_format="MM/DD/YYYY",
        identifier=("Transaction Date", "Post Date", "Description", "Category", "Type", "Amount", "Memo"),
        columns={"date": 0, "description": 2, "amount": 5, "merchant": 6},
        currency_symbol="$",
        currency_code="USD",
    ),
    BankFormatDescriptor(
        name="Bank of America",
        region="US",
        date_format="MM/DD/YYYY",
        identifier=("Date", "Description", "Amount", "Running Balance"),
        columns={"date": 0, "description": 1, "amount": 2, "balance": 3},
        currency_symbol="$",
        currency_code="USD",
    ),
    # India
    BankFormatDescriptor(
        name="HDFC India",
        region="IN",
        date_format="DD/MM/YY",
        identifier=("Date", "Narration", "Value Dt", "Debit Amount", "Credit Amount", "Chq/Ref Number", "Closing Balance"),
        columns={"date": 0, "description": 1, "debit": 3, "credit": 4, "reference": 5, "balance": 6},
        currency_symbol="₹",
        currency_code="INR",
    ),
    BankFormatDescriptor(
        name="ICICI Bank India",
        region="IN",
        date_format="DD-MM-YYYY",
        identifier=("S.No.", "Transaction Date", "Value Date", "Description", "Debit", "Credit", "Balance"),
        columns={"date": 1, "description": 3, "debit": 4, "credit": 5, "balance": 6},
        currency_symbol="₹",
        currency_code="INR",
    ),
    BankFormatDescriptor(
        name="Jupiter",
        region="IN",
        date_format="DD/MM/YYYY",
        identifier=("Date", "Value Date", "Particulars", "Tran Type", "Cheque Details", "Withdrawals", "Deposits", "Balance"),
        columns={"date": 0, "description": 2, "reference": 4, "debit": 5, "credit": 6, "balance": 7},
        currency_symbol="₹",
        currency_code="INR",
    ),
    # Template for header-resolved layouts; never matched by identifier
    BankFormatDescriptor(
        name=GENERIC_FORMAT_NAME,
        region="GLOBAL",
        date_format="DD/MM/YYYY",
        identifier=("date", "description", "amount"),
        columns={"date": 0, "description": 1, "amount": 2},
        currency_symbol="$",
        currency_code="USD",
    ),
)


class FormatRegistry:
    """Ordered, name-keyed collection of bank layouts.

    Registration order matters: when two layouts match a header equally
    well, the one registered first wins.
    """

    def __init__(self, formats: Optional[list[BankFormatDescriptor]] = None):
        """Initialize the registry.

        Args:
            formats: Initial layouts. Defaults to BUILTIN_FORMATS.
        """
        self._formats: dict[str, BankFormatDescriptor] = {}
        for descriptor in BUILTIN_FORMATS if formats is None else formats:
            self.register(descriptor)

    def register(self, descriptor: BankFormatDescriptor, replace: bool = False) -> None:
        """Add a layout.

        Args:
            descriptor: Layout to add.
            replace: Allow overwriting a layout with the same name.

        Raises:
            ValueError: If the name is taken and replace is False, or the
                layout maps no date or description column.
        """
        if descriptor.name in self._formats and not replace:
            raise ValueError(f"Bank format already registered: {descriptor.name}")
        if "date" not in descriptor.columns or "description" not in descriptor.columns:
            raise ValueError(f"Bank format '{descriptor.name}' must map date and description columns")
        if "amount" not in descriptor.columns and not descriptor.has_debit_credit:
            raise ValueError(f"Bank format '{descriptor.name}' must map amount or debit/credit columns")
        self._formats[descriptor.name] = descriptor
        logger.debug(f"Registered bank format: {descriptor.name} ({descriptor.region})")

    def get(self, name: str) -> Optional[BankFormatDescriptor]:
        return self._formats.get(name)

    def by_region(self, region: str) -> list[BankFormatDescriptor]:
        """Return layouts for a region, in registration order."""
        region = region.upper()
        return [f for f in self._formats.values() if f.region == region]

    @property
    def generic(self) -> Optional[BankFormatDescriptor]:
        return self._formats.get(GENERIC_FORMAT_NAME)

    def __iter__(self) -> Iterator[BankFormatDescriptor]:
        return iter(list(self._formats.values()))

    def __len__(self) -> int:
        return len(self._formats)

    def __contains__(self, name: object) -> bool:
        return name in self._formats
