"""Bank statement layout detection."""

import dataclasses
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from finance_ingest.models.bank_format import BankFormatDescriptor
from finance_ingest.parsers.base import UnknownFormatError
from finance_ingest.parsers.formats import COLUMN_SYNONYMS, GENERIC_FORMAT_NAME, FormatRegistry
from finance_ingest.parsers.tokenizer import Tokenizer
from finance_ingest.utils.date_utils import DATE_FORMATS
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

# Names this short only match a header cell exactly ("dt", "in", "out")
MIN_PHRASE_LENGTH = 4

# Resolution order for header-derived layouts
_GENERIC_FIELDS = ("date", "description", "debit", "credit", "amount", "balance", "reference")


@dataclass(frozen=True)
class DetectedFormat:
    """Result of layout detection.

    Attributes:
        descriptor: Matched or derived layout.
        header_index: Index of the header line within the input lines.
    """

    descriptor: BankFormatDescriptor
    header_index: int

    @property
    def data_start(self) -> int:
        return self.header_index + 1


def _names_for(column: str) -> tuple[str, ...]:
    name = column.lower().strip()
    return (name,) + COLUMN_SYNONYMS.get(name, ())


def _phrase_in(phrase: str, cell: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(phrase)}(?!\w)", cell) is not None


def cell_matches(cell: str, column: str, exact_only: bool = False) -> bool:
    """Check whether a header cell names a column.

    Args:
        cell: Header cell text.
        column: Column name (e.g. "Description").
        exact_only: Skip the phrase match.

    Returns:
        True if the cell equals the name or a synonym, or (for names longer
        than three characters) contains one as a whole phrase.
    """
    cell = cell.lower().strip()
    if not cell:
        return False
    for name in _names_for(column):
        if cell == name:
            return True
        if not exact_only and len(name) >= MIN_PHRASE_LENGTH and _phrase_in(name, cell):
            return True
    return False


class FormatDetector:
    """Find the header row of a statement and pick the matching layout."""

    def __init__(
        self,
        registry: Optional[FormatRegistry] = None,
        generic_date_format: str = "DD/MM/YYYY",
        max_header_scan: int = 20,
        tokenizer: Optional[Tokenizer] = None,
    ):
        """Initialize the detector.

        Args:
            registry: Layouts to match against. Defaults to the built-ins.
            generic_date_format: Date hint for header-derived layouts.
            max_header_scan: Number of non-blank lines searched for a header.
            tokenizer: Tokenizer used to split header lines.

        Raises:
            ValueError: If generic_date_format is not a supported hint.
        """
        if generic_date_format not in DATE_FORMATS:
            raise ValueError(f"Unsupported generic date format: {generic_date_format}")
        self.registry = registry if registry is not None else FormatRegistry()
        self.generic_date_format = generic_date_format
        self.max_header_scan = max_header_scan
        self.tokenizer = tokenizer or Tokenizer()

    def detect(self, lines: Sequence[str], source: Optional[str] = None) -> DetectedFormat:
        """Detect the layout of a statement.

        Args:
            lines: Physical lines of the statement.
            source: Source name used in error messages.

        Returns:
            DetectedFormat with the layout and header position.

        Raises:
            UnknownFormatError: If no header row matches any layout.
        """
        scanned = 0
        for index, line in enumerate(lines):
            if not line.strip():
                continue
            scanned += 1
            if scanned > self.max_header_scan:
                break

            cells = self.tokenizer.parse_fields(line.strip())
            if len(cells) < 2:
                continue

            descriptor = self.match_registered(cells)
            if descriptor is None:
                descriptor = self.derive_generic(cells)
            if descriptor is not None:
                logger.info(f"Detected {descriptor.name} format (header at line {index + 1})")
                return DetectedFormat(descriptor=descriptor, header_index=index)

        raise UnknownFormatError("Could not detect bank statement format", source)

    def match_registered(self, cells: Sequence[str]) -> Optional[BankFormatDescriptor]:
        """Return the registered layout whose identifier best fits a header.

        Every layout whose whole identifier is present is a candidate. More
        identifier columns wins, then a longer identifier text, then the
        earlier registration.
        """
        best: Optional[BankFormatDescriptor] = None
        best_key = (0, 0)

        for descriptor in self.registry:
            if descriptor.name == GENERIC_FORMAT_NAME or not descriptor.identifier:
                continue
            if not all(any(cell_matches(cell, col) for cell in cells) for col in descriptor.identifier):
                continue
            key = (len(descriptor.identifier), sum(len(c) for c in descriptor.identifier))
            if key > best_key:
                best, best_key = descriptor, key

        return best

    def derive_generic(self, cells: Sequence[str]) -> Optional[BankFormatDescriptor]:
        """Build a layout from a header that names its columns plainly.

        Returns:
            A descriptor derived from the generic template, or None when the
            header lacks a date, description and amount (or debit/credit pair).
        """
        columns = self.resolve_columns(cells)
        if "date" not in columns or "description" not in columns:
            return None

        if "debit" in columns and "credit" in columns:
            columns.pop("amount", None)
        elif "amount" in columns:
            columns.pop("debit", None)
            columns.pop("credit", None)
        else:
            return None

        template = self.registry.generic or BankFormatDescriptor(
            name=GENERIC_FORMAT_NAME,
            region="GLOBAL",
            date_format=self.generic_date_format,
            identifier=(),
        )
        return dataclasses.replace(
            template,
            date_format=self.generic_date_format,
            identifier=tuple(cells[i] for i in sorted(columns.values())),
            columns=columns,
        )

    def resolve_columns(self, cells: Sequence[str]) -> dict[str, int]:
        """Map semantic fields to header positions.

        Exact matches are preferred over phrase matches, and a position is
        assigned to at most one field.
        """
        columns: dict[str, int] = {}
        used: set[int] = set()

        for field_name in _GENERIC_FIELDS:
            for exact_only in (True, False):
                index = next(
                    (
                        i
                        for i, cell in enumerate(cells)
                        if i not in used and cell_matches(cell, field_name, exact_only=exact_only)
                    ),
                    None,
                )
                if index is not None:
                    columns[field_name] = index
                    used.add(index)
                    break

        return columns
