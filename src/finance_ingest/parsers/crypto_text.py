"""Parser for free-text crypto portfolio dumps.

Expected block shape::

    1. USDC (Base)
    Price: $0.99 | Change: -0.0%
    Quantity: 62.192612 | Value: $62.18
"""

import re
from decimal import Decimal, InvalidOperation

from finance_ingest.models.transaction import CryptoHolding
from finance_ingest.parsers.base import ParseOutcome, require_content
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

HEADER_PATTERN = re.compile(r"^\d+\.\s*(\w+)\s*\(([^)]+)\)")
PRICE_PATTERN = re.compile(r"Price:\s*\$?([\d,]+\.?\d*)\s*\|\s*Change:\s*([-+]?[\d.]+)%", re.IGNORECASE)
QUANTITY_PATTERN = re.compile(
    r"Quantity:\s*([\d,]+\.?\d*)\s*\|\s*Value:\s*\$?([\d,]+\.?\d*)", re.IGNORECASE
)

# Detail lines must follow the header within this many lines
LOOKAHEAD_LINES = 4


def _to_decimal(raw: str) -> Decimal:
    return Decimal(raw.replace(",", ""))


class CryptoHoldingsParser:
    """Extract holdings from numbered "SYMBOL (NETWORK)" blocks."""

    def __init__(self, lookahead: int = LOOKAHEAD_LINES):
        self.lookahead = lookahead

    def parse(self, text: str, source: str = "crypto") -> ParseOutcome:
        """Parse a portfolio dump.

        A block is kept only when price, quantity and value are all greater
        than zero; incomplete blocks are reported as malformed.

        Args:
            text: Raw portfolio text.
            source: Source name used in warnings.

        Returns:
            ParseOutcome whose holdings list is filled.

        Raises:
            EmptyInputError: If the text is blank.
        """
        lines = require_content(text, source)
        outcome = ParseOutcome(source=source)

        for i, line in enumerate(lines):
            header = HEADER_PATTERN.match(line.strip())
            if header is None:
                continue

            outcome.records_seen += 1
            symbol, network = header.group(1).upper(), header.group(2).strip()
            price = change = quantity = value = Decimal("0")

            try:
                for j in range(i + 1, min(i + 1 + self.lookahead, len(lines))):
                    detail = lines[j].strip()
                    if HEADER_PATTERN.match(detail):
                        break

                    price_match = PRICE_PATTERN.search(detail)
                    if price_match:
                        price = _to_decimal(price_match.group(1))
                        change = _to_decimal(price_match.group(2))

                    quantity_match = QUANTITY_PATTERN.search(detail)
                    if quantity_match:
                        quantity = _to_decimal(quantity_match.group(1))
                        value = _to_decimal(quantity_match.group(2))
                        break
            except InvalidOperation:
                outcome.skip(i + 1, f"{symbol} ({network}): unreadable number")
                continue

            if price <= 0 or quantity <= 0 or value <= 0:
                outcome.skip(i + 1, f"{symbol} ({network}): missing price, quantity or value")
                continue

            outcome.holdings.append(
                CryptoHolding(
                    symbol=symbol,
                    network=network,
                    price=price,
                    change_percent=change,
                    quantity=quantity,
                    value=value,
                    source_line_number=i + 1,
                )
            )

        total = sum((h.value for h in outcome.holdings), Decimal("0"))
        logger.info(f"Parsed {len(outcome.holdings)} crypto holdings worth ${total:.2f} from {source}")
        return outcome
