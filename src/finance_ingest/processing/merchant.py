"""Merchant name extraction from transaction descriptions."""

import re
from typing import Mapping, Optional

from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

# Payment-channel prefixes stripped before taking the leading words.
# Longer prefixes come first so "CARD PAYMENT TO" wins over "CARD PAYMENT".
PAYMENT_PREFIXES = (
    "CARD PAYMENT TO ",
    "DIRECT DEBIT TO ",
    "FASTER PAYMENT TO ",
    "STANDING ORDER TO ",
    "CARD PAYMENT ",
    "PAYMENT TO ",
    "TFR TO ",
    "UPI/",
    "POS ",
    "BP ",
    "CP ",
    "DD ",
)

MAX_MERCHANT_WORDS = 3


class MerchantExtractor:
    """Find the merchant a transaction was paid to.

    A known-merchant table is consulted first; otherwise the leading words
    of the description after any payment prefix are used.
    """

    def __init__(self, known_merchants: Optional[Mapping[str, str]] = None):
        """Initialize the extractor.

        Args:
            known_merchants: Upper-case description fragment to display name,
                checked in order.
        """
        self.known_merchants = {k.upper(): v for k, v in (known_merchants or {}).items()}

    def extract(self, description: str, hint: Optional[str] = None) -> Optional[str]:
        """Extract a merchant name.

        Args:
            description: Transaction description.
            hint: Merchant column value from the statement, if any.

        Returns:
            Merchant name, or None when nothing usable is present.
        """
        if hint and hint.strip():
            known = self._lookup(hint)
            return known or hint.strip()

        if not description or not description.strip():
            return None

        known = self._lookup(description)
        if known:
            return known

        cleaned = description.strip().upper()
        for prefix in PAYMENT_PREFIXES:
            if cleaned.startswith(prefix):
                cleaned = cleaned[len(prefix):]
                break

        # UPI descriptions separate payee and handles with slashes
        words = [w for w in re.split(r"[\s/]+", cleaned) if w]
        if not words:
            return None
        return " ".join(words[:MAX_MERCHANT_WORDS]).title()

    def _lookup(self, text: str) -> Optional[str]:
        upper = text.upper()
        for key, name in self.known_merchants.items():
            if key in upper:
                return name
        return None
