"""Internal transfer detection.

Moving money between one's own accounts is not spending. Transfers are
recognised by known phrasings and, approximately, by size: any amount above
the large-transfer threshold is assumed to be a self-transfer. The size
rule will misfire on genuine large purchases and miss small transfers; it
is a heuristic and should be tuned or disabled per user.
"""

from decimal import Decimal
from typing import Iterable, Optional

from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_TRANSFER_PHRASES = (
    "transfer to pot",
    "pot to main",
    "internal fund transfer",
    "own account transfer",
    "account transfer",
    "savings account",
    "self transfer",
)

DEFAULT_LARGE_TRANSFER_THRESHOLD = Decimal("20000")


class TransferFilter:
    """Flag internal transfers for exclusion from expenses."""

    def __init__(
        self,
        phrases: Optional[Iterable[str]] = None,
        large_transfer_threshold: Optional[Decimal] = DEFAULT_LARGE_TRANSFER_THRESHOLD,
    ):
        """Initialize the filter.

        Args:
            phrases: Case-insensitive phrases marking a transfer. Defaults to
                DEFAULT_TRANSFER_PHRASES.
            large_transfer_threshold: Amounts strictly above this are treated
                as transfers. None disables the size rule.
        """
        source = DEFAULT_TRANSFER_PHRASES if phrases is None else phrases
        self.phrases = tuple(p.lower() for p in source if p and p.strip())
        if large_transfer_threshold is not None and large_transfer_threshold < 0:
            raise ValueError("large_transfer_threshold must not be negative")
        self.large_transfer_threshold = large_transfer_threshold

    def check(self, description: str, amount: Decimal) -> Optional[str]:
        """Explain why a transaction is an internal transfer.

        Args:
            description: Transaction description.
            amount: Transaction amount (sign ignored).

        Returns:
            Reason string, or None if the transaction is not a transfer.
        """
        desc = (description or "").lower()
        for phrase in self.phrases:
            if phrase in desc:
                return f"matches transfer phrase '{phrase}'"

        if self.large_transfer_threshold is not None and abs(amount) > self.large_transfer_threshold:
            logger.debug(f"Treating large amount {abs(amount)} as transfer: {description[:50]}")
            return f"amount exceeds large-transfer threshold {self.large_transfer_threshold}"

        return None

    def is_internal_transfer(self, description: str, amount: Decimal) -> bool:
        return self.check(description, amount) is not None
