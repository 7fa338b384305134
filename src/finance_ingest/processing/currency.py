"""Currency conversion against an injected rate source."""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional, Protocol

from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


class RateLookup(Protocol):
    """Source of exchange rates."""

    def rate(self, from_currency: str, to_currency: str, at: date) -> Optional[Decimal]:
        """Return units of to_currency per unit of from_currency, or None."""
        ...


def parse_pair(pair: str) -> tuple[str, str]:
    """Split a "FROM/TO" currency pair.

    Raises:
        ValueError: If the pair is not two three-letter codes.
    """
    parts = [p.strip().upper() for p in pair.split("/")]
    if len(parts) != 2 or not all(len(p) == 3 and p.isalpha() for p in parts):
        raise ValueError(f"Invalid currency pair: {pair!r}")
    return parts[0], parts[1]


class StaticRateLookup:
    """Fixed rates, independent of date.

    The inverse of every configured pair is derived, and converting a
    currency to itself always has rate 1.
    """

    def __init__(self, rates: Optional[Mapping[str, Decimal]] = None):
        """Initialize with rates keyed "FROM/TO".

        Raises:
            ValueError: If a pair is malformed or a rate is not positive.
        """
        self._rates: dict[tuple[str, str], Decimal] = {}
        for pair, raw_rate in (rates or {}).items():
            source, target = parse_pair(pair)
            rate = Decimal(str(raw_rate))
            if rate <= 0:
                raise ValueError(f"Rate for {pair} must be positive, got {rate}")
            self._rates[(source, target)] = rate
            self._rates.setdefault((target, source), Decimal("1") / rate)

    def rate(self, from_currency: str, to_currency: str, at: date) -> Optional[Decimal]:
        source, target = from_currency.upper(), to_currency.upper()
        if source == target:
            return Decimal("1")
        return self._rates.get((source, target))


class CurrencyConverter:
    """Convert amounts into a base currency."""

    def __init__(self, lookup: RateLookup, base_currency: str):
        self.lookup = lookup
        self.base_currency = base_currency.upper()

    def convert(self, amount: Decimal, currency: str, at: date) -> Optional[Decimal]:
        """Convert an amount to the base currency.

        Args:
            amount: Amount in currency.
            currency: ISO code of amount.
            at: Date the rate should apply to.

        Returns:
            Converted amount rounded to cents, or None if no rate is known.
        """
        rate = self.lookup.rate(currency, self.base_currency, at)
        if rate is None:
            logger.debug(f"No {currency}/{self.base_currency} rate for {at}")
            return None
        return (amount * rate).quantize(CENT, rounding=ROUND_HALF_UP)
