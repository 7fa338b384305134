"""Classification rule data models."""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum pattern length to prevent overly complex patterns
MAX_PATTERN_LENGTH = 500

# Substrings of patterns known to backtrack catastrophically
DANGEROUS_PATTERN_SIGNATURES = [
    r"(\w+)+",
    r"(.*)*",
    r"(.+)+",
    r'([^"]+)+',
    r"(\s+)+",
]

# Group containing a quantifier followed by an outer quantifier: (a+)+, (a+){2,}
_NESTED_QUANTIFIER_PATTERN = re.compile(
    r"\([^)]*[+*?][^)]*\)[+*?]|"
    r"\([^)]*[+*?][^)]*\)\{[0-9,]+\}"
)

FALLBACK_CATEGORY = "Other"


class RuleDefinitionError(ValueError):
    """Raised when a rule dictionary is structurally invalid."""

    pass


def is_safe_pattern(pattern: str) -> tuple[bool, str]:
    """Check if a regex pattern is safe from ReDoS.

    Args:
        pattern: Regex pattern string to validate.

    Returns:
        Tuple of (is_safe, reason if unsafe).
    """
    if len(pattern) > MAX_PATTERN_LENGTH:
        return False, f"Pattern exceeds {MAX_PATTERN_LENGTH} character limit"

    if _NESTED_QUANTIFIER_PATTERN.search(pattern):
        return False, "Pattern contains dangerous nested quantifier"

    for dangerous in DANGEROUS_PATTERN_SIGNATURES:
        if dangerous in pattern:
            return False, "Pattern contains known dangerous signature"

    return True, ""


def _string_list(data: dict[str, Any], key: str, rule_name: str) -> list[str]:
    value = data.get(key, [])
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        raise RuleDefinitionError(f"Rule '{rule_name}': '{key}' must be a list")
    return [str(v) for v in value]


@dataclass
class ClassificationRule:
    """Rule scoring a transaction against one category.

    Attributes:
        category: Category assigned when this rule wins.
        keywords: Lower-case words; the fraction present in the description
            contributes to the score.
        merchants: Upper-case merchant names matched as substrings.
        patterns: Regex patterns matched against the description.
        base_confidence: Multiplier applied to the accumulated score.
        subcategories: Subcategories this rule may assign.
        region: Region the rule is restricted to, or None for every region.
        amount_min: Lower bound of the in-region price boost range.
        amount_max: Upper bound of the in-region price boost range.
        amount_range_region: Region in which the price boost applies, or None
            for every region.
    """

    category: str
    keywords: list[str] = field(default_factory=list)
    merchants: list[str] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)
    base_confidence: float = 1.0
    subcategories: list[str] = field(default_factory=list)
    region: Optional[str] = None
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    amount_range_region: Optional[str] = None

    _compiled_patterns: list[re.Pattern[str]] = field(
        default_factory=list, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        """Normalize case and compile regex patterns."""
        if not 0.0 <= self.base_confidence <= 1.0:
            raise RuleDefinitionError(
                f"Rule '{self.category}': base_confidence must be between 0.0 and 1.0, "
                f"got {self.base_confidence}"
            )
        self.keywords = [k.lower() for k in self.keywords]
        self.merchants = [m.upper() for m in self.merchants]
        if self.region is not None:
            self.region = self.region.upper()
        if self.amount_range_region is not None:
            self.amount_range_region = self.amount_range_region.upper()
        elif self.region is not None:
            self.amount_range_region = self.region

        self._compiled_patterns = []
        for pattern in self.patterns:
            is_safe, reason = is_safe_pattern(pattern)
            if not is_safe:
                logger.warning(
                    f"Rejecting unsafe regex pattern '{pattern}' in rule '{self.category}': {reason}"
                )
                continue
            try:
                self._compiled_patterns.append(re.compile(pattern, re.IGNORECASE))
            except re.error as e:
                logger.warning(f"Invalid regex pattern '{pattern}' in rule '{self.category}': {e}")

        if not (self.keywords or self.merchants or self._compiled_patterns):
            logger.warning(f"Rule '{self.category}' has no matching criteria and will never match")

    @property
    def compiled_patterns(self) -> list[re.Pattern[str]]:
        return self._compiled_patterns

    @property
    def has_amount_range(self) -> bool:
        return self.amount_min is not None or self.amount_max is not None

    def applies_to_region(self, region: Optional[str]) -> bool:
        """Check whether the rule may be used for a transaction's region.

        Region-restricted rules only apply when the caller names that region.
        """
        if self.region is None:
            return True
        return region is not None and region.upper() == self.region

    def amount_in_range(self, amount: Decimal, region: Optional[str] = None) -> bool:
        """Check whether an amount earns the price-range boost in a region."""
        if not self.has_amount_range:
            return False
        if self.amount_range_region is not None and (
            region is None or region.upper() != self.amount_range_region
        ):
            return False
        if self.amount_min is not None and amount < self.amount_min:
            return False
        if self.amount_max is not None and amount > self.amount_max:
            return False
        return True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassificationRule":
        """Create a rule from a dictionary (e.g., from YAML).

        Args:
            data: Dictionary containing rule data.

        Returns:
            A new ClassificationRule.

        Raises:
            RuleDefinitionError: If required keys are missing or malformed.
        """
        if not isinstance(data, dict):
            raise RuleDefinitionError(f"Rule must be a mapping, got {type(data).__name__}")
        if "category" not in data:
            raise RuleDefinitionError("Rule is missing required key 'category'")

        name = str(data["category"])

        amount_min = None
        amount_max = None
        range_region = None
        price_range = data.get("amount_range")
        if price_range is not None:
            if not isinstance(price_range, dict):
                raise RuleDefinitionError(f"Rule '{name}': 'amount_range' must be a mapping")
            if price_range.get("min") is not None:
                amount_min = Decimal(str(price_range["min"]))
            if price_range.get("max") is not None:
                amount_max = Decimal(str(price_range["max"]))
            if price_range.get("region") is not None:
                range_region = str(price_range["region"])

        try:
            base_confidence = float(data.get("base_confidence", 1.0))
        except (TypeError, ValueError) as e:
            raise RuleDefinitionError(f"Rule '{name}': invalid base_confidence") from e

        region = data.get("region")

        return cls(
            category=name,
            keywords=_string_list(data, "keywords", name),
            merchants=_string_list(data, "merchants", name),
            patterns=_string_list(data, "patterns", name),
            base_confidence=base_confidence,
            subcategories=_string_list(data, "subcategories", name),
            region=str(region) if region is not None else None,
            amount_min=amount_min,
            amount_max=amount_max,
            amount_range_region=range_region,
        )

    def __repr__(self) -> str:
        return (
            f"ClassificationRule(category={self.category!r}, "
            f"base_confidence={self.base_confidence}, region={self.region})"
        )


@dataclass
class RuleSet:
    """Versioned collection of classification rules.

    Attributes:
        version: Version string of the rule data.
        rules: Rules in declaration order; earlier rules win ties.
        subcategory_keywords: Map of subcategory name to keywords.
        known_merchants: Map of upper-case description fragment to merchant name.
    """

    version: str
    rules: list[ClassificationRule] = field(default_factory=list)
    subcategory_keywords: dict[str, list[str]] = field(default_factory=dict)
    known_merchants: dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.rules)

    def categories(self) -> list[str]:
        """Distinct category names in declaration order."""
        seen: list[str] = []
        for rule in self.rules:
            if rule.category not in seen:
                seen.append(rule.category)
        return seen

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleSet":
        """Create a RuleSet from a dictionary (e.g., a loaded rules YAML).

        Raises:
            RuleDefinitionError: If the structure is invalid.
        """
        if not isinstance(data, dict):
            raise RuleDefinitionError("Rule set must be a mapping")

        raw_rules = data.get("rules", [])
        if not isinstance(raw_rules, list):
            raise RuleDefinitionError("'rules' must be a list")

        subcategory_keywords = data.get("subcategory_keywords") or {}
        if not isinstance(subcategory_keywords, dict):
            raise RuleDefinitionError("'subcategory_keywords' must be a mapping")

        known_merchants = data.get("known_merchants") or {}
        if not isinstance(known_merchants, dict):
            raise RuleDefinitionError("'known_merchants' must be a mapping")

        return cls(
            version=str(data.get("version", "custom")),
            rules=[ClassificationRule.from_dict(r) for r in raw_rules],
            subcategory_keywords={
                str(k): [str(w).lower() for w in (v or [])] for k, v in subcategory_keywords.items()
            },
            known_merchants={str(k).upper(): str(v) for k, v in known_merchants.items()},
        )

    @classmethod
    def default(cls) -> "RuleSet":
        """Build the packaged default rule set."""
        from finance_ingest.processing.default_rules import DEFAULT_RULE_DATA

        return cls.from_dict(DEFAULT_RULE_DATA)


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one transaction.

    Attributes:
        category: Winning category, or "Other".
        subcategory: Chosen subcategory, if any.
        confidence: Score in [0, 1].
        reasons: Human-readable list of what matched.
    """

    category: str
    subcategory: Optional[str]
    confidence: float
    reasons: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")

    @property
    def is_fallback(self) -> bool:
        return self.category == FALLBACK_CATEGORY
