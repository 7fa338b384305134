"""Rule-based transaction classifier with confidence scoring."""

from decimal import Decimal
from typing import Optional

from finance_ingest.models.rule import (
    FALLBACK_CATEGORY,
    ClassificationResult,
    ClassificationRule,
    RuleSet,
)
from finance_ingest.utils.logging_config import get_logger

logger = get_logger(__name__)

MERCHANT_WEIGHT = 0.40
PATTERN_WEIGHT = 0.35
KEYWORD_WEIGHT = 0.20
AMOUNT_RANGE_WEIGHT = 0.10


class TransactionClassifier:
    """Assign a category to a transaction from an injected RuleSet.

    Each applicable rule accumulates a score:
    - merchant match: +0.40
    - first matching regex pattern: +0.35
    - keyword overlap: +0.20 x (matched / total keywords)
    - amount inside the rule's in-region range: +0.10

    The sum is multiplied by the rule's base confidence and capped at 1.0.
    The highest-scoring rule wins if it scores strictly above
    min_confidence; on equal scores the earlier rule is kept.
    """

    def __init__(
        self,
        rule_set: Optional[RuleSet] = None,
        min_confidence: float = 0.3,
        fallback_confidence: float = 0.1,
    ):
        """Initialize the classifier.

        Args:
            rule_set: Rules to score against. Defaults to RuleSet.default().
            min_confidence: Score a rule must exceed to be chosen.
            fallback_confidence: Confidence reported for "Other".
        """
        if not 0.0 <= fallback_confidence <= 1.0:
            raise ValueError(f"fallback_confidence must be between 0.0 and 1.0, got {fallback_confidence}")
        self.rule_set = rule_set if rule_set is not None else RuleSet.default()
        self.min_confidence = min_confidence
        self.fallback_confidence = fallback_confidence
        logger.debug(
            f"Classifier loaded rule set {self.rule_set.version} with {len(self.rule_set)} rules"
        )

    def classify(
        self,
        description: str,
        merchant: Optional[str] = None,
        amount: Optional[Decimal] = None,
        region: Optional[str] = None,
    ) -> ClassificationResult:
        """Classify one transaction.

        Args:
            description: Transaction description.
            merchant: Extracted merchant name, if known.
            amount: Absolute transaction amount.
            region: Region of the source statement ("UK", "IN", ...).

        Returns:
            ClassificationResult; "Other" when no rule clears the threshold.
        """
        search_text = f"{description} {merchant or ''}".lower()
        merchant_text = f"{description} {merchant or ''}".upper()

        best_rule: Optional[ClassificationRule] = None
        best_score = 0.0
        best_reasons: list[str] = []

        for rule in self.rule_set.rules:
            if not rule.applies_to_region(region):
                continue

            score, reasons = self._score(rule, search_text, merchant_text, amount, region)
            if score > self.min_confidence and score > best_score:
                best_rule, best_score, best_reasons = rule, score, reasons

        if best_rule is None:
            return ClassificationResult(
                category=FALLBACK_CATEGORY,
                subcategory=None,
                confidence=self.fallback_confidence,
                reasons=("No clear category match found",),
            )

        subcategory = self.determine_subcategory(search_text, best_rule.subcategories)
        logger.debug(
            f"Classified {description[:40]!r} as {best_rule.category}"
            f"{'/' + subcategory if subcategory else ''} ({best_score:.2f})"
        )
        return ClassificationResult(
            category=best_rule.category,
            subcategory=subcategory,
            confidence=best_score,
            reasons=tuple(best_reasons),
        )

    def _score(
        self,
        rule: ClassificationRule,
        search_text: str,
        merchant_text: str,
        amount: Optional[Decimal],
        region: Optional[str],
    ) -> tuple[float, list[str]]:
        score = 0.0
        reasons: list[str] = []

        for name in rule.merchants:
            if name in merchant_text:
                score += MERCHANT_WEIGHT
                reasons.append(f"merchant: {name}")
                break

        for pattern in rule.compiled_patterns:
            if pattern.search(search_text):
                score += PATTERN_WEIGHT
                reasons.append(f"pattern: {pattern.pattern}")
                break

        if rule.keywords:
            matched = [k for k in rule.keywords if k in search_text]
            if matched:
                score += KEYWORD_WEIGHT * (len(matched) / len(rule.keywords))
                reasons.append(f"keywords: {', '.join(matched)}")

        if amount is not None and rule.amount_in_range(amount, region):
            score += AMOUNT_RANGE_WEIGHT
            reasons.append(f"{rule.amount_range_region or 'amount'} price range match")

        score = min(score * rule.base_confidence, 1.0)
        return score, reasons

    def determine_subcategory(self, search_text: str, subcategories: list[str]) -> Optional[str]:
        """Pick a subcategory by scanning the text for its keywords.

        A subcategory without an entry in the keyword table is matched on its
        own lower-cased name. Falls back to the first subcategory.
        """
        if not subcategories:
            return None
        text = search_text.lower()
        for subcategory in subcategories:
            keywords = self.rule_set.subcategory_keywords.get(subcategory) or [subcategory.lower()]
            if any(keyword in text for keyword in keywords):
                return subcategory
        return subcategories[0]

    def suggest_categories(
        self,
        partial: str,
        region: Optional[str] = None,
        limit: int = 5,
    ) -> list[str]:
        """Suggest categories for partial input, e.g. while typing.

        A category is suggested when its name, one of its keywords or one of
        its merchants contains the input, or the input contains a keyword.

        Args:
            partial: Partial description or category text.
            region: Region used to filter region-restricted rules.
            limit: Maximum number of suggestions.

        Returns:
            Distinct category names in rule order.
        """
        text = partial.strip().lower()
        if not text:
            return []

        suggestions: list[str] = []
        for rule in self.rule_set.rules:
            if not rule.applies_to_region(region) or rule.category in suggestions:
                continue
            related = (
                text in rule.category.lower()
                or any(text in k or k in text for k in rule.keywords)
                or any(text.upper() in m for m in rule.merchants)
            )
            if related:
                suggestions.append(rule.category)
            if len(suggestions) >= limit:
                break
        return suggestions
