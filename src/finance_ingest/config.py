"""Configuration loading and validation for the finance importer."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

import yaml

from finance_ingest.models.rule import RuleDefinitionError, RuleSet
from finance_ingest.processing.currency import parse_pair
from finance_ingest.processing.transfer_filter import (
    DEFAULT_LARGE_TRANSFER_THRESHOLD,
    DEFAULT_TRANSFER_PHRASES,
)
from finance_ingest.utils.date_utils import DATE_FORMATS
from finance_ingest.utils.logging_config import DEFAULT_LOG_FILE, get_logger

logger = get_logger(__name__)

KNOWN_REGIONS = ("UK", "US", "IN", "GLOBAL")


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ConfigError(f"'{name}' must be a number, got {value!r}") from e


@dataclass
class ImportSettings:
    """Configuration for import runs.

    Attributes:
        owner_id: Default record owner.
        default_region: Region used for classification when a source has none.
        generic_date_format: Date hint for header-derived bank layouts.
        description_fingerprint_length: Description characters in a fingerprint.
        batch_size: Records written per insert call.
        max_retries: Extra attempts per failed batch.
        retry_delay: Initial delay in seconds between attempts, doubled each retry.
        manual_currency: Currency of manual expense entries.
        crypto_currency: Unit of crypto holding values.
        replace_crypto_holdings: Whether a crypto import replaces stored holdings.
    """

    owner_id: Optional[str] = None
    default_region: Optional[str] = None
    generic_date_format: str = "DD/MM/YYYY"
    description_fingerprint_length: int = 30
    batch_size: int = 100
    max_retries: int = 2
    retry_delay: float = 0.5
    manual_currency: str = "INR"
    crypto_currency: str = "USD"
    replace_crypto_holdings: bool = True

    def __post_init__(self) -> None:
        if self.generic_date_format not in DATE_FORMATS:
            raise ConfigError(
                f"Unsupported generic_date_format '{self.generic_date_format}'. "
                f"Supported: {', '.join(DATE_FORMATS)}"
            )
        if self.default_region is not None:
            self.default_region = self.default_region.upper()
            if self.default_region not in KNOWN_REGIONS:
                raise ConfigError(f"Unknown default_region '{self.default_region}'")
        if self.batch_size < 1:
            raise ConfigError("batch_size must be at least 1")
        if self.max_retries < 0:
            raise ConfigError("max_retries must not be negative")
        if self.retry_delay < 0:
            raise ConfigError("retry_delay must not be negative")
        if self.description_fingerprint_length < 1:
            raise ConfigError("description_fingerprint_length must be at least 1")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImportSettings":
        """Create from dictionary."""
        try:
            return cls(
                owner_id=str(data["owner_id"]) if data.get("owner_id") else None,
                default_region=str(data["default_region"]) if data.get("default_region") else None,
                generic_date_format=str(data.get("generic_date_format", "DD/MM/YYYY")),
                description_fingerprint_length=int(data.get("description_fingerprint_length", 30)),
                batch_size=int(data.get("batch_size", 100)),
                max_retries=int(data.get("max_retries", 2)),
                retry_delay=float(data.get("retry_delay", 0.5)),
                manual_currency=str(data.get("manual_currency", "INR")).upper(),
                crypto_currency=str(data.get("crypto_currency", "USD")).upper(),
                replace_crypto_holdings=bool(data.get("replace_crypto_holdings", True)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid import settings: {e}") from e


@dataclass
class TransferConfig:
    """Configuration for internal transfer detection.

    Attributes:
        phrases: Case-insensitive phrases marking a transfer.
        large_transfer_threshold: Amounts above this count as transfers;
            None disables the size rule.
    """

    phrases: list[str] = field(default_factory=lambda: list(DEFAULT_TRANSFER_PHRASES))
    large_transfer_threshold: Optional[Decimal] = field(
        default_factory=lambda: DEFAULT_LARGE_TRANSFER_THRESHOLD
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransferConfig":
        """Create from dictionary.

        An explicit null threshold disables the size rule.
        """
        phrases = data.get("phrases", DEFAULT_TRANSFER_PHRASES)
        if not isinstance(phrases, (list, tuple)):
            raise ConfigError("'transfers.phrases' must be a list")

        threshold: Optional[Decimal] = DEFAULT_LARGE_TRANSFER_THRESHOLD
        if "large_transfer_threshold" in data:
            raw = data["large_transfer_threshold"]
            threshold = None if raw is None else _decimal(raw, "transfers.large_transfer_threshold")

        return cls(phrases=[str(p) for p in phrases], large_transfer_threshold=threshold)


@dataclass
class ClassificationConfig:
    """Configuration for the transaction classifier.

    Attributes:
        rules_file: Rules YAML replacing the packaged defaults.
        min_confidence: Score a rule must exceed to be chosen.
        fallback_confidence: Confidence reported for unclassified transactions.
    """

    rules_file: Optional[Path] = None
    min_confidence: float = 0.3
    fallback_confidence: float = 0.1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassificationConfig":
        """Create from dictionary."""
        rules_file = data.get("rules_file")
        try:
            return cls(
                rules_file=Path(str(rules_file)) if rules_file else None,
                min_confidence=float(data.get("min_confidence", 0.3)),
                fallback_confidence=float(data.get("fallback_confidence", 0.1)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid classification settings: {e}") from e


@dataclass
class CurrencyConfig:
    """Configuration for currency conversion.

    Attributes:
        base_currency: Currency to convert into, or None to skip conversion.
        rates: Exchange rates keyed "FROM/TO".
    """

    base_currency: Optional[str] = None
    rates: dict[str, Decimal] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CurrencyConfig":
        """Create from dictionary."""
        raw_rates = data.get("rates") or {}
        if not isinstance(raw_rates, dict):
            raise ConfigError("'currency.rates' must be a mapping")

        rates: dict[str, Decimal] = {}
        for pair, value in raw_rates.items():
            try:
                source, target = parse_pair(str(pair))
            except ValueError as e:
                raise ConfigError(str(e)) from e
            rate = _decimal(value, f"currency.rates.{pair}")
            if rate <= 0:
                raise ConfigError(f"Rate for {pair} must be positive")
            rates[f"{source}/{target}"] = rate

        base = data.get("base_currency")
        return cls(base_currency=str(base).upper() if base else None, rates=rates)


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file; empty disables file logging.
    """

    level: str = "INFO"
    file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LoggingConfig":
        """Create from dictionary."""
        file = data.get("file", DEFAULT_LOG_FILE)
        return cls(
            level=str(data.get("level", "INFO")),
            file="" if file is None else str(file),
        )


@dataclass
class IngestConfig:
    """Main configuration container.

    Attributes:
        import_settings: Import run settings.
        transfers: Internal transfer detection.
        classification: Classifier settings.
        currency: Currency conversion.
        logging: Logging settings.
        rule_set: Classification rules in effect.
    """

    import_settings: ImportSettings = field(default_factory=ImportSettings)
    transfers: TransferConfig = field(default_factory=TransferConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    currency: CurrencyConfig = field(default_factory=CurrencyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    rule_set: RuleSet = field(default_factory=RuleSet.default)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return content


def load_rule_set(path: Path) -> RuleSet:
    """Load classification rules from a rules YAML file.

    Args:
        path: Path to the rules file.

    Returns:
        The loaded RuleSet.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigError: If the rules are structurally invalid.
    """
    data = load_yaml_file(path)
    if "rules" not in data:
        raise ConfigError(f"Rules file {path} has no 'rules' list")
    try:
        rule_set = RuleSet.from_dict(data)
    except (RuleDefinitionError, InvalidOperation) as e:
        raise ConfigError(f"Invalid rules in {path}: {e}") from e
    if not rule_set.rules:
        raise ConfigError(f"Rules file {path} defines no rules")
    logger.info(f"Loaded {len(rule_set)} rules (version {rule_set.version}) from {path}")
    return rule_set


def load_settings(path: Path) -> IngestConfig:
    """Load settings.yaml into a config with default rules.

    Args:
        path: Path to settings.yaml.

    Returns:
        IngestConfig with every section present in the file applied.
    """
    data = load_yaml_file(path)
    return IngestConfig(
        import_settings=ImportSettings.from_dict(_section(data, "import")),
        transfers=TransferConfig.from_dict(_section(data, "transfers")),
        classification=ClassificationConfig.from_dict(_section(data, "classification")),
        currency=CurrencyConfig.from_dict(_section(data, "currency")),
        logging=LoggingConfig.from_dict(_section(data, "logging")),
    )


def load_config(
    settings_path: Optional[Path] = None,
    rules_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> IngestConfig:
    """Load complete configuration.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        rules_path: Rules YAML overriding the packaged defaults and any
            rules_file named in settings.
        config_dir: Base config directory (default: ./config).

    Returns:
        Complete IngestConfig.

    Raises:
        FileNotFoundError: If an explicitly named rules file is missing.
        ConfigError: If any file is invalid.
    """
    if config_dir is None:
        config_dir = Path("config")
    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    if settings_path.exists():
        config = load_settings(settings_path)
        logger.info(f"Loaded settings from {settings_path}")
    else:
        logger.warning(f"Settings file not found: {settings_path}, using defaults")
        config = IngestConfig()

    if rules_path is None and config.classification.rules_file is not None:
        rules_path = config.classification.rules_file
        if not rules_path.is_absolute():
            rules_path = config_dir / rules_path

    if rules_path is not None:
        config.rule_set = load_rule_set(rules_path)
        config.classification.rules_file = rules_path
    else:
        logger.info(f"Using packaged rules (version {config.rule_set.version})")

    return config
