"""Shared fixtures for finance_ingest tests."""

from pathlib import Path
from typing import Callable

import pytest

from finance_ingest.config import ImportSettings, IngestConfig

JUPITER_HEADER = "Date,Value Date,Particulars,Tran Type,Cheque Details,Withdrawals,Deposits,Balance"
JUPITER_ZEPTO_ROW = '15/04/2025,15/04/2025,"Payment to Zepto Online",DR,,250.00,,1000.00'

SANTANDER_HEADER = "Date,Description,Debit,Credit,Balance"

CRYPTO_PORTFOLIO = """My Portfolio
1. USDC (Base)
Price: $0.99 | Change: -0.0%
Quantity: 62.192612 | Value: $62.18
"""


def santander_statement(rows: int, start_day: int = 1) -> str:
    """Build a Santander statement with one card payment per day."""
    lines = [SANTANDER_HEADER]
    for i in range(rows):
        day = start_day + i
        lines.append(f"{day:02d}/03/2025,Card payment to Corner Shop {i},{10 + i}.50,,{900 - i}.00")
    return "\n".join(lines) + "\n"


@pytest.fixture
def jupiter_statement() -> str:
    """A one-row Jupiter statement."""
    return f"{JUPITER_HEADER}\n{JUPITER_ZEPTO_ROW}\n"


@pytest.fixture
def crypto_portfolio() -> str:
    """A portfolio dump holding one USDC position."""
    return CRYPTO_PORTFOLIO


@pytest.fixture
def fast_config() -> IngestConfig:
    """Default configuration without retry delays."""
    return IngestConfig(import_settings=ImportSettings(retry_delay=0))


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """An empty configuration directory."""
    path = tmp_path / "config"
    path.mkdir()
    return path


@pytest.fixture
def make_santander_statement() -> Callable[..., str]:
    """Builder for Santander statements of a given length."""
    return santander_statement
