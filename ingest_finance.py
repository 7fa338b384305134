#!/usr/bin/env python3
"""Finance Ingest: bank statement, crypto holding and manual expense importer.

This is the main entry point script for the finance importer.
It wraps the package CLI for convenient execution.

Usage:
    python ingest_finance.py --bank statement.csv --owner alice

For full documentation and options:
    python ingest_finance.py --help
"""

import sys
from pathlib import Path

# Add src to path for development installs
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from finance_ingest.cli import main

if __name__ == "__main__":
    sys.exit(main())
