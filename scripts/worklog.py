#!/usr/bin/env python3
"""
Worklog CLI entry point for running from a checkout.

Usage:
    python scripts/worklog.py summarize items.jsonl
    python scripts/worklog.py features items.jsonl --repo ~/code/app
    python scripts/worklog.py recover items.jsonl --week
"""

import sys
from pathlib import Path

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from worklog.cli import main


if __name__ == "__main__":
    sys.exit(main())
