"""Vendor-neutral financial data gateway backed by Financial Datasets or FMP."""

import os
from pathlib import Path

from dotenv import load_dotenv

__version__ = "0.3.0"

# Load environment variables early so API keys are available for local/dev runs
load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")


def _detect_build_version() -> str:
    explicit = os.getenv("APP_VERSION")
    if explicit:
        return explicit
    return __version__


APP_VERSION = _detect_build_version()
