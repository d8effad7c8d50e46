"""Runtime settings, read once from the environment (and an optional .env)."""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

# Relative paths and .env are looked up from where the app is launched
ROOT_DIR = Path.cwd()
load_dotenv(find_dotenv(usecwd=True))

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _as_int(value: str, default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    catalog_xlsx: str = os.getenv("PLYFINDER_CATALOG_XLSX", str(ROOT_DIR / "data" / "plywood.xlsx"))
    catalog_csv: str = os.getenv("PLYFINDER_CATALOG_CSV", str(ROOT_DIR / "data" / "plywood.csv"))
    sample_size: int = _as_int(os.getenv("PLYFINDER_SAMPLE_SIZE", "5"), 5)
    fallback_limit: int = _as_int(os.getenv("PLYFINDER_FALLBACK_LIMIT", "10"), 10)
    max_results: int = _as_int(os.getenv("PLYFINDER_MAX_RESULTS", "0"), 0)  # 0 = unbounded
    weights: str = os.getenv("PLYFINDER_WEIGHTS", "product")
    log_level: str = os.getenv("PLYFINDER_LOG_LEVEL", "INFO")


settings = Settings()


def setup_logging(level: str = settings.log_level) -> None:
    """Configure root logging for scripts and the Streamlit page."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
