"""
Centralized configuration for stockmatch.

All environment variables are read here so the dashboard and scripts share
one set of defaults.
"""

import logging
import os
from functools import lru_cache

DEFAULT_MASTER_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vSjsvniHwbhUdhnY6LnInjsy5JvM3rt3EFylQ3zPEtFcnqKnmsM6H97gPFpyP2yzy-5mcpfmcGR7_sm"
    "/pub?gid=612699279&single=true&output=csv"
)


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        # Published master stock sheet (CSV export URL or a local path)
        self.MASTER_URL: str = os.environ.get("STOCKMATCH_MASTER_URL", DEFAULT_MASTER_URL)

        # Persisted rack scans
        self.STATE_PATH: str = os.environ.get("STOCKMATCH_STATE_PATH", "data/state.json")

        # Where CSV / Excel reports are written
        self.EXPORT_DIR: str = os.environ.get("STOCKMATCH_EXPORT_DIR", "exports")

        # Camera scans are paused this long after each accepted scan
        self.SCAN_COOLDOWN_MS: int = int(os.environ.get("STOCKMATCH_SCAN_COOLDOWN_MS", "800"))

        self.LOG_LEVEL: str = os.environ.get("STOCKMATCH_LOG_LEVEL", "INFO").upper()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Set up root logging once for the app process."""
    logging.basicConfig(
        level=level or get_settings().LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
