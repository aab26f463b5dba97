"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads environment variables (including a check that the configured
12-month window is not empty).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

import pandas as pd
from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_WINDOW_START = "2024-08-01"
DEFAULT_WINDOW_END = "2025-08-01"
DEFAULT_BASE_URL = "https://divvy-tripdata.s3.amazonaws.com"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Container for pipeline configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI.
        mongo_db: Target MongoDB database name.
        mongo_tls: Whether to connect with TLS (Atlas clusters need it).
        tripdata_dir: Local cache directory for downloaded trip archives.
        tripdata_base_url: Base URL the monthly archives are served from.
        window_start: Inclusive UTC start of the analysis window.
        window_end: Exclusive UTC end of the analysis window.
    """
    mongo_uri: str
    mongo_db: str
    mongo_tls: bool
    tripdata_dir: Path
    tripdata_base_url: str
    window_start: pd.Timestamp
    window_end: pd.Timestamp


def parse_window_bound(value: str) -> pd.Timestamp:
    """Parse a window bound into a UTC timestamp.

    Naive values are interpreted as UTC, matching how trip timestamps are
    stored.
    """
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `WINDOW_END` is not after `WINDOW_START`.
    """
    mongo_uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db = os.getenv("MONGO_DB", "cyclistic")
    mongo_tls = os.getenv("MONGO_TLS", "false").strip().lower() in _TRUTHY
    tripdata_dir = Path(os.getenv("TRIPDATA_DIR", "data/tripdata"))
    base_url = os.getenv("TRIPDATA_BASE_URL", DEFAULT_BASE_URL).rstrip("/")

    window_start = parse_window_bound(os.getenv("WINDOW_START", DEFAULT_WINDOW_START))
    window_end = parse_window_bound(os.getenv("WINDOW_END", DEFAULT_WINDOW_END))

    if window_end <= window_start:
        raise RuntimeError(
            f"WINDOW_END ({window_end}) must be after WINDOW_START ({window_start}). "
            "Set both in .env (example: WINDOW_START=2024-08-01, WINDOW_END=2025-08-01)."
        )

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
        mongo_tls=mongo_tls,
        tripdata_dir=tripdata_dir,
        tripdata_base_url=base_url,
        window_start=window_start,
        window_end=window_end,
    )
