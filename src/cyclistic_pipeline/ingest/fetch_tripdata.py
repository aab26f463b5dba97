"""Utilities to identify and download monthly trip archives.

`MonthTarget` represents a specific (year, month) archive to download.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthTarget:
    """Target (year, month) for a monthly trip archive.

    Attributes:
        year: Four-digit year (e.g. 2024).
        month: Month number (1-12).
    """
    year: int
    month: int  # 1-12

    @property
    def label(self) -> str:
        """`YYYY-MM` tag stored on every raw row as `source_month`."""
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def file_stem(self) -> str:
        return f"{self.year:04d}{self.month:02d}-divvy-tripdata"


def parse_month(value: str) -> MonthTarget:
    """Parse a `YYYY-MM` string into a `MonthTarget`.

    Raises:
        ValueError: if the value is not a valid year-month.
    """
    try:
        year_s, month_s = value.split("-")
        target = MonthTarget(year=int(year_s), month=int(month_s))
    except ValueError as e:
        raise ValueError(f"expected YYYY-MM, got {value!r}") from e
    if not 1 <= target.month <= 12:
        raise ValueError(f"month out of range in {value!r}")
    return target


def months_between(first: MonthTarget, last: MonthTarget) -> list[MonthTarget]:
    """Return every month from `first` to `last`, inclusive."""
    out: list[MonthTarget] = []
    year, month = first.year, first.month
    while (year, month) <= (last.year, last.month):
        out.append(MonthTarget(year=year, month=month))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return out


def tripdata_url(base_url: str, target: MonthTarget) -> str:
    """Return the archive URL for a given month.

    Args:
        base_url: Bucket URL the archives are served from.
        target: Month to fetch.

    Returns:
        Fully-qualified URL string to the monthly zip archive.
    """
    return f"{base_url}/{target.file_stem}.zip"


def download_tripdata(target: MonthTarget, out_dir: Path, base_url: str) -> Path:
    """Download or return the cached trip archive for a month.

    Args:
        target: `MonthTarget` specifying year and month to download.
        out_dir: Local directory to cache downloaded archives.
        base_url: Bucket URL the archives are served from.

    Returns:
        Path to the downloaded (or cached) zip archive.

    Raises:
        requests.HTTPError if the remote request fails (non-2xx status).
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    url = tripdata_url(base_url, target)
    out_path = out_dir / f"{target.file_stem}.zip"

    if out_path.exists() and out_path.stat().st_size > 0:
        log.info("Cache hit: %s", out_path)
        return out_path

    log.info("Downloading %s", url)
    import requests  # type: ignore[import-untyped]  # local import to avoid requiring type stubs at module import
    r = requests.get(url, timeout=300)
    r.raise_for_status()
    out_path.write_bytes(r.content)
    log.info("Saved: %s (%d bytes)", out_path, out_path.stat().st_size)
    return out_path


def find_local_tripdata(target: MonthTarget, csv_dir: Path) -> Path | None:
    """Return a local `.csv` or `.zip` file for `target`, if one exists."""
    for suffix in (".csv", ".zip"):
        candidate = csv_dir / f"{target.file_stem}{suffix}"
        if candidate.exists():
            return candidate
    return None
