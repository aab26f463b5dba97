"""Read-only sanity checks on the cleaned fact table.

Each check produces a diagnostic value. None of them gate the pipeline:
failures are logged for a human to review and nothing is remediated.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from cyclistic_pipeline.clean.transform import (
    MAX_RIDE_HOURS,
    MIN_RIDE_MINUTES,
    NS_PER_HOUR,
    whole_units_between,
)

log = logging.getLogger(__name__)

EXPECTED_MONTHS = 12
DUPLICATE_SAMPLE_SIZE = 10


@dataclass(frozen=True)
class SanityReport:
    """Diagnostics computed over `cleaned_trips`.

    Attributes:
        total_rows: Number of rows checked.
        months_present: Distinct (year, month) pairs; 12 for a correct window.
        bad_order: Rows with `ended_at <= started_at` (expected 0).
        le_1_min: Rows with `ride_length_minutes <= 1` (expected 0).
        ge_24h: Rows lasting 24 whole hours or more (expected 0).
        duplicate_ids: Ride ids appearing more than once.
        duplicate_rows: Rows carrying one of those ids.
        duplicate_sample: Up to 10 duplicated ids with their occurrence count.
    """
    total_rows: int
    months_present: int
    bad_order: int
    le_1_min: int
    ge_24h: int
    duplicate_ids: int
    duplicate_rows: int
    duplicate_sample: dict[str, int] = field(default_factory=dict)

    @property
    def leakage(self) -> int:
        return self.bad_order + self.le_1_min + self.ge_24h

    @property
    def ok(self) -> bool:
        return (
            self.months_present == EXPECTED_MONTHS
            and self.leakage == 0
            and self.duplicate_ids == 0
        )


def _leakage_counts(pdf: pd.DataFrame) -> pd.DataFrame:
    """Count rows violating each cleaning predicate in one partition."""
    hours = whole_units_between(pdf["started_at"], pdf["ended_at"], NS_PER_HOUR)
    return pd.DataFrame(
        {
            "bad_order": [int((pdf["ended_at"] <= pdf["started_at"]).sum())],
            "le_1_min": [int((pdf["ride_length_minutes"] <= MIN_RIDE_MINUTES).sum())],
            "ge_24h": [int((hours >= MAX_RIDE_HOURS).sum())],
        }
    )


def run_sanity_checks(ddf: Any) -> SanityReport:
    """Compute month coverage, boundary leakage and duplicate-id diagnostics.

    Args:
        ddf: Dask DataFrame of cleaned trips.

    Returns:
        A `SanityReport`.
    """
    total_rows = int(ddf.shape[0].compute())

    months = ddf[["ride_year", "ride_month"]].drop_duplicates().compute()
    months_present = len(months)

    meta = pd.DataFrame(
        {
            "bad_order": pd.Series(dtype="int64"),
            "le_1_min": pd.Series(dtype="int64"),
            "ge_24h": pd.Series(dtype="int64"),
        }
    )
    leakage = ddf.map_partitions(_leakage_counts, meta=meta).compute().sum()

    counts = ddf["ride_id"].value_counts().compute()
    dupes = counts[counts > 1].sort_values(ascending=False)

    return SanityReport(
        total_rows=total_rows,
        months_present=months_present,
        bad_order=int(leakage.get("bad_order", 0)),
        le_1_min=int(leakage.get("le_1_min", 0)),
        ge_24h=int(leakage.get("ge_24h", 0)),
        duplicate_ids=int(len(dupes)),
        duplicate_rows=int(dupes.sum()),
        duplicate_sample={str(k): int(v) for k, v in dupes.head(DUPLICATE_SAMPLE_SIZE).items()},
    )


def log_report(report: SanityReport) -> None:
    """Surface a `SanityReport` through logging.

    Leakage is logged at ERROR (it means the cleaning filter is broken);
    month coverage and duplicates are warnings.
    """
    log.info(
        "Sanity checks over %d rows: months=%d bad_order=%d le_1_min=%d ge_24h=%d dupes=%d",
        report.total_rows,
        report.months_present,
        report.bad_order,
        report.le_1_min,
        report.ge_24h,
        report.duplicate_ids,
    )

    if report.months_present != EXPECTED_MONTHS:
        log.warning(
            "Expected %d months of trips, found %d. Check WINDOW_START/WINDOW_END.",
            EXPECTED_MONTHS,
            report.months_present,
        )

    if report.leakage:
        log.error(
            "Cleaning filter leaked rows: bad_order=%d le_1_min=%d ge_24h=%d",
            report.bad_order,
            report.le_1_min,
            report.ge_24h,
        )

    if report.duplicate_ids:
        log.warning(
            "%d ride_id values appear more than once (%d rows). Sample: %s",
            report.duplicate_ids,
            report.duplicate_rows,
            report.duplicate_sample,
        )
