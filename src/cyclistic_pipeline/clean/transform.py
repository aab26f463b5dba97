"""Cleaning and derivation of the `cleaned_trips` fact table.

This module contains transformations that are applied partition-wise using
Dask. The output is a Dask DataFrame whose schema is stable and suitable for
Pydantic validation before it is loaded.

Durations use two independently truncated units: whole minutes for
`ride_length_minutes` and the sub-minute filter, whole hours for the 24 hour
filter. Both truncate toward zero. A ride of 23h59m59s therefore passes the
hour check (23 whole hours) while its minute length is 1439.
"""
from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd

from cyclistic_pipeline.clean.schema import COORD_COLUMNS, coerce_raw_types

log = logging.getLogger(__name__)

NS_PER_MINUTE = 60 * 1_000_000_000
NS_PER_HOUR = 60 * NS_PER_MINUTE

MIN_RIDE_MINUTES = 1   # rides of this many whole minutes or fewer are dropped
MAX_RIDE_HOURS = 24    # rides of this many whole hours or more are dropped

SEASON_BY_MONTH = {
    12: "Winter", 1: "Winter", 2: "Winter",
    3: "Spring", 4: "Spring", 5: "Spring",
    6: "Summer", 7: "Summer", 8: "Summer",
    9: "Fall", 10: "Fall", 11: "Fall",
}

CLEANED_COLUMNS = [
    "ride_id",
    "member_casual",
    "rideable_type",
    "started_at",
    "ended_at",
    "ride_length_minutes",
    "ride_date",
    "ride_month",
    "ride_year",
    "day_of_week",
    "start_hour",
    "is_weekend",
    "season",
    "start_station_name",
    "end_station_name",
    *COORD_COLUMNS,
]


def whole_units_between(started: pd.Series, ended: pd.Series, unit_ns: int) -> pd.Series:
    """Return the number of whole `unit_ns` intervals from `started` to `ended`.

    Truncates toward zero, so -30s is 0 minutes and 119s is 1 minute. Rows
    where either timestamp is missing yield 0; callers must exclude them.
    """
    delta = (ended - started).to_numpy(dtype="timedelta64[ns]")
    missing = np.isnat(delta)
    ns = np.where(missing, 0, delta.astype("int64"))
    whole = np.sign(ns) * (np.abs(ns) // unit_ns)
    return pd.Series(whole.astype("int64"), index=started.index)


def is_valid_trip(pdf: pd.DataFrame) -> pd.Series:
    """Boolean mask of rows passing every validity predicate.

    The three predicates are independent: end strictly after start, more than
    one whole minute, and fewer than 24 whole hours.
    """
    started, ended = pdf["started_at"], pdf["ended_at"]
    minutes = whole_units_between(started, ended, NS_PER_MINUTE)
    hours = whole_units_between(started, ended, NS_PER_HOUR)
    present = started.notna() & ended.notna()
    return (
        present
        & (ended > started)
        & (minutes > MIN_RIDE_MINUTES)
        & (hours < MAX_RIDE_HOURS)
    )


def _clean_partition(pdf: pd.DataFrame) -> pd.DataFrame:
    """Partition-level cleaning function applied via map_partitions.

    Args:
        pdf: Pandas DataFrame for the partition (windowed raw trips).

    Returns:
        Cleaned Pandas DataFrame with `CLEANED_COLUMNS`.
    """
    pdf = coerce_raw_types(pdf)
    pdf = pdf[is_valid_trip(pdf)].copy()

    started = pdf["started_at"]
    pdf["ride_length_minutes"] = whole_units_between(started, pdf["ended_at"], NS_PER_MINUTE)

    # -----------------------------
    # Calendar decomposition (UTC)
    # -----------------------------
    pdf["ride_date"] = started.dt.date
    pdf["ride_month"] = started.dt.month.astype("int64")
    pdf["ride_year"] = started.dt.year.astype("int64")
    pdf["day_of_week"] = started.dt.day_name()
    pdf["start_hour"] = started.dt.hour.astype("int64")

    # dayofweek: Monday=0 ... Sunday=6
    pdf["is_weekend"] = (started.dt.dayofweek >= 5).astype("int64")
    pdf["season"] = pdf["ride_month"].map(SEASON_BY_MONTH).astype(object)

    return pdf[CLEANED_COLUMNS]


def clean_windowed_ddf(ddf: Any) -> Any:
    """Clean windowed trips into the fact table.

    Applies the validity predicates, derives calendar/time columns and
    projects the retained raw columns. Duplicate `ride_id` values are kept.

    Returns:
        Dask DataFrame with `CLEANED_COLUMNS`.
    """
    log.info("Starting clean_windowed_ddf transformation")
    meta = _clean_partition(ddf._meta)
    return ddf.map_partitions(_clean_partition, meta=meta)
