"""Windowing of raw trips to the configured analysis interval."""
from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from cyclistic_pipeline.clean.schema import check_raw_columns, coerce_raw_types

log = logging.getLogger(__name__)


def window_partition(pdf: pd.DataFrame, start: pd.Timestamp, end: pd.Timestamp) -> pd.DataFrame:
    """Keep rows whose `started_at` lies in `[start, end)`.

    Columns are preserved; only timestamps and coordinates are normalized.
    """
    pdf = coerce_raw_types(pdf)
    mask = (pdf["started_at"] >= start) & (pdf["started_at"] < end)
    return pdf[mask]


def window_trips(ddf: Any, start: pd.Timestamp, end: pd.Timestamp) -> Any:
    """Restrict a raw trips Dask DataFrame to the half-open window `[start, end)`.

    Rows outside the window are dropped silently; the window size itself is
    not checked.

    Args:
        ddf: Dask DataFrame with the raw trip columns.
        start: Inclusive UTC start.
        end: Exclusive UTC end.

    Returns:
        Dask DataFrame with the same columns, filtered to the window.

    Raises:
        TripSchemaError: if a required column is missing.
    """
    check_raw_columns(ddf.columns)
    log.info("Windowing raw trips to [%s, %s)", start.isoformat(), end.isoformat())

    meta = window_partition(ddf._meta, start, end)
    return ddf.map_partitions(window_partition, start, end, meta=meta)
