"""Raw trip schema checks and type coercion.

Missing or mistyped input columns are fatal: they raise `TripSchemaError`
before any table is produced. Everything else about a row's quality is left to
the cleaning filter.
"""
from __future__ import annotations

from typing import Any, Iterable

import pandas as pd

TIMESTAMP_COLUMNS = ["started_at", "ended_at"]
COORD_COLUMNS = ["start_lat", "start_lng", "end_lat", "end_lng"]
TEXT_COLUMNS = [
    "ride_id",
    "member_casual",
    "rideable_type",
    "start_station_name",
    "end_station_name",
]

RAW_COLUMNS = TEXT_COLUMNS[:3] + TIMESTAMP_COLUMNS + TEXT_COLUMNS[3:] + COORD_COLUMNS


class TripSchemaError(ValueError):
    """Raised when the raw trip table is missing or mistypes a column."""


def check_raw_columns(columns: Iterable[str]) -> None:
    """Raise `TripSchemaError` unless every required raw column is present.

    Args:
        columns: Column names of the raw frame.
    """
    present = set(columns)
    missing = [c for c in RAW_COLUMNS if c not in present]
    if missing:
        raise TripSchemaError(f"raw trips are missing required columns: {missing}")


def coerce_raw_types(pdf: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of `pdf` with timestamps as UTC and coordinates as floats.

    Naive timestamps are interpreted as UTC. Unparseable values raise
    `TripSchemaError` rather than being coerced to null.
    """
    check_raw_columns(pdf.columns)
    pdf = pdf.copy()

    for col in TIMESTAMP_COLUMNS:
        try:
            pdf[col] = pd.to_datetime(pdf[col], utc=True, format="ISO8601")
        except (TypeError, ValueError) as e:
            raise TripSchemaError(f"column {col!r} is not a timestamp: {e}") from e

    for col in COORD_COLUMNS:
        try:
            pdf[col] = pd.to_numeric(pdf[col]).astype("float64")
        except (TypeError, ValueError) as e:
            raise TripSchemaError(f"column {col!r} is not numeric: {e}") from e

    return pdf


def null_to_none(pdf: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a frame to records with NaN/NaT/NA replaced by `None`."""
    obj = pdf.astype(object)
    return obj.where(pdf.notna(), None).to_dict(orient="records")
