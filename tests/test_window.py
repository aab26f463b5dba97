from __future__ import annotations

import pandas as pd
import pytest

from cyclistic_pipeline.clean.schema import TripSchemaError, coerce_raw_types
from cyclistic_pipeline.clean.window import window_trips
from cyclistic_pipeline.config import parse_window_bound

START = parse_window_bound("2024-08-01")
END = parse_window_bound("2025-08-01")


def _edge_rows(trip):
    return [
        trip("before", "2024-07-31T23:59:59", "2024-08-01T00:10:00"),
        trip("first", "2024-08-01T00:00:00", "2024-08-01T00:10:00"),
        trip("last", "2025-07-31T23:59:59", "2025-08-01T00:10:00"),
        trip("after", "2025-08-01T00:00:00", "2025-08-01T00:10:00"),
    ]


def test_window_is_half_open(trip, to_ddf) -> None:
    out = window_trips(to_ddf(_edge_rows(trip), npartitions=2), START, END).compute()
    assert sorted(out["ride_id"]) == ["first", "last"]


def test_window_keeps_all_columns(trip, to_ddf) -> None:
    rows = [dict(r, start_station_id="TA1307000039") for r in _edge_rows(trip)]
    ddf = to_ddf(rows)
    out = window_trips(ddf, START, END).compute()
    assert list(out.columns) == list(ddf.columns)
    assert out["start_station_id"].tolist() == ["TA1307000039"] * 2


def test_window_is_idempotent(trip, to_ddf) -> None:
    once = window_trips(to_ddf(_edge_rows(trip)), START, END)
    twice = window_trips(once, START, END)
    pd.testing.assert_frame_equal(once.compute(), twice.compute())


def test_window_does_not_apply_quality_filters(trip, to_ddf) -> None:
    rows = [trip("backwards", "2024-09-01T10:00:00", "2024-09-01T09:00:00")]
    out = window_trips(to_ddf(rows), START, END).compute()
    assert out["ride_id"].tolist() == ["backwards"]


def test_missing_column_is_a_schema_error(trip, to_ddf) -> None:
    rows = [{k: v for k, v in trip("r", "2025-01-01T10:00:00", "2025-01-01T10:05:00").items()
             if k != "member_casual"}]
    with pytest.raises(TripSchemaError, match="member_casual"):
        window_trips(to_ddf(rows), START, END)


def test_mistyped_timestamp_is_a_schema_error(trip) -> None:
    pdf = pd.DataFrame([trip("r", "not-a-time", "2025-01-01T10:05:00")])
    with pytest.raises(TripSchemaError, match="started_at"):
        coerce_raw_types(pdf)


def test_mistyped_coordinate_is_a_schema_error(trip) -> None:
    pdf = pd.DataFrame([dict(trip("r", "2025-01-01T10:00:00", "2025-01-01T10:05:00"), start_lat="north")])
    with pytest.raises(TripSchemaError, match="start_lat"):
        coerce_raw_types(pdf)


def test_naive_timestamps_are_read_as_utc(trip) -> None:
    pdf = coerce_raw_types(pd.DataFrame([trip("r", "2025-01-01 10:00:00.123", "2025-01-01T10:05:00")]))
    assert str(pdf["started_at"].dt.tz) == "UTC"
    assert pdf["started_at"].iloc[0] == pd.Timestamp("2025-01-01T10:00:00.123", tz="UTC")
