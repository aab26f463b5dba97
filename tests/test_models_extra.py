from __future__ import annotations

from datetime import date, datetime, timezone

import pandas as pd
import pytest
from pydantic import ValidationError

from cyclistic_pipeline.aggregate.build_summaries import (
    summ_member_stats,
    summ_rideable_share,
    summ_trips_by_hour,
)
from cyclistic_pipeline.aggregate.load_summaries import summary_documents
from cyclistic_pipeline.clean.transform import clean_windowed_ddf
from cyclistic_pipeline.clean.validate import validate_partition
from cyclistic_pipeline.models import CleanedTrip, RawTrip


def _cleaned_record(**overrides):
    rec = {
        "ride_id": "A1B2C3",
        "member_casual": "member",
        "rideable_type": "classic_bike",
        "started_at": datetime(2025, 1, 4, 9, 0, tzinfo=timezone.utc),
        "ended_at": datetime(2025, 1, 4, 9, 20, tzinfo=timezone.utc),
        "ride_length_minutes": 20,
        "ride_date": date(2025, 1, 4),
        "ride_month": 1,
        "ride_year": 2025,
        "day_of_week": "Saturday",
        "start_hour": 9,
        "is_weekend": 1,
        "season": "Winter",
        "start_station_name": None,
        "end_station_name": "Wells St & Concord Ln",
        "start_lat": 41.9,
        "start_lng": -87.63,
        "end_lat": None,
        "end_lng": None,
    }
    rec.update(overrides)
    return rec


def test_raw_trip_validates_with_extra_columns() -> None:
    RawTrip.model_validate(
        {
            "ride_id": "A1B2C3",
            "member_casual": "casual",
            "rideable_type": "electric_bike",
            "started_at": datetime(2025, 1, 1, 10, tzinfo=timezone.utc),
            "ended_at": datetime(2025, 1, 1, 10, 5, tzinfo=timezone.utc),
            "start_station_id": "TA1307000039",
        }
    )


def test_cleaned_trip_validates() -> None:
    CleanedTrip.model_validate(_cleaned_record())


@pytest.mark.parametrize(
    "overrides",
    [{"ride_length_minutes": 1}, {"start_hour": 24}, {"season": "Autumn"}, {"day_of_week": "Funday"}],
)
def test_cleaned_trip_rejects_out_of_range(overrides) -> None:
    with pytest.raises(ValidationError):
        CleanedTrip.model_validate(_cleaned_record(**overrides))


def test_validate_partition_accepts_cleaned_output(sample_rows, to_ddf) -> None:
    pdf = clean_windowed_ddf(to_ddf(sample_rows)).compute()
    good, bad = validate_partition(pdf)

    assert bad == 0
    assert len(good) == len(sample_rows)
    dockless = next(d for d in good if d["ride_id"] == "c1")
    assert dockless["start_station_name"] is None
    # dates become datetimes for BSON
    assert isinstance(dockless["ride_date"], datetime)


def test_null_text_columns_stay_in_fact_table(trip, to_ddf) -> None:
    rows = [
        trip("ok", "2025-03-03T08:00:00", "2025-03-03T08:12:00"),
        trip("nulltype", "2025-03-03T09:00:00", "2025-03-03T09:15:00", rideable_type=None),
        trip("nullmc", "2025-03-03T10:00:00", "2025-03-03T10:20:00", member_casual=None),
    ]
    ddf = clean_windowed_ddf(to_ddf(rows, npartitions=2))

    good, bad = validate_partition(ddf.compute())
    assert bad == 0
    assert sorted(d["ride_id"] for d in good) == ["nullmc", "nulltype", "ok"]

    # the null vehicle type only drops out of the rideable mix
    share = summ_rideable_share(ddf)
    assert share["trips"].sum() == 1
    stats = summ_member_stats(ddf).set_index("member_casual")
    assert stats.loc["member", "trips"] == 2
    hours = summ_trips_by_hour(ddf)
    assert hours["trips"].sum() == 2


def test_summary_documents_turn_nan_into_none() -> None:
    pdf = pd.DataFrame(
        [{"member_casual": "member", "weekend_trips": 0, "weekday_trips": 0,
          "weekend_pct": float("nan"), "weekday_pct": float("nan")}]
    )
    docs = summary_documents(pdf, "summ_weekend_split")
    assert docs == [
        {"member_casual": "member", "weekend_trips": 0, "weekday_trips": 0,
         "weekend_pct": None, "weekday_pct": None}
    ]


def test_summary_documents_reject_null_station() -> None:
    pdf = pd.DataFrame([{"member_casual": "casual", "start_station_name": None, "trips": 3, "rn": 1}])
    with pytest.raises(ValidationError):
        summary_documents(pdf, "summ_top_start_stations")
