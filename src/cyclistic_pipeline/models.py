"""Pydantic models used for Raw, Cleaned and Summary validation.

These models define the expected schema for trip records and for every
summary table used by the dashboard and tests.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Season = Literal["Winter", "Spring", "Summer", "Fall"]
DayName = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class RawTrip(BaseModel):
    """Schema for a raw trip record as published in the monthly files."""
    model_config = ConfigDict(extra="allow")
    ride_id: str
    member_casual: str
    rideable_type: str
    started_at: datetime
    ended_at: datetime
    start_station_name: str | None = None
    end_station_name: str | None = None
    start_lat: float | None = None
    start_lng: float | None = None
    end_lat: float | None = None
    end_lng: float | None = None


class CleanedTrip(BaseModel):
    """Schema for a row of the `cleaned_trips` fact table.

    Only the timing rules decide membership, so the text columns are
    nullable; rows with a null rider or vehicle type are left out of the
    summaries by their groupbys, not here.

    Attributes:
        ride_id: Trip identifier (not unique; duplicates are kept).
        member_casual: Rider type, `member` or `casual`.
        rideable_type: Vehicle type (e.g. `classic_bike`).
        started_at: Trip start (UTC).
        ended_at: Trip end (UTC), strictly after `started_at`.
        ride_length_minutes: Whole minutes ridden, always above one.
        ride_date: Calendar date of `started_at`.
        ride_month: Month of `started_at` (1-12).
        ride_year: Year of `started_at`.
        day_of_week: English weekday name of `started_at`.
        start_hour: Hour of `started_at` (0-23).
        is_weekend: 1 for Saturday/Sunday starts, else 0.
        season: Meteorological season of `started_at`.
    """
    model_config = ConfigDict(extra="forbid")
    ride_id: str | None
    member_casual: str | None
    rideable_type: str | None
    started_at: datetime
    ended_at: datetime
    ride_length_minutes: int = Field(..., ge=2, lt=24 * 60)
    ride_date: date
    ride_month: int = Field(..., ge=1, le=12)
    ride_year: int
    day_of_week: DayName
    start_hour: int = Field(..., ge=0, le=23)
    is_weekend: int = Field(..., ge=0, le=1)
    season: Season
    start_station_name: str | None
    end_station_name: str | None
    start_lat: float | None
    start_lng: float | None
    end_lat: float | None
    end_lng: float | None


class SummMemberStats(BaseModel):
    """Ride counts, duration percentiles and trip share per rider type."""
    model_config = ConfigDict(extra="forbid")
    member_casual: str
    trips: int = Field(..., ge=0)
    avg_mins: float
    p10_mins: float
    median_mins: float
    p90_mins: float
    trip_share_pct: float = Field(..., ge=0, le=100)


class SummTripsByDow(BaseModel):
    """Ride counts per rider type and weekday."""
    model_config = ConfigDict(extra="forbid")
    member_casual: str
    day_of_week: DayName
    dow_sun1: int = Field(..., ge=1, le=7)
    dow_mon1: int = Field(..., ge=1, le=7)
    trips: int = Field(..., ge=0)
    avg_mins: float


class SummTripsByMonth(BaseModel):
    """Monthly ride counts per rider type."""
    model_config = ConfigDict(extra="forbid")
    yr: int
    mo: int = Field(..., ge=1, le=12)
    ym: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    season: Season
    member_casual: str
    trips: int = Field(..., ge=0)
    avg_mins: float


class SummTripsByHour(BaseModel):
    """Ride counts per rider type and start hour."""
    model_config = ConfigDict(extra="forbid")
    member_casual: str
    start_hour: int = Field(..., ge=0, le=23)
    trips: int = Field(..., ge=0)
    avg_mins: float


class SummRideableShare(BaseModel):
    """Rideable-type mix within each rider type."""
    model_config = ConfigDict(extra="forbid")
    member_casual: str
    rideable_type: str
    trips: int = Field(..., ge=0)
    type_share_pct: float = Field(..., ge=0, le=100)


class SummTopStartStations(BaseModel):
    model_config = ConfigDict(extra="forbid")
    member_casual: str
    start_station_name: str
    trips: int = Field(..., ge=1)
    rn: int = Field(..., ge=1)


class SummTopEndStations(BaseModel):
    model_config = ConfigDict(extra="forbid")
    member_casual: str
    end_station_name: str
    trips: int = Field(..., ge=1)
    rn: int = Field(..., ge=1)


class SummWeekendSplit(BaseModel):
    """Weekend vs weekday ride counts per rider type.

    Percentages are `None` when the rider type has no trips at all.
    """
    model_config = ConfigDict(extra="forbid")
    member_casual: str
    weekend_trips: int = Field(..., ge=0)
    weekday_trips: int = Field(..., ge=0)
    weekend_pct: float | None
    weekday_pct: float | None


SUMMARY_MODELS: dict[str, type[BaseModel]] = {
    "summ_member_stats": SummMemberStats,
    "summ_trips_by_dow": SummTripsByDow,
    "summ_trips_by_month": SummTripsByMonth,
    "summ_trips_by_hour": SummTripsByHour,
    "summ_rideable_share": SummRideableShare,
    "summ_top_start_stations": SummTopStartStations,
    "summ_top_end_stations": SummTopEndStations,
    "summ_weekend_split": SummWeekendSplit,
}
