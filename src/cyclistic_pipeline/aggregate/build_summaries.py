"""Summary aggregation functions.

Functions in this module build the summary tables from the cleaned fact
table. The heavy grouping runs in Dask; the grouped results are tiny, so
they are computed to pandas where ratios, rounding, ranking and sort order are
applied.

Expectations:
- Input: a Dask DataFrame with the `cleaned_trips` columns (`member_casual`,
  `ride_length_minutes`, `day_of_week`, `ride_year`, `ride_month`, `season`,
  `start_hour`, `rideable_type`, station names, `is_weekend`).
- Outputs: pandas DataFrames with the columns documented on each function,
  in that order.

Rounding uses pandas' `round`, i.e. round-half-to-even: means to 2 decimals,
percentages to 1 decimal. Rows with a null group key are dropped by the
groupby.
"""
from __future__ import annotations

from typing import Any

import dask
import pandas as pd

TOP_STATIONS = 20
PERCENTILES = [0.1, 0.5, 0.9]

DOW_MON1 = {
    "Monday": 1, "Tuesday": 2, "Wednesday": 3, "Thursday": 4,
    "Friday": 5, "Saturday": 6, "Sunday": 7,
}
DOW_SUN1 = {day: n % 7 + 1 for day, n in DOW_MON1.items()}  # Sunday=1 .. Saturday=7


# =========================================================
# HELPERS
# =========================================================

def _trips_and_avg(ddf: Any, keys: list[str]) -> pd.DataFrame:
    """Return trip counts and mean ride length per group.

    Args:
        ddf: Dask DataFrame of cleaned trips.
        keys: Group-by columns.

    Returns:
        pandas DataFrame with `keys`, `trips` and `avg_mins`.
    """
    grouped = ddf.groupby(keys)["ride_length_minutes"].agg(["count", "sum"]).compute()
    out = grouped.reset_index().rename(columns={"count": "trips"})
    out["trips"] = out["trips"].astype("int64")
    out["avg_mins"] = (out["sum"] / out["trips"]).round(2)
    return out.drop(columns="sum")


def _trip_counts(ddf: Any, keys: list[str]) -> pd.DataFrame:
    """Return `keys` plus a `trips` row count per group."""
    sizes = ddf.groupby(keys).size().compute()
    out = sizes.rename("trips").reset_index()
    out["trips"] = out["trips"].astype("int64")
    return out


def _pct(part: pd.Series, whole: pd.Series) -> pd.Series:
    """100 * part / whole rounded to 1 decimal; null where `whole` is 0."""
    denom = whole.where(whole != 0)
    return (100 * part / denom).round(1)


# =========================================================
# MEMBER VS CASUAL
# =========================================================

def summ_member_stats(ddf: Any) -> pd.DataFrame:
    """Return ride statistics per rider type.

    Percentiles come from Dask's approximate quantile estimator, which merges
    per-partition percentile summaries.

    Returns:
        DataFrame with columns: `member_casual`, `trips`, `avg_mins`,
        `p10_mins`, `median_mins`, `p90_mins`, `trip_share_pct`.
    """
    out = _trips_and_avg(ddf, ["member_casual"])

    tasks = [
        ddf[ddf["member_casual"] == mc]["ride_length_minutes"].quantile(PERCENTILES)
        for mc in out["member_casual"]
    ]
    quantiles = dask.compute(*tasks)

    rows = [q.to_numpy(dtype="float64") for q in quantiles]
    out["p10_mins"] = [round(float(r[0]), 2) for r in rows]
    out["median_mins"] = [round(float(r[1]), 2) for r in rows]
    out["p90_mins"] = [round(float(r[2]), 2) for r in rows]

    out["trip_share_pct"] = _pct(out["trips"], pd.Series(out["trips"].sum(), index=out.index))

    cols = ["member_casual", "trips", "avg_mins", "p10_mins", "median_mins", "p90_mins", "trip_share_pct"]
    return out.sort_values("member_casual").reset_index(drop=True)[cols]


# =========================================================
# TIME PATTERNS
# =========================================================

def summ_trips_by_dow(ddf: Any) -> pd.DataFrame:
    """Return trips per rider type and weekday.

    Returns:
        DataFrame with columns: `member_casual`, `day_of_week`, `dow_sun1`
        (1=Sunday..7=Saturday), `dow_mon1` (1=Monday..7=Sunday), `trips`,
        `avg_mins`; sorted by `dow_mon1` then `member_casual`.
    """
    out = _trips_and_avg(ddf, ["member_casual", "day_of_week"])
    out["dow_sun1"] = out["day_of_week"].map(DOW_SUN1).astype("int64")
    out["dow_mon1"] = out["day_of_week"].map(DOW_MON1).astype("int64")

    cols = ["member_casual", "day_of_week", "dow_sun1", "dow_mon1", "trips", "avg_mins"]
    return out.sort_values(["dow_mon1", "member_casual"]).reset_index(drop=True)[cols]


def summ_trips_by_month(ddf: Any) -> pd.DataFrame:
    """Return monthly trips per rider type.

    Returns:
        DataFrame with columns: `yr`, `mo`, `ym` ("YYYY-MM"), `season`,
        `member_casual`, `trips`, `avg_mins`; sorted by `yr`, `mo`,
        `member_casual`.
    """
    out = _trips_and_avg(ddf, ["ride_year", "ride_month", "season", "member_casual"])
    out = out.rename(columns={"ride_year": "yr", "ride_month": "mo"})
    out["yr"] = out["yr"].astype("int64")
    out["mo"] = out["mo"].astype("int64")
    out["ym"] = out["yr"].astype(str).str.zfill(4) + "-" + out["mo"].astype(str).str.zfill(2)

    cols = ["yr", "mo", "ym", "season", "member_casual", "trips", "avg_mins"]
    return out.sort_values(["yr", "mo", "member_casual"]).reset_index(drop=True)[cols]


def summ_trips_by_hour(ddf: Any) -> pd.DataFrame:
    """Return trips per rider type and start hour.

    Returns:
        DataFrame with columns: `member_casual`, `start_hour`, `trips`,
        `avg_mins`; sorted by `member_casual`, `start_hour`.
    """
    out = _trips_and_avg(ddf, ["member_casual", "start_hour"])
    out["start_hour"] = out["start_hour"].astype("int64")

    cols = ["member_casual", "start_hour", "trips", "avg_mins"]
    return out.sort_values(["member_casual", "start_hour"]).reset_index(drop=True)[cols]


# =========================================================
# FLEET MIX
# =========================================================

def summ_rideable_share(ddf: Any) -> pd.DataFrame:
    """Return the rideable-type mix within each rider type.

    Returns:
        DataFrame with columns: `member_casual`, `rideable_type`, `trips`,
        `type_share_pct`; sorted by `member_casual`, then `trips` descending.
    """
    out = _trip_counts(ddf, ["member_casual", "rideable_type"])
    group_total = out.groupby("member_casual")["trips"].transform("sum")
    out["type_share_pct"] = _pct(out["trips"], group_total)

    out = out.sort_values(["member_casual", "trips"], ascending=[True, False], kind="mergesort")
    return out.reset_index(drop=True)[["member_casual", "rideable_type", "trips", "type_share_pct"]]


# =========================================================
# STATION POPULARITY
# =========================================================

def _top_stations(ddf: Any, station_col: str, top_n: int) -> pd.DataFrame:
    """Rank stations by trip count within each rider type.

    Dockless trips (null station name) are excluded here only. Equal counts
    are ordered by station name so `rn` is deterministic.
    """
    docked = ddf[ddf[station_col].notnull()]
    out = _trip_counts(docked, ["member_casual", station_col])

    out = out.sort_values(
        ["member_casual", "trips", station_col],
        ascending=[True, False, True],
        kind="mergesort",
    )
    out["rn"] = (out.groupby("member_casual").cumcount() + 1).astype("int64")
    out = out[out["rn"] <= top_n]
    return out.reset_index(drop=True)[["member_casual", station_col, "trips", "rn"]]


def summ_top_start_stations(ddf: Any, top_n: int = TOP_STATIONS) -> pd.DataFrame:
    """Return the top N start stations per rider type.

    Returns:
        DataFrame with columns: `member_casual`, `start_station_name`,
        `trips`, `rn`.
    """
    return _top_stations(ddf, "start_station_name", top_n)


def summ_top_end_stations(ddf: Any, top_n: int = TOP_STATIONS) -> pd.DataFrame:
    """Return the top N end stations per rider type.

    Returns:
        DataFrame with columns: `member_casual`, `end_station_name`,
        `trips`, `rn`.
    """
    return _top_stations(ddf, "end_station_name", top_n)


# =========================================================
# WEEKEND VS WEEKDAY
# =========================================================

def summ_weekend_split(ddf: Any) -> pd.DataFrame:
    """Return weekend and weekday trip counts and shares per rider type.

    Returns:
        DataFrame with columns: `member_casual`, `weekend_trips`,
        `weekday_trips`, `weekend_pct`, `weekday_pct`. Percentages are null
        when a rider type has no trips.
    """
    grouped = ddf.groupby("member_casual")["is_weekend"].agg(["sum", "count"]).compute()
    out = grouped.reset_index()

    out["weekend_trips"] = out["sum"].astype("int64")
    out["weekday_trips"] = (out["count"] - out["sum"]).astype("int64")
    total = out["weekend_trips"] + out["weekday_trips"]
    out["weekend_pct"] = _pct(out["weekend_trips"], total)
    out["weekday_pct"] = _pct(out["weekday_trips"], total)

    cols = ["member_casual", "weekend_trips", "weekday_trips", "weekend_pct", "weekday_pct"]
    return out.sort_values("member_casual").reset_index(drop=True)[cols]


def build_all_summaries(ddf: Any, top_n: int = TOP_STATIONS) -> dict[str, pd.DataFrame]:
    """Build every summary table, keyed by its collection name."""
    return {
        "summ_member_stats": summ_member_stats(ddf),
        "summ_trips_by_dow": summ_trips_by_dow(ddf),
        "summ_trips_by_month": summ_trips_by_month(ddf),
        "summ_trips_by_hour": summ_trips_by_hour(ddf),
        "summ_rideable_share": summ_rideable_share(ddf),
        "summ_top_start_stations": summ_top_start_stations(ddf, top_n),
        "summ_top_end_stations": summ_top_end_stations(ddf, top_n),
        "summ_weekend_split": summ_weekend_split(ddf),
    }
