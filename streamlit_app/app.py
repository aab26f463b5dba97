from __future__ import annotations

import pandas as pd
import streamlit as st
import altair as alt
from pymongo import MongoClient

import certifi
from dotenv import dotenv_values

# =====================================================
# Page config
# =====================================================
st.set_page_config(page_title="Cyclistic Trips Analytics", layout="wide")
st.title("🚲 Cyclistic Trips: Members vs Casual Riders")

# =====================================================
# MongoDB connection (read from .env)
# =====================================================
_env = dotenv_values(".env")
MONGO_URI = _env.get("MONGO_URI") or "mongodb://localhost:27017"
MONGO_DB = _env.get("MONGO_DB") or "cyclistic"
MONGO_TLS = (_env.get("MONGO_TLS") or "false").strip().lower() in {"1", "true", "yes", "on"}

try:
    tls_kwargs = {"tls": True, "tlsCAFile": certifi.where()} if MONGO_TLS else {}
    client = MongoClient(
        MONGO_URI,
        serverSelectionTimeoutMS=30000,
        socketTimeoutMS=30000,
        connectTimeoutMS=30000,
        **tls_kwargs,
    )
    # fail fast: ensure the client can reach the server
    client.admin.command("ping")
    db = client[MONGO_DB]
except Exception as exc:  # pragma: no cover - runtime failure handling
    st.error(f"Unable to connect to MongoDB: {exc}")
    st.stop()

RIDER_COLORS = alt.Scale(domain=["member", "casual"], range=["#1f77b4", "#ff7f0e"])


# =====================================================
# Helpers
# =====================================================
def load_collection(name: str) -> pd.DataFrame:
    """Load an entire Mongo collection into a pandas DataFrame for display.

    Args:
        name: Collection name in the configured Mongo database.

    Returns:
        pandas.DataFrame with the collection rows or an empty DataFrame.
    """
    docs = list(db[name].find({}, {"_id": 0}))
    return pd.DataFrame(docs) if docs else pd.DataFrame()


def rider_bars(df: pd.DataFrame, x: str, y: str, x_title: str, sort: list | str | None = None):
    """Grouped bar chart split by `member_casual`."""
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X(f"{x}:N", sort=sort, title=x_title),
            xOffset="member_casual:N",
            y=alt.Y(f"{y}:Q", title=y.replace("_", " ").title()),
            color=alt.Color("member_casual:N", scale=RIDER_COLORS, title="Rider"),
            tooltip=[f"{x}:N", "member_casual:N", f"{y}:Q"],
        )
        .properties(height=320)
    )


# =====================================================
# SECTION 0 — EXECUTIVE OVERVIEW
# =====================================================
st.header("📌 Executive Overview")

df_stats = load_collection("summ_member_stats")

if df_stats.empty:
    st.warning("Summary data not available. Run `cyclistic-pipeline summarize`.")
    st.stop()

cols = st.columns(len(df_stats) + 1)
with cols[0]:
    st.metric("Cleaned Trips", f"{int(df_stats['trips'].sum()):,}")
for col, (_, row) in zip(cols[1:], df_stats.iterrows()):
    with col:
        st.metric(
            f"{row['member_casual'].title()} trips",
            f"{int(row['trips']):,}",
            f"{row['trip_share_pct']}% share · median {row['median_mins']} min",
            delta_color="off",
        )

st.dataframe(df_stats, width="stretch")
st.divider()

# =====================================================
# SECTION 1 — SEASONALITY
# =====================================================
st.header("📈 Monthly Seasonality")

df_month = load_collection("summ_trips_by_month")
if df_month.empty:
    st.info("Monthly data not available.")
else:
    metric = st.radio("Metric", ["trips", "avg_mins"], horizontal=True, key="month_metric")
    chart = (
        alt.Chart(df_month)
        .mark_line(point=True)
        .encode(
            x=alt.X("ym:O", title="Month"),
            y=alt.Y(f"{metric}:Q", title=metric.replace("_", " ").title()),
            color=alt.Color("member_casual:N", scale=RIDER_COLORS, title="Rider"),
            tooltip=["ym:O", "season:N", "member_casual:N", "trips:Q", "avg_mins:Q"],
        )
        .properties(height=320)
    )
    st.altair_chart(chart, width="stretch")

st.divider()

# =====================================================
# SECTION 2 — WEEKLY & DAILY PATTERNS
# =====================================================
st.header("🗓️ Weekly and Hourly Patterns")

left, right = st.columns(2)

with left:
    df_dow = load_collection("summ_trips_by_dow")
    if df_dow.empty:
        st.info("Day-of-week data not available.")
    else:
        order = df_dow.sort_values("dow_mon1")["day_of_week"].drop_duplicates().tolist()
        st.altair_chart(rider_bars(df_dow, "day_of_week", "trips", "Day of Week", order), width="stretch")

with right:
    df_hour = load_collection("summ_trips_by_hour")
    if df_hour.empty:
        st.info("Hourly data not available.")
    else:
        chart_hour = (
            alt.Chart(df_hour)
            .mark_line(point=True)
            .encode(
                x=alt.X("start_hour:O", title="Start Hour"),
                y=alt.Y("trips:Q", title="Trips"),
                color=alt.Color("member_casual:N", scale=RIDER_COLORS, title="Rider"),
                tooltip=["start_hour:O", "member_casual:N", "trips:Q", "avg_mins:Q"],
            )
            .properties(height=320)
        )
        st.altair_chart(chart_hour, width="stretch")

df_split = load_collection("summ_weekend_split")
if not df_split.empty:
    st.subheader("Weekend vs Weekday")
    st.dataframe(df_split, width="stretch")

st.divider()

# =====================================================
# SECTION 3 — FLEET MIX
# =====================================================
st.header("🛴 Rideable Type Mix")

df_mix = load_collection("summ_rideable_share")
if df_mix.empty:
    st.info("Rideable mix not available.")
else:
    chart_mix = (
        alt.Chart(df_mix)
        .mark_bar()
        .encode(
            x=alt.X("type_share_pct:Q", stack="normalize", title="Share of trips"),
            y=alt.Y("member_casual:N", title=None),
            color=alt.Color("rideable_type:N", title="Rideable"),
            tooltip=["member_casual:N", "rideable_type:N", "trips:Q", "type_share_pct:Q"],
        )
        .properties(height=160)
    )
    st.altair_chart(chart_mix, width="stretch")

st.divider()

# =====================================================
# SECTION 4 — TOP STATIONS
# =====================================================
st.header("📍 Top Stations")

direction = st.selectbox("Stations", ["Start", "End"], index=0)
rider = st.radio("Rider", ["member", "casual"], horizontal=True)

name = "summ_top_start_stations" if direction == "Start" else "summ_top_end_stations"
station_col = "start_station_name" if direction == "Start" else "end_station_name"
df_top = load_collection(name)

if df_top.empty:
    st.info("Station data not available.")
else:
    df_top = df_top[df_top["member_casual"] == rider].sort_values("rn")
    chart_top = (
        alt.Chart(df_top)
        .mark_bar()
        .encode(
            x=alt.X("trips:Q", title="Trips"),
            y=alt.Y(f"{station_col}:N", sort=alt.SortField("rn"), title=None),
            tooltip=[f"{station_col}:N", "trips:Q", "rn:Q"],
        )
        .properties(height=480)
    )
    st.altair_chart(chart_top, width="stretch")

# =====================================================
# Footer
# =====================================================
st.caption("Divvy trip data • MongoDB • Dask • Streamlit | Cyclistic case study")
