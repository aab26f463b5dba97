from __future__ import annotations

import zipfile

import pytest

from cyclistic_pipeline.clean.schema import TripSchemaError
from cyclistic_pipeline.ingest.fetch_tripdata import (
    MonthTarget,
    find_local_tripdata,
    months_between,
    parse_month,
    tripdata_url,
)
from cyclistic_pipeline.ingest.load_raw import raw_documents
from cyclistic_pipeline.ingest.parse_tripdata import (
    parse_many_tripdata,
    parse_tripdata_to_pandas,
    pick_csv,
)

CSV = (
    "ride_id,rideable_type,started_at,ended_at,start_station_name,start_station_id,"
    "end_station_name,end_station_id,start_lat,start_lng,end_lat,end_lng,member_casual\n"
    "0123E4567,electric_bike,2024-08-01 07:15:02.123,2024-08-01 07:31:40.456,"
    "Clark St & Elm St,TA1307000039,,,41.9,-87.63,,,member\n"
    "ABCDEF012,classic_bike,2024-08-02 18:00:00,2024-08-02 18:25:00,"
    "Streeter Dr & Grand Ave,13022,Wells St & Concord Ln,TA1308000050,41.89,-87.61,41.91,-87.63,casual\n"
)


def test_months_between_crosses_year() -> None:
    months = months_between(parse_month("2024-11"), parse_month("2025-02"))
    assert [m.label for m in months] == ["2024-11", "2024-12", "2025-01", "2025-02"]


def test_twelve_month_default_range() -> None:
    assert len(months_between(parse_month("2024-08"), parse_month("2025-07"))) == 12


@pytest.mark.parametrize("value", ["2024", "2024-13", "2024-08-01", "Aug 2024"])
def test_parse_month_rejects_bad_values(value: str) -> None:
    with pytest.raises(ValueError):
        parse_month(value)


def test_tripdata_url() -> None:
    url = tripdata_url("https://divvy-tripdata.s3.amazonaws.com", MonthTarget(2024, 8))
    assert url == "https://divvy-tripdata.s3.amazonaws.com/202408-divvy-tripdata.zip"


def test_pick_csv_skips_macos_metadata() -> None:
    names = ["__MACOSX/._202408-divvy-tripdata.csv", "202408-divvy-tripdata.csv"]
    assert pick_csv(names) == "202408-divvy-tripdata.csv"


def test_parse_csv(tmp_path) -> None:
    path = tmp_path / "202408-divvy-tripdata.csv"
    path.write_text(CSV, encoding="utf-8")

    pdf = parse_tripdata_to_pandas(path, MonthTarget(2024, 8))

    assert len(pdf) == 2
    assert pdf["source_month"].unique().tolist() == ["2024-08"]
    assert pdf["ride_id"].tolist() == ["0123E4567", "ABCDEF012"]
    assert str(pdf["started_at"].dt.tz) == "UTC"
    assert pdf["end_station_name"].isna().tolist() == [True, False]


def test_parse_zip_and_find_local(tmp_path) -> None:
    path = tmp_path / "202408-divvy-tripdata.zip"
    with zipfile.ZipFile(path, "w") as z:
        z.writestr("__MACOSX/._202408-divvy-tripdata.csv", "junk")
        z.writestr("202408-divvy-tripdata.csv", CSV)

    target = MonthTarget(2024, 8)
    assert find_local_tripdata(target, tmp_path) == path
    assert find_local_tripdata(MonthTarget(2024, 9), tmp_path) is None

    ddf = parse_many_tripdata([path], [target])
    assert ddf.shape[0].compute() == 2


def test_parse_rejects_file_missing_columns(tmp_path) -> None:
    path = tmp_path / "202408-divvy-tripdata.csv"
    path.write_text("ride_id,started_at\nX,2024-08-01 07:00:00\n", encoding="utf-8")
    with pytest.raises(TripSchemaError):
        parse_tripdata_to_pandas(path, MonthTarget(2024, 8))


def test_raw_documents_use_none_for_missing(tmp_path) -> None:
    path = tmp_path / "202408-divvy-tripdata.csv"
    path.write_text(CSV, encoding="utf-8")
    docs = raw_documents(parse_tripdata_to_pandas(path, MonthTarget(2024, 8)))

    assert docs[0]["end_station_name"] is None
    assert docs[0]["end_lat"] is None
    assert docs[1]["end_lat"] == pytest.approx(41.91)
