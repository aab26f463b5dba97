from __future__ import annotations

from typing import Any, Callable

import dask.dataframe as dd
import pandas as pd
import pytest

CLARK = "Clark St & Elm St"
STREETER = "Streeter Dr & Grand Ave"
WELLS = "Wells St & Concord Ln"


@pytest.fixture
def trip() -> Callable[..., dict[str, Any]]:
    """Factory for one raw trip row."""

    def _trip(
        ride_id: str,
        started_at: str,
        ended_at: str,
        member_casual: str = "member",
        rideable_type: str = "classic_bike",
        start_station_name: str | None = CLARK,
        end_station_name: str | None = WELLS,
    ) -> dict[str, Any]:
        return {
            "ride_id": ride_id,
            "rideable_type": rideable_type,
            "started_at": started_at,
            "ended_at": ended_at,
            "start_station_name": start_station_name,
            "end_station_name": end_station_name,
            "start_lat": 41.90,
            "start_lng": -87.63,
            "end_lat": 41.91,
            "end_lng": -87.64,
            "member_casual": member_casual,
        }

    return _trip


@pytest.fixture
def to_ddf() -> Callable[..., Any]:
    def _to_ddf(rows: list[dict[str, Any]], npartitions: int = 1) -> Any:
        return dd.from_pandas(pd.DataFrame(rows), npartitions=npartitions)

    return _to_ddf


@pytest.fixture
def sample_rows(trip) -> list[dict[str, Any]]:
    """Six valid trips: three members, three casual riders."""
    return [
        trip("m1", "2025-01-06T08:00:00", "2025-01-06T08:10:00"),
        trip("m2", "2025-01-04T09:00:00", "2025-01-04T09:20:00",
             rideable_type="electric_bike", end_station_name=STREETER),
        trip("m3", "2025-07-07T17:00:00", "2025-07-07T17:30:00",
             start_station_name=WELLS, end_station_name=CLARK),
        trip("c1", "2025-01-05T12:00:00", "2025-01-05T12:40:00", member_casual="casual",
             rideable_type="electric_bike", start_station_name=None, end_station_name=CLARK),
        trip("c2", "2025-07-05T13:00:00", "2025-07-05T13:50:00", member_casual="casual",
             rideable_type="electric_bike", end_station_name=None),
        trip("c3", "2025-07-09T14:00:00", "2025-07-09T14:06:00", member_casual="casual",
             start_station_name=STREETER, end_station_name=STREETER),
    ]


class FakeCollection:
    def __init__(self, db: "FakeDB", name: str) -> None:
        self.db = db
        self.name = name

    def insert_many(self, docs: list[dict[str, Any]], ordered: bool = True) -> None:
        if self.db.fail_on_insert is not None and self.db.inserts >= self.db.fail_on_insert:
            raise RuntimeError("insert failed")
        self.db.inserts += 1
        self.db.data.setdefault(self.name, []).extend(docs)

    def count_documents(self, query: dict[str, Any]) -> int:
        return len(self.db.data.get(self.name, []))

    def drop(self) -> None:
        self.db.data.pop(self.name, None)

    def rename(self, new_name: str, dropTarget: bool = False) -> None:
        assert dropTarget
        self.db.data[new_name] = self.db.data.pop(self.name)


class FakeDB:
    """In-memory stand-in for the handful of Database calls the loaders use."""

    def __init__(self) -> None:
        self.data: dict[str, list[dict[str, Any]]] = {}
        self.inserts = 0
        self.fail_on_insert: int | None = None

    def __getitem__(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def list_collection_names(self) -> list[str]:
        return list(self.data)


class FakeClient:
    def __init__(self, db: FakeDB) -> None:
        self.db = db
        self.closed = False

    def __getitem__(self, name: str) -> FakeDB:
        return self.db

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_db() -> FakeDB:
    return FakeDB()


@pytest.fixture
def fake_client(fake_db) -> FakeClient:
    return FakeClient(fake_db)
