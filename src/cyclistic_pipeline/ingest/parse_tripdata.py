"""Parsing helpers for monthly trip files.

The `parse_tripdata_to_pandas` function reads one monthly CSV (plain or zipped)
into a pandas DataFrame while `parse_many_tripdata` converts a list into a
Dask DataFrame with a stable partitioning strategy.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Any, cast

import dask.dataframe as dd
import pandas as pd

from cyclistic_pipeline.clean.schema import coerce_raw_types
from cyclistic_pipeline.ingest.fetch_tripdata import MonthTarget

log = logging.getLogger(__name__)

ROWS_PER_PARTITION = 200_000

# Read as text so numeric-looking ids never become floats.
TEXT_DTYPES = {
    "ride_id": "string",
    "rideable_type": "string",
    "member_casual": "string",
    "start_station_name": "string",
    "start_station_id": "string",
    "end_station_name": "string",
    "end_station_id": "string",
}


def pick_csv(names: list[str]) -> str:
    """Return the trip CSV inside an archive, skipping macOS metadata."""
    csvs = [n for n in names if n.lower().endswith(".csv") and "__macosx" not in n.lower()]
    if not csvs:
        raise ValueError("No CSV found inside zip")
    return sorted(csvs)[0]


def _read_csv(source: Any) -> pd.DataFrame:
    pdf = pd.read_csv(source, dtype=TEXT_DTYPES)
    pdf.columns = [c.strip().lower() for c in pdf.columns]
    return pdf


def parse_tripdata_to_pandas(path: Path, target: MonthTarget) -> pd.DataFrame:
    """Parse a single monthly trip file into a pandas DataFrame.

    Published timestamps carry no zone and are stored as UTC, the same
    convention the windowing stage applies.

    Args:
        path: Path to a `.csv` file or a `.zip` archive containing one.
        target: Month the file belongs to.

    Returns:
        pandas.DataFrame with the source columns plus `source_month`.

    Raises:
        TripSchemaError: if a required column is missing or mistyped.
    """
    if path.suffix.lower() == ".zip":
        with zipfile.ZipFile(path, "r") as z:
            with z.open(pick_csv(z.namelist())) as f:
                pdf = _read_csv(f)
    else:
        pdf = _read_csv(path)

    pdf = coerce_raw_types(pdf)
    pdf["source_month"] = target.label
    log.info("Parsed %s: %d rows", path.name, len(pdf))
    return pdf


def parse_many_tripdata(paths: list[Path], targets: list[MonthTarget]) -> Any:
    """Parse many monthly files into a concatenated Dask DataFrame.

    Args:
        paths: List of Paths to monthly trip files.
        targets: Corresponding list of `MonthTarget`s.

    Returns:
        Dask DataFrame concatenating all parsed months.
    """
    if len(paths) != len(targets):
        raise ValueError("paths and targets must have same length")

    parts: list[Any] = []
    dd_mod = cast(Any, dd)
    for p, t in zip(paths, targets):
        pdf = parse_tripdata_to_pandas(p, t)
        parts.append(dd_mod.from_pandas(pdf, npartitions=max(1, len(pdf) // ROWS_PER_PARTITION)))

    if not parts:
        return dd_mod.from_pandas(pd.DataFrame(), npartitions=1)

    return dd_mod.concat(parts, interleave_partitions=True)
