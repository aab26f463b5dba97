"""Raw-layer loading utilities.

This module writes parsed pandas/Dask partitions into the `raw_trips`
collection in MongoDB in batches. Months are replaced, never merged: every
document tagged with a reloaded `source_month` is deleted first, and ride ids
are never used as upsert keys, so duplicate ids in the source survive.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable
from typing import cast, Any as TypingAny

import pandas as pd
from dask import delayed, compute  # type: ignore[attr-defined]

from cyclistic_pipeline.clean.schema import null_to_none
from cyclistic_pipeline.config import get_settings
from cyclistic_pipeline.db import get_client, get_db, insert_batches

log = logging.getLogger(__name__)

RAW_COLLECTION = "raw_trips"


def raw_documents(pdf: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a raw partition into Mongo documents.

    Nulls become `None` and pandas timestamps stay datetimes.
    """
    return null_to_none(pdf)


def _load_partition(pdf: pd.DataFrame) -> int:
    """Insert a pandas partition into the `raw_trips` collection.

    Notes:
        This function is executed inside Dask workers and therefore creates
        and closes its own MongoDB connection for isolation.

    Args:
        pdf: Pandas DataFrame partition to load.

    Returns:
        The number of documents inserted from this partition.
    """
    if len(pdf) == 0:
        return 0

    settings = get_settings()
    client = get_client(settings)
    try:
        collection = client[settings.mongo_db][RAW_COLLECTION]
        return insert_batches(collection, raw_documents(pdf))
    finally:
        client.close()


def clear_months(months: Iterable[str]) -> int:
    """Delete raw documents for the given `source_month` labels.

    Returns:
        Number of documents deleted.
    """
    settings = get_settings()
    client = get_client(settings)
    try:
        collection = get_db(client, settings.mongo_db)[RAW_COLLECTION]
        result = collection.delete_many({"source_month": {"$in": sorted(set(months))}})
        return int(result.deleted_count)
    finally:
        client.close()


def load_raw_to_mongo(ddf: Any, months: list[str]) -> int:
    """Replace the given months in `raw_trips` with the rows of `ddf`.

    Args:
        ddf: Dask DataFrame with raw trip columns and `source_month`.
        months: `YYYY-MM` labels contained in `ddf`.

    Returns:
        Total number of documents inserted into `raw_trips`.
    """
    row_count = ddf.shape[0].compute()
    log.info("Loading %d rows into raw_trips collection...", row_count)

    deleted = clear_months(months)
    if deleted:
        log.info("Removed %d existing raw rows for months %s", deleted, months)

    tasks = [delayed(_load_partition)(part) for part in ddf.to_delayed()]
    counts = cast(TypingAny, compute)(*tasks)

    total = int(sum(counts))
    log.info("Loaded %d documents into raw_trips.", total)
    return total
