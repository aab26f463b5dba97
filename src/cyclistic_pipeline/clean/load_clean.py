"""Load cleaned trips into MongoDB, replacing `cleaned_trips` wholesale.

Module notes:
- Each Dask partition is validated and inserted independently into a staging
  collection.
- The staging collection replaces `cleaned_trips` only once every partition
  succeeded; a failure leaves the previous fact table untouched.
"""
from __future__ import annotations

import logging
from typing import Any, Tuple
from typing import cast, Any as TypingAny

import pandas as pd
from dask import delayed, compute  # type: ignore[attr-defined]

from cyclistic_pipeline.config import get_settings
from cyclistic_pipeline.clean.validate import validate_partition
from cyclistic_pipeline.db import (
    abort_replace,
    finish_replace,
    get_client,
    get_db,
    insert_batches,
    staging_name,
    start_replace,
)

log = logging.getLogger(__name__)

CLEANED_COLLECTION = "cleaned_trips"


def _process_partition(pdf: pd.DataFrame) -> Tuple[int, int]:
    """Runs inside a worker (delayed task).

    Inserts validated docs into the staging collection and returns a tuple
    `(good_rows, bad_rows)`.
    """
    if pdf is None or len(pdf) == 0:
        return 0, 0

    good_docs, bad = validate_partition(pdf)

    settings = get_settings()
    client = get_client(settings)
    try:
        staging = client[settings.mongo_db][staging_name(CLEANED_COLLECTION)]
        good = insert_batches(staging, good_docs)
    finally:
        client.close()
    return good, bad


def load_clean_to_mongo(ddf: Any) -> tuple[int, int]:
    """Driver function.

    Uses `to_delayed()` to run partitioned inserts, then promotes the staging
    collection over `cleaned_trips`.

    Returns:
        Tuple `(good_rows, bad_rows)`; bad rows failed `CleanedTrip`
        validation and signal a defect in the cleaning transform.
    """
    log.info("Loading cleaned trips into MongoDB...")

    settings = get_settings()
    client = get_client(settings)
    db = get_db(client, settings.mongo_db)

    start_replace(db, CLEANED_COLLECTION)
    try:
        delayed_parts = ddf.to_delayed()
        tasks = [delayed(_process_partition)(part) for part in delayed_parts]
        results = cast(TypingAny, compute)(*tasks)  # tuple of (good,bad) for each partition
    except Exception:
        abort_replace(db, CLEANED_COLLECTION)
        client.close()
        raise

    finish_replace(db, CLEANED_COLLECTION)
    client.close()

    good_total = sum(g for g, _ in results)
    bad_total = sum(b for _, b in results)

    if bad_total:
        log.error("%d cleaned rows failed CleanedTrip validation and were not loaded", bad_total)
    log.info("Clean load complete: good=%d bad=%d", good_total, bad_total)
    return int(good_total), int(bad_total)
