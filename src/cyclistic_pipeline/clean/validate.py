"""Validation utilities for the cleaned fact table.

This module validates partition data against the Pydantic `CleanedTrip` model
and converts records into Mongo-safe documents.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

import pandas as pd
from pydantic import ValidationError

from cyclistic_pipeline.clean.schema import null_to_none
from cyclistic_pipeline.models import CleanedTrip

log = logging.getLogger(__name__)


def to_mongo_doc(doc: dict[str, Any]) -> dict[str, Any]:
    """Convert non-BSON-safe types to Mongo-safe types."""
    for k, v in list(doc.items()):
        if isinstance(v, date) and not isinstance(v, datetime):
            doc[k] = datetime.combine(v, datetime.min.time())
        # datetime is BSON-safe; keep as-is
    return doc


def validate_partition(pdf: pd.DataFrame) -> tuple[list[dict[str, Any]], int]:
    """Validate a pandas partition of cleaned trips using Pydantic.

    Nulls are converted to `None` first so nullable station names and
    coordinates validate.

    Args:
        pdf: Pandas DataFrame for the partition.

    Returns:
        A tuple of (list_of_validated_records, bad_count).
    """
    good: list[dict[str, Any]] = []
    bad = 0

    for rec in null_to_none(pdf):
        try:
            m = CleanedTrip.model_validate(rec)
        except ValidationError as e:
            bad += 1
            log.debug("Rejected ride_id=%s: %s", rec.get("ride_id"), e)
            continue
        good.append(to_mongo_doc(m.model_dump(mode="python")))

    return good, bad
