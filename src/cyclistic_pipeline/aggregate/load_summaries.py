"""Utilities for loading summary DataFrames into MongoDB.

Summary tables are small pandas frames. Each one is validated against its
Pydantic model and then replaces its collection wholesale; no summary is ever
merged into a previous version.
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from cyclistic_pipeline.clean.schema import null_to_none
from cyclistic_pipeline.config import get_settings
from cyclistic_pipeline.db import get_client, get_db, replace_collection
from cyclistic_pipeline.models import SUMMARY_MODELS

log = logging.getLogger(__name__)


def summary_documents(pdf: pd.DataFrame, collection_name: str) -> list[dict[str, Any]]:
    """Validate summary rows and return them as Mongo documents.

    Args:
        pdf: Summary DataFrame.
        collection_name: Summary collection name (selects the model).

    Returns:
        List of documents in the frame's row order.

    Raises:
        KeyError: if `collection_name` is not a known summary table.
        pydantic.ValidationError: if a row does not match its model.
    """
    model = SUMMARY_MODELS[collection_name]
    return [model.model_validate(rec).model_dump(mode="python") for rec in null_to_none(pdf)]


def load_summary(pdf: pd.DataFrame, collection_name: str) -> int:
    """Replace a summary collection with the rows of `pdf`.

    Returns:
        Number of documents written.
    """
    log.info("Generating summary collection: %s", collection_name)
    docs = summary_documents(pdf, collection_name)

    if not docs:
        log.warning("No rows to load for %s", collection_name)

    s = get_settings()
    client = get_client(s)
    try:
        written = replace_collection(get_db(client, s.mongo_db), collection_name, docs)
    finally:
        client.close()

    log.info("Summary load complete for %s: %d rows", collection_name, written)
    return written


def load_all_summaries(summaries: dict[str, pd.DataFrame]) -> dict[str, int]:
    """Load every summary table and return row counts by collection."""
    return {name: load_summary(pdf, name) for name, pdf in summaries.items()}
