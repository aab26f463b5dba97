"""MongoDB helpers and the wholesale table-replace utility.

Centralizes creation of Mongo clients and the staging-then-rename strategy used
for every derived table (`cleaned_trips` and the `summ_*` collections).
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

import certifi
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from cyclistic_pipeline.config import Settings

log = logging.getLogger(__name__)

BATCH_SIZE = 1000
STAGING_SUFFIX = "__staging"


def get_client(settings: Settings) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided settings.

    Args:
        settings: Pipeline settings carrying the URI and TLS flag.

    Returns:
        Configured MongoClient instance.
    """
    kwargs: dict[str, Any] = {
        "serverSelectionTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
    }
    if settings.mongo_tls:
        kwargs.update(tls=True, tlsCAFile=certifi.where())
    return MongoClient(settings.mongo_uri, **kwargs)


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient.

    Args:
        client: PyMongo MongoClient.
        db_name: Database name.

    Returns:
        A Database object.
    """
    return client[db_name]


def chunks(docs: Iterable[dict[str, Any]], size: int = BATCH_SIZE) -> Iterable[list[dict[str, Any]]]:
    """Yield lists of documents in batches of `size`."""
    batch: list[dict[str, Any]] = []
    for d in docs:
        batch.append(d)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def insert_batches(
    collection: Collection[dict[str, Any]],
    docs: Iterable[dict[str, Any]],
    batch_size: int = BATCH_SIZE,
) -> int:
    """Insert documents in batches and return the number inserted.

    Errors propagate: a partially written staging collection must never be
    promoted over its target.
    """
    inserted = 0
    for batch in chunks(docs, batch_size):
        collection.insert_many(batch, ordered=False)
        inserted += len(batch)
    return inserted


def staging_name(collection_name: str) -> str:
    """Return the staging collection name used while rebuilding a table."""
    return f"{collection_name}{STAGING_SUFFIX}"


def start_replace(db: Database[dict[str, Any]], collection_name: str) -> Collection[dict[str, Any]]:
    """Drop any leftover staging collection and return a fresh one."""
    staging = db[staging_name(collection_name)]
    staging.drop()
    return staging


def finish_replace(db: Database[dict[str, Any]], collection_name: str) -> None:
    """Promote the staging collection over `collection_name`.

    An empty staging collection does not exist server-side, so the target is
    dropped instead; an empty rebuild means an empty table.
    """
    staging = staging_name(collection_name)
    if staging in db.list_collection_names():
        db[staging].rename(collection_name, dropTarget=True)
    else:
        db[collection_name].drop()
    log.info("Replaced collection %s", collection_name)


def abort_replace(db: Database[dict[str, Any]], collection_name: str) -> None:
    """Discard the staging collection, leaving the prior table untouched."""
    db[staging_name(collection_name)].drop()
    log.warning("Rebuild of %s aborted; previous contents kept", collection_name)


def replace_collection(
    db: Database[dict[str, Any]],
    collection_name: str,
    docs: Iterable[dict[str, Any]],
) -> int:
    """Replace a collection wholesale with `docs`.

    Documents are written to a staging collection which is renamed over the
    target only after every batch succeeded.

    Args:
        db: Target database.
        collection_name: Name of the collection to replace.
        docs: Documents forming the new contents.

    Returns:
        Number of documents written.
    """
    staging = start_replace(db, collection_name)
    try:
        written = insert_batches(staging, docs)
    except Exception:
        abort_replace(db, collection_name)
        raise
    finish_replace(db, collection_name)
    return written
