"""Ingestion of monthly trip files into the `raw_trips` collection."""
