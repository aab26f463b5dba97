"""Windowing, cleaning and sanity-check utilities for the pipeline.

Provides functions to restrict raw trips to the analysis window, filter
anomalous rides, derive calendar/time features, and check the resulting
`cleaned_trips` fact table.
"""
