"""Summary-table aggregation helpers.

This package contains routines that convert the `cleaned_trips` fact table
into the analytical summary tables (rider-type stats, seasonality, hourly and
weekday patterns, fleet mix, station popularity, weekend split). They are
small enough to compute eagerly and store in MongoDB as read-optimized
collections.
"""
