"""cyclistic_pipeline package.

Contains modules for ingesting monthly bike-share trip files into MongoDB,
windowing and cleaning them into the `cleaned_trips` fact table, running
sanity checks, building the summary tables, and utilities for serving a
Streamlit dashboard.

Architecture:
- Raw → Cleaned → Summary collections stored in MongoDB
- Dask is used for partitioned/scalable transforms
- Pydantic models validate the cleaned and summary rows
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
