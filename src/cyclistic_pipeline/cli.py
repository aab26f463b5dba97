"""Command-line interface for orchestrating the pipeline.

Provides subcommands: `ingest`, `clean`, `check`, `summarize`, and `all`. Each
command is implemented as a `cmd_*` function that accepts an argparse
namespace.
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, List
from typing import cast, Any as TypingAny

import dask.dataframe as dd
import pandas as pd
from dotenv import load_dotenv

from cyclistic_pipeline.config import Settings, get_settings, parse_window_bound
from cyclistic_pipeline.db import get_client, get_db
from cyclistic_pipeline.logging_config import configure_logging

# INGEST
from cyclistic_pipeline.ingest.fetch_tripdata import (
    download_tripdata,
    find_local_tripdata,
    months_between,
    parse_month,
)
from cyclistic_pipeline.ingest.load_raw import RAW_COLLECTION, load_raw_to_mongo
from cyclistic_pipeline.ingest.parse_tripdata import parse_many_tripdata

# CLEAN
from cyclistic_pipeline.clean.checks import log_report, run_sanity_checks
from cyclistic_pipeline.clean.load_clean import CLEANED_COLLECTION, load_clean_to_mongo
from cyclistic_pipeline.clean.transform import clean_windowed_ddf
from cyclistic_pipeline.clean.window import window_trips

# SUMMARIES
from cyclistic_pipeline.aggregate.build_summaries import TOP_STATIONS, build_all_summaries
from cyclistic_pipeline.aggregate.load_summaries import load_all_summaries

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _settings_for(args: argparse.Namespace) -> Settings:
    """Return settings with the window overridden by CLI flags, if given."""
    s = get_settings()
    start = getattr(args, "window_start", None)
    end = getattr(args, "window_end", None)
    if start is None and end is None:
        return s

    s = replace(
        s,
        window_start=parse_window_bound(start) if start else s.window_start,
        window_end=parse_window_bound(end) if end else s.window_end,
    )
    if s.window_end <= s.window_start:
        raise SystemExit("--window-end must be after --window-start")
    return s


def _load_collection_to_ddf(
    collection: Any,
    projection: dict[str, Any],
    batch_size: int = 50_000,
) -> Any:
    """Safely load a MongoDB collection into a Dask DataFrame using batched reads."""
    cursor = collection.find({}, projection).batch_size(batch_size)

    pdf_batches: List[pd.DataFrame] = []
    buffer: List[dict[str, Any]] = []

    for doc in cursor:
        buffer.append(doc)
        if len(buffer) >= batch_size:
            pdf_batches.append(pd.DataFrame(buffer))
            buffer.clear()

    if buffer:
        pdf_batches.append(pd.DataFrame(buffer))

    dd_mod = cast(TypingAny, dd)
    if not pdf_batches:
        return dd_mod.from_pandas(pd.DataFrame(), npartitions=1)

    pdf = pd.concat(pdf_batches, ignore_index=True)
    nparts = max(1, len(pdf) // 200_000)

    log.info("Loaded %d documents into %d Dask partitions", len(pdf), nparts)
    return dd_mod.from_pandas(pdf, npartitions=nparts)


def _load_nonempty(s: Settings, name: str, hint: str) -> Any:
    """Load a collection, failing with `hint` when it is empty."""
    client = get_client(s)
    try:
        db = get_db(client, s.mongo_db)
        ddf = _load_collection_to_ddf(db[name], {"_id": False})
    finally:
        client.close()

    if len(ddf.columns) == 0 or ddf.shape[0].compute() == 0:
        raise RuntimeError(f"{name} is empty. {hint}")
    return ddf


# --------------------------------------------------
# INGEST
# --------------------------------------------------
def cmd_ingest(args: argparse.Namespace) -> None:
    """Ingest monthly trip files for the requested month range into `raw_trips`.

    Args:
        args: argparse namespace with `from_month`, `to_month`, `csv_dir`,
            `force`.
    """
    s = _settings_for(args)
    targets = months_between(parse_month(args.from_month), parse_month(args.to_month))
    paths: list[Path] = []
    todo = []

    client = get_client(s)
    try:
        raw = get_db(client, s.mongo_db)[RAW_COLLECTION]
        for t in targets:
            already = raw.count_documents({"source_month": t.label})
            if already > 0 and not args.force:
                log.info("Month %s already ingested (%d docs). Skipping.", t.label, already)
                continue

            if args.csv_dir is not None:
                p = find_local_tripdata(t, Path(args.csv_dir))
                if p is None:
                    raise FileNotFoundError(f"No trip file for {t.label} in {args.csv_dir}")
            else:
                p = download_tripdata(t, s.tripdata_dir, s.tripdata_base_url)
            paths.append(p)
            todo.append(t)
    finally:
        client.close()

    if not todo:
        log.info("Ingest completed: nothing to do.")
        return

    ddf = parse_many_tripdata(paths, todo)
    load_raw_to_mongo(ddf, [t.label for t in todo])
    log.info("Ingest completed.")


# --------------------------------------------------
# CLEAN
# --------------------------------------------------
def cmd_clean(args: argparse.Namespace) -> None:
    """Window and clean `raw_trips`, replacing `cleaned_trips`.

    Schema errors raise before `cleaned_trips` is touched.
    """
    s = _settings_for(args)
    ddf = _load_nonempty(s, RAW_COLLECTION, "Run ingest first.")

    windowed = window_trips(ddf, s.window_start, s.window_end)
    cleaned = clean_windowed_ddf(windowed)
    good, bad = load_clean_to_mongo(cleaned)

    log.info("cleaned_trips rebuilt (good=%d bad=%d)", good, bad)


# --------------------------------------------------
# CHECK
# --------------------------------------------------
def cmd_check(args: argparse.Namespace) -> None:
    """Run the sanity checks over `cleaned_trips` and log the diagnostics."""
    s = _settings_for(args)
    ddf = _load_nonempty(s, CLEANED_COLLECTION, "Run clean first.")
    log_report(run_sanity_checks(ddf))


# --------------------------------------------------
# SUMMARIES
# --------------------------------------------------
def cmd_summarize(args: argparse.Namespace) -> None:
    """Rebuild every summary table from `cleaned_trips`.

    Args:
        args: argparse namespace with `top_n`.
    """
    s = _settings_for(args)
    ddf = _load_nonempty(s, CLEANED_COLLECTION, "Run clean first.")

    summaries = build_all_summaries(ddf, top_n=args.top_n)
    counts = load_all_summaries(summaries)

    log.info("Summary tables successfully generated: %s", counts)


# --------------------------------------------------
# ALL
# --------------------------------------------------
def cmd_all(args: argparse.Namespace) -> None:
    """Convenience: run ingest → clean → check → summarize with the provided args."""
    cmd_ingest(args)
    cmd_clean(args)
    cmd_check(args)
    cmd_summarize(args)


# --------------------------------------------------
# CLI
# --------------------------------------------------
def _add_window_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--window-start", default=None, help="Inclusive start, overrides WINDOW_START")
    p.add_argument("--window-end", default=None, help="Exclusive end, overrides WINDOW_END")


def _add_ingest_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--from-month", default="2024-08", help="First month, YYYY-MM")
    p.add_argument("--to-month", default="2025-07", help="Last month, YYYY-MM")
    p.add_argument("--csv-dir", default=None, help="Read local monthly files instead of downloading")
    p.add_argument("--force", action="store_true")


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    The returned parser has subcommands `ingest`, `clean`, `check`,
    `summarize`, and `all` with commonly used options configured.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="cyclistic-pipeline")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_ingest = sub.add_parser("ingest")
    _add_ingest_args(p_ingest)

    p_clean = sub.add_parser("clean")
    _add_window_args(p_clean)

    sub.add_parser("check")

    p_sum = sub.add_parser("summarize")
    p_sum.add_argument("--top-n", type=int, default=TOP_STATIONS)

    p_all = sub.add_parser("all")
    _add_ingest_args(p_all)
    _add_window_args(p_all)
    p_all.add_argument("--top-n", type=int, default=TOP_STATIONS)

    return p


def main() -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    configure_logging(Path("logs/pipeline.log"))

    args = build_parser().parse_args()

    if args.cmd == "ingest":
        cmd_ingest(args)
    elif args.cmd == "clean":
        cmd_clean(args)
    elif args.cmd == "check":
        cmd_check(args)
    elif args.cmd == "summarize":
        cmd_summarize(args)
    elif args.cmd == "all":
        cmd_all(args)
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
