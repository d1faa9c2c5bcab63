from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime
from typing import TypeVar

from ..analysis.comparisons import compare_rows
from ..analysis.dates import today_in
from ..analysis.day_buckets import count_per_day
from ..analysis.snapshot import empty_snapshot, merge_snapshot, utc_timestamp
from ..config.loader import AnalysisSettings
from ..db.store import ProfileStore, StoreError
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.analytics import AnalyticsSnapshot
from ..models.config_models import Profile, ProfileConfigError
from ..models.profile_run import FetchFailed, FetchOutcome, FetchSucceeded, ProfileRun
from ..models.run_result import ImportResult, ProfileStat, RunResult
from ..sheets.client import SheetsFetcher, fetch_sheet_data, validate_profile
from ..sheets.range_spec import parse_range
from .progress import ProgressTracker

"""Analysis run orchestration.

Profiles are processed in fixed-size batches: within a batch the fetches run
concurrently on a thread pool sized to the batch, and the next batch starts
only after every fetch of the current one has finished. Results are merged into
the snapshot on the calling thread, one profile at a time, and the snapshot is
persisted after each merge. A failed fetch marks that profile as failed and
never affects its siblings or later batches.
"""

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProcessingError(Exception):
    """Fatal error that prevents a run (configuration or store level)."""


def batched(items: Sequence[T], size: int) -> Iterator[list[T]]:
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


def validate_profiles(profiles: Iterable[Profile]) -> None:
    """Reject configuration errors before any fetch is attempted.

    Raises:
        ProcessingError: first invalid profile (missing id / range, bad range, bad date column)
    """
    for profile in profiles:
        try:
            validate_profile(profile)
        except ProfileConfigError as e:
            raise ProcessingError(str(e)) from e


def find_profile(profiles: Iterable[Profile], name: str) -> Profile:
    for profile in profiles:
        if profile.name == name:
            return profile
    raise ProcessingError(f"profile not found: {name}")


def _sheet_name(profile: Profile) -> str:
    try:
        return parse_range(profile.range).sheet_name
    except ValueError:
        return ""


def _fetch_profile(fetcher: SheetsFetcher, profile: Profile) -> ProfileRun:
    """Worker: fetch + parse one profile, turning any failure into FetchFailed."""
    start = datetime.now(UTC)
    outcome: FetchOutcome
    try:
        rows = fetch_sheet_data(fetcher, profile)
        outcome = FetchSucceeded(rows=tuple(rows))
    except Exception as e:
        logger.warning(f"Error fetching data for {profile.name}: {e}")
        outcome = FetchFailed(error=str(e))
    return ProfileRun(
        profile_name=profile.name,
        outcome=outcome,
        start_time=start,
        end_time=datetime.now(UTC),
    )


def _stamp_last_run(store: ProfileStore, batch: list[Profile], pool: ThreadPoolExecutor) -> None:
    stamp = utc_timestamp()
    futures = [
        (p, pool.submit(store.update, p.doc_id, {"lastRun": stamp}))
        for p in batch
        if p.doc_id
    ]
    for profile, future in futures:
        try:
            future.result()
        except StoreError as e:
            logger.warning(f"could not record lastRun for {profile.name}: {e}")


def run_analysis(
    profiles: Sequence[Profile],
    fetcher: SheetsFetcher,
    store: ProfileStore,
    settings: AnalysisSettings,
    *,
    timezone: str = "UTC",
    full_refresh: bool = True,
    reference_date: date | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> RunResult:
    """Fetch, analyse and persist every profile.

    Args:
        profiles: profiles to analyse, processed in the given order
        fetcher: spreadsheet collaborator
        store: persistence collaborator receiving the merged snapshot
        settings: window size, batch size
        full_refresh: start from an empty snapshot (True) or merge into the stored one
        reference_date: "today" for the day buckets (default: today in ``timezone``)

    Returns:
        RunResult with per-profile outcomes and the final snapshot

    Raises:
        ProcessingError: invalid profile configuration or store failure
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    today = reference_date or today_in(timezone)

    validate_profiles(profiles)

    try:
        if full_refresh:
            snapshot = empty_snapshot()
        else:
            snapshot = store.get_analytics() or AnalyticsSnapshot()
    except StoreError as e:
        raise ProcessingError(f"failed to load analytics: {e}") from e

    outcomes: dict[str, FetchOutcome] = {}
    stats: list[ProfileStat] = []
    success_count = 0
    failed_count = 0
    total_rows = 0

    with ProgressTracker(len(profiles)) as progress:
        for batch in batched(profiles, settings.refresh_batch_size):
            progress.start_batch([p.name for p in batch])
            with ThreadPoolExecutor(max_workers=len(batch)) as pool:
                _stamp_last_run(store, batch, pool)
                futures = [pool.submit(_fetch_profile, fetcher, p) for p in batch]
                runs = [f.result() for f in futures]

            for profile, run in zip(batch, runs, strict=True):
                outcomes[profile.name] = run.outcome
                if isinstance(run.outcome, FetchSucceeded):
                    rows = list(run.outcome.rows)
                    matching = run.outcome.matching_rows
                    counts = count_per_day(rows, profile.name, settings.window_days, today)
                    comparisons = compare_rows(matching, profile.name)
                    snapshot = merge_snapshot(snapshot, profile.name, counts, comparisons)
                    try:
                        snapshot = store.save_analytics(snapshot)
                    except StoreError as e:
                        raise ProcessingError(f"failed to save analytics: {e}") from e
                    success_count += 1
                    total_rows += len(rows)
                    logger.debug(
                        f"{profile.name}: rows={len(rows)} matching={len(matching)} "
                        f"today={counts[0].count if counts else 0} comparisons={len(comparisons)}"
                    )
                else:
                    failed_count += 1
                    error_log.append(
                        ErrorRecord.create(
                            profile=profile.name,
                            sheet=_sheet_name(profile),
                            row=-1,
                            error_type="FETCH_FAILED",
                            message=run.outcome.error,
                        )
                    )
                stats.append(
                    ProfileStat(
                        profile_name=profile.name,
                        status=run.status.value,
                        parsed_rows=run.row_count,
                        matching_rows=len(run.outcome.matching_rows) if isinstance(run.outcome, FetchSucceeded) else 0,
                        elapsed_seconds=run.elapsed_seconds,
                    )
                )
                progress.finish(success=isinstance(run.outcome, FetchSucceeded))
            progress.set_postfix(success=success_count, failed=failed_count)

    if failed_count:
        logger.warning(f"Failed to refresh data for {failed_count} profile(s)")

    try:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error log written: {log_path}")
    except OSError as e:
        logger.warning(f"error log flush failed: {e}")

    end_time = datetime.now(UTC)
    return RunResult(
        success_profiles=success_count,
        failed_profiles=failed_count,
        total_rows=total_rows,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        snapshot=snapshot,
        outcomes=outcomes,
        profile_stats=stats,
    )


def parse_import_line(line: str, settings: AnalysisSettings) -> Profile | None:
    """``name,sheetId`` -> Profile with the default range / date column; None for blank or partial lines."""
    parts = [s.strip() for s in line.split(",")]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return Profile(
        id=parts[1],
        range=settings.default_range,
        name=parts[0],
        date_column=settings.default_date_column,
    )


def bulk_import(lines: Iterable[str], store: ProfileStore, settings: AnalysisSettings) -> ImportResult:
    """Create profiles from ``name,sheetId`` lines, ``import_batch_size`` concurrent adds at a time."""
    candidates: list[Profile] = []
    skipped = 0
    for line in lines:
        profile = parse_import_line(line, settings)
        if profile is None:
            if line.strip():
                skipped += 1
            continue
        candidates.append(profile)

    imported = 0
    failed = 0
    for batch in batched(candidates, settings.import_batch_size):
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            futures = [(p, pool.submit(store.add, p)) for p in batch]
            for profile, future in futures:
                try:
                    future.result()
                    imported += 1
                except StoreError as e:
                    failed += 1
                    logger.warning(f"import failed for {profile.name}: {e}")

    logger.info(f"imported={imported} skipped_lines={skipped} failed={failed}")
    return ImportResult(imported=imported, skipped_lines=skipped, failed=failed)
