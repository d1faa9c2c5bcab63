from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from sheet_delta.analysis.dates import today_in
from sheet_delta.analysis.delta import delta, rank_profiles
from sheet_delta.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config
from sheet_delta.db.factory import open_store
from sheet_delta.db.store import ProfileStore, StoreError
from sheet_delta.export.csv_export import build_export_tables, column_changes, write_export
from sheet_delta.logging.error_log import ErrorLogBuffer
from sheet_delta.logging.init import log_summary, set_debug, setup_logging
from sheet_delta.models.config_models import ProfileConfigError
from sheet_delta.services.orchestrator import ProcessingError, bulk_import, find_profile, run_analysis
from sheet_delta.services.summary import render_summary_line
from sheet_delta.sheets.client import SheetFetchError, SheetsFetcher, fetch_sheet_data
from sheet_delta.sheets.google_client import GoogleSheetsFetcher
from sheet_delta.sheets.workbook_client import WorkbookFetcher

"""CLI entrypoint.

Subcommands:
- run     analyse every profile (or one with --profile) and persist the snapshot
- import  create profiles from a ``name,sheetId`` file
- report  print the stored day-over-day deltas, ranked
- inspect print the first parsed rows of one profile

Exit codes: 0 success, 2 partial failure (some profile failed), 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

INSPECT_SAMPLE_ROWS = 5


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True により .env の値で既存環境変数を上書きする (DB / Google 認証情報を最優先化)。
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheet-delta", description="Spreadsheet snapshot delta analytics")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the YAML config")
    sub = p.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Analyse profiles and persist the snapshot")
    run.add_argument("--profile", help="Analyse a single profile (merged into the stored snapshot)")
    run.add_argument("--compare-date", help="Custom comparison date (YYYY-MM-DD) for the export")
    run.add_argument("--export-dir", type=Path, help="Write the entries export into this directory")
    run.add_argument("--export", action="store_true", help="Write the entries export into export.directory")

    imp = sub.add_parser("import", help="Bulk import profiles from name,sheetId lines")
    imp.add_argument("file", type=Path)

    report = sub.add_parser("report", help="Print stored deltas")
    report.add_argument("--compare-date", help="Custom comparison date (YYYY-MM-DD)")
    report.add_argument("--sort", choices=("magnitude", "name"), default="magnitude")

    inspect = sub.add_parser("inspect", help="Print the first parsed rows of a profile")
    inspect.add_argument("--profile", required=True)
    return p.parse_args(argv)


def _validate_compare_date(raw: str | None) -> str | None:
    if raw is None:
        return None
    try:
        date.fromisoformat(raw)
    except ValueError as e:
        raise ProcessingError(f"invalid --compare-date: {raw}") from e
    return raw


def _build_fetcher(cfg: AppConfig) -> SheetsFetcher:
    if cfg.sheets.source == "workbook":
        return WorkbookFetcher(Path(cfg.sheets.workbook_directory))
    return GoogleSheetsFetcher.from_env(cfg.sheets.credentials_file)


def _cmd_run(args: argparse.Namespace, cfg: AppConfig, store: ProfileStore, logger: logging.Logger) -> int:
    compare_date = _validate_compare_date(args.compare_date)
    profiles = store.get_all()
    if args.profile:
        profiles = [find_profile(profiles, args.profile)]
    logger.info(f"Analysing {len(profiles)} profile(s)")

    result = run_analysis(
        profiles,
        _build_fetcher(cfg),
        store,
        cfg.analysis,
        timezone=cfg.timezone,
        full_refresh=not args.profile,
        error_log=ErrorLogBuffer(),
    )

    today = today_in(cfg.timezone)
    changes = column_changes(
        profiles, result.outcomes, result.snapshot, today, compare_date, cfg.analysis.custom_date_fallback
    )
    for name, change in changes.items():
        if change is None:
            logger.info(f"{name}: no entry changes")
        else:
            logger.info(f"{name}: added={len(change.added)} removed={len(change.removed)} vs {change.date1}")

    export_dir = args.export_dir or (Path(cfg.export.directory) if args.export else None)
    if export_dir is not None:
        tables = build_export_tables(
            profiles,
            result.outcomes,
            result.snapshot,
            today,
            compare_date,
            cfg.analysis.custom_date_fallback,
        )
        path = write_export(export_dir, tables, today, compare_date, cfg.export.delimiter)
        logger.info(f"export written: {path}")

    # "SUMMARY " は log_summary 側で付与される
    log_summary(render_summary_line(result).removeprefix("SUMMARY "))

    if result.failed_profiles > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _cmd_import(args: argparse.Namespace, cfg: AppConfig, store: ProfileStore, logger: logging.Logger) -> int:
    if not args.file.exists():
        logger.error(f"import file not found: {args.file}")
        return EXIT_FATAL
    lines = args.file.read_text(encoding="utf-8").splitlines()
    result = bulk_import(lines, store, cfg.analysis)
    log_summary(f"imported={result.imported} skipped={result.skipped_lines} failed={result.failed}")
    return EXIT_PARTIAL_FAILURE if result.failed else EXIT_SUCCESS_ALL


def _cmd_report(args: argparse.Namespace, cfg: AppConfig, store: ProfileStore, logger: logging.Logger) -> int:
    compare_date = _validate_compare_date(args.compare_date)
    snapshot = store.get_analytics()
    if snapshot is None:
        logger.info("no analytics stored yet")
        return EXIT_SUCCESS_ALL
    names = [p.name for p in store.get_all()]
    fallback = cfg.analysis.custom_date_fallback
    for name in rank_profiles(names, snapshot.entry_counts, args.sort, compare_date, fallback):
        d = delta(snapshot.entry_counts, name, compare_date, fallback)
        if d is None:
            print(f"{name}: no comparison data")
            continue
        print(
            f"{name}: today={d.today} ({d.today_date}) compare={d.yesterday} ({d.comparison_date}) "
            f"change={d.change:+d} pct={d.percentage_change:.1f}%"
        )
    logger.info(f"snapshot lastUpdated={snapshot.last_updated}")
    return EXIT_SUCCESS_ALL


def _cmd_inspect(args: argparse.Namespace, cfg: AppConfig, store: ProfileStore, logger: logging.Logger) -> int:
    profile = find_profile(store.get_all(), args.profile)
    try:
        rows = fetch_sheet_data(_build_fetcher(cfg), profile)
    except SheetFetchError as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    matching = sum(1 for r in rows if r.matches_filters)
    print(f"PROFILE: {profile.name} range={profile.range} rows={len(rows)} matching={matching}")
    for row in rows[:INSPECT_SAMPLE_ROWS]:
        print(f"  [{row.row_index}] date={row.date!r} match={row.matches_filters} values={list(row.values)}")
    return EXIT_SUCCESS_ALL


_COMMANDS = {
    "run": _cmd_run,
    "import": _cmd_import,
    "report": _cmd_report,
    "inspect": _cmd_inspect,
}


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # NOTE: 空リスト [] が与えられた場合に sys.argv[1:] が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    # .env を最優先で読み込む (接続パラメータ優先順位保証)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        store = open_store(cfg.store)
        return _COMMANDS[args.command](args, cfg, store, logger)
    except (ProcessingError, ProfileConfigError) as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
