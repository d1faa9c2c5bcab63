from __future__ import annotations

from ..models.run_result import RunResult

"""SUMMARY line rendering for analysis runs."""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for tiny values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line.

    Format:
    SUMMARY profiles={total} success={success} failed={failed} rows={rows} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> from sheet_delta.models.analytics import AnalyticsSnapshot
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = RunResult(
        ...     success_profiles=2, failed_profiles=1, total_rows=40,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ...     snapshot=AnalyticsSnapshot(),
        ... )
        >>> render_summary_line(result)
        'SUMMARY profiles=3 success=2 failed=1 rows=40 elapsed_sec=2'
    """
    return (
        f"SUMMARY profiles={result.total_profiles} "
        f"success={result.success_profiles} "
        f"failed={result.failed_profiles} "
        f"rows={result.total_rows} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)}"
    )
