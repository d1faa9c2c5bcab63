"""Domain models for the sheet-delta analytics tool.

This package contains the profile / filter configuration, parsed row, analytics
result and run result models used throughout the application.
"""

from .analytics import (
    AnalyticsSnapshot,
    ColumnChange,
    ColumnDifference,
    ComparisonResult,
    DeltaChange,
    EntryCount,
)
from .config_models import (
    ComparisonFallback,
    FilterConfig,
    FilterGroup,
    FilterOperator,
    LogicalOperator,
    Profile,
    ProfileConfigError,
)
from .profile_run import FetchFailed, FetchOutcome, FetchSucceeded, ProfileRun, RunStatus
from .row_data import ParsedRow

__all__ = [
    # Configuration models
    "ComparisonFallback",
    "FilterConfig",
    "FilterGroup",
    "FilterOperator",
    "LogicalOperator",
    "Profile",
    "ProfileConfigError",
    # Row / fetch models
    "ParsedRow",
    "FetchFailed",
    "FetchOutcome",
    "FetchSucceeded",
    "ProfileRun",
    "RunStatus",
    # Analytics models
    "AnalyticsSnapshot",
    "ColumnChange",
    "ColumnDifference",
    "ComparisonResult",
    "DeltaChange",
    "EntryCount",
]
