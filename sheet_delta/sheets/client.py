from __future__ import annotations

import logging
from typing import Any, Protocol

from ..analysis.row_parser import parse_rows
from ..models.config_models import Profile, ProfileConfigError
from ..models.row_data import ParsedRow
from .range_spec import RangeFormatError, SheetRange, parse_range

"""Fetcher interface and the profile -> parsed rows step.

Any object with ``fetch_values(spreadsheet_id, sheet_range)`` returning the raw
row list can act as a fetcher (Google Sheets API, local workbook, test fake).
"""

__all__ = [
    "SheetFetchError",
    "SheetsFetcher",
    "fetch_sheet_data",
    "validate_profile",
]

logger = logging.getLogger(__name__)


class SheetFetchError(Exception):
    """Raised when the spreadsheet collaborator cannot deliver rows."""


class SheetsFetcher(Protocol):
    def fetch_values(self, spreadsheet_id: str, sheet_range: SheetRange) -> list[Any]:
        """Return the raw rows of ``sheet_range`` ([] when the range is empty)."""
        ...


def validate_profile(profile: Profile) -> SheetRange:
    """Configuration checks done before any fetch. Returns the parsed range.

    Raises:
        ProfileConfigError: missing spreadsheet id / range, bad range, bad date column
    """
    if not profile.id or not profile.range:
        raise ProfileConfigError(
            f"profile '{profile.name}': missing required parameters: spreadsheet id and range are required"
        )
    try:
        sheet_range = parse_range(profile.range)
    except RangeFormatError as e:
        raise ProfileConfigError(f"profile '{profile.name}': {e}") from e
    # dateColumn の妥当性もここで確定させる
    _ = profile.date_column_index
    return sheet_range


def fetch_sheet_data(fetcher: SheetsFetcher, profile: Profile) -> list[ParsedRow]:
    """Fetch the profile's range and parse it into rows tagged with filter matches."""
    sheet_range = validate_profile(profile)
    logger.debug(f"fetching spreadsheet={profile.id} range={sheet_range.text}")
    try:
        values = fetcher.fetch_values(profile.id, sheet_range)
    except SheetFetchError:
        raise
    except Exception as e:
        raise SheetFetchError(f"Failed to fetch sheet data: {e}") from e

    if not values:
        logger.debug(f"no data found in {profile.name}")
        return []
    logger.debug(f"retrieved {len(values)} rows for {profile.name}")
    return parse_rows(values, profile.date_column_index, profile.filter_groups)
