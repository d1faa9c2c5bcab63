from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from ..models.config_models import FilterGroup
from ..models.row_data import ParsedRow
from .filters import cell_text, matches

"""Row parsing: split a raw spreadsheet row into its date cell and value cells.

A malformed row (anything that is not a list/tuple of cells) degrades to an
empty, non-matching ParsedRow; one bad row never aborts the batch.
"""

__all__ = [
    "parse_row",
    "parse_rows",
]

logger = logging.getLogger(__name__)


def parse_row(
    raw: Any,
    index: int,
    date_column_index: int = 0,
    filter_groups: Sequence[FilterGroup] | None = None,
) -> ParsedRow:
    """Parse one raw row.

    Parameters
    ----------
    raw: cell sequence as delivered by the fetcher
    index: 0-based position of the row in the fetched range
    date_column_index: 0-based date column
    filter_groups: evaluated against the raw cells (before the date is removed)
    """
    if not isinstance(raw, (list, tuple)):
        logger.warning(f"invalid row data at index {index}: {raw!r}")
        return ParsedRow.degraded(index + 1)

    cells = [cell_text(c) for c in raw]
    values = list(cells)
    if 0 <= date_column_index < len(values):
        date = values.pop(date_column_index)
    else:
        date = ""

    return ParsedRow(
        date=date,
        values=tuple(values),
        row_index=index + 1,
        matches_filters=matches(cells, filter_groups),
    )


def parse_rows(
    rows: Iterable[Any],
    date_column_index: int = 0,
    filter_groups: Sequence[FilterGroup] | None = None,
) -> list[ParsedRow]:
    """Parse a fetched range in input order."""
    return [
        parse_row(raw, i, date_column_index, filter_groups)
        for i, raw in enumerate(rows)
    ]
