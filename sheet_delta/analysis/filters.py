from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from ..models.config_models import FilterConfig, FilterGroup, LogicalOperator

"""Filter-group evaluation against raw spreadsheet rows.

Rules:
- ``FilterConfig.column`` is 1-based against the raw row (date column included)
- missing / out-of-range cells compare as empty string
- both sides are lower-cased before comparing
- filters within a group combine with the group's operator, groups with AND
- an empty or absent group list matches every row
- an unknown operator matches every row
"""

__all__ = [
    "matches",
    "apply_filter",
    "cell_text",
]

_PREDICATES: dict[str, Callable[[str, str], bool]] = {
    "equals": lambda cell, wanted: cell == wanted,
    "contains": lambda cell, wanted: wanted in cell,
    "startsWith": lambda cell, wanted: cell.startswith(wanted),
    "endsWith": lambda cell, wanted: cell.endswith(wanted),
}


def cell_text(value: Any) -> str:
    """Spreadsheet cell as text; None becomes ''."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _cell(row: Sequence[Any], column: int) -> str:
    idx = column - 1
    if idx < 0 or idx >= len(row):
        return ""
    return cell_text(row[idx])


def apply_filter(value: str, flt: FilterConfig) -> bool:
    predicate = _PREDICATES.get(flt.operator)
    if predicate is None:
        # 未知の演算子は許容 (常に一致)
        return True
    return predicate(value.lower(), flt.value.lower())


def _group_matches(row: Sequence[Any], group: FilterGroup) -> bool:
    results = (apply_filter(_cell(row, f.column), f) for f in group.filters)
    if group.logical_operator is LogicalOperator.OR:
        return any(results)
    return all(results)


def matches(row: Sequence[Any], groups: Sequence[FilterGroup] | None) -> bool:
    """Return True when ``row`` satisfies every filter group."""
    if not groups:
        return True
    return all(_group_matches(row, group) for group in groups)
