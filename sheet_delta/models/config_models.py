from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

"""Profile and filter models for the sheet-delta analytics tool.

A Profile is a named tracked data source: spreadsheet id + range + date column,
optionally with filter groups and the analysis / extra columns used for
identifier reconciliation. Profiles cross the document-store boundary as
camelCase dicts (``to_dict`` / ``from_dict``).

Column conventions:
- ``FilterConfig.column`` is 1-based against the RAW row (date column included)
- ``analysis_column`` / ``extra_column`` are 1-based against ``ParsedRow.values``
  (date column removed)
"""

__all__ = [
    "ComparisonFallback",
    "FilterConfig",
    "FilterGroup",
    "FilterOperator",
    "LogicalOperator",
    "Profile",
    "ProfileConfigError",
    "DEFAULT_RANGE",
    "DEFAULT_DATE_COLUMN",
]

DEFAULT_RANGE = "Sheet1!A2:Z1000"
DEFAULT_DATE_COLUMN = "1"


class ProfileConfigError(Exception):
    """Raised when a profile document carries invalid configuration."""


class FilterOperator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class ComparisonFallback(str, Enum):
    """Policy when a custom comparison date has no entry for a sheet.

    - YESTERDAY: fall back to the second most recent day
    - ABSENT: report no delta
    """
    YESTERDAY = "yesterday"
    ABSENT = "absent"


@dataclass(frozen=True)
class FilterConfig:
    """Single cell predicate. ``operator`` is kept as given; unknown operators match everything."""
    column: int  # 1-based, raw row
    value: str
    operator: str = FilterOperator.EQUALS.value

    @staticmethod
    def from_dict(data: Any) -> FilterConfig:
        if not isinstance(data, dict):
            raise ProfileConfigError(f"filter must be an object, got {type(data).__name__}")
        try:
            column = int(data["column"])
        except (KeyError, TypeError, ValueError) as e:
            raise ProfileConfigError(f"filter column invalid: {data.get('column')!r}") from e
        if column < 1:
            raise ProfileConfigError(f"filter column must be >= 1, got {column}")
        value = data.get("value", "")
        return FilterConfig(
            column=column,
            value="" if value is None else str(value),
            operator=str(data.get("operator", FilterOperator.EQUALS.value)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"column": self.column, "value": self.value, "operator": self.operator}


@dataclass(frozen=True)
class FilterGroup:
    """Filters combined with the group's logical operator. Groups combine with AND."""
    filters: tuple[FilterConfig, ...] = ()
    logical_operator: LogicalOperator = LogicalOperator.AND

    @staticmethod
    def from_dict(data: Any) -> FilterGroup:
        if not isinstance(data, dict):
            raise ProfileConfigError(f"filter group must be an object, got {type(data).__name__}")
        raw_filters = data.get("filters") or []
        if not isinstance(raw_filters, list):
            raise ProfileConfigError("filter group 'filters' must be a list")
        op_raw = str(data.get("logicalOperator", LogicalOperator.AND.value)).upper()
        try:
            op = LogicalOperator(op_raw)
        except ValueError as e:
            raise ProfileConfigError(f"unknown logicalOperator: {op_raw}") from e
        return FilterGroup(
            filters=tuple(FilterConfig.from_dict(f) for f in raw_filters),
            logical_operator=op,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "filters": [f.to_dict() for f in self.filters],
            "logicalOperator": self.logical_operator.value,
        }


def parse_filter_groups(raw: Any) -> tuple[FilterGroup, ...]:
    """Accept a list of group dicts or its JSON text (query-string form)."""
    if raw is None or raw == "":
        return ()
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ProfileConfigError(f"invalid filterGroups JSON: {e}") from e
    if not isinstance(raw, list):
        raise ProfileConfigError(f"filterGroups must be a list, got {type(raw).__name__}")
    return tuple(FilterGroup.from_dict(g) for g in raw)


def _optional_column(raw: Any, key: str) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        value = int(str(raw).strip())
    except ValueError as e:
        raise ProfileConfigError(f"{key} must be an integer, got {raw!r}") from e
    # 0 は「未設定」扱い
    return value if value > 0 else None


@dataclass(frozen=True)
class Profile:
    """Tracked spreadsheet source as stored in the profile collection."""
    id: str  # spreadsheet id (or workbook path for local fetcher)
    range: str  # "Sheet!A1:B2"
    name: str
    date_column: str = DEFAULT_DATE_COLUMN  # 1-based, kept as text like the stored document
    doc_id: str | None = None
    last_run: str | None = None
    filter_groups: tuple[FilterGroup, ...] = field(default_factory=tuple)
    analysis_column: int | None = None  # 1-based against values
    extra_column: int | None = None  # 1-based against values
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def date_column_index(self) -> int:
        """0-based index of the date column; empty means the first column."""
        text = str(self.date_column or "").strip()
        if not text:
            return 0
        try:
            value = int(text)
        except ValueError as e:
            raise ProfileConfigError(
                f"profile '{self.name}': dateColumn must be an integer, got {self.date_column!r}"
            ) from e
        if value < 1:
            raise ProfileConfigError(f"profile '{self.name}': dateColumn must be >= 1, got {value}")
        return value - 1

    def with_updates(self, **changes: Any) -> Profile:
        return replace(self, **changes)

    @staticmethod
    def from_dict(data: dict[str, Any], doc_id: str | None = None) -> Profile:
        if not isinstance(data, dict):
            raise ProfileConfigError(f"profile must be an object, got {type(data).__name__}")
        name = str(data.get("name") or "").strip()
        return Profile(
            id=str(data.get("id") or "").strip(),
            range=str(data.get("range") or "").strip(),
            name=name,
            date_column=str(data.get("dateColumn") or DEFAULT_DATE_COLUMN),
            doc_id=doc_id if doc_id is not None else data.get("docId"),
            last_run=data.get("lastRun"),
            filter_groups=parse_filter_groups(data.get("filterGroups")),
            analysis_column=_optional_column(data.get("analysisColumn"), "analysisColumn"),
            extra_column=_optional_column(data.get("extraColumn"), "extraColumn"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Document form (docId is the store key, not part of the body)."""
        doc: dict[str, Any] = {
            "id": self.id,
            "range": self.range,
            "dateColumn": self.date_column,
            "name": self.name,
        }
        if self.last_run is not None:
            doc["lastRun"] = self.last_run
        if self.filter_groups:
            doc["filterGroups"] = [g.to_dict() for g in self.filter_groups]
        if self.analysis_column is not None:
            doc["analysisColumn"] = str(self.analysis_column)
        if self.extra_column is not None:
            doc["extraColumn"] = str(self.extra_column)
        if self.created_at is not None:
            doc["createdAt"] = self.created_at
        if self.updated_at is not None:
            doc["updatedAt"] = self.updated_at
        return doc
