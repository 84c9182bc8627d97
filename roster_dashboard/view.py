"""Filter and search derivation over parsed roster rows.

Every function here is pure: the same rows, filter specification and query
always produce the same rows in the same relative order.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .config import ALLOWED_FILTER_COLUMNS, EMPTY_PLACEHOLDER, SEARCH_COLUMNS
from .parser import Row

FilterSpec = Dict[str, Set[str]]


def canonical_value(row: Mapping[str, str], column: str) -> str:
    """Return the row's value for ``column`` with empty values as the placeholder."""

    return row.get(column) or EMPTY_PLACEHOLDER


def normalize_query(query: Optional[str]) -> str:
    return (query or "").lower().strip()


def clean_filters(spec: Mapping[str, Iterable[str]]) -> FilterSpec:
    """Return a copy of ``spec`` without columns whose value set is empty."""

    cleaned: FilterSpec = {}
    for column, values in spec.items():
        selected = set(values or ())
        if selected:
            cleaned[column] = selected
    return cleaned


def matches_filters(row: Mapping[str, str], spec: Mapping[str, Set[str]]) -> bool:
    for column, accepted in spec.items():
        if not accepted:
            continue
        if canonical_value(row, column) not in accepted:
            return False
    return True


def matches_search(
    row: Mapping[str, str],
    query: Optional[str],
    search_columns: Sequence[str] = SEARCH_COLUMNS,
) -> bool:
    """Return True when any searchable column contains ``query``, ignoring case."""

    query = normalize_query(query)
    if not query:
        return True
    for column in search_columns:
        value = row.get(column)
        if value and query in value.lower():
            return True
    return False


def apply_filters(rows: Iterable[Row], spec: Optional[Mapping[str, Set[str]]]) -> List[Row]:
    if not spec:
        return list(rows)
    return [row for row in rows if matches_filters(row, spec)]


def apply_search(
    rows: Iterable[Row],
    query: Optional[str],
    search_columns: Sequence[str] = SEARCH_COLUMNS,
) -> List[Row]:
    normalized = normalize_query(query)
    if not normalized:
        return list(rows)
    return [row for row in rows if matches_search(row, normalized, search_columns)]


def filtered_rows(
    rows: Sequence[Row],
    filter_spec: Optional[Mapping[str, Set[str]]] = None,
    search_query: Optional[str] = "",
    search_columns: Sequence[str] = SEARCH_COLUMNS,
) -> List[Row]:
    """Apply the filter predicate, then the search predicate, preserving order."""

    return apply_search(apply_filters(rows, filter_spec), search_query, search_columns)


def available_filter_columns(
    headers: Sequence[str], allowed: Sequence[str] = ALLOWED_FILTER_COLUMNS
) -> List[str]:
    """Return the allow-listed columns present in ``headers``, in allow-list order."""

    present = set(headers)
    return [column for column in allowed if column in present]


def filter_column_values(rows: Iterable[Row], column: Optional[str]) -> List[str]:
    """Return the sorted distinct values of ``column``, empty values as the placeholder."""

    if not column:
        return []
    return sorted({canonical_value(row, column) for row in rows})


class FilterDraft:
    """Editable copy of the active filter specification.

    Changes are staged here and only become active through :meth:`apply`.
    """

    def __init__(
        self,
        active: Optional[Mapping[str, Set[str]]] = None,
        columns: Sequence[str] = (),
    ) -> None:
        self.columns: List[str] = list(columns)
        self.filters: FilterSpec = {key: set(values) for key, values in (active or {}).items()}
        self.selected_column: Optional[str] = self.columns[0] if self.columns else None

    def select_column(self, column: str) -> None:
        self.selected_column = column

    def toggle(self, value: str) -> None:
        column = self.selected_column
        if not column:
            return
        selected = self.filters.setdefault(column, set())
        if value in selected:
            selected.discard(value)
        else:
            selected.add(value)

    def is_selected(self, column: str, value: str) -> bool:
        return value in self.filters.get(column, set())

    def clear(self) -> None:
        self.filters = {}

    def apply(self) -> FilterSpec:
        return clean_filters(self.filters)
