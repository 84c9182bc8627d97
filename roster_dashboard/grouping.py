"""Positional grouping of roster rows into organisational bands and status counts."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .config import (
    DEFAULT_BAND_TABLE,
    SEARCH_COLUMNS,
    SEQUENCE_COLUMN,
    STATUS_COLUMN,
    STATUS_VOCABULARY,
    SURNAME_COLUMN,
    VACANT_MARKER,
)
from .parser import Row
from .view import apply_filters, apply_search

LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Band:
    """Named, 1-indexed inclusive range over the canonical row order."""

    name: str
    start: int
    end: int

    def bounds(self, total: int) -> Tuple[int, int]:
        """Return the half-open ``[start, stop)`` slice clipped to ``total`` rows."""

        start_index = max(0, self.start - 1)
        stop_index = max(start_index, min(total, self.end))
        return start_index, stop_index

    def slice(self, rows: Sequence[Row]) -> List[Row]:
        start_index, stop_index = self.bounds(len(rows))
        return list(rows[start_index:stop_index])


@dataclass
class Group:
    name: str
    rows: List[Row] = field(default_factory=list)


def bands_from_table(table: Iterable[Any]) -> List[Band]:
    """Build bands from ``(name, start, end)`` tuples or ``{name, start, end}`` mappings."""

    bands: List[Band] = []
    for entry in table:
        if isinstance(entry, Mapping):
            bands.append(Band(str(entry["name"]), int(entry["start"]), int(entry["end"])))
        else:
            name, start, end = entry
            bands.append(Band(str(name), int(start), int(end)))
    return bands


DEFAULT_BANDS: List[Band] = bands_from_table(DEFAULT_BAND_TABLE)


def sequence_number(value: Optional[str]) -> int:
    """Parse the leading integer of ``value``; anything unparsable counts as zero."""

    match = LEADING_INT_RE.match(value or "")
    if match is None:
        return 0
    return int(match.group(1))


def sort_by_sequence(rows: Iterable[Row], column: str = SEQUENCE_COLUMN) -> List[Row]:
    return sorted(rows, key=lambda row: sequence_number(row.get(column)))


def grouped_view(
    rows: Sequence[Row],
    bands: Sequence[Band] = DEFAULT_BANDS,
    filter_spec: Optional[Mapping[str, Set[str]]] = None,
    search_query: Optional[str] = "",
    search_columns: Sequence[str] = SEARCH_COLUMNS,
    sequence_column: str = SEQUENCE_COLUMN,
) -> List[Group]:
    """Return one :class:`Group` per band that keeps at least one visible row.

    Each band slices the unfiltered rows by position first, so membership
    depends only on file position; filters and search only decide visibility.
    """

    if not rows:
        return []

    groups: List[Group] = []
    for band in bands:
        members = band.slice(rows)
        visible = apply_search(apply_filters(members, filter_spec), search_query, search_columns)
        if not visible:
            continue
        groups.append(Group(name=band.name, rows=sort_by_sequence(visible, sequence_column)))
    return groups


def band_members(rows: Sequence[Row], bands: Sequence[Band] = DEFAULT_BANDS) -> Dict[str, List[int]]:
    """Return the canonical row indexes assigned to each band."""

    members: Dict[str, List[int]] = {}
    for band in bands:
        start_index, stop_index = band.bounds(len(rows))
        members[band.name] = list(range(start_index, stop_index))
    return members


# ----------------------------------------------------------------------
# Status aggregation
# ----------------------------------------------------------------------
@dataclass
class StatusCounts:
    total: int = 0
    present: int = 0
    vacation: int = 0
    vacant: int = 0
    recovery: int = 0
    hospital: int = 0
    soch: int = 0
    on_task: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def _normalized(value: Optional[str]) -> str:
    return (value or "").lower().strip()


def is_vacant(row: Mapping[str, str]) -> bool:
    return _normalized(row.get(SURNAME_COLUMN)) == VACANT_MARKER


def status_bucket(
    row: Mapping[str, str], vocabulary: Mapping[str, Sequence[str]] = STATUS_VOCABULARY
) -> Optional[str]:
    """Return the named bucket for ``row``, or None when it falls into the remainder."""

    if is_vacant(row):
        return "vacant"
    status = _normalized(row.get(STATUS_COLUMN))
    if not status:
        return None
    for bucket, literals in vocabulary.items():
        if any(status == _normalized(literal) for literal in literals):
            return bucket
    return None


def status_counts(
    rows: Sequence[Row], vocabulary: Mapping[str, Sequence[str]] = STATUS_VOCABULARY
) -> StatusCounts:
    """Count statuses over the whole roster.

    Buckets are exclusive and a vacancy takes precedence over its status, so
    ``on_task`` is the non-negative remainder of rows no named bucket claims.
    Always call this with the unfiltered rows.
    """

    counts = StatusCounts(total=len(rows))
    for row in rows:
        bucket = status_bucket(row, vocabulary)
        if bucket is not None:
            setattr(counts, bucket, getattr(counts, bucket) + 1)
    named = (
        counts.present
        + counts.vacation
        + counts.vacant
        + counts.recovery
        + counts.hospital
        + counts.soch
    )
    counts.on_task = max(0, counts.total - named)
    return counts


def unrecognized_statuses(
    rows: Iterable[Row], vocabulary: Mapping[str, Sequence[str]] = STATUS_VOCABULARY
) -> List[str]:
    """Return distinct non-empty status values folded into ``on_task`` as unknown."""

    known = {_normalized(literal) for literals in vocabulary.values() for literal in literals}
    unknown = set()
    for row in rows:
        if is_vacant(row):
            continue
        value = (row.get(STATUS_COLUMN) or "").strip()
        if value and value.lower() not in known:
            unknown.add(value)
    return sorted(unknown)
