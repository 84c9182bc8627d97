from roster_dashboard.analyst import RosterAnalyst
from roster_dashboard.grouping import (
    DEFAULT_BANDS,
    Band,
    Group,
    StatusCounts,
    grouped_view,
    status_counts,
)
from roster_dashboard.parser import Dataset, parse
from roster_dashboard.photos import AssetHandle, AssetMap, load_asset_folder, resolve_photo
from roster_dashboard.session import RosterSession
from roster_dashboard.snapshot_store import Snapshot, SnapshotError, SnapshotStore
from roster_dashboard.view import (
    FilterDraft,
    available_filter_columns,
    filter_column_values,
    filtered_rows,
)

__all__ = [
    "RosterAnalyst",
    "DEFAULT_BANDS",
    "Band",
    "Group",
    "StatusCounts",
    "grouped_view",
    "status_counts",
    "Dataset",
    "parse",
    "AssetHandle",
    "AssetMap",
    "load_asset_folder",
    "resolve_photo",
    "RosterSession",
    "Snapshot",
    "SnapshotError",
    "SnapshotStore",
    "FilterDraft",
    "available_filter_columns",
    "filter_column_values",
    "filtered_rows",
]
