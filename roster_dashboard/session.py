"""Session state for one loaded roster: dataset, photos, filters and search."""

from __future__ import annotations

from concurrent.futures import Future
from pathlib import Path
from typing import List, Optional, Sequence

from .app_logging import get_logger
from .grouping import DEFAULT_BANDS, Band, Group, StatusCounts, grouped_view, status_counts
from .parser import Dataset, Row, parse
from .photos import AssetHandle, AssetMap, load_asset_folder, resolve_photo
from .snapshot_store import SnapshotError, SnapshotStore
from .view import (
    FilterDraft,
    FilterSpec,
    available_filter_columns,
    clean_filters,
    filter_column_values,
    filtered_rows,
)

logger = get_logger()

CSV_SUFFIX = ".csv"


class RosterSession:
    """Holds the loaded roster and derives every view from scratch on access."""

    def __init__(
        self,
        store: SnapshotStore,
        assets: Optional[AssetMap] = None,
        bands: Sequence[Band] = DEFAULT_BANDS,
    ) -> None:
        self.store = store
        self.bands: List[Band] = list(bands)
        self.file_name = ""
        self.raw_text = ""
        self.dataset: Optional[Dataset] = None
        self.assets: AssetMap = assets if assets is not None else AssetMap()
        self.filters: FilterSpec = {}
        self.search = ""

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @property
    def is_loaded(self) -> bool:
        return self.dataset is not None

    def load_text(self, file_name: str, text: str, *, persist: bool = True) -> Optional["Future[int]"]:
        """Parse ``text`` as the active roster and optionally snapshot it."""

        self.file_name = file_name
        self.raw_text = text
        self.dataset = parse(text)
        self.filters = {}
        self.search = ""
        logger.info(
            "Loaded %s: %d rows, %d columns",
            file_name,
            self.dataset.total_rows,
            len(self.dataset.headers),
        )
        if not persist:
            return None
        return self.store.persist(file_name, text, self.assets)

    def load_file(self, path: Path, *, persist: bool = True) -> Optional["Future[int]"]:
        path = Path(path)
        if path.suffix.lower() != CSV_SUFFIX:
            raise ValueError(f"Not a CSV file: {path.name}")
        text = path.read_text(encoding="utf-8-sig")
        return self.load_text(path.name, text, persist=persist)

    def set_assets(self, assets: AssetMap) -> None:
        """Replace the photo map, releasing the handles of the previous one."""

        previous = self.assets
        self.assets = assets
        if previous is not assets:
            previous.release()

    def load_images(self, folder: Path) -> int:
        self.set_assets(load_asset_folder(folder))
        return len(self.assets)

    def reuse_stored_photos(self) -> int:
        """Adopt the photos of the stored snapshot as the current asset map.

        Used when a new roster is loaded without a photo folder, so the next
        snapshot keeps the photos of the previous one.
        """

        try:
            snapshot = self.store.restore().result()
        except SnapshotError:
            logger.warning("Could not read photos from the previous snapshot", exc_info=True)
            return 0
        if snapshot is None:
            return 0
        self.set_assets(snapshot.asset_map())
        return len(self.assets)

    def save(self) -> Optional["Future[int]"]:
        if not self.is_loaded:
            return None
        return self.store.persist(self.file_name, self.raw_text, self.assets)

    def restore_previous(self) -> bool:
        """Load the stored snapshot if there is one; never raises on store errors."""

        try:
            snapshot = self.store.restore().result()
        except SnapshotError:
            logger.warning("Could not restore previous roster", exc_info=True)
            return False
        if snapshot is None:
            return False
        self.set_assets(snapshot.asset_map())
        self.load_text(snapshot.file_name, snapshot.raw_text, persist=False)
        return True

    def reset(self) -> "Future[None]":
        """Drop the dataset, view state and photos, and clear the snapshot."""

        self.dataset = None
        self.file_name = ""
        self.raw_text = ""
        self.filters = {}
        self.search = ""
        self.set_assets(AssetMap())
        return self.store.clear()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    @property
    def headers(self) -> List[str]:
        return self.dataset.headers if self.dataset else []

    @property
    def rows(self) -> List[Row]:
        return self.dataset.rows if self.dataset else []

    @property
    def visible_rows(self) -> List[Row]:
        return filtered_rows(self.rows, self.filters, self.search)

    @property
    def row_count(self) -> int:
        return len(self.visible_rows)

    @property
    def groups(self) -> List[Group]:
        return grouped_view(self.rows, self.bands, self.filters, self.search)

    @property
    def counts(self) -> StatusCounts:
        return status_counts(self.rows)

    @property
    def available_filter_columns(self) -> List[str]:
        return available_filter_columns(self.headers)

    def filter_values(self, column: Optional[str]) -> List[str]:
        return filter_column_values(self.rows, column)

    def photo_for(self, row: Row) -> AssetHandle:
        return resolve_photo(row, self.assets)

    # ------------------------------------------------------------------
    # Filter editing
    # ------------------------------------------------------------------
    def begin_filter_edit(self) -> FilterDraft:
        return FilterDraft(self.filters, self.available_filter_columns)

    def apply_filters(self, draft: FilterDraft) -> None:
        self.filters = draft.apply()

    def set_filters(self, spec: FilterSpec) -> None:
        self.filters = clean_filters(spec)

    def clear_filters(self) -> None:
        self.filters = {}
