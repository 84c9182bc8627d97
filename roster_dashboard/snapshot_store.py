"""Durable local snapshot of the loaded roster and its photos.

A snapshot is one ZIP archive holding a JSON manifest, the raw source text
and one member per asset. Writes land in a temporary file that atomically
replaces the archive, so readers see either the previous snapshot or the new
one. Operations run on a single worker thread and therefore never overlap.
"""

from __future__ import annotations

import json
import os
import tempfile
import zipfile
import zlib
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from platformdirs import user_data_path

from .app_logging import get_logger
from .config import RESTORED_FILE_NAME, SNAPSHOT_FILENAME
from .photos import AssetHandle, AssetMap, AssetUnavailableError

logger = get_logger()

MANIFEST_MEMBER = "manifest.json"
SOURCE_MEMBER = "source.txt"
ASSET_PREFIX = "assets/"
SNAPSHOT_VERSION = 1


class SnapshotError(RuntimeError):
    """Raised when the snapshot archive cannot be written or read."""


@dataclass
class Snapshot:
    file_name: str
    raw_text: str
    assets: List[Tuple[str, bytes]] = field(default_factory=list)

    def asset_map(self) -> AssetMap:
        """Return fresh handles over the stored payloads."""

        return AssetMap.from_payloads(self.assets)


def default_data_dir() -> Path:
    return Path(user_data_path("RosterDashboard"))


class SnapshotStore:
    """Asynchronous persistence for a single roster snapshot."""

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self.data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        self.path = self.data_dir / SNAPSHOT_FILENAME
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="snapshot")

    def __enter__(self) -> "SnapshotStore":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Public asynchronous API
    # ------------------------------------------------------------------
    def persist(
        self, file_name: str, raw_text: str, assets: Optional[Mapping[str, AssetHandle]] = None
    ) -> "Future[int]":
        """Write a snapshot; the future resolves to the number of assets stored.

        Handles are dereferenced into bytes before this returns, so the
        caller may release them straight away. A handle that cannot be read
        is skipped with a warning.
        """

        handles = list((assets or {}).items())
        payloads = self._collect_payloads(handles)
        return self._executor.submit(self._persist, file_name, raw_text, payloads, len(handles))

    def restore(self) -> "Future[Optional[Snapshot]]":
        """Read the snapshot; the future resolves to None when there is none."""

        return self._executor.submit(self._restore)

    def clear(self) -> "Future[None]":
        return self._executor.submit(self._clear)

    # ------------------------------------------------------------------
    # Worker implementations
    # ------------------------------------------------------------------
    def _collect_payloads(self, handles: List[Tuple[str, AssetHandle]]) -> List[Tuple[str, bytes]]:
        payloads: List[Tuple[str, bytes]] = []
        for name, handle in handles:
            try:
                payloads.append((name, handle.read_bytes()))
            except AssetUnavailableError as exc:
                logger.warning("Could not save image %s: %s", name, exc)
        return payloads

    def _persist(
        self, file_name: str, raw_text: str, payloads: List[Tuple[str, bytes]], requested: int
    ) -> int:
        manifest: Dict[str, Any] = {
            "version": SNAPSHOT_VERSION,
            "file_name": file_name,
            "assets": [],
        }
        for index, (name, _payload) in enumerate(payloads):
            manifest["assets"].append({"name": name, "member": f"{ASSET_PREFIX}{index:05d}"})

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".snapshot-", suffix=".tmp", dir=str(self.data_dir)
            )
        except OSError as exc:
            raise SnapshotError(f"Unable to prepare snapshot directory {self.data_dir}: {exc}") from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh, zipfile.ZipFile(fh, "w", zipfile.ZIP_DEFLATED) as archive:
                archive.writestr(MANIFEST_MEMBER, json.dumps(manifest, ensure_ascii=False, indent=2))
                archive.writestr(SOURCE_MEMBER, raw_text.encode("utf-8"))
                for entry, (_name, payload) in zip(manifest["assets"], payloads):
                    archive.writestr(entry["member"], payload, compress_type=zipfile.ZIP_STORED)
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError, zipfile.BadZipFile) as exc:
            raise SnapshotError(f"Unable to write snapshot {self.path}: {exc}") from exc
        finally:
            tmp_path.unlink(missing_ok=True)

        logger.info("Saved snapshot of %s with %d/%d images", file_name, len(payloads), requested)
        return len(payloads)

    def _restore(self) -> Optional[Snapshot]:
        if not self.path.exists():
            return None

        try:
            with zipfile.ZipFile(self.path, "r") as archive:
                names = set(archive.namelist())
                if SOURCE_MEMBER not in names:
                    return None
                raw_text = archive.read(SOURCE_MEMBER).decode("utf-8")
                if not raw_text:
                    return None

                manifest: Dict[str, Any] = {}
                if MANIFEST_MEMBER in names:
                    loaded = json.loads(archive.read(MANIFEST_MEMBER).decode("utf-8"))
                    if isinstance(loaded, dict):
                        manifest = loaded

                assets: List[Tuple[str, bytes]] = []
                for entry in manifest.get("assets") or []:
                    member = entry.get("member") if isinstance(entry, dict) else None
                    if not member or member not in names:
                        continue
                    assets.append((str(entry.get("name", member)), archive.read(member)))
        except (
            OSError,
            zipfile.BadZipFile,
            zlib.error,
            TypeError,
            EOFError,
            UnicodeDecodeError,
            json.JSONDecodeError,
        ) as exc:
            raise SnapshotError(f"Unable to read snapshot {self.path}: {exc}") from exc

        file_name = manifest.get("file_name") or RESTORED_FILE_NAME
        logger.info("Restored snapshot of %s with %d images", file_name, len(assets))
        return Snapshot(file_name=str(file_name), raw_text=raw_text, assets=assets)

    def _clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise SnapshotError(f"Unable to clear snapshot {self.path}: {exc}") from exc
        logger.info("Cleared snapshot at %s", self.path)
