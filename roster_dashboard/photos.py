"""Photo assets: owned handle maps and the roster photo resolver."""

from __future__ import annotations

import io
import mimetypes
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .app_logging import get_logger
from .config import (
    GIVEN_NAME_COLUMN,
    NO_PHOTO_NAME,
    NO_PHOTO_TEXT,
    PATRONYMIC_COLUMN,
    PHOTO_EXTENSION,
    PLACEHOLDER_SIZE,
    SURNAME_COLUMN,
    VACANT_MARKER,
    VACANT_PHOTO_NAME,
)

logger = get_logger()


class AssetUnavailableError(OSError):
    """Raised when an asset handle cannot be dereferenced into bytes."""


class AssetHandle:
    """Borrowed view over one binary image asset.

    The payload is either a file on disk, read on demand, or bytes held in
    memory. Once released the handle can no longer be read.
    """

    def __init__(
        self,
        name: str,
        *,
        path: Optional[Path] = None,
        data: Optional[bytes] = None,
    ) -> None:
        if path is None and data is None:
            raise ValueError("An asset handle needs a path or a payload")
        self.name = name
        self.path = Path(path) if path is not None else None
        self._data = data
        self._released = False

    def __repr__(self) -> str:
        source = str(self.path) if self.path is not None else f"{len(self._data or b'')} bytes"
        state = " released" if self._released else ""
        return f"<AssetHandle {self.name!r} {source}{state}>"

    @property
    def released(self) -> bool:
        return self._released

    def read_bytes(self) -> bytes:
        data = self._data
        if self._released:
            raise AssetUnavailableError(f"Asset handle for {self.name} was released")
        if data is not None:
            return data
        try:
            return self.path.read_bytes()  # type: ignore[union-attr]
        except OSError as exc:
            raise AssetUnavailableError(f"Could not read {self.name}: {exc}") from exc

    def open_image(self) -> Image.Image:
        image = Image.open(io.BytesIO(self.read_bytes()))
        image.load()
        return image

    def thumbnail(self, target_width: int) -> Image.Image:
        image = self.open_image()
        if target_width > 0 and image.width != target_width:
            ratio = target_width / image.width
            new_size = (target_width, max(1, int(image.height * ratio)))
            image = image.resize(new_size, Image.LANCZOS)
        return image

    def release(self) -> None:
        self._released = True
        self._data = None


class PlaceholderAsset(AssetHandle):
    """Generated image carrying a short caption, rendered lazily."""

    def __init__(self, text: str, size: Tuple[int, int] = PLACEHOLDER_SIZE) -> None:
        self.text = text or NO_PHOTO_TEXT
        self.size = size
        super().__init__(f"placeholder:{self.text}", data=b"")
        self._rendered: Optional[bytes] = None

    def read_bytes(self) -> bytes:
        if self._released:
            raise AssetUnavailableError(f"Asset handle for {self.name} was released")
        if self._rendered is None:
            self._rendered = render_placeholder(self.text, self.size)
        return self._rendered


def _draw_caption(draw: ImageDraw.ImageDraw, size: Tuple[int, int], text: str, font: Any) -> None:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    position = ((size[0] - (right - left)) / 2, (size[1] - (bottom - top)) / 2)
    draw.text(position, text, fill="#444746", font=font)


def render_placeholder(text: str, size: Tuple[int, int] = PLACEHOLDER_SIZE) -> bytes:
    image = Image.new("RGB", size, "#E3E3E3")
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()
    try:
        _draw_caption(draw, size, text, font)
    except UnicodeEncodeError:
        # The bitmap fallback font only covers Latin-1.
        _draw_caption(draw, size, text.encode("ascii", "replace").decode("ascii"), font)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class AssetMap(Mapping[str, AssetHandle]):
    """Owner of the loaded asset handles, keyed by exact file name."""

    def __init__(self, handles: Optional[Mapping[str, AssetHandle]] = None) -> None:
        self._handles: Dict[str, AssetHandle] = dict(handles or {})

    def __getitem__(self, name: str) -> AssetHandle:
        return self._handles[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    @classmethod
    def from_payloads(cls, entries: Iterable[Tuple[str, bytes]]) -> "AssetMap":
        """Build fresh in-memory handles for ``(name, payload)`` pairs."""

        return cls({name: AssetHandle(name, data=payload) for name, payload in entries})

    @classmethod
    def from_paths(cls, paths: Iterable[Path]) -> "AssetMap":
        return cls({path.name: AssetHandle(path.name, path=path) for path in paths})

    def release(self) -> None:
        for handle in self._handles.values():
            handle.release()
        self._handles.clear()


def is_image_file(path: Path) -> bool:
    mime_type, _ = mimetypes.guess_type(path.name)
    return bool(mime_type and mime_type.startswith("image/"))


def load_asset_folder(folder: Path) -> AssetMap:
    """Load the image files directly inside ``folder`` into an :class:`AssetMap`."""

    folder = Path(folder)
    if not folder.is_dir():
        raise NotADirectoryError(f"Photo folder not found: {folder}")

    paths = sorted(path for path in folder.iterdir() if path.is_file() and is_image_file(path))
    assets = AssetMap.from_paths(paths)
    logger.info("Loaded %d photos from %s", len(assets), folder)
    return assets


def photo_key(row: Mapping[str, str]) -> str:
    surname = (row.get(SURNAME_COLUMN) or "").strip()
    name = (row.get(GIVEN_NAME_COLUMN) or "").strip()
    patronymic = (row.get(PATRONYMIC_COLUMN) or "").strip()
    return f"{surname}{name}{patronymic}{PHOTO_EXTENSION}"


def resolve_photo(row: Mapping[str, str], assets: Mapping[str, AssetHandle]) -> AssetHandle:
    """Return the best available photo for ``row``; never fails."""

    surname = (row.get(SURNAME_COLUMN) or "").strip()

    if surname.lower() == VACANT_MARKER:
        for candidate in (VACANT_PHOTO_NAME, NO_PHOTO_NAME):
            if candidate in assets:
                return assets[candidate]

    for candidate in (photo_key(row), NO_PHOTO_NAME):
        if candidate in assets:
            return assets[candidate]

    return PlaceholderAsset(surname or NO_PHOTO_TEXT)
