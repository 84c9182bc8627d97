"""Persistent user configuration for Roster Dashboard."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from platformdirs import user_config_path

from .app_logging import get_logger
from .config import DEFAULT_OPENAI_MODEL, DEFAULT_SAMPLE_ROWS
from .grouping import DEFAULT_BANDS, Band

logger = get_logger()

CONFIG_FILENAME = "RosterDashboard.config"


@dataclass
class ConfigManager:
    """User settings for the roster tools, stored as JSON."""

    api_key: str = ""
    openai_model: str = DEFAULT_OPENAI_MODEL
    sample_rows: int = DEFAULT_SAMPLE_ROWS
    data_dir: str = ""
    bands: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def config_path(cls) -> Path:
        base = Path(user_config_path("RosterDashboard"))
        base.mkdir(parents=True, exist_ok=True)
        return base / CONFIG_FILENAME

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ConfigManager":
        """Read settings from ``path``; a missing or broken file yields defaults."""

        path = path or cls.config_path()
        data: Dict[str, Any] = {}
        if path.exists():
            try:
                with path.open("r", encoding="utf-8") as fh:
                    loaded = json.load(fh)
                if isinstance(loaded, Mapping):
                    data = dict(loaded)
            except (OSError, json.JSONDecodeError):
                logger.warning("Ignoring unreadable configuration at %s", path)
                data = {}

        instance = cls()
        if data:
            instance.update_from_dict(data)

        if not path.exists():
            # Write defaults so the user has a file to edit.
            try:
                instance.save(path)
            except OSError:
                logger.warning("Could not write default configuration to %s", path, exc_info=True)

        return instance

    def update_from_dict(self, data: Mapping[str, Any]) -> None:
        """Apply known keys from ``data``, ignoring values of the wrong type."""

        for field_info in fields(self):
            name = field_info.name
            if name not in data:
                continue
            value = data[name]
            if name in {"api_key", "openai_model", "data_dir"}:
                if isinstance(value, str):
                    setattr(self, name, value.strip())
            elif name == "sample_rows":
                self.sample_rows = self._coerce_int(value, self.sample_rows)
            elif name == "bands":
                self.bands = self._coerce_bands(value)

        if not self.openai_model:
            self.openai_model = DEFAULT_OPENAI_MODEL

    def _coerce_int(self, value: Any, default: int) -> int:
        try:
            coerced = int(value)
            if coerced > 0:
                return coerced
        except (TypeError, ValueError):
            pass
        return default

    def _coerce_bands(self, value: Any) -> List[Dict[str, Any]]:
        if not isinstance(value, list):
            return []
        cleaned: List[Dict[str, Any]] = []
        for entry in value:
            try:
                name = str(entry["name"]).strip()
                start = int(entry["start"])
                end = int(entry["end"])
            except (TypeError, KeyError, ValueError):
                logger.warning("Dropping invalid band definition: %r", entry)
                continue
            if not name or start < 1 or end < start:
                logger.warning("Dropping invalid band definition: %r", entry)
                continue
            cleaned.append({"name": name, "start": start, "end": end})
        return cleaned

    def resolved_api_key(self) -> str:
        return self.api_key or os.environ.get("OPENAI_API_KEY", "")

    def resolved_data_dir(self) -> Optional[Path]:
        return Path(self.data_dir).expanduser() if self.data_dir else None

    def band_list(self) -> List[Band]:
        if not self.bands:
            return list(DEFAULT_BANDS)
        return [Band(entry["name"], entry["start"], entry["end"]) for entry in self.bands]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "api_key": self.api_key,
            "openai_model": self.openai_model,
            "sample_rows": int(self.sample_rows),
            "data_dir": self.data_dir,
            "bands": [dict(entry) for entry in self.bands],
        }

    def save(self, path: Optional[Path] = None) -> None:
        """Write the settings through a temporary file and swap it into place."""

        path = path or self.config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self.as_dict(), indent=2, ensure_ascii=False)
        tmp_path = path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            fh.write(payload)
        tmp_path.replace(path)
