"""
Hot-reloading, file-backed lookup tables.

A ``DirectoryCache`` keeps an immutable snapshot of a JSON mapping together
with the file's modification time. Reads return the current snapshot without
locking; a reload happens under a lock, re-checks staleness, and swaps in a
new snapshot in a single assignment so readers never see a half-built map.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Union

from shared.errors import DirectoryLoadError, SourceNotFoundError
from shared.logging import get_logger
from shared.metrics import MetricsCollector


@dataclass(frozen=True)
class DirectoryCacheEntry:
    data: Mapping[str, str]
    source_modified_at: int


def load_string_mapping(path: Path) -> Dict[str, str]:
    """Read a JSON object of ``code -> name``.

    Scalar values are kept as strings; nested values are ignored.
    """
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError("directory file must contain a JSON object")

    mapping: Dict[str, str] = {}
    for key, value in payload.items():
        if isinstance(value, str):
            mapping[key] = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            mapping[key] = str(value)
    return mapping


class DirectoryCache:
    """Lazily refreshed snapshot of a JSON directory file."""

    def __init__(
        self,
        path: Union[str, Path],
        *,
        loader: Callable[[Path], Dict[str, str]] = load_string_mapping,
        name: str = "directory",
        metrics: Optional[MetricsCollector] = None,
    ):
        self._path = Path(path)
        self._loader = loader
        self._name = name
        self._metrics = metrics
        self._lock = threading.Lock()
        self._entry: Optional[DirectoryCacheEntry] = None
        self.logger = get_logger("enterprise-auth.directory_cache")

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def get(self) -> Mapping[str, str]:
        """Return the current mapping, reloading it if the file changed."""
        modified_at = self._source_modified_at()

        entry = self._entry
        if self._is_stale(entry, modified_at):
            with self._lock:
                entry = self._entry
                if self._is_stale(entry, modified_at):
                    entry = self._reload(modified_at)
                    self._entry = entry
        return entry.data

    def lookup(self, key: str) -> Optional[str]:
        return self.get().get(key)

    @staticmethod
    def _is_stale(entry: Optional[DirectoryCacheEntry], modified_at: int) -> bool:
        return entry is None or modified_at > entry.source_modified_at

    def _source_modified_at(self) -> int:
        try:
            return self._path.stat().st_mtime_ns
        except FileNotFoundError:
            self.logger.error("Directory file not found", name=self._name, path=str(self._path))
            raise SourceNotFoundError(f"{self._path.name} not found", details={"path": str(self._path)})
        except OSError as e:
            raise DirectoryLoadError(f"Failed to stat {self._path.name}", details={"error": str(e)})

    def _reload(self, modified_at: int) -> DirectoryCacheEntry:
        try:
            data = self._loader(self._path)
        except FileNotFoundError:
            raise SourceNotFoundError(f"{self._path.name} not found", details={"path": str(self._path)})
        except (OSError, ValueError) as e:
            self.logger.error("Failed to read directory file", name=self._name, error=str(e))
            raise DirectoryLoadError(f"Failed to read {self._path.name}: {e}", details={"path": str(self._path)})

        self.logger.info("Loaded directory", name=self._name, entries=len(data), path=str(self._path))
        if self._metrics:
            self._metrics.record_business_event("directory_reloaded")
            self._metrics.set_directory_size(self._name, len(data))
        return DirectoryCacheEntry(data=MappingProxyType(dict(data)), source_modified_at=modified_at)
