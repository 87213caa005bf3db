"""
Persistence of analysis records.

Each record is a JSON object stored gzip-compressed as ``<id>.json.gz`` in the
store directory. Without a directory the store keeps records in memory only.
"""

import gzip
import json
import threading
import uuid
from pathlib import Path
from typing import Any

from repo_spark.models import parse_timestamp


class AnalysisStore:
    """Thread-safe store of analysis records keyed by id and source URL."""

    def __init__(self, directory: Path | str | None = None):
        self.directory = Path(directory).expanduser() if directory else None
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()
        if self.directory is not None:
            self._load()

    @staticmethod
    def _record_path(directory: Path, analysis_id: str) -> Path:
        return directory / f"{analysis_id}.json.gz"

    def _load(self) -> None:
        directory = self.directory
        if directory is None or not directory.exists():
            return
        for path in directory.glob("*.json.gz"):
            try:
                with gzip.open(path, "rt", encoding="utf-8") as f:
                    record = json.load(f)
            except (json.JSONDecodeError, OSError):
                # Corrupted record - ignore it
                continue
            if isinstance(record, dict) and "id" in record:
                self._records[record["id"]] = record

    def create(self, record: dict[str, Any]) -> dict[str, Any]:
        """
        Persist a new record and return it with its generated ``id``.

        The record must carry ``url`` and ``createdAt`` (ISO-8601).
        """
        stored = {"id": uuid.uuid4().hex, **record}
        with self._lock:
            if self.directory is not None:
                self.directory.mkdir(parents=True, exist_ok=True)
                path = self._record_path(self.directory, stored["id"])
                with gzip.open(path, "wt", encoding="utf-8") as f:
                    json.dump(stored, f, ensure_ascii=False)
            self._records[stored["id"]] = stored
        return stored

    def get(self, analysis_id: str) -> dict[str, Any] | None:
        with self._lock:
            return self._records.get(analysis_id)

    def get_by_url(self, url: str) -> dict[str, Any] | None:
        """Most recent record created for ``url``."""
        with self._lock:
            matches = [r for r in self._records.values() if r.get("url") == url]
        if not matches:
            return None
        return max(matches, key=lambda r: parse_timestamp(r["createdAt"]))

    def recent(self, limit: int = 10) -> list[dict[str, Any]]:
        """Records ordered newest first."""
        with self._lock:
            records = list(self._records.values())
        records.sort(key=lambda r: parse_timestamp(r["createdAt"]), reverse=True)
        return records[:limit]

    def clear(self) -> int:
        """Delete every record and return how many were removed."""
        with self._lock:
            count = len(self._records)
            if self.directory is not None:
                for analysis_id in self._records:
                    path = self._record_path(self.directory, analysis_id)
                    path.unlink(missing_ok=True)
            self._records.clear()
        return count
