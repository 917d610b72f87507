"""
Persistence boundary for scrape results.

The pipeline never saves anything itself; callers hand finished
ScrapeResults to a RecordStore. JsonFileStore keeps one JSON document per key
plus an index file summarising every stored record.
"""

import hashlib
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .crawl_schemas import ScrapeResult

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def save(self, key: str, result: ScrapeResult) -> None:
        ...

    def get(self, key: str) -> Optional[ScrapeResult]:
        ...

    def query(self, **filters: Any) -> List[ScrapeResult]:
        ...


def record_key(url: str) -> str:
    """Normalize a website URL for use as a record key."""
    url = url.lower().strip()
    for prefix in ["https://", "http://", "www."]:
        if url.startswith(prefix):
            url = url[len(prefix):]
    return url.rstrip("/")


class JsonFileStore:
    """
    Stores results as JSON documents under a directory.

    Layout:
    - <dir>/<safe key>-<key hash>.json: the full result, camelCase
    - <dir>/record_index.json: key -> summary used by query()
    """

    INDEX_FILENAME = "record_index.json"

    def __init__(self, storage_dir: str = "profile_storage"):
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.index_file = self.storage_dir / self.INDEX_FILENAME
        self.index = self._load_index()

    def _load_index(self) -> Dict[str, Any]:
        if self.index_file.exists():
            with open(self.index_file, "r", encoding="utf-8") as f:
                return json.load(f)
        return {"records": {}}

    def _save_index(self) -> None:
        with open(self.index_file, "w", encoding="utf-8") as f:
            json.dump(self.index, f, indent=2, default=str)

    def _path_for(self, key: str) -> Path:
        safe = re.sub(r"[^a-zA-Z0-9._-]+", "_", key).strip("_") or "record"
        # Keys that sanitize alike still get distinct files
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:8]
        return self.storage_dir / f"{safe}-{digest}.json"

    def save(self, key: str, result: ScrapeResult) -> None:
        """Write (or overwrite) the result stored under key."""
        filepath = self._path_for(key)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(result.model_dump_json(by_alias=True, indent=2))

        record = result.record
        self.index["records"][key] = {
            "file": filepath.name,
            "name": record.name,
            "website": record.website,
            "data_quality": record.data_quality,
            "confidence": result.metadata.confidence,
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        self._save_index()
        logger.info("Saved record %s to %s", key, filepath)

    def get(self, key: str) -> Optional[ScrapeResult]:
        entry = self.index["records"].get(key)
        if entry is None:
            return None
        filepath = self.storage_dir / entry["file"]
        if not filepath.exists():
            logger.warning("Index entry %s points to missing file %s", key, filepath)
            return None
        return ScrapeResult.model_validate_json(filepath.read_text(encoding="utf-8"))

    def query(self, **filters: Any) -> List[ScrapeResult]:
        """
        Results whose index summary matches every filter.

        Filters compare by equality against the summary fields (name, website,
        data_quality, confidence); ``min_confidence`` is a lower bound.
        """
        min_confidence = filters.pop("min_confidence", None)
        results = []
        for key, entry in self.index["records"].items():
            if min_confidence is not None and entry["confidence"] < min_confidence:
                continue
            if any(entry.get(field) != value for field, value in filters.items()):
                continue
            result = self.get(key)
            if result is not None:
                results.append(result)
        return results

    def keys(self) -> List[str]:
        return list(self.index["records"])
