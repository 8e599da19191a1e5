"""Key/value persistence with per-item expiry.

Items live in a single JSON file (data/local_storage.json by default,
CHECKMATE_PRACTICE_DATA_DIR overrides the directory). Each entry keeps
its value and an ISO-8601 expiry timestamp; expired entries read as
missing and are pruned on access.
"""

from __future__ import annotations

import json
import os
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DATA_DIR_ENV = "CHECKMATE_PRACTICE_DATA_DIR"
_STORAGE_FILENAME = "local_storage.json"


def default_storage_path() -> Path:
    """Return the storage file path, honouring CHECKMATE_PRACTICE_DATA_DIR."""
    data_dir = os.environ.get(_DATA_DIR_ENV)
    base = Path(data_dir) if data_dir else _PROJECT_ROOT / "data"
    return base / _STORAGE_FILENAME


class LocalStorage:
    """JSON-file backed store with expiring items."""

    def __init__(self, storage_path: str | Path | None = None) -> None:
        """Load items from the storage file.

        If the file is corrupted, backs it up as .bak and starts fresh.

        Args:
            storage_path: Path to the JSON file. Defaults to
                default_storage_path().
        """
        self._path = Path(storage_path) if storage_path else default_storage_path()
        self._items: dict[str, dict] = self._load_items()

    @property
    def path(self) -> Path:
        return self._path

    def _load_items(self) -> dict[str, dict]:
        """Load items from disk, handling corruption gracefully.

        Returns:
            Dict of key -> {"value", "expires"}. Empty if missing or corrupt.
        """
        if not self._path.exists():
            return {}

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("Storage file must contain a JSON object")
            return data
        except (json.JSONDecodeError, ValueError):
            backup_path = self._path.with_suffix(".bak")
            shutil.copy2(self._path, backup_path)
            return {}

    def _save(self) -> None:
        """Save items to the JSON file with atomic write."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(
            json.dumps(self._items, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        os.replace(tmp_path, self._path)

    def load_item(self, key: str):
        """Return the stored value for ``key``, or None if missing or expired.

        Malformed entries (not a {"value", "expires"} object, or an
        unparseable expiry) read as missing and are pruned like expired ones.
        """
        entry = self._items.get(key)
        if entry is None:
            return None

        if not self._is_live(entry):
            del self._items[key]
            self._save()
            return None
        return entry["value"]

    @staticmethod
    def _is_live(entry) -> bool:
        if not isinstance(entry, dict) or "value" not in entry:
            return False
        expires = entry.get("expires")
        if expires is None:
            return True
        try:
            expiry = datetime.fromisoformat(expires)
        except (TypeError, ValueError):
            return False
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return expiry > datetime.now(timezone.utc)

    def save_item(self, key: str, value, expiry_millis: int | None = None) -> None:
        """Store ``value`` under ``key``.

        Args:
            key: Storage key.
            value: Any JSON-serializable value.
            expiry_millis: Lifetime in milliseconds. None never expires.
        """
        expires = None
        if expiry_millis is not None:
            expires = (
                datetime.now(timezone.utc) + timedelta(milliseconds=expiry_millis)
            ).isoformat()
        self._items[key] = {"value": value, "expires": expires}
        self._save()

    def delete_item(self, key: str) -> None:
        """Remove ``key``. Missing keys are ignored."""
        if self._items.pop(key, None) is not None:
            self._save()
