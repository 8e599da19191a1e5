"""Record of checkmate practice IDs the player has beaten.

The list is read from storage on first access only, so a ledger can be
constructed before storage is ready. Use CompletionLedger.open() to get
a handle that is already loaded.
"""

from __future__ import annotations

import sys
from typing import Callable

from checkmate_practice.storage import LocalStorage

STORAGE_KEY = "checkmatePracticeCompletion"
EXPIRY_MILLIS = 1000 * 60 * 60 * 24 * 365  # 1 year


class LedgerNotLoadedError(RuntimeError):
    """Raised when the ledger is written before it was ever loaded."""


def _log(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


class CompletionLedger:
    """Beaten checkmate IDs, persisted with a one-year expiry."""

    def __init__(
        self,
        storage: LocalStorage,
        on_erase: Callable[[], None] | None = None,
    ) -> None:
        """
        Args:
            storage: Persistence backend.
            on_erase: Called after erase() when the list was loaded, so
                views showing beaten markers can refresh.
        """
        self._storage = storage
        self._on_erase = on_erase
        self._completed: list[str] | None = None

    @classmethod
    def open(
        cls,
        storage: LocalStorage,
        on_erase: Callable[[], None] | None = None,
    ) -> CompletionLedger:
        """Create a ledger and load it immediately."""
        ledger = cls(storage, on_erase=on_erase)
        ledger.get()
        return ledger

    @property
    def is_loaded(self) -> bool:
        return self._completed is not None

    def get(self) -> list[str]:
        """Return the beaten IDs, loading them from storage on first call."""
        if self._completed is None:
            stored = self._storage.load_item(STORAGE_KEY)
            self._completed = list(stored) if isinstance(stored, list) else []
        return self._completed

    def _save(self) -> None:
        if self._completed is None:
            raise LedgerNotLoadedError(
                "Cannot save checkmates beaten when it was never initialized!"
            )
        self._storage.save_item(STORAGE_KEY, self._completed, EXPIRY_MILLIS)

    def mark_beaten(self, checkmate_id: str) -> None:
        """Add ``checkmate_id`` to the beaten list and persist it.

        Raises:
            LedgerNotLoadedError: If get() was never called.
        """
        if self._completed is None:
            raise LedgerNotLoadedError(
                "Cannot mark checkmate beaten when it was never initialized!"
            )
        if checkmate_id not in self._completed:
            self._completed.append(checkmate_id)
        self._save()
        _log("Marked checkmate practice as completed!")

    def erase(self) -> None:
        """Delete all practice progress from storage and memory."""
        self._storage.delete_item(STORAGE_KEY)
        _log("DELETED all checkmate practice progress.")
        if self._completed is None:
            # Never loaded, nothing cached
            return
        self._completed.clear()
        if self._on_erase is not None:
            self._on_erase()
