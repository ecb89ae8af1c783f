"""Persisted snapshot of the book cache."""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Optional

from bookvault.errors import PersistenceError
from bookvault.models import Book
from bookvault.parse import parse_book

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    A single named slot holding the serialized cache.

    Subclasses implement ``_load_raw`` and ``_save_raw``; both raise
    PersistenceError on failure. The public methods never raise.
    """

    def _load_raw(self) -> Optional[Any]:
        raise NotImplementedError

    def _save_raw(self, payload: List[dict]):
        raise NotImplementedError

    def read_snapshot(self) -> Optional[List[Book]]:
        """
        Read the stored books.

        Returns:
            Books in stored order, or None when the slot is absent or corrupt
        """
        try:
            raw = self._load_raw()
        except PersistenceError as e:
            logger.warning(f"Failed to read snapshot: {e}")
            return None

        if raw is None:
            return None
        if not isinstance(raw, list):
            logger.warning(f"Ignoring corrupt snapshot: expected a list, got {type(raw).__name__}")
            return None

        books = []
        for item in raw:
            book = parse_book(item)
            if book:
                books.append(book)
        return books

    def write_snapshot(self, books: Iterable[Book]) -> bool:
        """
        Overwrite the slot with the given books.

        Returns:
            True if the write succeeded
        """
        payload = [book.to_dict() for book in books]
        try:
            self._save_raw(payload)
        except PersistenceError as e:
            logger.warning(f"Failed to save snapshot: {e}")
            return False
        logger.info(f"Saved snapshot with {len(payload)} books")
        return True


class FileSnapshotStore(SnapshotStore):
    """Snapshot kept in a JSON file on the local device."""

    def __init__(self, path):
        self.path = Path(path)

    def _load_raw(self) -> Optional[Any]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"{self.path}: {e}") from e

    def _save_raw(self, payload: List[dict]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=self.path.name, suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"{self.path}: {e}") from e
