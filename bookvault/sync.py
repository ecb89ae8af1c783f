"""Keeps the cache, the persisted snapshot and the remote store consistent.

Every mutation follows the same order: remote call, cache update,
snapshot write, view refresh. A failed remote call stops the sequence
before the cache is touched, so cache and snapshot stay at their last
known good state. Mutations are serialized by a single-writer lock.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from bookvault.cache import RecordCache
from bookvault.errors import (
    BookVaultError,
    RemoteError,
    TransportError,
    ValidationError,
)
from bookvault.gateway import RemoteGateway
from bookvault.models import Book, BookDraft
from bookvault.store import SnapshotStore

logger = logging.getLogger(__name__)

ChangeListener = Callable[[Tuple[Book, ...]], None]
StatusListener = Callable[[str], None]

MSG_LOADING = "Loading books…"
MSG_LOAD_FAILED = "Failed to load books."
MSG_MISSING_FIELDS = "Please provide both Title and Author."
MSG_ADDING = "Adding book…"
MSG_ADDED = "Book added!"
MSG_ADD_FAILED = "Failed to add book."
MSG_DELETED = "Book deleted."
MSG_DELETE_FAILED = "Failed to delete book."


@dataclass
class SyncResult:
    """Outcome of a sync operation, handed to the presentation layer."""

    ok: bool
    message: str
    error: Optional[BookVaultError] = None
    count: Optional[int] = None
    source: Optional[str] = None
    reset_form: bool = False
    book: Optional[Book] = None


def loaded_message(count: int, source: str) -> str:
    where = "your device" if source == "device" else "the server"
    return f"Loaded {count} book(s) from {where}."


def validate_draft(draft: BookDraft):
    """Raise ValidationError unless title and author are present."""
    if not draft.is_complete:
        raise ValidationError(MSG_MISSING_FIELDS)


class SyncController:
    """Orchestrates load, insert and delete against cache, snapshot and server."""

    def __init__(
        self,
        gateway: RemoteGateway,
        store: SnapshotStore,
        cache: Optional[RecordCache] = None,
        on_change: Optional[ChangeListener] = None,
        on_status: Optional[StatusListener] = None
    ):
        """
        Args:
            gateway: Remote list/create/remove operations
            store: Snapshot slot, owned exclusively by this controller
            cache: Working set (a new empty one by default)
            on_change: Receives the cache snapshot after every successful change
            on_status: Receives progress messages such as "Loading books…"
        """
        self.gateway = gateway
        self.store = store
        self.cache = cache if cache is not None else RecordCache()
        self.on_change = on_change
        self.on_status = on_status
        self._lock = threading.Lock()

    def books(self) -> Tuple[Book, ...]:
        """Read-only view of the cache."""
        return self.cache.snapshot()

    def restore(self) -> SyncResult:
        """Install the persisted snapshot, if any, without contacting the server."""
        with self._lock:
            books = self.store.read_snapshot()
            if books is None:
                return SyncResult(ok=True, message="", count=len(self.cache))
            self.cache.replace_all(books)
            self._notify_change()
            count = len(self.cache)
            logger.info(f"Restored {count} books from snapshot")
            return SyncResult(ok=True, message=loaded_message(count, "device"),
                              count=count, source="device")

    def ensure_loaded(self) -> SyncResult:
        """Load from the server only when nothing is cached yet."""
        if len(self.cache) == 0:
            return self.load()
        count = len(self.cache)
        return SyncResult(ok=True, message=loaded_message(count, "device"),
                          count=count, source="device")

    def load(self) -> SyncResult:
        """Replace the cache with the server's list."""
        with self._lock:
            self._status(MSG_LOADING)
            try:
                books = self.gateway.list_books()
            except (TransportError, RemoteError) as e:
                logger.error(f"Load failed: {e}")
                return SyncResult(ok=False, message=MSG_LOAD_FAILED, error=e)

            self.cache.replace_all(books)
            self._persist()
            self._notify_change()
            count = len(self.cache)
            return SyncResult(ok=True, message=loaded_message(count, "server"),
                              count=count, source="server")

    def insert(self, draft: BookDraft) -> SyncResult:
        """Create a book remotely and put the server's record first in the cache."""
        try:
            validate_draft(draft)
        except ValidationError as e:
            return SyncResult(ok=False, message=str(e), error=e)

        with self._lock:
            self._status(MSG_ADDING)
            try:
                created = self.gateway.create_book(draft)
            except (TransportError, RemoteError) as e:
                logger.error(f"Insert failed: {e}")
                return SyncResult(ok=False, message=MSG_ADD_FAILED, error=e)

            self.cache.prepend(created)
            self._persist()
            self._notify_change()
            return SyncResult(ok=True, message=MSG_ADDED, count=len(self.cache),
                              reset_form=True, book=created)

    def delete(self, book_id: str) -> SyncResult:
        """Delete a confirmed book remotely, then drop it from the cache."""
        with self._lock:
            try:
                self.gateway.remove_book(book_id)
            except (TransportError, RemoteError) as e:
                logger.error(f"Delete of {book_id} failed: {e}")
                return SyncResult(ok=False, message=MSG_DELETE_FAILED, error=e)

            if not self.cache.remove_by_id(book_id):
                logger.info(f"Deleted book {book_id} was not cached")
            self._persist()
            self._notify_change()
            return SyncResult(ok=True, message=MSG_DELETED, count=len(self.cache))

    def _persist(self):
        # write_snapshot logs its own failures; the cache stays authoritative
        self.store.write_snapshot(self.cache.snapshot())

    def _notify_change(self):
        if self.on_change:
            self.on_change(self.cache.snapshot())

    def _status(self, message: str):
        if self.on_status:
            self.on_status(message)
