"""Async sync controller for event-driven front ends."""
import asyncio
import logging
from typing import Optional, Tuple

from bookvault.async_gateway import AsyncRemoteGateway
from bookvault.cache import RecordCache
from bookvault.errors import RemoteError, TransportError, ValidationError
from bookvault.models import Book, BookDraft
from bookvault.store import SnapshotStore
from bookvault.sync import (
    MSG_ADD_FAILED,
    MSG_ADDED,
    MSG_ADDING,
    MSG_DELETE_FAILED,
    MSG_DELETED,
    MSG_LOAD_FAILED,
    MSG_LOADING,
    ChangeListener,
    StatusListener,
    SyncResult,
    loaded_message,
    validate_draft,
)

logger = logging.getLogger(__name__)


class AsyncSyncController:
    """
    Same operations as SyncController, as coroutines.

    Overlapping triggers (a refresh while an insert is in flight, several
    deletes gathered at once) queue on an asyncio.Lock, so each remote
    result is applied to the cache and snapshot in the order the lock
    was acquired.
    """

    def __init__(
        self,
        gateway: AsyncRemoteGateway,
        store: SnapshotStore,
        cache: Optional[RecordCache] = None,
        on_change: Optional[ChangeListener] = None,
        on_status: Optional[StatusListener] = None
    ):
        self.gateway = gateway
        self.store = store
        self.cache = cache if cache is not None else RecordCache()
        self.on_change = on_change
        self.on_status = on_status
        self._lock = None

    def _write_lock(self) -> asyncio.Lock:
        # Created on first use so it belongs to the running loop.
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def books(self) -> Tuple[Book, ...]:
        return self.cache.snapshot()

    async def restore(self) -> SyncResult:
        async with self._write_lock():
            books = await asyncio.to_thread(self.store.read_snapshot)
            if books is None:
                return SyncResult(ok=True, message="", count=len(self.cache))
            self.cache.replace_all(books)
            self._notify_change()
            count = len(self.cache)
            return SyncResult(ok=True, message=loaded_message(count, "device"),
                              count=count, source="device")

    async def ensure_loaded(self) -> SyncResult:
        if len(self.cache) == 0:
            return await self.load()
        count = len(self.cache)
        return SyncResult(ok=True, message=loaded_message(count, "device"),
                          count=count, source="device")

    async def load(self) -> SyncResult:
        async with self._write_lock():
            self._status(MSG_LOADING)
            try:
                books = await self.gateway.list_books()
            except (TransportError, RemoteError) as e:
                logger.error(f"Load failed: {e}")
                return SyncResult(ok=False, message=MSG_LOAD_FAILED, error=e)

            self.cache.replace_all(books)
            await self._persist()
            self._notify_change()
            count = len(self.cache)
            return SyncResult(ok=True, message=loaded_message(count, "server"),
                              count=count, source="server")

    async def insert(self, draft: BookDraft) -> SyncResult:
        try:
            validate_draft(draft)
        except ValidationError as e:
            return SyncResult(ok=False, message=str(e), error=e)

        async with self._write_lock():
            self._status(MSG_ADDING)
            try:
                created = await self.gateway.create_book(draft)
            except (TransportError, RemoteError) as e:
                logger.error(f"Insert failed: {e}")
                return SyncResult(ok=False, message=MSG_ADD_FAILED, error=e)

            self.cache.prepend(created)
            await self._persist()
            self._notify_change()
            return SyncResult(ok=True, message=MSG_ADDED, count=len(self.cache),
                              reset_form=True, book=created)

    async def delete(self, book_id: str) -> SyncResult:
        async with self._write_lock():
            try:
                await self.gateway.remove_book(book_id)
            except (TransportError, RemoteError) as e:
                logger.error(f"Delete of {book_id} failed: {e}")
                return SyncResult(ok=False, message=MSG_DELETE_FAILED, error=e)

            self.cache.remove_by_id(book_id)
            await self._persist()
            self._notify_change()
            return SyncResult(ok=True, message=MSG_DELETED, count=len(self.cache))

    async def delete_many(self, book_ids) -> Tuple[SyncResult, ...]:
        """Trigger several deletes concurrently; they serialize on the lock."""
        results = await asyncio.gather(*(self.delete(book_id) for book_id in book_ids))
        return tuple(results)

    async def _persist(self):
        # Off the event loop; the write lock is still held by the caller.
        await asyncio.to_thread(self.store.write_snapshot, self.cache.snapshot())

    def _notify_change(self):
        if self.on_change:
            self.on_change(self.cache.snapshot())

    def _status(self, message: str):
        if self.on_status:
            self.on_status(message)
