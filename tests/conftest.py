"""Shared pytest fixtures: fake gateways and a temporary snapshot store."""
import asyncio

import pytest

from bookvault.errors import RemoteError
from bookvault.models import Book
from bookvault.parse import parse_book
from bookvault.store import FileSnapshotStore


class FakeGateway:
    """In-memory stand-in for RemoteGateway."""

    def __init__(self, books=None):
        self.books = list(books or [])
        self.calls = []
        self.error = None
        self.next_id = 100

    def _maybe_fail(self):
        if self.error is not None:
            raise self.error

    def list_books(self):
        self.calls.append(("list",))
        self._maybe_fail()
        return list(self.books)

    def create_book(self, draft):
        self.calls.append(("create", draft))
        self._maybe_fail()
        self.next_id += 1
        book = parse_book({"id": str(self.next_id), **draft.to_payload()})
        self.books.insert(0, book)
        return book

    def remove_book(self, book_id):
        self.calls.append(("remove", book_id))
        self._maybe_fail()
        self.books = [b for b in self.books if b.id != book_id]
        return {"ok": True}


class AsyncFakeGateway(FakeGateway):
    """Async stand-in that yields to the loop and tracks overlapping calls."""

    def __init__(self, books=None, delays=None):
        super().__init__(books)
        self.delays = delays or {}
        self.in_flight = 0
        self.max_in_flight = 0
        self.failing_ids = set()

    async def _enter(self, key):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.delays.get(key, 0))

    async def list_books(self):
        await self._enter("list")
        try:
            return super().list_books()
        finally:
            self.in_flight -= 1

    async def create_book(self, draft):
        await self._enter("create")
        try:
            return super().create_book(draft)
        finally:
            self.in_flight -= 1

    async def remove_book(self, book_id):
        await self._enter(book_id)
        try:
            if book_id in self.failing_ids:
                raise RemoteError("DELETE failed: 500", 500)
            return super().remove_book(book_id)
        finally:
            self.in_flight -= 1


@pytest.fixture
def dune():
    return Book(id="1", title="Dune", author="Herbert")


@pytest.fixture
def server_books():
    return [
        Book(id="1", title="Dune", author="Herbert", year=1965),
        Book(id="2", title="Emma", author="Austen"),
        Book(id="3", title="Ulysses", author="Joyce", description="Bloomsday"),
    ]


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "device" / "bookvault_books.json"


@pytest.fixture
def store(snapshot_path):
    return FileSnapshotStore(snapshot_path)


@pytest.fixture
def gateway(server_books):
    return FakeGateway(server_books)
