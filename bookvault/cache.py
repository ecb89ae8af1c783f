"""In-memory working set of books."""
from typing import Iterable, Iterator, List, Optional, Tuple

from bookvault.models import Book
from bookvault.parse import deduplicate_books


class RecordCache:
    """
    Ordered, id-unique collection of books, newest insert first.

    Only the sync controllers mutate it, and only after the remote
    store confirmed the change. Readers get immutable snapshots.
    """

    def __init__(self, books: Iterable[Book] = ()):
        self._books: List[Book] = deduplicate_books(list(books))

    def replace_all(self, books: Iterable[Book]):
        """Discard current contents and install books in the given order."""
        self._books = deduplicate_books(list(books))

    def prepend(self, book: Book):
        """Insert a book at the front, replacing any entry with the same id."""
        self._books = [book] + [b for b in self._books if b.id != book.id]

    def remove_by_id(self, book_id: str) -> bool:
        """
        Remove the book with the given id.

        Returns:
            True if a book was removed
        """
        remaining = [b for b in self._books if b.id != book_id]
        removed = len(remaining) != len(self._books)
        self._books = remaining
        return removed

    def get(self, book_id: str) -> Optional[Book]:
        for book in self._books:
            if book.id == book_id:
                return book
        return None

    def snapshot(self) -> Tuple[Book, ...]:
        """Read-only copy of the current contents."""
        return tuple(self._books)

    def __len__(self) -> int:
        return len(self._books)

    def __iter__(self) -> Iterator[Book]:
        return iter(self.snapshot())

    def __contains__(self, book_id) -> bool:
        return self.get(book_id) is not None
