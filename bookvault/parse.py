"""Parse and normalize BookVault API records."""
from typing import Dict, Any, List, Optional, Tuple
import logging

from bookvault.models import Book

logger = logging.getLogger(__name__)

# Field names the server may use for the identifier, in priority order.
ID_FIELDS = ("id", "_id")


def resolve_id(item: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    """
    Find the canonical id of a raw record.

    Args:
        item: Raw record from the server or the snapshot

    Returns:
        (id, source field) or None if no id field holds a value
    """
    for field in ID_FIELDS:
        value = item.get(field)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text, field
    return None


def _parse_year(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid year: {value!r}")
        return None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_book(item: Any) -> Optional[Book]:
    """
    Parse a single raw record into a Book.

    Args:
        item: Single record from an API response or snapshot

    Returns:
        Book object or None if the record has no usable id
    """
    if not isinstance(item, dict):
        logger.warning(f"Skipping non-object record: {item!r}")
        return None

    resolved = resolve_id(item)
    if resolved is None:
        logger.warning(f"Skipping record without id: {item.get('title')!r}")
        return None
    book_id, _ = resolved

    return Book(
        id=book_id,
        title=str(item.get("title") or ""),
        author=str(item.get("author") or ""),
        year=_parse_year(item.get("year")),
        image_url=_optional_text(item.get("imageUrl")),
        description=_optional_text(item.get("description")),
    )


def parse_books_response(response_json: Any) -> List[Book]:
    """
    Parse a list response.

    The server answers either with a bare array of records or with an
    object holding a ``books`` array.

    Args:
        response_json: Decoded response body

    Returns:
        List of Book objects (empty if no records found)
    """
    if isinstance(response_json, list):
        items = response_json
    elif isinstance(response_json, dict):
        items = response_json.get("books") or []
        if not isinstance(items, list):
            logger.warning(f"Unexpected 'books' value: {type(items).__name__}")
            items = []
    else:
        logger.warning(f"Unexpected list response: {type(response_json).__name__}")
        items = []

    books = []
    for item in items:
        book = parse_book(item)
        if book:
            books.append(book)

    return books


def deduplicate_books(books: List[Book]) -> List[Book]:
    """
    Remove duplicate books by ID, keeping the first occurrence.

    Args:
        books: List of Book objects

    Returns:
        Deduplicated list of books in original order
    """
    seen_ids = set()
    unique_books = []

    for book in books:
        if book.id not in seen_ids:
            seen_ids.add(book.id)
            unique_books.append(book)

    return unique_books
