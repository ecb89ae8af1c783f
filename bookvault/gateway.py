"""HTTP gateway for the BookVault books API."""
import requests
from typing import Optional, Any, List
from urllib.parse import quote
import logging

from bookvault.errors import RemoteError, TransportError
from bookvault.models import Book, BookDraft
from bookvault.parse import parse_book, parse_books_response

logger = logging.getLogger(__name__)


class RemoteGateway:
    """Stateless wrapper around the list, create and delete endpoints."""

    def __init__(self, books_endpoint: str, timeout: Optional[int] = 10):
        """
        Initialize the gateway.

        Args:
            books_endpoint: Collection URL, e.g. https://host/api/books
            timeout: Request timeout in seconds (None for the transport default)
        """
        self.books_endpoint = books_endpoint.rstrip("/")
        self.timeout = timeout

        # Create session for connection pooling
        self.session = requests.Session()

    def list_books(self) -> List[Book]:
        """
        Fetch every book.

        Returns:
            Normalized books in server order

        Raises:
            RemoteError: Non-success status
            TransportError: Network failure or undecodable body
        """
        response = self._request("GET", self.books_endpoint)
        books = parse_books_response(self._decode(response))
        logger.info(f"Fetched {len(books)} books")
        return books

    def create_book(self, draft: BookDraft) -> Book:
        """
        Create a book from a draft.

        Args:
            draft: Validated draft; blank optional fields are not sent

        Returns:
            The book as stored by the server

        Raises:
            RemoteError: Non-success status or a created record without id
            TransportError: Network failure or undecodable body
        """
        response = self._request("POST", self.books_endpoint, json=draft.to_payload())
        book = parse_book(self._decode(response))
        if book is None:
            raise RemoteError("Server returned a created book without id", response.status_code)
        logger.info(f"Created book {book.id}")
        return book

    def remove_book(self, book_id: str) -> Any:
        """
        Delete a book by id.

        Args:
            book_id: Canonical id, percent-encoded into the path

        Returns:
            Decoded acknowledgement body, or None if the body is empty
        """
        url = f"{self.books_endpoint}/{quote(book_id, safe='')}"
        response = self._request("DELETE", url)
        logger.info(f"Deleted book {book_id}")
        if not response.content:
            return None
        return self._decode(response)

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            logger.info(f"{method} {url}")
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.warning(f"Timeout: {method} {url}")
            raise TransportError(f"{method} {url} timed out") from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Connection error: {method} {url}: {e}")
            raise TransportError(f"{method} {url} failed: {e}") from e

        if not response.ok:
            logger.error(f"{method} {url} failed: {response.status_code}")
            raise RemoteError(f"{method} {url} failed: {response.status_code}", response.status_code)

        return response

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Malformed JSON from {response.url}") from e

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
