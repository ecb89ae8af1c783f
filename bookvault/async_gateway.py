"""Async HTTP gateway for the BookVault books API."""
import httpx
from typing import Optional, Any, List
from urllib.parse import quote
import logging

from bookvault.errors import RemoteError, TransportError
from bookvault.models import Book, BookDraft
from bookvault.parse import parse_book, parse_books_response

logger = logging.getLogger(__name__)


class AsyncRemoteGateway:
    """Async counterpart of RemoteGateway."""

    def __init__(
        self,
        books_endpoint: str,
        timeout: Optional[int] = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async gateway.

        Args:
            books_endpoint: Collection URL
            timeout: Request timeout
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.books_endpoint = books_endpoint.rstrip("/")
        self.timeout = timeout

        # Create async HTTP client
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def list_books(self) -> List[Book]:
        """Fetch every book."""
        response = await self._request("GET", self.books_endpoint)
        books = parse_books_response(self._decode(response))
        logger.info(f"Fetched {len(books)} books")
        return books

    async def create_book(self, draft: BookDraft) -> Book:
        """Create a book; the server's record is returned normalized."""
        response = await self._request("POST", self.books_endpoint, json=draft.to_payload())
        book = parse_book(self._decode(response))
        if book is None:
            raise RemoteError("Server returned a created book without id", response.status_code)
        return book

    async def remove_book(self, book_id: str) -> Any:
        """Delete a book by id."""
        url = f"{self.books_endpoint}/{quote(book_id, safe='')}"
        response = await self._request("DELETE", url)
        if not response.content:
            return None
        return self._decode(response)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            logger.info(f"Async {method} {url}")
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"Async {method} {url} failed: {e}")
            raise TransportError(f"{method} {url} failed: {e}") from e

        if not response.is_success:
            logger.error(f"Status {response.status_code} for {method} {url}")
            raise RemoteError(f"{method} {url} failed: {response.status_code}", response.status_code)

        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Malformed JSON from {response.url}") from e

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
