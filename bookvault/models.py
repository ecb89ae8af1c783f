"""Data models for books."""
from dataclasses import dataclass
from typing import Optional, Dict, Any, Mapping
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Book:
    """Normalized book representation with a canonical id."""
    id: str
    title: str
    author: str
    year: Optional[int] = None
    image_url: Optional[str] = None
    description: Optional[str] = None

    @property
    def byline(self) -> str:
        """Format author and year for display."""
        author = self.author or "Unknown"
        return f"{author} • {self.year}" if self.year else author

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire/snapshot shape, omitting empty optionals."""
        data = {"id": self.id, "title": self.title, "author": self.author}
        if self.year is not None:
            data["year"] = self.year
        if self.image_url is not None:
            data["imageUrl"] = self.image_url
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class BookDraft:
    """User input for a book that does not exist on the server yet."""
    title: str
    author: str
    year: Optional[int] = None
    image_url: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "BookDraft":
        """
        Build a draft from raw form fields.

        Strings are trimmed, blank optionals become None and a year
        that is not a whole number is dropped.

        Args:
            form: Mapping of field name to raw value

        Returns:
            BookDraft (not validated)
        """
        def text(key: str) -> str:
            value = form.get(key)
            return str(value).strip() if value is not None else ""

        year = None
        raw_year = text("year")
        if raw_year:
            try:
                year = int(raw_year)
            except ValueError:
                logger.warning(f"Ignoring non-numeric year: {raw_year!r}")

        return cls(
            title=text("title"),
            author=text("author"),
            year=year,
            image_url=text("imageUrl") or text("image_url") or None,
            description=text("description") or None,
        )

    @property
    def is_complete(self) -> bool:
        """True when both required fields are present."""
        return bool(self.title.strip()) and bool(self.author.strip())

    def to_payload(self) -> Dict[str, Any]:
        """Request body for the create endpoint; blank fields are left out."""
        payload = {"title": self.title.strip(), "author": self.author.strip()}
        if self.year is not None:
            payload["year"] = self.year
        if self.image_url and self.image_url.strip():
            payload["imageUrl"] = self.image_url.strip()
        if self.description and self.description.strip():
            payload["description"] = self.description.strip()
        return payload
