"""Configuration management."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""

    # API
    API_BASE = os.getenv("BOOKVAULT_API_BASE", "https://bookstore-api-six.vercel.app").rstrip("/")

    @property
    def BOOKS_ENDPOINT(self):
        """Collection URL for books."""
        return f"{self.API_BASE}/api/books"

    # Snapshot persistence
    SNAPSHOT_BACKEND = os.getenv("SNAPSHOT_BACKEND", "file")
    SNAPSHOT_PATH = Path(
        os.getenv("SNAPSHOT_PATH", str(Path.home() / ".bookvault" / "bookvault_books.json"))
    ).expanduser()
    SNAPSHOT_SLOT = os.getenv("SNAPSHOT_SLOT", "bookvault_books")

    # Database (SNAPSHOT_BACKEND=postgres)
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "bookvault")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")

    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Defaults
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
