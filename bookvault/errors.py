"""Error taxonomy for the sync layer."""
from typing import Optional


class BookVaultError(Exception):
    """Base class for all BookVault errors."""


class ValidationError(BookVaultError):
    """Draft is missing a required field; raised before any remote call."""


class TransportError(BookVaultError):
    """The remote service could not be reached or its body could not be decoded."""


class RemoteError(BookVaultError):
    """The remote service answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(BookVaultError):
    """Reading or writing the local snapshot failed."""
