"""Catalog-service exceptions for error handling."""

from typing import Optional


class CatalogError(Exception):
    """Base exception for remote catalog operations."""

    pass


class RemoteCallFailed(CatalogError):
    """Raised when a call to the catalog or scrobble service fails.

    Covers transport errors, HTTP errors and Subsonic ``status: failed`` replies.
    """

    def __init__(self, endpoint: str, message: str, code: Optional[int] = None):
        self.endpoint = endpoint
        self.message = message
        self.code = code
        detail = f" (code {code})" if code is not None else ""
        super().__init__(f"{endpoint}: {message}{detail}")
