"""Exception hierarchy for the Chef server SDK."""

from __future__ import annotations


class ChefError(Exception):
    """Base class for every error raised by the SDK."""


class SigningError(ChefError):
    """A request could not be signed (bad key or missing canonical input)."""


class ChefConnectionError(ChefError):
    """The request never produced an HTTP response."""


class ChefParseError(ChefError):
    """A server payload was not valid JSON or lacked required fields."""


class ReadOnlyAttributeError(ChefError, TypeError):
    """Raised when mutating an attribute tree that was made read-only."""


class ChefHTTPError(ChefError):
    """Represent a non-2xx response from the Chef server."""

    def __init__(self, status_code: int, method: str, url: str, body: str = "") -> None:
        self.status_code = status_code
        self.method = method
        self.url = url
        self.body = body
        detail = f": {body[:200]}" if body else ""
        super().__init__(f"Chef request {method} {url} failed with HTTP {status_code}{detail}")


class ChefNotFoundError(ChefHTTPError):
    """The requested resource does not exist (HTTP 404)."""


def error_for_status(status_code: int, method: str, url: str, body: str = "") -> ChefHTTPError:
    """Return the most specific HTTP error for ``status_code``."""

    if status_code == 404:
        return ChefNotFoundError(status_code, method, url, body)
    return ChefHTTPError(status_code, method, url, body)
