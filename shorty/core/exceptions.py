"""
Custom Exceptions

This module defines the closed set of error kinds the service can raise.

Callers branch on the exception class (or its ``kind``), never on the
message text:
- PersistenceError: the redirect file is unreadable, unparsable or unwritable
- MalformedRequestError: a request path does not match /add/from=to or /delete/short
- NotFoundError: no redirect exists for a short name
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Error kinds known to the service."""
    PERSISTENCE = "persistence"
    MALFORMED_REQUEST = "malformed_request"
    NOT_FOUND = "not_found"


class URLShortenerException(Exception):
    """Base exception for the redirect service."""
    kind: ErrorKind


class PersistenceError(URLShortenerException):
    """Raised when the redirect file cannot be read, parsed or written."""

    kind = ErrorKind.PERSISTENCE

    def __init__(self, message: str, path: Optional[str] = None, original_error: Exception = None):
        self.message = message
        self.path = path
        self.original_error = original_error
        if original_error is not None:
            message = f"{message}, {original_error}"
        super().__init__(message)


class MalformedRequestError(URLShortenerException):
    """Raised when a request path does not have the expected shape."""

    kind = ErrorKind.MALFORMED_REQUEST

    def __init__(self, path: str, usage: str):
        self.path = path
        self.usage = usage
        super().__init__(usage)


class NotFoundError(URLShortenerException):
    """Raised when a short name has no redirect."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, short_name: str):
        self.short_name = short_name
        super().__init__(f"No match for {short_name} found")
