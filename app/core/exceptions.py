"""
Custom Exceptions

This module defines the error taxonomy of the view counting service.

- InvalidContentIdError: missing or malformed article id (client error, 400)
- ContentNotFoundError: article id does not resolve to an article (404)
- DatabaseError: any failure talking to the store (500 on the increment
  path, replaced by zero / fallback values on read paths)
"""


class ViewCounterException(Exception):
    """Base exception for the view counting service."""
    pass


class InvalidContentIdError(ViewCounterException):
    """Raised when an article id is empty or malformed."""

    def __init__(self, content_id, reason: str = "Invalid article id"):
        self.content_id = content_id
        self.reason = reason
        super().__init__(f"{reason}: {content_id!r}")


class ContentNotFoundError(ViewCounterException):
    """Raised when an article id is not found in the database."""

    def __init__(self, content_id: str):
        self.content_id = content_id
        super().__init__(f"Article '{content_id}' not found")


class DatabaseError(ViewCounterException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
