"""Base exception types shared by the domain services."""

from __future__ import annotations


class DomainError(RuntimeError):
    """Precondition violation raised by a domain service.

    ``code`` is a stable identifier surfaced to API clients next to the message.
    """

    code: str = "DomainError"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    code = "NotFound"


class AccessDeniedError(DomainError):
    """Raised when the acting account is not allowed to perform the operation."""

    code = "AccessDenied"


__all__ = ["AccessDeniedError", "DomainError", "NotFoundError"]
