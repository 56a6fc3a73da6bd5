"""Translate domain errors raised by services into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from creatorcamp_api.services.errors import AccessDeniedError, DomainError, NotFoundError


def domain_http_error(error: DomainError) -> HTTPException:
    """Map a :class:`DomainError` to an ``HTTPException`` carrying its code."""

    if isinstance(error, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, AccessDeniedError):
        status_code = status.HTTP_403_FORBIDDEN
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": error.message},
    )


__all__ = ["domain_http_error"]
