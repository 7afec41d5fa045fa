"""Errors raised by the HTTP client, one per failure class a caller must tell apart."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass(eq=False)
class ApiClientError(Exception):
    """Base exception for failed API calls."""

    message: str
    code: str | None = None
    status_code: int | None = None
    payload: Any = None

    retryable: ClassVar[bool] = False

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


class NotAuthenticatedError(ApiClientError):
    """401: the session is missing or expired."""


class RequestRejectedError(ApiClientError):
    """Any other 4xx: the server refused the request on a business rule."""


class ServerError(ApiClientError):
    """5xx from the API."""

    retryable = True


class NetworkUnavailableError(ApiClientError):
    """The request never got a response."""

    retryable = True
