"""Provider-neutral API errors raised by the gateways.

Both Google client libraries are translated into this small hierarchy so the
batch logic only has to reason about HTTP status codes.
"""

from __future__ import annotations


class ApiCallError(Exception):
    """A Google API call failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ResourceNotFound(ApiCallError):
    """HTTP 404."""


class AccessDenied(ApiCallError):
    """HTTP 403."""


class ResourceConflict(ApiCallError):
    """HTTP 409: already exists, or already being deleted."""


class TransientApiError(ApiCallError):
    """Server side (5xx) or transport failure."""


def from_status(status_code: int | None, message: str) -> ApiCallError:
    match status_code:
        case 404:
            return ResourceNotFound(message, status_code)
        case 403:
            return AccessDenied(message, status_code)
        case 409:
            return ResourceConflict(message, status_code)
        case None:
            return TransientApiError(message, status_code)
        case code if code >= 500 or code == 429:
            return TransientApiError(message, status_code)
        case _:
            return ApiCallError(message, status_code)
