"""OVH Diagnostic Bot — OVH API Errors."""

from __future__ import annotations


class OvhApiError(Exception):
    """Raised for any failed OVH API call.

    Attributes:
        status: HTTP status code, 0 for transport failures.
        message: Error message returned by the API (or the transport).
        path: API path that was requested.
    """

    def __init__(self, status: int, message: str, path: str = "") -> None:
        self.status = status
        self.message = message
        self.path = path
        super().__init__(f"OVH API error {status} on {path or '?'}: {message}")

    @property
    def is_not_found(self) -> bool:
        """Whether the API reported the resource as absent."""
        return self.status == 404


def is_not_found(error: BaseException) -> bool:
    """Return True when *error* is an OVH "resource not found" answer."""
    return isinstance(error, OvhApiError) and error.is_not_found
