"""Error taxonomy shared by the service, the ports and the HTTP layer.

Every error carries the HTTP status used when it is rendered as a failure
envelope. Cache errors are deliberately absent: they never leave the service.
"""

from __future__ import annotations


class ResourceError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DecodeError(ResourceError):
    """Raised when a request payload is malformed or does not match the model."""

    status_code = 400


class NotFoundError(ResourceError):
    """Raised by repositories when no row matches the id or filter set."""

    status_code = 404


class HookVetoError(ResourceError):
    """Raised by a before-create/update/delete hook to abort the operation."""

    status_code = 422


class RepositoryError(ResourceError):
    """Raised by repositories for any persistence-layer failure."""

    status_code = 500


class UnsupportedActionError(ResourceError):
    """Raised at configuration time when an action has no route binding."""

    status_code = 500
