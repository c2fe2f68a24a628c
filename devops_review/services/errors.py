"""Exceptions raised by the DevOps services."""

from typing import Optional


PERMISSION_HINT = (
    "Insufficient permissions. Ensure the account running the review "
    "is allowed to contribute comments to pull requests."
)


class DevOpsServiceError(Exception):
    """Base exception for DevOps service errors."""
    pass


class ConfigurationError(DevOpsServiceError):
    """A required credential or coordinate is missing or malformed."""
    pass


class ResolutionError(DevOpsServiceError):
    """The pull request is not in a state the change resolver understands."""
    pass


class DiffToolError(DevOpsServiceError):
    """The external diff tool could not be invoked or failed."""
    pass


class CommentPostError(DevOpsServiceError):
    """The provider rejected comment creation."""

    def __init__(self, message: str, permission_denied: bool = False):
        if permission_denied:
            message = f"{message}. {PERMISSION_HINT}"
        super().__init__(message)
        self.permission_denied = permission_denied


class NotRegisteredError(DevOpsServiceError):
    """No configuration was registered for the requested provider."""
    pass


class UnsupportedProviderError(DevOpsServiceError):
    """The provider name does not map to a known provider family."""
    pass


def get_status_code(error: BaseException) -> Optional[int]:
    """Best-effort HTTP status extraction from SDK exceptions."""
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_permission_error(error: BaseException) -> bool:
    """True when an SDK error looks like a 401/403 response."""
    if get_status_code(error) in (401, 403):
        return True
    message = str(error).lower()
    return any(keyword in message for keyword in ("401", "403", "unauthorized", "forbidden"))


def is_permanent_error(error: BaseException) -> bool:
    """Errors that will not succeed on retry."""
    if isinstance(error, DevOpsServiceError):
        return True
    status = get_status_code(error)
    if status is not None and 400 <= status < 500 and status != 429:
        return True
    message = str(error).lower()
    return any(keyword in message for keyword in ["unauthorized", "forbidden", "not found", "invalid"])
