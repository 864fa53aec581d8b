from apphub.exceptions.handlers import (
    AppHubException,
    AuthenticationError,
    ConflictError,
    InvitationError,
    MetadataFetchError,
    NotFoundError,
    PermissionError,
    ValidationError,
)

__all__ = [
    "AppHubException",
    "AuthenticationError",
    "ConflictError",
    "InvitationError",
    "MetadataFetchError",
    "NotFoundError",
    "PermissionError",
    "ValidationError",
]
