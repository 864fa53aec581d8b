from __future__ import annotations

from typing import Any, Dict, Optional

from apphub.context import request_id_var


class AppHubException(Exception):
    """
    Base exception for service-layer failures.

    Routers raise ``HTTPException(status_code=exc.status_code, detail=exc.to_dict())``.
    The body carries the request id so a failed call can be matched to its logs.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "APPHUB_ERROR",
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details: Dict[str, Any] = details or {}
        self.user_message = user_message or message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
        }
        request_id = request_id_var.get()
        if request_id:
            body["request_id"] = request_id
        return body

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class ValidationError(AppHubException):
    def __init__(self, message: str, field: Optional[str] = None, **kwargs: Any):
        details: Dict[str, Any] = {"field": field} if field else {}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=422,
            details=details,
            user_message=message,
        )


class PermissionError(AppHubException):
    def __init__(self, action: str = "access", resource: Optional[str] = None, **kwargs: Any):
        message = f"Permission denied for action: {action}"
        if resource:
            message += f" on resource: {resource}"

        details: Dict[str, Any] = {"action": action, "resource": resource}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="PERMISSION_DENIED",
            status_code=403,
            details=details,
            user_message="Access denied",
        )


class AuthenticationError(AppHubException):
    def __init__(self, message: str = "Invalid credentials", **kwargs: Any):
        super().__init__(
            message=message,
            code="AUTHENTICATION_FAILED",
            status_code=401,
            details=dict(kwargs),
            user_message=message,
        )


class NotFoundError(AppHubException):
    def __init__(self, resource: str, resource_id: Any = None, **kwargs: Any):
        message = f"{resource} not found"
        details: Dict[str, Any] = {"resource": resource, "id": resource_id}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details=details,
            user_message=message,
        )


class ConflictError(AppHubException):
    def __init__(self, message: str, **kwargs: Any):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            details=dict(kwargs),
            user_message=message,
        )


class InvitationError(AppHubException):
    MISSING_TOKEN = "missing_token"
    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"
    EMAIL_MISMATCH = "email_mismatch"

    _MESSAGES = {
        MISSING_TOKEN: ("Invalid invitation link", 400),
        NOT_FOUND: ("Invalid or expired invitation", 404),
        ALREADY_USED: ("Invitation has already been used", 409),
        EXPIRED: ("Invitation has expired", 410),
        EMAIL_MISMATCH: ("Email does not match the invitation", 400),
    }

    def __init__(self, reason: str, **kwargs: Any):
        message, status_code = self._MESSAGES.get(reason, ("Error validating invitation", 400))
        self.reason = reason
        details: Dict[str, Any] = {"reason": reason}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="INVITATION_" + reason.upper(),
            status_code=status_code,
            details=details,
            user_message=message,
        )


class MetadataFetchError(AppHubException):
    def __init__(self, url: str, error: Optional[str] = None):
        super().__init__(
            message="Error fetching metadata",
            code="METADATA_FETCH_FAILED",
            status_code=502,
            details={"url": url, "error": error},
            user_message="Error fetching metadata",
        )
