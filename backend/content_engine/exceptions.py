"""엔진이 호출자에게 노출하는 예외 계층입니다. 전송 계층(HTTP/GraphQL)은 code 값으로 응답을 매핑합니다."""

from typing import Any, Dict, Optional


class ContentEngineError(Exception):
    """Base exception for every error the engine surfaces.

    Attributes:
        message: Human readable message
        code: Stable code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "CONTENT_ENGINE_ERROR"
        self.details = details or {}


class ValidationError(ContentEngineError):
    """Malformed input: empty title/content, unknown status, disallowed transition."""

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR", details={"field": field_name})
        self.field_name = field_name


class NotFoundError(ContentEngineError):
    pass


class PostNotFound(NotFoundError):
    def __init__(self, post_ref: Any) -> None:
        super().__init__(
            f"게시글을 찾을 수 없습니다: {post_ref}",
            code="POST_NOT_FOUND",
            details={"post": post_ref},
        )
        self.post_ref = post_ref


class VersionNotFound(NotFoundError):
    def __init__(self, post_id: int, version_number: int) -> None:
        super().__init__(
            f"버전 이력을 찾을 수 없습니다: post={post_id} version={version_number}",
            code="VERSION_NOT_FOUND",
            details={"post_id": post_id, "version_number": version_number},
        )
        self.post_id = post_id
        self.version_number = version_number


class AuthorizationError(ContentEngineError):
    """The principal may not perform the action.

    ``reason`` is ``insufficient_role`` or ``not_owner``.
    """

    def __init__(self, action: str, reason: str, principal_id: Optional[int] = None) -> None:
        super().__init__(
            f"권한이 없습니다: action={action} reason={reason}",
            code="AUTHORIZATION_ERROR",
            details={"action": action, "reason": reason, "principal_id": principal_id},
        )
        self.action = action
        self.reason = reason
        self.principal_id = principal_id


class ConflictError(ContentEngineError):
    """A slug or version-number race outlived the retry budget."""

    def __init__(self, message: str, attempts: int, post_id: Optional[int] = None) -> None:
        super().__init__(
            message,
            code="CONFLICT_ERROR",
            details={"attempts": attempts, "post_id": post_id},
        )
        self.attempts = attempts
        self.post_id = post_id
