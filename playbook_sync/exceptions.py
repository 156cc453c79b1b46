"""Custom exception hierarchy for the playbook sync service."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Playbook and task errors
    PLAYBOOK_NOT_FOUND = "PLAYBOOK_NOT_FOUND"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    TASK_SYNC_FAILED = "TASK_SYNC_FAILED"

    # Sharing errors
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PlaybookException(Exception):
    """
    Base exception for all playbook sync errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class PlaybookNotFoundError(PlaybookException):
    """Playbook missing, or invisible to the requesting user."""

    def __init__(self, playbook_id: str):
        super().__init__(
            f"Playbook not found: {playbook_id}",
            ErrorCode.PLAYBOOK_NOT_FOUND,
            status_code=404,
            details={"playbook_id": playbook_id}
        )


class TaskNotFoundError(PlaybookException):
    """Task not found in the given playbook."""

    def __init__(self, task_id: str):
        super().__init__(
            f"Task not found: {task_id}",
            ErrorCode.TASK_NOT_FOUND,
            status_code=404,
            details={"task_id": task_id}
        )


class FolderNotFoundError(PlaybookException):
    """Folder not found, or owned by someone else."""

    def __init__(self, folder_id: str):
        super().__init__(
            f"Folder not found: {folder_id}",
            ErrorCode.FOLDER_NOT_FOUND,
            status_code=404,
            details={"folder_id": folder_id}
        )


class UserNotFoundError(PlaybookException):
    """No account matches the given e-mail."""

    def __init__(self, email: str):
        super().__init__(
            "No account exists with that email",
            ErrorCode.USER_NOT_FOUND,
            status_code=404,
            details={"email": email}
        )


class ValidationError(PlaybookException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(PlaybookException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(PlaybookException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class TaskSyncError(PlaybookException):
    """Reconciliation aborted; the previous task set is still authoritative."""

    def __init__(self, playbook_id: str, original_error: Optional[Exception] = None):
        details: Dict[str, Any] = {"playbook_id": playbook_id}
        if original_error:
            details["original_error"] = type(original_error).__name__

        super().__init__(
            "Task synchronization failed",
            ErrorCode.TASK_SYNC_FAILED,
            status_code=500,
            details=details
        )
