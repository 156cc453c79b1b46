"""Pydantic schemas for API validation."""

from .task import (
    TaskResponse,
    TaskWithEventsResponse,
    TaskEventResponse,
    TaskUpdate,
    TaskEventCreate,
)
from .playbook import (
    PhasesUpdate,
    PhasesUpdateResponse,
    PlaybookResponse,
)
from .sharing import (
    VisibilityUpdate,
    VisibilityResponse,
    MemberCreate,
    MemberResponse,
    PlaybookFolderUpdate,
    FolderCreate,
    FolderParentUpdate,
    FolderResponse,
    FolderMemberCreate,
    FolderMemberResponse,
)

__all__ = [
    "TaskResponse",
    "TaskWithEventsResponse",
    "TaskEventResponse",
    "TaskUpdate",
    "TaskEventCreate",
    "PhasesUpdate",
    "PhasesUpdateResponse",
    "PlaybookResponse",
    "VisibilityUpdate",
    "VisibilityResponse",
    "MemberCreate",
    "MemberResponse",
    "PlaybookFolderUpdate",
    "FolderCreate",
    "FolderParentUpdate",
    "FolderResponse",
    "FolderMemberCreate",
    "FolderMemberResponse",
]
