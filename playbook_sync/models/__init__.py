"""Database models."""

from .user import User
from .playbook import Playbook
from .task import Task, TaskEvent, TaskAttachment, TaskComment, TaskLike, TaskFollow, TaskView
from .sharing import PlaybookMember, Folder, FolderMember
from .enums import Visibility, Role, MemberRole, TaskStatus, TaskEventType

__all__ = [
    "User", "Playbook",
    "Task", "TaskEvent", "TaskAttachment", "TaskComment",
    "TaskLike", "TaskFollow", "TaskView",
    "PlaybookMember", "Folder", "FolderMember",
    "Visibility", "Role", "MemberRole", "TaskStatus", "TaskEventType",
]
