"""Data access repositories."""

from .base import BaseRepository
from .playbook_repository import PlaybookRepository
from .task_repository import TaskRepository
from .sharing_repository import SharingRepository, UserRepository

__all__ = [
    "BaseRepository",
    "PlaybookRepository",
    "TaskRepository",
    "SharingRepository",
    "UserRepository",
]
