"""Task progress and timeline events.

Reconciliation owns a task's position; this module owns its progress: the
checked flag, the status, and the user-written event timeline.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..exceptions import ValidationError
from ..models.enums import TaskEventType, TaskStatus, parse_enum
from ..models.task import Task, TaskEvent
from ..repositories import TaskRepository
from .access_service import AccessResolver
from .permission_service import Operation, authorize

logger = logging.getLogger(__name__)


def resolve_progress(
    current_status: str,
    current_checked: bool,
    checked: Optional[bool] = None,
    status: Optional[str] = None,
) -> tuple[str, bool]:
    """Combine a requested change with the current state.

    An explicit status wins: ``completed`` checks the task, anything else
    unchecks it unless ``checked`` was sent as well. A bare ``checked`` drives
    the status: checking completes the task (a blocked task stays blocked),
    unchecking a completed task puts it back to pending.
    """
    next_status = status if status is not None else current_status
    next_checked = checked if checked is not None else current_checked

    if status is not None:
        if status == TaskStatus.COMPLETED.value:
            next_checked = True
        elif checked is None:
            next_checked = False
    elif checked is not None:
        if checked and current_status != TaskStatus.BLOCKED.value:
            next_status = TaskStatus.COMPLETED.value
        elif not checked and current_status == TaskStatus.COMPLETED.value:
            next_status = TaskStatus.PENDING.value

    return next_status, next_checked


class TaskService:
    """Checked/status updates and event notes on individual tasks."""

    def __init__(self, db: Session, event_max_length: Optional[int] = None):
        self.db = db
        self.task_repo = TaskRepository(db)
        self.access = AccessResolver(db)
        self.event_max_length = event_max_length or get_settings().task_event_max_length

    def update_task_state(
        self,
        playbook_id: str,
        task_id: str,
        user_id: Optional[str],
        checked: Optional[bool] = None,
        status: Optional[str] = None,
    ) -> Task:
        """Apply a checked and/or status change, recording automatic notes."""
        if checked is None and status is None:
            raise ValidationError("Provide checked or status to update the task")
        if status is not None:
            status = parse_enum(TaskStatus, status, "status").value

        authorize(self.access.resolve_access(playbook_id, user_id), Operation.UPDATE_TASK)
        task = self.task_repo.get_in_playbook(playbook_id, task_id)

        previous_status, previous_checked = task.status, task.checked
        next_status, next_checked = resolve_progress(previous_status, previous_checked, checked, status)

        task.status = next_status
        task.checked = next_checked
        if next_status == TaskStatus.COMPLETED.value:
            if task.completed_at is None:
                task.completed_at = datetime.now(timezone.utc)
        else:
            task.completed_at = None

        if next_status != previous_status:
            self.task_repo.add_event(
                task.id,
                user_id,
                TaskEventType.NOTE.value,
                f"Status changed: {previous_status} -> {next_status}",
                {"automatic": True, "kind": "status_change"},
            )
        if next_checked != previous_checked:
            self.task_repo.add_event(
                task.id,
                user_id,
                TaskEventType.NOTE.value,
                "Marked as done" if next_checked else "Marked as not done",
                {"automatic": True, "kind": "check_toggle"},
            )

        self.db.commit()
        self.db.refresh(task)
        logger.info(
            "Task state updated",
            extra={"playbook_id": playbook_id, "task_id": task_id, "status": next_status, "checked": next_checked},
        )
        return task

    def add_task_event(
        self,
        playbook_id: str,
        task_id: str,
        user_id: Optional[str],
        event_type: str,
        content: str,
    ) -> TaskEvent:
        event_type = parse_enum(TaskEventType, event_type, "event_type").value
        content = (content or "").strip()
        if not content:
            raise ValidationError("Event content is required", field="content")
        if len(content) > self.event_max_length:
            raise ValidationError(
                f"Event content cannot exceed {self.event_max_length} characters",
                field="content",
            )

        authorize(self.access.resolve_access(playbook_id, user_id), Operation.UPDATE_TASK)
        task = self.task_repo.get_in_playbook(playbook_id, task_id)

        event = self.task_repo.add_event(task.id, user_id, event_type, content)
        self.db.commit()
        self.db.refresh(event)
        return event

    def list_events(self, playbook_id: str, task_id: str, user_id: Optional[str]) -> list[TaskEvent]:
        authorize(self.access.resolve_access(playbook_id, user_id), Operation.READ)
        task = self.task_repo.get_in_playbook(playbook_id, task_id)
        return self.task_repo.list_events(task.id)
