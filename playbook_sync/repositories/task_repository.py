"""Repository for task and task event database operations."""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from ..exceptions import TaskNotFoundError
from ..models.enums import TaskStatus
from ..models.task import Task, TaskEvent
from ..services.playbook_tree import FlatRow, NodeKey
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Data access layer for tasks. Never commits; the service owns the transaction."""

    model_class = Task
    not_found_error = TaskNotFoundError

    def __init__(self, db: Session):
        super().__init__(db)

    def list_for_playbook(self, playbook_id: str, with_events: bool = False) -> List[Task]:
        """All tasks of a playbook in (phase_id, item_index) order."""
        query = self.db.query(Task).filter(Task.playbook_id == playbook_id)
        if with_events:
            query = query.options(selectinload(Task.events))
        return query.order_by(Task.phase_id, Task.item_index).all()

    def get_in_playbook(self, playbook_id: str, task_id: str) -> Task:
        """Get a task that belongs to *playbook_id*. Raises TaskNotFoundError otherwise."""
        task = (
            self.db.query(Task)
            .filter(Task.id == task_id, Task.playbook_id == playbook_id)
            .first()
        )
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def create_from_row(self, playbook_id: str, row: FlatRow) -> Task:
        task = Task(
            id=self._generate_id("task"),
            playbook_id=playbook_id,
            checked=False,
            status=TaskStatus.PENDING.value,
        )
        self.apply_row(task, row)
        self.db.add(task)
        return task

    @staticmethod
    def apply_row(task: Task, row: FlatRow) -> None:
        """Write a flattened row's position and text onto *task*."""
        task.phase_id = row.phase_id
        task.phase_title = row.phase_title
        task.item_index = row.item_index
        task.item_text = row.item_text
        task.node_key = str(row.node_key)
        task.parent_node_key = str(row.parent_node_key) if row.parent_node_key else None
        task.depth = row.depth
        task.position_path = row.position_path

    @staticmethod
    def park(task: Task, slot: int) -> None:
        """Move *task* onto a sentinel position no real row can occupy."""
        key = NodeKey.sentinel(slot)
        task.phase_id = key.phase_id
        task.item_index = key.item_index
        task.node_key = str(key)

    def delete(self, task: Task) -> None:
        """Delete a task. Events, attachments, comments, likes, follows and
        views go with it through the foreign-key cascade."""
        self.db.delete(task)

    # --- Events ---

    def add_event(
        self,
        task_id: str,
        user_id: Optional[str],
        event_type: str,
        content: str,
        metadata: Optional[dict] = None,
    ) -> TaskEvent:
        event = TaskEvent(
            id=self._generate_id("evt"),
            task_id=task_id,
            user_id=user_id,
            event_type=event_type,
            content=content,
            event_metadata=metadata or {},
        )
        self.db.add(event)
        return event

    def list_events(self, task_id: str) -> List[TaskEvent]:
        return (
            self.db.query(TaskEvent)
            .filter(TaskEvent.task_id == task_id)
            .order_by(TaskEvent.created_at, TaskEvent.id)
            .all()
        )

    @staticmethod
    def _generate_id(prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex}"
