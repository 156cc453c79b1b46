"""Playbook service: structural edits and task listing behind the permission gate.

Callers hand over a user id and a raw phase payload; this service resolves
the caller's role, checks it against the gate, stores the normalized tree on
the playbook and reconciles tasks, all inside one transaction.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..models.enums import Visibility
from ..models.playbook import Playbook
from ..models.task import Task
from ..repositories import PlaybookRepository, TaskRepository
from .access_service import AccessResolver
from .permission_service import Operation, authorize
from .playbook_tree import phases_to_json
from .reconcile_service import TaskReconciler

logger = logging.getLogger(__name__)


class PlaybookService:
    """Entry point for everything that changes or reads a playbook's structure."""

    def __init__(self, db: Session):
        self.db = db
        self.playbook_repo = PlaybookRepository(db)
        self.task_repo = TaskRepository(db)
        self.access = AccessResolver(db)
        self.reconciler = TaskReconciler(db)

    def create_playbook(
        self,
        owner_user_id: str,
        title: str = "",
        phases: Any = None,
        share_visibility: Visibility = Visibility.PRIVATE,
        folder_id: Optional[str] = None,
    ) -> Playbook:
        """Create a playbook and its initial tasks.

        Playbooks normally arrive from the generation pipeline; this is the
        hand-off point it calls.
        """
        playbook = self.playbook_repo.create(
            owner_user_id=owner_user_id,
            title=title.strip(),
            share_visibility=share_visibility,
            folder_id=folder_id,
        )
        normalized = self.reconciler.normalize(playbook.id, phases)
        self.playbook_repo.set_phases(playbook, phases_to_json(normalized))
        self.reconciler.reconcile(playbook.id, owner_user_id, normalized, commit=False)
        self.db.commit()
        self.db.refresh(playbook)
        logger.info(f"Created playbook {playbook.id} with {len(playbook.tasks)} tasks")
        return playbook

    def get_playbook(self, playbook_id: str, user_id: Optional[str]) -> Playbook:
        access = self.access.resolve_access(playbook_id, user_id)
        authorize(access, Operation.READ)
        return access.playbook

    def update_phases(
        self,
        playbook_id: str,
        user_id: Optional[str],
        phases: Any,
        fallback: Any = None,
    ) -> tuple[Playbook, List[Task]]:
        """Replace the playbook's phases and reconcile its tasks.

        An empty payload without a usable fallback clears the playbook: the
        stored phases become ``[]`` and every task is deleted.
        """
        access = self.access.resolve_access(playbook_id, user_id)
        authorize(access, Operation.EDIT_STRUCTURE)
        playbook = access.playbook

        normalized = self.reconciler.normalize(playbook_id, phases, fallback)
        if not normalized:
            logger.info(f"Clearing all tasks of playbook {playbook_id}")

        # Staged, not committed: the reconciler commits both or rolls back both.
        playbook.phases = phases_to_json(normalized)
        tasks = self.reconciler.reconcile(playbook_id, user_id, normalized)

        self.db.refresh(playbook)
        return playbook, tasks

    def list_tasks(self, playbook_id: str, user_id: Optional[str]) -> List[Task]:
        """Tasks with their events, in (phase_id, item_index) order."""
        access = self.access.resolve_access(playbook_id, user_id)
        authorize(access, Operation.READ)
        return self.task_repo.list_for_playbook(playbook_id, with_events=True)
