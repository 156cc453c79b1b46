"""Playbook structure and task progress API.

Thin layer: resolves the acting user from the bearer token and delegates to
PlaybookService / TaskService, which own permission checks and transactions.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ..core.auth import AuthContext, get_settings, require_user
from ..core.config import Settings
from ..database import get_db
from ..schemas.playbook import PhasesUpdate, PhasesUpdateResponse, PlaybookResponse
from ..schemas.task import (
    TaskEventCreate,
    TaskEventResponse,
    TaskResponse,
    TaskUpdate,
    TaskWithEventsResponse,
)
from ..services.playbook_service import PlaybookService
from ..services.task_service import TaskService

router = APIRouter(prefix="/api/playbooks", tags=["playbooks"])


@router.get("/{playbook_id}/tasks", response_model=List[TaskWithEventsResponse])
def list_tasks(
    playbook_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    """All tasks of a playbook with their event timelines."""
    service = PlaybookService(db)
    return service.list_tasks(playbook_id, auth.user_id)


@router.put("/{playbook_id}/phases", response_model=PhasesUpdateResponse)
def update_phases(
    playbook_id: str,
    data: PhasesUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    """Replace the phase tree and reconcile tasks against it.

    Items that survive the edit keep their task (and its progress, events and
    comments). Send ``{"phases": []}`` to clear the playbook.
    """
    service = PlaybookService(db)
    playbook, tasks = service.update_phases(playbook_id, auth.user_id, data.phases, fallback=data.fallback)
    return PhasesUpdateResponse(
        playbook=PlaybookResponse.model_validate(playbook),
        tasks=[TaskResponse.model_validate(task) for task in tasks],
    )


def get_task_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> TaskService:
    return TaskService(db, event_max_length=settings.task_event_max_length)


@router.patch("/{playbook_id}/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    playbook_id: str,
    task_id: str,
    data: TaskUpdate,
    service: TaskService = Depends(get_task_service),
    auth: AuthContext = Depends(require_user),
):
    """Update checked and/or status."""
    return service.update_task_state(
        playbook_id, task_id, auth.user_id, checked=data.checked, status=data.status,
    )


@router.get("/{playbook_id}/tasks/{task_id}/events", response_model=List[TaskEventResponse])
def list_task_events(
    playbook_id: str,
    task_id: str,
    service: TaskService = Depends(get_task_service),
    auth: AuthContext = Depends(require_user),
):
    return service.list_events(playbook_id, task_id, auth.user_id)


@router.post("/{playbook_id}/tasks/{task_id}/events", response_model=TaskEventResponse, status_code=201)
def add_task_event(
    playbook_id: str,
    task_id: str,
    data: TaskEventCreate,
    service: TaskService = Depends(get_task_service),
    auth: AuthContext = Depends(require_user),
):
    """Add a note, pending action, blocker or resolution to a task."""
    return service.add_task_event(playbook_id, task_id, auth.user_id, data.event_type, data.content)
