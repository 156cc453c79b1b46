"""Task and task event schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional


class TaskEventResponse(BaseModel):
    id: str
    task_id: str
    user_id: Optional[str] = None
    event_type: str
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="event_metadata")
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TaskResponse(BaseModel):
    """A task as of the latest sync, with its progress."""
    id: str
    playbook_id: str
    phase_id: int
    phase_title: str
    item_index: int
    item_text: str
    node_key: str
    parent_node_key: Optional[str] = None
    depth: int
    position_path: str
    checked: bool
    status: str
    due_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TaskWithEventsResponse(TaskResponse):
    events: List[TaskEventResponse] = []


class TaskUpdate(BaseModel):
    """Progress change. At least one field is required."""
    checked: Optional[bool] = None
    status: Optional[str] = None


class TaskEventCreate(BaseModel):
    event_type: str = "note"
    content: str
