"""Playbook and phase schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, List, Optional

from .task import TaskResponse


class PhasesUpdate(BaseModel):
    """Replacement phase tree for a playbook.

    ``phases`` is deliberately loose: items may be strings or
    ``{"text", "key", "children"}`` objects, and anything unusable is dropped
    during normalization rather than rejected. An empty list clears the
    playbook unless ``fallback`` supplies a structure.
    """
    phases: Any = Field(default_factory=list)
    fallback: Optional[Any] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "phases": [
                        {
                            "title": "Preparation",
                            "items": [
                                {"text": "Book the venue", "key": "1.0"},
                                {"text": "Send invites", "children": ["Draft the list"]},
                            ],
                        }
                    ]
                }
            ]
        }
    }


class PlaybookResponse(BaseModel):
    id: str
    owner_user_id: str
    title: str
    share_visibility: str
    folder_id: Optional[str] = None
    phases: List[Any] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PhasesUpdateResponse(BaseModel):
    """The stored phase tree (items stamped with their keys) and the resulting tasks."""
    playbook: PlaybookResponse
    tasks: List[TaskResponse] = Field(default_factory=list)
