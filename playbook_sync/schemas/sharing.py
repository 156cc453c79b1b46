"""Visibility, membership and folder schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional


class VisibilityUpdate(BaseModel):
    visibility: str


class VisibilityResponse(BaseModel):
    playbook_id: str
    visibility: str


class MemberCreate(BaseModel):
    """Add or update a direct member by e-mail."""
    email: str
    role: str = "viewer"

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class MemberResponse(BaseModel):
    user_id: str
    email: str
    display_name: str = ""
    role: str
    created_at: Optional[datetime] = None


class PlaybookFolderUpdate(BaseModel):
    """Target folder; null files the playbook at the root."""
    folder_id: Optional[str] = None


class FolderCreate(BaseModel):
    name: str
    parent_id: Optional[str] = None


class FolderParentUpdate(BaseModel):
    parent_id: Optional[str] = None


class FolderResponse(BaseModel):
    id: str
    owner_user_id: str
    parent_id: Optional[str] = None
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class FolderMemberCreate(BaseModel):
    email: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class FolderMemberResponse(BaseModel):
    folder_id: str
    member_user_id: str
    email: str
    display_name: str = ""
    role: str
    created_at: Optional[datetime] = None
