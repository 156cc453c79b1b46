"""Playbook sharing API: visibility, direct members and folder filing. Owner only."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from typing import List

from ..core.auth import AuthContext, require_user
from ..database import get_db
from ..schemas.playbook import PlaybookResponse
from ..schemas.sharing import (
    MemberCreate,
    MemberResponse,
    PlaybookFolderUpdate,
    VisibilityResponse,
    VisibilityUpdate,
)
from ..services.sharing_service import SharingService

router = APIRouter(prefix="/api/playbooks", tags=["sharing"])


def _member_response(member, user) -> MemberResponse:
    return MemberResponse(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name or "",
        role=member.role,
        created_at=member.created_at,
    )


@router.get("/{playbook_id}/visibility", response_model=VisibilityResponse)
def get_visibility(
    playbook_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    playbook = SharingService(db).get_visibility(playbook_id, auth.user_id)
    return VisibilityResponse(playbook_id=playbook.id, visibility=playbook.share_visibility)


@router.put("/{playbook_id}/visibility", response_model=VisibilityResponse)
def set_visibility(
    playbook_id: str,
    data: VisibilityUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    """Change the share mode. Direct members only count under ``circle``."""
    playbook = SharingService(db).set_visibility(playbook_id, auth.user_id, data.visibility)
    return VisibilityResponse(playbook_id=playbook.id, visibility=playbook.share_visibility)


@router.get("/{playbook_id}/members", response_model=List[MemberResponse])
def list_members(
    playbook_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    rows = SharingService(db).list_members(playbook_id, auth.user_id)
    return [_member_response(member, user) for member, user in rows]


@router.post("/{playbook_id}/members", response_model=MemberResponse)
def upsert_member(
    playbook_id: str,
    data: MemberCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    """Add a member by e-mail or change an existing member's role."""
    member, user = SharingService(db).upsert_member(playbook_id, auth.user_id, data.email, data.role)
    return _member_response(member, user)


@router.delete("/{playbook_id}/members/{member_user_id}", status_code=204)
def remove_member(
    playbook_id: str,
    member_user_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    SharingService(db).remove_member(playbook_id, auth.user_id, member_user_id)
    return Response(status_code=204)


@router.put("/{playbook_id}/folder", response_model=PlaybookResponse)
def file_playbook(
    playbook_id: str,
    data: PlaybookFolderUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    """Move the playbook into one of the owner's folders (null for the root)."""
    return SharingService(db).file_playbook(playbook_id, auth.user_id, data.folder_id)
