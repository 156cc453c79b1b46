"""Folder API: the caller's own folder tree and viewer grants on it.

Folders are always scoped to the caller; another user's folder id behaves
as if it did not exist.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from typing import List

from ..core.auth import AuthContext, require_user
from ..database import get_db
from ..schemas.sharing import (
    FolderCreate,
    FolderMemberCreate,
    FolderMemberResponse,
    FolderParentUpdate,
    FolderResponse,
)
from ..services.sharing_service import SharingService

router = APIRouter(prefix="/api/folders", tags=["folders"])


def _folder_member_response(grant, user) -> FolderMemberResponse:
    return FolderMemberResponse(
        folder_id=grant.folder_id,
        member_user_id=user.id,
        email=user.email,
        display_name=user.display_name or "",
        role=grant.role,
        created_at=grant.created_at,
    )


# -- Shared with me -------------------------------------------------------
# Declared before /{folder_id} routes so the literal path wins.

@router.get("/shared-with-me", response_model=List[FolderResponse])
def list_shared_folders(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    """Folders other users have shared with the caller."""
    return SharingService(db).list_shared_folders(auth.user_id)


# -- Folder tree ------------------------------------------------------------

@router.post("", response_model=FolderResponse, status_code=201)
def create_folder(
    data: FolderCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    return SharingService(db).create_folder(auth.user_id, data.name, data.parent_id)


@router.put("/{folder_id}/parent", response_model=FolderResponse)
def move_folder(
    folder_id: str,
    data: FolderParentUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    """Re-parent a folder (null moves it to the root)."""
    return SharingService(db).move_folder(folder_id, auth.user_id, data.parent_id)


# -- Folder members -----------------------------------------------------------

@router.get("/{folder_id}/members", response_model=List[FolderMemberResponse])
def list_folder_members(
    folder_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    rows = SharingService(db).list_folder_members(folder_id, auth.user_id)
    return [_folder_member_response(grant, user) for grant, user in rows]


@router.post("/{folder_id}/members", response_model=FolderMemberResponse)
def share_folder(
    folder_id: str,
    data: FolderMemberCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    """Grant viewer access on this folder and everything under it."""
    grant, user = SharingService(db).share_folder(folder_id, auth.user_id, data.email)
    return _folder_member_response(grant, user)


@router.delete("/{folder_id}/members/{member_user_id}", status_code=204)
def unshare_folder(
    folder_id: str,
    member_user_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_user),
):
    SharingService(db).unshare_folder(folder_id, auth.user_id, member_user_id)
    return Response(status_code=204)
