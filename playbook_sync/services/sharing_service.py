"""Sharing management: visibility, direct members and the folder tree.

Every playbook operation here is owner-only (``Operation.MANAGE``). Folder
operations act on the caller's own tree: a folder that belongs to somebody
else is reported as not found.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..exceptions import FolderNotFoundError, UserNotFoundError, ValidationError
from ..models.enums import MemberRole, Visibility, parse_enum
from ..models.playbook import Playbook
from ..models.sharing import Folder, FolderMember, PlaybookMember
from ..models.user import User
from ..repositories import PlaybookRepository, SharingRepository, UserRepository
from .access_service import AccessResolver
from .permission_service import Operation, authorize

logger = logging.getLogger(__name__)

FOLDER_NAME_MAX_LENGTH = 255


class SharingService:
    """Owner-side management of who can see a playbook."""

    def __init__(self, db: Session):
        self.db = db
        self.playbook_repo = PlaybookRepository(db)
        self.sharing_repo = SharingRepository(db)
        self.user_repo = UserRepository(db)
        self.access = AccessResolver(db)

    # --- Playbook visibility ---

    def get_visibility(self, playbook_id: str, user_id: Optional[str]) -> Playbook:
        return self._managed_playbook(playbook_id, user_id)

    def set_visibility(self, playbook_id: str, user_id: Optional[str], visibility: str) -> Playbook:
        visibility = parse_enum(Visibility, visibility, "visibility")
        playbook = self._managed_playbook(playbook_id, user_id)
        self.playbook_repo.set_visibility(playbook, visibility)
        self.db.commit()
        self.db.refresh(playbook)
        logger.info(f"Playbook {playbook_id} visibility set to {visibility.value}")
        return playbook

    # --- Direct members ---

    def list_members(self, playbook_id: str, user_id: Optional[str]) -> List[tuple[PlaybookMember, User]]:
        self._managed_playbook(playbook_id, user_id)
        return self.sharing_repo.list_members(playbook_id)

    def upsert_member(
        self, playbook_id: str, user_id: Optional[str], email: str, role: str,
    ) -> tuple[PlaybookMember, User]:
        """Add a member by e-mail, or change the role of an existing one.

        The row takes effect only while the playbook is shared with its circle.
        """
        role = parse_enum(MemberRole, role, "role")
        playbook = self._managed_playbook(playbook_id, user_id)
        target = self._user_by_email(email)
        if target.id == playbook.owner_user_id:
            raise ValidationError("You cannot add yourself as a member", field="email")

        member = self.sharing_repo.upsert_member(playbook_id, target.id, role.value)
        self.db.commit()
        self.db.refresh(member)
        logger.info(f"Member {target.id} set to {role.value} on playbook {playbook_id}")
        return member, target

    def remove_member(self, playbook_id: str, user_id: Optional[str], member_user_id: str) -> bool:
        self._managed_playbook(playbook_id, user_id)
        removed = self.sharing_repo.delete_member(playbook_id, member_user_id)
        self.db.commit()
        return removed

    # --- Folder filing ---

    def file_playbook(self, playbook_id: str, user_id: Optional[str], folder_id: Optional[str]) -> Playbook:
        """Place a playbook in one of its owner's folders, or at the root with None."""
        playbook = self._managed_playbook(playbook_id, user_id)
        if folder_id is not None:
            self._owned_folder(folder_id, playbook.owner_user_id)
        self.playbook_repo.set_folder(playbook, folder_id)
        self.db.commit()
        self.db.refresh(playbook)
        return playbook

    # --- Folders ---

    def create_folder(self, owner_user_id: str, name: str, parent_id: Optional[str] = None) -> Folder:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Folder name is required", field="name")
        if len(name) > FOLDER_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Folder name cannot exceed {FOLDER_NAME_MAX_LENGTH} characters", field="name",
            )
        if parent_id is not None:
            self._owned_folder(parent_id, owner_user_id)

        folder = self.sharing_repo.create_folder(owner_user_id, name, parent_id)
        self.db.commit()
        self.db.refresh(folder)
        return folder

    def move_folder(self, folder_id: str, owner_user_id: str, parent_id: Optional[str]) -> Folder:
        """Re-parent a folder. Moving it under itself or its own subtree is rejected."""
        folder = self._owned_folder(folder_id, owner_user_id)
        if parent_id is not None:
            self._owned_folder(parent_id, owner_user_id)
            if folder_id in self.access.folder_ancestry(parent_id):
                raise ValidationError("A folder cannot be moved into its own subtree", field="parent_id")

        self.sharing_repo.set_parent(folder, parent_id)
        self.db.commit()
        self.db.refresh(folder)
        return folder

    def share_folder(self, folder_id: str, owner_user_id: str, email: str) -> tuple[FolderMember, User]:
        """Grant viewer access on the folder subtree to the account behind *email*."""
        self._owned_folder(folder_id, owner_user_id)
        target = self._user_by_email(email)
        if target.id == owner_user_id:
            raise ValidationError("You cannot share a folder with yourself", field="email")

        grant = self.sharing_repo.upsert_folder_member(folder_id, owner_user_id, target.id)
        self.db.commit()
        self.db.refresh(grant)
        logger.info(f"Folder {folder_id} shared with {target.id}")
        return grant, target

    def unshare_folder(self, folder_id: str, owner_user_id: str, member_user_id: str) -> bool:
        self._owned_folder(folder_id, owner_user_id)
        removed = self.sharing_repo.delete_folder_member(folder_id, owner_user_id, member_user_id)
        self.db.commit()
        return removed

    def list_folder_members(self, folder_id: str, owner_user_id: str) -> List[tuple[FolderMember, User]]:
        self._owned_folder(folder_id, owner_user_id)
        return self.sharing_repo.list_folder_members(folder_id, owner_user_id)

    def list_shared_folders(self, user_id: str) -> List[Folder]:
        """Folders other owners have shared with *user_id*."""
        return self.sharing_repo.list_folders_shared_with(user_id)

    # --- Helpers ---

    def _managed_playbook(self, playbook_id: str, user_id: Optional[str]) -> Playbook:
        access = self.access.resolve_access(playbook_id, user_id)
        authorize(access, Operation.MANAGE)
        return access.playbook

    def _owned_folder(self, folder_id: str, owner_user_id: str) -> Folder:
        folder = self.sharing_repo.get_folder(folder_id)
        if folder is None or folder.owner_user_id != owner_user_id:
            raise FolderNotFoundError(folder_id)
        return folder

    def _user_by_email(self, email: str) -> User:
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("Email is required", field="email")
        user = self.user_repo.get_by_email(email)
        if user is None:
            raise UserNotFoundError(email)
        return user
