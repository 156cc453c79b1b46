"""Repository for membership grants and the folder tree."""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.sharing import Folder, FolderMember, PlaybookMember
from ..models.user import User


class SharingRepository:
    """CRUD for playbook_members, folders and folder_members."""

    def __init__(self, db: Session):
        self.db = db

    # --- Direct playbook members ---

    def get_member(self, playbook_id: str, user_id: str) -> Optional[PlaybookMember]:
        return (
            self.db.query(PlaybookMember)
            .filter(PlaybookMember.playbook_id == playbook_id, PlaybookMember.user_id == user_id)
            .first()
        )

    def upsert_member(self, playbook_id: str, user_id: str, role: str) -> PlaybookMember:
        member = self.get_member(playbook_id, user_id)
        if member is None:
            member = PlaybookMember(playbook_id=playbook_id, user_id=user_id, role=role)
            self.db.add(member)
        else:
            member.role = role
        self.db.flush()
        return member

    def delete_member(self, playbook_id: str, user_id: str) -> bool:
        member = self.get_member(playbook_id, user_id)
        if member is None:
            return False
        self.db.delete(member)
        self.db.flush()
        return True

    def list_members(self, playbook_id: str) -> List[tuple[PlaybookMember, User]]:
        return (
            self.db.query(PlaybookMember, User)
            .join(User, User.id == PlaybookMember.user_id)
            .filter(PlaybookMember.playbook_id == playbook_id)
            .order_by(PlaybookMember.created_at, User.email)
            .all()
        )

    # --- Folders ---

    def get_folder(self, folder_id: str) -> Optional[Folder]:
        return self.db.query(Folder).filter(Folder.id == folder_id).first()

    def get_parent_id(self, folder_id: str) -> Optional[str]:
        """Parent of *folder_id*, or None for a root or missing folder."""
        row = self.db.query(Folder.parent_id).filter(Folder.id == folder_id).first()
        return row[0] if row else None

    def create_folder(self, owner_user_id: str, name: str, parent_id: Optional[str] = None) -> Folder:
        folder = Folder(
            id=f"fld-{uuid.uuid4().hex}",
            owner_user_id=owner_user_id,
            name=name,
            parent_id=parent_id,
        )
        self.db.add(folder)
        self.db.flush()
        return folder

    def set_parent(self, folder: Folder, parent_id: Optional[str]) -> Folder:
        folder.parent_id = parent_id
        self.db.flush()
        return folder

    # --- Folder members ---

    def get_folder_member(self, folder_id: str, owner_user_id: str, member_user_id: str) -> Optional[FolderMember]:
        return (
            self.db.query(FolderMember)
            .filter(
                FolderMember.folder_id == folder_id,
                FolderMember.owner_user_id == owner_user_id,
                FolderMember.member_user_id == member_user_id,
            )
            .first()
        )

    def upsert_folder_member(self, folder_id: str, owner_user_id: str, member_user_id: str) -> FolderMember:
        member = self.get_folder_member(folder_id, owner_user_id, member_user_id)
        if member is None:
            member = FolderMember(
                folder_id=folder_id,
                owner_user_id=owner_user_id,
                member_user_id=member_user_id,
                role="viewer",
            )
            self.db.add(member)
            self.db.flush()
        return member

    def delete_folder_member(self, folder_id: str, owner_user_id: str, member_user_id: str) -> bool:
        member = self.get_folder_member(folder_id, owner_user_id, member_user_id)
        if member is None:
            return False
        self.db.delete(member)
        self.db.flush()
        return True

    def list_folder_members(self, folder_id: str, owner_user_id: str) -> List[tuple[FolderMember, User]]:
        return (
            self.db.query(FolderMember, User)
            .join(User, User.id == FolderMember.member_user_id)
            .filter(FolderMember.folder_id == folder_id, FolderMember.owner_user_id == owner_user_id)
            .order_by(FolderMember.created_at, User.email)
            .all()
        )

    def list_folders_shared_with(self, member_user_id: str) -> List[Folder]:
        return (
            self.db.query(Folder)
            .join(
                FolderMember,
                (FolderMember.folder_id == Folder.id)
                & (FolderMember.owner_user_id == Folder.owner_user_id),
            )
            .filter(FolderMember.member_user_id == member_user_id)
            .order_by(Folder.name)
            .all()
        )


class UserRepository:
    """Lookup of accounts owned by the authentication subsystem."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def create(self, email: str, display_name: str = "", user_id: Optional[str] = None) -> User:
        user = User(
            id=user_id or f"usr-{uuid.uuid4().hex}",
            email=email.strip().lower(),
            display_name=display_name,
        )
        self.db.add(user)
        self.db.flush()
        return user
