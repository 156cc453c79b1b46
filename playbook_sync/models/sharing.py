"""Sharing models: direct playbook members, folders and folder members.

Two grant mechanisms exist besides ownership:
    PlaybookMember: per-playbook editor/viewer role, only honoured while the
                    playbook's share_visibility is ``circle``.
    FolderMember  : viewer grant on a folder, inherited by every playbook
                    filed anywhere under that folder's subtree. Scoped to the
                    folder owner's tree through ``owner_user_id``.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.sql import func
from ..database import Base


class PlaybookMember(Base):
    """Direct (circle) membership on one playbook."""

    __tablename__ = "playbook_members"
    __table_args__ = (
        Index("ix_playbook_members_user_id", "user_id"),
    )

    playbook_id = Column(String(50), ForeignKey("playbooks.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role = Column(String(20), nullable=False)  # editor | viewer
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Folder(Base):
    """A node in one user's folder tree."""

    __tablename__ = "folders"
    __table_args__ = (
        Index("ix_folders_owner_user_id", "owner_user_id"),
        Index("ix_folders_parent_id", "parent_id"),
    )

    id = Column(String(50), primary_key=True)
    owner_user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(String(50), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class FolderMember(Base):
    """Viewer grant on a folder subtree of ``owner_user_id``'s tree."""

    __tablename__ = "folder_members"
    __table_args__ = (
        Index("ix_folder_members_member_user_id", "member_user_id"),
    )

    folder_id = Column(String(50), ForeignKey("folders.id", ondelete="CASCADE"), primary_key=True)
    owner_user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    member_user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role = Column(String(20), nullable=False, default="viewer")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
