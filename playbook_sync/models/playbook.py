"""Playbook model: one generated or edited playbook ("extraction")."""

from sqlalchemy import Column, Index, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .enums import Visibility


class Playbook(Base):
    """A playbook: ordered phases of action items derived from one source."""

    __tablename__ = "playbooks"
    __table_args__ = (
        Index("ix_playbooks_owner_user_id", "owner_user_id"),
        Index("ix_playbooks_folder_id", "folder_id"),
    )

    id = Column(String(50), primary_key=True)
    owner_user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False, default="")

    # private | circle | unlisted | public
    share_visibility = Column(String(20), nullable=False, default=Visibility.PRIVATE.value)

    # Deleting a folder unfiles its playbooks rather than deleting them.
    folder_id = Column(String(50), ForeignKey("folders.id", ondelete="SET NULL"), nullable=True)

    # Latest normalized phase tree: [{"id": 1, "title": "...", "items": [...]}]
    phases = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    tasks = relationship(
        "Task",
        back_populates="playbook",
        cascade="all, delete-orphan",
        order_by="[Task.phase_id, Task.item_index]",
    )
    members = relationship("PlaybookMember", cascade="all, delete-orphan")
