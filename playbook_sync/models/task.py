"""Task model and the collaboration records hanging off it.

A Task is the durable record for one playbook item. Everything users attach
to an item (events, attachments, comments, likes, follows, views) references
the task id with ON DELETE CASCADE, so the reconciler decides their fate by
keeping or dropping the task row.
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .enums import TaskStatus


class Task(Base):
    """One phase item of a playbook, carrying progress and collaboration state."""

    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("playbook_id", "node_key", name="uq_tasks_playbook_node_key"),
        UniqueConstraint("playbook_id", "phase_id", "item_index", name="uq_tasks_playbook_position"),
        Index("ix_tasks_playbook_id", "playbook_id"),
    )

    id = Column(String(50), primary_key=True)
    playbook_id = Column(String(50), ForeignKey("playbooks.id", ondelete="CASCADE"), nullable=False)

    # Position as of the last sync
    phase_id = Column(Integer, nullable=False)
    phase_title = Column(Text, nullable=False, default="")
    item_index = Column(Integer, nullable=False)
    item_text = Column(Text, nullable=False)
    node_key = Column(String(64), nullable=False)  # "<phase>.<index>", see NodeKey
    parent_node_key = Column(String(64), nullable=True)
    depth = Column(Integer, nullable=False, default=1)
    position_path = Column(String(255), nullable=False)  # "2.1.3"

    # Progress
    checked = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default=TaskStatus.PENDING.value)
    due_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    playbook = relationship("Playbook", back_populates="tasks")

    # passive_deletes: the database cascade removes children, the ORM does not
    # load them just to delete them.
    events = relationship(
        "TaskEvent", cascade="all, delete-orphan", passive_deletes=True,
        order_by="TaskEvent.created_at",
    )
    attachments = relationship("TaskAttachment", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("TaskComment", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("TaskLike", cascade="all, delete-orphan", passive_deletes=True)
    follows = relationship("TaskFollow", cascade="all, delete-orphan", passive_deletes=True)
    views = relationship("TaskView", cascade="all, delete-orphan", passive_deletes=True)


class TaskEvent(Base):
    """Timeline entry on a task: a note, pending action, blocker or resolution."""

    __tablename__ = "task_events"
    __table_args__ = (
        Index("ix_task_events_task_id", "task_id"),
    )

    id = Column(String(50), primary_key=True)
    task_id = Column(String(50), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(50), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    event_type = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    event_metadata = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TaskAttachment(Base):
    """File, link or image attached to a task."""

    __tablename__ = "task_attachments"
    __table_args__ = (
        Index("ix_task_attachments_task_id", "task_id"),
    )

    id = Column(String(50), primary_key=True)
    task_id = Column(String(50), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(50), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    attachment_type = Column(String(20), nullable=False)  # pdf | image | audio | youtube_link | note
    storage_provider = Column(String(20), nullable=False, default="external")
    url = Column(Text, nullable=False)
    title = Column(String(255), nullable=True)
    mime_type = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TaskComment(Base):
    """Threaded comment; replies point at their parent comment."""

    __tablename__ = "task_comments"
    __table_args__ = (
        Index("ix_task_comments_task_id", "task_id"),
    )

    id = Column(String(50), primary_key=True)
    task_id = Column(String(50), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(50), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    parent_comment_id = Column(String(50), ForeignKey("task_comments.id", ondelete="CASCADE"), nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class TaskLike(Base):
    __tablename__ = "task_likes"

    task_id = Column(String(50), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TaskFollow(Base):
    __tablename__ = "task_follows"

    task_id = Column(String(50), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TaskView(Base):
    __tablename__ = "task_views"

    task_id = Column(String(50), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(50), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    viewed_at = Column(DateTime(timezone=True), server_default=func.now())
