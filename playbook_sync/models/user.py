"""User model.

Accounts are created by the authentication subsystem. This service only
needs them as foreign-key targets and to look members up by e-mail.
"""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """Account referenced by playbooks, folders and membership grants."""

    __tablename__ = "users"

    id = Column(String(50), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)  # stored lower-cased
    display_name = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
