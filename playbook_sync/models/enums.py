"""String enums shared by models, schemas and services."""

from enum import Enum

from ..exceptions import ValidationError


class Visibility(str, Enum):
    """Share mode of a playbook. Direct members only count under CIRCLE."""
    PRIVATE = "private"
    CIRCLE = "circle"
    UNLISTED = "unlisted"
    PUBLIC = "public"


class Role(str, Enum):
    """Effective role of a user on one playbook."""
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"
    NONE = "none"


class MemberRole(str, Enum):
    """Roles grantable through direct (circle) membership."""
    EDITOR = "editor"
    VIEWER = "viewer"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"


class TaskEventType(str, Enum):
    NOTE = "note"
    PENDING_ACTION = "pending_action"
    BLOCKER = "blocker"
    RESOLVED = "resolved"


def parse_enum(enum_cls, value, field: str):
    """Coerce *value* into *enum_cls* or raise a 400 naming the allowed values."""
    try:
        return enum_cls(value.strip() if isinstance(value, str) else value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field}. Must be one of: {allowed}", field=field)
