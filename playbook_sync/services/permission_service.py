"""Permission checking: a static operation → roles table.

This is the ONE place where permission rules are defined. Every entry point
resolves the caller's role with ``access_service.resolve_access`` and then
asks this module whether that role may perform the operation.

Design:
    - Roles: owner > editor > viewer > none
    - Operations: read, edit_structure, update_task, manage
    - ``is_allowed`` is a pure function: no state, no I/O
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from ..exceptions import ForbiddenError, PlaybookNotFoundError
from ..models.enums import Role

if TYPE_CHECKING:
    from .access_service import AccessResult


class Operation(str, Enum):
    """Kinds of operation an entry point can perform on a playbook."""
    READ = "read"                      # playbook, tasks, events
    EDIT_STRUCTURE = "edit_structure"  # reconcile phases
    UPDATE_TASK = "update_task"        # checked / status, task events
    MANAGE = "manage"                  # visibility, members, folder filing, metadata


_OPERATION_ROLES: dict[Operation, frozenset[Role]] = {
    Operation.READ: frozenset({Role.OWNER, Role.EDITOR, Role.VIEWER}),
    Operation.EDIT_STRUCTURE: frozenset({Role.OWNER, Role.EDITOR}),
    Operation.UPDATE_TASK: frozenset({Role.OWNER, Role.EDITOR}),
    Operation.MANAGE: frozenset({Role.OWNER}),
}


def is_allowed(operation: Operation, role: Role) -> bool:
    """True if *role* may perform *operation*."""
    return role in _OPERATION_ROLES.get(Operation(operation), frozenset())


def allowed_roles(operation: Operation) -> frozenset[Role]:
    return _OPERATION_ROLES.get(Operation(operation), frozenset())


def authorize(access: AccessResult, operation: Operation) -> None:
    """Raise unless the resolved access permits *operation*.

    A ``none`` role is reported as "not found" on every path so that
    unauthorized users cannot probe which playbook ids exist. A known but
    insufficient role is reported as forbidden.
    """
    if access.playbook is None or access.role == Role.NONE:
        raise PlaybookNotFoundError(access.playbook_id)
    if not is_allowed(operation, access.role):
        raise ForbiddenError(
            f"Role '{access.role.value}' cannot perform '{Operation(operation).value}' on this playbook"
        )
