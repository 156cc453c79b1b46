"""Tests for the permission gate: a pure operation → roles table."""

import pytest

from playbook_sync.exceptions import ForbiddenError, PlaybookNotFoundError
from playbook_sync.models.enums import Role
from playbook_sync.services.access_service import AccessResult
from playbook_sync.services.permission_service import Operation, allowed_roles, authorize, is_allowed

_PLAYBOOK = object()


class TestIsAllowed:

    @pytest.mark.parametrize("operation,role,expected", [
        (Operation.READ, Role.OWNER, True),
        (Operation.READ, Role.EDITOR, True),
        (Operation.READ, Role.VIEWER, True),
        (Operation.READ, Role.NONE, False),
        (Operation.EDIT_STRUCTURE, Role.OWNER, True),
        (Operation.EDIT_STRUCTURE, Role.EDITOR, True),
        (Operation.EDIT_STRUCTURE, Role.VIEWER, False),
        (Operation.EDIT_STRUCTURE, Role.NONE, False),
        (Operation.UPDATE_TASK, Role.EDITOR, True),
        (Operation.UPDATE_TASK, Role.VIEWER, False),
        (Operation.MANAGE, Role.OWNER, True),
        (Operation.MANAGE, Role.EDITOR, False),
        (Operation.MANAGE, Role.VIEWER, False),
    ])
    def test_table(self, operation, role, expected):
        assert is_allowed(operation, role) is expected

    def test_accepts_plain_strings(self):
        assert is_allowed("read", Role.VIEWER)

    def test_none_is_never_allowed(self):
        for operation in Operation:
            assert Role.NONE not in allowed_roles(operation)


class TestAuthorize:

    def test_allowed_role_passes(self):
        authorize(AccessResult("pb-1", _PLAYBOOK, Role.EDITOR), Operation.EDIT_STRUCTURE)

    def test_none_role_reads_as_not_found(self):
        with pytest.raises(PlaybookNotFoundError) as exc_info:
            authorize(AccessResult("pb-1", _PLAYBOOK, Role.NONE), Operation.READ)
        assert exc_info.value.status_code == 404

    def test_missing_playbook_reads_as_not_found(self):
        with pytest.raises(PlaybookNotFoundError):
            authorize(AccessResult("pb-1", None, Role.NONE), Operation.MANAGE)

    def test_insufficient_role_is_forbidden(self):
        with pytest.raises(ForbiddenError) as exc_info:
            authorize(AccessResult("pb-1", _PLAYBOOK, Role.VIEWER), Operation.EDIT_STRUCTURE)
        assert exc_info.value.status_code == 403
