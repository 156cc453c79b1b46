"""Access resolution: the effective role of a user on a playbook.

Precedence, first applicable rule wins and nothing lower can override it:

    1. owner  : the playbook's owner_user_id is the user
    2. viewer : a FolderMember grant on the playbook's folder or any ancestor,
                issued by the playbook's owner (grants on other owners'
                trees never match). Always viewer, never upgraded.
    3. member : the PlaybookMember role, only while share_visibility is
                ``circle``. A stale member row under any other mode is inert.
    4. none

Resolution never raises for "no access": callers get ``Role.NONE`` and pick
the transport-level answer themselves (see permission_service.authorize).
All reads are plain, non-locking queries.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from ..models.enums import MemberRole, Role, Visibility
from ..models.playbook import Playbook
from ..repositories.playbook_repository import PlaybookRepository
from ..repositories.sharing_repository import SharingRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessResult:
    """A playbook (None when it does not exist) and the user's role on it."""

    playbook_id: str
    playbook: Optional[Playbook]
    role: Role

    @property
    def has_access(self) -> bool:
        return self.playbook is not None and self.role != Role.NONE


class AccessResolver:
    """Resolves roles through ownership, folder inheritance and circle membership."""

    def __init__(self, db: Session):
        self.db = db
        self.playbook_repo = PlaybookRepository(db)
        self.sharing_repo = SharingRepository(db)

    def resolve_access(self, playbook_id: str, user_id: Optional[str]) -> AccessResult:
        playbook = self.playbook_repo.get_by_id_optional(playbook_id)
        if playbook is None:
            return AccessResult(playbook_id, None, Role.NONE)
        return AccessResult(playbook_id, playbook, self.resolve_role(playbook, user_id))

    def resolve_role(self, playbook: Playbook, user_id: Optional[str]) -> Role:
        if not user_id:
            return Role.NONE

        if playbook.owner_user_id == user_id:
            return Role.OWNER

        if playbook.folder_id and self._has_folder_grant(playbook, user_id):
            return Role.VIEWER

        if playbook.share_visibility == Visibility.CIRCLE.value:
            member = self.sharing_repo.get_member(playbook.id, user_id)
            if member is not None and member.role in (MemberRole.EDITOR.value, MemberRole.VIEWER.value):
                return Role(member.role)

        return Role.NONE

    def folder_ancestry(self, folder_id: Optional[str]) -> Iterator[str]:
        """Yield *folder_id* and then each ancestor up to the root.

        Iterative with a visited set, so a corrupted parent chain that loops
        ends the walk instead of spinning forever.
        """
        visited: set[str] = set()
        current = folder_id
        while current and current not in visited:
            visited.add(current)
            yield current
            current = self.sharing_repo.get_parent_id(current)
        if current:
            logger.warning(
                "Folder cycle detected during ancestor walk",
                extra={"folder_id": folder_id, "repeated_folder_id": current},
            )

    def _has_folder_grant(self, playbook: Playbook, user_id: str) -> bool:
        for folder_id in self.folder_ancestry(playbook.folder_id):
            grant = self.sharing_repo.get_folder_member(folder_id, playbook.owner_user_id, user_id)
            if grant is not None:
                return True
        return False
