"""Repository for playbook database operations."""

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import PlaybookNotFoundError
from ..models.enums import Visibility
from ..models.playbook import Playbook
from .base import BaseRepository


class PlaybookRepository(BaseRepository[Playbook]):
    """Data access layer for playbooks."""

    model_class = Playbook
    not_found_error = PlaybookNotFoundError

    def __init__(self, db: Session):
        super().__init__(db)

    def create(
        self,
        owner_user_id: str,
        title: str = "",
        phases: Optional[list] = None,
        share_visibility: Visibility = Visibility.PRIVATE,
        folder_id: Optional[str] = None,
        playbook_id: Optional[str] = None,
    ) -> Playbook:
        playbook = Playbook(
            id=playbook_id or f"pb-{uuid.uuid4().hex}",
            owner_user_id=owner_user_id,
            title=title,
            phases=phases or [],
            share_visibility=Visibility(share_visibility).value,
            folder_id=folder_id,
        )
        self.db.add(playbook)
        self.db.flush()
        return playbook

    def set_phases(self, playbook: Playbook, phases: list) -> Playbook:
        playbook.phases = phases
        self.db.flush()
        return playbook

    def set_visibility(self, playbook: Playbook, visibility: Visibility) -> Playbook:
        playbook.share_visibility = Visibility(visibility).value
        self.db.flush()
        return playbook

    def set_folder(self, playbook: Playbook, folder_id: Optional[str]) -> Playbook:
        playbook.folder_id = folder_id
        self.db.flush()
        return playbook
