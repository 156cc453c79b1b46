"""Tests for TaskService: progress coupling and task events."""

import pytest

from playbook_sync.exceptions import ForbiddenError, PlaybookNotFoundError, TaskNotFoundError, ValidationError
from playbook_sync.models.enums import Visibility
from playbook_sync.repositories import SharingRepository, TaskRepository
from playbook_sync.services.task_service import TaskService, resolve_progress


@pytest.fixture()
def first_task(db, make_playbook):
    playbook = make_playbook()
    return playbook, TaskRepository(db).list_for_playbook(playbook.id)[0]


def _kinds(events):
    return sorted(event.event_metadata.get("kind") for event in events)


class TestResolveProgress:

    @pytest.mark.parametrize("current,checked,status,expected", [
        (("pending", False), None, "completed", ("completed", True)),
        (("completed", True), None, "in_progress", ("in_progress", False)),
        (("completed", True), True, "in_progress", ("in_progress", True)),
        (("pending", False), True, None, ("completed", True)),
        (("blocked", False), True, None, ("blocked", True)),
        (("completed", True), False, None, ("pending", False)),
        (("in_progress", True), False, None, ("in_progress", False)),
    ])
    def test_coupling(self, current, checked, status, expected):
        assert resolve_progress(current[0], current[1], checked=checked, status=status) == expected


class TestUpdateTaskState:

    def test_checking_completes_and_logs_events(self, db, first_task, owner_id):
        playbook, task = first_task
        updated = TaskService(db).update_task_state(playbook.id, task.id, owner_id, checked=True)

        assert updated.checked is True
        assert updated.status == "completed"
        assert updated.completed_at is not None
        events = TaskRepository(db).list_events(task.id)
        assert _kinds(events) == ["check_toggle", "status_change"]
        status_note = next(e for e in events if e.event_metadata["kind"] == "status_change")
        assert status_note.content == "Status changed: pending -> completed"
        assert status_note.event_metadata["automatic"] is True
        assert status_note.event_type == "note"

    def test_reopening_clears_completed_at(self, db, first_task, owner_id):
        playbook, task = first_task
        service = TaskService(db)
        service.update_task_state(playbook.id, task.id, owner_id, status="completed")
        reopened = service.update_task_state(playbook.id, task.id, owner_id, checked=False)

        assert reopened.status == "pending"
        assert reopened.completed_at is None

    def test_no_change_logs_nothing(self, db, first_task, owner_id):
        playbook, task = first_task
        TaskService(db).update_task_state(playbook.id, task.id, owner_id, status="pending")
        assert TaskRepository(db).list_events(task.id) == []

    def test_requires_checked_or_status(self, db, first_task, owner_id):
        playbook, task = first_task
        with pytest.raises(ValidationError):
            TaskService(db).update_task_state(playbook.id, task.id, owner_id)

    def test_rejects_unknown_status(self, db, first_task, owner_id):
        playbook, task = first_task
        with pytest.raises(ValidationError) as exc_info:
            TaskService(db).update_task_state(playbook.id, task.id, owner_id, status="done")
        assert exc_info.value.details == {"field": "status"}

    def test_task_from_another_playbook_is_not_found(self, db, make_playbook, first_task, owner_id):
        playbook, _ = first_task
        other = make_playbook(title="Other")
        foreign_task = TaskRepository(db).list_for_playbook(other.id)[0]
        with pytest.raises(TaskNotFoundError):
            TaskService(db).update_task_state(playbook.id, foreign_task.id, owner_id, checked=True)

    def test_viewer_cannot_update(self, db, first_task, make_user):
        playbook, task = first_task
        viewer_id = make_user("viewer@example.com")
        playbook.share_visibility = Visibility.CIRCLE.value
        SharingRepository(db).upsert_member(playbook.id, viewer_id, "viewer")
        db.commit()

        with pytest.raises(ForbiddenError):
            TaskService(db).update_task_state(playbook.id, task.id, viewer_id, checked=True)

    def test_circle_editor_can_update(self, db, first_task, make_user):
        playbook, task = first_task
        editor_id = make_user("editor@example.com")
        playbook.share_visibility = Visibility.CIRCLE.value
        SharingRepository(db).upsert_member(playbook.id, editor_id, "editor")
        db.commit()

        updated = TaskService(db).update_task_state(playbook.id, task.id, editor_id, status="blocked")
        assert updated.status == "blocked"

    def test_stranger_sees_not_found(self, db, first_task, make_user):
        playbook, task = first_task
        stranger_id = make_user("stranger@example.com")
        with pytest.raises(PlaybookNotFoundError):
            TaskService(db).update_task_state(playbook.id, task.id, stranger_id, checked=True)


class TestAddTaskEvent:

    def test_adds_trimmed_event(self, db, first_task, owner_id):
        playbook, task = first_task
        event = TaskService(db).add_task_event(playbook.id, task.id, owner_id, "blocker", "  Waiting on legal  ")

        assert event.event_type == "blocker"
        assert event.content == "Waiting on legal"
        assert event.user_id == owner_id
        assert [e.id for e in TaskRepository(db).list_events(task.id)] == [event.id]

    @pytest.mark.parametrize("event_type", ["note", "pending_action", "blocker", "resolved"])
    def test_accepts_every_event_type(self, db, first_task, owner_id, event_type):
        playbook, task = first_task
        event = TaskService(db).add_task_event(playbook.id, task.id, owner_id, event_type, "text")
        assert event.event_type == event_type

    def test_rejects_unknown_type(self, db, first_task, owner_id):
        playbook, task = first_task
        with pytest.raises(ValidationError):
            TaskService(db).add_task_event(playbook.id, task.id, owner_id, "status_change", "text")

    def test_rejects_blank_content(self, db, first_task, owner_id):
        playbook, task = first_task
        with pytest.raises(ValidationError):
            TaskService(db).add_task_event(playbook.id, task.id, owner_id, "note", "   ")

    def test_enforces_max_length(self, db, first_task, owner_id):
        playbook, task = first_task
        service = TaskService(db, event_max_length=10)
        service.add_task_event(playbook.id, task.id, owner_id, "note", "x" * 10)
        with pytest.raises(ValidationError):
            service.add_task_event(playbook.id, task.id, owner_id, "note", "x" * 11)

    def test_default_max_length_is_1000(self, db):
        assert TaskService(db).event_max_length == 1000
