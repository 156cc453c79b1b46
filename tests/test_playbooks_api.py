"""End-to-end tests for the playbook, sharing and folder endpoints."""

import copy

import pytest

from playbook_sync.core.token_factory import create_token
from playbook_sync.models import TaskComment
from playbook_sync.models.enums import Visibility


@pytest.fixture()
def owner_headers(auth_headers, owner_id):
    return auth_headers(owner_id)


@pytest.fixture()
def guest(make_user, auth_headers):
    user_id = make_user("guest@example.com", "Guest")
    return user_id, auth_headers(user_id)


class TestAuthentication:

    def test_missing_token_is_401(self, client, make_playbook):
        playbook = make_playbook()
        resp = client.get(f"/api/playbooks/{playbook.id}/tasks")
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_token_signed_with_other_secret_is_401(self, client, make_playbook, owner_id):
        playbook = make_playbook()
        token = create_token(subject=owner_id, secret="some-other-secret")
        resp = client.get(f"/api/playbooks/{playbook.id}/tasks", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_expired_token_is_401(self, client, make_playbook, settings, owner_id):
        playbook = make_playbook()
        token = create_token(subject=owner_id, secret=settings.jwt_secret_key, expires_hours=-1)
        resp = client.get(f"/api/playbooks/{playbook.id}/tasks", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_unknown_subject_is_401(self, client, make_playbook, auth_headers):
        playbook = make_playbook()
        resp = client.get(f"/api/playbooks/{playbook.id}/tasks", headers=auth_headers("usr-ghost"))
        assert resp.status_code == 401


class TestTasksEndpoints:

    def test_list_tasks(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        resp = client.get(f"/api/playbooks/{playbook.id}/tasks", headers=owner_headers)

        assert resp.status_code == 200
        data = resp.json()
        assert [t["node_key"] for t in data] == ["1.0", "1.1", "2.0"]
        assert data[0]["item_text"] == "Book the venue"
        assert data[0]["events"] == []

    def test_stranger_gets_404_not_403(self, client, make_playbook, guest):
        playbook = make_playbook()
        _, headers = guest
        resp = client.get(f"/api/playbooks/{playbook.id}/tasks", headers=headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "PLAYBOOK_NOT_FOUND"

    def test_update_task_and_read_back_events(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        task_id = client.get(f"/api/playbooks/{playbook.id}/tasks", headers=owner_headers).json()[0]["id"]

        resp = client.patch(
            f"/api/playbooks/{playbook.id}/tasks/{task_id}", json={"checked": True}, headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"

        events = client.get(f"/api/playbooks/{playbook.id}/tasks/{task_id}/events", headers=owner_headers).json()
        assert sorted(e["metadata"]["kind"] for e in events) == ["check_toggle", "status_change"]

    def test_empty_update_is_400(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        task_id = client.get(f"/api/playbooks/{playbook.id}/tasks", headers=owner_headers).json()[0]["id"]
        resp = client.patch(f"/api/playbooks/{playbook.id}/tasks/{task_id}", json={}, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"

    def test_add_event(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        task_id = client.get(f"/api/playbooks/{playbook.id}/tasks", headers=owner_headers).json()[0]["id"]

        resp = client.post(
            f"/api/playbooks/{playbook.id}/tasks/{task_id}/events",
            json={"event_type": "pending_action", "content": "Call back on Monday"},
            headers=owner_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["event_type"] == "pending_action"

    def test_event_over_limit_is_400(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        task_id = client.get(f"/api/playbooks/{playbook.id}/tasks", headers=owner_headers).json()[0]["id"]
        resp = client.post(
            f"/api/playbooks/{playbook.id}/tasks/{task_id}/events",
            json={"event_type": "note", "content": "x" * 1001},
            headers=owner_headers,
        )
        assert resp.status_code == 400

    def test_unknown_task_is_404(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        resp = client.patch(
            f"/api/playbooks/{playbook.id}/tasks/task-missing", json={"checked": True}, headers=owner_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "TASK_NOT_FOUND"


class TestPhasesEndpoint:

    def test_reorder_round_trip_keeps_task_ids(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        before = {t["item_text"]: t["id"] for t in client.get(
            f"/api/playbooks/{playbook.id}/tasks", headers=owner_headers,
        ).json()}

        # The editor sends back the stored tree with the first two items swapped.
        stored = copy.deepcopy(playbook.phases)
        stored[0]["items"] = list(reversed(stored[0]["items"]))
        resp = client.put(f"/api/playbooks/{playbook.id}/phases", json={"phases": stored}, headers=owner_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert [t["item_text"] for t in body["tasks"]] == ["Send invites", "Book the venue", "Run the session"]
        assert {t["item_text"]: t["id"] for t in body["tasks"]} == before
        assert body["playbook"]["phases"][0]["items"][0] == {"text": "Send invites", "key": "1.0"}

    def test_empty_phases_clears_playbook(self, client, db, make_playbook, owner_headers, owner_id):
        playbook = make_playbook()
        tasks = client.get(f"/api/playbooks/{playbook.id}/tasks", headers=owner_headers).json()
        db.add(TaskComment(id="cmt-1", task_id=tasks[0]["id"], user_id=owner_id, content="keep?"))
        db.commit()

        resp = client.put(f"/api/playbooks/{playbook.id}/phases", json={"phases": []}, headers=owner_headers)

        assert resp.status_code == 200
        assert resp.json()["tasks"] == []
        assert resp.json()["playbook"]["phases"] == []
        assert db.query(TaskComment).count() == 0

    def test_object_phases_use_fallback(self, client, make_playbook, owner_headers):
        playbook = make_playbook()

        resp = client.put(
            f"/api/playbooks/{playbook.id}/phases",
            json={"phases": {"title": "x"}, "fallback": [{"title": "Recovered", "items": ["Start over"]}]},
            headers=owner_headers,
        )

        assert resp.status_code == 200
        assert [t["item_text"] for t in resp.json()["tasks"]] == ["Start over"]
        assert resp.json()["playbook"]["phases"][0]["title"] == "Recovered"

    @pytest.mark.parametrize("phases", [{"title": "x"}, None, "not a tree"])
    def test_malformed_phases_without_fallback_clear(self, client, make_playbook, owner_headers, phases):
        playbook = make_playbook()

        resp = client.put(f"/api/playbooks/{playbook.id}/phases", json={"phases": phases}, headers=owner_headers)

        assert resp.status_code == 200
        assert resp.json()["tasks"] == []
        assert resp.json()["playbook"]["phases"] == []

    def test_circle_editor_can_edit_structure(self, client, make_playbook, owner_headers, guest):
        guest_id, guest_headers = guest
        playbook = make_playbook(visibility=Visibility.CIRCLE)
        client.post(
            f"/api/playbooks/{playbook.id}/members",
            json={"email": "guest@example.com", "role": "editor"},
            headers=owner_headers,
        )

        resp = client.put(
            f"/api/playbooks/{playbook.id}/phases",
            json={"phases": [{"title": "Only", "items": ["One"]}]},
            headers=guest_headers,
        )
        assert resp.status_code == 200
        assert len(resp.json()["tasks"]) == 1

    def test_folder_viewer_cannot_edit_structure(self, client, make_playbook, owner_headers, guest):
        _, guest_headers = guest
        folder = client.post("/api/folders", json={"name": "Shared"}, headers=owner_headers).json()
        playbook = make_playbook(folder_id=folder["id"])
        client.post(f"/api/folders/{folder['id']}/members", json={"email": "guest@example.com"}, headers=owner_headers)

        assert client.get(f"/api/playbooks/{playbook.id}/tasks", headers=guest_headers).status_code == 200
        resp = client.put(f"/api/playbooks/{playbook.id}/phases", json={"phases": []}, headers=guest_headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"


class TestSharingEndpoints:

    def test_visibility_round_trip(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        resp = client.put(
            f"/api/playbooks/{playbook.id}/visibility", json={"visibility": "public"}, headers=owner_headers,
        )
        assert resp.status_code == 200
        got = client.get(f"/api/playbooks/{playbook.id}/visibility", headers=owner_headers).json()
        assert got == {"playbook_id": playbook.id, "visibility": "public"}

    def test_members_lifecycle(self, client, make_playbook, owner_headers, guest):
        guest_id, _ = guest
        playbook = make_playbook(visibility=Visibility.CIRCLE)

        resp = client.post(
            f"/api/playbooks/{playbook.id}/members",
            json={"email": "Guest@Example.com", "role": "viewer"},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["user_id"] == guest_id

        members = client.get(f"/api/playbooks/{playbook.id}/members", headers=owner_headers).json()
        assert [(m["email"], m["role"]) for m in members] == [("guest@example.com", "viewer")]

        resp = client.delete(f"/api/playbooks/{playbook.id}/members/{guest_id}", headers=owner_headers)
        assert resp.status_code == 204
        assert client.get(f"/api/playbooks/{playbook.id}/members", headers=owner_headers).json() == []

    def test_member_with_unknown_email_is_404(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        resp = client.post(
            f"/api/playbooks/{playbook.id}/members",
            json={"email": "nobody@example.com", "role": "viewer"},
            headers=owner_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "USER_NOT_FOUND"

    def test_file_playbook(self, client, make_playbook, owner_headers):
        playbook = make_playbook()
        folder = client.post("/api/folders", json={"name": "Filed"}, headers=owner_headers).json()

        resp = client.put(
            f"/api/playbooks/{playbook.id}/folder", json={"folder_id": folder["id"]}, headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["folder_id"] == folder["id"]


class TestFolderEndpoints:

    def test_create_and_move(self, client, owner_headers):
        a = client.post("/api/folders", json={"name": "A"}, headers=owner_headers)
        assert a.status_code == 201
        b = client.post("/api/folders", json={"name": "B", "parent_id": a.json()["id"]}, headers=owner_headers).json()

        resp = client.put(f"/api/folders/{a.json()['id']}/parent", json={"parent_id": b["id"]}, headers=owner_headers)
        assert resp.status_code == 400

        resp = client.put(f"/api/folders/{b['id']}/parent", json={"parent_id": None}, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json()["parent_id"] is None

    def test_share_and_list_shared_with_me(self, client, owner_headers, guest):
        guest_id, guest_headers = guest
        folder = client.post("/api/folders", json={"name": "Team"}, headers=owner_headers).json()

        resp = client.post(f"/api/folders/{folder['id']}/members", json={"email": "guest@example.com"}, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json()["role"] == "viewer"

        shared = client.get("/api/folders/shared-with-me", headers=guest_headers).json()
        assert [f["id"] for f in shared] == [folder["id"]]

        members = client.get(f"/api/folders/{folder['id']}/members", headers=owner_headers).json()
        assert [m["member_user_id"] for m in members] == [guest_id]

        resp = client.delete(f"/api/folders/{folder['id']}/members/{guest_id}", headers=owner_headers)
        assert resp.status_code == 204
        assert client.get("/api/folders/shared-with-me", headers=guest_headers).json() == []

    def test_other_users_folder_is_404(self, client, owner_headers, guest):
        _, guest_headers = guest
        folder = client.post("/api/folders", json={"name": "Private"}, headers=owner_headers).json()
        resp = client.get(f"/api/folders/{folder['id']}/members", headers=guest_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "FOLDER_NOT_FOUND"


class TestHealth:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["db"] == "ok"
        assert "uptime_seconds" in data
        assert "version" in data

    def test_response_includes_middleware_headers(self, client):
        resp = client.get("/health")
        assert "x-request-id" in resp.headers
        assert "x-response-time" in resp.headers

    def test_request_id_is_propagated(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["x-request-id"] == "abc123"
