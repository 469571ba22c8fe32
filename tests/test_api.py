"""Tests for the HTTP API: routing, response shapes and error mapping."""
from uuid import uuid4

import pytest

from conftest import OWNER_ID, OTHER_USER_ID

OWNER = {"X-User-Id": OWNER_ID}
ATTACKER = {"X-User-Id": OTHER_USER_ID}


@pytest.fixture
def seeded(client):
    """Workspace, objective and session created through the API."""
    workspace = client.post("/api/v1/workspaces/", json={"name": "Acme renewal"}, headers=OWNER).json()
    objective = client.post(
        f"/api/v1/workspaces/{workspace['id']}/objectives",
        json={"title": "Close the Acme renewal"},
        headers=OWNER,
    ).json()
    session = client.post(
        f"/api/v1/objectives/{objective['id']}/sessions", json={}, headers=OWNER
    ).json()
    return {"workspace": workspace, "objective": objective, "session": session}


def _bind(client, seeded, session_id=None):
    session_id = session_id or seeded["session"]["id"]
    response = client.post(
        f"/api/v1/sessions/{session_id}/bind",
        json={"objective_id": seeded["objective"]["id"], "workspace_id": seeded["workspace"]["id"]},
        headers=OWNER,
    )
    assert response.status_code == 200
    return response.json()


class TestInfoEndpoints:
    def test_root(self, client):
        assert client.get("/").json()["name"] == "Objective Documents API"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestWorkspacesAndObjectives:
    """Setup endpoints."""

    def test_create_and_get_workspace(self, client):
        created = client.post("/api/v1/workspaces/", json={"name": "Pipeline"}, headers=OWNER)
        assert created.status_code == 201

        workspace_id = created.json()["id"]
        assert client.get(f"/api/v1/workspaces/{workspace_id}", headers=OWNER).status_code == 200
        assert client.get(f"/api/v1/workspaces/{workspace_id}", headers=ATTACKER).status_code == 404

    def test_user_header_required(self, client):
        response = client.post("/api/v1/workspaces/", json={"name": "Pipeline"})
        assert response.status_code == 400
        assert response.json()["code"] == "validation"

    def test_objectives_listed(self, client, seeded):
        workspace_id = seeded["workspace"]["id"]
        response = client.get(f"/api/v1/workspaces/{workspace_id}/objectives", headers=OWNER)

        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [seeded["objective"]["id"]]
        assert response.json()[0]["status"] == "open"

    def test_soft_delete_workspace(self, client, seeded):
        workspace_id = seeded["workspace"]["id"]
        assert client.delete(f"/api/v1/workspaces/{workspace_id}", headers=OWNER).status_code == 204
        assert client.get(f"/api/v1/workspaces/{workspace_id}", headers=OWNER).status_code == 404


class TestDocuments:
    """Document lifecycle over HTTP."""

    def test_no_document_is_404(self, client, seeded):
        response = client.get(f"/api/v1/objectives/{seeded['objective']['id']}/document", headers=OWNER)

        assert response.status_code == 404
        assert response.json() == {"code": "not_found", "detail": "Objective has no document"}

    def test_create_document(self, client, seeded):
        response = client.post(
            f"/api/v1/objectives/{seeded['objective']['id']}/document",
            json={"workspace_id": seeded["workspace"]["id"], "content": "# Plan"},
            headers=OWNER,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["document"]["title"] == "Close the Acme renewal"
        assert body["version"]["version_number"] == 1
        assert body["version"]["content"] == "# Plan"

    def test_create_document_twice_is_conflict(self, client, seeded):
        url = f"/api/v1/objectives/{seeded['objective']['id']}/document"
        payload = {"workspace_id": seeded["workspace"]["id"]}
        assert client.post(url, json=payload, headers=OWNER).status_code == 201

        response = client.post(url, json=payload, headers=OWNER)
        assert response.status_code == 409
        assert response.json()["code"] == "conflict"

    def test_versions_and_copy_forward(self, client, seeded):
        binding = _bind(client, seeded)
        document_id = binding["document_id"]

        created = client.post(
            f"/api/v1/documents/{document_id}/versions",
            json={"content": "v2", "punchlist": "- send quote", "metadata": {"source": "api"}},
            headers=OWNER,
        )
        assert created.status_code == 201
        assert created.json()["metadata"] == {"source": "api"}

        copied = client.post(f"/api/v1/documents/{document_id}/versions", json={}, headers=OWNER).json()
        assert copied["version_number"] == 3
        assert copied["content"] == "v2"
        assert copied["punchlist"] == "- send quote"

        document = client.get(f"/api/v1/documents/{document_id}", headers=OWNER).json()
        assert [v["version_number"] for v in document["versions"]] == [3, 2, 1]
        assert document["latest_version"]["id"] == copied["id"]

        latest = client.get(f"/api/v1/documents/{document_id}/latest", headers=OWNER).json()
        assert latest["id"] == copied["id"]

    def test_in_place_updates(self, client, seeded):
        binding = _bind(client, seeded)
        version_id = binding["version_id"]

        content = client.patch(
            f"/api/v1/versions/{version_id}/content", json={"content": "streamed"}, headers=OWNER
        )
        punchlist = client.patch(
            f"/api/v1/versions/{version_id}/punchlist", json={"punchlist": "- [ ] legal"}, headers=OWNER
        )
        assert content.status_code == punchlist.status_code == 200

        document = client.get(f"/api/v1/documents/{binding['document_id']}", headers=OWNER).json()
        assert len(document["versions"]) == 1
        assert document["latest_version"]["content"] == "streamed"
        assert document["latest_version"]["punchlist"] == "- [ ] legal"

    def test_in_place_updates_by_attacker_are_404(self, client, seeded):
        binding = _bind(client, seeded)
        version_id = binding["version_id"]
        client.patch(f"/api/v1/versions/{version_id}/content", json={"content": "secret plan"}, headers=OWNER)

        content = client.patch(
            f"/api/v1/versions/{version_id}/content", json={"content": "overwritten"}, headers=ATTACKER
        )
        punchlist = client.patch(
            f"/api/v1/versions/{version_id}/punchlist", json={"punchlist": "- overwritten"}, headers=ATTACKER
        )
        assert content.status_code == punchlist.status_code == 404
        assert content.json()["code"] == "not_found"

        latest = client.get(f"/api/v1/documents/{binding['document_id']}/latest", headers=OWNER).json()
        assert latest["content"] == "secret plan"
        assert latest["punchlist"] is None

    def test_in_place_updates_after_workspace_deleted(self, client, seeded):
        binding = _bind(client, seeded)
        workspace_id = seeded["workspace"]["id"]
        assert client.delete(f"/api/v1/workspaces/{workspace_id}", headers=OWNER).status_code == 204

        response = client.patch(
            f"/api/v1/versions/{binding['version_id']}/content", json={"content": "late edit"}, headers=OWNER
        )
        assert response.status_code == 404

    def test_latest_by_attacker_is_404(self, client, seeded):
        binding = _bind(client, seeded)
        response = client.get(f"/api/v1/documents/{binding['document_id']}/latest", headers=ATTACKER)
        assert response.status_code == 404

    def test_goal_edit_and_read(self, client, seeded):
        binding = _bind(client, seeded)

        response = client.patch(
            f"/api/v1/versions/{binding['version_id']}/goal", json={"goal": "Renew for 3 years"}, headers=OWNER
        )
        assert response.status_code == 200

        goal = client.get(f"/api/v1/objectives/{seeded['objective']['id']}/goal", headers=OWNER).json()
        assert goal["goal"] == "Renew for 3 years"

    def test_workspace_listing(self, client, seeded):
        _bind(client, seeded)
        workspace_id = seeded["workspace"]["id"]

        entries = client.get(f"/api/v1/workspaces/{workspace_id}/documents", headers=OWNER).json()
        assert len(entries) == 1
        assert entries[0]["objective"]["id"] == seeded["objective"]["id"]
        assert entries[0]["latest_version"]["version_number"] == 1

        assert client.get(f"/api/v1/workspaces/{workspace_id}/documents", headers=ATTACKER).json() == []

    def test_delete_by_attacker_is_404(self, client, seeded):
        binding = _bind(client, seeded)

        response = client.delete(f"/api/v1/documents/{binding['document_id']}", headers=ATTACKER)
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

        assert client.get(f"/api/v1/documents/{binding['document_id']}", headers=OWNER).status_code == 200

    def test_delete_by_owner(self, client, seeded):
        binding = _bind(client, seeded)

        assert client.delete(f"/api/v1/documents/{binding['document_id']}", headers=OWNER).status_code == 204
        assert client.get(f"/api/v1/documents/{binding['document_id']}", headers=OWNER).status_code == 404
        assert client.get(f"/api/v1/sessions/{seeded['session']['id']}/version", headers=OWNER).status_code == 404

    def test_invalid_body_is_400(self, client, seeded):
        response = client.patch(f"/api/v1/versions/{uuid4()}/content", json={}, headers=OWNER)
        assert response.status_code == 400
        assert response.json()["code"] == "validation"


class TestSessions:
    """Session binding over HTTP."""

    def test_bind_first_then_copy(self, client, seeded):
        first = _bind(client, seeded)
        assert first["is_first_version"] is True

        other = client.post(
            f"/api/v1/objectives/{seeded['objective']['id']}/sessions", json={"title": "Follow-up"}, headers=OWNER
        ).json()
        second = _bind(client, seeded, session_id=other["id"])

        assert second["is_first_version"] is False
        assert second["document_id"] == first["document_id"]
        assert second["version_id"] != first["version_id"]

    def test_session_version(self, client, seeded):
        session_id = seeded["session"]["id"]
        assert client.get(f"/api/v1/sessions/{session_id}/version", headers=OWNER).status_code == 404

        binding = _bind(client, seeded)
        body = client.get(f"/api/v1/sessions/{session_id}/version", headers=OWNER).json()
        assert body["version"]["id"] == binding["version_id"]
        assert body["objective_id"] == seeded["objective"]["id"]

    def test_foreign_session_is_404(self, client, seeded):
        response = client.get(f"/api/v1/sessions/{seeded['session']['id']}", headers=ATTACKER)
        assert response.status_code == 404
