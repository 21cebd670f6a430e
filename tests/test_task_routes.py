"""
tests/test_task_routes.py -- Integration tests for the task routes.

Coverage:
  - Create: 200, status forced to Todo even when the body says otherwise
  - List: only the caller's tasks, oldest first, empty list for a new user
  - Update: patch semantics, "already current" short-circuit, invalid status,
    not-found before forbidden before validation, empty body
  - The buy-milk walkthrough end to end
"""

from __future__ import annotations

from fastapi.testclient import TestClient


def _create(client: TestClient, headers: dict, title: str, **extra) -> dict:
    resp = client.post("/tasks", json={"title": title, **extra}, headers=headers)
    assert resp.status_code == 200, f"Expected 200, got {resp.status_code}: {resp.text}"
    return resp.json()


def _get(client: TestClient, headers: dict, task_id: int) -> dict:
    tasks = client.get("/tasks", headers=headers).json()
    return next(t for t in tasks if t["id"] == task_id)


class TestCreateAndList:
    def test_create_task_starts_as_todo(self, api_client: TestClient, register_and_login) -> None:
        user_id, headers = register_and_login(api_client, "create@example.com")
        task = _create(api_client, headers, "write report")
        assert task["title"] == "write report"
        assert task["status"] == "Todo"
        assert task["user_id"] == user_id

    def test_create_ignores_supplied_status(self, api_client: TestClient, register_and_login) -> None:
        """A caller-supplied status on creation is silently dropped."""
        _uid, headers = register_and_login(api_client, "create-status@example.com")
        task = _create(api_client, headers, "sneaky", status="Done")
        assert task["status"] == "Todo"

    def test_list_empty_for_new_user(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "empty@example.com")
        resp = api_client.get("/tasks", headers=headers)
        assert resp.status_code == 200
        assert resp.json() == []

    def test_list_is_scoped_to_owner_and_ordered(self, api_client: TestClient, register_and_login) -> None:
        """User B never sees user A's tasks; each list comes back in creation order."""
        _a, headers_a = register_and_login(api_client, "list-a@example.com")
        _b, headers_b = register_and_login(api_client, "list-b@example.com")
        first = _create(api_client, headers_a, "a-first")
        second = _create(api_client, headers_a, "a-second")
        mine = _create(api_client, headers_b, "b-only")

        list_a = api_client.get("/tasks", headers=headers_a).json()
        list_b = api_client.get("/tasks", headers=headers_b).json()
        assert [t["id"] for t in list_a] == [first["id"], second["id"]]
        assert [t["id"] for t in list_b] == [mine["id"]]

    def test_create_requires_auth(self, api_client: TestClient) -> None:
        resp = api_client.post("/tasks", json={"title": "anon"})
        assert resp.status_code == 401


class TestUpdate:
    def test_update_title_only_keeps_status(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "title@example.com")
        task = _create(api_client, headers, "old title")
        resp = api_client.put(f"/tasks/{task['id']}", json={"title": "new title"}, headers=headers)
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["title"] == "new title"
        assert data["status"] == "Todo"

    def test_update_status_only_keeps_title(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "status@example.com")
        task = _create(api_client, headers, "keep me")
        resp = api_client.put(f"/tasks/{task['id']}", json={"status": "Done"}, headers=headers)
        assert resp.status_code == 200, resp.text
        assert resp.json()["title"] == "keep me"
        assert resp.json()["status"] == "Done"

    def test_update_both_fields(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "both@example.com")
        task = _create(api_client, headers, "before")
        resp = api_client.put(
            f"/tasks/{task['id']}", json={"title": "after", "status": "In Progress"}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["title"] == "after"
        assert resp.json()["status"] == "In Progress"

    def test_unknown_task_is_404(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "missing@example.com")
        resp = api_client.put("/tasks/987654", json={"status": "Done"}, headers=headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "task_not_found"

    def test_unknown_task_with_bad_status_is_still_404(self, api_client: TestClient, register_and_login) -> None:
        """Existence is checked before the status allow-list."""
        _uid, headers = register_and_login(api_client, "missing-bad@example.com")
        resp = api_client.put("/tasks/987655", json={"status": "Archived"}, headers=headers)
        assert resp.status_code == 404

    def test_other_users_task_is_403(self, api_client: TestClient, register_and_login) -> None:
        _a, headers_a = register_and_login(api_client, "owner@example.com")
        _b, headers_b = register_and_login(api_client, "intruder@example.com")
        task = _create(api_client, headers_a, "private")

        resp = api_client.put(f"/tasks/{task['id']}", json={"title": "pwned"}, headers=headers_b)
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "forbidden"
        assert _get(api_client, headers_a, task["id"])["title"] == "private"

    def test_other_users_task_with_bad_status_is_403(self, api_client: TestClient, register_and_login) -> None:
        """Ownership is checked before the status allow-list."""
        _a, headers_a = register_and_login(api_client, "owner2@example.com")
        _b, headers_b = register_and_login(api_client, "intruder2@example.com")
        task = _create(api_client, headers_a, "private")
        resp = api_client.put(f"/tasks/{task['id']}", json={"status": "Archived"}, headers=headers_b)
        assert resp.status_code == 403

    def test_invalid_status_is_400_and_no_mutation(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "invalid@example.com")
        task = _create(api_client, headers, "stay put")
        resp = api_client.put(
            f"/tasks/{task['id']}", json={"title": "changed", "status": "Archived"}, headers=headers
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_status"
        assert _get(api_client, headers, task["id"]) == task

    def test_same_status_short_circuits_without_write(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "same@example.com")
        task = _create(api_client, headers, "idempotent")
        resp = api_client.put(f"/tasks/{task['id']}", json={"status": "Todo"}, headers=headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["message"] == "Status already current."
        assert data["task"] == task
        assert _get(api_client, headers, task["id"]) == task

    def test_numeric_status_is_400(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "numeric-status@example.com")
        task = _create(api_client, headers, "typed")
        resp = api_client.put(f"/tasks/{task['id']}", json={"status": 5}, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_status"
        assert _get(api_client, headers, task["id"]) == task

    def test_unknown_task_with_list_status_is_404(self, api_client: TestClient, register_and_login) -> None:
        """A non-string status does not jump ahead of the existence check."""
        _uid, headers = register_and_login(api_client, "list-status@example.com")
        resp = api_client.put("/tasks/999999", json={"status": ["Done"]}, headers=headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "task_not_found"

    def test_same_status_with_title_keeps_stored_title(self, api_client: TestClient, register_and_login) -> None:
        """The "already current" answer wins; the supplied title is not written."""
        _uid, headers = register_and_login(api_client, "same-title@example.com")
        task = _create(api_client, headers, "original")
        resp = api_client.put(
            f"/tasks/{task['id']}", json={"title": "renamed", "status": "Todo"}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Status already current."
        assert resp.json()["task"]["title"] == "original"
        assert _get(api_client, headers, task["id"])["title"] == "original"

    def test_empty_body_returns_task_unchanged(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "noop@example.com")
        task = _create(api_client, headers, "untouched")
        resp = api_client.put(f"/tasks/{task['id']}", json={}, headers=headers)
        assert resp.status_code == 200
        assert resp.json() == task
        assert _get(api_client, headers, task["id"]) == task

    def test_non_integer_id_is_422(self, api_client: TestClient, register_and_login) -> None:
        _uid, headers = register_and_login(api_client, "badid@example.com")
        resp = api_client.put("/tasks/abc", json={"status": "Done"}, headers=headers)
        assert resp.status_code == 422


class TestBuyMilkWalkthrough:
    def test_status_lifecycle(self, api_client: TestClient, register_and_login) -> None:
        """create -> In Progress -> In Progress again (already current) -> Archived (400)."""
        _uid, headers = register_and_login(api_client, "milk@example.com")
        task = _create(api_client, headers, "buy milk")
        assert task["status"] == "Todo"
        url = f"/tasks/{task['id']}"

        first = api_client.put(url, json={"status": "In Progress"}, headers=headers)
        assert first.status_code == 200
        assert first.json()["status"] == "In Progress"

        again = api_client.put(url, json={"status": "In Progress"}, headers=headers)
        assert again.status_code == 200
        assert again.json()["message"] == "Status already current."
        assert again.json()["task"]["status"] == "In Progress"
        assert again.json()["task"] == first.json()

        bad = api_client.put(url, json={"status": "Archived"}, headers=headers)
        assert bad.status_code == 400
        assert _get(api_client, headers, task["id"])["status"] == "In Progress"
