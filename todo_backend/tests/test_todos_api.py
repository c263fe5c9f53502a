from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

# Import the FastAPI app
from todo_assistant.main import app
from todo_assistant.repositories import InMemoryRepository, get_repository

client = TestClient(app)


@pytest.fixture(autouse=True)
def fresh_repository():
    """Give every test its own seeded in-memory store."""
    repo = InMemoryRepository()
    repo.ensure_default_categories()
    app.dependency_overrides[get_repository] = lambda: repo
    yield repo
    app.dependency_overrides.pop(get_repository, None)


def create_todo_payload(
    title="Test Task",
    description="Do something",
    completed=False,
    due_date=None,
    **extra,
):
    payload = {
        "title": title,
        "description": description,
        "completed": completed,
    }
    if due_date is not None:
        payload["dueDate"] = due_date
    payload.update(extra)
    return payload


def create(**kwargs):
    res = client.post("/api/v1/todos/", json=create_todo_payload(**kwargs))
    assert res.status_code == 201
    return res.json()


def ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def assert_todo_shape(todo: dict):
    # Basic structure validation
    for key in ["id", "title", "description", "completed", "priority", "category", "dueDate", "createdAt", "updatedAt"]:
        assert key in todo
    # Type-ish checks
    assert isinstance(todo["id"], str)
    assert isinstance(todo["title"], str)
    assert isinstance(todo["completed"], bool)
    assert todo["priority"] in ("high", "medium", "low")
    # Timestamps are ISO8601 strings
    ts(todo["createdAt"])
    ts(todo["updatedAt"])
    # dueDate is a date-only string
    assert len(todo["dueDate"]) == 10


class TestHealth:
    def test_health_check(self):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")


class TestTodosCRUD:
    def test_create_todo_minimal_gets_defaults(self):
        res = client.post("/api/v1/todos/", json={"title": "Buy milk"})
        assert res.status_code == 201
        todo = res.json()
        assert_todo_shape(todo)
        assert todo["title"] == "Buy milk"
        assert todo["description"] == "Task: Buy milk"
        assert todo["completed"] is False
        assert todo["priority"] == "medium"
        assert todo["category"] == "personal"
        assert todo["dueDate"] == datetime.now(timezone.utc).date().isoformat()

    def test_create_todo_with_due_date_datetime_string(self):
        todo = create(title="Pay bills", description="Electricity", due_date="2099-12-25T08:30:00Z")
        assert_todo_shape(todo)
        # Time part is dropped
        assert todo["dueDate"] == "2099-12-25"

    def test_create_with_unknown_category_is_a_server_error(self):
        res = client.post("/api/v1/todos/", json=create_todo_payload(title="Orphan", category="galaxy"))
        assert res.status_code == 500
        body = res.json()
        assert body["error"] == "StoreError"
        assert body["message"] == "Sorry, I encountered an error. Please try again."

    def test_get_todo_and_not_found(self):
        tid = create(title="Read book")["id"]

        # Retrieve
        res_get = client.get(f"/api/v1/todos/{tid}")
        assert res_get.status_code == 200
        fetched = res_get.json()
        assert fetched["id"] == tid
        assert fetched["title"] == "Read book"

        # Not found case
        res_404 = client.get("/api/v1/todos/does-not-exist")
        assert res_404.status_code == 404
        assert res_404.json()["detail"] == "Todo not found"

    def test_put_replace_todo(self):
        original = create(title="Initial", description="A", completed=False)

        replacement = dict(
            original,
            title="Replaced",
            description="B",
            completed=True,
            priority="high",
            category="work",
            dueDate="2100-01-01",
            createdAt="1999-01-01T00:00:00Z",
        )
        res_put = client.put("/api/v1/todos/", json=replacement)
        assert res_put.status_code == 200
        updated = res_put.json()
        assert updated["id"] == original["id"]
        assert updated["title"] == "Replaced"
        assert updated["description"] == "B"
        assert updated["completed"] is True
        assert updated["priority"] == "high"
        assert updated["category"] == "work"
        assert updated["dueDate"] == "2100-01-01"
        # Timestamps are store-assigned
        assert updated["createdAt"] == original["createdAt"]
        assert ts(updated["updatedAt"]) > ts(original["updatedAt"])

        # PUT not found
        res_put_nf = client.put("/api/v1/todos/", json=dict(replacement, id="missing"))
        assert res_put_nf.status_code == 404
        assert res_put_nf.json()["detail"] == "Todo not found"

    def test_patch_partial_update(self):
        tid = create(title="Partial", description="X")["id"]

        # Partial update: set completed true and change title
        res_patch = client.patch(f"/api/v1/todos/{tid}", json={"title": "Partial Updated", "completed": True})
        assert res_patch.status_code == 200
        patched = res_patch.json()
        assert patched["id"] == tid
        assert patched["title"] == "Partial Updated"
        assert patched["completed"] is True
        # description should remain unchanged
        assert patched["description"] == "X"

        # PATCH not found
        res_patch_nf = client.patch("/api/v1/todos/missing", json={"title": "Nope"})
        assert res_patch_nf.status_code == 404
        assert res_patch_nf.json()["detail"] == "Todo not found"

    def test_toggle_flips_completion(self):
        tid = create(title="Stretch")["id"]

        first = client.post(f"/api/v1/todos/{tid}/toggle").json()
        second = client.post(f"/api/v1/todos/{tid}/toggle").json()
        assert first["completed"] is True
        assert second["completed"] is False
        assert ts(second["updatedAt"]) > ts(first["updatedAt"])

        assert client.post("/api/v1/todos/missing/toggle").status_code == 404

    def test_delete_todo(self):
        tid = create(title="ToDelete")["id"]

        # Delete
        res_del = client.delete("/api/v1/todos/", params={"id": tid})
        assert res_del.status_code == 200
        assert res_del.json() == {"message": "Todo deleted successfully"}

        # Subsequent get is 404
        res_get = client.get(f"/api/v1/todos/{tid}")
        assert res_get.status_code == 404
        # Deleting again should still be 404
        res_del_again = client.delete("/api/v1/todos/", params={"id": tid})
        assert res_del_again.status_code == 404
        assert res_del_again.json()["detail"] == "Todo not found"

    def test_delete_without_id(self):
        res = client.delete("/api/v1/todos/")
        assert res.status_code == 400
        assert res.json()["detail"] == "Todo ID is required"


class TestListSnapshot:
    def seed_todos(self, count=6):
        # completed for even indices
        return [create(title=f"Task {i}", description=f"Desc {i}", completed=(i % 2 == 0)) for i in range(count)]

    def test_empty_store_lists_default_categories(self):
        empty = InMemoryRepository()
        app.dependency_overrides[get_repository] = lambda: empty

        res = client.get("/api/v1/todos/")
        assert res.status_code == 200
        data = res.json()
        assert data["todos"] == []
        assert [c["id"] for c in data["categories"]] == ["health", "learning", "personal", "work"]
        assert data["metadata"]["totalTodos"] == 0
        assert data["metadata"]["completedTodos"] == 0
        assert data["metadata"]["version"] == "2.0.0"
        assert "lastUpdated" in data["metadata"]

    def test_list_is_newest_first_with_category_names(self):
        self.seed_todos(3)
        data = client.get("/api/v1/todos/").json()
        assert [t["title"] for t in data["todos"]] == ["Task 2", "Task 1", "Task 0"]
        assert all(t["categoryName"] == "Personal" for t in data["todos"])
        assert data["metadata"]["totalTodos"] == 3
        assert data["metadata"]["completedTodos"] == 2

    def test_filter_by_status(self):
        self.seed_todos(6)

        completed = client.get("/api/v1/todos/?status=completed").json()["todos"]
        assert len(completed) == 3
        assert all(item["completed"] is True for item in completed)

        pending = client.get("/api/v1/todos/?status=pending").json()["todos"]
        assert len(pending) == 3
        assert all(item["completed"] is False for item in pending)

    def test_filter_by_category(self):
        create(title="Run 5k", category="health")
        create(title="Taxes", category="work")
        data = client.get("/api/v1/todos/?category=health").json()
        assert [t["title"] for t in data["todos"]] == ["Run 5k"]
        assert data["todos"][0]["categoryName"] == "Health"

    def test_invalid_status_param(self):
        res = client.get("/api/v1/todos/?status=someday")
        assert res.status_code == 400
        assert res.json()["detail"] == "status must be 'all', 'completed' or 'pending'"


class TestValidationErrors:
    def test_create_validation_error_title_empty(self):
        # Empty title should trigger 422 with our error format handler
        res = client.post("/api/v1/todos/", json={"title": "  ", "description": "x"})
        assert res.status_code == 422
        body = res.json()
        # Our app returns a custom structure for validation errors
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)

    def test_create_validation_error_bad_priority(self):
        res = client.post("/api/v1/todos/", json={"title": "x", "priority": "urgent"})
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"

    def test_patch_validation_error_bad_due_date(self):
        tid = create(title="Due date bad")["id"]

        # Patch with invalid dueDate
        res_patch = client.patch(f"/api/v1/todos/{tid}", json={"dueDate": "not-a-date"})
        assert res_patch.status_code == 422
        body = res_patch.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)
