"""Shared fakes for the Supabase store and the Gmail sender."""

import pytest
from fastapi.testclient import TestClient

from services.api.app.main import app, get_sender, get_store

SESSIONS = {
    "token-u1": {"id": "u1", "email": "jane@example.com"},
    "token-u2": {"id": "u2", "email": "sam@example.com"},
    "token-u4": {"id": "u4", "email": "out@example.com"},
}


class FakeStore:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.profiles = {
            "u1": {"id": "u1", "display_name": "Jane Doe"},
            "u2": {"id": "u2", "display_name": "Sam Author"},
            "u3": {"id": "u3", "display_name": "Lee Park"},
            "u4": {"id": "u4", "display_name": "Outsider"},
        }
        self.emails = {
            "u1": "jane@example.com",
            "u2": "sam@example.com",
            "u3": "lee@example.com",
            "u4": "out@example.com",
        }
        self.projects = {
            "p1": {"id": "p1", "name": "Website Relaunch", "allowed_users": ["u1", "u2", "u3"]},
            "p2": {"id": "p2", "name": "Other", "allowed_users": ["u4"]},
        }
        self.comments = {
            "c1": {
                "id": "c1",
                "project_id": "p1",
                "user_id": "u2",
                "content": "Great work @[Jane Doe]!",
                "created_at": "2026-01-01T10:00:00+00:00",
                "parent_comment_id": None,
            },
            "c2": {
                "id": "c2",
                "project_id": "p1",
                "user_id": "u1",
                "content": "Thanks!",
                "created_at": "2026-01-01T11:00:00+00:00",
                "parent_comment_id": "c1",
            },
        }
        self.tasks = {
            "t1": {
                "id": "t1",
                "title": "Write copy",
                "description": "Homepage hero text",
                "due_date": "2026-03-05",
                "project_id": "p1",
            },
        }
        self._next_id = 100

    def close(self) -> None:
        pass

    def get_user(self, access_token: str) -> dict | None:
        self.calls.append("get_user")
        return SESSIONS.get(access_token)

    def get_user_email(self, user_id: str) -> str | None:
        self.calls.append("get_user_email")
        return self.emails.get(user_id)

    def get_comment(self, comment_id: str) -> dict | None:
        self.calls.append("get_comment")
        row = self.comments.get(comment_id)
        return dict(row) if row else None

    def list_comments(self, project_id: str) -> list[dict]:
        self.calls.append("list_comments")
        rows = [dict(c) for c in self.comments.values() if c["project_id"] == project_id]
        return sorted(rows, key=lambda c: c["created_at"], reverse=True)

    def insert_comment(self, project_id, user_id, content, parent_comment_id=None) -> dict:
        self.calls.append("insert_comment")
        self._next_id += 1
        row = {
            "id": f"c{self._next_id}",
            "project_id": project_id,
            "user_id": user_id,
            "content": content,
            "created_at": "2026-02-01T09:00:00+00:00",
            "parent_comment_id": parent_comment_id,
        }
        self.comments[row["id"]] = row
        return dict(row)

    def delete_replies(self, comment_id: str) -> None:
        self.calls.append("delete_replies")
        for key in [k for k, c in self.comments.items() if c["parent_comment_id"] == comment_id]:
            del self.comments[key]

    def delete_comment(self, comment_id: str) -> None:
        self.calls.append("delete_comment")
        self.comments.pop(comment_id, None)

    def get_project(self, project_id: str) -> dict | None:
        self.calls.append("get_project")
        row = self.projects.get(project_id)
        return {**row, "allowed_users": list(row["allowed_users"])} if row else None

    def get_profile(self, user_id: str) -> dict | None:
        self.calls.append("get_profile")
        return self.profiles.get(user_id)

    def list_profiles(self, user_ids: list[str]) -> list[dict]:
        self.calls.append("list_profiles")
        return [self.profiles[u] for u in user_ids if u in self.profiles]

    def get_task(self, task_id: str) -> dict | None:
        self.calls.append("get_task")
        task = self.tasks.get(task_id)
        if task is None:
            return None
        project = self.projects.get(task["project_id"])
        return {**task, "projects": dict(project) if project else None}


class FakeSender:
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail_for: set[str] = set()

    def send(self, to: str, subject: str, html_body: str) -> str:
        if to in self.fail_for:
            raise RuntimeError(f"Gmail rejected {to}")
        self.sent.append({"to": to, "subject": subject, "html": html_body})
        return f"msg-{len(self.sent)}"


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://db.example.test")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "mailer@project.iam.gserviceaccount.com")
    monkeypatch.setenv("GOOGLE_PRIVATE_KEY_B64", "cGVt")
    monkeypatch.setenv("APP_BASE_URL", "https://board.example.test")
    monkeypatch.setenv("APP_ENV", "development")
    monkeypatch.delenv("NEXT_PUBLIC_SUPABASE_URL", raising=False)
    monkeypatch.delenv("MAIL_SENDER_ADDRESS", raising=False)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def client(env, store: FakeStore, sender: FakeSender):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_sender] = lambda: sender
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
