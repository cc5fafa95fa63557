"""Supabase persistence layer — comments, projects, profiles and tasks.

Talks to the hosted database through PostgREST (``/rest/v1``) and to Supabase
Auth (``/auth/v1``) with the service-role key. Row-level security is bypassed by
that key, so callers must run their own authorization checks before acting on
what this store returns.

Tables used
===========
comments   id, project_id, user_id, content, created_at, parent_comment_id
projects   id, name, allowed_users (uuid[])
profiles   id, display_name
tasks      id, title, description, due_date, project_id → projects
"""

import logging
from typing import Any

import httpx

from teamboard.errors import ExternalServiceError

log = logging.getLogger(__name__)

COMMENT_COLUMNS = "id,project_id,user_id,content,created_at,parent_comment_id"
PROJECT_COLUMNS = "id,name,allowed_users"
PROFILE_COLUMNS = "id,display_name"
TASK_COLUMNS = "id,title,description,due_date,project_id,projects(id,name,allowed_users)"


class SupabaseStore:
    """Reads and writes application rows over the Supabase HTTP APIs."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    # ── helpers ──────────────────────────────────────────────
    def _headers(self, bearer: str | None = None) -> dict[str, str]:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {bearer or self._service_key}",
        }

    def _rest(
        self,
        method: str,
        table: str,
        params: dict[str, str],
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict]:
        headers = self._headers()
        if prefer:
            headers["Prefer"] = prefer
        try:
            response = self._client.request(
                method,
                f"{self.base_url}/rest/v1/{table}",
                params=params,
                json=json,
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.error("Supabase %s %s failed: %s", method, table, exc)
            raise ExternalServiceError(f"Failed to access {table}", details=str(exc)) from exc
        if not response.content:
            return []
        return response.json()

    def _select_one(self, table: str, columns: str, row_id: str) -> dict | None:
        rows = self._rest("GET", table, {"select": columns, "id": f"eq.{row_id}", "limit": "1"})
        return rows[0] if rows else None

    # ── Auth ────────────────────────────────────────────────
    def get_user(self, access_token: str) -> dict | None:
        """Resolve a caller's access token to their auth user, or None if invalid."""
        try:
            response = self._client.get(
                f"{self.base_url}/auth/v1/user", headers=self._headers(access_token)
            )
        except httpx.HTTPError as exc:
            raise ExternalServiceError("Failed to verify session", details=str(exc)) from exc
        if response.status_code in (401, 403):
            return None
        if response.is_error:
            raise ExternalServiceError(
                "Failed to verify session", details=f"auth returned {response.status_code}"
            )
        return response.json()

    def get_user_email(self, user_id: str) -> str | None:
        """Administrative lookup of a user's email address."""
        try:
            response = self._client.get(
                f"{self.base_url}/auth/v1/admin/users/{user_id}", headers=self._headers()
            )
        except httpx.HTTPError as exc:
            raise ExternalServiceError("Failed to look up user", details=str(exc)) from exc
        if response.status_code == 404:
            return None
        if response.is_error:
            raise ExternalServiceError(
                "Failed to look up user", details=f"auth admin returned {response.status_code}"
            )
        payload = response.json()
        user = payload.get("user", payload)
        return user.get("email") or None

    # ── Comments ────────────────────────────────────────────
    def get_comment(self, comment_id: str) -> dict | None:
        return self._select_one("comments", COMMENT_COLUMNS, comment_id)

    def list_comments(self, project_id: str) -> list[dict]:
        return self._rest(
            "GET",
            "comments",
            {
                "select": COMMENT_COLUMNS,
                "project_id": f"eq.{project_id}",
                "order": "created_at.desc",
            },
        )

    def insert_comment(
        self,
        project_id: str,
        user_id: str,
        content: str,
        parent_comment_id: str | None = None,
    ) -> dict:
        row: dict[str, Any] = {"project_id": project_id, "user_id": user_id, "content": content}
        if parent_comment_id:
            row["parent_comment_id"] = parent_comment_id
        rows = self._rest(
            "POST",
            "comments",
            {"select": COMMENT_COLUMNS},
            json=[row],
            prefer="return=representation",
        )
        if not rows:
            raise ExternalServiceError("Failed to create comment", details="no row returned")
        return rows[0]

    def delete_replies(self, comment_id: str) -> None:
        self._rest("DELETE", "comments", {"parent_comment_id": f"eq.{comment_id}"})

    def delete_comment(self, comment_id: str) -> None:
        self._rest("DELETE", "comments", {"id": f"eq.{comment_id}"})

    # ── Projects / Profiles / Tasks ─────────────────────────
    def get_project(self, project_id: str) -> dict | None:
        project = self._select_one("projects", PROJECT_COLUMNS, project_id)
        if project is not None:
            project["allowed_users"] = project.get("allowed_users") or []
        return project

    def get_profile(self, user_id: str) -> dict | None:
        return self._select_one("profiles", PROFILE_COLUMNS, user_id)

    def list_profiles(self, user_ids: list[str]) -> list[dict]:
        if not user_ids:
            return []
        return self._rest(
            "GET",
            "profiles",
            {"select": PROFILE_COLUMNS, "id": f"in.({','.join(user_ids)})"},
        )

    def get_task(self, task_id: str) -> dict | None:
        task = self._select_one("tasks", TASK_COLUMNS, task_id)
        if task is not None and task.get("projects"):
            task["projects"]["allowed_users"] = task["projects"].get("allowed_users") or []
        return task
