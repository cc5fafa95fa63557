"""Task-assignment notifications.

The caller must be the assigner and a member of the task's project, and the
assignee must be a member too; only then is the assignee emailed.
"""

import logging

from teamboard.auth.supabase_auth import AuthUser
from teamboard.config import Settings
from teamboard.errors import AuthorizationError, NotFoundError
from teamboard.notifications.dispatcher import NotificationDispatcher
from teamboard.notifications.templates import TaskAssignment
from teamboard.persistence.supabase_store import SupabaseStore
from teamboard.schemas import TaskAssignmentRequest

log = logging.getLogger(__name__)


def notify_task_assignment(
    store: SupabaseStore,
    dispatcher: NotificationDispatcher,
    settings: Settings,
    caller: AuthUser,
    req: TaskAssignmentRequest,
) -> dict:
    req.validate_required()
    if req.assigned_by_user_id != caller.uid:
        raise AuthorizationError("Forbidden", details="Caller is not the assigner")

    task = store.get_task(req.task_id)
    if task is None:
        raise NotFoundError("Task not found")
    project = task.get("projects") or {}
    allowed = set(project.get("allowed_users") or [])
    if caller.uid not in allowed:
        raise AuthorizationError("Forbidden", details="Caller is not a member of this project")
    if req.assigned_to_user_id not in allowed:
        raise AuthorizationError("Assignee not in project")

    assignment = TaskAssignment(
        task_title=task.get("title") or "Untitled task",
        project_name=project.get("name") or "Unknown Project",
        project_url=settings.project_url(task["project_id"]),
        task_description=task.get("description") or None,
        due_date=task.get("due_date") or None,
    )
    outcome = dispatcher.dispatch_task_assignment(
        assignee_id=req.assigned_to_user_id,
        assigner_id=req.assigned_by_user_id,
        assignment=assignment,
    )
    log.info("Task %s assignment notification → %s", req.task_id, outcome.success)
    if outcome.success:
        message = "Notification sent successfully"
    elif req.assigned_to_user_id == req.assigned_by_user_id:
        message = "Notification skipped (self-assignment)"
    else:
        message = "Notification could not be delivered"
    return {"success": outcome.success, "message": message}
