"""Teamboard API — v0.1.0

Server side of the project board:
 • Comment listing / creation / deletion (author-only, replies cascade)
 • @mention email notifications, re-authorized server-side
 • Task-assignment email notifications
 • Supabase session auth on every data route
 • Gmail delivery through a delegated service account
"""

import logging
import os
from collections.abc import Iterator

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, PlainTextResponse

from teamboard.auth.supabase_auth import AuthUser, get_current_user
from teamboard.comments.service import CommentService
from teamboard.config import DATABASE_ENV_VARS, MAIL_ENV_VARS, Settings, app_env
from teamboard.errors import TeamboardError
from teamboard.notifications.dispatcher import NotificationDispatcher
from teamboard.notifications.gmail import GmailSender
from teamboard.notifications.task_assignment import notify_task_assignment
from teamboard.observability.metrics import MetricsRegistry
from teamboard.persistence.supabase_store import SupabaseStore
from teamboard.schemas import CommentCreateRequest, CommentMentionRequest, TaskAssignmentRequest

log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════
#  App + CORS
# ═══════════════════════════════════════════════════════════
app = FastAPI(title="Teamboard API", version="0.1.0")

raw_allowed = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,https://projects.golcentres.co.uk")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[x.strip() for x in raw_allowed.split(",") if x.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

metrics = MetricsRegistry()


def _show_details() -> bool:
    # APP_ENV only: Settings.from_env() can itself raise.
    return app_env() != "production"


@app.exception_handler(TeamboardError)
async def _teamboard_error_handler(request: Request, exc: TeamboardError):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    metrics.inc(f"http_errors_{exc.status_code}_total")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(_show_details()))


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError):
    content: dict = {"error": "Missing required fields"}
    if _show_details():
        content["details"] = str(exc.errors())
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(Exception)
async def _global_exc_handler(request: Request, exc: Exception):
    """Render unhandled errors as JSON so CORS headers still get attached."""
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    content: dict = {"error": "Internal server error"}
    if _show_details():
        content["details"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# ═══════════════════════════════════════════════════════════
#  Dependencies — configuration is checked before anything else
# ═══════════════════════════════════════════════════════════
def get_settings() -> Settings:
    return Settings.from_env()


def database_settings(settings: Settings = Depends(get_settings)) -> Settings:
    return settings.require(DATABASE_ENV_VARS)


def notification_settings(settings: Settings = Depends(get_settings)) -> Settings:
    return settings.require(DATABASE_ENV_VARS, MAIL_ENV_VARS)


def get_store(settings: Settings = Depends(database_settings)) -> Iterator[SupabaseStore]:
    store = SupabaseStore(
        settings.supabase_url, settings.supabase_service_key, timeout=settings.http_timeout
    )
    try:
        yield store
    finally:
        store.close()


def get_sender(settings: Settings = Depends(get_settings)) -> GmailSender | None:
    """Gmail sender, or None when mail delivery is not configured."""
    if settings.missing(MAIL_ENV_VARS):
        return None
    return GmailSender(settings)


def current_user(request: Request, store: SupabaseStore = Depends(get_store)) -> AuthUser:
    return get_current_user(request, store)


# ═══════════════════════════════════════════════════════════
#  Endpoints
# ═══════════════════════════════════════════════════════════
@app.get("/health")
def health() -> dict:
    return {"status": "ok", "service": "teamboard-api", "version": "0.1.0"}


@app.get("/metrics", response_class=PlainTextResponse)
def metrics_endpoint() -> str:
    metrics.inc("metrics_scrapes_total")
    return metrics.render_prometheus()


@app.post("/notifications/comment-mention")
def comment_mention(
    req: CommentMentionRequest,
    settings: Settings = Depends(notification_settings),
    user: AuthUser = Depends(current_user),
    store: SupabaseStore = Depends(get_store),
    sender: GmailSender = Depends(get_sender),
) -> dict:
    dispatcher = NotificationDispatcher(directory=store, sender=sender, metrics=metrics)
    service = CommentService(store, settings, dispatcher=dispatcher, metrics=metrics)
    outcomes = service.notify_comment_mention(user, req)
    return {"success": True, "results": [o.to_dict() for o in outcomes]}


@app.post("/notifications/task-assignment")
def task_assignment(
    req: TaskAssignmentRequest,
    settings: Settings = Depends(notification_settings),
    user: AuthUser = Depends(current_user),
    store: SupabaseStore = Depends(get_store),
    sender: GmailSender = Depends(get_sender),
) -> dict:
    dispatcher = NotificationDispatcher(directory=store, sender=sender, metrics=metrics)
    return notify_task_assignment(store, dispatcher, settings, user, req)


@app.get("/projects/{project_id}/comments")
def list_comments(
    project_id: str,
    settings: Settings = Depends(database_settings),
    user: AuthUser = Depends(current_user),
    store: SupabaseStore = Depends(get_store),
) -> dict:
    service = CommentService(store, settings, metrics=metrics)
    return {"comments": service.list_comments(user, project_id)}


@app.post("/projects/{project_id}/comments")
def create_comment(
    project_id: str,
    req: CommentCreateRequest,
    settings: Settings = Depends(database_settings),
    user: AuthUser = Depends(current_user),
    store: SupabaseStore = Depends(get_store),
    sender: GmailSender | None = Depends(get_sender),
) -> dict:
    dispatcher = None
    if sender is not None:
        dispatcher = NotificationDispatcher(directory=store, sender=sender, metrics=metrics)
    service = CommentService(store, settings, dispatcher=dispatcher, metrics=metrics)
    comment, outcomes = service.create_comment(user, project_id, req)
    return {"comment": comment, "notifications": [o.to_dict() for o in outcomes]}


@app.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: str,
    settings: Settings = Depends(database_settings),
    user: AuthUser = Depends(current_user),
    store: SupabaseStore = Depends(get_store),
) -> dict:
    CommentService(store, settings, metrics=metrics).delete_comment(user, comment_id)
    return {"success": True}
