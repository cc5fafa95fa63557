"""Comment operations and the mention-notification pipeline.

Flow for a mention notification
-------------------------------
1. Fetch the comment and its project with service credentials.
2. Re-check ownership and membership (``authorize_comment_mention``).
3. Keep only candidates the stored content mentions, then re-filter them
   against the fetched project row.
4. Hand the trusted list to the ``NotificationDispatcher``.

Comment creation runs the same pipeline without a candidate list: every
project member named by an ``@[Display Name]`` token is a candidate.
"""

import logging

from teamboard.auth.supabase_auth import AuthUser
from teamboard.comments.access import (
    authorize_comment_mention,
    ensure_project_member,
    filter_recipients,
)
from teamboard.comments.mentions import (
    extract_mention_names,
    resolve_mentions,
    roster_from_rows,
    unique_names,
)
from teamboard.config import Settings
from teamboard.errors import AuthorizationError, NotFoundError, TeamboardError, ValidationError
from teamboard.notifications.dispatcher import NotificationDispatcher, NotificationOutcome
from teamboard.notifications.templates import CommentMention
from teamboard.observability.metrics import MetricsRegistry
from teamboard.persistence.supabase_store import SupabaseStore
from teamboard.schemas import CommentCreateRequest, CommentMentionRequest

log = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "Project"
DEFAULT_AUTHOR_NAME = "Team member"
UNKNOWN_AUTHOR_NAME = "Unknown User"


class CommentService:
    def __init__(
        self,
        store: SupabaseStore,
        settings: Settings,
        dispatcher: NotificationDispatcher | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.dispatcher = dispatcher
        self.metrics = metrics or MetricsRegistry()

    # ── helpers ──────────────────────────────────────────────
    def _member_project(self, project_id: str, caller: AuthUser) -> dict:
        project = self.store.get_project(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        ensure_project_member(project, caller.uid)
        return project

    def _author_name(self, user_id: str) -> str:
        profile = self.store.get_profile(user_id)
        return (profile or {}).get("display_name") or DEFAULT_AUTHOR_NAME

    def _mentioned_ids(self, content: str, project: dict) -> list[str]:
        """Ids of project members named by ``@[Display Name]`` tokens in ``content``."""
        names = unique_names(extract_mention_names(content))
        if not names:
            return []
        roster = roster_from_rows(self.store.list_profiles(project["allowed_users"]))
        return [p.id for p in resolve_mentions(names, roster)]

    def _dispatch(
        self, project: dict, author_id: str, comment_text: str, recipient_ids: list[str]
    ) -> list[NotificationOutcome]:
        if not recipient_ids:
            return []
        if self.dispatcher is None:
            raise RuntimeError("CommentService was built without a dispatcher")
        mention = CommentMention(
            project_name=project.get("name") or DEFAULT_PROJECT_NAME,
            comment_text=comment_text,
            author_name=self._author_name(author_id),
            project_url=self.settings.project_url(project["id"]),
        )
        return self.dispatcher.dispatch_comment_mention(recipient_ids, mention)

    # ── Mention notifications ───────────────────────────────
    def notify_comment_mention(
        self, caller: AuthUser, req: CommentMentionRequest
    ) -> list[NotificationOutcome]:
        """Notify the mentioned collaborators of an existing comment.

        ``req.mentioned_user_ids`` is only a candidate list. An id is kept when
        the stored comment content actually mentions that user, and the result
        is filtered again against the fetched project row.
        """
        req.validate_required()
        comment = self.store.get_comment(req.comment_id)
        project = self.store.get_project(req.project_id) if comment is not None else None
        authorize_comment_mention(caller.uid, comment, project, req.project_id, req.author_id)

        text = comment.get("content") or ""
        mentioned = set(self._mentioned_ids(text, project))
        recipients = filter_recipients(
            [uid for uid in req.mentioned_user_ids if uid in mentioned],
            author_id=comment["user_id"],
            allowed_users=project["allowed_users"],
        )
        dropped = len(set(req.mentioned_user_ids)) - len(recipients)
        if dropped:
            log.info("Comment %s: %d mentioned id(s) not eligible for notification", comment["id"], dropped)
        return self._dispatch(project, comment["user_id"], text, recipients)


    # ── Comments ────────────────────────────────────────────
    def list_comments(self, caller: AuthUser, project_id: str) -> list[dict]:
        """Comments of a project, newest first, with their author's display name."""
        self._member_project(project_id, caller)
        comments = self.store.list_comments(project_id)
        author_ids = list(dict.fromkeys(c["user_id"] for c in comments if c.get("user_id")))
        names = {p["id"]: p.get("display_name") for p in self.store.list_profiles(author_ids)}
        return [
            {**c, "author_name": names.get(c.get("user_id")) or UNKNOWN_AUTHOR_NAME}
            for c in comments
        ]

    def create_comment(
        self, caller: AuthUser, project_id: str, req: CommentCreateRequest
    ) -> tuple[dict, list[NotificationOutcome]]:
        """Store a comment, then notify everyone it mentions who may see the project."""
        content = (req.content or "").strip()
        if not content:
            raise ValidationError("Missing required fields", details="content is empty")
        project = self._member_project(project_id, caller)

        if req.parent_comment_id:
            parent = self.store.get_comment(req.parent_comment_id)
            if parent is None:
                raise NotFoundError("Parent comment not found")
            if parent.get("project_id") != project_id:
                raise AuthorizationError("Forbidden", details="Parent comment belongs to another project")

        comment = self.store.insert_comment(
            project_id=project_id,
            user_id=caller.uid,
            content=content,
            parent_comment_id=req.parent_comment_id,
        )
        self.metrics.inc("comments_created_total")

        # The row is committed; failures past this point must not fail the request.
        outcomes: list[NotificationOutcome] = []
        try:
            outcomes = self._notify_new_comment(project, caller.uid, comment["id"], content)
        except TeamboardError:
            self.metrics.inc("comment_mention_pipeline_errors_total")
            log.exception("Comment %s stored but mention notifications failed", comment["id"])

        try:
            comment["author_name"] = self._author_name(caller.uid)
        except TeamboardError:
            log.exception("Comment %s stored but author lookup failed", comment["id"])
            comment["author_name"] = DEFAULT_AUTHOR_NAME
        return comment, outcomes

    def _notify_new_comment(
        self, project: dict, author_id: str, comment_id: str, content: str
    ) -> list[NotificationOutcome]:
        recipients = filter_recipients(
            self._mentioned_ids(content, project),
            author_id=author_id,
            allowed_users=project["allowed_users"],
        )
        if recipients and self.dispatcher is None:
            log.warning(
                "Mail delivery is not configured; %d mention(s) on comment %s not sent",
                len(recipients),
                comment_id,
            )
            return []
        return self._dispatch(project, author_id, content, recipients)


    def delete_comment(self, caller: AuthUser, comment_id: str) -> None:
        """Delete a comment owned by the caller together with its replies."""
        comment = self.store.get_comment(comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        if comment.get("user_id") != caller.uid:
            raise AuthorizationError("Forbidden", details="Only the author may delete a comment")
        # Replies first so the parent_comment_id foreign key does not block the delete.
        self.store.delete_replies(comment_id)
        self.store.delete_comment(comment_id)
        self.metrics.inc("comments_deleted_total")
        log.info("Comment %s deleted by %s", comment_id, caller.uid)
