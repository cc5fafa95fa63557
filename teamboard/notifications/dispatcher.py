"""Notification dispatcher — fan out one email per recipient.

Each recipient is handled independently: the address is looked up, exactly one
send is attempted, and any failure is recorded without stopping the loop.
There are no retries and sends run sequentially. Recipients handed to the
dispatcher are already authorized; it performs no checks of its own.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from teamboard.notifications.templates import (
    CommentMention,
    TaskAssignment,
    comment_mention_subject,
    render_comment_mention_email,
    render_task_assignment_email,
    task_assignment_subject,
)
from teamboard.observability.metrics import MetricsRegistry

log = logging.getLogger(__name__)


class EmailDirectory(Protocol):
    def get_user_email(self, user_id: str) -> str | None: ...


class EmailSender(Protocol):
    def send(self, to: str, subject: str, html_body: str) -> str: ...


@dataclass(frozen=True)
class NotificationOutcome:
    recipient_id: str
    success: bool

    def to_dict(self) -> dict:
        return {"userId": self.recipient_id, "success": self.success}


class NotificationDispatcher:
    def __init__(
        self,
        directory: EmailDirectory,
        sender: EmailSender,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self.directory = directory
        self.sender = sender
        self.metrics = metrics or MetricsRegistry()

    def _send_one(self, recipient_id: str, subject: str, html_body: str) -> bool:
        try:
            email = self.directory.get_user_email(recipient_id)
            if not email:
                log.warning("Recipient %s has no email address — skipped", recipient_id)
                return False
            self.sender.send(to=email, subject=subject, html_body=html_body)
            return True
        except Exception:
            log.exception("Failed to notify recipient %s", recipient_id)
            return False

    def dispatch_comment_mention(
        self, recipient_ids: Iterable[str], mention: CommentMention
    ) -> list[NotificationOutcome]:
        subject = comment_mention_subject(mention)
        body = render_comment_mention_email(mention)
        outcomes: list[NotificationOutcome] = []
        with self.metrics.track_ms("mention_dispatch"):
            for recipient_id in recipient_ids:
                ok = self._send_one(recipient_id, subject, body)
                self.metrics.inc(
                    "mention_notifications_sent_total" if ok else "mention_notifications_failed_total"
                )
                outcomes.append(NotificationOutcome(recipient_id=recipient_id, success=ok))
        log.info(
            "mention notifications for '%s' → sent=%d failed=%d",
            mention.project_name,
            sum(o.success for o in outcomes),
            sum(not o.success for o in outcomes),
        )
        return outcomes

    def dispatch_task_assignment(
        self, assignee_id: str, assigner_id: str, assignment: TaskAssignment
    ) -> NotificationOutcome:
        """Email the assignee; self-assignment is skipped and reported as not sent."""
        if assignee_id == assigner_id:
            log.info("Task '%s' self-assigned by %s — no email", assignment.task_title, assigner_id)
            return NotificationOutcome(recipient_id=assignee_id, success=False)
        ok = self._send_one(
            assignee_id,
            task_assignment_subject(assignment),
            render_task_assignment_email(assignment),
        )
        self.metrics.inc(
            "task_notifications_sent_total" if ok else "task_notifications_failed_total"
        )
        return NotificationOutcome(recipient_id=assignee_id, success=ok)
