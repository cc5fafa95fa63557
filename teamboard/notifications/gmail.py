"""Gmail sender — deliver HTML email through the Gmail API.

Authenticates as a Google service account with domain-wide delegation and
impersonates a single fixed mailbox (``MAIL_SENDER_ADDRESS``).
"""

import logging
from collections.abc import Callable
from typing import Any

from google.oauth2 import service_account
from googleapiclient.discovery import build

from teamboard.config import Settings
from teamboard.notifications.templates import build_raw_message

log = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.send"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def _get_creds(settings: Settings):
    info = {
        "type": "service_account",
        "client_email": settings.google_service_account_email,
        "private_key": settings.google_private_key(),
        "token_uri": TOKEN_URI,
    }
    creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    return creds.with_subject(settings.sender_address)


def _gmail_service(settings: Settings):
    return build("gmail", "v1", credentials=_get_creds(settings), cache_discovery=False)


class GmailSender:
    """Sends one message per call; raises on any API failure."""

    def __init__(
        self,
        settings: Settings,
        service_factory: Callable[[Settings], Any] = _gmail_service,
    ) -> None:
        self.sender = settings.sender_address
        self._settings = settings
        self._service_factory = service_factory
        self._service = None

    def _gmail(self):
        if self._service is None:
            self._service = self._service_factory(self._settings)
        return self._service

    def send(self, to: str, subject: str, html_body: str) -> str:
        """Send an HTML email and return the Gmail message id."""
        raw = build_raw_message(to=to, sender=self.sender, subject=subject, html_body=html_body)
        result = (
            self._gmail()
            .users()
            .messages()
            .send(userId="me", body={"raw": raw})
            .execute()
        )
        message_id = result.get("id", "")
        log.info("Gmail message %s sent to %s", message_id, to)
        return message_id
