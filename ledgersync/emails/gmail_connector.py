"""Gmail API connector for listing, reading and acknowledging alert emails."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ledgersync.core.exceptions import MailboxError
from ledgersync.emails.models import MailMessage, MessagePart

if TYPE_CHECKING:
    from ledgersync.emails.config import FetcherConfig

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
GMAIL_SCOPES = ["https://www.googleapis.com/auth/gmail.modify"]


def build_search_query(config: FetcherConfig, now: datetime | None = None) -> str:
    """Build the Gmail search string selecting candidate bank alerts.

    Example (default config):
        is:unread after:1704067200 (subject:"debited" OR subject:"credited"
        OR subject:"transaction" OR from:"alerts" OR from:"noreply")
    """
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=config.lookback_hours)

    terms = [f'subject:"{kw}"' for kw in config.subject_keywords]
    terms += [f'from:"{kw}"' for kw in config.sender_keywords]

    clauses = []
    if config.unread_only:
        clauses.append("is:unread")
    clauses.append(f"after:{int(since.timestamp())}")
    if terms:
        clauses.append("(" + " OR ".join(terms) + ")")
    return " ".join(clauses)


class GmailConnector:
    """Gmail connector for one user's mailbox.

    All calls are blocking; async callers run them with ``asyncio.to_thread``.
    """

    def __init__(
        self,
        access_token: str,
        refresh_token: str | None,
        client_id: str,
        client_secret: str,
        config: FetcherConfig,
        service: Any | None = None,
    ):
        """Initialize Gmail connector.

        Args:
            access_token: User's OAuth2 access token
            refresh_token: User's OAuth2 refresh token (enables silent refresh)
            client_id: OAuth2 client id
            client_secret: OAuth2 client secret
            config: Fetcher configuration
            service: Pre-built Gmail service (tests inject a mock here)
        """
        self.config = config
        self._credentials = Credentials(
            token=access_token,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=client_id,
            client_secret=client_secret,
            scopes=GMAIL_SCOPES,
        )
        self._service = service

    @property
    def service(self) -> Any:
        if self._service is None:
            logger.info("[GMAIL] Building Gmail API client")
            self._service = build(
                "gmail", "v1", credentials=self._credentials, cache_discovery=False
            )
        return self._service

    def list_candidate_ids(self, now: datetime | None = None) -> list[str]:
        """List ids of unread alert-like messages in the lookback window.

        Returns:
            Message ids in the order Gmail returned them; empty if none match
        """
        query = build_search_query(self.config, now)
        logger.debug(f"[GMAIL] Searching with query: {query}")

        try:
            response = (
                self.service.users()
                .messages()
                .list(userId="me", q=query, maxResults=self.config.max_results)
                .execute()
            )
        except HttpError as e:
            raise MailboxError(f"Failed to list messages: {e}") from e

        ids = [m["id"] for m in response.get("messages", []) or [] if m.get("id")]
        logger.info(f"[GMAIL] Found {len(ids)} candidate messages")
        return ids

    def get_message(self, message_id: str) -> MailMessage:
        """Fetch a message with its full MIME payload."""
        try:
            data = (
                self.service.users()
                .messages()
                .get(userId="me", id=message_id, format="full")
                .execute()
            )
        except HttpError as e:
            raise MailboxError(f"Failed to fetch message {message_id}: {e}") from e

        return MailMessage(
            message_id=data.get("id", message_id),
            payload=MessagePart.from_gmail(data.get("payload") or {}),
            label_ids=data.get("labelIds", []) or [],
        )

    def mark_as_read(self, message_id: str) -> None:
        """Remove the UNREAD label so later searches skip this message."""
        try:
            (
                self.service.users()
                .messages()
                .modify(
                    userId="me",
                    id=message_id,
                    body={"removeLabelIds": ["UNREAD"]},
                )
                .execute()
            )
        except HttpError as e:
            raise MailboxError(f"Failed to mark message {message_id} read: {e}") from e
        logger.debug(f"[GMAIL] Marked {message_id} as read")
