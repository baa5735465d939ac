"""Gmail access through the stored OAuth credentials.

The Google API client is synchronous, so every call runs in a worker thread.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import Any

from google.auth.exceptions import RefreshError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from opsdash_server.errors import UpstreamError
from opsdash_server.integrations.google_auth import GoogleOAuthManager

logger = logging.getLogger(__name__)

COLLABORATOR = "Gmail"


@dataclass
class EmailSummary:
    """A message from the inbox.

    Attributes:
        id: Gmail message ID.
        sender: Value of the From header.
        subject: Value of the Subject header.
        date: Value of the Date header.
        snippet: Gmail's short plain-text preview.
        body: Decoded body when requested, otherwise the snippet.
    """

    id: str
    sender: str
    subject: str
    date: str
    snippet: str
    body: str


def _decode(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def extract_body(payload: dict[str, Any] | None) -> str:
    """Extract the message body from a Gmail payload.

    Prefers text/plain over text/html and descends into nested multiparts.
    """
    if not payload:
        return ""

    body = ""
    data = (payload.get("body") or {}).get("data")
    if data:
        body = _decode(data)

    for part in payload.get("parts") or []:
        mime_type = part.get("mimeType")
        part_data = (part.get("body") or {}).get("data")
        if mime_type == "text/plain":
            if part_data:
                body = _decode(part_data)
                break
        elif mime_type == "text/html":
            if not body and part_data:
                body = _decode(part_data)
        elif part.get("parts"):
            nested = extract_body(part)
            if nested:
                body = nested
                break
    return body


def build_raw_message(to: str, subject: str, body: str, html: bool = True) -> str:
    """Build a base64url-encoded MIME message for the send API."""
    message = MIMEText(body, "html" if html else "plain", "utf-8")
    message["To"] = to
    message["Subject"] = subject
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")


class GmailClient:
    """Reads the inbox and sends mail as the signed-in user."""

    def __init__(self, oauth: GoogleOAuthManager) -> None:
        self.oauth = oauth

    def _service(self) -> Any:
        credentials = self.oauth.credentials()
        return build("gmail", "v1", credentials=credentials, cache_discovery=False)

    def _translate(self, error: Exception, action: str) -> Exception:
        logger.error(f"Gmail {action} error: {error}")
        if isinstance(error, RefreshError):
            auth_error = self.oauth.handle_refresh_error(error)
            if auth_error is not None:
                return auth_error
        if isinstance(error, HttpError):
            return UpstreamError(error.reason or str(error), COLLABORATOR)
        return UpstreamError(str(error), COLLABORATOR)

    def _list_messages(
        self, limit: int, include_body: bool, query: str
    ) -> list[EmailSummary]:
        service = self._service()
        messages = service.users().messages()
        listing = messages.list(userId="me", maxResults=limit, q=query).execute()

        summaries = []
        for item in (listing.get("messages") or [])[:limit]:
            if include_body:
                detail = messages.get(userId="me", id=item["id"], format="full").execute()
            else:
                detail = messages.get(
                    userId="me",
                    id=item["id"],
                    format="metadata",
                    metadataHeaders=["From", "Subject", "Date"],
                ).execute()

            payload = detail.get("payload") or {}
            headers = {h.get("name"): h.get("value", "") for h in payload.get("headers") or []}
            snippet = detail.get("snippet") or ""
            body = extract_body(payload) if include_body else ""
            summaries.append(
                EmailSummary(
                    id=item["id"],
                    sender=headers.get("From", ""),
                    subject=headers.get("Subject", ""),
                    date=headers.get("Date", ""),
                    snippet=snippet,
                    body=body or snippet,
                )
            )
        return summaries

    async def list_recent(
        self, limit: int = 20, include_body: bool = False, search: str | None = None
    ) -> list[EmailSummary]:
        """List the most recent inbox messages.

        Args:
            limit: Maximum number of messages.
            include_body: Fetch and decode full bodies instead of metadata only.
            search: Optional Gmail search expression added to "in:inbox".

        Raises:
            AuthenticationRequired: If the user has not signed in or the grant was revoked.
            UpstreamError: If the Gmail API fails.
        """
        query = "in:inbox" + (f" {search}" if search else "")
        try:
            return await asyncio.to_thread(self._list_messages, limit, include_body, query)
        except (HttpError, RefreshError) as e:
            raise self._translate(e, "list") from e

    def _send(self, to: str, subject: str, body: str) -> str:
        service = self._service()
        raw = build_raw_message(to, subject, body)
        response = service.users().messages().send(userId="me", body={"raw": raw}).execute()
        return response.get("id", "")

    async def send(self, to: str, subject: str, body: str) -> str:
        """Send an HTML email and return the Gmail message ID."""
        try:
            message_id = await asyncio.to_thread(self._send, to, subject, body)
        except (HttpError, RefreshError) as e:
            raise self._translate(e, "send") from e
        logger.info(f"Sent email to {to} (message {message_id})")
        return message_id
