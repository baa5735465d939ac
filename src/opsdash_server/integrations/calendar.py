"""Google Calendar access.

Credentials come from the signed-in user's OAuth tokens when present,
otherwise from a service account. With a service account the configured
sender address is impersonated; if impersonation is rejected the service
account authenticates as itself.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from opsdash_server.errors import AuthenticationRequired, OpsDashError, UpstreamError
from opsdash_server.integrations.google_auth import (
    GoogleOAuthManager,
    service_account_credentials,
)

logger = logging.getLogger(__name__)

COLLABORATOR = "Google Calendar"


@dataclass
class GoogleEvent:
    """An event as returned by the Calendar API."""

    id: str
    summary: str
    start: str
    end: str
    description: str | None = None
    location: str | None = None
    attendees: list[str] = field(default_factory=list)
    html_link: str | None = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "GoogleEvent":
        start = item.get("start") or {}
        end = item.get("end") or {}
        return cls(
            id=item.get("id", ""),
            summary=item.get("summary") or "Untitled",
            start=start.get("dateTime") or start.get("date") or "",
            end=end.get("dateTime") or end.get("date") or "",
            description=item.get("description"),
            location=item.get("location"),
            attendees=[a["email"] for a in item.get("attendees") or [] if a.get("email")],
            html_link=item.get("htmlLink"),
        )


class GoogleCalendarClient:
    """Reads and writes events on one calendar."""

    def __init__(
        self,
        oauth: GoogleOAuthManager | None,
        client_email: str | None = None,
        private_key: str | None = None,
        sender_email: str | None = None,
        calendar_id: str = "primary",
    ) -> None:
        self.oauth = oauth
        self.client_email = client_email
        self.private_key = private_key
        self.sender_email = sender_email
        self.calendar_id = calendar_id

    @property
    def is_linked(self) -> bool:
        """Whether any credential source is available."""
        has_tokens = self.oauth is not None and self.oauth.is_authenticated()
        return has_tokens or bool(self.client_email and self.private_key)

    def _credentials(self) -> Any:
        if self.oauth is not None and self.oauth.is_authenticated():
            try:
                return self.oauth.credentials()
            except AuthenticationRequired as e:
                logger.warning(f"OAuth credentials unavailable, falling back to service account: {e}")

        if self.sender_email:
            delegated = service_account_credentials(
                self.client_email, self.private_key, subject=self.sender_email
            )
            try:
                delegated.refresh(Request())
                return delegated
            except RefreshError as e:
                logger.warning(
                    f"Impersonating {self.sender_email} failed, using the service account directly: {e}"
                )
        return service_account_credentials(self.client_email, self.private_key)

    def _service(self) -> Any:
        return build("calendar", "v3", credentials=self._credentials(), cache_discovery=False)

    async def _call(self, action: str, fn: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except HttpError as e:
            logger.error(f"Google Calendar {action} error: {e}")
            raise UpstreamError(e.reason or str(e), COLLABORATOR) from e
        except GoogleAuthError as e:
            logger.error(f"Google Calendar {action} auth error: {e}")
            raise UpstreamError(str(e), COLLABORATOR) from e

    def _list(
        self, time_min: datetime, time_max: datetime, max_results: int
    ) -> list[GoogleEvent]:
        response = (
            self._service()
            .events()
            .list(
                calendarId=self.calendar_id,
                timeMin=time_min.isoformat(),
                timeMax=time_max.isoformat(),
                maxResults=max_results,
                singleEvents=True,
                orderBy="startTime",
            )
            .execute()
        )
        return [GoogleEvent.from_api(item) for item in response.get("items") or []]

    async def list_events(
        self,
        time_min: datetime | None = None,
        time_max: datetime | None = None,
        max_results: int = 50,
    ) -> list[GoogleEvent]:
        """List single events in a window, by default the next 30 days."""
        now = datetime.now(timezone.utc)
        time_min = time_min or now
        time_max = time_max or now + timedelta(days=30)
        return await self._call("list", self._list, time_min, time_max, max_results)

    def _insert(self, body: dict[str, Any]) -> GoogleEvent:
        item = self._service().events().insert(calendarId=self.calendar_id, body=body).execute()
        return GoogleEvent.from_api(item)

    async def create_event(
        self,
        summary: str,
        start: datetime,
        end: datetime,
        description: str | None = None,
        location: str | None = None,
        attendees: list[str] | None = None,
    ) -> GoogleEvent:
        """Create an event; times are sent in UTC."""
        body: dict[str, Any] = {
            "summary": summary,
            "start": {"dateTime": start.astimezone(timezone.utc).isoformat(), "timeZone": "UTC"},
            "end": {"dateTime": end.astimezone(timezone.utc).isoformat(), "timeZone": "UTC"},
        }
        if description:
            body["description"] = description
        if location:
            body["location"] = location
        if attendees:
            body["attendees"] = [{"email": email} for email in attendees]

        event = await self._call("create", self._insert, body)
        logger.info(f"Created Google Calendar event {event.id}")
        return event

    def _delete(self, event_id: str) -> None:
        self._service().events().delete(calendarId=self.calendar_id, eventId=event_id).execute()

    async def delete_event(self, event_id: str) -> None:
        await self._call("delete", self._delete, event_id)
        logger.info(f"Deleted Google Calendar event {event_id}")

    def _check(self) -> None:
        self._service().calendarList().get(calendarId=self.calendar_id).execute()

    async def check_connection(self) -> bool:
        try:
            await self._call("check", self._check)
            return True
        except OpsDashError as e:
            logger.warning(f"Google Calendar connection check failed: {e}")
            return False
