"""Integration tests for the calendar, Gmail and Google auth endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from opsdash_server.dependencies import get_calendar_client, get_gmail_client
from opsdash_server.errors import AuthenticationRequired, UpstreamError
from opsdash_server.integrations.calendar import GoogleEvent
from opsdash_server.integrations.gmail import EmailSummary


@pytest.fixture
def mock_calendar(test_app):
    """Replace the Google Calendar client for the app's requests."""
    calendar = AsyncMock()
    calendar.is_linked = True
    test_app.dependency_overrides[get_calendar_client] = lambda: calendar
    yield calendar
    test_app.dependency_overrides.pop(get_calendar_client, None)


@pytest.fixture
def mock_gmail(test_app):
    """Replace the Gmail client with a signed-in double."""
    gmail = AsyncMock()
    gmail.oauth = MagicMock()
    gmail.oauth.is_authenticated.return_value = True
    test_app.dependency_overrides[get_gmail_client] = lambda: gmail
    yield gmail
    test_app.dependency_overrides.pop(get_gmail_client, None)


class TestCalendarEvents:
    """Tests for /api/v1/calendar/events."""

    @pytest.mark.asyncio
    async def test_create_event_synced_to_google(
        self, async_client: AsyncClient, mock_store, mock_calendar
    ):
        mock_calendar.create_event.return_value = GoogleEvent(
            id="g-1", summary="Kickoff", start="", end=""
        )
        mock_store.create_event.side_effect = lambda record: {"id": "e1", **record}

        response = await async_client.post(
            "/api/v1/calendar/events",
            json={
                "title": "Kickoff",
                "start_time": "2026-03-12T14:00:00+00:00",
                "end_time": "2026-03-12T15:00:00+00:00",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["item"]["google_event_id"] == "g-1"
        assert data["item"]["start_time"] == "2026-03-12T14:00:00+00:00"
        assert data["note"] is None

    @pytest.mark.asyncio
    async def test_create_event_google_failure_still_stores(
        self, async_client: AsyncClient, mock_store, mock_calendar
    ):
        mock_calendar.create_event.side_effect = UpstreamError("Forbidden", "Google Calendar")
        mock_store.create_event.side_effect = lambda record: {"id": "e1", **record}

        response = await async_client.post(
            "/api/v1/calendar/events",
            json={
                "title": "Kickoff",
                "start_time": "2026-03-12T14:00:00+00:00",
                "end_time": "2026-03-12T15:00:00+00:00",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["item"]["google_event_id"] is None
        assert data["note"] == "Could not sync to Google Calendar: Google Calendar: Forbidden"

    @pytest.mark.asyncio
    async def test_create_event_end_before_start(
        self, async_client: AsyncClient, mock_store, mock_calendar
    ):
        response = await async_client.post(
            "/api/v1/calendar/events",
            json={
                "title": "Backwards",
                "start_time": "2026-03-12T15:00:00+00:00",
                "end_time": "2026-03-12T14:00:00+00:00",
            },
        )

        assert response.status_code == 422
        mock_store.create_event.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_missing_event(self, async_client: AsyncClient, mock_store, mock_calendar):
        mock_store.get_event.return_value = None

        response = await async_client.delete("/api/v1/calendar/events/missing")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Event not found"}
        mock_store.delete_event.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_event_removes_google_copy(
        self, async_client: AsyncClient, mock_store, mock_calendar
    ):
        mock_store.get_event.return_value = {"id": "e1", "google_event_id": "g-1"}

        response = await async_client.delete("/api/v1/calendar/events/e1")

        assert response.status_code == 200
        mock_calendar.delete_event.assert_awaited_once_with("g-1")
        mock_store.delete_event.assert_awaited_once_with("e1")


class TestGmail:
    """Tests for /api/v1/gmail."""

    @pytest.mark.asyncio
    async def test_inbox_requires_sign_in(self, async_client: AsyncClient):
        # No token file exists in the test data directory
        response = await async_client.get("/api/v1/gmail/inbox")

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["authenticated"] is False

    @pytest.mark.asyncio
    async def test_inbox_lists_messages(self, async_client: AsyncClient, mock_gmail):
        mock_gmail.list_recent.return_value = [
            EmailSummary(
                id="m1",
                sender="Jane <jane@acme.test>",
                subject="Invoice question",
                date="Tue, 10 Mar 2026 09:00:00 +0000",
                snippet="Hi, about the invoice",
                body="Hi, about the invoice",
            )
        ]

        response = await async_client.get("/api/v1/gmail/inbox")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["messages"][0]["sender"] == "Jane <jane@acme.test>"
        assert data["messages"][0]["body"] is None
        mock_gmail.list_recent.assert_awaited_once_with(20, include_body=False, search=None)

    @pytest.mark.asyncio
    async def test_send_single_email(self, async_client: AsyncClient, mock_gmail, mock_store):
        mock_gmail.send.return_value = "msg-1"

        response = await async_client.post(
            "/api/v1/gmail/send",
            json={"to": "jane@acme.test", "subject": "Hello", "content": "<p>Hi</p>"},
        )

        assert response.status_code == 200
        assert response.json()["message_id"] == "msg-1"
        mock_gmail.send.assert_awaited_once_with("jane@acme.test", "Hello", "<p>Hi</p>")
        mock_store.log_automation.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_send_requires_fields(self, async_client: AsyncClient, mock_gmail):
        response = await async_client.post("/api/v1/gmail/send", json={"to": "jane@acme.test"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        mock_gmail.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_invoice_reminders(self, async_client: AsyncClient, mock_gmail, mock_store):
        mock_store.list_invoices.return_value = [
            {
                "invoice_number": "INV-1",
                "amount": 900,
                "due_date": "2026-01-01",
                "clients": {"name": "Acme", "email": "billing@acme.test"},
            },
            {"invoice_number": "INV-2", "amount": 100, "clients": {"name": "No Mail"}},
        ]
        mock_gmail.send.return_value = "msg-1"

        response = await async_client.post(
            "/api/v1/gmail/send", json={"type": "invoice_reminders"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["sent"] == 1
        assert data["errors"] == 0
        assert data["message"] == "Sent 1 invoice reminders"
        mock_store.list_invoices.assert_awaited_once_with(status="overdue")

    @pytest.mark.asyncio
    async def test_send_when_signed_out(self, async_client: AsyncClient, mock_gmail):
        mock_gmail.send.side_effect = AuthenticationRequired()

        response = await async_client.post(
            "/api/v1/gmail/send",
            json={"to": "jane@acme.test", "subject": "Hello", "body": "Hi"},
        )

        assert response.status_code == 401


class TestGoogleAuth:
    """Tests for /api/v1/auth/google."""

    @pytest.mark.asyncio
    async def test_status_without_oauth_client(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/auth/google")

        assert response.status_code == 400
        assert "not configured" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_callback_with_error(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/v1/auth/google/callback", params={"error": "access_denied"}
        )

        assert response.status_code == 307
        assert response.headers["location"] == "http://localhost:3000/email?error=access_denied"

    @pytest.mark.asyncio
    async def test_callback_without_code(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/auth/google/callback")

        assert response.status_code == 307
        assert response.headers["location"] == "http://localhost:3000/email?error=no_code"
