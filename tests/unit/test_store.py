"""Unit tests for DashboardStore over a mocked supabase query builder."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from postgrest.exceptions import APIError

from opsdash_server.errors import ConfigurationError, StoreError
from opsdash_server.store.database import DashboardStore

BUILDER_METHODS = (
    "select",
    "insert",
    "upsert",
    "update",
    "delete",
    "eq",
    "lt",
    "gte",
    "lte",
    "in_",
    "or_",
    "ilike",
    "order",
    "limit",
)


def make_query(data=None, count=None):
    """A chainable query builder double whose execute() returns data."""
    query = MagicMock()
    for name in BUILDER_METHODS:
        getattr(query, name).return_value = query
    query.execute = AsyncMock(return_value=MagicMock(data=data, count=count))
    return query


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return DashboardStore(client)


class TestConnect:
    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(ConfigurationError):
            await DashboardStore.connect(None, "key")

    @pytest.mark.asyncio
    async def test_connect_creates_async_client(self):
        with patch(
            "opsdash_server.store.database.acreate_client", new=AsyncMock(return_value=MagicMock())
        ) as create:
            store = await DashboardStore.connect("http://supabase.test", "service-key")

        assert isinstance(store, DashboardStore)
        create.assert_awaited_once_with("http://supabase.test", "service-key")


class TestQueries:
    @pytest.mark.asyncio
    async def test_get_settings_as_mapping(self, store, client):
        client.table.return_value = make_query(
            [{"key": "ai_provider", "value": "openai"}, {"key": "openai_model", "value": None}]
        )

        assert await store.get_settings() == {"ai_provider": "openai", "openai_model": ""}
        client.table.assert_called_once_with("settings")

    @pytest.mark.asyncio
    async def test_list_clients_all_skips_status_filter(self, store, client):
        query = make_query([{"id": "c1"}])
        client.table.return_value = query

        rows = await store.list_clients(status="all", limit=10)

        assert rows == [{"id": "c1"}]
        query.eq.assert_not_called()
        query.order.assert_called_once_with("created_at", desc=True)
        query.limit.assert_called_once_with(10)

    @pytest.mark.asyncio
    async def test_list_invoices_embeds_client(self, store, client):
        query = make_query([])
        client.table.return_value = query

        await store.list_invoices(status="overdue", limit=5)

        query.select.assert_called_once_with("*, clients(name, email)")
        query.eq.assert_called_once_with("status", "overdue")
        query.order.assert_called_once_with("due_date", desc=False)

    @pytest.mark.asyncio
    async def test_search_clients_matches_three_columns(self, store, client):
        query = make_query([])
        client.table.return_value = query

        await store.search_clients("acme")

        query.or_.assert_called_once_with(
            "name.ilike.%acme%,company.ilike.%acme%,email.ilike.%acme%"
        )

    @pytest.mark.asyncio
    async def test_list_events_window_and_title(self, store, client):
        query = make_query([])
        client.table.return_value = query
        start = datetime(2026, 3, 11, tzinfo=timezone.utc)
        end = datetime(2026, 3, 11, 23, 59, tzinfo=timezone.utc)

        await store.list_events(start=start, end=end, title="John")

        query.gte.assert_called_once_with("start_time", start.isoformat())
        query.lte.assert_called_once_with("start_time", end.isoformat())
        query.ilike.assert_called_once_with("title", "%John%")

    @pytest.mark.asyncio
    async def test_find_client_by_name_none(self, store, client):
        client.table.return_value = make_query([])

        assert await store.find_client_by_name("Nobody") is None

    @pytest.mark.asyncio
    async def test_count(self, store, client):
        query = make_query([], count=7)
        client.table.return_value = query

        assert await store.count("clients", status="lead") == 7
        query.select.assert_called_once_with("id", count="exact")
        query.eq.assert_called_once_with("status", "lead")

    @pytest.mark.asyncio
    async def test_select_columns_applies_operators(self, store, client):
        query = make_query([{"amount": 10}])
        client.table.return_value = query

        rows = await store.select_columns(
            "invoices",
            "amount",
            [("or", "", "status.eq.overdue"), ("in", "status", ["a"]), ("lt", "due_date", "x")],
        )

        assert rows == [{"amount": 10}]
        query.or_.assert_called_once_with("status.eq.overdue")
        query.in_.assert_called_once_with("status", ["a"])
        query.lt.assert_called_once_with("due_date", "x")

    @pytest.mark.asyncio
    async def test_api_error_becomes_store_error(self, store, client):
        query = make_query()
        query.execute.side_effect = APIError(
            {"message": 'relation "clients" does not exist', "code": "42P01"}
        )
        client.table.return_value = query

        with pytest.raises(StoreError) as exc_info:
            await store.list_clients()

        assert str(exc_info.value) == (
            'Database: Failed to list clients: relation "clients" does not exist'
        )


class TestBookkeeping:
    @pytest.mark.asyncio
    async def test_add_roi_emails_updates_existing_row(self, store, client):
        query = make_query([{"metric_date": "2026-03-10", "emails_sent": 2, "time_saved_hours": 0.2}])
        client.table.return_value = query

        await store.add_roi_emails("2026-03-10", 3, 0.3)

        update = query.update.call_args.args[0]
        assert update["emails_sent"] == 5
        assert update["time_saved_hours"] == pytest.approx(0.5)
        query.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_add_roi_emails_inserts_new_row(self, store, client):
        query = make_query([])
        client.table.return_value = query

        await store.add_roi_emails("2026-03-10", 1, 0.1)

        query.insert.assert_called_once_with(
            {"metric_date": "2026-03-10", "emails_sent": 1, "time_saved_hours": 0.1}
        )

    @pytest.mark.asyncio
    async def test_log_automation_omits_empty_error(self, store, client):
        query = make_query([])
        client.table.return_value = query

        await store.log_automation("email_sent", "Sent email", True)

        query.insert.assert_called_once_with(
            {"action_type": "email_sent", "details": "Sent email", "success": True}
        )
