"""Async client for the ClickUp REST API (v2).

Covers the calls the dashboard needs: discovering lists in a space (folderless
and inside folders), reading tasks, creating and updating tasks, and a
connectivity check.
"""

import asyncio
import logging
from typing import Any

import httpx

from opsdash_server.errors import ConfigurationError, ConnectivityError, UpstreamError

logger = logging.getLogger(__name__)

CLICKUP_API_URL = "https://api.clickup.com/api/v2"
COLLABORATOR = "ClickUp"


class ClickUpClient:
    """Client for one ClickUp workspace space.

    Attributes:
        token: Personal API token sent in the Authorization header.
        space_id: The space whose lists and tasks are read.
    """

    def __init__(
        self,
        token: str | None,
        space_id: str | None,
        base_url: str = CLICKUP_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self.space_id = space_id
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    def _require_token(self) -> None:
        if not self.token:
            raise ConfigurationError(
                "ClickUp credentials not configured", collaborator=COLLABORATOR
            )

    def _require_space(self) -> None:
        self._require_token()
        if not self.space_id:
            raise ConfigurationError(
                "ClickUp credentials not configured", collaborator=COLLABORATOR
            )

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": self.token or "", "Content-Type": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            async with self._http() as client:
                response = await client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            raise ConnectivityError("ClickUp request timed out", COLLABORATOR) from e
        except httpx.TransportError as e:
            raise ConnectivityError(f"Cannot reach ClickUp: {e}", COLLABORATOR) from e

        if response.is_error:
            try:
                detail = response.json().get("err") or response.text
            except ValueError:
                detail = response.text
            logger.error(f"ClickUp {method} {path} failed ({response.status_code}): {detail}")
            raise UpstreamError(detail or f"HTTP {response.status_code}", COLLABORATOR)
        return response.json()

    async def get_lists(self) -> list[dict[str, Any]]:
        """Return all lists in the space.

        Lists inside folders are named "<folder> > <list>". A failure reading
        one group of lists is logged and skipped.
        """
        self._require_space()
        lists: list[dict[str, Any]] = []

        try:
            data = await self._request("GET", f"/space/{self.space_id}/list")
            lists.extend(data.get("lists") or [])
        except UpstreamError as e:
            logger.warning(f"Error fetching folderless lists: {e}")

        try:
            data = await self._request("GET", f"/space/{self.space_id}/folder")
            for folder in data.get("folders") or []:
                folder_data = await self._request("GET", f"/folder/{folder['id']}/list")
                for item in folder_data.get("lists") or []:
                    lists.append({**item, "name": f"{folder['name']} > {item['name']}"})
        except UpstreamError as e:
            logger.warning(f"Error fetching folders: {e}")

        logger.debug(f"Found {len(lists)} ClickUp lists")
        return lists

    async def _list_tasks(self, list_id: str) -> list[dict[str, Any]]:
        data = await self._request(
            "GET",
            f"/list/{list_id}/task",
            params={"subtasks": "true", "include_closed": "false"},
        )
        return data.get("tasks") or []

    async def get_tasks(self, list_id: str | None = None) -> list[dict[str, Any]]:
        """Return open tasks of one list, or of every list in the space.

        When reading the whole space, lists are fetched concurrently and a
        failing list contributes no tasks instead of failing the call.
        """
        self._require_space()
        if list_id:
            return await self._list_tasks(list_id)

        lists = await self.get_lists()
        if not lists:
            return []

        results = await asyncio.gather(
            *(self._list_tasks(item["id"]) for item in lists), return_exceptions=True
        )
        tasks: list[dict[str, Any]] = []
        for item, result in zip(lists, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to fetch tasks for list {item['id']}: {result}")
                continue
            tasks.extend(result)
        return tasks

    async def create_task(
        self,
        list_id: str,
        name: str,
        description: str | None = None,
        due_date: int | None = None,
        status: str | None = None,
        priority: int | None = None,
    ) -> dict[str, Any]:
        """Create a task in a list.

        Args:
            list_id: Target list.
            name: Task name.
            description: Optional description.
            due_date: Optional due date as unix milliseconds.
            status: Optional status name.
            priority: Optional priority (1 urgent .. 4 low).
        """
        self._require_token()
        payload: dict[str, Any] = {"name": name}
        for key, value in (
            ("description", description),
            ("due_date", due_date),
            ("status", status),
            ("priority", priority),
        ):
            if value is not None:
                payload[key] = value
        task = await self._request("POST", f"/list/{list_id}/task", json=payload)
        logger.info(f"Created ClickUp task {task.get('id')} in list {list_id}")
        return task

    async def check_connection(self) -> bool:
        """Check that the token is accepted by the API."""
        if not self.token:
            return False
        try:
            await self._request("GET", "/user")
            return True
        except (ConnectivityError, UpstreamError) as e:
            logger.warning(f"ClickUp connection check failed: {e}")
            return False
