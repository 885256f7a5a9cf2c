"""Performance data collection from the collaboration backend."""

import asyncio
from datetime import datetime
from typing import Any

import httpx
import structlog

from src.config import settings
from src.performance.calculator import PerformanceCalculator
from src.schemas.performance import TeamPerformance

logger = structlog.get_logger()


class PerformanceDataError(Exception):
    """Raised when an activity collection can't be fetched."""

    def __init__(self, message: str, idea_id: str | None = None, collection: str | None = None):
        super().__init__(message)
        self.idea_id = idea_id
        self.collection = collection


def _unwrap(payload: Any, envelope: str, key: str) -> list[dict[str, Any]]:
    """Pull a record list out of the backend's response envelope.

    The backend wraps tasks and messages in ``data`` but posts and files in
    ``message``; a missing envelope or key means no records.
    """
    if not isinstance(payload, dict):
        return []
    body = payload.get(envelope)
    if not isinstance(body, dict):
        return []
    records = body.get(key)
    if not isinstance(records, list):
        return []
    return [record for record in records if isinstance(record, dict)]


class PerformanceAggregator:
    """Collects an idea's activity snapshot and scores it.

    All five collections are requested concurrently; the calculation runs
    once the whole batch has arrived.
    """

    def __init__(
        self,
        base_url: str | None = None,
        session_cookie: str | None = None,
        timeout: float | None = None,
        page_limit: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.backend_base_url
        self.session_cookie = (
            session_cookie
            if session_cookie is not None
            else settings.backend_session_cookie.get_secret_value()
        )
        self.timeout = timeout or settings.backend_timeout_seconds
        self.page_limit = page_limit or settings.backend_page_limit
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Open the HTTP client."""
        if self._client:
            return

        cookies = {}
        if self.session_cookie:
            cookies[settings.backend_session_cookie_name] = self.session_cookie

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            cookies=cookies,
            timeout=self.timeout,
            transport=self._transport,
        )
        logger.info("Performance aggregator connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PerformanceAggregator":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    async def _get_json(
        self,
        path: str,
        idea_id: str,
        collection: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        await self.connect()
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error(
                "Failed to fetch performance data",
                idea_id=idea_id,
                collection=collection,
                error=str(e),
            )
            raise PerformanceDataError(
                f"Could not load {collection} for idea {idea_id}",
                idea_id=idea_id,
                collection=collection,
            ) from e
        except ValueError as e:
            logger.error(
                "Invalid JSON in performance data response",
                idea_id=idea_id,
                collection=collection,
            )
            raise PerformanceDataError(
                f"Invalid {collection} response for idea {idea_id}",
                idea_id=idea_id,
                collection=collection,
            ) from e

    async def fetch_tasks(self, idea_id: str) -> list[dict[str, Any]]:
        payload = await self._get_json(f"/api/tasks/idea/{idea_id}", idea_id, "tasks")
        return _unwrap(payload, "data", "tasks")

    async def fetch_messages(self, idea_id: str) -> list[dict[str, Any]]:
        payload = await self._get_json(f"/api/teams/{idea_id}/messages", idea_id, "messages")
        return _unwrap(payload, "data", "messages")

    async def fetch_posts(self, idea_id: str) -> list[dict[str, Any]]:
        payload = await self._get_json(
            f"/api/team-posts/idea/{idea_id}",
            idea_id,
            "posts",
            params={"limit": self.page_limit},
        )
        return _unwrap(payload, "message", "posts")

    async def fetch_files(self, idea_id: str) -> list[dict[str, Any]]:
        payload = await self._get_json(
            f"/api/team-files/idea/{idea_id}",
            idea_id,
            "files",
            params={"limit": self.page_limit},
        )
        return _unwrap(payload, "message", "files")

    async def fetch_team_members(self, idea_id: str) -> list[dict[str, Any]]:
        """Fetch the team composition from the team structure."""
        payload = await self._get_json(f"/api/teams/{idea_id}/structure", idea_id, "structure")
        if not isinstance(payload, dict):
            return []
        structure = payload.get("data") or payload
        if not isinstance(structure, dict):
            return []
        composition = structure.get("teamComposition")
        if not isinstance(composition, list):
            return []
        return [member for member in composition if isinstance(member, dict)]

    async def collect(self, idea_id: str) -> dict[str, list[dict[str, Any]]]:
        """Fetch every activity collection for an idea concurrently."""
        tasks, messages, posts, files, members = await asyncio.gather(
            self.fetch_tasks(idea_id),
            self.fetch_messages(idea_id),
            self.fetch_posts(idea_id),
            self.fetch_files(idea_id),
            self.fetch_team_members(idea_id),
        )

        logger.info(
            "Collected performance data",
            idea_id=idea_id,
            members=len(members),
            tasks=len(tasks),
            messages=len(messages),
            posts=len(posts),
            files=len(files),
        )

        return {
            "members": members,
            "tasks": tasks,
            "messages": messages,
            "posts": posts,
            "files": files,
        }

    async def aggregate_team_data(
        self,
        idea_id: str,
        now: datetime | None = None,
    ) -> TeamPerformance:
        """Collect an idea's activity and calculate team performance."""
        snapshot = await self.collect(idea_id)
        return PerformanceCalculator.calculate_team_performance(
            snapshot["members"],
            snapshot["tasks"],
            snapshot["messages"],
            snapshot["posts"],
            snapshot["files"],
            now=now,
        )


# Singleton instance
performance_aggregator = PerformanceAggregator()
