"""Pytest fixtures and configuration."""

from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from src.config import Settings
from src.main import app

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Override settings for testing."""
    return Settings(
        backend_base_url="http://backend.test",
        synthetic_fallback_enabled=True,
        debug=True,
    )


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for calculations."""
    return NOW


# Test client
@pytest.fixture
def client() -> Generator:
    """Create test client."""
    with TestClient(app) as c:
        yield c


# Async test client
@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


@pytest.fixture
def make_member():
    """Factory for raw member records shaped like the team structure."""

    def _make(user_id: str = "u1", days_ago: int = 10, **extra: Any) -> dict[str, Any]:
        return {
            "_id": f"member-{user_id}",
            "user": {"_id": user_id},
            "assignedAt": iso(NOW - timedelta(days=days_ago)),
            "assignedRole": "Developer",
            "isLead": False,
            **extra,
        }

    return _make


@pytest.fixture
def make_task():
    """Factory for raw task records."""
    counter = iter(range(10_000))

    def _make(
        user_id: str = "u1",
        status: str = "completed",
        priority: str = "medium",
        created_days_ago: float = 5,
        completed_days_ago: float | None = 1,
        deadline_days_ago: float | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        task: dict[str, Any] = {
            "_id": f"task-{next(counter)}",
            "assignedUsers": [user_id],
            "assignmentType": "specific",
            "status": status,
            "priority": priority,
            "createdAt": iso(NOW - timedelta(days=created_days_ago)),
        }
        if status == "completed" and completed_days_ago is not None:
            task["completedAt"] = iso(NOW - timedelta(days=completed_days_ago))
        if deadline_days_ago is not None:
            task["deadline"] = iso(NOW - timedelta(days=deadline_days_ago))
        task.update(extra)
        return task

    return _make


@pytest.fixture
def make_message():
    """Factory for raw chat messages."""
    counter = iter(range(10_000))

    def _make(user_id: str = "u1", minutes_ago: float = 60, content: str = "hello") -> dict[str, Any]:
        return {
            "_id": f"msg-{next(counter)}",
            "sender": {"_id": user_id},
            "content": content,
            "createdAt": iso(NOW - timedelta(minutes=minutes_ago)),
        }

    return _make


@pytest.fixture
def make_post():
    """Factory for raw team feed posts."""
    counter = iter(range(10_000))

    def _make(user_id: str = "u1", likes: int = 0, comments: int = 0, **extra: Any) -> dict[str, Any]:
        post = {
            "_id": f"post-{next(counter)}",
            "author": {"_id": user_id},
            "content": "Update",
            "likeCount": likes,
            "commentCount": comments,
            "attachments": [],
            "links": [],
            "createdAt": iso(NOW - timedelta(days=1)),
        }
        post.update(extra)
        return post

    return _make


@pytest.fixture
def make_file():
    """Factory for raw team files."""
    counter = iter(range(10_000))

    def _make(user_id: str = "u1", category: str = "document", downloads: int = 0) -> dict[str, Any]:
        return {
            "_id": f"file-{next(counter)}",
            "uploader": {"_id": user_id},
            "category": category,
            "downloadCount": downloads,
            "createdAt": iso(NOW - timedelta(days=2)),
        }

    return _make
