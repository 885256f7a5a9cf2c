"""Pydantic schemas for request/response validation."""

from src.schemas.performance import (
    DashboardResponse,
    Member,
    MemberPerformance,
    MemberPerformanceRequest,
    Message,
    Post,
    Task,
    TeamFile,
    TeamPerformance,
    TeamPerformanceRequest,
)

__all__ = [
    # Activity records
    "Member",
    "Task",
    "Message",
    "Post",
    "TeamFile",
    # Results
    "MemberPerformance",
    "TeamPerformance",
    # API payloads
    "TeamPerformanceRequest",
    "MemberPerformanceRequest",
    "DashboardResponse",
]
