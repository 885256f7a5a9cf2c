"""Performance API endpoints."""

import structlog
from fastapi import APIRouter, HTTPException

from src.config import settings
from src.performance.aggregator import PerformanceDataError, performance_aggregator
from src.performance.calculator import PerformanceCalculator
from src.performance.synthetic import generate_synthetic_team_performance
from src.schemas.performance import (
    DashboardResponse,
    MemberPerformance,
    MemberPerformanceRequest,
    TeamPerformance,
    TeamPerformanceRequest,
)

logger = structlog.get_logger()

router = APIRouter()


@router.post("/team", response_model=TeamPerformance)
async def calculate_team(request: TeamPerformanceRequest) -> TeamPerformance:
    """Calculate team performance from a supplied activity snapshot."""
    return PerformanceCalculator.calculate_team_performance(
        request.members,
        request.tasks,
        request.messages,
        request.posts,
        request.files,
        now=request.now,
    )


@router.post("/member", response_model=MemberPerformance)
async def calculate_member(request: MemberPerformanceRequest) -> MemberPerformance:
    """Calculate a single member's performance from a supplied activity snapshot."""
    return PerformanceCalculator.calculate_member_performance(
        request.member,
        request.tasks,
        request.messages,
        request.posts,
        request.files,
        now=request.now,
    )


@router.get("/{idea_id}/dashboard", response_model=DashboardResponse)
async def get_dashboard(idea_id: str) -> DashboardResponse:
    """Get the team performance dashboard for an idea.

    Falls back to synthetic demo data when the collaboration backend is
    unavailable and the fallback is enabled.
    """
    try:
        report = await performance_aggregator.aggregate_team_data(idea_id)
        return DashboardResponse(source="live", data=report)
    except PerformanceDataError as e:
        if not settings.synthetic_fallback_enabled:
            raise HTTPException(status_code=502, detail="Could not load team performance data")

        logger.warning(
            "Using synthetic performance data",
            idea_id=idea_id,
            collection=e.collection,
            error=str(e),
        )
        report = generate_synthetic_team_performance(idea_id, settings.synthetic_team_size)
        return DashboardResponse(source="synthetic", data=report)
