"""Deterministic synthetic fixtures for demos, dashboards and tests.

Nothing here feeds the production calculation path. The dashboard falls back
to ``generate_synthetic_team_performance`` only when live data can't be
collected and the fallback is enabled in settings.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Any

from src.performance.scoring import (
    HOUR,
    calculate_trend,
    clamp_score,
    format_duration,
    performance_grade,
)
from src.schemas.performance import (
    ActivityLevel,
    CollaborationMetrics,
    CommunicationMetrics,
    ContributionMetrics,
    Insight,
    InsightType,
    MemberPerformance,
    OverallScore,
    Recommendation,
    RecommendationPriority,
    TaskMetrics,
    TeamCommunicationSummary,
    TeamEngagementSummary,
    TeamOverall,
    TeamPerformance,
    TeamTaskSummary,
)

FALLBACK_HASH = 1000
LEVELS = [ActivityLevel.LOW, ActivityLevel.MEDIUM, ActivityLevel.HIGH]
FILE_CATEGORIES = ["document", "code", "design", "other"]


def id_hash(identifier: str, digits: int = 4) -> int:
    """Number from the trailing hex digits of an id (ObjectIds are hex)."""
    try:
        value = int(identifier[-digits:], 16)
    except ValueError:
        return FALLBACK_HASH
    return value or FALLBACK_HASH


def _synthetic_member(idea_id: str, index: int) -> MemberPerformance:
    h = id_hash(f"{idea_id}{index}")

    task_score = 3.0 + (h % 20) / 10
    comm_score = 2.5 + (h % 25) / 10
    collab_score = 3.0 + (h % 15) / 10
    contrib_score = clamp_score(2.8 + (h % 22) / 10)
    overall = clamp_score(
        task_score * 0.40 + comm_score * 0.25 + collab_score * 0.20 + contrib_score * 0.15
    )
    response_seconds = (1 + (h % 30) / 10) * HOUR
    total_tasks = 8 + h % 12

    return MemberPerformance(
        member_id=f"member_{index}",
        user_id=f"user_{index}",
        overall=OverallScore(
            score=overall,
            grade=performance_grade(overall),
            trend=calculate_trend(overall, 2.5 + (h % 30) / 10),
        ),
        tasks=TaskMetrics(
            score=task_score,
            completion_rate=70 + h % 30,
            avg_completion_time=f"{2 + h % 5}.{h % 10}d",
            avg_completion_seconds=(2 + h % 5) * 24 * HOUR,
            on_time_rate=75 + h % 25,
            total_tasks=total_tasks,
            completed_tasks=min(total_tasks, 6 + h % 8),
            in_progress_tasks=1 + h % 3,
            overdue_tasks=h % 3,
            priority_performance=80 + h % 20,
        ),
        communication=CommunicationMetrics(
            score=clamp_score(comm_score),
            avg_response_time=format_duration(response_seconds),
            response_time_seconds=response_seconds,
            response_samples=10 + h % 40,
            messages_per_day=2 + (h % 40) / 10,
            total_messages=50 + h % 100,
            activity_level=LEVELS[h % 3],
            avg_message_length=80 + h % 120,
            days_active=10 + h % 50,
        ),
        collaboration=CollaborationMetrics(
            score=collab_score,
            total_posts=3 + h % 8,
            avg_likes_per_post=1 + (h % 20) / 10,
            avg_comments_per_post=0.5 + (h % 15) / 10,
            mention_count=2 + h % 10,
            knowledge_sharing=1 + h % 5,
            engagement_rate=5 + (h % 50) / 10,
        ),
        contribution=ContributionMetrics(
            score=contrib_score,
            total_files=2 + h % 8,
            total_downloads=5 + h % 25,
            avg_downloads_per_file=2 + (h % 30) / 10,
            document_files=1 + h % 4,
            code_files=h % 3,
            design_files=h % 2,
            diversity_score=2 + h % 3,
            contribution_types=["documentation", "communication"][: 1 + h % 2],
        ),
        insights=[
            Insight(type=InsightType.SUCCESS, message="Consistent task completion"),
            Insight(type=InsightType.INFO, message="Active team communicator"),
        ][: 1 + h % 2],
        recommendations=[
            Recommendation(
                priority=RecommendationPriority.MEDIUM,
                action="Maintain current pace",
                description="Continue excellent work patterns",
            )
        ],
    )


def generate_synthetic_team_performance(
    idea_id: str,
    team_size: int = 5,
    now: datetime | None = None,
) -> TeamPerformance:
    """Build a plausible, repeatable team report derived from an idea id."""
    members = [_synthetic_member(idea_id, index) for index in range(team_size)]
    h1, h2, h3 = id_hash(idea_id, 1), id_hash(idea_id, 2), id_hash(idea_id, 3)
    high_performers = sum(1 for m in members if m.overall.score >= 4)

    return TeamPerformance(
        overall=TeamOverall(
            productivity=75 + h2 % 25,
            quality=clamp_score(3.8 + (h3 % 12) / 10),
            collaboration=clamp_score(3.5 + (h2 % 15) / 10),
            velocity=2.1 + (h1 % 20) / 10,
        ),
        tasks=TeamTaskSummary(
            total=35 + h2 % 20,
            completed=28 + h2 % 7,
            in_progress=4 + h1 % 6,
            overdue=h1 % 3,
            completion_rate=75 + h2 % 25,
        ),
        communication=TeamCommunicationSummary(
            avg_response_time=f"{2 + (h2 % 20) / 10:g}h",
            avg_response_time_seconds=(2 + (h2 % 20) / 10) * HOUR,
            total_messages=200 + h3 % 300,
            active_members=min(team_size, 3 + h1 % 3),
        ),
        engagement=TeamEngagementSummary(
            total_posts=15 + h2 % 20,
            total_files=8 + h1 % 12,
            avg_engagement=6.5 + (h2 % 35) / 10,
        ),
        members=members,
        insights=[
            Insight(
                type=InsightType.SUCCESS,
                title="Strong Team Performance",
                message=f"{high_performers} out of {team_size} members are high performers",
            )
        ],
        recommendations=[
            Recommendation(
                priority=RecommendationPriority.MEDIUM,
                action="Continue Current Momentum",
                description="Team is performing well overall",
            )
        ],
        generated_at=now or datetime.now(timezone.utc),
    )


def _iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


def generate_activity_snapshot(
    seed: int,
    team_size: int = 4,
    now: datetime | None = None,
) -> dict[str, list[dict[str, Any]]]:
    """Generate a raw activity snapshot shaped like the backend's JSON.

    The same seed and ``now`` always produce the same snapshot.
    """
    rng = random.Random(seed)
    now = now or datetime(2024, 6, 1, tzinfo=timezone.utc)

    members = []
    for index in range(team_size):
        joined = now - timedelta(days=rng.randint(7, 120))
        members.append({
            "_id": f"m{seed}-{index}",
            "user": {"_id": f"u{seed}-{index}"},
            "assignedAt": _iso(joined),
            "assignedRole": rng.choice(["Developer", "Designer", "Product", "QA"]),
            "isLead": index == 0,
        })
    user_ids = [m["user"]["_id"] for m in members]

    tasks = []
    for index in range(rng.randint(0, 6 * team_size)):
        created = now - timedelta(days=rng.randint(1, 60), hours=rng.randint(0, 23))
        status = rng.choice(["pending", "in_progress", "completed", "completed", "cancelled"])
        task: dict[str, Any] = {
            "_id": f"t{seed}-{index}",
            "assignedUsers": rng.sample(user_ids, rng.randint(1, len(user_ids))),
            "assignmentType": "everyone" if rng.random() < 0.1 else "specific",
            "status": status,
            "priority": rng.choice(["low", "medium", "high", "urgent"]),
            "createdAt": _iso(created),
        }
        if rng.random() < 0.7:
            task["deadline"] = _iso(created + timedelta(days=rng.randint(1, 21)))
        if status == "completed":
            task["completedAt"] = _iso(
                min(now, created + timedelta(hours=rng.randint(1, 24 * 20)))
            )
        tasks.append(task)

    messages = []
    for index in range(rng.randint(0, 40 * team_size)):
        messages.append({
            "_id": f"msg{seed}-{index}",
            "sender": {"_id": rng.choice(user_ids)},
            "content": " ".join(
                rng.choice(["ok", "@team", "shipping", "review", "thanks", "blocked", "lgtm"])
                for _ in range(rng.randint(1, 25))
            ),
            "createdAt": _iso(now - timedelta(minutes=rng.randint(1, 60 * 24 * 30))),
        })

    posts = []
    for index in range(rng.randint(0, 5 * team_size)):
        posts.append({
            "_id": f"p{seed}-{index}",
            "author": {"_id": rng.choice(user_ids)},
            "content": "Update",
            "likeCount": rng.randint(0, 8),
            "commentCount": rng.randint(0, 5),
            "attachments": ["spec.pdf"] if rng.random() < 0.3 else [],
            "links": ["https://example.com"] if rng.random() < 0.2 else [],
            "createdAt": _iso(now - timedelta(days=rng.randint(0, 30))),
        })

    files = []
    for index in range(rng.randint(0, 4 * team_size)):
        files.append({
            "_id": f"f{seed}-{index}",
            "uploader": {"_id": rng.choice(user_ids)},
            "category": rng.choice(FILE_CATEGORIES),
            "downloadCount": rng.randint(0, 15),
            "createdAt": _iso(now - timedelta(days=rng.randint(0, 30))),
        })

    return {
        "members": members,
        "tasks": tasks,
        "messages": messages,
        "posts": posts,
        "files": files,
    }
