"""Team and member performance calculation.

The calculator is a pure function of the activity snapshot it is given and
the reference time ``now``. It never raises for data-shape problems:
malformed records are skipped and empty collections score neutrally.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from src.performance.extractors import (
    calculate_collaboration_metrics,
    calculate_communication_metrics,
    calculate_contribution_metrics,
    calculate_task_metrics,
    is_overdue,
    tasks_for_member,
)
from src.performance.insights import (
    generate_member_insights,
    generate_member_recommendations,
    generate_team_insights,
    generate_team_recommendations,
)
from src.performance.scoring import (
    WEEK,
    calculate_trend,
    clamp_score,
    format_duration,
    mean,
    percentage,
    performance_grade,
    round1,
)
from src.schemas.performance import (
    ActivityLevel,
    Member,
    MemberPerformance,
    Message,
    OverallScore,
    Post,
    Task,
    TaskStatus,
    TeamCommunicationSummary,
    TeamEngagementSummary,
    TeamFile,
    TeamOverall,
    TeamPerformance,
    TeamTaskSummary,
)

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

# Overall member score weights
TASK_WEIGHT = 0.40
COMMUNICATION_WEIGHT = 0.25
COLLABORATION_WEIGHT = 0.20
CONTRIBUTION_WEIGHT = 0.15

# Team productivity weights
PRODUCTIVITY_WEIGHTS = {
    "completion": 0.40,
    "quality": 0.30,
    "collaboration": 0.20,
    "velocity": 0.10,
}


def coerce_records(model: type[ModelT], records: Iterable[Any] | None) -> list[ModelT]:
    """Validate raw records into models, skipping anything unusable."""
    coerced: list[ModelT] = []
    skipped = 0

    for record in records or ():
        if isinstance(record, model):
            coerced.append(record)
            continue
        if not isinstance(record, Mapping):
            skipped += 1
            continue
        try:
            coerced.append(model.model_validate(dict(record)))
        except ValidationError as e:
            skipped += 1
            logger.warning(
                "Skipping malformed record",
                model=model.__name__,
                error_count=e.error_count(),
            )

    if skipped:
        logger.warning("Skipped activity records", model=model.__name__, skipped=skipped)
    return coerced


def coerce_member(member: Any) -> Member:
    """Validate a member entry, falling back to an empty member.

    Unlike activity records, members are never dropped: every entry in the
    team composition yields one result, in order.
    """
    if isinstance(member, Member):
        return member
    if isinstance(member, Mapping):
        try:
            return Member.model_validate(dict(member))
        except ValidationError as e:
            logger.warning("Malformed member record", error_count=e.error_count())
            return Member()
    logger.warning("Member entry is not a mapping", entry_type=type(member).__name__)
    return Member()


def _resolve_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def weighted_overall_score(
    task_score: float,
    communication_score: float,
    collaboration_score: float,
    contribution_score: float,
) -> float:
    """Combine the four component scores into the overall member score."""
    return clamp_score(
        task_score * TASK_WEIGHT
        + communication_score * COMMUNICATION_WEIGHT
        + collaboration_score * COLLABORATION_WEIGHT
        + contribution_score * CONTRIBUTION_WEIGHT
    )


class PerformanceCalculator:
    """Calculates member and team performance from activity snapshots."""

    @staticmethod
    def calculate_member_performance(
        member: Member | Mapping[str, Any],
        tasks: Sequence[Task | Mapping[str, Any]],
        messages: Sequence[Message | Mapping[str, Any]],
        posts: Sequence[Post | Mapping[str, Any]],
        files: Sequence[TeamFile | Mapping[str, Any]],
        now: datetime | None = None,
    ) -> MemberPerformance:
        """Calculate performance for a single member.

        Args:
            member: The team member, as a model or raw mapping.
            tasks: All tasks for the team.
            messages: All chat messages for the team.
            posts: All team feed posts.
            files: All shared team files.
            now: Reference time for overdue and days-active calculations.

        Returns:
            The member's weighted score, component metrics, insights and
            recommendations.
        """
        return PerformanceCalculator._member_performance(
            coerce_member(member),
            coerce_records(Task, tasks),
            coerce_records(Message, messages),
            coerce_records(Post, posts),
            coerce_records(TeamFile, files),
            _resolve_now(now),
        )

    @staticmethod
    def _member_performance(
        member: Member,
        tasks: list[Task],
        messages: list[Message],
        posts: list[Post],
        files: list[TeamFile],
        now: datetime,
    ) -> MemberPerformance:
        user_id = member.user_id

        member_tasks = tasks_for_member(tasks, user_id)
        # Records without an owner never match a member
        member_messages = [m for m in messages if m.sender_id and m.sender_id == user_id]
        member_posts = [p for p in posts if p.author_id and p.author_id == user_id]
        member_files = [f for f in files if f.uploader_id and f.uploader_id == user_id]

        task_metrics = calculate_task_metrics(member_tasks, now)
        communication_metrics = calculate_communication_metrics(
            member_messages, member.assigned_at, now
        )
        collaboration_metrics = calculate_collaboration_metrics(member_posts, member_messages)
        contribution_metrics = calculate_contribution_metrics(member_files, member_posts)

        overall_score = weighted_overall_score(
            task_metrics.score,
            communication_metrics.score,
            collaboration_metrics.score,
            contribution_metrics.score,
        )

        return MemberPerformance(
            member_id=member.member_id,
            user_id=user_id,
            overall=OverallScore(
                score=overall_score,
                grade=performance_grade(overall_score),
                trend=calculate_trend(overall_score, member.previous_score),
            ),
            tasks=task_metrics,
            communication=communication_metrics,
            collaboration=collaboration_metrics,
            contribution=contribution_metrics,
            insights=generate_member_insights(
                task_metrics,
                communication_metrics,
                collaboration_metrics,
                contribution_metrics,
            ),
            recommendations=generate_member_recommendations(task_metrics, communication_metrics),
        )

    @staticmethod
    def calculate_team_performance(
        members: Sequence[Member | Mapping[str, Any]],
        tasks: Sequence[Task | Mapping[str, Any]],
        messages: Sequence[Message | Mapping[str, Any]],
        posts: Sequence[Post | Mapping[str, Any]],
        files: Sequence[TeamFile | Mapping[str, Any]],
        now: datetime | None = None,
        previous_scores: Mapping[str, float] | None = None,
    ) -> TeamPerformance:
        """Calculate performance for the whole team.

        Args:
            members: Team composition, in display order.
            tasks: All tasks for the team.
            messages: All chat messages for the team.
            posts: All team feed posts.
            files: All shared team files.
            now: Reference time for overdue and days-active calculations.
            previous_scores: Prior overall scores keyed by user id, used for
                member trends when the member record carries none.

        Returns:
            Team summary with one entry per member, in input order.
        """
        now = _resolve_now(now)
        team_members = [coerce_member(member) for member in members or ()]
        task_records = coerce_records(Task, tasks)
        message_records = coerce_records(Message, messages)
        post_records = coerce_records(Post, posts)
        file_records = coerce_records(TeamFile, files)

        if previous_scores:
            team_members = [
                m.model_copy(update={"previous_score": previous_scores[m.user_id]})
                if m.previous_score is None and m.user_id in previous_scores
                else m
                for m in team_members
            ]

        member_performances = [
            PerformanceCalculator._member_performance(
                member, task_records, message_records, post_records, file_records, now
            )
            for member in team_members
        ]

        completed_count = sum(1 for t in task_records if t.status == TaskStatus.COMPLETED)
        completion_rate = percentage(completed_count, len(task_records))
        quality = clamp_score(mean(p.overall.score for p in member_performances))
        collaboration = clamp_score(mean(p.collaboration.score for p in member_performances))
        velocity = PerformanceCalculator.calculate_team_velocity(task_records)
        avg_response_seconds = mean(
            p.communication.response_time_seconds for p in member_performances
        )

        productivity = (
            (completion_rate / 100) * PRODUCTIVITY_WEIGHTS["completion"]
            + (quality / 5) * PRODUCTIVITY_WEIGHTS["quality"]
            + (collaboration / 5) * PRODUCTIVITY_WEIGHTS["collaboration"]
            + (velocity / 5) * PRODUCTIVITY_WEIGHTS["velocity"]
        ) * 100

        logger.debug(
            "Team performance calculated",
            members=len(member_performances),
            tasks=len(task_records),
            productivity=round(productivity),
        )

        return TeamPerformance(
            overall=TeamOverall(
                productivity=round(productivity),
                quality=quality,
                collaboration=collaboration,
                velocity=velocity,
            ),
            tasks=TeamTaskSummary(
                total=len(task_records),
                completed=completed_count,
                in_progress=sum(1 for t in task_records if t.status == TaskStatus.IN_PROGRESS),
                overdue=sum(1 for t in task_records if is_overdue(t, now)),
                completion_rate=completion_rate,
            ),
            communication=TeamCommunicationSummary(
                avg_response_time=format_duration(avg_response_seconds),
                avg_response_time_seconds=avg_response_seconds,
                total_messages=len(message_records),
                active_members=sum(
                    1
                    for p in member_performances
                    if p.communication.activity_level != ActivityLevel.LOW
                ),
            ),
            engagement=TeamEngagementSummary(
                total_posts=len(post_records),
                total_files=len(file_records),
                avg_engagement=round1(
                    mean(p.collaboration.engagement_rate for p in member_performances)
                ),
            ),
            members=member_performances,
            insights=generate_team_insights(member_performances),
            recommendations=generate_team_recommendations(member_performances),
            generated_at=now,
        )

    @staticmethod
    def calculate_team_velocity(tasks: Sequence[Task]) -> float:
        """Completed tasks per week across the span of completions."""
        completion_dates = [
            t.completed_at
            for t in tasks
            if t.status == TaskStatus.COMPLETED and t.completed_at is not None
        ]
        if not completion_dates:
            return 0.0

        span_seconds = (max(completion_dates) - min(completion_dates)).total_seconds()
        span_weeks = max(1.0, span_seconds / WEEK)
        return round1(len(completion_dates) / span_weeks)


calculate_member_performance = PerformanceCalculator.calculate_member_performance
calculate_team_performance = PerformanceCalculator.calculate_team_performance
