"""Per-member metric extractors.

Each extractor takes one member's activity records and produces a 0-5 score
plus descriptive statistics. Empty inputs produce neutral defaults instead of
errors.
"""

import re
from collections.abc import Sequence
from datetime import datetime

from src.performance.scoring import (
    DAY,
    HOUR,
    bucket,
    clamp_score,
    format_duration,
    mean,
    percentage,
    round1,
    round_half_up,
)
from src.schemas.performance import (
    ActivityLevel,
    CollaborationMetrics,
    CommunicationMetrics,
    ContributionMetrics,
    Message,
    Post,
    Task,
    TaskMetrics,
    TaskPriority,
    TaskStatus,
    TeamFile,
)

EVERYONE = "everyone"
MENTION_PATTERN = re.compile(r"@\w+", re.ASCII)

# Consecutive messages further apart than this start a new conversation
RESPONSE_WINDOW = 24 * HOUR


def tasks_for_member(tasks: Sequence[Task], user_id: str) -> list[Task]:
    """Tasks assigned to the member directly or to the whole team."""
    return [
        task
        for task in tasks
        if user_id in task.assigned_users or task.assignment_type == EVERYONE
    ]


def is_overdue(task: Task, now: datetime) -> bool:
    return (
        task.deadline is not None
        and task.deadline < now
        and task.status != TaskStatus.COMPLETED
    )


def _delivered_on_time(task: Task) -> bool:
    if task.deadline is None:
        return True
    # No completion timestamp means lateness can't be ruled out
    return task.completed_at is not None and task.completed_at <= task.deadline


def calculate_task_metrics(member_tasks: Sequence[Task], now: datetime) -> TaskMetrics:
    """Calculate task delivery metrics.

    Score components (max 5.5 before clamping):
        completion rate  1.5
        on-time rate     1.5
        high priority    1.0
        nothing overdue  1.0 (0.5 otherwise)
    """
    completed = [t for t in member_tasks if t.status == TaskStatus.COMPLETED]
    in_progress = [t for t in member_tasks if t.status == TaskStatus.IN_PROGRESS]
    overdue = [t for t in member_tasks if is_overdue(t, now)]

    completion_rate = percentage(len(completed), len(member_tasks))

    completion_times = [
        (t.completed_at - t.created_at).total_seconds()
        for t in completed
        if t.completed_at is not None and t.created_at is not None
    ]
    avg_completion_seconds = mean(completion_times)

    on_time = [t for t in completed if _delivered_on_time(t)]
    on_time_rate = percentage(len(on_time), len(completed), default=100.0)

    high_priority = [t for t in member_tasks if t.priority == TaskPriority.HIGH]
    high_priority_completed = [t for t in high_priority if t.status == TaskStatus.COMPLETED]
    priority_performance = percentage(
        len(high_priority_completed), len(high_priority), default=100.0
    )

    score = (
        (completion_rate / 100) * 1.5
        + (on_time_rate / 100) * 1.5
        + (priority_performance / 100) * 1.0
        + (1.0 if not overdue else 0.5)
    )

    return TaskMetrics(
        score=clamp_score(score),
        completion_rate=round_half_up(completion_rate),
        avg_completion_time=format_duration(avg_completion_seconds),
        avg_completion_seconds=avg_completion_seconds,
        on_time_rate=round_half_up(on_time_rate),
        total_tasks=len(member_tasks),
        completed_tasks=len(completed),
        in_progress_tasks=len(in_progress),
        overdue_tasks=len(overdue),
        priority_performance=round_half_up(priority_performance),
    )


def response_gaps(messages: Sequence[Message]) -> list[float]:
    """Gaps in seconds between consecutive messages inside the response window."""
    timestamps = sorted(m.created_at for m in messages if m.created_at is not None)
    gaps = []
    for previous, current in zip(timestamps, timestamps[1:]):
        gap = (current - previous).total_seconds()
        if gap < RESPONSE_WINDOW:
            gaps.append(gap)
    return gaps


def activity_level(messages_per_day: float) -> ActivityLevel:
    if messages_per_day > 5:
        return ActivityLevel.HIGH
    if messages_per_day > 2:
        return ActivityLevel.MEDIUM
    return ActivityLevel.LOW


def calculate_communication_metrics(
    member_messages: Sequence[Message],
    join_date: datetime | None,
    now: datetime,
) -> CommunicationMetrics:
    """Calculate chat communication metrics.

    Responsiveness only earns points when there is at least one response
    gap to measure.
    """
    days_active = 1.0
    if join_date is not None:
        days_active = max(1.0, (now - join_date).total_seconds() / DAY)

    gaps = response_gaps(member_messages)
    avg_response_seconds = mean(gaps)

    messages_per_day = len(member_messages) / days_active
    level = activity_level(messages_per_day)
    avg_message_length = mean(len(m.content) for m in member_messages)

    responsive = bool(gaps) and avg_response_seconds < 4 * HOUR
    score = (
        (2 if avg_message_length > 50 else 1)  # Message depth
        + (2 if messages_per_day > 1 else 1)  # Frequency
        + (1 if responsive else 0)
    )

    return CommunicationMetrics(
        score=clamp_score(score),
        avg_response_time=format_duration(avg_response_seconds),
        response_time_seconds=avg_response_seconds,
        response_samples=len(gaps),
        messages_per_day=round1(messages_per_day),
        total_messages=len(member_messages),
        activity_level=level,
        avg_message_length=round(avg_message_length),
        days_active=round(days_active),
    )


def _shares_knowledge(post: Post) -> bool:
    return bool(post.attachments) or bool(post.links)


def calculate_collaboration_metrics(
    member_posts: Sequence[Post],
    member_messages: Sequence[Message],
) -> CollaborationMetrics:
    """Calculate team feed and helping-others metrics."""
    total_posts = len(member_posts)
    total_likes = sum(p.like_count for p in member_posts)
    total_comments = sum(p.comment_count for p in member_posts)

    engagement_rate = (total_likes + total_comments) / total_posts if total_posts else 0.0
    mention_count = sum(1 for m in member_messages if MENTION_PATTERN.search(m.content))
    knowledge_sharing = sum(1 for p in member_posts if _shares_knowledge(p))

    score = (
        bucket(engagement_rate, [(2, 1.5), (1, 1.0)], default=0.5)
        + bucket(mention_count, [(5, 1.5), (2, 1.0)], default=0.5)
        + bucket(knowledge_sharing, [(2, 1.0), (0, 0.5)])
        + bucket(total_posts, [(5, 1.0), (2, 0.5)])
    )

    return CollaborationMetrics(
        score=clamp_score(score),
        total_posts=total_posts,
        avg_likes_per_post=round1(total_likes / total_posts) if total_posts else 0.0,
        avg_comments_per_post=round1(total_comments / total_posts) if total_posts else 0.0,
        mention_count=mention_count,
        knowledge_sharing=knowledge_sharing,
        engagement_rate=engagement_rate,
    )


# file category -> contribution type
CONTRIBUTION_CATEGORIES = {
    "document": "documentation",
    "code": "code",
    "design": "design",
}


def calculate_contribution_metrics(
    member_files: Sequence[TeamFile],
    member_posts: Sequence[Post],
) -> ContributionMetrics:
    """Calculate file contribution metrics."""
    total_files = len(member_files)
    total_downloads = sum(f.download_count for f in member_files)

    category_counts = {
        category: sum(1 for f in member_files if f.category == category)
        for category in CONTRIBUTION_CATEGORIES
    }

    contribution_types = [
        kind for category, kind in CONTRIBUTION_CATEGORIES.items() if category_counts[category]
    ]
    if member_posts:
        contribution_types.append("communication")
    diversity_score = len(contribution_types)

    score = (
        bucket(total_files, [(5, 1.5), (2, 1.0), (0, 0.5)])
        + bucket(total_downloads, [(10, 1.0), (3, 0.5)])
        + bucket(diversity_score, [(2, 1.5), (1, 1.0)], default=0.5)
        + bucket(len(member_posts), [(3, 1.0), (1, 0.5)])
    )

    return ContributionMetrics(
        score=clamp_score(score),
        total_files=total_files,
        total_downloads=total_downloads,
        avg_downloads_per_file=round1(total_downloads / total_files) if total_files else 0.0,
        document_files=category_counts["document"],
        code_files=category_counts["code"],
        design_files=category_counts["design"],
        diversity_score=diversity_score,
        contribution_types=contribution_types,
    )
