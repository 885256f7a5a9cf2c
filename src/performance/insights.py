"""Rule-based insights and recommendations."""

from collections.abc import Sequence

from src.performance.scoring import HOUR, mean
from src.schemas.performance import (
    ActivityLevel,
    CollaborationMetrics,
    CommunicationMetrics,
    ContributionMetrics,
    Insight,
    InsightType,
    MemberPerformance,
    Recommendation,
    RecommendationPriority,
    TaskMetrics,
)

HIGH_PERFORMER_SCORE = 4.0
STRUGGLING_SCORE = 3.0


def generate_member_insights(
    tasks: TaskMetrics,
    communication: CommunicationMetrics,
    collaboration: CollaborationMetrics,
    contribution: ContributionMetrics,
) -> list[Insight]:
    """Generate insights for an individual member."""
    insights = []

    # Task insights
    if tasks.completion_rate > 90:
        insights.append(Insight(type=InsightType.SUCCESS, message="Excellent task completion rate"))
    elif tasks.completion_rate < 60:
        insights.append(
            Insight(type=InsightType.WARNING, message="Task completion rate needs improvement")
        )

    if tasks.on_time_rate > 85:
        insights.append(Insight(type=InsightType.SUCCESS, message="Consistently meets deadlines"))
    elif tasks.on_time_rate < 70:
        insights.append(Insight(type=InsightType.WARNING, message="Frequent deadline misses"))

    # Communication insights
    if communication.activity_level == ActivityLevel.HIGH:
        insights.append(
            Insight(type=InsightType.SUCCESS, message="Highly engaged in team communication")
        )
    elif communication.activity_level == ActivityLevel.LOW:
        insights.append(
            Insight(type=InsightType.INFO, message="Could benefit from more active communication")
        )

    if communication.response_samples and communication.response_time_seconds < 2 * HOUR:
        insights.append(Insight(type=InsightType.SUCCESS, message="Very responsive team member"))

    # Collaboration insights
    if collaboration.knowledge_sharing > 3:
        insights.append(Insight(type=InsightType.SUCCESS, message="Excellent knowledge sharing"))

    if collaboration.mention_count > 5:
        insights.append(Insight(type=InsightType.SUCCESS, message="Actively helps team members"))

    return insights


def generate_member_recommendations(
    tasks: TaskMetrics,
    communication: CommunicationMetrics,
) -> list[Recommendation]:
    """Generate improvement recommendations for an individual member."""
    recommendations = []

    if tasks.completion_rate < 80:
        recommendations.append(Recommendation(
            priority=RecommendationPriority.HIGH,
            action="Improve Task Management",
            description="Consider breaking down large tasks into smaller, manageable pieces",
        ))

    if tasks.on_time_rate < 75:
        recommendations.append(Recommendation(
            priority=RecommendationPriority.HIGH,
            action="Better Deadline Planning",
            description="Review time estimation and add buffer time for unexpected challenges",
        ))

    if communication.activity_level == ActivityLevel.LOW:
        recommendations.append(Recommendation(
            priority=RecommendationPriority.MEDIUM,
            action="Increase Team Engagement",
            description="Participate more actively in team discussions and updates",
        ))

    if communication.response_time_seconds > 8 * HOUR:
        recommendations.append(Recommendation(
            priority=RecommendationPriority.MEDIUM,
            action="Improve Response Time",
            description="Try to respond to team messages within 4-6 hours during work days",
        ))

    return recommendations


def _high_performers(members: Sequence[MemberPerformance]) -> list[MemberPerformance]:
    return [m for m in members if m.overall.score >= HIGH_PERFORMER_SCORE]


def _struggling(members: Sequence[MemberPerformance]) -> list[MemberPerformance]:
    return [m for m in members if m.overall.score < STRUGGLING_SCORE]


def generate_team_insights(members: Sequence[MemberPerformance]) -> list[Insight]:
    """Generate team-level insights from member results."""
    if not members:
        return []

    insights = []
    team_size = len(members)
    high_performers = len(_high_performers(members))
    low_performers = len(_struggling(members))

    if high_performers > team_size * 0.7:
        insights.append(Insight(
            type=InsightType.SUCCESS,
            title="Strong Team Performance",
            message=f"{high_performers} out of {team_size} members are high performers",
        ))

    if low_performers > team_size * 0.3:
        insights.append(Insight(
            type=InsightType.WARNING,
            title="Performance Concerns",
            message=f"{low_performers} members may need additional support or training",
        ))

    measured = any(m.communication.response_samples for m in members)
    avg_response = mean(m.communication.response_time_seconds for m in members)
    if measured and avg_response < 4 * HOUR:
        insights.append(Insight(
            type=InsightType.SUCCESS,
            title="Excellent Communication",
            message="Team maintains fast response times and active communication",
        ))

    return insights


def generate_team_recommendations(members: Sequence[MemberPerformance]) -> list[Recommendation]:
    """Generate team-level recommendations from member results."""
    recommendations = []

    high_performers = _high_performers(members)
    struggling = _struggling(members)

    if high_performers and struggling:
        recommendations.append(Recommendation(
            priority=RecommendationPriority.HIGH,
            action="Implement Mentoring Program",
            description=(
                f"Pair {len(struggling)} struggling members with "
                f"{len(high_performers)} high performers"
            ),
        ))

    low_communicators = sum(
        1 for m in members if m.communication.activity_level == ActivityLevel.LOW
    )
    if low_communicators > len(members) * 0.4:
        recommendations.append(Recommendation(
            priority=RecommendationPriority.MEDIUM,
            action="Improve Team Communication",
            description="Schedule regular check-ins and encourage more active participation",
        ))

    return recommendations
