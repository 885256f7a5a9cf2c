"""Unit tests for the performance calculator."""

from datetime import timedelta

import pytest

from src.performance.calculator import (
    COLLABORATION_WEIGHT,
    COMMUNICATION_WEIGHT,
    CONTRIBUTION_WEIGHT,
    TASK_WEIGHT,
    PerformanceCalculator,
    calculate_member_performance,
    calculate_team_performance,
    coerce_records,
)
from src.performance.insights import generate_team_insights, generate_team_recommendations
from src.performance.synthetic import generate_activity_snapshot
from src.schemas.performance import (
    ActivityLevel,
    Grade,
    MetricTrend,
    OverallScore,
    Task,
)


def weighted(member):
    return (
        member.tasks.score * TASK_WEIGHT
        + member.communication.score * COMMUNICATION_WEIGHT
        + member.collaboration.score * COLLABORATION_WEIGHT
        + member.contribution.score * CONTRIBUTION_WEIGHT
    )


class TestMemberPerformance:
    """Tests for member performance."""

    def test_inactive_member(self, now, make_member):
        """Test a member with no activity gets neutral defaults."""
        result = calculate_member_performance(make_member(), [], [], [], [], now=now)

        assert result.user_id == "u1"
        assert result.member_id == "member-u1"
        assert result.tasks.score == pytest.approx(3.5)
        assert result.communication.score == 2
        assert result.collaboration.score == pytest.approx(1.0)
        assert result.contribution.score == pytest.approx(0.5)
        assert result.overall.score == pytest.approx(2.175)
        assert result.overall.grade == Grade.C
        assert result.overall.trend == MetricTrend.STABLE

        assert [i.message for i in result.insights] == [
            "Task completion rate needs improvement",
            "Consistently meets deadlines",
            "Could benefit from more active communication",
        ]
        assert [r.action for r in result.recommendations] == [
            "Improve Task Management",
            "Increase Team Engagement",
        ]

    def test_filters_activity_by_member(self, now, make_member, make_task, make_message, make_post, make_file):
        """Test only the member's own records are scored."""
        tasks = [make_task(user_id="u1"), make_task(user_id="u2", status="pending")]
        messages = [make_message(user_id="u2") for _ in range(5)]
        posts = [make_post(user_id="u2")]
        files = [make_file(user_id="u2")]

        result = calculate_member_performance(
            make_member(user_id="u1"), tasks, messages, posts, files, now=now
        )

        assert result.tasks.total_tasks == 1
        assert result.tasks.completion_rate == 100
        assert result.communication.total_messages == 0
        assert result.collaboration.total_posts == 0
        assert result.contribution.total_files == 0

    def test_weighted_overall_score(self, now, make_member, make_task, make_message, make_post, make_file):
        """Test the overall score is the weighted component sum."""
        result = calculate_member_performance(
            make_member(days_ago=3),
            [make_task(), make_task(status="in_progress", deadline_days_ago=1)],
            [make_message(minutes_ago=5 * i, content="@bob " + "y" * 60) for i in range(20)],
            [make_post(likes=3, comments=1, links=["https://x.test"]) for _ in range(4)],
            [make_file(category="design", downloads=6), make_file(category="code")],
            now=now,
        )

        assert result.overall.score == pytest.approx(weighted(result))
        assert 0 <= result.overall.score <= 5

    def test_previous_score_drives_trend(self, now, make_member):
        """Test trend against an explicit previous score."""
        up = calculate_member_performance(make_member(previousScore=1.0), [], [], [], [], now=now)
        down = calculate_member_performance(make_member(previousScore=4.5), [], [], [], [], now=now)

        assert up.overall.trend == MetricTrend.UP
        assert down.overall.trend == MetricTrend.DOWN

    def test_idempotent(self, now, make_member, make_task, make_message):
        """Test repeated calls with the same inputs give the same result."""
        args = (make_member(), [make_task(), make_task(status="pending")], [make_message()], [], [])

        first = calculate_member_performance(*args, now=now)
        second = calculate_member_performance(*args, now=now)

        assert first == second
        assert first.model_dump() == second.model_dump()

    def test_malformed_records_are_skipped(self, now, make_member, make_task):
        """Test bad records degrade gracefully instead of raising."""
        tasks = [
            make_task(),
            "not a task",
            None,
            {"assignedUsers": ["u1"], "status": "exploded", "createdAt": "yesterday"},
        ]

        result = calculate_member_performance(make_member(), tasks, [42], [None], [[]], now=now)

        assert result.tasks.total_tasks == 2
        assert result.tasks.completed_tasks == 1
        assert result.communication.total_messages == 0

    def test_unbounded_counts_do_not_raise(self, now, make_member, make_post):
        """Test overflowing or infinite counts are treated as zero."""
        posts = [make_post(likes="1e400", comments=float("inf"))]
        files = [{"uploader": {"_id": "u1"}, "category": "code", "downloadCount": float("-inf")}]

        result = calculate_member_performance(make_member(), [], [], posts, files, now=now)

        assert result.collaboration.total_posts == 1
        assert result.collaboration.engagement_rate == 0
        assert result.contribution.total_downloads == 0

    def test_task_recommendation_uses_reported_rate(self, now, make_member, make_task):
        """Test a 79.6% completion rate reports as 80 and needs no task advice."""
        tasks = [make_task() for _ in range(39)]
        tasks += [make_task(status="pending") for _ in range(10)]

        result = calculate_member_performance(make_member(), tasks, [], [], [], now=now)

        assert result.tasks.completion_rate == 80
        assert "Improve Task Management" not in [r.action for r in result.recommendations]


class TestTeamPerformance:
    """Tests for team performance."""

    def test_inactive_team(self, now, make_member):
        """Test team summary for members with no activity."""
        members = [make_member(user_id="u1"), make_member(user_id="u2")]

        result = calculate_team_performance(members, [], [], [], [], now=now)

        assert len(result.members) == 2
        assert result.overall.quality == pytest.approx(2.175)
        assert result.overall.collaboration == pytest.approx(1.0)
        assert result.overall.velocity == 0
        # (0.3 * 2.175 / 5 + 0.2 * 1 / 5) * 100
        assert result.overall.productivity == 17
        assert result.tasks.total == 0
        assert result.tasks.completion_rate == 0
        assert result.communication.active_members == 0
        assert result.communication.avg_response_time == "0h"
        assert result.engagement.avg_engagement == 0
        assert result.generated_at == now

        assert [i.title for i in result.insights] == ["Performance Concerns"]
        assert [r.action for r in result.recommendations] == ["Improve Team Communication"]

    def test_empty_team(self, now, make_task):
        """Test a team without members still yields a result."""
        result = calculate_team_performance([], [make_task()], [], [], [], now=now)

        assert result.members == []
        assert result.overall.quality == 0
        assert result.tasks.completed == 1
        assert result.tasks.completion_rate == 100
        assert result.insights == []
        assert result.recommendations == []

    def test_unusable_member_entries_still_yield_results(self, now, make_member):
        """Test every member entry produces a result, in input order."""
        members = [None, make_member(user_id="u1"), "bogus"]

        result = calculate_team_performance(members, [], [], [], [], now=now)

        assert [m.user_id for m in result.members] == ["", "u1", ""]
        assert result.members[0] == result.members[2]
        assert result.overall.quality == pytest.approx(2.175)

    def test_member_order_is_preserved(self, now):
        """Test members come back in input order, unchanged in value."""
        snapshot = generate_activity_snapshot(seed=7, team_size=4, now=now)
        activity = (snapshot["tasks"], snapshot["messages"], snapshot["posts"], snapshot["files"])

        forward = calculate_team_performance(snapshot["members"], *activity, now=now)
        backward = calculate_team_performance(list(reversed(snapshot["members"])), *activity, now=now)

        assert [m.user_id for m in forward.members] == [
            m["user"]["_id"] for m in snapshot["members"]
        ]
        assert backward.members == list(reversed(forward.members))

    @pytest.mark.parametrize("seed", range(12))
    def test_scores_stay_in_bounds(self, now, seed):
        """Test score bounds and the weighted sum on generated teams."""
        snapshot = generate_activity_snapshot(seed=seed, team_size=5, now=now)

        result = calculate_team_performance(
            snapshot["members"],
            snapshot["tasks"],
            snapshot["messages"],
            snapshot["posts"],
            snapshot["files"],
            now=now,
        )

        assert len(result.members) == 5
        for member in result.members:
            for score in (
                member.tasks.score,
                member.communication.score,
                member.collaboration.score,
                member.contribution.score,
                member.overall.score,
            ):
                assert 0 <= score <= 5
            assert member.overall.score == pytest.approx(weighted(member))
        assert 0 <= result.overall.quality <= 5

    def test_previous_scores_by_user(self, now, make_member):
        """Test previous scores supplied alongside the team."""
        result = calculate_team_performance(
            [make_member(user_id="u1"), make_member(user_id="u2")],
            [],
            [],
            [],
            [],
            now=now,
            previous_scores={"u1": 1.0},
        )

        assert result.members[0].overall.trend == MetricTrend.UP
        assert result.members[1].overall.trend == MetricTrend.STABLE

    def test_team_task_summary(self, now, make_member, make_task):
        """Test team-wide task counts."""
        tasks = [
            make_task(user_id="u1"),
            make_task(user_id="u2", status="in_progress", deadline_days_ago=2),
            make_task(user_id="u2", status="pending"),
            make_task(user_id="u1", status="cancelled"),
        ]

        result = calculate_team_performance([make_member()], tasks, [], [], [], now=now)

        assert result.tasks.total == 4
        assert result.tasks.completed == 1
        assert result.tasks.in_progress == 1
        assert result.tasks.overdue == 1
        assert result.tasks.completion_rate == 25


class TestTeamVelocity:
    """Tests for team velocity."""

    def test_no_completed_tasks(self, make_task):
        tasks = coerce_records(Task, [make_task(status="pending")])
        assert PerformanceCalculator.calculate_team_velocity(tasks) == 0

    def test_minimum_span_of_one_week(self, make_task):
        tasks = coerce_records(Task, [make_task(completed_days_ago=1), make_task(completed_days_ago=2)])
        assert PerformanceCalculator.calculate_team_velocity(tasks) == 2.0

    def test_tasks_per_week(self, make_task):
        records = [make_task(created_days_ago=30, completed_days_ago=d) for d in (0, 3, 7, 14)]
        tasks = coerce_records(Task, records)
        assert PerformanceCalculator.calculate_team_velocity(tasks) == 2.0


class TestTeamRules:
    """Tests for team insights and recommendations."""

    @pytest.fixture
    def three_members(self, now, make_member):
        base = calculate_member_performance(make_member(), [], [], [], [], now=now)

        def with_score(score):
            return base.model_copy(
                update={"overall": OverallScore(score=score, grade=Grade.A, trend=MetricTrend.STABLE)}
            )

        return [with_score(4.8), with_score(4.2), with_score(2.1)]

    def test_performance_concerns(self, three_members):
        """Test one struggling member out of three crosses the 30% line."""
        titles = [i.title for i in generate_team_insights(three_members)]

        assert "Performance Concerns" in titles
        # 2 of 3 is not more than 70%
        assert "Strong Team Performance" not in titles

    def test_mentoring_program(self, three_members):
        """Test pairing struggling members with high performers."""
        recommendations = generate_team_recommendations(three_members)

        mentoring = recommendations[0]
        assert mentoring.action == "Implement Mentoring Program"
        assert mentoring.priority == "high"
        assert mentoring.description == "Pair 1 struggling members with 2 high performers"

    def test_strong_team(self, three_members):
        strong = [m for m in three_members if m.overall.score >= 4]

        insights = generate_team_insights(strong)

        assert insights[0].title == "Strong Team Performance"
        assert insights[0].message == "2 out of 2 members are high performers"

    def test_excellent_communication(self, three_members):
        """Test fast measured response times across the team."""
        fast = [
            m.model_copy(update={
                "communication": m.communication.model_copy(update={
                    "response_time_seconds": 1800.0,
                    "response_samples": 4,
                    "activity_level": ActivityLevel.HIGH,
                })
            })
            for m in three_members
        ]

        insights = generate_team_insights(fast)
        recommendations = generate_team_recommendations(fast)

        assert insights[-1].title == "Excellent Communication"
        assert "Improve Team Communication" not in [r.action for r in recommendations]

    def test_no_members(self):
        assert generate_team_insights([]) == []
        assert generate_team_recommendations([]) == []


class TestTimestamps:
    """Tests for reference time handling."""

    def test_overdue_depends_on_now(self, now, make_member, make_task):
        """Test the same task is overdue only after its deadline."""
        tasks = [make_task(status="pending", deadline_days_ago=1)]

        before = calculate_member_performance(
            make_member(), tasks, [], [], [], now=now - timedelta(days=2)
        )
        after = calculate_member_performance(make_member(), tasks, [], [], [], now=now)

        assert before.tasks.overdue_tasks == 0
        assert after.tasks.overdue_tasks == 1

    def test_naive_now_is_utc(self, now, make_member):
        naive = now.replace(tzinfo=None)

        result = calculate_team_performance([make_member()], [], [], [], [], now=naive)

        assert result.generated_at == now
