"""Performance schemas.

Input records mirror the collaboration backend's JSON. They accept both the
backend's camelCase keys and snake_case names, and every field degrades to a
safe default when it is missing or malformed, so a partially populated
snapshot still validates.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field


class TaskStatus(str, Enum):
    """Task status enum."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    """Task priority enum."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ActivityLevel(str, Enum):
    """Communication activity level."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MetricTrend(str, Enum):
    """Metric trend direction."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class Grade(str, Enum):
    """Letter grade for an overall score."""

    A_PLUS = "A+"
    A = "A"
    B_PLUS = "B+"
    B = "B"
    C_PLUS = "C+"
    C = "C"
    D = "D"


class InsightType(str, Enum):
    """Insight severity."""

    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


class RecommendationPriority(str, Enum):
    """Recommendation priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Lenient field coercion
# ---------------------------------------------------------------------------


def _to_datetime(value: Any) -> datetime | None:
    """Parse ISO strings, epoch milliseconds or datetimes; None if unusable."""
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    # Naive timestamps from the backend are UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_count(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, list):
        # Some endpoints embed the likes/comments arrays instead of counts
        return len(value)
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError, OverflowError):
        # NaN, infinity and non-numeric values count as nothing
        return 0


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _to_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return [item for item in value if item is not None]
    return []


def _ref_id(value: Any) -> str:
    """Resolve an id that may be embedded as a populated document."""
    if isinstance(value, dict):
        value = value.get("_id", value.get("id"))
    return _to_text(value)


def _ref_ids(value: Any) -> list[str]:
    return [ref for ref in (_ref_id(item) for item in _to_list(value)) if ref]


def _optional_text(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("name", value.get("title"))
    if value is None:
        return None
    return _to_text(value)


def _optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def _enum_or(enum_cls: type[Enum], default: Enum):
    def coerce(value: Any) -> Enum:
        try:
            return enum_cls(_to_text(value).strip().lower())
        except ValueError:
            return default

    return coerce


LenientDatetime = Annotated[datetime | None, BeforeValidator(_to_datetime)]
LenientCount = Annotated[int, BeforeValidator(_to_count)]
LenientText = Annotated[str, BeforeValidator(_to_text)]
LenientList = Annotated[list[Any], BeforeValidator(_to_list)]
RefId = Annotated[str, BeforeValidator(_ref_id)]


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


class ActivityRecord(BaseModel):
    """Base for read-only activity records."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: RefId = Field(default="", validation_alias=AliasChoices("id", "_id"))


class Member(BaseModel):
    """A team member from the team structure."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    member_id: RefId = Field(
        default="", validation_alias=AliasChoices("member_id", "memberId", "_id", "id")
    )
    user_id: RefId = Field(
        default="", validation_alias=AliasChoices("user_id", "userId", "user")
    )
    assigned_at: LenientDatetime = Field(
        default=None,
        validation_alias=AliasChoices("assigned_at", "assignedAt", "join_date", "joinDate"),
    )
    assigned_role: Annotated[str | None, BeforeValidator(_optional_text)] = Field(
        default=None, validation_alias=AliasChoices("assigned_role", "assignedRole")
    )
    is_lead: Annotated[bool, BeforeValidator(_to_bool)] = Field(
        default=False, validation_alias=AliasChoices("is_lead", "isLead")
    )
    previous_score: Annotated[float | None, BeforeValidator(_optional_float)] = Field(
        default=None, validation_alias=AliasChoices("previous_score", "previousScore")
    )


class Task(ActivityRecord):
    """A task on the team board."""

    assigned_users: Annotated[list[str], BeforeValidator(_ref_ids)] = Field(
        default_factory=list,
        validation_alias=AliasChoices("assigned_users", "assignedUsers"),
    )
    assignment_type: Annotated[str | None, BeforeValidator(_optional_text)] = Field(
        default=None, validation_alias=AliasChoices("assignment_type", "assignmentType")
    )
    status: Annotated[TaskStatus, BeforeValidator(_enum_or(TaskStatus, TaskStatus.PENDING))] = (
        TaskStatus.PENDING
    )
    priority: Annotated[
        TaskPriority, BeforeValidator(_enum_or(TaskPriority, TaskPriority.MEDIUM))
    ] = TaskPriority.MEDIUM
    deadline: LenientDatetime = None
    created_at: LenientDatetime = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    completed_at: LenientDatetime = Field(
        default=None, validation_alias=AliasChoices("completed_at", "completedAt")
    )


class Message(ActivityRecord):
    """A chat message."""

    sender_id: RefId = Field(
        default="", validation_alias=AliasChoices("sender_id", "senderId", "sender")
    )
    content: LenientText = ""
    created_at: LenientDatetime = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )


class Post(ActivityRecord):
    """A team feed post."""

    author_id: RefId = Field(
        default="", validation_alias=AliasChoices("author_id", "authorId", "author")
    )
    content: LenientText = ""
    like_count: LenientCount = Field(
        default=0, validation_alias=AliasChoices("like_count", "likeCount", "likes")
    )
    comment_count: LenientCount = Field(
        default=0, validation_alias=AliasChoices("comment_count", "commentCount", "comments")
    )
    attachments: LenientList = Field(default_factory=list)
    links: LenientList = Field(default_factory=list)
    created_at: LenientDatetime = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )


class TeamFile(ActivityRecord):
    """A shared team file."""

    uploader_id: RefId = Field(
        default="", validation_alias=AliasChoices("uploader_id", "uploaderId", "uploader")
    )
    category: Annotated[str, BeforeValidator(lambda v: _to_text(v).lower())] = ""
    download_count: LenientCount = Field(
        default=0, validation_alias=AliasChoices("download_count", "downloadCount")
    )
    created_at: LenientDatetime = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

Score = Annotated[float, Field(ge=0, le=5)]


class ResultModel(BaseModel):
    """Base for immutable calculation results."""

    model_config = ConfigDict(frozen=True)


class TaskMetrics(ResultModel):
    """Task delivery metrics for one member."""

    score: Score
    completion_rate: float
    avg_completion_time: str
    avg_completion_seconds: float
    on_time_rate: float
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    overdue_tasks: int
    priority_performance: float


class CommunicationMetrics(ResultModel):
    """Chat activity metrics for one member."""

    score: Score
    avg_response_time: str
    response_time_seconds: float
    response_samples: int
    messages_per_day: float
    total_messages: int
    activity_level: ActivityLevel
    avg_message_length: float
    days_active: float


class CollaborationMetrics(ResultModel):
    """Team feed engagement metrics for one member."""

    score: Score
    total_posts: int
    avg_likes_per_post: float
    avg_comments_per_post: float
    mention_count: int
    knowledge_sharing: int
    engagement_rate: float


class ContributionMetrics(ResultModel):
    """File and content contribution metrics for one member."""

    score: Score
    total_files: int
    total_downloads: int
    avg_downloads_per_file: float
    document_files: int
    code_files: int
    design_files: int
    diversity_score: int
    contribution_types: list[str]


class OverallScore(ResultModel):
    """Weighted overall member score."""

    score: Score
    grade: Grade
    trend: MetricTrend


class Insight(ResultModel):
    """A rule-derived observation."""

    type: InsightType
    message: str
    title: str | None = None


class Recommendation(ResultModel):
    """A rule-derived improvement action."""

    priority: RecommendationPriority
    action: str
    description: str


class MemberPerformance(ResultModel):
    """Full performance breakdown for one member."""

    member_id: str
    user_id: str
    overall: OverallScore
    tasks: TaskMetrics
    communication: CommunicationMetrics
    collaboration: CollaborationMetrics
    contribution: ContributionMetrics
    insights: list[Insight]
    recommendations: list[Recommendation]


class TeamOverall(ResultModel):
    """Headline team numbers."""

    productivity: int
    quality: Score
    collaboration: Score
    velocity: float


class TeamTaskSummary(ResultModel):
    """Team-wide task counts."""

    total: int
    completed: int
    in_progress: int
    overdue: int
    completion_rate: float


class TeamCommunicationSummary(ResultModel):
    """Team-wide chat activity."""

    avg_response_time: str
    avg_response_time_seconds: float
    total_messages: int
    active_members: int


class TeamEngagementSummary(ResultModel):
    """Team-wide feed and file activity."""

    total_posts: int
    total_files: int
    avg_engagement: float


class TeamPerformance(ResultModel):
    """Full team performance report."""

    overall: TeamOverall
    tasks: TeamTaskSummary
    communication: TeamCommunicationSummary
    engagement: TeamEngagementSummary
    members: list[MemberPerformance]
    insights: list[Insight]
    recommendations: list[Recommendation]
    generated_at: datetime


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------


class ActivitySnapshot(BaseModel):
    """Raw activity collections for one calculation.

    Records are kept as plain mappings so malformed entries can be skipped
    individually by the calculator instead of rejecting the whole request.
    """

    tasks: list[dict[str, Any]] = Field(default_factory=list)
    messages: list[dict[str, Any]] = Field(default_factory=list)
    posts: list[dict[str, Any]] = Field(default_factory=list)
    files: list[dict[str, Any]] = Field(default_factory=list)
    now: datetime | None = None


class TeamPerformanceRequest(ActivitySnapshot):
    """Schema for team performance calculation request."""

    members: list[dict[str, Any]] = Field(default_factory=list)


class MemberPerformanceRequest(ActivitySnapshot):
    """Schema for single member performance calculation request."""

    member: dict[str, Any]


class DashboardResponse(BaseModel):
    """Schema for team dashboard response."""

    success: bool = True
    source: Literal["live", "synthetic"]
    data: TeamPerformance
