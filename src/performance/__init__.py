"""
Performance scoring engine.

Turns a team's activity snapshot into:
- Task, communication, collaboration and contribution scores per member
- A weighted overall score, grade and trend per member
- Team-level productivity, quality, collaboration and velocity
- Rule-based insights and recommendations
"""

from src.performance.aggregator import (
    PerformanceAggregator,
    PerformanceDataError,
    performance_aggregator,
)
from src.performance.calculator import (
    PerformanceCalculator,
    calculate_member_performance,
    calculate_team_performance,
)

__all__ = [
    "PerformanceAggregator",
    "PerformanceDataError",
    "performance_aggregator",
    "PerformanceCalculator",
    "calculate_member_performance",
    "calculate_team_performance",
]
