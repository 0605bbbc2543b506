"""Reading statistics and goals."""

from .analytics import (
    DailyActivity,
    GenreShare,
    MonthlyCount,
    StatisticsAggregator,
    StatisticsReport,
)
from .goals import GoalTracker

__all__ = [
    "DailyActivity",
    "GenreShare",
    "MonthlyCount",
    "StatisticsAggregator",
    "StatisticsReport",
    "GoalTracker",
]
