from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from streakstats.engine.streaks import StreakStats


class StreakStatsResponse(BaseModel):
    """Streak statistics payload; field names are a public contract."""

    model_config = ConfigDict(populate_by_name=True)

    current_streak: int = Field(ge=0, alias="currentStreak")
    longest_streak: int = Field(ge=0, alias="longestStreak")
    total_commits: int = Field(ge=0, alias="totalCommits")
    last_active_date: date | None = Field(default=None, alias="lastActiveDate")

    @classmethod
    def from_stats(cls, stats: StreakStats) -> "StreakStatsResponse":
        return cls(
            current_streak=stats.current_streak,
            longest_streak=stats.longest_streak,
            total_commits=stats.total_commits,
            last_active_date=stats.last_active_date,
        )
