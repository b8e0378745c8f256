"""Base models shared across domains."""

from dataclasses import dataclass
from enum import Enum

WEEKS_PER_SEASON = 12
SEASONS_PER_YEAR = 4
WEEKS_PER_YEAR = WEEKS_PER_SEASON * SEASONS_PER_YEAR


class Season(str, Enum):
    SPRING = "Spring"
    SUMMER = "Summer"
    FALL = "Fall"
    WINTER = "Winter"

    @property
    def index(self) -> int:
        return list(Season).index(self)


@dataclass(frozen=True)
class GameDate:
    """Point on the game calendar.

    A year has four seasons of ``WEEKS_PER_SEASON`` weeks each. Loan payments
    fall due on week 1 of a season, and the year boundary is week 1 of Spring.
    """

    week: int
    season: Season
    year: int

    def next_week(self) -> "GameDate":
        """Return the date one week later."""
        if self.week < WEEKS_PER_SEASON:
            return GameDate(self.week + 1, self.season, self.year)
        return self.next_season_start()

    def next_season_start(self) -> "GameDate":
        """Return week 1 of the following season, rolling the year after Winter."""
        seasons = list(Season)
        next_season = seasons[(self.season.index + 1) % SEASONS_PER_YEAR]
        year = self.year + 1 if next_season == Season.SPRING else self.year
        return GameDate(1, next_season, year)

    def next_year_start(self) -> "GameDate":
        """Return week 1 of Spring of the following year."""
        return GameDate(1, Season.SPRING, self.year + 1)

    def same_season(self, other: "GameDate") -> bool:
        """True when both dates fall in the same season of the same year."""
        return self.year == other.year and self.season == other.season

    @property
    def is_season_start(self) -> bool:
        return self.week == 1

    @property
    def is_year_start(self) -> bool:
        return self.week == 1 and self.season == Season.SPRING

    def absolute_weeks(self, start_year: int = 2024) -> int:
        """Weeks elapsed since week 1 of Spring of ``start_year`` (1-based)."""
        weeks = (
            (self.year - start_year) * WEEKS_PER_YEAR
            + self.season.index * WEEKS_PER_SEASON
            + (self.week - 1)
        )
        return max(1, weeks + 1)

    def sort_key(self) -> tuple[int, int, int]:
        return (self.year, self.season.index, self.week)

    def __str__(self) -> str:
        return f"Week {self.week}, {self.season.value} {self.year}"
