"""Derived hero performance models."""

from dataclasses import dataclass, field
from datetime import datetime

from dota_scout.models.team import utc_now

HIGH_PERFORMING_MIN_GAMES = 5
HIGH_PERFORMING_MIN_WIN_RATE = 0.6


@dataclass(frozen=True)
class HeroPerformance:
    """Aggregate for one hero within one team's visible matches."""

    hero_id: int
    games_played: int
    wins: int
    losses: int
    win_rate: float  # 0-1

    @property
    def is_high_performing(self) -> bool:
        return (
            self.games_played >= HIGH_PERFORMING_MIN_GAMES
            and self.win_rate >= HIGH_PERFORMING_MIN_WIN_RATE
        )

    def to_dict(self) -> dict:
        return {
            "hero_id": self.hero_id,
            "games_played": self.games_played,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": self.win_rate,
            "is_high_performing": self.is_high_performing,
        }


@dataclass(frozen=True)
class TeamHeroPerformance:
    """Per-team derived cache entry. Replaced wholesale on every recompute."""

    team_key: str
    heroes: dict[int, HeroPerformance] = field(default_factory=dict)
    computed_at: datetime = field(default_factory=utc_now)

    @property
    def high_performing_hero_ids(self) -> set[int]:
        return {hid for hid, perf in self.heroes.items() if perf.is_high_performing}
