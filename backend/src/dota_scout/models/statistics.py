"""Read-side statistics models."""

from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional

from dota_scout.models.reference import Hero

DateRangeType = Literal["all", "7days", "30days", "custom"]


@dataclass
class DateRangeSelection:
    type: DateRangeType = "all"
    custom_start: Optional[date] = None
    custom_end: Optional[date] = None


@dataclass
class PlayerAggregateStats:
    total_games: int = 0
    total_wins: int = 0
    win_rate: float = 0.0  # percent
    average_kda: float = 0.0
    average_gpm: float = 0.0
    average_xpm: float = 0.0
    average_kills: float = 0.0
    average_deaths: float = 0.0
    average_assists: float = 0.0


@dataclass
class HeroAggregateStats:
    """A player's results on one hero."""

    hero: Hero
    games: int = 0
    wins: int = 0
    win_rate: float = 0.0  # percent
    average_kda: float = 0.0
    average_gpm: float = 0.0
    average_xpm: float = 0.0
    roles: set[str] = field(default_factory=set)
