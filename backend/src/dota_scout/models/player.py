"""Player models."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class PlayerProfile:
    name: str
    personaname: str
    avatar: str = ""
    avatarfull: str = ""
    profileurl: str = ""
    rank_tier: int = 0
    leaderboard_rank: Optional[int] = None


@dataclass
class PlayerHeroStat:
    """Career totals for one hero as reported by the provider."""

    hero_id: int
    games: int = 0
    wins: int = 0
    last_played: int = 0  # epoch seconds


@dataclass
class OverallStats:
    wins: int = 0
    losses: int = 0
    total_games: int = 0
    win_rate: float = 0.0  # percent


@dataclass
class Player:
    """A fully loaded player. Account ids are always positive."""

    account_id: int
    profile: PlayerProfile
    hero_stats: list[PlayerHeroStat] = field(default_factory=list)
    overall_stats: OverallStats = field(default_factory=OverallStats)
    recent_match_ids: list[int] = field(default_factory=list)
    error: Optional[str] = None
    is_loading: bool = False

    @classmethod
    def failed(cls, account_id: int, error: str) -> "Player":
        """Stub kept in place of a player whose fetch failed."""
        return cls(
            account_id=account_id,
            profile=PlayerProfile(
                name=f"Player {account_id}",
                personaname=f"Player {account_id}",
            ),
            error=error,
        )


@dataclass
class PlaceholderPlayer:
    """Stand-in for a player known only through per-team metadata."""

    account_id: int
    name: str
    rank_tier: int = 0
    leaderboard_rank: Optional[int] = None
    avatar: str = ""
    games: int = 0
    wins: int = 0
    win_rate: float = 0.0
    error: Optional[str] = None
    is_loading: bool = True
