"""Team models and per-team metadata."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from dota_scout.models.match import MatchResult, Side
from dota_scout.models.reference import HeroSummary

GLOBAL_TEAM_ID = 0
GLOBAL_LEAGUE_ID = 0
GLOBAL_TEAM_KEY = "0-0"

UNKNOWN_PICK_ORDER = "unknown"


def make_team_key(team_id: int, league_id: int) -> str:
    return f"{team_id}-{league_id}"


def parse_team_key(team_key: str) -> Optional[tuple[int, int]]:
    """Split a composite key back into (team_id, league_id).

    Returns None when the key does not hold two non-negative integers.
    """
    parts = team_key.split("-")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        return None
    return int(parts[0]), int(parts[1])


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TeamMatchParticipation:
    """How one team took part in one match. Stored durably per team."""

    match_id: int
    side: Side
    result: MatchResult = "lost"
    opponent_name: str = "Unknown"
    duration: int = 0
    date: str = ""  # ISO-8601
    pick_order: str = UNKNOWN_PICK_ORDER  # "first", "second" or "unknown"
    heroes: list[HeroSummary] = field(default_factory=list)
    is_manual: bool = False
    is_hidden: bool = False


@dataclass
class StoredPlayerData:
    """Cached display snapshot of a player within one team."""

    account_id: int
    name: str = "Unknown Player"
    rank: str = "Unknown"
    rank_tier: int = 0
    leaderboard_rank: Optional[int] = None
    games: int = 0
    win_rate: float = 0.0  # percent, 0-100
    top_heroes: list[HeroSummary] = field(default_factory=list)
    avatar: str = ""
    is_manual: bool = False
    is_hidden: bool = False


@dataclass
class Team:
    """A tracked team within one league, or the virtual global team."""

    key: str
    team_id: int
    league_id: int
    name: str
    league_name: str
    time_added: datetime = field(default_factory=utc_now)
    matches: dict[int, TeamMatchParticipation] = field(default_factory=dict)
    players: dict[int, StoredPlayerData] = field(default_factory=dict)
    high_performing_heroes: set[int] = field(default_factory=set)

    is_loading: bool = False
    team_error: Optional[str] = None
    league_error: Optional[str] = None
    needs_reload: bool = False  # restored from an invalid persisted record

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_global(self) -> bool:
        return self.key == GLOBAL_TEAM_KEY

    @property
    def has_error(self) -> bool:
        return bool(self.team_error or self.league_error)

    def hidden_match_ids(self) -> set[int]:
        return {mid for mid, meta in self.matches.items() if meta.is_hidden}

    def manual_match_ids(self) -> list[int]:
        return [mid for mid, meta in self.matches.items() if meta.is_manual]

    def manual_player_ids(self) -> list[int]:
        return [pid for pid, meta in self.players.items() if meta.is_manual]

    @classmethod
    def placeholder(cls, team_id: int, league_id: int, **overrides) -> "Team":
        """Identity-only team awaiting a network load."""
        values = dict(
            key=make_team_key(team_id, league_id),
            team_id=team_id,
            league_id=league_id,
            name=f"Team {team_id}",
            league_name=f"League {league_id}",
            is_loading=True,
        )
        values.update(overrides)
        return cls(**values)

    @classmethod
    def global_team(cls) -> "Team":
        return cls(
            key=GLOBAL_TEAM_KEY,
            team_id=GLOBAL_TEAM_ID,
            league_id=GLOBAL_LEAGUE_ID,
            name="Global",
            league_name="All Leagues",
        )
