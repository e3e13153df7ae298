"""Match models as processed from the match-data provider."""

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from dota_scout.models.reference import Hero, HeroSummary, Item

Side = Literal["radiant", "dire"]
MatchResult = Literal["won", "lost"]
PickOrderValue = Literal["first", "second"]


def other_side(side: Side) -> Side:
    return "dire" if side == "radiant" else "radiant"


@dataclass
class TeamRef:
    """One side of a match as named by the provider."""

    id: Optional[int] = None
    name: Optional[str] = None


@dataclass
class DraftPick:
    """A hero picked in the draft, matched back to the player who played it."""

    hero: Hero
    order: int  # 1-based within the side
    account_id: int = 0
    role: Optional[str] = None


@dataclass
class MatchDraft:
    radiant_picks: list[DraftPick] = field(default_factory=list)
    dire_picks: list[DraftPick] = field(default_factory=list)
    radiant_bans: list[Hero] = field(default_factory=list)
    dire_bans: list[Hero] = field(default_factory=list)

    def picks(self, side: Side) -> list[DraftPick]:
        return self.radiant_picks if side == "radiant" else self.dire_picks

    def bans(self, side: Side) -> list[Hero]:
        return self.radiant_bans if side == "radiant" else self.dire_bans


@dataclass
class PlayerStats:
    """Per-match stat block for one player."""

    kills: int = 0
    deaths: int = 0
    assists: int = 0
    last_hits: int = 0
    denies: int = 0
    gpm: int = 0
    xpm: int = 0
    net_worth: int = 0
    level: int = 0


@dataclass
class PlayerHeroStats:
    damage_dealt: int = 0
    healing_done: int = 0
    tower_damage: int = 0


@dataclass
class MatchPlayer:
    """A player's participation in one match."""

    account_id: int
    player_name: str
    hero: Hero
    stats: PlayerStats = field(default_factory=PlayerStats)
    items: list[Item] = field(default_factory=list)
    hero_stats: PlayerHeroStats = field(default_factory=PlayerHeroStats)
    role: Optional[str] = None


@dataclass
class MatchPlayers:
    radiant: list[MatchPlayer] = field(default_factory=list)
    dire: list[MatchPlayer] = field(default_factory=list)

    def side(self, side: Side) -> list[MatchPlayer]:
        return self.radiant if side == "radiant" else self.dire

    def all(self) -> list[MatchPlayer]:
        return [*self.radiant, *self.dire]


@dataclass
class AdvantageSeries:
    """Per-minute advantage values; dire values are the negation of radiant."""

    times: list[int] = field(default_factory=list)
    radiant: list[float] = field(default_factory=list)
    dire: list[float] = field(default_factory=list)


@dataclass
class MatchStatistics:
    radiant_score: int = 0
    dire_score: int = 0
    gold_advantage: AdvantageSeries = field(default_factory=AdvantageSeries)
    experience_advantage: AdvantageSeries = field(default_factory=AdvantageSeries)


@dataclass
class MatchEvent:
    """A discrete objective event derived from the provider's objective log."""

    timestamp: int
    type: str
    side: Side
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class GameEvent:
    """Display-ready form of a MatchEvent."""

    type: str
    time: int
    description: str
    team: Side


@dataclass
class DraftTimelineEntry:
    phase: Literal["pick", "ban"]
    team: Side
    hero: Hero
    time: int


@dataclass
class PickOrder:
    radiant: PickOrderValue
    dire: PickOrderValue

    def for_side(self, side: Side) -> PickOrderValue:
        return self.radiant if side == "radiant" else self.dire


@dataclass
class Match:
    """A fully loaded match. One instance is shared by every team that includes it."""

    id: int
    date: str  # ISO-8601
    duration: int
    radiant: TeamRef
    dire: TeamRef
    draft: MatchDraft
    players: MatchPlayers
    statistics: MatchStatistics
    events: list[MatchEvent] = field(default_factory=list)
    result: Side = "radiant"  # declared winner
    pick_order: Optional[PickOrder] = None
    processed_draft: list[DraftTimelineEntry] = field(default_factory=list)
    processed_events: list[GameEvent] = field(default_factory=list)

    # Key into the per-team hero performance cache, set on recompute
    performance_key: Optional[str] = None

    error: Optional[str] = None
    is_loading: bool = False

    def team(self, side: Side) -> TeamRef:
        return self.radiant if side == "radiant" else self.dire

    @property
    def has_players(self) -> bool:
        return bool(self.players.radiant or self.players.dire)


@dataclass
class PlaceholderMatch:
    """Renderable stand-in for a match known only through per-team metadata."""

    id: int
    date: str
    duration: int = 0
    side: Side = "radiant"
    opponent_name: str = "Unknown"
    heroes: list[HeroSummary] = field(default_factory=list)
    error: Optional[str] = None
    is_loading: bool = True
