"""Data models for the Dota scouting store."""

from dota_scout.models.entries import Hydrated, MatchEntry, Placeholder, PlayerEntry
from dota_scout.models.league import LeagueMatches, LeagueMatchInfo
from dota_scout.models.match import (
    DraftPick,
    Match,
    MatchDraft,
    MatchEvent,
    MatchPlayer,
    MatchPlayers,
    MatchStatistics,
    PickOrder,
    PlaceholderMatch,
    TeamRef,
)
from dota_scout.models.performance import HeroPerformance, TeamHeroPerformance
from dota_scout.models.player import OverallStats, PlaceholderPlayer, Player, PlayerProfile
from dota_scout.models.reference import Hero, HeroSummary, Item, League
from dota_scout.models.statistics import (
    DateRangeSelection,
    HeroAggregateStats,
    PlayerAggregateStats,
)
from dota_scout.models.team import (
    GLOBAL_TEAM_KEY,
    StoredPlayerData,
    Team,
    TeamMatchParticipation,
    make_team_key,
    parse_team_key,
)

__all__ = [
    "Hydrated",
    "Placeholder",
    "MatchEntry",
    "PlayerEntry",
    "LeagueMatches",
    "LeagueMatchInfo",
    "DraftPick",
    "Match",
    "MatchDraft",
    "MatchEvent",
    "MatchPlayer",
    "MatchPlayers",
    "MatchStatistics",
    "PickOrder",
    "PlaceholderMatch",
    "TeamRef",
    "HeroPerformance",
    "TeamHeroPerformance",
    "OverallStats",
    "PlaceholderPlayer",
    "Player",
    "PlayerProfile",
    "Hero",
    "HeroSummary",
    "Item",
    "League",
    "DateRangeSelection",
    "HeroAggregateStats",
    "PlayerAggregateStats",
    "GLOBAL_TEAM_KEY",
    "StoredPlayerData",
    "Team",
    "TeamMatchParticipation",
    "make_team_key",
    "parse_team_key",
]
