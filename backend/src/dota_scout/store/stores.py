"""The set of entity collections owned by one session."""

from dataclasses import dataclass, field

from dota_scout.models.entries import MatchEntry, PlayerEntry
from dota_scout.models.league import LeagueMatches
from dota_scout.models.performance import TeamHeroPerformance
from dota_scout.models.reference import Hero, Item, League
from dota_scout.models.team import Team
from dota_scout.store.entity_store import EntityStore


def _store(name: str):
    return field(default_factory=lambda: EntityStore(name))


@dataclass
class EntityStores:
    teams: EntityStore[str, Team] = _store("teams")
    matches: EntityStore[int, MatchEntry] = _store("matches")
    players: EntityStore[int, PlayerEntry] = _store("players")
    heroes: EntityStore[int, Hero] = _store("heroes")
    items: EntityStore[int, Item] = _store("items")
    leagues: EntityStore[int, League] = _store("leagues")
    league_matches: EntityStore[int, LeagueMatches] = _store("league_matches")
    hero_performance: EntityStore[str, TeamHeroPerformance] = _store("hero_performance")
