"""Player statistics over matches held in the store.

Everything here is read-only: the functions take matches and metadata and
return aggregates, and StatisticsService only resolves store contents
before delegating to them.
"""

from datetime import datetime
from typing import Iterable, Literal, Optional

from dota_scout.models.entries import hydrated_value
from dota_scout.models.match import Match, MatchPlayer
from dota_scout.models.reference import Hero
from dota_scout.models.statistics import (
    DateRangeSelection,
    HeroAggregateStats,
    PlayerAggregateStats,
)
from dota_scout.models.team import TeamMatchParticipation
from dota_scout.store.stores import EntityStores
from dota_scout.utils.dates import in_date_range


def calculate_kda(kills: int, deaths: int, assists: int) -> float:
    return (kills + assists) / deaths if deaths > 0 else float(kills + assists)


def find_player_in_match(match: Match, account_id: int) -> Optional[tuple[MatchPlayer, bool]]:
    """Return the player's entry and whether their side won, if they played."""
    for side in ("radiant", "dire"):
        for player in match.players.side(side):
            if player.account_id == account_id:
                return player, match.result == side
    return None


def calculate_player_stats(player_id: int, matches: Iterable[Match]) -> PlayerAggregateStats:
    games = wins = 0
    kda = gpm = xpm = kills = deaths = assists = 0.0

    for match in matches:
        found = find_player_in_match(match, player_id)
        if found is None:
            continue
        player, won = found
        stats = player.stats
        games += 1
        wins += int(won)
        kda += calculate_kda(stats.kills, stats.deaths, stats.assists)
        gpm += stats.gpm
        xpm += stats.xpm
        kills += stats.kills
        deaths += stats.deaths
        assists += stats.assists

    if games == 0:
        return PlayerAggregateStats()
    return PlayerAggregateStats(
        total_games=games,
        total_wins=wins,
        win_rate=wins / games * 100,
        average_kda=kda / games,
        average_gpm=gpm / games,
        average_xpm=xpm / games,
        average_kills=kills / games,
        average_deaths=deaths / games,
        average_assists=assists / games,
    )


def _fallback_hero(hero_id: int) -> Hero:
    return Hero(id=hero_id, name=f"npc_dota_hero_{hero_id}", localized_name=f"Hero {hero_id}")


def calculate_hero_stats(
    player_id: int, matches: Iterable[Match], heroes: dict[int, Hero]
) -> dict[int, HeroAggregateStats]:
    totals: dict[int, dict] = {}

    for match in matches:
        found = find_player_in_match(match, player_id)
        if found is None:
            continue
        player, won = found
        stats = player.stats
        entry = totals.setdefault(
            player.hero.id, {"games": 0, "wins": 0, "kda": 0.0, "gpm": 0.0, "xpm": 0.0, "roles": set()}
        )
        entry["games"] += 1
        entry["wins"] += int(won)
        entry["kda"] += calculate_kda(stats.kills, stats.deaths, stats.assists)
        entry["gpm"] += stats.gpm
        entry["xpm"] += stats.xpm
        if player.role:
            entry["roles"].add(player.role)

    return {
        hero_id: HeroAggregateStats(
            hero=heroes.get(hero_id) or _fallback_hero(hero_id),
            games=t["games"],
            wins=t["wins"],
            win_rate=t["wins"] / t["games"] * 100,
            average_kda=t["kda"] / t["games"],
            average_gpm=t["gpm"] / t["games"],
            average_xpm=t["xpm"] / t["games"],
            roles=t["roles"],
        )
        for hero_id, t in totals.items()
    }


def restrict_to_team(
    matches: Iterable[Match], team_matches: dict[int, TeamMatchParticipation]
) -> list[Match]:
    return [match for match in matches if match.id in team_matches]


def calculate_team_player_stats(
    player_id: int,
    matches: Iterable[Match],
    team_matches: dict[int, TeamMatchParticipation],
) -> PlayerAggregateStats:
    return calculate_player_stats(player_id, restrict_to_team(matches, team_matches))


def filter_matches_by_date(
    matches: Iterable[Match],
    selection: DateRangeSelection,
    now: Optional[datetime] = None,
) -> list[Match]:
    return [m for m in matches if m.date and in_date_range(m.date, selection, now)]


def get_player_participated_matches(
    matches: Iterable[Match],
    team_matches: dict[int, TeamMatchParticipation],
    account_id: int,
) -> list[Match]:
    return [
        m
        for m in matches
        if m.id in team_matches and find_player_in_match(m, account_id) is not None
    ]


def sort_hero_stats(
    hero_stats: Iterable[HeroAggregateStats],
    key: Literal["games", "win_rate", "name"] = "games",
    descending: bool = True,
) -> list[HeroAggregateStats]:
    if key == "name":
        ordered = sorted(hero_stats, key=lambda h: h.hero.localized_name.lower())
        return list(reversed(ordered)) if not descending else ordered
    ordered = sorted(hero_stats, key=lambda h: getattr(h, key), reverse=True)
    return ordered if descending else list(reversed(ordered))


class StatisticsService:
    """Resolves store contents for the statistics functions."""

    def __init__(self, stores: EntityStores):
        self.stores = stores

    def _player_matches(self, player_id: int) -> list[Match]:
        player = hydrated_value(self.stores.players.get(player_id))
        if player is None:
            return []
        return [
            match
            for mid in player.recent_match_ids
            if (match := hydrated_value(self.stores.matches.get(mid))) is not None
        ]

    def _team_matches(self, team_key: str) -> tuple[list[Match], dict[int, TeamMatchParticipation]]:
        team = self.stores.teams.get(team_key)
        if team is None:
            return [], {}
        matches = [
            match
            for mid in team.matches
            if (match := hydrated_value(self.stores.matches.get(mid))) is not None
        ]
        return matches, team.matches

    def get_player_stats(
        self,
        player_id: int,
        date_range: Optional[DateRangeSelection] = None,
        now: Optional[datetime] = None,
    ) -> PlayerAggregateStats:
        matches = self._player_matches(player_id)
        if date_range is not None:
            matches = filter_matches_by_date(matches, date_range, now)
        return calculate_player_stats(player_id, matches)

    def get_player_hero_stats(
        self,
        player_id: int,
        date_range: Optional[DateRangeSelection] = None,
        now: Optional[datetime] = None,
    ) -> dict[int, HeroAggregateStats]:
        matches = self._player_matches(player_id)
        if date_range is not None:
            matches = filter_matches_by_date(matches, date_range, now)
        return calculate_hero_stats(player_id, matches, self.stores.heroes.ref)

    def get_team_player_stats(
        self,
        player_id: int,
        team_key: str,
        date_range: Optional[DateRangeSelection] = None,
        now: Optional[datetime] = None,
    ) -> PlayerAggregateStats:
        matches, participation = self._team_matches(team_key)
        if date_range is not None:
            matches = filter_matches_by_date(matches, date_range, now)
        return calculate_team_player_stats(player_id, matches, participation)

    def get_team_player_hero_stats(
        self,
        player_id: int,
        team_key: str,
        date_range: Optional[DateRangeSelection] = None,
        now: Optional[datetime] = None,
    ) -> dict[int, HeroAggregateStats]:
        matches = self.get_player_participated_matches(player_id, team_key)
        if date_range is not None:
            matches = filter_matches_by_date(matches, date_range, now)
        return calculate_hero_stats(player_id, matches, self.stores.heroes.ref)

    def get_player_participated_matches(self, player_id: int, team_key: str) -> list[Match]:
        matches, participation = self._team_matches(team_key)
        return get_player_participated_matches(matches, participation, player_id)

    def filter_player_matches_by_date_range(
        self,
        player_id: int,
        date_range: DateRangeSelection,
        now: Optional[datetime] = None,
    ) -> list[Match]:
        return filter_matches_by_date(self._player_matches(player_id), date_range, now)
