"""Per-team hero performance aggregation."""

import logging
from typing import Iterable

from dota_scout.models.entries import hydrated_value
from dota_scout.models.match import Match
from dota_scout.models.performance import HeroPerformance, TeamHeroPerformance
from dota_scout.models.team import Team, TeamMatchParticipation
from dota_scout.store.stores import EntityStores

logger = logging.getLogger(__name__)


def compute_hero_performance(
    matches: Iterable[Match],
    participation: dict[int, TeamMatchParticipation],
    hidden_match_ids: set[int],
) -> dict[int, HeroPerformance]:
    """Aggregate games/wins/losses per hero over the team's visible matches.

    A match counts only when it is not hidden and the team has a recorded
    side for it. Wins come from the team's stored result, not from the
    match's declared winner.
    """
    counts: dict[int, list[int]] = {}  # hero_id -> [games, wins]

    for match in matches:
        if match.id in hidden_match_ids:
            continue
        meta = participation.get(match.id)
        if meta is None or not meta.side:
            continue
        won = meta.result == "won"
        for player in match.players.side(meta.side):
            tally = counts.setdefault(player.hero.id, [0, 0])
            tally[0] += 1
            if won:
                tally[1] += 1

    return {
        hero_id: HeroPerformance(
            hero_id=hero_id,
            games_played=games,
            wins=wins,
            losses=games - wins,
            win_rate=wins / games if games else 0.0,
        )
        for hero_id, (games, wins) in counts.items()
    }


class HeroPerformanceService:
    """Keeps the per-team hero performance cache current."""

    def __init__(self, stores: EntityStores):
        self.stores = stores

    def team_matches(self, team: Team) -> list[Match]:
        return [
            match
            for match_id in team.matches
            if (match := hydrated_value(self.stores.matches.get(match_id))) is not None
        ]

    def recompute(self, team: Team) -> TeamHeroPerformance:
        """Rebuild the team's aggregate and publish it as a new cache entry.

        Matches of the team are pointed at the entry through their
        ``performance_key``; the aggregate itself is never shared mutably.
        """
        matches = self.team_matches(team)
        performance = TeamHeroPerformance(
            team_key=team.key,
            heroes=compute_hero_performance(matches, team.matches, team.hidden_match_ids()),
        )

        with self.stores.matches.batch():
            self.stores.hero_performance.set(team.key, performance)
            for match in matches:
                if match.performance_key != team.key:
                    match.performance_key = team.key
                    self.stores.matches.touch()

        team.high_performing_heroes = performance.high_performing_hero_ids
        logger.debug(
            f"Team {team.key}: {len(performance.heroes)} heroes, "
            f"{len(team.high_performing_heroes)} high performing"
        )
        return performance

    def for_team(self, team_key: str) -> TeamHeroPerformance | None:
        return self.stores.hero_performance.get(team_key)

    def for_match(self, match: Match, team_key: str | None = None) -> TeamHeroPerformance | None:
        """The aggregate a match is shown with.

        A match shared by several teams carries the key of whichever team
        recomputed last, so callers with a team in view pass ``team_key``.
        """
        key = team_key or match.performance_key
        if key is None:
            return None
        return self.stores.hero_performance.get(key)
