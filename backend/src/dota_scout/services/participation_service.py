"""Per-team match participation reconciliation."""

import logging
from typing import Callable, Iterable, Optional

from dota_scout.models.entries import hydrated_value
from dota_scout.models.league import LeagueMatchInfo
from dota_scout.models.match import Match, MatchResult, Side, other_side
from dota_scout.models.reference import Hero, HeroSummary
from dota_scout.models.team import UNKNOWN_PICK_ORDER, Team, TeamMatchParticipation
from dota_scout.services.hero_performance_service import HeroPerformanceService
from dota_scout.services.player_metadata_service import PlayerMetadataService
from dota_scout.store.stores import EntityStores

logger = logging.getLogger(__name__)

# Side used when neither league data nor stored metadata places the team
DEFAULT_SIDE: Side = "radiant"
UNKNOWN_OPPONENT = "Unknown"


def determine_team_side(team_id: int, match_info: Optional[LeagueMatchInfo]) -> Side:
    if match_info is not None:
        side = match_info.side_of(team_id)
        if side is not None:
            return side
    return DEFAULT_SIDE


def resolve_side(computed: Side, existing: Optional[TeamMatchParticipation]) -> Side:
    """A side already on record wins over a freshly computed one."""
    if existing is not None and existing.side:
        return existing.side
    return computed


def opponent_name(side: Side, match: Match) -> Optional[str]:
    return match.team(other_side(side)).name


def resolve_result(
    side: Side, match: Match, existing: Optional[TeamMatchParticipation]
) -> MatchResult:
    if match.result in ("radiant", "dire"):
        return "won" if match.result == side else "lost"
    if existing is not None and existing.result in ("won", "lost"):
        return existing.result
    return "lost"


def resolve_pick_order(
    match: Match, side: Side, existing: Optional[TeamMatchParticipation]
) -> str:
    if match.pick_order is not None:
        return match.pick_order.for_side(side)
    if existing is not None and existing.pick_order in ("first", "second"):
        return existing.pick_order
    return UNKNOWN_PICK_ORDER


def hero_summary(hero: Hero, heroes: dict[int, Hero]) -> HeroSummary:
    """Summary preferring the match's own hero fields over the reference table."""
    summary = HeroSummary.fallback(hero.id)
    reference = heroes.get(hero.id)
    for source in (reference, hero):
        if source is None:
            continue
        summary.name = source.name or summary.name
        summary.localized_name = source.localized_name or summary.localized_name
        summary.image_url = source.image_url or summary.image_url
    return summary


def extract_team_heroes(
    match: Match,
    side: Side,
    existing: Optional[list[HeroSummary]],
    heroes: dict[int, Hero],
) -> list[HeroSummary]:
    """Union of cached heroes, the side's players and the side's draft picks."""
    merged: dict[int, HeroSummary] = {h.id: h for h in existing or []}
    for player in match.players.side(side):
        merged[player.hero.id] = hero_summary(player.hero, heroes)
    for pick in match.draft.picks(side):
        merged[pick.hero.id] = hero_summary(pick.hero, heroes)
    return list(merged.values())


def build_participation(
    team: Team,
    match: Match,
    match_info: Optional[LeagueMatchInfo],
    heroes: dict[int, Hero],
) -> TeamMatchParticipation:
    existing = team.matches.get(match.id)
    side = resolve_side(determine_team_side(team.team_id, match_info), existing)
    opponent = opponent_name(side, match) or (existing.opponent_name if existing else None)

    return TeamMatchParticipation(
        match_id=match.id,
        side=side,
        result=resolve_result(side, match, existing),
        opponent_name=opponent or UNKNOWN_OPPONENT,
        duration=match.duration,
        date=match.date,
        pick_order=resolve_pick_order(match, side, existing),
        heroes=extract_team_heroes(match, side, existing.heroes if existing else None, heroes),
        is_manual=existing.is_manual if existing else False,
        is_hidden=existing.is_hidden if existing else False,
    )


class ParticipationService:
    """Reconciles a team's per-match metadata with loaded match data.

    After every reconciliation the team's hero performance and player
    metadata are rebuilt, the ``on_change`` callback persists the store,
    and the teams ref is refreshed.
    """

    def __init__(
        self,
        stores: EntityStores,
        hero_performance: HeroPerformanceService,
        player_metadata: PlayerMetadataService,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.stores = stores
        self.hero_performance = hero_performance
        self.player_metadata = player_metadata
        self.on_change = on_change

    def reconcile_match(self, team: Team, match_id: int) -> bool:
        """Update one entry; returns False when the match is not loaded yet."""
        match = hydrated_value(self.stores.matches.get(match_id))
        if match is None:
            logger.debug(f"Team {team.key}: match {match_id} not loaded, deferring")
            return False

        league = self.stores.league_matches.get(team.league_id)
        match_info = league.matches.get(match_id) if league else None
        team.matches[match_id] = build_participation(team, match, match_info, self.stores.heroes.ref)
        return True

    def update_team_match_participation(
        self, team_key: str, match_ids: Iterable[int], persist: bool = True
    ) -> None:
        team = self.stores.teams.get(team_key)
        if team is None:
            return

        for match_id in match_ids:
            self.reconcile_match(team, match_id)

        self.refresh_derived(team, persist=persist)

    def refresh_derived(self, team: Team, persist: bool = True) -> None:
        """Recompute hero performance and player metadata, then publish."""
        self.hero_performance.recompute(team)
        self.player_metadata.update_team(team)
        self.stores.teams.touch()
        if persist and self.on_change is not None:
            self.on_change()
