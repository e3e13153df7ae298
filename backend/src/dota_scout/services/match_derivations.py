"""Derived match views for a team: display lists, filters and hero summary."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from dota_scout.models.entries import MatchEntry, hydrated_value
from dota_scout.models.match import Match, other_side
from dota_scout.models.performance import TeamHeroPerformance
from dota_scout.models.reference import Hero
from dota_scout.models.statistics import DateRangeSelection
from dota_scout.models.team import Team, TeamMatchParticipation
from dota_scout.utils.dates import in_date_range, to_timestamp


@dataclass
class MatchFilters:
    date_range: DateRangeSelection = field(default_factory=DateRangeSelection)
    result: Literal["all", "wins", "losses"] = "all"
    team_side: Literal["all", "radiant", "dire"] = "all"
    pick_order: Literal["all", "first", "second"] = "all"
    heroes_played: list[int] = field(default_factory=list)
    opponent: list[str] = field(default_factory=list)
    high_performers_only: bool = False


@dataclass
class MatchFilterStats:
    total_matches: int = 0
    filtered_matches: int = 0
    high_performer_matches: int = 0


@dataclass
class HeroSummaryEntry:
    hero_id: int
    hero_name: str
    count: int = 0
    wins: int = 0
    losses: int = 0

    @property
    def win_rate(self) -> float:
        games = self.wins + self.losses
        return self.wins / games * 100 if games else 0.0


@dataclass
class TeamHeroSummary:
    matches_count: int
    active_team_picks: list[HeroSummaryEntry]
    opponent_team_picks: list[HeroSummaryEntry]
    active_team_bans: list[HeroSummaryEntry]
    opponent_team_bans: list[HeroSummaryEntry]


def _sort_key(meta: TeamMatchParticipation, entry: Optional[MatchEntry]) -> float:
    date = entry.value.date if entry is not None else meta.date
    return to_timestamp(date) or 0.0


def team_match_entries(
    team: Team, matches: dict[int, MatchEntry], hidden: bool = False
) -> list[MatchEntry]:
    """Entries (hydrated or placeholder) whose hidden flag equals ``hidden``, newest first."""
    selected = [
        (meta, matches.get(match_id))
        for match_id, meta in team.matches.items()
        if meta.is_hidden == hidden
    ]
    selected = [(meta, entry) for meta, entry in selected if entry is not None]
    selected.sort(key=lambda pair: _sort_key(*pair), reverse=True)
    return [entry for _, entry in selected]


def matches_filter(
    meta: TeamMatchParticipation,
    filters: MatchFilters,
    now: Optional[datetime] = None,
) -> bool:
    """All filters except high performers, evaluated on per-team metadata."""
    if not in_date_range(meta.date, filters.date_range, now, rolling=True):
        return False
    if filters.result == "wins" and meta.result != "won":
        return False
    if filters.result == "losses" and meta.result != "lost":
        return False
    if filters.team_side != "all" and meta.side != filters.team_side:
        return False
    if filters.pick_order != "all" and meta.pick_order != filters.pick_order:
        return False
    if filters.heroes_played:
        played = {h.id for h in meta.heroes}
        if not played.intersection(filters.heroes_played):
            return False
    if filters.opponent:
        opponent = meta.opponent_name.lower()
        if not any(term.lower() in opponent for term in filters.opponent):
            return False
    return True


def has_high_performer(meta: TeamMatchParticipation, performance: Optional[TeamHeroPerformance]) -> bool:
    if performance is None:
        return False
    high = performance.high_performing_hero_ids
    return any(h.id in high for h in meta.heroes)


def filter_team_matches(
    team: Team,
    matches: dict[int, MatchEntry],
    filters: MatchFilters,
    performance: Optional[TeamHeroPerformance] = None,
    now: Optional[datetime] = None,
) -> tuple[list[MatchEntry], MatchFilterStats]:
    stats = MatchFilterStats()
    result: list[MatchEntry] = []

    for entry in team_match_entries(team, matches):
        meta = team.matches[entry.value.id]
        stats.total_matches += 1
        if not matches_filter(meta, filters, now):
            continue
        stats.filtered_matches += 1
        high = has_high_performer(meta, performance)
        if high:
            stats.high_performer_matches += 1
        if filters.high_performers_only and not high:
            continue
        result.append(entry)

    return result, stats


def _entry(aggregates: dict[int, HeroSummaryEntry], hero: Hero) -> HeroSummaryEntry:
    if hero.id not in aggregates:
        aggregates[hero.id] = HeroSummaryEntry(hero_id=hero.id, hero_name=hero.localized_name)
    return aggregates[hero.id]


def compute_team_hero_summary(
    team: Team, matches: dict[int, MatchEntry]
) -> TeamHeroSummary:
    """Picks and bans by the team and its opponents across visible loaded matches."""
    active_picks: dict[int, HeroSummaryEntry] = {}
    opponent_picks: dict[int, HeroSummaryEntry] = {}
    active_bans: dict[int, HeroSummaryEntry] = {}
    opponent_bans: dict[int, HeroSummaryEntry] = {}
    counted = 0

    for match_id, meta in team.matches.items():
        if meta.is_hidden:
            continue
        match: Optional[Match] = hydrated_value(matches.get(match_id))
        if match is None:
            continue
        counted += 1
        won = meta.result == "won"
        their_side = other_side(meta.side)

        for pick in match.draft.picks(meta.side):
            entry = _entry(active_picks, pick.hero)
            entry.count += 1
            entry.wins += int(won)
            entry.losses += int(not won)
        for pick in match.draft.picks(their_side):
            entry = _entry(opponent_picks, pick.hero)
            entry.count += 1
            entry.wins += int(not won)
            entry.losses += int(won)
        for hero in match.draft.bans(meta.side):
            _entry(active_bans, hero).count += 1
        for hero in match.draft.bans(their_side):
            _entry(opponent_bans, hero).count += 1

    def ordered(aggregates: dict[int, HeroSummaryEntry]) -> list[HeroSummaryEntry]:
        return sorted(aggregates.values(), key=lambda e: e.count, reverse=True)

    return TeamHeroSummary(
        matches_count=counted,
        active_team_picks=ordered(active_picks),
        opponent_team_picks=ordered(opponent_picks),
        active_team_bans=ordered(active_bans),
        opponent_team_bans=ordered(opponent_bans),
    )
