"""Persistence and migration of the team store.

Only teams and their per-team match/player metadata are written. On load,
every persisted record is validated into a tagged result: valid records
become hydrated teams, invalid ones are reduced to identity-only
placeholders that the caller reloads from the network.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar, Union

import duckdb

from dota_scout.models.reference import HeroSummary
from dota_scout.models.team import (
    UNKNOWN_PICK_ORDER,
    StoredPlayerData,
    Team,
    TeamMatchParticipation,
    make_team_key,
    parse_team_key,
    utc_now,
)
from dota_scout.repositories.storage_repository import (
    ACTIVE_TEAM_KEY,
    TEAMS_KEY,
    StorageRepository,
)
from dota_scout.utils.dates import EPOCH_ISO, parse_iso
from dota_scout.utils.rank import UNKNOWN_RANK, parse_rank

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid:
    reason: str


ValidationResult = Union[Valid[T], Invalid]


@dataclass
class PlaceholderTeamData:
    """Identity recovered from a persisted record that failed validation."""

    team_id: int
    league_id: int
    time_added: Optional[datetime] = None

    @property
    def key(self) -> str:
        return make_team_key(self.team_id, self.league_id)


@dataclass
class LoadedTeams:
    teams: list[Team] = field(default_factory=list)
    placeholders: list[PlaceholderTeamData] = field(default_factory=list)
    active_team_key: Optional[str] = None


# ----------------------------------------------------------------------
# Field sanitizers
# ----------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def sanitize_text(value: Any, fallback: str) -> str:
    return value if isinstance(value, str) and value.strip() else fallback


def sanitize_result(value: Any) -> str:
    return "won" if value == "won" else "lost"


def sanitize_side(value: Any) -> str:
    return "dire" if value == "dire" else "radiant"


def sanitize_non_negative_int(value: Any) -> int:
    if not _is_number(value):
        return 0
    return max(0, int(value))


def sanitize_win_rate(value: Any) -> float:
    if not _is_number(value):
        return 0.0
    return float(min(100.0, max(0.0, value)))


def sanitize_date(value: Any) -> str:
    return value if parse_iso(value) is not None else EPOCH_ISO


def sanitize_optional_int(value: Any) -> Optional[int]:
    return int(value) if _is_number(value) else None


def sanitize_heroes(value: Any) -> list[HeroSummary]:
    """Hero summaries deduplicated by id; bare ids become fallback summaries."""
    if not isinstance(value, list):
        return []
    unique: dict[int, HeroSummary] = {}
    for entry in value:
        if _is_number(entry):
            hero_id = int(entry)
            unique[hero_id] = HeroSummary.fallback(hero_id)
        elif isinstance(entry, dict) and _is_number(entry.get("id")):
            hero_id = int(entry["id"])
            unique[hero_id] = HeroSummary(
                id=hero_id,
                name=sanitize_text(entry.get("name"), f"npc_dota_hero_{hero_id}"),
                localized_name=sanitize_text(entry.get("localizedName"), f"Hero {hero_id}"),
                image_url=sanitize_text(entry.get("imageUrl"), ""),
            )
    return list(unique.values())


def normalize_match_data(match_id: int, data: Any) -> TeamMatchParticipation:
    value = data if isinstance(data, dict) else {}
    return TeamMatchParticipation(
        match_id=match_id,
        side=sanitize_side(value.get("side")),
        result=sanitize_result(value.get("result")),
        opponent_name=sanitize_text(value.get("opponentName"), "Unknown"),
        duration=sanitize_non_negative_int(value.get("duration")),
        date=sanitize_date(value.get("date")),
        pick_order=sanitize_text(value.get("pickOrder"), UNKNOWN_PICK_ORDER),
        heroes=sanitize_heroes(value.get("heroes")),
        is_manual=bool(value.get("isManual")),
        is_hidden=bool(value.get("isHidden")),
    )


def normalize_player_data(player_id: int, data: Any) -> StoredPlayerData:
    value = data if isinstance(data, dict) else {}
    rank = sanitize_text(value.get("rank"), UNKNOWN_RANK)
    if _is_number(value.get("rank_tier")):
        rank_tier = int(value["rank_tier"])
        leaderboard_rank = sanitize_optional_int(value.get("leaderboard_rank"))
    else:
        rank_tier, leaderboard_rank = parse_rank(rank)

    return StoredPlayerData(
        account_id=player_id,
        name=sanitize_text(value.get("name"), "Unknown Player"),
        rank=rank,
        rank_tier=rank_tier,
        leaderboard_rank=leaderboard_rank,
        games=sanitize_non_negative_int(value.get("games")),
        win_rate=sanitize_win_rate(value.get("winRate")),
        top_heroes=sanitize_heroes(value.get("topHeroes")),
        avatar=value.get("avatar") if isinstance(value.get("avatar"), str) else "",
        is_manual=bool(value.get("isManual")),
        is_hidden=bool(value.get("isHidden")),
    )


def serialize_match_data(meta: TeamMatchParticipation) -> dict:
    return {
        "matchId": meta.match_id,
        "result": meta.result,
        "opponentName": meta.opponent_name,
        "side": meta.side,
        "duration": meta.duration,
        "date": meta.date,
        "pickOrder": meta.pick_order,
        "heroes": [h.to_dict() for h in _dedupe_heroes(meta.heroes)],
        "isManual": meta.is_manual,
        "isHidden": meta.is_hidden,
    }


def serialize_player_data(data: StoredPlayerData) -> dict:
    return {
        "accountId": data.account_id,
        "name": data.name,
        "rank": data.rank,
        "rank_tier": data.rank_tier,
        "leaderboard_rank": data.leaderboard_rank,
        "games": data.games,
        "winRate": data.win_rate,
        "topHeroes": [h.to_dict() for h in _dedupe_heroes(data.top_heroes)],
        "avatar": data.avatar,
        "isManual": data.is_manual,
        "isHidden": data.is_hidden,
    }


def _dedupe_heroes(heroes: list[HeroSummary]) -> list[HeroSummary]:
    return list({h.id: h for h in heroes}.values())


def parse_time_added(value: Any) -> Optional[datetime]:
    """Accept an ISO string or epoch milliseconds."""
    if _is_number(value):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    return parse_iso(value)


# ----------------------------------------------------------------------
# Record validation
# ----------------------------------------------------------------------


def validate_stored_team(data: Any) -> ValidationResult[dict]:
    if not isinstance(data, dict):
        return Invalid("record is not an object")
    for section in ("team", "league", "matches", "players"):
        if not isinstance(data.get(section), dict):
            return Invalid(f"missing or malformed '{section}'")
    if not isinstance(data.get("timeAdded"), str):
        return Invalid("missing 'timeAdded'")

    team, league = data["team"], data["league"]
    if not _is_int(team.get("id")) or not isinstance(team.get("name"), str):
        return Invalid("malformed team identity")
    if not _is_int(league.get("id")) or not isinstance(league.get("name"), str):
        return Invalid("malformed league identity")
    return Valid(data)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _positive_id(section: Any) -> Optional[int]:
    if isinstance(section, dict) and _is_int(section.get("id")) and section["id"] > 0:
        return section["id"]
    return None


def placeholder_from_invalid(team_key: str, data: Any) -> Optional[PlaceholderTeamData]:
    """Recover identity from the record itself, else from its composite key."""
    record = data if isinstance(data, dict) else {}
    from_key = parse_team_key(team_key)
    team_id = _positive_id(record.get("team")) or (from_key[0] if from_key else None)
    league_id = _positive_id(record.get("league")) or (from_key[1] if from_key else None)
    if not team_id or not league_id:
        return None
    return PlaceholderTeamData(
        team_id=team_id,
        league_id=league_id,
        time_added=parse_time_added(record.get("timeAdded")),
    )


def team_from_record(team_key: str, record: dict) -> Team:
    matches: dict[int, TeamMatchParticipation] = {}
    for raw_id, meta in record["matches"].items():
        if str(raw_id).isdigit():
            match_id = int(raw_id)
            matches[match_id] = normalize_match_data(match_id, meta)

    players: dict[int, StoredPlayerData] = {}
    for raw_id, data in record["players"].items():
        if str(raw_id).isdigit() and int(raw_id) > 0:
            player_id = int(raw_id)
            players[player_id] = normalize_player_data(player_id, data)

    return Team(
        key=team_key,
        team_id=record["team"]["id"],
        league_id=record["league"]["id"],
        name=record["team"]["name"],
        league_name=record["league"]["name"],
        time_added=parse_time_added(record["timeAdded"]) or utc_now(),
        matches=matches,
        players=players,
    )


def team_to_record(team: Team) -> dict:
    return {
        "team": {"id": team.team_id, "name": team.name},
        "league": {"id": team.league_id, "name": team.league_name},
        "timeAdded": team.time_added.isoformat(),
        "matches": {str(mid): serialize_match_data(meta) for mid, meta in team.matches.items()},
        "players": {
            str(pid): serialize_player_data(data)
            for pid, data in team.players.items()
            if pid > 0
        },
    }


class PersistenceService:
    """Reads and writes the ``teams`` and ``active-team`` records."""

    def __init__(self, repository: StorageRepository):
        self.repository = repository

    def save(self, teams: list[Team], selected_team_key: Optional[str]) -> None:
        records = {team.key: team_to_record(team) for team in teams}
        selected = next((t for t in teams if t.key == selected_team_key), None)
        try:
            self.repository.set_item(TEAMS_KEY, records)
            if selected is not None:
                self.repository.set_item(
                    ACTIVE_TEAM_KEY, {"teamId": selected.team_id, "leagueId": selected.league_id}
                )
            else:
                self.repository.remove_item(ACTIVE_TEAM_KEY)
        except duckdb.Error as e:
            logger.error(f"Failed to save teams: {e}")
            return
        logger.debug(f"Saved {len(records)} teams")

    def load(self) -> LoadedTeams:
        loaded = LoadedTeams()
        stored = self.repository.get_item(TEAMS_KEY)
        if stored is None:
            return loaded
        if not isinstance(stored, dict):
            logger.error("Persisted teams record is not an object, ignoring it")
            return loaded

        for team_key, record in stored.items():
            result = validate_stored_team(record)
            if isinstance(result, Valid):
                loaded.teams.append(team_from_record(team_key, result.value))
                continue

            logger.warning(f"Invalid stored team {team_key} ({result.reason}), will reload it")
            placeholder = placeholder_from_invalid(team_key, record)
            if placeholder is not None:
                loaded.placeholders.append(placeholder)

        loaded.active_team_key = self._load_active_team_key()
        return loaded

    def _load_active_team_key(self) -> Optional[str]:
        active = self.repository.get_item(ACTIVE_TEAM_KEY)
        if not isinstance(active, dict):
            return None
        team_id, league_id = active.get("teamId"), active.get("leagueId")
        if not _is_int(team_id) or not _is_int(league_id):
            logger.warning(f"Ignoring malformed active team record: {active}")
            return None
        return make_team_key(team_id, league_id)


