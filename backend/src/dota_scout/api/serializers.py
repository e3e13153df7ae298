"""Response shapes shared by the route modules."""

from dataclasses import asdict
from typing import Optional

from dota_scout.models.entries import Hydrated, MatchEntry, PlayerEntry
from dota_scout.models.match import Match
from dota_scout.models.reference import HeroSummary
from dota_scout.models.team import StoredPlayerData, Team, TeamMatchParticipation


def serialize_hero_summary(hero: HeroSummary) -> dict:
    return {
        "id": hero.id,
        "name": hero.name,
        "localized_name": hero.localized_name,
        "image_url": hero.image_url,
    }


def serialize_team(team: Team, selected_key: Optional[str] = None) -> dict:
    return {
        "key": team.key,
        "team_id": team.team_id,
        "league_id": team.league_id,
        "name": team.name,
        "league_name": team.league_name,
        "is_global": team.is_global,
        "is_selected": team.key == selected_key,
        "is_loading": team.is_loading,
        "team_error": team.team_error,
        "league_error": team.league_error,
        "needs_reload": team.needs_reload,
        "time_added": team.time_added.isoformat(),
        "match_count": len(team.matches),
        "player_count": len(team.players),
        "high_performing_heroes": sorted(team.high_performing_heroes),
    }


def serialize_participation(meta: TeamMatchParticipation) -> dict:
    return {
        "match_id": meta.match_id,
        "side": meta.side,
        "result": meta.result,
        "opponent_name": meta.opponent_name,
        "duration": meta.duration,
        "date": meta.date,
        "pick_order": meta.pick_order,
        "heroes": [serialize_hero_summary(h) for h in meta.heroes],
        "is_manual": meta.is_manual,
        "is_hidden": meta.is_hidden,
    }


def serialize_match(match: Match) -> dict:
    return asdict(match)


def serialize_match_entry(entry: MatchEntry, meta: Optional[TeamMatchParticipation] = None) -> dict:
    data = {
        "status": "hydrated" if isinstance(entry, Hydrated) else "placeholder",
        "match": asdict(entry.value),
    }
    if meta is not None:
        data["participation"] = serialize_participation(meta)
    return data


def serialize_player_entry(entry: PlayerEntry) -> dict:
    return {
        "status": "hydrated" if isinstance(entry, Hydrated) else "placeholder",
        "player": asdict(entry.value),
    }


def serialize_stored_player(data: StoredPlayerData) -> dict:
    return {
        "account_id": data.account_id,
        "name": data.name,
        "rank": data.rank,
        "rank_tier": data.rank_tier,
        "leaderboard_rank": data.leaderboard_rank,
        "games": data.games,
        "win_rate": data.win_rate,
        "top_heroes": [serialize_hero_summary(h) for h in data.top_heroes],
        "avatar": data.avatar,
        "is_manual": data.is_manual,
        "is_hidden": data.is_hidden,
    }
