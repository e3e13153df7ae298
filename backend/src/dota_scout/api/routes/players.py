"""REST endpoints for manual and hidden players, and player statistics."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from dota_scout.api.routes.teams import get_app_data, parse_date_range, require_team
from dota_scout.api.serializers import serialize_stored_player
from dota_scout.models.statistics import HeroAggregateStats, PlayerAggregateStats
from dota_scout.services.statistics_service import sort_hero_stats

router = APIRouter(prefix="/api/teams/{team_key}/players", tags=["players"])
stats_router = APIRouter(prefix="/api/players", tags=["players"])


class ManualPlayerRequest(BaseModel):
    player_id: int = Field(gt=0)


class EditPlayerRequest(BaseModel):
    new_player_id: int = Field(gt=0)


def _serialize_stats(stats: PlayerAggregateStats) -> dict:
    return {
        "total_games": stats.total_games,
        "total_wins": stats.total_wins,
        "win_rate": round(stats.win_rate, 2),
        "average_kda": round(stats.average_kda, 2),
        "average_gpm": round(stats.average_gpm, 1),
        "average_xpm": round(stats.average_xpm, 1),
        "average_kills": round(stats.average_kills, 2),
        "average_deaths": round(stats.average_deaths, 2),
        "average_assists": round(stats.average_assists, 2),
    }


def _serialize_hero_stats(stats: HeroAggregateStats) -> dict:
    return {
        "hero_id": stats.hero.id,
        "hero_name": stats.hero.localized_name,
        "games": stats.games,
        "wins": stats.wins,
        "win_rate": round(stats.win_rate, 2),
        "average_kda": round(stats.average_kda, 2),
        "average_gpm": round(stats.average_gpm, 1),
        "average_xpm": round(stats.average_xpm, 1),
        "roles": sorted(stats.roles),
    }


@router.post("", status_code=201)
async def add_manual_player(request: Request, team_key: str, body: ManualPlayerRequest):
    app_data = get_app_data(request)
    team = require_team(app_data, team_key)
    player = await app_data.add_manual_player(team_key, body.player_id)
    stored = team.players.get(body.player_id)
    return {
        "player": serialize_stored_player(stored) if stored else None,
        "error": None if player else f"Failed to load player {body.player_id}",
    }


@router.put("/{player_id}")
async def edit_manual_player(request: Request, team_key: str, player_id: int, body: EditPlayerRequest):
    app_data = get_app_data(request)
    team = require_team(app_data, team_key)
    player = await app_data.edit_manual_player(team_key, player_id, body.new_player_id)
    if player is None:
        raise HTTPException(status_code=502, detail=f"Failed to load player {body.new_player_id}")
    stored = team.players.get(body.new_player_id)
    return {"player": serialize_stored_player(stored) if stored else None}


@router.delete("/{player_id}")
def remove_manual_player(request: Request, team_key: str, player_id: int):
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    if not app_data.remove_manual_player(team_key, player_id):
        raise HTTPException(status_code=404, detail=f"No manual player {player_id} on team {team_key}")
    return {"removed": player_id}


@router.post("/{player_id}/hide")
def hide_player(request: Request, team_key: str, player_id: int):
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    if not app_data.manual.hide_player(team_key, player_id):
        raise HTTPException(status_code=400, detail=f"Invalid player id {player_id}")
    return {"player_id": player_id, "is_hidden": True}


@router.post("/{player_id}/unhide")
def unhide_player(request: Request, team_key: str, player_id: int):
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    if not app_data.manual.unhide_player(team_key, player_id):
        raise HTTPException(status_code=400, detail=f"Invalid player id {player_id}")
    return {"player_id": player_id, "is_hidden": False}


@stats_router.get("/{player_id}/stats")
def get_player_stats(
    request: Request,
    player_id: int,
    team_key: Optional[str] = None,
    date_range: str = "all",
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
):
    """Aggregate statistics for a player, optionally scoped to one team."""
    app_data = get_app_data(request)
    selection = parse_date_range(date_range, custom_start, custom_end)
    statistics = app_data.statistics

    if team_key is not None:
        require_team(app_data, team_key)
        stats = statistics.get_team_player_stats(player_id, team_key, selection)
        hero_stats = statistics.get_team_player_hero_stats(player_id, team_key, selection)
    else:
        stats = statistics.get_player_stats(player_id, selection)
        hero_stats = statistics.get_player_hero_stats(player_id, selection)

    return {
        "player_id": player_id,
        "team_key": team_key,
        "stats": _serialize_stats(stats),
        "heroes": [_serialize_hero_stats(h) for h in sort_hero_stats(hero_stats.values())],
    }


@stats_router.post("/{player_id}/refresh")
async def refresh_player(request: Request, player_id: int):
    app_data = get_app_data(request)
    player = await app_data.refresh_player(player_id)
    if player is None:
        raise HTTPException(status_code=502, detail=f"Failed to load player {player_id}")
    return {"player_id": player_id, "error": player.error}
