"""REST endpoints for tracked teams and their derived views."""

from datetime import date
from typing import Annotated, Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from dota_scout.api.serializers import (
    serialize_match_entry,
    serialize_stored_player,
    serialize_team,
)
from dota_scout.app_data import AppData
from dota_scout.models.statistics import DateRangeSelection
from dota_scout.models.team import Team
from dota_scout.services.match_derivations import HeroSummaryEntry, MatchFilters

router = APIRouter(prefix="/api/teams", tags=["teams"])


class AddTeamRequest(BaseModel):
    team_id: int = Field(gt=0)
    league_id: int = Field(gt=0)


def get_app_data(request: Request) -> AppData:
    return request.app.state.app_data


def require_team(app_data: AppData, team_key: str) -> Team:
    team = app_data.get_team(team_key)
    if team is None:
        raise HTTPException(status_code=404, detail=f"Team not found: {team_key}")
    return team


def parse_date_range(
    date_range: str,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> DateRangeSelection:
    if date_range not in ("all", "7days", "30days", "custom"):
        raise HTTPException(status_code=400, detail=f"Unknown date range: {date_range}")
    return DateRangeSelection(type=date_range, custom_start=custom_start, custom_end=custom_end)


def _serialize_hero_entry(entry: HeroSummaryEntry) -> dict:
    return {
        "hero_id": entry.hero_id,
        "hero_name": entry.hero_name,
        "count": entry.count,
        "wins": entry.wins,
        "losses": entry.losses,
        "win_rate": round(entry.win_rate, 2),
    }


@router.get("")
def list_teams(request: Request):
    """List tracked teams, the global team first."""
    app_data = get_app_data(request)
    return {
        "selected_team_key": app_data.selected_team_key,
        "teams": [serialize_team(t, app_data.selected_team_key) for t in app_data.get_teams()],
    }


@router.post("", status_code=201)
async def add_team(request: Request, body: AddTeamRequest):
    """Add a team and start loading its matches."""
    app_data = get_app_data(request)
    team = await app_data.load_team(body.team_id, body.league_id)
    return serialize_team(team, app_data.selected_team_key)


@router.post("/refresh")
async def refresh_all_teams(request: Request):
    """Refresh the active team, then every other team."""
    app_data = get_app_data(request)
    await app_data.refresh_all_teams()
    return {"teams": [serialize_team(t, app_data.selected_team_key) for t in app_data.get_teams()]}


@router.post("/{team_key}/refresh")
async def refresh_team(request: Request, team_key: str):
    app_data = get_app_data(request)
    team = require_team(app_data, team_key)
    if team.is_global:
        await app_data.load_team_matches(team_key)
        return serialize_team(team, app_data.selected_team_key)
    refreshed = await app_data.refresh_team(team.team_id, team.league_id)
    return serialize_team(refreshed, app_data.selected_team_key)


@router.delete("/{team_key}")
def remove_team(request: Request, team_key: str):
    app_data = get_app_data(request)
    team = require_team(app_data, team_key)
    if team.is_global:
        raise HTTPException(status_code=400, detail="The global team cannot be removed")
    app_data.remove_team(team_key)
    return {"removed": team_key, "selected_team_key": app_data.selected_team_key}


@router.post("/{team_key}/select")
def select_team(request: Request, team_key: str):
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    team = app_data.select_team(team_key)
    app_data.save()
    return serialize_team(team, app_data.selected_team_key)


@router.get("/{team_key}/matches")
def get_team_matches(
    request: Request,
    team_key: str,
    hidden: bool = False,
    date_range: str = "all",
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
    result: Literal["all", "wins", "losses"] = "all",
    team_side: Literal["all", "radiant", "dire"] = "all",
    pick_order: Literal["all", "first", "second"] = "all",
    heroes: Annotated[list[int], Query()] = [],
    opponent: Annotated[list[str], Query()] = [],
    high_performers_only: bool = False,
):
    """Display (or hidden) matches of a team, with filters applied to display matches."""
    app_data = get_app_data(request)
    team = require_team(app_data, team_key)

    if hidden:
        entries = app_data.get_team_hidden_matches(team_key)
        return {
            "matches": [serialize_match_entry(e, team.matches.get(e.value.id)) for e in entries],
        }

    filters = MatchFilters(
        date_range=parse_date_range(date_range, custom_start, custom_end),
        result=result,
        team_side=team_side,
        pick_order=pick_order,
        heroes_played=list(heroes),
        opponent=list(opponent),
        high_performers_only=high_performers_only,
    )
    entries, stats = app_data.get_team_display_matches(team_key, filters)
    return {
        "matches": [serialize_match_entry(e, team.matches.get(e.value.id)) for e in entries],
        "stats": {
            "total_matches": stats.total_matches,
            "filtered_matches": stats.filtered_matches,
            "high_performer_matches": stats.high_performer_matches,
        },
    }


@router.get("/{team_key}/hero-summary")
def get_team_hero_summary(request: Request, team_key: str):
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    summary = app_data.get_team_hero_summary(team_key)
    return {
        "matches_count": summary.matches_count,
        "active_team_picks": [_serialize_hero_entry(e) for e in summary.active_team_picks],
        "opponent_team_picks": [_serialize_hero_entry(e) for e in summary.opponent_team_picks],
        "active_team_bans": [_serialize_hero_entry(e) for e in summary.active_team_bans],
        "opponent_team_bans": [_serialize_hero_entry(e) for e in summary.opponent_team_bans],
    }


@router.get("/{team_key}/players")
def get_team_players(request: Request, team_key: str, hidden: bool = False):
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    return {
        "players": [serialize_stored_player(p) for p in app_data.get_team_players(team_key, hidden)],
    }
