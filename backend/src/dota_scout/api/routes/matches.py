"""REST endpoints for manual and hidden matches of a team."""

from typing import Literal

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from dota_scout.api.routes.teams import get_app_data, require_team
from dota_scout.api.serializers import serialize_match, serialize_participation

router = APIRouter(prefix="/api/teams/{team_key}/matches", tags=["matches"])


class ManualMatchRequest(BaseModel):
    match_id: int = Field(gt=0)
    side: Literal["radiant", "dire"]


class EditMatchRequest(BaseModel):
    new_match_id: int = Field(gt=0)
    side: Literal["radiant", "dire"]


@router.post("", status_code=201)
async def add_manual_match(request: Request, team_key: str, body: ManualMatchRequest):
    """Attach a match to the team.

    The match stays attached even when it cannot be loaded; the response
    then carries the load error.
    """
    app_data = get_app_data(request)
    team = require_team(app_data, team_key)
    match = await app_data.add_manual_match(team_key, body.match_id, body.side)

    meta = team.matches.get(body.match_id)
    return {
        "match": serialize_match(match) if match else None,
        "participation": serialize_participation(meta) if meta else None,
        "error": None if match else f"Failed to load match {body.match_id}",
    }


@router.put("/{match_id}")
async def edit_manual_match(request: Request, team_key: str, match_id: int, body: EditMatchRequest):
    """Replace a manual match, or change its side when the id is unchanged."""
    app_data = get_app_data(request)
    team = require_team(app_data, team_key)
    match = await app_data.edit_manual_match(team_key, match_id, body.new_match_id, body.side)
    if match is None:
        raise HTTPException(status_code=502, detail=f"Failed to load match {body.new_match_id}")
    return {
        "match": serialize_match(match),
        "participation": serialize_participation(team.matches[body.new_match_id]),
    }


@router.delete("/{match_id}")
def remove_manual_match(request: Request, team_key: str, match_id: int):
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    if not app_data.remove_manual_match(team_key, match_id):
        raise HTTPException(status_code=404, detail=f"No manual match {match_id} on team {team_key}")
    return {"removed": match_id}


@router.post("/{match_id}/hide")
def hide_match(request: Request, team_key: str, match_id: int):
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    if not app_data.manual.hide_match(team_key, match_id):
        raise HTTPException(status_code=404, detail=f"Match {match_id} is not known to team {team_key}")
    return {"match_id": match_id, "is_hidden": True}


@router.post("/{match_id}/unhide")
def unhide_match(request: Request, team_key: str, match_id: int):
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    if not app_data.manual.unhide_match(team_key, match_id):
        raise HTTPException(status_code=404, detail=f"Match {match_id} is not known to team {team_key}")
    return {"match_id": match_id, "is_hidden": False}


@router.post("/{match_id}/refresh")
async def refresh_match(request: Request, team_key: str, match_id: int):
    """Force-reload a match and reconcile every team holding it."""
    app_data = get_app_data(request)
    require_team(app_data, team_key)
    match = await app_data.refresh_match(match_id)
    if match is None:
        raise HTTPException(status_code=502, detail=f"Failed to load match {match_id}")
    return {"match": serialize_match(match)}
