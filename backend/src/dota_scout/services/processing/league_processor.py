"""League match list processing."""

import time

from dota_scout.models.league import LeagueMatches, LeagueMatchInfo


def process_league_matches(league_id: int, raw: dict) -> LeagueMatches:
    """Index a league's match list by team.

    Players with ``team_number`` 0 are radiant and 1 are dire; any other
    value is ignored.
    """
    processed = LeagueMatches(league_id=league_id, fetched_at=time.time())

    for entry in (raw.get("result") or {}).get("matches") or []:
        match_id = entry.get("match_id")
        if match_id is None:
            continue
        info = LeagueMatchInfo(
            match_id=match_id,
            radiant_team_id=entry.get("radiant_team_id"),
            dire_team_id=entry.get("dire_team_id"),
        )
        for player in entry.get("players") or []:
            if player.get("team_number") == 0:
                info.radiant_player_ids.append(player.get("account_id"))
            elif player.get("team_number") == 1:
                info.dire_player_ids.append(player.get("account_id"))

        processed.matches[match_id] = info
        for team_id in (info.radiant_team_id, info.dire_team_id):
            if team_id:
                processed.match_ids_by_team.setdefault(team_id, []).append(match_id)

    return processed


def league_matches_to_payload(league: LeagueMatches) -> dict:
    """Rebuild the provider shape for the versioned cache."""
    matches = []
    for info in league.matches.values():
        players = [{"account_id": pid, "team_number": 0} for pid in info.radiant_player_ids]
        players += [{"account_id": pid, "team_number": 1} for pid in info.dire_player_ids]
        matches.append(
            {
                "match_id": info.match_id,
                "radiant_team_id": info.radiant_team_id,
                "dire_team_id": info.dire_team_id,
                "players": players,
            }
        )
    return {"result": {"matches": matches}}
