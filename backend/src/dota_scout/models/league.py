"""League match list models."""

from dataclasses import dataclass, field
from typing import Optional

from dota_scout.models.match import Side


@dataclass
class LeagueMatchInfo:
    """Side assignments for one match in a league's match list."""

    match_id: int
    radiant_team_id: Optional[int] = None
    dire_team_id: Optional[int] = None
    radiant_player_ids: list[int] = field(default_factory=list)
    dire_player_ids: list[int] = field(default_factory=list)

    def side_of(self, team_id: int) -> Optional[Side]:
        if self.radiant_team_id == team_id:
            return "radiant"
        if self.dire_team_id == team_id:
            return "dire"
        return None

    def player_ids(self, side: Side) -> list[int]:
        return self.radiant_player_ids if side == "radiant" else self.dire_player_ids


@dataclass
class LeagueMatches:
    """Processed league match list, indexed by team."""

    league_id: int
    matches: dict[int, LeagueMatchInfo] = field(default_factory=dict)
    match_ids_by_team: dict[int, list[int]] = field(default_factory=dict)
    fetched_at: float = 0.0  # epoch seconds

    def match_ids_for(self, team_id: int) -> list[int]:
        return self.match_ids_by_team.get(team_id, [])
