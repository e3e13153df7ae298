"""Manual match and player operations on a team.

Edits follow construct-then-swap: the replacement entity is fetched
before the team is touched, and the old/new pair is exchanged with
``swap_entry`` inside a single ``teams.batch()`` so observers only ever
see the state before or the state after.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from dota_scout.exceptions import TeamNotFoundError
from dota_scout.models.entries import Placeholder, hydrated_value, mark_entry_error
from dota_scout.models.match import Match, PlaceholderMatch, Side, other_side
from dota_scout.models.player import PlaceholderPlayer, Player
from dota_scout.models.team import StoredPlayerData, Team, TeamMatchParticipation, utc_now
from dota_scout.services.participation_service import extract_team_heroes, resolve_pick_order
from dota_scout.store.transitions import swap_entry

if TYPE_CHECKING:
    from dota_scout.app_data import AppData

logger = logging.getLogger(__name__)


def manual_match_metadata(
    match_id: int, side: Side, existing: Optional[TeamMatchParticipation] = None
) -> TeamMatchParticipation:
    """Metadata for a user-attached match. The chosen side is kept on every recompute."""
    if existing is not None:
        return replace(existing, side=side, is_manual=True)
    return TeamMatchParticipation(
        match_id=match_id,
        side=side,
        date=utc_now().isoformat(),
        is_manual=True,
    )


class ManualOperations:
    """Add, remove, edit, hide and unhide for matches and players of one session."""

    def __init__(self, app: "AppData"):
        self.app = app

    @property
    def stores(self):
        return self.app.stores

    def _team(self, team_key: str) -> Team:
        team = self.stores.teams.get(team_key)
        if team is None:
            raise TeamNotFoundError(team_key)
        return team

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    async def add_manual_match(self, team_key: str, match_id: int, side: Side) -> Optional[Match]:
        """Attach a match to a team and load it.

        When the load fails the match stays attached as an error-flagged
        placeholder; the call returns None.
        """
        team = self._team(team_key)
        meta = manual_match_metadata(match_id, side, team.matches.get(match_id))
        team.matches[match_id] = meta

        if match_id not in self.stores.matches:
            self.stores.matches.set(
                match_id, Placeholder(PlaceholderMatch(id=match_id, date=meta.date, side=side))
            )
        self.stores.teams.touch()

        match = await self.app.loader.load_match(match_id)
        if match is None:
            entry = self.stores.matches.get(match_id)
            if entry is not None and not entry.value.error:
                mark_entry_error(entry, f"Failed to load match {match_id}")
                self.stores.matches.touch()
            self.app.save()
            return None

        self.app.participation.update_team_match_participation(team_key, [match_id])
        logger.info(f"Added manual match {match_id} to team {team_key}")
        return match

    def remove_manual_match(self, team_key: str, match_id: int) -> bool:
        """Detach a manual match. Discovered matches can only be hidden."""
        team = self._team(team_key)
        meta = team.matches.get(match_id)
        if meta is None or not meta.is_manual:
            return False

        del team.matches[match_id]
        self.app.participation.refresh_derived(team)
        logger.info(f"Removed manual match {match_id} from team {team_key}")
        return True

    def _change_side(self, team: Team, meta: TeamMatchParticipation, side: Side) -> Optional[Match]:
        match = hydrated_value(self.stores.matches.get(meta.match_id))
        if match is None:
            return None

        # pick order and heroes of the old side no longer apply
        team.matches[meta.match_id] = replace(
            meta,
            side=side,
            opponent_name=match.team(other_side(side)).name or "Unknown",
            result="won" if match.result == side else "lost",
            pick_order=resolve_pick_order(match, side, None),
            heroes=extract_team_heroes(match, side, None, self.stores.heroes.ref),
        )
        self.app.participation.refresh_derived(team)
        return match

    async def edit_manual_match(
        self, team_key: str, old_match_id: int, new_match_id: int, side: Side
    ) -> Optional[Match]:
        """Replace a manual match with another one, or change its side.

        Returns None when the replacement could not be fetched; the team
        is then left exactly as it was.
        """
        team = self._team(team_key)
        if old_match_id == new_match_id:
            meta = team.matches.get(old_match_id)
            if meta is not None and meta.is_manual:
                match = self._change_side(team, meta, side)
                if match is not None:
                    return match

        match = await self.app.loader.load_match(new_match_id)
        if match is None:
            logger.warning(
                f"Edit of match {old_match_id} on team {team_key} aborted: "
                f"match {new_match_id} could not be loaded"
            )
            return None

        # the team may have been removed while the fetch was pending
        team = self._team(team_key)
        new_meta = replace(
            manual_match_metadata(new_match_id, side),
            date=match.date,
            duration=match.duration,
        )
        entries = dict(team.matches)
        if new_match_id != old_match_id:
            entries.pop(new_match_id, None)

        old_meta = entries.get(old_match_id)
        if old_meta is not None and old_meta.is_manual:
            swapped = swap_entry(entries, old_match_id, new_match_id, new_meta).current
        else:
            swapped = {**entries, new_match_id: new_meta}

        with self.stores.teams.batch():
            team.matches = swapped
            self.app.participation.update_team_match_participation(team_key, [new_match_id])

        logger.info(f"Replaced match {old_match_id} with {new_match_id} on team {team_key}")
        return match

    def set_match_hidden(self, team_key: str, match_id: int, hidden: bool) -> bool:
        team = self._team(team_key)
        if match_id not in team.matches:
            self.app.participation.reconcile_match(team, match_id)

        meta = team.matches.get(match_id)
        if meta is None:
            logger.debug(f"Team {team_key}: no metadata for match {match_id}, cannot change visibility")
            return False

        team.matches[match_id] = replace(meta, is_hidden=hidden)
        self.app.participation.refresh_derived(team)
        return True

    def hide_match(self, team_key: str, match_id: int) -> bool:
        return self.set_match_hidden(team_key, match_id, True)

    def unhide_match(self, team_key: str, match_id: int) -> bool:
        return self.set_match_hidden(team_key, match_id, False)

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    async def add_manual_player(self, team_key: str, player_id: int) -> Optional[Player]:
        team = self._team(team_key)
        if player_id <= 0:
            logger.warning(f"Ignoring manual player with invalid id {player_id}")
            return None

        existing = team.players.get(player_id)
        team.players[player_id] = (
            replace(existing, is_manual=True)
            if existing is not None
            else StoredPlayerData(account_id=player_id, is_manual=True)
        )
        if player_id not in self.stores.players:
            self.stores.players.set(
                player_id,
                Placeholder(PlaceholderPlayer(account_id=player_id, name=f"Player {player_id}")),
            )
        self.stores.teams.touch()

        player = await self.app.loader.load_player(player_id)
        self.app.participation.refresh_derived(team)
        if player is not None:
            logger.info(f"Added manual player {player_id} to team {team_key}")
        return player

    def remove_manual_player(self, team_key: str, player_id: int) -> bool:
        team = self._team(team_key)
        stored = team.players.get(player_id)
        if stored is None or not stored.is_manual:
            return False

        del team.players[player_id]
        self.app.participation.refresh_derived(team)
        logger.info(f"Removed manual player {player_id} from team {team_key}")
        return True

    async def edit_manual_player(
        self, team_key: str, old_player_id: int, new_player_id: int
    ) -> Optional[Player]:
        """Replace a manual player. A failed fetch leaves the team untouched."""
        self._team(team_key)
        if new_player_id <= 0:
            return None

        player = await self.app.loader.load_player(new_player_id)
        if player is None:
            logger.warning(
                f"Edit of player {old_player_id} on team {team_key} aborted: "
                f"player {new_player_id} could not be loaded"
            )
            return None
        if old_player_id == new_player_id:
            return player

        team = self._team(team_key)
        new_stored = StoredPlayerData(account_id=new_player_id, is_manual=True)
        entries = {pid: data for pid, data in team.players.items() if pid != new_player_id}

        old_stored = entries.get(old_player_id)
        if old_stored is not None and old_stored.is_manual:
            swapped = swap_entry(entries, old_player_id, new_player_id, new_stored).current
        else:
            swapped = {**entries, new_player_id: new_stored}

        with self.stores.teams.batch():
            team.players = swapped
            self.app.participation.refresh_derived(team)

        logger.info(f"Replaced player {old_player_id} with {new_player_id} on team {team_key}")
        return player

    def set_player_hidden(self, team_key: str, player_id: int, hidden: bool) -> bool:
        team = self._team(team_key)
        if player_id <= 0:
            return False
        if player_id not in team.players:
            self.app.player_metadata.update_team(team)
        if player_id not in team.players:
            team.players[player_id] = StoredPlayerData(account_id=player_id)

        team.players[player_id] = replace(team.players[player_id], is_hidden=hidden)
        self.app.participation.refresh_derived(team)
        return True

    def hide_player(self, team_key: str, player_id: int) -> bool:
        return self.set_player_hidden(team_key, player_id, True)

    def unhide_player(self, team_key: str, player_id: int) -> bool:
        return self.set_player_hidden(team_key, player_id, False)
