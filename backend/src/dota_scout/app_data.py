"""Session object owning the entity stores and every service that works on them."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Coroutine, Iterable, Optional

from dota_scout.exceptions import TeamNotFoundError
from dota_scout.models.entries import (
    MatchEntry,
    Placeholder,
    hydrated_value,
    placeholder_match_from_participation,
    placeholder_player_from_stored,
)
from dota_scout.models.match import Match, Side
from dota_scout.models.player import Player
from dota_scout.models.statistics import DateRangeSelection
from dota_scout.models.team import (
    GLOBAL_TEAM_KEY,
    StoredPlayerData,
    Team,
    make_team_key,
    utc_now,
)
from dota_scout.repositories.cache_repository import CacheRepository
from dota_scout.repositories.storage_repository import StorageRepository
from dota_scout.services.api_client import ScoutApiClient
from dota_scout.services.hero_performance_service import HeroPerformanceService
from dota_scout.services.loader_service import LoaderService
from dota_scout.services.manual_ops import ManualOperations
from dota_scout.services.match_derivations import (
    MatchFilters,
    MatchFilterStats,
    TeamHeroSummary,
    compute_team_hero_summary,
    filter_team_matches,
    team_match_entries,
)
from dota_scout.services.participation_service import ParticipationService
from dota_scout.services.persistence_service import PersistenceService
from dota_scout.services.player_metadata_service import PlayerMetadataService
from dota_scout.services.statistics_service import StatisticsService
from dota_scout.store.stores import EntityStores

logger = logging.getLogger(__name__)


@dataclass
class LoadedStorageResult:
    """Teams restored from storage that still need a background refresh."""

    active_team: Optional[Team] = None
    other_teams: list[Team] = field(default_factory=list)


@dataclass
class TeamFetchResult:
    name: Optional[str] = None
    team_error: Optional[str] = None
    league_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.team_error and not self.league_error


class AppData:
    """All state for one scouting session.

    The stores are only mutated through this object and the services it
    owns. Background loads started here are tracked so shutdown and tests
    can wait for them.
    """

    def __init__(
        self,
        client: ScoutApiClient,
        storage: StorageRepository,
        cache: Optional[CacheRepository] = None,
    ):
        self.stores = EntityStores()
        self.loader = LoaderService(client, self.stores, cache)
        self.hero_performance = HeroPerformanceService(self.stores)
        self.player_metadata = PlayerMetadataService(self.stores)
        self.participation = ParticipationService(
            self.stores,
            self.hero_performance,
            self.player_metadata,
            on_change=self.save,
        )
        self.persistence = PersistenceService(storage)
        self.statistics = StatisticsService(self.stores)
        self.manual = ManualOperations(self)

        self.selected_team_key: str = GLOBAL_TEAM_KEY
        self._background: set[asyncio.Task] = set()

        self.ensure_global_team()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._background.add(task)

        def _done(done: asyncio.Task) -> None:
            self._background.discard(done)
            if not done.cancelled() and done.exception() is not None:
                logger.error(f"Background {description} failed: {done.exception()}")

        task.add_done_callback(_done)
        return task

    async def wait_for_background(self) -> None:
        """Wait until every background load (including ones they start) has settled."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._background):
            task.cancel()
        await asyncio.gather(*list(self._background), return_exceptions=True)
        await self.loader.close()

    async def initialize(self) -> LoadedStorageResult:
        """Load reference data, restore persisted teams and start their refresh."""
        await self.loader.load_reference_data()
        result = self.load_from_storage()
        self._spawn(self.refresh_loaded_teams(result), "refresh of stored teams")
        return result

    async def refresh_loaded_teams(self, result: LoadedStorageResult) -> None:
        """Refresh the active team first, then the rest concurrently."""
        await self.load_all_manual_matches()
        if result.active_team is not None:
            await self._refresh_restored(result.active_team)
        await asyncio.gather(
            *(self._refresh_restored(team) for team in result.other_teams),
            return_exceptions=True,
        )
        await self.load_all_manual_players()

    async def _refresh_restored(self, team: Team) -> None:
        try:
            if team.needs_reload:
                await self.load_team(team.team_id, team.league_id, select=False)
            else:
                await self.refresh_team(team.team_id, team.league_id)
        except TeamNotFoundError:
            logger.debug(f"Team {team.key} was removed before its refresh")

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    def ensure_global_team(self) -> Team:
        team = self.stores.teams.get(GLOBAL_TEAM_KEY)
        if team is None:
            team = Team.global_team()
            self.stores.teams.set(GLOBAL_TEAM_KEY, team)
        return team

    def get_team(self, team_key: str) -> Optional[Team]:
        return self.stores.teams.get(team_key)

    def get_teams(self) -> list[Team]:
        return self.stores.teams.all()

    def require_team(self, team_key: str) -> Team:
        team = self.stores.teams.get(team_key)
        if team is None:
            raise TeamNotFoundError(team_key)
        return team

    @property
    def selected_team(self) -> Team:
        return self.stores.teams.get(self.selected_team_key) or self.ensure_global_team()

    def select_team(self, team_key: str) -> Team:
        """Make a team the active one. Raises TeamNotFoundError for unknown keys."""
        team = self.require_team(team_key)
        self.selected_team_key = team_key
        return team

    async def _fetch_team_and_league(
        self, team_id: int, league_id: int, fetch_team: bool, force_league: bool
    ) -> TeamFetchResult:
        async def no_team() -> None:
            return None

        team_result, league_result = await asyncio.gather(
            self.loader.fetch_team(team_id) if fetch_team else no_team(),
            self.loader.fetch_league_matches(league_id, force=force_league),
            return_exceptions=True,
        )

        result = TeamFetchResult()
        if isinstance(team_result, BaseException):
            logger.error(f"Failed to fetch team {team_id}: {team_result}")
            result.team_error = str(team_result) or "Failed to fetch team data"
        elif isinstance(team_result, dict):
            name = team_result.get("name")
            result.name = name if isinstance(name, str) and name else None

        if isinstance(league_result, BaseException):
            logger.error(f"Failed to fetch league {league_id}: {league_result}")
            result.league_error = str(league_result) or "Failed to fetch league data"
        return result

    def _league_name(self, league_id: int, fallback: Optional[str] = None) -> str:
        league = self.stores.leagues.get(league_id)
        if league is not None and league.name:
            return league.name
        return fallback or f"League {league_id}"

    async def load_team(self, team_id: int, league_id: int, select: bool = True) -> Team:
        """Add a team and load its data.

        The team is kept even when the fetch fails, carrying the errors so
        it can be refreshed later.
        """
        team_key = make_team_key(team_id, league_id)
        existing = self.stores.teams.get(team_key)
        team = Team.placeholder(
            team_id,
            league_id,
            time_added=existing.time_added if existing else utc_now(),
            matches=existing.matches if existing else {},
            players=existing.players if existing else {},
        )
        self.stores.teams.set(team_key, team)

        fetched = await self._fetch_team_and_league(team_id, league_id, True, False)

        team.name = fetched.name or f"Team {team_id}"
        team.league_name = self._league_name(league_id)
        team.team_error = fetched.team_error
        team.league_error = fetched.league_error
        team.is_loading = False
        team.needs_reload = False
        team.updated_at = utc_now()
        self.stores.teams.touch()

        if fetched.ok:
            if select:
                self.select_team(team_key)
            self._spawn(self.load_team_matches(team_key, force=True), f"match load for {team_key}")

        self.save()
        logger.info(f"Loaded team {team_key} ({team.name})")
        return team

    add_team = load_team

    async def refresh_team(self, team_id: int, league_id: int) -> Team:
        """Refetch a team's league list and reload its matches.

        Raises:
            TeamNotFoundError: no such team
        """
        team_key = make_team_key(team_id, league_id)
        team = self.require_team(team_key)
        team.is_loading = True
        self.stores.teams.touch()

        fetched = await self._fetch_team_and_league(
            team_id, league_id, fetch_team=bool(team.team_error), force_league=True
        )

        team.name = fetched.name or team.name
        team.league_name = self._league_name(league_id, team.league_name)
        team.team_error = fetched.team_error
        team.league_error = fetched.league_error
        team.is_loading = False
        team.updated_at = utc_now()
        self.stores.teams.touch()

        if fetched.ok:
            self._spawn(self.load_team_matches(team_key), f"match refresh for {team_key}")

        self.save()
        return team

    async def refresh_all_teams(self) -> None:
        active = self.selected_team
        if not active.is_global:
            await self.refresh_team(active.team_id, active.league_id)

        others = [
            team
            for team in self.get_teams()
            if not team.is_global and team.key != active.key
        ]
        results = await asyncio.gather(
            *(self.refresh_team(team.team_id, team.league_id) for team in others),
            return_exceptions=True,
        )
        for team, result in zip(others, results):
            if isinstance(result, BaseException):
                logger.error(f"Refresh of team {team.key} failed: {result}")

    def remove_team(self, team_key: str) -> bool:
        if team_key == GLOBAL_TEAM_KEY:
            return False
        if not self.stores.teams.delete(team_key):
            return False

        self.stores.hero_performance.delete(team_key)
        if self.selected_team_key == team_key:
            self.selected_team_key = GLOBAL_TEAM_KEY
        self.save()
        logger.info(f"Removed team {team_key}")
        return True

    # ------------------------------------------------------------------
    # Team matches and players
    # ------------------------------------------------------------------

    def _league_match_ids(self, team: Team) -> list[int]:
        if team.is_global:
            return []
        league = self.stores.league_matches.get(team.league_id)
        return list(league.match_ids_for(team.team_id)) if league else []

    def _needs_load(self, match_id: int) -> bool:
        entry = self.stores.matches.get(match_id)
        if entry is None or isinstance(entry, Placeholder):
            return True
        return bool(entry.value.error) or not entry.value.has_players

    async def load_team_matches(self, team_key: str, force: bool = False) -> None:
        """Load the team's league and manual matches, then their players.

        Without ``force`` only matches that are missing, placeholders,
        errored or without player data are fetched.
        """
        team = self.get_team(team_key)
        if team is None:
            logger.error(f"Team {team_key} not found, cannot load matches")
            return

        all_ids = list(dict.fromkeys([*self._league_match_ids(team), *team.manual_match_ids()]))
        if not all_ids:
            return

        to_load = all_ids if force else [mid for mid in all_ids if self._needs_load(mid)]
        if to_load:
            await self.loader.load_matches(to_load)

        self.participation.update_team_match_participation(team_key, all_ids)
        await self.load_players_for_team_matches(team_key, all_ids if force or not to_load else to_load)

    async def load_players_for_team_matches(self, team_key: str, match_ids: Iterable[int]) -> None:
        team = self.get_team(team_key)
        if team is None:
            return

        player_ids: dict[int, None] = {}
        for match_id in match_ids:
            match = hydrated_value(self.stores.matches.get(match_id))
            meta = team.matches.get(match_id)
            if match is None or meta is None:
                continue
            for player in match.players.side(meta.side):
                if player.account_id and player.account_id > 0:
                    player_ids[player.account_id] = None

        if not player_ids:
            return
        await self.loader.load_players(player_ids)
        self.participation.refresh_derived(team)

    def update_team_match_participation(self, team_key: str, match_ids: Iterable[int]) -> None:
        self.participation.update_team_match_participation(team_key, match_ids)

    def get_team_matches(self, team_key: str) -> list[Match]:
        """Loaded matches of the team, newest first."""
        team = self.get_team(team_key)
        if team is None:
            return []
        ids = dict.fromkeys([*self._league_match_ids(team), *team.matches])
        matches = [
            match
            for match_id in ids
            if (match := hydrated_value(self.stores.matches.get(match_id))) is not None
        ]
        return sorted(matches, key=lambda m: m.date, reverse=True)

    def get_team_player_ids(self, team_key: str) -> set[int]:
        team = self.get_team(team_key)
        if team is None:
            return set()

        player_ids = {pid for pid, data in team.players.items() if pid > 0 and data.account_id > 0}

        league = None if team.is_global else self.stores.league_matches.get(team.league_id)
        if league is not None:
            for match_id in league.match_ids_for(team.team_id):
                info = league.matches.get(match_id)
                side = info.side_of(team.team_id) if info else None
                if side is not None:
                    player_ids.update(pid for pid in info.player_ids(side) if pid > 0)

        for match_id in team.manual_match_ids():
            match = hydrated_value(self.stores.matches.get(match_id))
            meta = team.matches[match_id]
            if match is None or not meta.side:
                continue
            player_ids.update(
                p.account_id for p in match.players.side(meta.side) if p.account_id and p.account_id > 0
            )
        return player_ids

    def team_has_match(self, team_key: str, match_id: int) -> bool:
        team = self.get_team(team_key)
        if team is None:
            return False
        return match_id in team.matches or match_id in self._league_match_ids(team)

    def team_has_player(self, team_key: str, player_id: int) -> bool:
        return player_id in self.get_team_player_ids(team_key)

    # ------------------------------------------------------------------
    # Matches and players
    # ------------------------------------------------------------------

    async def load_match(self, match_id: int, force: bool = False) -> Optional[Match]:
        return await self.loader.load_match(match_id, force=force)

    async def refresh_match(self, match_id: int) -> Optional[Match]:
        """Force-reload a match and reconcile every team that holds it."""
        match = await self.loader.load_match(match_id, force=True)
        if match is None:
            return None

        for team in self.get_teams():
            if match_id in team.matches:
                self.participation.update_team_match_participation(team.key, [match_id], persist=False)
        self.save()
        return match

    async def load_player(self, player_id: int, force: bool = False) -> Optional[Player]:
        player = await self.loader.load_player(player_id, force=force)
        self._refresh_player_metadata(player_id)
        return player

    async def refresh_player(self, player_id: int) -> Optional[Player]:
        return await self.load_player(player_id, force=True)

    def _refresh_player_metadata(self, player_id: int) -> None:
        teams = [team for team in self.get_teams() if player_id in team.players]
        if not teams:
            return
        with self.stores.teams.batch():
            for team in teams:
                self.player_metadata.update_team(team)
            self.stores.teams.touch()
        self.save()

    async def load_all_manual_matches(self) -> None:
        match_ids = {mid for team in self.get_teams() for mid in team.manual_match_ids()}
        if not match_ids:
            return
        await self.loader.load_matches(match_ids)

        for team in self.get_teams():
            manual_ids = team.manual_match_ids()
            if manual_ids:
                self.participation.update_team_match_participation(team.key, manual_ids, persist=False)
        self.save()

    async def load_all_manual_players(self) -> None:
        player_ids = {pid for team in self.get_teams() for pid in team.manual_player_ids()}
        if player_ids:
            await self.loader.load_players(player_ids)

    # ------------------------------------------------------------------
    # Manual operations
    # ------------------------------------------------------------------

    async def add_manual_match(self, team_key: str, match_id: int, side: Side) -> Optional[Match]:
        return await self.manual.add_manual_match(team_key, match_id, side)

    def remove_manual_match(self, team_key: str, match_id: int) -> bool:
        return self.manual.remove_manual_match(team_key, match_id)

    async def edit_manual_match(
        self, team_key: str, old_match_id: int, new_match_id: int, side: Side
    ) -> Optional[Match]:
        return await self.manual.edit_manual_match(team_key, old_match_id, new_match_id, side)

    async def add_manual_player(self, team_key: str, player_id: int) -> Optional[Player]:
        return await self.manual.add_manual_player(team_key, player_id)

    def remove_manual_player(self, team_key: str, player_id: int) -> bool:
        return self.manual.remove_manual_player(team_key, player_id)

    async def edit_manual_player(
        self, team_key: str, old_player_id: int, new_player_id: int
    ) -> Optional[Player]:
        return await self.manual.edit_manual_player(team_key, old_player_id, new_player_id)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def get_team_display_matches(
        self,
        team_key: str,
        filters: Optional[MatchFilters] = None,
        now: Optional[datetime] = None,
    ) -> tuple[list[MatchEntry], MatchFilterStats]:
        team = self.require_team(team_key)
        return filter_team_matches(
            team,
            self.stores.matches.ref,
            filters or MatchFilters(),
            self.hero_performance.for_team(team_key),
            now,
        )

    def get_team_hidden_matches(self, team_key: str) -> list[MatchEntry]:
        return team_match_entries(self.require_team(team_key), self.stores.matches.ref, hidden=True)

    def get_team_hero_summary(self, team_key: str) -> TeamHeroSummary:
        return compute_team_hero_summary(self.require_team(team_key), self.stores.matches.ref)

    def get_team_players(self, team_key: str, hidden: bool = False) -> list[StoredPlayerData]:
        """Per-team player snapshots sorted by name."""
        team = self.require_team(team_key)
        players = [data for data in team.players.values() if data.is_hidden == hidden]
        return sorted(players, key=lambda p: p.name.lower())

    def get_team_player_stats(
        self,
        player_id: int,
        team_key: str,
        date_range: Optional[DateRangeSelection] = None,
        now: Optional[datetime] = None,
    ):
        self.require_team(team_key)
        return self.statistics.get_team_player_stats(player_id, team_key, date_range, now)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        self.persistence.save(self.get_teams(), self.selected_team_key)

    def load_from_storage(self) -> LoadedStorageResult:
        """Rebuild the team store from durable storage.

        Valid records become teams, invalid ones identity-only placeholders
        marked for reload. Matches and players referenced by per-team
        metadata get placeholder entries until they are fetched.
        """
        loaded = self.persistence.load()

        with self.stores.teams.batch():
            self.stores.teams.clear()
            self.ensure_global_team()
            for team in loaded.teams:
                self.stores.teams.set(team.key, team)
            for placeholder in loaded.placeholders:
                if placeholder.key in self.stores.teams:
                    continue
                self.stores.teams.set(
                    placeholder.key,
                    Team.placeholder(
                        placeholder.team_id,
                        placeholder.league_id,
                        time_added=placeholder.time_added or utc_now(),
                        needs_reload=True,
                    ),
                )
            self.ensure_global_team()

        self.ensure_placeholder_matches()
        self.ensure_placeholder_players()

        requested = loaded.active_team_key or GLOBAL_TEAM_KEY
        try:
            selected = self.select_team(requested)
        except TeamNotFoundError:
            logger.warning(f"Stored active team {requested} no longer exists, selecting global team")
            selected = self.select_team(GLOBAL_TEAM_KEY)

        result = LoadedStorageResult(
            active_team=None if selected.is_global else selected,
            other_teams=[
                team
                for team in self.get_teams()
                if not team.is_global and team.key != selected.key and team.team_id > 0
            ],
        )
        logger.info(
            f"Restored {len(self.stores.teams) - 1} teams "
            f"({len(loaded.placeholders)} awaiting reload)"
        )
        return result

    def remove_invalid_stored_players(self) -> int:
        removed = 0
        for team in self.get_teams():
            invalid = [pid for pid, data in team.players.items() if pid <= 0 or data.account_id <= 0]
            for pid in invalid:
                del team.players[pid]
            removed += len(invalid)
        if removed:
            logger.warning(f"Dropped {removed} stored players with invalid ids")
            self.stores.teams.touch()
        return removed

    def ensure_placeholder_matches(self) -> None:
        self.remove_invalid_stored_players()
        with self.stores.matches.batch():
            for team in self.get_teams():
                for match_id, meta in team.matches.items():
                    if match_id not in self.stores.matches:
                        self.stores.matches.set(match_id, placeholder_match_from_participation(meta))

    def ensure_placeholder_players(self) -> None:
        with self.stores.players.batch():
            for team in self.get_teams():
                for player_id, data in team.players.items():
                    if player_id not in self.stores.players:
                        self.stores.players.set(player_id, placeholder_player_from_stored(data))

