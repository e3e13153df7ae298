"""Network loading with request deduplication.

One LoaderService is constructed per session and owns the in-flight
registries for every entity class. Load operations translate provider
payloads into models, write them into the entity stores and resolve to
None on failure rather than raising.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from dota_scout.exceptions import ScoutError
from dota_scout.models.entries import (
    Hydrated,
    hydrated_value,
    mark_entry_error,
    mark_entry_loading,
)
from dota_scout.models.league import LeagueMatches
from dota_scout.models.match import Match
from dota_scout.models.player import Player
from dota_scout.repositories.cache_repository import (
    CacheFamily,
    CacheRepository,
    league_cache_key,
    reference_cache_key,
)
from dota_scout.services.api_client import ScoutApiClient
from dota_scout.services.inflight import InFlightRegistry
from dota_scout.services.processing import (
    process_heroes,
    process_items,
    process_league_matches,
    process_leagues,
    process_match,
    process_player,
)
from dota_scout.services.processing.league_processor import league_matches_to_payload
from dota_scout.services.processing.reference_processor import (
    heroes_to_payload,
    items_to_payload,
    leagues_to_payload,
)
from dota_scout.store.stores import EntityStores

logger = logging.getLogger(__name__)

# Malformed payloads surface as one of these while processing
PROCESSING_ERRORS = (KeyError, TypeError, ValueError)


class LoaderService:
    """Loads teams, matches, players and league match lists."""

    def __init__(
        self,
        client: ScoutApiClient,
        stores: EntityStores,
        cache: Optional[CacheRepository] = None,
    ):
        self.client = client
        self.stores = stores
        self.cache = cache

        self.match_requests: InFlightRegistry[int, Optional[Match]] = InFlightRegistry("match")
        self.player_requests: InFlightRegistry[int, Optional[Player]] = InFlightRegistry("player")
        self.team_requests: InFlightRegistry[int, dict] = InFlightRegistry("team")
        self.league_requests: InFlightRegistry[int, LeagueMatches] = InFlightRegistry("league")

    async def close(self):
        await self.client.close()

    async def _cache_get(self, key: str) -> Any:
        # DuckDB calls block, so they run off the event loop
        if self.cache is None:
            return None
        return await asyncio.to_thread(self.cache.get, key)

    async def _cache_set(self, key: str, value: Any, family: CacheFamily) -> None:
        if self.cache is not None:
            await asyncio.to_thread(self.cache.set, key, value, family)

    async def _cached_fetch(
        self,
        key: Optional[str],
        family: CacheFamily,
        fetch: Callable[[], Awaitable[Any]],
        force: bool = False,
    ) -> Any:
        if key is not None and not force:
            cached = await self._cache_get(key)
            if cached is not None:
                logger.debug(f"Cache hit for {key}")
                return cached
        payload = await fetch()
        if key is not None:
            await self._cache_set(key, payload, family)
        return payload

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    async def load_match(self, match_id: int, force: bool = False) -> Optional[Match]:
        """Load one match into the store.

        Without ``force`` a stored match that already has player data is
        returned as-is, and concurrent calls share one request.
        """
        if not force:
            existing = hydrated_value(self.stores.matches.get(match_id))
            if existing is not None and existing.has_players and not existing.error:
                return existing

        return await self.match_requests.run(
            match_id,
            lambda: self._fetch_match(match_id, force),
            dedupe=not force,
        )

    async def _fetch_match(self, match_id: int, force: bool) -> Optional[Match]:
        entry = self.stores.matches.get(match_id)
        if entry is not None:
            mark_entry_loading(entry, True)
            self.stores.matches.touch()

        try:
            raw = await self._cached_fetch(
                f"match:{match_id}",
                "match",
                lambda: self.client.get_match(match_id, force=force),
                force=force,
            )
            match = process_match(raw, self.stores.heroes.ref, self.stores.items.ref)
        except (ScoutError, *PROCESSING_ERRORS) as e:
            logger.error(f"Failed to load match {match_id}: {e}")
            entry = self.stores.matches.get(match_id)
            if entry is not None:
                mark_entry_error(entry, str(e) or "Failed to load match data")
                self.stores.matches.touch()
            return None

        previous = hydrated_value(self.stores.matches.get(match_id))
        if previous is not None:
            match.performance_key = previous.performance_key
        self.stores.matches.set(match_id, Hydrated(match))
        return match

    async def load_matches(
        self, match_ids: Iterable[int], force: bool = False
    ) -> dict[int, Optional[Match]]:
        """Load several matches concurrently; one failure never blocks the rest."""
        ids = list(dict.fromkeys(match_ids))
        results = await asyncio.gather(
            *(self.load_match(mid, force=force) for mid in ids),
            return_exceptions=True,
        )
        loaded: dict[int, Optional[Match]] = {}
        for mid, result in zip(ids, results):
            if isinstance(result, BaseException):
                logger.error(f"Match {mid} load raised: {result}")
                loaded[mid] = None
            else:
                loaded[mid] = result
        return loaded

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    async def load_player(self, player_id: int, force: bool = False) -> Optional[Player]:
        """Load one player into the store.

        A failed fetch still stores an error-flagged stub so the player
        stays visible with a retry indicator; the call resolves to None.
        """
        if player_id <= 0:
            return None
        if not force:
            existing = hydrated_value(self.stores.players.get(player_id))
            if existing is not None and not existing.error:
                return existing

        return await self.player_requests.run(
            player_id,
            lambda: self._fetch_player(player_id, force),
            dedupe=not force,
        )

    async def _fetch_player(self, player_id: int, force: bool) -> Optional[Player]:
        entry = self.stores.players.get(player_id)
        if entry is not None:
            mark_entry_loading(entry, True)
            self.stores.players.touch()

        try:
            raw = await self._cached_fetch(
                f"player:{player_id}",
                "player",
                lambda: self.client.get_player(player_id),
                force=force,
            )
            player = process_player(raw)
        except (ScoutError, *PROCESSING_ERRORS) as e:
            logger.error(f"Failed to load player {player_id}: {e}")
            entry = self.stores.players.get(player_id)
            if entry is not None:
                mark_entry_error(entry, "Failed to fetch player data")
                self.stores.players.touch()
            else:
                self.stores.players.set(
                    player_id, Hydrated(Player.failed(player_id, "Failed to fetch player data"))
                )
            return None

        self.stores.players.set(player_id, Hydrated(player))
        return player

    async def load_players(
        self, player_ids: Iterable[int], force: bool = False
    ) -> dict[int, Optional[Player]]:
        ids = [pid for pid in dict.fromkeys(player_ids) if pid > 0]
        results = await asyncio.gather(
            *(self.load_player(pid, force=force) for pid in ids),
            return_exceptions=True,
        )
        loaded: dict[int, Optional[Player]] = {}
        for pid, result in zip(ids, results):
            if isinstance(result, BaseException):
                logger.error(f"Player {pid} load raised: {result}")
                loaded[pid] = None
            else:
                loaded[pid] = result
        return loaded

    # ------------------------------------------------------------------
    # Teams and leagues
    # ------------------------------------------------------------------

    async def fetch_team(self, team_id: int, force: bool = False) -> dict:
        """Fetch team info. Raises ScoutError on failure."""
        return await self.team_requests.run(
            team_id,
            lambda: self._cached_fetch(
                f"team:{team_id}", "team", lambda: self.client.get_team(team_id), force=force
            ),
            dedupe=not force,
        )

    async def fetch_league_matches(self, league_id: int, force: bool = False) -> LeagueMatches:
        """Fetch a league's match list, served from the store unless forced.

        Raises:
            ScoutError: the network boundary failed
        """
        if not force:
            cached = self.stores.league_matches.get(league_id)
            if cached is not None:
                return cached
        # League lists are always shared, even when forced
        return await self.league_requests.run(
            league_id, lambda: self._fetch_league_matches(league_id, force)
        )

    async def _fetch_league_matches(self, league_id: int, force: bool) -> LeagueMatches:
        key = league_cache_key(league_id)
        if not force:
            cached = await self._cache_get(key)
            if cached is not None:
                processed = process_league_matches(league_id, cached)
                self.stores.league_matches.set(league_id, processed)
                return processed

        raw = await self.client.get_league_matches(league_id, force=force)
        processed = process_league_matches(league_id, raw)
        await self._cache_set(key, league_matches_to_payload(processed), "team")
        self.stores.league_matches.set(league_id, processed)
        return processed

    async def load_league_matches(
        self, league_id: int, force: bool = False
    ) -> Optional[LeagueMatches]:
        try:
            return await self.fetch_league_matches(league_id, force=force)
        except (ScoutError, *PROCESSING_ERRORS) as e:
            logger.error(f"Failed to fetch league matches for league {league_id}: {e}")
            return None

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    async def _load_reference(self, name: str, fetch, process, serialize, store) -> int:
        key = reference_cache_key(name)
        payload = await self._cache_get(key)
        try:
            if payload is None:
                payload = await fetch()
                records = process(payload)
                if records:
                    await self._cache_set(key, serialize(records), "reference")
            else:
                records = process(payload)
        except (ScoutError, *PROCESSING_ERRORS) as e:
            logger.error(f"Failed to load {name}: {e}")
            return 0

        store.replace_all(records)
        logger.info(f"Loaded {len(records)} {name}")
        return len(records)

    async def load_heroes(self) -> int:
        return await self._load_reference(
            "heroes", self.client.get_heroes, process_heroes, heroes_to_payload, self.stores.heroes
        )

    async def load_items(self) -> int:
        return await self._load_reference(
            "items", self.client.get_items, process_items, items_to_payload, self.stores.items
        )

    async def load_leagues(self) -> int:
        return await self._load_reference(
            "leagues", self.client.get_leagues, process_leagues, leagues_to_payload, self.stores.leagues
        )

    async def load_reference_data(self) -> None:
        await asyncio.gather(self.load_heroes(), self.load_items(), self.load_leagues())
