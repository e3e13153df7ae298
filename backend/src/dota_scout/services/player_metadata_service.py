"""Per-team player metadata derivation.

The team's player map is rebuilt in stages: manually added players,
players seen on the team's side of its visible matches, then any stored
player not yet covered. Each aggregate is finalized from the full Player
when one is loaded, otherwise from the match aggregate.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from dota_scout.models.entries import hydrated_value
from dota_scout.models.player import Player
from dota_scout.models.reference import Hero, HeroSummary
from dota_scout.models.team import StoredPlayerData, Team
from dota_scout.store.stores import EntityStores
from dota_scout.utils.rank import format_rank, parse_rank

logger = logging.getLogger(__name__)

TOP_HEROES_LIMIT = 5
UNKNOWN_PLAYER_NAME = "Unknown Player"


@dataclass
class PlayerAggregate:
    metadata: StoredPlayerData
    games: int = 0
    wins: int = 0
    hero_counts: dict[int, int] = field(default_factory=dict)


def hero_summary_for(hero_id: int, heroes: dict[int, Hero]) -> HeroSummary:
    hero = heroes.get(hero_id)
    return HeroSummary.from_hero(hero) if hero else HeroSummary.fallback(hero_id)


def metadata_skeleton(player_id: int, existing: Optional[StoredPlayerData] = None) -> StoredPlayerData:
    if existing is None:
        return StoredPlayerData(account_id=player_id)

    rank_tier, leaderboard_rank = existing.rank_tier, existing.leaderboard_rank
    if not rank_tier and existing.rank:
        rank_tier, leaderboard_rank = parse_rank(existing.rank)
    return replace(
        existing,
        account_id=player_id,
        top_heroes=list(existing.top_heroes),
        rank_tier=rank_tier,
        leaderboard_rank=leaderboard_rank,
    )


def hydrate_from_player(metadata: StoredPlayerData, player: Player) -> None:
    avatar = player.profile.avatarfull or player.profile.avatar
    if avatar:
        metadata.avatar = avatar

    rank = format_rank(player.profile.rank_tier, player.profile.leaderboard_rank)
    if rank:
        metadata.rank = rank
        metadata.rank_tier = player.profile.rank_tier
        metadata.leaderboard_rank = player.profile.leaderboard_rank

    name = player.profile.personaname or player.profile.name
    if name:
        metadata.name = name


class PlayerMetadataService:
    """Builds StoredPlayerData snapshots for a team."""

    def __init__(self, stores: EntityStores):
        self.stores = stores

    def _player(self, player_id: int) -> Optional[Player]:
        player = hydrated_value(self.stores.players.get(player_id))
        # an error stub carries no real profile data
        if player is None or player.error:
            return None
        return player

    def _ensure(
        self,
        aggregates: dict[int, PlayerAggregate],
        player_id: int,
        existing: Optional[StoredPlayerData],
    ) -> PlayerAggregate:
        aggregate = aggregates.get(player_id)
        if aggregate is None:
            aggregate = PlayerAggregate(metadata=metadata_skeleton(player_id, existing))
            aggregates[player_id] = aggregate
        player = self._player(player_id)
        if player is not None:
            hydrate_from_player(aggregate.metadata, player)
        return aggregate

    def build(self, team: Team) -> dict[int, StoredPlayerData]:
        aggregates: dict[int, PlayerAggregate] = {}

        for player_id, stored in team.players.items():
            if player_id > 0 and stored.account_id > 0 and stored.is_manual:
                self._ensure(aggregates, player_id, stored)

        self._add_match_players(team, aggregates)

        for player_id, stored in team.players.items():
            if player_id <= 0 or stored.account_id <= 0 or player_id in aggregates:
                continue
            aggregate = self._ensure(aggregates, player_id, stored)
            aggregate.metadata.games = stored.games
            aggregate.metadata.win_rate = stored.win_rate
            aggregate.metadata.top_heroes = list(stored.top_heroes)

        heroes = self.stores.heroes.ref
        for aggregate in aggregates.values():
            self._finalize(aggregate, heroes)

        return {player_id: aggregate.metadata for player_id, aggregate in aggregates.items()}

    def _add_match_players(self, team: Team, aggregates: dict[int, PlayerAggregate]) -> None:
        for match_id, meta in team.matches.items():
            if meta.is_hidden or not meta.side:
                continue
            match = hydrated_value(self.stores.matches.get(match_id))
            if match is None:
                continue

            won = meta.result == "won"
            for match_player in match.players.side(meta.side):
                player_id = match_player.account_id
                if not player_id or player_id <= 0:
                    continue
                aggregate = self._ensure(aggregates, player_id, team.players.get(player_id))
                name = aggregate.metadata.name
                if match_player.player_name and name in (UNKNOWN_PLAYER_NAME, f"Player {player_id}"):
                    aggregate.metadata.name = match_player.player_name

                aggregate.games += 1
                if won:
                    aggregate.wins += 1
                hero_id = match_player.hero.id
                aggregate.hero_counts[hero_id] = aggregate.hero_counts.get(hero_id, 0) + 1

    def _finalize(self, aggregate: PlayerAggregate, heroes: dict[int, Hero]) -> None:
        metadata = aggregate.metadata
        player = self._player(metadata.account_id)
        if player is not None:
            metadata.games = player.overall_stats.total_games
            metadata.win_rate = round(player.overall_stats.win_rate, 2)
            top = sorted(player.hero_stats, key=lambda h: h.games, reverse=True)[:TOP_HEROES_LIMIT]
            metadata.top_heroes = [hero_summary_for(h.hero_id, heroes) for h in top]
            hydrate_from_player(metadata, player)
            return

        if aggregate.games > 0:
            metadata.games = aggregate.games
            metadata.win_rate = round(aggregate.wins / aggregate.games * 100, 2)
            if aggregate.hero_counts:
                top_ids = sorted(aggregate.hero_counts, key=lambda h: aggregate.hero_counts[h], reverse=True)
                metadata.top_heroes = [
                    hero_summary_for(hero_id, heroes) for hero_id in top_ids[:TOP_HEROES_LIMIT]
                ]

    def update_team(self, team: Team) -> None:
        team.players = self.build(team)
        logger.debug(f"Team {team.key}: rebuilt metadata for {len(team.players)} players")
