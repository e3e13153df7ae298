"""Translate raw provider match payloads into Match models."""

import logging
from datetime import datetime, timezone
from typing import Optional

from dota_scout.models.match import (
    AdvantageSeries,
    DraftPick,
    DraftTimelineEntry,
    Match,
    MatchDraft,
    MatchPlayer,
    MatchPlayers,
    MatchStatistics,
    PickOrder,
    PlayerHeroStats,
    PlayerStats,
    Side,
    TeamRef,
)
from dota_scout.models.reference import Hero, Item
from dota_scout.services.processing.events import generate_events, process_game_events

logger = logging.getLogger(__name__)

ADVANTAGE_INTERVAL_SECONDS = 60
ITEM_SLOTS = ("item_0", "item_1", "item_2", "item_3", "item_4", "item_5")

# OpenDota lane_role values
LANE_ROLES = {1: "Safe Lane", 2: "Mid", 3: "Off Lane", 4: "Jungle"}

SIDE_TEAM_NUMBER = {"radiant": 0, "dire": 1}


def is_radiant_player(player: dict) -> bool:
    flag = player.get("isRadiant")
    if isinstance(flag, bool):
        return flag
    return (player.get("player_slot") or 0) < 128


def _side_players(players: list[dict], side: Side) -> list[dict]:
    want_radiant = side == "radiant"
    return [p for p in players if is_radiant_player(p) == want_radiant]


def _detect_role(player: dict) -> Optional[str]:
    if player.get("is_roaming"):
        return "Roaming"
    return LANE_ROLES.get(player.get("lane_role"))


def _process_picks(
    picks_bans: list[dict], side: Side, players: list[dict], heroes: dict[int, Hero]
) -> list[DraftPick]:
    team_number = SIDE_TEAM_NUMBER[side]
    side_players = _side_players(players, side)
    raw_picks = sorted(
        (pb for pb in picks_bans if pb.get("is_pick") and pb.get("team") == team_number),
        key=lambda pb: pb.get("order", 0),
    )

    picks = []
    for index, pb in enumerate(raw_picks):
        hero = heroes.get(pb.get("hero_id"))
        if hero is None:
            logger.warning(f"Hero {pb.get('hero_id')} not found in heroes table")
            continue
        player = next((p for p in side_players if p.get("hero_id") == hero.id), None)
        picks.append(
            DraftPick(
                hero=hero,
                order=index + 1,
                account_id=(player or {}).get("account_id") or 0,
                role=_detect_role(player) if player else None,
            )
        )
    return picks


def _process_bans(picks_bans: list[dict], side: Side, heroes: dict[int, Hero]) -> list[Hero]:
    team_number = SIDE_TEAM_NUMBER[side]
    bans = []
    for pb in picks_bans:
        if pb.get("is_pick") or pb.get("team") != team_number:
            continue
        hero = heroes.get(pb.get("hero_id"))
        if hero is None:
            logger.warning(f"Hero {pb.get('hero_id')} not found in heroes table")
            continue
        bans.append(hero)
    return bans


def _advantage(values: Optional[list], other: Optional[list]) -> AdvantageSeries:
    if not values or not other:
        return AdvantageSeries()
    return AdvantageSeries(
        times=[i * ADVANTAGE_INTERVAL_SECONDS for i in range(len(values))],
        radiant=list(values),
        dire=[-v for v in values],
    )


def _convert_player(player: dict, heroes: dict[int, Hero], items: dict[int, Item]) -> Optional[MatchPlayer]:
    hero = heroes.get(player.get("hero_id"))
    if hero is None:
        logger.warning(f"Hero {player.get('hero_id')} not found for player {player.get('account_id')}")
        return None

    account_id = player.get("account_id") or 0
    item_ids = [player.get(slot) or 0 for slot in ITEM_SLOTS]
    return MatchPlayer(
        account_id=account_id,
        player_name=player.get("personaname") or player.get("name") or f"Player {account_id}",
        hero=hero,
        stats=PlayerStats(
            kills=player.get("kills") or 0,
            deaths=player.get("deaths") or 0,
            assists=player.get("assists") or 0,
            last_hits=player.get("last_hits") or 0,
            denies=player.get("denies") or 0,
            gpm=player.get("gold_per_min") or 0,
            xpm=player.get("xp_per_min") or 0,
            net_worth=player.get("total_gold") or 0,
            level=player.get("level") or 0,
        ),
        items=[items[i] for i in item_ids if i > 0 and i in items],
        hero_stats=PlayerHeroStats(
            damage_dealt=player.get("hero_damage") or 0,
            healing_done=player.get("hero_healing") or 0,
            tower_damage=player.get("tower_damage") or 0,
        ),
        role=_detect_role(player),
    )


def calculate_pick_order(picks_bans: list[dict]) -> Optional[PickOrder]:
    """The side owning the first pick entry picked first."""
    first_pick = next((pb for pb in picks_bans if pb.get("is_pick")), None)
    if first_pick is None:
        return None
    radiant_first = first_pick.get("team") == 0
    return PickOrder(
        radiant="first" if radiant_first else "second",
        dire="second" if radiant_first else "first",
    )


def _draft_timeline(picks_bans: list[dict], heroes: dict[int, Hero]) -> list[DraftTimelineEntry]:
    timeline = []
    for pb in picks_bans:
        hero = heroes.get(pb.get("hero_id"))
        if hero is None:
            continue
        timeline.append(
            DraftTimelineEntry(
                phase="pick" if pb.get("is_pick") else "ban",
                team="radiant" if pb.get("team") == 0 else "dire",
                hero=hero,
                time=pb.get("order", 0) + 1,
            )
        )
    return timeline


def start_time_to_iso(start_time: Optional[int]) -> str:
    return datetime.fromtimestamp(start_time or 0, tz=timezone.utc).isoformat()


def process_match(raw: dict, heroes: dict[int, Hero], items: dict[int, Item]) -> Match:
    """Build a Match from a raw provider payload.

    Args:
        raw: Match JSON as served by GET /matches/{id}
        heroes: Hero table used to resolve hero ids
        items: Item table used to resolve item ids

    Returns:
        The processed Match, with events and draft timeline populated
    """
    players = raw.get("players") or []
    picks_bans = raw.get("picks_bans") or []

    match = Match(
        id=raw["match_id"],
        date=start_time_to_iso(raw.get("start_time")),
        duration=raw.get("duration") or 0,
        radiant=TeamRef(id=raw.get("radiant_team_id"), name=raw.get("radiant_name")),
        dire=TeamRef(id=raw.get("dire_team_id"), name=raw.get("dire_name")),
        draft=MatchDraft(
            radiant_picks=_process_picks(picks_bans, "radiant", players, heroes),
            dire_picks=_process_picks(picks_bans, "dire", players, heroes),
            radiant_bans=_process_bans(picks_bans, "radiant", heroes),
            dire_bans=_process_bans(picks_bans, "dire", heroes),
        ),
        players=MatchPlayers(
            radiant=[
                mp for p in _side_players(players, "radiant")
                if (mp := _convert_player(p, heroes, items)) is not None
            ],
            dire=[
                mp for p in _side_players(players, "dire")
                if (mp := _convert_player(p, heroes, items)) is not None
            ],
        ),
        statistics=MatchStatistics(
            radiant_score=raw.get("radiant_score") or 0,
            dire_score=raw.get("dire_score") or 0,
            gold_advantage=_advantage(raw.get("radiant_gold_adv"), raw.get("radiant_xp_adv")),
            experience_advantage=_advantage(raw.get("radiant_xp_adv"), raw.get("radiant_gold_adv")),
        ),
        events=generate_events(raw, heroes),
        result="radiant" if raw.get("radiant_win") else "dire",
        pick_order=calculate_pick_order(picks_bans),
        processed_draft=_draft_timeline(picks_bans, heroes),
    )
    match.processed_events = process_game_events(match.events)
    return match
