"""Objective-log event extraction for processed matches."""

import logging
from typing import Optional

from dota_scout.models.match import GameEvent, MatchEvent, Side
from dota_scout.models.reference import Hero

logger = logging.getLogger(__name__)

FIRST_BLOOD = "CHAT_MESSAGE_FIRSTBLOOD"
ROSHAN_KILL = "CHAT_MESSAGE_ROSHAN_KILL"
AEGIS = "CHAT_MESSAGE_AEGIS"
BUILDING_KILL = "building_kill"
COURIER_LOST = "CHAT_MESSAGE_COURIER_LOST"
TEAM_FIGHT = "team_fight"

UNKNOWN_PLAYER = "unknown player"
HERO_NAME_PREFIX = "npc_dota_hero_"


def side_from_slot(player_slot: Optional[int]) -> Side:
    return "radiant" if player_slot is not None and player_slot < 128 else "dire"


def _player_at_slot(players: list[dict], slot: int) -> Optional[dict]:
    return next((p for p in players if p.get("player_slot") == slot), None)


def _first_blood(objective: dict, players: list[dict], heroes: dict[int, Hero]) -> MatchEvent:
    slot = objective.get("player_slot")
    killer_name = UNKNOWN_PLAYER
    victim_name = UNKNOWN_PLAYER
    killer_hero = None
    victim_hero = None

    killer = _player_at_slot(players, slot) if slot is not None else None
    if killer:
        killer_hero = heroes.get(killer.get("hero_id"))
        killer_name = killer_hero.localized_name if killer_hero else "unknown hero"
        for kill in killer.get("kills_log") or []:
            if kill.get("time") == objective.get("time") and kill.get("key"):
                hero_name = kill["key"].replace(HERO_NAME_PREFIX, "")
                victim_hero = next(
                    (h for h in heroes.values() if h.name.replace(HERO_NAME_PREFIX, "") == hero_name),
                    None,
                )
                victim_name = victim_hero.localized_name if victim_hero else hero_name
                break

    return MatchEvent(
        timestamp=objective.get("time", 0),
        type=FIRST_BLOOD,
        side=side_from_slot(slot),
        details={
            "killer": killer_name,
            "victim": victim_name,
            "killer_hero_id": killer_hero.id if killer_hero else None,
            "victim_hero_id": victim_hero.id if victim_hero else None,
        },
    )


def _aegis(objective: dict, players: list[dict]) -> MatchEvent:
    slot = objective.get("player_slot")
    holder = UNKNOWN_PLAYER
    if slot is not None:
        player = _player_at_slot(players, slot)
        if player:
            holder = player.get("personaname") or f"Player {player.get('account_id') or 'Unknown'}"
    return MatchEvent(
        timestamp=objective.get("time", 0),
        type=AEGIS,
        side=side_from_slot(slot),
        details={"aegis_holder": holder},
    )


def generate_events(raw: dict, heroes: dict[int, Hero]) -> list[MatchEvent]:
    """Build MatchEvents from the provider's ``objectives`` log."""
    players = raw.get("players") or []
    events: list[MatchEvent] = []

    for objective in raw.get("objectives") or []:
        kind = objective.get("type")
        if kind == FIRST_BLOOD:
            events.append(_first_blood(objective, players, heroes))
        elif kind == ROSHAN_KILL:
            events.append(
                MatchEvent(
                    timestamp=objective.get("time", 0),
                    type=ROSHAN_KILL,
                    side=side_from_slot(objective.get("player_slot")),
                )
            )
        elif kind == AEGIS:
            events.append(_aegis(objective, players))
        elif kind == BUILDING_KILL:
            if not objective.get("unit"):
                continue
            events.append(
                MatchEvent(
                    timestamp=objective.get("time", 0),
                    type=BUILDING_KILL,
                    side=side_from_slot(objective.get("player_slot")),
                    details={"building_type": objective["unit"]},
                )
            )
        else:
            # courier kills and unrecognized objectives
            logger.debug(f"Skipping objective type {kind}")

    return events


def describe_event(event: MatchEvent) -> str:
    team_name = "Radiant" if event.side == "radiant" else "Dire"
    details = event.details

    if event.type == ROSHAN_KILL:
        return f"{team_name} killed Roshan"
    if event.type == AEGIS:
        return f"Aegis picked up by {details.get('aegis_holder') or UNKNOWN_PLAYER}"
    if event.type == BUILDING_KILL:
        return f"{team_name} destroyed {details.get('building_type') or 'building'}"
    if event.type == FIRST_BLOOD:
        killer = details.get("killer") or UNKNOWN_PLAYER
        victim = details.get("victim") or UNKNOWN_PLAYER
        return f"First Blood: {killer} killed {victim}"
    if event.type == TEAM_FIGHT:
        return "Team Fight"
    return f"Event at {event.timestamp}s"


def process_game_events(events: list[MatchEvent]) -> list[GameEvent]:
    return [
        GameEvent(
            type=event.type,
            time=event.timestamp,
            description=describe_event(event),
            team=event.side,
        )
        for event in events
    ]
