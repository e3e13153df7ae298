"""Payload builders and a fake match-data API shared by the test modules."""

import asyncio
from collections import Counter
from pathlib import Path
from typing import Iterable, Optional

import httpx

from dota_scout.app_data import AppData
from dota_scout.models.reference import Hero
from dota_scout.repositories.storage_repository import StorageRepository
from dota_scout.services.api_client import ScoutApiClient

BASE_URL = "http://test/api"

HERO_NAMES = {
    1: ("antimage", "Anti-Mage"),
    2: ("axe", "Axe"),
    3: ("bane", "Bane"),
    4: ("bloodseeker", "Bloodseeker"),
    5: ("crystal_maiden", "Crystal Maiden"),
    6: ("drow_ranger", "Drow Ranger"),
    7: ("earthshaker", "Earthshaker"),
    8: ("juggernaut", "Juggernaut"),
    9: ("mirana", "Mirana"),
    10: ("morphling", "Morphling"),
    11: ("nevermore", "Shadow Fiend"),
    12: ("phantom_lancer", "Phantom Lancer"),
}

HEROES = {
    hero_id: Hero(id=hero_id, name=f"npc_dota_hero_{name}", localized_name=localized)
    for hero_id, (name, localized) in HERO_NAMES.items()
}

RAW_HEROES = [
    {"id": hero_id, "name": f"npc_dota_hero_{name}", "localized_name": localized}
    for hero_id, (name, localized) in HERO_NAMES.items()
]


def raw_match(
    match_id: int,
    radiant_heroes: Iterable[int] = (1, 2, 3, 4, 5),
    dire_heroes: Iterable[int] = (6, 7, 8, 9, 10),
    radiant_win: bool = True,
    start_time: int = 1_700_000_000,
    radiant_team_id: Optional[int] = None,
    dire_team_id: Optional[int] = None,
    radiant_name: str = "Radiant Squad",
    dire_name: str = "Dire Squad",
    radiant_accounts: Iterable[int] = (101, 102, 103, 104, 105),
    dire_accounts: Iterable[int] = (201, 202, 203, 204, 205),
    radiant_first_pick: bool = True,
) -> dict:
    """A provider match payload with five players and five picks per side."""
    radiant_heroes, dire_heroes = list(radiant_heroes), list(dire_heroes)
    players = []
    for slot, (hero_id, account_id) in enumerate(zip(radiant_heroes, radiant_accounts)):
        players.append(_raw_match_player(slot, hero_id, account_id))
    for index, (hero_id, account_id) in enumerate(zip(dire_heroes, dire_accounts)):
        players.append(_raw_match_player(128 + index, hero_id, account_id))

    first, second = (0, 1) if radiant_first_pick else (1, 0)
    picks_bans = [
        {"is_pick": False, "hero_id": 11, "team": 0, "order": 0},
        {"is_pick": False, "hero_id": 12, "team": 1, "order": 1},
    ]
    order = 2
    ordered_heroes = {0: radiant_heroes, 1: dire_heroes}
    for index in range(5):
        for team in (first, second):
            picks_bans.append(
                {"is_pick": True, "hero_id": ordered_heroes[team][index], "team": team, "order": order}
            )
            order += 1

    return {
        "match_id": match_id,
        "start_time": start_time,
        "duration": 2400,
        "radiant_win": radiant_win,
        "radiant_team_id": radiant_team_id,
        "dire_team_id": dire_team_id,
        "radiant_name": radiant_name,
        "dire_name": dire_name,
        "radiant_score": 30,
        "dire_score": 20,
        "radiant_gold_adv": [0, 500, 1200],
        "radiant_xp_adv": [0, 300, 900],
        "players": players,
        "picks_bans": picks_bans,
        "objectives": [
            {"type": "CHAT_MESSAGE_FIRSTBLOOD", "time": 95, "player_slot": 0},
            {"type": "CHAT_MESSAGE_ROSHAN_KILL", "time": 1300, "player_slot": 128},
        ],
    }


def _raw_match_player(slot: int, hero_id: int, account_id: int) -> dict:
    return {
        "account_id": account_id,
        "player_slot": slot,
        "hero_id": hero_id,
        "personaname": f"persona{account_id}",
        "kills": 6,
        "deaths": 3,
        "assists": 9,
        "last_hits": 200,
        "denies": 10,
        "gold_per_min": 500,
        "xp_per_min": 600,
        "total_gold": 20000,
        "level": 25,
        "lane_role": 1 if slot in (0, 128) else 2,
        "item_0": 0,
    }


def raw_player(
    account_id: int,
    name: str = "",
    rank_tier: int = 55,
    leaderboard_rank: Optional[int] = None,
    wins: int = 60,
    losses: int = 40,
    heroes: Iterable[tuple[int, int, int]] = ((1, 30, 20), (2, 20, 10)),
    recent_match_ids: Iterable[int] = (),
) -> dict:
    return {
        "profile": {
            "profile": {
                "account_id": account_id,
                "personaname": name or f"Pro{account_id}",
                "avatarfull": f"https://avatars.example/{account_id}.jpg",
            },
            "rank_tier": rank_tier,
            "leaderboard_rank": leaderboard_rank,
        },
        "wl": {"win": wins, "lose": losses},
        "heroes": [
            {"hero_id": str(hero_id), "games": games, "win": won}
            for hero_id, games, won in heroes
        ],
        "recentMatches": [{"match_id": mid} for mid in recent_match_ids],
    }


def raw_league(entries: Iterable[tuple[int, int, int, list[int], list[int]]]) -> dict:
    """Entries are (match_id, radiant_team_id, dire_team_id, radiant_ids, dire_ids)."""
    matches = []
    for match_id, radiant_team_id, dire_team_id, radiant_ids, dire_ids in entries:
        players = [{"account_id": pid, "team_number": 0} for pid in radiant_ids]
        players += [{"account_id": pid, "team_number": 1} for pid in dire_ids]
        matches.append(
            {
                "match_id": match_id,
                "radiant_team_id": radiant_team_id,
                "dire_team_id": dire_team_id,
                "players": players,
            }
        )
    return {"result": {"matches": matches}}


class FakeMatchApi:
    """In-memory upstream served through ``httpx.MockTransport``.

    Paths listed in ``failing`` answer 500 and paths in ``not_json`` answer
    an HTML page. Every request is counted by path so tests can assert on
    network round-trips.
    """

    def __init__(self):
        self.routes: dict[str, object] = {
            "/heroes": RAW_HEROES,
            "/items": [],
            "/leagues": [],
        }
        self.failing: set[str] = set()
        self.not_json: set[str] = set()
        self.calls: Counter[str] = Counter()
        self.forced: Counter[str] = Counter()

    def add_match(self, payload: dict) -> dict:
        self.routes[f"/matches/{payload['match_id']}"] = payload
        return payload

    def add_player(self, payload: dict) -> dict:
        self.routes[f"/players/{payload['profile']['profile']['account_id']}"] = payload
        return payload

    def add_team(self, team_id: int, name: str) -> None:
        self.routes[f"/teams/{team_id}"] = {"team_id": team_id, "name": name}

    def add_league(self, league_id: int, name: str, payload: dict) -> None:
        self.routes[f"/leagues/{league_id}"] = payload
        self.routes["/leagues"] = [
            *[entry for entry in self.routes["/leagues"] if entry["leagueid"] != league_id],
            {"leagueid": league_id, "name": name},
        ]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        # one scheduling point so concurrent callers overlap
        await asyncio.sleep(0)
        path = request.url.path.removeprefix("/api")
        self.calls[path] += 1
        if request.url.params.get("force") == "true":
            self.forced[path] += 1

        if path in self.failing:
            return httpx.Response(500, json={"error": "upstream failure"})
        if path in self.not_json:
            return httpx.Response(200, text="<html>maintenance</html>")
        if path not in self.routes:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=self.routes[path])

    def client(self) -> ScoutApiClient:
        return ScoutApiClient(BASE_URL, transport=httpx.MockTransport(self.handler))


def make_app_data(tmp_path: Path, api: FakeMatchApi) -> AppData:
    """A session over a fresh storage file with the hero table preloaded."""
    app_data = AppData(api.client(), StorageRepository(tmp_path / "storage.duckdb"))
    app_data.stores.heroes.replace_all(HEROES)
    return app_data
