"""Reference table processing (heroes, items, leagues)."""

from typing import Any, Iterable

from dota_scout.models.reference import Hero, Item, League

STEAM_CDN_URL = "https://cdn.cloudflare.steamstatic.com"


def _image_url(path: str | None) -> str:
    if not path:
        return ""
    if path.startswith("/"):
        return f"{STEAM_CDN_URL}{path}"
    return path


def _records(payload: Any) -> Iterable[dict]:
    # The provider serves either a list or a dict keyed by id/name
    if isinstance(payload, dict):
        return [v for v in payload.values() if isinstance(v, dict)]
    if isinstance(payload, list):
        return [v for v in payload if isinstance(v, dict)]
    return []


def process_heroes(payload: Any) -> dict[int, Hero]:
    heroes: dict[int, Hero] = {}
    for raw in _records(payload):
        hero_id = raw.get("id")
        if not isinstance(hero_id, int):
            continue
        name = raw.get("name") or f"npc_dota_hero_{hero_id}"
        heroes[hero_id] = Hero(
            id=hero_id,
            name=name,
            localized_name=raw.get("localized_name") or raw.get("localizedName") or f"Hero {hero_id}",
            image_url=_image_url(raw.get("img") or raw.get("imageUrl")),
            primary_attribute=raw.get("primary_attr") or raw.get("primaryAttribute") or "",
            attack_type=raw.get("attack_type") or raw.get("attackType") or "",
            roles=list(raw.get("roles") or []),
        )
    return heroes


def process_items(payload: Any) -> dict[int, Item]:
    items: dict[int, Item] = {}
    for raw in _records(payload):
        item_id = raw.get("id")
        if not isinstance(item_id, int):
            continue
        items[item_id] = Item(
            id=item_id,
            name=raw.get("dname") or raw.get("name") or f"Item {item_id}",
            image_url=_image_url(raw.get("img") or raw.get("imageUrl")),
            cost=int(raw.get("cost") or 0),
        )
    return items


def process_leagues(payload: Any) -> dict[int, League]:
    leagues: dict[int, League] = {}
    for raw in _records(payload):
        league_id = raw.get("leagueid", raw.get("id"))
        if not isinstance(league_id, int):
            continue
        leagues[league_id] = League(id=league_id, name=raw.get("name") or f"League {league_id}")
    return leagues


def heroes_to_payload(heroes: dict[int, Hero]) -> list[dict]:
    """Serialize heroes in the provider shape so the cache can be re-read."""
    return [
        {
            "id": h.id,
            "name": h.name,
            "localized_name": h.localized_name,
            "img": h.image_url,
            "primary_attr": h.primary_attribute,
            "attack_type": h.attack_type,
            "roles": h.roles,
        }
        for h in heroes.values()
    ]


def items_to_payload(items: dict[int, Item]) -> list[dict]:
    return [
        {"id": i.id, "dname": i.name, "img": i.image_url, "cost": i.cost}
        for i in items.values()
    ]


def leagues_to_payload(leagues: dict[int, League]) -> list[dict]:
    return [{"leagueid": league.id, "name": league.name} for league in leagues.values()]
