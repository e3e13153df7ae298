"""Reference data models shared by matches and players."""

from dataclasses import dataclass, field


@dataclass
class Hero:
    """A playable hero from the reference table."""

    id: int
    name: str  # internal name, e.g. "npc_dota_hero_axe"
    localized_name: str
    image_url: str = ""
    primary_attribute: str = ""
    attack_type: str = ""
    roles: list[str] = field(default_factory=list)


@dataclass
class Item:
    """An item from the reference table."""

    id: int
    name: str
    image_url: str = ""
    cost: int = 0


@dataclass
class League:
    """A league from the reference table."""

    id: int
    name: str


@dataclass
class HeroSummary:
    """Minimal hero reference cached inside per-team metadata."""

    id: int
    name: str
    localized_name: str
    image_url: str = ""

    @classmethod
    def from_hero(cls, hero: Hero) -> "HeroSummary":
        return cls(
            id=hero.id,
            name=hero.name,
            localized_name=hero.localized_name,
            image_url=hero.image_url,
        )

    @classmethod
    def fallback(cls, hero_id: int) -> "HeroSummary":
        """Summary for a hero id missing from the reference table."""
        return cls(
            id=hero_id,
            name=f"npc_dota_hero_{hero_id}",
            localized_name=f"Hero {hero_id}",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "localizedName": self.localized_name,
            "imageUrl": self.image_url,
        }
