"""Provider payload processing."""

from dota_scout.services.processing.league_processor import process_league_matches
from dota_scout.services.processing.match_processor import process_match
from dota_scout.services.processing.player_processor import process_player
from dota_scout.services.processing.reference_processor import (
    process_heroes,
    process_items,
    process_leagues,
)

__all__ = [
    "process_league_matches",
    "process_match",
    "process_player",
    "process_heroes",
    "process_items",
    "process_leagues",
]
