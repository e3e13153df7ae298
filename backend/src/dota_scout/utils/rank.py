"""Rank tier display helpers."""

import re
from typing import Optional

MEDAL_TIERS = ["Herald", "Guardian", "Crusader", "Archon", "Legend", "Ancient", "Divine"]
IMMORTAL_TIER = 80
UNKNOWN_RANK = "Unknown"

_TIER_BASES = {medal.lower(): (i + 1) * 10 for i, medal in enumerate(MEDAL_TIERS)}
_TIER_BASES["immortal"] = IMMORTAL_TIER


def format_rank(rank_tier: Optional[int], leaderboard_rank: Optional[int] = None) -> str:
    """Display text for a rank tier, e.g. 55 -> "Legend 5", 80 + #12 -> "Immortal #12".

    Returns an empty string for an unranked (0 or missing) tier.
    """
    if not rank_tier or rank_tier <= 0:
        return ""
    if rank_tier >= IMMORTAL_TIER:
        if leaderboard_rank and leaderboard_rank > 0:
            return f"Immortal #{leaderboard_rank}"
        return "Immortal"

    index = rank_tier // 10 - 1
    if not 0 <= index < len(MEDAL_TIERS):
        return ""
    stars = rank_tier % 10
    medal = MEDAL_TIERS[index]
    return f"{medal} {stars}" if stars > 0 else medal


def parse_rank(rank: str) -> tuple[int, Optional[int]]:
    """Recover (rank_tier, leaderboard_rank) from a display string."""
    normalized = (rank or "").lower().strip()
    medal = next((name for name in _TIER_BASES if name in normalized), None)
    if medal is None:
        return 0, None

    base = _TIER_BASES[medal]
    if base == IMMORTAL_TIER:
        leaderboard = re.search(r"#(\d+)", normalized)
        return IMMORTAL_TIER, int(leaderboard.group(1)) if leaderboard else None

    stars = re.search(r"\b(\d+)\b", normalized)
    if stars and 1 <= int(stars.group(1)) <= 5:
        return base + int(stars.group(1)), None
    return base, None
