"""Translate raw provider player payloads into Player models."""

from dota_scout.models.player import OverallStats, Player, PlayerHeroStat, PlayerProfile


def calculate_overall_stats(wl: dict | None) -> OverallStats:
    wins = (wl or {}).get("win") or 0
    losses = (wl or {}).get("lose") or 0
    total = wins + losses
    return OverallStats(
        wins=wins,
        losses=losses,
        total_games=total,
        win_rate=(wins / total) * 100 if total > 0 else 0.0,
    )


def process_player(raw: dict) -> Player:
    """Build a Player from GET /players/{id}.

    The payload nests the provider profile as ``profile.profile`` with the
    rank fields one level up.
    """
    outer = raw.get("profile") or {}
    profile = outer.get("profile") or {}
    account_id = profile["account_id"]
    fallback_name = f"Player {account_id}"

    return Player(
        account_id=account_id,
        profile=PlayerProfile(
            name=profile.get("name") or fallback_name,
            personaname=profile.get("personaname") or fallback_name,
            avatar=profile.get("avatar") or "",
            avatarfull=profile.get("avatarfull") or "",
            profileurl=profile.get("profileurl") or "",
            rank_tier=outer.get("rank_tier") or 0,
            leaderboard_rank=outer.get("leaderboard_rank"),
        ),
        hero_stats=[
            PlayerHeroStat(
                hero_id=int(h["hero_id"]),
                games=h.get("games") or 0,
                wins=h.get("win") or 0,
                last_played=h.get("last_played") or 0,
            )
            for h in raw.get("heroes") or []
            if h.get("hero_id") is not None
        ],
        overall_stats=calculate_overall_stats(raw.get("wl")),
        recent_match_ids=[m["match_id"] for m in raw.get("recentMatches") or [] if "match_id" in m],
    )
