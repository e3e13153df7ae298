"""Tagged store entries: a hydrated entity or its placeholder stand-in.

Call sites branch on the wrapper type instead of probing optional fields,
and the conversion helpers below are the only places that build one
variant from the other.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

from dota_scout.models.match import Match, PlaceholderMatch
from dota_scout.models.player import PlaceholderPlayer, Player
from dota_scout.models.team import StoredPlayerData, TeamMatchParticipation

T = TypeVar("T")


@dataclass(frozen=True)
class Hydrated(Generic[T]):
    """A fully loaded entity."""

    value: T


@dataclass(frozen=True)
class Placeholder(Generic[T]):
    """A minimal entity standing in until the real one loads."""

    value: T


MatchEntry = Union[Hydrated[Match], Placeholder[PlaceholderMatch]]
PlayerEntry = Union[Hydrated[Player], Placeholder[PlaceholderPlayer]]


def hydrated_value(entry: Optional[Hydrated | Placeholder]):
    """Return the wrapped entity if the entry is hydrated, else None."""
    if isinstance(entry, Hydrated):
        return entry.value
    return None


def placeholder_match_from_participation(
    meta: TeamMatchParticipation,
) -> Placeholder[PlaceholderMatch]:
    return Placeholder(
        PlaceholderMatch(
            id=meta.match_id,
            date=meta.date,
            duration=meta.duration,
            side=meta.side,
            opponent_name=meta.opponent_name,
            heroes=list(meta.heroes),
        )
    )


def placeholder_player_from_stored(data: StoredPlayerData) -> Placeholder[PlaceholderPlayer]:
    return Placeholder(
        PlaceholderPlayer(
            account_id=data.account_id,
            name=data.name,
            rank_tier=data.rank_tier,
            leaderboard_rank=data.leaderboard_rank,
            avatar=data.avatar,
            games=data.games,
            wins=round(data.win_rate / 100 * data.games),
            win_rate=data.win_rate,
        )
    )


def mark_entry_loading(entry: MatchEntry | PlayerEntry, loading: bool) -> None:
    entry.value.is_loading = loading
    if loading:
        entry.value.error = None


def mark_entry_error(entry: MatchEntry | PlayerEntry, error: str) -> None:
    """Flag a failed load without discarding the data already held."""
    entry.value.is_loading = False
    entry.value.error = error
