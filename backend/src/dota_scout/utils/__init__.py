"""Utility modules for dota_scout."""

from dota_scout.utils.dates import EPOCH_ISO, get_date_cutoffs, in_date_range, parse_iso
from dota_scout.utils.rank import format_rank, parse_rank

__all__ = [
    "EPOCH_ISO",
    "get_date_cutoffs",
    "in_date_range",
    "parse_iso",
    "format_rank",
    "parse_rank",
]
