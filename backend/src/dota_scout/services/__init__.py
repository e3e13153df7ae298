"""Loading, reconciliation, persistence and statistics services."""

from dota_scout.services.api_client import ScoutApiClient, get_api_client
from dota_scout.services.hero_performance_service import (
    HeroPerformanceService,
    compute_hero_performance,
)
from dota_scout.services.inflight import InFlightRegistry
from dota_scout.services.loader_service import LoaderService
from dota_scout.services.participation_service import ParticipationService
from dota_scout.services.persistence_service import PersistenceService
from dota_scout.services.player_metadata_service import PlayerMetadataService
from dota_scout.services.statistics_service import StatisticsService

__all__ = [
    "ScoutApiClient",
    "get_api_client",
    "HeroPerformanceService",
    "compute_hero_performance",
    "InFlightRegistry",
    "LoaderService",
    "ParticipationService",
    "PersistenceService",
    "PlayerMetadataService",
    "StatisticsService",
]
