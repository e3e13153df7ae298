"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dota_scout.api.routes.matches import router as matches_router
from dota_scout.api.routes.players import router as players_router
from dota_scout.api.routes.players import stats_router as player_stats_router
from dota_scout.api.routes.teams import router as teams_router
from dota_scout.app_data import AppData
from dota_scout.config import settings
from dota_scout.repositories.cache_repository import CacheRepository
from dota_scout.repositories.storage_repository import StorageRepository
from dota_scout.services.api_client import get_api_client

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Storage path - absolute, or relative to the repo root
def get_storage_path() -> Path:
    """Get the storage database path from settings."""
    storage_path = Path(settings.storage_path)
    if storage_path.is_absolute():
        return storage_path
    repo_root = Path(__file__).parent.parent.parent.parent
    return repo_root / settings.storage_path


def create_app_data() -> AppData:
    """Build the session from settings."""
    storage_path = get_storage_path()
    cache = CacheRepository(
        storage_path,
        version=settings.cache_version,
        ttl_hours={
            "reference": settings.reference_cache_ttl_hours,
            "team": settings.team_cache_ttl_hours,
            "player": settings.player_cache_ttl_hours,
            "match": settings.match_cache_ttl_hours,
        },
    )
    return AppData(
        client=get_api_client(settings.api_base_url, timeout=settings.request_timeout),
        storage=StorageRepository(storage_path),
        cache=cache,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: tests may install their own session first
    if not hasattr(app.state, "app_data"):
        app.state.app_data = create_app_data()
        result = await app.state.app_data.initialize()
        logger.info(
            f"Session ready: active team "
            f"{result.active_team.key if result.active_team else 'global'}, "
            f"{len(result.other_teams)} other teams refreshing"
        )
    yield
    # Shutdown: stop background loads and close the HTTP client
    await app.state.app_data.close()


app = FastAPI(
    title="Dota Scout",
    description="Dota 2 team scouting - match, player and hero statistics",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "dota-scout"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Dota Scout API",
        "version": "0.1.0",
        "docs": "/docs",
    }


# Register routers
app.include_router(teams_router)
app.include_router(matches_router)
app.include_router(players_router)
app.include_router(player_stats_router)


def run() -> None:
    """Serve the API with uvicorn using host and port from settings."""
    import uvicorn

    uvicorn.run(
        "dota_scout.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
