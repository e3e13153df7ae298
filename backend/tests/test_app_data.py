"""Tests for the session object: team lifecycle, loading and restore."""

import pytest

from dota_scout.app_data import AppData
from dota_scout.exceptions import TeamNotFoundError
from dota_scout.models.entries import Hydrated, Placeholder
from dota_scout.models.team import GLOBAL_TEAM_KEY, Team
from dota_scout.repositories.storage_repository import (
    ACTIVE_TEAM_KEY,
    TEAMS_KEY,
    StorageRepository,
)

from factories import FakeMatchApi, make_app_data, raw_league, raw_match, raw_player

pytestmark = pytest.mark.anyio

TEAM_ID = 10
LEAGUE_ID = 15000
TEAM_KEY = f"{TEAM_ID}-{LEAGUE_ID}"
RADIANT_IDS = [101, 102, 103, 104, 105]
DIRE_IDS = [201, 202, 203, 204, 205]


@pytest.fixture
def api():
    api = FakeMatchApi()
    api.add_team(TEAM_ID, "Team Spirit")
    api.add_league(
        LEAGUE_ID,
        "The International",
        raw_league(
            [
                (1001, TEAM_ID, 99, RADIANT_IDS, DIRE_IDS),
                (1002, 99, TEAM_ID, DIRE_IDS, RADIANT_IDS),
            ]
        ),
    )
    api.add_match(raw_match(1001, radiant_team_id=TEAM_ID, dire_team_id=99))
    api.add_match(
        raw_match(
            1002,
            radiant_team_id=99,
            dire_team_id=TEAM_ID,
            radiant_win=False,
            radiant_accounts=DIRE_IDS,
            dire_accounts=RADIANT_IDS,
            start_time=1_700_100_000,
        )
    )
    for account_id in [*RADIANT_IDS, *DIRE_IDS]:
        api.add_player(raw_player(account_id))
    return api


@pytest.fixture
async def app_data(tmp_path, api):
    app_data = make_app_data(tmp_path, api)
    await app_data.loader.load_leagues()
    yield app_data
    await app_data.close()


class TestLoadTeam:
    """Tests for adding teams."""

    async def test_load_team(self, app_data):
        """Names resolve, the team is selected and its matches reconciled."""
        team = await app_data.load_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()

        assert team.name == "Team Spirit"
        assert team.league_name == "The International"
        assert team.is_loading is False
        assert app_data.selected_team_key == TEAM_KEY
        assert team.matches[1001].side == "radiant"
        assert team.matches[1002].side == "dire"
        assert team.matches[1001].result == "won"
        assert team.matches[1002].result == "won"

    async def test_players_loaded_for_team_side(self, app_data):
        await app_data.load_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()

        assert all(isinstance(app_data.stores.players.get(pid), Hydrated) for pid in RADIANT_IDS)
        assert app_data.stores.players.get(201) is None
        assert set(app_data.get_team(TEAM_KEY).players) == set(RADIANT_IDS)

    async def test_team_fetch_failure_keeps_team(self, app_data, api):
        """A failed team fetch stores the error and does not select it."""
        api.failing.add(f"/teams/{TEAM_ID}")

        team = await app_data.load_team(TEAM_ID, LEAGUE_ID)

        assert team.team_error
        assert team.is_loading is False
        assert app_data.get_team(TEAM_KEY) is team
        assert app_data.selected_team_key == GLOBAL_TEAM_KEY

    async def test_league_fetch_failure(self, app_data, api):
        api.failing.add(f"/leagues/{LEAGUE_ID}")
        team = await app_data.load_team(TEAM_ID, LEAGUE_ID)
        assert team.league_error
        assert team.team_error is None


class TestTeamLifecycle:
    """Tests for refresh, removal and selection."""

    async def test_refresh_unknown_team(self, app_data):
        with pytest.raises(TeamNotFoundError):
            await app_data.refresh_team(1, 2)

    async def test_refresh_forces_league_fetch(self, app_data, api):
        await app_data.load_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()

        await app_data.refresh_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()

        assert api.calls[f"/leagues/{LEAGUE_ID}"] == 2
        assert api.forced[f"/leagues/{LEAGUE_ID}"] == 1

    async def test_remove_selected_team_falls_back_to_global(self, app_data):
        await app_data.load_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()

        assert app_data.remove_team(TEAM_KEY) is True

        assert app_data.get_team(TEAM_KEY) is None
        assert app_data.selected_team_key == GLOBAL_TEAM_KEY
        assert app_data.stores.hero_performance.get(TEAM_KEY) is None
        assert app_data.remove_team(TEAM_KEY) is False

    async def test_global_team_cannot_be_removed(self, app_data):
        assert app_data.remove_team(GLOBAL_TEAM_KEY) is False
        assert app_data.get_team(GLOBAL_TEAM_KEY) is not None

    async def test_select_unknown_team(self, app_data):
        with pytest.raises(TeamNotFoundError):
            app_data.select_team("5-5")


class TestTeamQueries:
    """Tests for team-scoped reads."""

    async def test_team_player_ids_from_league(self, app_data):
        """League sides supply player ids before any match loads."""
        await app_data.loader.fetch_league_matches(LEAGUE_ID)
        app_data.stores.teams.set(TEAM_KEY, Team.placeholder(TEAM_ID, LEAGUE_ID))

        assert app_data.get_team_player_ids(TEAM_KEY) == set(RADIANT_IDS)
        assert app_data.team_has_player(TEAM_KEY, 101) is True
        assert app_data.team_has_player(TEAM_KEY, 201) is False
        assert app_data.team_has_match(TEAM_KEY, 1002) is True

    async def test_team_matches_newest_first(self, app_data):
        await app_data.load_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()
        assert [m.id for m in app_data.get_team_matches(TEAM_KEY)] == [1002, 1001]

    async def test_unforced_reload_skips_loaded_matches(self, app_data, api):
        await app_data.load_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()

        await app_data.load_team_matches(TEAM_KEY)

        assert api.calls["/matches/1001"] == 1

    async def test_refresh_match_reconciles_teams(self, app_data, api):
        await app_data.load_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()
        api.add_match(raw_match(1001, radiant_team_id=TEAM_ID, dire_team_id=99, radiant_win=False))

        await app_data.refresh_match(1001)

        assert app_data.get_team(TEAM_KEY).matches[1001].result == "lost"

    async def test_hero_summary(self, app_data):
        await app_data.load_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()
        summary = app_data.get_team_hero_summary(TEAM_KEY)
        assert summary.matches_count == 2


class TestRestore:
    """Tests for restoring a session from storage."""

    async def test_restore_round_trip(self, tmp_path, app_data, api):
        """A second session sees the saved team, selection and placeholders."""
        await app_data.load_team(TEAM_ID, LEAGUE_ID)
        await app_data.wait_for_background()

        restored = AppData(api.client(), StorageRepository(tmp_path / "storage.duckdb"))
        result = restored.load_from_storage()

        assert result.active_team.key == TEAM_KEY
        assert restored.selected_team_key == TEAM_KEY
        team = restored.get_team(TEAM_KEY)
        assert team.name == "Team Spirit"
        assert set(team.matches) == {1001, 1002}
        assert isinstance(restored.stores.matches.get(1001), Placeholder)
        assert isinstance(restored.stores.players.get(101), Placeholder)
        await restored.close()

    async def test_invalid_record_is_reloaded(self, tmp_path, api):
        """A damaged record becomes a placeholder that initialize reloads."""
        storage = StorageRepository(tmp_path / "storage.duckdb")
        storage.set_item(TEAMS_KEY, {TEAM_KEY: {"team": {"id": TEAM_ID}}})
        app_data = AppData(api.client(), storage)

        result = await app_data.initialize()
        placeholder = app_data.get_team(TEAM_KEY)
        assert placeholder.needs_reload is True
        assert [t.key for t in result.other_teams] == [TEAM_KEY]

        await app_data.wait_for_background()
        team = app_data.get_team(TEAM_KEY)
        assert team.name == "Team Spirit"
        assert team.needs_reload is False
        assert app_data.selected_team_key == GLOBAL_TEAM_KEY
        await app_data.close()

    async def test_missing_active_team_selects_global(self, tmp_path, api):
        storage = StorageRepository(tmp_path / "storage.duckdb")
        storage.set_item(TEAMS_KEY, {})
        storage.set_item(ACTIVE_TEAM_KEY, {"teamId": 1, "leagueId": 2})
        app_data = make_app_data(tmp_path, api)
        app_data.load_from_storage()
        assert app_data.selected_team_key == GLOBAL_TEAM_KEY
        await app_data.close()

    async def test_initialize_survives_non_json_reference_data(self, tmp_path, api):
        """Startup completes with an empty hero table when heroes come back as HTML."""
        api.not_json.add("/heroes")
        app_data = AppData(api.client(), StorageRepository(tmp_path / "storage.duckdb"))

        await app_data.initialize()

        assert len(app_data.stores.heroes) == 0
        assert app_data.selected_team_key == GLOBAL_TEAM_KEY
        await app_data.close()
