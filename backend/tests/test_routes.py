"""Tests for the REST API routes."""

import httpx
import pytest

from dota_scout.main import app
from dota_scout.models.team import GLOBAL_TEAM_KEY, Team

from factories import FakeMatchApi, make_app_data, raw_league, raw_match, raw_player

pytestmark = pytest.mark.anyio

TEAM_KEY = "10-15000"


@pytest.fixture
def api():
    api = FakeMatchApi()
    api.add_team(10, "Team Spirit")
    api.add_league(15000, "The International", raw_league([(1001, 10, 99, [101], [201])]))
    api.add_match(raw_match(1001, radiant_team_id=10, dire_team_id=99))
    api.add_match(raw_match(1002))
    for account_id in (101, 102, 103, 104, 105, 301):
        api.add_player(raw_player(account_id))
    return api


@pytest.fixture
async def app_data(tmp_path, api):
    app_data = make_app_data(tmp_path, api)
    await app_data.loader.load_leagues()
    yield app_data
    await app_data.close()


@pytest.fixture
async def client(app_data):
    """Async client over the app with the session installed directly on app.state."""
    app.state.app_data = app_data
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    del app.state.app_data


@pytest.fixture
def tracked_team(app_data):
    team = Team.placeholder(10, 15000, is_loading=False, name="Team Spirit")
    app_data.stores.teams.set(TEAM_KEY, team)
    return team


class TestHealth:
    """Tests for service endpoints."""

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "dota-scout"}


class TestTeamRoutes:
    """Tests for /api/teams."""

    async def test_list_contains_global_team(self, client):
        response = await client.get("/api/teams")
        data = response.json()
        assert data["selected_team_key"] == GLOBAL_TEAM_KEY
        assert [t["key"] for t in data["teams"]] == [GLOBAL_TEAM_KEY]

    async def test_add_team(self, client, app_data):
        response = await client.post("/api/teams", json={"team_id": 10, "league_id": 15000})
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Team Spirit"
        assert data["league_name"] == "The International"
        assert data["is_selected"] is True
        await app_data.wait_for_background()

    async def test_add_team_rejects_invalid_ids(self, client):
        response = await client.post("/api/teams", json={"team_id": 0, "league_id": 15000})
        assert response.status_code == 422

    async def test_remove_global_team(self, client):
        response = await client.delete(f"/api/teams/{GLOBAL_TEAM_KEY}")
        assert response.status_code == 400

    async def test_remove_team(self, client, tracked_team):
        response = await client.delete(f"/api/teams/{TEAM_KEY}")
        assert response.status_code == 200
        assert response.json()["selected_team_key"] == GLOBAL_TEAM_KEY

    async def test_unknown_team(self, client):
        response = await client.get("/api/teams/1-1/matches")
        assert response.status_code == 404

    async def test_select_team(self, client, app_data, tracked_team):
        response = await client.post(f"/api/teams/{TEAM_KEY}/select")
        assert response.json()["is_selected"] is True
        assert app_data.selected_team_key == TEAM_KEY

    async def test_bad_date_range(self, client, tracked_team):
        response = await client.get(f"/api/teams/{TEAM_KEY}/matches", params={"date_range": "forever"})
        assert response.status_code == 400


class TestMatchRoutes:
    """Tests for manual and hidden match endpoints."""

    async def test_add_and_list_manual_match(self, client, tracked_team):
        response = await client.post(
            f"/api/teams/{TEAM_KEY}/matches", json={"match_id": 1002, "side": "dire"}
        )
        assert response.status_code == 201
        data = response.json()
        assert data["error"] is None
        assert data["participation"]["side"] == "dire"
        assert data["participation"]["is_manual"] is True

        listing = (await client.get(f"/api/teams/{TEAM_KEY}/matches")).json()
        assert [m["match"]["id"] for m in listing["matches"]] == [1002]
        assert listing["matches"][0]["status"] == "hydrated"
        assert listing["stats"]["total_matches"] == 1

    async def test_failed_add_reports_error(self, client, api, tracked_team):
        api.failing.add("/matches/1003")
        response = await client.post(
            f"/api/teams/{TEAM_KEY}/matches", json={"match_id": 1003, "side": "radiant"}
        )
        data = response.json()
        assert data["match"] is None
        assert data["error"] == "Failed to load match 1003"

        listing = (await client.get(f"/api/teams/{TEAM_KEY}/matches")).json()
        assert listing["matches"][0]["status"] == "placeholder"

    async def test_edit_failure_is_bad_gateway(self, client, api, tracked_team):
        await client.post(f"/api/teams/{TEAM_KEY}/matches", json={"match_id": 1002, "side": "dire"})
        api.failing.add("/matches/1001")

        response = await client.put(
            f"/api/teams/{TEAM_KEY}/matches/1002", json={"new_match_id": 1001, "side": "radiant"}
        )

        assert response.status_code == 502
        assert set(tracked_team.matches) == {1002}

    async def test_hide_and_filter(self, client, tracked_team):
        await client.post(f"/api/teams/{TEAM_KEY}/matches", json={"match_id": 1002, "side": "radiant"})

        response = await client.post(f"/api/teams/{TEAM_KEY}/matches/1002/hide")
        assert response.json()["is_hidden"] is True

        visible = (await client.get(f"/api/teams/{TEAM_KEY}/matches")).json()
        hidden = (await client.get(f"/api/teams/{TEAM_KEY}/matches", params={"hidden": True})).json()
        assert visible["matches"] == []
        assert [m["match"]["id"] for m in hidden["matches"]] == [1002]

    async def test_remove_discovered_match_is_not_found(self, client, tracked_team):
        response = await client.delete(f"/api/teams/{TEAM_KEY}/matches/1001")
        assert response.status_code == 404

    async def test_hero_summary(self, client, tracked_team):
        await client.post(f"/api/teams/{TEAM_KEY}/matches", json={"match_id": 1002, "side": "radiant"})
        data = (await client.get(f"/api/teams/{TEAM_KEY}/hero-summary")).json()
        assert data["matches_count"] == 1
        assert len(data["active_team_picks"]) == 5


class TestPlayerRoutes:
    """Tests for player endpoints."""

    async def test_add_manual_player(self, client, tracked_team):
        response = await client.post(f"/api/teams/{TEAM_KEY}/players", json={"player_id": 301})
        assert response.status_code == 201
        assert response.json()["player"]["name"] == "Pro301"

        players = (await client.get(f"/api/teams/{TEAM_KEY}/players")).json()["players"]
        assert [p["account_id"] for p in players] == [301]

    async def test_player_stats_for_team(self, client, app_data, tracked_team):
        await client.post(f"/api/teams/{TEAM_KEY}/matches", json={"match_id": 1002, "side": "radiant"})

        response = await client.get("/api/players/101/stats", params={"team_key": TEAM_KEY})

        data = response.json()
        assert data["stats"]["total_games"] == 1
        assert data["heroes"][0]["hero_id"] == 1
        assert data["heroes"][0]["roles"] == ["Safe Lane"]

    async def test_refresh_unknown_player(self, client):
        response = await client.post("/api/players/999/refresh")
        assert response.status_code == 502
