"""Tests for per-team match participation reconciliation."""

from unittest.mock import MagicMock

import pytest

from dota_scout.models.entries import Hydrated
from dota_scout.models.reference import HeroSummary
from dota_scout.models.team import Team, TeamMatchParticipation
from dota_scout.services.hero_performance_service import HeroPerformanceService
from dota_scout.services.participation_service import ParticipationService
from dota_scout.services.player_metadata_service import PlayerMetadataService
from dota_scout.services.processing import process_league_matches, process_match
from dota_scout.store.stores import EntityStores

from factories import HEROES, raw_league, raw_match

TEAM_ID = 10
LEAGUE_ID = 15000


@pytest.fixture
def stores():
    stores = EntityStores()
    stores.heroes.replace_all(HEROES)
    return stores


@pytest.fixture
def team(stores):
    team = Team.placeholder(TEAM_ID, LEAGUE_ID, is_loading=False)
    stores.teams.set(team.key, team)
    return team


@pytest.fixture
def on_change():
    return MagicMock()


@pytest.fixture
def service(stores, on_change):
    return ParticipationService(
        stores,
        HeroPerformanceService(stores),
        PlayerMetadataService(stores),
        on_change=on_change,
    )


def add_match(stores, match_id: int, **kwargs):
    match = process_match(raw_match(match_id, **kwargs), HEROES, {})
    stores.matches.set(match_id, Hydrated(match))
    return match


def add_league(stores, *entries):
    stores.league_matches.set(LEAGUE_ID, process_league_matches(LEAGUE_ID, raw_league(entries)))


class TestReconcileMatch:
    """Tests for building one participation entry."""

    def test_side_from_league_data(self, stores, team, service):
        """League team ids place the team on a side."""
        add_match(stores, 1, radiant_win=True)
        add_league(stores, (1, 99, TEAM_ID, [], []))

        assert service.reconcile_match(team, 1) is True
        meta = team.matches[1]
        assert meta.side == "dire"
        assert meta.result == "lost"
        assert meta.opponent_name == "Radiant Squad"
        assert meta.pick_order == "second"

    def test_default_side_is_radiant(self, stores, team, service):
        """Without league data or stored metadata the team is radiant."""
        add_match(stores, 1, radiant_win=True)

        service.reconcile_match(team, 1)
        assert team.matches[1].side == "radiant"
        assert team.matches[1].result == "won"

    def test_stored_side_is_sticky(self, stores, team, service):
        """An existing side wins over league data."""
        add_match(stores, 1)
        add_league(stores, (1, TEAM_ID, 99, [], []))
        team.matches[1] = TeamMatchParticipation(match_id=1, side="dire", is_manual=True)

        service.reconcile_match(team, 1)
        assert team.matches[1].side == "dire"
        assert team.matches[1].is_manual is True

    def test_pick_order_kept_when_match_lacks_it(self, stores, team, service):
        """A stored pick order survives a match without draft order."""
        match = add_match(stores, 1)
        match.pick_order = None
        team.matches[1] = TeamMatchParticipation(match_id=1, side="radiant", pick_order="second")

        service.reconcile_match(team, 1)
        assert team.matches[1].pick_order == "second"

    def test_pick_order_unknown_without_any_source(self, stores, team, service):
        match = add_match(stores, 1)
        match.pick_order = None

        service.reconcile_match(team, 1)
        assert team.matches[1].pick_order == "unknown"

    def test_heroes_are_a_union(self, stores, team, service):
        """Cached heroes are kept alongside the side's players and picks."""
        add_match(stores, 1)
        team.matches[1] = TeamMatchParticipation(
            match_id=1, side="radiant", heroes=[HeroSummary.fallback(77)]
        )

        service.reconcile_match(team, 1)
        hero_ids = {h.id for h in team.matches[1].heroes}
        assert hero_ids == {77, 1, 2, 3, 4, 5}

    def test_hidden_flag_preserved(self, stores, team, service):
        add_match(stores, 1)
        team.matches[1] = TeamMatchParticipation(match_id=1, side="radiant", is_hidden=True)

        service.reconcile_match(team, 1)
        assert team.matches[1].is_hidden is True

    def test_unloaded_match_is_deferred(self, team, service):
        """A match missing from the store leaves the team untouched."""
        assert service.reconcile_match(team, 404) is False
        assert 404 not in team.matches


class TestUpdateTeamMatchParticipation:
    """Tests for batch reconciliation and its side effects."""

    def test_persists_and_publishes(self, stores, team, service, on_change):
        """The store is saved and the teams ref refreshed."""
        add_match(stores, 1)
        version = stores.teams.version

        service.update_team_match_participation(team.key, [1])

        on_change.assert_called_once()
        assert stores.teams.version > version
        assert stores.hero_performance.get(team.key) is not None

    def test_persist_can_be_skipped(self, stores, team, service, on_change):
        add_match(stores, 1)
        service.update_team_match_participation(team.key, [1], persist=False)
        on_change.assert_not_called()

    def test_unknown_team_is_ignored(self, service, on_change):
        service.update_team_match_participation("5-5", [1])
        on_change.assert_not_called()

    def test_player_metadata_is_built(self, stores, team, service):
        """Players of the team's side get stored snapshots."""
        add_match(stores, 1)
        service.update_team_match_participation(team.key, [1])
        assert set(team.players) == {101, 102, 103, 104, 105}
