#!/usr/bin/env python3
"""
Unit tests for next-hop scoring

Validates the internet gravity tiers, the goldilocks RSSI band and
deterministic tie-breaking.
"""

import pytest

from thor.mesh.neighbor import NeighborInfo
from thor.mesh.routing import (
    best_next_hop,
    rank_neighbors,
    rssi_adjustment,
    score_neighbor,
)


def info(rssi=-65, direct=False, indirect=False, visited=False):
    return NeighborInfo(
        last_seen=0.0,
        rssi=rssi,
        has_internet_direct=direct,
        has_internet_indirect=indirect,
        is_visited=visited,
    )


class TestScore:
    """Test score computation"""

    @pytest.mark.parametrize("rssi,expected", [
        (-30, -50),
        (-49, -50),
        (-50, 50),
        (-65, 50),
        (-80, 50),
        (-81, -20),
        (-100, -20),
    ])
    def test_rssi_adjustment(self, rssi, expected):
        assert rssi_adjustment(rssi) == expected

    def test_tiers(self):
        assert score_neighbor(info(direct=True)) == 350
        assert score_neighbor(info(indirect=True)) == 250
        assert score_neighbor(info()) == 150
        assert score_neighbor(info(visited=True)) == 60

    def test_direct_wins_over_indirect_flag(self):
        assert score_neighbor(info(direct=True, indirect=True)) == 350

    def test_internet_ignores_lock(self):
        assert score_neighbor(info(direct=True, visited=True)) == 350
        assert score_neighbor(info(indirect=True, visited=True)) == 250

    def test_lowest_possible_score(self):
        assert score_neighbor(info(rssi=-40, visited=True)) == -40


class TestBestNextHop:
    """Test next hop selection"""

    def test_empty_table(self, table):
        assert best_next_hop(table) is None

    def test_direct_outranks_indirect(self, table):
        table.store(2, -65, False, True, False)
        table.store(3, -65, True, False, False)
        assert best_next_hop(table) == 3

    def test_indirect_outranks_exploration(self, table):
        table.store(2, -65, False, False, False)
        table.store(3, -65, False, True, False)
        assert best_next_hop(table) == 3

    def test_goldilocks_preference(self, table):
        table.store(2, -40, False, False, False)
        table.store(3, -90, False, False, False)
        table.store(4, -70, False, False, False)
        assert best_next_hop(table) == 4

        # Too far loses less than too close
        table.store(4, -40, False, False, False)
        assert best_next_hop(table) == 3

    def test_unvisited_preferred(self, table):
        table.store(2, -65, False, False, True)
        table.store(3, -65, False, False, False)
        assert best_next_hop(table) == 3

    def test_tie_breaks_to_lowest_id(self, table):
        for node_id in (9, 4, 6):
            table.store(node_id, -65, False, False, False)
        assert best_next_hop(table) == 4

    def test_negative_score_still_selected(self, table):
        table.store(2, -40, False, False, True)
        assert best_next_hop(table) == 2

    def test_node_id_zero_is_valid(self, table):
        table.store(0, -65, True, False, False)
        assert best_next_hop(table) == 0

    def test_deterministic(self, table):
        table.store(5, -65, False, True, False)
        table.store(1, -65, False, True, False)
        table.store(3, -55, False, True, False)
        results = {best_next_hop(table) for _ in range(20)}
        assert results == {1}

    def test_does_not_mutate(self, table):
        table.store(2, -65, False, False, False)
        best_next_hop(table)
        assert not table.get(2).is_visited

    def test_scenario_scores(self, table):
        table.store(2, -65, False, False, False)
        assert rank_neighbors(table) == [(2, 150)]

        table.store(2, -65, False, True, False)
        assert rank_neighbors(table) == [(2, 250)]


class TestRanking:
    """Test ranking order"""

    def test_order(self, table):
        table.store(1, -65, False, False, False)
        table.store(2, -65, True, False, False)
        table.store(3, -65, False, True, False)
        table.store(4, -65, False, True, False)

        assert rank_neighbors(table) == [(2, 350), (3, 250), (4, 250), (1, 150)]
