#!/usr/bin/env python3
"""
Unit tests for the neighbor table

Covers upsert semantics, path lock helpers and staleness expiry.
"""

from thor.mesh.neighbor import NeighborTable


class TestStore:
    """Test neighbor upsert"""

    def test_insert(self, table, clock):
        info = table.store(2, -65, False, True, False)

        assert 2 in table
        assert len(table) == 1
        assert info.rssi == -65
        assert info.has_internet_indirect
        assert not info.has_internet_direct
        assert not info.is_visited
        assert info.last_seen == clock.now

    def test_last_write_wins(self, table, clock):
        table.store(2, -65, False, False, True)
        clock.advance(5)
        table.store(2, -90, True, False, False)

        info = table.get(2)
        assert len(table) == 1
        assert info.rssi == -90
        assert info.has_internet_direct
        assert not info.is_visited
        assert info.last_seen == clock.now

    def test_explicit_timestamp(self, table):
        info = table.store(3, -70, False, False, False, now=42.0)
        assert info.last_seen == 42.0

    def test_items_sorted_by_id(self, table):
        for node_id in (7, 3, 5):
            table.store(node_id, -60, False, False, False)

        assert [node_id for node_id, _ in table.items()] == [3, 5, 7]
        assert list(table) == [3, 5, 7]

    def test_get_unknown(self, table):
        assert table.get(99) is None


class TestLocking:
    """Test path lock helpers"""

    def test_lock_keeps_other_fields(self, table, clock):
        table.store(2, -65, False, True, False)
        seen = table.get(2).last_seen
        clock.advance(10)

        assert table.lock(2)
        info = table.get(2)
        assert info.is_visited
        assert info.rssi == -65
        assert info.has_internet_indirect
        assert info.last_seen == seen

    def test_unlock(self, table):
        table.store(2, -65, False, False, True)
        assert table.unlock(2)
        assert not table.get(2).is_visited

    def test_unknown_neighbor(self, table):
        assert not table.lock(5)
        assert not table.unlock(5)
        assert 5 not in table


class TestExpiry:
    """Test stale neighbor removal"""

    def test_expired_after_threshold(self, table, clock):
        table.store(2, -65, False, False, False)
        clock.advance(31)

        assert table.remove_stale() == 1
        assert 2 not in table

    def test_refreshed_neighbor_survives(self, table, clock):
        table.store(2, -65, False, False, False)
        table.store(3, -65, False, False, False)
        clock.advance(29)
        table.store(3, -60, False, False, False)
        clock.advance(2)

        assert table.remove_stale() == 1
        assert 2 not in table
        assert 3 in table

    def test_boundary_is_exclusive(self, table, clock):
        table.store(2, -65, False, False, False)
        clock.advance(30)

        assert table.remove_stale() == 0
        assert 2 in table

    def test_explicit_now_and_threshold(self):
        table = NeighborTable()
        table.store(2, -65, False, False, False, now=100.0)

        assert table.remove_stale(now=105.0, threshold=10.0) == 0
        assert table.remove_stale(now=111.0, threshold=10.0) == 1

    def test_lock_does_not_refresh(self, table, clock):
        table.store(2, -65, False, False, False)
        clock.advance(25)
        table.lock(2)
        clock.advance(10)

        assert table.remove_stale() == 1


class TestStats:
    """Test statistics"""

    def test_counts(self, table):
        table.store(1, -60, True, False, False)
        table.store(2, -60, False, True, True)
        table.store(3, -60, False, False, False)

        stats = table.get_stats()
        assert stats["total_neighbors"] == 3
        assert stats["direct_internet"] == 1
        assert stats["indirect_internet"] == 1
        assert stats["locked"] == 1
