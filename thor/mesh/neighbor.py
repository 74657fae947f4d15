"""
THOR Neighbor Table

Tracks directly reachable neighbors and their reachability state.

Features:
- Upsert on every HELLO/ACK observation (last write wins)
- Internet reachability bits (direct / via a neighbor)
- Path lock flag per neighbor
- Staleness expiry

Design:
- store() is the only mutation path; lock/unlock are store() calls
  that keep the neighbor's other fields and its last_seen
- No internal locking; the owning node serializes access
"""

import time
import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple
from dataclasses import dataclass

from .. import DEFAULT_NEIGHBOR_TIMEOUT


logger = logging.getLogger("thor.neighbor")


@dataclass
class NeighborInfo:
    """
    State kept for one neighbor.
    """
    last_seen: float
    rssi: int                       # dBm, supplied by the transport
    has_internet_direct: bool = False
    has_internet_indirect: bool = False
    is_visited: bool = False        # Path lock

    def idle_time(self, now: float) -> float:
        """Seconds since the neighbor was last heard."""
        return now - self.last_seen


class NeighborTable:
    """
    Map of neighbor id to NeighborInfo.

    Usage:
        table = NeighborTable()

        # On HELLO/ACK reception
        table.store(node_id, rssi=-65, has_direct=False, has_indirect=True, visited=False)

        # Periodically
        table.remove_stale()
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Initialize neighbor table.

        Args:
            clock: Time source in seconds
        """
        self._clock = clock
        self._neighbors: Dict[int, NeighborInfo] = {}

    def store(
        self,
        node_id: int,
        rssi: int,
        has_direct: bool,
        has_indirect: bool,
        visited: bool,
        now: Optional[float] = None,
    ) -> NeighborInfo:
        """
        Insert or replace a neighbor entry.

        Every field is overwritten; last_seen is stamped with now
        (or the clock when now is None).

        Returns:
            NeighborInfo: The stored entry
        """
        info = NeighborInfo(
            last_seen=self._clock() if now is None else now,
            rssi=rssi,
            has_internet_direct=has_direct,
            has_internet_indirect=has_indirect,
            is_visited=visited,
        )
        self._neighbors[node_id] = info
        return info

    def lock(self, node_id: int) -> bool:
        """Mark a neighbor's path as in use. Returns False if unknown."""
        return self._set_visited(node_id, True)

    def unlock(self, node_id: int) -> bool:
        """Release a neighbor's path lock. Returns False if unknown."""
        return self._set_visited(node_id, False)

    def _set_visited(self, node_id: int, visited: bool) -> bool:
        info = self._neighbors.get(node_id)
        if info is None:
            return False

        self.store(
            node_id,
            info.rssi,
            info.has_internet_direct,
            info.has_internet_indirect,
            visited,
            now=info.last_seen,
        )
        return True

    def remove_stale(
        self,
        now: Optional[float] = None,
        threshold: float = DEFAULT_NEIGHBOR_TIMEOUT,
    ) -> int:
        """
        Remove neighbors not heard from for more than threshold seconds.

        Returns:
            Number of neighbors removed
        """
        if now is None:
            now = self._clock()

        expired = [
            node_id for node_id, info in self._neighbors.items()
            if info.idle_time(now) > threshold
        ]

        for node_id in expired:
            del self._neighbors[node_id]

        if expired:
            logger.info(f"Expired {len(expired)} stale neighbor(s): {expired}")

        return len(expired)

    def get(self, node_id: int) -> Optional[NeighborInfo]:
        """Get neighbor by id."""
        return self._neighbors.get(node_id)

    def items(self) -> List[Tuple[int, NeighborInfo]]:
        """All entries in ascending id order."""
        return sorted(self._neighbors.items())

    def clear(self) -> None:
        self._neighbors.clear()

    def get_stats(self) -> dict:
        """Get neighbor table statistics."""
        infos = self._neighbors.values()
        return {
            "total_neighbors": len(self._neighbors),
            "direct_internet": sum(1 for i in infos if i.has_internet_direct),
            "indirect_internet": sum(1 for i in infos if i.has_internet_indirect),
            "locked": sum(1 for i in infos if i.is_visited),
        }

    def __len__(self) -> int:
        return len(self._neighbors)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._neighbors

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._neighbors))
