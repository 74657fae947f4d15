"""
THOR Store-and-Forward Queue

Holds packets that had no viable next hop when they were routed,
until a neighbor appears (the node acts as a data mule).

Features:
- Bounded FIFO (default 50 packets)
- Silent drop on overflow, counted in stats
- Whole-batch drain to a single next hop

Design:
- The scorer runs once per drain, so every packet in a batch goes to
  the same neighbor
- A drain with no candidate has no effects at all
- In-memory only; nothing survives a restart
"""

import logging
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple

from .. import DEFAULT_QUEUE_CAPACITY
from ..mesh.neighbor import NeighborTable
from ..mesh.routing import best_next_hop
from .format import Packet


logger = logging.getLogger("thor.queue")

Scorer = Callable[[NeighborTable], Optional[int]]


class StoreAndForwardQueue:
    """
    Bounded FIFO of packets awaiting a route.

    Usage:
        queue = StoreAndForwardQueue(capacity=50)
        queue.enqueue(packet)

        # When idle, or after a new neighbor shows up
        for data in queue.drain(table):
            transmit(data)
    """

    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY):
        """
        Initialize queue.

        Args:
            capacity: Maximum number of queued packets
        """
        if capacity < 1:
            raise ValueError(f"Queue capacity must be positive: {capacity}")

        self._capacity = capacity
        self._packets: Deque[Packet] = deque()

        # Statistics
        self._enqueued = 0
        self._dropped = 0
        self._drained = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._packets) >= self._capacity

    def enqueue(self, packet: Packet) -> bool:
        """
        Append a packet if there is room.

        Returns:
            True if queued, False if dropped because the queue is full
        """
        if self.is_full:
            self._dropped += 1
            logger.debug(
                f"Queue full ({self._capacity}), dropping packet "
                f"origin={packet.header.origin_id} seq={packet.header.sequence}"
            )
            return False

        self._packets.append(packet)
        self._enqueued += 1
        return True

    def drain_packets(
        self,
        table: NeighborTable,
        scorer: Scorer = best_next_hop,
    ) -> Tuple[Optional[int], List[Packet]]:
        """
        Route every queued packet to one next hop.

        The chosen neighbor is locked, each packet is stamped with the
        next hop and the visited bit, and the queue is cleared.

        Returns:
            (next_hop_id, packets) or (None, []) when nothing was drained
        """
        if not self._packets:
            return (None, [])

        next_hop = scorer(table)
        if next_hop is None:
            return (None, [])

        table.lock(next_hop)

        batch = []
        for packet in self._packets:
            packet.header.next_hop_id = next_hop
            packet.header.visited = True
            batch.append(packet)

        self._packets.clear()
        self._drained += len(batch)

        logger.info(f"Flushed {len(batch)} queued packet(s) to neighbor {next_hop}")
        return (next_hop, batch)

    def drain(
        self,
        table: NeighborTable,
        scorer: Scorer = best_next_hop,
    ) -> List[bytes]:
        """
        Route and encode every queued packet.

        Returns:
            Encoded packets in FIFO order; empty if the queue is empty
            or no neighbor is available (queue left untouched)
        """
        _, batch = self.drain_packets(table, scorer)
        return [packet.to_bytes() for packet in batch]

    def peek(self) -> List[Packet]:
        """Snapshot of queued packets, oldest first."""
        return list(self._packets)

    def clear(self) -> None:
        self._packets.clear()

    def get_stats(self) -> dict:
        """Get queue statistics."""
        return {
            "size": len(self._packets),
            "capacity": self._capacity,
            "enqueued": self._enqueued,
            "dropped": self._dropped,
            "drained": self._drained,
        }

    def __len__(self) -> int:
        return len(self._packets)
