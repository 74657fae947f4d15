"""
THOR Protocol Handler

Drives the per-packet lifecycle of one node:

    originated/received -> ttl check -> destination check
        -> FORWARDED | QUEUED | DELIVERED | DROPPED_EXPIRED

Design:
- One ThorNode owns its neighbor table and store-and-forward queue
- A single lock covers both, so "score, then lock the chosen
  neighbor" is one step relative to concurrent store/drain calls
- No I/O: every operation returns bytes for the transport to send
- HELLO/ACK parsing never touches the table; the transport adds RSSI
  and calls store_neighbor() or learn_from_header()
"""

import time
import logging
import threading
from collections import OrderedDict
from typing import Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass
from enum import IntEnum

from . import BROADCAST_ID
from .config import Config
from .mesh.neighbor import NeighborInfo, NeighborTable
from .mesh.routing import best_next_hop
from .packet.format import (
    Header,
    MalformedPacketError,
    Packet,
    PacketKind,
    decode,
    decode_header,
)
from .packet.queue import StoreAndForwardQueue


logger = logging.getLogger("thor.protocol")


class Disposition(IntEnum):
    """What happened to a DATA packet."""
    FORWARDED = 1           # Bytes ready to transmit now
    QUEUED = 2              # No route yet, stored for later
    DELIVERED = 3           # This node is the destination
    DROPPED_EXPIRED = 4     # Hop budget exhausted
    REJECTED_MALFORMED = 5  # Could not be decoded


@dataclass
class HandleResult:
    """
    Outcome of send_packet() or handle_data().
    """
    disposition: Disposition
    data: Optional[bytes] = None       # Set when FORWARDED
    packet: Optional[Packet] = None    # Decoded/built packet, if any
    next_hop_id: Optional[int] = None  # Set when FORWARDED

    @property
    def should_transmit(self) -> bool:
        """Check if the transport has bytes to send."""
        return self.disposition == Disposition.FORWARDED


class ThorNode:
    """
    Routing state machine for a single mesh node.

    Usage:
        node = ThorNode(node_id=1)

        # Transport received a HELLO or ACK with some RSSI
        header = node.handle_hello(data)
        node.learn_from_header(header, rssi=-65)

        # Originate
        result = node.send_packet(9999, 1, 1, seq, b"Help Me")
        if result.should_transmit:
            transport.send(result.data)

        # Periodically
        for data in node.process_queue():
            transport.send(data)
        node.remove_stale()
    """

    def __init__(
        self,
        node_id: Optional[int] = None,
        config: Optional[Config] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize node.

        Args:
            node_id: Our node ID (default: config.node_id)
            config: Node configuration
            clock: Time source in seconds
        """
        self.config = config or Config()
        self.config.validate()
        self.node_id = self.config.node_id if node_id is None else node_id

        self._table = NeighborTable(clock=clock)
        self._queue = StoreAndForwardQueue(capacity=self.config.queue.capacity)
        self._lock = threading.RLock()

        # (origin_id, sequence) -> neighbor locked for that transaction,
        # oldest first, at most queue capacity entries
        self._path_locks: "OrderedDict[Tuple[int, int], int]" = OrderedDict()
        self._max_path_locks = self.config.queue.capacity

        self._counts: Dict[Disposition, int] = {d: 0 for d in Disposition}

    @property
    def neighbors(self) -> NeighborTable:
        return self._table

    @property
    def queue(self) -> StoreAndForwardQueue:
        return self._queue

    # -- Control packets -------------------------------------------------

    def create_hello(self, dest: int, sender: int, origin: int, seq: int) -> bytes:
        """Build a HELLO: control ttl, flags clear, broadcast next hop."""
        header = Header(
            kind=PacketKind.HELLO,
            ttl=self.config.routing.control_ttl,
            destination_id=dest,
            sender_id=sender,
            origin_id=origin,
            next_hop_id=BROADCAST_ID,
            sequence=seq,
        )
        return header.to_bytes()

    def create_ack(
        self,
        dest: int,
        sender: int,
        origin: int,
        next_hop: int,
        seq: int,
        my_internet: bool,
        int_neighbour: bool,
    ) -> bytes:
        """
        Build an ACK carrying our own and our best neighbor's
        internet reachability, which is how a node learns about
        gateways two hops away.
        """
        header = Header(
            kind=PacketKind.ACK,
            ttl=self.config.routing.control_ttl,
            int_neighbour=int_neighbour,
            visited=False,
            my_internet=my_internet,
            destination_id=dest,
            sender_id=sender,
            origin_id=origin,
            next_hop_id=next_hop,
            sequence=seq,
        )
        return header.to_bytes()

    def handle_hello(self, data: bytes) -> Header:
        """
        Decode a HELLO header. The table is not modified.

        Raises:
            MalformedPacketError: If data is too short
        """
        return decode_header(data)

    def handle_ack(self, data: bytes) -> Header:
        """
        Decode an ACK header. The table is not modified.

        Raises:
            MalformedPacketError: If data is too short
        """
        return decode_header(data)

    # -- Neighbor state --------------------------------------------------

    def store_neighbor(
        self,
        node_id: int,
        rssi: int,
        has_direct: bool,
        has_indirect: bool,
        visited: bool,
    ) -> NeighborInfo:
        """Merge externally observed RSSI and reachability into the table."""
        with self._lock:
            info = self._table.store(node_id, rssi, has_direct, has_indirect, visited)
            if not visited:
                self._forget_locks_via(node_id)
            return info

    def learn_from_header(self, header: Header, rssi: int) -> NeighborInfo:
        """
        Record the sender of a HELLO/ACK as a neighbor.

        The sender's my_internet bit becomes direct reachability and
        its int_neighbour bit indirect reachability. An existing path
        lock on the sender is kept.
        """
        with self._lock:
            existing = self._table.get(header.sender_id)
            visited = existing.is_visited if existing else False
            return self._table.store(
                header.sender_id,
                rssi,
                header.my_internet,
                header.int_neighbour,
                visited,
            )

    def unlock_neighbor(self, node_id: int) -> bool:
        """
        Release the path lock on a neighbor after delivery success.

        Returns:
            False if the neighbor is unknown
        """
        with self._lock:
            released = self._table.unlock(node_id)
            self._forget_locks_via(node_id)
            if released:
                logger.debug(f"Unlocked path via neighbor {node_id}")
            return released

    def release_path(self, origin_id: int, sequence: int) -> Optional[int]:
        """
        Release the lock taken when forwarding (origin_id, sequence).

        Called when the ACK for that transaction comes back.

        Returns:
            The neighbor that was unlocked, or None if the transaction
            is unknown or the neighbor has since expired
        """
        with self._lock:
            node_id = self._path_locks.pop((origin_id, sequence), None)
            if node_id is None:
                return None
            if not self.unlock_neighbor(node_id):
                return None
            return node_id

    def remove_stale(self, now: Optional[float] = None) -> int:
        """
        Expire silent neighbors and forget their path locks.

        Returns:
            Number of neighbors removed
        """
        with self._lock:
            removed = self._table.remove_stale(
                now=now,
                threshold=self.config.routing.neighbor_timeout,
            )
            if removed:
                self._path_locks = OrderedDict(
                    (key, node_id) for key, node_id in self._path_locks.items()
                    if node_id in self._table
                )
            return removed

    def get_path_lock(self, origin_id: int, sequence: int) -> Optional[int]:
        """Neighbor locked for a transaction, if any."""
        with self._lock:
            return self._path_locks.get((origin_id, sequence))

    # -- Data path -------------------------------------------------------

    def send_packet(
        self,
        dest: int,
        sender: int,
        origin: int,
        seq: int,
        payload: bytes,
    ) -> HandleResult:
        """
        Originate a DATA packet.

        Returns:
            FORWARDED with bytes to transmit, or QUEUED when no
            neighbor is available
        """
        header = Header(
            kind=PacketKind.DATA,
            ttl=self.config.routing.data_ttl,
            destination_id=dest,
            sender_id=sender,
            origin_id=origin,
            next_hop_id=0,
            sequence=seq,
        )
        header.validate()
        packet = Packet(header=header, payload=bytes(payload))

        return self._count(self._route(packet))

    def handle_data(self, data: bytes, my_node_id: Optional[int] = None) -> HandleResult:
        """
        Ingest a DATA packet from a neighbor.

        Checks run in order: decode, ttl <= 1 (drop), destination is
        us (deliver), otherwise decrement ttl and route.

        Args:
            data: Raw packet bytes
            my_node_id: Our node ID (default: self.node_id)
        """
        if my_node_id is None:
            my_node_id = self.node_id

        try:
            packet = decode(data)
        except MalformedPacketError as e:
            logger.warning(f"Rejected malformed packet: {e}")
            return self._count(HandleResult(Disposition.REJECTED_MALFORMED))

        header = packet.header

        if header.ttl <= 1:
            logger.debug(
                f"Dropped expired packet origin={header.origin_id} seq={header.sequence}"
            )
            return self._count(HandleResult(Disposition.DROPPED_EXPIRED, packet=packet))

        if header.destination_id == my_node_id:
            logger.info(
                f"Delivered packet origin={header.origin_id} seq={header.sequence} "
                f"({len(packet.payload)} bytes)"
            )
            return self._count(HandleResult(Disposition.DELIVERED, packet=packet))

        return self._count(self._route(packet.next_hop()))

    def process_queue(self) -> List[bytes]:
        """
        Try to flush the store-and-forward queue.

        Returns:
            Encoded packets to transmit (empty if nothing moved)
        """
        with self._lock:
            next_hop, batch = self._queue.drain_packets(self._table, best_next_hop)
            for packet in batch:
                self._remember_lock(packet, next_hop)
            return [packet.to_bytes() for packet in batch]

    def _route(self, packet: Packet) -> HandleResult:
        """Pick a next hop and lock it, or queue the packet."""
        with self._lock:
            next_hop = best_next_hop(self._table)

            if next_hop is None:
                if not self._queue.enqueue(packet):
                    logger.debug("Store-and-forward queue full, packet dropped")
                return HandleResult(Disposition.QUEUED, packet=packet)

            self._table.lock(next_hop)
            packet.header.next_hop_id = next_hop
            packet.header.visited = True
            self._remember_lock(packet, next_hop)

            logger.debug(
                f"Forwarding origin={packet.header.origin_id} "
                f"seq={packet.header.sequence} via {next_hop} ttl={packet.header.ttl}"
            )
            return HandleResult(
                Disposition.FORWARDED,
                data=packet.to_bytes(),
                packet=packet,
                next_hop_id=next_hop,
            )

    def _remember_lock(self, packet: Packet, next_hop: int) -> None:
        key = (packet.header.origin_id, packet.header.sequence)
        self._path_locks[key] = next_hop
        self._path_locks.move_to_end(key)
        while len(self._path_locks) > self._max_path_locks:
            self._path_locks.popitem(last=False)

    def _forget_locks_via(self, node_id: int) -> None:
        """Drop every transaction recorded against an unlocked neighbor."""
        stale = [key for key, locked in self._path_locks.items() if locked == node_id]
        for key in stale:
            del self._path_locks[key]

    def _count(self, result: HandleResult) -> HandleResult:
        with self._lock:
            self._counts[result.disposition] += 1
        return result

    def get_stats(self) -> dict:
        """Get node statistics."""
        with self._lock:
            stats = {d.name.lower(): count for d, count in self._counts.items()}
            stats["queue"] = self._queue.get_stats()
            stats["neighbors"] = self._table.get_stats()
            stats["path_locks"] = len(self._path_locks)
            return stats
