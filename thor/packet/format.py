"""
THOR Packet Wire Format

Defines the structure of packets exchanged between neighbors.

Packet Structure:
    Header (22 bytes, fixed) + Payload (variable, DATA only)

Header Format (little-endian):
    type           (1 byte)  - Packet kind (1=HELLO, 2=ACK, 3=DATA)
    flags          (1 byte)  - bit0-4 ttl, bit5 intNeighbour,
                               bit6 visited, bit7 myInternet
    destination_id (4 bytes)
    sender_id      (4 bytes)
    origin_id      (4 bytes)
    next_hop_id    (4 bytes) - BROADCAST_ID when undetermined
    sequence       (4 bytes)

Design Principles:
- Field-by-field packing, never the in-memory layout
- One byte order for every node
- No checksum; integrity belongs to the transport
"""

import struct
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Tuple, Union

from .. import HEADER_SIZE, BROADCAST_ID, MAX_TTL


HEADER_FORMAT = "<BB5I"

# Flag bit layout
TTL_MASK = 0x1F
INT_NEIGHBOUR_BIT = 0x20
VISITED_BIT = 0x40
MY_INTERNET_BIT = 0x80

MAX_NODE_ID = 0xFFFFFFFF


class MalformedPacketError(ValueError):
    """Raised when a buffer cannot be decoded as a THOR packet."""
    pass


class PacketKind(IntEnum):
    """Packet kind identifiers."""
    HELLO = 1   # Neighbor discovery / presence
    ACK = 2     # Delivery and path confirmation
    DATA = 3    # Payload carriage


def pack_flags(ttl: int, int_neighbour: bool, visited: bool, my_internet: bool) -> int:
    """
    Pack ttl and the three reachability bits into one byte.

    Raises:
        ValueError: If ttl does not fit in 5 bits
    """
    if not 0 <= ttl <= MAX_TTL:
        raise ValueError(f"TTL out of range: {ttl} (0-{MAX_TTL})")

    flags = ttl & TTL_MASK
    if int_neighbour:
        flags |= INT_NEIGHBOUR_BIT
    if visited:
        flags |= VISITED_BIT
    if my_internet:
        flags |= MY_INTERNET_BIT
    return flags


def unpack_flags(flags: int) -> Tuple[int, bool, bool, bool]:
    """Split a flags byte into (ttl, int_neighbour, visited, my_internet)."""
    return (
        flags & TTL_MASK,
        bool(flags & INT_NEIGHBOUR_BIT),
        bool(flags & VISITED_BIT),
        bool(flags & MY_INTERNET_BIT),
    )


@dataclass
class Header:
    """
    Packet header structure.

    Fixed 22-byte header preceding all packets.
    """
    kind: Union[PacketKind, int]  # Raw int for kinds this node does not know
    ttl: int = 0
    int_neighbour: bool = False  # Sender's best neighbor has internet
    visited: bool = False        # Path lock flag
    my_internet: bool = False    # Sender has direct internet
    destination_id: int = 0
    sender_id: int = 0
    origin_id: int = 0
    next_hop_id: int = BROADCAST_ID
    sequence: int = 0

    @property
    def flags(self) -> int:
        """Packed flags byte."""
        return pack_flags(self.ttl, self.int_neighbour, self.visited, self.my_internet)

    def validate(self) -> None:
        """
        Validate header field ranges.

        Raises:
            ValueError: If any field cannot be encoded
        """
        if not 0 <= int(self.kind) <= 0xFF:
            raise ValueError(f"Packet kind out of range: {self.kind}")

        if not 0 <= self.ttl <= MAX_TTL:
            raise ValueError(f"TTL out of range: {self.ttl} (0-{MAX_TTL})")

        for name in ("destination_id", "sender_id", "origin_id", "next_hop_id", "sequence"):
            value = getattr(self, name)
            if not 0 <= value <= MAX_NODE_ID:
                raise ValueError(f"{name} out of 32-bit range: {value}")

    def to_bytes(self) -> bytes:
        """Serialize header to exactly HEADER_SIZE bytes."""
        self.validate()
        return struct.pack(
            HEADER_FORMAT,
            int(self.kind),
            self.flags,
            self.destination_id,
            self.sender_id,
            self.origin_id,
            self.next_hop_id,
            self.sequence,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Header':
        """
        Parse header from the first HEADER_SIZE bytes of data.

        Raises:
            MalformedPacketError: If data is too short
        """
        if len(data) < HEADER_SIZE:
            raise MalformedPacketError(f"Header too short: {len(data)} < {HEADER_SIZE}")

        (kind, flags, destination_id, sender_id, origin_id,
         next_hop_id, sequence) = struct.unpack(HEADER_FORMAT, bytes(data[:HEADER_SIZE]))

        try:
            packet_kind: Union[PacketKind, int] = PacketKind(kind)
        except ValueError:
            packet_kind = kind

        ttl, int_neighbour, visited, my_internet = unpack_flags(flags)

        return cls(
            kind=packet_kind,
            ttl=ttl,
            int_neighbour=int_neighbour,
            visited=visited,
            my_internet=my_internet,
            destination_id=destination_id,
            sender_id=sender_id,
            origin_id=origin_id,
            next_hop_id=next_hop_id,
            sequence=sequence,
        )


@dataclass
class Packet:
    """
    Complete packet with header and payload.
    """
    header: Header
    payload: bytes = field(default=b"")

    @property
    def kind(self) -> Union[PacketKind, int]:
        """Packet kind shortcut."""
        return self.header.kind

    @property
    def total_size(self) -> int:
        """Total packet size in bytes."""
        return HEADER_SIZE + len(self.payload)

    def to_bytes(self) -> bytes:
        """Serialize packet to bytes."""
        return self.header.to_bytes() + bytes(self.payload)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Packet':
        """Parse packet; every byte past the header is payload."""
        header = Header.from_bytes(data)
        return cls(header=header, payload=bytes(data[HEADER_SIZE:]))

    def next_hop(self) -> 'Packet':
        """
        Create copy for forwarding with ttl decremented by one.

        Raises:
            ValueError: If ttl is already exhausted
        """
        if self.header.ttl <= 1:
            raise ValueError("Cannot forward: TTL expired")

        return Packet(
            header=replace(self.header, ttl=self.header.ttl - 1),
            payload=self.payload,
        )


def encode_header(header: Header) -> bytes:
    """Encode a header to its 22-byte wire form."""
    return header.to_bytes()


def encode(packet: Packet) -> bytes:
    """Encode a packet to header + payload bytes."""
    return packet.to_bytes()


def decode_header(data: bytes) -> Header:
    """
    Decode a header from wire format.

    Raises:
        MalformedPacketError: If data is shorter than HEADER_SIZE
    """
    return Header.from_bytes(data)


def decode(data: bytes) -> Packet:
    """
    Decode a packet from wire format.

    Raises:
        MalformedPacketError: If data is shorter than HEADER_SIZE
    """
    return Packet.from_bytes(data)
