"""
THOR Packet Module

Handles the 22-byte wire format and the store-and-forward queue
used while no route is available.
"""

from .format import (
    PacketKind,
    Header,
    Packet,
    MalformedPacketError,
    pack_flags,
    unpack_flags,
    encode_header,
    encode,
    decode_header,
    decode,
)

from .queue import (
    StoreAndForwardQueue,
)

__all__ = [
    # Format
    'PacketKind',
    'Header',
    'Packet',
    'MalformedPacketError',
    'pack_flags',
    'unpack_flags',
    'encode_header',
    'encode',
    'decode_header',
    'decode',
    # Queue
    'StoreAndForwardQueue',
]
