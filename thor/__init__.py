"""
THOR - Delay-Tolerant Mesh Routing Core

Per-node routing core that moves packets toward internet-connected
gateway nodes across intermittent radio links.

This package contains:
- packet/    : Wire format and store-and-forward queue
- mesh/      : Neighbor table and next-hop scoring
- protocol.py: Packet lifecycle (originate, ingest, forward, lock)
- config.py  : TOML configuration

License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "THOR Project"

# Core constants
HEADER_SIZE = 22  # bytes
BROADCAST_ID = 0xFFFFFFFF
MAX_TTL = 31  # 5-bit field
DEFAULT_DATA_TTL = 15
CONTROL_TTL = 1
DEFAULT_QUEUE_CAPACITY = 50
DEFAULT_NEIGHBOR_TIMEOUT = 30.0  # seconds
