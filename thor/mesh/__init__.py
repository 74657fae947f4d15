"""
THOR Mesh Module

Tracks neighbors and chooses the next hop.

Components:
- neighbor.py: Neighbor table with reachability bits and expiry
- routing.py: Internet Gravity / MFR next-hop scoring
"""

from .neighbor import (
    NeighborInfo,
    NeighborTable,
)

from .routing import (
    score_neighbor,
    rank_neighbors,
    best_next_hop,
)

__all__ = [
    # Neighbor
    'NeighborInfo',
    'NeighborTable',
    # Routing
    'score_neighbor',
    'rank_neighbors',
    'best_next_hop',
]
