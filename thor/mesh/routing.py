"""
THOR Next-Hop Selection

"Internet Gravity" with Most-Forward-within-Radius.

Design:
- A base tier pulls packets toward connectivity:
  direct internet > indirect internet > unexplored > already locked
- An RSSI adjustment favors the goldilocks band [-80, -50] dBm,
  penalizing neighbors that are too close (wasted hop) or too far
  (unreliable link)
- Pure functions over the neighbor table; no state is changed here
"""

from typing import List, Optional, Tuple

from .neighbor import NeighborInfo, NeighborTable


# Base tiers
SCORE_DIRECT = 300
SCORE_INDIRECT = 200
SCORE_EXPLORE = 100
SCORE_EXPLORE_VISITED = 10

# RSSI band (dBm)
RSSI_NEAR = -50
RSSI_FAR = -80

ADJUST_TOO_CLOSE = -50
ADJUST_GOLDILOCKS = 50
ADJUST_TOO_FAR = -20


def rssi_adjustment(rssi: int) -> int:
    """Score adjustment for a link's signal strength."""
    if rssi > RSSI_NEAR:
        return ADJUST_TOO_CLOSE
    if rssi >= RSSI_FAR:
        return ADJUST_GOLDILOCKS
    return ADJUST_TOO_FAR


def base_score(info: NeighborInfo) -> int:
    """Reachability tier of a neighbor."""
    if info.has_internet_direct:
        return SCORE_DIRECT
    if info.has_internet_indirect:
        return SCORE_INDIRECT
    if info.is_visited:
        return SCORE_EXPLORE_VISITED
    return SCORE_EXPLORE


def score_neighbor(info: NeighborInfo) -> int:
    """Total routing score of a neighbor. Higher is better."""
    return base_score(info) + rssi_adjustment(info.rssi)


def rank_neighbors(table: NeighborTable) -> List[Tuple[int, int]]:
    """
    Score every neighbor.

    Returns:
        List of (node_id, score), best first; equal scores in
        ascending id order
    """
    scored = [(node_id, score_neighbor(info)) for node_id, info in table.items()]
    scored.sort(key=lambda entry: (-entry[1], entry[0]))
    return scored


def best_next_hop(table: NeighborTable) -> Optional[int]:
    """
    Pick the neighbor to forward to.

    Ties go to the lowest neighbor id.

    Returns:
        Neighbor id, or None if the table is empty
    """
    best_id = None
    best_score = None

    # items() is ascending by id, so strict > keeps the lowest id on ties
    for node_id, info in table.items():
        score = score_neighbor(info)
        if best_score is None or score > best_score:
            best_id = node_id
            best_score = score

    return best_id
