"""
pytest configuration for THOR tests.

Provides a controllable clock so neighbor expiry can be tested
without sleeping.
"""

import pytest

from thor.mesh.neighbor import NeighborTable
from thor.protocol import ThorNode


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def table(clock):
    return NeighborTable(clock=clock)


@pytest.fixture
def node(clock):
    return ThorNode(node_id=1, clock=clock)
