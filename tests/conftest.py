import math

import pytest

from tandem.config import apply_overrides, validate_cfg

BASE = {
    "sim": {
        "mean_interarrival": 1.0,
        "run_length": 1000.0,
        "seed": 1973272912,
        "generator": "lcg",
        "forwarding": "completed",
    },
    "service_means": {"station1": 0.5, "station2": 0.3},
    "capacities": {"station1": 2500, "station2": 2500},
    "experiments": {"replications": 10},
}


class FixedStream:
    """Always returns the same uniform; exp(-1) makes every variate equal its mean."""

    def __init__(self, u=math.exp(-1)):
        self.u = u

    def random(self):
        return self.u


@pytest.fixture
def make_cfg():
    def _make(**overrides):
        return validate_cfg(apply_overrides(BASE, overrides))
    return _make


@pytest.fixture
def unit_rng():
    return FixedStream()
