# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Random variate sources for interarrival and service times: seeded
#   uniform(0,1) streams and the exponential transform used by the handlers.
#
# Design notes:
#   - Any object with a random() method returning values in (0,1) can be
#     plugged in as the stream.
#   - LCGStream is the prime‑modulus multiplicative generator (modulus
#     2**31 - 1, multiplier 630360016) used by the classic fixed‑run‑length
#     queueing programs; MersenneStream wraps the stdlib generator.
#
# Usage:
#   rng = make_rng(cfg); expon(rng, mean)
# -----------------------------------------------------------------------------

from __future__ import annotations
import math, random

MODLUS = 2147483647
MULT = 630360016
DEFAULT_SEED = 1973272912


class LCGStream:
    """Multiplicative LCG: z <- MULT * z mod MODLUS, u = ((z >> 7) | 1) / 2**24."""

    def __init__(self, seed: int = DEFAULT_SEED):
        self.seed(seed)

    def seed(self, seed: int):
        z = int(seed) % MODLUS
        if z == 0:
            raise ValueError("LCG seed must not be a multiple of 2**31 - 1")
        self.z = z

    def random(self) -> float:
        self.z = (self.z * MULT) % MODLUS
        # Keep 24 bits and force the low bit so u is never 0
        return ((self.z >> 7) | 1) / 16777216.0


class MersenneStream(random.Random):
    """Stdlib Mersenne Twister restricted to the open interval (0,1)."""

    def random(self) -> float:
        u = super().random()
        while u == 0.0:
            u = super().random()
        return u


def make_rng(cfg: dict):
    """Build the uniform stream named by cfg['sim']['generator'] (lcg|mersenne)."""
    sim_cfg = cfg.get("sim", {})
    kind = sim_cfg.get("generator", "lcg")
    seed = sim_cfg.get("seed", DEFAULT_SEED)
    if kind == "lcg":
        return LCGStream(seed)
    if kind == "mersenne":
        return MersenneStream(seed)
    raise ValueError(f"Unknown generator {kind!r} (expected 'lcg' or 'mersenne')")


def expon(rng, mean: float) -> float:
    """Exponential variate with the given mean."""
    return -mean * math.log(rng.random())
