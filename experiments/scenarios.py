"""
experiments/scenarios.py

Holds scenario definitions (load levels and buffer sizes) to run against the
baseline config. Each entry is merged on top of config/baseline.yaml.
"""

from __future__ import annotations

BASELINE = {
    "name": "baseline",
    "overrides": {},  # override config keys here per scenario
}

# Station 2 is the bottleneck instead of station 1.
REVERSED_BOTTLENECK = {
    "name": "reversed_bottleneck",
    "overrides": {
        "service_means": {
            "station1": 0.3,
            "station2": 0.5,
        },
    },
}

HIGH_LOAD = {
    "name": "high_load",
    "overrides": {
        "sim": {
            "mean_interarrival": 1.0,
        },
        "service_means": {
            "station1": 0.9,
            "station2": 0.85,
        },
    },
}

# Historical hand-off rule: only customers who waited at station 1 reach station 2.
LEGACY_FORWARDING = {
    "name": "legacy_forwarding",
    "overrides": {
        "sim": {
            "forwarding": "legacy",
        },
    },
}

# Deliberately undersized buffers; expected to stop with a queue overflow,
# so it only runs when named explicitly (not part of --scenario all).
SMALL_BUFFER = {
    "name": "small_buffer",
    "in_all": False,
    "overrides": {
        "service_means": {
            "station1": 0.95,
        },
        "capacities": {
            "station1": 5,
            "station2": 5,
        },
    },
}

SCENARIOS = [BASELINE, REVERSED_BOTTLENECK, HIGH_LOAD, LEGACY_FORWARDING, SMALL_BUFFER]
