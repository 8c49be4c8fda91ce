# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# config.py
# -----------------------------------------------------------------------------
# Purpose:
#   Load, merge, and validate the model configuration. Configs are nested
#   dicts read from YAML; scenarios are applied as recursive overrides.
#
# Design notes:
#   - load_params_file() also accepts the historical four‑number input file
#     (mean interarrival, mean service 1, mean service 2, run length).
#   - validate_cfg() fills defaults in place and raises ConfigError.
#
# Usage:
#   cfg = validate_cfg(apply_overrides(load_cfg(path), overrides))
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, math, os
from typing import Dict
import yaml

from .stations import Q_LIMIT
from .arrivals import DEFAULT_SEED, MODLUS
from .network import FORWARDING_POLICIES

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG = os.path.join(ROOT, "config", "baseline.yaml")


class ConfigError(ValueError):
    pass


def load_cfg(path: str = DEFAULT_CONFIG) -> Dict:
    with open(path, "r") as f:
        cfg = yaml.safe_load(f)
    if not isinstance(cfg, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return cfg


def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """Apply overrides (recursive merge) on top of the base config."""
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides)
    return new


def load_params_file(path: str) -> Dict:
    """Read the four whitespace‑separated inputs and return them as overrides."""
    with open(path, "r") as f:
        tokens = f.read().split()
    if len(tokens) < 4:
        raise ConfigError(f"{path}: expected 4 numbers, found {len(tokens)}")
    try:
        vals = [float(tok) for tok in tokens[:4]]
    except ValueError as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    return {
        "sim": {"mean_interarrival": vals[0], "run_length": vals[3]},
        "service_means": {"station1": vals[1], "station2": vals[2]},
    }


def _positive(section: Dict, key: str, where: str) -> float:
    if key not in section:
        raise ConfigError(f"missing {where}.{key}")
    try:
        val = float(section[key])
    except (TypeError, ValueError):
        raise ConfigError(f"{where}.{key} must be a number, got {section[key]!r}")
    if not math.isfinite(val) or val <= 0.0:
        raise ConfigError(f"{where}.{key} must be a positive finite number, got {val}")
    return val


def validate_cfg(cfg: Dict) -> Dict:
    """Check the four model inputs and fill defaults for everything else."""
    sim = cfg.setdefault("sim", {})
    means = cfg.setdefault("service_means", {})
    caps = cfg.setdefault("capacities", {})
    exp = cfg.setdefault("experiments", {})

    sim["mean_interarrival"] = _positive(sim, "mean_interarrival", "sim")
    sim["run_length"] = _positive(sim, "run_length", "sim")
    means["station1"] = _positive(means, "station1", "service_means")
    means["station2"] = _positive(means, "station2", "service_means")

    sim.setdefault("seed", DEFAULT_SEED)
    sim.setdefault("generator", "lcg")
    sim.setdefault("forwarding", "completed")
    if sim["generator"] not in ("lcg", "mersenne"):
        raise ConfigError(f"sim.generator must be 'lcg' or 'mersenne', got {sim['generator']!r}")
    if sim["forwarding"] not in FORWARDING_POLICIES:
        raise ConfigError(f"sim.forwarding must be one of {FORWARDING_POLICIES}, got {sim['forwarding']!r}")

    for name in ("station1", "station2"):
        limit = caps.setdefault(name, Q_LIMIT)
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
            raise ConfigError(f"capacities.{name} must be a non-negative integer, got {limit!r}")

    reps = exp.setdefault("replications", 10)
    if not isinstance(reps, int) or isinstance(reps, bool) or reps < 1:
        raise ConfigError(f"experiments.replications must be a positive integer, got {reps!r}")
    exp.setdefault("reseed_replications", False)
    exp.setdefault("halt_on_error", True)

    seed = sim["seed"]
    if not isinstance(seed, int) or isinstance(seed, bool):
        raise ConfigError(f"sim.seed must be an integer, got {seed!r}")
    if sim["generator"] == "lcg":
        # the LCG state must never be a multiple of the modulus
        seeds = range(seed, seed + reps) if exp["reseed_replications"] else (seed,)
        bad = [s for s in seeds if s % MODLUS == 0]
        if bad:
            raise ConfigError(f"sim.seed {bad[0]} is a multiple of {MODLUS}, which the lcg generator cannot use")
    return cfg
