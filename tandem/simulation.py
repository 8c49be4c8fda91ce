# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   Simulate replications of the tandem line: build stations, router and
#   metrics, seed the calendar, run the event loop until the end‑of‑run
#   event, and return the report values.
#
# Design notes:
#   - Every replication gets fresh stations/metrics/Env; only the uniform
#     stream is carried over (unless reseed=True), so replications use
#     successive segments of one stream.
#   - Fatal errors abort the whole run unless halt_on_error=False, in which
#     case the failed replication is returned as a ReplicationFailure.
#
# Usage:
#   from tandem.simulation import run_replications
#   reports = run_replications(cfg, replications=10)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union
from .queues import Env, SimulationError
from .stations import make_stations
from .network import Router
from .metrics import Metrics, ReplicationReport
from .arrivals import make_rng, DEFAULT_SEED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplicationFailure:
    replication: int
    error: SimulationError


def build_env(cfg: dict, rng, trace: bool = False) -> Env:
    """Fresh per‑replication state with the calendar already seeded."""
    stations = make_stations(cfg)
    M = Metrics()
    router = Router(cfg, stations, M, rng)
    env = Env(router, trace=trace)
    router.start(env)
    return env


def run_one_replication(cfg: dict, rng=None, trace: bool = False) -> ReplicationReport:
    if rng is None:
        rng = make_rng(cfg)
    env = build_env(cfg, rng, trace=trace)
    env.run()
    router = env.router
    return router.M.summary(env.t, router.S)


def run_replications(
    cfg: dict,
    replications: int = 10,
    rng=None,
    reseed: bool = False,
    halt_on_error: bool = True,
    callback: Optional[Callable] = None,
) -> List[Union[ReplicationReport, ReplicationFailure]]:
    """
    Run `replications` independent replications back to back.

    With reseed=False one uniform stream continues across replications; with
    reseed=True replication i is seeded with (seed + i). callback(rep, result)
    is invoked after each replication (rep counts from 1), failures included,
    before a fatal error is re-raised.
    """
    if replications < 1:
        raise ValueError("replications must be >= 1")
    base_seed = int(cfg.get("sim", {}).get("seed", DEFAULT_SEED))
    if rng is None and not reseed:
        rng = make_rng(cfg)
    results: List[Union[ReplicationReport, ReplicationFailure]] = []
    for rep in range(replications):
        rep_rng = rng
        if reseed:
            rep_cfg = {**cfg, "sim": {**cfg.get("sim", {}), "seed": base_seed + rep}}
            rep_rng = make_rng(rep_cfg)
        try:
            report = run_one_replication(cfg, rep_rng)
        except SimulationError as err:
            logger.error("replication %d failed: %s", rep + 1, err)
            failure = ReplicationFailure(rep + 1, err)
            if callback is not None:
                callback(rep + 1, failure)
            if halt_on_error:
                raise
            results.append(failure)
            continue
        logger.info(
            "replication %d: util1=%.3f util2=%.3f delayed=%d",
            rep + 1, report.utilization1, report.utilization2, report.customers_delayed,
        )
        if callback is not None:
            callback(rep + 1, report)
        results.append(report)
    return results
