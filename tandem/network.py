# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# network.py
# -----------------------------------------------------------------------------
# Purpose:
#   Router and event handlers for the two‑station tandem line. Decides what
#   happens on each arrival and service completion and hands customers from
#   station 1 to station 2.
#
# Design notes:
#   - One handler per EventKind, looked up in a table built at construction.
#   - The station‑2 arrival is normally triggered synchronously from the
#     station‑1 departure, carrying the customer's station‑1 arrival time.
#   - forwarding='completed' sends the customer who just finished station 1;
#     forwarding='legacy' keeps the older hand‑off rule, which only hands
#     over the head‑of‑line customer when station 1's queue is non‑empty.
#
# Usage:
#   router = Router(cfg, stations, metrics, rng)
#   env = Env(router)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from typing import Callable, Dict, Optional
from .queues import Env, EventKind
from .arrivals import expon

logger = logging.getLogger(__name__)

FORWARDING_POLICIES = ("completed", "legacy")


class Router:
    def __init__(self, cfg: dict, stations: Dict, metrics, rng):
        self.cfg = cfg
        self.S = stations
        self.M = metrics
        self.rng = rng
        sim_cfg = cfg["sim"]
        self.mean_interarrival = float(sim_cfg["mean_interarrival"])
        self.run_length = float(sim_cfg["run_length"])
        self.forwarding = sim_cfg.get("forwarding", "completed")
        if self.forwarding not in FORWARDING_POLICIES:
            raise ValueError(f"Unknown forwarding policy {self.forwarding!r}")
        self.handlers: Dict[EventKind, Callable[[Env], None]] = {
            EventKind.ARRIVAL1: self.on_arrival1,
            EventKind.ARRIVAL2: self.on_arrival2,
            EventKind.DEPARTURE1: self.on_departure1,
            EventKind.DEPARTURE2: self.on_departure2,
            EventKind.END_OF_RUN: self.on_end_of_run,
        }

    # Seed the calendar: first arrival and the end of the run
    def start(self, env: Env):
        env.schedule(EventKind.ARRIVAL1, env.t + expon(self.rng, self.mean_interarrival))
        env.schedule(EventKind.END_OF_RUN, self.run_length)

    def on_advance(self, env: Env, elapsed: float):
        self.M.update(elapsed, self.S)

    def dispatch(self, env: Env, kind: EventKind):
        self.handlers[kind](env)

    def _start_service(self, env: Env, sid: int, t_arrival: float, delay: float):
        st = self.S[sid]
        st.busy = True
        st.in_service = t_arrival
        self.M.note_service_start(sid, delay)
        env.schedule(st.departure, env.t + expon(self.rng, st.mean_service))

    def _arrive(self, env: Env, sid: int, t_arrival: float):
        st = self.S[sid]
        if st.busy:
            # push raises QueueOverflowError before anything is recorded
            st.queue.push(t_arrival, env.t)
            self.M.note_arrival(sid, queued=True)
        else:
            self.M.note_arrival(sid, queued=False)
            self._start_service(env, sid, t_arrival, 0.0)

    def _depart(self, env: Env, sid: int) -> Optional[float]:
        """Finish service at sid; start the next waiting customer if any.

        Returns the station‑1 arrival time of the customer who just left.
        """
        st = self.S[sid]
        leaving = st.in_service
        if len(st.queue) == 0:
            st.busy = False
            st.in_service = None
            env.cancel(st.departure)
        else:
            head = st.queue.pop()
            self._start_service(env, sid, head, env.t - head)
        return leaving

    def on_arrival1(self, env: Env):
        env.schedule(EventKind.ARRIVAL1, env.t + expon(self.rng, self.mean_interarrival))
        self._arrive(env, 1, env.t)

    def on_arrival2(self, env: Env, t_arrival: Optional[float] = None):
        """Arrival at station 2; standalone events use the current time."""
        if t_arrival is None:
            env.cancel(EventKind.ARRIVAL2)
            t_arrival = env.t
        self._arrive(env, 2, t_arrival)

    def on_departure1(self, env: Env):
        had_queue = len(self.S[1].queue) > 0
        leaving = self._depart(env, 1)
        if self.forwarding == "legacy":
            if not had_queue:
                return
            # Legacy hand‑off: the customer now starting station‑1 service
            handed = self.S[1].in_service
        else:
            handed = leaving if leaving is not None else env.t
        self.on_arrival2(env, t_arrival=handed)
        self.M.note_forward()

    def on_departure2(self, env: Env):
        self._depart(env, 2)

    def on_end_of_run(self, env: Env):
        logger.debug(
            "end of run at t=%.3f: %d delayed, queues %d/%d",
            env.t, self.M.customers_delayed, len(self.S[1].queue), len(self.S[2].queue),
        )
