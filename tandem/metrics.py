# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   Statistical accumulators for one replication: delays, the shared
#   customers‑delayed counter, and time‑weighted areas under the queue‑length
#   and server‑busy curves. summary() turns them into a ReplicationReport.
#
# Design notes:
#   - customers_delayed is shared by both stations and bumped on every
#     service start; averages divide each station's total delay by it.
#     Per‑station counts are kept separately in `starts`.
#   - Undefined ratios (nothing delayed, zero elapsed time) come out as NaN.
#
# Usage:
#   M = Metrics(); M.update(elapsed, stations); M.summary(env.t)
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict
import math

STATIONS = (1, 2)


def _ratio(num: float, den: float) -> float:
    return num / den if den > 0 else math.nan


@dataclass(frozen=True)
class ReplicationReport:
    avg_delay_q1: float
    avg_delay_q2: float
    avg_num_q1: float
    avg_num_q2: float
    utilization1: float
    utilization2: float
    customers_delayed: int
    sim_time: float
    # Diagnostics, not part of the text report
    starts1: int = 0
    starts2: int = 0
    arrivals1: int = 0
    forwarded: int = 0
    in_queue1: int = 0
    in_queue2: int = 0

    def as_dict(self) -> Dict:
        return asdict(self)


class Metrics:
    def __init__(self):
        self.customers_delayed = 0
        self.total_delay: Dict[int, float] = {s: 0.0 for s in STATIONS}
        self.area_queue: Dict[int, float] = {s: 0.0 for s in STATIONS}
        self.area_busy: Dict[int, float] = {s: 0.0 for s in STATIONS}
        self.starts: Dict[int, int] = {s: 0 for s in STATIONS}       # service starts per station
        self.arrivals: Dict[int, int] = {s: 0 for s in STATIONS}     # customers presented to each station
        self.queued: Dict[int, int] = {s: 0 for s in STATIONS}       # arrivals that had to wait
        self.forwarded = 0
        self.events = 0

    def update(self, elapsed: float, stations):
        """Add elapsed * state to each area; call before the handler mutates state."""
        self.events += 1
        for s in STATIONS:
            st = stations[s]
            self.area_queue[s] += len(st.queue) * elapsed
            if st.busy:
                self.area_busy[s] += elapsed

    def note_arrival(self, station: int, queued: bool):
        self.arrivals[station] += 1
        if queued:
            self.queued[station] += 1

    def note_service_start(self, station: int, delay: float):
        self.total_delay[station] += delay
        self.customers_delayed += 1
        self.starts[station] += 1

    def note_forward(self):
        self.forwarded += 1

    def summary(self, now: float, stations=None) -> ReplicationReport:
        n = self.customers_delayed
        in_queue = {s: (len(stations[s].queue) if stations else 0) for s in STATIONS}
        return ReplicationReport(
            avg_delay_q1=_ratio(self.total_delay[1], n),
            avg_delay_q2=_ratio(self.total_delay[2], n),
            avg_num_q1=_ratio(self.area_queue[1], now),
            avg_num_q2=_ratio(self.area_queue[2], now),
            utilization1=_ratio(self.area_busy[1], now),
            utilization2=_ratio(self.area_busy[2], now),
            customers_delayed=n,
            sim_time=now,
            starts1=self.starts[1],
            starts2=self.starts[2],
            arrivals1=self.arrivals[1],
            forwarded=self.forwarded,
            in_queue1=in_queue[1],
            in_queue2=in_queue[2],
        )
