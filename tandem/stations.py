# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# stations.py
# -----------------------------------------------------------------------------
# Purpose:
#   Station state for the two servers in series: busy flag, bounded FIFO of
#   arrival timestamps, and the customer currently in service.
#
# Design notes:
#   - Stations are plain state holders; arrival/departure logic lives in the
#     Router (tandem.network) so the chaining between stages stays in one
#     place.
#   - Queue entries are station‑1 arrival timestamps; station 2 receives the
#     forwarded timestamp, not the hand‑off time.
#
# Usage:
#   from tandem.stations import make_stations
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Dict, Optional
from .queues import EventKind, FifoQueue

Q_LIMIT = 2500

class Station:
    """Single FIFO server with a capacity‑limited waiting line.

    Parameters
    ----------
    sid : int
        Station number (1 or 2).
    mean_service : float
        Mean of the exponential service time (minutes).
    q_limit : int
        Maximum number of customers waiting (excluding the one in service).
    departure : EventKind
        Calendar slot used for this station's service completions.
    """
    def __init__(self, sid: int, mean_service: float, q_limit: int, departure: EventKind):
        self.sid = sid
        self.mean_service = mean_service
        self.departure = departure
        self.queue = FifoQueue(sid, q_limit)
        self.busy: bool = False
        # station‑1 arrival time of the customer being served
        self.in_service: Optional[float] = None

    @property
    def q_limit(self) -> int:
        return self.queue.limit

    def __len__(self) -> int:
        return len(self.queue)

    def __repr__(self):
        state = "busy" if self.busy else "idle"
        return f"Station({self.sid}, {state}, queue={len(self.queue)})"


def make_stations(cfg: dict) -> Dict[int, Station]:
    """
    Build both stations from config. Mean service times and queue limits are
    read from the 'service_means' and 'capacities' sections.

    Returns
    -------
    dict[int, Station]
        Mapping station number -> Station, always {1: ..., 2: ...}.
    """
    means = cfg["service_means"]
    caps = cfg.get("capacities", {})
    S = {}
    S[1] = Station(1, float(means["station1"]), int(caps.get("station1", Q_LIMIT)), EventKind.DEPARTURE1)
    S[2] = Station(2, float(means["station2"]), int(caps.get("station2", Q_LIMIT)), EventKind.DEPARTURE2)
    return S
