# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# queues.py
# -----------------------------------------------------------------------------
# Purpose:
#   Discrete‑event primitives for the tandem model: the event kinds, the event
#   calendar, a bounded FIFO of arrival timestamps, and Env (clock + driver
#   loop) which owns all per‑replication state.
#
# Design notes:
#   - The calendar holds at most one pending time per event kind; None means
#     "not scheduled". Ties go to the lowest EventKind ordinal.
#   - Handlers are delegated to env.router (defined in tandem.network).
#
# Usage:
#   from tandem.queues import Env, EventCalendar, EventKind, FifoQueue
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from collections import deque
from enum import IntEnum
from typing import Deque, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class EventKind(IntEnum):
    ARRIVAL1 = 1
    ARRIVAL2 = 2
    DEPARTURE1 = 3
    DEPARTURE2 = 4
    END_OF_RUN = 5


class SimulationError(RuntimeError):
    """Fatal simulation‑consistency error; aborts the run."""
    exit_code = 1

    def __init__(self, message: str, time: float):
        super().__init__(message)
        self.time = time


class EmptyCalendarError(SimulationError):
    exit_code = 1

    def __init__(self, time: float):
        super().__init__(f"Event list empty at time {time:f}", time)


class QueueOverflowError(SimulationError):
    """A station queue would hold more than its fixed capacity."""
    exit_code = 2

    def __init__(self, time: float, station: int, length: int):
        super().__init__(
            f"Overflow of the queue at station {station} at time {time:f} "
            f"(length {length})",
            time,
        )
        self.station = station
        self.length = length


class EventCalendar:
    """Next scheduled time for each EventKind."""

    def __init__(self):
        self._times: Dict[EventKind, Optional[float]] = {k: None for k in EventKind}

    def schedule(self, kind: EventKind, t: float):
        self._times[kind] = t

    def cancel(self, kind: EventKind):
        self._times[kind] = None

    def scheduled(self, kind: EventKind) -> Optional[float]:
        return self._times[kind]

    def next_event(self, now: float = 0.0) -> Tuple[EventKind, float]:
        """Return (kind, time) of the earliest pending event.

        Kinds are scanned in ordinal order with a strict comparison, so the
        lowest ordinal wins a tie. ``now`` is only used to report the failure
        time when nothing is scheduled.
        """
        best: Optional[EventKind] = None
        best_t = 0.0
        for kind in EventKind:
            t = self._times[kind]
            if t is None:
                continue
            if best is None or t < best_t:
                best, best_t = kind, t
        if best is None:
            raise EmptyCalendarError(now)
        return best, best_t


class FifoQueue:
    """FIFO of arrival timestamps with a hard capacity ``limit``."""

    def __init__(self, station: int, limit: int):
        self.station = station
        self.limit = limit
        self._items: Deque[float] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def push(self, t_arrival: float, now: float):
        if len(self._items) >= self.limit:
            raise QueueOverflowError(now, self.station, len(self._items) + 1)
        self._items.append(t_arrival)

    def pop(self) -> float:
        return self._items.popleft()

    def head(self) -> Optional[float]:
        return self._items[0] if self._items else None


class Env:
    """Per‑replication state: clock, calendar, and a router hook.

    Attributes
    ----------
    t : float
        Simulation clock (minutes).
    t_last : float
        Time of the previous state change; always <= t.
    calendar : EventCalendar
        Pending time per event kind.
    router : object
        Owns the stations and metrics; provides dispatch(env, kind) and
        on_advance(env, elapsed).
    trace : list[tuple[float, EventKind]] | None
        When enabled, every processed event in order.
    """
    def __init__(self, router, trace: bool = False):
        self.t: float = 0.0
        self.t_last: float = 0.0
        self.calendar = EventCalendar()
        self.router = router
        self.trace: Optional[List[Tuple[float, EventKind]]] = [] if trace else None

    def schedule(self, kind: EventKind, t: float):
        self.calendar.schedule(kind, t)

    def cancel(self, kind: EventKind):
        self.calendar.cancel(kind)

    def advance(self, t: float) -> float:
        """Move the clock to t and return the elapsed interval."""
        if t < self.t:
            raise SimulationError(f"Clock moved backwards from {self.t:f} to {t:f}", self.t)
        elapsed = t - self.t
        self.t_last = self.t
        self.t = t
        return elapsed

    def run(self):
        """Process events until END_OF_RUN has been handled."""
        while True:
            kind, t = self.calendar.next_event(self.t)
            elapsed = self.advance(t)
            # Areas integrate the state that held during the elapsed interval
            self.router.on_advance(self, elapsed)
            if self.trace is not None:
                self.trace.append((t, kind))
            logger.debug("t=%.6f %s", t, kind.name)
            self.router.dispatch(self, kind)
            if kind is EventKind.END_OF_RUN:
                return
