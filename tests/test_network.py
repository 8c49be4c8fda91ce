import pytest

from tandem.metrics import Metrics
from tandem.network import Router
from tandem.queues import EventKind, QueueOverflowError
from tandem.simulation import build_env
from tandem.stations import make_stations


def step(env):
    kind, t = env.calendar.next_event(env.t)
    env.router.on_advance(env, env.advance(t))
    env.router.dispatch(env, kind)
    return kind


def test_single_customer_traverses_both_stations(make_cfg, unit_rng):
    cfg = make_cfg(
        sim={"mean_interarrival": 10.0, "run_length": 100.0},
        service_means={"station1": 1.0, "station2": 1.0},
    )
    env = build_env(cfg, unit_rng)
    S, M = env.router.S, env.router.M

    assert step(env) is EventKind.ARRIVAL1
    assert env.t == pytest.approx(10.0)
    assert S[1].busy and M.customers_delayed == 1
    assert env.calendar.scheduled(EventKind.DEPARTURE1) == pytest.approx(11.0)
    assert env.calendar.scheduled(EventKind.ARRIVAL1) == pytest.approx(20.0)

    assert step(env) is EventKind.DEPARTURE1
    assert not S[1].busy
    assert env.calendar.scheduled(EventKind.DEPARTURE1) is None
    assert S[2].busy
    assert S[2].in_service == pytest.approx(10.0)
    assert env.calendar.scheduled(EventKind.DEPARTURE2) == pytest.approx(12.0)
    assert M.customers_delayed == 2
    assert M.total_delay == {1: 0.0, 2: 0.0}
    assert M.forwarded == 1

    assert step(env) is EventKind.DEPARTURE2
    assert not S[2].busy
    assert env.calendar.scheduled(EventKind.DEPARTURE2) is None


def test_legacy_forwarding_skips_customers_who_never_waited(make_cfg, unit_rng):
    cfg = make_cfg(
        sim={"mean_interarrival": 10.0, "run_length": 100.0, "forwarding": "legacy"},
        service_means={"station1": 1.0, "station2": 1.0},
    )
    env = build_env(cfg, unit_rng)
    step(env)
    assert step(env) is EventKind.DEPARTURE1
    assert not env.router.S[2].busy
    assert env.router.M.customers_delayed == 1
    assert env.router.M.forwarded == 0


def _queued_cfg(make_cfg, forwarding):
    return make_cfg(
        sim={"mean_interarrival": 1.0, "run_length": 100.0, "forwarding": forwarding},
        service_means={"station1": 2.5, "station2": 0.25},
    )


def test_queued_customer_delay_and_areas(make_cfg, unit_rng):
    env = build_env(_queued_cfg(make_cfg, "completed"), unit_rng)
    S, M = env.router.S, env.router.M
    kinds = [step(env) for _ in range(4)]
    assert kinds == [EventKind.ARRIVAL1] * 3 + [EventKind.DEPARTURE1]
    assert env.t == pytest.approx(3.5)

    assert M.total_delay[1] == pytest.approx(1.5)
    assert M.customers_delayed == 3
    assert M.starts == {1: 2, 2: 1}
    assert S[1].in_service == pytest.approx(2.0)
    assert len(S[1].queue) == 1
    # customer who arrived at t=1 finished station 1 and moved on
    assert S[2].in_service == pytest.approx(1.0)
    assert env.calendar.scheduled(EventKind.DEPARTURE1) == pytest.approx(6.0)
    assert env.calendar.scheduled(EventKind.DEPARTURE2) == pytest.approx(3.75)

    # areas reflect the state before each event
    assert M.area_busy[1] == pytest.approx(2.5)
    assert M.area_queue[1] == pytest.approx(2.0)
    assert M.area_busy[2] == 0.0


def test_legacy_forwarding_hands_over_head_of_line(make_cfg, unit_rng):
    env = build_env(_queued_cfg(make_cfg, "legacy"), unit_rng)
    for _ in range(4):
        step(env)
    S, M = env.router.S, env.router.M
    assert S[2].busy
    assert S[2].in_service == pytest.approx(2.0)
    assert M.customers_delayed == 3
    assert M.forwarded == 1


def test_station2_delay_uses_forwarded_timestamp(make_cfg, unit_rng):
    env = build_env(make_cfg(), unit_rng)
    router = env.router
    S, M = router.S, router.M
    env.advance(5.0)
    S[2].busy = True
    S[2].in_service = 0.0
    router.on_arrival2(env, t_arrival=1.0)
    assert len(S[2].queue) == 1
    assert (M.arrivals[2], M.queued[2]) == (1, 1)

    env.advance(6.0)
    router.on_departure2(env)
    assert M.total_delay[2] == pytest.approx(5.0)
    assert M.customers_delayed == 1
    assert S[2].busy and S[2].in_service == 1.0
    assert env.calendar.scheduled(EventKind.DEPARTURE2) == pytest.approx(6.3)


def test_standalone_arrival2_event(make_cfg, unit_rng):
    env = build_env(make_cfg(), unit_rng)
    env.schedule(EventKind.ARRIVAL2, 0.5)
    assert step(env) is EventKind.ARRIVAL2
    S = env.router.S
    assert S[2].busy and S[2].in_service == 0.5
    assert env.calendar.scheduled(EventKind.ARRIVAL2) is None
    assert not S[1].busy


def test_arrival1_overflow(make_cfg, unit_rng):
    cfg = make_cfg(
        sim={"mean_interarrival": 1.0, "run_length": 100.0},
        service_means={"station1": 100.0, "station2": 1.0},
        capacities={"station1": 2},
    )
    env = build_env(cfg, unit_rng)
    for _ in range(3):
        step(env)
    assert len(env.router.S[1].queue) == 2
    with pytest.raises(QueueOverflowError) as exc:
        step(env)
    assert exc.value.station == 1
    assert exc.value.length == 3
    assert exc.value.time == pytest.approx(4.0)
    assert len(env.router.S[1].queue) == 2



def test_station2_overflow_from_chained_departure(make_cfg, unit_rng):
    cfg = make_cfg(
        sim={"mean_interarrival": 1.0, "run_length": 100.0},
        service_means={"station1": 0.1, "station2": 1000.0},
        capacities={"station2": 4},
    )
    env = build_env(cfg, unit_rng)
    # customers 1..5 each pass station 1 in 0.1; 1 is served at station 2, 2..5 wait
    for _ in range(11):
        step(env)
    assert len(env.router.S[2].queue) == 4
    with pytest.raises(QueueOverflowError) as exc:
        step(env)
    assert exc.value.station == 2
    assert exc.value.length == 5
    assert exc.value.time == pytest.approx(6.1)
    assert len(env.router.S[2].queue) == 4
    assert not env.router.S[1].busy

def test_unknown_forwarding_policy(make_cfg, unit_rng):
    cfg = make_cfg()
    cfg["sim"]["forwarding"] = "teleport"
    with pytest.raises(ValueError):
        Router(cfg, make_stations(cfg), Metrics(), unit_rng)
