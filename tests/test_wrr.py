import pytest

from linksched import Flow, SchedulerStuckError, WRRScheduler


def test_wrr_reference_scenario(wrr_reference):
    wrr_reference.run()

    assert wrr_reference.timer == 16
    assert len(wrr_reference.output) == 13
    assert [p.id for p in wrr_reference.output] == [
        "p1", "p4", "p2", "p3", "p6", "p8", "p5",
        "p7", "p11", "p9", "p10", "p13", "p12",
    ]
    assert all(p.length == 1 for p in wrr_reference.output)


def test_wrr_serves_weight_packets_per_round():
    scheduler = WRRScheduler(1)
    for name, weight in [("a", 3), ("b", 1)]:
        flow = Flow(name, fixed_length=1)
        for n in range(6):
            flow.add(f"{name}{n}", 0)
        scheduler.add_flow(flow, weight)
    scheduler.run()

    # a reset tick follows every exhausted round
    assert [flow_index for flow_index, _ in scheduler.departures][:8] == [0, 0, 0, 1, 0, 0, 0, 1]


def test_wrr_skips_flows_without_eligible_packets():
    scheduler = WRRScheduler(1)
    late = Flow("late", fixed_length=1)
    late.add("l", 3)
    early = Flow("early", fixed_length=1)
    early.add("e", 0)
    scheduler.add_flow(late, 1)
    scheduler.add_flow(early, 1)
    scheduler.run()

    assert [p.id for p in scheduler.output] == ["e", "l"]


def test_wrr_normalizes_packet_length():
    scheduler = WRRScheduler(1)
    flow = Flow("a", fixed_length=2)
    flow.add("a1", 0, 50)
    scheduler.add_flow(flow, 1)
    scheduler.run()

    assert scheduler.output[0].length == 2
    assert scheduler.port.units_sent == 2


def test_wrr_waits_for_busy_port():
    scheduler = WRRScheduler(1)
    flow = Flow("a", fixed_length=3)
    flow.add("a1", 0)
    flow.add("a2", 0)
    scheduler.add_flow(flow, 2)
    scheduler.run()

    assert [t.admitted_at for t in scheduler.port.history] == [0, 3]
    assert scheduler.timer == 4


def test_wrr_requires_fixed_length_flows():
    with pytest.raises(ValueError):
        WRRScheduler(1).add_flow(Flow("a"), 1)


def test_wrr_aborts_when_tick_ceiling_is_exceeded():
    scheduler = WRRScheduler(1, max_ticks=10)
    flow = Flow("a", fixed_length=1)
    flow.add("a1", 100)
    scheduler.add_flow(flow, 1)

    with pytest.raises(SchedulerStuckError):
        scheduler.run()
