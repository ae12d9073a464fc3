from collections import Counter, defaultdict

import pytest

from linksched import DRRScheduler, Flow, SchedulerState


def test_drr_reference_scenario(drr_reference):
    drr_reference.run()

    assert drr_reference.timer == 15
    assert [p.id for p in drr_reference.output] == ["1_1", "2_1", "3_1", "2_2", "3_2", "1_2"]
    assert drr_reference.departures == [
        (0, "1_1"),
        (1, "2_1"),
        (2, "3_1"),
        (1, "2_2"),
        (2, "3_2"),
        (0, "1_2"),
    ]
    assert drr_reference.state is SchedulerState.TERMINAL
    assert drr_reference.port.empty()


def test_drr_flushes_last_packet_without_extra_ticks(drr_reference):
    drr_reference.run()
    last = drr_reference.port.departures[-1]
    assert last.packet.id == "1_2"
    assert last.admitted_at == 15
    assert last.departed_at == 15


def test_drr_serves_each_flow_at_most_once_per_round(drr_reference):
    drr_reference.run()

    rounds = defaultdict(list)
    for transmission in drr_reference.port.history:
        rounds[transmission.admitted_at].append(transmission.flow_index)
    for flows in rounds.values():
        assert max(Counter(flows).values()) == 1


def test_drr_waits_for_busy_port():
    scheduler = DRRScheduler(1)
    flow = Flow("a")
    flow.add("a_1", 0, 3)
    flow.add("a_2", 0, 3)
    scheduler.add_flow(flow, 3)
    scheduler.run()

    first, second = scheduler.port.history
    assert first.admitted_at == 1
    assert first.departed_at == 4
    assert second.admitted_at == 4
    assert scheduler.timer == 4


def test_drr_idle_flow_forfeits_credit():
    scheduler = DRRScheduler(1)
    flow = Flow("a")
    flow.add("a_1", 0, 1)
    flow.add("a_2", 10, 1)
    scheduler.add_flow(flow, 2)
    scheduler.run()

    assert scheduler.timer == 10
    # credit reset to 0 while idle, then 2 - 1 + 2
    assert scheduler.deficit_counters == [3]


def test_drr_accumulates_credit_for_long_packets():
    scheduler = DRRScheduler(1)
    flow = Flow("a")
    flow.add("a_1", 0, 5)
    scheduler.add_flow(flow, 1)
    scheduler.run()

    # deficit 1, 2, 3, 4 is not enough; the fifth round admits the packet
    assert scheduler.timer == 5
    assert scheduler.rounds == 5
    assert scheduler.port.history[0].admitted_at == 5


def test_drr_deficit_starts_at_weight():
    scheduler = DRRScheduler(1)
    scheduler.add_flow(Flow("a"), 4)
    scheduler.add_flow(Flow("b"), 7)
    assert scheduler.deficit_counters == [4, 7]


def test_drr_with_no_flows_finishes_immediately():
    scheduler = DRRScheduler(1)
    assert scheduler.run() == []
    assert scheduler.timer == 0
    assert scheduler.state is SchedulerState.TERMINAL


@pytest.mark.parametrize("weight", [0, -3])
def test_drr_rejects_non_positive_weight(weight):
    with pytest.raises(ValueError):
        DRRScheduler(1).add_flow(Flow(), weight)
