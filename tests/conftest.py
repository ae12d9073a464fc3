import pytest

from linksched import DRRScheduler, Flow, WFQScheduler, WRRScheduler


def load(flow, packets):
    for packet_id, length, arrival_time in packets:
        flow.add(packet_id, arrival_time, length)
    return flow


@pytest.fixture
def drr_reference():
    scheduler = DRRScheduler(1)
    scheduler.add_flow(load(Flow("1"), [("1_1", 3, 0), ("1_2", 4, 8)]), 3)
    scheduler.add_flow(load(Flow("2"), [("2_1", 3, 0), ("2_2", 1, 12)]), 2)
    scheduler.add_flow(load(Flow("3"), [("3_1", 6, 0), ("3_2", 1, 11)]), 5)
    return scheduler


def wfq_reference_flows():
    return [
        (load(Flow("1"), [("p1", 1, 0), ("p4", 1, 2), ("p6", 1, 5)]), 0.5),
        (load(Flow("2"), [("p2", 1, 0), ("p5", 1, 3), ("p9", 1, 7)]), 0.25),
        (load(Flow("3"), [("p3", 1, 0), ("p7", 1, 5), ("p8", 1, 6)]), 0.25),
    ]


@pytest.fixture
def make_wfq():
    def make(**kwargs):
        scheduler = WFQScheduler(1, **kwargs)
        for flow, weight in wfq_reference_flows():
            scheduler.add_flow(flow, weight)
        return scheduler

    return make


@pytest.fixture
def wrr_reference():
    scheduler = WRRScheduler(1)
    arrivals = [
        ([("p1", 0), ("p4", 1), ("p6", 2), ("p8", 4), ("p11", 6)], 2),
        ([("p2", 0), ("p5", 1), ("p9", 5), ("p13", 7)], 1),
        ([("p3", 0), ("p7", 2), ("p10", 5), ("p12", 6)], 1),
    ]
    for i, (packets, weight) in enumerate(arrivals, start=1):
        flow = Flow(str(i), fixed_length=1)
        for packet_id, arrival_time in packets:
            flow.add(packet_id, arrival_time)
        scheduler.add_flow(flow, weight)
    return scheduler
