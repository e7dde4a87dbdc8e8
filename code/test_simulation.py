#!/usr/bin/env python3
# test_simulation.py
"""
Tests de bout en bout du moteur de simulation avec le routeur Spray-and-Wait.
"""
import pytest

from data.loader import ContactEvent, MessageEvent
from protocols.replication import MSG_COUNT_PROPERTY
from protocols.settings import RoutingSettings
from simulation.clock import SimClock
from simulation.engine import Simulation
from simulation.metrics import MessageStatsReport


def up(t, a, b):
    return ContactEvent(t, a, b, True)


def down(t, a, b):
    return ContactEvent(t, a, b, False)


def copies(sim, node_id, msg_id='M1'):
    msg = sim.node(node_id).buffer.get(msg_id)
    return None if msg is None else msg.get_property(MSG_COUNT_PROPERTY)


def build(contacts, messages, end_time, **kwargs):
    settings = kwargs.pop('settings', RoutingSettings())
    sim = Simulation(settings, contacts, messages, transmit_speed=1000,
                     end_time=end_time, **kwargs)
    report = sim.add_listener(MessageStatsReport())
    return sim, report


def test_copies_are_conserved_over_two_transfers():
    contacts = [up(0, 'A', 'B'), down(10, 'A', 'B'), up(20, 'A', 'C'), down(30, 'A', 'C')]
    messages = [MessageEvent(0, 'M1', 'A', 'Z', 1000)]
    sim, report = build(contacts, messages, end_time=40)
    sim.run()

    assert copies(sim, 'A') == 1
    assert copies(sim, 'B') == 3
    assert copies(sim, 'C') == 2
    assert copies(sim, 'A') + copies(sim, 'B') + copies(sim, 'C') == 6
    assert report.started == 2
    assert report.relayed == 2
    assert report.delivered == 0
    assert sim.node('B').buffer.get('M1').hops == ['A', 'B']


def test_direct_delivery():
    contacts = [up(0, 'A', 'B')]
    messages = [MessageEvent(0, 'M1', 'A', 'B', 1000)]
    sim, report = build(contacts, messages, end_time=5)
    sim.run()

    assert 'M1' in sim.node('B').delivered
    assert not sim.node('A').buffer.has_message('M1')
    assert report.delivered == 1
    assert report.delivery_ratio() == pytest.approx(1.0)
    assert report.overhead_ratio() == pytest.approx(0.0)
    assert report.latencies['M1'] == pytest.approx(1.0)
    assert report.hop_counts['M1'] == 1


def test_contact_down_aborts_transfer():
    contacts = [up(0, 'A', 'B'), down(2, 'A', 'B')]
    messages = [MessageEvent(0, 'M1', 'A', 'Z', 5000)]
    sim, report = build(contacts, messages, end_time=10)
    sim.run()

    assert report.started == 1
    assert report.aborted == 1
    assert report.relayed == 0
    assert copies(sim, 'A') == 6
    assert not sim.node('B').has_message('M1')
    assert 'M1' not in sim.node('A').buffer.protected


def test_two_hop_delivery_through_relay():
    contacts = [up(0, 'A', 'B'), down(5, 'A', 'B'), up(10, 'B', 'C')]
    messages = [MessageEvent(0, 'M1', 'A', 'C', 1000)]
    sim, report = build(contacts, messages, end_time=20)
    sim.run()

    assert report.delivered == 1
    assert report.hop_counts['M1'] == 2
    assert report.latencies['M1'] == pytest.approx(11.0)


def test_expired_messages_are_removed():
    messages = [MessageEvent(0, 'M1', 'A', 'B', 100, ttl=2)]
    sim, report = build([], messages, end_time=3, node_ids=['A', 'B'])
    sim.run()

    assert report.removed_ttl == 1
    assert not sim.node('A').buffer.has_message('M1')


def test_full_buffer_drops_oldest_message():
    messages = [MessageEvent(0, 'M1', 'A', 'B', 600), MessageEvent(1, 'M2', 'A', 'B', 600)]
    sim, report = build([], messages, end_time=2, node_ids=['A', 'B'], buffer_size=1000)
    sim.run()

    assert report.dropped == 1
    assert not sim.node('A').buffer.has_message('M1')
    assert sim.node('A').buffer.has_message('M2')


def test_message_larger_than_buffer_is_refused():
    messages = [MessageEvent(0, 'M1', 'A', 'B', 5000)]
    sim, report = build([], messages, end_time=1, node_ids=['A', 'B'], buffer_size=1000)
    sim.run()

    assert report.created == {}


def test_nodes_get_independent_routers():
    sim, _ = build([up(0, 'A', 'B')], [], end_time=0)
    assert sim.node('A').router is not sim.node('B').router
    assert sim.node('A').router.node_id == 'A'


def test_run_advances_clock_to_end_time():
    clock = SimClock()
    sim, _ = build([up(0, 'A', 'B')], [], end_time=5, clock=clock)
    sim.run()

    assert clock.time == pytest.approx(6.0)


def test_invalid_update_interval():
    with pytest.raises(ValueError):
        Simulation(RoutingSettings(), [], update_interval=0)


def test_clock_cannot_go_backwards():
    clock = SimClock(10)
    with pytest.raises(ValueError):
        clock.advance(-1)
    with pytest.raises(ValueError):
        clock.set_time(5)
    clock.advance(2)
    clock.reset()
    assert clock.time == 10.0


def meets_destination_then_relay():
    # B rencontre Z avant que A ne rencontre B: P(B,Z) > P(A,Z)
    return [up(0, 'B', 'Z'), down(5, 'B', 'Z'), up(10, 'A', 'B')]


def test_weighted_split_follows_predictabilities_at_completion():
    messages = [MessageEvent(0, 'M1', 'A', 'Z', 1000)]
    sim, report = build(meets_destination_then_relay(), messages, end_time=15,
                        settings=RoutingSettings(split_mode='weighted'))
    sim.run()

    # P(A,Z) = 0.75 * 0.25 * P(B,Z): B reçoit floor(6 / 1.1875) = 5 copies
    assert copies(sim, 'A') == 1
    assert copies(sim, 'B') == 5
    assert report.relayed == 1


def test_single_copy_handover_keeps_sender_copy():
    messages = [MessageEvent(0, 'M1', 'A', 'Z', 1000)]
    sim, report = build(meets_destination_then_relay(), messages, end_time=15,
                        settings=RoutingSettings(initial_copies=1))
    sim.run()

    assert report.relayed == 1
    assert copies(sim, 'A') == 1
    assert copies(sim, 'B') == 1


def test_single_copy_handover_deletes_sender_copy():
    messages = [MessageEvent(0, 'M1', 'A', 'Z', 1000)]
    sim, report = build(meets_destination_then_relay(), messages, end_time=15,
                        settings=RoutingSettings(initial_copies=1, delete_at_one_copy=True))
    sim.run()

    assert report.relayed == 1
    assert copies(sim, 'A') is None
    assert copies(sim, 'B') == 1


def test_single_copy_stays_without_better_peer():
    contacts = [up(0, 'A', 'B')]
    messages = [MessageEvent(0, 'M1', 'A', 'Z', 1000)]
    sim, report = build(contacts, messages, end_time=10,
                        settings=RoutingSettings(initial_copies=1))
    sim.run()

    assert report.started == 0
    assert copies(sim, 'A') == 1


def repeated(a, b, starts, length=5):
    events = []
    for t in starts:
        events += [up(t, a, b), down(t + length, a, b)]
    return events


@pytest.mark.parametrize("bias, first_peer", [('none', 'B'), ('community', 'C')])
def test_community_bias_sprays_to_members_first(bias, first_peer):
    contacts = repeated('A', 'C', [0, 10, 20]) + [up(40, 'A', 'B'), up(40, 'A', 'C')]
    messages = [MessageEvent(30, 'M1', 'A', 'Z', 1000)]
    sim, _ = build(contacts, messages, end_time=40, settings=RoutingSettings(bias=bias))
    sim.run()

    a = sim.node('A')
    assert a.router.local_community() == frozenset({'C'})
    assert a.connection_to(first_peer).is_transferring()


@pytest.mark.parametrize("bias, c_has_copy", [('none', True), ('bubble', False)])
def test_bubble_bias_targets_destination_community(bias, c_has_copy):
    contacts = repeated('B', 'Z', [0, 10, 20]) + [up(40, 'A', 'B'), up(40, 'A', 'C')]
    messages = [MessageEvent(0, 'M1', 'A', 'Z', 1000)]
    sim, _ = build(contacts, messages, end_time=45, settings=RoutingSettings(bias=bias))
    sim.run()

    assert 'Z' in sim.node('B').router.local_community()
    assert sim.node('B').buffer.has_message('M1')
    assert sim.node('C').buffer.has_message('M1') is c_has_copy
