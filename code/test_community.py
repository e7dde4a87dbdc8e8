#!/usr/bin/env python3
# test_community.py
"""
Tests de la détection de communauté et des biais de la phase de spray.
"""
from dataclasses import dataclass, field

import pytest

from models.message import Message
from protocols.community import (BubbleBias, CommunityBias, CommunityDetector, NoBias,
                                 make_bias)
from protocols.contacts import ContactHistory


@dataclass
class StubView:
    """Vue communautaire minimale d'un nœud."""
    node_id: str
    community: frozenset = field(default_factory=frozenset)
    local: int = 0
    glob: int = 0

    def local_community(self):
        return self.community

    def local_centrality(self):
        return self.local

    def global_centrality(self):
        return self.glob


def meet(detector, peer, times):
    for start, end in times:
        detector.on_contact_up(peer, start)
        detector.on_contact_down(peer, end)


def ids(ordered):
    return [pr.node_id for _, pr in ordered]


def test_peer_joins_community_after_threshold():
    det = CommunityDetector('A', threshold=3)
    meet(det, 'B', [(0, 10), (20, 30), (40, 50)])
    meet(det, 'C', [(0, 10), (20, 30)])

    assert det.is_member('B')
    assert not det.is_member('C')
    assert det.local_community() == frozenset({'B'})
    assert det.local_centrality() == 1
    assert det.global_centrality() == 2


def test_zero_length_contacts_are_ignored():
    det = CommunityDetector('A', threshold=2)
    meet(det, 'B', [(5, 5), (10, 10), (20, 20)])

    assert not det.is_member('B')
    assert det.global_centrality() == 0


def test_membership_is_never_removed():
    det = CommunityDetector('A', threshold=1)
    meet(det, 'B', [(0, 10)])
    meet(det, 'B', [(1000, 1000)])

    assert det.is_member('B')


def test_contact_history_records_intervals():
    history = ContactHistory()
    history.start('B', 0)
    assert history.is_connected('B')
    record = history.end('B', 10)
    assert not history.is_connected('B')
    assert record.duration == pytest.approx(10.0)

    history.start('B', 30)
    history.end('B', 50)

    assert history.count('B') == 2
    assert history.peers() == ['B']
    assert history.end('C', 10) is None


def test_no_bias_keeps_order():
    candidates = [(None, StubView('B')), (None, StubView('C'))]
    assert NoBias().order_spray(Message('M1', 'A', 'D', 10), StubView('A'), candidates) == candidates


def test_community_bias_puts_members_first():
    own = StubView('A', frozenset({'C'}))
    candidates = [(None, StubView('B')), (None, StubView('C')), (None, StubView('E'))]

    ordered = CommunityBias().order_spray(Message('M1', 'A', 'D', 10), own, candidates)
    assert ids(ordered) == ['C', 'B', 'E']


def test_bubble_moves_into_destination_community():
    msg = Message('M1', 'A', 'D', 10)
    candidates = [
        (None, StubView('P1', frozenset({'D'}), local=2)),
        (None, StubView('P2', frozenset({'D'}), local=5)),
        (None, StubView('P3', glob=10)),
    ]

    assert ids(BubbleBias().order_spray(msg, StubView('A'), candidates)) == ['P2', 'P1']

    own = StubView('A', frozenset({'D'}), local=3)
    assert ids(BubbleBias().order_spray(msg, own, candidates)) == ['P2']


def test_bubble_keeps_message_inside_own_community():
    msg = Message('M1', 'A', 'D', 10)
    own = StubView('A', frozenset({'D'}), local=3)
    candidates = [(None, StubView('P1', glob=10))]

    assert BubbleBias().order_spray(msg, own, candidates) == []


def test_bubble_climbs_global_centrality():
    msg = Message('M1', 'A', 'D', 10)
    own = StubView('A', frozenset({'P4'}), glob=4)
    candidates = [
        (None, StubView('P3', glob=5)),
        (None, StubView('P2', glob=9)),
        (None, StubView('P1', glob=2)),
        (None, StubView('P4', glob=6)),
    ]

    # P1 est moins central que A: le message ne redescend pas
    assert ids(BubbleBias().order_spray(msg, own, candidates)) == ['P4', 'P2', 'P3']


def test_bubble_never_climbs_to_less_central_peer():
    msg = Message('M1', 'A', 'D', 10)
    own = StubView('A', glob=10)
    candidates = [(None, StubView('P1', glob=2)), (None, StubView('P2', glob=10))]

    assert BubbleBias().order_spray(msg, own, candidates) == []


def test_make_bias():
    assert isinstance(make_bias('none'), NoBias)
    assert isinstance(make_bias('community'), CommunityBias)
    assert isinstance(make_bias('bubble'), BubbleBias)
