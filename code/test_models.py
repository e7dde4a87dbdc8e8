#!/usr/bin/env python3
# test_models.py
"""
Tests des messages, buffers, connexions et nœuds.
"""
import pytest

from models.buffer import MessageBuffer
from models.connection import Connection
from models.message import Message
from protocols.negotiation import Offer, SPRAY


def test_message_properties():
    msg = Message('M1', 'A', 'B', 100)
    msg.add_property('copies', 4)

    with pytest.raises(ValueError):
        msg.add_property('copies', 2)
    with pytest.raises(KeyError):
        msg.update_property('other', 1)

    msg.update_property('copies', 2)
    assert msg.get_property('copies') == 2
    assert msg.get_property('other') is None


def test_replicated_message_is_independent():
    msg = Message('M1', 'A', 'B', 100)
    msg.add_property('copies', 4)
    copy = msg.replicate()
    copy.update_property('copies', 1)
    copy.hops.append('C')

    assert msg.get_property('copies') == 4
    assert msg.hop_count == 0
    assert copy.hop_count == 1


def test_message_expiry():
    msg = Message('M1', 'A', 'B', 100, created_at=10, ttl=5)
    assert not msg.is_expired(14)
    assert msg.is_expired(15)
    assert not Message('M2', 'A', 'B', 100).is_expired(1e9)


def test_buffer_drops_oldest_unprotected():
    buffer = MessageBuffer(1000)
    old, mid = Message('M1', 'A', 'B', 400), Message('M2', 'A', 'B', 400)
    buffer.admit(old, 0.0)
    buffer.admit(mid, 1.0)
    buffer.protected.add('M1')

    assert buffer.make_room(400)
    assert buffer.has_message('M1')
    assert not buffer.has_message('M2')
    assert buffer.dropped == [mid]


def test_buffer_cannot_free_protected_messages():
    buffer = MessageBuffer(1000)
    buffer.admit(Message('M1', 'A', 'B', 800), 0.0)
    buffer.protected.add('M1')

    assert not buffer.make_room(400)
    assert not buffer.make_room(2000)
    assert buffer.free_space == 200


def test_delete_message_releases_protection():
    buffer = MessageBuffer(1000)
    buffer.admit(Message('M1', 'A', 'B', 100), 0.0)
    buffer.protected.add('M1')

    assert buffer.delete_message('M1', due_to_delivery=True).id == 'M1'
    assert 'M1' not in buffer.protected
    assert buffer.delete_message('M1') is None


def test_connection_transfer_timing(make_node):
    a, b = make_node('A'), make_node('B')
    con = Connection(a, b, 100)
    msg = Message('M1', 'A', 'Z', 500)

    assert con.other_node(a) is b
    assert con.start_transfer(a, msg, 10.0)
    assert not con.start_transfer(b, msg, 10.0)
    assert con.finish_time == pytest.approx(15.0)
    assert not con.is_transfer_done(14.0)
    assert con.is_transfer_done(15.0)
    assert con.message is not msg
    assert con.message.hops == ['A', 'B']

    assert con.clear_transfer().id == 'M1'
    assert not con.is_transferring()


def test_node_refuses_known_messages(make_node, make_message, connect):
    a, b = make_node('A'), make_node('B')
    con = connect(a, b)
    msg = make_message('M1', 'A', 'Z')
    a.router.create_message(msg, 0.0)
    b.seen.add('M1')

    assert not a.start_transfer(Offer(msg, con, SPRAY), 0.0)
    assert a.attempt_transfers([Offer(msg, con, SPRAY)], 0.0) is None


def test_node_starts_first_possible_offer(make_node, make_message, connect):
    a, b = make_node('A'), make_node('B')
    con = connect(a, b)
    first, second = make_message('M1', 'A', 'Z'), make_message('M2', 'A', 'Z')
    a.router.create_message(second, 0.0)
    offers = [Offer(first, con, SPRAY), Offer(second, con, SPRAY)]

    started = a.attempt_transfers(offers, 0.0)

    assert started.message is second
    assert a.is_transferring() and b.is_transferring()
    assert 'M2' in a.buffer.protected


def test_deliver_detects_duplicates(make_node, make_message):
    b = make_node('B')
    msg = make_message('M1', 'A', 'B')

    assert b.deliver(msg, 5.0)
    assert not b.deliver(msg.replicate(), 6.0)
    assert b.has_message('M1')
