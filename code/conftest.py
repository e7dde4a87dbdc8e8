"""
Configuration pytest et fixtures partagées.
"""
import pytest

from models.connection import Connection
from models.message import Message
from models.node import Node
from protocols.router import SprayAndWaitRouter, exchange_contact
from protocols.settings import RoutingSettings


@pytest.fixture
def settings():
    """Paramètres de routage par défaut (6 copies, partage binaire)."""
    return RoutingSettings()


@pytest.fixture
def make_node(settings):
    """Fabrique de nœuds équipés d'un SprayAndWaitRouter."""
    def _make(node_id, node_settings=None, buffer_size=1_000_000):
        return Node(node_id, SprayAndWaitRouter(node_settings or settings), buffer_size)
    return _make


@pytest.fixture
def connect():
    """Ouvre une connexion entre deux nœuds et échange les tables de probabilités."""
    def _connect(a, b, now=0.0, speed=1000):
        con = Connection(a, b, speed)
        a.add_connection(con)
        b.add_connection(con)
        exchange_contact(con, now)
        return con
    return _connect


@pytest.fixture
def make_message():
    """Fabrique de messages."""
    def _make(msg_id, source, destination, size=1000, created_at=0.0, ttl=None):
        return Message(msg_id, source, destination, size, created_at=created_at, ttl=ttl)
    return _make
