# simulation/engine.py
"""
Moteur de simulation à pas fixe rejouant une trace de contacts.

À chaque pas de temps:
1. Ouverture / fermeture des contacts de la trace (abandon des transferts en cours)
2. Création des messages
3. Fin des transferts terminés (partage des copies, livraison)
4. Suppression des messages expirés (TTL)
5. Pas de routage de chaque nœud
"""
import logging

from tqdm import tqdm

from models.connection import Connection
from models.message import Message
from models.node import Node
from protocols.router import SprayAndWaitRouter, exchange_contact
from simulation.clock import SimClock

logger = logging.getLogger(__name__)


class Simulation:
    """
    Simulation d'un réseau DTN à partir d'une trace de contacts.
    """

    def __init__(self, settings, contacts, messages=(), node_ids=None, buffer_size=5_000_000,
                 transmit_speed=250_000, update_interval=1.0, end_time=None, clock=None,
                 router=None):
        """
        Initialise la simulation.

        Args:
            settings (RoutingSettings): paramètres de routage
            contacts (list[ContactEvent]): trace de contacts
            messages (list[MessageEvent], optional): créations de messages
            node_ids (list, optional): nœuds simulés (par défaut ceux de la trace)
            buffer_size (int): taille du buffer de chaque nœud en octets
            transmit_speed (float): débit des connexions en octets par seconde
            update_interval (float): pas de la simulation en secondes
            end_time (float, optional): fin de la simulation (par défaut dernier événement)
            clock (SimClock, optional): horloge injectée
            router (DTNRouter, optional): prototype de routeur répliqué sur chaque nœud
        """
        if update_interval <= 0:
            raise ValueError("update_interval doit être > 0")

        self.settings = settings
        self.contacts = sorted(contacts, key=lambda ev: ev.time)
        self.messages = sorted(messages, key=lambda ev: ev.time)
        self.transmit_speed = transmit_speed
        self.update_interval = float(update_interval)
        self.clock = clock if clock is not None else SimClock()
        self.prototype = router if router is not None else SprayAndWaitRouter(settings)

        if node_ids is None:
            node_ids = {}
            for ev in self.contacts:
                node_ids.setdefault(ev.a, None)
                node_ids.setdefault(ev.b, None)
            for ev in self.messages:
                node_ids.setdefault(ev.source, None)
                node_ids.setdefault(ev.destination, None)
        self.nodes = {nid: Node(nid, self.prototype.replicate(), buffer_size) for nid in node_ids}

        if end_time is None:
            times = [ev.time for ev in self.contacts] + [ev.time for ev in self.messages]
            end_time = max(times) if times else 0.0
        self.end_time = float(end_time)

        self.listeners = []
        self._next_contact = 0
        self._next_message = 0

    def __str__(self):
        return f"Simulation de {len(self.nodes)} nœuds jusqu'à t={self.end_time} ({self.prototype})"

    def add_listener(self, listener):
        self.listeners.append(listener)
        return listener

    def node(self, node_id) -> Node:
        return self.nodes[node_id]

    def _notify(self, event, *args):
        for listener in self.listeners:
            getattr(listener, event)(*args)

    #*************** Boucle principale ****************
    def run(self, progress=False):
        """
        Exécute la simulation jusqu'à end_time.

        Args:
            progress (bool): affiche une barre de progression

        Returns:
            Simulation: la simulation terminée
        """
        steps = int(round((self.end_time - self.clock.time) / self.update_interval)) + 1
        logger.info("Démarrage: %s", self)
        for _ in tqdm(range(max(steps, 0)), desc="Simulation", unit="pas", disable=not progress):
            self.step()
            self.clock.advance(self.update_interval)
        logger.info("Simulation terminée à t=%s", self.clock.time)
        return self

    def step(self):
        """Exécute un pas de simulation à l'instant courant de l'horloge."""
        now = self.clock.time
        self._process_contacts(now)
        self._create_messages(now)
        self._finish_transfers(now)
        self._expire_messages(now)

        for node in self.nodes.values():
            offer = node.router.update(now)
            if offer is not None:
                self._notify('transfer_started', offer.message,
                             node.id, offer.connection.other_node(node).id, now)
        self._collect_drops(now)

    #*************** Contacts ****************
    def _process_contacts(self, now):
        while self._next_contact < len(self.contacts) and self.contacts[self._next_contact].time <= now:
            ev = self.contacts[self._next_contact]
            self._next_contact += 1
            if ev.a == ev.b:
                continue
            if ev.up:
                self.connection_up(ev.a, ev.b, now)
            else:
                self.connection_down(ev.a, ev.b, now)

    def connection_up(self, a_id, b_id, now):
        """
        Ouvre une connexion entre deux nœuds.

        Args:
            a_id: premier nœud
            b_id: second nœud
            now (float): temps de simulation courant

        Returns:
            Connection: la connexion ouverte (None si déjà ouverte)
        """
        a, b = self.nodes[a_id], self.nodes[b_id]
        if a.connection_to(b_id) is not None:
            return None
        con = Connection(a, b, self.transmit_speed)
        a.add_connection(con)
        b.add_connection(con)
        exchange_contact(con, now)
        logger.debug("t=%s contact %s <-> %s ouvert", now, a_id, b_id)
        return con

    def connection_down(self, a_id, b_id, now):
        """
        Ferme la connexion entre deux nœuds; un transfert en cours est abandonné.

        Args:
            a_id: premier nœud
            b_id: second nœud
            now (float): temps de simulation courant
        """
        a, b = self.nodes[a_id], self.nodes[b_id]
        con = a.connection_to(b_id)
        if con is None:
            return
        if con.is_transferring():
            sender = con.sender
            receiver = con.other_node(sender)
            sender.router.transfer_aborted(con, now)
            msg = con.abort_transfer()
            sender.buffer.protected.discard(msg.id)
            self._notify('transfer_aborted', msg, sender.id, receiver.id, now)
        con.set_down()
        a.remove_connection(con)
        b.remove_connection(con)
        a.router.connection_down(con, now)
        b.router.connection_down(con, now)
        logger.debug("t=%s contact %s <-> %s fermé", now, a_id, b_id)

    #*************** Messages ****************
    def _create_messages(self, now):
        while self._next_message < len(self.messages) and self.messages[self._next_message].time <= now:
            ev = self.messages[self._next_message]
            self._next_message += 1
            self.create_message(ev, now)

    def create_message(self, ev, now):
        """
        Crée un message sur son nœud source.

        Args:
            ev (MessageEvent): création à effectuer
            now (float): temps de simulation courant

        Returns:
            Message: le message créé, ou None s'il a été refusé
        """
        source = self.nodes[ev.source]
        msg = Message(ev.id, ev.source, ev.destination, ev.size, created_at=now, ttl=ev.ttl)
        if not source.router.create_message(msg, now):
            return None
        source.seen.add(msg.id)
        self._notify('message_created', msg, now)
        return msg

    def _finish_transfers(self, now):
        done = []
        for node in self.nodes.values():
            for con in node.connections:
                if con.sender is node and con.is_transfer_done(now):
                    done.append(con)

        for con in done:
            sender = con.sender
            receiver = con.other_node(sender)
            split = sender.router.transfer_done(con, now)
            msg = con.clear_transfer()
            sender.buffer.protected.discard(msg.id)
            first_delivery = msg.destination == receiver.id and msg.id not in receiver.delivered
            accepted = receiver.router.receive_message(msg, sender.id, split, now)
            receiver.seen.add(msg.id)
            self._notify('message_relayed', msg, sender.id, receiver.id, now,
                         first_delivery and accepted)

    def _expire_messages(self, now):
        for node in self.nodes.values():
            for msg in node.buffer.list_carried():
                if msg.is_expired(now) and msg.id not in node.buffer.protected:
                    node.buffer.delete_message(msg.id)
                    self._notify('message_dropped', msg, node.id, now, 'ttl')

    def _collect_drops(self, now):
        for node in self.nodes.values():
            while node.buffer.dropped:
                msg = node.buffer.dropped.pop(0)
                self._notify('message_dropped', msg, node.id, now, 'buffer')
