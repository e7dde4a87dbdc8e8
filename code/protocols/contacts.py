#!/usr/bin/env python3
# protocols/contacts.py
"""
Historique des contacts d'un nœud.

Les intervalles de contact sont calculés uniquement à partir des instants
d'ouverture et de fermeture de connexion enregistrés pour chaque pair.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class ContactRecord:
    """Intervalle de contact avec un pair.

    Attributes:
        peer: Identifiant du pair
        start: Instant d'ouverture de la connexion
        end: Instant de fermeture de la connexion (end >= start)
    """
    peer: object
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


class ContactHistory:
    """
    Séquences ordonnées de ContactRecord, une par pair.
    """

    def __init__(self):
        self.start_times = {}  # Contacts en cours: {pair: instant d'ouverture}
        self.history = {}      # {pair: [ContactRecord, ...]}

    def start(self, peer, now: float):
        """
        Enregistre l'ouverture d'un contact avec peer.

        Args:
            peer: identifiant du pair
            now (float): instant d'ouverture
        """
        self.start_times[peer] = now

    def end(self, peer, now: float):
        """
        Clôt le contact en cours avec peer.
        Les intervalles de durée nulle ne sont pas enregistrés.

        Args:
            peer: identifiant du pair
            now (float): instant de fermeture

        Returns:
            ContactRecord: l'intervalle enregistré, ou None
        """
        start = self.start_times.pop(peer, None)
        if start is None or now - start <= 0:
            return None

        record = ContactRecord(peer, start, now)
        self.history.setdefault(peer, []).append(record)
        return record

    def is_connected(self, peer) -> bool:
        return peer in self.start_times

    def count(self, peer) -> int:
        return len(self.history.get(peer, ()))

    def peers(self) -> list:
        return list(self.history)
