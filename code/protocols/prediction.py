#!/usr/bin/env python3
# protocols/prediction.py
"""
Estimation des probabilités de livraison PRoPHET (Probabilistic Routing Protocol
using History of Encounters and Transitivity).

Principe:
1. Chaque nœud maintient une table P(A,X) qui estime la probabilité que A puisse
   livrer un message à X.
2. Cette table est mise à jour selon trois règles:
   - Rencontre directe (mode 'average'): moyenne pondérée entre P_init et
     P_boost = P_init + (1 - P_init) * P_init, pondérée par l'instant de première
     rencontre t1 et le temps écoulé depuis t2:
     P(A,B) = (P_init * t1 + P_boost * t2) / (t1 + t2)
   - Rencontre directe (mode 'classic'): P(A,B) = P(A,B)_ancien + (1 - P(A,B)_ancien) * P_init
   - Vieillissement: P(A,X) = P(A,X)_ancien * γ^k où k est le nombre d'unités de temps écoulées
   - Transitivité: P(A,C) = P(A,C)_ancien + (1 - P(A,C)_ancien) * P(A,B) * P(B,C) * β
3. Toute lecture est précédée d'un vieillissement de la table complète.

Référence: Lindgren, A., Doria, A., & Schelén, O. (2003).
"Probabilistic routing in intermittently connected networks"
ACM SIGMOBILE mobile computing and communications review, 7(3), 19-20.
"""
import logging
from dataclasses import dataclass

from protocols.base import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class PredictabilityEntry:
    """Entrée de la table des probabilités.

    Attributes:
        peer: Identifiant du nœud visé
        value: Probabilité de livraison
        last_aged: Dernier instant de vieillissement de la valeur
    """
    peer: object
    value: float
    last_aged: float


def clamp(value: float) -> float:
    """Borne une probabilité dans l'intervalle [0, 1]."""
    return min(1.0, max(0.0, value))


class PredictabilityTable:
    """
    Table des probabilités de livraison d'un nœud: au plus une entrée par pair.
    """

    def __init__(self, gamma: float, seconds_in_time_unit: float):
        """
        Initialise une table vide.

        Args:
            gamma (float): facteur de vieillissement
            seconds_in_time_unit (float): durée d'une unité de temps
        """
        if not seconds_in_time_unit or seconds_in_time_unit <= 0:
            raise ConfigurationError("seconds_in_time_unit doit être > 0")
        self.gamma = gamma
        self.seconds_in_time_unit = seconds_in_time_unit
        self.entries = {}
        self.last_aged = 0.0

    def __len__(self):
        return len(self.entries)

    def __contains__(self, peer):
        return peer in self.entries

    def age(self, now: float):
        """
        Applique le vieillissement à toutes les entrées.
        Sans temps écoulé depuis le dernier passage, l'appel est sans effet.

        Args:
            now (float): temps de simulation courant
        """
        elapsed = now - self.last_aged
        if elapsed <= 0:
            return

        mult = self.gamma ** (elapsed / self.seconds_in_time_unit)
        for entry in self.entries.values():
            entry.value *= mult
            entry.last_aged = now
        self.last_aged = now

    def get(self, peer) -> float:
        entry = self.entries.get(peer)
        return entry.value if entry is not None else 0.0

    def put(self, peer, value: float, now: float):
        """
        Écrit la probabilité d'un pair, bornée dans [0, 1].

        Args:
            peer: identifiant du pair
            value (float): nouvelle probabilité
            now (float): temps de simulation courant
        """
        entry = self.entries.get(peer)
        if entry is None:
            self.entries[peer] = PredictabilityEntry(peer, clamp(value), now)
        else:
            entry.value = clamp(value)
            entry.last_aged = now

    def snapshot(self) -> dict:
        return {peer: entry.value for peer, entry in self.entries.items()}


class PredictabilityEstimator:
    """
    Met à jour la table des probabilités d'un nœud lors des contacts.

    Le nœud ne lit la table d'un pair qu'à travers un instantané (copie) pris
    avant que l'un ou l'autre côté du contact ne soit mis à jour.
    """

    def __init__(self, owner, settings):
        """
        Args:
            owner: identifiant du nœud propriétaire de la table
            settings (RoutingSettings): paramètres de routage
        """
        self.owner = owner
        self.p_init = settings.p_init
        self.beta = settings.beta
        self.mode = settings.prediction_mode
        self.table = PredictabilityTable(settings.gamma, settings.seconds_in_time_unit)
        # Instant de première rencontre de chaque pair (mode 'average')
        self.first_seen = {}

    @property
    def p_boost(self) -> float:
        return self.p_init + (1 - self.p_init) * self.p_init

    def on_contact_up(self, peer, peer_snapshot: dict, now: float):
        """
        Met à jour la table lors d'une rencontre avec peer.

        Args:
            peer: identifiant du pair rencontré
            peer_snapshot (dict): table du pair, prise avant le contact
            now (float): temps de simulation courant
        """
        self.table.age(now)
        self.update_direct(peer, now)
        self.update_transitive(peer, peer_snapshot, now)

    def update_direct(self, peer, now: float):
        """
        Mise à jour directe de P(A,B) lors d'une rencontre.

        Args:
            peer: identifiant du pair rencontré
            now (float): temps de simulation courant
        """
        self.table.age(now)
        if self.mode == 'classic':
            old_prob = self.table.get(peer)
            new_prob = old_prob + (1 - old_prob) * self.p_init
        else:
            t1 = self.first_seen.setdefault(peer, now)
            t2 = now - t1
            if t1 + t2 == 0:
                new_prob = self.p_init
            else:
                new_prob = (self.p_init * t1 + self.p_boost * t2) / (t1 + t2)

        self.table.put(peer, new_prob, now)
        logger.debug("t=%s P(%s,%s)=%.4f (direct)", now, self.owner, peer, self.table.get(peer))

    def update_transitive(self, peer, peer_snapshot: dict, now: float):
        """
        Mise à jour transitive: A rencontre B qui a une probabilité P(B,C) de
        rencontrer C. Une entrée existante ne peut pas diminuer.

        Args:
            peer: identifiant du pair rencontré (B)
            peer_snapshot (dict): table du pair {C: P(B,C)}
            now (float): temps de simulation courant
        """
        p_ab = self.predictability_for(peer, now)
        for other, p_bc in peer_snapshot.items():
            if other == self.owner or other == peer:
                continue
            p_ac = self.table.get(other)
            self.table.put(other, p_ac + (1 - p_ac) * p_ab * p_bc * self.beta, now)

    def predictability_for(self, dest, now: float) -> float:
        """
        Retourne P(A,dest) après vieillissement, 0.0 si aucune entrée.

        Args:
            dest: identifiant de la destination
            now (float): temps de simulation courant

        Returns:
            float: probabilité entre 0 et 1
        """
        self.table.age(now)
        return self.table.get(dest)

    def snapshot(self, now: float) -> dict:
        self.table.age(now)
        return self.table.snapshot()
