#!/usr/bin/env python3
# protocols/base.py
"""
Classes de base pour les routeurs DTN (Delay-Tolerant Networking).
Définit les interfaces communes à tous les routeurs et la taxonomie des erreurs.

Un nœud ne lit jamais directement l'état interne d'un autre nœud: il passe par
les vues exposées par le routeur du pair (PredictabilityView, CommunityView).
"""
from abc import ABC, abstractmethod


class RoutingError(Exception):
    """Erreur racine du cœur de routage."""


class ConfigurationError(RoutingError, ValueError):
    """Paramètre de configuration absent ou invalide (fatal à la construction)."""


class ContractViolation(RoutingError, AssertionError):
    """
    Violation de contrat entre composants: message sans compteur de copies,
    ou routeur pair d'une stratégie incompatible.
    """


class PredictabilityView(ABC):
    """
    Vue en lecture seule sur les probabilités de livraison d'un nœud.
    """

    @abstractmethod
    def predictability_for(self, dest, now: float) -> float:
        """
        Retourne la probabilité de livraison vers dest (vieillie à l'instant now).

        Args:
            dest: identifiant du nœud destination
            now (float): temps de simulation courant

        Returns:
            float: probabilité entre 0.0 et 1.0, 0.0 si inconnue
        """

    @abstractmethod
    def snapshot_table(self, now: float) -> dict:
        """
        Retourne une copie de la table des probabilités (vieillie à l'instant now).

        Args:
            now (float): temps de simulation courant

        Returns:
            dict: {id_nœud: probabilité}
        """


class CommunityView(ABC):
    """
    Vue en lecture seule sur la communauté locale d'un nœud.
    """

    @abstractmethod
    def local_community(self) -> frozenset:
        """Retourne les membres de la communauté locale."""

    @abstractmethod
    def local_centrality(self) -> int:
        """Retourne la centralité locale (membres de la communauté rencontrés)."""

    @abstractmethod
    def global_centrality(self) -> int:
        """Retourne la centralité globale (pairs distincts rencontrés)."""


class DTNRouter(PredictabilityView, CommunityView):
    """
    Classe de base pour les routeurs DTN.
    Cette classe définit les points d'appel utilisés par le simulateur.
    """

    def __init__(self, settings):
        """
        Initialise un routeur DTN.

        Args:
            settings (RoutingSettings): paramètres de routage validés
        """
        self.settings = settings
        self.host = None

    def attach(self, host):
        """
        Associe le routeur à son nœud hôte.

        Args:
            host (Node): le nœud qui possède ce routeur
        """
        self.host = host

    @property
    def node_id(self):
        return self.host.id if self.host is not None else None

    def create_message(self, msg, now: float) -> bool:
        """Crée un nouveau message dans le buffer du nœud."""
        raise NotImplementedError("Cette méthode doit être implémentée par les sous-classes")

    def connection_up(self, con, peer_snapshot: dict, now: float):
        """Appelé à l'ouverture d'une connexion, avec l'instantané de la table du pair."""
        raise NotImplementedError("Cette méthode doit être implémentée par les sous-classes")

    def connection_down(self, con, now: float):
        """Appelé à la fermeture d'une connexion."""
        raise NotImplementedError("Cette méthode doit être implémentée par les sous-classes")

    def update(self, now: float):
        """Pas de routage périodique."""
        raise NotImplementedError("Cette méthode doit être implémentée par les sous-classes")

    def transfer_done(self, con, now: float):
        """Appelé côté émetteur quand un transfert se termine."""
        raise NotImplementedError("Cette méthode doit être implémentée par les sous-classes")

    def transfer_aborted(self, con, now: float):
        """Appelé côté émetteur quand un transfert est abandonné."""

    def receive_message(self, msg, from_id, split, now: float):
        """Appelé côté récepteur quand un transfert se termine."""
        raise NotImplementedError("Cette méthode doit être implémentée par les sous-classes")

    def replicate(self):
        """Retourne un nouveau routeur de même configuration, sans état."""
        return type(self)(self.settings)
