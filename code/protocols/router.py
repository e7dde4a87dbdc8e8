#!/usr/bin/env python3
# protocols/router.py
"""
Routeur Spray-and-Wait guidé par les probabilités de livraison PRoPHET.

Un seul routeur, paramétré par trois politiques injectées:
- la politique de partage des copies (binary, weighted, source),
- l'ordre de la file d'attente (fifo, random, largest_first, smallest_first),
- le biais communautaire de la phase de spray (none, community, bubble).
"""
import logging

from protocols.base import DTNRouter, ContractViolation, PredictabilityView
from protocols.community import CommunityDetector, make_bias
from protocols.negotiation import ForwardingNegotiator, QueueOrdering
from protocols.prediction import PredictabilityEstimator
from protocols.replication import ReplicationController

logger = logging.getLogger(__name__)


class SprayAndWaitRouter(DTNRouter):
    """
    Routeur Spray-and-Wait avec estimation PRoPHET et détection de communauté.
    """

    def __init__(self, settings):
        """
        Args:
            settings (RoutingSettings): paramètres de routage validés
        """
        super().__init__(settings)
        self.estimator = PredictabilityEstimator(None, settings)
        self.community = CommunityDetector(None, settings.community_threshold)
        self.replication = ReplicationController(settings)
        self.negotiator = ForwardingNegotiator(
            self.replication,
            QueueOrdering(settings.queue_mode, settings.seed),
            make_bias(settings.bias),
        )

    def __str__(self):
        s = self.settings
        return (f"SprayAndWaitRouter({s.split_mode}, L={s.initial_copies}, "
                f"queue={s.queue_mode}, bias={s.bias})")

    def attach(self, host):
        super().attach(host)
        self.estimator.owner = host.id
        self.community.owner = host.id

    #*************** Vues exposées aux pairs ****************
    def predictability_for(self, dest, now: float) -> float:
        return self.estimator.predictability_for(dest, now)

    def snapshot_table(self, now: float) -> dict:
        return self.estimator.snapshot(now)

    def local_community(self) -> frozenset:
        return self.community.local_community()

    def local_centrality(self) -> int:
        return self.community.local_centrality()

    def global_centrality(self) -> int:
        return self.community.global_centrality()

    #*************** Événements du simulateur ****************
    def create_message(self, msg, now: float) -> bool:
        """
        Crée un message: place dans le buffer et initialisation du compteur de copies.

        Args:
            msg (Message): nouveau message
            now (float): temps de simulation courant

        Returns:
            bool: True si le message a été accepté
        """
        buffer = self.host.buffer
        if not buffer.make_room(msg.size):
            logger.info("t=%s nœud %s: message %s trop grand pour le buffer", now, self.node_id, msg.id)
            return False
        self.replication.on_message_created(msg)
        buffer.admit(msg, now)
        return True

    def connection_up(self, con, peer_snapshot: dict, now: float):
        """
        Ouverture d'une connexion: mise à jour des probabilités et de l'historique.

        Args:
            con (Connection): connexion ouverte
            peer_snapshot (dict): table du pair prise avant le contact
            now (float): temps de simulation courant
        """
        peer = con.other_node(self.host).id
        self.estimator.on_contact_up(peer, peer_snapshot, now)
        self.community.on_contact_up(peer, now)

    def connection_down(self, con, now: float):
        peer = con.other_node(self.host).id
        self.community.on_contact_down(peer, now)

    def update(self, now: float):
        """
        Pas de routage: négocie les offres et les confie au mécanisme de transfert.

        Args:
            now (float): temps de simulation courant

        Returns:
            Offer: l'offre dont le transfert a démarré, ou None
        """
        if not self.host.can_start_transfer() or self.host.is_transferring():
            return None

        offers = self.negotiator.negotiate(self, now)
        if not offers:
            return None
        return self.host.attempt_transfers(offers, now)

    def transfer_done(self, con, now: float):
        """
        Fin d'un transfert côté émetteur: calcule et applique le partage des copies.

        Args:
            con (Connection): connexion portant le transfert
            now (float): temps de simulation courant

        Returns:
            Split: répartition des copies entre émetteur et récepteur
        """
        sent = con.message
        peer_router = con.other_node(self.host).router
        dest = sent.destination
        split = self.replication.split(sent,
                                       self.predictability_for(dest, now),
                                       peer_router.predictability_for(dest, now))

        msg = self.host.buffer.get(sent.id)
        if msg is None:
            # Message supprimé du buffer depuis le début du transfert
            return split

        if dest == peer_router.node_id:
            self.host.buffer.delete_message(msg.id, due_to_delivery=True)
            return split

        if self.replication.on_transfer_completed(msg, split, sender_side=True) <= 0:
            self.host.buffer.delete_message(msg.id, due_to_delivery=False)
        return split

    def transfer_aborted(self, con, now: float):
        logger.debug("t=%s nœud %s: transfert de %s abandonné", now, self.node_id, con.message.id)

    def receive_message(self, msg, from_id, split, now: float) -> bool:
        """
        Fin d'un transfert côté récepteur.

        Args:
            msg (Message): copie reçue
            from_id: identifiant de l'émetteur
            split (Split): répartition calculée par l'émetteur
            now (float): temps de simulation courant

        Returns:
            bool: True si le message a été livré ou stocké
        """
        if msg.destination == self.node_id:
            return self.host.deliver(msg, now)

        self.replication.on_transfer_completed(msg, split, sender_side=False)
        if not self.host.buffer.make_room(msg.size):
            return False
        self.host.buffer.admit(msg, now)
        return True


def exchange_contact(con, now: float):
    """
    Traite l'ouverture d'une connexion des deux côtés simultanément: chaque côté
    reçoit l'instantané de la table de l'autre pris avant toute mise à jour.

    Args:
        con (Connection): connexion ouverte
        now (float): temps de simulation courant
    """
    a, b = con.from_node, con.to_node
    for node in (a, b):
        if not isinstance(node.router, PredictabilityView):
            raise ContractViolation(f"Le routeur du nœud {node.id} ne fournit pas de probabilités")

    snapshot_a = a.router.snapshot_table(now)
    snapshot_b = b.router.snapshot_table(now)
    a.router.connection_up(con, snapshot_b, now)
    b.router.connection_up(con, snapshot_a, now)
