#!/usr/bin/env python3
# protocols/negotiation.py
"""
Négociation des transferts lors des contacts.

À chaque pas de routage, le négociateur construit la liste ordonnée des offres
(message, connexion) à tenter:
1. Livraison directe: les messages destinés à un pair connecté passent en premier.
2. Phase Spray: les messages avec plus d'une copie sont offerts à tous les pairs
   connectés, dans l'ordre de la file d'attente (biais communautaire éventuel).
3. Phase Wait: les messages à copie unique ne sont offerts qu'aux pairs dont la
   probabilité de livraison vers la destination est strictement supérieure à la
   nôtre, triés par probabilité du pair décroissante (GRTRMax), l'ordre de la
   file départageant les égalités.

Le mécanisme de transfert consomme la liste; rien n'est retenté dans le même pas.
"""
import logging
import random
from dataclasses import dataclass

from protocols.base import ContractViolation, PredictabilityView

logger = logging.getLogger(__name__)

DIRECT = 'direct'
SPRAY = 'spray'
WAIT = 'wait'


@dataclass(frozen=True)
class Offer:
    """Offre de transfert d'un message sur une connexion.

    Attributes:
        message: Message à transférer
        connection: Connexion vers le pair
        kind: Phase de l'offre (direct, spray, wait)
        peer_predictability: Probabilité du pair vers la destination
    """
    message: object
    connection: object
    kind: str
    peer_predictability: float = 0.0


class QueueOrdering:
    """
    Ordre de la file d'attente des messages (tri stable et déterministe).
    """

    def __init__(self, mode: str = 'fifo', seed: int = 1):
        """
        Args:
            mode (str): fifo, random, largest_first ou smallest_first
            seed (int): graine du mode random
        """
        self.mode = mode
        self.seed = seed

    def key(self, msg):
        if self.mode == 'largest_first':
            return (-msg.size, msg.receive_time)
        if self.mode == 'smallest_first':
            return (msg.size, msg.receive_time)
        if self.mode == 'random':
            # Clé dérivée de (graine, id), identique d'un pas à l'autre
            return (random.Random(f"{self.seed}:{msg.id}").random(), msg.id)
        return (msg.receive_time,)

    def sort(self, messages) -> list:
        return sorted(messages, key=self.key)


class ForwardingNegotiator:
    """
    Construit la liste ordonnée des offres pour un nœud.
    """

    def __init__(self, replication, ordering, bias):
        """
        Args:
            replication (ReplicationController): compteur de copies
            ordering (QueueOrdering): ordre de la file
            bias: politique de biais de la phase de spray
        """
        self.replication = replication
        self.ordering = ordering
        self.bias = bias

    def peers_of(self, router):
        """
        Retourne les pairs connectés au nœud du routeur.

        Args:
            router (DTNRouter): routeur du nœud courant

        Returns:
            list: [(connexion, routeur du pair)]
        """
        host = router.host
        peers = []
        for con in host.connections:
            if not con.is_up:
                continue
            peer_router = con.other_node(host).router
            if not isinstance(peer_router, PredictabilityView):
                raise ContractViolation(
                    f"Le routeur du nœud {con.other_node(host).id} ne fournit pas de probabilités")
            peers.append((con, peer_router))
        return peers

    def negotiate(self, router, now: float) -> list:
        """
        Construit les offres du pas de routage courant.

        Args:
            router (DTNRouter): routeur du nœud courant
            now (float): temps de simulation courant

        Returns:
            list[Offer]: offres ordonnées
        """
        peers = self.peers_of(router)
        if not peers:
            return []

        carried = self.ordering.sort(router.host.buffer.list_carried())
        offers = []

        # 1. Livraison directe
        direct_ids = set()
        for msg in carried:
            for con, peer_router in peers:
                if msg.destination == peer_router.node_id and not peer_router.host.has_message(msg.id):
                    offers.append(Offer(msg, con, DIRECT, 1.0))
                    direct_ids.add(msg.id)

        idle = [(con, pr) for con, pr in peers if not pr.host.is_transferring()]
        spray = [m for m in carried if m.id not in direct_ids and self.replication.has_copies_left(m)]
        waiting = [m for m in carried if m.id not in direct_ids and not self.replication.has_copies_left(m)]

        # 2. Phase Spray: tous les pairs, indépendamment des probabilités
        for msg in spray:
            candidates = [(con, pr) for con, pr in idle if not pr.host.has_message(msg.id)]
            for con, pr in self.bias.order_spray(msg, router, candidates):
                offers.append(Offer(msg, con, SPRAY))

        # 3. Phase Wait: uniquement vers un pair de meilleure probabilité (GRTRMax)
        wait_offers = []
        rank = {msg.id: i for i, msg in enumerate(carried)}
        for con, pr in idle:
            for msg in waiting:
                if pr.host.has_message(msg.id):
                    continue
                p_peer = pr.predictability_for(msg.destination, now)
                if p_peer > router.predictability_for(msg.destination, now):
                    wait_offers.append(Offer(msg, con, WAIT, p_peer))
        wait_offers.sort(key=lambda o: (-o.peer_predictability, rank[o.message.id]))
        offers.extend(wait_offers)

        logger.debug("t=%s nœud %s: %d offre(s) (%d spray, %d wait)", now, router.node_id,
                     len(offers), sum(o.kind == SPRAY for o in offers), len(wait_offers))
        return offers
