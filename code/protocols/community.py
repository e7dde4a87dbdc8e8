#!/usr/bin/env python3
# protocols/community.py
"""
Détection de communauté locale et biais de transfert communautaire.

Principe (BubbleRap):
1. Chaque nœud maintient sa communauté locale: les pairs rencontrés au moins
   'threshold' fois (contacts de durée non nulle).
2. Il estime sa centralité locale (membres de sa communauté rencontrés) et sa
   centralité globale (pairs distincts rencontrés).
3. Tant que la destination n'appartient à la communauté d'aucun pair, le message
   "remonte" vers les nœuds plus centraux globalement. Dès qu'un pair déclare la
   destination dans sa communauté, le message n'est plus transmis qu'au sein de
   cette communauté, vers les nœuds plus centraux localement.

Référence: Hui, P., Crowcroft, J., & Yoneki, E. (2008).
"BUBBLE Rap: Social-based Forwarding in Delay Tolerant Networks", MobiHoc '08.
"""
import logging

from protocols.contacts import ContactHistory

logger = logging.getLogger(__name__)


class CommunityDetector:
    """
    Suit l'historique des contacts et promeut les pairs fréquents dans la
    communauté locale. L'appartenance n'est jamais retirée.
    """

    def __init__(self, owner, threshold: int = 3):
        """
        Args:
            owner: identifiant du nœud propriétaire
            threshold (int): nombre de contacts pour entrer dans la communauté
        """
        self.owner = owner
        self.threshold = threshold
        self.contacts = ContactHistory()
        self.community = set()

    def on_contact_up(self, peer, now: float):
        self.contacts.start(peer, now)

    def on_contact_down(self, peer, now: float):
        """
        Enregistre la fin d'un contact et met à jour la communauté locale.

        Args:
            peer: identifiant du pair
            now (float): instant de fermeture

        Returns:
            ContactRecord: l'intervalle enregistré, ou None
        """
        record = self.contacts.end(peer, now)
        if record is not None and peer not in self.community \
                and self.contacts.count(peer) >= self.threshold:
            self.community.add(peer)
            logger.debug("t=%s %s ajoute %s à sa communauté locale", now, self.owner, peer)
        return record

    def local_community(self) -> frozenset:
        return frozenset(self.community)

    def is_member(self, peer) -> bool:
        return peer in self.community

    def local_centrality(self) -> int:
        return sum(1 for peer in self.contacts.peers() if peer in self.community)

    def global_centrality(self) -> int:
        return len(self.contacts.peers())


class NoBias:
    """Aucun biais: les pairs sont conservés dans l'ordre reçu."""

    name = 'none'

    def order_spray(self, message, own, candidates):
        return list(candidates)


class CommunityBias:
    """Les membres de la communauté locale reçoivent les offres en premier."""

    name = 'community'

    def order_spray(self, message, own, candidates):
        """
        Args:
            message (Message): message à répandre
            own (CommunityView): vue sur le nœud courant
            candidates (list): [(connexion, routeur du pair)]

        Returns:
            list: candidats réordonnés (tri stable)
        """
        community = own.local_community()
        return sorted(candidates, key=lambda c: c[1].node_id not in community)


class BubbleBias:
    """
    Règle BubbleRap appliquée à la phase de spray.
    """

    name = 'bubble'

    def order_spray(self, message, own, candidates):
        """
        Args:
            message (Message): message à répandre
            own (CommunityView): vue sur le nœud courant
            candidates (list): [(connexion, routeur du pair)]

        Returns:
            list: candidats retenus et ordonnés
        """
        dest = message.destination
        carriers = [c for c in candidates if dest in c[1].local_community()]

        if carriers:
            # Descente dans la communauté de la destination
            if dest in own.local_community():
                own_rank = own.local_centrality()
                carriers = [c for c in carriers if c[1].local_centrality() > own_rank]
            return sorted(carriers, key=lambda c: -c[1].local_centrality())

        if dest in own.local_community():
            # La destination est déjà dans notre communauté: on garde le message
            return []

        # Remontée: uniquement vers les nœuds plus centraux globalement
        own_rank = own.global_centrality()
        community = own.local_community()
        climbers = [c for c in candidates if c[1].global_centrality() > own_rank]
        return sorted(climbers,
                      key=lambda c: (c[1].node_id not in community, -c[1].global_centrality()))


BIAS_POLICIES = {
    'none': NoBias,
    'community': CommunityBias,
    'bubble': BubbleBias,
}


def make_bias(name: str):
    return BIAS_POLICIES[name]()
