#!/usr/bin/env python3
# protocols/replication.py
"""
Contrôle de la réplication Spray-and-Wait pour les réseaux tolérants aux délais (DTN).

Principe:
1. Phase Spray: À la création, le message reçoit L copies.
   Lors d'un transfert, un nœud avec n > 1 copies partage son compteur avec le pair.
2. Phase Wait: Dès qu'un nœud n'a plus qu'une seule copie, il ne transmet plus
   qu'à la destination ou à un pair de meilleure probabilité de livraison.

Modes de partage:
- binary: l'émetteur garde floor(n/2) copies, le récepteur reçoit ceil(n/2)
- weighted: le récepteur reçoit floor(n * P_r / (P_r + P_e)), l'émetteur garde le reste
- source: le récepteur reçoit une seule copie, l'émetteur garde n - 1

Le partage est calculé une seule fois par transfert terminé et appliqué aux deux
côtés: le total des copies est conservé.

Référence: Thrasyvoulos Spyropoulos, Konstantinos Psounis, Cauligi S. Raghavendra,
"Spray and Wait: An Efficient Routing Scheme for Intermittently Connected Mobile Networks"
"""
import logging
import math
from dataclasses import dataclass

from protocols.base import ContractViolation

logger = logging.getLogger(__name__)

SPRAYANDWAIT_NS = "SprayAndWaitRouter"
MSG_COUNT_PROPERTY = SPRAYANDWAIT_NS + ".copies"


@dataclass(frozen=True)
class Split:
    """Répartition des copies après un transfert.

    Attributes:
        sender: Copies conservées par l'émetteur (0 = message supprimé)
        receiver: Copies attribuées au récepteur
    """
    sender: int
    receiver: int

    @property
    def total(self) -> int:
        return self.sender + self.receiver


class BinarySplit:
    name = 'binary'

    def split(self, n: int, p_sender: float, p_receiver: float) -> Split:
        return Split(n // 2, math.ceil(n / 2))


class WeightedSplit:
    """Partage proportionnel aux probabilités de livraison vers la destination."""

    name = 'weighted'

    def split(self, n: int, p_sender: float, p_receiver: float) -> Split:
        total = p_sender + p_receiver
        if total <= 0:
            return BinarySplit().split(n, p_sender, p_receiver)
        to_give = math.floor(n * p_receiver / total)
        # Chaque côté garde au moins une copie
        to_give = max(1, min(n - 1, to_give))
        return Split(n - to_give, to_give)


class SourceSplit:
    name = 'source'

    def split(self, n: int, p_sender: float, p_receiver: float) -> Split:
        return Split(n - 1, 1)


SPLIT_POLICIES = {
    'binary': BinarySplit,
    'weighted': WeightedSplit,
    'source': SourceSplit,
}


class ReplicationController:
    """
    Gère le compteur de copies attaché à chaque message.
    """

    def __init__(self, settings):
        """
        Args:
            settings (RoutingSettings): paramètres de routage
        """
        self.initial_copies = settings.initial_copies
        self.delete_at_one_copy = settings.delete_at_one_copy
        self.policy = SPLIT_POLICIES[settings.split_mode]()

    def on_message_created(self, msg):
        """
        Initialise le compteur de copies d'un nouveau message.

        Args:
            msg (Message): message créé
        """
        msg.add_property(MSG_COUNT_PROPERTY, self.initial_copies)

    def copies_of(self, msg) -> int:
        nrof_copies = msg.get_property(MSG_COUNT_PROPERTY)
        if nrof_copies is None:
            raise ContractViolation(f"Le message {msg.id} n'a pas de compteur de copies")
        return nrof_copies

    def has_copies_left(self, msg) -> bool:
        return self.copies_of(msg) > 1

    def split(self, msg, p_sender: float = 0.0, p_receiver: float = 0.0) -> Split:
        """
        Calcule la répartition des copies pour un transfert terminé.

        Args:
            msg (Message): message transféré (compteur avant transfert)
            p_sender (float): probabilité de l'émetteur vers la destination
            p_receiver (float): probabilité du récepteur vers la destination

        Returns:
            Split: copies de l'émetteur et du récepteur
        """
        n = self.copies_of(msg)
        if n <= 1:
            # Relais d'une copie unique: le récepteur en reçoit une
            split = Split(0 if self.delete_at_one_copy else 1, 1)
        else:
            split = self.policy.split(n, p_sender, p_receiver)
        logger.debug("Partage de %s (%d copies, %s): émetteur=%d, récepteur=%d",
                     msg.id, n, self.policy.name, split.sender, split.receiver)
        return split

    def on_transfer_completed(self, msg, split: Split, sender_side: bool):
        """
        Applique la part d'un côté du transfert au compteur du message.

        Args:
            msg (Message): copie locale du message
            split (Split): répartition calculée par split()
            sender_side (bool): True côté émetteur, False côté récepteur

        Returns:
            int: nouveau nombre de copies
        """
        self.copies_of(msg)
        nrof_copies = split.sender if sender_side else split.receiver
        msg.update_property(MSG_COUNT_PROPERTY, nrof_copies)
        return nrof_copies
