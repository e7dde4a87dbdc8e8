# models/node.py
import logging

from models.buffer import MessageBuffer

logger = logging.getLogger(__name__)


class Node:
    """
    Représente un nœud mobile du réseau DTN.
    """

    def __init__(self, id, router, buffer_size):
        """
        Constructeur d'un objet Node

        Args:
            id: identifiant du nœud (obligatoire)
            router (DTNRouter): routeur du nœud
            buffer_size (int): taille du buffer en octets
        """
        self.id = id
        self.buffer = MessageBuffer(buffer_size)
        self.connections = []    # Connexions ouvertes
        self.delivered = {}      # Messages reçus en tant que destination: {id: Message}
        self.seen = set()        # Identifiants de tous les messages déjà reçus
        self.router = router
        router.attach(self)

    def __str__(self):
        nb_con = len(self.connections)
        return f"Node ID {self.id} has {nb_con} connection(s) and {len(self.buffer)} message(s)"

    def __repr__(self):
        return f"Node({self.id!r})"

    #*************** Connexions ****************
    def add_connection(self, con):
        if con not in self.connections:
            self.connections.append(con)

    def remove_connection(self, con):
        if con in self.connections:
            self.connections.remove(con)

    def connection_to(self, other_id):
        """
        Recherche la connexion ouverte vers un nœud.

        Args:
            other_id: identifiant du nœud distant

        Returns:
            Connection: la connexion, ou None
        """
        for con in self.connections:
            if con.other_node(self).id == other_id:
                return con
        return None

    #*************** Messages ****************
    def has_message(self, msg_id) -> bool:
        """
        Vérifie si le nœud possède ou a déjà reçu le message.

        Args:
            msg_id (str): identifiant du message

        Returns:
            bool: True si le message est dans le buffer, livré ou déjà vu
        """
        return self.buffer.has_message(msg_id) or msg_id in self.delivered or msg_id in self.seen

    def accepts(self, msg) -> bool:
        return not self.has_message(msg.id) and msg.size <= self.buffer.capacity

    def deliver(self, msg, now: float) -> bool:
        """
        Enregistre la réception d'un message dont ce nœud est la destination.

        Args:
            msg (Message): message reçu
            now (float): instant de réception

        Returns:
            bool: True à la première livraison, False pour un doublon
        """
        if msg.id in self.delivered:
            return False
        msg.receive_time = now
        self.delivered[msg.id] = msg
        return True

    #*************** Transferts ****************
    def can_start_transfer(self) -> bool:
        return len(self.buffer) > 0 and any(con.is_up for con in self.connections)

    def is_transferring(self) -> bool:
        return any(con.is_transferring() for con in self.connections)

    def start_transfer(self, offer, now: float) -> bool:
        """
        Tente de démarrer le transfert d'une offre.

        Args:
            offer (Offer): message et connexion proposés
            now (float): temps de simulation courant

        Returns:
            bool: True si le transfert a démarré
        """
        con = offer.connection
        other = con.other_node(self)
        msg = offer.message
        if self.is_transferring() or other.is_transferring():
            return False
        if not self.buffer.has_message(msg.id) or not other.accepts(msg):
            return False
        if not con.start_transfer(self, msg, now):
            return False
        self.buffer.protected.add(msg.id)
        logger.debug("t=%s transfert %s: %s -> %s (%s)", now, msg.id, self.id, other.id, offer.kind)
        return True

    def attempt_transfers(self, offers, now: float):
        """
        Parcourt les offres dans l'ordre et démarre le premier transfert possible.

        Args:
            offers (list[Offer]): offres ordonnées
            now (float): temps de simulation courant

        Returns:
            Offer: l'offre démarrée, ou None
        """
        for offer in offers:
            if self.start_transfer(offer, now):
                return offer
        return None
