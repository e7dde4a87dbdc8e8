# models/connection.py


class Connection:
    """
    Lien bidirectionnel entre deux nœuds pendant un contact.
    Un seul transfert à la fois peut circuler sur la connexion.
    """

    def __init__(self, from_node, to_node, speed):
        """
        Constructeur d'un objet Connection

        Args:
            from_node (Node): nœud ayant ouvert la connexion
            to_node (Node): nœud distant
            speed (float): débit en octets par seconde
        """
        self.from_node = from_node
        self.to_node = to_node
        self.speed = float(speed)
        self.is_up = True
        self.message = None     # Copie du message en cours de transfert
        self.sender = None
        self.start_time = None
        self.finish_time = None

    def __str__(self):
        state = 'up' if self.is_up else 'down'
        return f"Connection {self.from_node.id}<->{self.to_node.id} ({state})"

    def other_node(self, node):
        """
        Retourne le nœud à l'autre extrémité de la connexion.

        Args:
            node (Node): une extrémité de la connexion

        Returns:
            Node: l'autre extrémité
        """
        return self.to_node if node is self.from_node else self.from_node

    def is_transferring(self) -> bool:
        return self.message is not None

    def start_transfer(self, sender, msg, now: float) -> bool:
        """
        Démarre le transfert d'une copie de msg depuis sender.

        Args:
            sender (Node): nœud émetteur
            msg (Message): message à transférer
            now (float): temps de simulation courant

        Returns:
            bool: True si le transfert a démarré
        """
        if not self.is_up or self.is_transferring():
            return False

        receiver = self.other_node(sender)
        self.message = msg.replicate()
        self.message.hops.append(receiver.id)
        self.sender = sender
        self.start_time = now
        self.finish_time = now + msg.size / self.speed
        return True

    def is_transfer_done(self, now: float) -> bool:
        return self.is_transferring() and now >= self.finish_time

    def clear_transfer(self):
        message = self.message
        self.message = None
        self.sender = None
        self.start_time = None
        self.finish_time = None
        return message

    def abort_transfer(self):
        return self.clear_transfer()

    def set_down(self):
        self.is_up = False
