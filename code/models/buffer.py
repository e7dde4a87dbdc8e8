# models/buffer.py
import logging

logger = logging.getLogger(__name__)


class MessageBuffer:
    """
    Buffer de stockage des messages d'un nœud (store-and-forward).
    """

    def __init__(self, capacity):
        """
        Constructeur d'un objet MessageBuffer

        Args:
            capacity (int): taille maximale en octets
        """
        self.capacity = int(capacity)
        self.messages = {}       # {id: Message}, dans l'ordre d'admission
        self.dropped = []        # Messages supprimés pour faire de la place
        self.protected = set()   # Messages en cours d'envoi (non supprimables)

    def __len__(self):
        return len(self.messages)

    def __contains__(self, msg_id):
        return msg_id in self.messages

    @property
    def occupied(self) -> int:
        return sum(m.size for m in self.messages.values())

    @property
    def free_space(self) -> int:
        return self.capacity - self.occupied

    def make_room(self, size) -> bool:
        """
        Libère de la place en supprimant les messages les plus anciens.

        Args:
            size (int): espace requis en octets

        Returns:
            bool: True si l'espace requis est disponible
        """
        if size > self.capacity:
            return False

        while self.free_space < size:
            victims = [m for m in self.messages.values() if m.id not in self.protected]
            if not victims:
                return False
            oldest = min(victims, key=lambda m: m.receive_time)
            self.delete_message(oldest.id, due_to_delivery=False)
            self.dropped.append(oldest)
            logger.debug("Message %s supprimé pour libérer %d octets", oldest.id, size)
        return True

    def admit(self, msg, now: float):
        """
        Ajoute un message au buffer.

        Args:
            msg (Message): message à stocker
            now (float): instant de réception
        """
        msg.receive_time = now
        self.messages[msg.id] = msg

    def list_carried(self) -> list:
        return list(self.messages.values())

    def has_message(self, msg_id) -> bool:
        return msg_id in self.messages

    def get(self, msg_id):
        return self.messages.get(msg_id)

    def delete_message(self, msg_id, due_to_delivery: bool = False):
        """
        Supprime un message du buffer.

        Args:
            msg_id (str): identifiant du message
            due_to_delivery (bool): True si le message a été livré à sa destination

        Returns:
            Message: le message supprimé, ou None
        """
        self.protected.discard(msg_id)
        msg = self.messages.pop(msg_id, None)
        if msg is not None and due_to_delivery:
            logger.debug("Message %s retiré après livraison", msg_id)
        return msg
