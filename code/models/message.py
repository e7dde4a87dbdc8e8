# models/message.py
import copy


class Message:
    """
    Représente un message transporté par les nœuds du réseau.
    """

    def __init__(self, id, source, destination, size, created_at=0.0, ttl=None):
        """
        Constructeur d'un objet Message

        Args:
            id (str): identifiant unique du message
            source: identifiant du nœud source
            destination: identifiant du nœud destinataire
            size (int): taille en octets
            created_at (float, optional): instant de création. Par défaut 0.0.
            ttl (float, optional): durée de vie en secondes. Par défaut None (infinie).
        """
        self.id = str(id)
        self.source = source
        self.destination = destination
        self.size = int(size)
        self.created_at = float(created_at)
        self.ttl = ttl
        self.receive_time = float(created_at)  # Instant d'entrée dans le buffer courant
        self.hops = [source]                     # Nœuds traversés
        self.properties = {}

    def __str__(self):
        return f"Message {self.id} ({self.source} -> {self.destination}, {self.size} octets)"

    def __repr__(self):
        return f"Message({self.id!r})"

    @property
    def hop_count(self) -> int:
        return len(self.hops) - 1

    def is_expired(self, now: float) -> bool:
        return self.ttl is not None and now - self.created_at >= self.ttl

    #*************** Propriétés de routage ****************
    def get_property(self, key):
        return self.properties.get(key)

    def add_property(self, key, value):
        """
        Ajoute une propriété au message.

        Args:
            key (str): clé de la propriété
            value: valeur initiale
        """
        if key in self.properties:
            raise ValueError(f"La propriété {key} existe déjà sur le message {self.id}")
        self.properties[key] = value

    def update_property(self, key, value):
        if key not in self.properties:
            raise KeyError(f"Aucune propriété {key} sur le message {self.id}")
        self.properties[key] = value

    def replicate(self):
        """
        Retourne une copie indépendante du message (propriétés et sauts compris).

        Returns:
            Message: la copie
        """
        return copy.deepcopy(self)
