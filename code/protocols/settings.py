#!/usr/bin/env python3
# protocols/settings.py
"""
Paramètres des routeurs Spray-and-Wait / PRoPHET.

Les paramètres sont lus depuis la section 'routing' de CONFIG et validés à la
construction: toute valeur invalide lève une ConfigurationError.
"""
from dataclasses import dataclass, fields, asdict

from protocols.base import ConfigurationError

SPLIT_MODES = ('binary', 'weighted', 'source')
PREDICTION_MODES = ('average', 'classic')
QUEUE_MODES = ('fifo', 'random', 'largest_first', 'smallest_first')
BIAS_MODES = ('none', 'community', 'bubble')


@dataclass(frozen=True)
class RoutingSettings:
    """Paramètres de routage.

    Attributes:
        initial_copies: Nombre initial de copies d'un message (L)
        split_mode: Répartition des copies (binary, weighted, source)
        p_init: Constante d'initialisation des probabilités
        beta: Facteur de transitivité
        gamma: Facteur de vieillissement
        seconds_in_time_unit: Durée d'une unité de temps de vieillissement
        prediction_mode: Règle de mise à jour directe (average, classic)
        community_threshold: Nombre de contacts pour entrer dans la communauté
        queue_mode: Ordre de la file d'attente
        bias: Biais communautaire des offres (none, community, bubble)
        delete_at_one_copy: Supprimer la copie unique après un relais
        seed: Graine pour le mode de file 'random'
    """
    initial_copies: int = 6
    split_mode: str = 'binary'
    p_init: float = 0.75
    beta: float = 0.25
    gamma: float = 0.98
    seconds_in_time_unit: float = 30
    prediction_mode: str = 'average'
    community_threshold: int = 3
    queue_mode: str = 'fifo'
    bias: str = 'none'
    delete_at_one_copy: bool = False
    seed: int = 1

    def __post_init__(self):
        if isinstance(self.initial_copies, bool) or not isinstance(self.initial_copies, int) \
                or self.initial_copies < 1:
            raise ConfigurationError(
                f"initial_copies doit être un entier >= 1 (reçu: {self.initial_copies!r})")
        _check_choice('split_mode', self.split_mode, SPLIT_MODES)
        _check_choice('prediction_mode', self.prediction_mode, PREDICTION_MODES)
        _check_choice('queue_mode', self.queue_mode, QUEUE_MODES)
        _check_choice('bias', self.bias, BIAS_MODES)
        for name in ('p_init', 'beta', 'gamma', 'seconds_in_time_unit'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} doit être un nombre (reçu: {value!r})")
        if not isinstance(self.delete_at_one_copy, bool):
            raise ConfigurationError(
                f"delete_at_one_copy doit être un booléen (reçu: {self.delete_at_one_copy!r})")
        if isinstance(self.seed, bool) or not isinstance(self.seed, int):
            raise ConfigurationError(f"seed doit être un entier (reçu: {self.seed!r})")
        if not 0.0 < self.p_init <= 1.0:
            raise ConfigurationError(f"p_init doit être dans ]0, 1] (reçu: {self.p_init!r})")
        if not 0.0 <= self.beta <= 1.0:
            raise ConfigurationError(f"beta doit être dans [0, 1] (reçu: {self.beta!r})")
        if not 0.0 < self.gamma <= 1.0:
            raise ConfigurationError(f"gamma doit être dans ]0, 1] (reçu: {self.gamma!r})")
        if not self.seconds_in_time_unit or self.seconds_in_time_unit <= 0:
            raise ConfigurationError(
                f"seconds_in_time_unit doit être > 0 (reçu: {self.seconds_in_time_unit!r})")
        if isinstance(self.community_threshold, bool) or not isinstance(self.community_threshold, int) \
                or self.community_threshold < 1:
            raise ConfigurationError(
                f"community_threshold doit être un entier >= 1 (reçu: {self.community_threshold!r})")

    @classmethod
    def from_config(cls, section: dict):
        """
        Construit les paramètres depuis un dictionnaire de configuration.

        Args:
            section (dict): section 'routing' de CONFIG (les clés inconnues sont refusées)

        Returns:
            RoutingSettings: paramètres validés
        """
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ConfigurationError(f"Options de routage inconnues: {sorted(unknown)}")
        return cls(**section)

    def to_dict(self) -> dict:
        return asdict(self)


def _check_choice(name, value, choices):
    if value not in choices:
        raise ConfigurationError(f"{name} doit valoir {' | '.join(choices)} (reçu: {value!r})")
